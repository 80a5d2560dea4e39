"""
simulation orchestrator.

this class manages the lifecycle of the single-drop experiment:
- holding the configuration (`_config`), the apparatus parameters and the drop.
- selecting the integrator through the IntegratorManager.
- advancing one display frame at a time through the frame sub-stepping driver.
- applying user commands (run/pause, new drop, reset, pulse, parameter changes).
- recording the rolling history and trail, and providing state for the ui.
"""

import time
import traceback
from typing import Any, Dict, Optional

import numpy as np

from config.param_defs import PARAM_DEFS
from oildrop import controls
from oildrop.drop_state import DropState, SimulationParameters
from oildrop.forces import (
    compute_electric_field, gravity_force, electric_force, terminal_velocity,
    balance_field, balance_voltage_kv,
)
from oildrop.history import HistoryBuffer, Trail
from oildrop.integrator_manager import IntegratorManager
from oildrop.stepping import FrameResult, advance_frame, sanitize_frame_dt
from oildrop.constants import MAX_FRAME_DT, SUBSTEP_DT
from oildrop.utils import format_value_scientific, parse_flag

SIM_VERSION = "1.0"

# status messages
STATUS_READY = "Ready"
STATUS_RUNNING = "Running"
STATUS_PAUSED = "Paused"
STATUS_INITIALIZING = "Initializing..."
STATUS_RESETTING = "Resetting..."
STATUS_ERROR = "Error"

UI_FLAGS = ('field_enabled', 'show_trail', 'show_grid')


class Simulator:
    """
    main simulation orchestrator. owns the drop, its parameters, the random
    source, the integrator manager, history and trail.
    """

    def __init__(self, initial_settings: Dict[str, Any], rng: Optional[np.random.Generator] = None):
        print(f"\n===== Initializing Simulator v{SIM_VERSION} =====")
        start_time_init = time.perf_counter()

        self._config: Dict[str, Any] = dict(initial_settings)
        self._status_msg: str = STATUS_INITIALIZING
        self._running: bool = bool(self._config.get('start_running', True))
        self._rng = rng if rng is not None else np.random.default_rng(self._config.get('random_seed'))

        self._substep_dt = float(self._config.get('substep_dt', SUBSTEP_DT))
        self._max_frame_dt = float(self._config.get('max_frame_dt', MAX_FRAME_DT))
        self._time: float = 0.0         # integrated (simulated) time
        self._frame_clock: float = 0.0  # frame time, advances while paused too
        self._frames: int = 0
        self._substeps_taken: int = 0
        self._last_field: float = 0.0

        graph_settings = self._config.get('GRAPH_SETTINGS', {})
        self._history = HistoryBuffer(window=graph_settings.get('history_window_s', 20.0),
                                      sample_interval=graph_settings.get('history_sample_interval_s', 1.0 / 45.0))
        self._trail = Trail(max_points=self._config.get('trail_max_points', 140),
                            fade_rate=self._config.get('trail_fade_rate', 0.9),
                            min_alpha=self._config.get('trail_min_alpha', 0.02),
                            max_fade_dt=self._max_frame_dt)

        try:
            print("1. Creating Drop and Parameters...")
            self._params = SimulationParameters.from_settings(self._config)
            self._drop = DropState.create(self._params)
            self._apply_initial_ranges()

            print("2. Selecting Integrator...")
            self._integrator_manager = IntegratorManager(self._config)
            self._integrator_manager.select_integrator(self._config.get('default_integrator', 'explicit_euler'))

            self._last_field = compute_electric_field(self._params)
            self.sample_history()
            self._status_msg = STATUS_RUNNING if self._running else STATUS_READY
            init_duration = time.perf_counter() - start_time_init
            print(f"===== Simulator Initialized ({init_duration:.3f} s) =====")
            self._log_current_setup()
        except Exception as e:
            self._status_msg = STATUS_ERROR
            print(f"\n!!! FATAL ERROR during Simulator Initialization: {e} !!!")
            traceback.print_exc()
            raise

    def _apply_initial_ranges(self):
        """runs the configured starting values through the slider setters so they obey PARAM_DEFS."""
        cfg, drop, params = self._config, self._drop, self._params
        controls.set_voltage_kv(params, cfg.get('voltage_kv', params.voltage_kv))
        controls.set_plate_gap(drop, params, cfg.get('plate_gap_mm', params.plate_gap_m * 1000.0),
                               preserve_position=False)
        controls.set_radius_microns(drop, params, cfg.get('radius_microns', params.radius_microns),
                                    preserve_velocity=False)
        controls.set_viscosity_scaled(drop, params, cfg.get('viscosity_scaled', params.viscosity / 1e-5))
        controls.set_temperature_k(params, cfg.get('temperature_k', params.temperature_k))
        controls.set_noise_boost(params, cfg.get('noise_boost', params.noise_boost))
        controls.set_charge_multiple(drop, cfg.get('charge_multiple', -8))

    # --- frame update ---

    def update(self, frame_dt: float) -> FrameResult:
        """
        advances one display frame. while paused only the trail fades and
        the history keeps sampling.
        """
        safe_dt = sanitize_frame_dt(frame_dt)
        self._frames += 1
        self._frame_clock += min(safe_dt, self._max_frame_dt)

        if not self._running:
            result = FrameResult(field=compute_electric_field(self._params), substeps=0, simulated_time=0.0)
        else:
            try:
                result = advance_frame(self._drop, self._params, safe_dt,
                                       self._integrator_manager.advance, self._rng,
                                       substep_dt=self._substep_dt, max_frame_dt=self._max_frame_dt)
                self._time += result.simulated_time
                self._substeps_taken += result.substeps
                self._status_msg = STATUS_RUNNING
            except Exception as e:
                print(f"ERROR during frame {self._frames}: {e}")
                traceback.print_exc()
                self._status_msg = STATUS_ERROR
                self._running = False
                result = FrameResult(field=self._last_field, substeps=0, simulated_time=0.0)

        # a running frame with nothing to integrate does not fade the trail
        fade_dt = 0.0 if (self._running and result.substeps == 0) else safe_dt
        self._trail.advance(fade_dt, self._drop.position, append=result.substeps > 0,
                            enabled=self._config.get('show_trail', True))
        self._last_field = result.field
        self._history.capture(self._frame_clock, min(safe_dt, self._max_frame_dt), self._drop.position,
                              self._drop.velocity, self._params.plate_gap_m, result.field)
        return result

    def sample_history(self):
        """forced history sample of the current state, taken after every configuration change."""
        self._last_field = compute_electric_field(self._params)
        self._history.capture(self._frame_clock, 0.0, self._drop.position, self._drop.velocity,
                              self._params.plate_gap_m, self._last_field, force=True)

    # --- simulation control ---

    def run(self):
        self._running = True; self._status_msg = STATUS_RUNNING
    def pause(self):
        self._running = False; self._status_msg = STATUS_PAUSED
    def toggle_run(self):
        """toggles between running and paused states."""
        self._running = not self._running; self._status_msg = STATUS_RUNNING if self._running else STATUS_PAUSED

    def new_drop(self):
        """randomized drop: radius, voltage, charge and gap drawn from the simulator's random source."""
        controls.reset_drop(self._drop, self._params, randomize=True, rng=self._rng)
        self._trail.clear()
        print(f"New drop: r={self._params.radius_microns:.2f} um, q={self._drop.charge_multiple}e, "
              f"V={self._params.voltage_kv:.2f} kV, gap={self._params.plate_gap_m * 1000:.1f} mm")
        self.sample_history()

    def reset_drop(self):
        controls.reset_drop(self._drop, self._params, randomize=False)
        self._trail.clear()
        self.sample_history()

    def reset_to_initial(self):
        """restores every default setting, puts the drop back at rest and resumes."""
        print("===== Resetting Simulation to Initial State =====")
        self._status_msg = STATUS_RESETTING
        controls.restore_defaults(self._drop, self._params, self._config)
        self._apply_initial_ranges()
        for flag in ('show_trail', 'show_grid'):
            self._config[flag] = True
        self._trail.clear()
        self._running = True
        self.sample_history()
        self._status_msg = STATUS_RUNNING
        print("===== Simulation Reset Complete =====")

    def pulse_field(self):
        controls.pulse_field(self._params)

    def zero_velocity(self):
        controls.zero_velocity(self._drop)
        self.sample_history()

    def nudge_charge(self, delta: int):
        controls.nudge_charge(self._drop, delta)
        self.sample_history()

    # --- configuration entry points ---

    def set_plate_gap(self, gap_mm, preserve_position: bool = True):
        previous_gap, new_gap = controls.set_plate_gap(self._drop, self._params, gap_mm, preserve_position)
        if preserve_position:
            self._trail.rescale(previous_gap, new_gap)
        self.sample_history()

    def set_charge_multiple(self, multiple):
        controls.set_charge_multiple(self._drop, multiple)
        self.sample_history()

    def set_radius_microns(self, radius_microns, preserve_velocity: bool = True):
        controls.set_radius_microns(self._drop, self._params, radius_microns, preserve_velocity)
        self.sample_history()

    def set_voltage_kv(self, voltage_kv):
        controls.set_voltage_kv(self._params, voltage_kv)
        self.sample_history()

    def set_temperature_k(self, temperature_k):
        controls.set_temperature_k(self._params, temperature_k)
        self.sample_history()

    def set_noise_boost(self, noise_boost):
        controls.set_noise_boost(self._params, noise_boost)
        self.sample_history()

    def set_viscosity_scaled(self, viscosity_scaled):
        controls.set_viscosity_scaled(self._drop, self._params, viscosity_scaled)
        self.sample_history()

    def set_parameter(self, key: str, value: Any):
        """routes a slider change (PARAM_DEFS key) to its setter."""
        setters = {
            'voltage_kv': self.set_voltage_kv,
            'plate_gap_mm': self.set_plate_gap,
            'radius_microns': self.set_radius_microns,
            'charge_multiple': self.set_charge_multiple,
            'viscosity_scaled': self.set_viscosity_scaled,
            'temperature_k': self.set_temperature_k,
            'noise_boost': self.set_noise_boost,
        }
        if key not in setters or key not in PARAM_DEFS:
            raise ValueError(f"Unknown parameter key: '{key}'. Available: {list(setters.keys())}")
        setters[key](value)

    def set_flag(self, key: str, value: bool):
        """field on/off and the display toggles."""
        if key not in UI_FLAGS:
            raise ValueError(f"Invalid flag '{key}'. Valid: {list(UI_FLAGS)}")
        new_val = parse_flag(value)
        if key == 'field_enabled':
            self._params.field_enabled = new_val
            self.sample_history()
        else:
            self._config[key] = new_val
            if key == 'show_trail' and not new_val:
                self._trail.clear()

    def select_integrator(self, integrator_id: str):
        """selects the sub-step integrator. raises ValueError for an unknown id."""
        print(f"Simulator: Selecting integrator id='{integrator_id}'")
        self._integrator_manager.select_integrator(integrator_id)

    # --- state query methods ---

    def is_running(self) -> bool: return self._running
    def get_time(self) -> float: return self._time
    def get_frame_clock(self) -> float: return self._frame_clock
    def get_substeps_taken(self) -> int: return self._substeps_taken
    def get_status_message(self) -> str: return self._status_msg

    @property
    def drop(self) -> DropState:
        return self._drop

    @property
    def params(self) -> SimulationParameters:
        return self._params

    @property
    def trail(self) -> Trail:
        return self._trail

    @property
    def history(self) -> HistoryBuffer:
        return self._history

    @property
    def rng(self) -> np.random.Generator:
        return self._rng

    def get_current_integrator_info(self) -> Optional[Dict]:
        return self._integrator_manager.get_active_integrator_info()

    def get_available_integrators(self):
        return self._integrator_manager.get_available_integrators()

    def get_ui_parameter_values(self) -> Dict[str, Any]:
        """current values in slider units, keyed like PARAM_DEFS."""
        return {
            'voltage_kv': self._params.voltage_kv,
            'plate_gap_mm': self._params.plate_gap_m * 1000.0,
            'radius_microns': self._params.radius_microns,
            'charge_multiple': self._drop.charge_multiple,
            'viscosity_scaled': self._params.viscosity / 1e-5,
            'temperature_k': self._params.temperature_k,
            'noise_boost': self._params.noise_boost,
        }

    def get_current_state_for_ui(self) -> Dict[str, Any]:
        """Gathers essential simulation state for ui updates."""
        integrator_info = self.get_current_integrator_info()
        return {
            "time": self._time, "frame_clock": self._frame_clock,
            "substeps_taken": self._substeps_taken, "status_msg": self._status_msg,
            "running": self._running,
            "drop": self._drop.to_dict(),
            "params": self._params.to_dict(),
            "param_values": self.get_ui_parameter_values(),
            "flags": {"field_enabled": self._params.field_enabled,
                      "show_trail": self._config.get('show_trail', True),
                      "show_grid": self._config.get('show_grid', True)},
            "field": self._last_field,
            "stats": self._compute_stats(),
            "trail": [dict(p) for p in self._trail.points],
            "current_integrator": integrator_info['id'] if integrator_info else '-',
        }

    def _compute_stats(self) -> Dict[str, Any]:
        """readouts shown next to the apparatus (display units)."""
        drop, params = self._drop, self._params
        field = self._last_field
        f_gravity = gravity_force(drop, params)
        f_electric = electric_force(drop, field)
        e_balance = balance_field(drop, params)
        v_balance = balance_voltage_kv(drop, params)
        return {
            "field_kv_per_m": field / 1000.0,
            "charge_e": drop.charge_multiple,
            "charge_c": format_value_scientific(drop.charge_coulombs),
            "gravity_force_pn": abs(f_gravity) * 1e12,
            "electric_force_pn": abs(f_electric) * 1e12,
            "velocity_mm_s": drop.velocity * 1000.0,
            "terminal_velocity_mm_s": terminal_velocity(drop, params) * 1000.0,
            "balance_field_kv_per_m": e_balance / 1000.0 if e_balance is not None else None,
            "balance_voltage_kv": v_balance,
            "slip_factor": drop.slip_factor,
            "height_mm": drop.position * 1000.0,
            "relaxation_time_s": drop.mass / drop.drag_coeff if drop.drag_coeff > 0 else None,
            "pulse_timer": params.pulse_timer,
            "field_polarity": params.field_polarity,
        }

    def _log_current_setup(self):
        """Helper to print the current parameters and integrator."""
        p = self._params
        print("  Current Setup:")
        print(f"    Plates: {p.voltage_kv:.2f} kV across {p.plate_gap_m * 1000:.1f} mm (field {'on' if p.field_enabled else 'off'})")
        print(f"    Drop: r={p.radius_microns:.2f} um, q={self._drop.charge_multiple}e, m={format_value_scientific(self._drop.mass)} kg")
        print(f"    Air: eta={format_value_scientific(p.viscosity)} Pa*s, T={p.temperature_k:.0f} K, noise x{p.noise_boost:.2f}")
        integrator_info = self.get_current_integrator_info()
        print(f"    Integrator: {integrator_info['name']} ({integrator_info['id']})" if integrator_info else "    Integrator: -")

    def get_graph_data(self) -> Dict[str, Any]:
        """history arrays (as lists) plus the metadata the pdf report needs."""
        arrays = self._history.as_arrays()
        integrator_info = self.get_current_integrator_info()
        return {
            "time": arrays['t'].tolist(),
            "height": arrays['height'].tolist(),
            "velocity": arrays['velocity'].tolist(),
            "field": arrays['field'].tolist(),
            "plate_gap_mm": self._params.plate_gap_m * 1000.0,
            "terminal_velocity": terminal_velocity(self._drop, self._params),
            "integrator": integrator_info['id'] if integrator_info else '-',
            "graph_settings": dict(self._config.get('GRAPH_SETTINGS', {})),
        }
