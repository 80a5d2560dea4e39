# config/default_settings.py
from oildrop.constants import STANDARD_GRAVITY, SUBSTEP_DT, MAX_FRAME_DT

DEFAULT_SETTINGS = {
    # --- Simulation Control ---
    'start_running': True,      # Start integrating immediately?
    'substep_dt': SUBSTEP_DT,   # Fixed integrator sub-step (s)
    'max_frame_dt': MAX_FRAME_DT, # Longest frame integrated at once (s)
    'random_seed': None,        # None = fresh entropy for the noise/new-drop source
    'default_integrator': 'explicit_euler',

    # --- Apparatus ---
    'voltage_kv': 2.0,
    'plate_gap_mm': 5.0,
    'field_enabled': True,

    # --- Drop ---
    'radius_microns': 0.9,
    'charge_multiple': -8,

    # --- Air / Environment ---
    'viscosity_scaled': 1.8,    # Pa*s / 1e-5, slider units
    'temperature_k': 295.0,
    'noise_boost': 1.0,
    'gravity': STANDARD_GRAVITY,

    # --- UI / Visualization ---
    'show_trail': True,
    'show_grid': True,
    'trail_max_points': 140,
    'trail_fade_rate': 0.9,     # alpha lost per second of frame time
    'trail_min_alpha': 0.02,

    # --- Graphing Settings ---
    'GRAPH_SETTINGS': {
        'history_window_s': 20.0,
        'history_sample_interval_s': 1.0 / 45.0,
        'output_dir': 'output',
        'histogram_bins': 40,
        'plot_height': True,
        'plot_velocity': True,
        'plot_field': True,
        'plot_hist_velocity': True,
    },
    # 'viscosity' calculated below
}


# --- Calculate Derived Defaults ---

visc_scaled = DEFAULT_SETTINGS.get('viscosity_scaled')
if visc_scaled is not None:
    DEFAULT_SETTINGS['viscosity'] = float(visc_scaled) * 1e-5
    print(f"DEFAULT_SETTINGS: Calculated viscosity = {DEFAULT_SETTINGS['viscosity']:.2e} Pa*s from viscosity_scaled={visc_scaled:.2f}")
else:
    print("Warning: Cannot calculate default 'viscosity'. Using fallback 1.8e-5 Pa*s")
    DEFAULT_SETTINGS['viscosity'] = 1.8e-5


# --- Validation ---
if DEFAULT_SETTINGS['substep_dt'] <= 0 or DEFAULT_SETTINGS['max_frame_dt'] <= 0:
    raise ValueError("substep_dt and max_frame_dt must be positive in default settings.")
if DEFAULT_SETTINGS['substep_dt'] > DEFAULT_SETTINGS['max_frame_dt']:
    raise ValueError("substep_dt must not exceed max_frame_dt in default settings.")

from config.param_defs import PARAM_DEFS
for _key, _pdef in PARAM_DEFS.items():
    if _key not in DEFAULT_SETTINGS:
        raise ValueError(f"Default settings missing slider parameter '{_key}'.")
    if not _pdef['min'] <= DEFAULT_SETTINGS[_key] <= _pdef['max']:
        raise ValueError(f"Default '{_key}'={DEFAULT_SETTINGS[_key]} outside slider range [{_pdef['min']}, {_pdef['max']}].")

# --- Integrator Validation ---
integrator_default_id = DEFAULT_SETTINGS.get('default_integrator')
if not integrator_default_id:
    print("DEFAULT_SETTINGS FATAL ERROR: 'default_integrator' key is missing.")
    raise ValueError("'default_integrator' key missing in DEFAULT_SETTINGS.")

from config.available_integrators import AVAILABLE_INTEGRATORS
if not any(integrator_def['id'] == integrator_default_id for integrator_def in AVAILABLE_INTEGRATORS):
    print(f"DEFAULT_SETTINGS FATAL ERROR: Default integrator ID '{integrator_default_id}' not found among AVAILABLE_INTEGRATORS.")
    raise ValueError(f"Default integrator ID '{integrator_default_id}' is not defined in available_integrators.py")

print("Default settings processing finished.")
