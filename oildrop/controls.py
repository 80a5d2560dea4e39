# oildrop/controls.py
"""
Configuration entry points for the drop and the apparatus.

Every setter sanitizes its input (non-numeric or non-finite values keep the
current setting), clamps it to the PARAM_DEFS slider range and keeps the
drop consistent with the new parameters (coefficients, position in the gap).
"""

import math
from typing import Optional, Tuple

import numpy as np

from config.param_defs import PARAM_DEFS
from oildrop.constants import INITIAL_HEIGHT_FRACTION, PULSE_DURATION, STANDARD_GRAVITY
from oildrop.drop_state import DropState, SimulationParameters
from oildrop.utils import clamp, sanitize_float


def param_range(key: str) -> Tuple[float, float]:
    """(min, max) of a slider parameter."""
    if key not in PARAM_DEFS:
        raise ValueError(f"Unknown parameter key: '{key}'. Available: {list(PARAM_DEFS.keys())}")
    return PARAM_DEFS[key]['min'], PARAM_DEFS[key]['max']


def _clamped(key: str, value, current: float) -> float:
    lo, hi = param_range(key)
    return clamp(sanitize_float(value, current), lo, hi)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def set_plate_gap(drop: DropState, params: SimulationParameters, gap_mm,
                  preserve_position: bool = True) -> Tuple[float, float]:
    """
    Sets the plate gap (mm, clamped to 2..10).

    With preserve_position the drop keeps its relative height in the gap,
    otherwise it is put back at the initial height fraction.
    returns (previous_gap_m, new_gap_m) so callers can rescale stored heights.
    """
    previous_gap = params.plate_gap_m
    gap_m = _clamped('plate_gap_mm', gap_mm, previous_gap * 1000.0) / 1000.0
    params.plate_gap_m = gap_m
    if preserve_position and previous_gap > 0:
        relative = clamp(drop.position / previous_gap, 0.0, 1.0)
        drop.position = relative * gap_m
    else:
        drop.position = gap_m * INITIAL_HEIGHT_FRACTION
    return previous_gap, gap_m


def set_charge_multiple(drop: DropState, multiple):
    """rounds and clamps the charge to an integer multiple of e in [-25, 25]."""
    lo, hi = param_range('charge_multiple')
    value = clamp(sanitize_float(multiple, drop.charge_multiple), lo, hi)
    drop.set_charge_multiple(_round_half_up(value))


def nudge_charge(drop: DropState, delta: int):
    """adds or removes elementary charges (+1 / -1), still clamped."""
    set_charge_multiple(drop, drop.charge_multiple + int(delta))


def set_radius_microns(drop: DropState, params: SimulationParameters, radius_microns,
                       preserve_velocity: bool = True):
    params.radius_microns = _clamped('radius_microns', radius_microns, params.radius_microns)
    drop.recompute_coefficients(params.radius_m, params.viscosity)
    drop.position = clamp(drop.position, 0.0, params.plate_gap_m)
    if not preserve_velocity:
        drop.velocity = 0.0


def set_viscosity_scaled(drop: DropState, params: SimulationParameters, viscosity_scaled):
    """viscosity in slider units of 1e-5 Pa*s (1..3)."""
    scaled = _clamped('viscosity_scaled', viscosity_scaled, params.viscosity / 1e-5)
    params.viscosity = scaled * 1e-5
    drop.recompute_coefficients(params.radius_m, params.viscosity)


def set_voltage_kv(params: SimulationParameters, voltage_kv):
    params.voltage_kv = _clamped('voltage_kv', voltage_kv, params.voltage_kv)


def set_temperature_k(params: SimulationParameters, temperature_k):
    params.temperature_k = _clamped('temperature_k', temperature_k, params.temperature_k)


def set_noise_boost(params: SimulationParameters, noise_boost):
    params.noise_boost = _clamped('noise_boost', noise_boost, params.noise_boost)


def pulse_field(params: SimulationParameters, duration: float = PULSE_DURATION):
    """flips the field polarity; the frame driver restores +1 once the timer runs out."""
    params.field_polarity = -params.field_polarity
    params.pulse_timer = duration


def zero_velocity(drop: DropState):
    drop.velocity = 0.0


def reset_drop(drop: DropState, params: SimulationParameters, randomize: bool = False,
               rng: Optional[np.random.Generator] = None):
    """
    Re-initializes the drop in place.

    randomize draws a new radius (0.4..1.3 µm), voltage (0.5..6.0 kV),
    charge (±2..13 e) and gap (2..8 mm) from rng. The drop always ends at
    rest at the initial height fraction of the gap.
    """
    if randomize:
        if rng is None:
            rng = np.random.default_rng()
        random_radius = round(0.4 + rng.random() * 0.9, 2)
        params.voltage_kv = round(0.5 + rng.random() * 5.5, 2)
        sign = 1 if rng.random() > 0.5 else -1
        set_charge_multiple(drop, sign * int(rng.integers(2, 14)))
        set_radius_microns(drop, params, random_radius, preserve_velocity=False)
        random_gap = round(2.0 + rng.random() * 6.0, 1)
        set_plate_gap(drop, params, random_gap, preserve_position=False)
    else:
        set_radius_microns(drop, params, params.radius_microns, preserve_velocity=False)
    drop.position = params.plate_gap_m * INITIAL_HEIGHT_FRACTION
    drop.velocity = 0.0


def restore_defaults(drop: DropState, params: SimulationParameters, settings: dict):
    """puts every parameter and the drop back to the given default settings."""
    params.voltage_kv = settings.get('voltage_kv', 2.0)
    params.radius_microns = settings.get('radius_microns', 0.9)
    params.viscosity = settings.get('viscosity', 1.8e-5)
    params.temperature_k = settings.get('temperature_k', 295.0)
    params.noise_boost = settings.get('noise_boost', 1.0)
    params.gravity = settings.get('gravity', STANDARD_GRAVITY)
    params.field_enabled = settings.get('field_enabled', True)
    params.field_polarity = 1
    params.pulse_timer = 0.0
    set_charge_multiple(drop, settings.get('charge_multiple', -8))
    set_radius_microns(drop, params, params.radius_microns, preserve_velocity=False)
    set_plate_gap(drop, params, settings.get('plate_gap_mm', 5.0), preserve_position=False)
    reset_drop(drop, params, randomize=False)
