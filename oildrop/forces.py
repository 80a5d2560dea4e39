# oildrop/forces.py
"""
Forces acting on the drop and the quantities derived from them.

All values are signed along +y (upward from the lower plate).
"""

import math
from typing import Optional

from oildrop.drop_state import DropState, SimulationParameters
from oildrop.constants import BOLTZMANN, NOISE_SCALE, MIN_NOISE_DT, MIN_FIELD_GAP


def compute_electric_field(params: SimulationParameters) -> float:
    """
    Field between the plates in V/m along +y.

    Polarity +1 puts the upper plate positive, so the field points downward
    and a negative drop is pushed up.
    """
    if not params.field_enabled:
        return 0.0
    volts = params.voltage_kv * 1000.0 * params.field_polarity
    return -volts / max(params.plate_gap_m, MIN_FIELD_GAP)


def gravity_force(drop: DropState, params: SimulationParameters) -> float:
    return -drop.mass * params.gravity


def electric_force(drop: DropState, field: float) -> float:
    return drop.charge_coulombs * field


def deterministic_force(drop: DropState, params: SimulationParameters, field: float) -> float:
    """gravity + electric force, i.e. everything except drag and noise."""
    return gravity_force(drop, params) + electric_force(drop, field)


def terminal_velocity(drop: DropState, params: SimulationParameters, field: float = 0.0) -> float:
    """velocity at which drag balances gravity and the electric force (field=0: gravity only)."""
    if drop.drag_coeff <= 0.0:
        return 0.0
    return deterministic_force(drop, params, field) / drop.drag_coeff


def balance_field(drop: DropState, params: SimulationParameters) -> Optional[float]:
    """field (V/m along +y) whose force cancels gravity. None for a neutral drop."""
    if drop.charge_coulombs == 0:
        return None
    return drop.mass * params.gravity / drop.charge_coulombs


def balance_voltage_kv(drop: DropState, params: SimulationParameters) -> Optional[float]:
    """plate voltage magnitude (kV) that holds the drop at rest with the current gap."""
    field = balance_field(drop, params)
    if field is None:
        return None
    return abs(field) * max(params.plate_gap_m, MIN_FIELD_GAP) / 1000.0


def thermal_noise_std(drag_coeff: float, temperature_k: float, dt: float) -> float:
    """
    Standard deviation of the Brownian force for one sub-step.

    Scales as 1/sqrt(dt) so the accumulated position variance does not depend
    on the sub-step length.
    """
    variance = 2.0 * BOLTZMANN * temperature_k * drag_coeff / max(dt, MIN_NOISE_DT)
    return NOISE_SCALE * math.sqrt(max(variance, 0.0))
