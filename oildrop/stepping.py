# oildrop/stepping.py
"""
Frame sub-stepping driver.

A display frame of arbitrary (possibly garbage) duration is sanitized,
clamped to MAX_FRAME_DT and consumed in fixed SUBSTEP_DT sub-steps, the last
one taking the remainder (float residue left by the subtraction is dropped).
The field pulse timer is advanced per sub-step.
"""

import math
from typing import Callable, NamedTuple

import numpy as np

from oildrop.constants import MAX_FRAME_DT, SUBSTEP_DT, SUBSTEP_RESIDUE_FRACTION
from oildrop.drop_state import DropState, SimulationParameters
from oildrop.forces import compute_electric_field

# (drop, params, dt, field, gaussian) -> None, e.g. IntegratorManager.advance
StepFunction = Callable[[DropState, SimulationParameters, float, float, np.random.Generator], None]


class FrameResult(NamedTuple):
    field: float            # V/m along +y, used by the last sub-step
    substeps: int
    simulated_time: float   # s


def sanitize_frame_dt(frame_dt) -> float:
    """non-finite or negative durations become 0."""
    try:
        value = float(frame_dt)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value) or value < 0.0:
        return 0.0
    return value


def advance_pulse_timer(params: SimulationParameters, dt: float):
    params.pulse_timer = max(0.0, params.pulse_timer - dt)
    if params.pulse_timer == 0.0 and params.field_polarity != 1:
        params.field_polarity = 1


def advance_frame(drop: DropState, params: SimulationParameters, frame_dt: float,
                  step: StepFunction, gaussian: np.random.Generator,
                  substep_dt: float = SUBSTEP_DT, max_frame_dt: float = MAX_FRAME_DT) -> FrameResult:
    """
    Advances the drop through one display frame.

    args:
        frame_dt: elapsed wall time of the frame (s), sanitized and clamped here.
        step: integrator entry point called once per sub-step.
        gaussian: random source handed to the integrator.
    returns:
        FrameResult with the field of the last sub-step (current field if none ran).
    """
    remaining = min(sanitize_frame_dt(frame_dt), max_frame_dt)
    field = compute_electric_field(params)
    substeps = 0
    simulated = 0.0

    residue = substep_dt * SUBSTEP_RESIDUE_FRACTION
    while remaining > residue:
        step_dt = min(remaining, substep_dt)
        advance_pulse_timer(params, step_dt)
        field = compute_electric_field(params)
        step(drop, params, step_dt, field, gaussian)
        remaining -= step_dt
        simulated += step_dt
        substeps += 1

    return FrameResult(field=field, substeps=substeps, simulated_time=simulated)
