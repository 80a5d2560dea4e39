# oildrop/integrators/kernels.py
"""
Numba-compiled scalar kernels for the per-sub-step drop update.

The kernels take plain floats (already sampled noise force, precomputed
coefficients) and return the new (position, velocity). Random sampling and
object access stay in the Python integrator classes.
"""

import math

from numba import njit, float64

from oildrop.constants import (
    BASE_MAX_SPEED, SPEED_CAP_FLOOR_FRACTION, MIN_DYNAMIC_CAP, BOUNCE_DAMPING,
)

SPEED_CAP_FLOOR = BASE_MAX_SPEED * SPEED_CAP_FLOOR_FRACTION


@njit(float64(float64, float64), cache=True)
def dynamic_speed_cap(det_force: float, drag_coeff: float) -> float:
    """(Numba Kernel) |v| limit: twice the analytic terminal speed, floored."""
    vt = det_force / drag_coeff if drag_coeff > 0.0 else 0.0
    cap = max(2.0 * abs(vt), MIN_DYNAMIC_CAP)
    return max(cap, SPEED_CAP_FLOOR)


@njit(cache=True)
def reflect_at_plates(y: float, v: float, gap: float):
    """(Numba Kernel) Clamps y into [0, gap], reversing and damping v on contact."""
    if y < 0.0:
        y = 0.0
        v *= -BOUNCE_DAMPING
    if y > gap:
        y = gap
        v *= -BOUNCE_DAMPING
    return y, v


@njit(cache=True)
def euler_substep(y: float, v: float, mass: float, drag_coeff: float,
                  det_force: float, noise_force: float, gap: float, dt: float):
    """(Numba Kernel) Explicit Euler: v += F/m dt, cap, y += v dt, reflect."""
    net_force = det_force - drag_coeff * v + noise_force
    v = v + (net_force / mass) * dt

    cap = dynamic_speed_cap(det_force, drag_coeff)
    v = min(max(v, -cap), cap)

    y = y + v * dt
    return reflect_at_plates(y, v, gap)


@njit(cache=True)
def exponential_substep(y: float, v: float, mass: float, drag_coeff: float,
                        det_force: float, noise_force: float, gap: float, dt: float):
    """
    (Numba Kernel) Drag-exact update.

    Relaxes v toward the terminal velocity with exp(-dt/tau), tau = m/drag,
    and turns the noise force into the velocity kick it produces over dt
    under the same relaxation. Stable for any dt/tau.
    """
    if drag_coeff > 0.0:
        decay = math.exp(-dt * drag_coeff / mass)
        vt = det_force / drag_coeff
        v = vt + (v - vt) * decay + noise_force * (1.0 - decay) / drag_coeff
    else:
        v = v + ((det_force + noise_force) / mass) * dt

    cap = dynamic_speed_cap(det_force, drag_coeff)
    v = min(max(v, -cap), cap)

    y = y + v * dt
    return reflect_at_plates(y, v, gap)
