# oildrop/coefficients.py
"""
Drop coefficient model: mass, Cunningham slip factor and slip-corrected
Stokes drag coefficient from drop radius and air viscosity.

Recomputed whenever radius or viscosity changes; DropState caches the
result together with the (radius, viscosity) pair it was computed from.
"""

import math
from typing import NamedTuple

from oildrop.constants import (
    OIL_DENSITY, AIR_DENSITY, AIR_MEAN_FREE_PATH,
    MIN_EFFECTIVE_DENSITY, MIN_DROP_MASS, MIN_SLIP_RADIUS,
    CUNNINGHAM_A, CUNNINGHAM_B, CUNNINGHAM_C, CONST_pi,
)


class DropCoefficients(NamedTuple):
    mass: float         # kg
    slip_factor: float  # dimensionless, >= 1
    drag_coeff: float   # kg/s


def compute_slip_correction(radius_m: float) -> float:
    """Cunningham correction 1 + Kn*(A + B*exp(-C/Kn)) with Kn = mfp / r."""
    r = max(radius_m, MIN_SLIP_RADIUS)
    kn = AIR_MEAN_FREE_PATH / r
    return 1.0 + kn * (CUNNINGHAM_A + CUNNINGHAM_B * math.exp(-CUNNINGHAM_C / kn))


def compute_drop_mass(radius_m: float) -> float:
    volume = (4.0 / 3.0) * CONST_pi * radius_m ** 3
    eff_density = max(OIL_DENSITY - AIR_DENSITY, MIN_EFFECTIVE_DENSITY) # buoyancy-corrected
    return max(volume * eff_density, MIN_DROP_MASS)


def compute_drop_coefficients(radius_m: float, viscosity: float) -> DropCoefficients:
    """
    Returns mass, slip factor and drag coefficient for a spherical oil drop.

    args:
        radius_m: drop radius in meters (pre-clamped by the caller).
        viscosity: dynamic viscosity of air in Pa*s.
    """
    mass = compute_drop_mass(radius_m)
    slip_factor = compute_slip_correction(radius_m)
    drag_coeff = (6.0 * CONST_pi * viscosity * radius_m) / slip_factor
    return DropCoefficients(mass=mass, slip_factor=slip_factor, drag_coeff=drag_coeff)
