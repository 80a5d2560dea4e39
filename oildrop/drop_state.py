# oildrop/drop_state.py
"""
Holds the mutable state of the simulation.

SimulationParameters are the externally set knobs (plates, drop size, air,
temperature, noise); DropState is the single drop's kinematic state plus its
cached coefficients. Both are plain objects passed explicitly through the
integrator and the frame driver, no module-level state.
"""

import math
from typing import Any, Dict, Optional, Tuple

from oildrop.coefficients import compute_drop_coefficients
from oildrop.constants import (
    ELECTRON_CHARGE, STANDARD_GRAVITY, DEFAULT_CHARGE_MULTIPLE, INITIAL_HEIGHT_FRACTION,
)


class SimulationParameters:
    """Physical configuration of the apparatus. SI units except where the name says otherwise."""

    def __init__(self,
                 voltage_kv: float = 2.0,
                 plate_gap_m: float = 0.005,
                 radius_microns: float = 0.9,
                 viscosity: float = 1.8e-5,
                 temperature_k: float = 295.0,
                 noise_boost: float = 1.0,
                 gravity: float = STANDARD_GRAVITY,
                 field_enabled: bool = True,
                 field_polarity: int = 1,
                 pulse_timer: float = 0.0):
        self.voltage_kv = float(voltage_kv)
        self.plate_gap_m = float(plate_gap_m)
        self.radius_microns = float(radius_microns)
        self.viscosity = float(viscosity)         # Pa*s
        self.temperature_k = float(temperature_k)
        self.noise_boost = float(noise_boost)
        self.gravity = float(gravity)             # m/s^2
        self.field_enabled = bool(field_enabled)
        self.field_polarity = int(field_polarity) # +1: upper plate positive
        self.pulse_timer = float(pulse_timer)     # s left before polarity reverts to +1

    @classmethod
    def from_settings(cls, settings: Dict[str, Any]) -> "SimulationParameters":
        """builds parameters from a DEFAULT_SETTINGS-style dictionary."""
        return cls(
            voltage_kv=settings.get('voltage_kv', 2.0),
            plate_gap_m=settings.get('plate_gap_mm', 5.0) / 1000.0,
            radius_microns=settings.get('radius_microns', 0.9),
            viscosity=settings.get('viscosity', 1.8e-5),
            temperature_k=settings.get('temperature_k', 295.0),
            noise_boost=settings.get('noise_boost', 1.0),
            gravity=settings.get('gravity', STANDARD_GRAVITY),
            field_enabled=settings.get('field_enabled', True),
        )

    @property
    def radius_m(self) -> float:
        return self.radius_microns * 1e-6

    def copy(self) -> "SimulationParameters":
        return SimulationParameters(**self.to_dict())

    def to_dict(self) -> Dict[str, Any]:
        return {
            'voltage_kv': self.voltage_kv,
            'plate_gap_m': self.plate_gap_m,
            'radius_microns': self.radius_microns,
            'viscosity': self.viscosity,
            'temperature_k': self.temperature_k,
            'noise_boost': self.noise_boost,
            'gravity': self.gravity,
            'field_enabled': self.field_enabled,
            'field_polarity': self.field_polarity,
            'pulse_timer': self.pulse_timer,
        }


class DropState:
    """
    Kinematic state and derived coefficients of the single oil drop.

    position is measured upward from the lower plate (m), velocity is signed
    (m/s, positive = upward). mass/slip_factor/drag_coeff are a cache of the
    coefficient model for the (radius, viscosity) pair in `_coeff_key`.
    """

    def __init__(self, position: float = 0.0, velocity: float = 0.0,
                 charge_multiple: int = DEFAULT_CHARGE_MULTIPLE, radius_m: float = 0.9e-6):
        self.position = float(position)
        self.velocity = float(velocity)
        self.charge_multiple = int(charge_multiple)
        self.charge_coulombs = self.charge_multiple * ELECTRON_CHARGE
        self.radius_m = float(radius_m)
        self.mass = 0.0
        self.slip_factor = 1.0
        self.drag_coeff = 0.0
        self._coeff_key: Optional[Tuple[float, float]] = None # (radius_m, viscosity) of the cached coefficients

    @classmethod
    def create(cls, params: SimulationParameters,
               charge_multiple: int = DEFAULT_CHARGE_MULTIPLE) -> "DropState":
        """new drop at rest at the initial height fraction of the gap, coefficients computed."""
        drop = cls(position=params.plate_gap_m * INITIAL_HEIGHT_FRACTION, velocity=0.0,
                   charge_multiple=charge_multiple, radius_m=params.radius_m)
        drop.recompute_coefficients(params.radius_m, params.viscosity)
        return drop

    def set_charge_multiple(self, multiple: int):
        self.charge_multiple = int(multiple)
        self.charge_coulombs = self.charge_multiple * ELECTRON_CHARGE

    def recompute_coefficients(self, radius_m: float, viscosity: float):
        coeffs = compute_drop_coefficients(radius_m, viscosity)
        self.radius_m = radius_m
        self.mass = coeffs.mass
        self.slip_factor = coeffs.slip_factor
        self.drag_coeff = coeffs.drag_coeff
        self._coeff_key = (radius_m, viscosity)

    def coefficients_stale(self, params: SimulationParameters) -> bool:
        if self._coeff_key != (params.radius_m, params.viscosity):
            return True
        return not math.isfinite(self.drag_coeff) or self.drag_coeff <= 0.0

    def ensure_coefficients(self, params: SimulationParameters) -> bool:
        """recomputes the cached coefficients if radius/viscosity changed or drag is unusable. returns True if recomputed."""
        if self.coefficients_stale(params):
            self.recompute_coefficients(params.radius_m, params.viscosity)
            return True
        return False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'position': self.position,
            'velocity': self.velocity,
            'charge_multiple': self.charge_multiple,
            'charge_coulombs': self.charge_coulombs,
            'radius_m': self.radius_m,
            'mass': self.mass,
            'slip_factor': self.slip_factor,
            'drag_coeff': self.drag_coeff,
        }
