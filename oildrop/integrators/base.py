# oildrop/integrators/base.py
"""
Defines the Abstract Base Class (ABC) for the drop sub-step integrators.
"""
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

import numpy as np

from oildrop.drop_state import DropState, SimulationParameters
from oildrop.forces import deterministic_force, thermal_noise_std


class Integrator(ABC):
    """abstract base class for single-drop sub-step schemes."""

    def setup(self, config: Optional[Dict] = None):
        """optional setup method."""
        pass

    def sample_forces(self, drop: DropState, params: SimulationParameters, dt: float,
                      field: float, gaussian: np.random.Generator) -> Tuple[float, float]:
        """
        Shared prelude of every scheme: refreshes stale coefficients, then
        returns (gravity + electric force, noise force). Draws exactly one
        standard normal sample.
        """
        drop.ensure_coefficients(params)
        det_force = deterministic_force(drop, params, field)
        noise_std = thermal_noise_std(drop.drag_coeff, params.temperature_k, dt)
        noise_force = params.noise_boost * noise_std * gaussian.standard_normal()
        return det_force, noise_force

    @abstractmethod
    def step(self, drop: DropState, params: SimulationParameters, dt: float,
             field: float, gaussian: np.random.Generator):
        """
        advances the drop by one sub-step of length dt in the given field (V/m along +y).
        """
        pass

    def cleanup(self):
        pass
