# oildrop/integrators/euler.py
import numpy as np

from .base import Integrator
from .kernels import euler_substep
from oildrop.drop_state import DropState, SimulationParameters


class ExplicitEuler(Integrator):
    """
    first-order explicit Euler on the full force (gravity, field, drag, noise),
    followed by the dynamic speed cap and plate reflection.
    only stable while dt is small against the drag relaxation time m/drag.
    """

    def setup(self, config: dict = None):
        print("ExplicitEuler Integrator Setup.")

    def step(self, drop: DropState, params: SimulationParameters, dt: float,
             field: float, gaussian: np.random.Generator):
        det_force, noise_force = self.sample_forces(drop, params, dt, field, gaussian)
        drop.position, drop.velocity = euler_substep(
            drop.position, drop.velocity, drop.mass, drop.drag_coeff,
            det_force, noise_force, params.plate_gap_m, dt,
        )
