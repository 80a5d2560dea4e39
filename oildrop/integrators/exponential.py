# oildrop/integrators/exponential.py
import numpy as np

from .base import Integrator
from .kernels import exponential_substep
from oildrop.drop_state import DropState, SimulationParameters


class ExponentialDrag(Integrator):
    """
    integrates the linear drag term exactly over the sub-step, so the drop
    settles on its terminal velocity even when dt is many relaxation times.
    uses the same noise force, speed cap and reflection as ExplicitEuler.
    """

    def setup(self, config: dict = None):
        print("ExponentialDrag Integrator Setup.")

    def step(self, drop: DropState, params: SimulationParameters, dt: float,
             field: float, gaussian: np.random.Generator):
        det_force, noise_force = self.sample_forces(drop, params, dt, field, gaussian)
        drop.position, drop.velocity = exponential_substep(
            drop.position, drop.velocity, drop.mass, drop.drag_coeff,
            det_force, noise_force, params.plate_gap_m, dt,
        )
