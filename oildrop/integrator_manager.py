"""
This code manages the selection and execution of the drop integrators.

It loads the integrator definitions from config, lets the simulator pick the
active scheme (explicit_euler, exponential_drag) and forwards each sub-step
to it. Integrator classes are imported dynamically from their module path.
"""

from typing import Dict, List, Optional
import traceback

import numpy as np

from oildrop.integrators.base import Integrator
from oildrop.drop_state import DropState, SimulationParameters
from oildrop.utils import dynamic_import
from config.available_integrators import AVAILABLE_INTEGRATORS


class IntegratorManager:
    """handles selection and execution of the active drop integrator."""

    def __init__(self, config: Optional[dict] = None):
        self._config = dict(config or {})
        self._available_integrators: Dict[str, Dict] = {}
        self._active_integrator: Optional[Integrator] = None
        self._active_integrator_id: Optional[str] = None

        self._load_available_integrators()
        print(f"IntegratorManager ready ({len(self._available_integrators)} integrators: {', '.join(self._available_integrators)})")

    def get_available_integrators(self) -> List[Dict]:
        """returns a copy of the list of available integrator definitions."""
        return list(self._available_integrators.values())

    def _load_available_integrators(self):
        try:
            self._available_integrators = {
                integrator_def['id']: integrator_def
                for integrator_def in AVAILABLE_INTEGRATORS
            }
            if not self._available_integrators:
                print("Warning: AVAILABLE_INTEGRATORS is empty.")
        except KeyError as e_key:
            print(f"ERROR: integrator entry without 'id': {e_key}")
            raise ValueError("integrator entry without 'id'") from e_key

    @property
    def active_integrator_id(self) -> Optional[str]:
        return self._active_integrator_id

    def select_integrator(self, integrator_id: str):
        """instantiates and sets up the integrator with this id; re-selecting the active one is a no-op."""
        if integrator_id not in self._available_integrators:
            available_ids = list(self._available_integrators.keys())
            raise ValueError(f"Unknown integrator ID: '{integrator_id}'. Available: {available_ids}")

        if self._active_integrator_id == integrator_id and self._active_integrator is not None:
            return

        integrator_def = self._available_integrators[integrator_id]
        print(f"Selecting integrator: '{integrator_def['name']}' ({integrator_id})...")
        try:
            IntegratorClass = dynamic_import(integrator_def['module'], integrator_def['class'])
            new_integrator = IntegratorClass()
            new_integrator.setup(self._config)

            if self._active_integrator is not None:
                try: self._active_integrator.cleanup()
                except Exception as e_clean: print(f"Warning: cleanup of {self._active_integrator_id} failed: {e_clean}")

            self._active_integrator = new_integrator
            self._active_integrator_id = integrator_id
            print(f"Active integrator: {integrator_id}")

        except Exception as e:
            print(f"ERROR: integrator '{integrator_id}' could not be set up: {e}")
            traceback.print_exc()
            self._active_integrator = None
            self._active_integrator_id = None
            raise

    def get_active_integrator_info(self) -> Optional[Dict]:
        """returns the definition dictionary of the active integrator, or None."""
        return self._available_integrators.get(self._active_integrator_id) if self._active_integrator_id else None

    def advance(self, drop: DropState, params: SimulationParameters, dt: float,
                field: float, gaussian: np.random.Generator):
        """advances the drop by one sub-step using the active integrator."""
        if not self._active_integrator:
            raise RuntimeError("No active integrator; call select_integrator first.")
        self._active_integrator.step(drop, params, dt, field, gaussian)
