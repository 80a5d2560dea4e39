# config/available_integrators.py
"""
Defines a list of all drop integrators available for selection.
"""

AVAILABLE_INTEGRATORS = [
    {
        "id": "explicit_euler",
        "name": "Explicit Euler",
        "description": "First-order explicit Euler on gravity, field, drag and thermal noise.",
        "module": "oildrop.integrators.euler",
        "class": "ExplicitEuler",
        "order": 1,
        "notes": "Needs dt well below the drag relaxation time m/drag. At the display sub-step the velocity rides the speed cap."
    },
    {
        "id": "exponential_drag",
        "name": "Exponential Drag (drag-exact)",
        "description": "Solves the linear drag relaxation exactly over each sub-step.",
        "module": "oildrop.integrators.exponential",
        "class": "ExponentialDrag",
        "order": 1,
        "notes": "Stable for any dt. Reaches the analytic terminal velocity at the display sub-step."
    },
]

# --- integrator validation ---
def _validate_integrators():
    seen_ids = set()
    for integrator_def in AVAILABLE_INTEGRATORS:
        required_keys = ["id", "name", "module", "class", "order"]
        if not all(key in integrator_def for key in required_keys):
            raise ValueError(f"Integrator definition is missing required keys: {integrator_def}")
        if integrator_def["id"] in seen_ids:
            raise ValueError(f"Duplicate integrator id: {integrator_def['id']}")
        seen_ids.add(integrator_def["id"])
_validate_integrators()
