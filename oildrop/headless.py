# oildrop/headless.py
"""
Headless physics smoke run: drives a Simulator for a fixed span of simulated
time without the server and prints the final drop state.
"""

import time
from typing import Any, Dict, Optional

import numpy as np

from config.default_settings import DEFAULT_SETTINGS
from oildrop.simulator import Simulator


def run_headless(duration: float = 3.0, settings: Optional[Dict[str, Any]] = None,
                 seed: Optional[int] = None, integrator_id: Optional[str] = None,
                 frame_dt: float = 1.0 / 60.0) -> Dict[str, Any]:
    """
    Advances a fresh simulator through `duration` seconds of simulated time in
    display frames of `frame_dt`, then returns a summary of the final state.

    args:
        settings: overrides applied on top of DEFAULT_SETTINGS.
        seed: seed for the noise source (None = fresh entropy).
        integrator_id: overrides the default integrator.
    """
    config = dict(DEFAULT_SETTINGS)
    config.update(settings or {})
    config['start_running'] = True
    if integrator_id is not None:
        config['default_integrator'] = integrator_id

    sim = Simulator(config, rng=np.random.default_rng(seed))
    wall_start = time.perf_counter()
    frames = 0
    while duration - sim.get_time() > 1e-12:
        result = sim.update(min(frame_dt, duration - sim.get_time()))
        frames += 1
        if result.substeps == 0:
            print("Warning: Headless run stopped, frame integrated no sub-steps.")
            break
    wall_duration = time.perf_counter() - wall_start

    drop = sim.drop
    summary = {
        'simulated_time': sim.get_time(),
        'frames': frames,
        'substeps': sim.get_substeps_taken(),
        'final_height_mm': drop.position * 1000.0,
        'final_velocity_mm_s': drop.velocity * 1000.0,
        'charge_multiple': drop.charge_multiple,
        'mass': drop.mass,
        'drag_coeff': drop.drag_coeff,
        'integrator': sim.get_current_integrator_info()['id'],
        'wall_time': wall_duration,
    }
    print(f"Headless run: {summary['simulated_time']:.3f} s simulated in {frames} frames "
          f"({summary['substeps']} sub-steps, {wall_duration:.3f} s wall)")
    print(f"  Final height (mm): {summary['final_height_mm']:.3f}")
    print(f"  Final velocity (mm/s): {summary['final_velocity_mm_s']:.3f}")
    print(f"  Charge (e): {summary['charge_multiple']}")
    print(f"  Mass (kg): {summary['mass']:.4e}")
    print(f"  Drag coeff (kg/s): {summary['drag_coeff']:.4e}")
    return summary
