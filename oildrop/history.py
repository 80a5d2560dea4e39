# oildrop/history.py
"""
Rolling history of the drop (for the live graph and the PDF report) and the
fading trail of recent positions.
"""

from collections import deque
from typing import Deque, Dict, List

import numpy as np

from oildrop.utils import clamp


class HistoryBuffer:
    """
    Samples {t, height, velocity, field} at most every `sample_interval`
    seconds of frame time and keeps the last `window` seconds.
    height is the drop position normalized to the gap (0 = lower plate).
    """

    def __init__(self, window: float = 20.0, sample_interval: float = 1.0 / 45.0):
        self.window = float(window)
        self.sample_interval = float(sample_interval)
        self._samples: Deque[Dict[str, float]] = deque()
        self._accumulator = 0.0

    def __len__(self):
        return len(self._samples)

    def capture(self, now: float, dt: float, position: float, velocity: float,
                gap: float, field: float, force: bool = False) -> bool:
        """returns True if a sample was stored."""
        self._accumulator += dt
        if not force and self._accumulator < self.sample_interval:
            return False
        height = clamp(position / gap, 0.0, 1.0) if gap > 0 else 0.0
        self._samples.append({'t': now, 'height': height, 'velocity': velocity, 'field': field})
        cutoff = now - self.window
        while self._samples and self._samples[0]['t'] < cutoff:
            self._samples.popleft()
        self._accumulator = 0.0
        return True

    def clear(self):
        self._samples.clear()
        self._accumulator = 0.0

    def samples(self) -> List[Dict[str, float]]:
        return list(self._samples)

    def as_arrays(self) -> Dict[str, np.ndarray]:
        keys = ('t', 'height', 'velocity', 'field')
        if not self._samples:
            return {k: np.empty(0, dtype=np.float64) for k in keys}
        return {k: np.fromiter((s[k] for s in self._samples), dtype=np.float64, count=len(self._samples))
                for k in keys}


class Trail:
    """recent drop positions (m) with alpha fading by `fade_rate` per second of frame time."""

    def __init__(self, max_points: int = 140, fade_rate: float = 0.9, min_alpha: float = 0.02,
                 max_fade_dt: float = 0.05):
        self.max_points = int(max_points)
        self.fade_rate = float(fade_rate)
        self.min_alpha = float(min_alpha)
        self.max_fade_dt = float(max_fade_dt)
        self.points: List[Dict[str, float]] = []

    def __len__(self):
        return len(self.points)

    def advance(self, dt: float, position: float, append: bool, enabled: bool = True):
        if not enabled:
            self.points.clear()
            return
        if append:
            self.points.append({'y': position, 'alpha': 1.0})
            if len(self.points) > self.max_points:
                self.points.pop(0)
        fade = clamp(dt, 0.0, self.max_fade_dt) * self.fade_rate
        for p in self.points:
            p['alpha'] = max(0.0, p['alpha'] - fade)
        self.points = [p for p in self.points if p['alpha'] > self.min_alpha]

    def rescale(self, previous_gap: float, new_gap: float):
        """keeps each point's relative height when the gap changes."""
        if previous_gap <= 0:
            return
        for p in self.points:
            p['y'] = clamp(p['y'] / previous_gap, 0.0, 1.0) * new_gap

    def clear(self):
        self.points.clear()
