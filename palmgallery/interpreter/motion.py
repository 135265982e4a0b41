"""
Frame-to-frame motion signals: palm displacement, two-hand spread and
single-hand scale. Each keeps its own "last" sample; a sample is dropped as
soon as its hand configuration disappears so the next appearance starts
fresh instead of producing one huge delta.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Optional, Sequence

from palmgallery.core.config import MotionTuning
from palmgallery.core.types import Vec2, Vec3, clamp
from palmgallery.interpreter.pose import WRIST, dist2d, hand_scale, palm_center


@dataclass(frozen=True)
class MotionSample:
    palm: Optional[Vec2] = None
    hand_distance: Optional[float] = None
    hand_scale: Optional[float] = None


def amplify(delta: float, k: float) -> float:
    """Fast motion gets a disproportionately larger response than slow motion."""
    speed = abs(delta)
    return math.copysign(speed * (1.0 + speed * k), delta) if delta else 0.0


class MotionTracker:
    def __init__(self, tuning: MotionTuning, sample: MotionSample = MotionSample()) -> None:
        self.tuning = tuning
        self.sample = sample

    # ---------------------- palm ----------------------

    def track_palm(self, lm: Sequence[Vec3]) -> tuple[Vec2, Optional[Vec2]]:
        """Returns (palm, (dx, dy) or None on first sighting). dx is mirrored."""
        x, y = palm_center(lm)
        delta = None
        last = self.sample.palm
        if last is not None:
            # camera is a mirror: physical right = image left
            dx = (1.0 - x) - (1.0 - last[0])
            dy = y - last[1]
            delta = (dx, dy)
        self.sample = replace(self.sample, palm=(x, y))
        return (x, y), delta

    def is_moving(self, delta: Optional[Vec2]) -> bool:
        if delta is None:
            return False
        eps = self.tuning.move_eps
        return abs(delta[0]) > eps or abs(delta[1]) > eps

    def forget_palm(self) -> None:
        self.sample = replace(self.sample, palm=None)

    # ---------------------- zoom sources ----------------------

    def two_hand_zoom(self, a: Sequence[Vec3], b: Sequence[Vec3]) -> float:
        """Zoom delta from the change in wrist-to-wrist distance (0 on first frame)."""
        d = dist2d(a[WRIST], b[WRIST])
        last = self.sample.hand_distance
        self.sample = replace(self.sample, hand_distance=d)
        if last is None:
            return 0.0
        return amplify(d - last, self.tuning.two_hand_k) * self.tuning.two_hand_gain

    def single_hand_zoom(self, lm: Sequence[Vec3]) -> tuple[float, float]:
        """Returns (zoom delta, raw scale delta); both 0 on first frame."""
        s = hand_scale(lm)
        last = self.sample.hand_scale
        self.sample = replace(self.sample, hand_scale=s)
        if last is None:
            return 0.0, 0.0
        raw = s - last
        return amplify(raw, self.tuning.single_hand_k) * self.tuning.single_hand_gain, raw

    def forget_hand_distance(self) -> None:
        self.sample = replace(self.sample, hand_distance=None)

    def forget_hand_scale(self) -> None:
        self.sample = replace(self.sample, hand_scale=None)

    def apply_zoom(self, zoom: float, delta: float) -> float:
        lo, hi = self.tuning.zoom_range
        return clamp(zoom + delta, lo, hi)
