from __future__ import annotations

from palmgallery.core.config import DwellTuning


class DwellClickTracker:
    """
    Turns "pointer held still-ish over something" into a click.

    Accumulates elapsed seconds while the pointer condition holds. At the
    threshold it reports a click, but only if the caller says clicking is
    allowed (click cooldown drained); otherwise it waits at full progress.
    """

    def __init__(self, tuning: DwellTuning, elapsed_s: float = 0.0) -> None:
        self.tuning = tuning
        self.elapsed_s = elapsed_s

    @property
    def progress(self) -> float:
        return min(self.elapsed_s / self.tuning.threshold_s, 1.0)

    def advance(self, dt: float, can_click: bool = True) -> bool:
        threshold = self.tuning.threshold_s
        self.elapsed_s = min(self.elapsed_s + max(0.0, dt), threshold)
        if self.elapsed_s >= threshold and can_click:
            self.elapsed_s = 0.0
            return True
        return False

    def reset(self) -> None:
        self.elapsed_s = 0.0
