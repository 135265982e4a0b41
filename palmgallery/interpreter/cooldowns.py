from __future__ import annotations

from typing import Dict, Mapping

from palmgallery.core.config import CooldownTuning
from palmgallery.core.types import Action


class CooldownScheduler:
    """
    One countdown per action category, kept in a single table.
    An action may fire only while its timer reads exactly 0.
    """

    def __init__(self, tuning: CooldownTuning, timers: Mapping[Action, float] | None = None) -> None:
        self.tuning = tuning
        self.timers: Dict[Action, float] = {a: 0.0 for a in Action}
        if timers:
            self.timers.update(timers)

    def tick(self, dt: float) -> None:
        dt = max(0.0, dt)
        for a, t in self.timers.items():
            if t > 0.0:
                self.timers[a] = max(0.0, t - dt)

    def ready(self, action: Action) -> bool:
        return self.timers[action] == 0.0

    def start(self, action: Action) -> None:
        self.timers[action] = self.tuning.duration(action)

    def remaining(self, action: Action) -> float:
        return self.timers[action]

    def snapshot(self) -> Dict[Action, float]:
        return dict(self.timers)
