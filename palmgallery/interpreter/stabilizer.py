from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from palmgallery.core.config import GestureGates
from palmgallery.core.types import Gesture


@dataclass(frozen=True)
class GestureHoldState:
    name: Optional[str] = None
    count: int = 0


EMPTY_HOLD = GestureHoldState()


class GestureStabilizer:
    """
    Promotes a per-frame classification into a held gesture.

    A gesture is held once it has been the top candidate, above its own
    threshold, for its own number of consecutive frames. Any miss resets.
    """

    def __init__(self, gates: GestureGates, state: GestureHoldState = EMPTY_HOLD) -> None:
        self.gates = gates
        self.state = state

    def update(self, name: Optional[str], score: float = 0.0) -> GestureHoldState:
        # classifier's explicit "no gesture" label counts as nothing
        if not name or name == Gesture.NONE.value:
            self.state = EMPTY_HOLD
        elif score < self.gates.for_name(name).threshold:
            self.state = EMPTY_HOLD
        elif name == self.state.name:
            self.state = GestureHoldState(name=name, count=self.state.count + 1)
        else:
            self.state = GestureHoldState(name=name, count=1)
        return self.state

    def meets_hold(self, name: str) -> bool:
        return (self.state.name == name
                and self.state.count >= self.gates.for_name(name).hold_frames)

    def passes_threshold(self, name: str, score: float) -> bool:
        return score >= self.gates.for_name(name).threshold

    def reset(self) -> None:
        self.state = EMPTY_HOLD
