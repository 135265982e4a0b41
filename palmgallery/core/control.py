from __future__ import annotations

from dataclasses import dataclass, field
from threading import Lock
from typing import Optional

from palmgallery.core.types import SceneOutputs


@dataclass
class OutputChannel:
    """
    Hand-off point between the frame loop (single writer) and the renderer.
    Readers only ever see complete SceneOutputs; they cannot touch interpreter state.
    """
    _latest: Optional[SceneOutputs] = None
    _seq: int = 0
    _lock: Lock = field(default_factory=Lock)

    def publish(self, out: SceneOutputs) -> None:
        with self._lock:
            self._latest = out
            self._seq += 1

    def latest(self) -> Optional[SceneOutputs]:
        with self._lock:
            return self._latest

    def sequence(self) -> int:
        """Bumps once per published pass; lets a reader skip unchanged frames."""
        with self._lock:
            return self._seq
