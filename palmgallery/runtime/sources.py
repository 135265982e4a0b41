from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Tuple

from palmgallery.core.errors import SensorError
from palmgallery.core.types import LandmarkFrame

logger = logging.getLogger(__name__)

Read = Tuple[Optional[LandmarkFrame], Optional[Any]]


@dataclass
class IdleSource:
    """Stands in for the camera when it cannot be opened: no hands, ever."""
    period_s: float = 1 / 30

    def read(self) -> Read:
        time.sleep(self.period_s)
        return LandmarkFrame(t_ms=int(time.monotonic() * 1000)), None

    def close(self) -> None:
        pass


@dataclass
class GuardedSource:
    """
    Wraps a live source so the frame loop always keeps stepping.

    A read that raises becomes an empty frame. After `max_misses` failed
    reads in a row (camera unplugged, stream ended) every further failed
    read also yields an empty frame, so timers and decays keep running as
    "no hand detected" until the camera comes back.
    """
    src: Any
    max_misses: int = 15
    period_s: float = 1 / 30
    clock: Callable[[], float] = time.monotonic
    sleep: Callable[[float], None] = time.sleep
    misses: int = field(default=0, init=False)
    _failing: bool = field(default=False, init=False)

    def _empty(self) -> LandmarkFrame:
        # paced like camera frames
        self.sleep(self.period_s)
        return LandmarkFrame(t_ms=int(self.clock() * 1000))

    def read(self) -> Read:
        try:
            frame, img = self.src.read()
        except (SensorError, RuntimeError) as e:
            if not self._failing:
                logger.warning("Hand source error, treating as no hand: %s", e)
            self._failing = True
            return self._empty(), None

        if frame is None and img is None:
            self.misses += 1
            if self.misses < self.max_misses:
                return None, None
            if not self._failing:
                logger.warning("Camera stopped delivering frames (%d failed reads)", self.misses)
            self._failing = True
            return self._empty(), None

        if self._failing and frame is not None:
            logger.info("Hand source recovered")
            self._failing = False
        self.misses = 0
        return frame, img

    def close(self) -> None:
        self.src.close()
