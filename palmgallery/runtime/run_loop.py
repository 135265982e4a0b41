from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from typing import Optional, Tuple

from palmgallery.core.config import DEFAULT_PRESET, Preset
from palmgallery.core.control import OutputChannel
from palmgallery.core.photos import PhotoIndex
from palmgallery.core.types import LandmarkFrame
from palmgallery.interpreter.state_machine import Interpreter
from palmgallery.runtime.recording import SessionLog
from palmgallery.runtime.sink import SceneSink
from palmgallery.sensor.synthetic import make_frame, make_hand


@dataclass(frozen=True)
class Segment:
    pose: Optional[str]             # None = no hand in view
    gesture: Optional[str] = None
    seconds: float = 1.0
    drift_x: float = 0.0            # palm x velocity, normalized units / s


# a full tour: select, click, form the tree, spin it, pulse, theme, scatter
DEMO_SCRIPT: Tuple[Segment, ...] = (
    Segment(None, seconds=0.5),
    Segment("victory", "Victory", seconds=0.6),
    Segment("point", "Pointing_Up", seconds=1.5),
    Segment("thumb_up", "Thumb_Up", seconds=0.3),
    Segment("fist", "Closed_Fist", seconds=0.5),
    Segment("open", "Open_Palm", seconds=0.45, drift_x=0.6),
    Segment("victory", "Victory", seconds=0.5),
    Segment("thumb_up", "Thumb_Up", seconds=0.4, drift_x=-0.5),
    Segment("open", "Open_Palm", seconds=1.0),
    Segment(None, seconds=1.0),
)


@dataclass
class FakeSource:
    """
    Deterministic scripted hand source to validate runtime wiring
    without a camera. Loops over the script.
    """
    start_ms: int
    script: Tuple[Segment, ...] = DEMO_SCRIPT
    _x: float = field(default=0.5, init=False)
    _last_ms: Optional[int] = field(default=None, init=False)

    def segment_at(self, t_ms: int) -> Segment:
        total = sum(s.seconds for s in self.script)
        t = ((t_ms - self.start_ms) / 1000.0) % total
        for seg in self.script:
            if t < seg.seconds:
                return seg
            t -= seg.seconds
        return self.script[-1]

    def frame(self, t_ms: int) -> LandmarkFrame:
        seg = self.segment_at(t_ms)
        dt = 0.0 if self._last_ms is None else (t_ms - self._last_ms) / 1000.0
        self._last_ms = t_ms
        if seg.pose is None:
            self._x = 0.5
            return make_frame(t_ms)
        self._x = min(0.8, max(0.2, self._x + seg.drift_x * dt))
        gestures = [(seg.gesture, 0.9)] if seg.gesture else []
        return make_frame(t_ms, make_hand(seg.pose, palm=(self._x, 0.5), gestures=gestures))


def run(preset: Preset = DEFAULT_PRESET, photos: PhotoIndex | None = None,
        channel: OutputChannel | None = None, record: str | None = None,
        seconds: float | None = None) -> None:
    channel = channel or OutputChannel()
    interp = Interpreter(preset, photos=photos, rng=random.Random())
    sink = SceneSink(channel=channel, log=SessionLog(record) if record else None)

    src = FakeSource(start_ms=int(time.monotonic() * 1000))

    print("[palmgallery] Runtime loop (FAKE SOURCE). Ctrl+C to exit.")

    t0 = last = time.monotonic()
    try:
        while seconds is None or (time.monotonic() - t0) < seconds:
            now = time.monotonic()
            frame = src.frame(int(now * 1000))
            out = interp.process(frame, elapsed_s=now - last)
            last = now
            sink.apply(frame, out)
            time.sleep(0.016)  # ~60Hz, elapsed time is measured anyway
    except KeyboardInterrupt:
        print("\n[palmgallery] exiting")
    finally:
        sink.close()


if __name__ == "__main__":
    run(photos=PhotoIndex.from_source(None, use_defaults=True))
