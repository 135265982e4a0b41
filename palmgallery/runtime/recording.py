"""
Session log: one JSON line per interpreter pass (input frame + outputs).
Written by the webcam runtime, read back by tools/replay.py.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict
from enum import Enum
from pathlib import Path
from typing import IO, Iterator, Optional

from palmgallery.core.types import GestureCandidate, Hand, LandmarkFrame, SceneOutputs

logger = logging.getLogger(__name__)


def default_log_path() -> Path:
    outdir = Path.home() / ".cache" / "palmgallery" / "sessions"
    outdir.mkdir(parents=True, exist_ok=True)
    ts = time.strftime("%Y%m%d_%H%M%S")
    return outdir / f"session_{ts}.jsonl"


def _plain(x):
    if isinstance(x, Enum):
        return x.value
    if isinstance(x, dict):
        return {k: _plain(v) for k, v in x.items()}
    if isinstance(x, (list, tuple)):
        return [_plain(v) for v in x]
    return x


def frame_to_record(frame: LandmarkFrame) -> dict:
    return _plain(asdict(frame))


def frame_from_record(rec: dict) -> LandmarkFrame:
    hands = tuple(
        Hand(
            landmarks=tuple(tuple(p) for p in h["landmarks"]),
            gestures=tuple(GestureCandidate(name=g["name"], score=float(g["score"])) for g in h.get("gestures", ())),
        )
        for h in rec.get("hands", ())
    )
    return LandmarkFrame(t_ms=int(rec["t_ms"]), hands=hands)


class SessionLog:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._f: Optional[IO[str]] = open(self.path, "a", buffering=1, encoding="utf-8")
        logger.info("Recording session to %s", self.path)

    def write(self, frame: LandmarkFrame, out: SceneOutputs | None) -> None:
        if self._f is None:
            return
        rec = {
            "frame": frame_to_record(frame),
            "out": _plain(asdict(out)) if out is not None else None,
        }
        self._f.write(json.dumps(rec) + "\n")

    def close(self) -> None:
        if self._f is not None:
            self._f.close()
            self._f = None


def read_frames(path: str | Path) -> Iterator[LandmarkFrame]:
    with open(Path(path).expanduser(), encoding="utf-8") as f:
        for n, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                rec = json.loads(line)
                yield frame_from_record(rec.get("frame", rec))
            except (ValueError, KeyError, TypeError) as e:
                logger.warning("%s:%d: skipping bad record (%s)", path, n, e)
