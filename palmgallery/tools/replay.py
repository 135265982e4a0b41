"""
palmgallery session replay

Re-runs a recorded JSONL session (see runtime/recording.py) through the
interpreter and prints every event, so tuning changes can be compared
against the same hand motion.
"""

from __future__ import annotations

import argparse
import random
from typing import Iterable, List

from palmgallery.core.config import PRESETS, PresetName
from palmgallery.core.log import setup_logging
from palmgallery.core.photos import PhotoIndex
from palmgallery.core.types import LandmarkFrame, SceneOutputs
from palmgallery.interpreter.state_machine import Interpreter
from palmgallery.runtime.profile import apply_profile, load_profile
from palmgallery.runtime.recording import read_frames
from palmgallery.runtime.sink import describe


def replay(frames: Iterable[LandmarkFrame], interp: Interpreter) -> List[SceneOutputs]:
    """Feeds frames in order; elapsed time comes from the recorded timestamps."""
    return [interp.process(f) for f in frames]


def main(argv=None) -> None:
    ap = argparse.ArgumentParser(prog="palmgallery-replay", description=__doc__.strip().splitlines()[0])
    ap.add_argument("session", help="JSONL session file")
    ap.add_argument("--preset", default=PresetName.DEFAULT.value, choices=[p.value for p in PresetName])
    ap.add_argument("--profile", default=None)
    ap.add_argument("--photos", default=None)
    ap.add_argument("--use-default-photos", action="store_true")
    ap.add_argument("--seed", type=int, default=0, help="Seed for random photo picks")
    ap.add_argument("--log-level", default="WARNING")
    args = ap.parse_args(argv)

    setup_logging(args.log_level)
    preset = apply_profile(PRESETS[PresetName(args.preset)], load_profile(args.profile))
    photos = PhotoIndex.from_source(args.photos, use_defaults=args.use_default_photos)
    interp = Interpreter(preset, photos=photos, rng=random.Random(args.seed))

    outs = replay(read_frames(args.session), interp)
    for out in outs:
        for ev in out.events:
            print(f"{out.t_ms:>12d}  {describe(ev)}")

    if outs:
        last = outs[-1]
        print(f"[replay] {len(outs)} frames, final mode={last.mode.value} zoom={last.zoom:+.2f} "
              f"photo={last.selected_photo or '-'} theme={last.theme}")
    else:
        print("[replay] no frames")


if __name__ == "__main__":
    main()
