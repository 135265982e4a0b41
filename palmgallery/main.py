from __future__ import annotations

import argparse
import logging

from palmgallery.core.config import DEFAULT_MODEL, DEFAULT_PRESET, PRESETS, PresetName
from palmgallery.core.log import setup_logging
from palmgallery.core.photos import PhotoIndex
from palmgallery.runtime.profile import apply_profile, load_profile
from palmgallery.runtime.recording import default_log_path

logger = logging.getLogger("palmgallery")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="palmgallery",
        description="Hand-gesture control for the 3D photo gallery",
    )
    parser.add_argument("--fake", action="store_true",
                        help="Drive the interpreter with a scripted synthetic hand instead of the webcam")
    parser.add_argument("--photos", default=None,
                        help="Photo list: path to photos.json or URL of the photo service (e.g. http://localhost:3000/api/photos)")
    parser.add_argument("--use-default-photos", action="store_true",
                        help="Fall back to the bundled sample photo names when the list is unavailable")
    parser.add_argument("--preset", default=DEFAULT_PRESET.name.value,
                        choices=[p.value for p in PresetName],
                        help="Tuning preset")
    parser.add_argument("--profile", default=None,
                        help="JSON profile with per-field overrides (default: ~/.config/palmgallery/profile.json)")
    parser.add_argument("--camera", type=int, default=0, help="Camera index")
    parser.add_argument("--model", default=str(DEFAULT_MODEL),
                        help="Path to the MediaPipe gesture_recognizer.task model")
    parser.add_argument("--no-preview", action="store_true", help="Do not open the camera preview window")
    parser.add_argument("--record", nargs="?", const="", default=None,
                        help="Record frames and outputs to JSONL (default path under ~/.cache/palmgallery)")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", default=None, help="Also write a rotating debug log here")
    return parser


def main(argv=None) -> None:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level, args.log_file)

    preset = apply_profile(PRESETS[PresetName(args.preset)], load_profile(args.profile))
    photos = PhotoIndex.from_source(args.photos, use_defaults=args.use_default_photos)
    record = None
    if args.record is not None:
        record = args.record or str(default_log_path())

    logger.info("Preset %s, photos from %s", preset.name.value,
                args.photos or ("defaults" if args.use_default_photos else "nowhere"))

    if args.fake:
        from palmgallery.runtime import run_loop
        run_loop.run(preset=preset, photos=photos, record=record)
    else:
        from palmgallery.runtime import run_webcam
        run_webcam.run(preset=preset, photos=photos, record=record,
                       cam_index=args.camera, model_path=args.model,
                       preview=not args.no_preview)


if __name__ == "__main__":
    main()
