from __future__ import annotations

import logging
import random
import time

import cv2

from palmgallery.core.config import DEFAULT_MODEL, DEFAULT_PRESET, Preset
from palmgallery.core.control import OutputChannel
from palmgallery.core.errors import SensorError
from palmgallery.core.photos import PhotoIndex
from palmgallery.interpreter.state_machine import Interpreter
from palmgallery.runtime.recording import SessionLog
from palmgallery.runtime.sink import SceneSink
from palmgallery.runtime.sources import GuardedSource, IdleSource
from palmgallery.sensor.webcam_mp import WebcamMPSrc, draw_overlay

logger = logging.getLogger(__name__)

WINDOW = "palmgallery (webcam)"


def open_source(cam_index: int = 0, model_path: str = str(DEFAULT_MODEL)):
    try:
        return GuardedSource(WebcamMPSrc(cam_index=cam_index, model_path=model_path))
    except SensorError as e:
        logger.error("Hand tracking unavailable: %s", e)
        logger.warning("Continuing without a camera; the scene keeps running with no hands")
        return IdleSource()


def run(preset: Preset = DEFAULT_PRESET, photos: PhotoIndex | None = None,
        channel: OutputChannel | None = None, record: str | None = None,
        cam_index: int = 0, model_path: str = str(DEFAULT_MODEL), preview: bool = True) -> None:
    channel = channel or OutputChannel()
    interp = Interpreter(preset, photos=photos, rng=random.Random())
    sink = SceneSink(channel=channel, log=SessionLog(record) if record else None)
    src = open_source(cam_index, model_path)

    print("[palmgallery] Webcam runtime. ESC to quit.")

    last = time.monotonic()
    try:
        while True:
            frame, img = src.read()
            if frame is None:
                # camera produced nothing new this tick
                if img is None:
                    time.sleep(0.005)
                continue

            now = time.monotonic()
            out = interp.process(frame, elapsed_s=now - last)
            last = now
            sink.apply(frame, out)

            if preview and img is not None:
                cv2.imshow(WINDOW, draw_overlay(img, frame, out))
                key = cv2.waitKey(1) & 0xFF
                if key == 27:  # ESC
                    break
    except KeyboardInterrupt:
        print("\n[palmgallery] exiting")
    finally:
        sink.close()
        src.close()
        if preview:
            cv2.destroyAllWindows()


if __name__ == "__main__":
    run(photos=PhotoIndex.from_source(None, use_defaults=True))
