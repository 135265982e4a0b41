from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Tuple

import cv2
import mediapipe as mp
from mediapipe.tasks import python as mp_tasks
from mediapipe.tasks.python import vision

from palmgallery.core.config import DEFAULT_MODEL
from palmgallery.core.errors import SensorError
from palmgallery.core.types import GestureCandidate, Hand, LandmarkFrame, SceneOutputs

logger = logging.getLogger(__name__)

# index pairs for the preview skeleton
_BONES = (
    (0, 1), (1, 2), (2, 3), (3, 4),
    (0, 5), (5, 6), (6, 7), (7, 8),
    (5, 9), (9, 10), (10, 11), (11, 12),
    (9, 13), (13, 14), (14, 15), (15, 16),
    (13, 17), (0, 17), (17, 18), (18, 19), (19, 20),
)


@dataclass
class WebcamMPSrc:
    """
    Webcam + MediaPipe GestureRecognizer (VIDEO mode, up to two hands).

    Frames are NOT mirrored here: the interpreter applies the mirror itself,
    so landmarks stay in raw camera coordinates.
    """
    cam_index: int = 0
    model_path: str = str(DEFAULT_MODEL)
    width: int = 320
    height: int = 240
    num_hands: int = 2

    cap: Any = field(init=False, default=None)
    recognizer: Any = field(init=False, default=None)

    def __post_init__(self) -> None:
        if not Path(self.model_path).expanduser().exists():
            raise SensorError(f"gesture model not found: {self.model_path}")

        self.cap = cv2.VideoCapture(self.cam_index)
        if not self.cap.isOpened():
            self.cap.release()
            raise SensorError(f"camera {self.cam_index} unavailable (denied, busy or missing)")
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)

        try:
            opts = vision.GestureRecognizerOptions(
                base_options=mp_tasks.BaseOptions(model_asset_path=str(Path(self.model_path).expanduser())),
                running_mode=vision.RunningMode.VIDEO,
                num_hands=self.num_hands,
            )
            self.recognizer = vision.GestureRecognizer.create_from_options(opts)
        except (RuntimeError, ValueError) as e:
            self.cap.release()
            raise SensorError(f"gesture recognizer failed to initialize: {e}") from e

        self._last_t_ms = -1
        self._last_pos_ms: float | None = None

    def read(self) -> Tuple[Optional[LandmarkFrame], Optional[Any]]:
        """
        Returns (frame, bgr image). frame is None when the camera produced
        nothing new; the caller then skips the interpreter pass. Both are
        None when the capture read itself failed.
        """
        ok, img = self.cap.read()
        if not ok:
            return None, None

        # some backends report a stream position; identical position = same sample
        pos = self.cap.get(cv2.CAP_PROP_POS_MSEC)
        if pos and pos == self._last_pos_ms:
            return None, img
        self._last_pos_ms = pos or None

        # recognize_for_video needs strictly increasing timestamps
        t_ms = max(int(time.monotonic() * 1000), self._last_t_ms + 1)
        self._last_t_ms = t_ms

        try:
            rgb = cv2.cvtColor(img, cv2.COLOR_BGR2RGB)
            res = self.recognizer.recognize_for_video(mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb), t_ms)
        except (RuntimeError, ValueError, cv2.error) as e:
            # a failed inference reads as "no hand" for this sample
            logger.warning("Gesture recognition failed at t=%d: %s", t_ms, e)
            return LandmarkFrame(t_ms=t_ms), img

        hands = []
        for i, lms in enumerate(res.hand_landmarks or []):
            cats = res.gestures[i] if res.gestures and i < len(res.gestures) else []
            hands.append(Hand(
                landmarks=tuple((float(p.x), float(p.y), float(p.z)) for p in lms),
                gestures=tuple(GestureCandidate(name=c.category_name, score=float(c.score)) for c in cats),
            ))
        return LandmarkFrame(t_ms=t_ms, hands=tuple(hands)), img

    def close(self) -> None:
        if self.recognizer is not None:
            self.recognizer.close()
            self.recognizer = None
        if self.cap is not None:
            self.cap.release()
            self.cap = None


def draw_overlay(img, frame: LandmarkFrame | None, out: SceneOutputs | None):
    """Hand skeleton + interpreter state on the preview image (mirrored for display)."""
    h, w = img.shape[:2]
    if frame is not None:
        for hand in frame.hands:
            pts = [(int(x * w), int(y * h)) for x, y, _ in hand.landmarks]
            for a, b in _BONES:
                if a < len(pts) and b < len(pts):
                    cv2.line(img, pts[a], pts[b], (255, 255, 255), 1, cv2.LINE_AA)
            for pt in pts:
                cv2.circle(img, pt, 2, (0, 215, 255), -1)

    img = cv2.flip(img, 1)
    if out is None:
        return img

    dbg = out.debug
    names = ", ".join(f"{g.name}:{g.score:.2f}" for g in dbg.gestures) or "-"
    lines = [
        f"MODE: {out.mode.value}  hands={dbg.hands_detected}",
        f"gestures: {names}",
        f"zoom={out.zoom:+.1f} rot={out.rotation_boost:+.2f} theme={out.theme}",
        f"hover={out.hover_progress:.2f} photo={out.selected_photo or '-'}",
    ]
    cv2.rectangle(img, (0, 0), (w, 16 * len(lines) + 8), (0, 0, 0), -1)
    for i, text in enumerate(lines):
        cv2.putText(img, text, (6, 16 * (i + 1)), cv2.FONT_HERSHEY_SIMPLEX, 0.4,
                    (255, 255, 255), 1, cv2.LINE_AA)
    if out.pointer is not None:
        px, py = int(out.pointer[0] * w), int(out.pointer[1] * h)
        cv2.circle(img, (px, py), 6 + int(10 * out.hover_progress), (0, 255, 255), 1, cv2.LINE_AA)
    return img
