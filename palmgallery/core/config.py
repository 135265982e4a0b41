"""
palmgallery: tuning presets

Every constant the interpreter uses lives here, grouped by component.
Profiles (runtime/profile.py) override individual fields on top of a preset.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Tuple

from palmgallery.core.types import Action, Gesture


# MediaPipe gesture recognizer bundle, relative to the working directory
DEFAULT_MODEL = Path("models") / "gesture_recognizer.task"


class PresetName(str, Enum):
    DEFAULT = "Default"
    PRECISION = "Precision"
    CHILL = "Chill"


@dataclass(frozen=True)
class GestureGate:
    """Minimum classifier score + consecutive frames before a gesture counts as held."""
    threshold: float
    hold_frames: int


@dataclass(frozen=True)
class GestureGates:
    # Victory / Open_Palm resemble other poses; they need more evidence.
    victory: GestureGate = GestureGate(threshold=0.60, hold_frames=6)
    thumb_up: GestureGate = GestureGate(threshold=0.55, hold_frames=4)
    open_palm: GestureGate = GestureGate(threshold=0.50, hold_frames=12)
    closed_fist: GestureGate = GestureGate(threshold=0.45, hold_frames=6)
    fallback: GestureGate = GestureGate(threshold=0.50, hold_frames=0)

    def for_name(self, name: str) -> GestureGate:
        if name == Gesture.VICTORY.value:
            return self.victory
        if name == Gesture.THUMB_UP.value:
            return self.thumb_up
        if name == Gesture.OPEN_PALM.value:
            return self.open_palm
        if name == Gesture.CLOSED_FIST.value:
            return self.closed_fist
        return self.fallback


@dataclass(frozen=True)
class CooldownTuning:
    """Seconds an action stays blocked after it fires."""
    pick: float = 1.0
    dismiss: float = 1.0
    swipe: float = 0.8
    click: float = 2.0
    pulse: float = 1.2
    theme: float = 0.9

    def duration(self, action: Action) -> float:
        return float(getattr(self, action.value))


@dataclass(frozen=True)
class DwellTuning:
    threshold_s: float = 1.2


@dataclass(frozen=True)
class FingerGeometry:
    extend_ratio: float = 1.3      # tip→wrist must exceed base→wrist by this factor
    pinch_dist: float = 0.05       # thumb tip ↔ index tip, normalized units


@dataclass(frozen=True)
class MotionTuning:
    move_eps: float = 0.005                 # |dx| or |dy| above this = hand in transit
    two_hand_k: float = 30.0
    two_hand_gain: float = 100.0
    single_hand_k: float = 50.0
    single_hand_gain: float = 200.0
    zoom_range: Tuple[float, float] = (-20.0, 40.0)
    zooming_speed: float = 0.001            # debug flag only


@dataclass(frozen=True)
class RotationTuning:
    gain: float = 8.0
    limit: float = 3.0
    min_dx: float = 0.001
    decay: float = 0.95
    snap_eps: float = 0.001
    pulse_boost: float = 2.0


@dataclass(frozen=True)
class PanTuning:
    span_x: float = 20.0    # world x in [-10, 10]
    span_y: float = 12.0    # world y in [-6, 6]


@dataclass(frozen=True)
class NavigationTuning:
    swipe_dx: float = 0.02
    theme_flick_dx: float = 0.004
    theme_count: int = 3


@dataclass(frozen=True)
class Preset:
    name: PresetName
    gates: GestureGates = GestureGates()
    cooldowns: CooldownTuning = CooldownTuning()
    dwell: DwellTuning = DwellTuning()
    fingers: FingerGeometry = FingerGeometry()
    motion: MotionTuning = MotionTuning()
    rotation: RotationTuning = RotationTuning()
    pan: PanTuning = PanTuning()
    navigation: NavigationTuning = NavigationTuning()


DEFAULT_PRESET = Preset(name=PresetName.DEFAULT)

PRECISION_PRESET = Preset(
    name=PresetName.PRECISION,
    # stricter gates: fewer accidental mode flips, slower to react
    gates=GestureGates(
        victory=GestureGate(threshold=0.70, hold_frames=8),
        thumb_up=GestureGate(threshold=0.65, hold_frames=6),
        open_palm=GestureGate(threshold=0.60, hold_frames=15),
        closed_fist=GestureGate(threshold=0.55, hold_frames=8),
    ),
    dwell=DwellTuning(threshold_s=1.5),
    motion=MotionTuning(move_eps=0.004, two_hand_k=20.0, single_hand_k=35.0),
    navigation=NavigationTuning(swipe_dx=0.03, theme_flick_dx=0.006),
)

CHILL_PRESET = Preset(
    name=PresetName.CHILL,
    gates=GestureGates(
        victory=GestureGate(threshold=0.55, hold_frames=5),
        thumb_up=GestureGate(threshold=0.50, hold_frames=3),
        open_palm=GestureGate(threshold=0.45, hold_frames=10),
        closed_fist=GestureGate(threshold=0.40, hold_frames=5),
    ),
    cooldowns=CooldownTuning(swipe=0.6, click=1.6),
    dwell=DwellTuning(threshold_s=1.0),
    motion=MotionTuning(move_eps=0.007),
    navigation=NavigationTuning(swipe_dx=0.015),
)

PRESETS = {
    PresetName.DEFAULT: DEFAULT_PRESET,
    PresetName.PRECISION: PRECISION_PRESET,
    PresetName.CHILL: CHILL_PRESET,
}
