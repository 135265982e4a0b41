"""
palmgallery: CORE CONTRACTS

Single source of truth for the data that crosses component boundaries:
  sensor → interpreter   (LandmarkFrame)
  interpreter → renderer (SceneOutputs / SceneEvent)

Everything here is immutable. The interpreter owns its mutable state elsewhere.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


# ============================================================
# Sensor → Interpreter (Vision → Logic)
# ============================================================

Vec3 = Tuple[float, float, float]
Vec2 = Tuple[float, float]

LANDMARK_COUNT = 21


class Gesture(str, Enum):
    """Category names reported by the gesture classifier."""
    NONE = "None"
    OPEN_PALM = "Open_Palm"
    CLOSED_FIST = "Closed_Fist"
    POINTING_UP = "Pointing_Up"
    THUMB_UP = "Thumb_Up"
    THUMB_DOWN = "Thumb_Down"
    VICTORY = "Victory"
    I_LOVE_YOU = "ILoveYou"


@dataclass(frozen=True)
class GestureCandidate:
    """One classifier guess for a hand: category name + score in [0, 1]."""
    name: str
    score: float


@dataclass(frozen=True)
class Hand:
    """
    A single detected hand for one frame.

    landmarks are normalized image coordinates (x, y, z), 21 points in
    the usual hand-model order (0 = wrist, 4 = thumb tip, 8 = index tip ...).
    gestures are ordered by descending score.
    """
    landmarks: Tuple[Vec3, ...]
    gestures: Tuple[GestureCandidate, ...] = ()

    @property
    def complete(self) -> bool:
        return len(self.landmarks) >= LANDMARK_COUNT

    @property
    def top_gesture(self) -> Optional[GestureCandidate]:
        return self.gestures[0] if self.gestures else None


@dataclass(frozen=True)
class LandmarkFrame:
    """A timestamped snapshot from the vision collaborator (0-2 hands)."""
    t_ms: int
    hands: Tuple[Hand, ...] = ()


# ============================================================
# Interpreter → Renderer (Logic → Scene / UI)
# ============================================================

class Mode(str, Enum):
    CHAOS = "CHAOS"     # scattered / selection
    FORMED = "FORMED"   # assembled / navigation


class Action(str, Enum):
    """Rate-limited action categories (one cooldown timer each)."""
    PICK = "pick"           # victory → random photo
    DISMISS = "dismiss"     # thumb-up → close photo
    SWIPE = "swipe"
    CLICK = "click"
    PULSE = "pulse"
    THEME = "theme"


class EventType(str, Enum):
    MODE = "MODE"
    SELECT = "SELECT"
    CLICK = "CLICK"
    PULSE = "PULSE"
    THEME = "THEME"


@dataclass(frozen=True)
class ModeEvent:
    state: Mode


@dataclass(frozen=True)
class SelectEvent:
    photo: Optional[str]    # None = selection cleared
    reason: str             # "random" | "swipe" | "fist" | "dismiss"


@dataclass(frozen=True)
class ClickEvent:
    token: int
    pointer: Optional[Vec2]


@dataclass(frozen=True)
class PulseEvent:
    token: int


@dataclass(frozen=True)
class ThemeEvent:
    index: int
    step: int   # +1 | -1


@dataclass(frozen=True)
class SceneEvent:
    """
    A single discrete output from the interpreter.

    Exactly ONE payload field is non-None depending on `type`.
    """
    t_ms: int
    type: EventType
    mode: Optional[ModeEvent] = None
    select: Optional[SelectEvent] = None
    click: Optional[ClickEvent] = None
    pulse: Optional[PulseEvent] = None
    theme: Optional[ThemeEvent] = None


@dataclass(frozen=True)
class FingerStates:
    index: bool
    middle: bool
    ring: bool
    pinky: bool
    thumb: bool


@dataclass(frozen=True)
class ActionFlags:
    pointing: bool = False
    zooming: bool = False
    pinching: bool = False
    five_fingers: bool = False
    shaka: bool = False


@dataclass(frozen=True)
class DebugSnapshot:
    hands_detected: int
    gestures: Tuple[GestureCandidate, ...]
    fingers: Optional[FingerStates]
    actions: ActionFlags
    palm: Optional[Vec2]
    movement: Optional[Vec2]


@dataclass(frozen=True)
class SceneOutputs:
    """
    Everything the rendering / UI layer reads after one interpreter pass.

    click_token and pulse_token are opaque: they change only when a click or
    light pulse fires.
    """
    t_ms: int
    mode: Mode
    pointer: Optional[Vec2]
    hover_progress: float
    click_token: int
    pan: Vec2
    zoom: float
    rotation_boost: float
    selected_photo: Optional[str]
    theme: int
    pulse_token: int
    events: Tuple[SceneEvent, ...]
    debug: DebugSnapshot


def clamp(x: float, lo: float, hi: float) -> float:
    if x < lo:
        return lo
    if x > hi:
        return hi
    return x


def clamp01(x: float) -> float:
    return clamp(x, 0.0, 1.0)
