"""
Synthetic hands for the fake runtime source and for tests.

Geometry is a flat, upright right hand in image coordinates (y grows down).
Extended fingertips sit well beyond 1.3x their knuckle distance from the
wrist, folded ones well inside it, so the pose extractor classifies them
unambiguously at any scale.
"""

from __future__ import annotations

from typing import Dict, Iterable, Tuple

from palmgallery.core.types import GestureCandidate, Hand, LandmarkFrame, Vec2, Vec3

# unit-hand coordinates relative to the wrist, before scaling
_THUMB = {"cmc": (-0.15, -0.10), "mcp": (-0.25, -0.20), "up": (-0.45, -0.35), "down": (0.05, -0.20)}
_FINGERS = {
    # name: (mcp, extended tip, folded tip)
    "index": ((-0.10, -0.50), (-0.12, -0.95), (-0.10, -0.45)),
    "middle": ((0.00, -0.52), (0.00, -1.00), (0.00, -0.42)),
    "ring": ((0.10, -0.50), (0.12, -0.93), (0.08, -0.40)),
    "pinky": ((0.18, -0.45), (0.25, -0.80), (0.14, -0.36)),
}

POSES: Dict[str, Tuple[str, ...]] = {
    "open": ("thumb", "index", "middle", "ring", "pinky"),
    "fist": (),
    "point": ("index",),
    "victory": ("index", "middle"),
    "shaka": ("thumb", "pinky"),
    "thumb_up": ("thumb",),
    "pinch": ("thumb",),
}

# palm center offset from the wrist: mean of wrist, index MCP, pinky MCP
_PALM_OFFSET = (
    (0.0 + _FINGERS["index"][0][0] + _FINGERS["pinky"][0][0]) / 3.0,
    (0.0 + _FINGERS["index"][0][1] + _FINGERS["pinky"][0][1]) / 3.0,
)


def _lerp(a: Vec2, b: Vec2, t: float) -> Vec2:
    return (a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t)


def _unit_landmarks(pose: str) -> list[Vec2]:
    if pose not in POSES:
        raise ValueError(f"unknown synthetic pose: {pose!r}")
    up = POSES[pose]
    pts: list[Vec2] = [(0.0, 0.0)]

    thumb_tip = _THUMB["up"] if "thumb" in up else _THUMB["down"]
    index_tip = None
    if pose == "pinch":
        # thumb and index tips nearly touching in front of the palm
        thumb_tip, index_tip = (-0.20, -0.55), (-0.20, -0.58)
    pts += [_THUMB["cmc"], _THUMB["mcp"], _lerp(_THUMB["mcp"], thumb_tip, 0.5), thumb_tip]

    for name, (mcp, ext, fold) in _FINGERS.items():
        tip = ext if name in up else fold
        if name == "index" and index_tip is not None:
            tip = index_tip
        pts += [mcp, _lerp(mcp, tip, 1 / 3), _lerp(mcp, tip, 2 / 3), tip]
    return pts


def make_hand(pose: str = "open", palm: Vec2 = (0.5, 0.5), scale: float = 0.25,
              gestures: Iterable[Tuple[str, float]] = ()) -> Hand:
    """Builds a 21-landmark hand whose palm center lands exactly on `palm`."""
    wx = palm[0] - _PALM_OFFSET[0] * scale
    wy = palm[1] - _PALM_OFFSET[1] * scale
    landmarks: Tuple[Vec3, ...] = tuple(
        (wx + ux * scale, wy + uy * scale, 0.0) for ux, uy in _unit_landmarks(pose)
    )
    cands = sorted((GestureCandidate(name=n, score=float(s)) for n, s in gestures),
                   key=lambda g: g.score, reverse=True)
    return Hand(landmarks=landmarks, gestures=tuple(cands))


def make_frame(t_ms: int, *hands: Hand) -> LandmarkFrame:
    return LandmarkFrame(t_ms=t_ms, hands=tuple(hands))
