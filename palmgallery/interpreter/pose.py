"""
Finger / pose extraction from one hand's 21 landmarks.

All tests are ratio- or threshold-based on planar (x, y) distances, so they
do not depend on how far the hand is from the camera.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from palmgallery.core.config import FingerGeometry
from palmgallery.core.types import FingerStates, Hand, Vec2, Vec3

# landmark indices
WRIST = 0
THUMB_MCP = 2
THUMB_TIP = 4
INDEX_MCP = 5
INDEX_TIP = 8
MIDDLE_MCP = 9
MIDDLE_TIP = 12
RING_MCP = 13
RING_TIP = 16
PINKY_MCP = 17
PINKY_TIP = 20


def dist2d(a: Vec3, b: Vec3) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def is_extended(lm: Sequence[Vec3], tip: int, base: int, ratio: float = 1.3) -> bool:
    wrist = lm[WRIST]
    return dist2d(lm[tip], wrist) > dist2d(lm[base], wrist) * ratio


def palm_center(lm: Sequence[Vec3]) -> Vec2:
    # wrist + index MCP + pinky MCP: stable while fingers curl
    x = (lm[WRIST][0] + lm[INDEX_MCP][0] + lm[PINKY_MCP][0]) / 3.0
    y = (lm[WRIST][1] + lm[INDEX_MCP][1] + lm[PINKY_MCP][1]) / 3.0
    return (x, y)


def hand_scale(lm: Sequence[Vec3]) -> float:
    return dist2d(lm[WRIST], lm[MIDDLE_MCP])


@dataclass(frozen=True)
class HandPose:
    index: bool
    middle: bool
    ring: bool
    pinky: bool
    thumb: bool
    pinching: bool

    @property
    def shaka(self) -> bool:
        return self.thumb and self.pinky and not (self.index or self.middle or self.ring)

    @property
    def all_folded(self) -> bool:
        return not (self.index or self.middle or self.ring or self.pinky or self.thumb)

    @property
    def five_fingers(self) -> bool:
        return self.index and self.middle and self.ring and self.pinky and self.thumb

    @property
    def pointing(self) -> bool:
        # thumb is ignored: people point with it tucked or out
        return self.index and not (self.middle or self.ring or self.pinky)

    def fingers(self) -> FingerStates:
        return FingerStates(index=self.index, middle=self.middle, ring=self.ring,
                            pinky=self.pinky, thumb=self.thumb)


def extract_pose(hand: Hand, geo: FingerGeometry = FingerGeometry()) -> HandPose:
    lm = hand.landmarks
    r = geo.extend_ratio
    return HandPose(
        index=is_extended(lm, INDEX_TIP, INDEX_MCP, r),
        middle=is_extended(lm, MIDDLE_TIP, MIDDLE_MCP, r),
        ring=is_extended(lm, RING_TIP, RING_MCP, r),
        pinky=is_extended(lm, PINKY_TIP, PINKY_MCP, r),
        thumb=is_extended(lm, THUMB_TIP, THUMB_MCP, r),
        pinching=dist2d(lm[THUMB_TIP], lm[INDEX_TIP]) < geo.pinch_dist,
    )
