"""
Feature extraction from stabilized hand landmarks.

Pure, side-effect-free helpers: palm center, palm polygon, hand scale,
depth and visibility counts.
"""

from typing import Sequence

import numpy as np

from .hand_landmarks import (
    KNUCKLES,
    Landmark,
    LandmarkIndex,
    Point2,
    Point3,
    StabilizedLandmark,
    distance_2d,
)

PALM_CENTER_INDICES: tuple[int, ...] = (LandmarkIndex.WRIST,) + KNUCKLES

PALM_POLYGON_INDICES: tuple[int, ...] = (
    LandmarkIndex.WRIST,
    LandmarkIndex.THUMB_CMC,
    LandmarkIndex.THUMB_MCP,
    LandmarkIndex.INDEX_MCP,
    LandmarkIndex.MIDDLE_MCP,
    LandmarkIndex.RING_MCP,
    LandmarkIndex.PINKY_MCP,
)


def palm_center(landmarks: Sequence[StabilizedLandmark]) -> Point3:
    """
    Calculate the 3D palm center.

    Args:
        landmarks: 21 stabilized landmarks.

    Returns:
        Mean of the wrist and the four finger MCP joints.
    """
    points = np.array([
        (landmarks[i].x, landmarks[i].y, landmarks[i].z) for i in PALM_CENTER_INDICES
    ])
    x, y, z = points.mean(axis=0)
    return Point3(float(x), float(y), float(z))


def palm_polygon(landmarks: Sequence[StabilizedLandmark]) -> list[Point2]:
    """Ordered outline of the solid palm: wrist, thumb base, then knuckles."""
    return [Point2(landmarks[i].x, landmarks[i].y) for i in PALM_POLYGON_INDICES]


def hand_scale(landmarks: Sequence[StabilizedLandmark]) -> float:
    """Wrist to middle fingertip distance, used as a size reference."""
    return distance_2d(landmarks[LandmarkIndex.WRIST], landmarks[LandmarkIndex.MIDDLE_TIP])


def hand_depth(landmarks: Sequence[StabilizedLandmark]) -> float:
    """Average z across all landmarks."""
    return float(np.mean([lm.z for lm in landmarks]))


def count_visible_landmarks(landmarks: Sequence[Landmark]) -> int:
    """Count raw landmarks strictly inside the frame."""
    return sum(
        1 for lm in landmarks
        if 0.0 <= lm.x <= 1.0 and 0.0 <= lm.y <= 1.0
    )


def is_partial_hand(landmarks: Sequence[Landmark], expected: int = 21) -> bool:
    """True when part of the hand is outside the frame (or missing)."""
    return count_visible_landmarks(landmarks) < expected
