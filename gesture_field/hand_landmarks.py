"""
Hand landmark types shared by every stage of the gesture pipeline.

Raw landmarks arrive normalized from the detector; everything downstream of
the stabilizer works in screen-space pixels.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

LEFT = "Left"
RIGHT = "Right"


# MediaPipe landmark indices
class LandmarkIndex:
    """MediaPipe hand landmark indices."""
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


# (mcp, pip, dip, tip) for the four non-thumb fingers
FINGER_JOINTS: tuple[tuple[int, int, int, int], ...] = (
    (LandmarkIndex.INDEX_MCP, LandmarkIndex.INDEX_PIP, LandmarkIndex.INDEX_DIP, LandmarkIndex.INDEX_TIP),
    (LandmarkIndex.MIDDLE_MCP, LandmarkIndex.MIDDLE_PIP, LandmarkIndex.MIDDLE_DIP, LandmarkIndex.MIDDLE_TIP),
    (LandmarkIndex.RING_MCP, LandmarkIndex.RING_PIP, LandmarkIndex.RING_DIP, LandmarkIndex.RING_TIP),
    (LandmarkIndex.PINKY_MCP, LandmarkIndex.PINKY_PIP, LandmarkIndex.PINKY_DIP, LandmarkIndex.PINKY_TIP),
)

FINGERTIPS: tuple[int, ...] = tuple(joints[3] for joints in FINGER_JOINTS)
KNUCKLES: tuple[int, ...] = tuple(joints[0] for joints in FINGER_JOINTS)

# Hand connections (same as MediaPipe), used for debug drawing
HAND_CONNECTIONS: tuple[tuple[int, int], ...] = (
    (0, 1), (1, 2), (2, 3), (3, 4),  # Thumb
    (0, 5), (5, 6), (6, 7), (7, 8),  # Index
    (0, 9), (9, 10), (10, 11), (11, 12),  # Middle
    (0, 13), (13, 14), (14, 15), (15, 16),  # Ring
    (0, 17), (17, 18), (18, 19), (19, 20),  # Pinky
    (5, 9), (9, 13), (13, 17)  # Palm
)


@dataclass
class Landmark:
    """Single raw hand landmark as reported by the detector."""
    x: float  # Normalized x, nominally [0, 1]
    y: float  # Normalized y, nominally [0, 1]
    z: float = 0.0  # Relative depth, smaller = closer to camera
    visibility: float = 1.0


@dataclass
class RawHand:
    """
    One detected hand for one frame.

    Attributes:
        landmarks: List of 21 raw landmarks.
        handedness: 'Left' or 'Right'.
        score: Detection confidence score.
        track_id: Optional stable per-hand id; lets two same-side hands
            keep separate histories.
    """
    landmarks: list[Landmark]
    handedness: str
    score: float = 1.0
    track_id: Optional[str] = None

    @property
    def key(self) -> str:
        """Key under which per-hand history is stored."""
        return self.track_id if self.track_id is not None else self.handedness


@dataclass
class StabilizedLandmark:
    """Screen-space landmark produced by the stabilizer."""
    x: float  # Pixels
    y: float  # Pixels
    z: float  # Depth scaled by viewport width
    confidence: float = 1.0
    visible: bool = True  # Directly observed on screen this frame


@dataclass(frozen=True)
class Point3:
    """3D screen-space point."""
    x: float
    y: float
    z: float = 0.0


@dataclass(frozen=True)
class Point2:
    """2D screen-space point."""
    x: float
    y: float


def distance(a, b) -> float:
    """
    Calculate Euclidean distance between two points.

    Args:
        a: First point (anything with x, y, z).
        b: Second point.

    Returns:
        3D Euclidean distance.
    """
    return float(np.sqrt(
        (a.x - b.x) ** 2 +
        (a.y - b.y) ** 2 +
        (a.z - b.z) ** 2
    ))


def distance_2d(a, b) -> float:
    """
    Calculate 2D distance between two points (ignoring z).

    Args:
        a: First point (anything with x, y).
        b: Second point.

    Returns:
        2D Euclidean distance.
    """
    return float(np.hypot(a.x - b.x, a.y - b.y))
