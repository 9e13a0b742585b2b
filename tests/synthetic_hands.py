"""
Deterministic synthetic hands for a 1280x720 viewport.

Poses are written in screen pixels and normalized on the way into a
RawHand, so every classifier distance can be checked by hand.
"""
from typing import Optional

from gesture_field.hand_landmarks import (
    FINGERTIPS,
    LEFT,
    RIGHT,
    Landmark,
    RawHand,
)
from gesture_field.hand_tracker import HandSnapshot, HandTracker

VIEWPORT = (1280.0, 720.0)
WIDTH, HEIGHT = VIEWPORT

# Right hand, palm facing the camera in a mirrored view, all fingers up.
# Palm center (mean of wrist and the four knuckles) is (629, 481).
RIGHT_OPEN_PALM: list[tuple[float, float]] = [
    (640, 600),                                      # wrist
    (680, 570), (720, 530), (755, 500), (785, 475),  # thumb
    (700, 450), (702, 390), (703, 350), (704, 315),  # index
    (650, 445), (651, 375), (652, 330), (653, 290),  # middle
    (600, 450), (598, 385), (597, 345), (596, 310),  # ring
    (555, 460), (550, 410), (547, 380), (545, 355),  # pinky
]

# Knuckles up, fingers and thumb curled into the palm. Same wrist and knuckles.
RIGHT_UPWARD_FIST: list[tuple[float, float]] = [
    (640, 600),
    (680, 570), (700, 535), (685, 510), (660, 500),
    (700, 450), (695, 420), (685, 455), (680, 480),
    (650, 445), (648, 415), (646, 455), (645, 485),
    (600, 450), (600, 420), (603, 458), (605, 488),
    (555, 460), (558, 432), (565, 462), (570, 490),
]

# Index extended as in the open palm, other fingers and thumb curled.
# Pointing target is tip + 2 * (tip - mcp) = (712, 45).
RIGHT_POINTING: list[tuple[float, float]] = (
    RIGHT_UPWARD_FIST[:5] + RIGHT_OPEN_PALM[5:9] + RIGHT_UPWARD_FIST[9:]
)

FINGERTIP_Z = -0.01  # Fingertips slightly closer than the knuckles


def default_depths(front_facing: bool = True) -> list[float]:
    """Normalized z per landmark; fingertips toward or away from the camera."""
    depths = [0.0] * 21
    for tip in FINGERTIPS:
        depths[tip] = FINGERTIP_Z if front_facing else -FINGERTIP_Z * 2
    return depths


def mirror(points: list[tuple[float, float]]) -> list[tuple[float, float]]:
    """Mirror a pose horizontally across the viewport."""
    return [(WIDTH - x, y) for x, y in points]


def with_points(
    points: list[tuple[float, float]], overrides: dict[int, tuple[float, float]]
) -> list[tuple[float, float]]:
    """Copy of a pose with some landmarks moved."""
    result = list(points)
    for index, point in overrides.items():
        result[index] = point
    return result


def make_hand(
    points: list[tuple[float, float]],
    handedness: str = RIGHT,
    depths: Optional[list[float]] = None,
    track_id: Optional[str] = None
) -> RawHand:
    """Build a RawHand from a pixel-space pose."""
    depths = depths if depths is not None else default_depths()
    landmarks = [
        Landmark(x=x / WIDTH, y=y / HEIGHT, z=z)
        for (x, y), z in zip(points, depths)
    ]
    return RawHand(landmarks=landmarks, handedness=handedness, track_id=track_id)


def snapshot(
    points: list[tuple[float, float]],
    handedness: str = RIGHT,
    depths: Optional[list[float]] = None
) -> HandSnapshot:
    """One-frame snapshot from a fresh tracker (no history blending)."""
    tracker = HandTracker()
    return tracker.process([make_hand(points, handedness, depths)], VIEWPORT, 0.0)[0]


def right_open_palm() -> RawHand:
    return make_hand(RIGHT_OPEN_PALM, RIGHT)


def left_open_palm() -> RawHand:
    return make_hand(mirror(RIGHT_OPEN_PALM), LEFT)


def right_upward_fist() -> RawHand:
    return make_hand(RIGHT_UPWARD_FIST, RIGHT)

