"""
Per-frame hand tracking: turns raw detector hands into HandSnapshots.

Runs stabilizer, feature extraction, velocity tracking and the per-frame
gesture flags for every detected hand.
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence

from .gesture_recognizer import GestureRecognizer
from .hand_features import hand_depth, hand_scale, is_partial_hand, palm_center, palm_polygon
from .hand_landmarks import Landmark, Point2, Point3, RawHand, StabilizedLandmark
from .landmark_stabilizer import LandmarkStabilizer
from .logger import get_logger
from .velocity_tracker import VelocityTracker

logger = get_logger("HandTracker")


@dataclass
class HandSnapshot:
    """
    Everything known about one hand in one frame.

    Attributes:
        key: Hand key used for per-hand history.
        handedness: 'Left' or 'Right'.
        landmarks: 21 stabilized screen-space landmarks.
        palm_center: 3D palm center.
        palm_polygon: 7-point palm outline.
        velocity: Instantaneous velocity (px per 60 Hz frame).
        smoothed_velocity: Recency-weighted velocity.
        scale: Wrist to middle fingertip distance.
        depth: Average landmark z.
        is_pinching: Thumb-index pinch detected.
        pinch_strength: Pinch closeness in [0, 1].
        is_fist: Fist detected.
        is_pointing: Pointing detected.
        pointing_at: Pointing target, if pointing.
        is_partial: Part of the hand is outside the frame.
        raw_landmarks: Raw landmarks this snapshot was built from.
    """
    key: str
    handedness: str
    landmarks: list[StabilizedLandmark]
    palm_center: Point3
    palm_polygon: list[Point2]
    velocity: tuple[float, float] = (0.0, 0.0)
    smoothed_velocity: tuple[float, float] = (0.0, 0.0)
    scale: float = 0.0
    depth: float = 0.0
    is_pinching: bool = False
    pinch_strength: float = 0.0
    is_fist: bool = False
    is_pointing: bool = False
    pointing_at: Optional[Point2] = None
    is_partial: bool = False
    raw_landmarks: list[Landmark] = field(default_factory=list)


class HandTracker:
    """Composes the per-hand processing stages."""

    def __init__(
        self,
        stabilizer: Optional[LandmarkStabilizer] = None,
        velocity_tracker: Optional[VelocityTracker] = None,
        recognizer: Optional[GestureRecognizer] = None
    ):
        """
        Initialize hand tracker.

        Args:
            stabilizer: Landmark stabilizer (owns per-hand landmark history).
            velocity_tracker: Velocity tracker (owns per-hand position history).
            recognizer: Gesture recognizer for the per-frame flags.
        """
        self.stabilizer = stabilizer or LandmarkStabilizer()
        self.velocity_tracker = velocity_tracker or VelocityTracker()
        self.recognizer = recognizer or GestureRecognizer()

    def process(
        self,
        raw_hands: Sequence[RawHand],
        viewport: tuple[float, float],
        timestamp: float
    ) -> list[HandSnapshot]:
        """
        Build snapshots for all hands detected this frame.

        Args:
            raw_hands: Detector output for this frame.
            viewport: (width, height) in pixels.
            timestamp: Frame timestamp in milliseconds.

        Returns:
            One HandSnapshot per input hand, in input order.
        """
        return [self._process_hand(hand, viewport, timestamp) for hand in raw_hands]

    def _process_hand(
        self, hand: RawHand, viewport: tuple[float, float], timestamp: float
    ) -> HandSnapshot:
        key = hand.key
        landmarks = self.stabilizer.stabilize(key, hand.landmarks, viewport, timestamp)

        center = palm_center(landmarks)
        estimate = self.velocity_tracker.update(key, center, timestamp)

        pinch = self.recognizer.detect_pinch(landmarks)
        pointing = self.recognizer.detect_pointing(landmarks, center)

        snapshot = HandSnapshot(
            key=key,
            handedness=hand.handedness,
            landmarks=landmarks,
            palm_center=center,
            palm_polygon=palm_polygon(landmarks),
            velocity=estimate.velocity,
            smoothed_velocity=estimate.smoothed_velocity,
            scale=hand_scale(landmarks),
            depth=hand_depth(landmarks),
            is_pinching=pinch.is_pinching,
            pinch_strength=pinch.strength,
            is_fist=self.recognizer.detect_fist(landmarks, center),
            is_pointing=pointing.is_pointing,
            pointing_at=pointing.target,
            is_partial=is_partial_hand(hand.landmarks),
            raw_landmarks=list(hand.landmarks)
        )

        if snapshot.is_partial:
            logger.debug(f"Partial hand {key}: stabilized from persisted landmarks")
        return snapshot

    def forget(self, key: str) -> None:
        """Drop all per-hand history for one hand."""
        self.stabilizer.forget(key)
        self.velocity_tracker.forget(key)

    def reset(self) -> None:
        """Drop all per-hand history."""
        self.stabilizer.reset()
        self.velocity_tracker.reset()
