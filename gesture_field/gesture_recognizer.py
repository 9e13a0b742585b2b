"""
Gesture classifiers over stabilized hand landmarks.

Every classifier is stateless per call. The strict conjunctive gestures
(open palm, upward fist, open hand, pointing) are evaluated as an ordered
list of named checks so a rejection can be traced to the exact check that
failed.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Callable, Optional, Sequence

import numpy as np

from .config import GestureThresholds
from .hand_landmarks import (
    FINGER_JOINTS,
    FINGERTIPS,
    KNUCKLES,
    RIGHT,
    LandmarkIndex,
    Point2,
    StabilizedLandmark,
    distance_2d,
)

if TYPE_CHECKING:
    from .hand_tracker import HandSnapshot


class GestureType(Enum):
    """Recognized gesture types."""
    FIST = auto()
    PINCH = auto()
    POINT = auto()
    OPEN_PALM = auto()
    UPWARD_FIST = auto()
    OPEN_HAND = auto()


@dataclass
class GestureCheck:
    """Outcome of one named check inside a classifier."""
    name: str
    passed: bool


@dataclass
class ClassifierResult:
    """
    Result of a conjunctive classifier.

    Checks are evaluated in order and evaluation stops at the first failure,
    so `checks` holds every passed check plus at most one failed one.
    """
    gesture: GestureType
    checks: list[GestureCheck] = field(default_factory=list)

    @property
    def detected(self) -> bool:
        """True if every check ran and passed."""
        return bool(self.checks) and all(c.passed for c in self.checks)

    @property
    def failed_check(self) -> Optional[str]:
        """Name of the check that rejected the gesture, if any."""
        for check in self.checks:
            if not check.passed:
                return check.name
        return None

    def __bool__(self) -> bool:
        return self.detected


@dataclass
class PinchResult:
    """Pinch state for one hand."""
    is_pinching: bool = False
    strength: float = 0.0


@dataclass
class PointingResult:
    """Pointing state for one hand."""
    classification: ClassifierResult
    target: Optional[Point2] = None

    @property
    def is_pointing(self) -> bool:
        return self.classification.detected


def _run_checks(
    gesture: GestureType, checks: Sequence[tuple[str, Callable[[], bool]]]
) -> ClassifierResult:
    """Evaluate checks in order, stopping at the first failure."""
    result = ClassifierResult(gesture)
    for name, predicate in checks:
        passed = bool(predicate())
        result.checks.append(GestureCheck(name, passed))
        if not passed:
            break
    return result


class GestureRecognizer:
    """
    Classifies hand poses from stabilized screen-space landmarks.

    All distances are 2D pixel distances; all thresholds come from
    GestureThresholds.
    """

    def __init__(self, thresholds: Optional[GestureThresholds] = None):
        """
        Initialize gesture recognizer.

        Args:
            thresholds: Detection thresholds. Uses defaults if None.
        """
        self.thresholds = thresholds or GestureThresholds()

    # ------------------------------------------------------------------
    # Per-frame flags
    # ------------------------------------------------------------------

    def count_curled_fingers(self, landmarks: Sequence[StabilizedLandmark], center) -> int:
        """Count non-thumb fingertips close to the palm center."""
        limit = self.thresholds.fist_curl_distance
        return sum(1 for tip in FINGERTIPS if distance_2d(landmarks[tip], center) < limit)

    def count_open_fingers(self, landmarks: Sequence[StabilizedLandmark], center) -> int:
        """Count non-thumb fingertips away from the palm center."""
        limit = self.thresholds.fist_curl_distance
        return sum(1 for tip in FINGERTIPS if distance_2d(landmarks[tip], center) > limit)

    def detect_fist(self, landmarks: Sequence[StabilizedLandmark], center) -> bool:
        """Fist when enough fingertips are curled into the palm."""
        return self.count_curled_fingers(landmarks, center) >= self.thresholds.fist_min_curled

    def detect_pinch(self, landmarks: Sequence[StabilizedLandmark]) -> PinchResult:
        """
        Detect a thumb-index pinch, tolerating partially visible hands.

        A fingertip is usable if it is visible this frame or its remembered
        position is still confident. Without both fingertips no pinch is
        reported.

        Args:
            landmarks: 21 stabilized landmarks.

        Returns:
            PinchResult with flag and strength in [0, 1].
        """
        thumb = landmarks[LandmarkIndex.THUMB_TIP]
        index = landmarks[LandmarkIndex.INDEX_TIP]

        if not (self._is_usable(thumb) and self._is_usable(index)):
            return PinchResult()

        d = distance_2d(thumb, index)
        strength = float(np.clip(1.0 - d / self.thresholds.pinch_max_distance, 0.0, 1.0))
        return PinchResult(is_pinching=d < self.thresholds.pinch_distance, strength=strength)

    def _is_usable(self, landmark: StabilizedLandmark) -> bool:
        return landmark.visible or landmark.confidence > self.thresholds.pinch_min_stored_confidence

    def is_finger_straight(self, mcp, pip, tip) -> bool:
        """
        Check the angle at the PIP joint is wide enough for a straight finger.

        Args:
            mcp: Knuckle position.
            pip: Middle joint position.
            tip: Fingertip position.

        Returns:
            True when cos(angle MCP-PIP-TIP) is below the straightness limit.
        """
        v1 = np.array([mcp.x - pip.x, mcp.y - pip.y])
        v2 = np.array([tip.x - pip.x, tip.y - pip.y])
        mag1 = np.linalg.norm(v1)
        mag2 = np.linalg.norm(v2)

        if mag1 < self.thresholds.point_min_segment or mag2 < self.thresholds.point_min_segment:
            return False

        cos_angle = float(np.dot(v1, v2) / (mag1 * mag2))
        return cos_angle < self.thresholds.point_straight_max_cosine

    def detect_pointing(self, landmarks: Sequence[StabilizedLandmark], center) -> PointingResult:
        """
        Detect an extended index finger with the other fingers curled.

        When pointing, the target is the MCP->TIP ray extended past the tip.

        Args:
            landmarks: 21 stabilized landmarks.
            center: Palm center.

        Returns:
            PointingResult with the per-check trace and optional target.
        """
        t = self.thresholds
        index_mcp = landmarks[LandmarkIndex.INDEX_MCP]
        index_pip = landmarks[LandmarkIndex.INDEX_PIP]
        index_tip = landmarks[LandmarkIndex.INDEX_TIP]
        others = (LandmarkIndex.MIDDLE_TIP, LandmarkIndex.RING_TIP, LandmarkIndex.PINKY_TIP)

        classification = _run_checks(GestureType.POINT, [
            ("index_extended",
             lambda: distance_2d(index_tip, center) > t.point_index_extended),
            ("others_curled",
             lambda: all(distance_2d(landmarks[i], center) < t.point_others_curled for i in others)),
            ("index_straight",
             lambda: self.is_finger_straight(index_mcp, index_pip, index_tip)),
        ])

        if not classification.detected:
            return PointingResult(classification)

        dx = index_tip.x - index_mcp.x
        dy = index_tip.y - index_mcp.y
        target = Point2(
            index_tip.x + dx * t.point_extension,
            index_tip.y + dy * t.point_extension
        )
        return PointingResult(classification, target)

    # ------------------------------------------------------------------
    # Field-move gestures
    # ------------------------------------------------------------------

    def classify_open_palm(self, hand: "HandSnapshot") -> ClassifierResult:
        """
        STRICT front-facing open palm ("stop" sign).

        Uses depth to tell the front of the palm from the back of the hand:
        with the palm toward the camera the fingertips are no farther away
        than the knuckles. The thumb side is checked against handedness for
        a mirrored view.

        Args:
            hand: Snapshot with stabilized landmarks and per-frame flags.

        Returns:
            ClassifierResult; any failed check rejects the gesture.
        """
        t = self.thresholds
        lm = hand.landmarks
        center = hand.palm_center
        wrist = lm[LandmarkIndex.WRIST]
        thumb_tip = lm[LandmarkIndex.THUMB_TIP]
        index_mcp = lm[LandmarkIndex.INDEX_MCP]
        pinky_mcp = lm[LandmarkIndex.PINKY_MCP]

        def front_facing() -> bool:
            knuckle_z = np.mean([lm[i].z for i in KNUCKLES])
            fingertip_z = np.mean([lm[i].z for i in FINGERTIPS])
            return fingertip_z < knuckle_z + t.palm_front_depth_tolerance

        def thumb_side() -> bool:
            # Mirrored view: right thumb appears right of the pinky
            if hand.handedness == RIGHT:
                return thumb_tip.x > pinky_mcp.x
            return thumb_tip.x < pinky_mcp.x

        return _run_checks(GestureType.OPEN_PALM, [
            ("not_pinching_or_fist", lambda: not (hand.is_pinching or hand.is_fist)),
            ("upright", lambda: wrist.y > center.y + t.palm_upright_margin),
            ("front_facing", front_facing),
            ("thumb_side", thumb_side),
            ("fingers_extended_up",
             lambda: all(self._is_finger_up(lm, joints, center) for joints in FINGER_JOINTS)),
            ("thumb_extended",
             lambda: distance_2d(thumb_tip, center) > t.palm_thumb_extended),
            ("palm_width", lambda: abs(index_mcp.x - pinky_mcp.x) > t.palm_min_width),
            ("palm_level", lambda: _spread([lm[i].y for i in KNUCKLES]) < t.palm_max_knuckle_y_range),
            ("palm_flat", lambda: _spread([lm[i].z for i in KNUCKLES]) < t.palm_max_knuckle_z_range),
        ])

    def _is_finger_up(
        self, lm: Sequence[StabilizedLandmark], joints: tuple[int, int, int, int], center
    ) -> bool:
        """Finger points up, joints stacked, extended and not bent at PIP."""
        mcp, pip, dip, tip = (lm[i] for i in joints)
        t = self.thresholds

        if not tip.y < mcp.y - t.palm_finger_up_margin:
            return False
        if not (mcp.y > pip.y > dip.y > tip.y):
            return False
        if not distance_2d(tip, center) > t.palm_finger_extended:
            return False

        # Negative dot product at PIP means the finger is roughly a straight line
        dot = (mcp.x - pip.x) * (tip.x - pip.x) + (mcp.y - pip.y) * (tip.y - pip.y)
        return dot < 0

    def classify_upward_fist(self, hand: "HandSnapshot") -> ClassifierResult:
        """Closed fist held knuckles-up with the thumb tucked in."""
        t = self.thresholds
        lm = hand.landmarks
        center = hand.palm_center
        wrist = lm[LandmarkIndex.WRIST]
        knuckle_ys = [lm[i].y for i in KNUCKLES]

        return _run_checks(GestureType.UPWARD_FIST, [
            ("is_fist", lambda: hand.is_fist),
            ("wrist_below_knuckles",
             lambda: wrist.y > float(np.mean(knuckle_ys)) + t.upward_fist_wrist_margin),
            ("knuckles_level", lambda: _spread(knuckle_ys) < t.upward_fist_max_knuckle_y_range),
            ("fingers_curled",
             lambda: self.count_curled_fingers(lm, center) >= t.fist_min_curled),
            ("thumb_tucked",
             lambda: distance_2d(lm[LandmarkIndex.THUMB_TIP], center) < t.upward_fist_thumb_tuck),
        ])

    def classify_open_hand(self, hand: "HandSnapshot") -> ClassifierResult:
        """Hand opened up again; never true together with a fist."""
        return _run_checks(GestureType.OPEN_HAND, [
            ("not_fist", lambda: not hand.is_fist),
            ("fingers_open",
             lambda: self.count_open_fingers(hand.landmarks, hand.palm_center)
             >= self.thresholds.open_hand_min_open),
        ])


def _spread(values: Sequence[float]) -> float:
    """Max minus min."""
    return float(np.ptp(values))
