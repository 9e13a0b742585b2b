"""
Test cases for gesture classification with synthetic hand poses.
"""
import unittest

from gesture_field.config import GestureThresholds
from gesture_field.gesture_recognizer import GestureRecognizer, GestureType
from gesture_field.hand_landmarks import LEFT, RIGHT, LandmarkIndex, Point2
from gesture_field.hand_tracker import HandTracker

from tests.synthetic_hands import (
    RIGHT_OPEN_PALM,
    RIGHT_POINTING,
    RIGHT_UPWARD_FIST,
    VIEWPORT,
    default_depths,
    make_hand,
    mirror,
    snapshot,
    with_points,
)

# Ring finger folded down into the palm
RING_CURLED = {
    LandmarkIndex.RING_PIP: (600, 420),
    LandmarkIndex.RING_DIP: (603, 458),
    LandmarkIndex.RING_TIP: (605, 488),
}


class TestPerFrameFlags(unittest.TestCase):
    """Test fist, pinch and pointing flags."""

    def test_open_palm_flags(self):
        hand = snapshot(RIGHT_OPEN_PALM)

        self.assertFalse(hand.is_fist)
        self.assertFalse(hand.is_pinching)
        self.assertEqual(hand.pinch_strength, 0.0)
        self.assertFalse(hand.is_pointing)
        self.assertIsNone(hand.pointing_at)

    def test_fist(self):
        hand = snapshot(RIGHT_UPWARD_FIST)

        self.assertTrue(hand.is_fist)

    def test_pinch_strength(self):
        """Test pinch below 70 px with strength 1 - d / 160."""
        pose = with_points(RIGHT_OPEN_PALM, {LandmarkIndex.THUMB_TIP: (704, 355)})
        hand = snapshot(pose)

        self.assertTrue(hand.is_pinching)
        self.assertAlmostEqual(hand.pinch_strength, 0.75, places=6)

    def test_pinch_strength_clamped(self):
        """Test that strength never goes negative for a wide open hand."""
        recognizer = GestureRecognizer()
        result = recognizer.detect_pinch(snapshot(RIGHT_OPEN_PALM).landmarks)

        self.assertFalse(result.is_pinching)
        self.assertEqual(result.strength, 0.0)

    def test_pointing_target(self):
        """Test that the target extends the MCP->TIP ray twice past the tip."""
        hand = snapshot(RIGHT_POINTING)

        self.assertTrue(hand.is_pointing)
        self.assertAlmostEqual(hand.pointing_at.x, 712.0, places=4)
        self.assertAlmostEqual(hand.pointing_at.y, 45.0, places=4)

    def test_pointing_rejects_bent_index(self):
        """Test that a hooked index finger is not pointing."""
        pose = with_points(RIGHT_POINTING, {LandmarkIndex.INDEX_TIP: (760, 430)})
        hand = snapshot(pose)
        result = GestureRecognizer().detect_pointing(hand.landmarks, hand.palm_center)

        self.assertFalse(result.is_pointing)
        self.assertEqual(result.classification.failed_check, "index_straight")
        self.assertIsNone(result.target)

    def test_degenerate_segment_is_not_straight(self):
        recognizer = GestureRecognizer()
        same = Point2(10.0, 10.0)

        self.assertFalse(recognizer.is_finger_straight(same, same, Point2(10.0, 50.0)))
        self.assertTrue(recognizer.is_finger_straight(
            Point2(10.0, 100.0), Point2(10.0, 60.0), Point2(10.0, 10.0)
        ))


class TestPinchPartialTolerance(unittest.TestCase):
    """Test pinch with an off-screen fingertip bridged by persistence."""

    def setUp(self):
        self.tracker = HandTracker()
        # Thumb and index tips 40 px apart
        self.pose = with_points(RIGHT_OPEN_PALM, {LandmarkIndex.THUMB_TIP: (704, 355)})

    def test_remembered_fingertip_still_pinches(self):
        self.tracker.process([make_hand(self.pose)], VIEWPORT, 0.0)

        hand = make_hand(self.pose)
        hand.landmarks[LandmarkIndex.THUMB_TIP].x = 1.3  # Off-screen
        result = self.tracker.process([hand], VIEWPORT, 100.0)[0]

        self.assertFalse(result.landmarks[LandmarkIndex.THUMB_TIP].visible)
        self.assertTrue(result.is_pinching)
        self.assertTrue(result.is_partial)

    def test_pinch_held_through_short_occlusion(self):
        """Test that a thumb hidden for 198 ms at 30 fps still pinches."""
        self.tracker.process([make_hand(self.pose)], VIEWPORT, 0.0)

        hand = make_hand(self.pose)
        hand.landmarks[LandmarkIndex.THUMB_TIP].x = 1.3
        for frame in range(1, 7):
            result = self.tracker.process([hand], VIEWPORT, frame * 33.0)[0]

        self.assertAlmostEqual(result.landmarks[LandmarkIndex.THUMB_TIP].confidence, 0.505)
        self.assertTrue(result.is_pinching)

    def test_low_confidence_fingertip_is_unusable(self):
        self.tracker.process([make_hand(self.pose)], VIEWPORT, 0.0)

        hand = make_hand(self.pose)
        hand.landmarks[LandmarkIndex.THUMB_TIP].x = 1.3
        self.tracker.process([hand], VIEWPORT, 100.0)  # confidence 0.75
        result = self.tracker.process([hand], VIEWPORT, 300.0)[0]  # 0.25

        self.assertFalse(result.is_pinching)
        self.assertEqual(result.pinch_strength, 0.0)


class TestOpenPalm(unittest.TestCase):
    """Test the strict front-facing open palm classifier."""

    def setUp(self):
        self.recognizer = GestureRecognizer(GestureThresholds())

    def classify(self, pose, handedness=RIGHT, depths=None):
        return self.recognizer.classify_open_palm(snapshot(pose, handedness, depths))

    def test_right_palm_detected(self):
        result = self.classify(RIGHT_OPEN_PALM)

        self.assertTrue(result.detected)
        self.assertEqual(result.gesture, GestureType.OPEN_PALM)
        self.assertIsNone(result.failed_check)
        self.assertEqual(len(result.checks), 9)

    def test_mirrored_left_palm_detected(self):
        """Test Left/Right symmetry under horizontal mirroring."""
        result = self.classify(mirror(RIGHT_OPEN_PALM), LEFT)

        self.assertTrue(result.detected)

    def test_wrong_handedness_fails_thumb_side(self):
        """Test that the back of the other hand is rejected by thumb side."""
        self.assertEqual(self.classify(RIGHT_OPEN_PALM, LEFT).failed_check, "thumb_side")
        self.assertEqual(self.classify(mirror(RIGHT_OPEN_PALM), RIGHT).failed_check, "thumb_side")

    def test_rejected_when_pinching(self):
        pose = with_points(RIGHT_OPEN_PALM, {LandmarkIndex.THUMB_TIP: (720, 330)})

        self.assertEqual(self.classify(pose).failed_check, "not_pinching_or_fist")

    def test_rejected_when_not_upright(self):
        pose = with_points(RIGHT_OPEN_PALM, {LandmarkIndex.WRIST: (640, 470)})

        self.assertEqual(self.classify(pose).failed_check, "upright")

    def test_rejected_when_back_of_hand(self):
        result = self.classify(RIGHT_OPEN_PALM, depths=default_depths(front_facing=False))

        self.assertEqual(result.failed_check, "front_facing")

    def test_rejected_when_finger_curled(self):
        pose = with_points(RIGHT_OPEN_PALM, RING_CURLED)

        self.assertEqual(self.classify(pose).failed_check, "fingers_extended_up")

    def test_rejected_when_thumb_tucked(self):
        pose = with_points(RIGHT_OPEN_PALM, {LandmarkIndex.THUMB_TIP: (660, 500)})

        self.assertEqual(self.classify(pose).failed_check, "thumb_extended")

    def test_rejected_when_palm_narrow(self):
        """Test that a sideways palm fails the width check."""
        thresholds = GestureThresholds(palm_min_width=200.0)
        result = GestureRecognizer(thresholds).classify_open_palm(snapshot(RIGHT_OPEN_PALM))

        self.assertEqual(result.failed_check, "palm_width")

    def test_rejected_when_palm_tilted(self):
        pose = with_points(RIGHT_OPEN_PALM, {LandmarkIndex.PINKY_MCP: (555, 500)})

        self.assertEqual(self.classify(pose).failed_check, "palm_level")

    def test_rejected_when_palm_not_flat(self):
        depths = default_depths()
        depths[LandmarkIndex.PINKY_MCP] = 0.04
        result = self.classify(RIGHT_OPEN_PALM, depths=depths)

        self.assertEqual(result.failed_check, "palm_flat")

    def test_evaluation_stops_at_first_failure(self):
        pose = with_points(RIGHT_OPEN_PALM, {LandmarkIndex.WRIST: (640, 470)})
        result = self.classify(pose)

        self.assertEqual([c.name for c in result.checks], ["not_pinching_or_fist", "upright"])
        self.assertFalse(result)


class TestUpwardFistAndOpenHand(unittest.TestCase):
    """Test the fist-variant gesture pair."""

    def setUp(self):
        self.recognizer = GestureRecognizer()

    def test_upward_fist_detected(self):
        result = self.recognizer.classify_upward_fist(snapshot(RIGHT_UPWARD_FIST))

        self.assertTrue(result.detected)
        self.assertEqual(result.gesture, GestureType.UPWARD_FIST)

    def test_upward_fist_needs_wrist_below(self):
        """Test that a fist held knuckles-down is rejected."""
        pose = with_points(RIGHT_UPWARD_FIST, {LandmarkIndex.WRIST: (640, 470)})
        result = self.recognizer.classify_upward_fist(snapshot(pose))

        self.assertEqual(result.failed_check, "wrist_below_knuckles")

    def test_upward_fist_needs_thumb_tucked(self):
        pose = with_points(RIGHT_UPWARD_FIST, {LandmarkIndex.THUMB_TIP: (780, 520)})
        result = self.recognizer.classify_upward_fist(snapshot(pose))

        self.assertEqual(result.failed_check, "thumb_tucked")

    def test_open_palm_is_not_upward_fist(self):
        result = self.recognizer.classify_upward_fist(snapshot(RIGHT_OPEN_PALM))

        self.assertEqual(result.failed_check, "is_fist")

    def test_open_hand_detected(self):
        result = self.recognizer.classify_open_hand(snapshot(RIGHT_OPEN_PALM))

        self.assertTrue(result.detected)

    def test_fist_and_open_hand_mutually_exclusive(self):
        """Test that no pose is both a fist and an open hand."""
        poses = [
            RIGHT_OPEN_PALM,
            RIGHT_UPWARD_FIST,
            RIGHT_POINTING,
            with_points(RIGHT_OPEN_PALM, RING_CURLED),
        ]
        for pose in poses:
            hand = snapshot(pose)
            open_hand = self.recognizer.classify_open_hand(hand)
            self.assertFalse(hand.is_fist and open_hand.detected)

    def test_one_curled_finger_still_open_hand(self):
        """Test that three open fingers are enough."""
        hand = snapshot(with_points(RIGHT_OPEN_PALM, RING_CURLED))

        self.assertTrue(self.recognizer.classify_open_hand(hand).detected)


if __name__ == "__main__":
    unittest.main()
