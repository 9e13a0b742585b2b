"""
Test cases for the field-move state machine with synthetic timestamps.
"""
import unittest

from gesture_field.config import FieldConfig, FieldVariant
from gesture_field.field_state_machine import (
    FieldMode,
    FieldMoveStateMachine,
    FieldSignal,
    MovePendingState,
    MovingState,
    NormalState,
)
from gesture_field.hand_landmarks import LEFT, Point2

from tests.synthetic_hands import (
    RIGHT_OPEN_PALM,
    RIGHT_UPWARD_FIST,
    mirror,
    snapshot,
)

CENTER = Point2(640.0, 360.0)


def start(position: Point2 = CENTER) -> FieldSignal:
    return FieldSignal(position, start_detected=True)


def hover(position: Point2 = CENTER) -> FieldSignal:
    return FieldSignal(position)


def lock(position: Point2 = CENTER) -> FieldSignal:
    return FieldSignal(position, lock_detected=True)


NO_HAND = FieldSignal()


class FieldTestCase(unittest.TestCase):

    def setUp(self):
        self.field = FieldMoveStateMachine(1280, 720, FieldConfig())
        self.notified = []
        self.field.set_on_bounds_changed(self.notified.append)

    def enter_moving(self):
        self.field.update(start(), 0.0)
        self.field.update(start(), 3000.0)
        self.assertEqual(self.field.mode, FieldMode.MOVING)


class TestDefaults(FieldTestCase):

    def test_default_bounds_centered_80_percent(self):
        bounds = self.field.bounds

        self.assertAlmostEqual(bounds.x, 128.0)
        self.assertAlmostEqual(bounds.y, 72.0)
        self.assertAlmostEqual(bounds.width, 1024.0)
        self.assertAlmostEqual(bounds.height, 576.0)
        self.assertAlmostEqual(bounds.right, 1152.0)
        self.assertAlmostEqual(bounds.bottom, 648.0)
        self.assertEqual(self.field.mode, FieldMode.NORMAL)
        self.assertEqual(self.field.progress, 0.0)

    def test_bounds_are_copies(self):
        bounds = self.field.bounds
        bounds.x = 999.0

        self.assertAlmostEqual(self.field.bounds.x, 128.0)


class TestTransitions(FieldTestCase):

    def test_happy_path(self):
        """Test normal -> pending -> moving -> normal with commit callback."""
        self.field.update(start(), 0.0)
        self.assertIsInstance(self.field.state, MovePendingState)
        self.assertEqual(self.field.progress, 0.0)

        self.field.update(start(), 1500.0)
        self.assertEqual(self.field.mode, FieldMode.MOVE_PENDING)
        self.assertAlmostEqual(self.field.progress, 0.5)

        self.field.update(start(), 3000.0)
        self.assertIsInstance(self.field.state, MovingState)
        self.assertEqual(self.field.progress, 1.0)

        self.field.update(hover(Point2(600.0, 330.0)), 3033.0)
        self.assertAlmostEqual(self.field.bounds.x, 88.0)
        self.assertAlmostEqual(self.field.bounds.y, 42.0)
        self.assertEqual(self.notified, [])

        self.field.update(lock(Point2(600.0, 330.0)), 3066.0)
        self.assertIsInstance(self.field.state, NormalState)
        self.assertEqual(self.field.progress, 0.0)
        self.assertEqual(len(self.notified), 1)
        self.assertAlmostEqual(self.notified[0].x, 88.0)

    def test_start_not_needed_while_moving(self):
        """Test that any non-lock hand drags the field."""
        self.enter_moving()
        self.field.update(hover(), 3100.0)

        self.assertEqual(self.field.mode, FieldMode.MOVING)

    def test_lock_ignored_outside_moving(self):
        self.field.update(lock(), 0.0)

        self.assertEqual(self.field.mode, FieldMode.NORMAL)
        self.assertEqual(self.notified, [])

    def test_cancel_when_gesture_released(self):
        self.field.update(start(), 0.0)
        self.field.update(start(), 2000.0)
        self.field.update(hover(), 2100.0)

        self.assertEqual(self.field.mode, FieldMode.NORMAL)
        self.assertEqual(self.field.progress, 0.0)
        self.assertEqual(self.notified, [])

    def test_cancel_when_hand_lost(self):
        self.field.update(start(), 0.0)
        self.field.update(NO_HAND, 500.0)

        self.assertEqual(self.field.mode, FieldMode.NORMAL)
        self.assertEqual(self.notified, [])

        # The hold restarts from scratch
        self.field.update(start(), 600.0)
        self.field.update(start(), 3000.0)
        self.assertEqual(self.field.mode, FieldMode.MOVE_PENDING)
        self.assertAlmostEqual(self.field.progress, 2400.0 / 3000.0)

    def test_occlusion_freezes_moving(self):
        """Test that losing the hand while moving changes nothing."""
        self.enter_moving()
        self.field.update(hover(Point2(600.0, 330.0)), 3033.0)
        before = self.field.bounds

        self.field.update(NO_HAND, 3066.0)
        self.field.update(NO_HAND, 9000.0)

        self.assertEqual(self.field.mode, FieldMode.MOVING)
        self.assertEqual(self.field.bounds, before)

    def test_clamped_to_screen(self):
        self.enter_moving()

        self.field.update(hover(Point2(100.0, 100.0)), 3033.0)
        self.assertEqual((self.field.bounds.x, self.field.bounds.y), (0.0, 0.0))

        self.field.update(hover(Point2(1200.0, 700.0)), 3066.0)
        self.assertAlmostEqual(self.field.bounds.x, 256.0)
        self.assertAlmostEqual(self.field.bounds.y, 144.0)
        self.assertAlmostEqual(self.field.bounds.right, 1280.0)
        self.assertAlmostEqual(self.field.bounds.bottom, 720.0)

    def test_last_palm_position(self):
        self.field.update(start(Point2(10.0, 20.0)), 0.0)

        self.assertEqual(self.field.last_palm_position, Point2(10.0, 20.0))


class TestExplicitControl(FieldTestCase):

    def test_resize_is_proportional(self):
        self.field.resize(640, 360)

        bounds = self.field.bounds
        self.assertAlmostEqual(bounds.x, 64.0)
        self.assertAlmostEqual(bounds.y, 36.0)
        self.assertAlmostEqual(bounds.width, 512.0)
        self.assertAlmostEqual(bounds.height, 288.0)
        self.assertEqual(len(self.notified), 1)
        self.assertEqual(self.field.screen_size, (640.0, 360.0))

    def test_resize_from_empty_viewport(self):
        """Test that a field created before the viewport size is known gets default bounds."""
        field = FieldMoveStateMachine(0, 0)
        notified = []
        field.set_on_bounds_changed(notified.append)

        field.resize(1280, 720)

        bounds = field.bounds
        self.assertAlmostEqual(bounds.x, 128.0)
        self.assertAlmostEqual(bounds.y, 72.0)
        self.assertAlmostEqual(bounds.width, 1024.0)
        self.assertAlmostEqual(bounds.height, 576.0)
        self.assertEqual(len(notified), 1)

    def test_reset_to_default(self):
        self.enter_moving()
        self.field.update(hover(Point2(100.0, 100.0)), 3033.0)

        self.field.reset_to_default()

        self.assertEqual(self.field.mode, FieldMode.NORMAL)
        self.assertAlmostEqual(self.field.bounds.x, 128.0)
        self.assertEqual(len(self.notified), 1)

    def test_hidden_field_ignores_updates(self):
        self.field.set_visible(False)
        self.field.update(start(), 0.0)

        self.assertEqual(self.field.mode, FieldMode.NORMAL)
        self.assertEqual(self.notified, [])

    def test_showing_resets(self):
        self.enter_moving()
        self.field.toggle_visibility()
        self.assertFalse(self.field.visible)

        self.field.toggle_visibility()

        self.assertTrue(self.field.visible)
        self.assertEqual(self.field.mode, FieldMode.NORMAL)
        self.assertEqual(len(self.notified), 1)

    def test_callback_errors_are_contained(self):
        def broken(bounds):
            raise ValueError("boom")

        self.field.set_on_bounds_changed(broken)
        self.field.reset_to_default()

        self.assertEqual(self.field.mode, FieldMode.NORMAL)


class TestSignalFromHands(unittest.TestCase):
    """Test dominant hand selection and per-variant classification."""

    def test_palm_variant(self):
        field = FieldMoveStateMachine(1280, 720, FieldConfig(variant=FieldVariant.PALM))

        palm = field.signal_from_hands([snapshot(RIGHT_OPEN_PALM)])
        self.assertTrue(palm.start_detected)
        self.assertFalse(palm.lock_detected)
        self.assertAlmostEqual(palm.palm_position.x, 629.0, places=4)

        fist = field.signal_from_hands([snapshot(RIGHT_UPWARD_FIST)])
        self.assertFalse(fist.start_detected)
        self.assertTrue(fist.lock_detected)

    def test_fist_variant(self):
        field = FieldMoveStateMachine(1280, 720, FieldConfig(variant=FieldVariant.FIST))

        fist = field.signal_from_hands([snapshot(RIGHT_UPWARD_FIST)])
        self.assertTrue(fist.start_detected)
        self.assertFalse(fist.lock_detected)

        palm = field.signal_from_hands([snapshot(RIGHT_OPEN_PALM)])
        self.assertFalse(palm.start_detected)
        self.assertTrue(palm.lock_detected)

    def test_no_hands(self):
        field = FieldMoveStateMachine(1280, 720)

        self.assertFalse(field.signal_from_hands([]).has_hand)

    def test_primary_hand_preferred(self):
        """Test that the Right hand wins even when listed second."""
        field = FieldMoveStateMachine(1280, 720)
        left_fist = snapshot(mirror(RIGHT_UPWARD_FIST), LEFT)
        right_palm = snapshot(RIGHT_OPEN_PALM)

        signal = field.signal_from_hands([left_fist, right_palm])

        self.assertTrue(signal.start_detected)
        self.assertAlmostEqual(signal.palm_position.x, 629.0, places=4)

    def test_first_hand_without_primary(self):
        field = FieldMoveStateMachine(1280, 720)
        left_palm = snapshot(mirror(RIGHT_OPEN_PALM), LEFT)

        signal = field.signal_from_hands([left_palm])

        self.assertTrue(signal.start_detected)
        self.assertAlmostEqual(signal.palm_position.x, 651.0, places=4)


if __name__ == "__main__":
    unittest.main()
