#!/usr/bin/env python3
"""
Webcam Field Tracker

Main entry point for Gesture Field. Runs the gesture pipeline on a live
webcam feed and draws the movable field on a mirrored preview window.

Usage:
    gesture-field [--profile <path>] [--camera <index>] [--variant palm|fist]
                  [--no-mirror] [--debug [--frame-debug]]

Keys:
    q / ESC  quit
    r        reset field to default
    v        toggle field visibility
    e        pause / resume gesture processing

Exit Codes:
    0 - Success
    1 - Profile error
    2 - Camera error
    3 - Runtime error
"""

import argparse
import signal
import sys
import time
from typing import Optional

import cv2
import numpy as np

from .camera_manager import CameraError, CameraManager, select_camera
from .config import (
    EXIT_CAMERA_ERROR,
    EXIT_PROFILE_ERROR,
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    FieldVariant,
)
from .field_state_machine import FieldBounds, FieldMode
from .hand_detector import HandDetector
from .hand_landmarks import HAND_CONNECTIONS
from .hand_tracker import HandSnapshot
from .logger import get_logger, setup_logging
from .pipeline import FrameResult, GesturePipeline
from .profile_loader import (
    GestureFieldProfile,
    ProfileLoadError,
    create_default_profile,
    load_profile,
)

WINDOW_NAME = "Gesture Field"

# BGR colours
COLOR_FIELD_NORMAL = (220, 220, 220)
COLOR_FIELD_ACTIVE = (94, 197, 34)
COLOR_HAND = (0, 255, 0)
COLOR_BONE = (0, 0, 255)
COLOR_PERSISTED = (128, 128, 128)
COLOR_TEXT = (0, 255, 255)


class FieldTrackerApp:
    """
    Main application for the webcam field tracker.

    Integrates camera capture, hand detection and the gesture pipeline
    into a real-time loop with a preview window.
    """

    def __init__(
        self,
        profile: GestureFieldProfile,
        camera_index: int,
        mirror: bool = True,
        debug: bool = False
    ):
        """
        Initialize field tracker application.

        Args:
            profile: Loaded profile configuration.
            camera_index: Camera device index.
            mirror: Mirror the camera image (selfie view).
            debug: Draw landmarks and per-hand diagnostics.
        """
        self.profile = profile
        self.camera_index = camera_index
        self.mirror = mirror
        self.debug = debug

        self._logger = get_logger("App")
        self._running = False

        self._camera: Optional[CameraManager] = None
        self._detector: Optional[HandDetector] = None
        self._pipeline: Optional[GesturePipeline] = None

        # Stats
        self._frame_count = 0
        self._start_time = 0.0
        self._last_fps_time = 0.0
        self._fps = 0.0

    def initialize(self) -> None:
        """
        Initialize all components.

        Raises:
            CameraError: If the camera cannot be opened.
        """
        self._logger.info("Initializing field tracker...")

        self._camera = CameraManager(camera_index=self.camera_index, mirror=self.mirror)
        self._camera.open()

        self._detector = HandDetector()
        self._detector.initialize()

        width, height = self._camera.frame_size
        self._pipeline = GesturePipeline(width, height, self.profile.config)
        self._pipeline.set_on_bounds_changed(self._on_bounds_changed)

        self._logger.info(
            f"Field tracker initialized (profile={self.profile.name}, "
            f"variant={self.profile.config.field_move.variant.value})"
        )

    def _on_bounds_changed(self, bounds: FieldBounds) -> None:
        self._logger.info(
            f"Field bounds: x={bounds.x:.0f} y={bounds.y:.0f} "
            f"w={bounds.width:.0f} h={bounds.height:.0f}"
        )

    def run(self) -> None:
        """Run the main tracking loop."""
        self._running = True
        self._start_time = time.perf_counter()
        self._last_fps_time = self._start_time

        self._logger.info("Starting tracking loop...")

        try:
            while self._running:
                self._process_frame()
                if not self._handle_key(cv2.waitKey(1) & 0xFF):
                    break
        except KeyboardInterrupt:
            self._logger.info("Interrupted by user")
        finally:
            self.stop()

    def _handle_key(self, key: int) -> bool:
        """Handle a key press. Returns False to quit."""
        if key in (ord('q'), 27):  # q or ESC
            self._logger.info("Quit key pressed")
            return False
        if self._pipeline is None:
            return True
        if key == ord('r'):
            self._pipeline.reset_field()
        elif key == ord('v'):
            self._pipeline.field.toggle_visibility()
            self._logger.info(f"Field visible: {self._pipeline.field.visible}")
        elif key == ord('e'):
            self._pipeline.enabled = not self._pipeline.enabled
            self._logger.info(f"Gesture processing enabled: {self._pipeline.enabled}")
        return True

    def _process_frame(self) -> None:
        """Process a single frame."""
        if self._camera is None or self._detector is None or self._pipeline is None:
            return

        frame = self._camera.read()
        if frame is None:
            return

        self._frame_count += 1

        if frame.size != tuple(int(v) for v in self._pipeline.viewport):
            self._pipeline.resize(*frame.size)

        raw_hands = self._detector.detect(frame.image, frame.timestamp_ms)
        result = self._pipeline.process_frame(frame.timestamp_ms, raw_hands)

        self._show_frame(frame.image, result)
        self._update_fps()

    def _show_frame(self, frame: np.ndarray, result: FrameResult) -> None:
        """Draw the field, hands and status text, then show the window."""
        if self._pipeline.field.visible and result.bounds is not None:
            _draw_field(frame, result.bounds, result.mode, result.progress)

        for hand in result.hands:
            if self.debug:
                _draw_hand(frame, hand)
            else:
                center = (int(hand.palm_center.x), int(hand.palm_center.y))
                cv2.circle(frame, center, 6, COLOR_HAND, -1)

        status = f"Mode: {result.mode.value}"
        if result.mode == FieldMode.MOVE_PENDING:
            status += f" ({result.progress:.0%})"
        if not self._pipeline.enabled:
            status += " [paused]"
        cv2.putText(frame, status, (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.8, COLOR_TEXT, 2)
        cv2.putText(
            frame, f"FPS: {self._fps:.1f}", (10, 60),
            cv2.FONT_HERSHEY_SIMPLEX, 0.6, COLOR_TEXT, 1
        )

        cv2.imshow(WINDOW_NAME, frame)

    def _update_fps(self) -> None:
        """Update FPS calculation."""
        current_time = time.perf_counter()
        elapsed = current_time - self._last_fps_time

        if elapsed >= 1.0:
            self._fps = self._frame_count / (current_time - self._start_time)
            self._last_fps_time = current_time

    def stop(self) -> None:
        """Stop the tracking loop and cleanup."""
        if not self._running and self._camera is None:
            return
        self._running = False
        self._logger.info("Stopping field tracker...")

        if self._detector:
            self._detector.close()
            self._detector = None

        if self._camera:
            self._camera.close()
            self._camera = None

        cv2.destroyAllWindows()

        if self._frame_count > 0:
            elapsed = time.perf_counter() - self._start_time
            avg_fps = self._frame_count / elapsed if elapsed > 0 else 0
            self._logger.info(
                f"Tracking stopped. Processed {self._frame_count} frames "
                f"in {elapsed:.1f}s ({avg_fps:.1f} FPS average)"
            )


def _draw_field(image: np.ndarray, bounds: FieldBounds, mode: FieldMode, progress: float) -> None:
    """Draw the field border and the hold-progress bar."""
    top_left = (int(bounds.x), int(bounds.y))
    bottom_right = (int(bounds.right), int(bounds.bottom))

    if mode == FieldMode.NORMAL:
        cv2.rectangle(image, top_left, bottom_right, COLOR_FIELD_NORMAL, 3)
        return

    cv2.rectangle(image, top_left, bottom_right, COLOR_FIELD_ACTIVE, 5)
    if mode == FieldMode.MOVE_PENDING:
        bar_end = int(bounds.x + bounds.width * progress)
        cv2.rectangle(
            image,
            (int(bounds.x), int(bounds.bottom) - 12),
            (bar_end, int(bounds.bottom) - 4),
            COLOR_FIELD_ACTIVE,
            -1
        )


def _draw_hand(image: np.ndarray, hand: HandSnapshot) -> None:
    """Draw the stabilized skeleton; persisted landmarks in grey."""
    points = [(int(lm.x), int(lm.y)) for lm in hand.landmarks]

    for start_idx, end_idx in HAND_CONNECTIONS:
        cv2.line(image, points[start_idx], points[end_idx], COLOR_BONE, 2)

    for lm, pt in zip(hand.landmarks, points):
        cv2.circle(image, pt, 3, COLOR_HAND if lm.visible else COLOR_PERSISTED, -1)

    flags = [
        name for name, on in (
            ("pinch", hand.is_pinching),
            ("fist", hand.is_fist),
            ("point", hand.is_pointing),
            ("partial", hand.is_partial),
        ) if on
    ]
    label = f"{hand.handedness} {' '.join(flags)}".strip()
    anchor = (int(hand.palm_center.x) + 10, int(hand.palm_center.y))
    cv2.putText(image, label, anchor, cv2.FONT_HERSHEY_SIMPLEX, 0.5, COLOR_TEXT, 1)

    if hand.pointing_at is not None:
        tip = points[8]
        target = (int(hand.pointing_at.x), int(hand.pointing_at.y))
        cv2.arrowedLine(image, tip, target, COLOR_TEXT, 2)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Gesture Field - move an on-screen field with hand gestures",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exit Codes:
  0  Success
  1  Profile error (file not found, invalid JSON or values)
  2  Camera error (camera not available)
  3  Runtime error (unexpected error)

Examples:
  gesture-field
  gesture-field --profile lab.json --camera 1
  gesture-field --variant fist --debug
"""
    )

    parser.add_argument(
        "--profile", "-p",
        default=None,
        help="Path to JSON profile file (default: built-in defaults)"
    )

    parser.add_argument(
        "--camera", "-c",
        type=int,
        default=-1,
        help="Camera index (default: auto-detect)"
    )

    parser.add_argument(
        "--variant",
        choices=[v.value for v in FieldVariant],
        default=None,
        help="Gesture pair that moves the field (overrides the profile)"
    )

    parser.add_argument(
        "--no-mirror",
        action="store_true",
        help="Do not mirror the camera image"
    )

    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug logging and landmark drawing"
    )

    parser.add_argument(
        "--frame-debug",
        action="store_true",
        help="With --debug, also log per-frame gesture details"
    )

    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code.
    """
    args = parse_args(argv)

    logger = setup_logging(debug=args.debug, frame_debug=args.frame_debug)
    logger.info("Gesture Field starting...")

    try:
        profile = load_profile(args.profile) if args.profile else create_default_profile()
    except ProfileLoadError as e:
        logger.error(f"Failed to load profile: {e}")
        return EXIT_PROFILE_ERROR

    if args.variant:
        profile.config.field_move.variant = FieldVariant(args.variant)

    try:
        camera_index = select_camera(args.camera)
    except CameraError as e:
        logger.error(f"Camera selection failed: {e}")
        return EXIT_CAMERA_ERROR

    app: Optional[FieldTrackerApp] = None

    try:
        app = FieldTrackerApp(
            profile=profile,
            camera_index=camera_index,
            mirror=not args.no_mirror,
            debug=args.debug
        )

        def signal_handler(sig, frame):
            logger.info("Received shutdown signal")
            if app:
                app.stop()

        signal.signal(signal.SIGINT, signal_handler)
        # SIGTERM is not available on Windows
        if sys.platform != 'win32':
            signal.signal(signal.SIGTERM, signal_handler)

        app.initialize()
        app.run()

        return EXIT_SUCCESS

    except CameraError as e:
        logger.error(f"Camera error: {e}")
        return EXIT_CAMERA_ERROR
    except Exception as e:
        logger.exception(f"Runtime error: {e}")
        return EXIT_RUNTIME_ERROR
    finally:
        if app:
            app.stop()


if __name__ == "__main__":
    sys.exit(main())
