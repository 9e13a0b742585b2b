"""
Gesture pipeline: the single per-frame entry point.

Owns the hand tracker and the field-move state machine and wires them
together for one viewport.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from .config import PipelineConfig
from .field_state_machine import FieldBounds, FieldMode, FieldMoveStateMachine
from .gesture_recognizer import GestureRecognizer
from .hand_landmarks import RawHand
from .hand_tracker import HandSnapshot, HandTracker
from .landmark_stabilizer import LandmarkStabilizer
from .logger import get_logger
from .velocity_tracker import VelocityTracker

logger = get_logger("GesturePipeline")


@dataclass
class FrameResult:
    """Outcome of one processed frame."""
    timestamp: float
    hands: list[HandSnapshot] = field(default_factory=list)
    mode: FieldMode = FieldMode.NORMAL
    progress: float = 0.0
    bounds: Optional[FieldBounds] = None


class GesturePipeline:
    """
    Runs hand tracking and the field state machine once per frame.

    Example:
        pipeline = GesturePipeline(1280, 720)
        pipeline.set_on_bounds_changed(lambda b: print(b))
        result = pipeline.process_frame(timestamp_ms, raw_hands)
    """

    def __init__(
        self,
        screen_width: float,
        screen_height: float,
        config: Optional[PipelineConfig] = None
    ):
        """
        Initialize gesture pipeline.

        Args:
            screen_width: Viewport width in pixels.
            screen_height: Viewport height in pixels.
            config: Pipeline configuration. Uses defaults if None.
        """
        self.config = config or PipelineConfig()
        self._viewport = (float(screen_width), float(screen_height))

        recognizer = GestureRecognizer(self.config.gestures)
        self.tracker = HandTracker(
            stabilizer=LandmarkStabilizer(self.config.stabilizer),
            velocity_tracker=VelocityTracker(self.config.velocity),
            recognizer=recognizer
        )
        self.field = FieldMoveStateMachine(
            screen_width, screen_height, self.config.field_move, recognizer
        )

        self.enabled = True
        self._last_result: Optional[FrameResult] = None
        self._frame_count = 0
        self._on_hands_detected: Optional[Callable[[list[HandSnapshot]], None]] = None

        logger.info(f"GesturePipeline initialized ({screen_width}x{screen_height})")

    def set_on_hands_detected(
        self, callback: Optional[Callable[[list[HandSnapshot]], None]]
    ) -> None:
        """Set the callback fired with the hand snapshots of every processed frame."""
        self._on_hands_detected = callback

    def set_on_bounds_changed(self, callback: Optional[Callable[[FieldBounds], None]]) -> None:
        """Set the callback fired when the field bounds are committed, resized or reset."""
        self.field.set_on_bounds_changed(callback)

    def process_frame(self, timestamp: float, hands: Sequence[RawHand]) -> FrameResult:
        """
        Process one frame of detector output.

        Args:
            timestamp: Frame timestamp in milliseconds, non-decreasing.
            hands: Raw hands detected this frame (may be empty).

        Returns:
            FrameResult; while disabled, the last result unchanged.
        """
        if not self.enabled:
            if self._last_result is None:
                return self._snapshot(timestamp, [])
            return self._last_result

        snapshots = self.tracker.process(hands, self._viewport, timestamp)
        previous_mode = self.field.mode
        self.field.update_from_hands(snapshots, timestamp)

        if self.field.mode != previous_mode:
            logger.debug(f"Field mode {previous_mode.value} -> {self.field.mode.value}")

        result = self._snapshot(timestamp, snapshots)
        self._last_result = result
        self._frame_count += 1

        if self._on_hands_detected is not None:
            try:
                self._on_hands_detected(snapshots)
            except Exception as e:
                logger.error(f"Error in hands callback: {e}")

        return result

    def _snapshot(self, timestamp: float, hands: list[HandSnapshot]) -> FrameResult:
        return FrameResult(
            timestamp=timestamp,
            hands=hands,
            mode=self.field.mode,
            progress=self.field.progress,
            bounds=self.field.bounds
        )

    def resize(self, screen_width: float, screen_height: float) -> None:
        """Change the viewport; the field keeps its relative placement."""
        self._viewport = (float(screen_width), float(screen_height))
        self.field.resize(screen_width, screen_height)

    def reset_field(self) -> None:
        """Put the field back to its default placement."""
        self.field.reset_to_default()

    def reset(self) -> None:
        """Drop all per-hand history and reset the field."""
        self.tracker.reset()
        self.field.reset_to_default()
        self._last_result = None
        logger.info("GesturePipeline reset")

    @property
    def last_result(self) -> Optional[FrameResult]:
        return self._last_result

    @property
    def viewport(self) -> tuple[float, float]:
        return self._viewport

    @property
    def frame_count(self) -> int:
        """Get number of frames processed while enabled."""
        return self._frame_count
