"""
Field-move state machine for Gesture Field.

A rectangular field is repositioned by gesture: hold the start gesture
for a few seconds to enter move mode, move the hand to drag the field,
then make the lock gesture to place it.

    NORMAL --start--> MOVE_PENDING --held 3s--> MOVING --lock--> NORMAL
                          |                        |
                      released                 no hand: frozen
                          v
                        NORMAL
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional, Sequence, Union

import numpy as np

from .config import FieldConfig, FieldVariant
from .gesture_recognizer import GestureRecognizer
from .hand_landmarks import Point2
from .hand_tracker import HandSnapshot
from .logger import get_logger

logger = get_logger("FieldStateMachine")


class FieldMode(Enum):
    """Externally visible mode of the field."""
    NORMAL = "normal"
    MOVE_PENDING = "move-pending"
    MOVING = "moving"


@dataclass
class FieldBounds:
    """Axis-aligned field rectangle in screen pixels."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def copy(self) -> "FieldBounds":
        return replace(self)


@dataclass(frozen=True)
class NormalState:
    """Field is locked in place."""
    mode = FieldMode.NORMAL


@dataclass(frozen=True)
class MovePendingState:
    """Start gesture is being held; field moves once progress reaches 1."""
    start_time: float
    last_position: Point2
    progress: float = 0.0
    mode = FieldMode.MOVE_PENDING


@dataclass(frozen=True)
class MovingState:
    """Field follows the hand until the lock gesture."""
    last_position: Point2
    mode = FieldMode.MOVING


FieldState = Union[NormalState, MovePendingState, MovingState]


@dataclass
class FieldSignal:
    """
    Per-frame input to the state machine.

    Attributes:
        palm_position: Palm center of the dominant hand, None if no hand.
        start_detected: Start gesture seen this frame.
        lock_detected: Lock gesture seen this frame.
    """
    palm_position: Optional[Point2] = None
    start_detected: bool = False
    lock_detected: bool = False

    @property
    def has_hand(self) -> bool:
        return self.palm_position is not None


class FieldMoveStateMachine:
    """
    Moves a rectangular field in response to a gesture-hold protocol.

    Time comes only from the caller; the machine never reads the clock.
    """

    def __init__(
        self,
        screen_width: float,
        screen_height: float,
        config: Optional[FieldConfig] = None,
        recognizer: Optional[GestureRecognizer] = None
    ):
        """
        Initialize field state machine.

        Args:
            screen_width: Viewport width in pixels.
            screen_height: Viewport height in pixels.
            config: Field configuration. Uses defaults if None.
            recognizer: Classifier used by signal_from_hands().
        """
        self.config = config or FieldConfig()
        self.recognizer = recognizer or GestureRecognizer()
        self._screen_width = float(screen_width)
        self._screen_height = float(screen_height)
        self._bounds = self._default_bounds()
        self._state: FieldState = NormalState()
        self._last_palm_position: Optional[Point2] = None
        self._visible = True
        self._on_bounds_changed: Optional[Callable[[FieldBounds], None]] = None

        logger.debug(
            f"FieldMoveStateMachine initialized ({screen_width}x{screen_height}, "
            f"variant={self.config.variant.value}, hold={self.config.hold_duration_ms:.0f}ms)"
        )

    def _default_bounds(self) -> FieldBounds:
        ratio = self.config.default_size_ratio
        width = self._screen_width * ratio
        height = self._screen_height * ratio
        return FieldBounds(
            x=(self._screen_width - width) / 2,
            y=(self._screen_height - height) / 2,
            width=width,
            height=height
        )

    def set_on_bounds_changed(self, callback: Optional[Callable[[FieldBounds], None]]) -> None:
        """
        Set the callback fired on commit, resize and reset.

        Args:
            callback: Receives a copy of the new bounds.
        """
        self._on_bounds_changed = callback

    def _notify(self) -> None:
        """Fire the bounds callback; errors are logged, never raised."""
        if self._on_bounds_changed is None:
            return
        try:
            self._on_bounds_changed(self._bounds.copy())
        except Exception as e:
            logger.error(f"Error in bounds callback: {e}")

    # ------------------------------------------------------------------
    # Gesture input
    # ------------------------------------------------------------------

    def signal_from_hands(self, hands: Sequence[HandSnapshot]) -> FieldSignal:
        """
        Classify the dominant hand into a FieldSignal.

        The primary handedness wins if present, else the first hand.

        Args:
            hands: Hand snapshots for this frame.

        Returns:
            FieldSignal for the configured variant.
        """
        hand = next(
            (h for h in hands if h.handedness == self.config.primary_handedness),
            hands[0] if hands else None
        )
        if hand is None:
            return FieldSignal()

        position = Point2(hand.palm_center.x, hand.palm_center.y)
        if self.config.variant == FieldVariant.FIST:
            start = self.recognizer.classify_upward_fist(hand)
            lock = self.recognizer.classify_open_hand(hand).detected
        else:
            start = self.recognizer.classify_open_palm(hand)
            lock = hand.is_fist

        if not start.detected and self.mode != FieldMode.NORMAL:
            logger.debug(f"Start gesture rejected at check '{start.failed_check}'")

        return FieldSignal(position, start.detected, lock)

    def update_from_hands(self, hands: Sequence[HandSnapshot], now: float) -> None:
        """Classify hands and advance the state machine by one frame."""
        if not self._visible:
            return
        self.update(self.signal_from_hands(hands), now)

    def update(self, signal: FieldSignal, now: float) -> None:
        """
        Advance the state machine by one frame.

        Args:
            signal: Gesture input for this frame.
            now: Frame timestamp in milliseconds.
        """
        if not self._visible:
            return

        state = self._state

        if not signal.has_hand:
            # Pending needs a continuous hold; moving freezes in place
            if isinstance(state, MovePendingState):
                logger.info("Move cancelled: hand lost")
                self._state = NormalState()
            return

        position = signal.palm_position

        if isinstance(state, NormalState):
            if signal.start_detected:
                self._state = MovePendingState(start_time=now, last_position=position)
                self._last_palm_position = position
                logger.info("Start gesture detected, hold to move field")

        elif isinstance(state, MovePendingState):
            if signal.start_detected:
                elapsed = now - state.start_time
                progress = float(np.clip(elapsed / self.config.hold_duration_ms, 0.0, 1.0))
                self._last_palm_position = position
                if progress >= 1.0:
                    self._state = MovingState(last_position=position)
                    logger.info("Move mode activated")
                else:
                    self._state = MovePendingState(state.start_time, position, progress)
            else:
                self._state = NormalState()
                logger.info("Move cancelled: start gesture released")

        elif isinstance(state, MovingState):
            if signal.lock_detected:
                self._state = NormalState()
                logger.info(
                    f"Field locked at ({self._bounds.x:.0f}, {self._bounds.y:.0f})"
                )
                self._notify()
            else:
                self._center_on(position)
                self._state = MovingState(last_position=position)
                self._last_palm_position = position

    def _center_on(self, position: Point2) -> None:
        """Center the field on a point, clamped to stay on screen."""
        b = self._bounds
        max_x = max(0.0, self._screen_width - b.width)
        max_y = max(0.0, self._screen_height - b.height)
        b.x = float(np.clip(position.x - b.width / 2, 0.0, max_x))
        b.y = float(np.clip(position.y - b.height / 2, 0.0, max_y))

    # ------------------------------------------------------------------
    # Explicit control
    # ------------------------------------------------------------------

    def resize(self, screen_width: float, screen_height: float) -> None:
        """
        Handle a viewport resize, keeping relative position and size.

        Args:
            screen_width: New viewport width.
            screen_height: New viewport height.
        """
        b = self._bounds
        old_width, old_height = self._screen_width, self._screen_height
        self._screen_width = float(screen_width)
        self._screen_height = float(screen_height)

        if old_width <= 0 or old_height <= 0:
            # No previous viewport to be relative to
            self._bounds = self._default_bounds()
        else:
            self._bounds = FieldBounds(
                x=b.x / old_width * self._screen_width,
                y=b.y / old_height * self._screen_height,
                width=b.width / old_width * self._screen_width,
                height=b.height / old_height * self._screen_height
            )
        logger.debug(f"Field resized to viewport {screen_width}x{screen_height}")
        self._notify()

    def reset_to_default(self) -> None:
        """Restore the centered default field and return to NORMAL."""
        self._bounds = self._default_bounds()
        self._state = NormalState()
        logger.info(f"Field reset to {self.config.default_size_ratio:.0%} default")
        self._notify()

    def set_visible(self, visible: bool) -> None:
        """
        Show or hide the field. Showing it again resets it to default.

        Args:
            visible: New visibility.
        """
        self._visible = visible
        if visible:
            self.reset_to_default()

    def toggle_visibility(self) -> None:
        """Flip field visibility."""
        self.set_visible(not self._visible)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> FieldState:
        return self._state

    @property
    def mode(self) -> FieldMode:
        return self._state.mode

    @property
    def progress(self) -> float:
        """Hold progress in [0, 1]; 1 while moving, 0 when normal."""
        state = self._state
        if isinstance(state, MovePendingState):
            return state.progress
        if isinstance(state, MovingState):
            return 1.0
        return 0.0

    @property
    def bounds(self) -> FieldBounds:
        """Copy of the current bounds."""
        return self._bounds.copy()

    @property
    def visible(self) -> bool:
        return self._visible

    @property
    def last_palm_position(self) -> Optional[Point2]:
        return self._last_palm_position

    @property
    def screen_size(self) -> tuple[float, float]:
        return self._screen_width, self._screen_height
