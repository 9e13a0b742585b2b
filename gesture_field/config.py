"""
Configuration constants for Gesture Field.

This module contains all tunable parameters for landmark stabilization,
velocity tracking, gesture classification and the field-move state machine.
Distances are in screen-space pixels, times in milliseconds.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Final


# Camera configuration
CAMERA_WIDTH: Final[int] = 1280
CAMERA_HEIGHT: Final[int] = 720
CAMERA_FPS: Final[int] = 30
DEFAULT_CAMERA_INDEX: Final[int] = 0

# MediaPipe configuration
# Low thresholds keep partially visible hands at the screen edge tracked
MEDIAPIPE_MAX_NUM_HANDS: Final[int] = 2
MEDIAPIPE_MIN_DETECTION_CONFIDENCE: Final[float] = 0.3
MEDIAPIPE_MIN_PRESENCE_CONFIDENCE: Final[float] = 0.3
MEDIAPIPE_MIN_TRACKING_CONFIDENCE: Final[float] = 0.3

# Hand model
NUM_LANDMARKS: Final[int] = 21

# =============================================================================
# Landmark Stabilizer
# =============================================================================
STABILIZER_SMOOTHING_FACTOR: Final[float] = 0.2  # Blend weight toward history (x confidence)
STABILIZER_PERSISTENCE_MS: Final[float] = 400.0  # Trust last known position this long
STABILIZER_VISIBILITY_MARGIN: Final[float] = 0.1  # Accept [-0.1, 1.1] as on-screen
STABILIZER_FALLBACK_CONFIDENCE: Final[float] = 0.1  # Neither visible nor remembered

# =============================================================================
# Velocity Tracker
# =============================================================================
VELOCITY_HISTORY_MAX_AGE_MS: Final[float] = 150.0
VELOCITY_HISTORY_LENGTH: Final[int] = 8
VELOCITY_MIN_DT_MS: Final[float] = 1.0  # Guards against division blow-up
VELOCITY_FRAME_SCALE: Final[float] = 16.0  # px/ms -> px per nominal 60 Hz frame

# =============================================================================
# Gesture classification thresholds (pixels)
# =============================================================================
FIST_CURL_DISTANCE: Final[float] = 80.0  # Fingertip within this of palm = curled
FIST_MIN_CURLED_FINGERS: Final[int] = 3

PINCH_DISTANCE_THRESHOLD: Final[float] = 70.0  # Forgiving for edge-of-screen hands
PINCH_MAX_DISTANCE: Final[float] = 160.0  # Strength reaches 0 here
PINCH_MIN_STORED_CONFIDENCE: Final[float] = 0.3

POINT_INDEX_EXTENDED_DISTANCE: Final[float] = 100.0
POINT_OTHERS_CURLED_DISTANCE: Final[float] = 90.0
POINT_STRAIGHT_MAX_COSINE: Final[float] = -0.3  # Angle at PIP > ~107 degrees
POINT_MIN_SEGMENT_LENGTH: Final[float] = 1.0
POINT_EXTENSION_FACTOR: Final[float] = 2.0

PALM_UPRIGHT_MARGIN: Final[float] = 30.0  # Wrist below palm center by this much
PALM_FRONT_DEPTH_TOLERANCE: Final[float] = 10.0  # Fingertip z vs knuckle z
PALM_FINGER_UP_MARGIN: Final[float] = 40.0  # Tip above MCP by this much
PALM_FINGER_EXTENDED_DISTANCE: Final[float] = 90.0
PALM_THUMB_EXTENDED_DISTANCE: Final[float] = 70.0
PALM_MIN_WIDTH: Final[float] = 70.0  # Index MCP to pinky MCP, horizontal
PALM_MAX_KNUCKLE_Y_RANGE: Final[float] = 50.0
PALM_MAX_KNUCKLE_Z_RANGE: Final[float] = 40.0

UPWARD_FIST_WRIST_MARGIN: Final[float] = 30.0
UPWARD_FIST_MAX_KNUCKLE_Y_RANGE: Final[float] = 60.0
UPWARD_FIST_THUMB_TUCK_DISTANCE: Final[float] = 100.0

OPEN_HAND_MIN_OPEN_FINGERS: Final[int] = 3

# =============================================================================
# Field-move state machine
# =============================================================================
FIELD_HOLD_DURATION_MS: Final[float] = 3000.0
FIELD_DEFAULT_SIZE_RATIO: Final[float] = 0.8  # Default field covers 80% of viewport
FIELD_PRIMARY_HANDEDNESS: Final[str] = "Right"

# Logging
LOG_FILENAME: Final[str] = "gesture_field.log"
LOG_MAX_BYTES: Final[int] = 10 * 1024 * 1024  # 10 MB
LOG_BACKUP_COUNT: Final[int] = 3

# Exit codes
EXIT_SUCCESS: Final[int] = 0
EXIT_PROFILE_ERROR: Final[int] = 1
EXIT_CAMERA_ERROR: Final[int] = 2
EXIT_RUNTIME_ERROR: Final[int] = 3


class FieldVariant(str, Enum):
    """Which gesture pair drives the field-move state machine."""
    PALM = "palm"  # Hold open palm to start, fist to lock
    FIST = "fist"  # Hold upward fist to start, open hand to lock


@dataclass
class StabilizerConfig:
    """Container for landmark stabilizer settings."""

    smoothing_factor: float = STABILIZER_SMOOTHING_FACTOR
    persistence_ms: float = STABILIZER_PERSISTENCE_MS
    visibility_margin: float = STABILIZER_VISIBILITY_MARGIN
    fallback_confidence: float = STABILIZER_FALLBACK_CONFIDENCE


@dataclass
class VelocityConfig:
    """Container for velocity history settings."""

    max_age_ms: float = VELOCITY_HISTORY_MAX_AGE_MS
    history_length: int = VELOCITY_HISTORY_LENGTH
    min_dt_ms: float = VELOCITY_MIN_DT_MS
    frame_scale: float = VELOCITY_FRAME_SCALE


@dataclass
class GestureThresholds:
    """Container for gesture detection thresholds."""

    fist_curl_distance: float = FIST_CURL_DISTANCE
    fist_min_curled: int = FIST_MIN_CURLED_FINGERS

    pinch_distance: float = PINCH_DISTANCE_THRESHOLD
    pinch_max_distance: float = PINCH_MAX_DISTANCE
    pinch_min_stored_confidence: float = PINCH_MIN_STORED_CONFIDENCE

    point_index_extended: float = POINT_INDEX_EXTENDED_DISTANCE
    point_others_curled: float = POINT_OTHERS_CURLED_DISTANCE
    point_straight_max_cosine: float = POINT_STRAIGHT_MAX_COSINE
    point_min_segment: float = POINT_MIN_SEGMENT_LENGTH
    point_extension: float = POINT_EXTENSION_FACTOR

    palm_upright_margin: float = PALM_UPRIGHT_MARGIN
    palm_front_depth_tolerance: float = PALM_FRONT_DEPTH_TOLERANCE
    palm_finger_up_margin: float = PALM_FINGER_UP_MARGIN
    palm_finger_extended: float = PALM_FINGER_EXTENDED_DISTANCE
    palm_thumb_extended: float = PALM_THUMB_EXTENDED_DISTANCE
    palm_min_width: float = PALM_MIN_WIDTH
    palm_max_knuckle_y_range: float = PALM_MAX_KNUCKLE_Y_RANGE
    palm_max_knuckle_z_range: float = PALM_MAX_KNUCKLE_Z_RANGE

    upward_fist_wrist_margin: float = UPWARD_FIST_WRIST_MARGIN
    upward_fist_max_knuckle_y_range: float = UPWARD_FIST_MAX_KNUCKLE_Y_RANGE
    upward_fist_thumb_tuck: float = UPWARD_FIST_THUMB_TUCK_DISTANCE

    open_hand_min_open: int = OPEN_HAND_MIN_OPEN_FINGERS


@dataclass
class FieldConfig:
    """Container for field-move state machine settings."""

    variant: FieldVariant = FieldVariant.PALM
    hold_duration_ms: float = FIELD_HOLD_DURATION_MS
    default_size_ratio: float = FIELD_DEFAULT_SIZE_RATIO
    primary_handedness: str = FIELD_PRIMARY_HANDEDNESS


@dataclass
class PipelineConfig:
    """All tunables for one gesture pipeline."""

    stabilizer: StabilizerConfig = field(default_factory=StabilizerConfig)
    velocity: VelocityConfig = field(default_factory=VelocityConfig)
    gestures: GestureThresholds = field(default_factory=GestureThresholds)
    field_move: FieldConfig = field(default_factory=FieldConfig)
