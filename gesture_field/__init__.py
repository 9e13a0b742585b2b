"""
Gesture Field - hand-gesture recognition and a gesture-driven movable field.

Turns per-frame hand landmarks into stabilized hand snapshots with gesture
flags, and drives a hold-to-move / lock-in-place field from them. The
camera, detector and preview window live in webcam_field_tracker and are
not imported here.
"""

__version__ = "1.0.0"

from .config import (
    FieldConfig,
    FieldVariant,
    GestureThresholds,
    PipelineConfig,
    StabilizerConfig,
    VelocityConfig,
)
from .hand_landmarks import Landmark, RawHand, StabilizedLandmark
from .landmark_stabilizer import LandmarkStabilizer
from .velocity_tracker import VelocityTracker, VelocityEstimate
from .gesture_recognizer import GestureRecognizer, GestureType, ClassifierResult
from .hand_tracker import HandSnapshot, HandTracker
from .field_state_machine import FieldBounds, FieldMode, FieldMoveStateMachine, FieldSignal
from .pipeline import FrameResult, GesturePipeline
from .profile_loader import GestureFieldProfile, ProfileLoadError, load_profile

__all__ = [
    "FieldConfig",
    "FieldVariant",
    "GestureThresholds",
    "PipelineConfig",
    "StabilizerConfig",
    "VelocityConfig",
    "Landmark",
    "RawHand",
    "StabilizedLandmark",
    "LandmarkStabilizer",
    "VelocityTracker",
    "VelocityEstimate",
    "GestureRecognizer",
    "GestureType",
    "ClassifierResult",
    "HandSnapshot",
    "HandTracker",
    "FieldBounds",
    "FieldMode",
    "FieldMoveStateMachine",
    "FieldSignal",
    "FrameResult",
    "GesturePipeline",
    "GestureFieldProfile",
    "ProfileLoadError",
    "load_profile",
]
