"""
Profile loader for Gesture Field.

Loads and validates JSON tuning profiles. Profile properties use camelCase,
one object per pipeline stage:

    {
        "id": "lab-webcam",
        "name": "Lab webcam",
        "stabilizer": {"smoothingFactor": 0.2, "persistenceMs": 400},
        "velocity": {"maxAgeMs": 150, "historyLength": 8},
        "gestures": {"pinchDistance": 70, "fistCurlDistance": 80},
        "field": {"variant": "palm", "holdDurationMs": 3000}
    }

Missing sections and keys fall back to the defaults in config.py.
"""

import json
import math
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from .config import (
    FieldConfig,
    FieldVariant,
    GestureThresholds,
    PipelineConfig,
    StabilizerConfig,
    VelocityConfig,
)
from .hand_landmarks import LEFT, RIGHT
from .logger import get_logger

logger = get_logger("ProfileLoader")

# Values allowed outside the default non-negative range
_SIGNED_KEYS = {"point_straight_max_cosine", "palm_front_depth_tolerance"}
# Values that are fractions in [0, 1]
_UNIT_KEYS = {"smoothing_factor", "fallback_confidence", "pinch_min_stored_confidence",
              "default_size_ratio"}
# Divisors and window lengths
_POSITIVE_KEYS = {"persistence_ms", "max_age_ms", "pinch_max_distance", "hold_duration_ms",
                  "min_dt_ms"}


@dataclass
class GestureFieldProfile:
    """
    Profile configuration loaded from JSON.

    Attributes:
        id: Unique identifier.
        name: Profile display name.
        config: Pipeline configuration built from the profile.
    """

    id: str
    name: str
    config: PipelineConfig = field(default_factory=PipelineConfig)


class ProfileLoadError(Exception):
    """Raised when profile loading or validation fails."""
    pass


def load_profile(profile_path: str | Path) -> GestureFieldProfile:
    """
    Load and validate a profile from a JSON file.

    Args:
        profile_path: Path to the JSON profile file.

    Returns:
        Validated GestureFieldProfile instance.

    Raises:
        ProfileLoadError: If file cannot be read or validation fails.
    """
    path = Path(profile_path)
    logger.info(f"Loading profile from: {path}")

    if not path.exists():
        raise ProfileLoadError(f"Profile file not found: {path}")

    if not path.is_file():
        raise ProfileLoadError(f"Profile path is not a file: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ProfileLoadError(f"Invalid JSON in profile: {e}")
    except IOError as e:
        raise ProfileLoadError(f"Cannot read profile file: {e}")

    return parse_profile(data)


def parse_profile(data: Any) -> GestureFieldProfile:
    """
    Parse and validate profile data from dictionary.

    Args:
        data: Dictionary with camelCase profile properties.

    Returns:
        Validated GestureFieldProfile instance.

    Raises:
        ProfileLoadError: If required fields are missing or invalid.
    """
    if not isinstance(data, dict):
        raise ProfileLoadError("Profile root must be a JSON object")

    if "id" not in data:
        raise ProfileLoadError("Profile missing required field: id")

    if "name" not in data:
        raise ProfileLoadError("Profile missing required field: name")

    config = PipelineConfig(
        stabilizer=_parse_section(data, "stabilizer", StabilizerConfig),
        velocity=_parse_section(data, "velocity", VelocityConfig),
        gestures=_parse_section(data, "gestures", GestureThresholds),
        field_move=_parse_section(data, "field", FieldConfig),
    )

    if config.velocity.history_length < 2:
        raise ProfileLoadError("velocity.historyLength must be at least 2")

    profile = GestureFieldProfile(id=str(data["id"]), name=str(data["name"]), config=config)

    logger.info(f"Loaded profile: {profile.name} (id={profile.id})")
    logger.debug(f"  Stabilizer: {config.stabilizer}")
    logger.debug(f"  Velocity: {config.velocity}")
    logger.debug(f"  Field: variant={config.field_move.variant.value}, "
                 f"hold={config.field_move.hold_duration_ms:.0f}ms")

    return profile


def _camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _parse_section(data: dict[str, Any], section: str, cls):
    """Build a config dataclass from one camelCase JSON section."""
    raw = data.get(section, {})
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ProfileLoadError(f"Profile section '{section}' must be an object")

    known = {_camel_case(f.name): f for f in fields(cls)}
    for key in raw:
        if key not in known:
            logger.warning(f"Ignoring unknown key '{section}.{key}'")

    values = {}
    for key, f in known.items():
        if key in raw:
            values[f.name] = _validate_value(f"{section}.{key}", f.name, f.type, raw[key])

    return cls(**values)


def _validate_value(label: str, name: str, field_type, value: Any) -> Any:
    """Check one profile value against its field type and range."""
    if field_type is FieldVariant:
        try:
            return FieldVariant(str(value).lower())
        except ValueError:
            options = ", ".join(v.value for v in FieldVariant)
            raise ProfileLoadError(f"Invalid {label}: {value!r} (expected one of {options})")

    if field_type is str:
        if value not in (LEFT, RIGHT):
            raise ProfileLoadError(f"Invalid {label}: {value!r} (expected '{LEFT}' or '{RIGHT}')")
        return value

    # bool is an int subclass but never a valid threshold
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ProfileLoadError(f"Invalid {label}: expected a number, got {value!r}")

    if field_type is int:
        if not float(value).is_integer():
            raise ProfileLoadError(f"Invalid {label}: expected an integer, got {value!r}")
        value = int(value)
    else:
        value = float(value)

    if not math.isfinite(value):
        raise ProfileLoadError(f"Invalid {label}: must be finite")
    if name in _UNIT_KEYS and not 0.0 <= value <= 1.0:
        raise ProfileLoadError(f"Invalid {label}: {value} is outside [0, 1]")
    if name not in _SIGNED_KEYS and value < 0:
        raise ProfileLoadError(f"Invalid {label}: {value} must not be negative")
    if name in _POSITIVE_KEYS and value <= 0:
        raise ProfileLoadError(f"Invalid {label}: {value} must be positive")

    return value


def create_default_profile() -> GestureFieldProfile:
    """
    Create a default profile with standard settings.

    Returns:
        GestureFieldProfile with default values.
    """
    return GestureFieldProfile(id="default", name="Default", config=PipelineConfig())
