"""
Landmark stabilizer for temporal filtering of detector hand landmarks.

Blends each of the 21 landmarks with its stored history (weighted by how
much that history is trusted) and keeps the last known position of
landmarks that drift off-screen for a short persistence window, so that
partially visible hands still produce a full skeleton.
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from .config import NUM_LANDMARKS, StabilizerConfig
from .hand_landmarks import Landmark, StabilizedLandmark
from .logger import get_logger

logger = get_logger("LandmarkStabilizer")


@dataclass
class StoredLandmark:
    """Last stabilized state of one landmark."""
    x: float
    y: float
    z: float
    confidence: float
    timestamp: float  # ms of last direct observation (or fallback)
    observed_confidence: float = 1.0  # confidence when last directly seen
    observed: bool = True  # False for fallback entries, which never persist


class LandmarkStabilizer:
    """
    Smooths hand landmarks and bridges short gaps in visibility.

    Keeps one table of 21 stored landmarks per hand key. Tables are created
    on first use and never discarded on their own; the owner of the hand
    lifetime calls forget() when a hand should be dropped.

    Attributes:
        config: Stabilizer configuration.
    """

    def __init__(self, config: Optional[StabilizerConfig] = None):
        """
        Initialize landmark stabilizer.

        Args:
            config: Stabilizer configuration. Uses defaults if None.
        """
        self.config = config or StabilizerConfig()
        self._stored: dict[str, list[StoredLandmark]] = {}
        self._stabilized_count = 0

        logger.info(
            f"LandmarkStabilizer initialized (smoothing={self.config.smoothing_factor}, "
            f"persistence={self.config.persistence_ms:.0f}ms)"
        )

    def is_visible(self, landmark: Optional[Landmark]) -> bool:
        """Check if a raw landmark lies inside the tolerance band around the frame."""
        if landmark is None:
            return False
        if not (math.isfinite(landmark.x) and math.isfinite(landmark.y)):
            return False
        lo = -self.config.visibility_margin
        hi = 1.0 + self.config.visibility_margin
        return lo <= landmark.x <= hi and lo <= landmark.y <= hi

    def stabilize(
        self,
        key: str,
        landmarks: Sequence[Landmark],
        viewport: tuple[float, float],
        timestamp: float
    ) -> list[StabilizedLandmark]:
        """
        Stabilize one hand's landmarks for the current frame.

        Args:
            key: Hand key (handedness or track id).
            landmarks: Raw normalized landmarks; missing entries are tolerated.
            viewport: (width, height) in pixels.
            timestamp: Frame timestamp in milliseconds.

        Returns:
            Exactly 21 screen-space landmarks.
        """
        width, height = viewport
        persistence = self.config.persistence_ms
        previous = self._stored.get(key, [])

        result: list[StabilizedLandmark] = []
        new_table: list[StoredLandmark] = []

        for i in range(NUM_LANDMARKS):
            raw = landmarks[i] if i < len(landmarks) else None
            prev = previous[i] if i < len(previous) else None
            age = timestamp - prev.timestamp if prev is not None else math.inf
            recent = prev is not None and prev.observed and age < persistence

            if self.is_visible(raw):
                raw_x, raw_y, raw_z = _to_screen(raw, width, height)
                if recent:
                    blend = self.config.smoothing_factor * prev.confidence
                    x = prev.x * blend + raw_x * (1 - blend)
                    y = prev.y * blend + raw_y * (1 - blend)
                    z = prev.z * blend + raw_z * (1 - blend)
                else:
                    x, y, z = raw_x, raw_y, raw_z
                entry = StoredLandmark(x, y, z, 1.0, timestamp)
                visible = True
            elif recent:
                # Linear decay from the last direct observation
                decay = max(0.0, 1.0 - age / persistence)
                entry = StoredLandmark(
                    prev.x, prev.y, prev.z,
                    prev.observed_confidence * decay,
                    prev.timestamp,
                    prev.observed_confidence
                )
                visible = False
            else:
                x, y, z = _to_screen(raw, width, height)
                entry = StoredLandmark(
                    x, y, z, self.config.fallback_confidence, timestamp, observed=False
                )
                visible = False

            new_table.append(entry)
            result.append(StabilizedLandmark(
                x=entry.x,
                y=entry.y,
                z=entry.z,
                confidence=entry.confidence,
                visible=visible
            ))

        self._stored[key] = new_table
        self._stabilized_count += 1
        return result

    def stored(self, key: str) -> Optional[list[StoredLandmark]]:
        """Get the stored landmark table for a hand, or None if never seen."""
        table = self._stored.get(key)
        return list(table) if table is not None else None

    def forget(self, key: str) -> None:
        """Drop all stored history for one hand."""
        if self._stored.pop(key, None) is not None:
            logger.debug(f"Forgot stored landmarks for {key}")

    def reset(self) -> None:
        """Drop stored history for all hands."""
        self._stored.clear()
        logger.debug("LandmarkStabilizer reset")

    @property
    def keys(self) -> list[str]:
        """Hand keys that currently have stored landmarks."""
        return list(self._stored)

    @property
    def stabilized_count(self) -> int:
        """Get total number of hand-frames stabilized."""
        return self._stabilized_count


def _to_screen(
    landmark: Optional[Landmark], width: float, height: float
) -> tuple[float, float, float]:
    """Convert a raw landmark to pixels; degenerate values collapse to 0."""
    if landmark is None:
        return 0.0, 0.0, 0.0
    x = landmark.x * width if math.isfinite(landmark.x) else 0.0
    y = landmark.y * height if math.isfinite(landmark.y) else 0.0
    z = (landmark.z or 0.0) * width if math.isfinite(landmark.z or 0.0) else 0.0
    return x, y, z
