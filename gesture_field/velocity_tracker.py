"""
Per-hand velocity tracking over a short time window.

Produces an instantaneous velocity from the last two samples and a
recency-weighted "throw" velocity across the whole retained window.
Velocities are in pixels per nominal 60 Hz frame.
"""

from collections import deque
from dataclasses import dataclass
from typing import Optional

from .config import VelocityConfig
from .logger import get_logger

logger = get_logger("VelocityTracker")


@dataclass
class VelocitySample:
    """Sample of palm position at a specific time."""
    x: float
    y: float
    timestamp: float  # ms


@dataclass
class VelocityEstimate:
    """Velocities derived from one hand's history."""
    velocity: tuple[float, float] = (0.0, 0.0)
    smoothed_velocity: tuple[float, float] = (0.0, 0.0)


class VelocityTracker:
    """
    Maintains a bounded position history per hand key.

    History is pruned by age first, then capped by count, so the newest
    samples always survive.
    """

    def __init__(self, config: Optional[VelocityConfig] = None):
        """
        Initialize velocity tracker.

        Args:
            config: Velocity configuration. Uses defaults if None.
        """
        self.config = config or VelocityConfig()
        self._history: dict[str, deque[VelocitySample]] = {}

    def update(self, key: str, position, timestamp: float) -> VelocityEstimate:
        """
        Record a palm position and return the current velocity estimate.

        Args:
            key: Hand key (handedness or track id).
            position: Current palm position (anything with x, y).
            timestamp: Frame timestamp in milliseconds.

        Returns:
            VelocityEstimate; both vectors are zero with fewer than 2 samples.
        """
        history = self._history.setdefault(key, deque())
        if history and timestamp < history[-1].timestamp:
            logger.debug(f"Timestamp went backwards for {key}, clearing history")
            history.clear()
        history.append(VelocitySample(position.x, position.y, timestamp))

        # Prune by age, then by count
        while history and timestamp - history[0].timestamp >= self.config.max_age_ms:
            history.popleft()
        while len(history) > self.config.history_length:
            history.popleft()

        if len(history) < 2:
            return VelocityEstimate()

        samples = list(history)
        velocity = self._pair_velocity(samples[-2], samples[-1])

        # Weighted average of consecutive-pair velocities, newer pairs weigh more
        total_weight = 0.0
        smoothed_x = 0.0
        smoothed_y = 0.0
        n = len(samples)
        for i in range(1, n):
            vx, vy = self._pair_velocity(samples[i - 1], samples[i])
            weight = i / n
            smoothed_x += vx * weight
            smoothed_y += vy * weight
            total_weight += weight

        smoothed = (smoothed_x / total_weight, smoothed_y / total_weight)
        return VelocityEstimate(velocity=velocity, smoothed_velocity=smoothed)

    def _pair_velocity(
        self, older: VelocitySample, newer: VelocitySample
    ) -> tuple[float, float]:
        """Velocity between two samples, scaled to a 60 Hz frame."""
        dt = max(self.config.min_dt_ms, newer.timestamp - older.timestamp)
        scale = self.config.frame_scale
        return (
            (newer.x - older.x) / dt * scale,
            (newer.y - older.y) / dt * scale,
        )

    def history(self, key: str) -> list[VelocitySample]:
        """Get a copy of the retained history for a hand."""
        return list(self._history.get(key, ()))

    def forget(self, key: str) -> None:
        """Drop the history of one hand."""
        self._history.pop(key, None)

    def reset(self) -> None:
        """Drop all histories."""
        self._history.clear()
        logger.debug("VelocityTracker reset")
