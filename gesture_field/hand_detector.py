"""
Hand detector using MediaPipe Hands.

Detects up to two hands per frame and converts them to RawHand objects.
Uses the Solutions API where the installed MediaPipe still ships it and
the Tasks API (with a downloaded model) otherwise.
"""

import cv2
import mediapipe as mp
import numpy as np

from .config import (
    MEDIAPIPE_MAX_NUM_HANDS,
    MEDIAPIPE_MIN_DETECTION_CONFIDENCE,
    MEDIAPIPE_MIN_PRESENCE_CONFIDENCE,
    MEDIAPIPE_MIN_TRACKING_CONFIDENCE,
)
from .hand_landmarks import RIGHT, Landmark, RawHand
from .logger import get_logger

logger = get_logger("HandDetector")

USING_TASKS_API = not (hasattr(mp, "solutions") and hasattr(mp.solutions, "hands"))


class HandDetector:
    """
    Hand detector using MediaPipe Hands.

    Frames must already be mirrored if a selfie view is wanted; MediaPipe
    reports handedness assuming mirrored input.
    """

    def __init__(
        self,
        max_num_hands: int = MEDIAPIPE_MAX_NUM_HANDS,
        min_detection_confidence: float = MEDIAPIPE_MIN_DETECTION_CONFIDENCE,
        min_presence_confidence: float = MEDIAPIPE_MIN_PRESENCE_CONFIDENCE,
        min_tracking_confidence: float = MEDIAPIPE_MIN_TRACKING_CONFIDENCE
    ):
        """
        Initialize hand detector.

        Args:
            max_num_hands: Maximum number of hands to detect.
            min_detection_confidence: Minimum detection confidence.
            min_presence_confidence: Minimum hand presence confidence (Tasks API).
            min_tracking_confidence: Minimum tracking confidence.
        """
        self.max_num_hands = max_num_hands
        self.min_detection_confidence = min_detection_confidence
        self.min_presence_confidence = min_presence_confidence
        self.min_tracking_confidence = min_tracking_confidence

        self._hands = None  # Solutions API Hands object
        self._landmarker = None  # Tasks API HandLandmarker object
        self._is_initialized = False
        self._last_timestamp_ms = -1
        self._using_tasks_api = USING_TASKS_API

        api_type = "Tasks API" if self._using_tasks_api else "Solutions API"
        logger.info(
            f"HandDetector initialized ({api_type}, mediapipe {getattr(mp, '__version__', 'unknown')}, "
            f"max_hands={max_num_hands})"
        )

    def initialize(self) -> None:
        """Initialize MediaPipe Hands model."""
        if self._is_initialized:
            return

        if self._using_tasks_api:
            self._initialize_tasks_api()
        else:
            self._initialize_solutions_api()

        self._is_initialized = True

    def _initialize_solutions_api(self) -> None:
        logger.debug("Initializing MediaPipe Hands (Solutions API)...")

        self._hands = mp.solutions.hands.Hands(
            static_image_mode=False,
            max_num_hands=self.max_num_hands,
            min_detection_confidence=self.min_detection_confidence,
            min_tracking_confidence=self.min_tracking_confidence
        )

        logger.info("MediaPipe Hands initialized (Solutions API)")

    def _initialize_tasks_api(self) -> None:
        from mediapipe.tasks import python as mp_python
        from mediapipe.tasks.python import vision as mp_vision

        from .model_manager import ensure_hand_landmarker_model

        logger.info("Initializing MediaPipe Hands (Tasks API)...")
        model_path = ensure_hand_landmarker_model()
        logger.debug(f"Model path: {model_path}")

        options = mp_vision.HandLandmarkerOptions(
            base_options=mp_python.BaseOptions(model_asset_path=model_path),
            running_mode=mp_vision.RunningMode.VIDEO,
            num_hands=self.max_num_hands,
            min_hand_detection_confidence=self.min_detection_confidence,
            min_hand_presence_confidence=self.min_presence_confidence,
            min_tracking_confidence=self.min_tracking_confidence
        )

        try:
            self._landmarker = mp_vision.HandLandmarker.create_from_options(options)
        except Exception as e:
            logger.error(f"Failed to initialize Tasks API: {e}")
            raise

        logger.info("MediaPipe Hands initialized (Tasks API, VIDEO mode)")

    def close(self) -> None:
        """Release MediaPipe resources."""
        if self._hands:
            self._hands.close()
            self._hands = None
        if self._landmarker:
            self._landmarker.close()
            self._landmarker = None
        self._is_initialized = False
        logger.debug("HandDetector closed")

    def detect(self, bgr_image: np.ndarray, timestamp_ms: float) -> list[RawHand]:
        """
        Detect hands in a BGR camera frame.

        Args:
            bgr_image: BGR image as numpy array (H, W, 3).
            timestamp_ms: Frame timestamp in milliseconds.

        Returns:
            Detected hands with normalized landmarks (possibly empty).
        """
        if not self._is_initialized:
            self.initialize()

        rgb_image = cv2.cvtColor(bgr_image, cv2.COLOR_BGR2RGB)

        if self._using_tasks_api:
            return self._detect_tasks_api(rgb_image, timestamp_ms)
        return self._detect_solutions_api(rgb_image)

    def _detect_solutions_api(self, rgb_image: np.ndarray) -> list[RawHand]:
        results = self._hands.process(rgb_image)

        if not results.multi_hand_landmarks:
            return []

        hands = []
        for i, hand_landmarks in enumerate(results.multi_hand_landmarks):
            handedness = RIGHT
            score = 1.0
            if results.multi_handedness and i < len(results.multi_handedness):
                classification = results.multi_handedness[i].classification[0]
                handedness = classification.label
                score = classification.score

            hands.append(RawHand(
                landmarks=[_to_landmark(lm) for lm in hand_landmarks.landmark],
                handedness=handedness,
                score=score
            ))

        return hands

    def _detect_tasks_api(self, rgb_image: np.ndarray, timestamp_ms: float) -> list[RawHand]:
        if not rgb_image.flags['C_CONTIGUOUS']:
            rgb_image = np.ascontiguousarray(rgb_image)

        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb_image)

        # VIDEO mode requires strictly increasing integer timestamps
        ts = max(int(timestamp_ms), self._last_timestamp_ms + 1)
        self._last_timestamp_ms = ts
        result = self._landmarker.detect_for_video(mp_image, ts)

        if not result.hand_landmarks:
            return []

        hands = []
        for i, hand_landmarks in enumerate(result.hand_landmarks):
            handedness = RIGHT
            score = 1.0
            if result.handedness and i < len(result.handedness):
                category = result.handedness[i][0]
                handedness = category.category_name
                score = category.score

            hands.append(RawHand(
                landmarks=[_to_landmark(lm) for lm in hand_landmarks],
                handedness=handedness,
                score=score
            ))

        return hands

    def __enter__(self) -> "HandDetector":
        """Context manager entry."""
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()


def _to_landmark(lm) -> Landmark:
    return Landmark(
        x=lm.x,
        y=lm.y,
        z=lm.z,
        visibility=getattr(lm, "visibility", 1.0) or 1.0
    )
