"""
Camera manager for Gesture Field.

Wraps OpenCV VideoCapture and hands out CapturedFrame objects: a BGR image
in selfie (mirrored) orientation plus a millisecond timestamp that never
goes backwards, which is what the gesture pipeline expects.
"""

import sys
import time
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from .config import CAMERA_FPS, CAMERA_HEIGHT, CAMERA_WIDTH, DEFAULT_CAMERA_INDEX
from .logger import get_logger

logger = get_logger("CameraManager")

# Consecutive failed reads before the camera is considered lost
MAX_FAILED_READS = 30
MAX_CAMERA_INDEX = 10


class CameraError(Exception):
    """Raised when the camera cannot be opened or stops delivering frames."""
    pass


@dataclass
class CapturedFrame:
    """
    One frame from the camera.

    Attributes:
        image: BGR image, already mirrored if requested.
        timestamp_ms: Milliseconds since the camera was opened.
        index: Sequence number of the frame since opening.
    """
    image: np.ndarray
    timestamp_ms: float
    index: int

    @property
    def size(self) -> tuple[int, int]:
        """(width, height) in pixels."""
        height, width = self.image.shape[:2]
        return width, height


def _open_capture(index: int) -> cv2.VideoCapture:
    """Open a capture, preferring DirectShow on Windows."""
    if sys.platform == "win32":
        capture = cv2.VideoCapture(index, cv2.CAP_DSHOW)
        if capture.isOpened():
            return capture
        capture.release()
    return cv2.VideoCapture(index)


class CameraManager:
    """
    Webcam source for the field tracker.

    Example:
        with CameraManager(0) as camera:
            frame = camera.read()
            if frame is not None:
                pipeline.process_frame(frame.timestamp_ms, detect(frame.image))
    """

    def __init__(
        self,
        camera_index: int = DEFAULT_CAMERA_INDEX,
        width: int = CAMERA_WIDTH,
        height: int = CAMERA_HEIGHT,
        fps: int = CAMERA_FPS,
        mirror: bool = True
    ):
        """
        Initialize camera manager.

        Args:
            camera_index: Camera device index.
            width: Requested capture width.
            height: Requested capture height.
            fps: Requested frame rate.
            mirror: Flip frames horizontally so hand motion matches the screen.
        """
        self.camera_index = camera_index
        self.requested_size = (width, height)
        self.fps = fps
        self.mirror = mirror

        self._capture: Optional[cv2.VideoCapture] = None
        self._opened_at = 0.0
        self._last_timestamp = 0.0
        self._frames_read = 0
        self._failed_reads = 0

    @property
    def frame_size(self) -> tuple[int, int]:
        """Negotiated (width, height); the requested size until opened."""
        if self._capture is None:
            return self.requested_size
        return (
            int(self._capture.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(self._capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
        )

    def open(self) -> None:
        """
        Open the camera.

        Raises:
            CameraError: If the device cannot be opened.
        """
        if self._capture is not None:
            self.close()

        logger.info(f"Opening camera {self.camera_index}...")
        capture = _open_capture(self.camera_index)
        if not capture.isOpened():
            capture.release()
            raise CameraError(f"Failed to open camera {self.camera_index}")

        width, height = self.requested_size
        capture.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        capture.set(cv2.CAP_PROP_FPS, self.fps)
        capture.set(cv2.CAP_PROP_BUFFERSIZE, 1)  # Always process the newest frame

        self._capture = capture
        self._opened_at = time.perf_counter()
        self._last_timestamp = 0.0
        self._frames_read = 0
        self._failed_reads = 0

        actual = self.frame_size
        logger.info(
            f"Camera opened: {actual[0]}x{actual[1]} @ "
            f"{capture.get(cv2.CAP_PROP_FPS):.1f} FPS (mirror={self.mirror})"
        )
        if actual != self.requested_size:
            logger.warning(f"Requested {width}x{height}, got {actual[0]}x{actual[1]}")

    def close(self) -> None:
        """Release the device."""
        if self._capture is not None:
            logger.info(f"Closing camera after {self._frames_read} frames")
            self._capture.release()
            self._capture = None

    def read(self) -> Optional[CapturedFrame]:
        """
        Grab the next frame.

        Returns:
            CapturedFrame, or None if this read failed.

        Raises:
            CameraError: If the camera is closed or keeps failing.
        """
        if self._capture is None:
            raise CameraError("Camera is not open")

        ok, image = self._capture.read()
        if not ok or image is None:
            self._failed_reads += 1
            logger.warning(f"Failed to read frame ({self._failed_reads}/{MAX_FAILED_READS})")
            if self._failed_reads >= MAX_FAILED_READS:
                raise CameraError(f"Camera {self.camera_index} stopped delivering frames")
            return None

        self._failed_reads = 0
        timestamp = (time.perf_counter() - self._opened_at) * 1000.0
        self._last_timestamp = max(timestamp, self._last_timestamp)
        self._frames_read += 1

        if self.mirror:
            image = cv2.flip(image, 1)
        return CapturedFrame(image, self._last_timestamp, self._frames_read)

    def __enter__(self) -> "CameraManager":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def select_camera(preferred_index: int = -1) -> int:
    """
    Pick a camera index, trying devices 0..9 in turn.

    Args:
        preferred_index: Index to use if it opens; -1 picks the first working one.

    Returns:
        Selected camera index.

    Raises:
        CameraError: If no camera can be opened.
    """
    candidates = [i for i in range(MAX_CAMERA_INDEX) if i != preferred_index]
    if preferred_index >= 0:
        candidates.insert(0, preferred_index)

    for index in candidates:
        capture = _open_capture(index)
        opened = capture.isOpened()
        capture.release()
        if opened:
            if preferred_index >= 0 and index != preferred_index:
                logger.warning(f"Camera {preferred_index} not available, using {index}")
            logger.info(f"Selected camera index: {index}")
            return index

    raise CameraError("No cameras available")
