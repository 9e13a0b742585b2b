"""
Model file cache for the MediaPipe Tasks API.

The Tasks API needs a .task bundle on disk. Bundles are downloaded once into
a per-user cache directory and reused afterwards.
"""

import hashlib
import os
import sys
import time
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .logger import get_logger

logger = get_logger("ModelManager")

DOWNLOAD_TIMEOUT = 120  # seconds
CHUNK_SIZE = 8192  # bytes
MAX_RETRIES = 3
RETRY_DELAY = 2  # seconds, multiplied by the attempt number


@dataclass(frozen=True)
class ModelFile:
    """
    A downloadable model bundle.

    Attributes:
        filename: Name inside the cache directory.
        url: Download location.
        size_mb: Approximate size, for log messages.
        sha256: Expected digest; None skips verification.
    """
    filename: str
    url: str
    size_mb: float
    sha256: Optional[str] = None


HAND_LANDMARKER = ModelFile(
    filename="hand_landmarker.task",
    url="https://storage.googleapis.com/mediapipe-models/hand_landmarker/"
        "hand_landmarker/float16/latest/hand_landmarker.task",
    size_mb=7.8,
)


def get_model_cache_dir() -> Path:
    """
    Get the model cache directory, creating it if needed.

    GESTURE_FIELD_MODEL_DIR overrides the platform cache location.
    """
    override = os.environ.get("GESTURE_FIELD_MODEL_DIR")
    if override:
        cache_dir = Path(override)
    elif sys.platform == "win32":
        cache_dir = Path(os.environ.get("LOCALAPPDATA", Path.home())) / "gesture_field" / "models"
    else:
        cache_dir = Path(os.environ.get("XDG_CACHE_HOME", Path.home() / ".cache")) / "gesture_field" / "models"

    cache_dir.mkdir(parents=True, exist_ok=True)
    return cache_dir


def ensure_model(model: ModelFile) -> Path:
    """
    Return the cached path of a model, downloading it on first use.

    Args:
        model: Model to fetch.

    Returns:
        Path to the model file.

    Raises:
        RuntimeError: If every download attempt fails or the digest is wrong.
    """
    path = get_model_cache_dir() / model.filename
    if path.exists():
        logger.debug(f"Using cached model: {path}")
        return path

    logger.info(f"Downloading {model.filename} (~{model.size_mb} MB)...")
    logger.debug(f"URL: {model.url}")

    for attempt in range(1, MAX_RETRIES + 1):
        try:
            _download(model.url, path)
            break
        except OSError as e:
            logger.warning(f"Download attempt {attempt}/{MAX_RETRIES} failed: {e}")
            if attempt == MAX_RETRIES:
                raise RuntimeError(
                    f"Failed to download {model.filename} after {MAX_RETRIES} attempts; "
                    f"check the network connection"
                ) from e
            time.sleep(RETRY_DELAY * attempt)

    if model.sha256 and not verify_model_hash(path, model.sha256):
        path.unlink()
        raise RuntimeError(f"Checksum mismatch for {model.filename}")

    logger.info(f"Model downloaded: {path}")
    return path


def ensure_hand_landmarker_model() -> str:
    """Path to the hand landmarker bundle, as the string MediaPipe expects."""
    return str(ensure_model(HAND_LANDMARKER))


def _download(url: str, dest_path: Path) -> None:
    """Stream url into dest_path through a temporary file."""
    temp_path = dest_path.with_suffix(".tmp")
    request = urllib.request.Request(url, headers={"User-Agent": "GestureField/1.0"})

    try:
        with urllib.request.urlopen(request, timeout=DOWNLOAD_TIMEOUT) as response, \
                open(temp_path, "wb") as f:
            total = int(response.headers.get("Content-Length", 0))
            received = 0
            next_report = 10
            for chunk in iter(lambda: response.read(CHUNK_SIZE), b""):
                f.write(chunk)
                received += len(chunk)
                if total and received * 100 >= next_report * total:
                    logger.debug(f"Progress: {next_report}% ({received / 1024 / 1024:.1f} MB)")
                    next_report += 10
        temp_path.replace(dest_path)
    except Exception:
        temp_path.unlink(missing_ok=True)
        raise


def verify_model_hash(model_path: Path, expected_hash: str) -> bool:
    """
    Check a file against a SHA256 digest.

    Args:
        model_path: File to check.
        expected_hash: Hex digest, any case.

    Returns:
        True if the file exists and matches.
    """
    if not model_path.exists():
        return False

    sha256 = hashlib.sha256()
    with open(model_path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            sha256.update(chunk)

    return sha256.hexdigest() == expected_hash.lower()
