"""MediaPipe wrapper for hand landmark detection.

Uses the MediaPipe Tasks HandLandmarker (21 landmarks per hand, up to
two hands) in VIDEO running mode, which smooths landmarks between frames
but requires strictly increasing timestamps.

The model is downloaded to ~/.cache/pinch-tracker/models/ on first run
unless HandTrackingSettings.model_path points at a local copy.
"""

import logging
import math
import urllib.request
from pathlib import Path
from typing import Any, Optional

import cv2
import mediapipe as mp
import numpy as np
from mediapipe.tasks import python
from mediapipe.tasks.python import vision

from pinch_tracker.data_models import HandLandmarks, HandSide, HandsResult, Landmark
from pinch_tracker.settings import HandTrackingSettings

logger = logging.getLogger(__name__)

MODEL_DIR = Path.home() / ".cache" / "pinch-tracker" / "models"
HAND_MODEL_FILENAME = "hand_landmarker.task"
HAND_MODEL_URL = "https://storage.googleapis.com/mediapipe-models/hand_landmarker/hand_landmarker/float16/latest/hand_landmarker.task"

# Timestamp step used when the caller does not provide one (~30 fps)
DEFAULT_FRAME_STEP_MS = 33


def _ensure_model(filename: str, url: str) -> Path:
    """Download a model into MODEL_DIR if not present."""
    MODEL_DIR.mkdir(parents=True, exist_ok=True)
    path = MODEL_DIR / filename
    if not path.exists():
        logger.info("Downloading %s ...", filename)
        urllib.request.urlretrieve(url, path)
        logger.info("Downloaded %s to %s", filename, path)
    return path


def _clamp_unit(value: float) -> float:
    # NaN passes through unclamped
    if math.isnan(value):
        return value
    return max(0.0, min(1.0, value))


def convert_landmarks(landmarks, clamp: bool = True) -> list[Landmark]:
    """Convert MediaPipe NormalizedLandmarks to Landmark models."""
    result = []
    for lm in landmarks:
        x, y = lm.x, lm.y
        if clamp:
            x = _clamp_unit(x)
            y = _clamp_unit(y)
        visibility = getattr(lm, "visibility", None)
        if visibility is not None and not 0.0 <= visibility <= 1.0:
            visibility = None
        result.append(Landmark(x=x, y=y, z=lm.z, visibility=visibility))
    return result


class HandTracker:
    """Detects hand landmarks using the MediaPipe Tasks HandLandmarker."""

    def __init__(self, settings: Optional[HandTrackingSettings] = None) -> None:
        self._settings = settings or HandTrackingSettings()
        self._landmarker: Optional[vision.HandLandmarker] = None
        self._initialize()

    def _initialize(self) -> None:
        """Create or recreate the landmarker."""
        self._last_timestamp_ms = -1
        self._last_result: Optional[HandsResult] = None

        try:
            model_path = self._settings.model_path or _ensure_model(
                HAND_MODEL_FILENAME, HAND_MODEL_URL
            )
            self._landmarker = vision.HandLandmarker.create_from_options(
                vision.HandLandmarkerOptions(
                    base_options=python.BaseOptions(model_asset_path=str(model_path)),
                    num_hands=self._settings.num_hands,
                    min_hand_detection_confidence=self._settings.min_detection_confidence,
                    min_hand_presence_confidence=self._settings.min_presence_confidence,
                    min_tracking_confidence=self._settings.min_tracking_confidence,
                    running_mode=vision.RunningMode.VIDEO,
                )
            )
        except Exception:
            logger.exception("HandLandmarker failed to initialize, hand tracking disabled")
            self._landmarker = None

    @property
    def is_available(self) -> bool:
        return self._landmarker is not None

    def _next_timestamp(self, timestamp_ms: Optional[int]) -> int:
        # VIDEO mode rejects timestamps that do not increase
        if timestamp_ms is None:
            ts = self._last_timestamp_ms + DEFAULT_FRAME_STEP_MS
        else:
            ts = max(timestamp_ms, self._last_timestamp_ms + 1)
        self._last_timestamp_ms = max(ts, 0)
        return self._last_timestamp_ms

    def analyze(self, frame: np.ndarray, timestamp_ms: Optional[int] = None) -> HandsResult:
        """Run hand detection on a frame.

        Args:
            frame: BGR image from OpenCV.
            timestamp_ms: Capture time of the frame; bumped if not increasing.

        Returns:
            HandsResult with the detected hands (empty on failure).
        """
        ts = self._next_timestamp(timestamp_ms)
        left: Optional[HandLandmarks] = None
        right: Optional[HandLandmarks] = None

        if self._landmarker is not None:
            try:
                # MediaPipe expects RGB, OpenCV provides BGR
                rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
                mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb_frame)
                detection = self._landmarker.detect_for_video(mp_image, ts)
                left, right = self._split_hands(detection)
            except Exception:
                logger.exception("Hand detection failed at %d ms", ts)

        result = HandsResult(left=left, right=right, timestamp_ms=ts)
        self._last_result = result
        return result

    def _split_hands(
        self, detection
    ) -> tuple[Optional[HandLandmarks], Optional[HandLandmarks]]:
        """Assign detected hands to sides using MediaPipe handedness."""
        left = None
        right = None
        if not detection.hand_landmarks or not detection.handedness:
            return left, right

        for raw_landmarks, handedness in zip(detection.hand_landmarks, detection.handedness):
            category = handedness[0]
            side = HandSide.LEFT if category.category_name == "Left" else HandSide.RIGHT
            # MediaPipe assumes a mirrored (selfie) image for handedness
            if self._settings.mirrored:
                side = HandSide.RIGHT if side == HandSide.LEFT else HandSide.LEFT

            hand = HandLandmarks(
                side=side,
                landmarks=convert_landmarks(raw_landmarks, clamp=self._settings.clamp_coordinates),
                score=max(0.0, min(1.0, category.score)),
            )
            # Keep the more confident hand if both got the same label
            if side == HandSide.LEFT:
                if left is None or hand.score > left.score:
                    left = hand
            elif right is None or hand.score > right.score:
                right = hand

        return left, right

    def get_state(self) -> dict[str, Any]:
        """Get current detection state."""
        if self._last_result is None:
            return {"detected": False}
        return {
            "detected": bool(self._last_result.hands),
            "left_hand": self._last_result.has_left,
            "right_hand": self._last_result.has_right,
        }

    def reset(self) -> None:
        """Recreate the landmarker so timestamps can start over."""
        self.close()
        self._initialize()

    def close(self) -> None:
        """Release MediaPipe resources."""
        if self._landmarker is not None:
            try:
                self._landmarker.close()
            except Exception:
                logger.warning("Error closing HandLandmarker", exc_info=True)
        self._landmarker = None

    def __enter__(self) -> "HandTracker":
        return self

    def __exit__(self, *args) -> None:
        self.close()
