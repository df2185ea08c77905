"""Threaded webcam capture for non-blocking video acquisition.

A background thread reads frames from the webcam into a bounded deque;
the consumer picks up the newest frame whenever it is ready. Each frame
carries a monotonic capture timestamp, which HandTracker feeds to
MediaPipe's VIDEO running mode.

Threading model:
    [Capture Thread] --append--> [deque buffer] <--read-- [Consumer Thread]
                                   (with lock)
"""

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from pinch_tracker.settings import CameraSettings

logger = logging.getLogger(__name__)


@dataclass
class CaptureStats:
    """Statistics about capture performance."""

    fps: float
    dropped_frames: int
    buffer_size: int
    is_running: bool


@dataclass
class CapturedFrame:
    """A BGR frame and the monotonic time it was grabbed, in milliseconds."""

    image: np.ndarray
    timestamp_ms: int


def _now_ms() -> int:
    return int(time.monotonic() * 1000)


class ThreadedCapture:
    """Thread-safe webcam capture with frame buffering."""

    def __init__(self, settings: Optional[CameraSettings] = None) -> None:
        self._settings = settings or CameraSettings()
        self._buffer: deque[CapturedFrame] = deque(maxlen=self._settings.buffer_size)
        self._lock = threading.Lock()
        self._stopped = threading.Event()
        self._stopped.set()
        self._cap: Optional[cv2.VideoCapture] = None
        self._thread: Optional[threading.Thread] = None

        self._frame_count = 0
        self._dropped_frames = 0
        self._start_time = 0.0

    def start(self) -> bool:
        """Open the camera and start the capture thread.

        Returns:
            True if camera opened successfully, False otherwise.
        """
        self._cap = cv2.VideoCapture(self._settings.device_id)

        if not self._cap.isOpened():
            logger.error("Could not open camera %d", self._settings.device_id)
            self._cap.release()
            self._cap = None
            return False

        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._settings.width)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._settings.height)
        self._cap.set(cv2.CAP_PROP_FPS, self._settings.fps)
        # Keep OpenCV's own queue short so we always get a recent frame
        self._cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)

        self._stopped.clear()
        self._start_time = time.monotonic()
        self._frame_count = 0
        self._dropped_frames = 0

        self._thread = threading.Thread(
            target=self._capture_loop, name="pinch-tracker-capture", daemon=True
        )
        self._thread.start()

        logger.info(
            "Camera %d started (%dx%d @ %d fps)",
            self._settings.device_id,
            self._settings.width,
            self._settings.height,
            self._settings.fps,
        )
        return True

    def stop(self) -> None:
        """Stop the capture thread and release the camera."""
        self._stopped.set()

        if self._thread is not None:
            self._thread.join(timeout=2.0)
            if self._thread.is_alive():
                logger.warning("Capture thread did not exit within 2s")
            self._thread = None

        if self._cap is not None:
            self._cap.release()
            self._cap = None

        with self._lock:
            self._buffer.clear()

    def read(self) -> Optional[CapturedFrame]:
        """Get a copy of the most recent frame, or None if the buffer is empty."""
        with self._lock:
            if not self._buffer:
                return None
            latest = self._buffer[-1]
            return CapturedFrame(image=latest.image.copy(), timestamp_ms=latest.timestamp_ms)

    def get_stats(self) -> CaptureStats:
        """Get capture performance statistics."""
        elapsed = time.monotonic() - self._start_time if self._start_time > 0 else 0.0
        fps = self._frame_count / elapsed if elapsed > 0 else 0.0

        with self._lock:
            buffer_size = len(self._buffer)

        return CaptureStats(
            fps=round(fps, 1),
            dropped_frames=self._dropped_frames,
            buffer_size=buffer_size,
            is_running=self.is_running,
        )

    @property
    def is_running(self) -> bool:
        return not self._stopped.is_set()

    def _capture_loop(self) -> None:
        target_interval = 1.0 / self._settings.fps

        while not self._stopped.is_set():
            loop_start = time.monotonic()

            if self._cap is None or not self._cap.isOpened():
                logger.warning("Camera closed unexpectedly, stopping capture loop")
                break

            ret, frame = self._cap.read()
            if not ret or frame is None:
                time.sleep(0.001)
                continue

            captured = CapturedFrame(image=frame, timestamp_ms=_now_ms())
            with self._lock:
                # deque evicts the oldest frame when full
                if len(self._buffer) == self._buffer.maxlen:
                    self._dropped_frames += 1
                self._buffer.append(captured)
            self._frame_count += 1

            sleep_time = target_interval - (time.monotonic() - loop_start)
            if sleep_time > 0:
                time.sleep(sleep_time)

    def __enter__(self) -> "ThreadedCapture":
        self.start()
        return self

    def __exit__(self, *args) -> None:
        self.stop()
