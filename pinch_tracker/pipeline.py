"""Pinch tracking pipeline - coordinates capture and analysis.

Processing chain:
Frame → Capture (threaded) → HandTracker → PinchAnalyzer → callbacks

Usage:
    pipeline = HandPipeline(config_path=Path("config.yaml"))
    pipeline.start()
    while True:
        result = pipeline.process_frame()  # FrameAnalysisResult or None
    pipeline.stop()
"""

import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from pinch_tracker.capture import ThreadedCapture
from pinch_tracker.data_models import FrameAnalysisResult
from pinch_tracker.hand_tracker import HandTracker
from pinch_tracker.pinch_analyzer import PinchAnalyzer
from pinch_tracker.settings import Settings

logger = logging.getLogger(__name__)

FrameCallback = Callable[[FrameAnalysisResult], None]


class HandPipeline:
    """Main orchestrator for the pinch tracking pipeline.

    Components are built from settings unless passed in explicitly.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        config_path: Optional[Path] = None,
        capture: Optional[ThreadedCapture] = None,
        tracker: Optional[HandTracker] = None,
        analyzer: Optional[PinchAnalyzer] = None,
    ) -> None:
        if config_path is not None:
            self._settings = Settings.from_yaml(config_path)
        else:
            self._settings = settings or Settings()

        self._capture = capture or ThreadedCapture(self._settings.camera)
        self._tracker = tracker or HandTracker(self._settings.hand_tracking)
        self._analyzer = analyzer or PinchAnalyzer(self._settings.pinch)

        self._frame_count = 0
        self._last_frame_ts: Optional[int] = None
        self._is_running = False
        self._callbacks: list[FrameCallback] = []

    @property
    def settings(self) -> Settings:
        return self._settings

    def start(self) -> bool:
        """Reset analysis state and start capturing.

        Returns:
            True if the camera started successfully.
        """
        self._tracker.reset()
        self._analyzer.reset()
        self._frame_count = 0
        self._last_frame_ts = None

        self._is_running = self._capture.start()
        return self._is_running

    def stop(self) -> None:
        """Stop the pipeline and release resources."""
        self._is_running = False
        try:
            self._capture.stop()
        except Exception:
            logger.warning("Error stopping capture", exc_info=True)

        try:
            self._tracker.close()
        except Exception:
            logger.warning("Error closing hand tracker", exc_info=True)

    def process_frame(self) -> Optional[FrameAnalysisResult]:
        """Process the latest captured frame.

        Returns:
            The analysis result, or None if no new frame is available.
        """
        captured = self._capture.read()
        if captured is None or captured.timestamp_ms == self._last_frame_ts:
            return None
        self._last_frame_ts = captured.timestamp_ms

        start_time = time.perf_counter()

        hands = self._tracker.analyze(captured.image, captured.timestamp_ms)
        left_pinch, right_pinch = self._analyzer.analyze(hands)

        processing_time_ms = (time.perf_counter() - start_time) * 1000

        result = FrameAnalysisResult(
            hands=hands,
            left_pinch=left_pinch,
            right_pinch=right_pinch,
            frame_number=self._frame_count,
            processing_time_ms=processing_time_ms,
            timestamp=datetime.now(),
        )
        self._frame_count += 1

        for callback in list(self._callbacks):
            try:
                callback(result)
            except Exception:
                logger.exception("Frame callback %r failed", callback)

        return result

    def add_callback(self, callback: FrameCallback) -> None:
        """Add a callback to be called after each frame is processed."""
        self._callbacks.append(callback)

    def remove_callback(self, callback: FrameCallback) -> None:
        """Remove a previously added callback."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def get_state(self) -> dict:
        """Aggregated state from all components."""
        stats = self._capture.get_stats()
        return {
            "hands": self._tracker.get_state(),
            "pinch": self._analyzer.get_state(),
            "capture": {"fps": stats.fps, "running": stats.is_running},
            "frames": self._frame_count,
        }

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def frame_count(self) -> int:
        return self._frame_count

    def __enter__(self) -> "HandPipeline":
        self.start()
        return self

    def __exit__(self, *args) -> None:
        self.stop()
