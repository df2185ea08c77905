#!/usr/bin/env python3
"""Main entry point for the pinch tracker.

Runs the pinch pipeline headless and logs pinch start/end events:

    python main.py --config config/config.yaml --camera 1

Threading model:
    [Main Thread]     - HandPipeline.process_frame() loop
    [Capture Thread]  - Webcam capture (inside ThreadedCapture)
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

from pinch_tracker.data_models import FrameAnalysisResult, PinchEvent
from pinch_tracker.logging_config import setup_logging
from pinch_tracker.settings import Settings

logger = logging.getLogger("pinch_tracker.main")

DEFAULT_CONFIG_PATH = Path("config/config.yaml")
IDLE_SLEEP_SECONDS = 0.005


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Detect thumb/index pinches from a webcam.")
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help="YAML settings file (defaults are used if it does not exist)",
    )
    parser.add_argument("--camera", type=int, default=None, help="Camera device ID")
    parser.add_argument(
        "--max-frames",
        type=int,
        default=None,
        help="Stop after this many processed frames",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Override the configured log level",
    )
    return parser.parse_args(argv)


def load_settings(args: argparse.Namespace) -> Settings:
    """Load settings from YAML and apply command line overrides."""
    settings = Settings.from_yaml(args.config)

    if args.camera is not None:
        camera = settings.camera.model_copy(update={"device_id": args.camera})
        settings = settings.model_copy(update={"camera": camera})
    if args.log_level is not None:
        log_settings = settings.logging.model_copy(update={"level": args.log_level})
        settings = settings.model_copy(update={"logging": log_settings})

    return settings


def log_pinch_events(result: FrameAnalysisResult) -> None:
    """Frame callback logging pinch transitions."""
    for pinch in result.pinches:
        if pinch.event == PinchEvent.NONE:
            continue
        logger.info(
            "Frame %d: %s hand pinch %s at (%.3f, %.3f)",
            result.frame_number,
            pinch.hand.value,
            pinch.event.value,
            pinch.position.x,
            pinch.position.y,
        )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    settings = load_settings(args)
    log_file = str(settings.logging.file) if settings.logging.file else None
    setup_logging(settings.logging.level, log_file)

    # Imported here so --help works without MediaPipe initializing
    from pinch_tracker.pipeline import HandPipeline

    pipeline = HandPipeline(settings=settings)
    pipeline.add_callback(log_pinch_events)

    if not pipeline.start():
        logger.error("Camera %d could not be opened", settings.camera.device_id)
        pipeline.stop()
        return 1

    logger.info("Pinch tracking started, press Ctrl+C to stop")
    try:
        while pipeline.is_running:
            if args.max_frames is not None and pipeline.frame_count >= args.max_frames:
                break
            if pipeline.process_frame() is None:
                time.sleep(IDLE_SLEEP_SECONDS)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        pipeline.stop()
        logger.info("Total frames processed: %d", pipeline.frame_count)

    return 0


if __name__ == "__main__":
    sys.exit(main())
