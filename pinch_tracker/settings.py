"""Configuration settings for the pinch tracker."""

from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CameraSettings(BaseModel):
    """Camera capture settings."""

    device_id: int = Field(default=0, description="Camera device ID")
    width: int = Field(default=1280, gt=0, description="Capture width")
    height: int = Field(default=720, gt=0, description="Capture height")
    fps: int = Field(default=30, gt=0, description="Target FPS")
    buffer_size: int = Field(default=5, ge=1, description="Frame buffer size")


class HandTrackingSettings(BaseModel):
    """MediaPipe HandLandmarker settings."""

    num_hands: int = Field(default=2, ge=1, le=2, description="Max hands to detect")
    min_detection_confidence: float = Field(
        default=0.5, ge=0.0, le=1.0, description="Min palm detection confidence"
    )
    min_presence_confidence: float = Field(
        default=0.5, ge=0.0, le=1.0, description="Min hand presence confidence"
    )
    min_tracking_confidence: float = Field(
        default=0.5, ge=0.0, le=1.0, description="Min tracking confidence"
    )
    clamp_coordinates: bool = Field(
        default=True, description="Clamp landmark x/y into [0,1]"
    )
    mirrored: bool = Field(
        default=True, description="Front camera: swap MediaPipe handedness labels"
    )
    model_path: Optional[Path] = Field(
        default=None, description="Local hand_landmarker.task, downloaded if unset"
    )

    model_config = ConfigDict(protected_namespaces=())


class PinchSettings(BaseModel):
    """Pinch detection thresholds, as a fraction of hand size."""

    start_ratio: float = Field(default=0.25, gt=0.0, description="Ratio to enter pinch")
    end_ratio: float = Field(default=0.35, gt=0.0, description="Ratio to release pinch")
    smoothing_window: int = Field(default=3, ge=1, description="Frames averaged")

    @model_validator(mode="after")
    def _check_hysteresis(self) -> "PinchSettings":
        if self.start_ratio >= self.end_ratio:
            raise ValueError("start_ratio must be lower than end_ratio")
        return self


class LoggingSettings(BaseModel):
    """Logging output settings."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    file: Optional[Path] = Field(default=None, description="Optional log file")


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    camera: CameraSettings = Field(default_factory=CameraSettings)
    hand_tracking: HandTrackingSettings = Field(default_factory=HandTrackingSettings)
    pinch: PinchSettings = Field(default_factory=PinchSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = SettingsConfigDict(
        env_prefix="PINCH_TRACKER_",
        env_nested_delimiter="__",
    )

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        """Load settings from YAML file, falling back to defaults if missing."""
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)
