"""Pydantic data models for hand tracking results.

All models are frozen (immutable) so they can be handed to callbacks
and other threads without copying. FrameAnalysisResult is the top-level
container for a single processed frame and provides to_context() for
compact serialization.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class HandSide(str, Enum):
    """Which hand."""

    LEFT = "left"
    RIGHT = "right"


class PinchState(str, Enum):
    """Pinch state of a single hand."""

    OPEN = "open"
    PINCHED = "pinched"


class PinchEvent(str, Enum):
    """Transition emitted on the frame where the state changes."""

    NONE = "none"
    START = "start"
    END = "end"


class Point2D(BaseModel):
    """A 2D point, usually in normalized image coordinates.

    No bounds are enforced: values outside [0,1], NaN and infinities
    are all accepted.
    """

    x: float
    y: float

    model_config = ConfigDict(frozen=True)


class Landmark(Point2D):
    """A single MediaPipe landmark.

    Note: MediaPipe can return coordinates slightly outside [0,1] range
    when landmarks are near image edges. HandTracker clamps them unless
    configured otherwise.
    """

    z: float = Field(default=0.0, description="Depth relative to the wrist")
    visibility: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class HandLandmarks(BaseModel):
    """The 21 landmarks of one detected hand."""

    side: HandSide
    landmarks: list[Landmark]
    score: float = Field(default=1.0, ge=0.0, le=1.0, description="Handedness score")

    model_config = ConfigDict(frozen=True)


class HandsResult(BaseModel):
    """Raw hand landmark detection for one frame."""

    left: Optional[HandLandmarks] = None
    right: Optional[HandLandmarks] = None
    timestamp_ms: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)

    @property
    def has_left(self) -> bool:
        """Check if left hand was detected."""
        return self.left is not None and len(self.left.landmarks) > 0

    @property
    def has_right(self) -> bool:
        """Check if right hand was detected."""
        return self.right is not None and len(self.right.landmarks) > 0

    @property
    def hands(self) -> list[HandLandmarks]:
        """Detected hands, left first."""
        return [h for h in (self.left, self.right) if h is not None and h.landmarks]

    def get(self, side: HandSide) -> Optional[HandLandmarks]:
        return self.left if side == HandSide.LEFT else self.right


class PinchResult(BaseModel):
    """Result of pinch analysis for one hand."""

    hand: HandSide
    state: PinchState
    event: PinchEvent = PinchEvent.NONE
    distance: float = Field(description="Thumb tip to index tip distance")
    ratio: float = Field(description="Smoothed distance divided by hand size")
    position: Point2D = Field(description="Midpoint between thumb tip and index tip")
    timestamp: datetime = Field(default_factory=datetime.now)

    model_config = ConfigDict(frozen=True)

    @property
    def is_pinched(self) -> bool:
        return self.state == PinchState.PINCHED


class FrameAnalysisResult(BaseModel):
    """Complete analysis result for a single frame."""

    hands: HandsResult
    left_pinch: Optional[PinchResult] = None
    right_pinch: Optional[PinchResult] = None
    frame_number: int = Field(ge=0)
    processing_time_ms: float = Field(ge=0.0)
    timestamp: datetime = Field(default_factory=datetime.now)

    model_config = ConfigDict(frozen=True)

    @property
    def pinches(self) -> list[PinchResult]:
        return [p for p in (self.left_pinch, self.right_pinch) if p is not None]

    def to_context(self) -> dict:
        """Convert to a compact, JSON-friendly dict."""
        context: dict = {
            "timestamp": self.timestamp.isoformat(),
            "frame": self.frame_number,
            "hands": [hand.side.value for hand in self.hands.hands],
        }

        for pinch in self.pinches:
            entry = {
                "state": pinch.state.value,
                "ratio": round(pinch.ratio, 3),
                "position": (round(pinch.position.x, 3), round(pinch.position.y, 3)),
            }
            if pinch.event != PinchEvent.NONE:
                entry["event"] = pinch.event.value
            context[f"{pinch.hand.value}_pinch"] = entry

        return context
