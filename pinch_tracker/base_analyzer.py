"""Base interface for analyzers that consume hand landmarks."""

from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from pinch_tracker.data_models import HandsResult

T = TypeVar("T")


class BaseAnalyzer(ABC, Generic[T]):
    """Abstract base class for landmark analyzers.

    Each analyzer takes the hand detection of one frame and produces
    its own type of result.
    """

    @abstractmethod
    def analyze(self, hands: HandsResult) -> T:
        """Analyze one frame of hand landmarks.

        Args:
            hands: HandLandmarker detection results.

        Returns:
            Analysis result for this frame.
        """

    @abstractmethod
    def get_state(self) -> dict[str, Any]:
        """Get the current state as a plain dict."""

    def reset(self) -> None:
        """Reset the analyzer's internal state.

        Override this method if your analyzer keeps state between frames.
        """
