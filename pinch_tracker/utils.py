"""Shared geometry helpers for landmark analysis."""

import math
from typing import Protocol


class SupportsXY(Protocol):
    """Anything with numeric ``x`` and ``y`` attributes.

    Covers our own Point2D/Landmark models as well as raw MediaPipe
    NormalizedLandmark objects.
    """

    x: float
    y: float


def landmark_distance(p1: SupportsXY, p2: SupportsXY) -> float:
    """Calculate 2D Euclidean distance between two landmarks.

    No range check is done on the coordinates. NaN propagates to the result
    and an infinite coordinate gives an infinite distance; nothing raises.
    """
    # hypot instead of ** 2: squaring a large float raises OverflowError
    return math.hypot(p1.x - p2.x, p1.y - p2.y)


distance = landmark_distance
