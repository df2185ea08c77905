"""Hand pinch tracking on top of MediaPipe hand landmarks."""

from pinch_tracker.data_models import Landmark, Point2D
from pinch_tracker.utils import distance, landmark_distance

__all__ = ["Landmark", "Point2D", "distance", "landmark_distance"]
