"""Pinch detection from MediaPipe hand landmarks.

A pinch is the thumb tip touching the index tip. The raw tip distance
depends on how far the hand is from the camera, so it is divided by the
hand size (wrist to middle finger MCP) before thresholding. The ratio is
averaged over a few frames and compared against two thresholds:

    OPEN --[ratio < start_ratio]--> PINCHED   (event START)
    PINCHED --[ratio > end_ratio]--> OPEN     (event END)

MediaPipe hand landmark layout: wrist(0), thumb(1-4), index(5-8),
middle(9-12), ring(13-16), pinky(17-20).
"""

import math
from collections import deque
from dataclasses import dataclass
from typing import Any, Optional

from pinch_tracker.base_analyzer import BaseAnalyzer
from pinch_tracker.data_models import (
    HandLandmarks,
    HandSide,
    HandsResult,
    PinchEvent,
    PinchResult,
    PinchState,
    Point2D,
)
from pinch_tracker.settings import PinchSettings
from pinch_tracker.utils import landmark_distance

PinchPair = tuple[Optional[PinchResult], Optional[PinchResult]]


@dataclass
class _HandTrack:
    state: PinchState
    ratios: deque
    last_result: Optional[PinchResult] = None


class PinchAnalyzer(BaseAnalyzer[PinchPair]):
    """Tracks the pinch state of each hand independently."""

    WRIST = 0
    THUMB_TIP = 4
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    NUM_LANDMARKS = 21

    def __init__(self, settings: Optional[PinchSettings] = None) -> None:
        self._settings = settings or PinchSettings()
        self._tracks: dict[HandSide, _HandTrack] = {}

    def analyze(self, hands: HandsResult) -> PinchPair:
        """Analyze pinch for both hands. Returns (left, right)."""
        left = self._update(HandSide.LEFT, hands.get(HandSide.LEFT))
        right = self._update(HandSide.RIGHT, hands.get(HandSide.RIGHT))
        return left, right

    def _update(self, side: HandSide, hand: Optional[HandLandmarks]) -> Optional[PinchResult]:
        if hand is None or len(hand.landmarks) < self.NUM_LANDMARKS:
            # Hand lost: forget it, next appearance starts open
            self._tracks.pop(side, None)
            return None

        track = self._tracks.get(side)
        if track is None:
            track = _HandTrack(
                state=PinchState.OPEN,
                ratios=deque(maxlen=self._settings.smoothing_window),
            )
            self._tracks[side] = track

        landmarks = hand.landmarks
        thumb_tip = landmarks[self.THUMB_TIP]
        index_tip = landmarks[self.INDEX_TIP]

        tip_distance = landmark_distance(thumb_tip, index_tip)
        hand_size = landmark_distance(landmarks[self.WRIST], landmarks[self.MIDDLE_MCP])
        track.ratios.append(self._ratio(tip_distance, hand_size))
        smoothed = sum(track.ratios) / len(track.ratios)

        # Comparisons with NaN are False, so a NaN ratio keeps the state
        event = PinchEvent.NONE
        if track.state == PinchState.OPEN and smoothed < self._settings.start_ratio:
            track.state = PinchState.PINCHED
            event = PinchEvent.START
        elif track.state == PinchState.PINCHED and smoothed > self._settings.end_ratio:
            track.state = PinchState.OPEN
            event = PinchEvent.END

        result = PinchResult(
            hand=side,
            state=track.state,
            event=event,
            distance=tip_distance,
            ratio=smoothed,
            position=Point2D(
                x=(thumb_tip.x + index_tip.x) / 2,
                y=(thumb_tip.y + index_tip.y) / 2,
            ),
        )
        track.last_result = result
        return result

    @staticmethod
    def _ratio(tip_distance: float, hand_size: float) -> float:
        if hand_size == 0:
            # Degenerate hand, never counts as a pinch
            return math.inf
        return tip_distance / hand_size

    def is_pinched(self, side: HandSide) -> bool:
        track = self._tracks.get(side)
        return track is not None and track.state == PinchState.PINCHED

    def get_state(self) -> dict[str, Any]:
        """Get current pinch state per hand."""
        state: dict[str, Any] = {}
        for side, track in self._tracks.items():
            entry: dict[str, Any] = {"state": track.state.value}
            if track.last_result is not None:
                entry["ratio"] = round(track.last_result.ratio, 3)
                entry["position"] = (
                    round(track.last_result.position.x, 3),
                    round(track.last_result.position.y, 3),
                )
            state[f"{side.value}_hand"] = entry

        if not state:
            state["detected"] = False
        return state

    def reset(self) -> None:
        """Forget all hands."""
        self._tracks.clear()
