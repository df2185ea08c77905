from __future__ import annotations

import math

import pytest

from conftest import build_hand
from pinch_tracker.data_models import (
    HandLandmarks,
    HandSide,
    HandsResult,
    Landmark,
    PinchEvent,
    PinchState,
)
from pinch_tracker.pinch_analyzer import PinchAnalyzer, _HandTrack
from pinch_tracker.settings import PinchSettings

# Hand size in the fixtures is 0.4, so a gap of 0.04 is a ratio of 0.1.
PINCHED_GAP = 0.04
BETWEEN_GAP = 0.12  # ratio 0.3, between start and end thresholds
OPEN_GAP = 0.2  # ratio 0.5


@pytest.fixture
def analyzer() -> PinchAnalyzer:
    return PinchAnalyzer(PinchSettings(start_ratio=0.25, end_ratio=0.35, smoothing_window=1))


def right_only(hand: HandLandmarks) -> HandsResult:
    return HandsResult(right=hand)


def test_no_hands_gives_no_results(analyzer: PinchAnalyzer) -> None:
    assert analyzer.analyze(HandsResult()) == (None, None)
    assert analyzer.get_state() == {"detected": False}


def test_open_hand(analyzer: PinchAnalyzer, make_hand) -> None:
    _, right = analyzer.analyze(right_only(make_hand(gap=OPEN_GAP)))

    assert right is not None
    assert right.hand == HandSide.RIGHT
    assert right.state == PinchState.OPEN
    assert right.event == PinchEvent.NONE
    assert right.distance == pytest.approx(OPEN_GAP)
    assert right.ratio == pytest.approx(0.5)
    assert right.position.x == pytest.approx(0.5)
    assert right.position.y == pytest.approx(0.4)


def test_pinch_start_and_end_events(analyzer: PinchAnalyzer, make_hand) -> None:
    _, first = analyzer.analyze(right_only(make_hand(gap=PINCHED_GAP)))
    _, held = analyzer.analyze(right_only(make_hand(gap=PINCHED_GAP)))
    _, released = analyzer.analyze(right_only(make_hand(gap=OPEN_GAP)))

    assert first.state == PinchState.PINCHED
    assert first.event == PinchEvent.START
    assert first.is_pinched
    assert held.state == PinchState.PINCHED
    assert held.event == PinchEvent.NONE
    assert released.state == PinchState.OPEN
    assert released.event == PinchEvent.END


def test_hysteresis_band_keeps_current_state(analyzer: PinchAnalyzer, make_hand) -> None:
    _, result = analyzer.analyze(right_only(make_hand(gap=BETWEEN_GAP)))
    assert result.state == PinchState.OPEN

    analyzer.analyze(right_only(make_hand(gap=PINCHED_GAP)))
    _, result = analyzer.analyze(right_only(make_hand(gap=BETWEEN_GAP)))
    assert result.state == PinchState.PINCHED
    assert result.event == PinchEvent.NONE


def test_hands_are_tracked_independently(analyzer: PinchAnalyzer, make_hand) -> None:
    hands = HandsResult(
        left=make_hand(HandSide.LEFT, gap=PINCHED_GAP),
        right=make_hand(HandSide.RIGHT, gap=OPEN_GAP),
    )

    left, right = analyzer.analyze(hands)

    assert left.state == PinchState.PINCHED
    assert right.state == PinchState.OPEN
    assert analyzer.is_pinched(HandSide.LEFT)
    assert not analyzer.is_pinched(HandSide.RIGHT)


def test_lost_hand_starts_open_again(analyzer: PinchAnalyzer, make_hand) -> None:
    analyzer.analyze(right_only(make_hand(gap=PINCHED_GAP)))
    assert analyzer.is_pinched(HandSide.RIGHT)

    assert analyzer.analyze(HandsResult()) == (None, None)
    assert not analyzer.is_pinched(HandSide.RIGHT)

    _, result = analyzer.analyze(right_only(make_hand(gap=OPEN_GAP)))
    assert result.state == PinchState.OPEN
    assert result.event == PinchEvent.NONE


def test_smoothing_delays_pinch(make_hand) -> None:
    analyzer = PinchAnalyzer(PinchSettings(smoothing_window=2))

    analyzer.analyze(right_only(make_hand(gap=OPEN_GAP)))
    # mean of 0.5 and 0.1 is 0.3: still open
    _, result = analyzer.analyze(right_only(make_hand(gap=PINCHED_GAP)))
    assert result.state == PinchState.OPEN
    assert result.ratio == pytest.approx(0.3)

    _, result = analyzer.analyze(right_only(make_hand(gap=PINCHED_GAP)))
    assert result.state == PinchState.PINCHED
    assert result.event == PinchEvent.START

    # only the last two ratios count
    _, result = analyzer.analyze(right_only(make_hand(gap=PINCHED_GAP)))
    assert result.ratio == pytest.approx(0.1)


def test_incomplete_hand_is_ignored(analyzer: PinchAnalyzer) -> None:
    partial = HandLandmarks(
        side=HandSide.RIGHT, landmarks=[Landmark(x=0.5, y=0.5)] * 10
    )
    assert analyzer.analyze(HandsResult(right=partial)) == (None, None)


def test_zero_hand_size_is_never_pinched(analyzer: PinchAnalyzer) -> None:
    hand = HandLandmarks(
        side=HandSide.RIGHT, landmarks=[Landmark(x=0.5, y=0.5)] * 21
    )

    _, result = analyzer.analyze(HandsResult(right=hand))

    assert result.distance == 0.0
    assert result.ratio == math.inf
    assert result.state == PinchState.OPEN


def test_nan_landmarks_keep_state(analyzer: PinchAnalyzer, make_hand) -> None:
    analyzer.analyze(right_only(make_hand(gap=PINCHED_GAP)))
    nan_hand = build_hand(HandSide.RIGHT, (math.nan, 0.4), (0.5, 0.4))

    _, result = analyzer.analyze(right_only(nan_hand))

    assert math.isnan(result.distance)
    assert math.isnan(result.ratio)
    assert result.state == PinchState.PINCHED
    assert result.event == PinchEvent.NONE


def test_get_state_and_reset(analyzer: PinchAnalyzer, make_hand) -> None:
    analyzer.analyze(right_only(make_hand(gap=PINCHED_GAP)))

    state = analyzer.get_state()
    assert state["right_hand"]["state"] == "pinched"
    assert state["right_hand"]["ratio"] == pytest.approx(0.1)
    assert state["right_hand"]["position"] == (0.5, 0.4)

    analyzer.reset()
    assert analyzer.get_state() == {"detected": False}


def test_hand_track_requires_bounded_history() -> None:
    with pytest.raises(TypeError):
        _HandTrack(state=PinchState.OPEN)


def test_left_hand_is_looked_up_by_side(analyzer: PinchAnalyzer, make_hand) -> None:
    left, right = analyzer.analyze(HandsResult(left=make_hand(HandSide.LEFT, gap=PINCHED_GAP)))

    assert right is None
    assert left.hand == HandSide.LEFT
    assert left.event == PinchEvent.START
