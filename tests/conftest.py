"""Pytest configuration helpers for pinch_tracker tests."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Callable

import pytest

# Make the package and main.py importable without an editable install.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from pinch_tracker.data_models import HandLandmarks, HandSide, Landmark  # noqa: E402

WRIST = (0.5, 0.9)
MIDDLE_MCP = (0.5, 0.5)  # hand size 0.4
FILLER = (0.5, 0.7)


def build_hand(
    side: HandSide,
    thumb_tip: tuple[float, float],
    index_tip: tuple[float, float],
) -> HandLandmarks:
    """Build a 21-landmark hand with the given thumb and index tips."""

    points = [FILLER] * 21
    points[0] = WRIST
    points[9] = MIDDLE_MCP
    points[4] = thumb_tip
    points[8] = index_tip
    return HandLandmarks(
        side=side,
        landmarks=[Landmark(x=x, y=y) for x, y in points],
    )


@pytest.fixture
def make_hand() -> Callable[..., HandLandmarks]:
    """Factory for hands whose tips are ``gap`` apart horizontally around x=0.5."""

    def _make(side: HandSide = HandSide.RIGHT, gap: float = 0.2) -> HandLandmarks:
        return build_hand(side, (0.5 - gap / 2, 0.4), (0.5 + gap / 2, 0.4))

    return _make


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep PINCH_TRACKER_* variables from the host out of the tests."""

    for name in list(os.environ):
        if name.startswith("PINCH_TRACKER_"):
            monkeypatch.delenv(name, raising=False)
