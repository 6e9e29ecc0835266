"""Tests for the timestamp freshness window (0 to 300 seconds, inclusive)."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from tailforward.core.exceptions import TimestampOutOfWindowError
from tailforward.core.freshness import TIMESTAMP_TOLERANCE_SECONDS, check_freshness

SIGNED_AT = datetime.fromtimestamp(1684518293, tz=timezone.utc)


@pytest.mark.parametrize("delta", [0, 1, 299, 300])
def test_accepts_within_window(delta: int) -> None:
    now = SIGNED_AT + timedelta(seconds=delta)
    assert check_freshness(SIGNED_AT, now) == delta


@pytest.mark.parametrize("delta", [301, 3600, -1, -300])
def test_rejects_outside_window(delta: int) -> None:
    now = SIGNED_AT + timedelta(seconds=delta)
    with pytest.raises(TimestampOutOfWindowError) as exc_info:
        check_freshness(SIGNED_AT, now)
    assert exc_info.value.delta == delta
    assert exc_info.value.status_code == 422


def test_sub_second_difference_is_truncated() -> None:
    now = SIGNED_AT + timedelta(seconds=300, milliseconds=900)
    assert check_freshness(SIGNED_AT, now) == 300


def test_custom_tolerance() -> None:
    now = SIGNED_AT + timedelta(seconds=61)
    with pytest.raises(TimestampOutOfWindowError):
        check_freshness(SIGNED_AT, now, tolerance=60)


def test_default_tolerance_is_five_minutes() -> None:
    assert TIMESTAMP_TOLERANCE_SECONDS == 300
