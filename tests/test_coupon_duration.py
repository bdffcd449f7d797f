from datetime import datetime, timedelta, timezone

import pytest

from app.services.coupons import DurationShape, compute_expires_at, parse_duration


@pytest.mark.parametrize(
    ("text", "shape", "minutes"),
    [
        ("2hrs 30min", DurationShape.HOURS_MINUTES, 150),
        ("1hr 5mins", DurationShape.HOURS_MINUTES, 65),
        ("2HRS 30MIN", DurationShape.HOURS_MINUTES, 150),
        ("3hrs", DurationShape.HOURS, 180),
        ("1hr", DurationShape.HOURS, 60),
        ("45min", DurationShape.MINUTES, 45),
        ("45 mins", DurationShape.MINUTES, 45),
        ("  10min  ", DurationShape.MINUTES, 10),
    ],
)
def test_recognized_shapes(text: str, shape: DurationShape, minutes: int) -> None:
    parsed = parse_duration(text)
    assert parsed.shape is shape
    assert parsed.minutes == minutes


@pytest.mark.parametrize("text", ["", None, "two hours", "1 day", "30min 2hrs", "2hrs30", "-5min"])
def test_unrecognized_durations_add_nothing(text) -> None:
    assert parse_duration(text) == (DurationShape.UNRECOGNIZED, 0)


def test_expiry_is_base_plus_duration() -> None:
    base = datetime(2025, 3, 1, 8, 0, tzinfo=timezone.utc)
    assert compute_expires_at(base, "2hrs 30min") == base + timedelta(minutes=150)
    assert compute_expires_at(base, "45min") == base + timedelta(minutes=45)
    assert compute_expires_at(base, "soon") == base
