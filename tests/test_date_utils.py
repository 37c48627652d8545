"""
Tests for the UTC date helpers
"""
from datetime import datetime, timedelta, timezone

import pytest

from utils.date_utils import (
    days_remaining,
    ensure_utc,
    from_epoch_ms,
    parse_utc_date,
    to_utc_iso,
    utc_day_bounds,
    utc_month_bounds,
)


def test_month_bounds_are_half_open():
    start, end = utc_month_bounds(2025, 3)

    assert start == datetime(2025, 3, 1, tzinfo=timezone.utc)
    assert end == datetime(2025, 4, 1, tzinfo=timezone.utc)

    first_instant = datetime(2025, 3, 1, 0, 0, 0, tzinfo=timezone.utc)
    last_instant = datetime(2025, 3, 31, 23, 59, 59, 999999, tzinfo=timezone.utc)
    next_month = datetime(2025, 4, 1, tzinfo=timezone.utc)
    assert start <= first_instant < end
    assert start <= last_instant < end
    assert not next_month < end


def test_month_bounds_december_rolls_over():
    start, end = utc_month_bounds(2024, 12)
    assert start == datetime(2024, 12, 1, tzinfo=timezone.utc)
    assert end == datetime(2025, 1, 1, tzinfo=timezone.utc)


def test_month_bounds_default_to_now():
    now = datetime(2025, 7, 31, 22, 30, tzinfo=timezone(timedelta(hours=-5)))
    # 22:30 at UTC-5 is already August 1st in UTC
    start, end = utc_month_bounds(now=now)
    assert start == datetime(2025, 8, 1, tzinfo=timezone.utc)
    assert end == datetime(2025, 9, 1, tzinfo=timezone.utc)


def test_month_bounds_reject_invalid_month():
    with pytest.raises(ValueError):
        utc_month_bounds(2025, 13)


def test_day_bounds():
    start, end = utc_day_bounds("2025-02-28")
    assert start == datetime(2025, 2, 28, tzinfo=timezone.utc)
    assert end == datetime(2025, 3, 1, tzinfo=timezone.utc)


def test_parse_utc_date_variants():
    assert parse_utc_date("2025-01-02T03:04:05Z") == datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert parse_utc_date("2025-01-02T05:04:05+02:00") == datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    # No offset means UTC
    assert parse_utc_date("2025-01-02T03:04:05") == datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert parse_utc_date(None) is None
    with pytest.raises(ValueError):
        parse_utc_date("yesterday")


def test_ensure_utc_treats_naive_as_utc():
    naive = datetime(2025, 5, 1, 12, 0)
    assert ensure_utc(naive) == datetime(2025, 5, 1, 12, 0, tzinfo=timezone.utc)


def test_epoch_ms_and_iso_format():
    moment = from_epoch_ms(1735689600000)
    assert moment == datetime(2025, 1, 1, tzinfo=timezone.utc)
    assert to_utc_iso(moment) == "2025-01-01T00:00:00.000Z"
    assert from_epoch_ms(None) is None


def test_days_remaining_rounds_up_and_floors_at_zero():
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)
    assert days_remaining(now + timedelta(days=6, hours=1), now) == 7
    assert days_remaining(now + timedelta(days=7), now) == 7
    assert days_remaining(now - timedelta(hours=1), now) == 0
    assert days_remaining(None, now) == 0
