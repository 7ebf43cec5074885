from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from alarms.errors import (
    AmbiguousOrInvalidLocalTime,
    DateInPast,
    InvalidDateFormat,
    InvalidTimeFormat,
)
from alarms.schedule import (
    clamp_lead_minutes,
    compute_next_fire,
    format_fire_time,
    parse_fire_time,
)
from alarms.weekdays import Weekday

TZ = timezone(timedelta(hours=9))
NEW_YORK = ZoneInfo("America/New_York")


def _now() -> datetime:
    return datetime(2025, 1, 1, 10, 0, tzinfo=TZ)


def test_date_label_respects_lead_minutes():
    result = compute_next_fire("11:00", "2025-01-01", False, [], 15, _now())
    assert result == datetime(2025, 1, 1, 10, 45, tzinfo=TZ)


def test_date_label_rejects_past_after_lead():
    with pytest.raises(DateInPast):
        compute_next_fire("10:10", "2025-01-01", False, [], 15, _now())


def test_date_label_exactly_now_is_past():
    with pytest.raises(DateInPast):
        compute_next_fire("10:00", "2025-01-01", False, [], 0, _now())


def test_blank_date_label_means_next_occurrence():
    result = compute_next_fire("09:00", "   ", False, [], 0, _now())
    assert result == datetime(2025, 1, 2, 9, 0, tzinfo=TZ)


def test_next_occurrence_same_day():
    result = compute_next_fire("10:30", None, False, [], 15, _now())
    assert result == datetime(2025, 1, 1, 10, 15, tzinfo=TZ)


def test_next_occurrence_rolls_over_one_day():
    assert compute_next_fire("09:00", None, False, [], 0, _now()) == datetime(2025, 1, 2, 9, 0, tzinfo=TZ)
    assert compute_next_fire("10:00", None, False, [], 0, _now()) == datetime(2025, 1, 2, 10, 0, tzinfo=TZ)


def test_next_occurrence_rolls_over_when_lead_passes_it():
    result = compute_next_fire("10:10", None, False, [], 15, _now())
    assert result == datetime(2025, 1, 2, 9, 55, tzinfo=TZ)


def test_repeat_skips_to_following_week():
    tuesday = datetime(2025, 1, 7, 9, 0, tzinfo=TZ)
    result = compute_next_fire("08:00", None, True, [Weekday.MON], 0, tuesday)
    assert result == datetime(2025, 1, 13, 8, 0, tzinfo=TZ)


def test_repeat_same_day_later_and_exact():
    monday_early = datetime(2025, 1, 6, 7, 0, tzinfo=TZ)
    assert compute_next_fire("08:00", None, True, ["Mon"], 0, monday_early) == datetime(2025, 1, 6, 8, 0, tzinfo=TZ)
    monday_exact = datetime(2025, 1, 6, 8, 0, tzinfo=TZ)
    assert compute_next_fire("08:00", None, True, ["Mon"], 0, monday_exact) == datetime(2025, 1, 13, 8, 0, tzinfo=TZ)


def test_repeat_picks_nearest_weekday_and_ignores_date_label():
    tuesday = datetime(2025, 1, 7, 9, 0, tzinfo=TZ)
    days = [Weekday.FRI, Weekday.WED, Weekday.WED]
    result = compute_next_fire("08:00", "2030-01-01", True, days, 0, tuesday)
    assert result == datetime(2025, 1, 8, 8, 0, tzinfo=TZ)


def test_repeat_with_lead_crossing_midnight():
    # Wednesday 23:50 plus a 30 minute lead already lands on Thursday
    wednesday = datetime(2025, 1, 8, 23, 50, tzinfo=TZ)
    result = compute_next_fire("00:10", None, True, [Weekday.THU], 30, wednesday)
    assert result == datetime(2025, 1, 15, 23, 40, tzinfo=TZ)


def test_lead_minutes_are_clamped():
    assert clamp_lead_minutes(-5) == 0
    assert clamp_lead_minutes(5000) == 720
    assert clamp_lead_minutes("12") == 12
    result = compute_next_fire("23:00", None, False, [], 5000, _now())
    assert result == datetime(2025, 1, 1, 11, 0, tzinfo=TZ)
    assert compute_next_fire("10:30", None, False, [], -5, _now()) == datetime(2025, 1, 1, 10, 30, tzinfo=TZ)


@pytest.mark.parametrize("label", ["7:30", "24:00", "12:60", "ab:cd", "12:00:00", ""])
def test_invalid_time_label(label):
    with pytest.raises(InvalidTimeFormat):
        compute_next_fire(label, None, False, [], 0, _now())


@pytest.mark.parametrize("label", ["2025/01/01", "2025-02-30", "01-01-2025"])
def test_invalid_date_label(label):
    with pytest.raises(InvalidDateFormat):
        compute_next_fire("11:00", label, False, [], 0, _now())


def test_result_plus_lead_is_always_after_now():
    now = datetime(2025, 6, 15, 13, 37, 12, tzinfo=TZ)
    for hour in range(0, 24, 5):
        for minute in (0, 37, 59):
            for lead in (0, 1, 15, 90, 720):
                label = f"{hour:02d}:{minute:02d}"
                result = compute_next_fire(label, None, False, [], lead, now)
                assert result + timedelta(minutes=lead) > now


def test_nonexistent_local_time_is_rejected():
    now = datetime(2025, 3, 8, 12, 0, tzinfo=NEW_YORK)
    with pytest.raises(AmbiguousOrInvalidLocalTime):
        compute_next_fire("02:30", "2025-03-09", False, [], 0, now)


def test_ambiguous_local_time_is_rejected():
    now = datetime(2025, 11, 1, 12, 0, tzinfo=NEW_YORK)
    with pytest.raises(AmbiguousOrInvalidLocalTime):
        compute_next_fire("01:30", "2025-11-02", False, [], 0, now)


def test_repeat_skips_day_without_single_local_time():
    saturday = datetime(2025, 3, 8, 12, 0, tzinfo=NEW_YORK)
    result = compute_next_fire("02:30", None, True, [Weekday.SUN], 0, saturday)
    assert result == datetime(2025, 3, 16, 2, 30, tzinfo=NEW_YORK)


def test_lead_is_subtracted_on_absolute_time_across_dst():
    now = datetime(2025, 3, 9, 1, 0, tzinfo=NEW_YORK)
    result = compute_next_fire("03:30", None, False, [], 60, now)
    assert result.astimezone(timezone.utc) == datetime(2025, 3, 9, 6, 30, tzinfo=timezone.utc)
    assert result.utcoffset() == timedelta(hours=-5)


def test_fire_time_format_round_trips():
    value = datetime(2025, 1, 1, 10, 45, 0, 123456, tzinfo=TZ)
    text = format_fire_time(value)
    assert text == "2025-01-01T01:45:00+00:00"
    assert parse_fire_time(text) == value.replace(microsecond=0)


def test_parse_fire_time_rejects_naive_and_garbage():
    with pytest.raises(ValueError):
        parse_fire_time("2025-01-01T10:45:00")
    with pytest.raises(ValueError):
        parse_fire_time("not a timestamp")


def test_parse_fire_time_accepts_nanosecond_precision():
    parsed = parse_fire_time("2025-01-01T10:45:00.123456789+09:00")
    assert parsed == datetime(2025, 1, 1, 10, 45, 0, 123456, tzinfo=TZ)
