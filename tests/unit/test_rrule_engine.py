"""Unit tests for calendarbot_rrule.rrule_engine (dateutil-backed expansion)."""

import pytest

from calendarbot_rrule.rrule_datetime import DateTime
from calendarbot_rrule.rrule_engine import DateutilRecurrenceEngine, get_default_engine
from calendarbot_rrule.rrule_exceptions import RecurrenceEngineError
from calendarbot_rrule.rrule_models import Frequency, RRule

pytestmark = pytest.mark.unit


@pytest.fixture
def engine() -> DateutilRecurrenceEngine:
    return DateutilRecurrenceEngine()


def test_daily_count(engine):
    expansion = engine.expand(RRule(Frequency.DAILY, count=3), DateTime.local(1997, 9, 2, 9, 0, 0))

    assert list(expansion) == [
        DateTime.local(1997, 9, 2, 9, 0, 0),
        DateTime.local(1997, 9, 3, 9, 0, 0),
        DateTime.local(1997, 9, 4, 9, 0, 0),
    ]


def test_expansion_is_reiterable(engine):
    expansion = engine.expand(RRule(Frequency.WEEKLY, count=4), DateTime.local(1997, 9, 2, 9, 0, 0))

    assert list(expansion) == list(expansion)


def test_take_bounds_unbounded_rule(engine):
    expansion = engine.expand(RRule(Frequency.HOURLY, interval=6), DateTime.local(1997, 9, 2, 0, 0, 0))

    assert expansion.take(3) == [
        DateTime.local(1997, 9, 2, 0, 0, 0),
        DateTime.local(1997, 9, 2, 6, 0, 0),
        DateTime.local(1997, 9, 2, 12, 0, 0),
    ]
    assert expansion.take(0) == []


def test_utc_start_yields_utc(engine):
    occurrences = engine.expand(RRule(Frequency.DAILY, count=2), DateTime.utc(1997, 9, 2, 13, 0, 0)).take(5)

    assert all(occurrence.is_utc for occurrence in occurrences)


def test_date_start_yields_dates(engine):
    occurrences = list(engine.expand(RRule(Frequency.WEEKLY, count=3), DateTime.date(2024, 1, 1)))

    assert occurrences == [DateTime.date(2024, 1, 1), DateTime.date(2024, 1, 8), DateTime.date(2024, 1, 15)]


def test_until_is_inclusive(engine):
    rule = RRule(Frequency.DAILY, until=DateTime.local(1997, 9, 4, 9, 0, 0))

    assert len(list(engine.expand(rule, DateTime.local(1997, 9, 2, 9, 0, 0)))) == 3


def test_by_set_pos_applied_last(engine):
    # Last work day of the month
    rule = RRule.parse("FREQ=MONTHLY;BYDAY=MO,TU,WE,TH,FR;BYSETPOS=-1;COUNT=3")

    assert list(engine.expand(rule, DateTime.local(1997, 9, 29, 9, 0, 0))) == [
        DateTime.local(1997, 9, 30, 9, 0, 0),
        DateTime.local(1997, 10, 31, 9, 0, 0),
        DateTime.local(1997, 11, 28, 9, 0, 0),
    ]


def test_week_start_changes_weekly_interval_grouping(engine):
    # RFC 5545 WKST example
    start = DateTime.local(1997, 8, 5, 9, 0, 0)
    monday = RRule.parse("FREQ=WEEKLY;INTERVAL=2;COUNT=4;BYDAY=TU,SU;WKST=MO")
    sunday = RRule.parse("FREQ=WEEKLY;INTERVAL=2;COUNT=4;BYDAY=TU,SU;WKST=SU")

    assert [o.day for o in engine.expand(monday, start)] == [5, 10, 19, 24]
    assert [o.day for o in engine.expand(sunday, start)] == [5, 17, 19, 31]


def test_ordinal_weekday(engine):
    rule = RRule.parse("FREQ=MONTHLY;COUNT=3;BYDAY=1FR")

    assert list(engine.expand(rule, DateTime.local(1997, 9, 5, 9, 0, 0))) == [
        DateTime.local(1997, 9, 5, 9, 0, 0),
        DateTime.local(1997, 10, 3, 9, 0, 0),
        DateTime.local(1997, 11, 7, 9, 0, 0),
    ]


def test_sub_daily_frequency_on_date_start_rejected(engine):
    with pytest.raises(RecurrenceEngineError):
        engine.expand(RRule(Frequency.HOURLY), DateTime.date(2024, 1, 1))


def test_time_filters_on_date_start_rejected(engine):
    with pytest.raises(RecurrenceEngineError):
        engine.expand(RRule(Frequency.DAILY, by_hour=(9,)), DateTime.date(2024, 1, 1))


def test_default_engine_is_shared():
    assert get_default_engine() is get_default_engine()
