"""Unit tests for calendarbot_rrule.rrule_models (rule values)."""

import pytest

from calendarbot_rrule.rrule_datetime import DateTime
from calendarbot_rrule.rrule_exceptions import (
    CountUntilConflict,
    InvalidCount,
    InvalidFrequency,
    InvalidInterval,
    InvalidUntil,
    InvalidWeekStart,
    MalformedParameter,
    OutOfRangeFilterValue,
    RRuleValueError,
)
from calendarbot_rrule.rrule_models import Frequency, Month, NWeekday, RRule, Weekday

pytestmark = pytest.mark.unit


class TestNWeekday:
    @pytest.mark.parametrize(
        "text,weekday,n",
        [("MO", Weekday.MO, None), ("1SU", Weekday.SU, 1), ("-1FR", Weekday.FR, -1), ("+2tu", Weekday.TU, 2)],
    )
    def test_parse(self, text, weekday, n):
        assert NWeekday.parse(text) == NWeekday(weekday, n)

    def test_to_text(self):
        assert NWeekday(Weekday.SU, -1).to_text() == "-1SU"
        assert NWeekday(Weekday.MO).to_text() == "MO"

    @pytest.mark.parametrize("n", [0, 54, -54])
    def test_rejects_bad_ordinal(self, n):
        with pytest.raises(OutOfRangeFilterValue):
            NWeekday(Weekday.MO, n)

    @pytest.mark.parametrize("text", ["XX", "1", "0MO", "MON"])
    def test_parse_rejects_garbage(self, text):
        with pytest.raises((MalformedParameter, OutOfRangeFilterValue)):
            NWeekday.parse(text)


class TestConstruction:
    def test_defaults(self):
        rule = RRule(Frequency.DAILY)

        assert rule.interval == 1
        assert rule.week_start is Weekday.MO
        assert rule.count is None and rule.until is None
        assert not rule.is_bounded

    def test_frequency_accepts_text(self):
        assert RRule("weekly").frequency is Frequency.WEEKLY

    def test_invalid_frequency(self):
        with pytest.raises(InvalidFrequency):
            RRule("FORTNIGHTLY")

    @pytest.mark.parametrize("interval", [0, -1])
    def test_interval_must_be_positive(self, interval):
        with pytest.raises(InvalidInterval):
            RRule(Frequency.DAILY, interval=interval)

    def test_count_must_be_positive(self):
        with pytest.raises(InvalidCount):
            RRule(Frequency.DAILY, count=0)

    def test_count_and_until_conflict(self):
        with pytest.raises(CountUntilConflict):
            RRule(Frequency.DAILY, count=3, until=DateTime.utc(2024, 1, 1, 0, 0, 0))

    def test_conflict_is_a_value_error(self):
        with pytest.raises(RRuleValueError):
            RRule(Frequency.DAILY, count=3).set_until(DateTime.date(2024, 1, 1))

    @pytest.mark.parametrize(
        "field,value",
        [
            ("by_second", 60),
            ("by_minute", -1),
            ("by_hour", 24),
            ("by_month_day", 0),
            ("by_month_day", 32),
            ("by_month_day", -32),
            ("by_year_day", 367),
            ("by_week_no", 54),
            ("by_month", 13),
            ("by_set_pos", 0),
            ("by_set_pos", -367),
        ],
    )
    def test_filter_ranges(self, field, value):
        with pytest.raises(OutOfRangeFilterValue):
            RRule(Frequency.YEARLY, **{field: (value,)})

    def test_negative_filters_allowed_where_signed(self):
        rule = RRule(Frequency.YEARLY, by_month_day=(-1,), by_year_day=(-366,), by_week_no=(-53,), by_set_pos=(-1,))

        assert rule.by_month_day == (-1,)

    def test_by_weekday_coerces_weekdays_and_text(self):
        rule = RRule(Frequency.WEEKLY, by_weekday=(Weekday.MO, "1SU", NWeekday(Weekday.FR, -1)))

        assert rule.by_weekday == (NWeekday(Weekday.MO), NWeekday(Weekday.SU, 1), NWeekday(Weekday.FR, -1))

    def test_by_weekday_zero_ordinal_rejected(self):
        with pytest.raises(OutOfRangeFilterValue):
            RRule(Frequency.MONTHLY, by_weekday=("0MO",))

    def test_invalid_week_start(self):
        with pytest.raises(InvalidWeekStart):
            RRule(Frequency.WEEKLY, week_start="XX")


class TestSetters:
    def test_setters_return_new_instances(self):
        rule = RRule(Frequency.DAILY)
        changed = rule.set_interval(2).set_count(5).set_week_start(Weekday.SU)

        assert rule.interval == 1 and rule.count is None
        assert changed.interval == 2 and changed.count == 5 and changed.week_start is Weekday.SU

    def test_setters_revalidate(self):
        with pytest.raises(OutOfRangeFilterValue):
            RRule(Frequency.DAILY).set_by_hour([25])

    def test_all_filter_setters(self):
        rule = (
            RRule(Frequency.YEARLY)
            .set_by_second([0])
            .set_by_minute([15, 45])
            .set_by_hour([9])
            .set_by_weekday([Weekday.MO, NWeekday(Weekday.TU, 2)])
            .set_by_month_day([1, -1])
            .set_by_year_day([100])
            .set_by_week_no([20])
            .set_by_month([Month.JANUARY, 6])
            .set_by_set_pos([-1])
            .set_frequency(Frequency.MONTHLY)
        )

        assert rule.frequency is Frequency.MONTHLY
        assert rule.by_month == (1, 6)
        assert rule.by_minute == (15, 45)
        assert rule.by_weekday[1] == NWeekday(Weekday.TU, 2)

    def test_set_until_clears_with_none(self):
        rule = RRule(Frequency.DAILY, until=DateTime.date(2024, 1, 1)).set_until(None).set_count(2)

        assert rule.until is None and rule.count == 2


class TestText:
    def test_canonical_order(self):
        rule = RRule(
            Frequency.MONTHLY,
            interval=2,
            until=DateTime.utc(2024, 12, 31, 0, 0, 0),
            week_start=Weekday.SU,
            by_second=(0,),
            by_minute=(30,),
            by_hour=(9,),
            by_weekday=("-1FR",),
            by_month_day=(1,),
            by_year_day=(10,),
            by_week_no=(2,),
            by_month=(3, 4),
            by_set_pos=(1,),
        )

        assert rule.to_text() == (
            "FREQ=MONTHLY;UNTIL=20241231T000000Z;INTERVAL=2;BYSECOND=0;BYMINUTE=30;BYHOUR=9;"
            "BYMONTHDAY=1;BYYEARDAY=10;BYWEEKNO=2;BYMONTH=3,4;BYSETPOS=1;BYDAY=-1FR;WKST=SU"
        )

    def test_defaults_omitted(self):
        assert RRule(Frequency.DAILY, count=10).to_text() == "FREQ=DAILY;COUNT=10"

    @pytest.mark.parametrize(
        "text",
        [
            "FREQ=DAILY;COUNT=10",
            "RRULE:FREQ=DAILY;COUNT=10",
            "rrule:freq=daily;count=10",
            "EXRULE:COUNT=10;FREQ=DAILY",
            "FREQ=DAILY;INTERVAL=1;COUNT=10;WKST=MO",
        ],
    )
    def test_parse_variants(self, text):
        assert RRule.parse(text) == RRule(Frequency.DAILY, count=10)

    def test_parse_full_rule(self):
        rule = RRule.parse("FREQ=YEARLY;BYMONTH=1,2;BYDAY=1SU,-1MO;BYSETPOS=-1;WKST=su;UNTIL=20300101")

        assert rule.by_month == (1, 2)
        assert rule.by_weekday == (NWeekday(Weekday.SU, 1), NWeekday(Weekday.MO, -1))
        assert rule.by_set_pos == (-1,)
        assert rule.week_start is Weekday.SU
        assert rule.until == DateTime.date(2030, 1, 1)

    def test_round_trip_is_stable(self):
        text = "FREQ=WEEKLY;UNTIL=19971224T000000Z;INTERVAL=2;BYDAY=TU,TH;WKST=SU"

        assert RRule.parse(text).to_text() == text
        assert RRule.parse(RRule.parse(text).to_text()) == RRule.parse(text)

    @pytest.mark.parametrize(
        "text,error",
        [
            ("COUNT=10", InvalidFrequency),
            ("FREQ=SOMETIMES", InvalidFrequency),
            ("FREQ=DAILY;INTERVAL=x", InvalidInterval),
            ("FREQ=DAILY;INTERVAL=0", InvalidInterval),
            ("FREQ=DAILY;COUNT=ten", InvalidCount),
            ("FREQ=DAILY;UNTIL=2024", InvalidUntil),
            ("FREQ=WEEKLY;WKST=XX", InvalidWeekStart),
            ("FREQ=DAILY;BYHOUR=a", MalformedParameter),
            ("FREQ=DAILY;BYHOUR=", MalformedParameter),
            ("FREQ=DAILY;BYDAY=XY", MalformedParameter),
            ("FREQ=DAILY;FOO=1", MalformedParameter),
            ("FREQ=DAILY;FREQ=WEEKLY", MalformedParameter),
            ("FREQ=DAILY;COUNT", MalformedParameter),
            ("FREQ=DAILY;COUNT=2;UNTIL=20240101", CountUntilConflict),
            ("FREQ=DAILY;BYHOUR=24", OutOfRangeFilterValue),
        ],
    )
    def test_parse_errors(self, text, error):
        with pytest.raises(error):
            RRule.parse(text)

    def test_parse_error_names_token(self):
        with pytest.raises(MalformedParameter) as exc_info:
            RRule.parse("FREQ=DAILY;BYHOUR=9,x")

        assert "x" in str(exc_info.value)


class TestPlain:
    def test_round_trip(self):
        rule = RRule.parse("FREQ=MONTHLY;UNTIL=20241231T000000Z;BYDAY=-1FR;BYMONTH=3;WKST=SU")
        plain = rule.to_plain()

        assert plain["frequency"] == "MONTHLY"
        assert plain["by_weekday"] == ["-1FR"]
        assert plain["until"] == {"year": 2024, "month": 12, "day": 31, "hour": 0, "minute": 0, "second": 0, "utc": True}
        assert RRule.from_plain(plain) == rule

    def test_minimal_plain(self):
        assert RRule.from_plain({"frequency": "daily", "count": 3}) == RRule(Frequency.DAILY, count=3)

    def test_invalid_plain(self):
        with pytest.raises(RRuleValueError):
            RRule.from_plain({"frequency": "DAILY", "by_hour": "nine"})
