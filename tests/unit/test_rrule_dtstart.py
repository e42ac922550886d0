"""Unit tests for calendarbot_rrule.rrule_dtstart."""

import datetime

import pytest

from calendarbot_rrule.rrule_datetime import DateTime, ValueType
from calendarbot_rrule.rrule_dtstart import DtStart
from calendarbot_rrule.rrule_exceptions import (
    DtstartValueTypeMismatch,
    InvalidTimezone,
    MalformedProperty,
    RRuleParseError,
    RRuleValueError,
    UnknownTimezone,
    ValueTypeMismatch,
)

pytestmark = pytest.mark.unit


class TestText:
    @pytest.mark.parametrize(
        "dtstart,text",
        [
            (DtStart(DateTime.local(1997, 9, 2, 9, 0, 0), "US/Eastern"), "DTSTART;TZID=US/Eastern:19970902T090000"),
            (DtStart(DateTime.utc(1997, 9, 2, 13, 0, 0)), "DTSTART:19970902T130000Z"),
            (DtStart(DateTime.date(1997, 9, 2)), "DTSTART;VALUE=DATE:19970902"),
            (DtStart(DateTime.local(1997, 9, 2, 9, 0, 0)), "DTSTART:19970902T090000"),
        ],
    )
    def test_to_text(self, dtstart, text):
        assert dtstart.to_text() == text
        assert DtStart.from_text(text) == dtstart

    def test_utc_value_with_tzid_is_serialized_bare(self):
        dtstart = DtStart(DateTime.utc(1997, 9, 2, 13, 0, 0), "America/New_York")

        assert dtstart.to_text() == "DTSTART:19970902T130000Z"
        assert dtstart.frame_tzid is None

    def test_utc_tzid_is_serialized_as_z(self):
        dtstart = DtStart(DateTime.local(1997, 9, 2, 13, 0, 0), "UTC")

        assert dtstart.to_text() == "DTSTART:19970902T130000Z"

    def test_from_text_accepts_explicit_value_types(self):
        assert DtStart.from_text("DTSTART;VALUE=DATE:19970902").value_type is ValueType.DATE
        assert DtStart.from_text("DTSTART;VALUE=DATE-TIME:19970902T090000").value_type is ValueType.DATE_TIME

    @pytest.mark.parametrize(
        "text", ["DTSTART;VALUE=DATE:19970902T090000", "DTSTART;VALUE=DATE-TIME:19970902"]
    )
    def test_value_parameter_mismatch(self, text):
        with pytest.raises(DtstartValueTypeMismatch) as exc_info:
            DtStart.from_text(text)

        assert exc_info.value.component == "DTSTART"
        assert isinstance(exc_info.value, ValueTypeMismatch)
        assert isinstance(exc_info.value, RRuleParseError)

    def test_unknown_timezone(self):
        with pytest.raises(InvalidTimezone):
            DtStart.from_text("DTSTART;TZID=Invalid/Zone:19970902T090000")

    def test_windows_timezone_name_accepted(self):
        dtstart = DtStart.from_text("DTSTART;TZID=Eastern Standard Time:19970902T090000")

        assert dtstart.tzid == "Eastern Standard Time"

    def test_wrong_property(self):
        with pytest.raises(MalformedProperty):
            DtStart.from_text("RDATE:19970902T090000")


class TestConstruction:
    def test_unknown_tzid(self):
        with pytest.raises(UnknownTimezone):
            DtStart(DateTime.local(1997, 9, 2, 9, 0, 0), "Not/AZone")

    def test_from_options(self):
        dtstart = DtStart.from_options({"value": datetime.datetime(1997, 9, 2, 9, 0), "tzid": "US/Eastern"})

        assert dtstart == DtStart(DateTime.local(1997, 9, 2, 9, 0, 0), "US/Eastern")

    def test_from_options_requires_value(self):
        with pytest.raises(RRuleValueError):
            DtStart.from_options({"tzid": "US/Eastern"})

    def test_setters(self, eastern_start):
        moved = eastern_start.set_value(DateTime.local(1998, 1, 1, 9, 0, 0))
        rezoned = eastern_start.set_tzid("Europe/London")

        assert eastern_start.value == DateTime.local(1997, 9, 2, 9, 0, 0)
        assert moved.tzid == "US/Eastern"
        assert rezoned.tzid == "Europe/London"
        assert rezoned.frame_tzid == "Europe/London"


class TestPlain:
    def test_round_trip(self, eastern_start):
        plain = eastern_start.to_plain()

        assert plain == {
            "value": {"year": 1997, "month": 9, "day": 2, "hour": 9, "minute": 0, "second": 0, "utc": False},
            "tzid": "US/Eastern",
        }
        assert DtStart.from_plain(plain) == eastern_start

    def test_date_plain(self):
        assert DtStart.from_plain({"value": {"year": 1997, "month": 9, "day": 2}}) == DtStart(DateTime.date(1997, 9, 2))

    def test_invalid_plain(self):
        with pytest.raises(RRuleValueError):
            DtStart.from_plain({"tzid": "UTC"})
