"""Instant codec for recurrence sets.

A ``DateTime`` is an immutable calendar point that is either date-only, a
local (floating or TZID-governed) wall-clock value, or a UTC value. Each
instance is backed by one integer whose ordering matches calendar ordering
for instants of the same qualifier:

    YYYY MM DD hh mm ss T    (T: 0 local, 1 utc, 2 date-only)

Date-only values store ``01:01:01`` in the time slots so the encoding stays
fixed-width.
"""

from __future__ import annotations

import calendar
import datetime
import re
from enum import Enum
from typing import Any, NamedTuple, Optional, Union

from pydantic import ValidationError

from .rrule_exceptions import IncomparableValueType, MalformedInstant, MalformedParameter, ValueTypeMismatch
from .rrule_plain_models import PlainDate, PlainDateTime
from .rrule_timezone import get_timezone_provider

_YEAR = 100000000000
_MONTH = 1000000000
_DAY = 10000000
_HOUR = 100000
_MINUTE = 1000
_SECOND = 10

_TEXT_PATTERN = re.compile(r"^(\d{4})(\d{2})(\d{2})(?:T(\d{2})(\d{2})(\d{2})(Z)?)?$")


class TimeQualifier(int, Enum):
    """Tag stored in the last digit of the numeric encoding."""

    LOCAL = 0
    UTC = 1
    NONE = 2


class ValueType(str, Enum):
    """RFC 5545 VALUE parameter for DTSTART, RDATE, EXDATE and UNTIL."""

    DATE = "DATE"
    DATE_TIME = "DATE-TIME"

    @classmethod
    def parse(cls, text: str) -> "ValueType":
        try:
            return cls(text.strip().upper())
        except ValueError:
            raise MalformedParameter(f"Invalid VALUE parameter: {text}", text) from None


class InstantComponents(NamedTuple):
    """Decoded components of an instant; time fields are None for dates."""

    year: int
    month: int
    day: int
    hour: Optional[int] = None
    minute: Optional[int] = None
    second: Optional[int] = None
    utc: Optional[bool] = None


def _validate(year: int, month: int, day: int, hour: int, minute: int, second: int) -> None:
    if not 1 <= year <= 9999:
        raise MalformedInstant(f"Invalid year: {year}", str(year))
    if not 1 <= month <= 12:
        raise MalformedInstant(f"Invalid month: {month}", str(month))
    if not 1 <= day <= calendar.monthrange(year, month)[1]:
        raise MalformedInstant(f"Invalid day: {year:04d}-{month:02d}-{day:02d}", str(day))
    if not 0 <= hour <= 23:
        raise MalformedInstant(f"Invalid hour: {hour}", str(hour))
    if not 0 <= minute <= 59:
        raise MalformedInstant(f"Invalid minute: {minute}", str(minute))
    if not 0 <= second <= 59:
        raise MalformedInstant(f"Invalid second: {second}", str(second))


class DateTime:
    """Immutable RFC 5545 DATE or DATE-TIME value.

    Example:
        DateTime.date(2024, 1, 15).to_text()              # "20240115"
        DateTime.local(2024, 1, 15, 14, 30, 0).to_text()  # "20240115T143000"
        DateTime.utc(2024, 1, 15, 14, 30, 0).to_text()    # "20240115T143000Z"
    """

    __slots__ = ("_numeric",)

    def __init__(self, numeric: int):
        """Wrap an already-encoded numeric value. Prefer the factory methods."""
        object.__setattr__(self, "_numeric", int(numeric))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    # Factories

    @classmethod
    def create(
        cls,
        year: int,
        month: int,
        day: int,
        hour: Optional[int] = None,
        minute: Optional[int] = None,
        second: Optional[int] = None,
        utc: Optional[bool] = None,
    ) -> "DateTime":
        """Create a date-only value, or a date-time when all time parts are given.

        Raises:
            MalformedInstant: If only some time parts are given or a part is out of range
        """
        time_parts = (hour, minute, second)
        if all(part is None for part in time_parts):
            _validate(year, month, day, 0, 0, 0)
            numeric = year * _YEAR + month * _MONTH + day * _DAY
            numeric += _HOUR + _MINUTE + _SECOND + TimeQualifier.NONE
            return cls(numeric)

        if any(part is None for part in time_parts):
            raise MalformedInstant(
                f"Incomplete time components: hour={hour}, minute={minute}, second={second}"
            )

        _validate(year, month, day, hour, minute, second)  # type: ignore[arg-type]
        numeric = year * _YEAR + month * _MONTH + day * _DAY
        numeric += hour * _HOUR + minute * _MINUTE + second * _SECOND  # type: ignore[operator]
        numeric += TimeQualifier.UTC if utc else TimeQualifier.LOCAL
        return cls(numeric)

    @classmethod
    def date(cls, year: int, month: int, day: int) -> "DateTime":
        return cls.create(year, month, day)

    @classmethod
    def local(cls, year: int, month: int, day: int, hour: int, minute: int, second: int) -> "DateTime":
        return cls.create(year, month, day, hour, minute, second, False)

    @classmethod
    def utc(cls, year: int, month: int, day: int, hour: int, minute: int, second: int) -> "DateTime":
        return cls.create(year, month, day, hour, minute, second, True)

    @classmethod
    def from_numeric(cls, numeric: int) -> "DateTime":
        """Rebuild an instant from ``to_numeric()`` output, validating it."""
        tag = numeric % 10
        if tag not in (0, 1, 2):
            raise MalformedInstant(f"Invalid numeric instant: {numeric}", str(numeric))
        instant = cls(numeric)
        parts = instant.decode()
        # Re-encode to validate ranges and reject garbage in the time slots of dates
        if cls.create(*parts).to_numeric() != numeric:
            raise MalformedInstant(f"Invalid numeric instant: {numeric}", str(numeric))
        return instant

    @classmethod
    def from_text(cls, text: str) -> "DateTime":
        """Parse ``YYYYMMDD``, ``YYYYMMDDTHHMMSS`` or ``YYYYMMDDTHHMMSSZ``.

        Raises:
            MalformedInstant: If the literal is not one of the supported shapes
        """
        literal = text.strip() if isinstance(text, str) else text
        match = _TEXT_PATTERN.match(literal) if isinstance(literal, str) else None
        if match is None:
            raise MalformedInstant(f"Invalid date time string: {text}", str(text))

        year, month, day, hour, minute, second, zulu = match.groups()
        try:
            if hour is None:
                return cls.create(int(year), int(month), int(day))
            return cls.create(
                int(year), int(month), int(day), int(hour), int(minute), int(second), zulu is not None
            )
        except MalformedInstant as e:
            raise MalformedInstant(f"Invalid date time string: {text} ({e})", str(text)) from e

    @classmethod
    def from_plain(cls, plain: Union[dict[str, Any], PlainDate, PlainDateTime]) -> "DateTime":
        """Create an instant from ``{"year", "month", "day"[, "hour", "minute", "second", "utc"]}``."""
        try:
            if isinstance(plain, (PlainDate, PlainDateTime)):
                model = plain
            elif isinstance(plain, dict) and "hour" in plain:
                model = PlainDateTime.model_validate(plain)
            else:
                model = PlainDate.model_validate(plain)
        except ValidationError as e:
            raise MalformedInstant(f"Invalid plain instant: {plain!r}", repr(plain)) from e

        if isinstance(model, PlainDateTime):
            return cls.create(
                model.year, model.month, model.day, model.hour, model.minute, model.second, model.utc
            )
        return cls.create(model.year, model.month, model.day)

    @classmethod
    def from_datetime(cls, value: Union[datetime.date, datetime.datetime]) -> "DateTime":
        """Convert a host-native date or datetime.

        Aware datetimes are converted to UTC; naive ones become local values.
        Microseconds are dropped.
        """
        if isinstance(value, datetime.datetime):
            if value.tzinfo is not None and value.utcoffset() is not None:
                value = value.astimezone(datetime.timezone.utc)
                return cls.utc(value.year, value.month, value.day, value.hour, value.minute, value.second)
            return cls.local(value.year, value.month, value.day, value.hour, value.minute, value.second)
        if isinstance(value, datetime.date):
            return cls.date(value.year, value.month, value.day)
        raise MalformedInstant(f"Unsupported host value: {value!r}", repr(value))

    # Accessors

    @property
    def year(self) -> int:
        return self._numeric // _YEAR

    @property
    def month(self) -> int:
        return (self._numeric // _MONTH) % 100

    @property
    def day(self) -> int:
        return (self._numeric // _DAY) % 100

    @property
    def qualifier(self) -> TimeQualifier:
        return TimeQualifier(self._numeric % 10)

    @property
    def has_time(self) -> bool:
        return self.qualifier is not TimeQualifier.NONE

    @property
    def is_utc(self) -> bool:
        return self.qualifier is TimeQualifier.UTC

    @property
    def hour(self) -> Optional[int]:
        return (self._numeric // _HOUR) % 100 if self.has_time else None

    @property
    def minute(self) -> Optional[int]:
        return (self._numeric // _MINUTE) % 100 if self.has_time else None

    @property
    def second(self) -> Optional[int]:
        return (self._numeric // _SECOND) % 100 if self.has_time else None

    @property
    def value_type(self) -> ValueType:
        return ValueType.DATE_TIME if self.has_time else ValueType.DATE

    # Conversions

    def decode(self) -> InstantComponents:
        if not self.has_time:
            return InstantComponents(self.year, self.month, self.day)
        return InstantComponents(
            self.year, self.month, self.day, self.hour, self.minute, self.second, self.is_utc
        )

    def to_numeric(self) -> int:
        return self._numeric

    def to_text(self) -> str:
        text = f"{self.year:04d}{self.month:02d}{self.day:02d}"
        if self.has_time:
            text += f"T{self.hour:02d}{self.minute:02d}{self.second:02d}"
            if self.is_utc:
                text += "Z"
        return text

    def to_plain(self, strip_utc: bool = False) -> dict[str, Any]:
        """Return the instant as a plain dict.

        Args:
            strip_utc: Omit the ``utc`` key for date-time values
        """
        if not self.has_time:
            return PlainDate(year=self.year, month=self.month, day=self.day).model_dump()
        plain = PlainDateTime(
            year=self.year,
            month=self.month,
            day=self.day,
            hour=self.hour,  # type: ignore[arg-type]
            minute=self.minute,  # type: ignore[arg-type]
            second=self.second,  # type: ignore[arg-type]
            utc=self.is_utc,
        ).model_dump()
        if strip_utc:
            plain.pop("utc")
        return plain

    def to_naive(self) -> datetime.datetime:
        """Wall-clock datetime without tzinfo (midnight for dates)."""
        return datetime.datetime(
            self.year, self.month, self.day, self.hour or 0, self.minute or 0, self.second or 0
        )

    def to_date(self) -> datetime.date:
        return datetime.date(self.year, self.month, self.day)

    def to_datetime(self, tz: Optional[datetime.tzinfo] = None) -> datetime.datetime:
        """Host-native datetime: UTC values are aware, local values get ``tz`` if given."""
        naive = self.to_naive()
        if self.is_utc:
            return naive.replace(tzinfo=datetime.timezone.utc)
        if tz is not None:
            return naive.replace(tzinfo=tz, fold=0)
        return naive

    def with_qualifier(self, utc: bool) -> "DateTime":
        """Same wall-clock components, retagged as UTC or local."""
        if not self.has_time:
            return self
        return DateTime.create(self.year, self.month, self.day, self.hour, self.minute, self.second, utc)

    # Protocol

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DateTime):
            return NotImplemented
        return self._numeric == other._numeric

    def __hash__(self) -> int:
        return hash(self._numeric)

    def __lt__(self, other: "DateTime") -> bool:
        return compare(self, other) < 0

    def __le__(self, other: "DateTime") -> bool:
        return compare(self, other) <= 0

    def __gt__(self, other: "DateTime") -> bool:
        return compare(self, other) > 0

    def __ge__(self, other: "DateTime") -> bool:
        return compare(self, other) >= 0

    def __repr__(self) -> str:
        return f"DateTime({self.to_text()!r})"

    def __str__(self) -> str:
        return self.to_text()

    def __reduce__(self) -> tuple[Any, ...]:
        return (DateTime, (self._numeric,))


# Codec functions


def encode(
    year: int,
    month: int,
    day: int,
    hour: Optional[int] = None,
    minute: Optional[int] = None,
    second: Optional[int] = None,
    utc: bool = False,
) -> DateTime:
    """Encode components into an instant (date-only when no time is given)."""
    return DateTime.create(year, month, day, hour, minute, second, utc)


def decode(instant: DateTime) -> InstantComponents:
    return instant.decode()


def compare(a: DateTime, b: DateTime, tzid: Optional[str] = None) -> int:
    """Order two instants.

    Args:
        a: First instant
        b: Second instant
        tzid: Zone governing local values; required to compare UTC with local

    Returns:
        -1, 0 or 1

    Raises:
        IncomparableValueType: For DATE vs DATE-TIME, or UTC vs local without ``tzid``
    """
    if a.has_time != b.has_time:
        raise IncomparableValueType(
            f"Cannot compare {a.value_type.value} {a.to_text()} with {b.value_type.value} {b.to_text()}",
            f"{a.to_text()},{b.to_text()}",
        )

    if a.qualifier is not b.qualifier:
        if tzid is None:
            raise IncomparableValueType(
                f"Cannot compare UTC and local date-times without a timezone: {a.to_text()}, {b.to_text()}",
                f"{a.to_text()},{b.to_text()}",
            )
        provider = get_timezone_provider()
        left = a.to_datetime() if a.is_utc else provider.to_utc(a.to_naive(), tzid)
        right = b.to_datetime() if b.is_utc else provider.to_utc(b.to_naive(), tzid)
        return (left > right) - (left < right)

    left_key = a.to_numeric() // 10
    right_key = b.to_numeric() // 10
    return (left_key > right_key) - (left_key < right_key)


def to_text(instant: DateTime, value_type: Optional[ValueType] = None) -> str:
    """Render an instant, optionally asserting its RFC 5545 value type."""
    if value_type is not None and ValueType(value_type) is not instant.value_type:
        raise ValueTypeMismatch(
            f"Cannot render {instant.value_type.value} {instant.to_text()} as {ValueType(value_type).value}",
            "VALUE",
            instant.to_text(),
        )
    return instant.to_text()


def from_text(text: str) -> DateTime:
    return DateTime.from_text(text)
