"""Rule value objects: frequency, weekdays and the immutable ``RRule``."""

from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, ClassVar, Iterable, Optional, Union

from pydantic import ValidationError

from .rrule_datetime import DateTime
from .rrule_exceptions import (
    CountUntilConflict,
    InvalidCount,
    InvalidFrequency,
    InvalidInterval,
    InvalidUntil,
    InvalidWeekStart,
    MalformedInstant,
    MalformedParameter,
    MalformedProperty,
    OutOfRangeFilterValue,
    RRuleValueError,
)
from .rrule_plain_models import PlainRRule
from .rrule_serialization import Property, parse_parameter_list, parse_property


class Frequency(str, Enum):
    """Recurrence frequencies, ordered from longest to shortest period."""

    YEARLY = "YEARLY"
    MONTHLY = "MONTHLY"
    WEEKLY = "WEEKLY"
    DAILY = "DAILY"
    HOURLY = "HOURLY"
    MINUTELY = "MINUTELY"
    SECONDLY = "SECONDLY"

    @property
    def is_sub_daily(self) -> bool:
        return self in (Frequency.HOURLY, Frequency.MINUTELY, Frequency.SECONDLY)


class Weekday(str, Enum):
    """RFC 5545 weekday codes."""

    MO = "MO"
    TU = "TU"
    WE = "WE"
    TH = "TH"
    FR = "FR"
    SA = "SA"
    SU = "SU"

    @property
    def day_index(self) -> int:
        """Monday-based index (MO=0 ... SU=6), matching ``datetime.weekday()``."""
        return list(Weekday).index(self)

    @classmethod
    def from_index(cls, index: int) -> "Weekday":
        return list(cls)[index]


class Month(IntEnum):
    JANUARY = 1
    FEBRUARY = 2
    MARCH = 3
    APRIL = 4
    MAY = 5
    JUNE = 6
    JULY = 7
    AUGUST = 8
    SEPTEMBER = 9
    OCTOBER = 10
    NOVEMBER = 11
    DECEMBER = 12


_NWEEKDAY_PATTERN = re.compile(r"^([+-]?\d{1,2})?(MO|TU|WE|TH|FR|SA|SU)$")


def _coerce_weekday(value: Union[str, "Weekday"]) -> Weekday:
    if isinstance(value, Weekday):
        return value
    return Weekday(str(value).strip().upper())


@dataclass(frozen=True)
class NWeekday:
    """BYDAY entry: a weekday with an optional signed ordinal (``1SU``, ``-1FR``)."""

    weekday: Weekday
    n: Optional[int] = None

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "weekday", _coerce_weekday(self.weekday))
        except ValueError:
            raise OutOfRangeFilterValue(f"Invalid weekday: {self.weekday}", str(self.weekday)) from None
        if self.n is not None:
            if isinstance(self.n, bool) or not isinstance(self.n, int):
                raise OutOfRangeFilterValue(f"Invalid weekday ordinal: {self.n}", str(self.n))
            if self.n == 0 or not -53 <= self.n <= 53:
                raise OutOfRangeFilterValue(
                    f"Weekday ordinal must be non-zero and within -53..53: {self.n}", str(self.n)
                )

    @classmethod
    def parse(cls, text: str) -> "NWeekday":
        match = _NWEEKDAY_PATTERN.match(text.strip().upper())
        if match is None:
            raise MalformedParameter(f"Invalid BYDAY value: {text}", text)
        ordinal, code = match.groups()
        return cls(Weekday(code), int(ordinal) if ordinal else None)

    def to_text(self) -> str:
        if self.n is None:
            return self.weekday.value
        return f"{self.n}{self.weekday.value}"

    def __str__(self) -> str:
        return self.to_text()


WeekdayLike = Union[Weekday, NWeekday, str]

# (field, text key, low, high, signed)
_FILTER_RANGES: tuple[tuple[str, str, int, int, bool], ...] = (
    ("by_second", "BYSECOND", 0, 59, False),
    ("by_minute", "BYMINUTE", 0, 59, False),
    ("by_hour", "BYHOUR", 0, 23, False),
    ("by_month_day", "BYMONTHDAY", 1, 31, True),
    ("by_year_day", "BYYEARDAY", 1, 366, True),
    ("by_week_no", "BYWEEKNO", 1, 53, True),
    ("by_month", "BYMONTH", 1, 12, False),
    ("by_set_pos", "BYSETPOS", 1, 366, True),
)


def _check_filter(name: str, values: Iterable[Any], low: int, high: int, signed: bool) -> tuple[int, ...]:
    checked = []
    for value in values:
        if isinstance(value, bool) or not isinstance(value, int):
            raise OutOfRangeFilterValue(f"{name} value must be an integer: {value!r}", repr(value))
        number = int(value)
        in_range = low <= abs(number) <= high if signed else low <= number <= high
        if not in_range:
            bounds = f"+-{low}..{high}" if signed else f"{low}..{high}"
            raise OutOfRangeFilterValue(f"{name} value {number} is outside {bounds}", str(number))
        checked.append(number)
    return tuple(checked)


@dataclass(frozen=True)
class RRule:
    """Immutable RRULE / EXRULE value.

    Every ``set_*`` method returns a new, re-validated instance.

    Example:
        rule = RRule(Frequency.DAILY).set_count(10)
        rule.to_text()  # "FREQ=DAILY;COUNT=10"
    """

    frequency: Frequency
    interval: int = 1
    count: Optional[int] = None
    until: Optional[DateTime] = None
    week_start: Weekday = Weekday.MO
    by_second: tuple[int, ...] = ()
    by_minute: tuple[int, ...] = ()
    by_hour: tuple[int, ...] = ()
    by_weekday: tuple[NWeekday, ...] = ()
    by_month_day: tuple[int, ...] = ()
    by_year_day: tuple[int, ...] = ()
    by_week_no: tuple[int, ...] = ()
    by_month: tuple[int, ...] = ()
    by_set_pos: tuple[int, ...] = ()

    KNOWN_KEYS: ClassVar[frozenset[str]] = frozenset(
        {"FREQ", "UNTIL", "COUNT", "INTERVAL", "WKST", "BYDAY"} | {key for _, key, *_ in _FILTER_RANGES}
    )

    def __post_init__(self) -> None:
        def set_field(name: str, value: Any) -> None:
            object.__setattr__(self, name, value)

        try:
            set_field("frequency", Frequency(str(getattr(self.frequency, "value", self.frequency)).upper()))
        except ValueError:
            raise InvalidFrequency(f"Invalid frequency: {self.frequency}", str(self.frequency)) from None

        if isinstance(self.interval, bool) or not isinstance(self.interval, int) or self.interval < 1:
            raise InvalidInterval(f"Interval must be a positive integer: {self.interval}", str(self.interval))

        if self.count is not None and (
            isinstance(self.count, bool) or not isinstance(self.count, int) or self.count < 1
        ):
            raise InvalidCount(f"Count must be a positive integer: {self.count}", str(self.count))

        if self.until is not None and not isinstance(self.until, DateTime):
            try:
                set_field("until", DateTime.from_datetime(self.until))
            except MalformedInstant as e:
                raise InvalidUntil(f"Invalid until: {self.until!r}", repr(self.until)) from e

        if self.count is not None and self.until is not None:
            raise CountUntilConflict(
                f"COUNT and UNTIL are mutually exclusive (COUNT={self.count}, UNTIL={self.until})",
                f"COUNT={self.count};UNTIL={self.until}",
            )

        try:
            set_field("week_start", _coerce_weekday(self.week_start))
        except ValueError:
            raise InvalidWeekStart(f"Invalid week start: {self.week_start}", str(self.week_start)) from None

        for name, key, low, high, signed in _FILTER_RANGES:
            set_field(name, _check_filter(key, getattr(self, name), low, high, signed))

        set_field("by_weekday", tuple(_to_nweekday(value) for value in self.by_weekday))

    # Setters

    def _replace(self, **changes: Any) -> "RRule":
        return dataclasses.replace(self, **changes)

    def set_frequency(self, frequency: Union[Frequency, str]) -> "RRule":
        return self._replace(frequency=frequency)

    def set_interval(self, interval: int) -> "RRule":
        return self._replace(interval=interval)

    def set_count(self, count: Optional[int]) -> "RRule":
        return self._replace(count=count)

    def set_until(self, until: Optional[DateTime]) -> "RRule":
        return self._replace(until=until)

    def set_week_start(self, week_start: Union[Weekday, str]) -> "RRule":
        return self._replace(week_start=week_start)

    def set_by_second(self, values: Iterable[int]) -> "RRule":
        return self._replace(by_second=tuple(values))

    def set_by_minute(self, values: Iterable[int]) -> "RRule":
        return self._replace(by_minute=tuple(values))

    def set_by_hour(self, values: Iterable[int]) -> "RRule":
        return self._replace(by_hour=tuple(values))

    def set_by_weekday(self, values: Iterable[WeekdayLike]) -> "RRule":
        """Set BYDAY from ``Weekday``, ``NWeekday`` or their text form."""
        return self._replace(by_weekday=tuple(values))

    def set_by_month_day(self, values: Iterable[int]) -> "RRule":
        return self._replace(by_month_day=tuple(values))

    def set_by_year_day(self, values: Iterable[int]) -> "RRule":
        return self._replace(by_year_day=tuple(values))

    def set_by_week_no(self, values: Iterable[int]) -> "RRule":
        return self._replace(by_week_no=tuple(values))

    def set_by_month(self, values: Iterable[Union[int, Month]]) -> "RRule":
        return self._replace(by_month=tuple(int(value) for value in values))

    def set_by_set_pos(self, values: Iterable[int]) -> "RRule":
        return self._replace(by_set_pos=tuple(values))

    @property
    def is_bounded(self) -> bool:
        """True when COUNT or UNTIL caps the expansion."""
        return self.count is not None or self.until is not None

    # Text

    def to_parameters(self) -> dict[str, str]:
        """Ordered ``KEY -> value`` mapping in canonical emission order."""
        params: dict[str, str] = {"FREQ": self.frequency.value}
        if self.until is not None:
            params["UNTIL"] = self.until.to_text()
        if self.count is not None:
            params["COUNT"] = str(self.count)
        if self.interval != 1:
            params["INTERVAL"] = str(self.interval)

        for name, key in (
            ("by_second", "BYSECOND"),
            ("by_minute", "BYMINUTE"),
            ("by_hour", "BYHOUR"),
            ("by_month_day", "BYMONTHDAY"),
            ("by_year_day", "BYYEARDAY"),
            ("by_week_no", "BYWEEKNO"),
            ("by_month", "BYMONTH"),
            ("by_set_pos", "BYSETPOS"),
        ):
            values = getattr(self, name)
            if values:
                params[key] = ",".join(str(value) for value in values)

        if self.by_weekday:
            params["BYDAY"] = ",".join(day.to_text() for day in self.by_weekday)
        if self.week_start is not Weekday.MO:
            params["WKST"] = self.week_start.value
        return params

    def to_text(self) -> str:
        """Render the RRULE value (without the ``RRULE:`` prefix)."""
        return ";".join(f"{key}={value}" for key, value in self.to_parameters().items())

    def __str__(self) -> str:
        return self.to_text()

    @classmethod
    def parse(cls, text: str) -> "RRule":
        """Parse ``[RRULE:|EXRULE:]FREQ=...;...`` (keys and values case-insensitive)."""
        stripped = text.strip()
        if ":" in stripped:
            return cls.from_property(parse_property(stripped))
        return cls.from_parameters(parse_parameter_list(stripped), stripped)

    @classmethod
    def from_property(cls, prop: Property) -> "RRule":
        if prop.name not in ("RRULE", "EXRULE"):
            raise MalformedProperty(f"Invalid property name: {prop.name}", prop.name)
        if not isinstance(prop.value, dict):
            raise MalformedParameter(f"Invalid {prop.name}: {prop.value}", prop.value)
        return cls.from_parameters(prop.value, prop.to_text())

    @classmethod
    def from_parameters(cls, params: dict[str, str], source: str = "") -> "RRule":
        """Build a rule from an upper-cased ``KEY -> value`` mapping."""
        source = source or ";".join(f"{key}={value}" for key, value in params.items())
        for key in params:
            if key not in cls.KNOWN_KEYS:
                raise MalformedParameter(f"Invalid parameter: {key} in {source}", key)

        freq = params.get("FREQ")
        if freq is None:
            raise InvalidFrequency(f"Missing frequency: {source}", source)
        try:
            frequency = Frequency(freq.upper())
        except ValueError:
            raise InvalidFrequency(f"Invalid frequency: {freq}", freq) from None

        kwargs: dict[str, Any] = {"frequency": frequency}

        if "INTERVAL" in params:
            kwargs["interval"] = _parse_int(params["INTERVAL"], InvalidInterval, "interval")
        if "COUNT" in params:
            kwargs["count"] = _parse_int(params["COUNT"], InvalidCount, "count")
        if "UNTIL" in params:
            try:
                kwargs["until"] = DateTime.from_text(params["UNTIL"])
            except MalformedInstant as e:
                raise InvalidUntil(f"Invalid until: {params['UNTIL']}", params["UNTIL"]) from e
        if "WKST" in params:
            try:
                kwargs["week_start"] = Weekday(params["WKST"].upper())
            except ValueError:
                raise InvalidWeekStart(f"Invalid week start: {params['WKST']}", params["WKST"]) from None

        for name, key, *_ in _FILTER_RANGES:
            if key in params:
                kwargs[name] = tuple(_parse_list_item(key, token) for token in _split_list(key, params[key]))
        if "BYDAY" in params:
            kwargs["by_weekday"] = tuple(NWeekday.parse(token) for token in _split_list("BYDAY", params["BYDAY"]))

        return cls(**kwargs)

    # Plain

    def to_plain(self) -> dict[str, Any]:
        return PlainRRule(
            frequency=self.frequency.value,
            interval=self.interval,
            count=self.count,
            until=self.until.to_plain() if self.until is not None else None,
            week_start=self.week_start.value,
            by_second=list(self.by_second),
            by_minute=list(self.by_minute),
            by_hour=list(self.by_hour),
            by_weekday=[day.to_text() for day in self.by_weekday],
            by_month_day=list(self.by_month_day),
            by_year_day=list(self.by_year_day),
            by_week_no=list(self.by_week_no),
            by_month=list(self.by_month),
            by_set_pos=list(self.by_set_pos),
        ).model_dump()

    @classmethod
    def from_plain(cls, plain: Union[dict[str, Any], PlainRRule]) -> "RRule":
        try:
            model = plain if isinstance(plain, PlainRRule) else PlainRRule.model_validate(plain)
        except ValidationError as e:
            raise RRuleValueError(f"Invalid plain rule: {plain!r}", repr(plain)) from e

        return cls(
            frequency=model.frequency,  # type: ignore[arg-type]
            interval=model.interval,
            count=model.count,
            until=DateTime.from_plain(model.until) if model.until is not None else None,
            week_start=model.week_start,  # type: ignore[arg-type]
            by_second=tuple(model.by_second),
            by_minute=tuple(model.by_minute),
            by_hour=tuple(model.by_hour),
            by_weekday=tuple(NWeekday.parse(day) for day in model.by_weekday),
            by_month_day=tuple(model.by_month_day),
            by_year_day=tuple(model.by_year_day),
            by_week_no=tuple(model.by_week_no),
            by_month=tuple(model.by_month),
            by_set_pos=tuple(model.by_set_pos),
        )


def _to_nweekday(value: WeekdayLike) -> NWeekday:
    if isinstance(value, NWeekday):
        return value
    if isinstance(value, Weekday):
        return NWeekday(value)
    if isinstance(value, str):
        try:
            return NWeekday.parse(value)
        except MalformedParameter as e:
            raise OutOfRangeFilterValue(str(e), value) from e
    raise OutOfRangeFilterValue(f"Invalid weekday: {value!r}", repr(value))


def _split_list(key: str, text: str) -> list[str]:
    tokens = [token.strip() for token in text.split(",")]
    if not text.strip() or any(not token for token in tokens):
        raise MalformedParameter(f"Invalid {key} value: {text}", f"{key}={text}")
    return tokens


def _parse_list_item(key: str, token: str) -> int:
    try:
        return int(token)
    except ValueError:
        raise MalformedParameter(f"Invalid {key} value: {token}", token) from None


def _parse_int(text: str, error: type, label: str) -> int:
    try:
        return int(text.strip())
    except ValueError:
        raise error(f"Invalid {label}: {text}", text) from None
