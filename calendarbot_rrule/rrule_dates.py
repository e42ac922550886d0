"""RDATE / EXDATE value objects."""

from __future__ import annotations

import dataclasses
import datetime
import logging
from dataclasses import dataclass
from typing import Any, ClassVar, Iterable, Optional, TypeVar, Union

from pydantic import ValidationError

from .rrule_datetime import DateTime, TimeQualifier, ValueType
from .rrule_exceptions import (
    InvalidTimezone,
    MalformedProperty,
    RRuleValueError,
    UnknownTimezone,
    ValueTypeMismatch,
)
from .rrule_plain_models import PlainDateCollection
from .rrule_serialization import Property, emit, parse_property
from .rrule_timezone import get_timezone_provider, is_utc_tzid

logger = logging.getLogger(__name__)

InstantLike = Union[DateTime, datetime.date, datetime.datetime]

_C = TypeVar("_C", bound="DateCollection")


def to_instant(value: InstantLike) -> DateTime:
    """Accept a codec instant or a host-native date/datetime."""
    if isinstance(value, DateTime):
        return value
    return DateTime.from_datetime(value)


def validate_tzid(tzid: Optional[str], parsing: bool = False) -> Optional[str]:
    """Check a TZID against the timezone provider and normalize whitespace.

    Raises:
        InvalidTimezone: When ``parsing`` and the TZID is unknown
        UnknownTimezone: Otherwise, when the TZID is unknown
    """
    if tzid is None:
        return None
    tzid = tzid.strip()
    try:
        get_timezone_provider().get(tzid)
    except UnknownTimezone as e:
        if parsing:
            raise InvalidTimezone(f"Invalid timezone: {tzid}", tzid) from e
        raise
    return tzid


def read_date_parameters(prop: Property) -> tuple[Optional[ValueType], Optional[str]]:
    """Extract and validate the VALUE and TZID parameters of a date property.

    Raises:
        MalformedParameter: For an unsupported VALUE (``PERIOD`` included)
        InvalidTimezone: For an unknown TZID
    """
    value_type = None
    raw_value_type = prop.param("VALUE")
    if raw_value_type is not None:
        value_type = ValueType.parse(raw_value_type)

    for key in prop.parameters:
        if key not in ("VALUE", "TZID"):
            logger.debug("Ignoring %s parameter on %s", key, prop.name)

    return value_type, validate_tzid(prop.param("TZID"), parsing=True)


def localize_utc_tzid(values: tuple[DateTime, ...], tzid: Optional[str]) -> tuple[DateTime, ...]:
    """Wall-clock values governed by a UTC-equivalent TZID are UTC values."""
    if tzid is not None and is_utc_tzid(tzid):
        return tuple(value.with_qualifier(True) for value in values)
    return values


@dataclass(frozen=True)
class DateCollection:
    """Non-empty list of instants sharing one value type, plus an optional TZID.

    A TZID governs local wall-clock members. UTC members are only allowed
    without a TZID or with a UTC-equivalent one.
    """

    PROPERTY_NAME: ClassVar[str] = ""

    values: tuple[DateTime, ...]
    tzid: Optional[str] = None

    def __post_init__(self) -> None:
        name = self.PROPERTY_NAME
        values = tuple(to_instant(value) for value in self.values)
        if not values:
            raise RRuleValueError(f"{name} requires at least one value", name)

        tzid = validate_tzid(self.tzid)
        values = localize_utc_tzid(values, tzid)

        first = values[0]
        for value in values[1:]:
            if value.has_time != first.has_time:
                raise ValueTypeMismatch(
                    f"{name} values must share one value type: "
                    f"{first.value_type.value} {first} vs {value.value_type.value} {value}",
                    name,
                    value.to_text(),
                )
            if value.qualifier is not first.qualifier:
                raise RRuleValueError(f"{name} mixes UTC and local values: {first}, {value}", value.to_text())

        if first.is_utc and tzid is not None and not is_utc_tzid(tzid):
            raise RRuleValueError(f"{name} has UTC values but TZID={tzid}", tzid)

        object.__setattr__(self, "values", values)
        object.__setattr__(self, "tzid", tzid)

    @property
    def value_type(self) -> ValueType:
        return self.values[0].value_type

    @property
    def qualifier(self) -> TimeQualifier:
        return self.values[0].qualifier

    def set_values(self: _C, values: Iterable[InstantLike]) -> _C:
        return dataclasses.replace(self, values=tuple(values))

    def set_tzid(self: _C, tzid: Optional[str]) -> _C:
        return dataclasses.replace(self, tzid=tzid)

    def __iter__(self):
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)

    # Text

    def to_text(self) -> str:
        parameters: dict[str, str] = {}
        if self.tzid is not None and not is_utc_tzid(self.tzid):
            parameters["TZID"] = self.tzid
        if self.value_type is ValueType.DATE:
            parameters["VALUE"] = ValueType.DATE.value
        return emit(self.PROPERTY_NAME, ",".join(value.to_text() for value in self.values), parameters)

    def __str__(self) -> str:
        return self.to_text()

    @classmethod
    def from_text(cls: type[_C], text: str) -> _C:
        return cls.from_property(parse_property(text))

    @classmethod
    def from_property(cls: type[_C], prop: Property) -> _C:
        if prop.name != cls.PROPERTY_NAME:
            raise MalformedProperty(f"Expected {cls.PROPERTY_NAME} property: {prop.to_text()}", prop.name)
        if not isinstance(prop.value, str):
            raise MalformedProperty(f"Invalid {cls.PROPERTY_NAME} value: {prop.to_text()}", prop.to_text())

        value_type, tzid = read_date_parameters(prop)
        values = tuple(DateTime.from_text(token) for token in prop.value.split(",") if token.strip())

        if value_type is not None:
            for value in values:
                if value.value_type is not value_type:
                    raise ValueTypeMismatch(
                        f"{cls.PROPERTY_NAME} declares VALUE={value_type.value} but {value} is "
                        f"{value.value_type.value}",
                        cls.PROPERTY_NAME,
                        value.to_text(),
                    )
        return cls(values, tzid)

    # Plain

    def to_plain(self) -> dict[str, Any]:
        return {"values": [value.to_plain() for value in self.values], "tzid": self.tzid}

    @classmethod
    def from_plain(cls: type[_C], plain: Union[dict[str, Any], PlainDateCollection]) -> _C:
        try:
            model = plain if isinstance(plain, PlainDateCollection) else PlainDateCollection.model_validate(plain)
        except ValidationError as e:
            raise RRuleValueError(f"Invalid plain {cls.PROPERTY_NAME}: {plain!r}", repr(plain)) from e
        return cls(tuple(DateTime.from_plain(value) for value in model.values), model.tzid)


@dataclass(frozen=True)
class RDate(DateCollection):
    """Explicit instants added to a recurrence set."""

    PROPERTY_NAME: ClassVar[str] = "RDATE"


@dataclass(frozen=True)
class ExDate(DateCollection):
    """Explicit instants removed from a recurrence set."""

    PROPERTY_NAME: ClassVar[str] = "EXDATE"
