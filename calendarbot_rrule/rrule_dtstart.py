"""DTSTART: the start anchor and value-type authority of a recurrence set."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import ValidationError

from .rrule_dates import InstantLike, localize_utc_tzid, read_date_parameters, to_instant, validate_tzid
from .rrule_datetime import DateTime, ValueType
from .rrule_exceptions import DtstartValueTypeMismatch, MalformedProperty, RRuleValueError
from .rrule_plain_models import PlainDtStart
from .rrule_serialization import Property, emit, parse_property
from .rrule_timezone import is_utc_tzid


@dataclass(frozen=True)
class DtStart:
    """Start instant plus optional TZID.

    A UTC value, or a TZID naming UTC, puts the set in the UTC frame and is
    serialized without TZID. A local value without TZID is floating and is
    evaluated on the UTC clock.

    Example:
        start = DtStart(DateTime.local(1997, 9, 2, 9, 0, 0), "US/Eastern")
        start.to_text()  # "DTSTART;TZID=US/Eastern:19970902T090000"
    """

    value: DateTime
    tzid: Optional[str] = None

    def __post_init__(self) -> None:
        tzid = validate_tzid(self.tzid)
        (value,) = localize_utc_tzid((to_instant(self.value),), tzid)
        object.__setattr__(self, "value", value)
        object.__setattr__(self, "tzid", tzid)

    @classmethod
    def from_options(cls, options: dict[str, Any]) -> "DtStart":
        """Build from ``{"value": <instant or date/datetime>, "tzid": <str>}``."""
        if "value" not in options:
            raise RRuleValueError(f"DTSTART options require 'value': {options!r}", repr(options))
        return cls(options["value"], options.get("tzid"))

    @property
    def value_type(self) -> ValueType:
        return self.value.value_type

    @property
    def frame_tzid(self) -> Optional[str]:
        """Zone whose wall clock the set is evaluated on; None means UTC."""
        if self.value.is_utc or self.tzid is None or is_utc_tzid(self.tzid):
            return None
        return self.tzid

    def set_tzid(self, tzid: Optional[str]) -> "DtStart":
        return dataclasses.replace(self, tzid=tzid)

    def set_value(self, value: InstantLike) -> "DtStart":
        return dataclasses.replace(self, value=value)

    # Text

    def to_text(self) -> str:
        parameters: dict[str, str] = {}
        if self.frame_tzid is not None:
            parameters["TZID"] = self.frame_tzid
        # DATE-TIME is the default value type of DTSTART
        if self.value_type is ValueType.DATE:
            parameters["VALUE"] = ValueType.DATE.value
        return emit("DTSTART", self.value.to_text(), parameters)

    def __str__(self) -> str:
        return self.to_text()

    @classmethod
    def from_text(cls, text: str) -> "DtStart":
        return cls.from_property(parse_property(text))

    @classmethod
    def from_property(cls, prop: Property) -> "DtStart":
        if prop.name != "DTSTART":
            raise MalformedProperty(f"Expected DTSTART property: {prop.to_text()}", prop.name)
        if not isinstance(prop.value, str) or "," in prop.value:
            raise MalformedProperty(f"Invalid DTSTART value: {prop.to_text()}", prop.to_text())

        value_type, tzid = read_date_parameters(prop)
        value = DateTime.from_text(prop.value)
        if value_type is not None and value.value_type is not value_type:
            raise DtstartValueTypeMismatch(
                f"DTSTART declares VALUE={value_type.value} but {prop.value} is {value.value_type.value}",
                prop.value,
            )
        return cls(value, tzid)

    # Plain

    def to_plain(self) -> dict[str, Any]:
        return {"value": self.value.to_plain(), "tzid": self.tzid}

    @classmethod
    def from_plain(cls, plain: Union[dict[str, Any], PlainDtStart]) -> "DtStart":
        try:
            model = plain if isinstance(plain, PlainDtStart) else PlainDtStart.model_validate(plain)
        except ValidationError as e:
            raise RRuleValueError(f"Invalid plain DTSTART: {plain!r}", repr(plain)) from e
        return cls(DateTime.from_plain(model.value), model.tzid)
