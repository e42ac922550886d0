"""Plain (dict) representations of recurrence components.

These pydantic models describe the shape of ``to_plain()`` output and validate
``from_plain()`` input. Domain ranges (month 1-12, BY-filter bounds, ...) are
checked by the value objects themselves; the models only enforce structure.
"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class PlainDate(BaseModel):
    """Date-only instant."""

    year: int
    month: int
    day: int

    model_config = ConfigDict(extra="forbid", frozen=True)


class PlainDateTime(BaseModel):
    """Date-time instant; ``utc`` marks a UTC (``Z``) value."""

    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: int
    utc: bool = False

    model_config = ConfigDict(extra="forbid", frozen=True)


PlainInstant = Union[PlainDateTime, PlainDate]


class PlainDtStart(BaseModel):
    """DTSTART as a plain dict."""

    value: PlainInstant
    tzid: Optional[str] = Field(default=None, description="IANA or Windows timezone name")

    model_config = ConfigDict(extra="forbid")


class PlainDateCollection(BaseModel):
    """RDATE or EXDATE as a plain dict."""

    values: list[PlainInstant] = Field(..., min_length=1)
    tzid: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class PlainRRule(BaseModel):
    """RRULE or EXRULE as a plain dict.

    Weekday entries in ``by_weekday`` use their RFC 5545 text form
    (``"MO"``, ``"1SU"``, ``"-1FR"``).
    """

    frequency: str
    interval: int = 1
    count: Optional[int] = None
    until: Optional[PlainInstant] = None
    week_start: str = "MO"
    by_second: list[int] = Field(default_factory=list)
    by_minute: list[int] = Field(default_factory=list)
    by_hour: list[int] = Field(default_factory=list)
    by_weekday: list[str] = Field(default_factory=list)
    by_month_day: list[int] = Field(default_factory=list)
    by_year_day: list[int] = Field(default_factory=list)
    by_week_no: list[int] = Field(default_factory=list)
    by_month: list[int] = Field(default_factory=list)
    by_set_pos: list[int] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")
