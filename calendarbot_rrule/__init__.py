"""calendarbot_rrule - RFC 5545 recurrence set evaluation for CalendarBot.

Builds DTSTART / RRULE / EXRULE / RDATE / EXDATE sets, materializes their
occurrences (bounded lists, ranges or a restartable cursor) and round-trips
them through RFC 5545 text.
"""

__version__ = "0.1.0"

from .rrule_cache import OperationCache
from .rrule_config import RRuleConfig, get_config, load_config, set_config
from .rrule_dates import ExDate, RDate
from .rrule_datetime import DateTime, TimeQualifier, ValueType
from .rrule_dtstart import DtStart
from .rrule_engine import DateutilRecurrenceEngine, RecurrenceEngine, RuleExpansion
from .rrule_exceptions import (
    CountUntilConflict,
    DtstartValueTypeMismatch,
    IncomparableValueType,
    InvalidCount,
    InvalidFrequency,
    InvalidInterval,
    InvalidTimezone,
    InvalidUntil,
    InvalidWeekStart,
    MalformedInstant,
    MalformedParameter,
    MalformedProperty,
    MissingStartDate,
    OutOfRangeFilterValue,
    RecurrenceEngineError,
    RRuleError,
    RRuleParseError,
    RRuleValueError,
    UnboundedWithoutLimit,
    UnknownTimezone,
    ValueTypeMismatch,
)
from .rrule_logging import configure_rrule_logging
from .rrule_models import Frequency, Month, NWeekday, RRule, Weekday
from .rrule_set import CursorState, OccurrenceCursor, RRuleSet
from .rrule_timezone import TimezoneProvider, get_timezone_provider

__all__ = [
    "__version__",
    "CountUntilConflict",
    "CursorState",
    "DateTime",
    "DateutilRecurrenceEngine",
    "DtStart",
    "DtstartValueTypeMismatch",
    "ExDate",
    "Frequency",
    "IncomparableValueType",
    "InvalidCount",
    "InvalidFrequency",
    "InvalidInterval",
    "InvalidTimezone",
    "InvalidUntil",
    "InvalidWeekStart",
    "MalformedInstant",
    "MalformedParameter",
    "MalformedProperty",
    "MissingStartDate",
    "Month",
    "NWeekday",
    "OccurrenceCursor",
    "OperationCache",
    "OutOfRangeFilterValue",
    "RDate",
    "RRule",
    "RRuleConfig",
    "RRuleError",
    "RRuleParseError",
    "RRuleSet",
    "RRuleValueError",
    "RecurrenceEngine",
    "RecurrenceEngineError",
    "RuleExpansion",
    "TimeQualifier",
    "TimezoneProvider",
    "UnboundedWithoutLimit",
    "UnknownTimezone",
    "ValueType",
    "ValueTypeMismatch",
    "Weekday",
    "configure_rrule_logging",
    "get_config",
    "get_timezone_provider",
    "load_config",
    "set_config",
]
