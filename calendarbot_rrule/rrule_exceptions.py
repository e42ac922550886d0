"""Custom exception hierarchy for recurrence set errors.

Every error raised by calendarbot_rrule derives from RRuleError so callers can
catch the whole family in one place. Each error carries the offending input
fragment (when there is one) in ``fragment`` and embeds it in the message.
"""

from __future__ import annotations

from typing import Optional


class RRuleError(Exception):
    """Base exception for all recurrence set errors."""

    def __init__(self, message: str, fragment: Optional[str] = None):
        super().__init__(message)
        self.fragment = fragment


# Value construction errors


class RRuleValueError(RRuleError, ValueError):
    """A value object could not be constructed.

    Raised when:
    - A BY-filter value is outside its domain
    - Mutually exclusive fields are combined (COUNT and UNTIL)
    - An instant has impossible components
    """


class OutOfRangeFilterValue(RRuleValueError):
    """A BY-filter value is outside its allowed range (or a BYDAY ordinal is zero)."""


class CountUntilConflict(RRuleValueError):
    """COUNT and UNTIL were both set on the same rule."""


# Parse errors


class RRuleParseError(RRuleError, ValueError):
    """Text could not be parsed into a recurrence component.

    The message always contains the literal that failed to parse.
    """


class MalformedInstant(RRuleParseError, RRuleValueError):
    """A date or date-time literal (or component set) is invalid."""


class MalformedProperty(RRuleParseError):
    """A content line is not of the form NAME[;PARAM=VALUE]:VALUE."""


class MalformedParameter(RRuleParseError):
    """A parameter token is not KEY=VALUE, is unknown, or has a bad value."""


class InvalidFrequency(RRuleParseError):
    """FREQ is missing or not one of the RFC 5545 frequencies."""


class InvalidInterval(RRuleParseError, RRuleValueError):
    """INTERVAL is not a positive integer."""


class InvalidCount(RRuleParseError, RRuleValueError):
    """COUNT is not a positive integer."""


class InvalidUntil(RRuleParseError):
    """UNTIL is not a valid date or date-time literal."""


class InvalidWeekStart(RRuleParseError, RRuleValueError):
    """WKST is not a weekday code."""


class MissingStartDate(RRuleParseError):
    """A rule set text block has no DTSTART, or more than one."""


# Timezone errors


class UnknownTimezone(RRuleError, LookupError):
    """The timezone provider does not recognize a TZID."""


class InvalidTimezone(RRuleParseError, UnknownTimezone):
    """A parsed TZID parameter names an unknown timezone."""


# Composition errors


class ValueTypeMismatch(RRuleError, ValueError):
    """A component's value type (DATE vs DATE-TIME) disagrees with its authority.

    Attributes:
        component: Name of the offending component (UNTIL, RDATE, EXDATE, ...)
    """

    def __init__(self, message: str, component: str, fragment: Optional[str] = None):
        super().__init__(message, fragment)
        self.component = component


class DtstartValueTypeMismatch(ValueTypeMismatch, RRuleParseError):
    """DTSTART's VALUE parameter disagrees with the shape of its instant."""

    def __init__(self, message: str, fragment: Optional[str] = None):
        super().__init__(message, "DTSTART", fragment)


class IncomparableValueType(RRuleError, TypeError):
    """Two instants cannot be ordered (DATE vs DATE-TIME, or UTC vs floating)."""


# Evaluation errors


class UnboundedWithoutLimit(RRuleError):
    """An infinite rule set was materialized without a limit."""


class RecurrenceEngineError(RRuleError):
    """The recurrence engine cannot expand a rule (invalid filter combination)."""
