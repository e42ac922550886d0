"""Recurrence engine: expands one rule from a start instant.

``RRuleSet`` depends on the ``RecurrenceEngine`` protocol only; the default
implementation compiles rules to ``dateutil.rrule.rrule`` and runs them on a
naive wall clock.
"""

from __future__ import annotations

import datetime
import logging
from itertools import islice
from typing import Callable, Iterator, Optional, Protocol

from dateutil import rrule as du_rrule

from .rrule_datetime import DateTime
from .rrule_exceptions import RecurrenceEngineError
from .rrule_models import Frequency, RRule

logger = logging.getLogger(__name__)

_DATEUTIL_FREQUENCIES = {
    Frequency.YEARLY: du_rrule.YEARLY,
    Frequency.MONTHLY: du_rrule.MONTHLY,
    Frequency.WEEKLY: du_rrule.WEEKLY,
    Frequency.DAILY: du_rrule.DAILY,
    Frequency.HOURLY: du_rrule.HOURLY,
    Frequency.MINUTELY: du_rrule.MINUTELY,
    Frequency.SECONDLY: du_rrule.SECONDLY,
}


class RuleExpansion(Protocol):
    """Ordered occurrences of a single rule.

    Each ``iter()`` starts a fresh cursor from the first occurrence.
    """

    def __iter__(self) -> Iterator[DateTime]:
        """Yield occurrences in ascending order until the rule is exhausted."""
        ...

    def take(self, limit: int) -> list[DateTime]:
        """Return at most ``limit`` leading occurrences."""
        ...


class RecurrenceEngine(Protocol):
    """Protocol for single-rule expansion."""

    def expand(self, rule: RRule, start: DateTime) -> RuleExpansion:
        """Compile ``rule`` anchored at ``start``.

        Args:
            rule: Rule whose UNTIL, if any, is already on ``start``'s wall clock
            start: Start instant; occurrences carry its value type and qualifier

        Returns:
            Re-iterable expansion

        Raises:
            RecurrenceEngineError: If the rule cannot be expanded from ``start``
        """
        ...


class DateutilRuleExpansion:
    """Expansion backed by a compiled ``dateutil.rrule.rrule``."""

    def __init__(self, compiled: du_rrule.rrule, convert: Callable[[datetime.datetime], DateTime]):
        self._compiled = compiled
        self._convert = convert

    def __iter__(self) -> Iterator[DateTime]:
        try:
            for occurrence in self._compiled:
                yield self._convert(occurrence)
        except ValueError as e:
            raise RecurrenceEngineError(f"Recurrence expansion failed: {e}", str(self._compiled)) from e

    def take(self, limit: int) -> list[DateTime]:
        return list(islice(iter(self), max(limit, 0)))

    def __repr__(self) -> str:
        return f"DateutilRuleExpansion({str(self._compiled)!r})"


class DateutilRecurrenceEngine:
    """Default engine: RFC 5545 expansion through python-dateutil."""

    def expand(self, rule: RRule, start: DateTime) -> DateutilRuleExpansion:
        if not start.has_time:
            if rule.frequency.is_sub_daily:
                raise RecurrenceEngineError(
                    f"FREQ={rule.frequency.value} cannot expand from DATE start {start}", rule.to_text()
                )
            if rule.by_hour or rule.by_minute or rule.by_second:
                raise RecurrenceEngineError(
                    f"Time filters cannot expand from DATE start {start}: {rule.to_text()}", rule.to_text()
                )

        kwargs = {
            "dtstart": start.to_naive(),
            "interval": rule.interval,
            "wkst": rule.week_start.day_index,
            "count": rule.count,
            "until": rule.until.to_naive() if rule.until is not None else None,
            "bysetpos": rule.by_set_pos or None,
            "bymonth": rule.by_month or None,
            "bymonthday": rule.by_month_day or None,
            "byyearday": rule.by_year_day or None,
            "byweekno": rule.by_week_no or None,
            "byweekday": [du_rrule.weekday(day.weekday.day_index, day.n) for day in rule.by_weekday] or None,
            "byhour": rule.by_hour or None,
            "byminute": rule.by_minute or None,
            "bysecond": rule.by_second or None,
        }

        try:
            compiled = du_rrule.rrule(_DATEUTIL_FREQUENCIES[rule.frequency], **kwargs)
        except (ValueError, TypeError) as e:
            raise RecurrenceEngineError(f"Cannot expand {rule.to_text()}: {e}", rule.to_text()) from e

        logger.debug("Compiled %s from %s", rule.to_text(), start)
        return DateutilRuleExpansion(compiled, _converter(start))


def _converter(start: DateTime) -> Callable[[datetime.datetime], DateTime]:
    if not start.has_time:
        return lambda value: DateTime.date(value.year, value.month, value.day)
    utc = start.is_utc
    return lambda value: DateTime.create(
        value.year, value.month, value.day, value.hour, value.minute, value.second, utc
    )


# Global engine instance (created on first use)
_engine: Optional[DateutilRecurrenceEngine] = None


def get_default_engine() -> DateutilRecurrenceEngine:
    """Get or create the shared default engine."""
    global _engine
    if _engine is None:
        _engine = DateutilRecurrenceEngine()
    return _engine
