"""Recurrence set evaluation: DTSTART + RRULE/EXRULE + RDATE/EXDATE.

An ``RRuleSet`` is immutable. Every ``add_*`` / ``set_*`` returns a new set
that shares the unchanged component tuples with its parent and starts with an
empty cache of its own.

Occurrences are produced lazily: each inclusion rule is expanded by the
recurrence engine, the streams are merged in order with the RDATE values,
duplicates are dropped and anything hit by an EXRULE or EXDATE is removed.
All instants are compared on the set's frame, the wall clock of the DTSTART
TZID (or UTC for UTC and floating starts).
"""

from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass, field
from enum import Enum
from itertools import islice
from typing import Callable, Iterable, Iterator, Optional

from .rrule_cache import ITERATOR_KEY, OperationCache
from .rrule_config import get_config
from .rrule_dates import ExDate, InstantLike, RDate, to_instant
from .rrule_datetime import DateTime, compare
from .rrule_dtstart import DtStart
from .rrule_engine import RecurrenceEngine, RuleExpansion, get_default_engine
from .rrule_exceptions import (
    MalformedProperty,
    MissingStartDate,
    RRuleValueError,
    UnboundedWithoutLimit,
    ValueTypeMismatch,
)
from .rrule_models import RRule
from .rrule_serialization import Property, parse_properties
from .rrule_timezone import get_timezone_provider, is_utc_tzid

logger = logging.getLogger(__name__)


class CursorState(Enum):
    """States of an ``OccurrenceCursor``."""

    NOT_STARTED = "not_started"
    BUFFERING = "buffering"
    DELEGATING = "delegating"
    EXHAUSTED = "exhausted"


@dataclass
class _IteratorProgress:
    """Shared iteration state stored in the cache's iterator slot."""

    buffer: list[DateTime] = field(default_factory=list)
    source: Optional[Iterator[DateTime]] = None
    complete: bool = False


class OccurrenceCursor:
    """Restartable, pull-based iterator over a set's occurrences.

    A cursor first replays occurrences already produced by earlier cursors
    (BUFFERING), then pulls new ones from the shared merged stream
    (DELEGATING), appending them to the shared buffer so later cursors can
    replay them. Nothing runs between calls to ``next()``.
    """

    def __init__(
        self,
        progress: Callable[[], _IteratorProgress],
        source: Callable[[], Iterator[DateTime]],
    ):
        self._get_progress = progress
        self._open_source = source
        self._progress: Optional[_IteratorProgress] = None
        self.state = CursorState.NOT_STARTED
        self.index = 0

    def __iter__(self) -> "OccurrenceCursor":
        return self

    def __next__(self) -> DateTime:
        if self.state is CursorState.NOT_STARTED:
            self._progress = self._get_progress()
            self.state = CursorState.BUFFERING
            self.index = 0

        if self.state is CursorState.EXHAUSTED:
            raise StopIteration

        progress = self._progress
        assert progress is not None

        # Another cursor may have extended the shared buffer since our last pull
        if self.index < len(progress.buffer):
            self.state = CursorState.BUFFERING
            value = progress.buffer[self.index]
            self.index += 1
            return value

        if progress.complete:
            self.state = CursorState.EXHAUSTED
            raise StopIteration

        self.state = CursorState.DELEGATING
        if progress.source is None:
            progress.source = self._open_source()
        try:
            value = next(progress.source)
        except StopIteration:
            progress.complete = True
            self.state = CursorState.EXHAUSTED
            raise

        progress.buffer.append(value)
        self.index += 1
        return value


@dataclass(frozen=True)
class _ExpansionPlan:
    """Compiled engine handles plus RDATE/EXDATE values projected onto the frame."""

    rrules: tuple[RuleExpansion, ...]
    exrules: tuple[RuleExpansion, ...]
    rdates: tuple[DateTime, ...]
    exdates: frozenset[DateTime]
    bounded: bool


class _ExclusionCursor:
    """Lazy membership test against the merged EXRULE streams.

    Queries must arrive in ascending order.
    """

    def __init__(self, expansions: tuple[RuleExpansion, ...]):
        self._stream = heapq.merge(*expansions, key=DateTime.to_numeric) if expansions else iter(())
        self._head: Optional[DateTime] = next(self._stream, None)

    def contains(self, candidate: DateTime) -> bool:
        key = candidate.to_numeric()
        while self._head is not None and self._head.to_numeric() < key:
            self._head = next(self._stream, None)
        return self._head == candidate


class RRuleSet:
    """Immutable RFC 5545 recurrence set.

    Example:
        dtstart = DtStart(DateTime.local(1997, 9, 2, 9, 0, 0), "US/Eastern")
        rule_set = RRuleSet(dtstart).add_rrule(RRule(Frequency.DAILY, count=10))
        rule_set.all()      # 10 daily 09:00 occurrences
        rule_set.to_text()  # "DTSTART;TZID=US/Eastern:19970902T090000\\nRRULE:FREQ=DAILY;COUNT=10"
    """

    __slots__ = ("_dtstart", "_rrules", "_exrules", "_exdates", "_rdates", "_engine", "_cache", "_plan")

    def __init__(
        self,
        dtstart: DtStart,
        rrules: Iterable[RRule] = (),
        exrules: Iterable[RRule] = (),
        exdates: Iterable[ExDate] = (),
        rdates: Iterable[RDate] = (),
        engine: Optional[RecurrenceEngine] = None,
        cache_enabled: Optional[bool] = None,
        cache: Optional[OperationCache] = None,
    ):
        """Create a recurrence set.

        Args:
            dtstart: Start anchor; its value type governs every other component
            rrules: Inclusion rules
            exrules: Exclusion rules
            exdates: Excluded dates
            rdates: Added dates
            engine: Recurrence engine (defaults to the dateutil engine)
            cache_enabled: Initial cache state (defaults to ``RRuleConfig.cache_enabled``)
            cache: Cache to own instead of a new one

        Raises:
            ValueTypeMismatch: If an UNTIL, RDATE or EXDATE value type differs from DTSTART's
        """
        set_slot = object.__setattr__
        set_slot(self, "_dtstart", dtstart)
        set_slot(self, "_rrules", tuple(rrules))
        set_slot(self, "_exrules", tuple(exrules))
        set_slot(self, "_exdates", tuple(exdates))
        set_slot(self, "_rdates", tuple(rdates))
        set_slot(self, "_engine", engine or get_default_engine())
        if cache is None:
            config = get_config()
            enabled = config.cache_enabled if cache_enabled is None else cache_enabled
            cache = OperationCache(disabled=not enabled, max_size=config.cache_max_entries)
        set_slot(self, "_cache", cache)
        set_slot(self, "_plan", None)

        self._validate()

    def _validate(self) -> None:
        authority = self._dtstart.value_type

        for rule in self._rrules + self._exrules:
            if rule.until is not None and rule.until.value_type is not authority:
                raise ValueTypeMismatch(
                    f"UNTIL value type {rule.until.value_type.value} ({rule.until}) does not match "
                    f"DTSTART value type {authority.value}",
                    "UNTIL",
                    rule.until.to_text(),
                )

        for collection in self._rdates + self._exdates:
            if collection.value_type is not authority:
                raise ValueTypeMismatch(
                    f"{collection.PROPERTY_NAME} value type {collection.value_type.value} "
                    f"({collection.values[0]}) does not match DTSTART value type {authority.value}",
                    collection.PROPERTY_NAME,
                    collection.values[0].to_text(),
                )

    # Accessors

    @property
    def dtstart(self) -> DtStart:
        return self._dtstart

    @property
    def rrules(self) -> tuple[RRule, ...]:
        return self._rrules

    @property
    def exrules(self) -> tuple[RRule, ...]:
        return self._exrules

    @property
    def exdates(self) -> tuple[ExDate, ...]:
        return self._exdates

    @property
    def rdates(self) -> tuple[RDate, ...]:
        return self._rdates

    @property
    def cache(self) -> OperationCache:
        return self._cache

    @property
    def engine(self) -> RecurrenceEngine:
        return self._engine

    @property
    def tzid(self) -> Optional[str]:
        return self._dtstart.tzid

    # Immutable builder

    def _derive(self, **changes) -> "RRuleSet":
        components = {
            "dtstart": self._dtstart,
            "rrules": self._rrules,
            "exrules": self._exrules,
            "exdates": self._exdates,
            "rdates": self._rdates,
        }
        components.update(changes)
        return RRuleSet(engine=self._engine, cache=self._cache.clone(), **components)

    def set_dtstart(self, dtstart: DtStart) -> "RRuleSet":
        return self._derive(dtstart=dtstart)

    def add_rrule(self, rule: RRule) -> "RRuleSet":
        return self._derive(rrules=self._rrules + (rule,))

    def add_exrule(self, rule: RRule) -> "RRuleSet":
        return self._derive(exrules=self._exrules + (rule,))

    def add_exdate(self, exdate: ExDate) -> "RRuleSet":
        return self._derive(exdates=self._exdates + (exdate,))

    def add_rdate(self, rdate: RDate) -> "RRuleSet":
        return self._derive(rdates=self._rdates + (rdate,))

    def set_rrules(self, rules: Iterable[RRule]) -> "RRuleSet":
        return self._derive(rrules=tuple(rules))

    def set_exrules(self, rules: Iterable[RRule]) -> "RRuleSet":
        return self._derive(exrules=tuple(rules))

    def set_exdates(self, exdates: Iterable[ExDate]) -> "RRuleSet":
        return self._derive(exdates=tuple(exdates))

    def set_rdates(self, rdates: Iterable[RDate]) -> "RRuleSet":
        return self._derive(rdates=tuple(rdates))

    # Frame projection

    def _project(self, instant: DateTime, tzid: Optional[str] = None) -> DateTime:
        """Express ``instant`` (governed by ``tzid``) on the set's frame wall clock."""
        if not instant.has_time:
            return instant

        start = self._dtstart.value
        frame = self._dtstart.frame_tzid
        provider = get_timezone_provider()

        if instant.is_utc:
            if start.is_utc:
                return instant
            naive = provider.from_utc(instant.to_datetime(), frame)
        elif tzid is not None and not is_utc_tzid(tzid) and tzid != frame:
            naive = provider.convert(instant.to_naive(), tzid, frame)
        else:
            naive = instant.to_naive()

        return DateTime.create(
            naive.year, naive.month, naive.day, naive.hour, naive.minute, naive.second, start.is_utc
        )

    def _compile(self, rule: RRule) -> RuleExpansion:
        if rule.until is not None:
            rule = rule.set_until(self._project(rule.until))
        return self._engine.expand(rule, self._dtstart.value)

    def _get_plan(self) -> _ExpansionPlan:
        if self._plan is None:
            rdates = {self._project(value, rdate.tzid) for rdate in self._rdates for value in rdate.values}
            exdates = {self._project(value, exdate.tzid) for exdate in self._exdates for value in exdate.values}
            object.__setattr__(
                self,
                "_plan",
                _ExpansionPlan(
                    rrules=tuple(self._compile(rule) for rule in self._rrules),
                    exrules=tuple(self._compile(rule) for rule in self._exrules),
                    rdates=tuple(sorted(rdates, key=DateTime.to_numeric)),
                    exdates=frozenset(exdates),
                    bounded=all(rule.is_bounded for rule in self._rrules),
                ),
            )
            logger.debug(
                "Built expansion plan: %d rrules, %d exrules, %d rdates, %d exdates",
                len(self._rrules),
                len(self._exrules),
                len(rdates),
                len(exdates),
            )
        return self._plan  # type: ignore[return-value]

    def _merged(self) -> Iterator[DateTime]:
        """Ascending, de-duplicated occurrences after exclusions."""
        plan = self._get_plan()
        merged = heapq.merge(*plan.rrules, plan.rdates, key=DateTime.to_numeric)
        exclusions = _ExclusionCursor(plan.exrules)

        previous: Optional[DateTime] = None
        for occurrence in merged:
            if occurrence == previous:
                continue
            previous = occurrence
            if occurrence in plan.exdates or exclusions.contains(occurrence):
                continue
            yield occurrence

    # Materialization

    @property
    def is_bounded(self) -> bool:
        """True when every inclusion rule has COUNT or UNTIL."""
        return all(rule.is_bounded for rule in self._rrules)

    def all(self, limit: Optional[int] = None) -> tuple[DateTime, ...]:
        """Return occurrences in ascending order, at most ``limit`` of them.

        Raises:
            UnboundedWithoutLimit: If an inclusion rule is unbounded and no limit is given
        """
        if limit is not None and limit < 0:
            raise RRuleValueError(f"limit must not be negative: {limit}", str(limit))
        if limit is None and not self.is_bounded:
            unbounded = next(rule for rule in self._rrules if not rule.is_bounded)
            raise UnboundedWithoutLimit(
                f"RRULE:{unbounded.to_text()} has neither COUNT nor UNTIL; all() requires a limit",
                unbounded.to_text(),
            )

        key = self._cache.generate_key("all", limit)
        return self._cache.get_or_compute(key, lambda: tuple(islice(self._merged(), limit)))

    def between(self, after: InstantLike, before: InstantLike, inclusive: bool = False) -> tuple[DateTime, ...]:
        """Return occurrences within ``(after, before)``, or ``[after, before]`` when inclusive.

        Works for unbounded sets: expansion stops past ``before``.

        Raises:
            IncomparableValueType: If the bounds' value type differs from DTSTART's
        """
        after_instant = to_instant(after)
        before_instant = to_instant(before)
        key = self._cache.generate_key("between", after_instant, before_instant, inclusive)
        return self._cache.get_or_compute(
            key,
            lambda: self._between(self._project(after_instant), self._project(before_instant), inclusive),
        )

    def _between(self, after: DateTime, before: DateTime, inclusive: bool) -> tuple[DateTime, ...]:
        found = []
        for occurrence in self._merged():
            if compare(occurrence, before) > 0 or (not inclusive and compare(occurrence, before) == 0):
                break
            lower = compare(occurrence, after)
            if lower > 0 or (inclusive and lower == 0):
                found.append(occurrence)
        return tuple(found)

    def occurrences(self) -> OccurrenceCursor:
        """Start a restartable cursor; see ``OccurrenceCursor``."""
        return OccurrenceCursor(
            progress=lambda: self._cache.get_or_set(ITERATOR_KEY, _IteratorProgress()),
            source=self._merged,
        )

    def __iter__(self) -> OccurrenceCursor:
        return self.occurrences()

    # Text

    def to_text(self) -> str:
        lines = [self._dtstart.to_text()]
        lines.extend(f"RRULE:{rule.to_text()}" for rule in self._rrules)
        lines.extend(f"EXRULE:{rule.to_text()}" for rule in self._exrules)
        lines.extend(rdate.to_text() for rdate in self._rdates)
        lines.extend(exdate.to_text() for exdate in self._exdates)
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.to_text()

    def __repr__(self) -> str:
        return f"RRuleSet({self.to_text()!r})"

    @classmethod
    def parse(cls, text: str, engine: Optional[RecurrenceEngine] = None) -> "RRuleSet":
        """Parse an RFC 5545 block holding exactly one DTSTART.

        Raises:
            MissingStartDate: If there is no DTSTART or more than one
            MalformedProperty: If a line is not ``NAME[;PARAMS]:VALUE``
            InvalidTimezone: If a TZID is unknown
        """
        properties = parse_properties(text)
        dtstart = _read_dtstart(properties, text)
        if dtstart is None:
            raise MissingStartDate(f"Missing DTSTART: {text.strip()}", text.strip())
        rrules, exrules, exdates, rdates = _read_components(properties)
        return cls(dtstart, rrules, exrules, exdates, rdates, engine=engine)

    def set_from_string(self, text: str) -> "RRuleSet":
        """Replace rules and date collections from text, keeping DTSTART unless the text has one."""
        properties = parse_properties(text)
        dtstart = _read_dtstart(properties, text) or self._dtstart
        rrules, exrules, exdates, rdates = _read_components(properties)
        return self._derive(dtstart=dtstart, rrules=rrules, exrules=exrules, exdates=exdates, rdates=rdates)

    # Protocol

    def __setattr__(self, name: str, value) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RRuleSet):
            return NotImplemented
        return self._components() == other._components()

    def __hash__(self) -> int:
        return hash(self._components())

    def _components(self) -> tuple:
        return (self._dtstart, self._rrules, self._exrules, self._exdates, self._rdates)


def _read_dtstart(properties: list[Property], text: str) -> Optional[DtStart]:
    starts = [prop for prop in properties if prop.name == "DTSTART"]
    if len(starts) > 1:
        raise MissingStartDate(f"Expected one DTSTART, found {len(starts)}: {text.strip()}", text.strip())
    return DtStart.from_property(starts[0]) if starts else None


def _read_components(
    properties: list[Property],
) -> tuple[list[RRule], list[RRule], list[ExDate], list[RDate]]:
    strict = get_config().strict_unknown_properties
    rrules: list[RRule] = []
    exrules: list[RRule] = []
    exdates: list[ExDate] = []
    rdates: list[RDate] = []

    readers: dict[str, Callable[[Property], None]] = {
        "RRULE": lambda prop: rrules.append(RRule.from_property(prop)),
        "EXRULE": lambda prop: exrules.append(RRule.from_property(prop)),
        "EXDATE": lambda prop: exdates.append(ExDate.from_property(prop)),
        "RDATE": lambda prop: rdates.append(RDate.from_property(prop)),
    }

    for prop in properties:
        if prop.name == "DTSTART":
            continue
        reader = readers.get(prop.name)
        if reader is not None:
            reader(prop)
        elif strict:
            raise MalformedProperty(f"Unknown property: {prop.to_text()}", prop.name)
        else:
            logger.debug("Skipping unknown property %s", prop.name)

    return rrules, exrules, exdates, rdates

