"""Shared fixtures for calendarbot_rrule tests."""

from collections.abc import Generator
from typing import Any

import pytest

from calendarbot_rrule.rrule_datetime import DateTime
from calendarbot_rrule.rrule_dtstart import DtStart
from calendarbot_rrule.rrule_models import Frequency, RRule
from calendarbot_rrule.rrule_set import RRuleSet


def pytest_configure(config: Any) -> None:
    """Register test markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
    config.addinivalue_line("markers", "smoke: Basic smoke tests")


@pytest.fixture(autouse=True)
def reset_rrule_globals(monkeypatch: Any) -> Generator[None, Any, None]:
    """Reset process-wide config and singletons so tests do not leak state.

    The config default is loaded lazily from CALENDARBOT_RRULE_CONFIG, so the
    variable is removed for the duration of each test.
    """
    import calendarbot_rrule.rrule_config
    import calendarbot_rrule.rrule_engine
    import calendarbot_rrule.rrule_timezone

    monkeypatch.delenv("CALENDARBOT_RRULE_CONFIG", raising=False)
    monkeypatch.delenv("CALENDARBOT_DEBUG", raising=False)
    monkeypatch.delenv("CALENDARBOT_LOG_LEVEL", raising=False)
    calendarbot_rrule.rrule_config._config = None
    yield
    calendarbot_rrule.rrule_config._config = None
    calendarbot_rrule.rrule_engine._engine = None
    calendarbot_rrule.rrule_timezone._provider = None


@pytest.fixture
def eastern_start() -> DtStart:
    """DTSTART 1997-09-02 09:00 in US/Eastern (RFC 5545 example anchor)."""
    return DtStart(DateTime.local(1997, 9, 2, 9, 0, 0), "US/Eastern")


@pytest.fixture
def daily_ten(eastern_start: DtStart) -> RRuleSet:
    """Daily for 10 occurrences from the Eastern anchor."""
    return RRuleSet(eastern_start, rrules=[RRule(Frequency.DAILY, count=10)])
