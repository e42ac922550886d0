"""Timezone resolution for recurrence sets.

Resolves TZID parameters to ``zoneinfo`` zones and converts between naive
wall-clock values and UTC. Fold/gap handling follows RFC 5545: an ambiguous
local time maps to its first occurrence and a non-existent local time is
interpreted with the UTC offset in effect before the gap (``fold=0``).
"""

from __future__ import annotations

import datetime
import logging
from typing import ClassVar, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .rrule_exceptions import UnknownTimezone

logger = logging.getLogger(__name__)

UTC_ALIASES = frozenset({"UTC", "ETC/UTC", "Z", "GMT", "ETC/GMT", "ZULU", "UNIVERSAL"})


def is_utc_tzid(tzid: Optional[str]) -> bool:
    """Return True if ``tzid`` names UTC (and must not be serialized as a TZID)."""
    return tzid is not None and tzid.strip().upper() in UTC_ALIASES


class TimezoneProvider:
    """Resolves TZID strings and converts wall-clock values through them."""

    # Windows timezone names to IANA identifier mapping
    # Common Windows timezones used in ICS files from Outlook/Exchange
    WINDOWS_TZ_MAP: ClassVar[dict[str, str]] = {
        "Pacific Standard Time": "America/Los_Angeles",
        "Mountain Standard Time": "America/Denver",
        "Central Standard Time": "America/Chicago",
        "Eastern Standard Time": "America/New_York",
        "Alaskan Standard Time": "America/Anchorage",
        "Hawaiian Standard Time": "Pacific/Honolulu",
        "Arizona Standard Time": "America/Phoenix",
        "GMT Standard Time": "Europe/London",
        "Central European Standard Time": "Europe/Paris",
        "W. Europe Standard Time": "Europe/Berlin",
        "China Standard Time": "Asia/Shanghai",
        "Tokyo Standard Time": "Asia/Tokyo",
        "India Standard Time": "Asia/Kolkata",
        "AUS Eastern Standard Time": "Australia/Sydney",
    }

    def get(self, tzid: Optional[str]) -> datetime.tzinfo:
        """Resolve a TZID to a tzinfo.

        Args:
            tzid: IANA or Windows timezone name; None means UTC

        Returns:
            tzinfo for the identifier

        Raises:
            UnknownTimezone: If the identifier cannot be resolved
        """
        if tzid is None or is_utc_tzid(tzid):
            return datetime.timezone.utc

        name = tzid.strip()
        iana = self.WINDOWS_TZ_MAP.get(name, name)
        if iana != name:
            logger.debug("Mapped Windows timezone %r to %r", name, iana)

        try:
            return ZoneInfo(iana)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise UnknownTimezone(f"'{tzid}' is not a valid timezone", tzid) from e

    def is_valid(self, tzid: Optional[str]) -> bool:
        """Check whether a TZID can be resolved."""
        try:
            self.get(tzid)
        except UnknownTimezone:
            return False
        return True

    def to_utc(self, naive: datetime.datetime, tzid: Optional[str]) -> datetime.datetime:
        """Interpret a naive wall-clock value in ``tzid`` and return it as aware UTC."""
        tz = self.get(tzid)
        return naive.replace(tzinfo=tz, fold=0).astimezone(datetime.timezone.utc)

    def from_utc(self, aware: datetime.datetime, tzid: Optional[str]) -> datetime.datetime:
        """Convert an aware value to the naive wall clock of ``tzid``."""
        tz = self.get(tzid)
        return aware.astimezone(tz).replace(tzinfo=None, fold=0)

    def convert(
        self,
        naive: datetime.datetime,
        source_tzid: Optional[str],
        target_tzid: Optional[str],
    ) -> datetime.datetime:
        """Move a naive wall-clock value from one zone's clock to another's."""
        if source_tzid == target_tzid:
            return naive
        return self.from_utc(self.to_utc(naive, source_tzid), target_tzid)


# Global provider instance (created on first use)
_provider: Optional[TimezoneProvider] = None


def get_timezone_provider() -> TimezoneProvider:
    """Get or create the global timezone provider."""
    global _provider
    if _provider is None:
        _provider = TimezoneProvider()
    return _provider
