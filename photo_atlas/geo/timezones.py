from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from photo_atlas.core.errors import TimezoneLookupError

logger = logging.getLogger(__name__)


class TimezoneProvider(Protocol):
    def timezone_id(self, latitude: float, longitude: float, at: datetime) -> str: ...


def localize(naive: datetime, zone_name: str) -> datetime:
    """Read a camera wall-clock time as local time in ``zone_name``; return it in UTC."""
    try:
        zone = ZoneInfo(zone_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise TimezoneLookupError(f"unknown timezone {zone_name!r}") from exc
    return naive.replace(tzinfo=zone).astimezone(timezone.utc)


def correct_timestamp(
    provider: TimezoneProvider, latitude: float, longitude: float, naive: datetime
) -> tuple[datetime, str]:
    """Resolve the zone for a coordinate and apply it to the naive capture time.

    The request uses the wall-clock reading as if it were UTC; the zone is only
    known afterwards and is applied to the original reading, not the UTC one.
    """
    approximate = naive.replace(tzinfo=timezone.utc)
    zone_name = provider.timezone_id(latitude, longitude, approximate)
    return localize(naive, zone_name), zone_name
