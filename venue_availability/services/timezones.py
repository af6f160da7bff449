"""Conversions between absolute instants and venue-local civil time.

All zone arithmetic goes through the IANA database (``zoneinfo``), so
daylight-saving transitions are honoured. Local times that do not exist
(the spring-forward gap) are shifted forward by the length of the gap;
ambiguous local times resolve to the first occurrence unless the supplied
``time`` carries ``fold=1``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import tz as dateutil_tz

from venue_availability.domain.errors import InvalidVenueConfig
from venue_availability.domain.models import as_utc


@dataclass(frozen=True)
class LocalCivilTime:
    """A wall-clock reading in a particular zone."""

    local_date: date
    local_time: time
    zone: str

    @property
    def hour(self) -> int:
        return self.local_time.hour

    @property
    def minute(self) -> int:
        return self.local_time.minute

    def hhmm(self) -> str:
        return f"{self.local_time:%H:%M}"


@lru_cache(maxsize=None)
def get_zone(zone: str) -> ZoneInfo:
    """Return the ``ZoneInfo`` for an IANA id, raising ``InvalidVenueConfig`` if unknown."""
    try:
        return ZoneInfo(zone)
    except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
        raise InvalidVenueConfig(f"unknown timezone {zone!r}") from exc


def to_local_civil(instant: datetime, zone: str) -> LocalCivilTime:
    local = as_utc(instant).astimezone(get_zone(zone))
    # datetime.time() keeps ``fold`` so ambiguous readings round-trip exactly.
    return LocalCivilTime(local_date=local.date(), local_time=local.time(), zone=zone)


def to_instant(local_date: date, local_time: time, zone: str) -> datetime:
    """Return the UTC instant at which the venue's wall clock reads *local_time*."""
    tzinfo = get_zone(zone)
    local = datetime.combine(local_date, local_time, tzinfo=tzinfo)
    if not dateutil_tz.datetime_exists(local):
        local = dateutil_tz.resolve_imaginary(local)
    return local.astimezone(timezone.utc)


def civil_to_instant(civil: LocalCivilTime) -> datetime:
    return to_instant(civil.local_date, civil.local_time, civil.zone)


def local_date_of(instant: datetime, zone: str) -> date:
    return to_local_civil(instant, zone).local_date


def day_horizon(local_date: date, zone: str) -> tuple[datetime, datetime]:
    """Return the ``[start, end)`` instants of one civil day in *zone*.

    The length is 23 or 25 hours on transition days.
    """
    start = to_instant(local_date, time(0, 0), zone)
    end = to_instant(local_date + timedelta(days=1), time(0, 0), zone)
    return start, end
