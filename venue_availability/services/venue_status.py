"""Venue metadata validation and open/closed evaluation."""

from __future__ import annotations

from datetime import datetime

from venue_availability.config import DEFAULT_TIMEZONE
from venue_availability.domain.errors import InvalidVenueConfig
from venue_availability.domain.models import OperatingWindow, Venue, VenueOpenStatus
from venue_availability.services.timezones import get_zone, to_local_civil


def check_operating_window(window: OperatingWindow) -> OperatingWindow:
    # Windows may not wrap past midnight, so close must come after open.
    if window.open_local >= window.close_local:
        raise InvalidVenueConfig(
            f"operating hours {window.label()} do not close after they open"
        )
    return window


def venue_zone(venue: Venue, default_timezone: str = DEFAULT_TIMEZONE) -> str:
    """Return the venue's IANA zone id, validated against the zone database."""
    zone = venue.timezone or default_timezone
    get_zone(zone)
    return zone


def validate_venue(venue: Venue, default_timezone: str = DEFAULT_TIMEZONE) -> None:
    """Raise ``InvalidVenueConfig`` if the venue's zone or hours are unusable."""
    venue_zone(venue, default_timezone)
    if venue.operating_window is not None:
        check_operating_window(venue.operating_window)


def venue_open_status(
    venue: Venue, now: datetime, default_timezone: str = DEFAULT_TIMEZONE
) -> VenueOpenStatus:
    """Report whether the venue is within its operating hours at *now*.

    Comparison is at minute resolution in venue-local time. A venue with no
    operating hours is treated as always open.
    """
    if venue.operating_window is None:
        return VenueOpenStatus(is_open=True, status="OPEN")

    window = check_operating_window(venue.operating_window)
    local = to_local_civil(now, venue_zone(venue, default_timezone))
    current = local.hour * 60 + local.minute
    opens = window.open_local.hour * 60 + window.open_local.minute
    closes = window.close_local.hour * 60 + window.close_local.minute

    is_open = opens <= current < closes
    return VenueOpenStatus(
        is_open=is_open,
        status="OPEN" if is_open else "CLOSED",
        current_time=local.hhmm(),
    )
