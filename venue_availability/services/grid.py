"""Service for laying a venue's bookings onto an hourly grid."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta

from venue_availability.config import DEFAULT_OPERATING_HOURS, DEFAULT_TIMEZONE
from venue_availability.domain.models import HourlyCell, OperatingWindow, TimeWindow, Venue
from venue_availability.services.conflicts import find_conflicts
from venue_availability.services.reservation_index import ReservationIndex
from venue_availability.services.timezones import to_instant
from venue_availability.services.venue_status import check_operating_window, venue_zone


def operating_window_for(
    venue: Venue, default_operating_hours: str = DEFAULT_OPERATING_HOURS
) -> OperatingWindow:
    window = venue.operating_window or OperatingWindow.parse(default_operating_hours)
    return check_operating_window(window)


def _hour_instant(day: date, hour: int, zone: str) -> datetime:
    # Hours past 23 roll into the next local day.
    return to_instant(day + timedelta(days=hour // 24), time(hour % 24, 0), zone)


def grid(
    index: ReservationIndex,
    venue: Venue,
    day_local_date: date,
    *,
    hour_step: int = 1,
    default_timezone: str = DEFAULT_TIMEZONE,
    default_operating_hours: str = DEFAULT_OPERATING_HOURS,
) -> list[HourlyCell]:
    """Return one cell per grid hour from the opening hour to the closing hour.

    Both endpoint hours are included, so ``08:00 - 22:00`` yields 15 cells.
    Each cell runs from its local hour to the next cell's local hour, so on
    a fall-back day the repeated hour belongs to one two-hour cell. An hour
    skipped by a spring-forward transition keeps its cell, empty and marked
    ``exists=False``. A cell is booked when its span overlaps any indexed
    window. *index* should cover the venue-local day.
    """
    if hour_step < 1:
        raise ValueError("hour_step must be at least 1")

    window = operating_window_for(venue, default_operating_hours)
    zone = venue_zone(venue, default_timezone)

    cells: list[HourlyCell] = []
    for hour in range(window.open_hour, window.close_hour + 1, hour_step):
        starts_at = _hour_instant(day_local_date, hour, zone)
        ends_at = _hour_instant(day_local_date, hour + hour_step, zone)
        exists = ends_at > starts_at
        is_booked = exists and bool(find_conflicts(index, TimeWindow(starts_at, ends_at)))
        cells.append(
            HourlyCell(
                hour_label=f"{hour:02d}:00",
                starts_at=starts_at,
                ends_at=ends_at,
                is_booked=is_booked,
                exists=exists,
            )
        )
    return cells
