"""Service for evaluating whether a venue is occupied at a given instant."""

from __future__ import annotations

from datetime import datetime, timedelta

from venue_availability.domain.models import OccupancyStatus, as_utc
from venue_availability.services.reservation_index import ReservationIndex

STATUS_IN_USE = "In Use"
STATUS_AVAILABLE = "Available"
TIMER_ENDS_IN = "Ends in:"
TIMER_NEXT_EVENT = "Next Event in:"
TIMER_FREE = "Free All Night"


def format_time_remaining(delta: timedelta | None) -> str:
    """Render a duration as ``"2h 5m"``, ``"45m"`` or ``"0m"``; minutes are floored."""
    if delta is None:
        return ""
    minutes = int(delta.total_seconds() // 60)
    if minutes <= 0:
        return "0m"
    hours, minutes = divmod(minutes, 60)
    if hours == 0:
        return f"{minutes}m"
    return f"{hours}h {minutes}m"


def evaluate(index: ReservationIndex, now: datetime) -> OccupancyStatus:
    """Return the occupancy state of the indexed venue at *now*.

    The first window (by start) containing *now* wins, so overlapping stored
    reservations resolve to the earliest-starting one. When free, the next
    change is the start of the first window starting after *now*.
    """
    now = as_utc(now)

    for window in index.windows:
        if window.contains(now):
            remaining = window.end - now
            return OccupancyStatus(
                is_occupied=True,
                active_reservation_id=window.reservation_id,
                changes_at=window.end,
                time_remaining=remaining,
                status_label=STATUS_IN_USE,
                timer_label=TIMER_ENDS_IN,
                time_remaining_label=format_time_remaining(remaining),
            )

    upcoming = next((w for w in index.windows if w.start > now), None)
    if upcoming is None:
        return OccupancyStatus(
            is_occupied=False,
            status_label=STATUS_AVAILABLE,
            timer_label=TIMER_FREE,
        )

    remaining = upcoming.start - now
    return OccupancyStatus(
        is_occupied=False,
        next_reservation_id=upcoming.reservation_id,
        changes_at=upcoming.start,
        time_remaining=remaining,
        status_label=STATUS_AVAILABLE,
        timer_label=TIMER_NEXT_EVENT,
        time_remaining_label=format_time_remaining(remaining),
    )
