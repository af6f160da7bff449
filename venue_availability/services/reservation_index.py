"""Normalizes a raw reservation snapshot into sorted booked windows."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from venue_availability.domain.errors import InvalidWindow
from venue_availability.domain.models import (
    BookedWindow,
    DroppedReservation,
    Reservation,
    TimeWindow,
    as_utc,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReservationIndex:
    """Active reservation windows for one venue, sorted by start.

    Sort order is ``(start, end, reservation_id)``. ``dropped`` lists the
    records that were discarded because their window was invalid.
    """

    venue_id: str
    horizon_start: datetime | None = None
    horizon_end: datetime | None = None
    windows: tuple[BookedWindow, ...] = ()
    dropped: tuple[DroppedReservation, ...] = ()

    @property
    def warning_count(self) -> int:
        return len(self.dropped)

    def __iter__(self):
        return iter(self.windows)

    def __len__(self) -> int:
        return len(self.windows)


def _in_horizon(
    window: TimeWindow, horizon_start: datetime | None, horizon_end: datetime | None
) -> bool:
    if horizon_start is not None and window.end <= horizon_start:
        return False
    if horizon_end is not None and window.start >= horizon_end:
        return False
    return True


def build_index(
    venue_id: str,
    reservations: Iterable[Reservation],
    horizon_start: datetime | None = None,
    horizon_end: datetime | None = None,
    *,
    default_duration_minutes: int = 60,
) -> ReservationIndex:
    """Build the reservation index for *venue_id*.

    Keeps reservations for this venue whose status is confirmed or held and
    whose window overlaps ``[horizon_start, horizon_end)``. A ``None`` bound
    leaves that side open. Windows are kept whole, never clipped to the
    horizon. Records whose window is empty or inverted are dropped and
    reported in ``dropped``.
    """
    if horizon_start is not None:
        horizon_start = as_utc(horizon_start)
    if horizon_end is not None:
        horizon_end = as_utc(horizon_end)

    windows: list[BookedWindow] = []
    dropped: list[DroppedReservation] = []
    for reservation in reservations:
        if reservation.venue_id != venue_id or not reservation.is_active:
            continue
        try:
            window = reservation.derive_window(default_duration_minutes)
        except InvalidWindow as exc:
            dropped.append(DroppedReservation(reservation_id=reservation.id, reason=str(exc)))
            continue
        if _in_horizon(window, horizon_start, horizon_end):
            windows.append(window)

    if dropped:
        logger.warning(
            "Dropped %d malformed reservation(s) for venue %s: %s",
            len(dropped),
            venue_id,
            ", ".join(d.reservation_id for d in dropped),
        )

    windows.sort(key=lambda w: w.sort_key)
    return ReservationIndex(
        venue_id=venue_id,
        horizon_start=horizon_start,
        horizon_end=horizon_end,
        windows=tuple(windows),
        dropped=tuple(dropped),
    )
