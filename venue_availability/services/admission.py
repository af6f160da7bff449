"""Serialized check-then-write admission of new bookings.

The conflict check and the write that follows it form one critical section
per venue. Each venue gets its own lock, created on first use, so bookings
for different venues never wait on each other. Read queries do not take
these locks.
"""

from __future__ import annotations

import logging
import threading

from venue_availability.config import DEFAULT_RESERVATION_DURATION_MINUTES
from venue_availability.domain.bus import EventBus
from venue_availability.domain.errors import ConcurrentAdmissionRace
from venue_availability.domain.events import AdmissionRejected, ReservationAdmitted
from venue_availability.domain.models import AdmissionResult, BookingRequest, Reservation
from venue_availability.repos.memory import ReservationRepository
from venue_availability.services.conflicts import check
from venue_availability.services.reservation_index import build_index

logger = logging.getLogger(__name__)


class AdmissionService:
    def __init__(
        self,
        reservation_repo: ReservationRepository,
        bus: EventBus,
        *,
        default_duration_minutes: int = DEFAULT_RESERVATION_DURATION_MINUTES,
        adjacency_is_conflict: bool = False,
    ) -> None:
        self.reservation_repo = reservation_repo
        self.bus = bus
        self.default_duration_minutes = default_duration_minutes
        self.adjacency_is_conflict = adjacency_is_conflict
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def venue_lock(self, venue_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(venue_id)
            if lock is None:
                lock = self._locks[venue_id] = threading.Lock()
            return lock

    def admit(
        self,
        venue_id: str,
        request: BookingRequest,
        *,
        reservation_id: str | None = None,
    ) -> AdmissionResult:
        """Admit *request* for *venue_id* unless it overlaps an active reservation.

        A conflict is an ordinary outcome and comes back as an
        ``AdmissionResult`` listing the overlapping reservation ids. Raises
        ``ConcurrentAdmissionRace`` if the venue's reservations were written
        outside this service between the check and the write; the caller
        decides whether to retry.
        """
        fields = request.model_dump()
        if reservation_id is not None:
            fields["id"] = reservation_id
        reservation = Reservation(venue_id=venue_id, **fields)
        window = reservation.derive_window(self.default_duration_minutes)

        with self.venue_lock(venue_id):
            existing, version = self.reservation_repo.snapshot(venue_id)
            index = build_index(
                venue_id, existing, default_duration_minutes=self.default_duration_minutes
            )
            result = check(
                index, window.as_window(), adjacency_is_conflict=self.adjacency_is_conflict
            )
            if result.admitted:
                try:
                    self.reservation_repo.add_if_version(reservation, version)
                except ConcurrentAdmissionRace:
                    logger.error(
                        "Reservation snapshot for venue %s changed during admission of %s",
                        venue_id,
                        reservation.id,
                    )
                    raise

        if not result.admitted:
            self.bus.publish(
                AdmissionRejected(
                    venue_id=venue_id,
                    start=window.start,
                    end=window.end,
                    conflicting_reservation_ids=result.conflicts,
                )
            )
            return AdmissionResult(admitted=False, conflicts=result.conflicts)

        self.bus.publish(
            ReservationAdmitted(
                venue_id=venue_id,
                reservation_id=reservation.id,
                start=window.start,
                end=window.end,
            )
        )
        return AdmissionResult(admitted=True, reservation=reservation)
