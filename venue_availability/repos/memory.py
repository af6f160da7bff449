"""In-memory stores standing in for the external venue and booking collaborators."""

from __future__ import annotations

import threading

from venue_availability.domain.errors import ConcurrentAdmissionRace
from venue_availability.domain.models import AdmissionLogEntry, Reservation, Venue


class VenueRepository:
    """Dict-backed store for Venue metadata, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, Venue] = {}

    def put(self, venue: Venue) -> None:
        self._store[venue.id] = venue

    def get(self, venue_id: str) -> Venue | None:
        return self._store.get(venue_id)


class ReservationRepository:
    """Per-venue reservation lists with a version counter per venue.

    Every write bumps the venue's version. Readers get copies, so a snapshot
    is never affected by later writes.
    """

    def __init__(self) -> None:
        self._by_venue: dict[str, list[Reservation]] = {}
        self._versions: dict[str, int] = {}
        self._lock = threading.Lock()

    def _append(self, reservation: Reservation) -> None:
        self._by_venue.setdefault(reservation.venue_id, []).append(reservation)
        self._versions[reservation.venue_id] = self._versions.get(reservation.venue_id, 0) + 1

    def add(self, reservation: Reservation) -> None:
        with self._lock:
            self._append(reservation)

    def add_if_version(self, reservation: Reservation, expected_version: int) -> int:
        """Store *reservation* only if the venue is still at *expected_version*.

        Returns the new version. Raises ``ConcurrentAdmissionRace`` otherwise.
        """
        with self._lock:
            actual = self._versions.get(reservation.venue_id, 0)
            if actual != expected_version:
                raise ConcurrentAdmissionRace(reservation.venue_id, expected_version, actual)
            self._append(reservation)
            return self._versions[reservation.venue_id]

    def replace_for_venue(self, venue_id: str, reservations: list[Reservation]) -> None:
        with self._lock:
            self._by_venue[venue_id] = list(reservations)
            self._versions[venue_id] = self._versions.get(venue_id, 0) + 1

    def snapshot(self, venue_id: str) -> tuple[list[Reservation], int]:
        """Return a copy of the venue's reservations together with its version."""
        with self._lock:
            return list(self._by_venue.get(venue_id, [])), self._versions.get(venue_id, 0)

    def list_for_venue(self, venue_id: str) -> list[Reservation]:
        return self.snapshot(venue_id)[0]

    def clear(self) -> None:
        with self._lock:
            self._by_venue.clear()
            self._versions.clear()


class AdmissionLogRepository:
    """List-backed store for AdmissionLogEntry instances."""

    def __init__(self) -> None:
        self._entries: list[AdmissionLogEntry] = []
        self._lock = threading.Lock()

    def add(self, entry: AdmissionLogEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def list_for_venue(self, venue_id: str) -> list[AdmissionLogEntry]:
        with self._lock:
            entries = [e for e in self._entries if e.venue_id == venue_id]
        return sorted(entries, key=lambda e: e.timestamp)
