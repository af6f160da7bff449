"""Domain event handlers, wired up at application startup."""

from __future__ import annotations

import logging

from venue_availability.domain.bus import EventBus
from venue_availability.domain.events import AdmissionRejected, ReservationAdmitted
from venue_availability.domain.models import AdmissionLogEntry, AdmissionLogEntryType
from venue_availability.repos.memory import AdmissionLogRepository

logger = logging.getLogger(__name__)


class HandlerRegistry:
    """Wires admission-event handlers to the bus."""

    def __init__(self, bus: EventBus, admission_log_repo: AdmissionLogRepository) -> None:
        self.bus = bus
        self.admission_log_repo = admission_log_repo
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(ReservationAdmitted, self.on_reservation_admitted)
        self.bus.subscribe(AdmissionRejected, self.on_admission_rejected)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_reservation_admitted(self, event: ReservationAdmitted) -> None:
        logger.info(
            "Admitted reservation %s for venue %s (%s to %s)",
            event.reservation_id,
            event.venue_id,
            event.start.isoformat(),
            event.end.isoformat(),
        )
        self.admission_log_repo.add(
            AdmissionLogEntry(
                venue_id=event.venue_id,
                type=AdmissionLogEntryType.ADMITTED,
                payload={
                    "reservation_id": event.reservation_id,
                    "start": event.start.isoformat(),
                    "end": event.end.isoformat(),
                },
            )
        )

    def on_admission_rejected(self, event: AdmissionRejected) -> None:
        logger.info(
            "Rejected booking for venue %s (%s to %s); overlaps %s",
            event.venue_id,
            event.start.isoformat(),
            event.end.isoformat(),
            ", ".join(event.conflicting_reservation_ids),
        )
        self.admission_log_repo.add(
            AdmissionLogEntry(
                venue_id=event.venue_id,
                type=AdmissionLogEntryType.REJECTED,
                payload={
                    "start": event.start.isoformat(),
                    "end": event.end.isoformat(),
                    "conflicting_reservation_ids": event.conflicting_reservation_ids,
                },
            )
        )
