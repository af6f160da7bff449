"""Domain events emitted by booking admission."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class ReservationAdmitted(BaseModel):
    """Fired after a candidate passed the conflict check and was stored."""

    venue_id: str
    reservation_id: str
    start: datetime
    end: datetime


class AdmissionRejected(BaseModel):
    """Fired when a candidate overlapped existing reservations."""

    venue_id: str
    start: datetime
    end: datetime
    conflicting_reservation_ids: list[str]
