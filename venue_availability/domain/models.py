"""Domain models for the venue availability engine."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from venue_availability.domain.errors import InvalidVenueConfig, InvalidWindow


class ReservationStatus(StrEnum):
    PENDING = "pending"
    HELD = "held"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


# Only these statuses occupy a venue or block a candidate booking.
ACTIVE_STATUSES = frozenset({ReservationStatus.CONFIRMED, ReservationStatus.HELD})
BOOKABLE_STATUSES = ACTIVE_STATUSES | {ReservationStatus.PENDING}


class AdmissionLogEntryType(StrEnum):
    ADMITTED = "admitted"
    REJECTED = "rejected"


def as_utc(value: datetime) -> datetime:
    """Return *value* as an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Time windows
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TimeWindow:
    """Half-open interval ``[start, end)`` in absolute time."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", as_utc(self.start))
        object.__setattr__(self, "end", as_utc(self.end))
        if self.start >= self.end:
            raise InvalidWindow(
                f"window start {self.start.isoformat()} is not before end {self.end.isoformat()}"
            )

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def contains(self, instant: datetime) -> bool:
        """True when *instant* falls inside the window (start inclusive, end exclusive)."""
        instant = as_utc(instant)
        return self.start <= instant < self.end

    def overlaps(self, other: TimeWindow, *, inclusive: bool = False) -> bool:
        """Return True when the two windows share at least one instant.

        With ``inclusive=True`` back-to-back windows (``a.end == b.start``)
        are treated as overlapping too.
        """
        if inclusive:
            return self.start <= other.end and other.start <= self.end
        return self.start < other.end and other.start < self.end


@dataclass(frozen=True)
class BookedWindow(TimeWindow):
    """A normalized reservation window as held by the reservation index."""

    reservation_id: str = ""

    @property
    def sort_key(self) -> tuple[datetime, datetime, str]:
        return (self.start, self.end, self.reservation_id)

    def as_window(self) -> TimeWindow:
        return TimeWindow(self.start, self.end)


# ---------------------------------------------------------------------------
# External entities (read-only snapshots)
# ---------------------------------------------------------------------------


class Reservation(BaseModel):
    id: str = Field(default_factory=_new_id)
    venue_id: str
    start: datetime
    end: datetime | None = None
    duration_minutes: int | None = None
    status: ReservationStatus = ReservationStatus.CONFIRMED
    title: str | None = None

    @field_validator("start", "end")
    @classmethod
    def _normalize_instant(cls, value: datetime | None) -> datetime | None:
        return as_utc(value) if value is not None else None

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def derive_window(self, default_duration_minutes: int) -> BookedWindow:
        """Build the reservation's window.

        The explicit end wins; otherwise ``start + duration_minutes``, falling
        back to *default_duration_minutes*. Raises ``InvalidWindow`` for a
        non-positive duration.
        """
        if self.end is not None:
            end = self.end
        else:
            minutes = (
                self.duration_minutes
                if self.duration_minutes is not None
                else default_duration_minutes
            )
            end = self.start + timedelta(minutes=minutes)
        return BookedWindow(self.start, end, reservation_id=self.id)


def _split_hours(text: str) -> dict[str, str]:
    parts = [part.strip() for part in text.split("-")]
    if len(parts) != 2 or not all(parts):
        raise ValueError(f"operating hours must look like 'HH:MM - HH:MM', got {text!r}")
    return {"open_local": parts[0], "close_local": parts[1]}


class OperatingWindow(BaseModel):
    """Daily opening hours in venue-local civil time."""

    model_config = ConfigDict(frozen=True)

    open_local: time
    close_local: time

    @model_validator(mode="before")
    @classmethod
    def _accept_hours_string(cls, data):
        if isinstance(data, str):
            return _split_hours(data)
        return data

    @classmethod
    def parse(cls, text: str) -> OperatingWindow:
        """Parse an access-hours string such as ``"08:00 - 22:00"``."""
        try:
            return cls.model_validate(text)
        except ValueError as exc:
            raise InvalidVenueConfig(f"malformed operating hours {text!r}") from exc

    @property
    def open_hour(self) -> int:
        return self.open_local.hour

    @property
    def close_hour(self) -> int:
        return self.close_local.hour

    def label(self) -> str:
        return f"{self.open_local:%H:%M} - {self.close_local:%H:%M}"


class Venue(BaseModel):
    id: str
    name: str | None = None
    timezone: str | None = None
    operating_window: OperatingWindow | None = None


# ---------------------------------------------------------------------------
# Computed outputs
# ---------------------------------------------------------------------------


class DroppedReservation(BaseModel):
    reservation_id: str
    reason: str


class OccupancyStatus(BaseModel):
    is_occupied: bool
    active_reservation_id: str | None = None
    next_reservation_id: str | None = None
    changes_at: datetime | None = None
    time_remaining: timedelta | None = None
    status_label: str
    timer_label: str
    time_remaining_label: str = ""


class ConflictResult(BaseModel):
    admitted: bool
    conflicts: list[str] = Field(default_factory=list)


class HourlyCell(BaseModel):
    hour_label: str
    starts_at: datetime
    ends_at: datetime
    is_booked: bool
    # False for a wall-clock hour skipped by a spring-forward transition.
    exists: bool = True


class VenueOpenStatus(BaseModel):
    is_open: bool
    status: str
    current_time: str | None = None


class AdmissionResult(BaseModel):
    admitted: bool
    conflicts: list[str] = Field(default_factory=list)
    reservation: Reservation | None = None


class AdmissionLogEntry(BaseModel):
    id: str = Field(default_factory=_new_id)
    venue_id: str
    timestamp: datetime = Field(default_factory=_utcnow)
    type: AdmissionLogEntryType
    payload: dict = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class CandidateWindow(BaseModel):
    start: datetime
    end: datetime

    @field_validator("start", "end")
    @classmethod
    def _normalize_instant(cls, value: datetime) -> datetime:
        return as_utc(value)

    @model_validator(mode="after")
    def _end_after_start(self) -> CandidateWindow:
        if self.end <= self.start:
            raise ValueError("end must be after start")
        return self

    def to_window(self) -> TimeWindow:
        return TimeWindow(self.start, self.end)


class BookingRequest(BaseModel):
    start: datetime
    end: datetime | None = None
    duration_minutes: int | None = Field(default=None, gt=0)
    title: str | None = None
    status: ReservationStatus = ReservationStatus.CONFIRMED

    @field_validator("start", "end")
    @classmethod
    def _normalize_instant(cls, value: datetime | None) -> datetime | None:
        return as_utc(value) if value is not None else None

    @field_validator("status")
    @classmethod
    def _bookable_status(cls, value: ReservationStatus) -> ReservationStatus:
        if value not in BOOKABLE_STATUSES:
            raise ValueError(f"cannot book a reservation with status {value.value!r}")
        return value

    @model_validator(mode="after")
    def _end_after_start(self) -> BookingRequest:
        if self.end is not None and self.end <= self.start:
            raise ValueError("end must be after start")
        return self


class ReservationSnapshot(BaseModel):
    reservations: list[Reservation] = Field(default_factory=list)


class OccupancyResponse(BaseModel):
    venue_id: str
    local_date: date
    occupancy: OccupancyStatus
    warning_count: int = 0


class GridResponse(BaseModel):
    venue_id: str
    local_date: date
    operating_hours: str
    cells: list[HourlyCell]
    warning_count: int = 0


class ConflictResponse(BaseModel):
    venue_id: str
    result: ConflictResult
    warning_count: int = 0
