"""FastAPI application for JSON surface over the venue availability engine."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from fastapi import FastAPI, HTTPException

from venue_availability.config import get_settings
from venue_availability.domain.bus import EventBus
from venue_availability.domain.errors import ConcurrentAdmissionRace, InvalidVenueConfig
from venue_availability.domain.handlers import HandlerRegistry
from venue_availability.domain.models import (
    AdmissionLogEntry,
    AdmissionResult,
    BookingRequest,
    CandidateWindow,
    ConflictResponse,
    GridResponse,
    OccupancyResponse,
    Reservation,
    ReservationSnapshot,
    Venue,
    VenueOpenStatus,
)
from venue_availability.repos.memory import (
    AdmissionLogRepository,
    ReservationRepository,
    VenueRepository,
)
from venue_availability.services.admission import AdmissionService
from venue_availability.services.conflicts import check
from venue_availability.services.grid import grid, operating_window_for
from venue_availability.services.occupancy import evaluate
from venue_availability.services.reservation_index import build_index
from venue_availability.services.timezones import day_horizon, local_date_of
from venue_availability.services.venue_status import (
    validate_venue,
    venue_open_status,
    venue_zone,
)

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("venue_availability")

app = FastAPI(title="Venue Availability Service")

# ── Singletons (created at import time for simplicity) ────────────────
event_bus = EventBus()
venue_repo = VenueRepository()
reservation_repo = ReservationRepository()
admission_log_repo = AdmissionLogRepository()

handler_registry = HandlerRegistry(bus=event_bus, admission_log_repo=admission_log_repo)
admission_service = AdmissionService(
    reservation_repo,
    event_bus,
    default_duration_minutes=settings.default_reservation_duration_minutes,
    adjacency_is_conflict=settings.adjacency_is_conflict,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _get_venue(venue_id: str) -> Venue:
    venue = venue_repo.get(venue_id)
    if venue is None:
        raise HTTPException(status_code=404, detail="Venue not found")
    try:
        validate_venue(venue, settings.default_timezone)
    except InvalidVenueConfig as exc:
        logger.warning("Venue %s has unusable configuration: %s", venue_id, exc)
        raise HTTPException(status_code=422, detail=str(exc))
    return venue


# ── Routes ────────────────────────────────────────────────────────────


@app.get("/healthz")
def healthz() -> dict:
    return {"ok": True, "time": _utcnow().isoformat()}


@app.put("/venues/{venue_id}", response_model=Venue)
def put_venue(venue_id: str, venue: Venue) -> Venue:
    """Register or replace venue metadata."""
    if venue.id != venue_id:
        raise HTTPException(status_code=400, detail="Venue id does not match path")
    try:
        validate_venue(venue, settings.default_timezone)
    except InvalidVenueConfig as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    venue_repo.put(venue)
    return venue


@app.get("/venues/{venue_id}", response_model=Venue)
def get_venue(venue_id: str) -> Venue:
    return _get_venue(venue_id)


@app.put("/venues/{venue_id}/reservations", response_model=list[Reservation])
def put_reservations(venue_id: str, body: ReservationSnapshot) -> list[Reservation]:
    """Replace the venue's reservation snapshot, as the booking feed would."""
    _get_venue(venue_id)
    foreign = [r.id for r in body.reservations if r.venue_id != venue_id]
    if foreign:
        raise HTTPException(
            status_code=400,
            detail=f"Reservations belong to another venue: {', '.join(foreign)}",
        )
    reservation_repo.replace_for_venue(venue_id, body.reservations)
    return reservation_repo.list_for_venue(venue_id)


@app.get("/venues/{venue_id}/occupancy", response_model=OccupancyResponse)
def get_occupancy(venue_id: str, now: datetime | None = None) -> OccupancyResponse:
    """Return whether the venue is in use at *now* and when that changes today."""
    venue = _get_venue(venue_id)
    current_time = now or _utcnow()
    zone = venue_zone(venue, settings.default_timezone)
    today = local_date_of(current_time, zone)
    horizon_start, horizon_end = day_horizon(today, zone)

    index = build_index(
        venue_id,
        reservation_repo.list_for_venue(venue_id),
        horizon_start,
        horizon_end,
        default_duration_minutes=settings.default_reservation_duration_minutes,
    )
    return OccupancyResponse(
        venue_id=venue_id,
        local_date=today,
        occupancy=evaluate(index, current_time),
        warning_count=index.warning_count,
    )


@app.get("/venues/{venue_id}/open-status", response_model=VenueOpenStatus)
def get_open_status(venue_id: str, now: datetime | None = None) -> VenueOpenStatus:
    venue = _get_venue(venue_id)
    return venue_open_status(venue, now or _utcnow(), settings.default_timezone)


@app.get("/venues/{venue_id}/grid", response_model=GridResponse)
def get_grid(
    venue_id: str, day: date | None = None, now: datetime | None = None
) -> GridResponse:
    """Return the hourly booked/free grid for one venue-local day."""
    venue = _get_venue(venue_id)
    zone = venue_zone(venue, settings.default_timezone)
    local_day = day or local_date_of(now or _utcnow(), zone)
    horizon_start, horizon_end = day_horizon(local_day, zone)

    index = build_index(
        venue_id,
        reservation_repo.list_for_venue(venue_id),
        horizon_start,
        horizon_end,
        default_duration_minutes=settings.default_reservation_duration_minutes,
    )
    try:
        cells = grid(
            index,
            venue,
            local_day,
            hour_step=settings.grid_hour_step,
            default_timezone=settings.default_timezone,
            default_operating_hours=settings.default_operating_hours,
        )
        hours = operating_window_for(venue, settings.default_operating_hours)
    except InvalidVenueConfig as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return GridResponse(
        venue_id=venue_id,
        local_date=local_day,
        operating_hours=hours.label(),
        cells=cells,
        warning_count=index.warning_count,
    )


@app.post("/venues/{venue_id}/conflicts", response_model=ConflictResponse)
def post_conflicts(venue_id: str, candidate: CandidateWindow) -> ConflictResponse:
    """Check a candidate window without booking it."""
    _get_venue(venue_id)
    index = build_index(
        venue_id,
        reservation_repo.list_for_venue(venue_id),
        default_duration_minutes=settings.default_reservation_duration_minutes,
    )
    result = check(
        index,
        candidate.to_window(),
        adjacency_is_conflict=settings.adjacency_is_conflict,
    )
    return ConflictResponse(venue_id=venue_id, result=result, warning_count=index.warning_count)


@app.post("/venues/{venue_id}/bookings", response_model=AdmissionResult, status_code=201)
def post_booking(venue_id: str, body: BookingRequest) -> AdmissionResult:
    """Admit a booking if it does not overlap any active reservation."""
    _get_venue(venue_id)
    try:
        result = admission_service.admit(venue_id, body)
    except ConcurrentAdmissionRace as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    if not result.admitted:
        raise HTTPException(
            status_code=409,
            detail={
                "message": "Booking overlaps existing reservations",
                "conflicts": result.conflicts,
            },
        )
    return result


@app.get("/venues/{venue_id}/admissions", response_model=list[AdmissionLogEntry])
def list_admissions(venue_id: str) -> list[AdmissionLogEntry]:
    _get_venue(venue_id)
    return admission_log_repo.list_for_venue(venue_id)
