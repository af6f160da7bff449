"""Tests for serialized booking admission."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from venue_availability.domain.bus import EventBus
from venue_availability.domain.errors import ConcurrentAdmissionRace
from venue_availability.domain.events import AdmissionRejected, ReservationAdmitted
from venue_availability.domain.handlers import HandlerRegistry
from venue_availability.domain.models import (
    AdmissionLogEntryType,
    BookingRequest,
    Reservation,
    ReservationStatus,
)
from venue_availability.repos.memory import AdmissionLogRepository, ReservationRepository
from venue_availability.services.admission import AdmissionService

_NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def env():
    """Fresh bus + repos + service for each test."""
    bus = EventBus()
    reservation_repo = ReservationRepository()
    admission_log_repo = AdmissionLogRepository()
    registry = HandlerRegistry(bus=bus, admission_log_repo=admission_log_repo)
    service = AdmissionService(reservation_repo, bus, default_duration_minutes=60)

    class Env:
        pass

    e = Env()
    e.bus = bus
    e.reservation_repo = reservation_repo
    e.admission_log_repo = admission_log_repo
    e.registry = registry
    e.service = service
    return e


def _request(start_h: float, end_h: float | None = None, **overrides) -> BookingRequest:
    fields = dict(start=_NOW + timedelta(hours=start_h))
    if end_h is not None:
        fields["end"] = _NOW + timedelta(hours=end_h)
    fields.update(overrides)
    return BookingRequest(**fields)


# ---------------------------------------------------------------------------
# Admit / reject
# ---------------------------------------------------------------------------


def test_free_slot_is_admitted_and_stored(env):
    result = env.service.admit("hall-a", _request(1, 2, title="Chess club"))

    assert result.admitted is True
    assert result.conflicts == []
    assert result.reservation.venue_id == "hall-a"
    assert result.reservation.title == "Chess club"
    assert env.reservation_repo.list_for_venue("hall-a") == [result.reservation]


def test_overlapping_request_is_rejected_with_ids(env):
    env.reservation_repo.add(
        Reservation(
            id="existing",
            venue_id="hall-a",
            start=_NOW + timedelta(hours=1),
            end=_NOW + timedelta(hours=3),
        )
    )
    result = env.service.admit("hall-a", _request(2, 4))

    assert result.admitted is False
    assert result.conflicts == ["existing"]
    assert result.reservation is None
    assert len(env.reservation_repo.list_for_venue("hall-a")) == 1


def test_back_to_back_request_is_admitted(env):
    env.service.admit("hall-a", _request(1, 2))
    assert env.service.admit("hall-a", _request(2, 3)).admitted is True


def test_adjacency_rejected_when_configured(env):
    service = AdmissionService(env.reservation_repo, env.bus, adjacency_is_conflict=True)
    service.admit("hall-a", _request(1, 2), reservation_id="first")
    result = service.admit("hall-a", _request(2, 3))
    assert result.conflicts == ["first"]


def test_default_duration_applies_to_open_ended_request(env):
    env.service.admit("hall-a", _request(1), reservation_id="open-ended")
    result = env.service.admit("hall-a", _request(1.5, 1.75))
    assert result.conflicts == ["open-ended"]


def test_other_venues_do_not_conflict(env):
    env.service.admit("hall-a", _request(1, 2))
    assert env.service.admit("hall-b", _request(1, 2)).admitted is True


def test_cancelled_reservation_frees_the_slot(env):
    env.reservation_repo.add(
        Reservation(
            venue_id="hall-a",
            start=_NOW + timedelta(hours=1),
            end=_NOW + timedelta(hours=2),
            status=ReservationStatus.CANCELLED,
        )
    )
    assert env.service.admit("hall-a", _request(1, 2)).admitted is True


@pytest.mark.parametrize("status", [ReservationStatus.CANCELLED, ReservationStatus.REJECTED])
def test_request_for_inactive_status_is_refused(status):
    with pytest.raises(ValidationError):
        _request(1, 2, status=status)


def test_pending_request_is_admitted_without_blocking(env):
    assert env.service.admit("hall-a", _request(1, 2, status=ReservationStatus.PENDING)).admitted is True
    assert env.service.admit("hall-a", _request(1, 2)).admitted is True


# ---------------------------------------------------------------------------
# Events and admission log
# ---------------------------------------------------------------------------


def test_outcomes_are_published_and_logged(env):
    published = []
    env.bus.subscribe(ReservationAdmitted, published.append)
    env.bus.subscribe(AdmissionRejected, published.append)

    first = env.service.admit("hall-a", _request(1, 2))
    env.service.admit("hall-a", _request(1.5, 2.5))

    assert [type(e) for e in published] == [ReservationAdmitted, AdmissionRejected]
    assert published[1].conflicting_reservation_ids == [first.reservation.id]

    log = env.admission_log_repo.list_for_venue("hall-a")
    assert [entry.type for entry in log] == [
        AdmissionLogEntryType.ADMITTED,
        AdmissionLogEntryType.REJECTED,
    ]
    assert log[0].payload["reservation_id"] == first.reservation.id


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


def test_concurrent_overlapping_requests_admit_exactly_one(env):
    workers = 8
    barrier = threading.Barrier(workers)

    def attempt(i: int):
        barrier.wait()
        return env.service.admit("hall-a", _request(1, 2), reservation_id=f"r{i}")

    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = list(pool.map(attempt, range(workers)))

    admitted = [r for r in results if r.admitted]
    assert len(admitted) == 1
    assert len(env.reservation_repo.list_for_venue("hall-a")) == 1
    for rejected in (r for r in results if not r.admitted):
        assert rejected.conflicts == [admitted[0].reservation.id]


def test_other_venue_is_not_blocked_by_held_lock(env):
    lock = env.service.venue_lock("hall-a")
    lock.acquire()
    try:
        with ThreadPoolExecutor(max_workers=1) as pool:
            future = pool.submit(env.service.admit, "hall-b", _request(1, 2))
            assert future.result(timeout=5).admitted is True
            # Reads never take the admission lock.
            assert pool.submit(env.reservation_repo.list_for_venue, "hall-a").result(timeout=5) == []
    finally:
        lock.release()


def test_same_venue_shares_one_lock(env):
    assert env.service.venue_lock("hall-a") is env.service.venue_lock("hall-a")
    assert env.service.venue_lock("hall-a") is not env.service.venue_lock("hall-b")


class _InterleavingRepository(ReservationRepository):
    """Simulates a writer that bypasses the admission lock after each snapshot."""

    def snapshot(self, venue_id):
        result = super().snapshot(venue_id)
        self.add(
            Reservation(
                venue_id=venue_id,
                start=_NOW + timedelta(days=3),
                end=_NOW + timedelta(days=3, hours=1),
            )
        )
        return result


def test_write_between_check_and_admit_raises_race():
    repo = _InterleavingRepository()
    bus = EventBus()
    admitted = []
    bus.subscribe(ReservationAdmitted, admitted.append)
    service = AdmissionService(repo, bus)

    with pytest.raises(ConcurrentAdmissionRace) as exc_info:
        service.admit("hall-a", _request(1, 2))

    assert exc_info.value.venue_id == "hall-a"
    assert exc_info.value.expected_version == 0
    assert exc_info.value.actual_version == 1
    assert admitted == []
