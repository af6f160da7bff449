"""Tests for the conflict-detection service."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from venue_availability.domain.models import Reservation, ReservationStatus, TimeWindow
from venue_availability.services.conflicts import check, find_conflicts
from venue_availability.services.reservation_index import build_index

_KL = ZoneInfo("Asia/Kuala_Lumpur")


def _make_index(*reservations: Reservation):
    return build_index("hall-a", reservations)


def _make_reservation(start: datetime, end: datetime, rid: str = "existing", **kw) -> Reservation:
    return Reservation(id=rid, venue_id="hall-a", start=start, end=end, **kw)


def _local(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 3, 2, hour, minute, tzinfo=_KL)


def test_no_overlap():
    """Windows that don't overlap should not be returned as conflicts."""
    index = _make_index(
        _make_reservation(
            datetime(2025, 1, 1, 8, 0, tzinfo=timezone.utc),
            datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc),
        ),
    )
    conflicts = find_conflicts(
        index,
        TimeWindow(
            datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc),
            datetime(2025, 1, 1, 11, 0, tzinfo=timezone.utc),
        ),
    )
    assert conflicts == []


def test_partial_overlap():
    """A window that partially overlaps should be returned as a conflict."""
    index = _make_index(
        _make_reservation(
            datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc),
            datetime(2025, 1, 1, 10, 30, tzinfo=timezone.utc),
        ),
    )
    conflicts = find_conflicts(
        index,
        TimeWindow(
            datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc),
            datetime(2025, 1, 1, 11, 0, tzinfo=timezone.utc),
        ),
    )
    assert len(conflicts) == 1
    assert conflicts[0].start == datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)


def test_exact_boundary_no_conflict():
    """When existing.end == candidate.start, there is no conflict (boundary touch)."""
    index = _make_index(
        _make_reservation(
            datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc),
            datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc),
        ),
    )
    conflicts = find_conflicts(
        index,
        TimeWindow(
            datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc),
            datetime(2025, 1, 1, 11, 0, tzinfo=timezone.utc),
        ),
    )
    assert conflicts == []


def test_candidate_inside_reservation_is_rejected():
    """12:00-12:30 inside an 11:00-13:00 booking is rejected with that booking's id."""
    index = _make_index(_make_reservation(_local(11), _local(13), rid="lunch"))
    result = check(index, TimeWindow(_local(12), _local(12, 30)))
    assert result.admitted is False
    assert result.conflicts == ["lunch"]


def test_candidate_starting_at_existing_end_is_admitted():
    index = _make_index(_make_reservation(_local(11), _local(13), rid="lunch"))
    result = check(index, TimeWindow(_local(13), _local(14)))
    assert result.admitted is True
    assert result.conflicts == []


def test_candidate_ending_at_existing_start_is_admitted():
    index = _make_index(_make_reservation(_local(11), _local(13), rid="lunch"))
    assert check(index, TimeWindow(_local(10), _local(11))).admitted is True


def test_adjacency_counts_when_configured():
    index = _make_index(_make_reservation(_local(11), _local(13), rid="lunch"))
    result = check(index, TimeWindow(_local(13), _local(14)), adjacency_is_conflict=True)
    assert result.admitted is False
    assert result.conflicts == ["lunch"]


def test_every_overlapping_reservation_is_listed_in_index_order():
    index = _make_index(
        _make_reservation(_local(15), _local(16), rid="late"),
        _make_reservation(_local(9), _local(10), rid="early"),
        _make_reservation(_local(12), _local(13), rid="noon"),
        _make_reservation(_local(17), _local(18), rid="outside"),
    )
    result = check(index, TimeWindow(_local(9, 30), _local(15, 30)))
    assert result.conflicts == ["early", "noon", "late"]


def test_cancelled_reservations_do_not_block():
    index = _make_index(
        _make_reservation(_local(11), _local(13), status=ReservationStatus.CANCELLED),
        _make_reservation(_local(11), _local(13), rid="rejected", status=ReservationStatus.REJECTED),
    )
    assert check(index, TimeWindow(_local(12), _local(12, 30))).admitted is True


def test_check_is_pure():
    index = _make_index(_make_reservation(_local(11), _local(13), rid="lunch"))
    candidate = TimeWindow(_local(12), _local(14))
    first = check(index, candidate)
    second = check(index, candidate)
    assert first == second
    assert [w.reservation_id for w in index.windows] == ["lunch"]
