"""Service for detecting booking conflicts against a venue's reservations."""

from __future__ import annotations

from venue_availability.domain.models import BookedWindow, ConflictResult, TimeWindow
from venue_availability.services.reservation_index import ReservationIndex


def find_conflicts(
    index: ReservationIndex,
    candidate: TimeWindow,
    *,
    adjacency_is_conflict: bool = False,
) -> list[BookedWindow]:
    """Return indexed windows that overlap *candidate*, in index order.

    Overlap rule: conflict if candidate.start < existing.end AND existing.start < candidate.end.
    Exact boundary touches (end == start) are NOT conflicts unless
    *adjacency_is_conflict* is set.
    """
    return [
        window
        for window in index.windows
        if candidate.overlaps(window, inclusive=adjacency_is_conflict)
    ]


def check(
    index: ReservationIndex,
    candidate: TimeWindow,
    *,
    adjacency_is_conflict: bool = False,
) -> ConflictResult:
    """Decide whether *candidate* may be admitted.

    This only reads the index. Admitting the candidate durably must happen
    under the venue's admission lock (see ``services.admission``).
    """
    overlapping = find_conflicts(index, candidate, adjacency_is_conflict=adjacency_is_conflict)
    return ConflictResult(
        admitted=not overlapping,
        conflicts=[w.reservation_id for w in overlapping],
    )
