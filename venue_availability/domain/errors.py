"""Error taxonomy for the availability engine."""

from __future__ import annotations


class VenueEngineError(Exception):
    """Base class for all engine errors."""


class InvalidWindow(VenueEngineError):
    """A derived time window has non-positive duration."""


class InvalidVenueConfig(VenueEngineError):
    """Venue metadata (operating hours or timezone) cannot be used."""


class ConcurrentAdmissionRace(VenueEngineError):
    """The reservation snapshot changed between the conflict check and the write.

    Callers should retry the whole check-then-admit sequence.
    """

    def __init__(self, venue_id: str, expected_version: int, actual_version: int) -> None:
        super().__init__(
            f"reservations for venue {venue_id} changed during admission "
            f"(expected version {expected_version}, found {actual_version})"
        )
        self.venue_id = venue_id
        self.expected_version = expected_version
        self.actual_version = actual_version
