"""Link Bounded Context - Error Hierarchy.

Custom exceptions for link geometry and clearance analysis. Terrain data
unavailability is deliberately absent: providers absorb it with a flat
fallback profile.
"""

from __future__ import annotations


class LinkError(Exception):
    """Base error for link analysis."""


class InvalidFrequencyError(LinkError):
    """Operating frequency is not strictly positive."""

    def __init__(self, frequency_hz: float) -> None:
        self.frequency_hz = frequency_hz
        super().__init__(f"frequency_hz must be > 0, got {frequency_hz}")


class DegenerateLinkError(LinkError):
    """Endpoints coincide, so the link has no length and no bearing."""


class InsufficientSamplesError(LinkError):
    """Fewer than 2 samples requested or supplied."""

    def __init__(self, sample_count: int) -> None:
        self.sample_count = sample_count
        super().__init__(f"At least 2 samples are required, got {sample_count}")


class ProfileMismatchError(LinkError):
    """Profile does not line up with the request or with the Fresnel points."""


class MalformedCorridorPointError(LinkError):
    """A corridor sample lacks a usable left or right point.

    Built by the envelope builder to describe a dropped sample; it is logged,
    not raised, so one bad sample never blocks the rest of the polygon.
    """

    def __init__(self, index: int, distance_m: float) -> None:
        self.index = index
        self.distance_m = distance_m
        super().__init__(
            f"Corridor point {index} at {distance_m:.1f} m has no valid left/right point"
        )
