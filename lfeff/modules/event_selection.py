"""
Event-quality gate

Minimal primary-vertex based event selection applied before any
histogram is filled.
"""

from __future__ import annotations

from typing import Protocol

from .event import Event


class EventGate(Protocol):
    def accept(self, event: Event) -> bool:
        ...


class EventSelector:
    """
    Accept events with a reconstructed primary vertex inside the fiducial z range

    Attributes:
        max_abs_vertex_z: Maximum |z| of the primary vertex (cm)
        min_contributors: Minimum number of tracks contributing to the vertex
    """

    def __init__(self, max_abs_vertex_z: float = 10.0, min_contributors: int = 1) -> None:
        self.max_abs_vertex_z = max_abs_vertex_z
        self.min_contributors = min_contributors

    def accept(self, event: Event) -> bool:
        return (
            event.n_contributors >= self.min_contributors
            and abs(event.vertex_z) <= self.max_abs_vertex_z
        )


class AcceptAllEvents:
    """Gate that accepts every event."""

    def accept(self, event: Event) -> bool:
        return True
