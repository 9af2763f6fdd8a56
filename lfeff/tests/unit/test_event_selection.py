"""
Unit tests for the event gates.
"""

from __future__ import annotations

import pytest

from lfeff.modules.event_selection import AcceptAllEvents, EventSelector

from ..utils.event_builder import make_event


@pytest.mark.unit
class TestEventSelector:
    """Test the vertex based selection"""

    @pytest.mark.parametrize("vertex_z, n_contributors, expected", [
        (0.0, 10, True),
        (10.0, 1, True),
        (-10.0, 5, True),
        (10.01, 10, False),
        (-25.0, 10, False),
        (0.0, 0, False),
    ])
    def test_accept(self, vertex_z: float, n_contributors: int, expected: bool) -> None:
        event = make_event(vertex_z=vertex_z, n_contributors=n_contributors)
        assert EventSelector().accept(event) is expected


@pytest.mark.unit
def test_accept_all() -> None:
    assert AcceptAllEvents().accept(make_event(vertex_z=100.0, n_contributors=0))
