"""
Track cut catalog

Five cumulative track-quality/PID selections used for the reconstructed
histograms. Cuts 3 and 4 refine cut 1 independently of cut 2 and of each
other, so a track may pass cut 3 without passing cut 2.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import numpy as np

TOF_MIN_INTEGRATED_LENGTH = 350.0
MAX_N_SIGMA = 3.0


@dataclass(frozen=True)
class TrackFlags:
    """Per-track boolean capabilities evaluated once for a species hypothesis.

    Attributes:
        quality: Track is in the quality filter (filter bit 8)
        tpc_pid: |n-sigma TPC| below threshold
        has_tof: Track has a TOF prolongation (see has_tof)
        tof_pid: |n-sigma TOF| below threshold
    """

    quality: np.ndarray
    tpc_pid: np.ndarray
    has_tof: np.ndarray
    tof_pid: np.ndarray


@dataclass(frozen=True)
class CutDefinition:
    """A named track selection."""

    name: str
    predicate: Callable[[TrackFlags], np.ndarray]

    def evaluate(self, flags: TrackFlags) -> np.ndarray:
        passed = np.asarray(self.predicate(flags), dtype=bool)
        # scalar predicates (e.g. always true) broadcast to every track
        return np.broadcast_to(passed, np.shape(flags.quality))


DEFAULT_CUTS: tuple[CutDefinition, ...] = (
    CutDefinition("All tracks", lambda f: np.ones(np.shape(f.quality), dtype=bool)),
    CutDefinition("FB8", lambda f: f.quality),
    CutDefinition("FB8 + PID TPC", lambda f: f.quality & f.tpc_pid),
    CutDefinition("FB8 + TOF matching", lambda f: f.quality & f.has_tof),
    CutDefinition("FB8 + PID TOF", lambda f: f.quality & f.tof_pid),
)


def has_tof(tof_out, tof_time, integrated_length, min_length: float = TOF_MIN_INTEGRATED_LENGTH):
    """
    Check whether tracks have a prolongation in TOF

    A track has TOF when it was propagated out of the TPC to the TOF, has a
    valid time measurement and its integrated length is strictly above
    min_length.

    Args:
        tof_out: TOF-out status flag(s)
        tof_time: Valid-timing status flag(s)
        integrated_length: Integrated track length(s) in cm
        min_length: Exclusive lower bound on the integrated length

    Returns:
        Boolean (array) with the same shape as the inputs
    """
    return (
        np.asarray(tof_out, dtype=bool)
        & np.asarray(tof_time, dtype=bool)
        & (np.asarray(integrated_length, dtype=np.float64) > min_length)
    )


def n_sigma_compatible(n_sigma, max_n_sigma: float = MAX_N_SIGMA) -> np.ndarray:
    """|n-sigma| strictly below max_n_sigma; NaN is never compatible."""
    return np.abs(np.asarray(n_sigma, dtype=np.float64)) < max_n_sigma
