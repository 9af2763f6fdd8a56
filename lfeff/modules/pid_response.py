"""
PID response interface

The accumulator only needs signed n-sigma deviations from the expected
TPC and TOF signals for a species hypothesis. How they are computed
belongs to the detector response model, not to this package.
"""

from __future__ import annotations

from typing import Protocol

import awkward as ak
import numpy as np

from .exceptions import BranchMissingError
from .species import Species


class PIDResponse(Protocol):
    """Signed n-sigma deviations for a set of tracks under one species hypothesis."""

    def n_sigma_tpc(self, tracks: ak.Array, species: Species) -> np.ndarray:
        ...

    def n_sigma_tof(self, tracks: ak.Array, species: Species) -> np.ndarray:
        ...


class TabulatedPIDResponse:
    """
    PID response read from precomputed per-track columns

    Tracks carry one field per detector and species, named after
    field_template, e.g. nsigma_tpc_p and nsigma_tof_p.
    """

    def __init__(self, field_template: str = "nsigma_{detector}_{species}") -> None:
        self.field_template = field_template

    def field_name(self, detector: str, species: Species) -> str:
        return self.field_template.format(detector=detector, species=species.short_name)

    def _lookup(self, tracks: ak.Array, detector: str, species: Species) -> np.ndarray:
        field = self.field_name(detector, species)
        if field not in ak.fields(tracks):
            raise BranchMissingError(field)
        return ak.to_numpy(tracks[field]).astype(np.float64)

    def n_sigma_tpc(self, tracks: ak.Array, species: Species) -> np.ndarray:
        return self._lookup(tracks, "tpc", species)

    def n_sigma_tof(self, tracks: ak.Array, species: Species) -> np.ndarray:
        return self._lookup(tracks, "tof", species)
