"""
Output histogram container

Owns the generated and reconstructed (y, phi, pT) histograms keyed by
species, charge and cut, and exposes them read-only to whoever publishes
or writes the output.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Iterator

import hist
import numpy as np
import uproot

from .exceptions import AccumulatorStateError, DataLoadError

POS = "pos"
NEG = "neg"
CHARGES: tuple[str, str] = (POS, NEG)

GENERATED = "Gen"
RECONSTRUCTED = "Rec"


@dataclass(frozen=True)
class Binning:
    """Regular binning of one histogram axis."""

    bins: int
    start: float
    stop: float


@dataclass(frozen=True)
class HistogramBinning:
    """Binning of the three histogram axes (rapidity, azimuth, pT)."""

    y: Binning = Binning(9, -0.9, 0.9)
    phi: Binning = Binning(16, 0.0, 2.0 * np.pi)
    pt: Binning = Binning(60, 0.0, 6.0)

    def make_axes(self) -> tuple:
        return (
            hist.axis.Regular(self.y.bins, self.y.start, self.y.stop, name="y", label="y"),
            hist.axis.Regular(self.phi.bins, self.phi.start, self.phi.stop, name="phi", label=r"$\varphi$"),
            hist.axis.Regular(self.pt.bins, self.pt.start, self.pt.stop, name="pt", label=r"$p_{T}$ (GeV/$c$)"),
        )


@dataclass(frozen=True)
class HistogramKey:
    """Key of one histogram: kind (Gen/Rec), species short name, charge slot, cut index."""

    kind: str
    species: str
    charge: str
    cut: int | None = None

    @classmethod
    def generated(cls, species: str, charge: str) -> HistogramKey:
        return cls(GENERATED, species, charge)

    @classmethod
    def reconstructed(cls, species: str, charge: str, cut: int) -> HistogramKey:
        return cls(RECONSTRUCTED, species, charge, cut)

    @property
    def name(self) -> str:
        """ROOT object name, e.g. Gen_p_pos or Rec_p_pos_3"""
        if self.cut is None:
            return f"{self.kind}_{self.species}_{self.charge}"
        return f"{self.kind}_{self.species}_{self.charge}_{self.cut}"


def charge_slot(charge) -> np.ndarray:
    """Charge slot per particle: strictly positive -> pos, anything else (neutral included) -> neg"""
    return np.where(np.asarray(charge) > 0, POS, NEG)


class HistogramCollection(Mapping):
    """
    Owning mapping from HistogramKey to hist.Hist

    Histograms are only added, never replaced or removed. Consumers get a
    read-only view through view().
    """

    def __init__(self, name: str = "LFEfficiencies") -> None:
        self.name = name
        self._histograms: dict[HistogramKey, hist.Hist] = {}
        self.logger = logging.getLogger("LFEfficiencies.HistogramCollection")

    def add(self, key: HistogramKey, histogram: hist.Hist, title: str = "") -> None:
        """
        Register a histogram

        The title is stored on the histogram, so it is written as the
        ROOT object title.

        Raises:
            AccumulatorStateError: If the key is already registered
        """
        if key in self._histograms:
            raise AccumulatorStateError(f"Histogram {key.name} already exists in {self.name}")
        histogram.title = title
        self._histograms[key] = histogram

    def __getitem__(self, key: HistogramKey) -> hist.Hist:
        return self._histograms[key]

    def __iter__(self) -> Iterator[HistogramKey]:
        return iter(self._histograms)

    def __len__(self) -> int:
        return len(self._histograms)

    def view(self) -> Mapping[HistogramKey, hist.Hist]:
        return MappingProxyType(self._histograms)

    def title(self, key: HistogramKey) -> str:
        return getattr(self._histograms[key], "title", "")

    def total_entries(self, kind: str | None = None) -> float:
        """Sum of in-range and flow contents, optionally for one kind only."""
        return float(sum(
            h.sum(flow=True) for key, h in self._histograms.items()
            if kind is None or key.kind == kind
        ))

    def write(self, output_path: str | Path, directory: str | None = None) -> Path:
        """
        Write all histograms to a ROOT file

        Args:
            output_path: Destination .root file (overwritten)
            directory: TDirectory to write into (defaults to the collection name)

        Returns:
            Path of the written file

        Raises:
            DataLoadError: If the file cannot be created
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        directory = directory or self.name

        try:
            with uproot.recreate(output_path) as f:
                for key, h in self._histograms.items():
                    f[f"{directory}/{key.name}"] = h
        except OSError as e:
            raise DataLoadError(f"Cannot write output file {output_path}: {e}")

        self.logger.info(f"Wrote {len(self)} histograms to {output_path}:{directory}")
        return output_path
