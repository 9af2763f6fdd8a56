"""
Efficiency Calculation Module

Turns the accumulated Gen/Rec histograms into efficiencies projected on
one axis, with binomial uncertainties.

    eff = N_rec(cut) / N_gen
    err = sqrt(eff * (1 - eff) / N_gen)
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import pandas as pd

from .exceptions import EfficiencyError
from .histograms import HistogramCollection, HistogramKey

AXES = ("y", "phi", "pt")


class EfficiencyCalculator:
    """Calculate efficiencies from a filled HistogramCollection"""

    def __init__(self, collection: HistogramCollection) -> None:
        self.collection = collection
        self.logger = logging.getLogger("LFEfficiencies.EfficiencyCalculator")

    def _get(self, key: HistogramKey):
        try:
            return self.collection[key]
        except KeyError:
            raise EfficiencyError(f"No histogram {key.name} in {self.collection.name}")

    def efficiency(self, species: str, charge: str, cut: int, axis: str = "pt") -> pd.DataFrame:
        """
        Efficiency of one cut for one species and charge, projected on an axis

        Args:
            species: Species short name (e.g. "p")
            charge: "pos" or "neg"
            cut: Cut index
            axis: Projection axis, one of "y", "phi", "pt"

        Returns:
            DataFrame with columns low, high, n_gen, n_rec, eff, err

        Raises:
            EfficiencyError: For unknown histograms/axes or unphysical efficiencies
        """
        if axis not in AXES:
            raise EfficiencyError(f"Unknown projection axis '{axis}', expected one of {AXES}")

        gen = self._get(HistogramKey.generated(species, charge)).project(axis)
        rec = self._get(HistogramKey.reconstructed(species, charge, cut)).project(axis)

        n_gen = gen.values()
        n_rec = rec.values()

        # Calculate efficiency, empty generated bins give 0
        eff = np.divide(n_rec, n_gen, out=np.zeros_like(n_rec, dtype=np.float64), where=n_gen > 0)

        if np.any(eff < 0):
            raise EfficiencyError(
                f"Negative efficiency for {species} {charge} cut {cut}: min={eff.min():.3f}"
            )
        if np.any(eff > 1):
            # reconstructed tracks are binned in corrected rapidity and measured pT
            self.logger.warning(
                f"Efficiency above 1 for {species} {charge} cut {cut} on axis {axis}: max={eff.max():.3f}"
            )

        # Statistical error from binomial distribution
        bounded = np.clip(eff, 0.0, 1.0)
        err = np.sqrt(
            np.divide(bounded * (1.0 - bounded), n_gen, out=np.zeros_like(eff), where=n_gen > 0)
        )

        edges = gen.axes[0].edges
        return pd.DataFrame({
            "low": edges[:-1],
            "high": edges[1:],
            "n_gen": n_gen,
            "n_rec": n_rec,
            "eff": eff,
            "err": err,
        })

    def efficiency_table(self, axis: str = "pt") -> pd.DataFrame:
        """
        Efficiencies for every (species, charge, cut) in the collection

        Returns:
            Long-format DataFrame with species, charge, cut, cut_name and the
            columns of efficiency()
        """
        frames = []
        for key in self.collection:
            if key.cut is None:
                continue
            df = self.efficiency(key.species, key.charge, key.cut, axis=axis)
            df.insert(0, "cut_name", self.collection.title(key))
            df.insert(0, "cut", key.cut)
            df.insert(0, "charge", key.charge)
            df.insert(0, "species", key.species)
            frames.append(df)

        if not frames:
            raise EfficiencyError("No reconstructed histograms in collection")
        return pd.concat(frames, ignore_index=True)

    def integrated(self) -> pd.DataFrame:
        """Integrated efficiency per (species, charge, cut) over the full acceptance"""
        rows = []
        for key in self.collection:
            if key.cut is None:
                continue
            n_gen = float(self._get(HistogramKey.generated(key.species, key.charge)).sum())
            n_rec = float(self.collection[key].sum())
            eff = n_rec / n_gen if n_gen > 0 else 0.0
            bounded = min(max(eff, 0.0), 1.0)
            err = float(np.sqrt(bounded * (1 - bounded) / n_gen)) if n_gen > 0 else 0.0
            rows.append({
                "species": key.species,
                "charge": key.charge,
                "cut": key.cut,
                "cut_name": self.collection.title(key),
                "n_gen": n_gen,
                "n_rec": n_rec,
                "eff": eff,
                "err": err,
            })
        return pd.DataFrame(rows)

    def save_tables(self, output_dir, axis: str = "pt") -> list:
        """Write the differential and integrated tables as CSV"""
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        paths = [output_dir / f"efficiency_vs_{axis}.csv", output_dir / "efficiency_integrated.csv"]
        self.efficiency_table(axis).to_csv(paths[0], index=False)
        self.integrated().to_csv(paths[1], index=False)
        for path in paths:
            self.logger.info(f"Saved efficiency table: {path}")
        return paths
