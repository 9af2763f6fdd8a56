"""
Efficiency plots

One figure per species and charge, efficiency vs pT with one series per
reconstructed cut.

Example usage:
    plotter = EfficiencyPlotter(output_dir="output/plots")
    plotter.plot_species(calculator, "p", "pos")
    plotter.plot_all(calculator)
"""

from __future__ import annotations

import logging
import warnings
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import mplhep as hep  # noqa: E402

from .efficiency import EfficiencyCalculator  # noqa: E402
from .histograms import CHARGES  # noqa: E402

# Suppress all font-related warnings
warnings.filterwarnings("ignore", category=UserWarning, module="matplotlib")
logging.getLogger("matplotlib.font_manager").setLevel(logging.ERROR)

plt.style.use(hep.style.ALICE)

matplotlib.rcParams["font.family"] = "sans-serif"


class EfficiencyPlotter:
    """Class for creating efficiency plots"""

    def __init__(self, output_dir: str | Path) -> None:
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.logger = logging.getLogger("LFEfficiencies.EfficiencyPlotter")

    def plot_species(
        self,
        calculator: EfficiencyCalculator,
        species: str,
        charge: str,
        cuts: list[int] | None = None,
        axis: str = "pt",
    ) -> Path:
        """
        Plot efficiency of several cuts for one species and charge

        Args:
            calculator: EfficiencyCalculator over a filled collection
            species: Species short name
            charge: "pos" or "neg"
            cuts: Cut indices to draw (all cuts after the first by default)
            axis: Projection axis

        Returns:
            Path to the saved PDF
        """
        collection = calculator.collection
        available = sorted(
            key.cut for key in collection
            if key.cut is not None and key.species == species and key.charge == charge
        )
        if cuts is None:
            cuts = available[1:] or available

        fig, ax = plt.subplots(figsize=(10, 7))
        for cut in cuts:
            df = calculator.efficiency(species, charge, cut, axis=axis)
            centers = 0.5 * (df["low"] + df["high"])
            half_widths = 0.5 * (df["high"] - df["low"])
            label = next(
                (collection.title(key) for key in collection
                 if key.cut == cut and key.species == species and key.charge == charge),
                f"cut {cut}",
            )
            ax.errorbar(centers, df["eff"], xerr=half_widths, yerr=df["err"],
                        fmt="o", markersize=4, capsize=0, label=label)

        xlabel = {"pt": r"$p_{T}$ (GeV/$c$)", "y": r"$y$", "phi": r"$\varphi$ (rad)"}[axis]
        ax.set_xlabel(xlabel)
        ax.set_ylabel("Efficiency")
        ax.set_ylim(0.0, 1.1)
        ax.set_title(f"{species} ({charge})")
        ax.legend(loc="lower right", fontsize=12)

        plot_path = self.output_dir / f"efficiency_{species}_{charge}_vs_{axis}.pdf"
        plt.savefig(plot_path, bbox_inches="tight")
        plt.close(fig)

        self.logger.info(f"Saved plot: {plot_path}")
        return plot_path

    def plot_all(self, calculator: EfficiencyCalculator, axis: str = "pt") -> list[Path]:
        """Plot every species/charge that has generated entries"""
        paths = []
        species_names = sorted({key.species for key in calculator.collection})
        for species in species_names:
            for charge in CHARGES:
                gen = next(
                    h for key, h in calculator.collection.items()
                    if key.cut is None and key.species == species and key.charge == charge
                )
                if gen.sum() == 0:
                    continue
                paths.append(self.plot_species(calculator, species, charge, axis=axis))
        return paths
