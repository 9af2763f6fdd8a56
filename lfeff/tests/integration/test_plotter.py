"""
Integration tests for the efficiency plots.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from lfeff.modules.accumulator import EfficiencyAccumulator
from lfeff.modules.efficiency import EfficiencyCalculator
from lfeff.modules.plotter import EfficiencyPlotter

from ..utils.event_builder import make_event, particle, track


@pytest.fixture
def calculator(accumulator: EfficiencyAccumulator) -> EfficiencyCalculator:
    accumulator.process_event(make_event(
        particles=[particle(pt=1.05, y=0.0), particle(pdg=211, pt=0.5, y=0.0)],
        tracks=[track(label=0, pt=1.05, eta=0.0)],
    ))
    return EfficiencyCalculator(accumulator.collection)


@pytest.mark.integration
class TestEfficiencyPlotter:
    def test_plot_species(self, calculator: EfficiencyCalculator, tmp_test_dir: Path) -> None:
        path = EfficiencyPlotter(tmp_test_dir / "plots").plot_species(calculator, "p", "pos")

        assert path.name == "efficiency_p_pos_vs_pt.pdf"
        assert path.exists()

    def test_plot_all_skips_empty(self, calculator: EfficiencyCalculator, tmp_test_dir: Path) -> None:
        paths = EfficiencyPlotter(tmp_test_dir / "plots").plot_all(calculator, axis="y")

        assert sorted(p.name for p in paths) == [
            "efficiency_p_pos_vs_y.pdf",
            "efficiency_pi_pos_vs_y.pdf",
        ]
