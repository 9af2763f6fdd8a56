"""
Global pytest fixtures and configuration for the test suite.

Provides reusable fixtures for testing the accumulator and its
collaborators without duplicating setup code across test modules.
"""

from __future__ import annotations

import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator

import pytest
import tomli_w

from lfeff.modules.accumulator import EfficiencyAccumulator
from lfeff.modules.config import DEFAULT_CONFIG_PATH
from lfeff.modules.species import Species, SpeciesCatalog


@pytest.fixture
def tmp_test_dir() -> Generator[Path, None, None]:
    """
    Create a temporary directory for test operations.

    Automatically cleaned up after test completion.
    """
    tmp_dir = Path(tempfile.mkdtemp(prefix="lfeff_test_"))
    try:
        yield tmp_dir
    finally:
        if tmp_dir.exists():
            shutil.rmtree(tmp_dir)


@pytest.fixture
def species() -> SpeciesCatalog:
    """Default nine-species catalog"""
    return SpeciesCatalog()


@pytest.fixture
def accumulator(species: SpeciesCatalog) -> EfficiencyAccumulator:
    """Accumulator with outputs created and every event accepted"""
    acc = EfficiencyAccumulator(species=species)
    acc.create_outputs()
    return acc


@pytest.fixture
def negative_proton_catalog() -> SpeciesCatalog:
    """Single-species catalog with a negative charge sign, for the mass-hypothesis checks"""
    return SpeciesCatalog([Species("antiproton-like", "pbar", 2212, 0.938, -1)])


@pytest.fixture
def sample_config_dict() -> Dict[str, Any]:
    """
    Provide a minimal valid configuration dictionary.

    Returns:
        Dictionary with binning, selections, input and output sections
    """
    return {
        "binning": {
            "y": {"bins": 9, "min": -0.9, "max": 0.9},
            "phi": {"bins": 16, "min": 0.0, "max": 6.283185307179586},
            "pt": {"bins": 60, "min": 0.0, "max": 6.0},
        },
        "species": [
            {"name": "pion", "short_name": "pi", "pdg": 211, "mass": 0.13957, "charge": 1},
            {"name": "proton", "short_name": "p", "pdg": 2212, "mass": 0.938272, "charge": 1},
        ],
        "track_selection": {
            "quality_filter_bit": 8,
            "tof_out_bit": 13,
            "time_bit": 31,
            "min_tof_length": 350.0,
            "max_n_sigma_tpc": 3.0,
            "max_n_sigma_tof": 3.0,
        },
        "event_selection": {"max_abs_vertex_z": 10.0, "min_contributors": 1},
        "input": {"tree": "LFEffTree", "step_size": "10 MB"},
        "output": {"file": "AnalysisResults.root", "directory": "LFEfficiencies"},
    }


@pytest.fixture
def config_file(tmp_test_dir: Path, sample_config_dict: Dict[str, Any]) -> Path:
    """
    Write the sample configuration to a temporary efficiency.toml.

    Returns:
        Path to the config file
    """
    config_path = tmp_test_dir / "efficiency.toml"
    with open(config_path, "wb") as f:
        tomli_w.dump(sample_config_dict, f)
    return config_path


@pytest.fixture
def default_config_path() -> Path:
    return DEFAULT_CONFIG_PATH


def pytest_configure(config: pytest.Config) -> None:
    """
    Configure pytest with custom markers and settings.

    Args:
        config: pytest configuration object
    """
    config.addinivalue_line("markers", "unit: Fast unit tests without file I/O")
    config.addinivalue_line("markers", "integration: Tests reading/writing ROOT files")
    config.addinivalue_line("markers", "config: Configuration loading tests")
