"""
Unit tests for TOMLConfig module.

Tests configuration loading, validation and the typed accessors.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import numpy as np
import pytest
import tomli_w

from lfeff.modules.config import TOMLConfig
from lfeff.modules.event import DEFAULT_BRANCHES, StatusBits
from lfeff.modules.exceptions import ConfigurationError


def write_config(path: Path, data: Dict[str, Any]) -> Path:
    with open(path, "wb") as f:
        tomli_w.dump(data, f)
    return path


@pytest.mark.config
class TestPackagedConfig:
    """Test the configuration shipped with the package"""

    def test_loads(self, default_config_path: Path) -> None:
        config = TOMLConfig(default_config_path)
        assert config.config_path == default_config_path

    def test_default_path_used(self) -> None:
        assert TOMLConfig().raw["input"]["tree"] == "LFEffTree"

    def test_binning(self) -> None:
        binning = TOMLConfig().binning

        assert (binning.y.bins, binning.y.start, binning.y.stop) == (9, -0.9, 0.9)
        assert binning.phi.bins == 16
        assert binning.phi.stop == pytest.approx(2 * np.pi)
        assert (binning.pt.bins, binning.pt.stop) == (60, 6.0)

    def test_nine_species(self) -> None:
        species = TOMLConfig().species

        assert len(species) == 9
        assert species[7].short_name == "he3"
        assert species[7].charge == 2

    def test_status_bits(self) -> None:
        assert TOMLConfig().status_bits == StatusBits(tof_out=13, tof_time=31, quality_filter=8)

    def test_branches(self) -> None:
        assert TOMLConfig().branches == DEFAULT_BRANCHES


@pytest.mark.config
class TestCustomConfig:
    """Test loading user configurations"""

    def test_sample_config(self, config_file: Path) -> None:
        config = TOMLConfig(config_file)

        assert [s.short_name for s in config.species] == ["pi", "p"]
        assert config.track_selection["min_tof_length"] == 350.0
        assert config.input["step_size"] == "10 MB"

    def test_species_default_when_absent(self, tmp_test_dir: Path,
                                         sample_config_dict: Dict[str, Any]) -> None:
        del sample_config_dict["species"]
        config = TOMLConfig(write_config(tmp_test_dir / "c.toml", sample_config_dict))
        assert len(config.species) == 9

    def test_branch_override_merges_defaults(self, tmp_test_dir: Path,
                                             sample_config_dict: Dict[str, Any]) -> None:
        sample_config_dict["input"]["branches"] = {"tracks": {"pt": "track_pt"}}
        branches = TOMLConfig(write_config(tmp_test_dir / "c.toml", sample_config_dict)).branches

        assert branches["tracks"]["pt"] == "track_pt"
        assert branches["tracks"]["eta"] == "trk_eta"
        assert branches["mc"] == DEFAULT_BRANCHES["mc"]

    def test_event_selector(self, tmp_test_dir: Path, sample_config_dict: Dict[str, Any]) -> None:
        sample_config_dict["event_selection"] = {"max_abs_vertex_z": 7.0, "min_contributors": 2}
        selector = TOMLConfig(write_config(tmp_test_dir / "c.toml", sample_config_dict)).make_event_selector()

        assert selector.max_abs_vertex_z == 7.0
        assert selector.min_contributors == 2


@pytest.mark.config
class TestConfigErrors:
    """Test configuration validation failures"""

    def test_missing_file(self, tmp_test_dir: Path) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            TOMLConfig(tmp_test_dir / "nonexistent.toml")

        assert "not found" in str(exc_info.value)

    def test_invalid_toml(self, tmp_test_dir: Path) -> None:
        path = tmp_test_dir / "broken.toml"
        path.write_text("[binning\ny = 3")

        with pytest.raises(ConfigurationError):
            TOMLConfig(path)

    def test_missing_section(self, tmp_test_dir: Path, sample_config_dict: Dict[str, Any]) -> None:
        del sample_config_dict["track_selection"]

        with pytest.raises(ConfigurationError) as exc_info:
            TOMLConfig(write_config(tmp_test_dir / "c.toml", sample_config_dict))

        assert "track_selection" in str(exc_info.value)

    def test_missing_axis(self, tmp_test_dir: Path, sample_config_dict: Dict[str, Any]) -> None:
        del sample_config_dict["binning"]["phi"]

        with pytest.raises(ConfigurationError):
            TOMLConfig(write_config(tmp_test_dir / "c.toml", sample_config_dict))

    @pytest.mark.parametrize("axis_spec", [
        {"bins": 0, "min": 0.0, "max": 6.0},
        {"bins": 10, "min": 6.0, "max": 0.0},
        {"bins": 10, "min": 0.0},
    ])
    def test_bad_binning(self, tmp_test_dir: Path, sample_config_dict: Dict[str, Any],
                         axis_spec: Dict[str, Any]) -> None:
        sample_config_dict["binning"]["pt"] = axis_spec

        with pytest.raises(ConfigurationError):
            TOMLConfig(write_config(tmp_test_dir / "c.toml", sample_config_dict))

    def test_bad_species_entry(self, tmp_test_dir: Path, sample_config_dict: Dict[str, Any]) -> None:
        sample_config_dict["species"].append({"name": "kaon", "short_name": "K"})
        config = TOMLConfig(write_config(tmp_test_dir / "c.toml", sample_config_dict))

        with pytest.raises(ConfigurationError):
            config.species
