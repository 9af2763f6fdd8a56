"""
TOML configuration for the efficiency analysis

A single efficiency.toml holds binning, species, track and event
selection, input branch names and output locations. Accessors turn the
raw tables into the objects the accumulator and reader are built from.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import tomli

from .event import StatusBits, merge_branches
from .event_selection import EventSelector
from .exceptions import ConfigurationError
from .histograms import Binning, HistogramBinning
from .species import DEFAULT_SPECIES, SpeciesCatalog

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "efficiency.toml"

REQUIRED_SECTIONS = ("binning", "track_selection", "event_selection", "input", "output")


class TOMLConfig:
    """
    Load and validate efficiency.toml

    Sections:
    - binning: y / phi / pt axes (bins, min, max)
    - species: ordered [[species]] tables (optional, defaults to the particle table)
    - track_selection: filter and status bits, TOF length, n-sigma thresholds
    - event_selection: vertex cuts
    - input: tree name, step size and branch names
    - output: ROOT file, directory, tables and plots locations
    """

    def __init__(self, config_path: str | Path | None = None) -> None:
        self.config_path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
        self.logger = logging.getLogger("LFEfficiencies.TOMLConfig")
        self.raw = self._load_toml(self.config_path)
        self._validate()
        self.logger.info(f"Loaded configuration from {self.config_path}")

    @staticmethod
    def _load_toml(config_path: Path) -> dict[str, Any]:
        """
        Load TOML configuration file with proper error handling

        Raises:
            ConfigurationError: If file not found or parsing fails
        """
        try:
            with open(config_path, "rb") as f:
                return tomli.load(f)
        except FileNotFoundError:
            raise ConfigurationError(f"Configuration file not found: {config_path}")
        except tomli.TOMLDecodeError as e:
            raise ConfigurationError(f"Error parsing TOML file {config_path}: {e}")

    def _validate(self) -> None:
        missing = [s for s in REQUIRED_SECTIONS if s not in self.raw]
        if missing:
            raise ConfigurationError(
                f"Missing required section(s) {missing} in {self.config_path}"
            )

        for axis in ("y", "phi", "pt"):
            spec = self.raw["binning"].get(axis)
            if spec is None:
                raise ConfigurationError(f"[binning] has no '{axis}' axis")
            try:
                invalid = int(spec["bins"]) <= 0 or float(spec["max"]) <= float(spec["min"])
            except KeyError as e:
                raise ConfigurationError(f"[binning] '{axis}' is missing key {e}")
            if invalid:
                raise ConfigurationError(f"Invalid binning for '{axis}': {spec}")

    @property
    def binning(self) -> HistogramBinning:
        b = self.raw["binning"]
        return HistogramBinning(
            **{
                axis: Binning(int(b[axis]["bins"]), float(b[axis]["min"]), float(b[axis]["max"]))
                for axis in ("y", "phi", "pt")
            }
        )

    @property
    def species(self) -> SpeciesCatalog:
        entries = self.raw.get("species")
        if not entries:
            return SpeciesCatalog(DEFAULT_SPECIES)
        return SpeciesCatalog.from_config(entries)

    @property
    def track_selection(self) -> dict[str, Any]:
        return self.raw["track_selection"]

    @property
    def status_bits(self) -> StatusBits:
        ts = self.track_selection
        return StatusBits(
            tof_out=int(ts.get("tof_out_bit", 13)),
            tof_time=int(ts.get("time_bit", 31)),
            quality_filter=int(ts.get("quality_filter_bit", 8)),
        )

    def make_event_selector(self) -> EventSelector:
        es = self.raw["event_selection"]
        return EventSelector(
            max_abs_vertex_z=float(es.get("max_abs_vertex_z", 10.0)),
            min_contributors=int(es.get("min_contributors", 1)),
        )

    @property
    def input(self) -> dict[str, Any]:
        return self.raw["input"]

    @property
    def branches(self) -> dict[str, dict[str, str]]:
        return merge_branches(self.input.get("branches"))

    @property
    def output(self) -> dict[str, Any]:
        return self.raw["output"]
