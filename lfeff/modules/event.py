"""
Event model and ROOT event source

An Event holds the truth particles and reconstructed tracks of one
collision as awkward record arrays. Detector status bitmasks are resolved
into named boolean fields when the event is built, so nothing downstream
depends on a particular status encoding.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator

import awkward as ak
import numpy as np
import uproot

from .exceptions import BranchMissingError, DataLoadError
from .pid_response import PIDResponse, TabulatedPIDResponse
from .species import SpeciesCatalog

# Truth particle fields and their dtypes
PARTICLE_FIELDS: dict[str, Any] = {
    "pdg": np.int64,
    "is_physical_primary": np.bool_,
    "charge": np.float64,
    "y": np.float64,
    "phi": np.float64,
    "pt": np.float64,
}

# Reconstructed track fields and their dtypes
TRACK_FIELDS: dict[str, Any] = {
    "id": np.int64,
    "label": np.int64,
    "pt": np.float64,
    "eta": np.float64,
    "phi": np.float64,
    "tof_out": np.bool_,
    "tof_time": np.bool_,
    "integrated_length": np.float64,
    "quality_filter": np.bool_,
}


@dataclass
class Event:
    """One collision: tracks, optional truth particles and the PID response to use."""

    tracks: ak.Array
    mc_particles: ak.Array | None = None
    pid_response: PIDResponse | None = None
    vertex_z: float = 0.0
    n_contributors: int = 1


def _zip_records(records: Iterable[dict[str, Any]], fields: dict[str, Any]) -> ak.Array:
    records = list(records)
    columns = {
        name: np.array([r[name] for r in records], dtype=dtype)
        for name, dtype in fields.items()
    }
    # anything else (e.g. tabulated n-sigma columns) is kept as float
    extra = sorted({k for r in records for k in r} - set(fields))
    for name in extra:
        columns[name] = np.array([r.get(name, np.nan) for r in records], dtype=np.float64)
    return ak.zip(columns)


def make_particles(records: Iterable[dict[str, Any]]) -> ak.Array:
    """Build a truth-particle record array from dicts with PARTICLE_FIELDS keys."""
    return _zip_records(records, PARTICLE_FIELDS)


def make_tracks(records: Iterable[dict[str, Any]]) -> ak.Array:
    """Build a track record array from dicts with TRACK_FIELDS keys (plus optional n-sigma fields)."""
    return _zip_records(records, TRACK_FIELDS)


@dataclass(frozen=True)
class StatusBits:
    """Bit positions used to resolve track status words and filter maps."""

    tof_out: int = 13
    tof_time: int = 31
    quality_filter: int = 8


def bit_is_set(words, bit: int):
    """Elementwise check of one bit in (possibly jagged) integer words of any signedness"""
    # signed words (e.g. Int_t) cannot hold 1 << 31
    return np.bitwise_and(ak.values_astype(words, np.uint64), 1 << bit) != 0


DEFAULT_BRANCHES: dict[str, dict[str, str]] = {
    "mc": {
        "pdg": "mc_pdg",
        "is_physical_primary": "mc_is_primary",
        "charge": "mc_charge",
        "y": "mc_y",
        "phi": "mc_phi",
        "pt": "mc_pt",
    },
    "tracks": {
        "id": "trk_id",
        "label": "trk_label",
        "pt": "trk_pt",
        "eta": "trk_eta",
        "phi": "trk_phi",
        "status": "trk_status",
        "integrated_length": "trk_length",
        "filter_map": "trk_filter_map",
    },
    "event": {
        "vertex_z": "vtx_z",
        "n_contributors": "vtx_ncontrib",
    },
    "pid": {
        "tpc": "trk_nsigma_tpc_{species}",
        "tof": "trk_nsigma_tof_{species}",
    },
}


def merge_branches(overrides: dict[str, dict[str, str]] | None = None) -> dict[str, dict[str, str]]:
    """DEFAULT_BRANCHES with per-group overrides; keys not overridden keep their default branch"""
    overrides = overrides or {}
    return {group: {**DEFAULT_BRANCHES[group], **overrides.get(group, {})} for group in DEFAULT_BRANCHES}


class EventReader:
    """
    Read events from flat ROOT trees with uproot

    Each tree entry is one event; truth particles and tracks are stored as
    jagged branches (see DEFAULT_BRANCHES).
    """

    def __init__(
        self,
        files: Iterable[str | Path],
        species: SpeciesCatalog,
        tree: str = "LFEffTree",
        branches: dict[str, dict[str, str]] | None = None,
        status_bits: StatusBits = StatusBits(),
        step_size: str | int = "100 MB",
    ) -> None:
        self.files = [Path(f) for f in files]
        self.species = species
        self.tree = tree
        self.branches = merge_branches(branches)
        self.status_bits = status_bits
        self.step_size = step_size
        self.pid_response = TabulatedPIDResponse()
        self.logger = logging.getLogger("LFEfficiencies.EventReader")

    def _pid_branches(self) -> dict[str, str]:
        """n-sigma branch name -> track field name expected by TabulatedPIDResponse"""
        mapping = {}
        for detector, template in self.branches["pid"].items():
            for s in self.species:
                mapping[template.format(species=s.short_name)] = self.pid_response.field_name(detector, s)
        return mapping

    def _open_tree(self, file_path: Path):
        if not file_path.exists():
            raise DataLoadError(f"Input file not found: {file_path}")
        try:
            f = uproot.open(file_path)
        except (OSError, ValueError) as e:
            raise DataLoadError(f"Cannot open ROOT file {file_path}: {e}")
        if self.tree not in f:
            f.close()
            raise DataLoadError(f"Tree '{self.tree}' not found in {file_path}")
        return f, f[self.tree]

    def _build_tracks(self, batch: ak.Array, pid_branches: dict[str, str]) -> ak.Array:
        b = self.branches["tracks"]
        status = batch[b["status"]]
        columns = {
            "id": batch[b["id"]],
            "label": batch[b["label"]],
            "pt": batch[b["pt"]],
            "eta": batch[b["eta"]],
            "phi": batch[b["phi"]],
            "tof_out": bit_is_set(status, self.status_bits.tof_out),
            "tof_time": bit_is_set(status, self.status_bits.tof_time),
            "integrated_length": batch[b["integrated_length"]],
            "quality_filter": bit_is_set(batch[b["filter_map"]], self.status_bits.quality_filter),
        }
        for branch, name in pid_branches.items():
            columns[name] = batch[branch]
        return ak.zip(columns)

    def _build_particles(self, batch: ak.Array) -> ak.Array:
        return ak.zip({name: batch[branch] for name, branch in self.branches["mc"].items()})

    def events(self, max_events: int | None = None) -> Iterator[Event]:
        """
        Iterate over all events of all input files

        Args:
            max_events: Stop after this many events (all if None)

        Yields:
            Event objects

        Raises:
            DataLoadError: If a file or tree cannot be opened
            BranchMissingError: If a required track branch is absent
        """
        n_read = 0
        for file_path in self.files:
            f, tree = self._open_tree(file_path)
            with f:
                keys = set(tree.keys())

                for branch in self.branches["tracks"].values():
                    if branch not in keys:
                        raise BranchMissingError(branch, str(file_path))

                has_mc = all(b in keys for b in self.branches["mc"].values())
                if not has_mc:
                    self.logger.warning(f"No MC particle branches in {file_path}")

                pid_branches = self._pid_branches()
                has_pid = all(b in keys for b in pid_branches)
                if not has_pid:
                    self.logger.warning(f"No n-sigma branches in {file_path}, events carry no PID response")
                    pid_branches = {}

                event_branches = {
                    name: branch for name, branch in self.branches["event"].items() if branch in keys
                }

                expressions = list(self.branches["tracks"].values()) + list(pid_branches)
                if has_mc:
                    expressions += list(self.branches["mc"].values())
                expressions += list(event_branches.values())

                self.logger.info(f"Reading {file_path}:{self.tree}")
                for batch in tree.iterate(expressions, step_size=self.step_size, library="ak"):
                    tracks = self._build_tracks(batch, pid_branches)
                    particles = self._build_particles(batch) if has_mc else None
                    vertex_z = (
                        ak.to_numpy(batch[event_branches["vertex_z"]])
                        if "vertex_z" in event_branches else np.zeros(len(batch))
                    )
                    n_contributors = (
                        ak.to_numpy(batch[event_branches["n_contributors"]])
                        if "n_contributors" in event_branches else np.ones(len(batch), dtype=np.int64)
                    )

                    for i in range(len(batch)):
                        if max_events is not None and n_read >= max_events:
                            return
                        yield Event(
                            tracks=tracks[i],
                            mc_particles=particles[i] if particles is not None else None,
                            pid_response=self.pid_response if has_pid else None,
                            vertex_z=float(vertex_z[i]),
                            n_contributors=int(n_contributors[i]),
                        )
                        n_read += 1

        self.logger.info(f"Read {n_read} events from {len(self.files)} file(s)")
