"""
Efficiency accumulator

Fills generated and reconstructed (y, phi, pT) histograms per species,
charge and track cut, one event at a time. Dividing the reconstructed by
the generated histograms afterwards gives the tracking x PID efficiency
(see efficiency.py).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence

import awkward as ak
import hist
import numpy as np

from .cuts import (
    DEFAULT_CUTS,
    MAX_N_SIGMA,
    TOF_MIN_INTEGRATED_LENGTH,
    CutDefinition,
    TrackFlags,
    has_tof,
    n_sigma_compatible,
)
from .event import Event
from .event_selection import AcceptAllEvents, EventGate
from .exceptions import AccumulatorStateError, MissingMCParticlesError, MissingPIDResponseError
from .histograms import CHARGES, HistogramBinning, HistogramCollection, HistogramKey, charge_slot
from .kinematics import FourMomentumCalculator
from .pid_response import PIDResponse
from .species import SpeciesCatalog

Publisher = Callable[[Mapping[HistogramKey, hist.Hist]], None]


class EfficiencyAccumulator:
    """
    Per-event filler of the efficiency histograms

    The species catalog, cut catalog and event gate are injected; the
    accumulator owns the output collection and hands a read-only view of
    it to the publisher after every event.

    Lifecycle:
        create_outputs() once, process_event() per event, terminate() at the end.
    """

    def __init__(
        self,
        species: SpeciesCatalog | None = None,
        cuts: Sequence[CutDefinition] = DEFAULT_CUTS,
        event_gate: EventGate | None = None,
        binning: HistogramBinning = HistogramBinning(),
        max_n_sigma_tpc: float = MAX_N_SIGMA,
        max_n_sigma_tof: float = MAX_N_SIGMA,
        min_tof_length: float = TOF_MIN_INTEGRATED_LENGTH,
        publisher: Publisher | None = None,
        name: str = "LFEfficiencies",
    ) -> None:
        self.species = species if species is not None else SpeciesCatalog()
        self.cuts = tuple(cuts)
        self.event_gate = event_gate if event_gate is not None else AcceptAllEvents()
        self.binning = binning
        self.max_n_sigma_tpc = max_n_sigma_tpc
        self.max_n_sigma_tof = max_n_sigma_tof
        self.min_tof_length = min_tof_length
        self.publisher = publisher
        self.name = name

        self._collection: HistogramCollection | None = None
        self.n_events_seen = 0
        self.n_events_accepted = 0
        self.n_publications = 0
        self.logger = logging.getLogger("LFEfficiencies.EfficiencyAccumulator")

    @property
    def output(self) -> Mapping[HistogramKey, hist.Hist]:
        """Read-only view of the output histograms"""
        return self._require_outputs().view()

    @property
    def collection(self) -> HistogramCollection:
        return self._require_outputs()

    def _require_outputs(self) -> HistogramCollection:
        if self._collection is None:
            raise AccumulatorStateError("Output histograms not created; call create_outputs() first")
        return self._collection

    def create_outputs(self) -> HistogramCollection:
        """
        Create all generated and reconstructed histograms

        Returns:
            The owning HistogramCollection

        Raises:
            AccumulatorStateError: If the outputs were already created
        """
        if self._collection is not None:
            raise AccumulatorStateError("Output histograms already created for this run")

        collection = HistogramCollection(self.name)
        for s in self.species:
            for charge in CHARGES:
                collection.add(
                    HistogramKey.generated(s.short_name, charge),
                    hist.Hist(*self.binning.make_axes(), storage=hist.storage.Double()),
                    title=f"Generated {s.name} {charge}",
                )
                for cut_index, cut in enumerate(self.cuts):
                    collection.add(
                        HistogramKey.reconstructed(s.short_name, charge, cut_index),
                        hist.Hist(*self.binning.make_axes(), storage=hist.storage.Double()),
                        title=cut.name,
                    )

        self._collection = collection
        self.logger.info(
            f"Created {len(collection)} histograms for {len(self.species)} species "
            f"and {len(self.cuts)} cuts"
        )
        self.publish()
        return collection

    def publish(self) -> None:
        """Hand the read-only output view to the publisher"""
        view = self.output
        self.n_publications += 1
        if self.publisher is not None:
            self.publisher(view)

    def process_event(self, event: Event) -> None:
        """
        Fill the histograms with one event

        Args:
            event: Event to process

        Raises:
            AccumulatorStateError: If create_outputs() was not called
            MissingPIDResponseError: If the event carries no PID response
            MissingMCParticlesError: If the event carries no truth particles
        """
        self._require_outputs()
        self.n_events_seen += 1

        if not self.event_gate.accept(event):
            self.publish()
            return

        pid = event.pid_response
        if pid is None:
            raise MissingPIDResponseError()

        particles = event.mc_particles
        if particles is None:
            raise MissingMCParticlesError()

        self.n_events_accepted += 1
        self._fill_generated(particles)
        self._fill_reconstructed(event.tracks, particles, pid)
        self.publish()

    def _fill_generated(self, particles: ak.Array) -> None:
        if len(particles) == 0:
            return

        primary = ak.to_numpy(particles["is_physical_primary"]).astype(bool)
        species_index = self.species.lookup(ak.to_numpy(particles["pdg"]))
        slots = charge_slot(ak.to_numpy(particles["charge"]))
        y = ak.to_numpy(particles["y"])
        phi = ak.to_numpy(particles["phi"])
        pt = ak.to_numpy(particles["pt"])

        for i, s in enumerate(self.species):
            for charge in CHARGES:
                sel = primary & (species_index == i) & (slots == charge)
                if np.any(sel):
                    self._collection[HistogramKey.generated(s.short_name, charge)].fill(
                        y=y[sel], phi=phi[sel], pt=pt[sel]
                    )

    def _fill_reconstructed(self, tracks: ak.Array, particles: ak.Array, pid: PIDResponse) -> None:
        if len(tracks) == 0:
            return

        ids = ak.to_numpy(tracks["id"])
        labels = np.abs(ak.to_numpy(tracks["label"]))
        valid = (ids > 0) & (labels < len(particles))
        if not np.any(valid):
            return

        tracks = tracks[valid]
        linked = particles[labels[valid]]

        species_index = self.species.lookup(ak.to_numpy(linked["pdg"]))
        species_index[~ak.to_numpy(linked["is_physical_primary"]).astype(bool)] = -1
        slots = charge_slot(ak.to_numpy(linked["charge"]))

        pt = ak.to_numpy(tracks["pt"])
        eta = ak.to_numpy(tracks["eta"])
        phi = ak.to_numpy(tracks["phi"])
        quality = ak.to_numpy(tracks["quality_filter"]).astype(bool)
        tof = has_tof(
            ak.to_numpy(tracks["tof_out"]),
            ak.to_numpy(tracks["tof_time"]),
            ak.to_numpy(tracks["integrated_length"]),
            self.min_tof_length,
        )

        for i, s in enumerate(self.species):
            in_species = species_index == i
            if not np.any(in_species):
                continue

            species_tracks = tracks[in_species]
            y = FourMomentumCalculator.rapidity_with_hypothesis(
                pt[in_species], eta[in_species], phi[in_species], s.charge, s.mass
            )
            flags = TrackFlags(
                quality=quality[in_species],
                tpc_pid=n_sigma_compatible(pid.n_sigma_tpc(species_tracks, s), self.max_n_sigma_tpc),
                has_tof=tof[in_species],
                tof_pid=n_sigma_compatible(pid.n_sigma_tof(species_tracks, s), self.max_n_sigma_tof),
            )
            species_slots = slots[in_species]
            species_phi = phi[in_species]
            species_pt = pt[in_species]

            for cut_index, cut in enumerate(self.cuts):
                passed = cut.evaluate(flags)
                for charge in CHARGES:
                    sel = passed & (species_slots == charge)
                    if np.any(sel):
                        self._collection[HistogramKey.reconstructed(s.short_name, charge, cut_index)].fill(
                            y=y[sel], phi=species_phi[sel], pt=species_pt[sel]
                        )

    def terminate(self) -> HistogramCollection:
        """Publish the final output; merging and writing are left to the caller"""
        collection = self._require_outputs()
        self.logger.info(
            f"Processed {self.n_events_seen} events: {self.n_events_accepted} accepted, "
            f"{self.n_events_seen - self.n_events_accepted} rejected by the event selection"
        )
        self.publish()
        return collection
