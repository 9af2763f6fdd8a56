"""
Particle species catalog

Ordered list of the charged species the efficiencies are split by. The
order defines the species index used in histogram keys and PID queries.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator

import numpy as np

from .exceptions import ConfigurationError


@dataclass(frozen=True)
class Species:
    """A particle species with its nominal mass (GeV/c^2) and charge in units of e."""

    name: str
    short_name: str
    pdg: int
    mass: float
    charge: int


# Charged species of the particle table, in table order
DEFAULT_SPECIES: tuple[Species, ...] = (
    Species("electron", "e", 11, 0.000510999, -1),
    Species("muon", "mu", 13, 0.105658, -1),
    Species("pion", "pi", 211, 0.139570, 1),
    Species("kaon", "K", 321, 0.493677, 1),
    Species("proton", "p", 2212, 0.938272, 1),
    Species("deuteron", "d", 1000010020, 1.875613, 1),
    Species("triton", "t", 1000010030, 2.808921, 1),
    Species("helium3", "he3", 1000020030, 2.808391, 2),
    Species("alpha", "alpha", 1000020040, 3.727379, 2),
)


class SpeciesCatalog:
    """Ordered, read-only species catalog with first-match PDG lookup.

    Attributes:
        species: Tuple of Species in index order
    """

    def __init__(self, species: Iterable[Species] = DEFAULT_SPECIES) -> None:
        self.species: tuple[Species, ...] = tuple(species)
        if not self.species:
            raise ConfigurationError("Species catalog is empty")

        short_names = [s.short_name for s in self.species]
        if len(set(short_names)) != len(short_names):
            raise ConfigurationError(f"Duplicate species short names in catalog: {short_names}")

    @classmethod
    def from_config(cls, entries: list[dict[str, Any]]) -> SpeciesCatalog:
        """
        Build a catalog from [[species]] TOML tables

        Args:
            entries: List of dicts with name, short_name, pdg, mass, charge

        Returns:
            SpeciesCatalog in the order given

        Raises:
            ConfigurationError: If an entry lacks a required key
        """
        species = []
        for entry in entries:
            try:
                species.append(
                    Species(
                        name=str(entry["name"]),
                        short_name=str(entry["short_name"]),
                        pdg=abs(int(entry["pdg"])),
                        mass=float(entry["mass"]),
                        charge=int(entry["charge"]),
                    )
                )
            except KeyError as e:
                raise ConfigurationError(f"Species entry {entry} is missing key {e}")
        return cls(species)

    def __len__(self) -> int:
        return len(self.species)

    def __iter__(self) -> Iterator[Species]:
        return iter(self.species)

    def __getitem__(self, index: int) -> Species:
        return self.species[index]

    def lookup(self, pdg_codes) -> np.ndarray:
        """
        Vectorised species lookup

        Args:
            pdg_codes: Array-like of (signed) PDG codes

        Returns:
            Integer array of species indices, -1 where no species matches
        """
        abs_pdg = np.abs(np.asarray(pdg_codes, dtype=np.int64))
        indices = np.full(abs_pdg.shape, -1, dtype=np.int64)
        for i, s in enumerate(self.species):
            # earlier entries win
            indices[(indices < 0) & (abs_pdg == s.pdg)] = i
        return indices
