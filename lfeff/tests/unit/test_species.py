"""
Unit tests for the species catalog.
"""

from __future__ import annotations

import numpy as np
import pytest

from lfeff.modules.exceptions import ConfigurationError
from lfeff.modules.species import DEFAULT_SPECIES, Species, SpeciesCatalog


@pytest.mark.unit
class TestDefaultCatalog:
    """Test the default nine-species catalog."""

    def test_order(self, species: SpeciesCatalog) -> None:
        assert [s.short_name for s in species] == ["e", "mu", "pi", "K", "p", "d", "t", "he3", "alpha"]

    def test_proton(self, species: SpeciesCatalog) -> None:
        p = species[4]
        assert p.pdg == 2212
        assert p.mass == pytest.approx(0.938272)
        assert p.charge == 1

    def test_helium_charge(self, species: SpeciesCatalog) -> None:
        assert species[int(species.lookup([1000020030])[0])].charge == 2


@pytest.mark.unit
class TestLookup:
    """Test PDG code lookup."""

    def test_lookup_uses_absolute_value(self, species: SpeciesCatalog) -> None:
        np.testing.assert_array_equal(species.lookup([-211, 211]), [2, 2])

    def test_lookup_unknown(self, species: SpeciesCatalog) -> None:
        assert species.lookup([3122])[0] == -1

    def test_vectorised_lookup(self, species: SpeciesCatalog) -> None:
        result = species.lookup(np.array([2212, -321, 22, 1000010020, -11]))
        np.testing.assert_array_equal(result, [4, 3, -1, 5, 0])

    def test_first_match_wins(self) -> None:
        catalog = SpeciesCatalog([
            Species("first", "a", 2212, 0.9, 1),
            Species("second", "b", 2212, 1.0, 1),
        ])
        np.testing.assert_array_equal(catalog.lookup([2212, -2212]), [0, 0])

    def test_empty_lookup(self, species: SpeciesCatalog) -> None:
        assert species.lookup(np.array([], dtype=np.int64)).shape == (0,)


@pytest.mark.unit
class TestCatalogConstruction:
    """Test catalog validation and config loading."""

    def test_empty_catalog_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            SpeciesCatalog([])

    def test_duplicate_short_names_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            SpeciesCatalog([DEFAULT_SPECIES[0], DEFAULT_SPECIES[0]])

    def test_from_config(self) -> None:
        catalog = SpeciesCatalog.from_config([
            {"name": "kaon", "short_name": "K", "pdg": -321, "mass": 0.493677, "charge": 1},
        ])
        assert len(catalog) == 1
        assert catalog[0].pdg == 321

    def test_from_config_missing_key(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            SpeciesCatalog.from_config([{"name": "kaon", "short_name": "K", "pdg": 321}])

        assert "mass" in str(exc_info.value)
