"""
Four-momentum helpers for mass-hypothesis corrections
"""

from __future__ import annotations

import numpy as np
import vector


class FourMomentumCalculator:
    """
    Rebuild track four-momenta under a species hypothesis

    Tracks are reconstructed with a default mass hypothesis, so the rapidity
    has to be recomputed with the mass of the matched species.
    """

    @staticmethod
    def from_pt_eta_phi_m(pt, eta, phi, mass):
        """
        Build four-vectors from (pt, eta, phi, m)

        A negative pt flips the whole three-momentum, the same way a signed
        transverse momentum does in the ROOT convention.

        Args:
            pt: Signed transverse momentum (GeV/c)
            eta: Pseudorapidity
            phi: Azimuthal angle
            mass: Mass hypothesis (GeV/c^2), scalar or array

        Returns:
            vector.MomentumNumpy4D
        """
        pt = np.asarray(pt, dtype=np.float64)
        eta = np.asarray(eta, dtype=np.float64)
        phi = np.asarray(phi, dtype=np.float64)
        mass = np.broadcast_to(np.asarray(mass, dtype=np.float64), pt.shape)

        return vector.array({
            "px": pt * np.cos(phi),
            "py": pt * np.sin(phi),
            "pz": pt * np.sinh(eta),
            "mass": mass,
        })

    @staticmethod
    def rapidity_with_hypothesis(pt, eta, phi, charge: int, mass: float) -> np.ndarray:
        """
        Rapidity of tracks under a species hypothesis

        The measured pt is scaled by the species charge before building the
        four-vector.

        Args:
            pt: Measured transverse momentum (GeV/c)
            eta: Measured pseudorapidity
            phi: Measured azimuth
            charge: Species charge in units of e
            mass: Species nominal mass (GeV/c^2)

        Returns:
            Array of rapidities
        """
        pt = np.asarray(pt, dtype=np.float64)
        if pt.size == 0:
            return np.empty(0, dtype=np.float64)

        p4 = FourMomentumCalculator.from_pt_eta_phi_m(pt * charge, eta, phi, mass)
        return np.asarray(p4.rapidity, dtype=np.float64)
