"""Tidal potential of the local shearing sheet.

In the rotating frame the tidal expansion of the central potential gives

    Phi(x, y, z) = -q * Omega^2 * x^2 + 0.5 * Omega^2 * z^2

with q = 3/2 for a Keplerian disk. The radial term is dropped when the
solver advects the background shear itself (orbital advection), and the
vertical term is only present for stratified runs.
"""

from __future__ import annotations

from shearbox.config import ShearingBoxParameters
from shearbox.constants import QSHEAR


class ShearingBoxPotential:
    """Static gravitational potential ``phi(x1, x2, x3)``.

    Accepts scalars or broadcastable numpy arrays.
    """

    def __init__(self, params: ShearingBoxParameters) -> None:
        self.params = params

    def __call__(self, x1, x2, x3):
        omega2 = self.params.omega * self.params.omega
        phi = 0.0 * x1 + 0.0 * x3
        if not self.params.physics.orbital_advection:
            phi = phi - QSHEAR * omega2 * x1 * x1
        if self.params.physics.vertical_gravity:
            phi = phi + 0.5 * omega2 * x3 * x3
        return phi

    def __repr__(self) -> str:
        return f"ShearingBoxPotential(omega={self.params.omega})"
