"""History variables of the shearing sheet.

Each history variable is a per-cell quantity computed from the conserved
state and the cell position; the framework reduces it to a volume average
and writes it as a time series. Functions here evaluate a whole block at
once and return an array of shape (nx1, nx2, nx3); the value for a single
cell is ``fn(block)[i, j, k]``.

Hydro:
    <rho Vx dVy>    Reynolds stress  rho * Vx * dVy
    <rho dVy^2>     kinetic energy in y-velocity fluctuations
    <E + rho Phi>   total energy including the tidal potential (adiabatic)

MHD:
    <Bx>, <By>, <Bz>  net flux
    <-Bx By>          Maxwell stress
    <dEw2>            JGG figure 9 wave energy (ipert 5 runs)
    <dBy>             JGG figure 11 Fourier amplitude of By (ipert 6 runs)

dVy is the y-velocity relative to the background shear, Vy + 1.5*Omega*x;
under orbital advection the state already excludes the shear and
dVy = Vy.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator, Sequence
from functools import partial

import numpy as np

from shearbox.config import ShearingBoxParameters
from shearbox.constants import QSHEAR, pi
from shearbox.core.bases import BlockFunction
from shearbox.core.mesh import MeshBlock
from shearbox.problem.potential import ShearingBoxPotential

logger = logging.getLogger(__name__)


def delta_vy(block: MeshBlock, params: ShearingBoxParameters) -> np.ndarray:
    """y-velocity fluctuation about the background shear."""
    vy = block.M2 / block.d
    if params.physics.orbital_advection:
        return vy
    x1, _, _ = block.cell_centers()
    return vy + QSHEAR * params.omega * x1


def rho_vx_dvy(block: MeshBlock, params: ShearingBoxParameters) -> np.ndarray:
    """Reynolds stress."""
    return block.M1 * delta_vy(block, params)


def rho_dvy2(block: MeshBlock, params: ShearingBoxParameters) -> np.ndarray:
    dvy = delta_vy(block, params)
    return block.d * dvy * dvy


def total_energy(block: MeshBlock, params: ShearingBoxParameters) -> np.ndarray:
    """Total energy including the tidal potential, E + rho*Phi."""
    phi = ShearingBoxPotential(params)(*block.cell_centers())
    return block.E + block.d * phi


def net_bx(block: MeshBlock) -> np.ndarray:
    return block.B1c.copy()


def net_by(block: MeshBlock) -> np.ndarray:
    return block.B2c.copy()


def net_bz(block: MeshBlock) -> np.ndarray:
    return block.B3c.copy()


def maxwell_stress(block: MeshBlock) -> np.ndarray:
    return -block.B1c * block.B2c


def jgg_wave_energy(block: MeshBlock) -> np.ndarray:
    """Perturbed magnetic energy of the JGG figure 9 wave.

    The mean vertical field sqrt(15/16)/(2 pi)/sqrt(4 pi) is removed from Bz.
    """
    dbz = block.B3c - math.sqrt(15.0 / 16.0) / (2.0 * pi) / math.sqrt(4.0 * pi)
    return block.B1c * block.B1c + block.B2c * block.B2c + dbz * dbz


def jgg_by_amplitude(block: MeshBlock, params: ShearingBoxParameters) -> np.ndarray:
    """Real part of the sheared Fourier mode of By, for JGG figure 11.

    The radial wavenumber of the mode swings from leading to trailing as
    kx(t) = -4 pi/Lx + 1.5 * Omega * ky * t.
    """
    mesh = block.mesh
    t = block.time
    fky = 2.0 * pi / mesh.ly
    fkx = -4.0 * pi / mesh.lx + QSHEAR * params.omega * fky * t
    fkz = 2.0 * pi / mesh.lz

    x1, x2, x3 = block.cell_centers()
    dby = 2.0 * (block.B2c - (0.2 - 0.15 * params.omega * t))
    return dby * np.cos(fkx * x1 + fky * x2 + fkz * x3)


class HistoryRegistry:
    """Ordered mapping of history names to block functions."""

    def __init__(self) -> None:
        self._entries: dict[str, BlockFunction] = {}

    def enroll(self, name: str, fn: BlockFunction) -> None:
        if name in self._entries:
            logger.warning("History variable %s enrolled twice; replacing", name)
        self._entries[name] = fn

    def names(self) -> list[str]:
        return list(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[tuple[str, BlockFunction]]:
        return iter(self._entries.items())

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, name: str) -> BlockFunction:
        return self._entries[name]

    def clear(self) -> None:
        self._entries.clear()

    def evaluate(self, block: MeshBlock) -> dict[str, np.ndarray]:
        """Per-cell values of every history variable on one block."""
        return {name: fn(block) for name, fn in self._entries.items()}

    def evaluate_cell(self, name: str, block: MeshBlock, i: int, j: int, k: int) -> float:
        return float(self._entries[name](block)[i, j, k])

    def reduce(self, blocks: MeshBlock | Sequence[MeshBlock]) -> dict[str, float]:
        """Volume averages over all cells of ``blocks`` (uniform cell volume)."""
        if isinstance(blocks, MeshBlock):
            blocks = [blocks]
        ncells = sum(b.nx1 * b.nx2 * b.nx3 for b in blocks)
        totals = {name: 0.0 for name in self._entries}
        for block in blocks:
            for name, fn in self._entries.items():
                totals[name] += float(np.sum(fn(block)))
        return {name: total / ncells for name, total in totals.items()}


def enroll_history(
    registry: HistoryRegistry,
    params: ShearingBoxParameters,
    ipert: int | None = None,
) -> None:
    """Enroll the shearing-box history variables.

    Args:
        registry: Registry to fill.
        params: Runtime parameters bound into the functions.
        ipert: Perturbation of a fresh setup; enables the JGG wave
            diagnostics for ipert 5 and 6. Restarts pass None.
    """
    physics = params.physics
    registry.enroll("<rho Vx dVy>", partial(rho_vx_dvy, params=params))
    registry.enroll("<rho dVy^2>", partial(rho_dvy2, params=params))
    if physics.adiabatic:
        registry.enroll("<E + rho Phi>", partial(total_energy, params=params))
    if physics.mhd:
        registry.enroll("<Bx>", net_bx)
        registry.enroll("<By>", net_by)
        registry.enroll("<Bz>", net_bz)
        registry.enroll("<-Bx By>", maxwell_stress)
        if ipert == 5:
            registry.enroll("<dEw2>", jgg_wave_energy)
        if ipert == 6:
            registry.enroll("<dBy>", partial(jgg_by_amplitude, params=params))
    logger.info("Enrolled history variables: %s", ", ".join(registry.names()))
