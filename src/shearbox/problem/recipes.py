"""Initial field and perturbation recipes for the shearing sheet.

The background is a uniform disk (d = 1, P = 1e-6, or c_s^2 under an
isothermal EOS) in uniform shear ``vy = -1.5 * Omega * x``. On top of it one
of six perturbations is applied

    ipert = 1  random perturbations to P (or d) and V  [default, HGB]
    ipert = 2  uniform Vx = amp (epicyclic wave test)
    ipert = 3  vortical shearing wave (Johnson & Gammie hydro test)
    ipert = 4  nonlinear density wave of Fromang & Papaloizou
    ipert = 5  2nd MHD shearing wave of JGG (2008), their figure 9
    ipert = 6  3rd MHD shearing wave of JGG (2008), their figure 11

and, with magnetic fields, one of the field geometries

    ifield = 0  field supplied by the perturbation (forced by ipert 5, 6)
    ifield = 1  Bz = B0 sin(kx x), zero net flux  [default]
    ifield = 2  uniform Bz = B0
    ifield = 3  B = (0, B0 cos(kx x), B0 sin(kx x)), zero net flux with helicity
    ifield = 4  B = (0, B0/sqrt(2), B0/sqrt(2)), net toroidal + vertical

with B0 = sqrt(2 P / beta).

All recipes are evaluated for a whole mesh block at once. Face-centred
field components are evaluated analytically at face positions; the one
extra face at the upper edge of each direction takes the value at the
block's lower face, which keeps the staggered field exactly periodic.

References:
    Hawley J.F., Gammie C.F. & Balbus S.A., ApJ 440, 742 (1995).
    Johnson B.M. & Gammie C.F., ApJS 161, 551 (2005).
    Johnson B.M., Guan X. & Gammie C.F., ApJS 177, 373 (2008).
    Fromang S. & Papaloizou J., A&A 468, 1 (2007).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable

import numpy as np

from shearbox.config import PhysicsConfig, ProblemConfig
from shearbox.constants import DEN0, PRES0, QSHEAR, pi
from shearbox.core.mesh import MeshBlock, face_to_cell_centered
from shearbox.errors import ConfigurationError
from shearbox.problem.fp_wave import FPWaveTable
from shearbox.rng import Ran2

logger = logging.getLogger(__name__)

# Velocity perturbation scale of the random recipe: HGB use V/c_s ~ (1/5) amp/sqrt(gamma)
RANDOM_VELOCITY_SCALE = 0.4

# Each of Bx, By, Bz as a function of (x1, x2, x3)
FieldComponent = Callable[[np.ndarray, np.ndarray, np.ndarray], np.ndarray]


@dataclass
class Perturbation:
    """Perturbed primitive state of a block, shape (nx1, nx2, nx3) each.

    ``rvy`` excludes the background shear. ``field`` is set only by the
    recipes that prescribe their own magnetic field (ipert 5 and 6).
    """

    rd: np.ndarray
    rp: np.ndarray
    rvx: np.ndarray
    rvy: np.ndarray
    rvz: np.ndarray
    field: tuple[FieldComponent, FieldComponent, FieldComponent] | None = None


@dataclass
class RecipeResult:
    """What :func:`initialize_block` actually applied."""

    ipert: int
    ifield: int
    amp: float
    b0: float
    kx: float
    ky: float
    kz: float


def background_pressure(physics: PhysicsConfig) -> float:
    """Thermal pressure of the unperturbed disk (c_s^2 * d for isothermal)."""
    return PRES0 if physics.adiabatic else physics.iso_csound2


def field_strength(beta: float, physics: PhysicsConfig) -> float:
    """B0 = sqrt(2 P / beta)."""
    return math.sqrt(2.0 * background_pressure(physics) / beta)


def scaled_amplitude(problem: ProblemConfig, physics: PhysicsConfig) -> float:
    """Amplitude in code units; ipert 3 gives ``amp`` in units of c_s."""
    amp = problem.amp
    if problem.ipert == 3:
        if physics.adiabatic:
            amp *= math.sqrt(physics.gamma * PRES0 / DEN0)
        else:
            amp *= physics.iso_csound
    return amp


# ============================================================
# Perturbations
# ============================================================

def _random_perturbation(block, amp, physics, rng):
    nx1, nx2, nx3 = block.shape
    pres = background_pressure(physics)
    # Four deviates per cell, cells visited with i fastest, then j, then k
    draws = rng.draw(4 * nx1 * nx2 * nx3).reshape(nx3, nx2, nx1, 4).transpose(2, 1, 0, 3)
    rval = amp * (draws - 0.5)

    if physics.adiabatic:
        rp = pres * (1.0 + 2.0 * rval[..., 0])
        rd = np.full(block.shape, DEN0)
    else:
        rp = np.full(block.shape, pres)
        rd = DEN0 * (1.0 + 2.0 * rval[..., 0])

    cs = math.sqrt(pres / DEN0)
    rvx = RANDOM_VELOCITY_SCALE * rval[..., 1] * cs
    rvy = RANDOM_VELOCITY_SCALE * rval[..., 2] * cs
    rvz = RANDOM_VELOCITY_SCALE * rval[..., 3] * cs
    return Perturbation(rd, rp, rvx, rvy, rvz)


def _fp_wave_perturbation(block, omega, table):
    x1, _, _ = block.cell_centers()
    gi = np.arange(block.nx1) + block.idisp
    shape = block.shape
    rd = np.broadcast_to(table.d[gi][:, None, None], shape).copy()
    rvx = np.broadcast_to(table.vx[gi][:, None, None], shape).copy()
    # Tabulated vy includes the mean flow; store it relative to the shear
    rvy = np.broadcast_to(table.vy[gi][:, None, None] + QSHEAR * omega * x1, shape).copy()
    return Perturbation(rd, np.full(shape, PRES0), rvx, rvy, np.zeros(shape))


def _jgg_fig9_perturbation(block, omega, kx, ky, kz):
    # The initial conditions printed in JGG are not those used for their
    # figure 9 (B. Johnson, private communication); kept as published.
    x1, x2, x3 = block.cell_centers()
    shape = block.shape
    phase = kx * x1 + ky * x2 + kz * x3
    rd = np.broadcast_to(DEN0 + 8.9525e-10 * np.cos(phase - pi / 4.0), shape).copy()
    rvx = np.broadcast_to(8.16589e-8 * np.cos(phase + pi / 4.0), shape).copy()
    rvy = np.broadcast_to(8.70641e-8 * np.cos(phase + pi / 4.0), shape).copy()
    rvz = np.broadcast_to(0.762537e-8 * np.cos(phase + pi / 4.0), shape).copy()

    bz0 = (math.sqrt(15.0) / 16.0) * (omega / kz)
    field = (
        lambda x, y, z: -1.08076e-7 * np.cos(kx * x + ky * y + kz * z - pi / 4.0),
        lambda x, y, z: 1.04172e-7 * np.cos(kx * x + ky * y + kz * z - pi / 4.0),
        lambda x, y, z: -0.320324e-7 * np.cos(kx * x + ky * y + kz * z - pi / 4.0) + bz0,
    )
    return Perturbation(rd, np.full(shape, PRES0), rvx, rvy, rvz, field)


def _jgg_fig11_perturbation(block, kx, ky, kz):
    x1, x2, x3 = block.cell_centers()
    shape = block.shape
    wave = np.broadcast_to(np.cos(kx * x1 + ky * x2 + kz * x3), shape)
    rd = DEN0 + 5.48082e-6 * wave
    rvx = -4.5856e-6 * wave
    rvy = 2.29279e-6 * wave
    rvz = 2.29279e-6 * wave

    field = (
        lambda x, y, z: 5.48082e-7 * np.cos(kx * x + ky * y + kz * z) + 0.1,
        lambda x, y, z: 1.0962e-6 * np.cos(kx * x + ky * y + kz * z) + 0.2,
        lambda x, y, z: 0.0 * x,
    )
    return Perturbation(rd, np.full(shape, PRES0), rvx, rvy, rvz, field)


def perturbation(
    block: MeshBlock,
    problem: ProblemConfig,
    physics: PhysicsConfig,
    amp: float,
    wavenumbers: tuple[float, float, float],
    rng: Ran2 | None = None,
    table: FPWaveTable | None = None,
) -> Perturbation:
    """Evaluate perturbation recipe ``problem.ipert`` over the block.

    Args:
        block: Block being initialised (geometry only is used).
        problem: Scenario parameters.
        physics: Build options.
        amp: Amplitude already rescaled by :func:`scaled_amplitude`.
        wavenumbers: (kx, ky, kz).
        rng: Random stream, required for ipert 1.
        table: Density-wave table, required for ipert 4.
    """
    kx, ky, kz = wavenumbers
    shape = block.shape
    ipert = problem.ipert

    if ipert == 1:
        if rng is None:
            raise ValueError("ipert=1 needs a random stream")
        return _random_perturbation(block, amp, physics, rng)
    if ipert == 2:
        return Perturbation(
            np.full(shape, DEN0), np.full(shape, background_pressure(physics)),
            np.full(shape, amp), np.zeros(shape), np.zeros(shape),
        )
    if ipert == 3:
        x1, x2, _ = block.cell_centers()
        wave = np.broadcast_to(np.sin(kx * x1 + ky * x2), shape)
        return Perturbation(
            np.full(shape, DEN0), np.full(shape, background_pressure(physics)),
            amp * wave, -amp * (kx / ky) * wave, np.zeros(shape),
        )
    if ipert == 4:
        if table is None:
            raise ValueError("ipert=4 needs the density wave table")
        return _fp_wave_perturbation(block, problem.omega, table)
    if ipert == 5:
        return _jgg_fig9_perturbation(block, problem.omega, kx, ky, kz)
    if ipert == 6:
        return _jgg_fig11_perturbation(block, kx, ky, kz)
    raise ConfigurationError(f"unknown perturbation ipert={ipert}")


# ============================================================
# Magnetic field
# ============================================================

def field_components(
    ifield: int, b0: float, kx: float,
) -> tuple[FieldComponent, FieldComponent, FieldComponent]:
    """Analytic (Bx, By, Bz) of field geometry ``ifield`` (1-4)."""
    if ifield == 1:
        return (
            lambda x, y, z: 0.0 * x,
            lambda x, y, z: 0.0 * x,
            lambda x, y, z: b0 * np.sin(kx * x),
        )
    if ifield == 2:
        return (
            lambda x, y, z: 0.0 * x,
            lambda x, y, z: 0.0 * x,
            lambda x, y, z: b0 + 0.0 * x,
        )
    if ifield == 3:
        return (
            lambda x, y, z: 0.0 * x,
            lambda x, y, z: b0 * np.cos(kx * x),
            lambda x, y, z: b0 * np.sin(kx * x),
        )
    if ifield == 4:
        return (
            lambda x, y, z: 0.0 * x,
            lambda x, y, z: b0 / math.sqrt(2) + 0.0 * x,
            lambda x, y, z: b0 / math.sqrt(2) + 0.0 * x,
        )
    raise ConfigurationError(f"unknown field configuration ifield={ifield}")


def _closed_faces(centers: np.ndarray, dx: float) -> np.ndarray:
    """Lower-face coordinates of each cell, plus the first one again at index n."""
    faces = centers.ravel() - 0.5 * dx
    return np.append(faces, faces[0])


def face_fields(
    block: MeshBlock,
    components: tuple[FieldComponent, FieldComponent, FieldComponent],
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Evaluate (Bx, By, Bz) on the x-, y- and z-faces of the block.

    Returns:
        Arrays of shape (nx1+1, nx2, nx3), (nx1, nx2+1, nx3), (nx1, nx2, nx3+1).
    """
    x1, x2, x3 = block.cell_centers()
    x1f = _closed_faces(x1, block.dx1)[:, None, None]
    x2f = _closed_faces(x2, block.dx2)[None, :, None]
    x3f = _closed_faces(x3, block.dx3)[None, None, :]

    bx, by, bz = components
    b1i = np.broadcast_to(bx(x1f, x2, x3), (block.nx1 + 1, block.nx2, block.nx3))
    b2i = np.broadcast_to(by(x1, x2f, x3), (block.nx1, block.nx2 + 1, block.nx3))
    b3i = np.broadcast_to(bz(x1, x2, x3f), (block.nx1, block.nx2, block.nx3 + 1))
    return b1i.copy(), b2i.copy(), b3i.copy()


# ============================================================
# Block initialisation
# ============================================================

def initialize_block(
    block: MeshBlock,
    problem: ProblemConfig,
    rng: Ran2 | None = None,
    table: FPWaveTable | None = None,
) -> RecipeResult:
    """Write the initial conserved state of the shearing sheet into ``block``.

    Args:
        block: Block to fill; its ``physics`` selects the EOS and MHD paths.
        problem: Scenario parameters.
        rng: Random stream for ipert 1, seeded for this block.
        table: Density-wave table for ipert 4.

    Returns:
        The recipe actually applied (ipert 5 and 6 force ifield = 0).

    Raises:
        ConfigurationError: 1D mesh, or ifield = 0 without a field-carrying
            perturbation.
    """
    physics = block.physics
    mesh = block.mesh
    if mesh.nx2 == 1:
        raise ConfigurationError("HGB only works on a 2D or 3D grid")

    ifield = 0 if problem.ipert in (5, 6) else problem.ifield
    b0 = field_strength(problem.beta, physics)
    kx, ky, kz = problem.wavenumbers(mesh)
    amp = scaled_amplitude(problem, physics)

    pert = perturbation(block, problem, physics, amp, (kx, ky, kz), rng=rng, table=table)

    # For the 3D shearing box M1 = d*Vx, M2 = d*Vy, M3 = d*Vz
    x1, _, _ = block.cell_centers()
    rd = pert.rd
    m1 = rd * pert.rvx
    m2 = rd * pert.rvy
    if not physics.orbital_advection:
        m2 = m2 - rd * (QSHEAR * problem.omega * x1)
    m3 = rd * pert.rvz

    block.arrays["d"][...] = rd
    block.arrays["M1"][...] = m1
    block.arrays["M2"][...] = m2
    block.arrays["M3"][...] = m3
    if physics.adiabatic:
        block.arrays["E"][...] = pert.rp / physics.gamma_1 + 0.5 * (m1**2 + m2**2 + m3**2) / rd

    if physics.mhd:
        if ifield == 0:
            if pert.field is None:
                raise ConfigurationError(
                    f"ifield=0 takes the field from the perturbation, but ipert={problem.ipert} "
                    "defines none"
                )
            components = pert.field
        else:
            components = field_components(ifield, b0, kx)

        b1i, b2i, b3i = face_fields(block, components)
        block.arrays["B1i"][...] = b1i
        block.arrays["B2i"][...] = b2i
        block.arrays["B3i"][...] = b3i

        b1c, b2c, b3c = face_to_cell_centered(b1i, b2i, b3i)
        block.arrays["B1c"][...] = b1c
        block.arrays["B2c"][...] = b2c
        block.arrays["B3c"][...] = b3c
        if physics.adiabatic:
            block.arrays["E"][...] += 0.5 * (b1c**2 + b2c**2 + b3c**2)

    logger.debug(
        "Initialised block at %s: ipert=%d ifield=%d amp=%.4e B0=%.4e",
        block.global_start(), problem.ipert, ifield, amp, b0,
    )
    return RecipeResult(ipert=problem.ipert, ifield=ifield, amp=amp, b0=b0, kx=kx, ky=ky, kz=kz)
