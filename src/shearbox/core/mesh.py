"""Mesh blocks: per-subdomain grid geometry and conserved state.

A :class:`MeshBlock` is the piece of the global mesh owned by one process
(or task). It carries the conserved variables the problem generator writes
and the history functions read:

    d, M1, M2, M3          cell-centred, shape (nx1, nx2, nx3)
    E                      cell-centred, adiabatic EOS only
    B1c, B2c, B3c          cell-centred, MHD only
    B1i                    x-faces, shape (nx1+1, nx2, nx3), MHD only
    B2i                    y-faces, shape (nx1, nx2+1, nx3), MHD only
    B3i                    z-faces, shape (nx1, nx2, nx3+1), MHD only

All arrays are indexed ``[i, j, k]`` with local indices starting at 0; the
global index of local cell ``i`` is ``i + idisp`` (likewise for j, k).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np

from shearbox.config import MeshConfig, PhysicsConfig

logger = logging.getLogger(__name__)

_HYDRO_FIELDS = ("d", "M1", "M2", "M3")
_CELL_B_FIELDS = ("B1c", "B2c", "B3c")
_FACE_B_FIELDS = ("B1i", "B2i", "B3i")


def face_to_cell_centered(
    b1i: np.ndarray,
    b2i: np.ndarray,
    b3i: np.ndarray,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Average face-centred B to cell centres.

    Each cell value is the arithmetic mean of its two bounding faces.

    Args:
        b1i: Bx on x-faces, shape (nx1+1, nx2, nx3).
        b2i: By on y-faces, shape (nx1, nx2+1, nx3).
        b3i: Bz on z-faces, shape (nx1, nx2, nx3+1).

    Returns:
        Tuple (B1c, B2c, B3c), each of shape (nx1, nx2, nx3).
    """
    b1c = 0.5 * (b1i[:-1, :, :] + b1i[1:, :, :])
    b2c = 0.5 * (b2i[:, :-1, :] + b2i[:, 1:, :])
    b3c = 0.5 * (b3i[:, :, :-1] + b3i[:, :, 1:])
    return b1c, b2c, b3c


@dataclass
class MeshBlock:
    """One owned subdomain of the global mesh.

    Attributes:
        mesh: Global mesh (cell counts and extents).
        physics: Build options deciding which arrays exist.
        nx1, nx2, nx3: Owned cell counts.
        idisp, jdisp, kdisp: Global index of the first owned cell.
        time: Current simulation time.
    """

    mesh: MeshConfig
    physics: PhysicsConfig
    nx1: int
    nx2: int
    nx3: int
    idisp: int = 0
    jdisp: int = 0
    kdisp: int = 0
    time: float = 0.0
    arrays: dict[str, np.ndarray] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        shape = (self.nx1, self.nx2, self.nx3)
        for axis, (n, disp, total) in enumerate(
            zip(shape, (self.idisp, self.jdisp, self.kdisp), self.mesh.shape), start=1,
        ):
            if n < 1 or disp < 0 or disp + n > total:
                raise ValueError(
                    f"block extent along x{axis} ({disp}..{disp + n - 1}) "
                    f"lies outside the mesh (0..{total - 1})"
                )
        if not self.arrays:
            self.allocate()

    # --- storage ---

    def allocate(self) -> None:
        """Allocate zeroed arrays for every field the build options require."""
        shape = (self.nx1, self.nx2, self.nx3)
        names = list(_HYDRO_FIELDS)
        if self.physics.adiabatic:
            names.append("E")
        if self.physics.mhd:
            names.extend(_CELL_B_FIELDS)
        self.arrays = {name: np.zeros(shape) for name in names}
        if self.physics.mhd:
            self.arrays["B1i"] = np.zeros((self.nx1 + 1, self.nx2, self.nx3))
            self.arrays["B2i"] = np.zeros((self.nx1, self.nx2 + 1, self.nx3))
            self.arrays["B3i"] = np.zeros((self.nx1, self.nx2, self.nx3 + 1))

    def __getattr__(self, name: str) -> np.ndarray:
        arrays = self.__dict__.get("arrays")
        if arrays is not None and name in arrays:
            return arrays[name]
        raise AttributeError(f"{type(self).__name__!s} has no field {name!r}")

    def state_dict(self) -> dict[str, np.ndarray]:
        return {name: arr.copy() for name, arr in self.arrays.items()}

    def load_state(self, data: dict[str, np.ndarray]) -> None:
        """Replace the block arrays, checking names and shapes."""
        for name, arr in self.arrays.items():
            if name not in data:
                raise KeyError(f"state is missing field {name!r}")
            if data[name].shape != arr.shape:
                raise ValueError(
                    f"field {name!r} has shape {data[name].shape}, expected {arr.shape}"
                )
        self.arrays = {name: np.array(data[name], dtype=np.float64) for name in self.arrays}

    # --- geometry ---

    @property
    def shape(self) -> tuple[int, int, int]:
        return (self.nx1, self.nx2, self.nx3)

    @property
    def dx1(self) -> float:
        return self.mesh.lx / self.mesh.nx1

    @property
    def dx2(self) -> float:
        return self.mesh.ly / self.mesh.nx2

    @property
    def dx3(self) -> float:
        return self.mesh.lz / self.mesh.nx3

    @property
    def ndim(self) -> int:
        """Dimensionality of the global mesh (axes with more than one cell)."""
        return sum(1 for n in self.mesh.shape if n > 1)

    def global_start(self) -> tuple[int, int, int]:
        return (self.idisp, self.jdisp, self.kdisp)

    def cc_pos(self, i: int, j: int, k: int) -> tuple[float, float, float]:
        """Cell-centre position of local cell (i, j, k)."""
        x1 = self.mesh.x1min + (i + self.idisp + 0.5) * self.dx1
        x2 = self.mesh.x2min + (j + self.jdisp + 0.5) * self.dx2
        x3 = self.mesh.x3min + (k + self.kdisp + 0.5) * self.dx3
        return x1, x2, x3

    def cell_centers(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Cell-centre coordinates, broadcastable to shape (nx1, nx2, nx3).

        Returns:
            Arrays of shape (nx1, 1, 1), (1, nx2, 1) and (1, 1, nx3).
        """
        x1 = self.mesh.x1min + (np.arange(self.nx1) + self.idisp + 0.5) * self.dx1
        x2 = self.mesh.x2min + (np.arange(self.nx2) + self.jdisp + 0.5) * self.dx2
        x3 = self.mesh.x3min + (np.arange(self.nx3) + self.kdisp + 0.5) * self.dx3
        return x1[:, None, None], x2[None, :, None], x3[None, None, :]

    def update_cell_centered_b(self) -> None:
        """Recompute B1c, B2c, B3c from the face fields."""
        b1c, b2c, b3c = face_to_cell_centered(self.B1i, self.B2i, self.B3i)
        self.arrays["B1c"][...] = b1c
        self.arrays["B2c"][...] = b2c
        self.arrays["B3c"][...] = b3c


def decompose(
    mesh: MeshConfig,
    physics: PhysicsConfig,
    blocks: tuple[int, int, int] = (1, 1, 1),
) -> list[MeshBlock]:
    """Tile the global mesh into equal mesh blocks.

    Args:
        mesh: Global mesh.
        physics: Build options.
        blocks: Number of blocks along each axis; must divide the cell counts.

    Returns:
        Blocks ordered with x fastest, then y, then z.
    """
    sizes = []
    for axis, (n, nb) in enumerate(zip(mesh.shape, blocks), start=1):
        if nb < 1 or n % nb != 0:
            raise ValueError(f"{nb} blocks do not evenly divide {n} cells along x{axis}")
        sizes.append(n // nb)

    out = []
    for kb in range(blocks[2]):
        for jb in range(blocks[1]):
            for ib in range(blocks[0]):
                out.append(MeshBlock(
                    mesh=mesh,
                    physics=physics,
                    nx1=sizes[0],
                    nx2=sizes[1],
                    nx3=sizes[2],
                    idisp=ib * sizes[0],
                    jdisp=jb * sizes[1],
                    kdisp=kb * sizes[2],
                ))
    logger.debug("Decomposed %s mesh into %d blocks of %s", mesh.shape, len(out), tuple(sizes))
    return out
