"""Tabulated initial state for the nonlinear density wave test.

Fromang & Papaloizou (2007) give the initial state of their nonlinear
density wave only as a table on the x grid. Two resolutions are supported,
each stored as a plain-text file ``Data-<N>-FPwave.dat`` with exactly N rows
of four whitespace-separated numbers: x, density, vx, vy.

The tables were computed on the fixed domain x in [-4.7965, 4.7965], so the
mesh bounds must match exactly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from shearbox.config import MeshConfig
from shearbox.constants import FP_WAVE_RESOLUTIONS, FP_WAVE_X1MAX, FP_WAVE_X1MIN
from shearbox.errors import ConfigurationError, DataFileError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FPWaveTable:
    """Read-only density-wave table indexed by global x cell index."""

    x: np.ndarray
    d: np.ndarray
    vx: np.ndarray
    vy: np.ndarray

    def __len__(self) -> int:
        return self.x.shape[0]


def fp_wave_filename(nx1: int) -> str:
    return f"Data-{nx1}-FPwave.dat"


def check_fp_wave_bounds(mesh: MeshConfig) -> None:
    """Raise ConfigurationError unless the x extent is the table's domain."""
    if mesh.x1min != FP_WAVE_X1MIN:
        raise ConfigurationError(f"ipert=4 requires x1min={FP_WAVE_X1MIN}, got {mesh.x1min}")
    if mesh.x1max != FP_WAVE_X1MAX:
        raise ConfigurationError(f"ipert=4 requires x1max={FP_WAVE_X1MAX}, got {mesh.x1max}")


def load_fp_wave_table(nx1: int, data_dir: str | Path = ".") -> FPWaveTable:
    """Read the density-wave table matching the global x resolution.

    Args:
        nx1: Global number of cells along x (40 or 160).
        data_dir: Directory containing the ``Data-<N>-FPwave.dat`` files.

    Returns:
        The loaded table.

    Raises:
        ConfigurationError: No table exists for this resolution.
        DataFileError: The file is missing, unreadable or has the wrong shape.
    """
    if nx1 not in FP_WAVE_RESOLUTIONS:
        raise ConfigurationError(
            f"ipert=4 requires nx1 in {FP_WAVE_RESOLUTIONS}, got {nx1}"
        )

    path = Path(data_dir) / fp_wave_filename(nx1)
    if not path.is_file():
        raise DataFileError(f"Error opening {path}")

    try:
        data = np.loadtxt(path, dtype=np.float64, ndmin=2)
    except (OSError, ValueError) as exc:
        raise DataFileError(f"Error reading {path}: {exc}") from exc

    if data.shape != (nx1, 4):
        raise DataFileError(
            f"{path} must hold {nx1} rows of 4 columns, found shape {data.shape}"
        )

    logger.info("Loaded %d-row density wave table from %s", nx1, path)
    columns = [np.ascontiguousarray(data[:, c]) for c in range(4)]
    for col in columns:
        col.setflags(write=False)
    return FPWaveTable(*columns)
