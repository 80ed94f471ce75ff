"""Checkpoint/restart support for shearing-box runs.

Saves and loads the conserved state of every mesh block (cell-centred and
face-centred arrays, block offsets) plus the simulation time and the run
configuration to an HDF5 file. The problem generator adds nothing of its
own; on restart it only re-enrolls its callbacks.

Usage:
    # Save checkpoint
    save_checkpoint("hgb.00000.h5", blocks, config_json=config.to_json())

    # Load checkpoint
    data = load_checkpoint("hgb.00000.h5")
    blocks = restore_blocks(data, physics)
"""

from __future__ import annotations

import logging
from typing import Any

import numpy as np

from shearbox.config import MeshConfig, PhysicsConfig
from shearbox.core.mesh import MeshBlock

logger = logging.getLogger(__name__)

try:
    import h5py

    HAS_H5PY = True
except ImportError:
    HAS_H5PY = False
    logger.warning("h5py not available; checkpoint/restart disabled")

CHECKPOINT_VERSION = 1


def save_checkpoint(
    filename: str,
    blocks: list[MeshBlock],
    config_json: str | None = None,
) -> None:
    """Save all mesh blocks to an HDF5 checkpoint file.

    Args:
        filename: Output HDF5 file path.
        blocks: Mesh blocks of the domain (all share one mesh and time).
        config_json: JSON string of the run configuration (for reference).
    """
    if not HAS_H5PY:
        raise RuntimeError("Cannot save checkpoint: h5py not installed")
    if not blocks:
        raise ValueError("no mesh blocks to checkpoint")

    time = blocks[0].time
    logger.info("Saving checkpoint to %s at t=%.4e (%d blocks)", filename, time, len(blocks))

    with h5py.File(filename, "w") as f:
        f.attrs["time"] = time
        f.attrs["checkpoint_version"] = CHECKPOINT_VERSION
        f.attrs["mesh_json"] = blocks[0].mesh.model_dump_json()
        if config_json is not None:
            f.attrs["config_json"] = config_json

        for idx, block in enumerate(blocks):
            grp = f.create_group(f"block_{idx:04d}")
            grp.attrs["shape"] = np.array(block.shape)
            grp.attrs["disp"] = np.array(block.global_start())
            for key, arr in block.arrays.items():
                grp.create_dataset(key, data=arr)

    logger.info("Checkpoint saved: %s", filename)


def load_checkpoint(filename: str) -> dict[str, Any]:
    """Load mesh-block data from an HDF5 checkpoint file.

    Args:
        filename: Input HDF5 file path.

    Returns:
        Dictionary with keys:
            - "time": float (simulation time)
            - "mesh": MeshConfig
            - "blocks": list of dicts with "shape", "disp" and "state"
            - "config_json": str or None (config for reference)
    """
    if not HAS_H5PY:
        raise RuntimeError("Cannot load checkpoint: h5py not installed")

    logger.info("Loading checkpoint from %s", filename)

    with h5py.File(filename, "r") as f:
        time = float(f.attrs["time"])
        mesh = MeshConfig.model_validate_json(str(f.attrs["mesh_json"]))

        config_json = None
        if "config_json" in f.attrs:
            config_json = str(f.attrs["config_json"])

        blocks = []
        for name in sorted(f):
            grp = f[name]
            blocks.append({
                "shape": tuple(int(n) for n in grp.attrs["shape"]),
                "disp": tuple(int(n) for n in grp.attrs["disp"]),
                "state": {key: np.array(grp[key]) for key in grp},
            })

    logger.info("Checkpoint loaded: t=%.4e, %d blocks", time, len(blocks))

    return {
        "time": time,
        "mesh": mesh,
        "blocks": blocks,
        "config_json": config_json,
    }


def restore_blocks(data: dict[str, Any], physics: PhysicsConfig) -> list[MeshBlock]:
    """Rebuild mesh blocks from :func:`load_checkpoint` output."""
    blocks = []
    for entry in data["blocks"]:
        nx1, nx2, nx3 = entry["shape"]
        idisp, jdisp, kdisp = entry["disp"]
        block = MeshBlock(
            mesh=data["mesh"], physics=physics,
            nx1=nx1, nx2=nx2, nx3=nx3,
            idisp=idisp, jdisp=jdisp, kdisp=kdisp,
            time=data["time"],
        )
        block.load_state(entry["state"])
        blocks.append(block)
    return blocks
