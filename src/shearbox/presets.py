"""Named configuration presets for the published shearing-box tests.

Each preset is a dictionary that can be unpacked into
``ShearingBoxConfig(**preset)`` once the ``_meta`` entry is dropped
(:func:`get_preset` does this). Presets cover:
- HGB random-perturbation MRI run (default)
- Epicyclic oscillation (uniform Vx)
- Johnson & Gammie vortical shearing wave
- Fromang & Papaloizou nonlinear density wave (needs the 40-cell table)
- Johnson, Guan & Gammie (2008) MHD shearing waves, figures 9 and 11

Usage:
    from shearbox.presets import get_preset, list_presets
    config = get_preset("hgb")
"""

from __future__ import annotations

import copy
from typing import Any

from shearbox.config import ShearingBoxConfig

_PRESETS: dict[str, dict[str, Any]] = {
    "hgb": {
        "_meta": {
            "description": "HGB MRI: zero-net-flux Bz, random P and V perturbations",
            "reference": "Hawley, Gammie & Balbus (1995)",
        },
        "physics": {"eos": "adiabatic", "mhd": True},
        "mesh": {
            "nx1": 32, "nx2": 64, "nx3": 32,
            "x1min": -0.5, "x1max": 0.5,
            "x2min": -2.0, "x2max": 2.0,
            "x3min": -0.5, "x3max": 0.5,
        },
        "problem": {"omega": 1.0e-3, "amp": 0.025, "beta": 4000.0, "ifield": 1, "ipert": 1},
    },
    "epicyclic": {
        "_meta": {
            "description": "Epicyclic oscillation from a uniform radial velocity",
            "reference": "Hawley, Gammie & Balbus (1995)",
        },
        "physics": {"eos": "adiabatic", "mhd": True},
        "mesh": {
            "nx1": 16, "nx2": 16, "nx3": 16,
            "x1min": -0.5, "x1max": 0.5,
            "x2min": -0.5, "x2max": 0.5,
            "x3min": -0.5, "x3max": 0.5,
        },
        "problem": {"omega": 1.0e-3, "amp": 0.025, "beta": 4000.0, "ifield": 1, "ipert": 2},
    },
    "vortical_shwave": {
        "_meta": {
            "description": "Hydrodynamic vortical shearing wave, leading to trailing",
            "reference": "Johnson & Gammie (2005)",
        },
        "physics": {"eos": "isothermal", "iso_csound": 1.0e-3, "mhd": False},
        "mesh": {
            "nx1": 64, "nx2": 64, "nx3": 1,
            "x1min": -0.5, "x1max": 0.5,
            "x2min": -0.5, "x2max": 0.5,
            "x3min": -0.5, "x3max": 0.5,
        },
        "problem": {"omega": 1.0e-3, "amp": 1.0e-4, "beta": 4000.0, "ipert": 3, "nwx": -4},
    },
    "fp_density_wave": {
        "_meta": {
            "description": "Nonlinear density wave (requires Data-40-FPwave.dat)",
            "reference": "Fromang & Papaloizou (2007)",
        },
        "physics": {"eos": "isothermal", "iso_csound": 1.0, "mhd": False},
        "mesh": {
            "nx1": 40, "nx2": 4, "nx3": 1,
            "x1min": -4.7965, "x1max": 4.7965,
            "x2min": -0.5, "x2max": 0.5,
            "x3min": -0.5, "x3max": 0.5,
        },
        "problem": {"omega": 1.0, "amp": 0.0, "beta": 4000.0, "ipert": 4},
    },
    "jgg_fig9": {
        "_meta": {
            "description": "Compressive MHD shearing wave (JGG figure 9; not reproducible)",
            "reference": "Johnson, Guan & Gammie (2008)",
        },
        "physics": {"eos": "isothermal", "iso_csound": 1.0, "mhd": True},
        "mesh": {
            "nx1": 32, "nx2": 32, "nx3": 32,
            "x1min": -0.5, "x1max": 0.5,
            "x2min": -0.5, "x2max": 0.5,
            "x3min": -0.5, "x3max": 0.5,
        },
        "problem": {"omega": 1.0, "amp": 0.0, "beta": 1.0, "ipert": 5, "nwx": -2},
    },
    "jgg_fig11": {
        "_meta": {
            "description": "Nonaxisymmetric MHD shearing wave (JGG figure 11)",
            "reference": "Johnson, Guan & Gammie (2008)",
        },
        "physics": {"eos": "isothermal", "iso_csound": 1.0, "mhd": True},
        "mesh": {
            "nx1": 32, "nx2": 32, "nx3": 32,
            "x1min": -0.5, "x1max": 0.5,
            "x2min": -0.5, "x2max": 0.5,
            "x3min": -0.5, "x3max": 0.5,
        },
        "problem": {"omega": 1.0, "amp": 0.0, "beta": 1.0, "ipert": 6, "nwx": -2},
    },
}


def list_presets() -> list[dict[str, str]]:
    """Return name and description of every preset."""
    return [
        {"name": name, **preset["_meta"]}
        for name, preset in _PRESETS.items()
    ]


def get_preset_dict(name: str) -> dict[str, Any]:
    """Return a deep copy of the preset without its ``_meta`` entry."""
    if name not in _PRESETS:
        raise KeyError(f"Unknown preset '{name}'. Available: {', '.join(_PRESETS)}")
    data = copy.deepcopy(_PRESETS[name])
    data.pop("_meta")
    return data


def get_preset(name: str) -> ShearingBoxConfig:
    """Return the named preset as a validated configuration."""
    return ShearingBoxConfig(**get_preset_dict(name))
