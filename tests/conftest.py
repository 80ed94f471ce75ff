"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest

from shearbox.config import MeshConfig, PhysicsConfig
from shearbox.io.athinput import ParameterInput


@pytest.fixture
def adiabatic_mhd():
    """Default build: adiabatic EOS with magnetic fields."""
    return PhysicsConfig(eos="adiabatic", mhd=True)


@pytest.fixture
def isothermal_hydro():
    return PhysicsConfig(eos="isothermal", iso_csound=1.0e-3, mhd=False)


@pytest.fixture
def cube_mesh():
    """Small unit cube for fast unit tests."""
    return MeshConfig(nx1=8, nx2=8, nx3=8)


@pytest.fixture
def make_pin():
    """Factory for an athinput store with a unit-cube mesh and <problem> overrides."""

    def _make(mesh: MeshConfig | None = None, **problem):
        mesh = mesh if mesh is not None else MeshConfig(nx1=8, nx2=8, nx3=8)
        blocks = {
            "mesh": {
                "nx1": mesh.nx1, "nx2": mesh.nx2, "nx3": mesh.nx3,
                "x1min": repr(mesh.x1min), "x1max": repr(mesh.x1max),
                "x2min": repr(mesh.x2min), "x2max": repr(mesh.x2max),
                "x3min": repr(mesh.x3min), "x3max": repr(mesh.x3max),
            },
            "problem": {"amp": 0.025, "beta": 4000.0},
        }
        blocks["problem"].update(problem)
        return ParameterInput(blocks)

    return _make
