"""Tests for the field and perturbation recipes of the shearing sheet."""

from __future__ import annotations

import math

import numpy as np
import pytest

OMEGA = 1.0e-3


def _block(mesh=None, **physics):
    from shearbox.config import MeshConfig, PhysicsConfig
    from shearbox.core.mesh import MeshBlock

    mesh = mesh if mesh is not None else MeshConfig(nx1=8, nx2=8, nx3=8)
    return MeshBlock(mesh, PhysicsConfig(**physics), *mesh.shape)


def _problem(**kwargs):
    from shearbox.config import ProblemConfig

    kwargs.setdefault("amp", 0.025)
    kwargs.setdefault("beta", 4000.0)
    return ProblemConfig(**kwargs)


# ====================================================
# Helpers
# ====================================================


class TestScalars:

    def test_background_pressure(self):
        from shearbox.config import PhysicsConfig
        from shearbox.problem.recipes import background_pressure

        assert background_pressure(PhysicsConfig()) == 1.0e-6
        assert background_pressure(PhysicsConfig(eos="isothermal", iso_csound=0.1)) == pytest.approx(0.01)

    def test_field_strength(self):
        from shearbox.config import PhysicsConfig
        from shearbox.problem.recipes import field_strength

        assert field_strength(4000.0, PhysicsConfig()) == pytest.approx(math.sqrt(2.0e-6 / 4000.0))

    def test_uniform_vx_amplitude_unscaled(self):
        """ipert = 2 takes amp as the x-velocity itself under either EOS."""
        from shearbox.config import PhysicsConfig
        from shearbox.problem.recipes import scaled_amplitude

        assert scaled_amplitude(_problem(ipert=2), PhysicsConfig()) == 0.025
        isothermal = PhysicsConfig(eos="isothermal", iso_csound=0.2)
        assert scaled_amplitude(_problem(ipert=2), isothermal) == 0.025

    def test_amplitude_in_sound_speed_units(self):
        from shearbox.config import PhysicsConfig
        from shearbox.problem.recipes import scaled_amplitude

        adiabatic = PhysicsConfig()
        isothermal = PhysicsConfig(eos="isothermal", iso_csound=0.2)
        cs = math.sqrt(5.0 / 3.0 * 1.0e-6)
        assert scaled_amplitude(_problem(ipert=3), adiabatic) == pytest.approx(0.025 * cs)
        assert scaled_amplitude(_problem(ipert=3), isothermal) == pytest.approx(0.025 * 0.2)
        assert scaled_amplitude(_problem(ipert=1), adiabatic) == 0.025


class TestFaceFields:

    def test_upper_face_equals_lower(self):
        """The extra upper face closes the field periodically over the block."""
        from shearbox.problem.recipes import face_fields, field_components

        block = _block()
        b1i, b2i, b3i = face_fields(block, field_components(3, 1.0, 2.0 * math.pi))
        np.testing.assert_array_equal(b1i[-1], b1i[0])
        np.testing.assert_array_equal(b2i[:, -1], b2i[:, 0])
        np.testing.assert_array_equal(b3i[:, :, -1], b3i[:, :, 0])

    def test_face_positions(self):
        from shearbox.problem.recipes import face_fields

        block = _block()
        components = (
            lambda x, y, z: x + 0.0 * (y + z),
            lambda x, y, z: y + 0.0 * (x + z),
            lambda x, y, z: z + 0.0 * (x + y),
        )
        b1i, b2i, b3i = face_fields(block, components)
        faces = -0.5 + np.arange(8) / 8.0
        np.testing.assert_allclose(b1i[:8, 0, 0], faces)
        np.testing.assert_allclose(b2i[0, :8, 0], faces)
        np.testing.assert_allclose(b3i[0, 0, :8], faces)
        assert b1i.shape == (9, 8, 8)
        assert b2i.shape == (8, 9, 8)
        assert b3i.shape == (8, 8, 9)

    def test_faces_half_cell_below_centers(self, cube_mesh, adiabatic_mhd):
        """Face coordinates are the cell centres shifted down by half a cell."""
        from shearbox.core.mesh import MeshBlock
        from shearbox.problem.recipes import face_fields

        block = MeshBlock(cube_mesh, adiabatic_mhd, 4, 8, 8, idisp=4)
        components = (
            lambda x, y, z: x + 0.0 * (y + z),
            lambda x, y, z: y + 0.0 * (x + z),
            lambda x, y, z: z + 0.0 * (x + y),
        )
        b1i, b2i, b3i = face_fields(block, components)
        x1, x2, x3 = block.cell_centers()
        np.testing.assert_array_equal(b1i[:4, 0, 0], x1.ravel() - 0.5 * block.dx1)
        np.testing.assert_array_equal(b2i[0, :8, 0], x2.ravel() - 0.5 * block.dx2)
        np.testing.assert_array_equal(b3i[0, 0, :8], x3.ravel() - 0.5 * block.dx3)
        assert b1i[0, 0, 0] == 0.0

    def test_unknown_ifield(self):
        from shearbox.errors import ConfigurationError
        from shearbox.problem.recipes import field_components

        with pytest.raises(ConfigurationError):
            field_components(7, 1.0, 1.0)


# ====================================================
# Field configurations
# ====================================================


class TestFieldConfigurations:

    def test_ifield1_zero_net_flux(self):
        from shearbox.problem.recipes import initialize_block

        block = _block()
        result = initialize_block(block, _problem(ipert=2, ifield=1))
        b0 = math.sqrt(2.0e-6 / 4000.0)
        x1, _, _ = block.cell_centers()
        assert result.b0 == pytest.approx(b0)
        np.testing.assert_allclose(
            block.B3c, np.broadcast_to(b0 * np.sin(2.0 * math.pi * x1), block.shape), rtol=1e-12,
        )
        assert not block.B1i.any()
        assert not block.B2i.any()
        assert abs(block.B3c.mean()) < 1e-18

    def test_ifield2_uniform(self):
        from shearbox.problem.recipes import initialize_block

        block = _block()
        initialize_block(block, _problem(ipert=2, ifield=2))
        b0 = math.sqrt(2.0e-6 / 4000.0)
        np.testing.assert_allclose(block.B3i, b0)
        np.testing.assert_allclose(block.B3c, b0)
        assert not block.B2c.any()

    def test_ifield3_helical(self):
        from shearbox.problem.recipes import initialize_block

        block = _block()
        initialize_block(block, _problem(ipert=2, ifield=3))
        b0 = math.sqrt(2.0e-6 / 4000.0)
        x1, _, _ = block.cell_centers()
        expected = np.broadcast_to(b0 * np.cos(2.0 * math.pi * x1), block.shape)
        np.testing.assert_allclose(block.B2c, expected, rtol=1e-12, atol=1e-20)
        np.testing.assert_allclose(block.B2c ** 2 + block.B3c ** 2, b0 ** 2, rtol=1e-12)

    def test_ifield4_net_toroidal_and_vertical(self):
        from shearbox.problem.recipes import initialize_block

        block = _block()
        initialize_block(block, _problem(ipert=2, ifield=4))
        b = math.sqrt(2.0e-6 / 4000.0) / math.sqrt(2.0)
        np.testing.assert_allclose(block.B2c, b)
        np.testing.assert_allclose(block.B3c, b)
        assert not block.B1c.any()

    def test_ifield0_needs_field_recipe(self):
        from shearbox.errors import ConfigurationError
        from shearbox.problem.recipes import initialize_block

        with pytest.raises(ConfigurationError, match="ifield=0"):
            initialize_block(_block(), _problem(ipert=2, ifield=0))

    def test_ifield0_allowed_for_hydro(self):
        from shearbox.problem.recipes import initialize_block

        block = _block(mhd=False)
        result = initialize_block(block, _problem(ipert=2, ifield=0))
        assert result.ifield == 0
        assert "B1i" not in block.arrays


# ====================================================
# Perturbations
# ====================================================


class TestEpicyclic:
    """ipert = 2 with the scenario of the HGB runs."""

    def test_state(self):
        from shearbox.problem.recipes import initialize_block

        block = _block()
        result = initialize_block(block, _problem(ipert=2, omega=OMEGA))
        x1, _, _ = block.cell_centers()

        assert result.amp == 0.025
        np.testing.assert_array_equal(block.d, 1.0)
        np.testing.assert_array_equal(block.M1, 0.025)
        np.testing.assert_allclose(
            block.M2, np.broadcast_to(-1.5 * OMEGA * x1, block.shape), rtol=1e-14, atol=1e-20,
        )
        np.testing.assert_array_equal(block.M3, 0.0)

    def test_energy_accounting(self):
        from shearbox.problem.recipes import initialize_block

        block = _block()
        initialize_block(block, _problem(ipert=2, omega=OMEGA))
        m2 = block.M1 ** 2 + block.M2 ** 2 + block.M3 ** 2
        b2 = block.B1c ** 2 + block.B2c ** 2 + block.B3c ** 2
        expected = 1.0e-6 / (2.0 / 3.0) + 0.5 * m2 / block.d + 0.5 * b2
        np.testing.assert_allclose(block.E, expected, rtol=1e-12)

    def test_orbital_advection_drops_shear(self):
        from shearbox.problem.recipes import initialize_block

        block = _block(orbital_advection=True)
        initialize_block(block, _problem(ipert=2, omega=OMEGA))
        np.testing.assert_array_equal(block.M2, 0.0)

    def test_isothermal_has_no_energy(self):
        from shearbox.problem.recipes import initialize_block

        block = _block(eos="isothermal", iso_csound=0.1)
        result = initialize_block(block, _problem(ipert=2))
        assert "E" not in block.arrays
        assert result.amp == 0.025
        np.testing.assert_array_equal(block.M1, 0.025)


class TestRandomPerturbation:

    def test_zero_amplitude_is_background(self):
        """With amp = 0 the state is the unperturbed sheared disk."""
        from shearbox.problem.recipes import initialize_block
        from shearbox.rng import Ran2

        block = _block()
        initialize_block(block, _problem(ipert=1, amp=0.0, omega=OMEGA), rng=Ran2(-1))
        x1, _, _ = block.cell_centers()
        m2 = np.broadcast_to(-1.5 * OMEGA * x1, block.shape)
        b2 = block.B3c ** 2
        np.testing.assert_array_equal(block.d, 1.0)
        np.testing.assert_array_equal(block.M1, 0.0)
        np.testing.assert_allclose(block.M2, m2, rtol=1e-14, atol=1e-20)
        np.testing.assert_allclose(block.E, 1.5e-6 + 0.5 * m2 ** 2 + 0.5 * b2, rtol=1e-12)

    def test_draw_order(self):
        """Four deviates per cell, taken with x fastest, then y, then z."""
        from shearbox.problem.recipes import initialize_block
        from shearbox.rng import Ran2

        block = _block(eos="isothermal", iso_csound=1.0e-3, mhd=False)
        amp = 0.025
        initialize_block(block, _problem(ipert=1, amp=amp), rng=Ran2(-1))
        draws = Ran2(-1).draw(4 * 8 * 8 * 8)
        cs = 1.0e-3

        def density(n):
            return 1.0 * (1.0 + 2.0 * (amp * (draws[4 * n] - 0.5)))

        assert block.d[0, 0, 0] == pytest.approx(density(0), rel=1e-15)
        assert block.d[1, 0, 0] == pytest.approx(density(1), rel=1e-15)
        assert block.d[0, 1, 0] == pytest.approx(density(8), rel=1e-15)
        assert block.d[0, 0, 1] == pytest.approx(density(64), rel=1e-15)
        expected_vx = 0.4 * (amp * (draws[1] - 0.5)) * cs
        assert block.M1[0, 0, 0] == pytest.approx(block.d[0, 0, 0] * expected_vx, rel=1e-14)

    def test_adiabatic_perturbs_pressure(self):
        from shearbox.problem.recipes import initialize_block
        from shearbox.rng import Ran2

        block = _block()
        initialize_block(block, _problem(ipert=1), rng=Ran2(-1))
        np.testing.assert_array_equal(block.d, 1.0)
        assert block.M1.std() > 0.0

    def test_bounded(self):
        """|P - P0| <= amp * P0 and |dV| <= 0.2 * amp * c_s."""
        from shearbox.problem.recipes import initialize_block
        from shearbox.rng import Ran2

        amp = 0.5
        block = _block(eos="isothermal", iso_csound=1.0e-3, mhd=False)
        initialize_block(block, _problem(ipert=1, amp=amp), rng=Ran2(-99))
        assert np.abs(block.d - 1.0).max() <= amp
        vx = block.M1 / block.d
        assert np.abs(vx).max() <= 0.2 * amp * 1.0e-3

    def test_requires_stream(self):
        from shearbox.problem.recipes import initialize_block

        with pytest.raises(ValueError, match="random stream"):
            initialize_block(_block(), _problem(ipert=1))


class TestVorticalWave:

    def test_incompressible_velocity(self):
        """ipert = 3: vy = -amp*(kx/ky)*sin(kx x + ky y) so kx*vx + ky*vy = 0."""
        from shearbox.config import MeshConfig
        from shearbox.problem.recipes import initialize_block

        mesh = MeshConfig(nx1=16, nx2=16, nx3=1)
        block = _block(mesh, eos="isothermal", iso_csound=1.0e-3, mhd=False, orbital_advection=True)
        result = initialize_block(block, _problem(ipert=3, amp=1.0e-4, nwx=-4))
        amp = 1.0e-4 * 1.0e-3
        x1, x2, _ = block.cell_centers()
        wave = np.sin(result.kx * x1 + result.ky * x2)

        assert result.kx == pytest.approx(-8.0 * math.pi)
        np.testing.assert_allclose(block.M1, np.broadcast_to(amp * wave, block.shape), atol=1e-20)
        np.testing.assert_allclose(result.kx * block.M1 + result.ky * block.M2, 0.0, atol=1e-18)


class TestJGGWaves:

    def test_fig11_forces_ifield0(self):
        from shearbox.problem.recipes import initialize_block

        block = _block(eos="isothermal", iso_csound=1.0)
        result = initialize_block(block, _problem(ipert=6, ifield=1, omega=1.0, beta=1.0, nwx=-2))
        assert result.ifield == 0
        np.testing.assert_allclose(block.B1c.mean(), 0.1, atol=1e-9)
        np.testing.assert_allclose(block.B2c.mean(), 0.2, atol=1e-9)
        assert not block.B3i.any()

    def test_fig11_face_values(self):
        from shearbox.problem.recipes import initialize_block

        block = _block(eos="isothermal", iso_csound=1.0)
        result = initialize_block(block, _problem(ipert=6, omega=1.0, beta=1.0, nwx=-2))
        x1f = -0.5 + np.arange(8) / 8.0
        _, x2, x3 = block.cell_centers()
        expected = 5.48082e-7 * np.cos(
            result.kx * x1f[:, None, None] + result.ky * x2 + result.kz * x3
        ) + 0.1
        np.testing.assert_allclose(block.B1i[:8], expected, rtol=1e-12)
        np.testing.assert_array_equal(block.B1i[8], block.B1i[0])

    def test_fig11_density(self):
        from shearbox.problem.recipes import initialize_block

        block = _block(eos="isothermal", iso_csound=1.0)
        initialize_block(block, _problem(ipert=6, omega=1.0, beta=1.0, nwx=-2))
        assert np.abs(block.d - 1.0).max() <= 5.48082e-6 + 1e-15

    def test_fig9_mean_vertical_field(self):
        from shearbox.problem.recipes import initialize_block

        block = _block(eos="isothermal", iso_csound=1.0)
        result = initialize_block(block, _problem(ipert=5, ifield=2, omega=1.0, beta=1.0, nwx=-2))
        bz0 = math.sqrt(15.0) / 16.0 / result.kz
        assert result.ifield == 0
        np.testing.assert_allclose(block.B3c.mean(), bz0, rtol=1e-6)

    def test_fig9_adiabatic_pressure(self):
        """Under an adiabatic EOS the background pressure is P0."""
        from shearbox.problem.recipes import initialize_block

        block = _block()
        initialize_block(block, _problem(ipert=5, omega=1.0, beta=1.0, nwx=-2))
        m2 = block.M1 ** 2 + block.M2 ** 2 + block.M3 ** 2
        b2 = block.B1c ** 2 + block.B2c ** 2 + block.B3c ** 2
        thermal = block.E - 0.5 * m2 / block.d - 0.5 * b2
        np.testing.assert_allclose(thermal, 1.5e-6, rtol=1e-6)


class TestGridChecks:

    def test_one_dimensional_rejected(self):
        from shearbox.config import MeshConfig
        from shearbox.errors import ConfigurationError
        from shearbox.problem.recipes import initialize_block

        block = _block(MeshConfig(nx1=8, nx2=1, nx3=1))
        with pytest.raises(ConfigurationError, match="2D or 3D"):
            initialize_block(block, _problem(ipert=2))

    def test_two_dimensional_accepted(self):
        from shearbox.config import MeshConfig
        from shearbox.problem.recipes import initialize_block

        block = _block(MeshConfig(nx1=8, nx2=8, nx3=1))
        initialize_block(block, _problem(ipert=2))
        assert block.ndim == 2
        np.testing.assert_array_equal(block.d, 1.0)
