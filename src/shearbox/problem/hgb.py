"""Problem generator for the 3D shearing sheet.

Based on the initial conditions of "Local Three-dimensional
Magnetohydrodynamic Simulations of Accretion Disks" by Hawley, Gammie &
Balbus (HGB). The field geometry (``ifield``) and perturbation (``ipert``)
recipes live in :mod:`shearbox.problem.recipes`; this module is the glue
between them and the host framework:

- ``generate``: read ``<problem>`` parameters, seed the random stream from
  the block's global offset, fill the block, enroll the tidal potential and
  the history variables, read transport coefficients.
- ``read_restart``: the framework restores the state itself; only Omega and
  the transport coefficients are re-read and the callbacks re-enrolled.
- ``get_user_expression``: ``"dVy"`` for output of the y-velocity
  fluctuation.

Example::

    from shearbox.config import MeshConfig, PhysicsConfig
    from shearbox.core.bases import SolverHooks
    from shearbox.core.mesh import MeshBlock
    from shearbox.io.athinput import ParameterInput
    from shearbox.problem.hgb import ShearingBoxProblem

    pin = ParameterInput.from_file("athinput.hgb")
    physics = PhysicsConfig(eos="adiabatic", mhd=True)
    problem = ShearingBoxProblem(physics)
    mesh = MeshConfig.from_parameter_input(pin)
    block = MeshBlock(mesh, physics, *mesh.shape)
    hooks = SolverHooks()
    problem.generate(block, pin, hooks)
"""

from __future__ import annotations

import logging

from shearbox.config import PhysicsConfig, ProblemConfig, ShearingBoxParameters
from shearbox.core.bases import BlockFunction, ProblemGeneratorBase, SolverHooks
from shearbox.core.mesh import MeshBlock
from shearbox.diagnostics.history import delta_vy, enroll_history
from shearbox.errors import ConfigurationError
from shearbox.io.athinput import ParameterInput
from shearbox.problem.fp_wave import check_fp_wave_bounds, load_fp_wave_table
from shearbox.problem.potential import ShearingBoxPotential
from shearbox.problem.recipes import RecipeResult, initialize_block
from shearbox.rng import Ran2, seed_from_offset

logger = logging.getLogger(__name__)

# Derived quantities available to the output subsystem by name
_USER_EXPRESSIONS = {
    "dVy": delta_vy,
}


class ShearingBoxProblem(ProblemGeneratorBase):
    """HGB shearing-sheet problem generator.

    Args:
        physics: Build options of the host solver.
    """

    def __init__(self, physics: PhysicsConfig | None = None) -> None:
        self.physics = physics if physics is not None else PhysicsConfig()
        self.params: ShearingBoxParameters | None = None
        self.problem: ProblemConfig | None = None
        self.result: RecipeResult | None = None

    # --- setup ---

    def generate(self, block: MeshBlock, pin: ParameterInput, hooks: SolverHooks) -> None:
        if block.physics != self.physics:
            raise ConfigurationError("mesh block was allocated for different physics options")
        if block.mesh.nx2 == 1:
            raise ConfigurationError("HGB only works on a 2D or 3D grid")

        problem = ProblemConfig.from_parameter_input(pin, self.physics)
        self.problem = problem
        self.params = self._parameters(problem.omega, problem.eta, problem.nu)

        table = None
        if problem.ipert == 4:
            table = load_fp_wave_table(block.mesh.nx1, problem.data_dir)
            check_fp_wave_bounds(block.mesh)

        rng = None
        if problem.ipert == 1:
            ixs, jxs, kxs = block.global_start()
            seed = seed_from_offset(ixs, jxs, kxs, block.mesh.nx1, block.mesh.nx2)
            rng = Ran2(seed)
            logger.debug("Block at %s seeded with %d", block.global_start(), seed)

        self.result = initialize_block(block, problem, rng=rng, table=table)
        logger.info(
            "HGB setup: ipert=%d ifield=%d omega=%.3e beta=%.3e B0=%.4e on %s block at %s",
            self.result.ipert, self.result.ifield, problem.omega, problem.beta,
            self.result.b0, block.shape, block.global_start(),
        )

        self._enroll(hooks, ipert=problem.ipert)

    # --- restart ---

    def read_restart(self, block: MeshBlock, pin: ParameterInput, hooks: SolverHooks) -> None:
        omega = pin.get_real_default("problem", "omega", 1.0e-3)
        eta = pin.get_real("problem", "eta") if self.physics.ohmic else None
        nu = pin.get_real("problem", "nu") if self.physics.navier_stokes else None
        self.params = self._parameters(omega, eta, nu)
        logger.info("HGB restart at t=%.4e: omega=%.3e", block.time, omega)

        self._enroll(hooks, ipert=None)

    # --- user functions ---

    def get_user_expression(self, name: str) -> BlockFunction | None:
        fn = _USER_EXPRESSIONS.get(name)
        if fn is None:
            return None

        def expression(block: MeshBlock):
            return fn(block, params=self._require_params())

        return expression

    # --- helpers ---

    def _parameters(self, omega: float, eta: float | None, nu: float | None) -> ShearingBoxParameters:
        return ShearingBoxParameters(omega=omega, eta=eta, nu=nu, physics=self.physics)

    def _require_params(self) -> ShearingBoxParameters:
        if self.params is None:
            raise RuntimeError("problem parameters are set by generate() or read_restart()")
        return self.params

    def _enroll(self, hooks: SolverHooks, ipert: int | None) -> None:
        params = self._require_params()
        hooks.enroll_gravity_potential(ShearingBoxPotential(params))
        enroll_history(hooks.history, params, ipert=ipert)
