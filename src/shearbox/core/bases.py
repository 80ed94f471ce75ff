"""Core abstract base classes and shared data structures.

Defines the interface contracts between a problem generator and the host
MHD framework:
- ``SolverHooks`` — where a problem enrolls its gravity potential and history
- ``ProblemGeneratorBase`` — ABC for problem setup/restart/user hooks
- ``DiagnosticsBase`` — ABC for diagnostics recorders
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import IO, TYPE_CHECKING, Any, Callable

import numpy as np

if TYPE_CHECKING:
    from shearbox.core.mesh import MeshBlock
    from shearbox.diagnostics.history import HistoryRegistry
    from shearbox.io.athinput import ParameterInput

# phi(x1, x2, x3)
PotentialFunction = Callable[[Any, Any, Any], Any]

# Per-cell derived quantity over a whole block, shape (nx1, nx2, nx3)
BlockFunction = Callable[["MeshBlock"], np.ndarray]


def _new_registry() -> HistoryRegistry:
    from shearbox.diagnostics.history import HistoryRegistry

    return HistoryRegistry()


@dataclass
class SolverHooks:
    """Callbacks the framework accepts from a problem generator.

    Attributes:
        gravity_potential: Static gravitational potential used for the
            gravity source terms, or None for no gravity.
        history: Enrolled history variables, reduced by the framework.
    """

    gravity_potential: PotentialFunction | None = None
    history: HistoryRegistry = field(default_factory=_new_registry)

    def enroll_gravity_potential(self, fn: PotentialFunction) -> None:
        self.gravity_potential = fn


class ProblemGeneratorBase(ABC):
    """Abstract base for problem generators.

    ``generate`` runs once before time integration; ``read_restart`` runs
    instead of it when resuming from saved state.
    """

    @abstractmethod
    def generate(self, block: MeshBlock, pin: ParameterInput, hooks: SolverHooks) -> None:
        """Fill ``block`` with the initial state and enroll callbacks.

        Args:
            block: Mesh block to initialise.
            pin: Parameter input.
            hooks: Framework callback registry.
        """

    @abstractmethod
    def read_restart(self, block: MeshBlock, pin: ParameterInput, hooks: SolverHooks) -> None:
        """Re-enroll callbacks after the framework restored ``block``."""

    def write_restart(self, block: MeshBlock, fp: IO[bytes]) -> None:
        """Append problem-specific data to a restart file (none by default)."""

    def read_restart_payload(self, block: MeshBlock, fp: IO[bytes]) -> None:
        """Read back what :meth:`write_restart` wrote (none by default)."""

    def get_user_expression(self, name: str) -> BlockFunction | None:
        """Return the derived quantity called ``name``, or None if unknown."""
        return None

    def get_user_output_function(self, name: str) -> Callable[..., Any] | None:
        """Return a problem-specific output function, or None if unknown."""
        return None

    def user_work_in_loop(self, block: MeshBlock) -> None:
        """Problem-specific work once per timestep."""

    def user_work_after_loop(self, block: MeshBlock) -> None:
        """Problem-specific work after the main loop."""


class DiagnosticsBase(ABC):
    """Abstract base for diagnostics recorders."""

    @abstractmethod
    def record(
        self,
        blocks: list[MeshBlock],
        time: float,
    ) -> None:
        """Record diagnostic quantities at the current timestep.

        Args:
            blocks: Mesh blocks making up the domain.
            time: Current simulation time.
        """

    def finalize(self) -> None:
        """Clean up resources (close files, flush buffers)."""
