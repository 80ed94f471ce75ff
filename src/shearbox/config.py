"""Pydantic v2 configuration system for shearing-box simulations.

Provides validated, typed configuration with submodels for the build
descriptor (equation of state, magnetic fields, transport options), the
global mesh and the problem parameters. Supports JSON I/O and conversion
from an athinput :class:`~shearbox.io.athinput.ParameterInput`.
"""

from __future__ import annotations

import json
import math
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, model_validator

if TYPE_CHECKING:
    from shearbox.io.athinput import ParameterInput


class PhysicsConfig(BaseModel):
    """Solver build options that select code paths in the problem generator.

    These replace the configure-time switches of the host MHD code
    (ADIABATIC/ISOTHERMAL, MHD, FARGO, OHMIC, NAVIER_STOKES).
    """

    model_config = ConfigDict(frozen=True)

    eos: str = Field("adiabatic", description="Equation of state: 'adiabatic' or 'isothermal'")
    gamma: float = Field(5.0 / 3.0, gt=1, description="Adiabatic index")
    iso_csound: float = Field(1.0e-3, gt=0, description="Isothermal sound speed")
    mhd: bool = Field(True, description="Evolve magnetic fields")
    orbital_advection: bool = Field(
        False,
        description="Background shear is advected by the solver (FARGO); omit it from the state",
    )
    vertical_gravity: bool = Field(False, description="Add the vertical tidal term 0.5*Omega^2*z^2")
    ohmic: bool = Field(False, description="Ohmic resistivity enabled (reads problem/eta)")
    navier_stokes: bool = Field(False, description="Navier-Stokes viscosity enabled (reads problem/nu)")

    @model_validator(mode="after")
    def validate_eos(self) -> PhysicsConfig:
        if self.eos not in ("adiabatic", "isothermal"):
            raise ValueError(f"eos must be 'adiabatic' or 'isothermal', got '{self.eos}'")
        return self

    @classmethod
    def from_parameter_input(cls, pin: ParameterInput, **options) -> PhysicsConfig:
        """Build options from keyword switches, taking gamma/iso_csound from ``<hydro>``."""
        defaults = cls.model_fields
        options.setdefault("gamma", pin.get_real_default("hydro", "gamma", defaults["gamma"].default))
        options.setdefault(
            "iso_csound",
            pin.get_real_default("hydro", "iso_csound", defaults["iso_csound"].default),
        )
        return cls(**options)

    @property
    def adiabatic(self) -> bool:
        return self.eos == "adiabatic"

    @property
    def gamma_1(self) -> float:
        return self.gamma - 1.0

    @property
    def iso_csound2(self) -> float:
        return self.iso_csound * self.iso_csound


class MeshConfig(BaseModel):
    """Global (root) mesh: cell counts and physical extents."""

    nx1: int = Field(..., ge=1, description="Cells along x (radial)")
    nx2: int = Field(..., ge=1, description="Cells along y (azimuthal)")
    nx3: int = Field(1, ge=1, description="Cells along z (vertical)")
    x1min: float = Field(-0.5, description="Lower x boundary")
    x1max: float = Field(0.5, description="Upper x boundary")
    x2min: float = Field(-0.5, description="Lower y boundary")
    x2max: float = Field(0.5, description="Upper y boundary")
    x3min: float = Field(-0.5, description="Lower z boundary")
    x3max: float = Field(0.5, description="Upper z boundary")

    @model_validator(mode="after")
    def check_extents(self) -> MeshConfig:
        for axis in (1, 2, 3):
            lo = getattr(self, f"x{axis}min")
            hi = getattr(self, f"x{axis}max")
            if hi <= lo:
                raise ValueError(f"x{axis}max ({hi}) must exceed x{axis}min ({lo})")
        return self

    @property
    def lx(self) -> float:
        return self.x1max - self.x1min

    @property
    def ly(self) -> float:
        return self.x2max - self.x2min

    @property
    def lz(self) -> float:
        return self.x3max - self.x3min

    @property
    def shape(self) -> tuple[int, int, int]:
        return (self.nx1, self.nx2, self.nx3)

    @property
    def spacing(self) -> tuple[float, float, float]:
        return (self.lx / self.nx1, self.ly / self.nx2, self.lz / self.nx3)

    @classmethod
    def from_parameter_input(cls, pin: ParameterInput) -> MeshConfig:
        """Read the ``<mesh>`` (or legacy ``<grid>``) block."""
        block = "mesh" if pin.has_block("mesh") else "grid"
        return cls(
            nx1=pin.get_integer(block, "nx1"),
            nx2=pin.get_integer_default(block, "nx2", 1),
            nx3=pin.get_integer_default(block, "nx3", 1),
            x1min=pin.get_real(block, "x1min"),
            x1max=pin.get_real(block, "x1max"),
            x2min=pin.get_real(block, "x2min"),
            x2max=pin.get_real(block, "x2max"),
            x3min=pin.get_real(block, "x3min"),
            x3max=pin.get_real(block, "x3max"),
        )


class ProblemConfig(BaseModel):
    """Scenario parameters of the ``<problem>`` block."""

    omega: float = Field(1.0e-3, description="Rotation rate Omega")
    amp: float = Field(..., description="Perturbation amplitude")
    beta: float = Field(..., gt=0, description="Plasma beta of the initial field")
    ifield: int = Field(1, ge=0, le=4, description="Field configuration selector")
    ipert: int = Field(1, ge=1, le=6, description="Perturbation selector")
    nwx: int = Field(1, description="Waves per Lx (negative for a leading wave)")
    nwy: int = Field(1, description="Waves per Ly")
    nwz: int = Field(1, description="Waves per Lz")
    eta: float | None = Field(None, ge=0, description="Ohmic resistivity")
    nu: float | None = Field(None, ge=0, description="Kinematic viscosity")
    data_dir: str = Field(".", description="Directory holding Data-<N>-FPwave.dat tables")

    @model_validator(mode="after")
    def check_wave_counts(self) -> ProblemConfig:
        if self.nwy == 0 or self.nwz == 0:
            raise ValueError("nwy and nwz must be nonzero")
        return self

    def wavenumbers(self, mesh: MeshConfig) -> tuple[float, float, float]:
        """Return (kx, ky, kz) for the requested number of waves per box length."""
        kx = (2.0 * math.pi / mesh.lx) * float(self.nwx)
        ky = (2.0 * math.pi / mesh.ly) * float(self.nwy)
        kz = (2.0 * math.pi / mesh.lz) * float(self.nwz)
        return kx, ky, kz

    @classmethod
    def from_parameter_input(cls, pin: ParameterInput, physics: PhysicsConfig) -> ProblemConfig:
        """Read the ``<problem>`` block, applying the documented defaults.

        ``eta`` and ``nu`` are required only when the corresponding transport
        model is enabled in ``physics``.
        """
        values = {
            "omega": pin.get_real_default("problem", "omega", 1.0e-3),
            "amp": pin.get_real("problem", "amp"),
            "beta": pin.get_real("problem", "beta"),
            "ifield": pin.get_integer_default("problem", "ifield", 1),
            "ipert": pin.get_integer_default("problem", "ipert", 1),
            "nwx": pin.get_integer_default("problem", "nwx", 1),
            "nwy": pin.get_integer_default("problem", "nwy", 1),
            "nwz": pin.get_integer_default("problem", "nwz", 1),
            "data_dir": pin.get_string_default("problem", "data_dir", "."),
        }
        if physics.ohmic:
            values["eta"] = pin.get_real("problem", "eta")
        if physics.navier_stokes:
            values["nu"] = pin.get_real("problem", "nu")
        return cls(**values)


class ShearingBoxParameters(BaseModel):
    """Immutable runtime parameters shared by the potential and diagnostics.

    Built once at setup (and again at restart) and bound by closure into the
    gravity potential, the history functions and the user expressions.
    """

    model_config = ConfigDict(frozen=True)

    omega: float = 1.0e-3
    eta: float | None = None
    nu: float | None = None
    physics: PhysicsConfig = Field(default_factory=PhysicsConfig)


class ShearingBoxConfig(BaseModel):
    """Top-level configuration of a shearing-box run."""

    physics: PhysicsConfig = Field(default_factory=PhysicsConfig)
    mesh: MeshConfig
    problem: ProblemConfig

    @model_validator(mode="after")
    def validate_transport(self) -> ShearingBoxConfig:
        if self.physics.ohmic and self.problem.eta is None:
            raise ValueError("ohmic resistivity enabled but problem.eta is not set")
        if self.physics.navier_stokes and self.problem.nu is None:
            raise ValueError("viscosity enabled but problem.nu is not set")
        return self

    def parameters(self) -> ShearingBoxParameters:
        return ShearingBoxParameters(
            omega=self.problem.omega,
            eta=self.problem.eta,
            nu=self.problem.nu,
            physics=self.physics,
        )

    # --- I/O helpers ---

    @classmethod
    def from_parameter_input(
        cls, pin: ParameterInput, physics: PhysicsConfig | None = None,
    ) -> ShearingBoxConfig:
        physics = physics if physics is not None else PhysicsConfig()
        return cls(
            physics=physics,
            mesh=MeshConfig.from_parameter_input(pin),
            problem=ProblemConfig.from_parameter_input(pin, physics),
        )

    @classmethod
    def from_file(cls, path: str | Path) -> ShearingBoxConfig:
        """Load configuration from a JSON file."""
        path = Path(path)
        with path.open() as f:
            data = json.load(f)
        return cls(**data)

    def to_json(self, path: str | Path | None = None) -> str:
        """Serialize to JSON string, optionally writing to file."""
        out = self.model_dump_json(indent=2)
        if path is not None:
            Path(path).write_text(out)
        return out
