"""Athena-style athinput parameter files.

The athinput format is INI-like with ``<block>`` headers and
``key = value`` entries; ``#`` starts a comment anywhere on a line.
:class:`ParameterInput` parses that text and offers the section-scoped
getters the problem generator uses (with and without defaults).
:func:`generate_athinput` goes the other way, rendering a
:class:`~shearbox.config.ShearingBoxConfig` as athinput text.

Example::

    from shearbox.io.athinput import ParameterInput

    pin = ParameterInput.from_file("athinput.hgb")
    omega = pin.get_real_default("problem", "omega", 1.0e-3)
    beta = pin.get_real("problem", "beta")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from shearbox.errors import ConfigurationError, MissingParameterError

if TYPE_CHECKING:
    from shearbox.config import ShearingBoxConfig

logger = logging.getLogger(__name__)


class ParameterInput:
    """String-keyed, block-scoped parameter store.

    Values are kept as the raw strings found in the input and converted on
    access, so the same key can be read as an integer or a real.
    """

    def __init__(self, blocks: dict[str, dict[str, str]] | None = None) -> None:
        self._blocks: dict[str, dict[str, str]] = {}
        for block, entries in (blocks or {}).items():
            for key, value in entries.items():
                self.set(block, key, value)

    # --- parsing ---

    @classmethod
    def from_text(cls, text: str) -> ParameterInput:
        pin = cls()
        block: str | None = None
        for lineno, raw in enumerate(text.splitlines(), start=1):
            line = raw.split("#", 1)[0].strip()
            if not line:
                continue
            if line.startswith("<"):
                if not line.endswith(">"):
                    raise ConfigurationError(f"line {lineno}: malformed block header {raw!r}")
                block = line[1:-1].strip()
                pin._blocks.setdefault(block, {})
                continue
            if block is None:
                raise ConfigurationError(f"line {lineno}: parameter outside of any <block>")
            if "=" not in line:
                raise ConfigurationError(f"line {lineno}: expected 'key = value', got {raw!r}")
            key, value = (s.strip() for s in line.split("=", 1))
            pin._blocks[block][key] = value
        return pin

    @classmethod
    def from_file(cls, path: str | Path) -> ParameterInput:
        path = Path(path)
        logger.info("Reading parameters from %s", path)
        return cls.from_text(path.read_text())

    def to_text(self) -> str:
        lines = []
        for block, entries in self._blocks.items():
            lines.append(f"<{block}>")
            width = max((len(k) for k in entries), default=0)
            for key, value in entries.items():
                lines.append(f"{key.ljust(width)} = {value}")
            lines.append("")
        return "\n".join(lines)

    # --- access ---

    def has_block(self, block: str) -> bool:
        return block in self._blocks

    def has(self, block: str, key: str) -> bool:
        return key in self._blocks.get(block, {})

    def set(self, block: str, key: str, value: object) -> None:
        self._blocks.setdefault(block, {})[key] = str(value)

    def _raw(self, block: str, key: str) -> str:
        try:
            return self._blocks[block][key]
        except KeyError:
            raise MissingParameterError(block, key) from None

    def get_string(self, block: str, key: str) -> str:
        return self._raw(block, key)

    def get_real(self, block: str, key: str) -> float:
        raw = self._raw(block, key)
        try:
            return float(raw)
        except ValueError:
            raise ConfigurationError(f"<{block}>/{key} = {raw!r} is not a real number") from None

    def get_integer(self, block: str, key: str) -> int:
        raw = self._raw(block, key)
        try:
            return int(raw)
        except ValueError:
            raise ConfigurationError(f"<{block}>/{key} = {raw!r} is not an integer") from None

    def get_string_default(self, block: str, key: str, default: str) -> str:
        return self.get_string(block, key) if self.has(block, key) else default

    def get_real_default(self, block: str, key: str, default: float) -> float:
        return self.get_real(block, key) if self.has(block, key) else default

    def get_integer_default(self, block: str, key: str, default: int) -> int:
        return self.get_integer(block, key) if self.has(block, key) else default


def generate_athinput(
    config: ShearingBoxConfig,
    *,
    problem_id: str = "HGB",
) -> str:
    """Generate athinput text from a shearing-box configuration.

    Args:
        config: Validated shearing-box configuration.
        problem_id: Problem identifier for output filenames.

    Returns:
        Complete athinput file content as a string.
    """
    mc = config.mesh
    pc = config.problem
    fc = config.physics

    lines = []

    lines.append("<comment>")
    lines.append("problem = 3D shearing sheet (Hawley, Gammie & Balbus)")
    lines.append(f"eos     = {fc.eos}    # mhd = {int(fc.mhd)}, fargo = {int(fc.orbital_advection)}")
    lines.append("")

    lines.append("<job>")
    lines.append(f"problem_id  = {problem_id}")
    lines.append("")

    lines.append("<mesh>")
    for axis in (1, 2, 3):
        lines.append(f"nx{axis}        = {getattr(mc, f'nx{axis}')}")
        lines.append(f"x{axis}min      = {getattr(mc, f'x{axis}min')!r}")
        lines.append(f"x{axis}max      = {getattr(mc, f'x{axis}max')!r}")
    lines.append("")

    lines.append("<hydro>")
    if fc.adiabatic:
        lines.append(f"gamma      = {fc.gamma!r}")
    else:
        lines.append(f"iso_csound = {fc.iso_csound!r}")
    lines.append("")

    lines.append("<problem>")
    lines.append(f"omega      = {pc.omega!r}")
    lines.append(f"amp        = {pc.amp!r}")
    lines.append(f"beta       = {pc.beta!r}")
    lines.append(f"ifield     = {pc.ifield}")
    lines.append(f"ipert      = {pc.ipert}")
    lines.append(f"nwx        = {pc.nwx}")
    lines.append(f"nwy        = {pc.nwy}")
    lines.append(f"nwz        = {pc.nwz}")
    if pc.eta is not None:
        lines.append(f"eta        = {pc.eta!r}")
    if pc.nu is not None:
        lines.append(f"nu         = {pc.nu!r}")
    if pc.data_dir != ".":
        lines.append(f"data_dir   = {pc.data_dir}")
    lines.append("")

    return "\n".join(lines)


def write_athinput(
    config: ShearingBoxConfig,
    path: str | Path,
    **kwargs,
) -> str:
    """Generate and write athinput file to disk.

    Args:
        config: Shearing-box configuration.
        path: Output file path.
        **kwargs: Passed to :func:`generate_athinput`.

    Returns:
        The generated athinput text.
    """
    text = generate_athinput(config, **kwargs)
    with open(path, "w") as f:
        f.write(text)
    return text
