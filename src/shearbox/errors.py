"""Exception hierarchy for shearing-box setup failures.

Every error here is raised during problem setup; the per-cell recipes and
history functions are total over well-formed state and never raise.
"""

from __future__ import annotations


class ShearingBoxError(Exception):
    """Base class for all shearing-box setup failures."""


class ConfigurationError(ShearingBoxError, ValueError):
    """Unsupported grid, domain bounds or selector value."""


class MissingParameterError(ConfigurationError, KeyError):
    """A required ``<block>/key`` is absent from the parameter input."""

    def __init__(self, block: str, key: str) -> None:
        self.block = block
        self.key = key
        super().__init__(f"required parameter '{key}' not found in block <{block}>")

    def __str__(self) -> str:
        return self.args[0]


class DataFileError(ShearingBoxError, OSError):
    """Tabulated input data is missing, unreadable or malformed."""
