"""Parameter-file input and output for shearing-box runs."""

from shearbox.io.athinput import ParameterInput, generate_athinput, write_athinput

__all__ = [
    "ParameterInput",
    "generate_athinput",
    "write_athinput",
]
