"""HDF5 time series of the history variables.

At each output call every enrolled history variable is reduced to its
volume average over all mesh blocks. :meth:`HistoryRecorder.finalize`
writes the accumulated series as::

    /time                 output times
    /history/<name>       one 1-D dataset per history variable

with the enrollment order kept in the ``names`` attribute of ``/history``.
"""

from __future__ import annotations

import logging

import numpy as np

from shearbox.core.bases import DiagnosticsBase
from shearbox.core.mesh import MeshBlock
from shearbox.diagnostics.history import HistoryRegistry

logger = logging.getLogger(__name__)

try:
    import h5py

    HAS_H5PY = True
except ImportError:
    HAS_H5PY = False
    logger.warning("h5py not available; history time series will not be written")


class HistoryRecorder(DiagnosticsBase):
    """Accumulate volume-averaged history variables over a run.

    Every series has one entry per record: variables enrolled late start
    with NaN, and variables no longer enrolled continue with NaN.

    Args:
        registry: Enrolled history variables.
        filename: Output HDF5 file path.
    """

    def __init__(self, registry: HistoryRegistry, filename: str = "history.h5") -> None:
        self.registry = registry
        self.filename = filename
        self.times: list[float] = []
        self._values: dict[str, list[float]] = {}

    @property
    def num_records(self) -> int:
        return len(self.times)

    def record(self, blocks: list[MeshBlock], time: float) -> None:
        averages = self.registry.reduce(blocks)
        for name, value in averages.items():
            self._values.setdefault(name, [np.nan] * self.num_records).append(value)
        for name, values in self._values.items():
            if name not in averages:
                values.append(np.nan)
        self.times.append(time)
        logger.debug("History record %d at t=%.4e", self.num_records, time)

    @property
    def series(self) -> dict[str, np.ndarray]:
        out = {"time": np.asarray(self.times)}
        out.update((name, np.asarray(values)) for name, values in self._values.items())
        return out

    def finalize(self) -> None:
        if not HAS_H5PY:
            logger.warning("h5py not installed; %d history records discarded", self.num_records)
            return

        with h5py.File(self.filename, "w") as f:
            f.create_dataset("time", data=np.asarray(self.times))
            grp = f.create_group("history")
            grp.attrs["names"] = list(self._values)
            for name, values in self._values.items():
                grp.create_dataset(name, data=np.asarray(values))
            f.attrs["num_records"] = self.num_records

        logger.info("Wrote %d history records to %s", self.num_records, self.filename)
