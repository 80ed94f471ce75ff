"""Long-period uniform random stream for reproducible initial conditions.

L'Ecuyer's two-generator combination with a Bays-Durham shuffle and added
safeguards (``ran2`` of Numerical Recipes in C, 2nd ed., in double
precision). Period is > 2 x 10^18 and deviates lie strictly inside (0, 1);
the top end is clamped to the largest double below 1.

Both multiplicative congruential generators use Schrage's factorisation so
every intermediate fits in a signed 64-bit integer, which lets the kernels
run under Numba with the exact integer sequence of the reference code.

The stream for a mesh block is seeded from the global index of its first
owned cell (:func:`seed_from_offset`), never from a process rank, so a block
starting at the same global cell draws the same numbers however the mesh is
decomposed.

References:
    L'Ecuyer P., Commun. ACM 31, 742 (1988).
    Press W.H. et al., Numerical Recipes in C, 2nd ed., section 7.1.
"""

from __future__ import annotations

import numpy as np
from numba import njit

from shearbox.constants import DBL_EPSILON

IM1 = 2147483563
IM2 = 2147483399
AM = 1.0 / IM1
IMM1 = IM1 - 1
IA1 = 40014
IA2 = 40692
IQ1 = 53668
IQ2 = 52774
IR1 = 12211
IR2 = 3791
NTAB = 32
NDIV = 1 + IMM1 // NTAB
RNMX = 1.0 - DBL_EPSILON

# Slots of the packed integer state
_IDUM, _IDUM2, _IY = 0, 1, 2


@njit(cache=True)
def _ran2_init(state: np.ndarray, iv: np.ndarray) -> None:
    """Load the shuffle table after 8 warm-ups; ``state[0]`` holds the seed (<= 0)."""
    idum = state[_IDUM]
    if -idum < 1:
        idum = 1
    else:
        idum = -idum
    idum2 = idum
    for j in range(NTAB + 7, -1, -1):
        k = idum // IQ1
        idum = IA1 * (idum - k * IQ1) - k * IR1
        if idum < 0:
            idum += IM1
        if j < NTAB:
            iv[j] = idum
    state[_IDUM] = idum
    state[_IDUM2] = idum2
    state[_IY] = iv[0]


@njit(cache=True)
def _ran2_fill(state: np.ndarray, iv: np.ndarray, out: np.ndarray) -> None:
    """Write the next ``out.size`` deviates of the stream into ``out``."""
    idum = state[_IDUM]
    idum2 = state[_IDUM2]
    iy = state[_IY]
    for n in range(out.shape[0]):
        k = idum // IQ1
        idum = IA1 * (idum - k * IQ1) - k * IR1
        if idum < 0:
            idum += IM1
        k = idum2 // IQ2
        idum2 = IA2 * (idum2 - k * IQ2) - k * IR2
        if idum2 < 0:
            idum2 += IM2
        j = iy // NDIV
        iy = iv[j] - idum2
        iv[j] = idum
        if iy < 1:
            iy += IMM1
        temp = AM * iy
        if temp > RNMX:
            out[n] = RNMX
        else:
            out[n] = temp
    state[_IDUM] = idum
    state[_IDUM2] = idum2
    state[_IY] = iy


class Ran2:
    """Sequential uniform deviate stream.

    One instance per mesh block, used only while the block is initialised.

    Args:
        seed: Any integer. The stream is initialised from ``-abs(seed)``;
            zero is promoted to 1 as in the reference algorithm.
    """

    def __init__(self, seed: int) -> None:
        self.seed = int(seed)
        self._state = np.zeros(3, dtype=np.int64)
        self._iv = np.zeros(NTAB, dtype=np.int64)
        self._state[_IDUM] = -abs(self.seed)
        _ran2_init(self._state, self._iv)

    def uniform(self) -> float:
        """Return the next deviate in (0, 1)."""
        return float(self.draw(1)[0])

    def draw(self, n: int) -> np.ndarray:
        """Return the next ``n`` deviates, in stream order."""
        out = np.empty(int(n), dtype=np.float64)
        _ran2_fill(self._state, self._iv, out)
        return out

    def __repr__(self) -> str:
        return f"Ran2(seed={self.seed})"


def seed_from_offset(ixs: int, jxs: int, kxs: int, nx1: int, nx2: int) -> int:
    """Seed for the block whose first owned cell has global index (ixs, jxs, kxs).

    Args:
        ixs, jxs, kxs: Global cell index of the block's first owned cell.
        nx1, nx2: Global mesh cell counts along x and y.

    Returns:
        A negative integer, unique per starting cell.
    """
    return -1 - (ixs + nx1 * (jxs + nx2 * kxs))
