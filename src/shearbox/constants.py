"""Numerical constants shared by the problem generator and diagnostics.

Mathematical values are sourced from ``scipy.constants``; import from here
instead of defining local constants.
"""

import numpy as np
import scipy.constants as _sc

# Mathematical
pi = _sc.pi
DBL_EPSILON = float(np.finfo(np.float64).eps)

# Background state of the shearing sheet (code units)
DEN0 = 1.0                    # Background density
PRES0 = 1.0e-6                # Background pressure (adiabatic)

# Shear parameter q = -dlnOmega/dlnr for a Keplerian disk
QSHEAR = 1.5

# Fromang & Papaloizou nonlinear density wave tables
FP_WAVE_RESOLUTIONS = (40, 160)
FP_WAVE_X1MIN = -4.7965
FP_WAVE_X1MAX = 4.7965
