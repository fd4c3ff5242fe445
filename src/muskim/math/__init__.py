"""Module with fast, Numba-accelerated, compiled math routines.

This includes multiple submodules:
- `kinematics.py` includes forward-track kinematics and angle wrapping
- `dca.py` includes distance of closest approach and its significance
"""

from . import dca, kinematics

# Expose all functions directly
from .dca import *
from .kinematics import *
