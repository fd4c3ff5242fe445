"""Forward primary muon skimming.

Selects forward muon tracks, propagates them to their collision vertex and
stores compact muon tables with their covariance and identity
cross-references.
"""

from .driver import SkimDriver
from .version import __version__
