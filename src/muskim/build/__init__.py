"""Construction of the primary muon records and their monitoring."""

from .candidate import CandidateBuilder
from .monitor import Histogram, MuonQA
