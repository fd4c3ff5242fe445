"""Quality metrics and acceptance cuts of primary muon candidates."""

from .metrics import DCAMetrics, compute_dca, compute_p_dca, global_ndf
from .policy import AcceptancePolicy
