"""Global constants used across the package."""

import numpy as np

from .enums import TrackTypeEnum

# Value substituted to the DCA significance when the DCA-plane covariance
# determinant is not positive
DCA_SIGMA_SENTINEL = 999.0

# Conversion constant between the field (kG) and the track curvature
# (GeV/c per cm), as used by the forward track parameterization
B2C = -0.299792458e-3

# Default position of the front absorber end along the beam axis (cm)
Z_ABSORBER_END = -505.0

# Track categories that can produce a muon candidate
MUON_TRACK_TYPES = (TrackTypeEnum.GLOBAL_MUON, TrackTypeEnum.MUON_STANDALONE)

# Prefix of the QA histograms for each candidate category
QA_PREFIX = {
    TrackTypeEnum.GLOBAL_MUON: "MFTMCHMID/",
    TrackTypeEnum.MUON_STANDALONE: "MCHMID/",
}

# Lower-triangle indexes of a 5x5 matrix, in storage order
# (xx, xy, yy, phix, phiy, phiphi, tglx, ..., 1pt1pt)
TRIL_ROWS, TRIL_COLS = np.tril_indices(5)
