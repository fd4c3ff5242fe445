"""Writers of the selected muon tables."""

from .csv import CSVWriter
from .hdf5 import HDF5Writer
