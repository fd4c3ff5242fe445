"""Input/output of the skimming chain.

It contains:
- readers which turn stored tables into processing passes (`read/`)
- writers which store the selected muons (`write/`)
"""

from .factories import reader_factory, writer_factory
from .read import HDF5Reader
from .write import CSVWriter, HDF5Writer
