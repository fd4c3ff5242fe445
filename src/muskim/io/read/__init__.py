"""Readers of the reconstructed forward track tables."""

from .hdf5 import HDF5Reader
