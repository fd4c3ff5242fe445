"""Contains a reader class dedicated to loading data from HDF5 files."""

import re

import h5py
import numpy as np

from muskim.data import Collision, FwdTrack, InputFrame, MFTTrack
from muskim.utils.docstring import inherit_docstring
from muskim.utils.logger import logger

from .base import ReaderBase

__all__ = ["HDF5Reader"]

# Pattern of the groups which hold one processing pass each
FRAME_PATTERN = re.compile(r"^DF_(\d+)$")


@inherit_docstring(ReaderBase)
class HDF5Reader(ReaderBase):
    """Class which reads processing passes stored in HDF5 files.

    The files must be structured as follows:
      - One `DF_<n>` group per processing pass, read in increasing `n` order
      - In each group, the `collisions`, `fwd_tracks` and `mft_tracks`
        structured datasets, one column per data class attribute
      - Optionally, in each group, a `fwd_track_assoc` dataset which holds
        (collision index, forward track index) pairs, either as a structured
        dataset with `collision_id` and `fwdtrack_id` columns or as an (N, 2)
        integer dataset

    When a table has no `id` column, rows are indexed by their position.
    """

    name = "hdf5"

    def __init__(
        self,
        file_keys,
        limit_num_files=None,
        max_print_files=10,
        n_entry=None,
        n_skip=None,
        entry_list=None,
        skip_entry_list=None,
    ):
        """Initalize the HDF5 file reader.

        Parameters
        ----------
        file_keys : Union[str, List[str]]
            Path or glob pattern(s) of the HDF5 files to read
        limit_num_files : int, optional
            Integer limiting number of files to be taken
        max_print_files : int, default 10
            Maximum number of loaded file names to be printed
        n_entry : int, optional
            Maximum number of entries to load
        n_skip : int, optional
            Number of entries to skip at the beginning
        entry_list : list, optional
            List of integer entry IDs to add to the index
        skip_entry_list : list, optional
            List of integer entry IDs to skip from the index
        """
        # Process the list of files
        self.process_file_paths(file_keys, limit_num_files, max_print_files)

        # Loop over the input files, build a map from index to file ID
        file_index, self.entry_names = [], []
        for i, path in enumerate(self.file_paths):
            with h5py.File(path, "r") as in_file:
                names = [k for k in in_file.keys() if FRAME_PATTERN.match(k)]
                names.sort(key=lambda k: int(FRAME_PATTERN.match(k).group(1)))
                file_index.extend([i] * len(names))
                self.entry_names.extend(names)

        self.num_entries = len(self.entry_names)
        self.file_index = np.asarray(file_index, dtype=np.int64)
        logger.info("Total number of entries in the file(s): %d\n", self.num_entries)

        # Process the entry list
        self.process_entry_list(n_entry, n_skip, entry_list, skip_entry_list)

    def get(self, idx):
        """Returns a specific processing pass.

        Parameters
        ----------
        idx : int
            Integer entry ID to access

        Returns
        -------
        InputFrame
            Tables of the processing pass
        """
        assert idx < len(self.entry_index)
        name = self.get_entry_name(idx)
        with h5py.File(self.get_file_path(idx), "r") as in_file:
            group = in_file[name]
            collisions = self.load_objects(group, "collisions", Collision)
            fwd_tracks = self.load_objects(group, "fwd_tracks", FwdTrack)
            mft_tracks = self.load_objects(group, "mft_tracks", MFTTrack)
            track_assoc = self.load_assoc(group)

        return InputFrame(
            collisions=collisions,
            fwd_tracks={t.id: t for t in fwd_tracks},
            mft_tracks={t.id: t for t in mft_tracks},
            track_assoc=track_assoc,
        )

    @staticmethod
    def load_objects(group, key, obj_class):
        """Rebuilds the objects stored in one structured dataset.

        Parameters
        ----------
        group : h5py.Group
            Group of the processing pass
        key : str
            Name of the dataset
        obj_class : type
            Data class to rebuild

        Returns
        -------
        list
            Objects, in table order
        """
        if key not in group:
            logger.debug("No `%s` table in %s, assuming it empty.", key, group.name)
            return []

        array = group[key][()]
        has_id = "id" in (array.dtype.names or ())
        objects = []
        for i, row in enumerate(array):
            obj = obj_class.from_row(row)
            if not has_id:
                obj.id = i
            objects.append(obj)

        return objects

    @staticmethod
    def load_assoc(group, key="fwd_track_assoc"):
        """Loads the track-to-collision association table.

        Parameters
        ----------
        group : h5py.Group
            Group of the processing pass
        key : str, default 'fwd_track_assoc'
            Name of the dataset

        Returns
        -------
        np.ndarray
            (N, 2) Association pairs
        """
        if key not in group:
            return np.empty((0, 2), dtype=np.int64)

        array = group[key][()]
        if array.dtype.names:
            return np.column_stack(
                [array["collision_id"], array["fwdtrack_id"]]
            ).astype(np.int64)

        return np.asarray(array, dtype=np.int64).reshape(-1, 2)
