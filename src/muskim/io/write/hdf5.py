"""Module to write the selected muons to file."""

import os

import h5py
import numpy as np
import yaml

from muskim.version import __version__

__all__ = ["HDF5Writer"]


class HDF5Writer:
    """Writes the muon tables to an HDF5 file.

    Each processing pass is stored in its own group, named after the input
    group it was read from, which contains:
      - `muons`: structured dataset of muons
      - `muons_cov`: (N, 15) covariance entries, one row per muon
      - `ambiguous_muon_self_ids`: per muon, the indexes of the muons built
        from the same forward track
      - `global_muon_self_ids`: per muon, the indexes of the global muons of
        the same collision which share its MFT track

    The file also holds an `info` group with the configuration and the
    package version, and, if provided, a `qa` group with one sub-group per
    monitoring histogram.

    Typical configuration should look like:

    .. code-block:: yaml

        io:
          ...
          writer:
            name: hdf5
            file_name: output.h5
    """

    name = "hdf5"

    def __init__(self, file_name=None, overwrite=False, append=False, prefix=None):
        """Initializes the basics of the output file.

        Parameters
        ----------
        file_name : str, optional
            Name of the output HDF5 file
        overwrite : bool, default False
            If `True`, overwrite the output file if it already exists
        append : bool, default False
            If `True`, add new groups to an existing file
        prefix : str, optional
            Input file prefix. It will be use to form the output file name,
            provided that no file_name is explicitely provided
        """
        # If the output file name is not provided, use the input file prefix
        if not file_name:
            assert prefix is not None, (
                "If the output `file_name` is not provided, must provide "
                "the input file `prefix` to build it from."
            )
            file_name = f"{prefix}_muskim.h5"

        # Check that the output file does not already exist, if requested
        if not overwrite and not append and os.path.isfile(file_name):
            raise FileExistsError(f"File with name {file_name} already exists.")

        if append and not os.path.isfile(file_name):
            raise FileNotFoundError(
                f"File not found at path: {file_name}. When using "
                "`append=True` in HDF5Writer, the file must exist at "
                "the prescribed path before data is written to it."
            )

        # Store persistent attributes
        self.file_name = file_name
        self.append = append
        self.ready = append

    def create(self, cfg=None):
        """Create the output file and store the environment parameters.

        Parameters
        ----------
        cfg : dict, optional
            Dictionary containing the complete configuration
        """
        with h5py.File(self.file_name, "w") as out_file:
            info = out_file.create_group("info")
            info.attrs["version"] = __version__
            if cfg is not None:
                info.attrs["cfg"] = yaml.dump(cfg)

        self.ready = True

    def __call__(self, result, cfg=None):
        """Stores the products of one processing pass.

        Parameters
        ----------
        result : dict
            Products of the processing pass, with the `name`, `muons`,
            `muons_cov`, `ambiguous_muon_self_ids` and
            `global_muon_self_ids` keys
        cfg : dict, optional
            Dictionary containing the complete configuration
        """
        if not self.ready:
            self.create(cfg)

        muons, covs = result["muons"], result["muons_cov"]
        assert len(muons) == len(covs), (
            "The number of covariance records must match the number of muons."
        )

        with h5py.File(self.file_name, "a") as out_file:
            group = out_file.create_group(result["name"])
            group.create_dataset("muons", data=muons)
            group.create_dataset("muons_cov", data=np.asarray(covs, dtype=np.float64))
            for key in ("ambiguous_muon_self_ids", "global_muon_self_ids"):
                self.store_jagged(group, key, result[key])

    @staticmethod
    def store_jagged(group, key, array_list):
        """Stores a list of integer arrays as a variable-length dataset.

        Parameters
        ----------
        group : h5py.Group
            Group of the processing pass
        key : str
            Name of the dataset
        array_list : List[np.ndarray]
            List of arrays to be stored
        """
        dataset = group.create_dataset(
            key, (len(array_list),), dtype=h5py.vlen_dtype(np.int64)
        )
        for i, array in enumerate(array_list):
            dataset[i] = np.asarray(array, dtype=np.int64)

    def store_qa(self, histograms):
        """Stores the monitoring histograms.

        Parameters
        ----------
        histograms : Dict[str, dict]
            Dictionary which maps each histogram name onto its title, its bin
            edges and its bin contents
        """
        if not self.ready:
            self.create()

        with h5py.File(self.file_name, "a") as out_file:
            if "qa" in out_file:
                del out_file["qa"]
            qa = out_file.create_group("qa")
            for name, hist in histograms.items():
                hist_group = qa.create_group(name)
                hist_group.attrs["title"] = hist["title"]
                hist_group.create_dataset("counts", data=hist["counts"])
                for i, edges in enumerate(hist["edges"]):
                    hist_group.create_dataset(f"edges_{i}", data=edges)
