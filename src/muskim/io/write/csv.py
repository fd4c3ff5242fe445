"""Module to write the selected muons to a CSV file."""

import os

__all__ = ["CSVWriter"]


class CSVWriter:
    """Writes one row per selected muon to a CSV file.

    Each row holds the name of the processing pass the muon comes from
    followed by the flat muon schema. The covariance and the
    cross-references are not stored.

    Typical configuration should look like:

    .. code-block:: yaml

        io:
          ...
          writer:
            name: csv
            file_name: output.csv
    """

    name = "csv"

    def __init__(self, file_name=None, overwrite=False, append=False, prefix=None):
        """Initialize the basics of the output file.

        Parameters
        ----------
        file_name : str, optional
            Name of the output CSV file
        overwrite : bool, default False
            If True, overwrite the output file if it already exists
        append : bool, default False
            If True, add more rows to an existing CSV file
        prefix : str, optional
            Input file prefix, used to build the output file name if it is
            not provided
        """
        if not file_name:
            assert prefix is not None, (
                "If the output `file_name` is not provided, must provide "
                "the input file `prefix` to build it from."
            )
            file_name = f"{prefix}_muskim.csv"

        # Check that output file does not already exist, if requested
        if not overwrite and not append and os.path.isfile(file_name):
            raise FileExistsError(f"File with name {file_name} already exists.")

        # Store persistent attributes
        self.file_name = file_name
        self.append_file = append
        self.result_keys = None
        if self.append_file:
            if not os.path.isfile(file_name):
                raise FileNotFoundError(
                    f"File not found at path: {file_name}. When using "
                    "`append=True` in CSVWriter, the file must exist at "
                    "the prescribed path before data is written to it."
                )

            with open(self.file_name, "r", encoding="utf-8") as out_file:
                self.result_keys = out_file.readline().strip().split(",")

    def __call__(self, result, cfg=None):
        """Appends the muons of one processing pass.

        Parameters
        ----------
        result : dict
            Products of the processing pass, with the `name` and `muons` keys
        cfg : dict, optional
            Unused, for compatibility with the other writers
        """
        muons = result["muons"]
        for row in muons:
            row_dict = {"frame": result["name"]}
            row_dict.update(
                {k: self.format(row[k].item()) for k in muons.dtype.names}
            )
            self.append(row_dict)

    @staticmethod
    def format(value):
        """Formats one value, booleans are stored as integers."""
        if isinstance(value, bool):
            return int(value)

        return value

    def create(self, row):
        """Initialize the header of the CSV file, record the keys to be stored.

        Parameters
        ----------
        row : dict
            First row to be stored
        """
        self.result_keys = list(row.keys())
        with open(self.file_name, "w", encoding="utf-8") as out_file:
            out_file.write(",".join(self.result_keys) + "\n")

    def append(self, row):
        """Append one row to the CSV file.

        Parameters
        ----------
        row : dict
            Row to be stored
        """
        if self.result_keys is None:
            # If this function has never been called, initialiaze the CSV file
            self.create(row)

        elif list(row.keys()) != self.result_keys:
            missing = self.array_diff(self.result_keys, row.keys())
            excess = self.array_diff(row.keys(), self.result_keys)
            raise AssertionError(
                "The columns of this row differ from the ones the CSV file "
                f"was initialized with. Missing: {list(missing)}, "
                f"new: {list(excess)}"
            )

        with open(self.file_name, "a", encoding="utf-8") as out_file:
            out_file.write(",".join([str(row[k]) for k in self.result_keys]) + "\n")

    @staticmethod
    def array_diff(array_x, array_y):
        """Returns the elements of the first array which do not appear in the
        second array.

        Parameters
        ----------
        array_x : List[str]
            First array of strings
        array_y : List[str]
            Second array of strings

        Returns
        -------
        Set[str]
            Set of keys that appear in `array_x` but not in `array_y`.
        """
        return set(array_x).difference(set(array_y))
