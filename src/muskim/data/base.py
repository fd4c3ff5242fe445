"""Module with a parent class of all data structures."""

from dataclasses import asdict, dataclass, fields

import numpy as np

__all__ = ["DataBase"]


@dataclass(eq=False)
class DataBase:
    """Base class of all data structures.

    Defines basic methods shared by all data structures.
    """

    # Enumerated attributes as (key, enum class) pairs
    _enum_attrs = ()

    # Fixed-length attributes as (key, size) or (key, (size, dtype)) pairs
    _fixed_length_attrs = ()

    # Boolean attributes
    _bool_attrs = ()

    # Index attributes (-1 when invalid)
    _index_attrs = ()

    def __post_init__(self):
        """Immediately called after building the class attributes.

        Provides three functions:
        - Gives default values to array-like attributes. If a default value was
          provided in the attribute definition, all instances of this class
          would point to the same memory location.
        - Casts stored 8-bit unsigned integers back to booleans, which is the
          format one gets when loading booleans from HDF5 files.
        - Casts stored integers back to their enumerated type.
        """
        # Provide default values to the fixed-length array attributes
        for attr, size in self._fixed_length_attrs:
            if getattr(self, attr) is None:
                if not isinstance(size, tuple):
                    dtype = np.float64
                else:
                    size, dtype = size
                setattr(self, attr, np.zeros(size, dtype=dtype))

        # Cast stored integers back to booleans
        for attr in self._bool_attrs:
            value = getattr(self, attr)
            if isinstance(value, (np.integer, np.bool_)):
                setattr(self, attr, bool(value))

        # Cast stored integers back to enumerated objects
        for attr, enum in self._enum_attrs:
            value = getattr(self, attr)
            if value is not None and not isinstance(value, enum):
                setattr(self, attr, enum(int(value)))

    def __eq__(self, other):
        """Checks that all attributes of two class instances are the same.

        This overloads the default dataclass `__eq__` method to include an
        appopriate check for vector (numpy) attributes.

        Parameters
        ----------
        other : obj
            Other instance of the same object class

        Returns
        -------
        bool
            `True` if all attributes of both objects are identical
        """
        # Check that the two objects belong to the same class
        if self.__class__ != other.__class__:
            return False

        # Check that all base attributes are identical
        for k, v in self.__dict__.items():
            if np.isscalar(v) or v is None:
                # For scalars, regular comparison will do
                if getattr(other, k) != v:
                    return False

            else:
                # For vectors, compare all elements
                v_other = getattr(other, k)
                if v.shape != v_other.shape or (v_other != v).any():
                    return False

        return True

    @classmethod
    def field_names(cls):
        """Returns the ordered list of dataclass field names.

        Returns
        -------
        List[str]
            Names of the attributes stored in each instance
        """
        return [f.name for f in fields(cls)]

    @classmethod
    def from_row(cls, row):
        """Builds an instance from one row of a structured array.

        Columns which are not attributes of the class are ignored, missing
        attributes take their default value.

        Parameters
        ----------
        row : np.void
            Row of a numpy structured array

        Returns
        -------
        DataBase
            Data structure instance
        """
        names = row.dtype.names
        kwargs = {}
        for name in cls.field_names():
            if name in names:
                value = row[name]
                kwargs[name] = value.copy() if isinstance(value, np.ndarray) else value.item()

        return cls(**kwargs)

    def as_dict(self):
        """Returns the data class as dictionary of (key, value) pairs.

        Returns
        -------
        dict
            Dictionary of attribute names and their values
        """
        return asdict(self)

    def scalar_dict(self, attrs=None):
        """Returns the data class attributes as a dictionary of scalars.

        This is useful when storing data classes in CSV files, which expect
        a single scalar per column in the table.

        Parameters
        ----------
        attrs : List[str], optional
            List of attribute names to include in the dictionary. If not
            specified, all the keys are included.

        Returns
        -------
        dict
            Dictionary of scalar values
        """
        # Loop over the attributes of the data class
        fixed_attrs = dict(self._fixed_length_attrs)
        scalar_dict, found = {}, []
        for attr, value in self.as_dict().items():
            # If the attribute is not requested, skip
            if attrs is not None and attr not in attrs:
                continue
            else:
                found.append(attr)

            # Dispatch
            if np.isscalar(value):
                # Enumerated objects are stored as plain integers
                scalar_dict[attr] = int(value) if attr in dict(self._enum_attrs) else value

            elif attr in fixed_attrs:
                # If the attribute is a fixed-length array, expand with index
                for i, v in enumerate(value):
                    scalar_dict[f"{attr}_{i}"] = v

            else:
                raise ValueError(
                    f"Cannot expand the `{attr}` attribute of "
                    f"`{self.__class__.__name__}` to scalar values."
                )

        if attrs is not None and len(attrs) != len(found):
            class_name = self.__class__.__name__
            miss = list(set(attrs).difference(set(found)))
            raise AttributeError(
                f"Attribute(s) {miss} do(es) not appear in {class_name}."
            )

        return scalar_dict
