"""Concrete conditions services."""

import os

import yaml

from muskim.utils.globals import Z_ABSORBER_END
from muskim.utils.logger import logger

from .base import ConditionsError, ConditionsServiceBase, RunConditions

__all__ = ["CCDBFileService", "ConstantConditionsService"]

# Field at the origin for the nominal solenoid current (kG, A)
NOMINAL_BZ = 5.0
NOMINAL_L3_CURRENT = 30000.0


class CCDBFileService(ConditionsServiceBase):
    """Reads run conditions from a local snapshot of the conditions database.

    Each object lives in its own directory under the database root and is
    stored as a `snapshot.yaml` file:

    .. code-block:: yaml

        # <url>/GLO/Config/GRPMagField/snapshot.yaml
        - {run_min: 544000, run_max: 544999, l3_current: 30000., dipole_current: 6000.}
        - {run_min: 545000, run_max: 545999, bz: -5.0}

        # <url>/GLO/Config/GeometryAligned/snapshot.yaml
        z_absorber_end: -505.

    When a run range does not provide `bz`, it is scaled from the solenoid
    current. When the geometry does not provide `z_absorber_end`, the
    default value is used.
    """

    name = "ccdb_file"

    def __init__(
        self,
        url,
        grpmag_path="GLO/Config/GRPMagField",
        geo_path="GLO/Config/GeometryAligned",
    ):
        """Initialize the service.

        Parameters
        ----------
        url : str
            Root directory of the conditions database snapshot
        grpmag_path : str, default 'GLO/Config/GRPMagField'
            Path of the magnetic field object under the root directory
        geo_path : str, default 'GLO/Config/GeometryAligned'
            Path of the geometry object under the root directory
        """
        self.url = url
        self.grpmag_path = grpmag_path
        self.geo_path = geo_path

        self._grpmag = None
        self._geo = None

    def _load(self, path):
        """Loads one snapshot file.

        Parameters
        ----------
        path : str
            Path of the object under the database root

        Returns
        -------
        object
            Parsed YAML content
        """
        file_path = os.path.join(self.url, path, "snapshot.yaml")
        try:
            with open(file_path, "r", encoding="utf-8") as snapshot:
                return yaml.safe_load(snapshot)
        except (OSError, yaml.YAMLError) as err:
            raise ConditionsError(
                f"Could not read the conditions object at {file_path}: {err}"
            ) from err

    def lookup(self, run):
        """Fetches the field and geometry conditions of one run.

        Parameters
        ----------
        run : int
            Run number

        Returns
        -------
        RunConditions
            Conditions which apply to the run
        """
        if self._grpmag is None:
            self._grpmag = self._load(self.grpmag_path) or []
            if not isinstance(self._grpmag, list):
                raise ConditionsError(
                    f"The field object under {self.grpmag_path} must be a "
                    "list of run ranges."
                )

        if self._geo is None:
            self._geo = self._load(self.geo_path) or {}
            if not isinstance(self._geo, dict):
                raise ConditionsError(
                    f"The geometry object under {self.geo_path} must be a mapping."
                )

        for entry in self._grpmag:
            try:
                in_range = entry["run_min"] <= run <= entry["run_max"]
            except (KeyError, TypeError) as exc:
                raise ConditionsError(
                    f"Malformed run range under {self.grpmag_path}: {entry}"
                ) from exc

            if in_range:
                break
        else:
            raise ConditionsError(f"No magnetic field conditions found for run {run}.")

        l3_current = float(entry.get("l3_current", 0.0))
        if "bz" in entry:
            bz = float(entry["bz"])
        else:
            bz = NOMINAL_BZ * l3_current / NOMINAL_L3_CURRENT

        z_absorber_end = self._geo.get("z_absorber_end")
        if z_absorber_end is None:
            logger.debug(
                "No absorber end position in the geometry, using %.1f cm.",
                Z_ABSORBER_END,
            )
            z_absorber_end = Z_ABSORBER_END

        return RunConditions(
            run=run,
            bz=bz,
            z_absorber_end=float(z_absorber_end),
            l3_current=l3_current,
            dipole_current=float(entry.get("dipole_current", 0.0)),
        )


class ConstantConditionsService(ConditionsServiceBase):
    """Provides the same conditions for every run."""

    name = "constant"

    def __init__(self, bz, z_absorber_end=Z_ABSORBER_END):
        """Initialize the service.

        Parameters
        ----------
        bz : float
            Solenoid field along the beam axis (kG)
        z_absorber_end : float, default -505.
            Position of the end of the front absorber (cm)
        """
        self.bz = bz
        self.z_absorber_end = z_absorber_end

    def lookup(self, run):
        return RunConditions(run=run, bz=self.bz, z_absorber_end=self.z_absorber_end)
