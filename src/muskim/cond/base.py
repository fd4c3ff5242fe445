"""Run conditions record and the conditions service interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from muskim.utils.globals import Z_ABSORBER_END

__all__ = ["RunConditions", "ConditionsError", "ConditionsServiceBase"]


class ConditionsError(Exception):
    """Raised when the conditions of a run cannot be loaded."""


@dataclass(frozen=True)
class RunConditions:
    """Field and geometry values which apply to one run.

    Attributes
    ----------
    run : int
        Run number
    bz : float
        Solenoid field along the beam axis at the origin (kG)
    z_absorber_end : float
        Position of the end of the front absorber along the beam axis (cm)
    l3_current : float
        Current in the solenoid (A)
    dipole_current : float
        Current in the dipole (A)
    """

    run: int
    bz: float
    z_absorber_end: float = Z_ABSORBER_END
    l3_current: float = 0.0
    dipole_current: float = 0.0


class ConditionsServiceBase(ABC):
    """Interface of services which fetch run conditions.

    Attributes
    ----------
    name : str
        Name of the service, used to instantiate it from configuration
    """

    name = None

    @abstractmethod
    def lookup(self, run):
        """Fetches the conditions of one run.

        Parameters
        ----------
        run : int
            Run number

        Returns
        -------
        RunConditions
            Conditions which apply to the run

        Raises
        ------
        ConditionsError
            If the conditions cannot be found or parsed
        """
        raise NotImplementedError
