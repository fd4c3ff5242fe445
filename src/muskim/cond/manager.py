"""Run-scoped cache of the conditions used by the propagation."""

import threading

from muskim.utils.logger import logger

from .base import ConditionsError

__all__ = ["ConditionsManager"]


class ConditionsManager:
    """Holds the conditions of the run currently being processed.

    The conditions are only fetched from the service when the run changes.
    A reload happens entirely under a lock, so that no propagation of a run
    can observe the conditions of a previous run.

    Attributes
    ----------
    service : ConditionsServiceBase
        Service used to fetch the conditions of a run
    """

    def __init__(self, service):
        """Initialize the cache.

        Parameters
        ----------
        service : ConditionsServiceBase
            Service used to fetch the conditions of a run
        """
        self.service = service
        self._current_run = None
        self._conditions = None
        self._lock = threading.Lock()

    @property
    def current_run(self):
        """Run number of the loaded conditions (`None` before the first load)."""
        return self._current_run

    @property
    def conditions(self):
        """Currently loaded conditions (`None` before the first load)."""
        return self._conditions

    def reload(self, run):
        """Loads the conditions of a run, if they are not already loaded.

        Parameters
        ----------
        run : int
            Run number

        Returns
        -------
        bool
            `True` if the service was queried

        Raises
        ------
        ConditionsError
            If the service fails to provide the conditions
        """
        with self._lock:
            if run == self._current_run:
                return False

            try:
                conditions = self.service.lookup(run)
            except ConditionsError as err:
                logger.error("Failed to load the conditions of run %d: %s", run, err)
                raise

            self._conditions = conditions
            self._current_run = run

        logger.info(
            "Loaded conditions of run %d: Bz = %.4f kG, absorber end at z = %.1f cm",
            run,
            conditions.bz,
            conditions.z_absorber_end,
        )

        return True

    def get(self):
        """Returns the currently loaded conditions.

        Returns
        -------
        RunConditions
            Currently loaded conditions

        Raises
        ------
        RuntimeError
            If no conditions have been loaded yet
        """
        if self._conditions is None:
            raise RuntimeError("Conditions must be loaded before they are used.")

        return self._conditions
