"""Wall and CPU timing of the processing stages."""

import time
from dataclasses import dataclass

__all__ = ["Time", "Stopwatch", "StopwatchManager"]


@dataclass
class Time:
    """Simple dataclass to hold time information.

    Attributes
    ----------
    wall : float, optional
         Wall time
    cpu : float, optional
         CPU time
    """

    wall: float = None
    cpu: float = None

    def __add__(self, other):
        return Time(wall=self.wall + other.wall, cpu=self.cpu + other.cpu)

    def __sub__(self, other):
        return Time(wall=self.wall - other.wall, cpu=self.cpu - other.cpu)

    def __truediv__(self, count):
        return Time(wall=self.wall / count, cpu=self.cpu / count)

    @property
    def is_set(self):
        """Whether the time has been recorded."""
        return self.wall is not None

    @classmethod
    def current(cls):
        """Returns the current time (wall and cpu).

        Returns
        -------
        Time
           Current time
        """
        return cls(time.time(), time.process_time())


class Stopwatch:
    """Simple class to hold timing information for a specific process."""

    def __init__(self):
        """Give default values to the underlying class attributes."""
        self._start = Time()
        self._time = None
        self._total = Time(0.0, 0.0)
        self.count = 0

    @property
    def running(self):
        """Whether the stopwatch is currently running."""
        return self._start.is_set

    def start(self):
        """Start the clock."""
        if self.running:
            raise ValueError("Cannot restart a watch that has not been stopped.")

        self._start = Time.current()

    def stop(self):
        """Stop the clock, record the elapsed time."""
        if not self.running:
            raise ValueError("Cannot stop a watch that has not been started.")

        self._time = Time.current() - self._start
        self._total += self._time
        self._start = Time()
        self.count += 1

    @property
    def time(self):
        """Time between the last start and the last stop."""
        if self._time is None:
            raise ValueError("Cannot get time of watch that has not been stopped.")

        return self._time

    @property
    def time_sum(self):
        """Sum of times between all watch starts and stops."""
        return self._total

    @property
    def time_mean(self):
        """Average time between watch starts and stops."""
        if self.count == 0:
            return Time(0.0, 0.0)

        return self._total / self.count


class StopwatchManager:
    """Simple class to organize various time measurements."""

    def __init__(self):
        """Initalize the basic private stopwatch attributes."""
        self._watch = {}

    def keys(self):
        """Get the list of all initialized stopwatch tags."""
        return self._watch.keys()

    def items(self):
        """Get the (key, stopwatch) pairs."""
        return self._watch.items()

    def initialize(self, key):
        """Initialize one or more stopwatches, resetting existing ones.

        Parameters
        ----------
        key : Union[str, List[str]]
            Key or list of keys to initialize a `Stopwatch` for
        """
        keys = [key] if isinstance(key, str) else key
        for k in keys:
            self._watch[k] = Stopwatch()

    def _get(self, key):
        if key not in self._watch:
            raise KeyError(f"No stopwatch initialized under the name: {key}")

        return self._watch[key]

    def start(self, key):
        """Starts a stopwatch for a unique key.

        Parameters
        ----------
        key : str
            Key for which to start the clock
        """
        self._get(key).start()

    def stop(self, key):
        """Stops a stopwatch for a unique key.

        Parameters
        ----------
        key : str
            Key for which to stop the clock
        """
        self._get(key).stop()

    def time(self, key):
        """Returns the time recorded between the last start and stop."""
        return self._get(key).time

    def time_sum(self, key):
        """Returns the sum of times recorded between each start/stop pairs."""
        return self._get(key).time_sum

    def times_mean(self):
        """Returns the average time of each stopwatch as a dictionary.

        Returns
        -------
        Dict[str, Time]
            Average execution time of each process so far
        """
        return {key: value.time_mean for key, value in self.items()}
