"""Run-scoped magnetic field and geometry conditions.

It contains:
- :class:`RunConditions`, the values which apply to one run
- conditions services which fetch them (`service.py`)
- :class:`ConditionsManager`, which caches the values of the current run
"""

from .base import ConditionsError, ConditionsServiceBase, RunConditions
from .factories import conditions_factory, service_factory
from .manager import ConditionsManager
from .service import CCDBFileService, ConstantConditionsService
