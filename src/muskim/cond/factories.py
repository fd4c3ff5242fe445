"""Functions which instantiate the conditions cache from configuration."""

from muskim.utils.factory import instantiate, module_dict

from . import service
from .manager import ConditionsManager

SERVICE_DICT = module_dict(service)

__all__ = ["service_factory", "conditions_factory"]


def service_factory(service_cfg):
    """Instantiates a conditions service based on its name under
    `conditions.name`. The name must match the name of a class under
    `muskim.cond.service`.

    Parameters
    ----------
    service_cfg : dict
        Conditions service configuration dictionary

    Returns
    -------
    ConditionsServiceBase
        Conditions service
    """
    return instantiate(SERVICE_DICT, service_cfg)


def conditions_factory(service_cfg):
    """Instantiates the run-scoped conditions cache around a service.

    Parameters
    ----------
    service_cfg : dict
        Conditions service configuration dictionary

    Returns
    -------
    ConditionsManager
        Conditions cache
    """
    return ConditionsManager(service_factory(service_cfg))
