"""Function which instantiates a propagation engine from configuration."""

from muskim.utils.factory import instantiate, module_dict

from . import quadratic

PROPAGATOR_DICT = module_dict(quadratic)

__all__ = ["propagator_factory"]


def propagator_factory(propagator_cfg):
    """Instantiates a propagation engine based on its name under
    `propagator.name`. The name must match the name of a class under
    `muskim.prop`.

    Parameters
    ----------
    propagator_cfg : Union[str, dict]
        Propagator configuration

    Returns
    -------
    PropagatorBase
        Propagation engine
    """
    return instantiate(PROPAGATOR_DICT, propagator_cfg)
