"""Functions needed to instantiate a class from a configuration dictionary.

This allows to generically convert a YAML block into an instantiated
component (propagator, conditions service, reader, writer) with the
appropriate checks that the class exists and receives valid arguments.
"""

from copy import deepcopy

from .logger import logger

__all__ = ["module_dict", "instantiate"]


def module_dict(module, pattern=None):
    """Converts a module into a dictionary which maps names onto classes.

    Each class exposed in the module `__all__` list (or, lacking one, every
    public class defined in the module) is registered under its class name
    and, if it defines one, under its short `name` attribute.

    Parameters
    ----------
    module : module
        Module from which to fetch the classes
    pattern : str, optional
        If specified, only keep classes whose name contains this pattern

    Returns
    -------
    dict
        Dictionary which maps acceptable class names to classes themselves
    """
    mapping = {}
    cls_names = getattr(module, "__all__", dir(module))
    for cls_name in cls_names:
        # Skip private objects
        if cls_name.startswith("_"):
            continue

        # Only consider classes which belong to the module of interest
        cls = getattr(module, cls_name)
        if not isinstance(cls, type) or module.__name__ not in cls.__module__:
            continue

        if pattern is not None and pattern not in cls.__name__:
            continue

        mapping[cls_name] = cls
        if getattr(cls, "name", ""):
            mapping[cls.name] = cls

    return mapping


def instantiate(module_dict, cfg, alt_name=None, **kwargs):
    """Instantiates a class based on a configuration dictionary.

    Supports the following YAML configuration structure (parsed as a
    dictionary):

    .. code-block:: yaml

        component:
          name: component_name
          kwarg_1: value_1
          kwarg_2: value_2

    A bare string is interpreted as a class name with no arguments.

    Parameters
    ----------
    module_dict : dict
        Dictionary which maps a class name onto an object class.
    cfg : Union[str, dict]
        Configuration dictionary
    alt_name : str, optional
        Key under which the class name can be specified, beside 'name' itself
    **kwargs : dict, optional
        Additional parameters to pass to the class constructor

    Returns
    -------
    object
        Instantiated object
    """
    if isinstance(cfg, str):
        cfg = {"name": cfg}

    # Get the name of the class, check that it exists
    config = deepcopy(cfg)
    name_key = "name"
    if alt_name is not None and alt_name in config:
        assert "name" not in config, f"Should specify one of `name` or `{alt_name}`"
        name_key = alt_name

    if name_key not in config:
        raise ValueError(f"Could not find the name of the class under `{name_key}`")

    class_name = config.pop(name_key)
    if class_name not in module_dict:
        raise ValueError(
            f"Could not find '{class_name}' in the dictionary which maps "
            f"names to classes. Available names: {list(module_dict.keys())}"
        )

    # Top-level arguments must not collide with the explicit ones
    for key in config:
        assert key not in kwargs, (
            f"The keyword argument {key} is provided both in the "
            "configuration and by the caller. Ambiguous."
        )
    kwargs.update(config)

    cls = module_dict[class_name]
    try:
        return cls(**kwargs)

    except Exception as err:
        logger.error(
            "Failed to instantiate %s with these arguments:\n  - kwargs: %s",
            cls.__name__,
            kwargs,
        )

        raise err
