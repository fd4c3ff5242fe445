"""Main function that calls the Driver class.

This is the first module called when launching the command-line interface.
It takes care of setting up the environment and the `SkimDriver` object.
"""

from .driver import SkimDriver
from .utils.logger import logger


def run(cfg):
    """Execute the skimming chain.

    Parameters
    ----------
    cfg : dict
        Full driver configuration

    Returns
    -------
    SkimDriver
        Driver which ran the chain
    """
    # Set the verbosity of the logger
    base = cfg.get("base") or {}
    logger.setLevel(base.get("verbosity", "info").upper())

    # Prepare the driver, run the loop
    driver = SkimDriver(cfg)
    driver.run()

    return driver
