import logging

import pytest


@pytest.fixture(autouse=True)
def _reset_fleetwright_logger():
    """init_logging detaches the logger from root; put it back after each test."""
    yield
    logger = logging.getLogger("fleetwright")
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
