import logging

import pytest


@pytest.fixture
def restore_root_logger():
    """Undoes setup_logging so later tests keep pytest's capture handlers."""
    logger = logging.getLogger()
    handlers = list(logger.handlers)
    level = logger.level
    yield logger
    for handler in list(logger.handlers):
        if handler not in handlers:
            handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)
