import logging

import pytest

from backend.app.core.logging_config import configure_logging


def test_configure_logging_installs_single_handler():
    logger = configure_logging("INFO")
    before = len(logger.handlers)
    configure_logging("DEBUG")
    assert len(logger.handlers) == before
    assert logger.level == logging.DEBUG
    configure_logging("WARNING")


def test_configure_logging_rejects_unknown_level():
    with pytest.raises(ValueError):
        configure_logging("LOUD")
