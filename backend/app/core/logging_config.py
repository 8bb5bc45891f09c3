"""Logging setup for the Freelance Ledger backend."""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
VALID_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

_HANDLER_NAME = "freelance-ledger"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a single stream handler to the ``backend`` logger.

    Safe to call more than once; the handler is only installed the first time,
    later calls just adjust the level.
    """
    level_name = (level or "INFO").upper()
    if level_name not in VALID_LEVELS:
        raise ValueError(f"Invalid log level: {level}. Must be one of {', '.join(sorted(VALID_LEVELS))}")

    root = logging.getLogger("backend")
    root.setLevel(getattr(logging, level_name))
    if not any(handler.get_name() == _HANDLER_NAME for handler in root.handlers):
        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    return root
