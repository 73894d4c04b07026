"""Logging configuration helpers."""

import logging

LOG_FORMAT = "%(levelname)s: %(name)s: %(message)s"


def configure_logging(debug: bool = False) -> None:
    """Attach one stream handler to the package logger.

    Safe to call once per app instance; later calls only adjust the level.
    """
    logger = logging.getLogger("nutrition_resolver")
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
