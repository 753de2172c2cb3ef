from __future__ import annotations

import logging
import sys


_HANDLER_NAME = "quotedesk"


def setup_logging(level: str | int = logging.INFO, name: str = "quotedesk") -> logging.Logger:
    """Attach a single stdout handler to the package logger.

    Calling it again only updates the level, so app factories and tests can
    call it freely.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if not any(handler.get_name() == _HANDLER_NAME for handler in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(
            logging.Formatter(
                fmt="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(handler)
    logger.propagate = False
    return logger
