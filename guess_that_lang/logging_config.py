"""
Logging Configuration
Sets up the package logger for the game.
"""
from __future__ import annotations

import logging

PACKAGE_LOGGER = "guess_that_lang"


def setup_logging(level: int = logging.INFO, log_file: str | None = None) -> None:
    """
    Configures the logger for the 'guess_that_lang' namespace.

    The game owns the terminal while it runs, so records never go to stdout:
    they go to ``log_file`` when one is given and are dropped otherwise.

    Args:
        level: Logging level (e.g. logging.DEBUG, logging.INFO)
        log_file: Optional path to save logs to.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    logger.propagate = False

    # Avoid duplicate handlers when run() is called more than once (tests).
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if not log_file:
        logger.addHandler(logging.NullHandler())
        return

    file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    logger.addHandler(file_handler)

    logger.info("Logging initialized.")
