import logging
import os
from logging.handlers import TimedRotatingFileHandler

from radiocalico.config import ENV, LOG_DIR, LOG_LEVEL

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ROOT_LOGGER = "radiocalico"

# Channels used across the app, one per concern
database_logger = logging.getLogger(f"{ROOT_LOGGER}.database")
auth_logger = logging.getLogger(f"{ROOT_LOGGER}.auth")
api_logger = logging.getLogger(f"{ROOT_LOGGER}.api")
security_logger = logging.getLogger(f"{ROOT_LOGGER}.security")

_configured = False


def setup_logging() -> logging.Logger:
    """
    Configure the ``radiocalico`` logger tree once.

    Console output goes to stderr (silenced when ENV=test). When LOG_DIR is
    set, everything is also written to a file rotated at midnight and kept
    for 7 days, and errors get their own ``error.log``.
    """
    global _configured
    logger = logging.getLogger(ROOT_LOGGER)
    if _configured:
        return logger

    logger.setLevel(LOG_LEVEL)
    logger.propagate = False
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if ENV != "test":
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        logger.addHandler(console)

    if LOG_DIR:
        os.makedirs(LOG_DIR, exist_ok=True)

        app_file = TimedRotatingFileHandler(
            os.path.join(LOG_DIR, "app.log"),
            when="midnight",
            backupCount=7,
            encoding="utf-8",
        )
        app_file.setFormatter(formatter)
        logger.addHandler(app_file)

        error_file = logging.FileHandler(os.path.join(LOG_DIR, "error.log"), encoding="utf-8")
        error_file.setLevel(logging.ERROR)
        error_file.setFormatter(formatter)
        logger.addHandler(error_file)

    _configured = True
    return logger
