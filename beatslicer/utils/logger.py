import logging
import os
import sys

# Third-party loggers that are chatty at DEBUG (librosa pulls in numba)
QUIET_LOGGERS = ("numba", "urllib3")


def setup_logger(name="BeatSlicer"):
    level_name = os.environ.get("BEATSLICER_LOG_LEVEL", "DEBUG").upper()
    level = getattr(logging, level_name, logging.DEBUG)

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Console Handler
    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(level)

    # Formatter
    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    ch.setFormatter(formatter)

    if not logger.handlers:
        logger.addHandler(ch)

    for quiet in QUIET_LOGGERS:
        logging.getLogger(quiet).setLevel(logging.WARNING)

    return logger

logger = setup_logger()
