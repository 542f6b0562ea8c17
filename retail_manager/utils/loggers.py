import logging
import sys

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(name="retail_manager", verbose=False):
    """
    Package logger with one stderr handler.

    Calling it again does not add handlers; it re-points the existing one at
    the current sys.stderr (which may have been swapped since) and applies
    the requested level.
    """
    logger = logging.getLogger(name)
    level = logging.DEBUG if verbose else logging.INFO
    logger.setLevel(level)
    handler = next((h for h in logger.handlers if getattr(h, "_cli_handler", False)), None)
    if handler is None:
        handler = logging.StreamHandler(sys.stderr)
        handler._cli_handler = True
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)
    else:
        handler.setStream(sys.stderr)
    return logger
