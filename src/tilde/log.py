import logging
import os

LOG_ENV_VAR = "TILDE_LOG"


def setup_logger(name="tilde", path=None):
    """
    Sets up the package logger.

    The terminal belongs to the editor while it runs, so records only ever
    go to a file: the path given, or the one named by $TILDE_LOG. Without
    either the logger is silent.
    """
    logger = logging.getLogger(name)

    # Prevent adding multiple handlers if setup is called multiple times
    if logger.handlers:
        return logger

    path = path or os.environ.get(LOG_ENV_VAR)
    if not path:
        logger.addHandler(logging.NullHandler())
        return logger

    logger.setLevel(logging.DEBUG)
    fh = logging.FileHandler(path, encoding="utf-8")
    fh.setLevel(logging.DEBUG)

    # Format: 2026-01-01 19:42:59   editor.py   save   210   Message
    formatter = logging.Formatter(
        '%(asctime)s   %(filename)s   %(funcName)s   %(lineno)d   %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    fh.setFormatter(formatter)
    logger.addHandler(fh)
    logger.propagate = False

    return logger


# Global instance for easy import
log = setup_logger()
