"""A print-based logger for interactive benchmarking sessions.

Standard Python logging disappears in Jupyter notebooks unless carefully
configured. This module prints to stdout with timestamps and level labels
instead. The threshold is global to the process and can be set with
set_level() or the BENCHDESIGN_LOG_LEVEL environment variable.

Usage:
    from benchdesign.utils import get_logger
    log = get_logger("build")
    log.info("Evaluating %s methods", 4)
"""

import os
import sys
from datetime import datetime

LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}

_THRESHOLD = {"level": LEVELS.get(
    os.environ.get("BENCHDESIGN_LOG_LEVEL", "INFO").upper(), LEVELS["INFO"])}


def set_level(level):
    """Set the minimum level printed by every benchdesign logger.

    Parameters
    ----------
    level : str or int
        A level name ("DEBUG", "INFO", "WARNING", "ERROR") or its number.
    """
    if isinstance(level, str):
        try:
            level = LEVELS[level.upper()]
        except KeyError:
            raise ValueError(f"Unknown log level '{level}'. "
                             f"Choose from {', '.join(LEVELS)}") from None
    _THRESHOLD["level"] = int(level)


def get_level():
    return _THRESHOLD["level"]


def get_logger(name, out=None):
    """Create a print-based logger.

    Parameters
    ----------
    name : str
        Logger name, displayed in every message header.
    out : file-like, optional
        Additional output stream (e.g., an open log file).

    Returns
    -------
    callable
        A log function with .debug, .info, .warning, .error methods.
    """
    prefix = f"benchdesign:{name}"
    line_length = 72
    extra = [out] if out else []

    def _emit(level, msg, args):
        if LEVELS[level] < _THRESHOLD["level"]:
            return
        now = datetime.now().strftime("%H:%M:%S")
        try:
            text = msg % args if args else msg
        except TypeError:
            text = msg
        # sys.stdout is looked up per call so that captured streams work
        for dest in [sys.stdout] + extra:
            print("_" * line_length, file=dest)
            print(f"{prefix} {level} [{now}]", file=dest)
            print(text, file=dest)

    def log(level, msg, *args):
        _emit(level.upper(), msg, args)

    log.debug = lambda msg, *args: _emit("DEBUG", msg, args)
    log.info = lambda msg, *args: _emit("INFO", msg, args)
    log.warning = lambda msg, *args: _emit("WARNING", msg, args)
    log.error = lambda msg, *args: _emit("ERROR", msg, args)
    log.name = prefix

    return log
