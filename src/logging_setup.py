"""Logging configuration for the command-line entry point.

Library modules only create module-level loggers; handlers are installed
here, once, by the CLI.
"""
from __future__ import annotations
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def level_from_env(default: int = logging.WARNING) -> int:
    """Console level named by ATOR_LOG_LEVEL (e.g. "debug"), else ``default``."""
    name = os.environ.get("ATOR_LOG_LEVEL", "").strip().upper()
    level = logging.getLevelName(name) if name else default
    return level if isinstance(level, int) else default


def setup_logging(level: int = logging.WARNING,
                  log_file: Optional[Union[str, Path]] = None) -> None:
    """Send logs to stderr at ``level``, plus everything to ``log_file`` if given.

    Pre-existing root handlers are removed so repeated calls do not
    duplicate output.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if log_file else level)

    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(level)
    ch.setFormatter(fmt)
    root.addHandler(ch)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_path), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(fmt)
        root.addHandler(fh)

    logging.captureWarnings(True)
