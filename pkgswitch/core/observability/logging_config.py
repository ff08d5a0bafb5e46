"""
Logging setup for the pkgswitch CLI.

main.py calls ``setup_logging`` once per invocation; modules log through
``logging.getLogger(__name__)``.

Console level: --debug / --verbose / --quiet, else PKGSWITCH_LOG_LEVEL,
else WARNING. PKGSWITCH_LOG_FILE adds a file handler whose level is
PKGSWITCH_LOG_FILE_LEVEL (default: the console level).
"""

from __future__ import annotations

import logging
import os
import sys

ENV_LEVEL = "PKGSWITCH_LOG_LEVEL"
ENV_FILE = "PKGSWITCH_LOG_FILE"
ENV_FILE_LEVEL = "PKGSWITCH_LOG_FILE_LEVEL"

# (format, datefmt) per console threshold, most detailed first
_CONSOLE_FORMATS: list[tuple[int, str, str | None]] = [
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
]
_CONSOLE_DEFAULT = ("%(levelname)s: %(message)s", None)

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(process)d %(name)s:%(lineno)d  %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# filelock logs every acquire/release at DEBUG
_NOISY_LOGGERS = ("filelock", "urllib3")


def resolve_level(verbose: bool = False, quiet: bool = False, debug: bool = False) -> str:
    """Console level name from CLI flags, falling back to the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get(ENV_LEVEL) or "WARNING"


def _level(name: str | None, default: int = logging.WARNING) -> int:
    if not name:
        return default
    value = logging.getLevelName(name.strip().upper())
    return value if isinstance(value, int) else default


def _console_handler(level: int) -> logging.Handler:
    fmt, datefmt = _CONSOLE_DEFAULT
    for threshold, f, d in _CONSOLE_FORMATS:
        if level <= threshold:
            fmt, datefmt = f, d
            break
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def _file_handler(path: str, level: int) -> logging.Handler:
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
    return handler


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Replace the root logger's handlers for this process.

    Args:
        level: Console level name.
        log_file: Optional log file path; its directory is created.
        log_file_level: File level name. Defaults to ``level``.
        quiet_third_party: Hold filelock/urllib3 at WARNING.
    """
    console_level = _level(level)
    handlers = [_console_handler(console_level)]
    root_level = console_level

    if log_file:
        file_level = _level(log_file_level, default=console_level)
        handlers.append(_file_handler(log_file, file_level))
        root_level = min(root_level, file_level)

    root = logging.getLogger()
    root.handlers[:] = handlers
    root.setLevel(root_level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING if quiet_third_party else logging.NOTSET)

    logging.raiseExceptions = False
