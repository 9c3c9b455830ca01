"""
Logging configuration — central setup for the CLI entrypoint.

Called once at startup by main.py.  Handlers are attached to the
``ignextract`` package logger, so every module that does
``logger = logging.getLogger(__name__)`` inherits them while other
libraries' loggers keep Python's defaults.

Levels are resolved in precedence order:
    CLI flag  >  IGNEXTRACT_LOG_LEVEL env var  >  WARNING (default)

Optional file output via IGNEXTRACT_LOG_FILE / IGNEXTRACT_LOG_FILE_LEVEL.

Log records always go to stderr so that stdout carries only the
extraction report (written paths, skip notices, diagnostics).
"""

from __future__ import annotations

import logging
import sys

PACKAGE_LOGGER = "ignextract"

# Record attribute set by code whose message the console reporter
# already printed. The console handler drops such records; the log
# file keeps them.
REPORTED = "ignextract_reported"

# ── Format strings ──────────────────────────────────────────────

# WARNING and above: message only
_FMT_MINIMAL = "%(message)s"

# INFO: timestamp and logger name
_FMT_VERBOSE = "%(asctime)s [%(name)s] %(message)s"
_DATEFMT_VERBOSE = "%H:%M:%S"

# DEBUG: adds level and file:line
_FMT_DEBUG = "%(asctime)s %(levelname)-7s %(name)s:%(lineno)d: %(message)s"
_DATEFMT_DEBUG = "%H:%M:%S"

# File output uses the DEBUG layout with a full date
_FMT_FILE = _FMT_DEBUG
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"


def _not_reported(record: logging.LogRecord) -> bool:
    return not getattr(record, REPORTED, False)


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> logging.Logger:
    """Configure the ``ignextract`` logger for this process.

    Calling it again replaces the handlers from the previous call.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to a log file.
        log_file_level: Optional separate level for the log file.
            Defaults to the same as ``level``.

    Returns:
        The configured package logger.
    """
    console_level = _parse_level(level)
    if console_level <= logging.DEBUG:
        fmt, datefmt = _FMT_DEBUG, _DATEFMT_DEBUG
    elif console_level <= logging.INFO:
        fmt, datefmt = _FMT_VERBOSE, _DATEFMT_VERBOSE
    else:
        fmt, datefmt = _FMT_MINIMAL, None

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    console.addFilter(_not_reported)

    handlers: list[logging.Handler] = [console]
    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        handlers.append(fh)

    pkg = logging.getLogger(PACKAGE_LOGGER)
    for old in list(pkg.handlers):
        pkg.removeHandler(old)
        old.close()
    for handler in handlers:
        pkg.addHandler(handler)
    pkg.setLevel(min(h.level for h in handlers))
    pkg.propagate = False

    logging.raiseExceptions = False
    return pkg


def resolve_level(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    env_level: str | None = None,
) -> str:
    """Pick the console log level from CLI flags and the environment.

    ``--debug`` wins over ``--verbose``, which wins over ``--quiet``.
    Without any flag the env var applies, then WARNING.
    """
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return env_level or "WARNING"


def _parse_level(level: str | None) -> int:
    """Convert a level name string to its numeric constant."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric
