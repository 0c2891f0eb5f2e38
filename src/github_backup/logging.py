"""Logging setup for backup runs, built on loguru.

Log records carry context as loguru extras: ``name`` (module), ``repo``
(``owner/name``) and ``item_type``. The console shows whichever of them
are bound, so a line from the engine reads
``12:00:01 | INFO     | octocat/hello-world issues | Stored page 3 ...``.

Standard library loggers (httpx, used by githubkit) are routed through
loguru so that one level setting governs everything.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from loguru import logger

if TYPE_CHECKING:
    from loguru import Logger, Record

LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

_configured = False

_CONSOLE_FORMAT = "<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | <cyan>{extra[_origin]}</cyan> | <level>{message}</level>"
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[_origin]} | {function}:{line} | {message}"


def _origin(record: Record) -> str:
    """Most specific context of a record: repo and item type, else the logger name."""
    extra = record["extra"]
    if "repo" in extra:
        item_type = extra.get("item_type")
        return f"{extra['repo']} {item_type}" if item_type else str(extra["repo"])
    return str(extra.get("name", record["name"]))


def _with_origin(record: Record) -> bool:
    record["extra"]["_origin"] = _origin(record)
    return True


class InterceptHandler(logging.Handler):
    """Forwards standard library log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Skip logging's own frames so loguru reports the real caller
        frame = logging.currentframe()
        depth = 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.bind(name=record.name).opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging(
    level: LogLevel = "INFO",
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
    serialize: bool = False,
) -> Logger:
    """Configure logging for a CLI invocation.

    Replaces any previously installed sinks, so calling it again (e.g.
    once per CLI invocation in tests) does not duplicate output.

    Args:
        level: Base log level from config
        verbose: Force DEBUG (wins over ``quiet``)
        quiet: Force WARNING
        log_file: Also write every record, at DEBUG, to this rotating file
        rotation: When to rotate the log file (e.g. "10 MB", "1 day")
        retention: How long to keep rotated files
        serialize: Write the log file as JSON lines

    Returns:
        The configured loguru logger
    """
    global _configured

    effective_level: LogLevel
    if verbose:
        effective_level = "DEBUG"
    elif quiet:
        effective_level = "WARNING"
    else:
        effective_level = level

    logger.remove()
    logger.add(
        sys.stderr,
        level=effective_level,
        format=_CONSOLE_FORMAT,
        filter=_with_origin,
        colorize=True,
        backtrace=False,
        diagnose=False,
    )

    if log_file is not None:
        logger.add(
            log_file,
            level="DEBUG",
            format=_FILE_FORMAT,
            filter=_with_origin,
            rotation=rotation,
            retention=retention,
            compression="gz",
            serialize=serialize,
        )

    _route_stdlib_logging(effective_level)

    _configured = True
    return logger


def _route_stdlib_logging(level: LogLevel) -> None:
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    # httpx logs every request at INFO; keep that for --verbose only
    http_level = logging.DEBUG if level in ("TRACE", "DEBUG") else logging.WARNING
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(http_level)


def get_logger(name: str) -> Logger:
    """Module logger: ``logger = get_logger(__name__)``."""
    return logger.bind(name=name)


def bind_repo(owner: str, repo: str) -> Logger:
    """Logger carrying the repository being backed up."""
    return logger.bind(name="github_backup.sync", repo=f"{owner}/{repo}")


def bind_item_type(owner: str, repo: str, item_type: str) -> Logger:
    """Logger carrying the repository and the item type being walked."""
    return logger.bind(name="github_backup.sync", repo=f"{owner}/{repo}", item_type=item_type)


def is_configured() -> bool:
    """Whether setup_logging has run since the last reset."""
    return _configured


def reset_logging() -> None:
    """Remove all sinks and forget the configuration (for tests)."""
    global _configured
    logger.remove()
    _configured = False
