"""Logging configuration for promptweave using loguru.

Call `setup_logging()` once at startup. Provides:
- Console output with configurable verbosity
- Rotating file log at ~/.promptweave/logs/promptweave.log

File records carry the id of the workflow execution that emitted them. The
engine binds it with ``logger.contextualize(execution_id=...)`` around each
run, so step handlers and collaborators inherit it through the task context.
Records logged outside an execution show "-".
"""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

_CONSOLE_FORMAT = "<level>{level:<8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - {message}"
_FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {extra[execution_id]} | "
    "{name}:{function}:{line} - {message}"
)


def _console_level(verbose: bool, quiet: bool) -> str:
    if quiet:
        return "WARNING"
    if verbose:
        return "DEBUG"
    return "INFO"


def setup_logging(
    verbose: bool = False,
    quiet: bool = False,
    log_dir: Path | None = None,
) -> None:
    """Configure loguru sinks for console and file output.

    Args:
        verbose: Show DEBUG-level messages on console.
        quiet: Suppress console output below WARNING.
        log_dir: Directory for log files. Defaults to ~/.promptweave/logs.
    """
    logger.remove()
    logger.configure(extra={"execution_id": "-"})

    logger.add(
        sys.stderr,
        level=_console_level(verbose, quiet),
        format=_CONSOLE_FORMAT,
        colorize=True,
    )

    log_path = log_dir or (Path.home() / ".promptweave" / "logs")
    log_path.mkdir(parents=True, exist_ok=True)

    logger.add(
        log_path / "promptweave.log",
        level="DEBUG",
        format=_FILE_FORMAT,
        rotation="10 MB",
        retention=5,
        encoding="utf-8",
        enqueue=True,
    )
