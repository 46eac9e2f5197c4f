"""Terminal output for the studiohelper CLI.

This module provides:
- ClickLogHandler: Logging handler writing through click.echo
- setup_logging: Attach the handler to the studiohelper logger
- ProgressPrinter: Progress callback printing a status line per chunk
"""

from __future__ import annotations

import logging

import click

from studiohelper.client.sync.types import SyncProgress

LOG_FORMAT = "[Studio] %(message)s"


class ClickLogHandler(logging.Handler):
    """Logging handler that writes through click.

    Warnings and errors go to stderr, everything else to stdout.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            click.echo(msg, err=record.levelno >= logging.WARNING)
        except Exception:
            self.handleError(record)


def setup_logging(verbose: bool = False) -> logging.Logger:
    """Route studiohelper log records to the terminal.

    Args:
        verbose: Also show debug records.

    Returns:
        The studiohelper logger.
    """
    logger = logging.getLogger("studiohelper")
    for handler in list(logger.handlers):
        if isinstance(handler, ClickLogHandler):
            logger.removeHandler(handler)
    handler = ClickLogHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False
    return logger


class ProgressPrinter:
    """Prints chunk progress of files larger than one chunk."""

    def __call__(self, progress: SyncProgress) -> None:
        if progress.total_chunks <= 1:
            return
        click.echo(
            f"  {progress.file_path}: {progress.current_chunk}/{progress.total_chunks} chunks "
            f"({progress.percent:.0f}%)",
            err=True,
        )
