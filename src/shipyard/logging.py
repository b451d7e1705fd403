"""Logging configuration for the shipyard CLI."""

import logging
from enum import IntEnum
from typing import TextIO

from rich.console import Console
from rich.logging import RichHandler


class LogLevel(IntEnum):
    """Log level enumeration."""

    QUIET = logging.WARNING
    NORMAL = logging.INFO
    VERBOSE = logging.DEBUG


def resolve_level(verbosity: int = 0, quiet: bool = False) -> LogLevel:
    """Map CLI flags to a log level; quiet wins over -v."""
    if quiet:
        return LogLevel.QUIET
    if verbosity >= 1:
        return LogLevel.VERBOSE
    return LogLevel.NORMAL


def configure_logging(
    verbosity: int = 0,
    quiet: bool = False,
    no_color: bool = False,
    stream: TextIO | None = None,
) -> Console:
    """Configure logging based on CLI options.

    Build progress is logged at INFO, bundler command lines and per-file
    details at DEBUG.

    Args:
        verbosity: Number of -v flags (0=normal, 1+=debug; 2+ also shows
            timestamps and source locations)
        quiet: Only warnings and errors
        no_color: Disable colored output
        stream: Output stream for logs (default: stderr)

    Returns:
        Configured Rich console for output
    """
    level = resolve_level(verbosity, quiet)

    console = Console(
        file=stream,
        stderr=stream is None,
        force_terminal=not no_color,
        no_color=no_color,
    )

    handler = RichHandler(
        console=console,
        show_time=verbosity >= 2,
        show_path=verbosity >= 2,
        markup=False,
    )

    # force=True so repeated CLI invocations in one process reconfigure
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )

    return console
