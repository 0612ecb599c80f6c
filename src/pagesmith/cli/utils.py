"""Shared utilities for the CLI"""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the pagesmith CLI.

    Log levels:
    - Normal: warnings and errors only
    - Verbose (-v): INFO level - one line per compiled page
    - Debug (PAGESMITH_DEBUG=1): DEBUG level - shows everything
    """
    debug = bool(os.environ.get("PAGESMITH_DEBUG"))
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=console,
        show_time=verbose,
        show_path=debug,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("pagesmith")
    logger.setLevel(level)
    logger.handlers = [handler]
    logger.propagate = False
