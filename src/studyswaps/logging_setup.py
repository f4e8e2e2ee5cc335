"""Console logging with Rich.

Call :func:`setup_logging` once from an entry point; library modules only
use ``logging.getLogger(__name__)``.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

_NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logging(level: str = "INFO") -> None:
    """Install a RichHandler on the root logger."""
    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        show_path=False,
        markup=False,
    )
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
