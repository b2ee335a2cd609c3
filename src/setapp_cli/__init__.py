"""setapp-cli: install Setapp applications from the command line."""

import logging

from rich.logging import RichHandler

from .constants import LOG_LEVEL

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
)
logging.getLogger("httpx").setLevel(logging.WARNING)

__version__ = "0.1.0"
