"""
Logging configuration for console output.

Usage:
    import logging_config
    logging_config.setup("INFO")
"""

import logging
import sys
from typing import Union


def setup(level: Union[str, int] = logging.INFO):
    """
    Configure root logging once per process.

    - Short timestamp format (HH:MM:SS)
    - Quiets aiohttp access logs unless debugging
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s | %(levelname)-7s | %(message)s", datefmt="%H:%M:%S"
        )
    )
    root.addHandler(console)

    # Suppress noisy loggers
    if level > logging.DEBUG:
        logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
        logging.getLogger("asyncio").setLevel(logging.WARNING)
