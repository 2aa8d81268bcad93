"""Logging setup."""

import logging
from typing import Optional

from walletkit.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging.

    Args:
        level: Log level name; defaults to Settings.log_level (DEBUG when debug is on)
    """
    if level is None:
        settings = get_settings()
        level = "DEBUG" if settings.debug else settings.log_level

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
