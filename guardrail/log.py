"""Logging setup.

stdout carries the RPC stream, so every sink writes to stderr.
"""

import sys

from loguru import logger

LOG_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}"


def setup_logging(verbose: bool = False) -> None:
    """Replace the default loguru sink with a stderr sink at the chosen level."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO", format=LOG_FORMAT)
