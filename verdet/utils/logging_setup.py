"""
Root logger configuration for applications embedding VeRDET.
"""

import logging
import sys

from ..config.settings import LoggingConfig


def setup_logging(config: LoggingConfig = None):
    """
    Configure the root logger from a LoggingConfig.

    Args:
        config: Logging settings (defaults if None)
    """
    if config is None:
        config = LoggingConfig()

    handlers = []
    if config.console_logging:
        handlers.append(logging.StreamHandler(sys.stdout))
    else:
        handlers.append(logging.NullHandler())

    logging.basicConfig(
        level=getattr(logging, config.level.upper(), logging.INFO),
        format=config.format,
        handlers=handlers,
        force=True,
    )
