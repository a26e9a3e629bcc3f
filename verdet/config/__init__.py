"""
Configuration package initialization.
"""

from .settings import (
    ConfigManager,
    VerdetConfig,
    ProcessingConfig,
    LoggingConfig,
    SystemConfig,
    get_config,
    load_config,
    validate_config,
)

__all__ = [
    "ConfigManager",
    "VerdetConfig",
    "ProcessingConfig",
    "LoggingConfig",
    "SystemConfig",
    "get_config",
    "load_config",
    "validate_config",
]
