"""
Utilities package initialization.
"""

from .logging_setup import setup_logging
from .series import as_series, has_missing

__all__ = [
    "setup_logging",
    "as_series",
    "has_missing",
]
