"""
Main package initialization for the VeRDET temporal segmentation system.
"""

__version__ = "1.0.0"
__title__ = "VeRDET - Vegetation Regeneration and Disturbance Estimates through Time"
__description__ = (
    "Piecewise-linear temporal segmentation of yearly vegetation index series "
    "using total variation regularization"
)
__author__ = "VeRDET contributors"

# Import main modules for easy access
from . import config
from . import processing
from . import utils
from .exceptions import ConfigurationError, InvalidSeriesError, SolverError, VerdetError
from .processing import VerdetProcessor, solve

__all__ = [
    "config",
    "processing",
    "utils",
    "ConfigurationError",
    "InvalidSeriesError",
    "SolverError",
    "VerdetError",
    "VerdetProcessor",
    "solve",
]
