"""
Exception types raised by the VeRDET core.

Numerical degeneracies (ill-conditioned solves) are not signalled; they
surface as NaN/Inf in the output.
"""


class VerdetError(Exception):
    """Base class for VeRDET errors."""


class ConfigurationError(VerdetError, ValueError):
    """Raised when an algorithm parameter is out of range."""


class InvalidSeriesError(VerdetError, ValueError):
    """Raised when an input series cannot be segmented."""


class SolverError(VerdetError):
    """Raised when the denoiser's linear system is exactly singular."""
