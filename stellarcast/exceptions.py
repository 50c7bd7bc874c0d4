"""
Custom exceptions for StellarCast.

This module defines domain-specific exceptions used throughout the application
to provide clear error context and enable precise error handling.
"""


class StellarCastError(Exception):
    """Base exception for all StellarCast-specific errors."""
    pass


class ValidationError(StellarCastError):
    """Raised when a star record fails validation before propagation."""
    pass


class ConfigurationError(StellarCastError):
    """Raised when prediction or command line configuration is invalid."""
    pass


class ConvergenceError(StellarCastError):
    """Raised when numerical algorithms fail to converge."""
    pass


class NumericalInstabilityError(StellarCastError):
    """Raised when numerical computations become unstable."""
    pass


class CatalogError(StellarCastError):
    """Base exception for catalog lookup failures."""
    pass


class StarNotFoundError(CatalogError):
    """Raised when a star name cannot be resolved by a catalog."""
    pass


class CatalogLoadError(CatalogError):
    """Raised when a catalog cannot be built from its backing data."""
    pass


class DataLoadError(StellarCastError):
    """Raised when data cannot be loaded from a file."""
    pass


class DataSaveError(StellarCastError):
    """Raised when data cannot be saved to a file."""
    pass


__all__ = [
    'StellarCastError',
    'ValidationError',
    'ConfigurationError',
    'ConvergenceError',
    'NumericalInstabilityError',
    'CatalogError',
    'StarNotFoundError',
    'CatalogLoadError',
    'DataLoadError',
    'DataSaveError'
]
