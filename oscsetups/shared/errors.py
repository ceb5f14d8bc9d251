"""
Exception types shared across the pipeline.

Per-configuration failures (InsufficientDataError) are caught by the search
and the configuration is skipped. Input validation failures (InvalidRangeError)
abort a search before any work starts.
"""
from typing import List, Optional


class OscSetupsError(Exception):
    """Base class for all errors raised by this package."""
    pass


class InsufficientDataError(OscSetupsError):
    """Raised when a bar series is too short for a stochastic configuration."""

    def __init__(self, required: int, available: int, message: Optional[str] = None):
        self.required = required
        self.available = available
        super().__init__(
            message or f"Insufficient data: need at least {required} bars, got {available}"
        )


class InvalidRangeError(OscSetupsError, ValueError):
    """Raised when a parameter range is empty or has a non-positive bound."""
    pass


class SearchCancelledError(OscSetupsError):
    """Raised when a configuration search is aborted between iterations."""

    def __init__(self, partial_results: Optional[List] = None):
        self.partial_results = list(partial_results or [])
        super().__init__(
            f"Search cancelled after {len(self.partial_results)} evaluated configuration(s)"
        )


class ExchangeError(OscSetupsError):
    """Raised when a data source cannot deliver a valid bar series."""
    pass
