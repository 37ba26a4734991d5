"""
Exception hierarchy for the blob sweep benchmark.

Every failure aborts the run. The classes only exist so the CLI, the sweep
and the tests can tell the failure kinds apart.
"""

from typing import Dict, Optional


class BenchmarkError(Exception):
    """Base exception for all benchmark errors."""

    def __init__(self, message: str, details: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidConfiguration(BenchmarkError):
    """Raised when sweep bounds or options are invalid, before any network activity."""
    pass


class ProvisioningFailure(BenchmarkError):
    """Raised when the transient container cannot be created or deleted."""
    pass


class TransferFailure(BenchmarkError):
    """Raised when an upload or download fails."""

    def __init__(self, message: str, operation: str = "", blob_name: str = "",
                 details: Optional[Dict[str, str]] = None):
        super().__init__(message, details)
        self.operation = operation
        self.blob_name = blob_name


class TransferTimeout(TransferFailure):
    """Raised when an upload or download exceeds its per-operation deadline."""

    def __init__(self, message: str, operation: str = "", blob_name: str = "",
                 timeout_seconds: float = 0.0):
        super().__init__(message, operation, blob_name)
        self.timeout_seconds = timeout_seconds


class OutputFailure(BenchmarkError):
    """Raised when the result table cannot be written to its sink."""
    pass


class EmptyInput(BenchmarkError):
    """Raised when a statistic is requested over zero measurements."""
    pass
