"""
Common utilities for the blob block-size sweep.
"""

from .errors import (
    BenchmarkError,
    EmptyInput,
    InvalidConfiguration,
    OutputFailure,
    ProvisioningFailure,
    TransferFailure,
    TransferTimeout,
)
from .sweep_config import SweepConfiguration

__all__ = [
    'BenchmarkError',
    'EmptyInput',
    'InvalidConfiguration',
    'OutputFailure',
    'ProvisioningFailure',
    'TransferFailure',
    'TransferTimeout',
    'SweepConfiguration',
]
