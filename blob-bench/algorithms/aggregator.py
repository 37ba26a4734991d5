"""
Reduction of per-trial durations to summary statistics.
"""

from typing import Sequence

from common.errors import EmptyInput


def average(values: Sequence[int]) -> int:
    """Arithmetic mean of integer durations, truncated toward zero.

    Args:
        values: Durations in milliseconds

    Returns:
        Integer mean, e.g. average([10, 20, 30]) == 20, average([1, 2]) == 1

    Raises:
        EmptyInput: If `values` is empty
    """
    if not values:
        raise EmptyInput("Cannot average zero measurements")
    total = sum(values)
    quotient = abs(total) // len(values)
    return quotient if total >= 0 else -quotient
