"""
Block-size sweep planner for the blob benchmark.
"""

import logging
from typing import Iterator, NamedTuple

from common.errors import InvalidConfiguration

logger = logging.getLogger(__name__)


class SweepStep(NamedTuple):
    """One block size of the sweep.

    nominal_block_size drives iteration; effective_block_size is the chunk
    size actually used for the transfers.
    """

    nominal_block_size: int
    effective_block_size: int


class SweepPlanner:
    """Generates the block sizes to test from (start, end, increment, reverse).

    Nominal block sizes always run start -> end. With reverse=True each step
    applies the mirrored block size end - nominal + start instead, so the same
    grid is exercised from the largest block size down. Comparing both
    directions exposes ordering effects such as cache warm-up.
    """

    def __init__(self, start_block_bytes: int, end_block_bytes: int,
                 increment_block_bytes: int, reverse: bool = False):
        if increment_block_bytes <= 0:
            raise InvalidConfiguration(
                f"increment_block_bytes must be positive, got {increment_block_bytes}"
            )
        self.start_block_bytes = start_block_bytes
        self.end_block_bytes = end_block_bytes
        self.increment_block_bytes = increment_block_bytes
        self.reverse = reverse

        logger.info(
            f"Planned sweep: {self.step_count()} block sizes from {start_block_bytes} to "
            f"{end_block_bytes} step {increment_block_bytes}"
            f"{' (reversed)' if reverse else ''}"
        )

    @classmethod
    def from_config(cls, config) -> "SweepPlanner":
        return cls(
            config.start_block_bytes,
            config.end_block_bytes,
            config.increment_block_bytes,
            config.reverse,
        )

    def mirror(self, block_size: int) -> int:
        """Mirror a block size within [start, end]; applying it twice returns the input."""
        return self.end_block_bytes - block_size + self.start_block_bytes

    def step_count(self) -> int:
        """Number of steps the sweep emits."""
        if self.start_block_bytes > self.end_block_bytes:
            return 0
        return (self.end_block_bytes - self.start_block_bytes) // self.increment_block_bytes + 1

    def steps(self) -> Iterator[SweepStep]:
        """Yield the sweep steps lazily, in ascending nominal order."""
        nominal = self.start_block_bytes
        while nominal <= self.end_block_bytes:
            effective = self.mirror(nominal) if self.reverse else nominal
            yield SweepStep(nominal, effective)
            nominal += self.increment_block_bytes

    def __iter__(self) -> Iterator[SweepStep]:
        return self.steps()
