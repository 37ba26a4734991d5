"""
Upload/download trials for one block size of the sweep.
"""

import logging
import time
from typing import List, Optional

from algorithms.sweep_planner import SweepStep
from common.metrics_utils import (
    calculate_throughput_mib_per_second,
    elapsed_milliseconds,
    format_bytes,
)

logger = logging.getLogger(__name__)


def blob_name_for(block_size: int, file_index: int) -> str:
    """Name of the blob uploaded for `file_index` at `block_size`, unique within a run."""
    return f"{block_size}-{file_index}"


class TrialDurations:
    """Per-trial durations of one block size, in file-index order."""

    def __init__(self, step: SweepStep):
        self.step = step
        self.upload_ms: List[int] = []
        self.download_ms: List[int] = []

    def __len__(self) -> int:
        return len(self.upload_ms)


class TrialRunner:
    """Runs the upload/download trial pairs of a block size, one after another.

    Every transfer gets its own deadline. Failures are not caught here: the
    first failing trial aborts the whole sweep.
    """

    def __init__(self, storage_system, config):
        """Initialize the trial runner.

        Args:
            storage_system: Opened storage system with a provisioned container
            config: Validated SweepConfiguration
        """
        self.storage_system = storage_system
        self.config = config
        self.file_size_label = format_bytes(config.file_size_bytes)
        self._payload: Optional[bytes] = None

    @property
    def payload(self) -> bytes:
        """Zero-filled payload of file_size_bytes, shared by all uploads."""
        if self._payload is None:
            self._payload = bytes(self.config.file_size_bytes)
        return self._payload

    async def run(self, step: SweepStep) -> TrialDurations:
        """Run files_per_configuration trials for `step`.

        Raises:
            TransferFailure: If any upload or download fails
            TransferTimeout: If any upload or download exceeds its deadline
        """
        durations = TrialDurations(step)
        block_size = step.effective_block_size
        block_size_label = format_bytes(block_size)

        for file_index in range(1, self.config.files_per_configuration + 1):
            blob_name = blob_name_for(block_size, file_index)

            upload_ms = await self._timed_upload(blob_name, block_size)
            self._log_progress("Upload", file_index, block_size_label, upload_ms)
            durations.upload_ms.append(upload_ms)

            if self.config.upload_only:
                continue

            download_ms = await self._timed_download(blob_name)
            self._log_progress("Download", file_index, block_size_label, download_ms)
            durations.download_ms.append(download_ms)

        return durations

    async def _timed_upload(self, blob_name: str, block_size: int) -> int:
        payload = self.payload
        start = time.perf_counter()
        await self.storage_system.upload_blob(
            blob_name,
            payload,
            block_size,
            self.config.concurrency,
            self.config.per_operation_timeout,
        )
        return elapsed_milliseconds(start, time.perf_counter())

    async def _timed_download(self, blob_name: str) -> int:
        start = time.perf_counter()
        bytes_read = await self.storage_system.download_blob(
            blob_name, self.config.per_operation_timeout
        )
        duration_ms = elapsed_milliseconds(start, time.perf_counter())

        if bytes_read != self.config.file_size_bytes:
            logger.warning(
                f"Incomplete read of {blob_name}: expected {self.config.file_size_bytes} bytes, "
                f"got {bytes_read} bytes"
            )
        return duration_ms

    def _log_progress(self, operation: str, file_index: int, block_size_label: str, duration_ms: int):
        throughput = calculate_throughput_mib_per_second(self.config.file_size_bytes, duration_ms)
        logger.info(
            f"{operation} - File {file_index} - Block Size {block_size_label} - "
            f"File Size {self.file_size_label} - Duration {duration_ms} ms ({throughput:.1f} MiB/s)"
        )
