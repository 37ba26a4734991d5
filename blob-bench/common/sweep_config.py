"""
Immutable run configuration for a block-size sweep.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from configuration import (
    CONNECTION_STRING,
    DEFAULT_CONCURRENCY,
    DEFAULT_CONTAINER_PREFIX,
    DEFAULT_END_BLOCK_BYTES,
    DEFAULT_FILE_SIZE_BYTES,
    DEFAULT_FILES_PER_CONFIGURATION,
    DEFAULT_INCREMENT_BLOCK_BYTES,
    DEFAULT_START_BLOCK_BYTES,
    DEFAULT_STORAGE_TYPE,
    DEFAULT_TRANSPORT_RETRIES,
    REQUEST_TIMEOUT_SECONDS,
    STORAGE_TYPES,
)
from common.errors import InvalidConfiguration

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SweepConfiguration:
    """Options for one sweep run. Built once from the command line and never mutated.

    Attributes:
        connection_string: Credentials/endpoint of the storage backend
        storage_type: Backend kind, one of STORAGE_TYPES
        start_block_bytes: First nominal block size
        end_block_bytes: Last nominal block size (inclusive)
        increment_block_bytes: Step between nominal block sizes
        reverse: Apply block sizes from end to start while iterating start to end
        file_size_bytes: Payload size of every uploaded blob
        files_per_configuration: Upload/download pairs per block size
        concurrency: Chunk-level parallelism inside one transfer
        per_operation_timeout: Deadline in seconds for each upload and each download
        result_sink_path: CSV destination, or None to log the table instead
        per_file_rows: Emit one row per trial instead of averaging
        upload_only: Skip the download half of every trial
        transport_retries: Retries performed by the storage client transport
        container_prefix: Prefix of the transient container name
    """

    connection_string: str = CONNECTION_STRING
    storage_type: str = DEFAULT_STORAGE_TYPE
    start_block_bytes: int = DEFAULT_START_BLOCK_BYTES
    end_block_bytes: int = DEFAULT_END_BLOCK_BYTES
    increment_block_bytes: int = DEFAULT_INCREMENT_BLOCK_BYTES
    reverse: bool = False
    file_size_bytes: int = DEFAULT_FILE_SIZE_BYTES
    files_per_configuration: int = DEFAULT_FILES_PER_CONFIGURATION
    concurrency: int = DEFAULT_CONCURRENCY
    per_operation_timeout: float = REQUEST_TIMEOUT_SECONDS
    result_sink_path: Optional[str] = None
    per_file_rows: bool = False
    upload_only: bool = False
    transport_retries: int = DEFAULT_TRANSPORT_RETRIES
    container_prefix: str = DEFAULT_CONTAINER_PREFIX

    def validate(self) -> "SweepConfiguration":
        """Check every option once, before any network activity.

        Returns:
            self, so construction and validation can be chained

        Raises:
            InvalidConfiguration: If any option is out of range
        """
        if not self.connection_string:
            raise InvalidConfiguration(
                "A connection string is required (--connection-string or BLOB_BENCH_CONNECTION_STRING)"
            )
        if self.storage_type not in STORAGE_TYPES:
            raise InvalidConfiguration(
                f"Unsupported storage type: {self.storage_type}. Must be one of {', '.join(STORAGE_TYPES)}."
            )
        if self.increment_block_bytes <= 0:
            raise InvalidConfiguration(
                f"increment_block_bytes must be positive, got {self.increment_block_bytes}"
            )
        if self.start_block_bytes <= 0:
            raise InvalidConfiguration(
                f"start_block_bytes must be positive, got {self.start_block_bytes}"
            )
        if self.file_size_bytes < 0:
            raise InvalidConfiguration(
                f"file_size_bytes cannot be negative, got {self.file_size_bytes}"
            )
        if self.files_per_configuration < 1:
            raise InvalidConfiguration(
                f"files_per_configuration must be at least 1, got {self.files_per_configuration}"
            )
        if self.concurrency < 1:
            raise InvalidConfiguration(f"concurrency must be at least 1, got {self.concurrency}")
        if self.per_operation_timeout <= 0:
            raise InvalidConfiguration(
                f"per_operation_timeout must be positive, got {self.per_operation_timeout}"
            )
        if self.transport_retries < 0:
            raise InvalidConfiguration(
                f"transport_retries cannot be negative, got {self.transport_retries}"
            )
        if not self.container_prefix:
            raise InvalidConfiguration("container_prefix cannot be empty")

        if self.start_block_bytes > self.end_block_bytes:
            logger.warning(
                f"start_block_bytes ({self.start_block_bytes}) > end_block_bytes "
                f"({self.end_block_bytes}): the sweep has no steps"
            )
        return self

    @classmethod
    def from_args(cls, args) -> "SweepConfiguration":
        """Bind parsed command-line arguments and validate them."""
        config = cls(
            connection_string=args.connection_string or CONNECTION_STRING,
            storage_type=args.storage.lower(),
            start_block_bytes=args.start_block_bytes,
            end_block_bytes=args.end_block_bytes,
            increment_block_bytes=args.increment_block_bytes,
            reverse=args.reverse,
            file_size_bytes=args.file_size,
            files_per_configuration=args.files,
            concurrency=args.concurrency,
            per_operation_timeout=args.timeout_seconds,
            result_sink_path=args.csv_file_path,
            per_file_rows=args.per_file_rows,
            upload_only=args.upload_only,
            transport_retries=args.transport_retries,
            container_prefix=args.container_prefix,
        )
        return config.validate()
