"""
Configuration constants for the blob block-size sweep benchmark.

This module contains all configuration parameters including:
- Storage credentials read from the environment
- Sweep defaults (block size range, file size, files per block size)
- Transfer parameters (concurrency, timeouts, retries)
- Result table layout and file size constants
"""

import os
from typing import Tuple

# =============================================================================
# FILE SIZE CONSTANTS
# =============================================================================

BYTES_PER_KB: int = 1024
BYTES_PER_MB: int = 1024 * 1024
BYTES_PER_GB: int = 1024 * 1024 * 1024
MILLISECONDS_PER_SECOND: int = 1000

# =============================================================================
# CLOUD STORAGE CONFIGURATION
# =============================================================================

# Connection string used when --connection-string is not given
CONNECTION_STRING: str = os.getenv("BLOB_BENCH_CONNECTION_STRING", "")

STORAGE_TYPES: Tuple[str, ...] = ("azure", "s3", "r2")
DEFAULT_STORAGE_TYPE: str = "azure"

# Region used by S3-compatible backends when the connection string has none
AWS_REGION: str = "eu-north-1"
R2_REGION: str = "auto"

# Transient containers are named "<prefix>-<unix seconds>"
DEFAULT_CONTAINER_PREFIX: str = "blob-bench"

# =============================================================================
# SWEEP DEFAULTS
# =============================================================================

DEFAULT_START_BLOCK_BYTES: int = 2 * BYTES_PER_MB
DEFAULT_END_BLOCK_BYTES: int = 32 * BYTES_PER_MB
DEFAULT_INCREMENT_BLOCK_BYTES: int = 1 * BYTES_PER_MB

DEFAULT_FILE_SIZE_BYTES: int = 512 * BYTES_PER_MB
DEFAULT_FILES_PER_CONFIGURATION: int = 5
DEFAULT_CONCURRENCY: int = 4

# =============================================================================
# TIMEOUTS AND RETRIES
# =============================================================================

# Applied independently to every upload and every download call
REQUEST_TIMEOUT_SECONDS: float = 120.0

# Retries performed by the storage client transport, never by the sweep
DEFAULT_TRANSPORT_RETRIES: int = 0

CONNECT_TIMEOUT_SECONDS: int = 5
READ_TIMEOUT_SECONDS: int = 60

# Size of reads used to drain download bodies
DOWNLOAD_READ_CHUNK_BYTES: int = 4 * BYTES_PER_MB

# =============================================================================
# RESULT TABLE
# =============================================================================

BLOCK_SIZE_COLUMN: str = "Block Size"
UPLOAD_DURATION_COLUMN: str = "Upload Duration"
DOWNLOAD_DURATION_COLUMN: str = "Download Duration"

# =============================================================================
# CLI DEFAULTS
# =============================================================================

DEFAULT_LOG_LEVEL: str = "INFO"
LOG_FORMAT: str = "%(asctime)s - %(levelname)s - %(message)s"

EXIT_SUCCESS: int = 0
EXIT_FAILURE: int = 1
EXIT_INTERRUPTED: int = 130
