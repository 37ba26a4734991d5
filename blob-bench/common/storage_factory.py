"""
Factory module for creating storage system instances.
"""

import logging
import time
from typing import Optional

# CRITICAL: Suppress client library logging BEFORE importing any storage modules
logging.getLogger('botocore').setLevel(logging.CRITICAL)
logging.getLogger('botocore.credentials').setLevel(logging.CRITICAL)
logging.getLogger('boto3').setLevel(logging.CRITICAL)
logging.getLogger('aioboto3').setLevel(logging.CRITICAL)
logging.getLogger('urllib3').setLevel(logging.CRITICAL)
logging.getLogger('s3transfer').setLevel(logging.CRITICAL)
logging.getLogger('azure').setLevel(logging.WARNING)

from common.sweep_config import SweepConfiguration
from common.errors import InvalidConfiguration

logger = logging.getLogger(__name__)


def make_container_name(prefix: str, timestamp: Optional[float] = None) -> str:
    """Build the transient container name '<prefix>-<unix seconds>' in lower case.

    Args:
        prefix: Container name prefix
        timestamp: Seconds since the epoch (defaults to now)
    """
    if timestamp is None:
        timestamp = time.time()
    return f"{prefix}-{int(timestamp)}".lower()


def create_storage_system(config: SweepConfiguration, container_name: Optional[str] = None):
    """Create and return the appropriate storage system for a sweep.

    Args:
        config: Validated sweep configuration
        container_name: Name of the transient container (default: prefix + current time)

    Returns:
        Storage system instance (AzureBlobSystem, AWSSystem or R2System)

    Raises:
        InvalidConfiguration: If the storage type or connection string is not supported
    """
    storage_type = config.storage_type.lower()
    if container_name is None:
        container_name = make_container_name(config.container_prefix)

    if storage_type == "azure":
        from systems.azure import AzureBlobSystem
        return AzureBlobSystem(
            config.connection_string,
            container_name,
            transport_retries=config.transport_retries,
        )

    elif storage_type == "s3":
        from systems.aws import AWSSystem
        return AWSSystem(
            config.connection_string,
            container_name,
            transport_retries=config.transport_retries,
            max_pool_connections=max(10, config.concurrency * 2),
        )

    elif storage_type == "r2":
        from systems.r2 import R2System
        return R2System(
            config.connection_string,
            container_name,
            transport_retries=config.transport_retries,
            max_pool_connections=max(10, config.concurrency * 2),
        )

    else:
        raise InvalidConfiguration(
            f"Unsupported storage type: {storage_type}. Must be 'azure', 's3' or 'r2'."
        )
