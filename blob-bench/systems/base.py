"""
Async base class for the object storage systems driven by the block-size sweep.
"""

import asyncio
import logging
from typing import Awaitable, Tuple, Type, TypeVar

from common.errors import (
    BenchmarkError,
    ProvisioningFailure,
    TransferFailure,
    TransferTimeout,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ObjectStorageSystem:
    """Async base class for object storage systems.

    Subclasses implement the underscore hooks against a concrete client. The
    public methods add the per-operation deadline and translate client errors
    into the benchmark's exception types, so the sweep never sees a
    backend-specific exception.

    Usage:
        async with storage_system:
            await storage_system.create_container()
            await storage_system.upload_blob("a", payload, block_size, 4, 120)
            await storage_system.download_blob("a", 120)
            await storage_system.delete_container()
    """

    # Exceptions raised by the client that count as transfer/provisioning failures
    transport_errors: Tuple[Type[BaseException], ...] = (OSError,)

    def __init__(self, container_name: str, transport_retries: int = 0):
        self.container_name = container_name
        self.transport_retries = transport_retries
        self._is_open = False

    async def __aenter__(self):
        """Async context manager entry."""
        await self._open()
        self._is_open = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        if self._is_open:
            self._is_open = False
            await self._close()

    def _require_open(self):
        if not self._is_open:
            raise RuntimeError("Storage client not initialized. Use async context manager.")

    # ------------------------------------------------------------------
    # Container lifecycle
    # ------------------------------------------------------------------

    async def create_container(self) -> None:
        """Create the transient container owned by this run.

        Raises:
            ProvisioningFailure: If the backend rejects the request
        """
        self._require_open()
        try:
            await self._create_container()
        except self.transport_errors as e:
            raise ProvisioningFailure(
                f"Failed to create container {self.container_name}: {e}",
                details={"container": self.container_name},
            ) from e
        logger.info(f"Created container {self.container_name}")

    async def delete_container(self) -> None:
        """Delete the transient container and everything in it.

        Raises:
            ProvisioningFailure: If the backend rejects the request
        """
        self._require_open()
        try:
            await self._delete_container()
        except self.transport_errors as e:
            raise ProvisioningFailure(
                f"Failed to delete container {self.container_name}: {e}",
                details={"container": self.container_name},
            ) from e
        logger.info(f"Deleted container {self.container_name}")

    # ------------------------------------------------------------------
    # Blob transfers
    # ------------------------------------------------------------------

    async def upload_blob(
        self, blob_name: str, payload: bytes, block_size: int, concurrency: int, timeout: float
    ) -> None:
        """Upload `payload` as `blob_name` in chunks of `block_size` bytes.

        Args:
            blob_name: Name of the blob inside the container
            payload: Bytes to upload
            block_size: Chunk size of the staged/multipart upload
            concurrency: Number of chunks in flight at once
            timeout: Deadline in seconds for the whole call

        Raises:
            TransferTimeout: If the deadline expires
            TransferFailure: If the backend reports an error
        """
        self._require_open()
        await self._with_deadline(
            "upload",
            blob_name,
            self._upload(blob_name, payload, block_size, concurrency),
            timeout,
        )

    async def download_blob(self, blob_name: str, timeout: float) -> int:
        """Download `blob_name` and drain the body completely.

        The deadline covers both the request and reading the full body, so the
        call only returns once the whole transfer has finished.

        Returns:
            Number of bytes read

        Raises:
            TransferTimeout: If the deadline expires
            TransferFailure: If the backend reports an error
        """
        self._require_open()
        return await self._with_deadline(
            "download", blob_name, self._download(blob_name), timeout
        )

    async def _with_deadline(
        self, operation: str, blob_name: str, call: Awaitable[T], timeout: float
    ) -> T:
        """Await `call` under a fresh deadline and translate its failures.

        Only expiry of this deadline is a TransferTimeout. A TimeoutError
        raised by the client itself is a transport error like any other.
        """
        task = asyncio.ensure_future(call)
        try:
            done, _ = await asyncio.wait({task}, timeout=timeout)
        except asyncio.CancelledError:
            task.cancel()
            raise

        if not done:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            raise TransferTimeout(
                f"{operation.capitalize()} of {blob_name} timed out after {timeout}s",
                operation=operation,
                blob_name=blob_name,
                timeout_seconds=timeout,
            )

        try:
            return task.result()
        except BenchmarkError:
            raise
        except self.transport_errors as e:
            raise TransferFailure(
                f"{operation.capitalize()} of {blob_name} failed: {e}",
                operation=operation,
                blob_name=blob_name,
            ) from e

    # ------------------------------------------------------------------
    # Backend hooks
    # ------------------------------------------------------------------

    async def _open(self) -> None:
        raise NotImplementedError

    async def _close(self) -> None:
        raise NotImplementedError

    async def _create_container(self) -> None:
        raise NotImplementedError

    async def _delete_container(self) -> None:
        raise NotImplementedError

    async def _upload(self, blob_name: str, payload: bytes, block_size: int, concurrency: int) -> None:
        raise NotImplementedError

    async def _download(self, blob_name: str) -> int:
        raise NotImplementedError
