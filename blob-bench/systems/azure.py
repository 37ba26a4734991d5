"""
Azure Blob Storage object storage system implementation.
"""

import logging
from typing import Dict

from aiohttp import ClientError as AiohttpClientError
from azure.core.exceptions import AzureError
from azure.core.pipeline.transport import AioHttpTransport
from azure.storage.blob.aio import ContainerClient

from common.errors import InvalidConfiguration
from systems.base import ObjectStorageSystem

logger = logging.getLogger(__name__)


class AzureBlobSystem(ObjectStorageSystem):
    """Azure Blob Storage system: a container per run, staged block uploads.

    The block size of an upload is a client setting in the Azure SDK, so one
    container client is kept per block size. All clients share one aiohttp
    transport, so every upload and download reuses the same connection pool.
    Blob payloads larger than the block size are always staged as blocks.
    """

    transport_errors = (AzureError, AiohttpClientError, OSError)

    def __init__(self, connection_string: str, container_name: str, transport_retries: int = 0):
        super().__init__(container_name, transport_retries)
        self.connection_string = connection_string
        self.transport = AioHttpTransport()
        self.container_client = self._create_container_client()
        self._block_clients: Dict[int, ContainerClient] = {}

        logger.info(
            f"Initialized Azure Blob system for account {self.container_client.account_name} "
            f"(container={container_name})"
        )

    def _create_container_client(self, **kwargs) -> ContainerClient:
        try:
            return ContainerClient.from_connection_string(
                self.connection_string,
                self.container_name,
                retry_total=self.transport_retries,
                transport=self.transport,
                **kwargs,
            )
        except ValueError as e:
            raise InvalidConfiguration(f"Invalid Azure connection string: {e}") from e

    def _client_for_block_size(self, block_size: int) -> ContainerClient:
        client = self._block_clients.get(block_size)
        if client is None:
            client = self._create_container_client(
                max_block_size=block_size,
                max_single_put_size=block_size,
            )
            self._block_clients[block_size] = client
        return client

    async def _open(self) -> None:
        await self.container_client.__aenter__()

    async def _close(self) -> None:
        # Closing a client closes the shared transport; later closes are no-ops
        for client in self._block_clients.values():
            await client.close()
        self._block_clients.clear()
        await self.container_client.close()

    async def _create_container(self) -> None:
        await self.container_client.create_container()

    async def _delete_container(self) -> None:
        await self.container_client.delete_container()

    async def _upload(self, blob_name: str, payload: bytes, block_size: int, concurrency: int) -> None:
        client = self._client_for_block_size(block_size)
        await client.upload_blob(
            blob_name,
            payload,
            length=len(payload),
            overwrite=True,
            max_concurrency=concurrency,
        )

    async def _download(self, blob_name: str) -> int:
        downloader = await self.container_client.download_blob(blob_name)
        total_bytes = 0
        async for chunk in downloader.chunks():
            total_bytes += len(chunk)
        return total_bytes
