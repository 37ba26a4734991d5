"""
Async S3-compatible object storage system built on aioboto3.
"""

import asyncio
import logging
from typing import Dict, List, Optional

import aioboto3
from aiohttp import ClientError as AiohttpClientError
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from configuration import (
    CONNECT_TIMEOUT_SECONDS,
    DOWNLOAD_READ_CHUNK_BYTES,
    READ_TIMEOUT_SECONDS,
)
from common.errors import InvalidConfiguration
from systems.base import ObjectStorageSystem

logger = logging.getLogger(__name__)

# DeleteObjects accepts at most this many keys per request
DELETE_BATCH_SIZE = 1000


def parse_connection_string(connection_string: str) -> Dict[str, str]:
    """Parse a 'Key=Value;Key=Value' connection string into a dict with lower-case keys.

    Recognized keys are EndpointUrl, AccessKeyId, SecretAccessKey and Region.
    Values may contain '=' (only the first one separates key and value).

    Raises:
        InvalidConfiguration: If a segment has no '=' or an empty key
    """
    settings = {}
    for segment in connection_string.split(";"):
        segment = segment.strip()
        if not segment:
            continue
        key, separator, value = segment.partition("=")
        key = key.strip().lower()
        if not separator or not key:
            raise InvalidConfiguration(f"Malformed connection string segment: {segment!r}")
        settings[key] = value.strip()
    return settings


class S3CompatibleSystem(ObjectStorageSystem):
    """S3-compatible storage system: a bucket per run, concurrent multipart uploads."""

    transport_errors = (ClientError, BotoCoreError, AiohttpClientError, OSError)

    default_region: str = "us-east-1"
    addressing_style: str = "virtual"

    def __init__(
        self,
        connection_string: str,
        container_name: str,
        transport_retries: int = 0,
        max_pool_connections: int = 10,
    ):
        super().__init__(container_name, transport_retries)
        settings = parse_connection_string(connection_string)
        missing = [k for k in ("accesskeyid", "secretaccesskey") if not settings.get(k)]
        if missing:
            raise InvalidConfiguration(
                f"Connection string is missing required keys: {', '.join(missing)}"
            )

        self.endpoint: Optional[str] = settings.get("endpointurl") or None
        self.region: str = settings.get("region") or self.default_region
        self.max_pool_connections = max_pool_connections

        self._config = self._create_config()
        self.session = aioboto3.Session(
            aws_access_key_id=settings["accesskeyid"],
            aws_secret_access_key=settings["secretaccesskey"],
            region_name=self.region,
        )
        self._client_context = None
        self.client = None

        logger.info(
            f"Initialized {type(self).__name__} for {self.endpoint or 'default AWS endpoint'} "
            f"(region={self.region}, bucket={container_name})"
        )

    def _create_config(self) -> Config:
        """Create the botocore config; retries belong to the transport, not the sweep."""
        return Config(
            max_pool_connections=self.max_pool_connections,
            connect_timeout=CONNECT_TIMEOUT_SECONDS,
            read_timeout=READ_TIMEOUT_SECONDS,
            retries={
                "max_attempts": self.transport_retries + 1,
                "mode": "standard",
            },
            s3={
                "payload_signing_enabled": False,
                "addressing_style": self.addressing_style,
            },
            tcp_keepalive=True,
        )

    async def _open(self) -> None:
        self._client_context = self.session.client(
            "s3",
            endpoint_url=self.endpoint,
            config=self._config,
        )
        self.client = await self._client_context.__aenter__()

    async def _close(self) -> None:
        if self._client_context is not None:
            await self._client_context.__aexit__(None, None, None)
        self._client_context = None
        self.client = None

    async def _create_container(self) -> None:
        params = {"Bucket": self.container_name}
        if self.region not in ("us-east-1", "auto"):
            params["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
        await self.client.create_bucket(**params)

    async def _delete_container(self) -> None:
        # Buckets must be empty before deletion
        uploads = await self.client.list_multipart_uploads(Bucket=self.container_name)
        for upload in uploads.get("Uploads", []):
            await self.client.abort_multipart_upload(
                Bucket=self.container_name, Key=upload["Key"], UploadId=upload["UploadId"]
            )

        paginator = self.client.get_paginator("list_objects_v2")
        keys: List[Dict[str, str]] = []
        async for page in paginator.paginate(Bucket=self.container_name):
            keys.extend({"Key": obj["Key"]} for obj in page.get("Contents", []))

        for i in range(0, len(keys), DELETE_BATCH_SIZE):
            await self.client.delete_objects(
                Bucket=self.container_name,
                Delete={"Objects": keys[i:i + DELETE_BATCH_SIZE], "Quiet": True},
            )

        await self.client.delete_bucket(Bucket=self.container_name)

    async def _upload(self, blob_name: str, payload: bytes, block_size: int, concurrency: int) -> None:
        if len(payload) <= block_size:
            await self.client.put_object(Bucket=self.container_name, Key=blob_name, Body=payload)
            return

        response = await self.client.create_multipart_upload(
            Bucket=self.container_name, Key=blob_name
        )
        upload_id = response["UploadId"]

        try:
            parts = await self._upload_parts(blob_name, upload_id, payload, block_size, concurrency)
            await self.client.complete_multipart_upload(
                Bucket=self.container_name,
                Key=blob_name,
                UploadId=upload_id,
                MultipartUpload={"Parts": parts},
            )
        except self.transport_errors:
            try:
                await self.client.abort_multipart_upload(
                    Bucket=self.container_name, Key=blob_name, UploadId=upload_id
                )
            except self.transport_errors as abort_error:
                logger.warning(f"Failed to abort multipart upload of {blob_name}: {abort_error}")
            raise

    async def _upload_parts(
        self, blob_name: str, upload_id: str, payload: bytes, block_size: int, concurrency: int
    ) -> List[Dict[str, object]]:
        """Upload all parts with `concurrency` workers and return them sorted by part number."""
        view = memoryview(payload)
        parts_queue: asyncio.Queue = asyncio.Queue()
        for part_number, offset in enumerate(range(0, len(payload), block_size), start=1):
            parts_queue.put_nowait((part_number, view[offset:offset + block_size]))

        parts_results: Dict[int, Dict[str, object]] = {}

        async def upload_worker():
            """Upload parts from the queue until it is empty."""
            while True:
                try:
                    part_number, part_bytes = parts_queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                response = await self.client.upload_part(
                    Bucket=self.container_name,
                    Key=blob_name,
                    PartNumber=part_number,
                    UploadId=upload_id,
                    Body=bytes(part_bytes),
                )
                parts_results[part_number] = {"ETag": response["ETag"], "PartNumber": part_number}

        workers = [
            asyncio.create_task(upload_worker())
            for _ in range(min(concurrency, parts_queue.qsize()))
        ]
        try:
            await asyncio.gather(*workers)
        finally:
            for worker in workers:
                if not worker.done():
                    worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

        return [parts_results[n] for n in sorted(parts_results)]

    async def _download(self, blob_name: str) -> int:
        response = await self.client.get_object(Bucket=self.container_name, Key=blob_name)
        total_bytes = 0
        async with response["Body"] as body:
            while True:
                chunk = await body.read(DOWNLOAD_READ_CHUNK_BYTES)
                if not chunk:
                    break
                total_bytes += len(chunk)
        return total_bytes
