"""
Tests for storage system deadlines, error translation and construction.
"""

import unittest
import sys
import os
from unittest.mock import AsyncMock, MagicMock, patch

from botocore.exceptions import ClientError

# Add the parent directory to Python path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from storage_fakes import FakeStorageSystem
from common.errors import (
    InvalidConfiguration,
    ProvisioningFailure,
    TransferFailure,
    TransferTimeout,
)
from common.storage_factory import create_storage_system, make_container_name
from common.sweep_config import SweepConfiguration
from systems.aws import AWSSystem
from systems.azure import AzureBlobSystem
from systems.r2 import R2System
from systems.s3 import parse_connection_string

AZURITE_CONNECTION_STRING = (
    "DefaultEndpointsProtocol=http;AccountName=devstoreaccount1;"
    "AccountKey=Eby8vdM02xNOcqFlqUwJPLlmEtlCDXJ1OUzFT50uSRZ6IFsuFq2UVErCz4I6tq/K1SZFPTOtr/KBHBeksoGMGw==;"
    "BlobEndpoint=http://127.0.0.1:10000/devstoreaccount1;"
)
S3_CONNECTION_STRING = "AccessKeyId=AKIAEXAMPLE;SecretAccessKey=c2VjcmV0=="
R2_CONNECTION_STRING = (
    "EndpointUrl=https://account.r2.cloudflarestorage.com;"
    "AccessKeyId=r2key;SecretAccessKey=r2secret"
)


class TestDeadlines(unittest.IsolatedAsyncioTestCase):
    """Per-operation deadlines and failure classification."""

    async def test_slow_upload_raises_timeout(self):
        storage = FakeStorageSystem(slow_uploads={"slow": 1.0})
        async with storage:
            with self.assertRaises(TransferTimeout) as ctx:
                await storage.upload_blob("slow", b"\x00" * 8, 4, 1, timeout=0.05)

        self.assertEqual(ctx.exception.operation, "upload")
        self.assertEqual(ctx.exception.blob_name, "slow")
        self.assertEqual(ctx.exception.timeout_seconds, 0.05)

    async def test_timeout_does_not_affect_next_call(self):
        storage = FakeStorageSystem(slow_uploads={"slow": 1.0, "fast": 0.1})
        async with storage:
            with self.assertRaises(TransferTimeout):
                await storage.upload_blob("slow", b"\x00" * 8, 4, 1, timeout=0.05)

            await storage.upload_blob("fast", b"\x00" * 8, 4, 1, timeout=2.0)
            self.assertEqual(await storage.download_blob("fast", timeout=2.0), 8)

    async def test_transport_error_is_not_a_timeout(self):
        storage = FakeStorageSystem(fail_uploads={"broken"})
        async with storage:
            with self.assertRaises(TransferFailure) as ctx:
                await storage.upload_blob("broken", b"\x00", 1, 1, timeout=2.0)

        self.assertNotIsInstance(ctx.exception, TransferTimeout)
        self.assertIsInstance(ctx.exception.__cause__, ConnectionError)

    async def test_client_timeout_is_transfer_failure(self):
        storage = FakeStorageSystem(client_timeout_uploads={"blob"})
        async with storage:
            with self.assertRaises(TransferFailure) as ctx:
                await storage.upload_blob("blob", b"\x00", 1, 1, timeout=5.0)

        self.assertNotIsInstance(ctx.exception, TransferTimeout)
        self.assertIsInstance(ctx.exception.__cause__, TimeoutError)
        self.assertNotIn("timed out after", str(ctx.exception))

    async def test_download_error_is_transfer_failure(self):
        storage = FakeStorageSystem(fail_downloads={"blob"})
        async with storage:
            await storage.upload_blob("blob", b"\x00", 1, 1, timeout=2.0)
            with self.assertRaises(TransferFailure) as ctx:
                await storage.download_blob("blob", timeout=2.0)
        self.assertEqual(ctx.exception.operation, "download")

    async def test_programming_errors_propagate_unchanged(self):
        storage = FakeStorageSystem()
        async with storage:
            with self.assertRaises(KeyError):
                await storage.download_blob("never-uploaded", timeout=2.0)

    async def test_container_failures_are_provisioning_failures(self):
        storage = FakeStorageSystem(fail_create=True, fail_delete=True)
        async with storage:
            with self.assertRaises(ProvisioningFailure):
                await storage.create_container()
            with self.assertRaises(ProvisioningFailure):
                await storage.delete_container()

    async def test_requires_context_manager(self):
        storage = FakeStorageSystem()
        with self.assertRaises(RuntimeError):
            await storage.upload_blob("blob", b"\x00", 1, 1, timeout=1.0)


class StreamingBodyStub:
    """Async streaming body handing out fixed chunks, then b""."""

    def __init__(self, chunks):
        self.chunks = list(chunks)
        self.read_sizes = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False

    async def read(self, size):
        self.read_sizes.append(size)
        return self.chunks.pop(0) if self.chunks else b""


async def iterate_chunks(chunks):
    for chunk in chunks:
        yield chunk


def mock_s3_client(system):
    """Replace the aioboto3 session of `system` with one handing out an AsyncMock client."""
    client = AsyncMock()
    client.create_multipart_upload.return_value = {"UploadId": "upload-1"}
    client_context = MagicMock()
    client_context.__aenter__.return_value = client
    system.session = MagicMock()
    system.session.client.return_value = client_context
    return client


class TestS3Transfers(unittest.IsolatedAsyncioTestCase):
    """Multipart uploads and streamed downloads against a mocked S3 client."""

    def setUp(self):
        self.system = AWSSystem(S3_CONNECTION_STRING, "bucket")
        self.client = mock_s3_client(self.system)
        self.part_sizes = {}

        async def upload_part(**kwargs):
            self.part_sizes[kwargs["PartNumber"]] = len(kwargs["Body"])
            return {"ETag": f'"etag-{kwargs["PartNumber"]}"'}

        self.client.upload_part.side_effect = upload_part

    async def test_payload_split_by_block_size(self):
        async with self.system:
            await self.system.upload_blob("x", bytes(10), 4, 2, timeout=5.0)

        self.assertEqual(self.part_sizes, {1: 4, 2: 4, 3: 2})
        self.client.put_object.assert_not_awaited()
        self.client.complete_multipart_upload.assert_awaited_once_with(
            Bucket="bucket",
            Key="x",
            UploadId="upload-1",
            MultipartUpload={"Parts": [
                {"ETag": '"etag-1"', "PartNumber": 1},
                {"ETag": '"etag-2"', "PartNumber": 2},
                {"ETag": '"etag-3"', "PartNumber": 3},
            ]},
        )

    async def test_part_count_is_file_size_over_block_size_rounded_up(self):
        async with self.system:
            await self.system.upload_blob("x", bytes(9), 3, 4, timeout=5.0)
            await self.system.upload_blob("y", bytes(7), 3, 1, timeout=5.0)

        self.assertEqual(self.client.upload_part.await_count, 3 + 3)

    async def test_single_put_when_payload_fits_in_one_block(self):
        payload = bytes(4)
        async with self.system:
            await self.system.upload_blob("small", payload, 4, 2, timeout=5.0)

        self.client.put_object.assert_awaited_once_with(Bucket="bucket", Key="small", Body=payload)
        self.client.create_multipart_upload.assert_not_awaited()

    async def test_part_failure_aborts_multipart_upload(self):
        error = ClientError({"Error": {"Code": "InternalError", "Message": "boom"}}, "UploadPart")
        self.client.upload_part.side_effect = error

        async with self.system:
            with self.assertRaises(TransferFailure) as ctx:
                await self.system.upload_blob("x", bytes(10), 4, 2, timeout=5.0)

        self.assertNotIsInstance(ctx.exception, TransferTimeout)
        self.client.abort_multipart_upload.assert_awaited_once_with(
            Bucket="bucket", Key="x", UploadId="upload-1"
        )
        self.client.complete_multipart_upload.assert_not_awaited()

    async def test_download_drains_every_chunk(self):
        body = StreamingBodyStub([b"a" * 5, b"b" * 3, b"c"])
        self.client.get_object.return_value = {"Body": body}

        async with self.system:
            bytes_read = await self.system.download_blob("x", timeout=5.0)

        self.assertEqual(bytes_read, 9)
        self.assertEqual(len(body.read_sizes), 4)
        self.client.get_object.assert_awaited_once_with(Bucket="bucket", Key="x")


class TestAzureTransfers(unittest.IsolatedAsyncioTestCase):
    """Block-size clients and chunked downloads against a mocked ContainerClient."""

    def setUp(self):
        self.clients = []

        def from_connection_string(*args, **kwargs):
            client = MagicMock()
            client.upload_blob = AsyncMock()
            client.download_blob = AsyncMock()
            client.close = AsyncMock()
            self.clients.append((client, kwargs))
            return client

        patcher = patch("systems.azure.ContainerClient")
        container_client_class = patcher.start()
        self.addCleanup(patcher.stop)
        container_client_class.from_connection_string.side_effect = from_connection_string

        self.system = AzureBlobSystem(AZURITE_CONNECTION_STRING, "blob-bench-1")

    async def test_block_client_per_block_size(self):
        payload = bytes(10)
        async with self.system:
            await self.system.upload_blob("a", payload, 4, 3, timeout=5.0)
            await self.system.upload_blob("b", payload, 4, 3, timeout=5.0)
            await self.system.upload_blob("c", payload, 8, 2, timeout=5.0)

        self.assertEqual(len(self.clients), 3)
        (_, main_kwargs), (block_4, kwargs_4), (block_8, kwargs_8) = self.clients
        self.assertNotIn("max_block_size", main_kwargs)
        self.assertEqual((kwargs_4["max_block_size"], kwargs_4["max_single_put_size"]), (4, 4))
        self.assertEqual((kwargs_8["max_block_size"], kwargs_8["max_single_put_size"]), (8, 8))

        self.assertEqual(block_4.upload_blob.await_count, 2)
        block_4.upload_blob.assert_awaited_with(
            "b", payload, length=10, overwrite=True, max_concurrency=3
        )
        block_8.upload_blob.assert_awaited_once_with(
            "c", payload, length=10, overwrite=True, max_concurrency=2
        )

    async def test_clients_share_one_transport(self):
        async with self.system:
            await self.system.upload_blob("a", bytes(10), 4, 1, timeout=5.0)
            await self.system.upload_blob("b", bytes(10), 8, 1, timeout=5.0)

        transports = [kwargs["transport"] for _, kwargs in self.clients]
        self.assertEqual(len(transports), 3)
        self.assertTrue(all(t is self.system.transport for t in transports))

    async def test_close_releases_every_client(self):
        async with self.system:
            await self.system.upload_blob("a", bytes(10), 4, 1, timeout=5.0)

        for client, _ in self.clients:
            client.close.assert_awaited_once()

    async def test_download_drains_every_chunk(self):
        main_client = self.clients[0][0]
        downloader = MagicMock()
        downloader.chunks.side_effect = lambda: iterate_chunks([b"a" * 4, b"b" * 4, b"c" * 2])
        main_client.download_blob.return_value = downloader

        async with self.system:
            bytes_read = await self.system.download_blob("a", timeout=5.0)

        self.assertEqual(bytes_read, 10)
        main_client.download_blob.assert_awaited_once_with("a")


class TestConnectionStrings(unittest.TestCase):
    """Parsing of S3-compatible connection strings."""

    def test_parse_keys_case_insensitively(self):
        settings = parse_connection_string(
            "EndpointUrl=https://example.com;ACCESSKEYID=abc;secretaccesskey=x=y==;Region=auto;"
        )
        self.assertEqual(settings, {
            "endpointurl": "https://example.com",
            "accesskeyid": "abc",
            "secretaccesskey": "x=y==",
            "region": "auto",
        })

    def test_malformed_segment(self):
        with self.assertRaises(InvalidConfiguration):
            parse_connection_string("AccessKeyId=abc;garbage")

    def test_empty_key(self):
        with self.assertRaises(InvalidConfiguration):
            parse_connection_string("=value")

    def test_aws_requires_credentials(self):
        with self.assertRaises(InvalidConfiguration):
            AWSSystem("EndpointUrl=https://example.com", "bucket")

    def test_aws_defaults(self):
        system = AWSSystem(S3_CONNECTION_STRING, "blob-bench-1")
        self.assertIsNone(system.endpoint)
        self.assertEqual(system.region, "eu-north-1")
        self.assertEqual(system.container_name, "blob-bench-1")

    def test_r2_requires_endpoint(self):
        with self.assertRaises(InvalidConfiguration):
            R2System(S3_CONNECTION_STRING, "bucket")

    def test_r2_system(self):
        system = R2System(R2_CONNECTION_STRING, "bucket")
        self.assertEqual(system.endpoint, "https://account.r2.cloudflarestorage.com")
        self.assertEqual(system.region, "auto")

    def test_transport_retries_reach_client_config(self):
        system = AWSSystem(S3_CONNECTION_STRING, "bucket", transport_retries=3)
        self.assertEqual(system._config.retries["max_attempts"], 4)

    def test_azure_connection_string(self):
        system = AzureBlobSystem(AZURITE_CONNECTION_STRING, "blob-bench-1")
        self.assertEqual(system.container_client.account_name, "devstoreaccount1")
        self.assertEqual(system.container_client.container_name, "blob-bench-1")

    def test_azure_malformed_connection_string(self):
        with self.assertRaises(InvalidConfiguration):
            AzureBlobSystem("garbage", "blob-bench-1")


class TestStorageFactory(unittest.TestCase):
    """Test storage system creation."""

    def test_container_name(self):
        self.assertEqual(make_container_name("blob-bench", 1700000000.7), "blob-bench-1700000000")
        self.assertEqual(make_container_name("Bench", 1), "bench-1")

    def test_creates_azure_system(self):
        config = SweepConfiguration(connection_string=AZURITE_CONNECTION_STRING, storage_type="azure")
        system = create_storage_system(config, container_name="c1")
        self.assertIsInstance(system, AzureBlobSystem)
        self.assertEqual(system.container_name, "c1")

    def test_creates_s3_system(self):
        config = SweepConfiguration(connection_string=S3_CONNECTION_STRING, storage_type="s3", concurrency=16)
        system = create_storage_system(config)
        self.assertIsInstance(system, AWSSystem)
        self.assertTrue(system.container_name.startswith("blob-bench-"))
        self.assertEqual(system.max_pool_connections, 32)

    def test_creates_r2_system(self):
        config = SweepConfiguration(connection_string=R2_CONNECTION_STRING, storage_type="r2")
        self.assertIsInstance(create_storage_system(config), R2System)

    def test_unknown_storage_type(self):
        config = SweepConfiguration(connection_string="x", storage_type="gcs")
        with self.assertRaises(InvalidConfiguration):
            create_storage_system(config)


if __name__ == '__main__':
    unittest.main()
