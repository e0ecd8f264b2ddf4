"""Unit tests for the S3 storage repository."""

from datetime import datetime, timezone
import time
from unittest.mock import MagicMock

import boto3
import pytest
from botocore.config import Config
from botocore.exceptions import EndpointConnectionError, NoCredentialsError, ReadTimeoutError
from botocore.stub import Stubber

from multipart_relay.core.exceptions import (
    AlreadyFinalized,
    InvalidDestination,
    PartMismatch,
    SigningFailed,
    StoreRejected,
    StoreUnavailable,
)
from multipart_relay.repositories.storage_repo import S3StorageRepository, classify_store_error
from multipart_relay.services.presign_service import PresignedUrlIssuer

BUCKET = "test-bucket"
NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def s3_client():
    return boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing-access",
        aws_secret_access_key="testing-secret",
        config=Config(signature_version="s3v4", retries={"total_max_attempts": 1}),
    )


@pytest.fixture
def stubber(s3_client):
    with Stubber(s3_client) as stub:
        yield stub
        stub.assert_no_pending_responses()


@pytest.fixture
def repo(s3_client):
    return S3StorageRepository(client=s3_client, bucket_name=BUCKET)


@pytest.mark.asyncio
async def test_create_multipart_upload(repo, stubber):
    stubber.add_response(
        "create_multipart_upload",
        {"Bucket": BUCKET, "Key": "uploads/a.mp4", "UploadId": "u1"},
    )

    assert await repo.create_multipart_upload("uploads/a.mp4", "video/mp4") == ("uploads/a.mp4", "u1")


@pytest.mark.asyncio
async def test_create_multipart_upload_missing_bucket(repo, stubber):
    stubber.add_client_error(
        "create_multipart_upload",
        service_error_code="NoSuchBucket",
        service_message="The specified bucket does not exist",
        http_status_code=404,
    )

    with pytest.raises(InvalidDestination, match="bucket does not exist"):
        await repo.create_multipart_upload("uploads/a.mp4", "video/mp4")


@pytest.mark.asyncio
async def test_create_multipart_upload_store_error(repo, stubber):
    stubber.add_client_error(
        "create_multipart_upload",
        service_error_code="InternalError",
        service_message="We encountered an internal error",
        http_status_code=500,
    )

    with pytest.raises(StoreUnavailable):
        await repo.create_multipart_upload("uploads/a.mp4", "video/mp4")


@pytest.mark.asyncio
async def test_list_parts_follows_pagination(repo, stubber):
    stubber.add_response(
        "list_parts",
        {
            "Parts": [
                {"PartNumber": 1, "Size": 100, "ETag": '"a"', "LastModified": NOW},
                {"PartNumber": 2, "Size": 100, "ETag": '"b"', "LastModified": NOW},
            ],
            "IsTruncated": True,
            "NextPartNumberMarker": 2,
        },
        {"Bucket": BUCKET, "Key": "k1", "UploadId": "u1"},
    )
    stubber.add_response(
        "list_parts",
        {
            "Parts": [{"PartNumber": 3, "Size": 40, "ETag": '"c"', "LastModified": NOW}],
            "IsTruncated": False,
        },
        {"Bucket": BUCKET, "Key": "k1", "UploadId": "u1", "PartNumberMarker": 2},
    )

    parts = await repo.list_parts("u1", "k1")

    assert [p["PartNumber"] for p in parts] == [1, 2, 3]
    assert parts[2]["ETag"] == '"c"'


@pytest.mark.asyncio
async def test_list_parts_unknown_upload(repo, stubber):
    stubber.add_client_error(
        "list_parts", service_error_code="NoSuchUpload", http_status_code=404
    )

    with pytest.raises(AlreadyFinalized):
        await repo.list_parts("u1", "k1")


@pytest.mark.asyncio
async def test_complete_multipart_upload(repo, stubber):
    parts = [{"PartNumber": 1, "ETag": '"a"'}, {"PartNumber": 2, "ETag": '"b"'}]
    stubber.add_response(
        "complete_multipart_upload",
        {"Location": f"https://{BUCKET}.s3.amazonaws.com/k1", "Bucket": BUCKET, "Key": "k1"},
    )

    assert await repo.complete_multipart_upload("u1", "k1", parts) == f"https://{BUCKET}.s3.amazonaws.com/k1"


@pytest.mark.asyncio
async def test_complete_multipart_upload_without_location(repo, stubber):
    stubber.add_response("complete_multipart_upload", {"Bucket": BUCKET, "Key": "k1"})

    assert await repo.complete_multipart_upload("u1", "k1", [{"PartNumber": 1, "ETag": "a"}]) is None


@pytest.mark.asyncio
@pytest.mark.parametrize("code", ["InvalidPart", "InvalidPartOrder", "EntityTooSmall"])
async def test_complete_multipart_upload_part_mismatch(repo, stubber, code):
    stubber.add_client_error(
        "complete_multipart_upload", service_error_code=code, http_status_code=400
    )

    with pytest.raises(PartMismatch):
        await repo.complete_multipart_upload("u1", "k1", [{"PartNumber": 1, "ETag": "a"}])


@pytest.mark.asyncio
async def test_abort_multipart_upload(repo, stubber):
    stubber.add_response(
        "abort_multipart_upload", {}, {"Bucket": BUCKET, "Key": "k1", "UploadId": "u1"}
    )

    assert await repo.abort_multipart_upload("u1", "k1") is None


@pytest.mark.asyncio
async def test_abort_multipart_upload_twice(repo, stubber):
    stubber.add_client_error(
        "abort_multipart_upload",
        service_error_code="NoSuchUpload",
        service_message="The specified upload does not exist",
        http_status_code=404,
    )

    with pytest.raises(AlreadyFinalized):
        await repo.abort_multipart_upload("u1", "k1")


@pytest.mark.asyncio
async def test_access_denied_is_rejected(repo, stubber):
    stubber.add_client_error(
        "abort_multipart_upload", service_error_code="AccessDenied", http_status_code=403
    )

    with pytest.raises(StoreRejected):
        await repo.abort_multipart_upload("u1", "k1")


def test_sign_upload_part(repo):
    url = repo.sign_upload_part("u1", "uploads/a.mp4", 3, 600)

    assert BUCKET in url
    assert "/uploads/a.mp4?" in url
    assert "partNumber=3" in url
    assert "uploadId=u1" in url
    assert "X-Amz-Expires=600" in url
    assert "testing-secret" not in url


def test_sign_upload_part_failure():
    client = MagicMock()
    client.generate_presigned_url.side_effect = NoCredentialsError()
    repo = S3StorageRepository(client=client, bucket_name=BUCKET)

    with pytest.raises(SigningFailed, match="part 2"):
        repo.sign_upload_part("u1", "k1", 2, 600)


@pytest.mark.parametrize(
    "exc",
    [
        EndpointConnectionError(endpoint_url="https://s3.example.test"),
        ReadTimeoutError(endpoint_url="https://s3.example.test"),
    ],
)
def test_connection_failures_are_unavailable(exc):
    error = classify_store_error(exc, "list_parts", upload_id="u1")

    assert isinstance(error, StoreUnavailable)
    assert error.details["upload_id"] == "u1"


def test_uses_configured_client_factory(monkeypatch):
    client = MagicMock()
    factory = MagicMock(return_value=client)
    monkeypatch.setattr("multipart_relay.repositories.storage_repo.get_storage_client", factory)
    monkeypatch.setattr(
        "multipart_relay.repositories.storage_repo.get_bucket_name", lambda provider: "configured"
    )

    repo = S3StorageRepository(provider="wasabi")

    assert repo._get_client() is client
    assert repo._get_client() is client
    assert repo.bucket_name == "configured"
    factory.assert_called_once_with("wasabi")


@pytest.mark.asyncio
async def test_create_multipart_upload_without_upload_id(repo, stubber):
    stubber.add_response("create_multipart_upload", {"Bucket": BUCKET, "Key": "uploads/a.mp4"})

    with pytest.raises(StoreRejected, match="upload ID"):
        await repo.create_multipart_upload("uploads/a.mp4", "video/mp4")


@pytest.mark.asyncio
async def test_parallel_signing_builds_client_once(monkeypatch):
    """Concurrent first-use signing must share a single client."""
    client = MagicMock()
    client.generate_presigned_url.side_effect = lambda *args, **kwargs: "https://signed"

    def slow_factory(provider):
        time.sleep(0.05)
        return client

    factory = MagicMock(side_effect=slow_factory)
    monkeypatch.setattr("multipart_relay.repositories.storage_repo.get_storage_client", factory)
    monkeypatch.setattr(
        "multipart_relay.repositories.storage_repo.get_bucket_name", lambda provider: BUCKET
    )
    issuer = PresignedUrlIssuer(S3StorageRepository(provider="s3"))

    urls = await issuer.issue_batch("u1", "k1", list(range(1, 21)), 600)

    assert len(urls) == 20
    factory.assert_called_once_with("s3")
    assert client.generate_presigned_url.call_count == 20
