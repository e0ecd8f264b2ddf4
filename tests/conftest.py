"""Pytest configuration and fixtures."""

import itertools
from typing import Any, AsyncGenerator, Dict, List, Optional, Set, Tuple

import pytest
from httpx import AsyncClient, ASGITransport

from multipart_relay.config.settings import Settings
from multipart_relay.core.dependencies import get_settings, get_store
from multipart_relay.core.exceptions import (
    AlreadyFinalized,
    PartMismatch,
    SigningFailed,
    StoreUnavailable,
)
from multipart_relay.main import app
from multipart_relay.middleware.rate_limit import limiter
from multipart_relay.repositories.base import MultipartStore
from multipart_relay.services.upload_service import UploadOrchestrator

MB = 1024 * 1024


class FakeMultipartStore(MultipartStore):
    """In-memory store with S3's multipart rules."""

    def __init__(self):
        self.uploads: Dict[str, Dict[str, Any]] = {}
        self.calls: List[Tuple[str, Any]] = []
        self.unavailable = False
        self.fail_sign_for: Set[int] = set()
        self.location_base: Optional[str] = "https://fake-store.test/bucket"
        self._ids = itertools.count(1)

    def _check_available(self, operation: str) -> None:
        if self.unavailable:
            raise StoreUnavailable(f"Store unreachable during {operation}")

    def _get(self, upload_id: str, key: str) -> Dict[str, Any]:
        upload = self.uploads.get(upload_id)
        if upload is None or upload["key"] != key:
            raise AlreadyFinalized("The specified upload does not exist")
        return upload

    def put_part(self, upload_id: str, part_number: int, size: int, etag: str) -> None:
        """Simulate a client PUT to a presigned URL."""
        self.uploads[upload_id]["parts"][part_number] = {
            "PartNumber": part_number,
            "Size": size,
            "ETag": etag,
        }

    async def create_multipart_upload(self, key: str, content_type: str) -> Tuple[str, str]:
        self.calls.append(("create", key))
        self._check_available("create_multipart_upload")
        upload_id = f"upload-{next(self._ids)}"
        self.uploads[upload_id] = {"key": key, "content_type": content_type, "parts": {}}
        return key, upload_id

    async def list_parts(self, upload_id: str, key: str) -> List[Dict[str, Any]]:
        self.calls.append(("list", upload_id))
        self._check_available("list_parts")
        upload = self._get(upload_id, key)
        return [upload["parts"][n] for n in sorted(upload["parts"])]

    async def complete_multipart_upload(
        self, upload_id: str, key: str, parts: List[Dict[str, Any]]
    ) -> Optional[str]:
        self.calls.append(("complete", upload_id))
        self._check_available("complete_multipart_upload")
        upload = self._get(upload_id, key)
        for part in parts:
            stored = upload["parts"].get(part["PartNumber"])
            if stored is None or stored["ETag"] != part["ETag"]:
                raise PartMismatch(
                    "One or more of the specified parts could not be found",
                    details={"part_number": part["PartNumber"]},
                )
        del self.uploads[upload_id]
        return f"{self.location_base}/{key}" if self.location_base else None

    async def abort_multipart_upload(self, upload_id: str, key: str) -> None:
        self.calls.append(("abort", upload_id))
        self._check_available("abort_multipart_upload")
        self._get(upload_id, key)
        del self.uploads[upload_id]

    def sign_upload_part(
        self, upload_id: str, key: str, part_number: int, expires_in: int
    ) -> str:
        self.calls.append(("sign", part_number))
        if part_number in self.fail_sign_for:
            raise SigningFailed(f"Failed to sign part {part_number}")
        return (
            f"https://fake-store.test/bucket/{key}"
            f"?uploadId={upload_id}&partNumber={part_number}&X-Amz-Expires={expires_in}"
        )


@pytest.fixture
def policy() -> Settings:
    """Upload policy with the default limits."""
    return Settings(
        default_chunk_size_bytes=20 * MB,
        max_part_count=9000,
        max_concurrent_parts=5,
        presigned_url_expiry_seconds=900,
        min_part_size_bytes=5 * MB,
        key_prefix="uploads",
        allowed_origins_str="http://localhost:3000",
    )


@pytest.fixture
def fake_store() -> FakeMultipartStore:
    return FakeMultipartStore()


@pytest.fixture
def orchestrator(fake_store: FakeMultipartStore, policy: Settings) -> UploadOrchestrator:
    return UploadOrchestrator(fake_store, policy)


@pytest.fixture
def file_descriptor() -> Dict[str, Any]:
    """Client file metadata as sent by browser uploaders."""
    return {
        "id": "uppy-holiday/mp4-1e-video/mp4-104857600",
        "name": "holiday.mp4",
        "type": "video/mp4",
        "size": 100 * MB,
        "meta": {},
    }


@pytest.fixture
async def client(
    fake_store: FakeMultipartStore, policy: Settings
) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client backed by the fake store."""
    app.dependency_overrides[get_store] = lambda: fake_store
    app.dependency_overrides[get_settings] = lambda: policy
    limiter.enabled = False

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    limiter.enabled = True
    app.dependency_overrides.clear()
