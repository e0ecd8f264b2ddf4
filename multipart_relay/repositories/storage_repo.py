"""Storage repository for S3-compatible multipart operations."""

import asyncio
import threading
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Tuple

from botocore.client import BaseClient
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ParamValidationError,
    ReadTimeoutError,
)

from ..config.storage import get_bucket_name, get_storage_client
from ..core.exceptions import (
    AlreadyFinalized,
    InvalidDestination,
    MultipartError,
    PartMismatch,
    SigningFailed,
    StoreRejected,
    StoreUnavailable,
)
from ..utils.constants import (
    INVALID_DESTINATION_CODES,
    NO_SUCH_UPLOAD_CODES,
    PART_MISMATCH_CODES,
    TRANSIENT_ERROR_CODES,
)
from ..utils.logger import get_logger
from .base import MultipartStore

logger = get_logger(__name__)

_CONNECTION_ERRORS = (
    EndpointConnectionError,
    ConnectionClosedError,
    ConnectTimeoutError,
    ReadTimeoutError,
)


def classify_store_error(exc: Exception, operation: str, **context: Any) -> MultipartError:
    """Map a botocore failure onto the relay's error taxonomy."""
    details = {"operation": operation, **context}

    if isinstance(exc, _CONNECTION_ERRORS):
        return StoreUnavailable(f"Store unreachable during {operation}: {exc}", details)

    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        code = str(error.get("Code", ""))
        message = error.get("Message") or str(exc)
        status_code = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        details["code"] = code

        if code in NO_SUCH_UPLOAD_CODES:
            return AlreadyFinalized(
                f"Upload no longer exists (completed or aborted): {message}", details
            )
        if code in PART_MISMATCH_CODES:
            return PartMismatch(message, details)
        if code in INVALID_DESTINATION_CODES and operation == "create_multipart_upload":
            return InvalidDestination(message, details)
        if code in TRANSIENT_ERROR_CODES or (status_code is not None and status_code >= 500):
            return StoreUnavailable(message, details)
        return StoreRejected(message, details)

    if isinstance(exc, ParamValidationError) and operation == "create_multipart_upload":
        return InvalidDestination(str(exc), details)

    return StoreRejected(f"Store request failed during {operation}: {exc}", details)


class S3StorageRepository(MultipartStore):
    """Multipart store backed by a boto3 S3 client."""

    def __init__(
        self,
        client: Optional[BaseClient] = None,
        bucket_name: Optional[str] = None,
        provider: Optional[str] = None,
    ):
        self.client = client
        self.bucket_name = bucket_name
        self.provider = provider
        self._client_lock = threading.Lock()

    def _get_client(self) -> BaseClient:
        """Get or create storage client.

        Signing calls this from executor threads; boto3 client creation is not
        thread-safe, so the client is built once under a lock.
        """
        with self._client_lock:
            if self.client is None:
                self.client = get_storage_client(self.provider)
            if self.bucket_name is None:
                self.bucket_name = get_bucket_name(self.provider)
        return self.client

    async def _call(self, operation: str, func: Callable[[], Any], **context: Any) -> Any:
        """Run a blocking boto3 call in the default executor and classify failures."""
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, func)
        except (ClientError, BotoCoreError) as e:
            error = classify_store_error(e, operation, **context)
            logger.warning(
                "Store operation failed",
                operation=operation,
                kind=error.kind,
                error=error.message,
                **context,
            )
            raise error from e

    async def create_multipart_upload(self, key: str, content_type: str) -> Tuple[str, str]:
        client = self._get_client()
        response = await self._call(
            "create_multipart_upload",
            partial(
                client.create_multipart_upload,
                Bucket=self.bucket_name,
                Key=key,
                ContentType=content_type,
            ),
            key=key,
        )
        upload_id = response.get("UploadId")
        if not upload_id:
            raise StoreRejected(
                "Store did not return an upload ID",
                details={"operation": "create_multipart_upload", "key": key},
            )
        return response.get("Key") or key, upload_id

    async def list_parts(self, upload_id: str, key: str) -> List[Dict[str, Any]]:
        client = self._get_client()

        def _collect() -> List[Dict[str, Any]]:
            paginator = client.get_paginator("list_parts")
            parts: List[Dict[str, Any]] = []
            for page in paginator.paginate(
                Bucket=self.bucket_name, Key=key, UploadId=upload_id
            ):
                parts.extend(page.get("Parts", []))
            return parts

        return await self._call("list_parts", _collect, upload_id=upload_id, key=key)

    async def complete_multipart_upload(
        self, upload_id: str, key: str, parts: List[Dict[str, Any]]
    ) -> Optional[str]:
        client = self._get_client()
        response = await self._call(
            "complete_multipart_upload",
            partial(
                client.complete_multipart_upload,
                Bucket=self.bucket_name,
                Key=key,
                UploadId=upload_id,
                MultipartUpload={"Parts": parts},
            ),
            upload_id=upload_id,
            key=key,
        )
        return response.get("Location")

    async def abort_multipart_upload(self, upload_id: str, key: str) -> None:
        client = self._get_client()
        await self._call(
            "abort_multipart_upload",
            partial(
                client.abort_multipart_upload,
                Bucket=self.bucket_name,
                Key=key,
                UploadId=upload_id,
            ),
            upload_id=upload_id,
            key=key,
        )

    def sign_upload_part(
        self, upload_id: str, key: str, part_number: int, expires_in: int
    ) -> str:
        client = self._get_client()
        try:
            return client.generate_presigned_url(
                "upload_part",
                Params={
                    "Bucket": self.bucket_name,
                    "Key": key,
                    "UploadId": upload_id,
                    "PartNumber": part_number,
                },
                ExpiresIn=expires_in,
            )
        except (ClientError, BotoCoreError) as e:
            raise SigningFailed(
                f"Failed to sign part {part_number}: {e}",
                details={"upload_id": upload_id, "key": key, "part_number": part_number},
            ) from e
