"""Base repository describing the multipart capabilities of an object store."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple


class MultipartStore(ABC):
    """
    Object store operations the upload orchestrator depends on.

    Implementations raise the classified errors from ``core.exceptions``:
    StoreUnavailable, InvalidDestination, PartMismatch, AlreadyFinalized,
    StoreRejected and SigningFailed.
    """

    @abstractmethod
    async def create_multipart_upload(self, key: str, content_type: str) -> Tuple[str, str]:
        """
        Allocate a multipart upload.
        Returns:
            (key, upload_id) as echoed by the store
        """

    @abstractmethod
    async def list_parts(self, upload_id: str, key: str) -> List[Dict[str, Any]]:
        """
        List every uploaded part, following pagination to the end.
        Returns:
            Raw part records ({"PartNumber", "Size", "ETag", ...}) in store order
        """

    @abstractmethod
    async def complete_multipart_upload(
        self, upload_id: str, key: str, parts: List[Dict[str, Any]]
    ) -> Optional[str]:
        """
        Finalize the upload from ``[{"PartNumber": n, "ETag": etag}]``.
        Returns:
            Object location, or None when the store does not report one
        """

    @abstractmethod
    async def abort_multipart_upload(self, upload_id: str, key: str) -> None:
        """Discard the upload and its parts."""

    @abstractmethod
    def sign_upload_part(
        self, upload_id: str, key: str, part_number: int, expires_in: int
    ) -> str:
        """Produce a presigned upload_part URL. Local signing, no network round trip."""
