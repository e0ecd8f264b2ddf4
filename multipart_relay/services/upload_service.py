"""Multipart upload orchestration."""

from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from ..config.settings import Settings
from ..core.exceptions import (
    AlreadyFinalized,
    InvalidDestination,
    InvalidPartRecord,
    MissingInput,
)
from ..models.upload_session import PartRecord, UploadSession, UploadState
from ..repositories.base import MultipartStore
from ..utils.constants import MAX_PRESIGNED_EXPIRY_SECONDS
from ..utils.helpers import default_key_namer, format_file_size
from ..utils.logger import get_logger
from .part_sizer import PartPlan, plan_parts
from .presign_service import PresignedUrlIssuer

logger = get_logger(__name__)

KeyNamer = Callable[[Any, Optional[Mapping[str, Any]]], str]

REQUIRED_PART_FIELDS = ("PartNumber", "Size", "ETag")


class UploadOrchestrator:
    """
    Drives the multipart upload protocol against a store.

    Holds no session table: every operation is parameterized by
    ``(upload_id, key)`` and the store stays the source of truth. Nothing is
    retried here; callers decide whether to retry or abort.
    """

    def __init__(
        self,
        store: MultipartStore,
        policy: Settings,
        key_namer: KeyNamer = default_key_namer,
        issuer: Optional[PresignedUrlIssuer] = None,
    ):
        self.store = store
        self.policy = policy
        self.key_namer = key_namer
        self.issuer = issuer or PresignedUrlIssuer(store)

    def plan(self, file_size: int) -> PartPlan:
        """Split a file of ``file_size`` bytes according to the upload policy."""
        return plan_parts(
            file_size,
            default_chunk_size=self.policy.default_chunk_size_bytes,
            max_parts=self.policy.max_part_count,
            min_part_size=self.policy.min_part_size_bytes,
            max_part_size=self.policy.max_part_size_bytes,
        )

    async def start_upload(
        self, file: Any, filename_params: Optional[Mapping[str, Any]] = None
    ) -> UploadSession:
        """Name the destination object and open a multipart upload for it."""
        if file is None:
            raise MissingInput("Missing param: file")

        key = self.key_namer(file, filename_params)
        if not key:
            raise InvalidDestination("Naming function produced an empty key")
        content_type = getattr(file, "type", None) or self.policy.default_content_type

        created_key, upload_id = await self.store.create_multipart_upload(key, content_type)
        session = UploadSession(key=created_key, upload_id=upload_id)

        file_size = getattr(file, "size", None)
        logger.info(
            "Multipart upload created",
            upload_id=upload_id,
            key=created_key,
            content_type=content_type,
            size=format_file_size(file_size) if file_size is not None else None,
        )
        return session

    async def issue_part_urls(
        self,
        upload_id: Optional[str],
        key: Optional[str],
        part_numbers: Optional[Sequence[int]],
        expires_in: Optional[int] = None,
    ) -> Tuple[UploadSession, Dict[int, str]]:
        """
        Presign one upload_part URL per requested part number.

        Returns:
            The session (parts_issued) and a part number -> URL mapping
            covering exactly the requested numbers
        """
        session = _open_session(upload_id, key)
        numbers = self._validate_part_numbers(part_numbers)
        expiry = expires_in if expires_in is not None else self.policy.presigned_url_expiry_seconds
        if not 0 < expiry <= MAX_PRESIGNED_EXPIRY_SECONDS:
            raise MissingInput(
                f"Expiry must be between 1 and {MAX_PRESIGNED_EXPIRY_SECONDS} seconds",
                details={"expires": expiry},
            )

        urls = await self.issuer.issue_batch(session.upload_id, session.key, numbers, expiry)
        session.mark_parts_issued()

        logger.info(
            "Part URLs issued",
            upload_id=session.upload_id,
            key=session.key,
            part_count=len(urls),
            expires_in=expiry,
        )
        return session, urls

    async def list_parts(self, upload_id: Optional[str], key: Optional[str]) -> UploadSession:
        """
        Fetch the store's part inventory for an upload.

        The listing fails as a whole on the first record missing PartNumber,
        Size or ETag rather than returning a shortened list.
        """
        session = _open_session(upload_id, key)
        records = await self.store.list_parts(session.upload_id, session.key)

        parts: List[PartRecord] = []
        for record in records:
            missing = [f for f in REQUIRED_PART_FIELDS if record.get(f) is None]
            if missing:
                logger.error(
                    "Invalid part record in store listing",
                    upload_id=session.upload_id,
                    key=session.key,
                    missing=missing,
                )
                raise InvalidPartRecord(
                    {f: record.get(f) for f in REQUIRED_PART_FIELDS},
                    f"missing {', '.join(missing)}",
                )
            parts.append(
                PartRecord(
                    part_number=int(record["PartNumber"]),
                    size=int(record["Size"]),
                    etag=record["ETag"],
                )
            )

        session.record_parts(parts)
        return session

    async def complete_upload(
        self,
        upload_id: Optional[str],
        key: Optional[str],
        parts: Optional[Sequence[Mapping[str, Any]]],
    ) -> UploadSession:
        """
        Ask the store to assemble the object from the declared parts.

        The declared list is advisory; the store checks it against what was
        actually uploaded and its rejection is raised as PartMismatch.
        """
        session = _open_session(upload_id, key)
        declared = self._validate_declared_parts(parts)

        location = await self.store.complete_multipart_upload(
            session.upload_id,
            session.key,
            [{"PartNumber": p.part_number, "ETag": p.etag} for p in declared],
        )
        session.record_parts(declared)
        session.mark_completed(location)

        logger.info(
            "Multipart upload completed",
            upload_id=session.upload_id,
            key=session.key,
            part_count=len(declared),
            location=location,
        )
        return session

    async def abort_upload(self, upload_id: Optional[str], key: Optional[str]) -> UploadSession:
        """
        Discard an upload and its parts.

        Aborting an upload the store no longer knows is reported through
        ``session.already_finalized`` rather than as a failure.
        """
        session = _open_session(upload_id, key)
        try:
            await self.store.abort_multipart_upload(session.upload_id, session.key)
        except AlreadyFinalized as e:
            logger.info(
                "Abort on finalized upload",
                upload_id=session.upload_id,
                key=session.key,
                reason=e.message,
            )
            session.mark_aborted(already_finalized=True)
            return session

        session.mark_aborted()
        logger.info("Multipart upload aborted", upload_id=session.upload_id, key=session.key)
        return session

    def _validate_part_numbers(self, part_numbers: Optional[Sequence[int]]) -> List[int]:
        if not part_numbers:
            raise MissingInput("Missing param: partNumbers")
        if len(part_numbers) > self.policy.max_part_count:
            raise MissingInput(
                f"At most {self.policy.max_part_count} part numbers per request",
                details={"requested": len(part_numbers)},
            )

        numbers: List[int] = []
        for n in part_numbers:
            _check_part_number(n, self.policy.store_max_part_number)
            numbers.append(n)
        if len(set(numbers)) != len(numbers):
            raise MissingInput("Duplicate part numbers", details={"partNumbers": numbers})
        return numbers

    def _validate_declared_parts(
        self, parts: Optional[Sequence[Mapping[str, Any]]]
    ) -> List[PartRecord]:
        if not parts:
            raise MissingInput("Missing param: parts")

        declared: Dict[int, PartRecord] = {}
        for part in parts:
            number = part.get("PartNumber")
            etag = part.get("ETag")
            if number is None or not etag:
                raise MissingInput(
                    "Every part needs PartNumber and ETag", details={"part": dict(part)}
                )
            _check_part_number(number, self.policy.store_max_part_number)
            if number in declared:
                raise MissingInput(f"Duplicate part number {number}")
            declared[number] = PartRecord(
                part_number=number, size=int(part.get("Size") or 0), etag=etag
            )

        # The store requires ascending part order
        return [declared[n] for n in sorted(declared)]


def _open_session(upload_id: Optional[str], key: Optional[str]) -> UploadSession:
    """Build the view of an existing upload; raises MissingInput when unidentified."""
    return UploadSession(key=key or "", upload_id=upload_id or "", state=UploadState.CREATED)


def _check_part_number(number: Any, upper_bound: int) -> None:
    if isinstance(number, bool) or not isinstance(number, int) or not 1 <= number <= upper_bound:
        raise MissingInput(
            f"Part numbers must be integers between 1 and {upper_bound}",
            details={"partNumber": number},
        )
