"""Dispatch of named multipart operations to the orchestrator."""

from typing import Any, Awaitable, Callable, Dict, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..core.exceptions import MissingInput, UnknownOperation
from ..schemas.multipart import (
    AbortMultipartUploadResponse,
    CompleteMultipartUploadRequest,
    CompleteMultipartUploadResponse,
    CreateMultipartUploadRequest,
    CreateMultipartUploadResponse,
    PartInfo,
    PrepareUploadPartsRequest,
    PrepareUploadPartsResponse,
    UploadReference,
)
from ..utils.constants import MultipartEndpoint
from .upload_service import UploadOrchestrator

RequestModel = TypeVar("RequestModel", bound=BaseModel)


def parse_payload(model: Type[RequestModel], payload: Any) -> RequestModel:
    """Validate a raw JSON body, reporting schema failures as MissingInput."""
    if not isinstance(payload, dict):
        raise MissingInput("Request body must be a JSON object")
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise MissingInput(
            "Malformed request",
            details={"errors": e.errors(include_url=False, include_context=False)},
        ) from e


def _dump(model: BaseModel) -> Dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


class OperationDispatcher:
    """Maps the five multipart endpoint names onto orchestrator calls."""

    def __init__(self, orchestrator: UploadOrchestrator):
        self.orchestrator = orchestrator
        self._handlers: Dict[MultipartEndpoint, Callable[[Any], Awaitable[Any]]] = {
            MultipartEndpoint.CREATE_MULTIPART_UPLOAD: self.create_multipart_upload,
            MultipartEndpoint.LIST_PARTS: self.list_parts,
            MultipartEndpoint.PREPARE_UPLOAD_PARTS: self.prepare_upload_parts,
            MultipartEndpoint.ABORT_MULTIPART_UPLOAD: self.abort_multipart_upload,
            MultipartEndpoint.COMPLETE_MULTIPART_UPLOAD: self.complete_multipart_upload,
        }

    async def dispatch(self, name: Any, payload: Any) -> Any:
        """Run the operation called ``name``; raises UnknownOperation otherwise."""
        try:
            endpoint = MultipartEndpoint(name)
        except ValueError:
            raise UnknownOperation(name) from None
        return await self._handlers[endpoint](payload)

    async def create_multipart_upload(self, payload: Any) -> Dict[str, Any]:
        request = parse_payload(CreateMultipartUploadRequest, payload)
        session = await self.orchestrator.start_upload(request.file, request.filename_params)
        return _dump(CreateMultipartUploadResponse(key=session.key, upload_id=session.upload_id))

    async def list_parts(self, payload: Any) -> list:
        request = parse_payload(UploadReference, payload)
        session = await self.orchestrator.list_parts(request.upload_id, request.key)
        return [
            _dump(PartInfo(part_number=p.part_number, size=p.size, etag=p.etag))
            for p in session.ordered_parts
        ]

    async def prepare_upload_parts(self, payload: Any) -> Dict[str, Any]:
        request = parse_payload(PrepareUploadPartsRequest, payload)
        if request.part_data is None:
            raise MissingInput("Missing param: partData")
        part_data = request.part_data
        _, urls = await self.orchestrator.issue_part_urls(
            part_data.upload_id, part_data.key, part_data.part_numbers, part_data.expires
        )
        return _dump(PrepareUploadPartsResponse(presigned_urls=urls))

    async def abort_multipart_upload(self, payload: Any) -> Dict[str, Any]:
        request = parse_payload(UploadReference, payload)
        session = await self.orchestrator.abort_upload(request.upload_id, request.key)
        return _dump(
            AbortMultipartUploadResponse(already_finalized=session.already_finalized or None)
        )

    async def complete_multipart_upload(self, payload: Any) -> Dict[str, Any]:
        request = parse_payload(CompleteMultipartUploadRequest, payload)
        parts = None
        if request.parts is not None:
            parts = [p.model_dump(by_alias=True) for p in request.parts]
        session = await self.orchestrator.complete_upload(request.upload_id, request.key, parts)
        return _dump(CompleteMultipartUploadResponse(location=session.location))
