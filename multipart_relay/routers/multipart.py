"""Multipart upload routes.

A single POST route serves the five named operations so browser uploaders
can point at one base URL.
"""

from fastapi import APIRouter, Depends, Query, Request
from ..config.settings import Settings
from ..core.dependencies import get_dispatcher, get_orchestrator, get_settings
from ..middleware.rate_limit import limiter, multipart_rate_limit
from ..schemas.multipart import ErrorResponse, UploadOptionsResponse
from ..services.dispatcher import OperationDispatcher
from ..services.upload_service import UploadOrchestrator

router = APIRouter(prefix="/s3/multipart", tags=["multipart"])


@router.get("/options", response_model=UploadOptionsResponse)
async def get_upload_options(
    file_size: int = Query(0, ge=0, alias="fileSize"),
    orchestrator: UploadOrchestrator = Depends(get_orchestrator),
    policy: Settings = Depends(get_settings),
):
    """
    Part size and concurrency options for a file of ``fileSize`` bytes.
    """
    plan = orchestrator.plan(file_size)
    return UploadOptionsResponse(
        limit=policy.max_concurrent_parts,
        chunk_size=plan.chunk_size,
        part_count=plan.part_count,
        max_part_count=policy.max_part_count,
        expires_in=policy.presigned_url_expiry_seconds,
    )


@router.post(
    "/{endpoint}",
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
@limiter.limit(multipart_rate_limit)
async def handle_multipart(
    request: Request,
    endpoint: str,
    dispatcher: OperationDispatcher = Depends(get_dispatcher),
):
    """
    Run one multipart operation: createMultipartUpload, listParts,
    prepareUploadParts, abortMultipartUpload or completeMultipartUpload.
    """
    try:
        payload = await request.json()
    except ValueError:
        payload = None
    return await dispatcher.dispatch(endpoint, payload)
