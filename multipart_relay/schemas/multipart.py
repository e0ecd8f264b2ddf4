"""Multipart upload request and response schemas.

Field aliases follow the wire format used by browser multipart uploaders
(camelCase request fields, S3-style part fields).
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class FileDescriptor(BaseModel):
    """Client-side description of the file being uploaded."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = Field(None, description="Client-assigned file id")
    name: Optional[str] = Field(None, description="Original file name")
    type: Optional[str] = Field(None, description="MIME type of the file")
    size: Optional[int] = Field(None, ge=0, description="Total file size in bytes")
    meta: Dict[str, Any] = Field(default_factory=dict, description="Free-form client metadata")


class CreateMultipartUploadRequest(BaseModel):
    """Request to create a multipart upload."""

    model_config = ConfigDict(populate_by_name=True)

    file: Optional[FileDescriptor] = None
    filename_params: Optional[Dict[str, Any]] = Field(
        None, alias="filenameParams", description="Parameters passed to the naming function"
    )


class CreateMultipartUploadResponse(BaseModel):
    """Response from creating a multipart upload."""

    model_config = ConfigDict(populate_by_name=True)

    key: str = Field(..., description="Destination object key")
    upload_id: str = Field(..., alias="uploadId", description="Store-assigned upload ID")


class UploadReference(BaseModel):
    """Identifies an existing upload (listParts, abortMultipartUpload)."""

    model_config = ConfigDict(populate_by_name=True)

    file: Optional[FileDescriptor] = None
    upload_id: Optional[str] = Field(None, alias="uploadId")
    key: Optional[str] = None


class PartData(BaseModel):
    """Upload and part numbers to presign."""

    model_config = ConfigDict(populate_by_name=True)

    upload_id: Optional[str] = Field(None, alias="uploadId")
    key: Optional[str] = None
    part_numbers: Optional[List[int]] = Field(None, alias="partNumbers")
    expires: Optional[int] = Field(None, description="URL validity in seconds")


class PrepareUploadPartsRequest(BaseModel):
    """Request presigned URLs for a batch of parts."""

    model_config = ConfigDict(populate_by_name=True)

    file: Optional[FileDescriptor] = None
    part_data: Optional[PartData] = Field(None, alias="partData")


class PrepareUploadPartsResponse(BaseModel):
    """Presigned URLs keyed by part number."""

    model_config = ConfigDict(populate_by_name=True)

    presigned_urls: Dict[int, str] = Field(..., alias="presignedUrls")


class PartInfo(BaseModel):
    """A part as listed by the store."""

    model_config = ConfigDict(populate_by_name=True)

    part_number: int = Field(..., alias="PartNumber", description="Part number (1-indexed)")
    size: int = Field(..., alias="Size", description="Part size in bytes")
    etag: str = Field(..., alias="ETag", description="ETag returned by the store")


class CompletedPart(BaseModel):
    """A part the client declares as uploaded."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    part_number: Optional[int] = Field(None, alias="PartNumber")
    etag: Optional[str] = Field(None, alias="ETag")
    size: Optional[int] = Field(None, alias="Size")


class CompleteMultipartUploadRequest(BaseModel):
    """Request to complete a multipart upload."""

    model_config = ConfigDict(populate_by_name=True)

    file: Optional[FileDescriptor] = None
    upload_id: Optional[str] = Field(None, alias="uploadId")
    key: Optional[str] = None
    parts: Optional[List[CompletedPart]] = None


class CompleteMultipartUploadResponse(BaseModel):
    """Location of the assembled object, when the store reports one."""

    location: Optional[str] = None


class AbortMultipartUploadResponse(BaseModel):
    """Empty on a fresh abort; flags uploads that were already finalized."""

    model_config = ConfigDict(populate_by_name=True)

    already_finalized: Optional[bool] = Field(None, alias="alreadyFinalized")


class UploadOptionsResponse(BaseModel):
    """Part size and concurrency options for the client upload driver."""

    model_config = ConfigDict(populate_by_name=True)

    limit: int = Field(..., description="Maximum simultaneous part uploads")
    chunk_size: int = Field(..., alias="chunkSize")
    part_count: int = Field(..., alias="partCount")
    max_part_count: int = Field(..., alias="maxPartCount")
    expires_in: int = Field(..., alias="expiresIn")


class ErrorDetail(BaseModel):
    """Classified failure."""

    kind: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Failure payload; never mixed with success data."""

    err: ErrorDetail
