"""Application constants and enums."""

from enum import Enum


class MultipartEndpoint(str, Enum):
    """Operation names accepted by the multipart endpoint.

    The five names are part of the client contract and must not change.
    """

    CREATE_MULTIPART_UPLOAD = "createMultipartUpload"
    LIST_PARTS = "listParts"
    PREPARE_UPLOAD_PARTS = "prepareUploadParts"
    ABORT_MULTIPART_UPLOAD = "abortMultipartUpload"
    COMPLETE_MULTIPART_UPLOAD = "completeMultipartUpload"


# botocore error codes grouped by how they are reported to callers
NO_SUCH_UPLOAD_CODES = frozenset({"NoSuchUpload"})
PART_MISMATCH_CODES = frozenset({"InvalidPart", "InvalidPartOrder", "EntityTooSmall"})
INVALID_DESTINATION_CODES = frozenset(
    {"NoSuchBucket", "InvalidBucketName", "KeyTooLongError", "InvalidArgument"}
)
TRANSIENT_ERROR_CODES = frozenset(
    {"InternalError", "ServiceUnavailable", "SlowDown", "RequestTimeout", "503", "500"}
)

# Longest validity S3 accepts for a SigV4 presigned URL
MAX_PRESIGNED_EXPIRY_SECONDS = 7 * 24 * 3600
