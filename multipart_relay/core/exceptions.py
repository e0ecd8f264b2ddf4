"""
Multipart upload exceptions.

Every failure the relay reports is one of these classes. Each carries the
HTTP status the transport answers with and a machine-readable ``kind``
(the class name) so clients can decide between retrying and aborting.
"""

from typing import Any, Dict, Optional


class MultipartError(Exception):
    """
    Base exception for all multipart upload errors.

    Attributes:
        message: Human-readable error message
        kind: Machine-readable error kind
        details: Additional error context
        status_code: HTTP status used by the transport
    """

    status_code: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.kind = self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "kind": self.kind,
            "message": self.message,
            "details": self.details,
        }


class MissingInput(MultipartError):
    """Request is malformed or lacks a required field."""

    status_code = 400


class InvalidDestination(MultipartError):
    """The store refused the destination bucket or key."""

    status_code = 400


class StoreUnavailable(MultipartError):
    """Transient failure reaching the store. Safe to retry."""

    status_code = 503


class StoreRejected(MultipartError):
    """The store refused the request for a non-transient reason (e.g. AccessDenied)."""

    status_code = 502


class SigningFailed(MultipartError):
    """A presigned URL could not be produced."""

    status_code = 500


class InvalidPartRecord(MultipartError):
    """The store returned a part listing entry missing a required field."""

    status_code = 502

    def __init__(self, record: Dict[str, Any], reason: str):
        super().__init__(
            f"Invalid part record: {reason}", details={"record": record}
        )


class PartMismatch(MultipartError):
    """The declared part set disagrees with the store's record."""

    status_code = 409


class UnknownOperation(MultipartError):
    """Operation name is not one of the five multipart endpoints."""

    status_code = 404

    def __init__(self, name: Any):
        super().__init__(
            f"Endpoint could not be found: {name}", details={"endpoint": name}
        )


class AlreadyFinalized(MultipartError):
    """
    The upload was already completed or aborted.

    Informational when aborting: cleanup has nothing left to do.
    """

    status_code = 409


class InvalidTransition(MultipartError):
    """An upload session was asked to move backwards or out of a terminal state."""

    status_code = 409


class PartSizingError(MultipartError):
    """The upload policy cannot split a file within the store's limits."""

    status_code = 400
