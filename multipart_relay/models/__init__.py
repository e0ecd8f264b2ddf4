"""Domain models."""

from .upload_session import PartRecord, UploadSession, UploadState

__all__ = ["PartRecord", "UploadSession", "UploadState"]
