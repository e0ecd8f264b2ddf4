"""Helper functions for common operations."""

import hashlib
import os
from typing import Any, Mapping, Optional


def sanitize_filename(filename: str) -> str:
    """Sanitize filename for safe storage."""
    # Remove path components and dangerous characters
    filename = os.path.basename(filename.replace("\\", "/"))
    filename = "".join(c if c.isalnum() or c in "._-" else "_" for c in filename)
    return filename[:255] or "unnamed"


def generate_file_hash(content: bytes) -> str:
    """Generate SHA-256 hash of file content."""
    return hashlib.sha256(content).hexdigest()


def format_file_size(size_bytes: float) -> str:
    """Format file size in human-readable format."""
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if size_bytes < 1024.0:
            return f"{size_bytes:.2f} {unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.2f} PB"


def generate_object_key(
    file_id: Optional[str],
    filename: str,
    size: Optional[int] = None,
    prefix: Optional[str] = None,
) -> str:
    """
    Generate S3-compatible storage key.
    Format: [prefix/]fingerprint/filename

    The fingerprint is derived from the client's file id and size, so the
    same file metadata always maps to the same key.
    """
    fingerprint_source = f"{file_id or ''}:{filename}:{size if size is not None else ''}"
    fingerprint = generate_file_hash(fingerprint_source.encode("utf-8"))[:16]
    name = sanitize_filename(filename)

    if prefix:
        return f"{prefix.strip('/')}/{fingerprint}/{name}"
    return f"{fingerprint}/{name}"


def default_key_namer(file: Any, filename_params: Optional[Mapping[str, Any]]) -> str:
    """
    Default destination naming function.

    ``filename_params`` may carry a ``prefix`` overriding the configured one.
    """
    from ..config import settings

    params = filename_params or {}
    prefix = params.get("prefix") or settings.key_prefix
    return generate_object_key(
        file_id=getattr(file, "id", None),
        filename=getattr(file, "name", None) or "unnamed",
        size=getattr(file, "size", None),
        prefix=prefix,
    )
