"""Part sizing for multipart uploads."""

from dataclasses import dataclass
from typing import Optional

from ..core.exceptions import PartSizingError


@dataclass(frozen=True)
class PartPlan:
    """How a file is split into parts."""

    chunk_size: int
    part_count: int
    last_part_size: int


def compute_chunk_size(file_size: int, default_chunk_size: int, max_parts: int) -> int:
    """
    Calculate the chunk size for a file.

    Uses ``default_chunk_size`` while the file fits in ``max_parts`` chunks,
    otherwise grows chunks to ``ceil(file_size / max_parts)``. An empty file
    is a single part of ``default_chunk_size``.
    """
    if default_chunk_size <= 0 or max_parts <= 0:
        raise PartSizingError(
            "Chunk size and maximum part count must be positive",
            details={"default_chunk_size": default_chunk_size, "max_parts": max_parts},
        )
    if file_size < 0:
        raise PartSizingError("File size cannot be negative", details={"file_size": file_size})
    if file_size == 0:
        return default_chunk_size

    if file_size <= default_chunk_size * max_parts:
        return default_chunk_size
    return -(-file_size // max_parts)


def plan_parts(
    file_size: int,
    default_chunk_size: int,
    max_parts: int,
    min_part_size: int = 1,
    max_part_size: Optional[int] = None,
) -> PartPlan:
    """
    Calculate chunk size and part count, clamped to the store's part limits.

    Returns:
        PartPlan with chunk size, total parts and the size of the final part
    """
    chunk_size = max(compute_chunk_size(file_size, default_chunk_size, max_parts), min_part_size)

    if max_part_size is not None and chunk_size > max_part_size:
        raise PartSizingError(
            f"File of {file_size} bytes needs parts of {chunk_size} bytes, "
            f"above the store maximum of {max_part_size}",
            details={"file_size": file_size, "chunk_size": chunk_size, "max_parts": max_parts},
        )

    if file_size == 0:
        return PartPlan(chunk_size=chunk_size, part_count=1, last_part_size=0)

    part_count = -(-file_size // chunk_size)
    last_part_size = file_size - chunk_size * (part_count - 1)
    return PartPlan(chunk_size=chunk_size, part_count=part_count, last_part_size=last_part_size)
