"""Upload session model."""

import enum
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from ..core.exceptions import (
    AlreadyFinalized,
    InvalidPartRecord,
    InvalidTransition,
    MissingInput,
)


class UploadState(str, enum.Enum):
    """Multipart upload session state."""

    CREATED = "created"
    PARTS_ISSUED = "parts_issued"
    COMPLETED = "completed"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in (UploadState.COMPLETED, UploadState.ABORTED)


@dataclass(frozen=True)
class PartRecord:
    """One uploaded part as reported by the store."""

    part_number: int
    size: int
    etag: str


@dataclass
class UploadSession:
    """
    A single in-flight multipart upload.

    The store owns the session; this object is the relay's view of it for
    the duration of one operation. ``key`` and ``upload_id`` never change
    after creation, and state only moves forward:
    created -> parts_issued -> completed, or any non-terminal state -> aborted.
    """

    key: str
    upload_id: str
    state: UploadState = UploadState.CREATED
    known_parts: Dict[int, PartRecord] = field(default_factory=dict)
    location: Optional[str] = None
    already_finalized: bool = False

    def __post_init__(self):
        if not self.key or not self.upload_id:
            raise MissingInput("Missing param: uploadId and key are required")

    def __setattr__(self, name, value):
        if name in ("key", "upload_id") and name in self.__dict__:
            raise AttributeError(f"{name} is immutable once a session is created")
        super().__setattr__(name, value)

    def _require_open(self, action: str) -> None:
        if self.state.is_terminal:
            raise AlreadyFinalized(
                f"Cannot {action}: upload is already {self.state.value}",
                details={"upload_id": self.upload_id, "key": self.key},
            )

    def mark_parts_issued(self) -> None:
        """Record that write permissions were handed out. Re-entry is a no-op."""
        self._require_open("issue part URLs")
        self.state = UploadState.PARTS_ISSUED

    def mark_completed(self, location: Optional[str] = None) -> None:
        self._require_open("complete")
        self.state = UploadState.COMPLETED
        self.location = location

    def mark_aborted(self, already_finalized: bool = False) -> None:
        if self.state == UploadState.COMPLETED:
            raise InvalidTransition(
                "Completed uploads cannot be aborted",
                details={"upload_id": self.upload_id, "key": self.key},
            )
        if self.state == UploadState.ABORTED:
            self.already_finalized = True
            return
        self.state = UploadState.ABORTED
        self.already_finalized = already_finalized

    def record_parts(self, parts: Iterable[PartRecord]) -> None:
        """Replace the part inventory with the store's authoritative listing."""
        inventory: Dict[int, PartRecord] = {}
        for part in parts:
            if part.part_number in inventory:
                raise InvalidPartRecord(
                    {"PartNumber": part.part_number, "Size": part.size, "ETag": part.etag},
                    f"duplicate part number {part.part_number}",
                )
            inventory[part.part_number] = part
        self.known_parts = dict(sorted(inventory.items()))

    @property
    def ordered_parts(self) -> List[PartRecord]:
        return list(self.known_parts.values())
