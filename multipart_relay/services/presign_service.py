"""Presigned URL issuing for part uploads."""

import asyncio
from typing import Dict, List

from ..core.exceptions import MultipartError, SigningFailed
from ..repositories.base import MultipartStore


class PresignedUrlIssuer:
    """Issues short-lived upload_part URLs, one per part number."""

    def __init__(self, store: MultipartStore):
        self.store = store

    async def issue(
        self, upload_id: str, key: str, part_number: int, expires_in: int
    ) -> str:
        """Sign a single part in the default executor."""
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(
                None,
                self.store.sign_upload_part,
                upload_id,
                key,
                part_number,
                expires_in,
            )
        except MultipartError:
            raise
        except Exception as e:
            raise SigningFailed(
                f"Failed to sign part {part_number}: {e}",
                details={"upload_id": upload_id, "key": key, "part_number": part_number},
            ) from e

    async def issue_batch(
        self, upload_id: str, key: str, part_numbers: List[int], expires_in: int
    ) -> Dict[int, str]:
        """
        Sign every part number concurrently.

        Either every part gets a URL or the first failure is raised and no
        mapping is returned.
        """
        urls = await asyncio.gather(
            *(self.issue(upload_id, key, n, expires_in) for n in part_numbers)
        )
        return dict(zip(part_numbers, urls))
