"""Reusable FastAPI dependencies."""

from functools import lru_cache
from fastapi import Depends
from ..config import settings
from ..config.settings import Settings
from ..repositories.base import MultipartStore
from ..repositories.storage_repo import S3StorageRepository
from ..services.dispatcher import OperationDispatcher
from ..services.upload_service import UploadOrchestrator


def get_settings() -> Settings:
    """Dependency to get application settings."""
    return settings


@lru_cache(maxsize=1)
def get_store() -> MultipartStore:
    """Dependency to get the shared storage repository."""
    return S3StorageRepository(provider=settings.storage_provider)


def get_orchestrator(
    store: MultipartStore = Depends(get_store),
    policy: Settings = Depends(get_settings),
) -> UploadOrchestrator:
    """Dependency to get an upload orchestrator bound to the store."""
    return UploadOrchestrator(store, policy)


def get_dispatcher(
    orchestrator: UploadOrchestrator = Depends(get_orchestrator),
) -> OperationDispatcher:
    """Dependency to get the multipart operation dispatcher."""
    return OperationDispatcher(orchestrator)
