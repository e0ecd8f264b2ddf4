"""Configuration module for application settings."""

from .settings import settings
from .storage import get_storage_client, get_bucket_name

__all__ = [
    "settings",
    "get_storage_client",
    "get_bucket_name",
]
