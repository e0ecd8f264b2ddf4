"""Storage client configuration for S3-compatible providers (S3, Wasabi, MinIO)."""

from typing import Optional
import boto3
from botocore.client import BaseClient
from botocore.config import Config
from .settings import settings


def get_storage_client(provider: Optional[str] = None) -> BaseClient:
    """
    Get storage client based on configured provider.
    Returns boto3 client configured for the selected storage provider.
    """
    provider = (provider or settings.storage_provider).lower()

    if provider == "s3":
        return boto3.client(
            "s3",
            aws_access_key_id=settings.aws_access_key_id or None,
            aws_secret_access_key=settings.aws_secret_access_key or None,
            region_name=settings.aws_region,
            endpoint_url=settings.s3_endpoint_url,
            config=Config(signature_version="s3v4"),
        )

    elif provider == "wasabi":
        return boto3.client(
            "s3",
            aws_access_key_id=settings.wasabi_access_key,
            aws_secret_access_key=settings.wasabi_secret_key,
            endpoint_url=settings.wasabi_endpoint,
            region_name=settings.aws_region,
            config=Config(signature_version="s3v4"),
        )

    elif provider == "minio":
        # MinIO only serves path-style requests
        return boto3.client(
            "s3",
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            endpoint_url=settings.s3_endpoint_url,
            region_name=settings.aws_region,
            config=Config(signature_version="s3v4", s3={"addressing_style": "path"}),
        )

    else:
        raise ValueError(f"Unsupported storage provider: {provider}")


def get_bucket_name(provider: Optional[str] = None) -> str:
    """Get bucket name for the configured storage provider."""
    provider = (provider or settings.storage_provider).lower()

    if provider in ("s3", "minio"):
        return settings.s3_bucket_name
    elif provider == "wasabi":
        return settings.wasabi_bucket_name
    else:
        raise ValueError(f"Unsupported storage provider: {provider}")
