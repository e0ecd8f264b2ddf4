"""Application settings using Pydantic Settings."""

from typing import List, Optional
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_comma_separated_list(v):
    """Parse comma-separated string into list."""
    if isinstance(v, str):
        return [item.strip() for item in v.split(",") if item.strip()]
    if isinstance(v, list):
        return v
    return []


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = Field(default="Multipart Relay", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    environment: str = Field(default="development", alias="ENVIRONMENT")

    # Storage
    storage_provider: str = Field(default="s3", alias="STORAGE_PROVIDER")
    aws_access_key_id: str = Field(default="", alias="AWS_ACCESS_KEY_ID")
    aws_secret_access_key: str = Field(default="", alias="AWS_SECRET_ACCESS_KEY")
    aws_region: str = Field(default="us-east-1", alias="AWS_REGION")
    s3_bucket_name: str = Field(default="multipart-uploads", alias="S3_BUCKET_NAME")
    s3_endpoint_url: Optional[str] = Field(default=None, alias="S3_ENDPOINT_URL")

    # Wasabi
    wasabi_access_key: str = Field(default="", alias="WASABI_ACCESS_KEY")
    wasabi_secret_key: str = Field(default="", alias="WASABI_SECRET_KEY")
    wasabi_bucket_name: str = Field(default="", alias="WASABI_BUCKET_NAME")
    wasabi_endpoint: str = Field(
        default="https://s3.wasabisys.com", alias="WASABI_ENDPOINT"
    )

    # Multipart upload policy
    default_chunk_size_bytes: int = Field(
        default=20 * 1024 * 1024, gt=0, alias="DEFAULT_CHUNK_SIZE_BYTES"
    )
    max_part_count: int = Field(default=9000, gt=0, alias="MAX_PART_COUNT")
    max_concurrent_parts: int = Field(default=5, gt=0, alias="MAX_CONCURRENT_PARTS")
    presigned_url_expiry_seconds: int = Field(
        default=3600, gt=0, le=604800, alias="PRESIGNED_URL_EXPIRY_SECONDS"
    )
    min_part_size_bytes: int = Field(
        default=5 * 1024 * 1024, gt=0, alias="MIN_PART_SIZE_BYTES"
    )
    max_part_size_bytes: int = Field(
        default=5 * 1024 * 1024 * 1024, gt=0, alias="MAX_PART_SIZE_BYTES"
    )
    store_max_part_number: int = Field(default=10000, gt=0, alias="STORE_MAX_PART_NUMBER")
    default_content_type: str = Field(
        default="application/octet-stream", alias="DEFAULT_CONTENT_TYPE"
    )
    key_prefix: str = Field(default="uploads", alias="KEY_PREFIX")

    # CORS (stored as string, parsed via property)
    allowed_origins_str: str = Field(
        default="http://localhost:3000,http://localhost:8000",
        alias="ALLOWED_ORIGINS",
        exclude=True,  # Don't include in model dump
    )

    @property
    def allowed_origins(self) -> List[str]:
        """Parse allowed origins from comma-separated string."""
        return parse_comma_separated_list(self.allowed_origins_str)

    # Rate Limiting
    rate_limit_per_minute: int = Field(default=600, alias="RATE_LIMIT_PER_MINUTE")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @model_validator(mode="after")
    def check_part_limits(self) -> "Settings":
        """Reject upload policies the store could never accept."""
        if self.max_part_count > self.store_max_part_number:
            raise ValueError(
                f"MAX_PART_COUNT ({self.max_part_count}) exceeds the store limit "
                f"of {self.store_max_part_number} parts"
            )
        if self.min_part_size_bytes > self.max_part_size_bytes:
            raise ValueError("MIN_PART_SIZE_BYTES must not exceed MAX_PART_SIZE_BYTES")
        return self


# Global settings instance
settings = Settings()
