"""Multipart upload relay for S3-compatible object stores."""

__version__ = "1.0.0"
