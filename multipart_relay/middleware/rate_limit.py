"""Rate limiting middleware using slowapi."""

from slowapi import Limiter
from slowapi.util import get_remote_address
from ..config import settings

# Initialize rate limiter
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{settings.rate_limit_per_minute}/minute"],
)


def multipart_rate_limit() -> str:
    """Per-client limit for the multipart endpoint, read at request time."""
    return f"{settings.rate_limit_per_minute}/minute"
