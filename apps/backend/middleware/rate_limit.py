"""Shared slowapi limiter (verified caller uid > client address)."""

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from config import settings


def get_rate_limit_key(request: Request) -> str:
    # Set by verify_firebase_token, which runs before the decorated endpoint.
    uid = getattr(request.state, "uid", None)
    return uid if uid else get_remote_address(request)


limiter = Limiter(
    key_func=get_rate_limit_key,
    default_limits=[settings.RATE_LIMIT_GLOBAL],
)
