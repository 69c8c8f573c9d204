"""Rate limiter configuration module.

This module is separate from main.py to avoid circular imports when routers
need to access the limiter. Limits are keyed by client address; the per-route
limit strings come from settings.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from models.config import settings

# Create rate limiter - imported by routers and main.py
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)


def interaction_limit() -> str:
    return settings.RATE_LIMIT_INTERACTION


def comment_limit() -> str:
    return settings.RATE_LIMIT_COMMENT


def follow_limit() -> str:
    return settings.RATE_LIMIT_FOLLOW


def content_limit() -> str:
    return settings.RATE_LIMIT_CONTENT


def auth_limit() -> str:
    return settings.RATE_LIMIT_AUTH
