from __future__ import annotations
import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from redis import Redis
from redis.exceptions import RedisError

from slinker.core.config import Settings
from slinker.core.errors import AuthenticationRequired
from slinker.core.security import read_session_token
from slinker.services.link_store import LinkStore
from slinker.services.rate_limiter import QuotaResult, check_fixed_window, create_quota_key

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> LinkStore:
    return request.app.state.store


def get_redis(request: Request) -> Optional[Redis]:
    return request.app.state.redis


def get_current_owner(
    request: Request,
    settings: Settings = Depends(get_settings),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    """
    Owner email from the session cookie, or from a Bearer token for API clients.
    Invalid or expired tokens count as signed out.
    """
    token = credentials.credentials if credentials else request.cookies.get(settings.session_cookie_name)
    if not token:
        return None
    return read_session_token(settings, token)


def require_owner(owner: Optional[str] = Depends(get_current_owner)) -> str:
    if owner is None:
        raise AuthenticationRequired()
    return owner


def enforce_create_quota(r: Optional[Redis], owner: str, settings: Settings) -> Optional[QuotaResult]:
    """
    Per-owner fixed window on POST /shorten, counted only once the request
    is valid and signed in. No Redis configured means no quota.
    """
    if r is None:
        return None

    try:
        result = check_fixed_window(
            r,
            key=create_quota_key(owner),
            limit=settings.create_limit,
            window_seconds=settings.create_window,
        )
    except RedisError:
        logger.exception("Create quota check failed; letting the request through")
        return None

    if not result.allowed:
        raise HTTPException(
            status_code=429,
            detail=f"Too many links created. Try again in {result.reset_seconds} seconds.",
            headers={
                "Retry-After": str(result.reset_seconds),
                "X-RateLimit-Limit": str(result.limit),
                "X-RateLimit-Remaining": str(result.remaining),
            },
        )
    return result
