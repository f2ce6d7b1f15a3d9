from __future__ import annotations
from datetime import datetime, timedelta, timezone
import hmac
import secrets
from typing import Optional

from jose import JWTError, jwt

from slinker.core.config import Settings


def issue_session_token(settings: Settings, email: str, expires_delta: timedelta | None = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.session_ttl_minutes))
    to_encode = {"sub": email, "exp": expire}
    return jwt.encode(to_encode, settings.session_secret, algorithm=settings.session_algorithm)


def read_session_token(settings: Settings, token: str) -> Optional[str]:
    """Returns the owner email carried by `token`, or None if it is invalid or expired."""
    try:
        payload = jwt.decode(token, settings.session_secret, algorithms=[settings.session_algorithm])
    except JWTError:
        return None
    email = payload.get("sub")
    return email if isinstance(email, str) and email else None


def new_oauth_state() -> str:
    return secrets.token_urlsafe(24)


def states_match(expected: str | None, received: str | None) -> bool:
    return bool(expected and received) and hmac.compare_digest(expected, received)
