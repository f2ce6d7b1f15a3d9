from __future__ import annotations
from dataclasses import dataclass
import hashlib

from redis import Redis


@dataclass(frozen=True)
class QuotaResult:
    allowed: bool
    limit: int
    remaining: int
    reset_seconds: int


def create_quota_key(owner: str) -> str:
    # Hash the email so raw addresses never show up in Redis key listings.
    digest = hashlib.sha256(owner.strip().lower().encode("utf-8")).hexdigest()[:32]
    return f"slinker:quota:create:{digest}"


def check_fixed_window(
    r: Redis,
    key: str,
    limit: int,
    window_seconds: int,
) -> QuotaResult:
    """
    Fixed window counter:
    - INCR the key; the first hit in a window also sets EXPIRE
    - over `limit` within the window => blocked
    - reset_seconds comes from the key's TTL, falling back to the full window
    """
    count = int(r.incr(key))

    if count == 1:
        r.expire(key, window_seconds)

    ttl = r.ttl(key)
    reset_seconds = ttl if isinstance(ttl, int) and ttl > 0 else window_seconds

    return QuotaResult(
        allowed=count <= limit,
        limit=limit,
        remaining=max(0, limit - count),
        reset_seconds=reset_seconds,
    )
