from typing import Optional

import redis


def make_redis_client(redis_url: Optional[str]) -> Optional[redis.Redis]:
    """
    Creates a Redis client for `redis_url`, or None when no URL is configured.
    decode_responses=True returns str instead of bytes.
    """
    if not redis_url:
        return None
    return redis.Redis.from_url(redis_url, decode_responses=True)
