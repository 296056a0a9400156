from __future__ import annotations

import logging

import redis
from fastapi import Request

from app.connections.redis import get_redis
from app.utils.config import settings
from app.utils.errors import RateLimited


logger = logging.getLogger(__name__)


def limit_requests(window_seconds: int | None = None, max_requests: int | None = None):
    """Return a FastAPI dependency that caps requests per client IP in a fixed window.

    Each client IP gets a Redis counter with a TTL of the window length; once the counter passes ``max_requests`` further calls are
    rejected until the key expires.
    """
    window = window_seconds or settings.rate_limit_window_seconds
    budget = max_requests or settings.rate_limit_max_requests

    def _dependency(request: Request) -> None:
        client_ip = request.client.host if request.client else "unknown"
        key = f"rl:{client_ip}"
        try:
            client = get_redis()
            count = client.incr(key)
            ttl = client.ttl(key)
            # Arm the window on any counter left without a TTL
            if ttl < 0:
                client.expire(key, window)
                ttl = window
            if count <= budget:
                return
        except redis.RedisError:
            logger.warning("Rate limiter backend unavailable, letting request through", exc_info=True)
            return
        raise RateLimited(f"Too many requests. Try again in {max(ttl, 1)}s")

    return _dependency
