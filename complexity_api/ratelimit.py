"""
Fixed-window request rate limiting.

Each client IP may make ``limit`` requests per window. Counters live in
process memory by default, or in Redis when ``REDIS_URL`` is configured
so that several workers share one quota.
"""
from __future__ import annotations

import time

from cachetools import TTLCache
from fastapi import Request
from fastapi.responses import JSONResponse
from redis.asyncio import Redis

from complexity_api.config import logger
from complexity_api.errors import ErrorKind
from complexity_api.routes import error_response


_INCR_LUA = """
local count = redis.call("INCR", KEYS[1])
if count == 1 then
  redis.call("EXPIRE", KEYS[1], ARGV[1])
end
return count
"""


def get_client_ip(request: Request, trust_proxy_headers: bool = False) -> str:
    """Client address; forwarding headers count only when the proxy in front is trusted."""
    if not trust_proxy_headers:
        return request.client.host if request.client else "unknown"
    if forwarded := request.headers.get("X-Forwarded-For"):
        return forwarded.split(",")[0].strip()
    if real_ip := request.headers.get("X-Real-IP"):
        return real_ip.strip()
    return request.client.host if request.client else "unknown"


class MemoryWindowCounter:
    """In-process counters keyed by (ip, window)."""

    def __init__(self, window_seconds: int, maxsize: int = 10_000):
        self._counts: TTLCache = TTLCache(maxsize=maxsize, ttl=window_seconds)

    async def increment(self, ip: str, window: int, window_seconds: int) -> int:
        key = (ip, window)
        count = self._counts.get(key, 0) + 1
        self._counts[key] = count
        return count

    async def close(self) -> None:
        self._counts.clear()


class RedisWindowCounter:
    """Counters shared through Redis; INCR and EXPIRE run atomically."""

    def __init__(self, client: Redis):
        self._client = client

    @classmethod
    async def connect(cls, url: str) -> "RedisWindowCounter":
        client = Redis.from_url(url, decode_responses=True, socket_timeout=2, socket_connect_timeout=2)
        await client.ping()
        logger.info("Redis rate limit counter connected")
        return cls(client)

    async def increment(self, ip: str, window: int, window_seconds: int) -> int:
        key = f"complexity-analyzer:rl:{window}:ip:{ip}"
        return int(await self._client.eval(_INCR_LUA, 1, key, window_seconds))

    async def close(self) -> None:
        await self._client.aclose()


class RateLimiter:
    """HTTP middleware enforcing a fixed-window quota per client IP."""

    def __init__(self, limit: int, window_seconds: int):
        self.limit = limit
        self.window_seconds = window_seconds

    async def __call__(self, request: Request, call_next):
        if request.method == "OPTIONS":
            return await call_next(request)

        counter = request.app.state.rate_limit_counter
        client_ip = get_client_ip(request, request.app.state.settings.TRUST_PROXY_HEADERS)
        now = time.time()
        window = int(now // self.window_seconds)
        reset_in = int((window + 1) * self.window_seconds - now) + 1

        try:
            count = await counter.increment(client_ip, window, self.window_seconds)
        except Exception as exc:
            # Fail closed when the counter backend is unreachable
            logger.error("Rate limiting error: %s: %s", type(exc).__name__, exc)
            return JSONResponse(
                status_code=503,
                content={
                    "error": "Service Unavailable",
                    "message": "Rate limiting service error",
                    "code": "SERVICE_UNAVAILABLE",
                },
            )

        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(max(0, self.limit - count)),
            "X-RateLimit-Reset": str(reset_in),
        }

        if count > self.limit:
            logger.warning("Rate limit exceeded for %s: %d/%d", client_ip, count, self.limit)
            response = error_response(
                ErrorKind.RATE_LIMITED,
                message="Too many requests from this IP, please try again later.",
                retry_after=reset_in,
            )
            response.headers.update(headers)
            return response

        response = await call_next(request)
        response.headers.update(headers)
        return response
