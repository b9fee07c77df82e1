"""Rate limiting middleware using Redis.

Per-user limits for authenticated requests (keyed on the JWT subject),
per-IP limits otherwise. Sliding window kept in a Redis sorted set.
If Redis is unreachable the request is allowed through.
"""

import logging
import time
from typing import Callable, Optional

import redis.asyncio as redis
from fastapi import Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware

from charterdesk.auth.jwt import decode_token
from charterdesk.middleware.exceptions import create_error_response
from charterdesk.utils.redis_client import get_redis

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app,
        default_limit: int = 100,  # requests
        authenticated_limit: int = 500,
        default_window: int = 60,  # seconds
        exempt_paths: Optional[list[str]] = None,
    ):
        super().__init__(app)
        self.default_limit = default_limit
        self.authenticated_limit = authenticated_limit
        self.default_window = default_window
        self.exempt_paths = exempt_paths or ["/health", "/docs", "/openapi.json"]

        # Token-issuing endpoints get tighter windows
        self.custom_limits = {
            "/api/auth/login": (5, 60),
            "/api/auth/register": (3, 300),
            "/api/auth/password-reset/request": (3, 300),
            "/api/invitations/accept": (10, 60),
        }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if any(request.url.path.startswith(path) for path in self.exempt_paths):
            return await call_next(request)

        key, authenticated = self._get_rate_limit_key(request)
        limit, window = self._get_limit_for_path(request.url.path, authenticated)

        allowed, remaining, reset_time = await self._check_rate_limit(key, limit, window)
        if not allowed:
            retry_after = max(int(reset_time - time.time()), 1)
            return create_error_response(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                message=f"Rate limit exceeded. Try again in {retry_after} seconds.",
                error_code="RATE_LIMITED",
                headers={
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": str(int(reset_time)),
                    "Retry-After": str(retry_after),
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        response.headers["X-RateLimit-Reset"] = str(int(reset_time))
        return response

    def _get_limit_for_path(self, path: str, authenticated: bool) -> tuple[int, int]:
        for pattern, (limit, window) in self.custom_limits.items():
            if path.startswith(pattern):
                return limit, window
        if authenticated:
            return self.authenticated_limit, self.default_window
        return self.default_limit, self.default_window

    def _get_rate_limit_key(self, request: Request) -> tuple[str, bool]:
        auth_header = request.headers.get("authorization", "")
        if auth_header.startswith("Bearer "):
            user_id = decode_token(auth_header[7:]).get("sub")
            if user_id:
                return f"user:{user_id}", True

        # Behind a load balancer the client IP arrives in X-Forwarded-For
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            ip = forwarded.split(",")[0].strip()
        else:
            ip = request.client.host if request.client else "unknown"
        return f"ip:{ip}", False

    async def _check_rate_limit(
        self, key: str, limit: int, window: int
    ) -> tuple[bool, int, float]:
        """Sliding-window check. Returns (allowed, remaining, reset_time)."""
        current_time = time.time()
        redis_key = f"ratelimit:{key}"

        try:
            redis_client = await get_redis()
            await redis_client.zremrangebyscore(redis_key, 0, current_time - window)
            count = await redis_client.zcard(redis_key)

            if count >= limit:
                oldest = await redis_client.zrange(redis_key, 0, 0, withscores=True)
                reset_time = oldest[0][1] + window if oldest else current_time + window
                return False, 0, reset_time

            await redis_client.zadd(redis_key, {str(current_time): current_time})
            await redis_client.expire(redis_key, window)
            return True, limit - count - 1, current_time + window

        except redis.RedisError as e:
            logger.error("Rate limit check failed: %s", e)
            return True, limit, current_time + window
