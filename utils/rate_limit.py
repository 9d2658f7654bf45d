import json
import logging
from time import time
from typing import Dict, Optional, Tuple

import redis
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from config.settings import settings
from utils.cache import get_redis_client

logger = logging.getLogger(__name__)

# Stripe and PayPal retry webhooks on 429, never throttle them
EXEMPT_PATH_PREFIXES = ("/api/payments/webhook", "/health")


class RateLimiterMiddleware(BaseHTTPMiddleware):
    """
    Token bucket rate limiter per client IP.
    Buckets live in Redis when available, otherwise in process memory.
    A capacity of 0 disables limiting.
    """

    def __init__(self, app, requests_per_minute: Optional[int] = None):
        super().__init__(app)
        if requests_per_minute is None:
            requests_per_minute = settings.rate_limit_per_minute
        self.capacity = requests_per_minute
        self.refill_time_window = 60.0
        # ip -> (tokens, last_refill_ts)
        self._buckets: Dict[str, Tuple[float, float]] = {}

    def _get_client_ip(self, request: Request) -> str:
        xff = request.headers.get("x-forwarded-for")
        if xff:
            return xff.split(",")[0].strip()
        client = request.client
        return client.host if client else "unknown"

    def _refill(self, tokens: float, last_refill: float, now: float) -> float:
        elapsed = max(0.0, now - last_refill)
        refill = (elapsed / self.refill_time_window) * self.capacity
        return min(self.capacity, tokens + refill)

    def _check_rate_limit_redis(self, client: redis.Redis, ip: str) -> Optional[bool]:
        """
        Returns True if allowed, False if limited, None if Redis failed.
        """
        key = f"rate_limit:{ip}"
        now = time()
        try:
            bucket_data = client.get(key)
            if bucket_data:
                data = json.loads(bucket_data)
                tokens = float(data.get("tokens", 0))
                last_refill = float(data.get("last_refill", now))
            else:
                tokens = float(self.capacity)
                last_refill = now

            tokens = self._refill(tokens, last_refill, now)
            if tokens < 1.0:
                return False

            client.setex(
                key,
                int(self.refill_time_window) + 10,
                json.dumps({"tokens": tokens - 1.0, "last_refill": now}),
            )
            return True
        except (redis.RedisError, ValueError) as e:
            logger.warning(f"Redis rate limit check failed: {e}. Falling back to in-memory.")
            return None

    def _check_rate_limit_memory(self, ip: str) -> bool:
        now = time()
        tokens, last_refill = self._buckets.get(ip, (float(self.capacity), now))
        tokens = self._refill(tokens, last_refill, now)
        if tokens < 1.0:
            return False
        self._buckets[ip] = (tokens - 1.0, now)
        return True

    async def dispatch(self, request: Request, call_next) -> Response:
        if self.capacity <= 0 or request.url.path.startswith(EXEMPT_PATH_PREFIXES):
            return await call_next(request)

        ip = self._get_client_ip(request)
        allowed = None
        client = get_redis_client()
        if client is not None:
            allowed = self._check_rate_limit_redis(client, ip)
        if allowed is None:
            allowed = self._check_rate_limit_memory(ip)

        if not allowed:
            logger.info(f"Rate limit exceeded for {ip} on {request.url.path}")
            return JSONResponse(
                status_code=429,
                content={
                    "ok": False,
                    "data": {},
                    "error": "rate_limited",
                    "message": "Rate limit exceeded. Try again shortly.",
                },
            )

        return await call_next(request)
