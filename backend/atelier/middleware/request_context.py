"""Request context middleware: request ids, timing, access log and rate limiting.

One pass per request:
- Generate or propagate ``X-Request-ID``
- Throttle each client with a token bucket (``RateLimiter``)
- Measure duration and emit one structured access-log line

``check_rate_limit`` is a pure function so the bucket arithmetic can be
tested without HTTP.
"""

import logging
import threading
import time
import uuid
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ..core.config import settings
from ..core.logging_config import request_id_var

logger = logging.getLogger(__name__)

# Bucket state is (available_tokens, last_refill_timestamp).
Bucket = tuple[float, float]


def check_rate_limit(
    state: Optional[Bucket],
    max_per_minute: int,
    now: float,
) -> tuple[bool, float, Bucket]:
    """Spend one token from *state* if available.

    Args:
        state: Previous bucket for the client, or None for a new client.
        max_per_minute: Sustained rate cap. Zero or less disables limiting.
        now: Current monotonic timestamp.

    Returns:
        ``(allowed, retry_after, new_state)``. *retry_after* is 0.0 when
        allowed, otherwise seconds until the next token becomes available.
    """
    if max_per_minute <= 0:
        return True, 0.0, (0.0, now)

    refill_rate = max_per_minute / 60.0  # tokens per second

    if state is None:
        tokens = float(max_per_minute)
    else:
        tokens, last_refill = state
        tokens = min(max_per_minute, tokens + (now - last_refill) * refill_rate)

    if tokens >= 1.0:
        return True, 0.0, (tokens - 1.0, now)

    return False, (1.0 - tokens) / refill_rate, (tokens, now)


class RateLimiter:
    """Thread-safe per-client token buckets with periodic eviction."""

    evict_every = 100     # sweep every N calls
    evict_age = 120.0     # drop buckets idle for 2 minutes

    def __init__(self, max_per_minute: int):
        self.max_per_minute = max_per_minute
        self.buckets: dict[str, Bucket] = {}
        self._lock = threading.Lock()
        self._calls = 0

    def hit(self, key: str, now: Optional[float] = None) -> tuple[bool, float]:
        if now is None:
            now = time.monotonic()
        with self._lock:
            self._calls += 1
            if self._calls % self.evict_every == 0:
                self._evict(now)
            allowed, retry_after, state = check_rate_limit(
                self.buckets.get(key), self.max_per_minute, now
            )
            self.buckets[key] = state
        return allowed, retry_after

    def reset(self) -> None:
        with self._lock:
            self.buckets.clear()
            self._calls = 0

    def _evict(self, now: float) -> None:
        cutoff = now - self.evict_age
        for key in [k for k, (_, ts) in self.buckets.items() if ts < cutoff]:
            del self.buckets[key]


rate_limiter = RateLimiter(settings.rate_limit_per_minute)

# Health probes and API docs are never throttled.
_EXEMPT_PATHS = frozenset({"/", "/health", "/docs", "/redoc", "/openapi.json"})


def _client_key(request: Request) -> str:
    """Derive a rate-limit key from ``X-Forwarded-For`` or the client IP."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Single middleware handling request-id, timing, logging, and rate limiting."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        rid = request.headers.get("x-request-id") or uuid.uuid4().hex[:16]
        request_id_var.set(rid)

        if request.url.path not in _EXEMPT_PATHS:
            key = _client_key(request)
            allowed, retry_after = rate_limiter.hit(key)
            if not allowed:
                logger.warning(
                    "Rate limit exceeded",
                    extra={"client": key, "path": request.url.path, "retry_after": round(retry_after, 1)},
                )
                return JSONResponse(
                    status_code=429,
                    content={
                        "error": "RATE_LIMITED",
                        "message": "Too many requests",
                        "details": {"retry_after": round(retry_after, 1)},
                    },
                    headers={
                        "Retry-After": str(int(retry_after) + 1),
                        "X-Request-ID": rid,
                    },
                )

        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        response.headers["X-Request-ID"] = rid
        response.headers["X-Response-Time"] = f"{duration_ms}ms"

        logger.info(
            f"{request.method} {request.url.path} {response.status_code}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        return response
