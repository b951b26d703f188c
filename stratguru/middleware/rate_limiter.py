# stratguru/middleware/rate_limiter.py
"""
Rate limiting middleware.
Per-user and per-IP sliding windows, kept in process memory.
"""
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from typing import Dict, Tuple
from collections import defaultdict
import time


class RateLimiter:
    """In-memory sliding-window rate limiter."""

    def __init__(self):
        self.requests: Dict[str, list] = defaultdict(list)
        self.cleanup_interval = 300
        self.last_cleanup = time.time()

    def _cleanup_old_entries(self):
        current_time = time.time()
        if current_time - self.last_cleanup > self.cleanup_interval:
            cutoff = current_time - 3600
            for key in list(self.requests.keys()):
                self.requests[key] = [ts for ts in self.requests[key] if ts > cutoff]
                if not self.requests[key]:
                    del self.requests[key]
            self.last_cleanup = current_time

    def is_allowed(self, key: str, max_requests: int, window_seconds: int) -> Tuple[bool, int]:
        """
        Check if request is allowed.

        Returns:
            (is_allowed, remaining_requests)
        """
        self._cleanup_old_entries()

        current_time = time.time()
        cutoff = current_time - window_seconds
        self.requests[key] = [ts for ts in self.requests[key] if ts > cutoff]

        if len(self.requests[key]) >= max_requests:
            return False, 0

        self.requests[key].append(current_time)
        return True, max_requests - len(self.requests[key])

    def reset(self) -> None:
        self.requests.clear()


rate_limiter = RateLimiter()


def _limited(limit: int, window: int, detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={"detail": detail, "retry_after": window},
        headers={
            "X-RateLimit-Limit": str(limit),
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": str(int(time.time()) + window),
            "Retry-After": str(window),
        },
    )


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Limits requests per user (JWT) and per IP address.
    AI endpoints get a tighter bucket since each call hits a paid provider.
    """

    RATE_LIMITS = {
        "default": (100, 60),
        "ai": (10, 60),
    }

    IP_LIMITS = {
        "default": (200, 60),
    }

    EXEMPT_PATHS = ("/health", "/ready")

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        # health probes and provider callbacks are not throttled
        if request.method == "OPTIONS" or path in self.EXEMPT_PATHS or path.endswith("/webhook"):
            return await call_next(request)

        limit_type = "ai" if path.startswith("/api/ai") else "default"
        max_requests, window = self.RATE_LIMITS[limit_type]

        ip_address = request.client.host if request.client else "unknown"
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            ip_address = forwarded_for.split(",")[0].strip()

        ip_max, ip_window = self.IP_LIMITS["default"]
        ip_allowed, _ = rate_limiter.is_allowed(f"ip:{ip_address}", ip_max, ip_window)
        if not ip_allowed:
            return _limited(ip_max, ip_window, "Rate limit exceeded (IP). Please try again later.")

        user_id = getattr(request.state, "user_id", None)
        user_remaining = None
        if user_id:
            user_allowed, user_remaining = rate_limiter.is_allowed(
                f"user:{user_id}:{limit_type}", max_requests, window
            )
            if not user_allowed:
                return _limited(max_requests, window, f"Rate limit exceeded ({limit_type}). Please try again later.")

        response = await call_next(request)
        if user_remaining is not None:
            response.headers["X-RateLimit-Limit"] = str(max_requests)
            response.headers["X-RateLimit-Remaining"] = str(user_remaining)
        return response
