# stratguru/middleware/security_headers.py
"""
Security headers middleware.
"""
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from typing import Callable

from ..utils.config import get_setting


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Adds security headers to all responses:
    HSTS on https, CSP allowing the payment checkouts, frame and sniffing protection.
    """

    CSP_POLICY = (
        "default-src 'self'; "
        "script-src 'self' 'unsafe-inline' https://js.paystack.co; "
        "style-src 'self' 'unsafe-inline'; "
        "img-src 'self' data: https:; "
        "font-src 'self' data:; "
        "connect-src 'self' https://api.paystack.co https://api.nowpayments.io; "
        "frame-src 'self' https://checkout.paystack.com https://nowpayments.io; "
        "object-src 'none'; "
        "base-uri 'self'; "
        "frame-ancestors 'self';"
    )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        if request.url.scheme == "https":
            max_age = int(get_setting("HSTS_MAX_AGE", "31536000"))
            response.headers["Strict-Transport-Security"] = f"max-age={max_age}; includeSubDomains"

        response.headers["Content-Security-Policy"] = self.CSP_POLICY
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"

        return response
