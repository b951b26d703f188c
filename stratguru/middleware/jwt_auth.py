# stratguru/middleware/jwt_auth.py
"""
JWT Authentication Middleware.
Decodes the bearer token once per request and exposes the user id on request.state.
"""
from fastapi import HTTPException, status, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request as StarletteRequest
from typing import Optional

from ..services.jwt_service import jwt_service


async def get_current_user_id(request: Request) -> Optional[str]:
    """Get current user ID from the Authorization: Bearer header."""
    authorization = request.headers.get("Authorization")
    if not authorization or not authorization.startswith("Bearer "):
        return None

    payload = jwt_service.verify_token(authorization[7:])
    if payload:
        return payload.get("sub")
    return None


async def require_auth(request: Request) -> str:
    """
    Require authentication and return user ID.
    Raises HTTPException if not authenticated.
    """
    user_id = await get_current_user_id(request)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required. Please provide a valid JWT token in the Authorization header.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id


class JWTAuthMiddleware(BaseHTTPMiddleware):
    """
    Middleware to extract and validate JWT tokens.
    Adds user_id to request.state for the rate limiter and handlers.
    """

    async def dispatch(self, request: StarletteRequest, call_next):
        # CORS preflight carries no credentials
        if request.method == "OPTIONS":
            return await call_next(request)

        request.state.user_id = await get_current_user_id(request)
        return await call_next(request)
