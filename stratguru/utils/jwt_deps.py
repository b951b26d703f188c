# stratguru/utils/jwt_deps.py
"""
JWT Dependencies for FastAPI routes.
"""
from fastapi import Depends, HTTPException, status, Request
from sqlalchemy.orm import Session
from typing import Optional

from ..middleware.jwt_auth import get_current_user_id, require_auth
from ..db.session import get_db
from ..db import crud
from ..db.models import User


async def get_current_user_id_dep(request: Request) -> str:
    """
    FastAPI dependency to get current user ID from JWT token.

    Use this in route handlers:
        @router.get("/endpoint")
        async def my_endpoint(user_id: str = Depends(get_current_user_id_dep)):
            ...

    Raises:
        HTTPException: 401 if JWT token is missing or invalid
    """
    return await require_auth(request)


async def get_current_user_id_optional(request: Request) -> Optional[str]:
    """Same as get_current_user_id_dep, but anonymous requests get None."""
    return await get_current_user_id(request)


def get_current_user(
    user_id: str = Depends(get_current_user_id_dep),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the authenticated user row (401 if the account no longer exists)."""
    user = crud.get_user_by_id(db, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User account not found.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    """Only profiles flagged is_admin may pass."""
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return user
