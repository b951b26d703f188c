# stratguru/services/jwt_service.py
"""
JWT token service for generating and verifying authentication tokens.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt

from ..utils.config import get_setting

SECRET_KEY = get_setting("JWT_SECRET_KEY", "dev-secret-key-change-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_HOURS = 24 * 7  # 7 days


class JWTService:
    """Service for JWT token generation and verification"""

    @staticmethod
    def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
        """
        Create a JWT access token.

        Args:
            data: Claims to encode (e.g., {"sub": user_id, "email": email})
            expires_delta: Optional expiration time delta

        Returns:
            Encoded JWT token string
        """
        to_encode = data.copy()
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(hours=ACCESS_TOKEN_EXPIRE_HOURS))
        to_encode.update({"exp": expire, "iat": now})
        return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

    @staticmethod
    def verify_token(token: str) -> Optional[Dict[str, Any]]:
        """Decode a token; returns None if the signature or expiry is invalid."""
        try:
            return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        except JWTError:
            return None

    @staticmethod
    def get_user_id_from_token(token: str) -> Optional[str]:
        payload = JWTService.verify_token(token)
        if payload:
            return payload.get("sub")
        return None


# Global instance
jwt_service = JWTService()


def create_access_token(user_id: str, email: Optional[str] = None) -> str:
    """Shortcut used by the auth routes and tests."""
    data = {"sub": user_id}
    if email:
        data["email"] = email
    return jwt_service.create_access_token(data)
