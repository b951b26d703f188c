# stratguru/api/auth.py
"""
Email/password registration and login.
"""
from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException, Body, status
from typing import Optional
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from ..db.session import get_db
from ..db import crud
from ..db.models import User
from ..services.jwt_service import create_access_token
from ..utils.auth import hash_password, verify_password
from ..utils.jwt_deps import get_current_user
from ..utils.logger import log_structured

router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: Optional[str] = None
    referral_code: Optional[str] = None  # ?ref=CODE from the signup link


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    plan: str
    is_admin: bool
    referral_code: Optional[str] = None
    ai_credits_remaining: int
    current_streak: int
    created_at: Optional[str] = None


class AuthResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


def user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        plan=user.plan.value,
        is_admin=bool(user.is_admin),
        referral_code=user.referral_code,
        ai_credits_remaining=user.ai_credits_remaining or 0,
        current_streak=user.current_streak or 0,
        created_at=user.created_at.isoformat() if user.created_at else None,
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    register_data: RegisterRequest = Body(...),
    db: Session = Depends(get_db)
):
    """
    Register a new user with email and password.
    A referral_code belonging to another user links the new account to them.
    """
    email = register_data.email.lower().strip()
    if crud.get_user_by_email(db, email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with this email already exists. Please use a different email or log in."
        )

    try:
        user = crud.create_user(
            db,
            email=email,
            password_hash=hash_password(register_data.password),
            full_name=register_data.full_name,
            referral_code=register_data.referral_code,
        )
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with this email already exists. Please use a different email or log in."
        )

    log_structured("user_registered", {
        "user_id": user.id,
        "referred_by": user.referred_by,
    })
    token = create_access_token(user.id, user.email)
    return AuthResponse(access_token=token, user=user_response(user))


@router.post("/login", response_model=AuthResponse)
def login(
    login_data: LoginRequest = Body(...),
    db: Session = Depends(get_db)
):
    """Login with email and password. Returns a JWT valid for 7 days."""
    user = crud.get_user_by_email(db, login_data.email)
    if not user or not verify_password(login_data.password, user.password_hash or ""):
        # Same message whether or not the account exists
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    token = create_access_token(user.id, user.email)
    return AuthResponse(access_token=token, user=user_response(user))


@router.get("/me", response_model=UserResponse)
def me(user: User = Depends(get_current_user)):
    return user_response(user)
