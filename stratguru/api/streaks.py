# stratguru/api/streaks.py
from __future__ import annotations
from fastapi import APIRouter, Depends
from typing import Dict, Any
from dataclasses import asdict

from ..db.models import User
from ..services.streak_service import streak_state, MILESTONES
from ..utils.jwt_deps import get_current_user

router = APIRouter(prefix="/streaks", tags=["streaks"])


@router.get("/me", response_model=Dict[str, Any])
def my_streak(user: User = Depends(get_current_user)):
    """Current and best streak, shields, and the milestones around the current streak."""
    return streak_state(user)


@router.get("/milestones", response_model=Dict[str, Any])
def milestones():
    return {"milestones": [asdict(m) for m in MILESTONES]}
