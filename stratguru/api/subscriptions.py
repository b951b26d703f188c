# stratguru/api/subscriptions.py
from __future__ import annotations
from fastapi import APIRouter, Depends, Query
from typing import Dict, Any
from sqlalchemy.orm import Session

from ..db.session import get_db
from ..db import crud
from ..db.models import User
from ..services.credit_service import credit_service
from ..utils.jwt_deps import get_current_user

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


# GET /api/subscriptions/plans
@router.get("/plans", response_model=Dict[str, Any])
def get_plans(
    active_only: bool = Query(True, description="Only return active plans"),
    db: Session = Depends(get_db)
):
    """Free and Pro plans, cheapest first."""
    return {"plans": crud.list_subscription_plans(db, active_only=active_only)}


# GET /api/subscriptions/me
@router.get("/me", response_model=Dict[str, Any])
def get_current_subscription(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Current plan and AI credit state."""
    plan = crud.get_subscription_plan_by_code(db, user.plan.value)
    return {
        "userId": user.id,
        "plan": user.plan.value,
        "planName": plan.name if plan else user.plan.value.title(),
        "credits": credit_service.credit_state(user),
    }
