# stratguru/api/referrals.py
from __future__ import annotations
from fastapi import APIRouter, Depends, Body, status
from typing import Dict, Any, Optional
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..db.session import get_db
from ..db.models import User
from ..services.referral_service import referral_service, payout_to_dict
from ..utils.jwt_deps import get_current_user

router = APIRouter(prefix="/referrals", tags=["referrals"])


class PayoutRequestBody(BaseModel):
    amount: int = Field(..., gt=0)  # pesewas
    payment_method: str = Field(..., min_length=1)  # "mobile_money", "bank_transfer", ...
    payment_details: Optional[Dict[str, Any]] = None


# GET /api/referrals/me
@router.get("/me", response_model=Dict[str, Any])
def referral_dashboard(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Referral code, balances, referral stats, commissions and payout history."""
    return referral_service.dashboard(db, user)


# GET /api/referrals/link
@router.get("/link", response_model=Dict[str, Any])
def referral_link(user: User = Depends(get_current_user)):
    return {"referral_code": user.referral_code, "link": referral_service.referral_link(user)}


# POST /api/referrals/payouts
@router.post("/payouts", response_model=Dict[str, Any], status_code=status.HTTP_201_CREATED)
def request_payout(
    data: PayoutRequestBody = Body(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Ask for a payout of (part of) the pending balance. One pending request at a time."""
    payout = referral_service.request_payout(
        db, user, data.amount, data.payment_method, data.payment_details
    )
    return payout_to_dict(payout)
