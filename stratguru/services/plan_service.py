# stratguru/services/plan_service.py
"""
Pro upgrades and the referral commission they earn.
"""
from typing import Optional, Dict, Any
from sqlalchemy.orm import Session

from ..db.models import User, Plan, AIPriority
from ..db import crud
from ..utils.config import PRO_AI_CREDITS, REFERRAL_COMMISSION_RATE
from ..utils.logger import log_structured


def commission_for(amount: int, rate: float = REFERRAL_COMMISSION_RATE) -> int:
    return int(round(amount * rate))


def upgrade_to_pro(
    db: Session,
    user: User,
    reference: str,
    amount: int,
    provider: str = "paystack",
    customer_code: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Move a user to the pro plan and credit their referrer.

    Each payment reference is applied once. A replay (webhook retry, second
    verify call) changes nothing: credits already spent are not refilled and
    no second commission is booked.

    Returns:
        {"user_id", "plan", "commission_created", "commission_amount", "already_processed"}
    """
    if crud.get_payment_by_reference(db, reference) is not None:
        log_structured("plan_upgrade_replayed", {
            "user_id": user.id,
            "provider": provider,
            "reference": reference,
        }, level="WARNING")
        return {
            "user_id": user.id,
            "plan": user.plan.value,
            "commission_created": False,
            "commission_amount": 0,
            "already_processed": True,
        }

    user.plan = Plan.PRO
    user.ai_credits_monthly_limit = max(user.ai_credits_monthly_limit or 0, PRO_AI_CREDITS)
    user.ai_credits_remaining = max(user.ai_credits_remaining or 0, PRO_AI_CREDITS)
    user.ai_priority = AIPriority.FAST
    if customer_code:
        user.paystack_customer_code = customer_code

    commission_amount = 0
    commission_created = False
    if user.referred_by and crud.get_commission_by_reference(db, reference) is None:
        referrer = crud.get_user_by_id(db, user.referred_by)
        if referrer is not None:
            commission_amount = commission_for(amount)
            referral = crud.get_referral_for_referred(db, user.id)
            crud.create_commission(
                db,
                referrer_id=referrer.id,
                referred_id=user.id,
                amount=commission_amount,
                commission_rate=REFERRAL_COMMISSION_RATE,
                payment_reference=reference,
                referral_id=referral.id if referral else None,
            )
            referrer.total_earnings = (referrer.total_earnings or 0) + commission_amount
            referrer.pending_balance = (referrer.pending_balance or 0) + commission_amount
            commission_created = True

    crud.record_payment(db, user.id, provider, reference, amount)
    db.commit()
    db.refresh(user)

    log_structured("plan_upgraded", {
        "user_id": user.id,
        "plan": Plan.PRO.value,
        "provider": provider,
        "reference": reference,
        "amount": amount,
        "commission": commission_amount or None,
    })
    return {
        "user_id": user.id,
        "plan": user.plan.value,
        "commission_created": commission_created,
        "commission_amount": commission_amount,
        "already_processed": False,
    }
