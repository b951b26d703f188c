# stratguru/services/referral_service.py
"""
Affiliate payouts: requests from affiliates and processing by admins.
"""
from typing import Optional, Dict, Any
from datetime import datetime, timezone
from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from ..db.models import User, PayoutRequest, LedgerStatus, Plan
from ..db import crud
from ..utils.config import APP_URL, MINIMUM_PAYOUT
from ..utils.logger import log_structured


class ReferralService:
    """Referral links, dashboards and the payout workflow."""

    MINIMUM_PAYOUT = MINIMUM_PAYOUT

    def referral_link(self, user: User) -> str:
        return f"{APP_URL}/signup?ref={user.referral_code}"

    def dashboard(self, db: Session, user: User) -> Dict[str, Any]:
        referrals = crud.list_referrals_for(db, user.id)
        paid = sum(1 for r in referrals if r.referred is not None and r.referred.plan == Plan.PRO)
        commissions = crud.list_commissions_for(db, user.id)
        payouts = crud.list_payout_requests(db, affiliate_id=user.id)
        return {
            "profile": {
                "referral_code": user.referral_code,
                "total_earnings": user.total_earnings,
                "pending_balance": user.pending_balance,
            },
            "stats": {
                "totalReferrals": len(referrals),
                "paidSubscribers": paid,
            },
            "commissions": [
                {
                    "id": c.id,
                    "amount": c.amount,
                    "commission_rate": c.commission_rate,
                    "status": c.status.value,
                    "payment_reference": c.payment_reference,
                    "referred_email": c.referred.email if c.referred else None,
                    "created_at": c.created_at.isoformat() if c.created_at else None,
                    "paid_at": c.paid_at.isoformat() if c.paid_at else None,
                }
                for c in commissions
            ],
            "payouts": [payout_to_dict(p) for p in payouts],
        }

    def request_payout(
        self,
        db: Session,
        user: User,
        amount: int,
        payment_method: str,
        payment_details: Optional[Dict[str, Any]] = None,
    ) -> PayoutRequest:
        """
        Open a payout request against the affiliate's pending balance.

        Raises:
            HTTPException 400 below the minimum or above the balance,
            409 while another request is still pending
        """
        if amount < self.MINIMUM_PAYOUT:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Minimum payout is {self.MINIMUM_PAYOUT / 100:.2f}"
            )
        if amount > (user.pending_balance or 0):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Requested amount exceeds your pending balance"
            )
        if crud.get_pending_payout(db, user.id) is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="You already have a pending payout request"
            )

        payout = crud.create_payout_request(db, user.id, amount, payment_method, payment_details)
        log_structured("payout_requested", {
            "payout_id": payout.id,
            "affiliate_id": user.id,
            "amount": amount,
            "method": payment_method,
        })
        return payout

    def process_payout(
        self,
        db: Session,
        payout: PayoutRequest,
        new_status: str,
        admin: User,
        admin_notes: Optional[str] = None,
    ) -> PayoutRequest:
        """
        Move a payout to approved/paid/rejected.

        Paying out zeroes the affiliate's pending balance and settles their
        outstanding commissions in the same commit.

        Raises:
            HTTPException 409 if the payout was already paid or rejected
        """
        if payout.status in (LedgerStatus.PAID, LedgerStatus.REJECTED):
            log_structured("payout_already_processed", {
                "payout_id": payout.id,
                "status": payout.status.value,
                "requested_status": new_status,
                "processed_by": admin.id,
            }, level="WARNING")
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Payout is already {payout.status.value}"
            )

        payout.status = LedgerStatus(new_status)
        payout.admin_notes = admin_notes
        payout.processed_at = datetime.now(timezone.utc)
        payout.processed_by = admin.id

        settled = 0
        if payout.status == LedgerStatus.PAID:
            affiliate = crud.get_user_by_id(db, payout.affiliate_id)
            if affiliate is not None:
                affiliate.pending_balance = 0
            settled = crud.mark_commissions_paid(db, payout.affiliate_id)

        db.commit()
        db.refresh(payout)
        log_structured("payout_processed", {
            "payout_id": payout.id,
            "affiliate_id": payout.affiliate_id,
            "status": payout.status.value,
            "processed_by": admin.id,
            "commissions_settled": settled or None,
        })
        return payout


def payout_to_dict(p: PayoutRequest) -> Dict[str, Any]:
    return {
        "id": p.id,
        "affiliate_id": p.affiliate_id,
        "affiliate_email": p.affiliate.email if p.affiliate else None,
        "amount": p.amount,
        "status": p.status.value,
        "payment_method": p.payment_method,
        "payment_details": p.payment_details or {},
        "admin_notes": p.admin_notes,
        "requested_at": p.requested_at.isoformat() if p.requested_at else None,
        "processed_at": p.processed_at.isoformat() if p.processed_at else None,
        "processed_by": p.processed_by,
    }


# Singleton instance
referral_service = ReferralService()
