# stratguru/api/admin_referrals.py
"""
Admin view of the affiliate program: affiliates, payout queue and exports.
"""
from __future__ import annotations
import io
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException, Body, Query, status
from fastapi.responses import Response
from typing import List, Dict, Any, Optional
from pydantic import BaseModel
from sqlalchemy.orm import Session

import pandas as pd

from ..db.session import get_db
from ..db import crud
from ..db.models import User, LedgerStatus
from ..services.referral_service import referral_service, payout_to_dict
from ..utils.jwt_deps import require_admin
from ..utils.error_handler import handle_not_found_error

router = APIRouter(prefix="/admin/referrals", tags=["admin"])

# affiliate row key -> CSV header
EXPORT_COLUMNS = {
    "email": "Email",
    "referral_code": "Referral Code",
    "referral_count": "Total Referrals",
    "paid_subscribers": "Paid Subscribers",
    "total_earnings": "Total Earnings",
    "pending_balance": "Pending Balance",
    "commissions_count": "Commissions",
}


class ProcessPayoutRequest(BaseModel):
    status: str  # approved, paid or rejected
    admin_notes: Optional[str] = None


def _status_or_400(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if value not in LedgerStatus._value2member_map_:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid status '{value}'. Must be one of: {', '.join(s.value for s in LedgerStatus)}"
        )
    return value


@router.get("/affiliates", response_model=List[Dict[str, Any]])
def list_affiliates(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Every user with a referral code, with referral, subscriber and commission counts."""
    return crud.list_affiliates(db)


@router.get("/payouts", response_model=List[Dict[str, Any]])
def list_payouts(
    status_filter: Optional[str] = Query(None, alias="status"),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    payouts = crud.list_payout_requests(db, status=_status_or_400(status_filter))
    return [payout_to_dict(p) for p in payouts]


@router.patch("/payouts/{payout_id}", response_model=Dict[str, Any])
def process_payout(
    payout_id: str,
    data: ProcessPayoutRequest = Body(...),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Approve, reject or mark a payout as paid. Paid settles the affiliate's balance.
    Paid and rejected payouts are final and answer 409.
    """
    new_status = _status_or_400(data.status)
    if new_status == LedgerStatus.PENDING.value:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A processed payout cannot return to pending")

    payout = crud.get_payout_request(db, payout_id)
    if not payout:
        raise handle_not_found_error("Payout request", payout_id)
    payout = referral_service.process_payout(db, payout, new_status, admin, data.admin_notes)
    return payout_to_dict(payout)


@router.get("/export")
def export_affiliate_data(
    format: str = Query("csv", pattern="^(csv|json)$"),
    status_filter: Optional[str] = Query(None, alias="status"),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    CSV: one row per affiliate, money in cedis.
    JSON: affiliates plus the payout queue (optionally filtered by status), money in pesewas.
    """
    affiliates = crud.list_affiliates(db)
    if format == "json":
        payouts = crud.list_payout_requests(db, status=_status_or_400(status_filter))
        return {
            "affiliates": affiliates,
            "payoutRequests": [payout_to_dict(p) for p in payouts],
            "exportedAt": datetime.now(timezone.utc).isoformat(),
        }

    df = pd.DataFrame(affiliates, columns=list(EXPORT_COLUMNS))
    df["total_earnings"] = df["total_earnings"] / 100
    df["pending_balance"] = df["pending_balance"] / 100
    df = df.rename(columns=EXPORT_COLUMNS)
    buffer = io.StringIO()
    df.to_csv(buffer, index=False)
    return Response(
        content=buffer.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=affiliates.csv"},
    )
