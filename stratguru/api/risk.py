# stratguru/api/risk.py
"""
Daily risk tracker: how much of today's loss budget the legacy journal has used.
"""
from __future__ import annotations
from datetime import date
from fastapi import APIRouter, Depends, Body
from typing import Dict, Any
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..db.session import get_db
from ..db import crud
from ..db.models import DailyRiskTracker
from ..utils.jwt_deps import get_current_user_id_dep

router = APIRouter(prefix="/risk", tags=["risk"])

WARNING_THRESHOLD = 70.0
DANGER_THRESHOLD = 90.0


class RiskLimitRequest(BaseModel):
    risk_limit: float = Field(..., gt=0)


def risk_status(percentage: float) -> str:
    if percentage < WARNING_THRESHOLD:
        return "safe"
    if percentage < DANGER_THRESHOLD:
        return "warning"
    return "danger"


def _refresh_usage(db: Session, user_id: str, tracker: DailyRiskTracker) -> DailyRiskTracker:
    trades = crud.list_trades_on(db, user_id, tracker.date)
    tracker.used_risk = round(sum(abs(t.pnl or 0) for t in trades), 2)
    tracker.trades_count = len(trades)
    db.commit()
    db.refresh(tracker)
    return tracker


def tracker_to_dict(tracker: DailyRiskTracker) -> Dict[str, Any]:
    limit = tracker.risk_limit or 0
    percentage = round(tracker.used_risk / limit * 100, 1) if limit else 0.0
    return {
        "date": tracker.date.isoformat(),
        "risk_limit": limit,
        "used_risk": tracker.used_risk,
        "trades_count": tracker.trades_count,
        "risk_percentage": percentage,
        "remaining_risk": round(max(limit - tracker.used_risk, 0.0), 2),
        "status": risk_status(percentage),
    }


@router.get("/today", response_model=Dict[str, Any])
def today_risk(
    user_id: str = Depends(get_current_user_id_dep),
    db: Session = Depends(get_db)
):
    tracker = crud.get_or_create_risk_tracker(db, user_id, date.today())
    return tracker_to_dict(_refresh_usage(db, user_id, tracker))


@router.put("/today", response_model=Dict[str, Any])
def set_today_limit(
    data: RiskLimitRequest = Body(...),
    user_id: str = Depends(get_current_user_id_dep),
    db: Session = Depends(get_db)
):
    tracker = crud.get_or_create_risk_tracker(db, user_id, date.today())
    tracker.risk_limit = data.risk_limit
    return tracker_to_dict(_refresh_usage(db, user_id, tracker))
