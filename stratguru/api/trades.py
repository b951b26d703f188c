# stratguru/api/trades.py
"""
Legacy (simple) trade journal.
"""
from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException, Body, Query, status
from typing import List, Dict, Any, Optional
from datetime import datetime, timezone
from pydantic import BaseModel
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from ..db.session import get_db
from ..db import crud
from ..db.models import Trade, User
from ..services import streak_service
from ..utils.jwt_deps import get_current_user
from ..utils.error_handler import handle_database_error, handle_not_found_error

router = APIRouter(prefix="/trades", tags=["trades"])


class CreateTradeRequest(BaseModel):
    pair: str
    direction: str  # long or short
    entry: float
    exit: Optional[float] = None
    sl: Optional[float] = None
    tp: Optional[float] = None
    risk_pct: Optional[float] = None
    rr: Optional[float] = None
    result: Optional[str] = "open"  # win, loss, be, open
    pnl: Optional[float] = None
    notes: Optional[str] = None
    screenshot_url: Optional[str] = None
    executed_at: Optional[datetime] = None


class UpdateTradeRequest(BaseModel):
    pair: Optional[str] = None
    direction: Optional[str] = None
    entry: Optional[float] = None
    exit: Optional[float] = None
    sl: Optional[float] = None
    tp: Optional[float] = None
    risk_pct: Optional[float] = None
    rr: Optional[float] = None
    result: Optional[str] = None
    pnl: Optional[float] = None
    notes: Optional[str] = None
    screenshot_url: Optional[str] = None
    executed_at: Optional[datetime] = None


class TradeResponse(BaseModel):
    id: str
    user_id: str
    pair: str
    direction: str
    entry: float
    exit: Optional[float] = None
    sl: Optional[float] = None
    tp: Optional[float] = None
    risk_pct: Optional[float] = None
    rr: Optional[float] = None
    result: str
    pnl: Optional[float] = None
    notes: Optional[str] = None
    screenshot_url: Optional[str] = None
    executed_at: Optional[str] = None
    created_at: Optional[str] = None

    class Config:
        from_attributes = True


def trade_response(trade: Trade) -> TradeResponse:
    return TradeResponse(
        id=trade.id,
        user_id=trade.user_id,
        pair=trade.pair,
        direction=trade.direction.value,
        entry=trade.entry,
        exit=trade.exit,
        sl=trade.sl,
        tp=trade.tp,
        risk_pct=trade.risk_pct,
        rr=trade.rr,
        result=trade.result.value,
        pnl=trade.pnl,
        notes=trade.notes,
        screenshot_url=trade.screenshot_url,
        executed_at=trade.executed_at.isoformat() if trade.executed_at else None,
        created_at=trade.created_at.isoformat() if trade.created_at else None,
    )


# POST /api/trades
@router.post("", response_model=TradeResponse, status_code=status.HTTP_201_CREATED)
def create_trade(
    trade_data: CreateTradeRequest = Body(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Log a legacy trade. A trade dated today advances the journaling streak."""
    if not trade_data.pair.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Pair is required")

    data = trade_data.model_dump()
    data["pair"] = trade_data.pair.strip().upper()
    if data["executed_at"] is None:
        data["executed_at"] = datetime.now(timezone.utc)

    try:
        trade = crud.create_trade(db, user.id, data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "create trade")

    streak_service.record_log(db, user, trade.executed_at.date())
    return trade_response(trade)


# GET /api/trades
@router.get("", response_model=List[TradeResponse])
def list_trades(
    limit: Optional[int] = Query(None, ge=1, le=1000),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return [trade_response(t) for t in crud.list_user_trades(db, user.id, limit=limit)]


# GET /api/trades/stats
@router.get("/stats", response_model=Dict[str, Any])
def trade_stats(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Trade count, average RR, win rate over closed trades and total P&L."""
    return crud.get_trade_stats(db, user.id)


# GET /api/trades/{trade_id}
@router.get("/{trade_id}", response_model=TradeResponse)
def get_trade(
    trade_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    trade = crud.get_trade(db, user.id, trade_id)
    if not trade:
        raise handle_not_found_error("Trade", trade_id)
    return trade_response(trade)


# PUT /api/trades/{trade_id}
@router.put("/{trade_id}", response_model=TradeResponse)
def update_trade(
    trade_id: str,
    trade_data: UpdateTradeRequest = Body(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    trade = crud.get_trade(db, user.id, trade_id)
    if not trade:
        raise handle_not_found_error("Trade", trade_id)
    try:
        trade = crud.update_trade(db, trade, trade_data.model_dump(exclude_unset=True))
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "update trade")
    return trade_response(trade)


# DELETE /api/trades/{trade_id}
@router.delete("/{trade_id}")
def delete_trade(
    trade_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    trade = crud.get_trade(db, user.id, trade_id)
    if not trade:
        raise handle_not_found_error("Trade", trade_id)
    crud.delete_trade(db, trade)
    return {"message": "Trade deleted", "id": trade_id}
