# stratguru/api/elite_trades.py
"""
Elite trade journal: fully classified trades that feed the analytics.
"""
from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException, Body, Query, status
from typing import List, Dict, Any, Optional
from datetime import date, datetime
from enum import Enum
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from ..db.session import get_db
from ..db import crud
from ..db.models import EliteTrade, User, LIQUIDITY_TARGETS
from ..services import streak_service
from ..utils.jwt_deps import get_current_user
from ..utils.error_handler import handle_database_error, handle_not_found_error
from ..utils.logger import log_structured

router = APIRouter(prefix="/elite-trades", tags=["elite-trades"])


class EliteTradeFields(BaseModel):
    """Every writable column; omitted fields are left untouched on update."""
    trade_time: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    instrument: Optional[str] = None
    account_type: Optional[str] = None
    trade_status: Optional[str] = None
    missed_reason: Optional[str] = None
    hypothetical_result: Optional[str] = None
    session: Optional[str] = None
    killzone: Optional[str] = None
    day_of_week: Optional[str] = None
    news_day: Optional[str] = None
    htf_bias: Optional[str] = None
    htf_timeframe: Optional[str] = None
    structure_state: Optional[str] = None
    is_htf_clear: Optional[str] = None
    price_at_level_or_open: Optional[str] = None
    liquidity_targeted: Optional[List[str]] = None
    liquidity_taken_before_entry: Optional[str] = None
    setup_type_id: Optional[str] = None
    setup_type: Optional[str] = None
    setup_grade: Optional[str] = None
    execution_tf: Optional[str] = None
    entry_model: Optional[str] = None
    confirmation_present: Optional[str] = None
    entry_price: Optional[float] = None
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    exit_price: Optional[float] = None
    risk_per_trade_pct: Optional[float] = None
    rr_planned: Optional[float] = None
    mae: Optional[float] = None
    mfe: Optional[float] = None
    rules_followed: Optional[str] = None
    htf_screenshot: Optional[str] = None
    ltf_entry_screenshot: Optional[str] = None
    ltf_trade_screenshot: Optional[str] = None
    post_trade_screenshot: Optional[str] = None
    # deprecated, still analysed
    market_phase: Optional[str] = None
    liquidity_taken_against_bias: Optional[str] = None
    entry_candle: Optional[str] = None
    entry_precision: Optional[str] = None
    stop_placement_quality: Optional[str] = None
    partial_taken: Optional[str] = None
    drawdown_during_trade_pct: Optional[float] = None
    gold_behavior_tags: Optional[List[str]] = None
    first_move_was_fake: Optional[str] = None
    real_move_after_liquidity: Optional[str] = None
    trade_aligned_with_real_move: Optional[str] = None
    pre_trade_state: Optional[str] = None
    confidence_level: Optional[int] = Field(None, ge=1, le=10)
    revenge_trade: Optional[str] = None
    fatigue_present: Optional[str] = None
    annotations_present: Optional[str] = None
    would_i_take_this_trade_again: Optional[str] = None
    notes: Optional[str] = None
    news_impact: Optional[str] = None
    news_timing: Optional[str] = None
    news_type: Optional[str] = None


class CreateEliteTradeRequest(EliteTradeFields):
    trade_date: date


class UpdateEliteTradeRequest(EliteTradeFields):
    trade_date: Optional[date] = None


def elite_trade_to_dict(trade: EliteTrade) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for column in EliteTrade.__table__.columns:
        value = getattr(trade, column.key)
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, (date, datetime)):
            value = value.isoformat()
        out[column.key] = value
    return out


def _check_liquidity(targets: Optional[List[str]]) -> None:
    unknown = [t for t in (targets or []) if t not in LIQUIDITY_TARGETS]
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown liquidity targets: {', '.join(unknown)}"
        )


def _get_owned(db: Session, user: User, trade_id: str) -> EliteTrade:
    trade = crud.get_elite_trade(db, user.id, trade_id)
    if not trade:
        raise handle_not_found_error("Elite trade", trade_id)
    return trade


# POST /api/elite-trades
@router.post("", response_model=Dict[str, Any], status_code=status.HTTP_201_CREATED)
def create_elite_trade(
    trade_data: CreateEliteTradeRequest = Body(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Log an Elite trade.
    R-multiple, result, screenshot validity and classification status are derived on save.
    """
    _check_liquidity(trade_data.liquidity_targeted)
    try:
        trade = crud.create_elite_trade(db, user.id, trade_data.model_dump(exclude_unset=True))
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "create elite trade")

    streak_service.record_log(db, user, trade.trade_date)
    return elite_trade_to_dict(trade)


# GET /api/elite-trades
@router.get("", response_model=List[Dict[str, Any]])
def list_elite_trades(
    session: Optional[str] = Query(None),
    setup_type: Optional[str] = Query(None),
    news_day: Optional[str] = Query(None),
    rules_followed: Optional[str] = Query(None),
    classification_status: Optional[str] = Query(None),
    would_take_again: Optional[str] = Query(None),
    killzone: Optional[str] = Query(None),
    htf_bias: Optional[str] = Query(None),
    setup_grade: Optional[str] = Query(None),
    liquidity_taken: Optional[str] = Query(None),
    result: Optional[str] = Query(None),
    trade_status: Optional[str] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=5000),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List Elite trades, newest trade_date first, with optional equality filters."""
    filters = {
        "session": session,
        "setup_type": setup_type.strip().upper() if setup_type else None,
        "news_day": news_day,
        "rules_followed": rules_followed,
        "classification_status": classification_status,
        "would_take_again": would_take_again,
        "killzone": killzone,
        "htf_bias": htf_bias,
        "setup_grade": setup_grade,
        "liquidity_taken": liquidity_taken,
        "result": result,
        "trade_status": trade_status,
    }
    try:
        trades = crud.list_elite_trades(db, user.id, filters, limit=limit)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return [elite_trade_to_dict(t) for t in trades]


# GET /api/elite-trades/review
@router.get("/review", response_model=List[Dict[str, Any]])
def review_queue(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Fully classified trades marked 'would not take again'."""
    return [elite_trade_to_dict(t) for t in crud.list_review_trades(db, user.id)]


# GET /api/elite-trades/legacy
@router.get("/legacy", response_model=List[Dict[str, Any]])
def legacy_queue(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return [elite_trade_to_dict(t) for t in crud.list_legacy_unclassified(db, user.id)]


# GET /api/elite-trades/stats
@router.get("/stats", response_model=Dict[str, Any])
def elite_stats(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return crud.get_elite_trade_stats(db, user.id)


# POST /api/elite-trades/migrate/{legacy_trade_id}
@router.post("/migrate/{legacy_trade_id}", response_model=Dict[str, Any], status_code=status.HTTP_201_CREATED)
def migrate_legacy_trade(
    legacy_trade_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Copy a legacy trade into the Elite journal; it stays out of analytics until reclassified."""
    try:
        trade = crud.migrate_legacy_trade(db, user.id, legacy_trade_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "migrate legacy trade")
    if trade is None:
        raise handle_not_found_error("Trade", legacy_trade_id)

    log_structured("legacy_trade_migrated", {
        "user_id": user.id,
        "legacy_trade_id": legacy_trade_id,
        "elite_trade_id": trade.id,
    })
    return elite_trade_to_dict(trade)


# GET /api/elite-trades/{trade_id}
@router.get("/{trade_id}", response_model=Dict[str, Any])
def get_elite_trade(
    trade_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return elite_trade_to_dict(_get_owned(db, user, trade_id))


# PUT /api/elite-trades/{trade_id}
@router.put("/{trade_id}", response_model=Dict[str, Any])
def update_elite_trade(
    trade_id: str,
    trade_data: UpdateEliteTradeRequest = Body(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Partial update; derived fields and classification are recomputed."""
    trade = _get_owned(db, user, trade_id)
    changes = trade_data.model_dump(exclude_unset=True)
    _check_liquidity(changes.get("liquidity_targeted"))
    try:
        trade = crud.update_elite_trade(db, trade, changes)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "update elite trade")
    return elite_trade_to_dict(trade)


# DELETE /api/elite-trades/{trade_id}
@router.delete("/{trade_id}")
def delete_elite_trade(
    trade_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    crud.delete_elite_trade(db, _get_owned(db, user, trade_id))
    return {"message": "Elite trade deleted", "id": trade_id}
