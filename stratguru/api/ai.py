# stratguru/api/ai.py
"""
AI coaching: trade analysis, mentor feedback and the co-pro chart analyzer.
Each paid call deducts AI credits before the provider is contacted.
"""
from __future__ import annotations
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException, Body, status
from typing import List, Dict, Any, Optional
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..db.session import get_db
from ..db import crud
from ..db.models import User
from ..analytics.legacy import summarize_legacy_trades
from ..services import llm_service
from ..services.credit_service import credit_service
from ..utils.jwt_deps import get_current_user
from ..utils.error_handler import (
    ProviderError, InsufficientCreditsError, handle_provider_error, handle_credits_error,
)
from ..utils.logger import log_structured
from ..utils.sentry_setup import capture_exception

router = APIRouter(prefix="/ai", tags=["ai"])

TEST_PROMPT = 'Hello! Please respond with "OpenAI API is working correctly" to confirm the connection.'


class TradesRequest(BaseModel):
    trades: Optional[List[Dict[str, Any]]] = None


class CoproRequest(BaseModel):
    screenshotUrl: Optional[str] = None
    marketContext: Optional[str] = None
    creditsRequired: int = Field(3, ge=1, le=10)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _trading_summary(db: Session, user: User, trades: Optional[List[Dict[str, Any]]]) -> Dict[str, Any]:
    if trades is None:
        trades = crud.list_user_trades(db, user.id)
    if not trades:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No trades provided for analysis")
    return summarize_legacy_trades(trades)


def _charge(db: Session, user: User, credits: int, feature: str) -> None:
    try:
        credit_service.deduct_ai_credits(db, user, credits, feature)
    except InsufficientCreditsError as e:
        raise handle_credits_error(e)


def _complete(messages: List[Dict[str, Any]], feature: str, **kwargs) -> Dict[str, Any]:
    try:
        return llm_service.chat_completion(messages, **kwargs)
    except ProviderError as e:
        log_structured("ai_request_failed", {"feature": feature, "status": e.status_code, "error": e.message}, level="ERROR")
        capture_exception(e, ai_request={"feature": feature, "provider": e.provider, "status": e.status_code})
        raise handle_provider_error(e)


# POST /api/ai/test-openai
@router.post("/test-openai", response_model=Dict[str, Any])
def test_openai(user: User = Depends(get_current_user)):
    """Connectivity check against the configured provider. Never charges credits."""
    try:
        completion = llm_service.chat_completion(
            [{"role": "user", "content": TEST_PROMPT}],
            max_tokens=50,
            temperature=0,
        )
    except ProviderError as e:
        return {"status": "failed", "message": e.message, "response": None, "timestamp": _now()}

    return {
        "status": "success",
        "message": "OpenAI API is working correctly",
        "response": completion["content"],
        "model": completion["model"],
        "usage": completion["usage"],
        "timestamp": _now(),
    }


# POST /api/ai/analyze-trades
@router.post("/analyze-trades", response_model=Dict[str, Any])
def analyze_trades(
    data: Optional[TradesRequest] = Body(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Markdown coaching report over the user's (or the supplied) legacy trades."""
    summary = _trading_summary(db, user, data.trades if data else None)
    _charge(db, user, 1, "ai-analyze-trades")
    completion = _complete(
        llm_service.build_analysis_messages(summary),
        "ai-analyze-trades",
        max_tokens=1500,
        temperature=0.7,
    )
    return {"analysis": completion["content"], "summary": summary, "timestamp": _now()}


# POST /api/ai/mentor
@router.post("/mentor", response_model=Dict[str, Any])
def mentor(
    data: Optional[TradesRequest] = Body(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Structured mentor feedback: summary, strengths, weaknesses and an action plan."""
    summary = _trading_summary(db, user, data.trades if data else None)
    _charge(db, user, 1, "ai-mentor")
    completion = _complete(
        llm_service.build_mentor_messages(summary),
        "ai-mentor",
        max_tokens=1000,
        temperature=0.7,
    )
    try:
        mentor_response = llm_service.parse_json_content(completion["content"])
    except ValueError:
        log_structured("ai_mentor_unparsed", {"user_id": user.id}, level="WARNING")
        mentor_response = dict(llm_service.MENTOR_FALLBACK)
    return {"mentorResponse": mentor_response, "summary": summary, "timestamp": _now()}


# POST /api/ai/copro-analyzer
@router.post("/copro-analyzer", response_model=Dict[str, Any])
def copro_analyzer(
    data: CoproRequest = Body(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Chart (and/or context) analysis returned as a structured trade idea."""
    if not data.screenshotUrl and not data.marketContext:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide a chart screenshot or market context to analyze"
        )
    _charge(db, user, data.creditsRequired, "ai-copro-analyzer")
    completion = _complete(
        llm_service.build_copro_messages(data.screenshotUrl, data.marketContext),
        "ai-copro-analyzer",
        max_tokens=1500,
        temperature=0.7,
    )
    try:
        analysis = llm_service.parse_json_content(completion["content"])
    except ValueError:
        analysis = llm_service.copro_fallback(completion["content"])
    return {"analysis": analysis, "timestamp": _now()}


# GET /api/ai/credits
@router.get("/credits", response_model=Dict[str, Any])
def ai_credits(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Remaining credits (after any due monthly reset), limit, reset date and priority."""
    if credit_service.reset_if_due(db, user):
        db.commit()
        db.refresh(user)
    state = credit_service.credit_state(user)
    state["recent_usage"] = [
        {
            "feature": u.feature_name,
            "credits": u.credits_used,
            "created_at": u.created_at.isoformat() if u.created_at else None,
        }
        for u in crud.list_credit_usage(db, user.id, limit=10)
    ]
    return state
