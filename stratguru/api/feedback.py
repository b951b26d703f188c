# stratguru/api/feedback.py
from __future__ import annotations
from fastapi import APIRouter, Depends, Body, Query, HTTPException, status
from typing import List, Dict, Any, Optional
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..db.session import get_db
from ..db import crud
from ..db.models import User, Feedback, FeedbackType
from ..utils.jwt_deps import get_current_user, require_admin
from ..utils.logger import log_structured

router = APIRouter(prefix="/feedback", tags=["feedback"])

FEEDBACK_TYPES = [t.value for t in FeedbackType]


class FeedbackRequest(BaseModel):
    feedback_type: str
    message: str = Field(..., min_length=1, max_length=5000)
    screenshot_url: Optional[str] = Field(None, max_length=1024)


def feedback_to_dict(f: Feedback) -> Dict[str, Any]:
    return {
        "id": f.id,
        "user_id": f.user_id,
        "user_email": f.user.email if f.user else None,
        "feedback_type": f.feedback_type.value,
        "message": f.message,
        "screenshot_url": f.screenshot_url,
        "created_at": f.created_at.isoformat() if f.created_at else None,
    }


def _type_or_400(value: Optional[str]) -> Optional[str]:
    if value is not None and value not in FEEDBACK_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid feedback type '{value}'. Must be one of: {', '.join(FEEDBACK_TYPES)}"
        )
    return value


# POST /api/feedback
@router.post("", response_model=Dict[str, Any], status_code=status.HTTP_201_CREATED)
def submit_feedback(
    data: FeedbackRequest = Body(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Bug report, feature request or general feedback, with an optional screenshot link."""
    if not data.message.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Feedback message cannot be blank")
    feedback = crud.create_feedback(
        db, user.id, _type_or_400(data.feedback_type), data.message, data.screenshot_url
    )
    log_structured("feedback_submitted", {
        "feedback_id": feedback.id,
        "user_id": user.id,
        "type": feedback.feedback_type.value,
    })
    return feedback_to_dict(feedback)


# GET /api/feedback (admin)
@router.get("", response_model=List[Dict[str, Any]])
def list_feedback(
    feedback_type: Optional[str] = Query(None, alias="type"),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return [feedback_to_dict(f) for f in crud.list_feedback(db, _type_or_400(feedback_type))]
