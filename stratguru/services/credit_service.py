# stratguru/services/credit_service.py
"""
AI credit accounting.

Every paid AI feature goes through CreditService.deduct_ai_credits. Balances
reset to the plan's monthly limit once the reset date has passed; a monthly
limit of UNLIMITED_AI_CREDITS or more is never charged.
"""
from typing import Dict, Any, Optional
from datetime import datetime, timedelta, timezone
from sqlalchemy.orm import Session

from ..db.models import User
from ..db import crud
from ..utils.config import UNLIMITED_AI_CREDITS
from ..utils.error_handler import InsufficientCreditsError
from ..utils.logger import log_structured

RESET_PERIOD = timedelta(days=30)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class CreditService:
    """Monthly AI credit balance per user."""

    def is_unlimited(self, user: User) -> bool:
        return (user.ai_credits_monthly_limit or 0) >= UNLIMITED_AI_CREDITS

    def reset_if_due(self, db: Session, user: User, now: Optional[datetime] = None) -> bool:
        """
        Refill credits to the monthly limit when the reset date has passed.

        Returns:
            True if the balance was reset (not yet committed)
        """
        now = now or datetime.now(timezone.utc)
        reset_date = _as_utc(user.ai_credits_reset_date)
        if reset_date is not None and reset_date > now:
            return False
        user.ai_credits_remaining = user.ai_credits_monthly_limit
        user.ai_credits_reset_date = now + RESET_PERIOD
        return True

    def deduct_ai_credits(
        self,
        db: Session,
        user: User,
        credits: int,
        feature_name: str,
        now: Optional[datetime] = None,
    ) -> int:
        """
        Charge `credits` for one AI call and record the usage.

        Returns:
            Remaining credits after the deduction

        Raises:
            InsufficientCreditsError if the balance is too low
        """
        self.reset_if_due(db, user, now=now)

        if not self.is_unlimited(user):
            remaining = user.ai_credits_remaining or 0
            if remaining < credits:
                db.commit()
                log_structured("ai_credits_insufficient", {
                    "user_id": user.id,
                    "feature": feature_name,
                    "required": credits,
                    "remaining": remaining,
                }, level="WARNING")
                raise InsufficientCreditsError(required=credits, remaining=remaining)
            user.ai_credits_remaining = remaining - credits

        crud.record_credit_usage(db, user.id, feature_name, credits)
        db.commit()
        db.refresh(user)

        log_structured("ai_credits_deducted", {
            "user_id": user.id,
            "feature": feature_name,
            "credits": credits,
            "remaining": user.ai_credits_remaining,
            "unlimited": self.is_unlimited(user) or None,
        })
        return user.ai_credits_remaining

    def credit_state(self, user: User) -> Dict[str, Any]:
        reset_date = _as_utc(user.ai_credits_reset_date)
        return {
            "remaining": user.ai_credits_remaining,
            "monthly_limit": user.ai_credits_monthly_limit,
            "unlimited": self.is_unlimited(user),
            "reset_date": reset_date.isoformat() if reset_date else None,
            "priority": user.ai_priority.value if user.ai_priority else None,
        }


# Singleton instance
credit_service = CreditService()
