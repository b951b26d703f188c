# stratguru/services/streak_service.py
"""
Journaling streaks: consecutive days with at least one logged trade.
"""
from dataclasses import dataclass, asdict
from datetime import date, timedelta
from typing import Optional, Dict, Any
from sqlalchemy.orm import Session

from ..db.models import User
from ..utils.logger import log_structured


@dataclass(frozen=True)
class Milestone:
    day: int
    title: str
    shield: bool = False


MILESTONES = [
    Milestone(1, "You Showed Up"),
    Milestone(3, "Consistency Rookie"),
    Milestone(7, "Disciplined Trader", shield=True),
    Milestone(21, "Unstoppable"),
    Milestone(50, "Mentor Mindset"),
    Milestone(100, "Machine Mode"),
]


def next_milestone(streak: int) -> Optional[Milestone]:
    return next((m for m in MILESTONES if m.day > streak), None)


def latest_milestone(streak: int) -> Optional[Milestone]:
    reached = [m for m in MILESTONES if m.day <= streak]
    return reached[-1] if reached else None


def record_log(db: Session, user: User, trade_date: date, today: Optional[date] = None) -> Dict[str, Any]:
    """
    Advance the streak for a trade logged on `trade_date`.

    Only a trade dated today counts, and only once per day. A gap consumes a
    shield if one is available; otherwise the streak restarts at 1. Reaching
    the 7-day milestone awards a shield.

    Returns:
        {"updated": bool, "shield_used": bool, "milestone": dict | None}
    """
    today = today or date.today()
    outcome = {"updated": False, "shield_used": False, "milestone": None}
    if trade_date != today or user.last_log_date == today:
        return outcome

    current = user.current_streak or 0
    shields = user.streak_shields or 0
    if user.last_log_date is None:
        current = 1
    elif user.last_log_date == today - timedelta(days=1):
        current += 1
    elif shields > 0:
        shields -= 1
        current += 1
        outcome["shield_used"] = True
    else:
        current = 1

    milestone = next((m for m in MILESTONES if m.day == current), None)
    if milestone is not None:
        if milestone.shield:
            shields += 1
        outcome["milestone"] = asdict(milestone)

    user.current_streak = current
    user.highest_streak = max(user.highest_streak or 0, current)
    user.streak_shields = shields
    user.last_log_date = today
    db.commit()
    db.refresh(user)

    outcome["updated"] = True
    log_structured("streak_updated", {
        "user_id": user.id,
        "streak": current,
        "shield_used": outcome["shield_used"] or None,
        "milestone": milestone.title if milestone else None,
    })
    return outcome


def streak_state(user: User) -> Dict[str, Any]:
    current = user.current_streak or 0
    upcoming = next_milestone(current)
    reached = latest_milestone(current)
    return {
        "current_streak": current,
        "highest_streak": user.highest_streak or 0,
        "streak_shields": user.streak_shields or 0,
        "last_log_date": user.last_log_date.isoformat() if user.last_log_date else None,
        "next_milestone": asdict(upcoming) if upcoming else None,
        "latest_milestone": asdict(reached) if reached else None,
    }
