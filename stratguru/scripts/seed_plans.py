#!/usr/bin/env python3
"""
Seed the database with the Free and Pro subscription plans.

    python -m stratguru.scripts.seed_plans
"""
from sqlalchemy.orm import Session

from ..db.session import SessionLocal, engine, Base
from ..db import crud
from ..utils.config import PRO_PRICE_KOBO, PRO_PRICE_USD, FREE_AI_CREDITS, PRO_AI_CREDITS

DEFAULT_PLANS = [
    {
        "plan_code": "free",
        "name": "Free",
        "price_monthly_kobo": 0,
        "price_monthly_usd": 0.0,
        "ai_credits_monthly": FREE_AI_CREDITS,
        "description": "Journal trades, track streaks and explore core analytics.",
    },
    {
        "plan_code": "pro",
        "name": "Pro",
        "price_monthly_kobo": PRO_PRICE_KOBO,
        "price_monthly_usd": float(PRO_PRICE_USD),
        "ai_credits_monthly": PRO_AI_CREDITS,
        "description": "Full edge analytics, AI mentor and co-pro analyzer with faster AI priority.",
    },
]


def ensure_plans(db: Session) -> int:
    """Create any missing default plan. Returns how many were created."""
    created = 0
    for plan in DEFAULT_PLANS:
        if crud.get_subscription_plan_by_code(db, plan["plan_code"]) is None:
            crud.create_subscription_plan(db, **plan)
            created += 1
    return created


def seed_plans():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        created = ensure_plans(db)
        print(f"Created {created} plan(s).")
        for plan in crud.list_subscription_plans(db, active_only=False):
            print(f"  - {plan['plan_code']}: {plan['name']} ({plan['price_monthly_kobo'] / 100:.2f} NGN/month, "
                  f"{plan['ai_credits_monthly']} AI credits)")
    except Exception as e:
        print(f"Error seeding plans: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_plans()
