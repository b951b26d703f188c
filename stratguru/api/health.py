# stratguru/api/health.py
from __future__ import annotations
from fastapi import APIRouter
from typing import Dict, Any
from datetime import datetime, timezone
from sqlalchemy import text

from ..db.session import SessionLocal
from ..db.models import SubscriptionPlan
from ..utils.config import get_setting

health_router = APIRouter(tags=["health"])


@health_router.get("/health")
def health() -> Dict[str, Any]:
    """Basic health check endpoint."""
    status = {
        "db": False,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
    ok = True

    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
            status["db"] = True
    except Exception as e:
        ok = False
        status["db_error"] = str(e)

    return {
        "ok": ok,
        "status": status,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@health_router.get("/ready")
def readiness() -> Dict[str, Any]:
    """Readiness check: database reachable, plans seeded, providers configured."""
    checks = {
        "database": {"status": False, "message": ""},
        "plans": {"status": False, "message": ""},
        "ai_provider": {"status": False, "message": ""},
        "payments": {"status": False, "message": ""},
    }
    all_ready = True

    try:
        with SessionLocal() as db:
            plan_count = db.query(SubscriptionPlan).count()
            checks["database"]["status"] = True
            checks["database"]["message"] = "Database connection healthy"
            checks["plans"]["status"] = plan_count > 0
            checks["plans"]["message"] = f"{plan_count} subscription plans" if plan_count else "No plans seeded"
    except Exception as e:
        all_ready = False
        checks["database"]["message"] = f"Database error: {str(e)}"

    # Providers are optional for readiness; they only disable features
    checks["ai_provider"]["status"] = bool(get_setting("OPENAI_API_KEY"))
    checks["ai_provider"]["message"] = "Configured" if checks["ai_provider"]["status"] else "OPENAI_API_KEY not set"
    checks["payments"]["status"] = bool(get_setting("PAYSTACK_SECRET_KEY") or get_setting("NOWPAYMENTS_API_KEY"))
    checks["payments"]["message"] = "Configured" if checks["payments"]["status"] else "No payment provider configured"

    return {
        "ready": all_ready,
        "checks": checks,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
