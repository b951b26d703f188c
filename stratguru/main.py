# stratguru/main.py
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.health import health_router
from .api.auth import router as auth_router
from .api.trades import router as trades_router
from .api.elite_trades import router as elite_trades_router
from .api.setup_types import router as setup_types_router
from .api.analytics import router as analytics_router
from .api.subscriptions import router as subscriptions_router
from .api.payments import router as payments_router
from .api.referrals import router as referrals_router
from .api.admin_referrals import router as admin_referrals_router
from .api.ai import router as ai_router
from .api.streaks import router as streaks_router
from .api.risk import router as risk_router
from .api.calculator import router as calculator_router
from .api.feedback import router as feedback_router
from .db.session import engine, SessionLocal, Base
from .db import models  # noqa: F401  registers tables on Base.metadata
from .middleware.jwt_auth import JWTAuthMiddleware
from .middleware.security_headers import SecurityHeadersMiddleware
from .middleware.rate_limiter import RateLimitMiddleware
from .scripts.seed_plans import ensure_plans
from .utils.config import get_setting
from .utils.env_validator import validate_env_vars, log_env_validation
from .utils.error_handler import UserFriendlyError
from .utils.logger import log, log_structured
from .utils.sentry_setup import init_sentry


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    log_env_validation(validate_env_vars())
    init_sentry()

    # create tables
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        created = ensure_plans(db)
        if created:
            log(f"Seeded {created} subscription plan(s)")
    finally:
        db.close()

    yield
    # Shutdown
    log("StratGuru backend shutting down")


async def user_friendly_error_handler(request: Request, exc: UserFriendlyError):
    log_structured(
        "request_failed",
        {"path": request.url.path, "status": exc.status_code, "error": exc.message},
        level="ERROR" if exc.status_code >= 500 else "WARNING",
    )
    content = {"detail": exc.message}
    if exc.details:
        content.update(exc.details)
    return JSONResponse(status_code=exc.status_code, content=content)


def create_app() -> FastAPI:
    app = FastAPI(
        title="StratGuru API",
        version="1.0.0",
        description="Trading journal, edge analytics, AI coaching and affiliate billing.",
        lifespan=lifespan,
    )

    app.add_exception_handler(UserFriendlyError, user_friendly_error_handler)

    app.include_router(health_router)
    app.include_router(auth_router, prefix="/api")
    app.include_router(trades_router, prefix="/api")
    app.include_router(elite_trades_router, prefix="/api")
    app.include_router(setup_types_router, prefix="/api")
    app.include_router(analytics_router, prefix="/api")
    app.include_router(subscriptions_router, prefix="/api")
    app.include_router(payments_router, prefix="/api")
    app.include_router(referrals_router, prefix="/api")
    app.include_router(admin_referrals_router, prefix="/api")
    app.include_router(ai_router, prefix="/api")
    app.include_router(streaks_router, prefix="/api")
    app.include_router(risk_router, prefix="/api")
    app.include_router(calculator_router, prefix="/api")
    app.include_router(feedback_router, prefix="/api")

    # CORS first so OPTIONS preflights are answered before the other middleware
    allowed_origins = get_setting("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in allowed_origins if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RateLimitMiddleware)

    # Added last so it runs first and the rate limiter can key on user_id
    app.add_middleware(JWTAuthMiddleware)

    return app


app = create_app()


if __name__ == "__main__":
    log("Starting StratGuru backend at http://localhost:8000 ...")
    uvicorn.run("stratguru.main:app", host="0.0.0.0", port=8000, reload=True)
