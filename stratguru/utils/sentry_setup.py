# stratguru/utils/sentry_setup.py
"""
Sentry error monitoring setup.
"""
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sentry_sdk.integrations.httpx import HttpxIntegration

from .config import get_setting
from .logger import log, log_error

_initialized = False


def init_sentry() -> bool:
    """Initialize Sentry when SENTRY_DSN is configured."""
    global _initialized

    sentry_dsn = get_setting("SENTRY_DSN")
    if not sentry_dsn:
        log("SENTRY_DSN not set. Error monitoring disabled.", "WARNING")
        return False

    try:
        sentry_sdk.init(
            dsn=sentry_dsn,
            integrations=[
                FastApiIntegration(),
                SqlalchemyIntegration(),
                HttpxIntegration(),
            ],
            traces_sample_rate=0.1,
            environment=get_setting("ENVIRONMENT", "development"),
            release=get_setting("APP_VERSION", "1.0.0"),
        )
    except Exception as e:
        log_error(f"Failed to initialize Sentry: {e}")
        return False

    _initialized = True
    log("Sentry error monitoring initialized")
    return True


def capture_exception(error: Exception, **context) -> None:
    """Capture an exception with context (logged locally when Sentry is off)."""
    if not _initialized:
        log_error(f"{type(error).__name__}: {error}", exc_info=True)
        return
    with sentry_sdk.new_scope() as scope:
        for key, value in context.items():
            scope.set_context(key, value)
        sentry_sdk.capture_exception(error)


def capture_message(message: str, level: str = "info", **context) -> None:
    if not _initialized:
        log(message, level)
        return
    with sentry_sdk.new_scope() as scope:
        for key, value in context.items():
            scope.set_context(key, value)
        sentry_sdk.capture_message(message, level=level)
