# stratguru/utils/env_validator.py
"""
Environment variable validation on startup.
Reports missing settings; never aborts startup.
"""
from typing import Dict, Any

from .config import get_setting
from .logger import log

REQUIRED_ENV_VARS = [
    "DATABASE_URL",
    "JWT_SECRET_KEY",
]

RECOMMENDED_ENV_VARS = [
    "OPENAI_API_KEY",
    "PAYSTACK_SECRET_KEY",
    "NOWPAYMENTS_API_KEY",
    "NOWPAYMENTS_IPN_SECRET",
    "SENTRY_DSN",
    "ALLOWED_ORIGINS",
]

ENV_VAR_DESCRIPTIONS: Dict[str, str] = {
    "DATABASE_URL": "Database connection string (defaults to local SQLite)",
    "JWT_SECRET_KEY": "Secret key for JWT token signing (min 32 chars)",
    "OPENAI_API_KEY": "API key for the AI analysis, mentor and co-pro endpoints",
    "PAYSTACK_SECRET_KEY": "Paystack secret key for checkout, verification and webhooks",
    "NOWPAYMENTS_API_KEY": "NOWPayments API key for crypto checkout",
    "NOWPAYMENTS_IPN_SECRET": "NOWPayments IPN secret for webhook signatures",
    "SENTRY_DSN": "Sentry error tracking DSN",
    "ALLOWED_ORIGINS": "Comma-separated CORS origins",
}


def validate_env_vars() -> Dict[str, Any]:
    """
    Validate environment variables.

    Returns:
        {"valid": bool, "missing_required": [...], "missing_recommended": [...], "warnings": [...]}
    """
    result = {
        "valid": True,
        "missing_required": [],
        "missing_recommended": [],
        "warnings": []
    }

    for var in REQUIRED_ENV_VARS:
        if not get_setting(var):
            result["missing_required"].append(var)
            result["valid"] = False

    for var in RECOMMENDED_ENV_VARS:
        if not get_setting(var):
            result["missing_recommended"].append(var)

    jwt_secret = get_setting("JWT_SECRET_KEY")
    if jwt_secret and len(jwt_secret) < 32:
        result["warnings"].append(
            "JWT_SECRET_KEY is too short (minimum 32 characters recommended for security)"
        )

    return result


def log_env_validation(validation_result: Dict[str, Any]) -> None:
    """Write validation results to the log."""
    if not validation_result["valid"]:
        log(
            f"Environment validation failed, missing: {', '.join(validation_result['missing_required'])}",
            "WARNING",
        )
    else:
        log("Environment validation passed")

    for var in validation_result["missing_recommended"]:
        desc = ENV_VAR_DESCRIPTIONS.get(var, "No description")
        log(f"Missing recommended variable {var}: {desc}", "WARNING")

    for warning in validation_result["warnings"]:
        log(warning, "WARNING")
