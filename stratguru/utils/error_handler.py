# stratguru/utils/error_handler.py
"""
Centralized error handling utilities.
Turns database, validation and provider failures into consistent HTTP errors.
"""
from typing import Dict, Any, Optional
from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
import logging

logger = logging.getLogger(__name__)

# Provider statuses surfaced to the client unchanged
PASSTHROUGH_STATUSES = {401, 402, 429}


class UserFriendlyError(Exception):
    """Exception with user-friendly message."""
    def __init__(self, message: str, status_code: int = 500, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ProviderError(UserFriendlyError):
    """Raised by payment and AI provider clients on a non-success response."""
    def __init__(self, provider: str, status_code: int, message: str, details: Optional[Dict[str, Any]] = None):
        self.provider = provider
        super().__init__(message, status_code=status_code, details=details)


class InsufficientCreditsError(UserFriendlyError):
    """Raised when an AI feature costs more credits than the user has left."""
    def __init__(self, required: int, remaining: int):
        super().__init__(
            "You do not have enough AI credits for this analysis. Please upgrade your plan.",
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            details={"required": required, "remaining": remaining},
        )


def handle_database_error(e: Exception, operation: str = "database operation") -> HTTPException:
    """
    Handle database errors and return user-friendly HTTPException.

    Args:
        e: The exception that occurred
        operation: Description of the operation that failed

    Returns:
        HTTPException with user-friendly message
    """
    if isinstance(e, IntegrityError):
        error_msg = str(e.orig) if hasattr(e, 'orig') else str(e)

        if "duplicate key" in error_msg.lower() or "unique constraint" in error_msg.lower():
            return HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="This record already exists. Please check for duplicates."
            )
        elif "foreign key" in error_msg.lower():
            return HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid reference. The related record does not exist."
            )
        else:
            return HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Database constraint violation. Please check your input."
            )

    elif isinstance(e, SQLAlchemyError):
        logger.error(f"Database error during {operation}: {e}", exc_info=True)
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database error occurred. Please try again later."
        )

    else:
        logger.error(f"Unexpected error during {operation}: {e}", exc_info=True)
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred. Please try again later."
        )


def handle_validation_error(field: str, reason: str) -> HTTPException:
    """
    Handle validation errors with clear messages.

    Args:
        field: Name of the field that failed validation
        reason: Reason for validation failure
    """
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=f"Validation error for '{field}': {reason}"
    )


def handle_not_found_error(resource: str, resource_id: Optional[str] = None) -> HTTPException:
    """
    Handle not found errors.

    Args:
        resource: Type of resource (e.g., "Trade", "Setup type", "Payout request")
        resource_id: Optional ID of the resource
    """
    if resource_id:
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} with ID '{resource_id}' not found."
        )
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"{resource} not found."
    )


def handle_permission_error(action: str, resource: str) -> HTTPException:
    """
    Handle permission/authorization errors.

    Args:
        action: Action that was attempted (e.g., "view", "process")
        resource: Type of resource (e.g., "payout request")
    """
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=f"You do not have permission to {action} this {resource}."
    )


def handle_provider_error(e: ProviderError) -> HTTPException:
    """
    Map a payment/AI provider failure to an HTTP error.

    401, 402 and 429 pass through with the provider message; anything else
    becomes a 502 so the client can tell it apart from our own failures.
    """
    if e.status_code in PASSTHROUGH_STATUSES:
        return HTTPException(status_code=e.status_code, detail=e.message)

    logger.error(f"{e.provider} error ({e.status_code}): {e.message}")
    if e.status_code >= 500 or e.status_code < 400:
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"{e.provider} is temporarily unavailable. Please try again later."
        )
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.message)


def handle_credits_error(e: InsufficientCreditsError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_402_PAYMENT_REQUIRED,
        detail={"error": "Insufficient credits", "message": e.message, **e.details},
    )
