# stratguru/api/payments.py
"""
Pro checkout through Paystack (card, bank, mobile money) and NOWPayments (crypto).

Webhooks are authenticated by signature only; they carry no JWT.
"""
from __future__ import annotations
import json
from fastapi import APIRouter, Depends, HTTPException, Body, Request, status
from typing import Dict, Any, Optional
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..db.session import get_db
from ..db import crud
from ..db.models import User
from ..services import paystack_service, nowpayments_service
from ..services.plan_service import upgrade_to_pro
from ..utils.config import PRO_PRICE_KOBO
from ..utils.jwt_deps import get_current_user
from ..utils.error_handler import ProviderError, handle_provider_error
from ..utils.logger import log_structured
from ..utils.sentry_setup import capture_exception, capture_message

router = APIRouter(prefix="/payments", tags=["payments"])


class VerifyPaymentRequest(BaseModel):
    reference: Optional[str] = None


def _is_pro_upgrade(metadata: Optional[Dict[str, Any]]) -> bool:
    return bool(metadata) and metadata.get("plan") == "pro" and bool(metadata.get("userId"))


# ---------- Paystack ----------
@router.post("/paystack/checkout", response_model=Dict[str, Any])
def paystack_checkout(user: User = Depends(get_current_user)):
    """Start a Paystack transaction for the Pro plan. Returns {payUrl, reference}."""
    try:
        return paystack_service.initialize_transaction(user.email, user.id)
    except ProviderError as e:
        raise handle_provider_error(e)


@router.post("/paystack/verify", response_model=Dict[str, Any])
def paystack_verify(
    data: VerifyPaymentRequest = Body(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Confirm a transaction after the Paystack redirect and upgrade on success."""
    if not data.reference:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Payment reference is required")

    try:
        transaction = paystack_service.verify_transaction(data.reference)
    except ProviderError as e:
        log_structured("paystack_verify_failed", {"reference": data.reference, "error": e.message}, level="ERROR")
        capture_exception(e, payment={"provider": "paystack", "reference": data.reference})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.message)

    metadata = transaction.get("metadata") or {}
    if transaction.get("status") == "success" and _is_pro_upgrade(metadata):
        target = crud.get_user_by_id(db, metadata["userId"])
        if target is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User for this payment not found")
        customer = transaction.get("customer") or {}
        upgrade_to_pro(
            db,
            target,
            reference=transaction.get("reference") or data.reference,
            amount=int(transaction.get("amount") or PRO_PRICE_KOBO),
            provider="paystack",
            customer_code=customer.get("customer_code"),
        )
        return {"success": True, "message": "Payment verified and account upgraded successfully", "plan": "pro"}

    return {"success": False, "message": "Payment verification failed", "status": transaction.get("status")}


@router.post("/paystack/webhook", response_model=Dict[str, Any])
async def paystack_webhook(request: Request, db: Session = Depends(get_db)):
    """
    Paystack events, signed with x-paystack-signature.
    charge.success upgrades the user; failed and abandoned charges are only logged.
    """
    raw_body = await request.body()
    signature = request.headers.get("x-paystack-signature")
    if not signature or not paystack_service.verify_webhook_signature(raw_body, signature):
        log_structured("paystack_webhook_rejected", {"reason": "invalid signature"}, level="WARNING")
        capture_message("Paystack webhook rejected: invalid signature", "warning")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid signature")

    try:
        event = json.loads(raw_body)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid payload")

    event_type = event.get("event")
    data = event.get("data") or {}
    metadata = data.get("metadata") or {}
    log_structured("paystack_webhook", {"event": event_type, "reference": data.get("reference")})

    if event_type == "charge.success" and _is_pro_upgrade(metadata):
        user = crud.get_user_by_id(db, metadata["userId"])
        if user is None:
            log_structured("paystack_webhook_unknown_user", {"user_id": metadata["userId"]}, level="WARNING")
        else:
            upgrade_to_pro(
                db,
                user,
                reference=data.get("reference") or f"paystack_{data.get('id')}",
                amount=int(data.get("amount") or PRO_PRICE_KOBO),
                provider="paystack",
                customer_code=(data.get("customer") or {}).get("customer_code"),
            )
    elif event_type in ("charge.failed", "charge.abandoned"):
        log_structured("paystack_charge_not_completed", {
            "event": event_type,
            "reference": data.get("reference"),
            "user_id": metadata.get("userId"),
        }, level="WARNING")

    return {"received": True}


# ---------- NOWPayments ----------
@router.post("/nowpayments/checkout", response_model=Dict[str, Any])
def nowpayments_checkout(user: User = Depends(get_current_user)):
    """Create a crypto invoice for the Pro plan. Returns {payUrl, invoiceId}."""
    try:
        return nowpayments_service.create_invoice(user.id)
    except ProviderError as e:
        raise handle_provider_error(e)


@router.post("/nowpayments/webhook", response_model=Dict[str, Any])
async def nowpayments_webhook(request: Request, db: Session = Depends(get_db)):
    """IPN callback, signed with x-nowpayments-sig over the key-sorted body."""
    try:
        payload = json.loads(await request.body())
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid payload")

    signature = request.headers.get("x-nowpayments-sig")
    if not signature or not isinstance(payload, dict) or not nowpayments_service.verify_ipn_signature(payload, signature):
        log_structured("nowpayments_webhook_rejected", {"reason": "invalid signature"}, level="WARNING")
        capture_message("NOWPayments webhook rejected: invalid signature", "warning")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid signature")

    payment_status = payload.get("payment_status")
    order_id = payload.get("order_id")
    log_structured("nowpayments_webhook", {"status": payment_status, "order_id": order_id})

    if payment_status == "finished":
        user = None
        user_id = nowpayments_service.user_id_from_order(order_id)
        if user_id:
            user = crud.get_user_by_id(db, user_id)
        if user is None and payload.get("customer_email"):
            user = crud.get_user_by_email(db, payload["customer_email"])
        if user is None:
            log_structured("nowpayments_webhook_unknown_user", {"order_id": order_id}, level="WARNING")
        else:
            # Commission is booked in the same unit as Paystack payments
            upgrade_to_pro(
                db,
                user,
                reference=order_id or str(payload.get("payment_id")),
                amount=PRO_PRICE_KOBO,
                provider="nowpayments",
            )
    elif payment_status in ("failed", "expired"):
        log_structured("nowpayments_payment_not_completed", {
            "status": payment_status,
            "order_id": order_id,
        }, level="WARNING")

    return {"received": True}
