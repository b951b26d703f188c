# stratguru/services/nowpayments_service.py
"""
NOWPayments crypto checkout for Pro upgrades.
"""
import hashlib
import hmac
import json
from typing import Optional, Dict, Any

import httpx

from ..utils.config import get_setting, APP_URL, PRO_PRICE_USD
from ..utils.error_handler import ProviderError, UserFriendlyError
from .paystack_service import build_reference

NOWPAYMENTS_BASE_URL = "https://api.nowpayments.io/v1"


def _api_key() -> str:
    key = get_setting("NOWPAYMENTS_API_KEY")
    if not key:
        raise UserFriendlyError("NOWPAYMENTS_API_KEY is not configured. Please add it to config/.env", status_code=500)
    return key


def _ipn_secret() -> str:
    secret = get_setting("NOWPAYMENTS_IPN_SECRET")
    if not secret:
        raise UserFriendlyError("NOWPAYMENTS_IPN_SECRET is not configured", status_code=500)
    return secret


def create_invoice(user_id: str, price_amount: float = PRO_PRICE_USD, currency: str = "usd") -> Dict[str, Any]:
    """
    Create a hosted invoice for the Pro plan.

    Returns:
        {"payUrl": invoice_url, "invoiceId": id}
    """
    body = {
        "price_amount": price_amount,
        "price_currency": currency,
        "order_id": build_reference(user_id),
        "order_description": "StratGuru Pro Monthly Subscription",
        "ipn_callback_url": f"{APP_URL}/api/payments/nowpayments/webhook",
        "success_url": f"{APP_URL}/settings?payment=success",
        "cancel_url": f"{APP_URL}/settings?payment=cancelled",
        "is_fee_paid_by_user": True,
    }
    headers = {"x-api-key": _api_key(), "Content-Type": "application/json"}
    try:
        with httpx.Client(timeout=30.0) as client:
            response = client.post(f"{NOWPAYMENTS_BASE_URL}/invoice", json=body, headers=headers)
    except httpx.HTTPError as e:
        raise ProviderError("NOWPayments", 502, f"Could not reach NOWPayments: {e}")

    payload = response.json()
    if response.status_code >= 400:
        raise ProviderError(
            "NOWPayments", response.status_code, payload.get("message") or "Failed to create NOWPayments invoice"
        )
    return {"payUrl": payload.get("invoice_url"), "invoiceId": payload.get("id")}


def canonical_body(payload: Dict[str, Any]) -> str:
    """IPN bodies are signed after re-serialising with sorted keys and no whitespace."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"))


def compute_signature(payload: Dict[str, Any], secret: Optional[str] = None) -> str:
    return hmac.new(
        (secret or _ipn_secret()).encode("utf-8"),
        canonical_body(payload).encode("utf-8"),
        hashlib.sha512,
    ).hexdigest()


def verify_ipn_signature(payload: Dict[str, Any], signature: Optional[str]) -> bool:
    if not signature:
        return False
    return hmac.compare_digest(compute_signature(payload), signature)


def user_id_from_order(order_id: Optional[str]) -> Optional[str]:
    """order_id is pro_upgrade_<userId>_<ms>."""
    parts = (order_id or "").split("_")
    return parts[2] if len(parts) >= 3 and parts[2] else None
