# stratguru/services/paystack_service.py
"""
Paystack payment service for Pro upgrades.
"""
import hashlib
import hmac
import time
from typing import Optional, Dict, Any

import httpx

from ..utils.config import get_setting, APP_URL, PRO_PRICE_KOBO
from ..utils.error_handler import ProviderError, UserFriendlyError

PAYSTACK_BASE_URL = "https://api.paystack.co"
PAYSTACK_CHANNELS = ["card", "bank", "ussd", "qr", "mobile_money", "bank_transfer"]


def _secret_key() -> str:
    key = get_setting("PAYSTACK_SECRET_KEY")
    if not key:
        raise UserFriendlyError("PAYSTACK_SECRET_KEY is not configured. Please add it to config/.env", status_code=500)
    return key


def _headers() -> Dict[str, str]:
    return {
        "Authorization": f"Bearer {_secret_key()}",
        "Content-Type": "application/json",
    }


def build_reference(user_id: str) -> str:
    """pro_upgrade_<userId>_<epoch ms>; webhooks recover the user from index 2."""
    return f"pro_upgrade_{user_id}_{int(time.time() * 1000)}"


def _raise_for_status(response: httpx.Response, payload: Dict[str, Any]) -> None:
    if response.status_code >= 400 or payload.get("status") is False:
        raise ProviderError(
            "Paystack",
            response.status_code if response.status_code >= 400 else 502,
            payload.get("message") or "Paystack request failed",
        )


def initialize_transaction(email: str, user_id: str, amount: int = PRO_PRICE_KOBO) -> Dict[str, Any]:
    """
    Start a Paystack checkout for the Pro plan.

    Returns:
        {"payUrl": authorization_url, "reference": reference}
    """
    reference = build_reference(user_id)
    body = {
        "email": email,
        "amount": amount,
        "currency": "NGN",
        "reference": reference,
        "callback_url": f"{APP_URL}/settings",
        "channels": PAYSTACK_CHANNELS,
        "metadata": {"userId": user_id, "plan": "pro", "upgrade": True},
    }
    try:
        with httpx.Client(timeout=30.0) as client:
            response = client.post(f"{PAYSTACK_BASE_URL}/transaction/initialize", json=body, headers=_headers())
    except httpx.HTTPError as e:
        raise ProviderError("Paystack", 502, f"Could not reach Paystack: {e}")

    payload = response.json()
    _raise_for_status(response, payload)
    data = payload.get("data") or {}
    return {"payUrl": data.get("authorization_url"), "reference": data.get("reference", reference)}


def verify_transaction(reference: str) -> Dict[str, Any]:
    """Fetch a transaction by reference and return Paystack's `data` object."""
    try:
        with httpx.Client(timeout=30.0) as client:
            response = client.get(f"{PAYSTACK_BASE_URL}/transaction/verify/{reference}", headers=_headers())
    except httpx.HTTPError as e:
        raise ProviderError("Paystack", 502, f"Could not reach Paystack: {e}")

    payload = response.json()
    _raise_for_status(response, payload)
    return payload.get("data") or {}


def compute_signature(raw_body: bytes, secret: Optional[str] = None) -> str:
    return hmac.new((secret or _secret_key()).encode("utf-8"), raw_body, hashlib.sha512).hexdigest()


def verify_webhook_signature(raw_body: bytes, signature: Optional[str]) -> bool:
    """x-paystack-signature is the HMAC-SHA512 hex of the raw body keyed by the secret key."""
    if not signature:
        return False
    return hmac.compare_digest(compute_signature(raw_body), signature)
