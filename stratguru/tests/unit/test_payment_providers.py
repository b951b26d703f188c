# stratguru/tests/unit/test_payment_providers.py
"""Unit tests for the Paystack and NOWPayments clients."""
import hashlib
import hmac
import json
from unittest.mock import patch, MagicMock

import httpx
import pytest

from stratguru.services import paystack_service, nowpayments_service
from stratguru.utils.error_handler import ProviderError, UserFriendlyError


def _response(status_code, payload):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    return response


def _client_returning(response):
    client = MagicMock()
    client.__enter__.return_value = client
    client.post.return_value = response
    client.get.return_value = response
    return client


class TestPaystack:
    """Test Paystack checkout, verification and webhook signatures."""

    def test_reference_format(self):
        reference = paystack_service.build_reference("user-1")
        assert reference.startswith("pro_upgrade_user-1_")
        assert nowpayments_service.user_id_from_order(reference) == "user-1"

    def test_user_id_from_bad_order(self):
        assert nowpayments_service.user_id_from_order("garbage") is None
        assert nowpayments_service.user_id_from_order(None) is None

    def test_signature(self, mock_env_vars):
        body = b'{"event":"charge.success"}'
        expected = hmac.new(b"test-paystack-secret", body, hashlib.sha512).hexdigest()
        assert paystack_service.verify_webhook_signature(body, expected) is True
        assert paystack_service.verify_webhook_signature(body, "bad") is False
        assert paystack_service.verify_webhook_signature(body, None) is False

    def test_missing_secret_key(self, monkeypatch):
        monkeypatch.setattr(paystack_service, "get_setting", lambda name, default=None: None)
        with pytest.raises(UserFriendlyError):
            paystack_service.initialize_transaction("a@example.com", "user-1")

    def test_initialize(self, mock_env_vars):
        response = _response(200, {
            "status": True,
            "data": {"authorization_url": "https://checkout.paystack.com/abc", "reference": "pro_upgrade_user-1_1"},
        })
        client = _client_returning(response)
        with patch.object(paystack_service.httpx, "Client", return_value=client):
            result = paystack_service.initialize_transaction("a@example.com", "user-1", amount=500)

        assert result == {"payUrl": "https://checkout.paystack.com/abc", "reference": "pro_upgrade_user-1_1"}
        body = client.post.call_args.kwargs["json"]
        assert body["amount"] == 500
        assert body["currency"] == "NGN"
        assert body["metadata"] == {"userId": "user-1", "plan": "pro", "upgrade": True}

    def test_verify_failure_raises(self, mock_env_vars):
        client = _client_returning(_response(400, {"status": False, "message": "Transaction reference not found"}))
        with patch.object(paystack_service.httpx, "Client", return_value=client):
            with pytest.raises(ProviderError) as exc_info:
                paystack_service.verify_transaction("missing")
        assert exc_info.value.status_code == 400
        assert "not found" in exc_info.value.message

    def test_network_error(self, mock_env_vars):
        client = MagicMock()
        client.__enter__.return_value = client
        client.get.side_effect = httpx.ConnectError("boom")
        with patch.object(paystack_service.httpx, "Client", return_value=client):
            with pytest.raises(ProviderError) as exc_info:
                paystack_service.verify_transaction("ref")
        assert exc_info.value.status_code == 502


class TestNowPayments:
    """Test NOWPayments invoices and IPN signatures."""

    def test_ipn_signature_uses_sorted_keys(self, mock_env_vars):
        payload = {"payment_status": "finished", "order_id": "pro_upgrade_u1_1", "amount": 30}
        canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
        expected = hmac.new(b"test-ipn-secret", canonical.encode(), hashlib.sha512).hexdigest()
        assert nowpayments_service.canonical_body(payload).startswith('{"amount":30')
        assert nowpayments_service.verify_ipn_signature(payload, expected) is True
        assert nowpayments_service.verify_ipn_signature(payload, "bad") is False

    def test_create_invoice(self, mock_env_vars):
        client = _client_returning(_response(200, {"id": "inv-1", "invoice_url": "https://nowpayments.io/pay/inv-1"}))
        with patch.object(nowpayments_service.httpx, "Client", return_value=client):
            result = nowpayments_service.create_invoice("user-1")

        assert result == {"payUrl": "https://nowpayments.io/pay/inv-1", "invoiceId": "inv-1"}
        body = client.post.call_args.kwargs["json"]
        assert body["order_id"].startswith("pro_upgrade_user-1_")
        assert body["ipn_callback_url"].endswith("/api/payments/nowpayments/webhook")

    def test_invoice_error(self, mock_env_vars):
        client = _client_returning(_response(401, {"message": "Invalid api key"}))
        with patch.object(nowpayments_service.httpx, "Client", return_value=client):
            with pytest.raises(ProviderError) as exc_info:
                nowpayments_service.create_invoice("user-1")
        assert exc_info.value.status_code == 401
