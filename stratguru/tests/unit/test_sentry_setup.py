# stratguru/tests/unit/test_sentry_setup.py
"""Unit tests for error reporting helpers."""
from unittest.mock import patch

from stratguru.utils import sentry_setup


class TestSentryCapture:
    """Test capture helpers with and without an initialised client."""

    def test_capture_exception_uses_scope_when_initialised(self, monkeypatch):
        monkeypatch.setattr(sentry_setup, "_initialized", True)
        error = ValueError("verify failed")
        with patch.object(sentry_setup.sentry_sdk, "capture_exception") as captured:
            sentry_setup.capture_exception(error, payment={"provider": "paystack", "reference": "r-1"})
        captured.assert_called_once_with(error)

    def test_capture_message_uses_scope_when_initialised(self, monkeypatch):
        monkeypatch.setattr(sentry_setup, "_initialized", True)
        with patch.object(sentry_setup.sentry_sdk, "capture_message") as captured:
            sentry_setup.capture_message("Paystack webhook rejected: invalid signature", "warning")
        captured.assert_called_once_with("Paystack webhook rejected: invalid signature", level="warning")

    def test_falls_back_to_logger(self, monkeypatch):
        monkeypatch.setattr(sentry_setup, "_initialized", False)
        with patch.object(sentry_setup, "log_error") as logged, \
                patch.object(sentry_setup.sentry_sdk, "capture_exception") as captured:
            sentry_setup.capture_exception(RuntimeError("boom"))
        logged.assert_called_once()
        assert captured.call_count == 0
