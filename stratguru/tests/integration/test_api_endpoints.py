# stratguru/tests/integration/test_api_endpoints.py
"""
Integration tests for the account, legacy journal, risk and streak endpoints.
"""
from datetime import datetime

from stratguru.db import crud
from stratguru.db.models import Referral
from stratguru.services.jwt_service import create_access_token


class TestHealthEndpoints:
    """Test health check endpoints."""

    def test_health_check(self, client):
        """Test basic health check."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert "ok" in data
        assert "timestamp" in data

    def test_readiness_check(self, client, mock_env_vars):
        """Test readiness check."""
        response = client.get("/ready")
        assert response.status_code == 200
        data = response.json()
        assert "ready" in data
        assert data["checks"]["ai_provider"]["status"] is True
        assert data["checks"]["payments"]["status"] is True

    def test_security_headers(self, client):
        response = client.get("/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"


class TestAuthEndpoints:
    """Test authentication endpoints."""

    def test_register(self, client):
        response = client.post("/api/auth/register", json={
            "email": "New.Trader@Example.com",
            "password": "supersecret",
            "full_name": "New Trader",
        })
        assert response.status_code == 201
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["email"] == "new.trader@example.com"
        assert data["user"]["plan"] == "free"
        assert data["user"]["referral_code"]

    def test_register_with_referral_code(self, client, db_session, test_user):
        response = client.post("/api/auth/register", json={
            "email": "friend@example.com",
            "password": "supersecret",
            "referral_code": test_user.referral_code,
        })
        assert response.status_code == 201
        referral = db_session.query(Referral).one()
        assert referral.referrer_id == test_user.id

    def test_register_duplicate_email(self, client, test_user):
        response = client.post("/api/auth/register", json={
            "email": test_user.email,
            "password": "supersecret",
        })
        assert response.status_code == 409

    def test_register_short_password(self, client):
        response = client.post("/api/auth/register", json={"email": "a@example.com", "password": "short"})
        assert response.status_code == 422

    def test_login(self, client, test_user):
        response = client.post("/api/auth/login", json={
            "email": test_user.email,
            "password": "correct-horse-1",
        })
        assert response.status_code == 200
        assert response.json()["user"]["id"] == test_user.id

    def test_login_wrong_password(self, client, test_user):
        response = client.post("/api/auth/login", json={
            "email": test_user.email,
            "password": "wrong-password",
        })
        assert response.status_code == 401

    def test_me(self, client, test_user, auth_headers):
        response = client.get("/api/auth/me", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["email"] == test_user.email

    def test_me_requires_token(self, client):
        assert client.get("/api/auth/me").status_code == 401
        bad = {"Authorization": "Bearer not-a-token"}
        assert client.get("/api/auth/me", headers=bad).status_code == 401


class TestTradeEndpoints:
    """Test the legacy trade journal."""

    def _create(self, client, headers, **overrides):
        payload = {
            "pair": "XAUUSD",
            "direction": "long",
            "entry": 2300.0,
            "exit": 2310.0,
            "sl": 2295.0,
            "rr": 2.0,
            "risk_pct": 1.0,
            "result": "win",
            "pnl": 100.0,
            "executed_at": datetime.now().replace(microsecond=0).isoformat(),
        }
        payload.update(overrides)
        return client.post("/api/trades", json=payload, headers=headers)

    def test_create_and_list(self, client, auth_headers):
        response = self._create(client, auth_headers)
        assert response.status_code == 201
        trade = response.json()
        assert trade["pair"] == "XAUUSD"
        assert trade["result"] == "win"

        listed = client.get("/api/trades", headers=auth_headers).json()
        assert [t["id"] for t in listed] == [trade["id"]]

    def test_create_invalid_direction(self, client, auth_headers):
        response = self._create(client, auth_headers, direction="sideways")
        assert response.status_code == 400

    def test_get_update_delete(self, client, auth_headers):
        trade_id = self._create(client, auth_headers).json()["id"]

        assert client.get(f"/api/trades/{trade_id}", headers=auth_headers).status_code == 200

        response = client.put(f"/api/trades/{trade_id}", json={"result": "loss", "pnl": -50.0}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["result"] == "loss"
        assert response.json()["pair"] == "XAUUSD"

        response = client.delete(f"/api/trades/{trade_id}", headers=auth_headers)
        assert response.status_code == 200
        assert client.get(f"/api/trades/{trade_id}", headers=auth_headers).status_code == 404

    def test_trades_are_private(self, client, db_session, auth_headers):
        trade_id = self._create(client, auth_headers).json()["id"]
        other = crud.create_user(db_session, "other@example.com")
        other_headers = {"Authorization": f"Bearer {create_access_token(other.id)}"}
        assert client.get(f"/api/trades/{trade_id}", headers=other_headers).status_code == 404

    def test_stats(self, client, auth_headers):
        self._create(client, auth_headers)
        self._create(client, auth_headers, result="loss", pnl=-50.0, rr=1.0)
        self._create(client, auth_headers, result="open", pnl=None, rr=None)

        stats = client.get("/api/trades/stats", headers=auth_headers).json()
        assert stats["trade_count"] == 3
        assert stats["win_rate"] == 50.0
        assert stats["avg_rr"] == 1.5
        assert stats["total_pnl"] == 50.0


class TestRiskEndpoints:
    """Test the daily risk tracker."""

    def test_today_uses_logged_trades(self, client, auth_headers):
        response = client.put("/api/risk/today", json={"risk_limit": 200.0}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["used_risk"] == 0.0
        assert response.json()["status"] == "safe"

        client.post("/api/trades", json={
            "pair": "EURUSD",
            "direction": "short",
            "entry": 1.08,
            "result": "loss",
            "pnl": -150.0,
            "executed_at": datetime.now().replace(microsecond=0).isoformat(),
        }, headers=auth_headers)

        data = client.get("/api/risk/today", headers=auth_headers).json()
        assert data["used_risk"] == 150.0
        assert data["trades_count"] == 1
        assert data["risk_percentage"] == 75.0
        assert data["remaining_risk"] == 50.0
        assert data["status"] == "warning"

    def test_limit_must_be_positive(self, client, auth_headers):
        response = client.put("/api/risk/today", json={"risk_limit": 0}, headers=auth_headers)
        assert response.status_code == 422


class TestStreakAndPlanEndpoints:
    """Test streaks and subscription plan endpoints."""

    def test_streak_starts_empty(self, client, auth_headers):
        data = client.get("/api/streaks/me", headers=auth_headers).json()
        assert data["current_streak"] == 0
        assert data["next_milestone"]["day"] == 1

    def test_milestones_are_public(self, client):
        data = client.get("/api/streaks/milestones").json()
        assert data["milestones"][0]["day"] == 1

    def test_plans(self, client, db_session):
        from stratguru.scripts.seed_plans import ensure_plans

        assert ensure_plans(db_session) == 2
        assert ensure_plans(db_session) == 0
        plans = client.get("/api/subscriptions/plans").json()["plans"]
        assert [p["plan_code"] for p in plans] == ["free", "pro"]

    def test_my_subscription(self, client, test_user, auth_headers):
        data = client.get("/api/subscriptions/me", headers=auth_headers).json()
        assert data["userId"] == test_user.id
        assert data["plan"] == "free"
        assert data["credits"]["remaining"] == test_user.ai_credits_remaining


class TestCalculatorEndpoints:
    """Test the position size calculator."""

    def test_anonymous_forex(self, client):
        response = client.post("/api/calculator/position-size", json={
            "account_balance": 10000,
            "risk_percent": 1,
            "entry_price": 1.1000,
            "stop_loss": 1.0950,
        })
        assert response.status_code == 200
        data = response.json()
        assert data["instrument"] == "forex"
        assert data["position_size"] == 0.2
        assert data["stop_loss_pips"] == 50.0

    def test_signed_in_crypto(self, client, auth_headers):
        response = client.post("/api/calculator/position-size", json={
            "account_balance": 10000,
            "risk_percent": 2,
            "entry_price": 60000,
            "stop_loss": 59000,
            "instrument": "crypto",
        }, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["position_size"] == 0.2

    def test_stop_at_entry(self, client):
        response = client.post("/api/calculator/position-size", json={
            "account_balance": 10000,
            "risk_percent": 1,
            "entry_price": 1.1,
            "stop_loss": 1.1,
        })
        assert response.status_code == 400

    def test_rejects_unknown_instrument(self, client):
        response = client.post("/api/calculator/position-size", json={
            "account_balance": 10000,
            "risk_percent": 1,
            "entry_price": 1.1,
            "stop_loss": 1.09,
            "instrument": "bonds",
        })
        assert response.status_code == 422


class TestFeedbackEndpoints:
    """Test feedback submission and the admin inbox."""

    def test_submit_and_admin_list(self, client, db_session, test_user, auth_headers):
        response = client.post("/api/feedback", json={
            "feedback_type": "bug_report",
            "message": "  Chart upload fails on Safari  ",
            "screenshot_url": "https://cdn.example.com/bug.png",
        }, headers=auth_headers)
        assert response.status_code == 201
        assert response.json()["message"] == "Chart upload fails on Safari"
        client.post("/api/feedback", json={"feedback_type": "feature_request", "message": "Dark mode"}, headers=auth_headers)

        admin = crud.create_user(db_session, "admin@example.com", is_admin=True)
        admin_headers = {"Authorization": f"Bearer {create_access_token(admin.id)}"}
        items = client.get("/api/feedback", headers=admin_headers).json()
        assert len(items) == 2
        assert {i["user_email"] for i in items} == {test_user.email}

        bugs = client.get("/api/feedback", params={"type": "bug_report"}, headers=admin_headers).json()
        assert [b["screenshot_url"] for b in bugs] == ["https://cdn.example.com/bug.png"]

    def test_list_is_admin_only(self, client, auth_headers):
        assert client.get("/api/feedback", headers=auth_headers).status_code == 403

    def test_invalid_type_and_blank_message(self, client, auth_headers):
        response = client.post("/api/feedback", json={"feedback_type": "rant", "message": "Hi"}, headers=auth_headers)
        assert response.status_code == 400
        response = client.post("/api/feedback", json={"feedback_type": "general_feedback", "message": "   "}, headers=auth_headers)
        assert response.status_code == 400

    def test_requires_login(self, client):
        response = client.post("/api/feedback", json={"feedback_type": "bug_report", "message": "Hi"})
        assert response.status_code == 401
