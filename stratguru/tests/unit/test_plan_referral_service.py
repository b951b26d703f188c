# stratguru/tests/unit/test_plan_referral_service.py
"""Unit tests for Pro upgrades, referral commissions and the payout workflow."""
import pytest
from fastapi import HTTPException

from stratguru.db import crud
from stratguru.db.models import Plan, AIPriority, LedgerStatus, Commission, Payment
from stratguru.services.plan_service import upgrade_to_pro, commission_for
from stratguru.services.referral_service import ReferralService, payout_to_dict
from stratguru.services.credit_service import CreditService
from stratguru.utils.config import PRO_AI_CREDITS


@pytest.fixture
def referrer(db_session):
    return crud.create_user(db_session, "affiliate@example.com")


@pytest.fixture
def referred(db_session, referrer):
    return crud.create_user(db_session, "buyer@example.com", referral_code=referrer.referral_code)


@pytest.fixture
def admin(db_session):
    return crud.create_user(db_session, "admin@example.com", is_admin=True)


@pytest.fixture
def service():
    return ReferralService()


class TestUpgradeToPro:
    """Test plan upgrades and commission crediting."""

    def test_commission_for(self):
        assert commission_for(2900000, 0.2) == 580000
        assert commission_for(3, 0.5) == 2

    def test_upgrade_without_referrer(self, db_session, referrer):
        result = upgrade_to_pro(db_session, referrer, "ref-1", 2900000, customer_code="CUS_123")
        assert result["plan"] == "pro"
        assert result["commission_created"] is False
        assert referrer.plan == Plan.PRO
        assert referrer.ai_priority == AIPriority.FAST
        assert referrer.ai_credits_remaining == PRO_AI_CREDITS
        assert referrer.paystack_customer_code == "CUS_123"

    def test_upgrade_credits_referrer(self, db_session, referrer, referred):
        result = upgrade_to_pro(db_session, referred, "ref-2", 2900000)
        assert result["commission_created"] is True
        assert result["commission_amount"] == 580000

        db_session.refresh(referrer)
        assert referrer.total_earnings == 580000
        assert referrer.pending_balance == 580000
        commission = crud.get_commission_by_reference(db_session, "ref-2")
        assert commission.referred_id == referred.id
        assert commission.status == LedgerStatus.PENDING

    def test_replayed_reference_is_idempotent(self, db_session, referrer, referred):
        upgrade_to_pro(db_session, referred, "ref-3", 2900000)
        result = upgrade_to_pro(db_session, referred, "ref-3", 2900000)
        assert result["commission_created"] is False

        db_session.refresh(referrer)
        assert referrer.total_earnings == 580000
        assert db_session.query(Commission).count() == 1

    def test_replay_does_not_refill_spent_credits(self, db_session, referred):
        upgrade_to_pro(db_session, referred, "pro_upgrade_ref_1", 2900000)
        assert CreditService().deduct_ai_credits(db_session, referred, 60, "ai-mentor") == 40

        result = upgrade_to_pro(db_session, referred, "pro_upgrade_ref_1", 2900000)
        assert result["already_processed"] is True
        assert result["plan"] == "pro"

        db_session.refresh(referred)
        assert referred.ai_credits_remaining == 40
        assert db_session.query(Payment).count() == 1

    def test_new_reference_is_recorded(self, db_session, referrer):
        result = upgrade_to_pro(db_session, referrer, "ref-6", 2900000, provider="nowpayments")
        assert result["already_processed"] is False
        payment = crud.get_payment_by_reference(db_session, "ref-6")
        assert payment.user_id == referrer.id
        assert payment.provider == "nowpayments"
        assert payment.amount == 2900000


class TestReferralService:
    """Test dashboards and payouts."""

    def test_dashboard(self, db_session, service, referrer, referred):
        upgrade_to_pro(db_session, referred, "ref-4", 1000000)
        data = service.dashboard(db_session, referrer)
        assert data["stats"] == {"totalReferrals": 1, "paidSubscribers": 1}
        assert data["profile"]["pending_balance"] == 200000
        assert data["commissions"][0]["referred_email"] == "buyer@example.com"
        assert data["payouts"] == []

    def test_referral_link(self, service, referrer):
        assert service.referral_link(referrer).endswith(f"/signup?ref={referrer.referral_code}")

    def test_payout_validation(self, db_session, service, referrer):
        referrer.pending_balance = 10000
        db_session.commit()

        with pytest.raises(HTTPException) as exc_info:
            service.request_payout(db_session, referrer, 100, "mobile_money")
        assert exc_info.value.status_code == 400

        with pytest.raises(HTTPException) as exc_info:
            service.request_payout(db_session, referrer, 20000, "mobile_money")
        assert exc_info.value.status_code == 400

        service.request_payout(db_session, referrer, 6000, "mobile_money", {"phone": "0240000000"})
        with pytest.raises(HTTPException) as exc_info:
            service.request_payout(db_session, referrer, 6000, "mobile_money")
        assert exc_info.value.status_code == 409

    def test_paid_payout_settles_balance(self, db_session, service, referrer, referred, admin):
        upgrade_to_pro(db_session, referred, "ref-5", 1000000)
        db_session.refresh(referrer)
        payout = service.request_payout(db_session, referrer, 200000, "bank_transfer")

        payout = service.process_payout(db_session, payout, "paid", admin, "Sent")
        assert payout.status == LedgerStatus.PAID
        assert payout.processed_by == admin.id
        assert payout.processed_at is not None

        db_session.refresh(referrer)
        assert referrer.pending_balance == 0
        assert referrer.total_earnings == 200000
        assert crud.get_commission_by_reference(db_session, "ref-5").status == LedgerStatus.PAID

    def test_rejected_payout_keeps_balance(self, db_session, service, referrer, admin):
        referrer.pending_balance = 10000
        db_session.commit()
        payout = service.request_payout(db_session, referrer, 10000, "mobile_money")
        payout = service.process_payout(db_session, payout, "rejected", admin, "Wrong number")

        db_session.refresh(referrer)
        assert referrer.pending_balance == 10000
        data = payout_to_dict(payout)
        assert data["status"] == "rejected"
        assert data["affiliate_email"] == "affiliate@example.com"
        assert data["admin_notes"] == "Wrong number"

    def test_paid_payout_cannot_be_processed_again(self, db_session, service, referrer, referred, admin):
        upgrade_to_pro(db_session, referred, "ref-7", 2900000)
        db_session.refresh(referrer)
        payout = service.request_payout(db_session, referrer, 580000, "mobile_money")
        service.process_payout(db_session, payout, "paid", admin)

        # a second referred upgrade accrues a fresh commission
        other = crud.create_user(db_session, "second@example.com", referral_code=referrer.referral_code)
        upgrade_to_pro(db_session, other, "ref-8", 2900000)

        for again in ("paid", "approved", "rejected"):
            with pytest.raises(HTTPException) as exc_info:
                service.process_payout(db_session, payout, again, admin)
            assert exc_info.value.status_code == 409

        db_session.refresh(referrer)
        assert referrer.pending_balance == 580000
        assert crud.get_commission_by_reference(db_session, "ref-8").status == LedgerStatus.PENDING
        assert payout.status == LedgerStatus.PAID

    def test_rejected_payout_is_final(self, db_session, service, referrer, admin):
        referrer.pending_balance = 10000
        db_session.commit()
        payout = service.request_payout(db_session, referrer, 10000, "mobile_money")
        service.process_payout(db_session, payout, "rejected", admin)

        with pytest.raises(HTTPException) as exc_info:
            service.process_payout(db_session, payout, "paid", admin)
        assert exc_info.value.status_code == 409
        db_session.refresh(referrer)
        assert referrer.pending_balance == 10000
