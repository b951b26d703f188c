# stratguru/db/crud.py
from __future__ import annotations
from typing import Dict, Any, List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import func as sql_func
from sqlalchemy import Enum as SQLEnum
from datetime import date, datetime, timezone, timedelta
import re
import secrets
import string
import uuid

from .models import (
    User, SubscriptionPlan, Trade, SetupType, EliteTrade,
    Referral, Commission, PayoutRequest, DailyRiskTracker, AICreditUsage, Payment, Feedback,
    Plan, LedgerStatus, LegacyResult, TradeResult, ClassificationStatus,
    TradingSession, DayOfWeek, FeedbackType,
)
from ..analytics.metrics import r_multiple_for, result_for_r
from ..analytics.legacy import session_for_hour
from ..utils.config import FREE_AI_CREDITS

# ---------- Users ----------
REFERRAL_CODE_LENGTH = 8
REFERRAL_ALPHABET = string.ascii_uppercase + string.digits


def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()

def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.lower().strip()).first()

def get_user_by_referral_code(db: Session, code: str) -> Optional[User]:
    return db.query(User).filter(User.referral_code == code.strip().upper()).first()

def generate_referral_code(db: Session) -> str:
    """8 uppercase alphanumerics, unique across users."""
    while True:
        code = "".join(secrets.choice(REFERRAL_ALPHABET) for _ in range(REFERRAL_CODE_LENGTH))
        if get_user_by_referral_code(db, code) is None:
            return code

def create_user(
    db: Session,
    email: str,
    password_hash: Optional[str] = None,
    full_name: Optional[str] = None,
    referral_code: Optional[str] = None,
    is_admin: bool = False,
) -> User:
    """
    Create a new user on the free plan.
    password_hash should be a bcrypt hash, never plain text.
    A referral_code matching another user links the two and records a Referral.
    """
    referrer = get_user_by_referral_code(db, referral_code) if referral_code else None

    user = User(
        id=str(uuid.uuid4()),
        email=email.lower().strip(),
        full_name=full_name,
        password_hash=password_hash,
        plan=Plan.FREE,
        is_admin=is_admin,
        referral_code=generate_referral_code(db),
        referred_by=referrer.id if referrer else None,
        ai_credits_remaining=FREE_AI_CREDITS,
        ai_credits_monthly_limit=FREE_AI_CREDITS,
        ai_credits_reset_date=datetime.now(timezone.utc) + timedelta(days=30),
    )
    db.add(user)
    db.flush()
    if referrer is not None:
        db.add(Referral(
            id=str(uuid.uuid4()),
            referrer_id=referrer.id,
            referred_id=user.id,
            referral_code=referrer.referral_code,
        ))
    db.commit()
    db.refresh(user)
    return user

# ---------- Subscription plans ----------
def get_subscription_plan_by_code(db: Session, plan_code: str) -> Optional[SubscriptionPlan]:
    return db.query(SubscriptionPlan).filter(SubscriptionPlan.plan_code == plan_code).first()

def list_subscription_plans(db: Session, active_only: bool = True) -> List[Dict[str, Any]]:
    query = db.query(SubscriptionPlan)
    if active_only:
        query = query.filter(SubscriptionPlan.is_active == True)  # noqa: E712
    rows = query.order_by(SubscriptionPlan.price_monthly_kobo.asc()).all()
    return [
        {
            "id": p.id,
            "plan_code": p.plan_code,
            "name": p.name,
            "price_monthly_kobo": p.price_monthly_kobo,
            "price_monthly_usd": p.price_monthly_usd,
            "ai_credits_monthly": p.ai_credits_monthly,
            "description": p.description,
            "is_active": p.is_active,
        }
        for p in rows
    ]

def create_subscription_plan(
    db: Session,
    plan_code: str,
    name: str,
    price_monthly_kobo: int,
    price_monthly_usd: float,
    ai_credits_monthly: int,
    description: Optional[str] = None,
) -> SubscriptionPlan:
    plan = SubscriptionPlan(
        id=str(uuid.uuid4()),
        plan_code=plan_code,
        name=name,
        price_monthly_kobo=price_monthly_kobo,
        price_monthly_usd=price_monthly_usd,
        ai_credits_monthly=ai_credits_monthly,
        description=description,
        is_active=True,
    )
    db.add(plan)
    db.commit()
    db.refresh(plan)
    return plan

# ---------- Enum coercion ----------
def _coerce(model, data: Dict[str, Any]) -> Dict[str, Any]:
    """Turn display strings into the column's enum; unknown values raise ValueError."""
    columns = model.__table__.columns
    out = {}
    for key, value in data.items():
        column = columns.get(key)
        if column is not None and value is not None and isinstance(column.type, SQLEnum):
            enum_cls = column.type.enum_class
            if enum_cls is not None and not isinstance(value, enum_cls):
                value = enum_cls(value)
        out[key] = value
    return out

def _value(v: Any) -> Any:
    return getattr(v, "value", v)

# ---------- Legacy trades ----------
LEGACY_FIELDS = (
    "pair", "direction", "entry", "exit", "sl", "tp", "risk_pct", "rr",
    "result", "pnl", "notes", "screenshot_url", "executed_at",
)

def create_trade(db: Session, user_id: str, data: Dict[str, Any]) -> Trade:
    values = _coerce(Trade, {k: v for k, v in data.items() if k in LEGACY_FIELDS and v is not None})
    trade = Trade(id=str(uuid.uuid4()), user_id=user_id, **values)
    db.add(trade)
    db.commit()
    db.refresh(trade)
    return trade

def get_trade(db: Session, user_id: str, trade_id: str) -> Optional[Trade]:
    return db.query(Trade).filter(Trade.id == trade_id, Trade.user_id == user_id).first()

def update_trade(db: Session, trade: Trade, data: Dict[str, Any]) -> Trade:
    for key, value in _coerce(Trade, {k: v for k, v in data.items() if k in LEGACY_FIELDS}).items():
        setattr(trade, key, value)
    db.commit()
    db.refresh(trade)
    return trade

def delete_trade(db: Session, trade: Trade) -> None:
    db.delete(trade)
    db.commit()

def list_user_trades(db: Session, user_id: str, limit: Optional[int] = None) -> List[Trade]:
    query = db.query(Trade).filter(Trade.user_id == user_id).order_by(Trade.executed_at.desc())
    if limit:
        query = query.limit(limit)
    return query.all()

def list_trades_on(db: Session, user_id: str, day: date) -> List[Trade]:
    start = datetime.combine(day, datetime.min.time())
    return (
        db.query(Trade)
        .filter(Trade.user_id == user_id, Trade.executed_at >= start, Trade.executed_at < start + timedelta(days=1))
        .all()
    )

def get_trade_stats(db: Session, user_id: str) -> Dict[str, Any]:
    """Trade count, average RR, win rate over closed trades and total P&L."""
    trades = list_user_trades(db, user_id)
    closed = [t for t in trades if t.result != LegacyResult.OPEN]
    wins = [t for t in closed if t.result == LegacyResult.WIN]
    rrs = [t.rr for t in trades if t.rr]
    return {
        "trade_count": len(trades),
        "avg_rr": round(sum(rrs) / len(rrs), 2) if rrs else 0.0,
        "win_rate": round(len(wins) / len(closed) * 100, 1) if closed else 0.0,
        "total_pnl": round(sum(t.pnl or 0 for t in trades), 2),
    }

# ---------- Elite trades ----------
REQUIRED_CLASSIFICATION_FIELDS = (
    "session", "day_of_week", "htf_bias", "htf_timeframe", "structure_state",
    "setup_type", "setup_grade", "execution_tf", "entry_model",
    "confirmation_present", "liquidity_taken_before_entry", "rules_followed", "news_day",
)

PRICE_FIELDS = ("entry_price", "stop_loss", "exit_price")

# query param -> column
ELITE_FILTERS = {
    "session": "session",
    "setup_type": "setup_type",
    "news_day": "news_day",
    "rules_followed": "rules_followed",
    "classification_status": "classification_status",
    "would_take_again": "would_i_take_this_trade_again",
    "killzone": "killzone",
    "htf_bias": "htf_bias",
    "setup_grade": "setup_grade",
    "liquidity_taken": "liquidity_taken_before_entry",
    "result": "result",
    "trade_status": "trade_status",
}

_ELITE_READONLY = {"id", "user_id", "created_at", "updated_at", "screenshots_valid", "classification_status", "legacy_trade_id"}


def apply_derived_fields(trade: EliteTrade) -> None:
    """R-multiple, realized RR and result from entry/stop/exit."""
    if trade.exit_price is None:
        return
    r = r_multiple_for(trade.entry_price, trade.stop_loss, trade.exit_price)
    if r is None:
        return
    trade.r_multiple = r
    trade.rr_realized = r
    trade.result = TradeResult(result_for_r(r))

def screenshots_valid(trade: EliteTrade) -> bool:
    return bool(trade.htf_screenshot) and bool(trade.ltf_entry_screenshot)

def classification_for(trade: EliteTrade) -> ClassificationStatus:
    complete = all(getattr(trade, f) not in (None, "") for f in REQUIRED_CLASSIFICATION_FIELDS)
    if complete and trade.screenshots_valid:
        return ClassificationStatus.FULLY_CLASSIFIED
    return ClassificationStatus.PARTIALLY_CLASSIFIED

def _sync_setup(db: Session, user_id: str, trade: EliteTrade) -> None:
    """Keep setup_type (code) and setup_type_id pointing at the same registry row."""
    if trade.setup_type_id:
        st = get_setup_type(db, user_id, trade.setup_type_id)
        if st is None:
            raise ValueError("Unknown setup_type_id")
        trade.setup_type = st.code
    elif trade.setup_type:
        trade.setup_type = trade.setup_type.strip().upper()
        st = get_setup_type_by_code(db, user_id, trade.setup_type)
        if st is not None:
            trade.setup_type_id = st.id

def _refresh_derived(db: Session, user_id: str, trade: EliteTrade) -> None:
    _sync_setup(db, user_id, trade)
    apply_derived_fields(trade)
    trade.screenshots_valid = screenshots_valid(trade)
    trade.classification_status = classification_for(trade)

def create_elite_trade(db: Session, user_id: str, data: Dict[str, Any]) -> EliteTrade:
    values = _coerce(EliteTrade, {k: v for k, v in data.items() if k not in _ELITE_READONLY and v is not None})
    trade = EliteTrade(id=str(uuid.uuid4()), user_id=user_id, **values)
    if trade.liquidity_targeted is None:
        trade.liquidity_targeted = []
    _refresh_derived(db, user_id, trade)
    db.add(trade)
    db.commit()
    db.refresh(trade)
    return trade

def get_elite_trade(db: Session, user_id: str, trade_id: str) -> Optional[EliteTrade]:
    return db.query(EliteTrade).filter(EliteTrade.id == trade_id, EliteTrade.user_id == user_id).first()

def get_elite_trade_by_legacy_id(db: Session, legacy_trade_id: str) -> Optional[EliteTrade]:
    return db.query(EliteTrade).filter(EliteTrade.legacy_trade_id == legacy_trade_id).first()

def update_elite_trade(db: Session, trade: EliteTrade, data: Dict[str, Any]) -> EliteTrade:
    values = _coerce(EliteTrade, {k: v for k, v in data.items() if k not in _ELITE_READONLY})
    for key, value in values.items():
        setattr(trade, key, value)
    _refresh_derived(db, trade.user_id, trade)
    db.commit()
    db.refresh(trade)
    return trade

def delete_elite_trade(db: Session, trade: EliteTrade) -> None:
    db.delete(trade)
    db.commit()

def list_elite_trades(
    db: Session,
    user_id: str,
    filters: Optional[Dict[str, Any]] = None,
    limit: Optional[int] = None,
) -> List[EliteTrade]:
    """Raises ValueError when a filter value is not valid for its column."""
    query = db.query(EliteTrade).filter(EliteTrade.user_id == user_id)
    wanted = {ELITE_FILTERS[k]: v for k, v in (filters or {}).items() if v is not None and k in ELITE_FILTERS}
    for column, value in _coerce(EliteTrade, wanted).items():
        query = query.filter(getattr(EliteTrade, column) == value)
    query = query.order_by(EliteTrade.trade_date.desc(), EliteTrade.created_at.desc())
    if limit:
        query = query.limit(limit)
    return query.all()

def list_review_trades(db: Session, user_id: str) -> List[EliteTrade]:
    """Fully classified trades the trader would not take again."""
    return list_elite_trades(db, user_id, {
        "would_take_again": "No",
        "classification_status": ClassificationStatus.FULLY_CLASSIFIED.value,
    })

def list_legacy_unclassified(db: Session, user_id: str) -> List[EliteTrade]:
    return list_elite_trades(db, user_id, {
        "classification_status": ClassificationStatus.LEGACY_UNCLASSIFIED.value,
    })

_SESSION_FROM_LEGACY = {
    "London": TradingSession.LONDON,
    "New York": TradingSession.NY,
    "Asian": TradingSession.ASIA,
}

_LEGACY_RESULT = {
    LegacyResult.WIN: TradeResult.WIN,
    LegacyResult.LOSS: TradeResult.LOSS,
    LegacyResult.BE: TradeResult.BE,
}

def migrate_legacy_trade(db: Session, user_id: str, legacy_trade_id: str) -> Optional[EliteTrade]:
    """
    Copy a legacy trade into the Elite journal as legacy_unclassified.

    Returns None when the legacy trade does not exist; raises ValueError when it
    was already migrated.
    """
    legacy = get_trade(db, user_id, legacy_trade_id)
    if legacy is None:
        return None
    if get_elite_trade_by_legacy_id(db, legacy.id) is not None:
        raise ValueError("Legacy trade already migrated")

    executed = legacy.executed_at or datetime.now(timezone.utc)
    if executed.tzinfo is not None:
        executed = executed.astimezone(timezone.utc)
    weekday = executed.strftime("%A")

    trade = EliteTrade(
        id=str(uuid.uuid4()),
        user_id=user_id,
        trade_date=executed.date(),
        trade_time=executed.strftime("%H:%M"),
        instrument=legacy.pair,
        session=_SESSION_FROM_LEGACY[session_for_hour(executed.hour)],
        day_of_week=DayOfWeek(weekday) if weekday in DayOfWeek._value2member_map_ else None,
        entry_price=legacy.entry,
        stop_loss=legacy.sl,
        take_profit=legacy.tp,
        exit_price=legacy.exit,
        risk_per_trade_pct=legacy.risk_pct,
        rr_planned=legacy.rr,
        result=_LEGACY_RESULT.get(legacy.result),
        notes=legacy.notes,
        ltf_trade_screenshot=legacy.screenshot_url,
        liquidity_targeted=[],
        legacy_trade_id=legacy.id,
    )
    apply_derived_fields(trade)
    trade.screenshots_valid = screenshots_valid(trade)
    trade.classification_status = ClassificationStatus.LEGACY_UNCLASSIFIED
    db.add(trade)
    db.commit()
    db.refresh(trade)
    return trade

def _win_rate(trades: List[EliteTrade]) -> float:
    wins = sum(1 for t in trades if t.result == TradeResult.WIN)
    losses = sum(1 for t in trades if t.result == TradeResult.LOSS)
    return round(wins / (wins + losses) * 100, 1) if wins + losses else 0.0

def get_elite_trade_stats(db: Session, user_id: str) -> Dict[str, Any]:
    """Aggregate view over every Elite trade the user has logged."""
    trades = list_elite_trades(db, user_id)
    rs = [t.r_multiple for t in trades if t.r_multiple is not None]

    def subset(field: str, value: str) -> List[EliteTrade]:
        return [t for t in trades if _value(getattr(t, field)) == value]

    return {
        "trade_count": len(trades),
        "wins": sum(1 for t in trades if t.result == TradeResult.WIN),
        "losses": sum(1 for t in trades if t.result == TradeResult.LOSS),
        "breakeven": sum(1 for t in trades if t.result == TradeResult.BE),
        "win_rate": _win_rate(trades),
        "avg_r_multiple": round(sum(rs) / len(rs), 2) if rs else 0.0,
        "total_r": round(sum(rs), 2),
        "session_win_rates": {s.value: _win_rate(subset("session", s.value)) for s in TradingSession},
        "news_day_win_rate": _win_rate(subset("news_day", "Yes")),
        "non_news_day_win_rate": _win_rate(subset("news_day", "No")),
        "rules_followed_win_rate": _win_rate(subset("rules_followed", "Yes")),
        "rules_broken_win_rate": _win_rate(subset("rules_followed", "No")),
        "liquidity_taken_win_rate": _win_rate(subset("liquidity_taken_before_entry", "Yes")),
        "no_liquidity_win_rate": _win_rate(subset("liquidity_taken_before_entry", "No")),
    }

# ---------- Setup types ----------
SETUP_CODE_PATTERN = re.compile(r"^[A-Z0-9]{2,6}$")

def normalize_setup_code(code: str) -> str:
    normalized = (code or "").strip().upper()
    if not SETUP_CODE_PATTERN.match(normalized):
        raise ValueError("Code must be 2-6 uppercase letters or digits")
    return normalized

def create_setup_type(
    db: Session,
    user_id: str,
    code: str,
    name: str,
    description: Optional[str] = None,
) -> SetupType:
    """Raises ValueError for a malformed code; a duplicate code surfaces as IntegrityError."""
    setup = SetupType(
        id=str(uuid.uuid4()),
        user_id=user_id,
        code=normalize_setup_code(code),
        name=name.strip(),
        description=description,
        is_active=True,
    )
    db.add(setup)
    db.commit()
    db.refresh(setup)
    return setup

def get_setup_type(db: Session, user_id: str, setup_id: str) -> Optional[SetupType]:
    return db.query(SetupType).filter(SetupType.id == setup_id, SetupType.user_id == user_id).first()

def get_setup_type_by_code(db: Session, user_id: str, code: str) -> Optional[SetupType]:
    return db.query(SetupType).filter(SetupType.user_id == user_id, SetupType.code == code).first()

def list_setup_types(db: Session, user_id: str, active_only: bool = False) -> List[SetupType]:
    query = db.query(SetupType).filter(SetupType.user_id == user_id)
    if active_only:
        query = query.filter(SetupType.is_active == True)  # noqa: E712
    return query.order_by(SetupType.code.asc()).all()

def update_setup_type(
    db: Session,
    setup: SetupType,
    name: Optional[str] = None,
    description: Optional[str] = None,
) -> SetupType:
    # code is immutable
    if name is not None:
        setup.name = name.strip()
    if description is not None:
        setup.description = description
    db.commit()
    db.refresh(setup)
    return setup

def set_setup_type_active(db: Session, setup: SetupType, active: bool) -> SetupType:
    setup.is_active = active
    db.commit()
    db.refresh(setup)
    return setup

# ---------- Referrals & commissions ----------
def get_referral_for_referred(db: Session, referred_id: str) -> Optional[Referral]:
    return db.query(Referral).filter(Referral.referred_id == referred_id).first()

def list_referrals_for(db: Session, referrer_id: str) -> List[Referral]:
    return db.query(Referral).filter(Referral.referrer_id == referrer_id).order_by(Referral.created_at.desc()).all()

def get_commission_by_reference(db: Session, payment_reference: str) -> Optional[Commission]:
    return db.query(Commission).filter(Commission.payment_reference == payment_reference).first()

def create_commission(
    db: Session,
    referrer_id: str,
    referred_id: str,
    amount: int,
    commission_rate: float,
    payment_reference: str,
    referral_id: Optional[str] = None,
) -> Commission:
    """Adds the row without committing; the caller commits alongside the balance change."""
    commission = Commission(
        id=str(uuid.uuid4()),
        referrer_id=referrer_id,
        referred_id=referred_id,
        referral_id=referral_id,
        amount=amount,
        commission_rate=commission_rate,
        payment_reference=payment_reference,
        status=LedgerStatus.PENDING,
    )
    db.add(commission)
    return commission

def list_commissions_for(db: Session, referrer_id: str) -> List[Commission]:
    return (
        db.query(Commission)
        .filter(Commission.referrer_id == referrer_id)
        .order_by(Commission.created_at.desc())
        .all()
    )

def mark_commissions_paid(db: Session, referrer_id: str) -> int:
    """Pending and approved commissions become paid; returns how many changed."""
    rows = (
        db.query(Commission)
        .filter(
            Commission.referrer_id == referrer_id,
            Commission.status.in_([LedgerStatus.PENDING, LedgerStatus.APPROVED]),
        )
        .all()
    )
    now = datetime.now(timezone.utc)
    for c in rows:
        c.status = LedgerStatus.PAID
        c.paid_at = now
    return len(rows)

# ---------- Processed payments ----------
def get_payment_by_reference(db: Session, reference: str) -> Optional[Payment]:
    return db.query(Payment).filter(Payment.reference == reference).first()

def record_payment(db: Session, user_id: str, provider: str, reference: str, amount: int) -> Payment:
    """Adds the row without committing; the upgrade commits it with the plan change."""
    payment = Payment(
        id=str(uuid.uuid4()),
        user_id=user_id,
        provider=provider,
        reference=reference,
        amount=amount,
    )
    db.add(payment)
    return payment

# ---------- Payout requests ----------
def create_payout_request(
    db: Session,
    affiliate_id: str,
    amount: int,
    payment_method: str,
    payment_details: Optional[Dict[str, Any]] = None,
) -> PayoutRequest:
    payout = PayoutRequest(
        id=str(uuid.uuid4()),
        affiliate_id=affiliate_id,
        amount=amount,
        status=LedgerStatus.PENDING,
        payment_method=payment_method,
        payment_details=payment_details or {},
    )
    db.add(payout)
    db.commit()
    db.refresh(payout)
    return payout

def get_payout_request(db: Session, payout_id: str) -> Optional[PayoutRequest]:
    return db.query(PayoutRequest).filter(PayoutRequest.id == payout_id).first()

def get_pending_payout(db: Session, affiliate_id: str) -> Optional[PayoutRequest]:
    return (
        db.query(PayoutRequest)
        .filter(PayoutRequest.affiliate_id == affiliate_id, PayoutRequest.status == LedgerStatus.PENDING)
        .first()
    )

def list_payout_requests(
    db: Session,
    affiliate_id: Optional[str] = None,
    status: Optional[str] = None,
) -> List[PayoutRequest]:
    query = db.query(PayoutRequest)
    if affiliate_id:
        query = query.filter(PayoutRequest.affiliate_id == affiliate_id)
    if status:
        query = query.filter(PayoutRequest.status == LedgerStatus(status))
    return query.order_by(PayoutRequest.requested_at.desc()).all()

def list_affiliates(db: Session) -> List[Dict[str, Any]]:
    """Every user holding a referral code, with referral and commission counts."""
    referral_counts = dict(
        db.query(Referral.referrer_id, sql_func.count(Referral.id)).group_by(Referral.referrer_id).all()
    )
    commission_counts = dict(
        db.query(Commission.referrer_id, sql_func.count(Commission.id)).group_by(Commission.referrer_id).all()
    )
    paid_counts = dict(
        db.query(Referral.referrer_id, sql_func.count(Referral.id))
        .join(User, User.id == Referral.referred_id)
        .filter(User.plan == Plan.PRO)
        .group_by(Referral.referrer_id)
        .all()
    )
    users = db.query(User).filter(User.referral_code.isnot(None)).order_by(User.total_earnings.desc()).all()
    return [
        {
            "id": u.id,
            "email": u.email,
            "full_name": u.full_name,
            "referral_code": u.referral_code,
            "total_earnings": u.total_earnings,
            "pending_balance": u.pending_balance,
            "referral_count": referral_counts.get(u.id, 0),
            "paid_subscribers": paid_counts.get(u.id, 0),
            "commissions_count": commission_counts.get(u.id, 0),
        }
        for u in users
    ]

# ---------- Daily risk tracker ----------
def get_risk_tracker(db: Session, user_id: str, day: date) -> Optional[DailyRiskTracker]:
    return (
        db.query(DailyRiskTracker)
        .filter(DailyRiskTracker.user_id == user_id, DailyRiskTracker.date == day)
        .first()
    )

def get_or_create_risk_tracker(db: Session, user_id: str, day: date) -> DailyRiskTracker:
    tracker = get_risk_tracker(db, user_id, day)
    if tracker is None:
        tracker = DailyRiskTracker(id=str(uuid.uuid4()), user_id=user_id, date=day)
        db.add(tracker)
        db.commit()
        db.refresh(tracker)
    return tracker

# ---------- AI credit usage ----------
def record_credit_usage(db: Session, user_id: str, feature_name: str, credits_used: int) -> AICreditUsage:
    """Adds the row without committing; the credit service commits it with the balance."""
    usage = AICreditUsage(
        id=str(uuid.uuid4()),
        user_id=user_id,
        feature_name=feature_name,
        credits_used=credits_used,
    )
    db.add(usage)
    return usage

def list_credit_usage(db: Session, user_id: str, limit: int = 50) -> List[AICreditUsage]:
    return (
        db.query(AICreditUsage)
        .filter(AICreditUsage.user_id == user_id)
        .order_by(AICreditUsage.created_at.desc())
        .limit(limit)
        .all()
    )

# ---------- Feedback ----------
def create_feedback(
    db: Session,
    user_id: str,
    feedback_type: str,
    message: str,
    screenshot_url: Optional[str] = None,
) -> Feedback:
    feedback = Feedback(
        id=str(uuid.uuid4()),
        user_id=user_id,
        feedback_type=FeedbackType(feedback_type),
        message=message.strip(),
        screenshot_url=screenshot_url,
    )
    db.add(feedback)
    db.commit()
    db.refresh(feedback)
    return feedback

def list_feedback(db: Session, feedback_type: Optional[str] = None) -> List[Feedback]:
    """Newest first, optionally narrowed to one type."""
    query = db.query(Feedback)
    if feedback_type:
        query = query.filter(Feedback.feedback_type == FeedbackType(feedback_type))
    return query.order_by(Feedback.created_at.desc()).all()
