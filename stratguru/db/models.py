# stratguru/db/models.py
from __future__ import annotations
from datetime import date as date_type, datetime
from sqlalchemy import (
    Integer, String, Float, JSON, Date, DateTime, Text, ForeignKey, Boolean,
    UniqueConstraint, Enum as SQLEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func
from enum import Enum
from .session import Base


def _enum(enum_cls):
    """Store enum values (e.g. "A+", "HH-HL") rather than member names."""
    return SQLEnum(enum_cls, values_callable=lambda e: [m.value for m in e], validate_strings=True)


# Enums
class Plan(str, Enum):
    FREE = "free"
    PRO = "pro"

class AIPriority(str, Enum):
    SLOW = "slow"
    FAST = "fast"
    FASTEST = "fastest"

class LedgerStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"
    REJECTED = "rejected"

# Legacy journal
class Direction(str, Enum):
    LONG = "long"
    SHORT = "short"

class LegacyResult(str, Enum):
    WIN = "win"
    LOSS = "loss"
    BE = "be"
    OPEN = "open"

# Elite journal
class YesNo(str, Enum):
    YES = "Yes"
    NO = "No"

class AccountType(str, Enum):
    DEMO = "Demo"
    LIVE = "Live"
    FUNDED = "Funded"

class TradingSession(str, Enum):
    ASIA = "Asia"
    LONDON = "London"
    NY = "NY"

class Killzone(str, Enum):
    LO = "LO"
    NYO = "NYO"
    NYPM = "NYPM"
    NONE = "None"

class DayOfWeek(str, Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"

class HTFBias(str, Enum):
    BULLISH = "Bullish"
    BEARISH = "Bearish"
    RANGE = "Range"

class HTFTimeframe(str, Enum):
    H4 = "H4"
    H1 = "H1"
    D1 = "D1"
    W1 = "W1"

class PricePosition(str, Enum):
    AT_LEVEL = "At Level"
    OPEN = "Open"

class StructureState(str, Enum):
    CONTINUATION = "Continuation"
    REVERSAL = "Reversal"
    RANGE = "Range"
    HH_HL = "HH-HL"
    LH_LL = "LH-LL"
    CHOCH = "CHoCH"
    BOS = "BOS"

class SetupGrade(str, Enum):
    A_PLUS = "A+"
    A = "A"
    B = "B"
    TRASH = "Trash"

class ExecutionTF(str, Enum):
    M1 = "M1"
    M3 = "M3"
    M5 = "M5"
    M15 = "M15"
    M30 = "M30"
    H1 = "H1"

class EntryModel(str, Enum):
    OB_RETEST = "OB retest"
    SWEEP_DISPLACEMENT_OB = "Sweep → Displacement → OB"
    BOS_PULLBACK = "BOS pullback"

class TradeResult(str, Enum):
    WIN = "Win"
    LOSS = "Loss"
    BE = "BE"

class ClassificationStatus(str, Enum):
    LEGACY_UNCLASSIFIED = "legacy_unclassified"
    PARTIALLY_CLASSIFIED = "partially_classified"
    FULLY_CLASSIFIED = "fully_classified"

class TradeStatus(str, Enum):
    EXECUTED = "Executed"
    MISSED = "Missed"

class MissedReason(str, Enum):
    HESITATION = "Hesitation"
    AWAY = "Away"
    TECHNICAL = "Technical"
    FEAR = "Fear"
    OTHER = "Other"

class HypotheticalResult(str, Enum):
    WIN = "Win"
    LOSS = "Loss"
    BE = "BE"
    UNKNOWN = "Unknown"

# Deprecated classification fields (still read by the discipline and mistake analytics)
class MarketPhase(str, Enum):
    EXPANSION = "Expansion"
    RETRACEMENT = "Retracement"
    CONSOLIDATION = "Consolidation"

class EntryCandle(str, Enum):
    ENGULFING = "Engulfing"
    DISPLACEMENT = "Displacement"
    REJECTION = "Rejection"
    BREAK_RETEST = "Break & Retest"

class EntryPrecision(str, Enum):
    EARLY = "Early"
    OPTIMAL = "Optimal"
    LATE = "Late"

class StopPlacementQuality(str, Enum):
    CLEAN = "Clean"
    WIDE = "Wide"
    TIGHT = "Tight"

class PreTradeState(str, Enum):
    CALM = "Calm"
    FOMO = "FOMO"
    HESITANT = "Hesitant"
    OVERCONFIDENT = "Overconfident"

class NewsImpact(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

class NewsTiming(str, Enum):
    PRE_NEWS = "PRE_NEWS"
    AT_RELEASE = "AT_RELEASE"
    POST_NEWS = "POST_NEWS"

class NewsType(str, Enum):
    INFLATION = "INFLATION"
    RATES = "RATES"
    EMPLOYMENT = "EMPLOYMENT"
    RISK_SENTIMENT = "RISK_SENTIMENT"
    NONE = "NONE"

LIQUIDITY_TARGETS = [
    "Session High",
    "Session Low",
    "Previous Day High",
    "Previous Day Low",
    "Equal Highs",
    "Equal Lows",
    "Structural Liquidity",
    "Imbalance",
    # accepted for trades logged before the generic list
    "Asian High",
    "Asian Low",
    "Previous Day High (PDH)",
    "Previous Day Low (PDL)",
    "Displacement",
]


class User(Base):
    """Account plus profile: plan, referral balances, AI credits and streak state."""
    __tablename__ = "users"
    id: Mapped[str] = mapped_column(String, primary_key=True, index=True)  # UUID as string
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    plan: Mapped[Plan] = mapped_column(_enum(Plan), default=Plan.FREE)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False)
    # Referrals (amounts in pesewas)
    referral_code: Mapped[str | None] = mapped_column(String(16), unique=True, index=True, nullable=True)
    referred_by: Mapped[str | None] = mapped_column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    total_earnings: Mapped[int] = mapped_column(Integer, default=0)
    pending_balance: Mapped[int] = mapped_column(Integer, default=0)
    paystack_customer_code: Mapped[str | None] = mapped_column(String(64), nullable=True)
    # AI credits
    ai_credits_remaining: Mapped[int] = mapped_column(Integer, default=10)
    ai_credits_monthly_limit: Mapped[int] = mapped_column(Integer, default=10)
    ai_credits_reset_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    ai_priority: Mapped[AIPriority] = mapped_column(_enum(AIPriority), default=AIPriority.SLOW)
    # Journaling streak
    current_streak: Mapped[int] = mapped_column(Integer, default=0)
    highest_streak: Mapped[int] = mapped_column(Integer, default=0)
    last_log_date: Mapped[date_type | None] = mapped_column(Date, nullable=True)
    streak_shields: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class SubscriptionPlan(Base):
    __tablename__ = "subscription_plans"
    id: Mapped[str] = mapped_column(String, primary_key=True, index=True)
    plan_code: Mapped[str] = mapped_column(String(32), unique=True, index=True)  # "free" or "pro"
    name: Mapped[str] = mapped_column(String(64))
    price_monthly_kobo: Mapped[int] = mapped_column(Integer, default=0)
    price_monthly_usd: Mapped[float] = mapped_column(Float, default=0.0)
    ai_credits_monthly: Mapped[int] = mapped_column(Integer, default=10)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class Trade(Base):
    """Legacy (simple) journal entry."""
    __tablename__ = "trades"
    id: Mapped[str] = mapped_column(String, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id", ondelete="CASCADE"), index=True)
    pair: Mapped[str] = mapped_column(String(32), index=True)
    direction: Mapped[Direction] = mapped_column(_enum(Direction))
    entry: Mapped[float] = mapped_column(Float)
    exit: Mapped[float | None] = mapped_column(Float, nullable=True)
    sl: Mapped[float | None] = mapped_column(Float, nullable=True)
    tp: Mapped[float | None] = mapped_column(Float, nullable=True)
    risk_pct: Mapped[float | None] = mapped_column(Float, nullable=True)
    rr: Mapped[float | None] = mapped_column(Float, nullable=True)
    result: Mapped[LegacyResult] = mapped_column(_enum(LegacyResult), default=LegacyResult.OPEN)
    pnl: Mapped[float | None] = mapped_column(Float, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    screenshot_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    executed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class SetupType(Base):
    """Per-user setup registry; codes are immutable once created."""
    __tablename__ = "setup_types"
    __table_args__ = (UniqueConstraint("user_id", "code", name="uq_setup_types_user_code"),)
    id: Mapped[str] = mapped_column(String, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id", ondelete="CASCADE"), index=True)
    code: Mapped[str] = mapped_column(String(6))
    name: Mapped[str] = mapped_column(String(128))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class EliteTrade(Base):
    __tablename__ = "elite_trades"
    id: Mapped[str] = mapped_column(String, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id", ondelete="CASCADE"), index=True)
    # Identity
    trade_date: Mapped[date_type] = mapped_column(Date, index=True)
    trade_time: Mapped[str | None] = mapped_column(String(5), nullable=True)  # "HH:MM"
    instrument: Mapped[str] = mapped_column(String(32), default="XAUUSD")
    account_type: Mapped[AccountType] = mapped_column(_enum(AccountType), default=AccountType.DEMO)
    # Executed vs missed
    trade_status: Mapped[TradeStatus] = mapped_column(_enum(TradeStatus), default=TradeStatus.EXECUTED)
    missed_reason: Mapped[MissedReason | None] = mapped_column(_enum(MissedReason), nullable=True)
    hypothetical_result: Mapped[HypotheticalResult | None] = mapped_column(_enum(HypotheticalResult), nullable=True)
    # Session & time
    session: Mapped[TradingSession | None] = mapped_column(_enum(TradingSession), nullable=True)
    killzone: Mapped[Killzone | None] = mapped_column(_enum(Killzone), nullable=True)
    day_of_week: Mapped[DayOfWeek | None] = mapped_column(_enum(DayOfWeek), nullable=True)
    news_day: Mapped[YesNo | None] = mapped_column(_enum(YesNo), nullable=True)
    # Higher-timeframe context
    htf_bias: Mapped[HTFBias | None] = mapped_column(_enum(HTFBias), nullable=True)
    htf_timeframe: Mapped[HTFTimeframe | None] = mapped_column(_enum(HTFTimeframe), nullable=True)
    structure_state: Mapped[StructureState | None] = mapped_column(_enum(StructureState), nullable=True)
    is_htf_clear: Mapped[YesNo | None] = mapped_column(_enum(YesNo), nullable=True)
    price_at_level_or_open: Mapped[PricePosition | None] = mapped_column(_enum(PricePosition), nullable=True)
    # Liquidity
    liquidity_targeted: Mapped[list] = mapped_column(JSON, default=list)
    liquidity_taken_before_entry: Mapped[YesNo | None] = mapped_column(_enum(YesNo), nullable=True)
    # Setup
    setup_type_id: Mapped[str | None] = mapped_column(String, ForeignKey("setup_types.id", ondelete="SET NULL"), nullable=True, index=True)
    setup_type: Mapped[str | None] = mapped_column(String(32), nullable=True, index=True)
    setup_grade: Mapped[SetupGrade | None] = mapped_column(_enum(SetupGrade), nullable=True)
    execution_tf: Mapped[ExecutionTF | None] = mapped_column(_enum(ExecutionTF), nullable=True)
    entry_model: Mapped[EntryModel | None] = mapped_column(_enum(EntryModel), nullable=True)
    confirmation_present: Mapped[YesNo | None] = mapped_column(_enum(YesNo), nullable=True)
    # Prices & risk
    entry_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    stop_loss: Mapped[float | None] = mapped_column(Float, nullable=True)
    take_profit: Mapped[float | None] = mapped_column(Float, nullable=True)
    exit_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    risk_per_trade_pct: Mapped[float | None] = mapped_column(Float, nullable=True)
    rr_planned: Mapped[float | None] = mapped_column(Float, nullable=True)
    rr_realized: Mapped[float | None] = mapped_column(Float, nullable=True)
    # Derived on save
    result: Mapped[TradeResult | None] = mapped_column(_enum(TradeResult), nullable=True)
    r_multiple: Mapped[float | None] = mapped_column(Float, nullable=True)
    mae: Mapped[float | None] = mapped_column(Float, nullable=True)
    mfe: Mapped[float | None] = mapped_column(Float, nullable=True)
    # Rules integrity
    rules_followed: Mapped[YesNo | None] = mapped_column(_enum(YesNo), nullable=True)
    # Screenshots (storage URLs)
    htf_screenshot: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    ltf_entry_screenshot: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    ltf_trade_screenshot: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    post_trade_screenshot: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    screenshots_valid: Mapped[bool] = mapped_column(Boolean, default=False)
    # Classification
    classification_status: Mapped[ClassificationStatus] = mapped_column(
        _enum(ClassificationStatus), default=ClassificationStatus.PARTIALLY_CLASSIFIED, index=True
    )
    legacy_trade_id: Mapped[str | None] = mapped_column(String, ForeignKey("trades.id", ondelete="SET NULL"), nullable=True, unique=True)
    # Deprecated fields, hidden in the entry form but still analysed
    market_phase: Mapped[MarketPhase | None] = mapped_column(_enum(MarketPhase), nullable=True)
    liquidity_taken_against_bias: Mapped[YesNo | None] = mapped_column(_enum(YesNo), nullable=True)
    entry_candle: Mapped[EntryCandle | None] = mapped_column(_enum(EntryCandle), nullable=True)
    entry_precision: Mapped[EntryPrecision | None] = mapped_column(_enum(EntryPrecision), nullable=True)
    stop_placement_quality: Mapped[StopPlacementQuality | None] = mapped_column(_enum(StopPlacementQuality), nullable=True)
    partial_taken: Mapped[YesNo | None] = mapped_column(_enum(YesNo), nullable=True)
    drawdown_during_trade_pct: Mapped[float | None] = mapped_column(Float, nullable=True)
    gold_behavior_tags: Mapped[list] = mapped_column(JSON, default=list)
    first_move_was_fake: Mapped[YesNo | None] = mapped_column(_enum(YesNo), nullable=True)
    real_move_after_liquidity: Mapped[YesNo | None] = mapped_column(_enum(YesNo), nullable=True)
    trade_aligned_with_real_move: Mapped[YesNo | None] = mapped_column(_enum(YesNo), nullable=True)
    pre_trade_state: Mapped[PreTradeState | None] = mapped_column(_enum(PreTradeState), nullable=True)
    confidence_level: Mapped[int | None] = mapped_column(Integer, nullable=True)
    revenge_trade: Mapped[YesNo | None] = mapped_column(_enum(YesNo), nullable=True)
    fatigue_present: Mapped[YesNo | None] = mapped_column(_enum(YesNo), nullable=True)
    annotations_present: Mapped[YesNo | None] = mapped_column(_enum(YesNo), nullable=True)
    would_i_take_this_trade_again: Mapped[YesNo | None] = mapped_column(_enum(YesNo), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    news_impact: Mapped[NewsImpact | None] = mapped_column(_enum(NewsImpact), nullable=True)
    news_timing: Mapped[NewsTiming | None] = mapped_column(_enum(NewsTiming), nullable=True)
    news_type: Mapped[NewsType | None] = mapped_column(_enum(NewsType), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    setup: Mapped["SetupType | None"] = relationship("SetupType")


class Referral(Base):
    __tablename__ = "referrals"
    id: Mapped[str] = mapped_column(String, primary_key=True, index=True)
    referrer_id: Mapped[str] = mapped_column(String, ForeignKey("users.id", ondelete="CASCADE"), index=True)
    referred_id: Mapped[str] = mapped_column(String, ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True)
    referral_code: Mapped[str] = mapped_column(String(16), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    referrer: Mapped["User"] = relationship("User", foreign_keys=[referrer_id])
    referred: Mapped["User"] = relationship("User", foreign_keys=[referred_id])


class Commission(Base):
    __tablename__ = "commissions"
    id: Mapped[str] = mapped_column(String, primary_key=True, index=True)
    referrer_id: Mapped[str] = mapped_column(String, ForeignKey("users.id", ondelete="CASCADE"), index=True)
    referred_id: Mapped[str] = mapped_column(String, ForeignKey("users.id", ondelete="CASCADE"), index=True)
    referral_id: Mapped[str | None] = mapped_column(String, ForeignKey("referrals.id", ondelete="SET NULL"), nullable=True)
    amount: Mapped[int] = mapped_column(Integer)  # pesewas
    commission_rate: Mapped[float] = mapped_column(Float)
    payment_reference: Mapped[str] = mapped_column(String(128), unique=True, index=True)
    status: Mapped[LedgerStatus] = mapped_column(_enum(LedgerStatus), default=LedgerStatus.PENDING, index=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    referred: Mapped["User"] = relationship("User", foreign_keys=[referred_id])


class PayoutRequest(Base):
    __tablename__ = "payout_requests"
    id: Mapped[str] = mapped_column(String, primary_key=True, index=True)
    affiliate_id: Mapped[str] = mapped_column(String, ForeignKey("users.id", ondelete="CASCADE"), index=True)
    amount: Mapped[int] = mapped_column(Integer)  # pesewas
    status: Mapped[LedgerStatus] = mapped_column(_enum(LedgerStatus), default=LedgerStatus.PENDING, index=True)
    payment_method: Mapped[str] = mapped_column(String(32))  # "mobile_money", "bank_transfer", ...
    payment_details: Mapped[dict] = mapped_column(JSON, default=dict)
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    requested_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    processed_by: Mapped[str | None] = mapped_column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    affiliate: Mapped["User"] = relationship("User", foreign_keys=[affiliate_id])


class DailyRiskTracker(Base):
    __tablename__ = "daily_risk_tracker"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_daily_risk_user_date"),)
    id: Mapped[str] = mapped_column(String, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id", ondelete="CASCADE"), index=True)
    date: Mapped[date_type] = mapped_column(Date)
    risk_limit: Mapped[float] = mapped_column(Float, default=100.0)
    used_risk: Mapped[float] = mapped_column(Float, default=0.0)
    trades_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class AICreditUsage(Base):
    __tablename__ = "ai_credit_usage"
    id: Mapped[str] = mapped_column(String, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id", ondelete="CASCADE"), index=True)
    feature_name: Mapped[str] = mapped_column(String(64))
    credits_used: Mapped[int] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class FeedbackType(str, Enum):
    BUG_REPORT = "bug_report"
    FEATURE_REQUEST = "feature_request"
    GENERAL_FEEDBACK = "general_feedback"


class Payment(Base):
    """A provider payment that has already upgraded an account."""
    __tablename__ = "payments"
    id: Mapped[str] = mapped_column(String, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id", ondelete="CASCADE"), index=True)
    provider: Mapped[str] = mapped_column(String(32))  # "paystack" or "nowpayments"
    reference: Mapped[str] = mapped_column(String(128), unique=True, index=True)
    amount: Mapped[int] = mapped_column(Integer)  # pesewas
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class Feedback(Base):
    __tablename__ = "feedback"
    id: Mapped[str] = mapped_column(String, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id", ondelete="CASCADE"), index=True)
    feedback_type: Mapped[FeedbackType] = mapped_column(_enum(FeedbackType))
    message: Mapped[str] = mapped_column(Text)
    screenshot_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    user: Mapped["User"] = relationship("User")
