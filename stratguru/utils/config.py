# stratguru/utils/config.py
"""
Settings loader.
Priority: 1) process environment, 2) repo root config/.env, 3) built-in default.
"""
import os
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values

# stratguru/utils/config.py -> stratguru/utils -> stratguru -> repo root
CFG_PATH = Path(__file__).resolve().parents[2] / "config" / ".env"
cfg = dotenv_values(str(CFG_PATH)) if CFG_PATH.exists() else {}


def get_setting(name: str, default: Optional[str] = None) -> Optional[str]:
    """Read a setting from the environment, then config/.env."""
    return os.environ.get(name) or cfg.get(name) or default


def get_int_setting(name: str, default: int) -> int:
    value = get_setting(name)
    try:
        return int(value) if value is not None else default
    except ValueError:
        return default


DATABASE_URL = get_setting("DATABASE_URL", "sqlite:///stratguru.db")
APP_URL = get_setting("APP_URL", "http://localhost:3000")

# Pricing (Paystack amounts are in kobo, referral balances in pesewas)
PRO_PRICE_KOBO = get_int_setting("PRO_PRICE_KOBO", 2900000)
PRO_PRICE_USD = get_int_setting("PRO_PRICE_USD", 30)
REFERRAL_COMMISSION_RATE = float(get_setting("REFERRAL_COMMISSION_RATE", "0.20"))
MINIMUM_PAYOUT = get_int_setting("MINIMUM_PAYOUT", 5000)

# AI credits per plan
FREE_AI_CREDITS = get_int_setting("FREE_AI_CREDITS", 10)
PRO_AI_CREDITS = get_int_setting("PRO_AI_CREDITS", 100)
UNLIMITED_AI_CREDITS = 999999
