# stratguru/analytics/position_size.py
"""
Position sizing from account balance, risk percent and stop distance.

Forex is sized in standard lots via pips and the pip value; every other
instrument is sized in units of the traded asset.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

INSTRUMENTS = ("forex", "crypto", "stocks", "commodities", "indices")

STANDARD_LOT = 100_000
PIPS_PER_UNIT = 10_000
JPY_PIPS_PER_UNIT = 100
DEFAULT_PIP_VALUE = 10.0  # per standard lot, in account currency
TARGET_R = 2.0


@dataclass
class PositionSize:
    instrument: str
    position_size: float
    position_value: float
    risk_amount: float
    stop_loss_distance: float
    stop_loss_pips: Optional[float]
    take_profit: float  # TARGET_R away from entry, on the far side of the stop


def calculate_position_size(
    account_balance: float,
    risk_percent: float,
    entry_price: float,
    stop_loss: float,
    instrument: str = "forex",
    pip_value: float = DEFAULT_PIP_VALUE,
    jpy_pair: bool = False,
) -> Optional[PositionSize]:
    """
    Size a position so that hitting the stop loses `risk_percent` of the balance.

    Returns None while any of balance, risk, entry or stop is missing or zero.

    Raises:
        ValueError for an unknown instrument, a stop equal to entry or a
        non-positive pip value
    """
    if instrument not in INSTRUMENTS:
        raise ValueError(f"Unknown instrument '{instrument}'. Must be one of: {', '.join(INSTRUMENTS)}")
    if not account_balance or not risk_percent or not entry_price or not stop_loss:
        return None

    risk_amount = account_balance * risk_percent / 100
    distance = abs(entry_price - stop_loss)
    if distance == 0:
        raise ValueError("Stop loss must differ from the entry price")

    pips = None
    if instrument == "forex":
        if pip_value <= 0:
            raise ValueError("Pip value must be positive")
        pips = distance * (JPY_PIPS_PER_UNIT if jpy_pair else PIPS_PER_UNIT)
        size = risk_amount / (pips * pip_value)
        value = size * STANDARD_LOT * entry_price
    else:
        size = risk_amount / distance
        value = size * entry_price

    direction = 1 if stop_loss < entry_price else -1
    return PositionSize(
        instrument=instrument,
        position_size=round(size, 4),
        position_value=round(value, 2),
        risk_amount=round(risk_amount, 2),
        stop_loss_distance=round(distance, 5),
        stop_loss_pips=round(pips, 1) if pips is not None else None,
        take_profit=round(entry_price + direction * TARGET_R * distance, 5),
    )
