# stratguru/api/calculator.py
"""
Position size calculator. Open to anonymous visitors as well as signed-in traders.
"""
from __future__ import annotations
from dataclasses import asdict
from fastapi import APIRouter, Depends, Body
from typing import Dict, Any, Optional
from pydantic import BaseModel, Field

from ..analytics.position_size import calculate_position_size, DEFAULT_PIP_VALUE
from ..utils.jwt_deps import get_current_user_id_optional
from ..utils.error_handler import handle_validation_error
from ..utils.logger import log_debug

router = APIRouter(prefix="/calculator", tags=["calculator"])


class PositionSizeRequest(BaseModel):
    account_balance: float = Field(..., gt=0)
    risk_percent: float = Field(..., gt=0, le=100)
    entry_price: float = Field(..., gt=0)
    stop_loss: float = Field(..., gt=0)
    instrument: str = Field("forex", pattern="^(forex|crypto|stocks|commodities|indices)$")
    pip_value: float = Field(DEFAULT_PIP_VALUE, gt=0)
    jpy_pair: bool = False


@router.post("/position-size", response_model=Dict[str, Any])
async def position_size(
    data: PositionSizeRequest = Body(...),
    user_id: Optional[str] = Depends(get_current_user_id_optional),
):
    try:
        result = calculate_position_size(**data.model_dump())
    except ValueError as e:
        raise handle_validation_error("stop_loss", str(e))

    log_debug(f"Position size for {user_id or 'anonymous'}: {data.instrument} risk {data.risk_percent}%")
    return asdict(result)
