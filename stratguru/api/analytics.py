# stratguru/api/analytics.py
"""
Edge analytics over the user's Elite journal.

Every endpoint accepts the dashboard filters (date_range, session, setups).
Legacy-unclassified trades never reach these views, and missed trades only
reach the views that count them explicitly (dominance, rules, missed).
"""
from __future__ import annotations
from dataclasses import asdict
from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import List, Dict, Any, Optional
from sqlalchemy.orm import Session

from ..db.session import get_db
from ..db import crud
from ..analytics.records import TradeRecord, to_records
from ..analytics.filters import AnalyticsFilters, apply_filters, analytics_pool, executed_only
from ..analytics.metrics import calculate_expectancy, edge_summary, validate_strategy, sample_size_confidence
from ..analytics.condition_impact import analyze_condition_impact
from ..analytics.dominance import time_dominance, day_dominance, session_dominance
from ..analytics.setups import setup_edge_scores, setup_quality_matrix
from ..analytics.mistakes import mistake_patterns
from ..analytics.drift import edge_drift
from ..analytics.entry_precision import entry_precision
from ..analytics.discipline import discipline_report
from ..analytics.rules import trading_rules
from ..analytics.missed import missed_opportunities
from ..utils.jwt_deps import get_current_user_id_dep

router = APIRouter(prefix="/analytics", tags=["analytics"])


def get_filters(
    date_range: str = Query("all", description="30, 90 or all"),
    session: str = Query("all", description="LN, NY or all"),
    setups: Optional[List[str]] = Query(None, description="Setup codes to include"),
) -> AnalyticsFilters:
    try:
        return AnalyticsFilters(
            date_range=date_range,
            session=session,
            setups=[s.strip().upper() for s in setups or [] if s.strip()],
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def load_trades(
    user_id: str = Depends(get_current_user_id_dep),
    filters: AnalyticsFilters = Depends(get_filters),
    db: Session = Depends(get_db),
) -> List[TradeRecord]:
    """Filtered analytics pool, missed trades included."""
    records = to_records(crud.list_elite_trades(db, user_id))
    return apply_filters(analytics_pool(records), filters)


@router.get("/expectancy", response_model=Dict[str, Any])
def expectancy(trades: List[TradeRecord] = Depends(load_trades)):
    return asdict(calculate_expectancy(executed_only(trades)))


@router.get("/edge-summary", response_model=Dict[str, Any])
def get_edge_summary(trades: List[TradeRecord] = Depends(load_trades)):
    """Win rate, average R, expectancy, profit factor and max drawdown."""
    return asdict(edge_summary(executed_only(trades)))


@router.get("/validation", response_model=Dict[str, Any])
def strategy_validation(trades: List[TradeRecord] = Depends(load_trades)):
    """Forward-testing gate: expectancy, profit factor, sample size and equity curve."""
    return asdict(validate_strategy(executed_only(trades)))


@router.get("/sample-confidence", response_model=List[Dict[str, Any]])
def sample_confidence(trades: List[TradeRecord] = Depends(load_trades)):
    return [asdict(c) for c in sample_size_confidence(executed_only(trades))]


@router.get("/condition-impact", response_model=Dict[str, Any])
def condition_impact(trades: List[TradeRecord] = Depends(load_trades)):
    return asdict(analyze_condition_impact(executed_only(trades)))


@router.get("/dominance/time", response_model=List[Dict[str, Any]])
def time_heatmap(trades: List[TradeRecord] = Depends(load_trades)):
    """Half-hour buckets per setup classified strong / neutral / weak."""
    return [asdict(h) for h in time_dominance(trades)]


@router.get("/dominance/day", response_model=List[Dict[str, Any]])
def day_heatmap(trades: List[TradeRecord] = Depends(load_trades)):
    return [asdict(h) for h in day_dominance(trades)]


@router.get("/dominance/session", response_model=List[Dict[str, Any]])
def session_heatmap(trades: List[TradeRecord] = Depends(load_trades)):
    return [asdict(s) for s in session_dominance(trades)]


@router.get("/setup-edge", response_model=List[Dict[str, Any]])
def setup_edge(trades: List[TradeRecord] = Depends(load_trades)):
    return [asdict(e) for e in setup_edge_scores(executed_only(trades))]


@router.get("/quality-matrix", response_model=Dict[str, Any])
def quality_matrix(trades: List[TradeRecord] = Depends(load_trades)):
    return asdict(setup_quality_matrix(executed_only(trades)))


@router.get("/mistakes", response_model=List[Dict[str, Any]])
def mistakes(
    setup: Optional[str] = Query(None, description="Limit to one setup code"),
    trades: List[TradeRecord] = Depends(load_trades),
):
    return [asdict(m) for m in mistake_patterns(executed_only(trades), active_setup=setup.strip().upper() if setup else None)]


@router.get("/drift", response_model=List[Dict[str, Any]])
def drift(trades: List[TradeRecord] = Depends(load_trades)):
    return [asdict(d) for d in edge_drift(executed_only(trades))]


@router.get("/entry-precision", response_model=Dict[str, Any])
def precision(
    setup: Optional[str] = Query(None, description="Limit to one setup code"),
    trades: List[TradeRecord] = Depends(load_trades),
):
    return asdict(entry_precision(executed_only(trades), active_setup=setup.strip().upper() if setup else None))


@router.get("/discipline", response_model=Dict[str, Any])
def discipline(trades: List[TradeRecord] = Depends(load_trades)):
    return asdict(discipline_report(executed_only(trades)))


@router.get("/rules", response_model=Dict[str, Any])
def rules(trades: List[TradeRecord] = Depends(load_trades)):
    return asdict(trading_rules(trades))


@router.get("/missed", response_model=Dict[str, Any])
def missed(trades: List[TradeRecord] = Depends(load_trades)):
    report = missed_opportunities(trades)
    if report is None:
        return {"total": 0, "message": "No missed trades logged."}
    return asdict(report)
