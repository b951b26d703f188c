# stratguru/utils/logger.py
"""
Logging utility with structured logging support.
"""
import logging
import sys
from datetime import datetime, timezone
from typing import Optional, Dict, Any
import json

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger("stratguru")


def log(msg: str, level: str = "INFO") -> None:
    """
    Log a message with the journal prefix.

    Args:
        msg: Message to log
        level: Log level (INFO, WARNING, ERROR, DEBUG)
    """
    level_upper = level.upper()
    if level_upper == "DEBUG":
        logger.debug(f"[StratGuru] {msg}")
    elif level_upper in ("WARNING", "WARN"):
        logger.warning(f"[StratGuru] {msg}")
    elif level_upper == "ERROR":
        logger.error(f"[StratGuru] {msg}")
    else:
        logger.info(f"[StratGuru] {msg}")


def log_error(msg: str, exc_info: bool = False) -> None:
    """Log an error message."""
    logger.error(f"[StratGuru] {msg}", exc_info=exc_info)


def log_warning(msg: str) -> None:
    logger.warning(f"[StratGuru] {msg}")


def log_info(msg: str) -> None:
    logger.info(f"[StratGuru] {msg}")


def log_debug(msg: str) -> None:
    logger.debug(f"[StratGuru] {msg}")


def log_structured(event: str, data: Optional[Dict[str, Any]] = None, level: str = "INFO") -> None:
    """
    Log one JSON line for an event (payments, credits, payouts).

    Args:
        event: Event name (e.g., "plan_upgraded", "paystack_webhook")
        data: Additional data to log; None values are dropped
        level: Log level
    """
    log_data = {
        "event": event,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        **{k: v for k, v in (data or {}).items() if v is not None}
    }

    message = json.dumps(log_data, default=str)

    if level.upper() == "ERROR":
        logger.error(message)
    elif level.upper() == "WARNING":
        logger.warning(message)
    elif level.upper() == "DEBUG":
        logger.debug(message)
    else:
        logger.info(message)
