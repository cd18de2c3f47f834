"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from credshield_gateway.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_score_computed(
    request_id: str,
    address: str,
    score: int,
    tier: str,
    data_source: str,
    report_source: str,
    duration_ms: float,
) -> None:
    """Log structured scoring outcome for analysis"""
    logging.info(
        "Score computed",
        extra={
            "request_id": request_id,
            "address": address,
            "step": "score_complete",
            "score": score,
            "tier": tier,
            "data_source": data_source,
            "report_source": report_source,
            "duration_ms": duration_ms,
        },
    )


def log_loan_event(event: str, loan_id: Optional[int], borrower: str, amount: int) -> None:
    logging.info(
        f"Loan {event}",
        extra={
            "step": f"loan_{event}",
            "loan_id": loan_id,
            "address": borrower,
            "amount_wei": str(amount),
        },
    )


def log_collateral_event(event: str, owner: str, amount: int, loan_id: Optional[int] = None) -> None:
    logging.info(
        f"Collateral {event}",
        extra={
            "step": f"collateral_{event}",
            "address": owner,
            "loan_id": loan_id,
            "amount_wei": str(amount),
        },
    )
