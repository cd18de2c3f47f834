"""Timestamp manipulation utilities (unix seconds, UTC)"""

import time
from datetime import datetime, timezone
from typing import Tuple

SECONDS_PER_DAY = 86_400
SECONDS_PER_MONTH = 30 * SECONDS_PER_DAY  # scoring uses fixed 30-day months


def utc_now_ts() -> int:
    """Current unix timestamp in whole seconds"""
    return int(time.time())


def calendar_month(ts: int) -> Tuple[int, int]:
    """(year, month) of a unix timestamp in UTC"""
    d = datetime.fromtimestamp(ts, tz=timezone.utc)
    return d.year, d.month


def whole_days_between(start_ts: int, end_ts: int) -> int:
    """Complete days elapsed from start to end, never negative"""
    return max(0, end_ts - start_ts) // SECONDS_PER_DAY


def add_days(ts: int, days: int) -> int:
    return ts + days * SECONDS_PER_DAY


def to_iso(ts: int) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()
