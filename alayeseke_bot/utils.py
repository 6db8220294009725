from __future__ import annotations

import html
import math
import time
from datetime import datetime, timezone
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# last second representable by datetime
MAX_TS = int(datetime(9999, 12, 31, 23, 59, 59, tzinfo=timezone.utc).timestamp())


def to_float(value: Any, default: float = 0.0) -> float:
    """Coerce an API number (str, int, float, None) to a finite float."""
    if isinstance(value, bool):
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(result):
        return default
    return result


def to_int(value: Any, default: int = 0) -> int:
    return int(to_float(value, float(default)))


def to_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return default


def escape_html(value: str) -> str:
    return html.escape(value or "")


def utc_now_ts() -> int:
    return int(time.time())


def normalize_ts(ts: Any) -> Optional[int]:
    value = to_int(ts, 0)
    if value <= 0:
        return None
    # millisecond timestamps
    if value > 10_000_000_000:
        value //= 1000
    if value > MAX_TS:
        return None
    return value


def format_ts(ts: Any, tz_name: str = "UTC", fmt: str = "%Y-%m-%d %H:%M") -> str:
    value = normalize_ts(ts)
    if value is None:
        return "n/a"
    try:
        dt = datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return "n/a"
    if tz_name:
        try:
            dt = dt.astimezone(ZoneInfo(tz_name))
        except (ZoneInfoNotFoundError, OverflowError, ValueError):
            pass
    return dt.strftime(fmt)


def format_date(ts: Any, tz_name: str = "UTC") -> str:
    return format_ts(ts, tz_name, fmt="%Y-%m-%d")
