"""
Database Utilities
Value coercion shared by models, repositories and services.
"""
from __future__ import annotations
import logging

from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

logger = logging.getLogger(__name__)

_DATE_FORMATS = ("%Y-%m-%d", "%d.%m.%Y", "%d/%m/%Y", "%Y/%m/%d")


def utc_now() -> datetime:
    """Naive UTC timestamp, the form SQLite DateTime columns store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_date(val: Any) -> Optional[date]:
    """Coerce a date, datetime or date string; None for empty or unparseable input."""
    if val in (None, ""):
        return None
    if isinstance(val, datetime):
        return val.date()
    if isinstance(val, date):
        return val
    if isinstance(val, str):
        s = val.strip()
        if not s:
            return None
        try:
            return date.fromisoformat(s[:10])
        except ValueError:
            pass
        for fmt in _DATE_FORMATS:
            try:
                return datetime.strptime(s, fmt).date()
            except ValueError:
                continue
    return None


def to_datetime(val: Any) -> Optional[datetime]:
    if val in (None, ""):
        return None
    if isinstance(val, datetime):
        return val
    if isinstance(val, date):
        return datetime(val.year, val.month, val.day)
    if isinstance(val, str):
        try:
            return datetime.fromisoformat(val.strip())
        except ValueError:
            d = to_date(val)
            return datetime(d.year, d.month, d.day) if d else None
    return None


def to_decimal(val: Any) -> Optional[Decimal]:
    """Coerce numbers and numeric strings to a finite Decimal; None when impossible."""
    if val is None or isinstance(val, bool):
        return None
    if isinstance(val, Decimal):
        result = val
    else:
        try:
            result = Decimal(str(val).strip())
        except (InvalidOperation, ValueError):
            return None
    # NaN and Infinity never make a usable quantity or filter bound
    return result if result.is_finite() else None


def to_bool(val: Any) -> Optional[bool]:
    if isinstance(val, bool):
        return val
    if isinstance(val, (int, Decimal)) and val in (0, 1):
        return bool(val)
    if isinstance(val, str):
        s = val.strip().lower()
        if s in ("true", "1", "yes", "on"):
            return True
        if s in ("false", "0", "no", "off"):
            return False
    return None
