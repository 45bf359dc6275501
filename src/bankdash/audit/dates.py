"""
Timestamp helpers for the current-month filter.

All comparisons happen in local, naive wall-clock time: aware timestamps
(e.g. "2025-09-04T15:57:41.515Z") are converted to the local zone first and
naive ones (e.g. "2025-09-06 16:14:35.741422055") are taken as local.
"""

import re
from datetime import datetime, timezone
from typing import Any, Optional

from .status import get_field

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_FRACTION = re.compile(r"(\d{2}:\d{2}:\d{2})[.,](\d+)")


def _to_local_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def local_now() -> datetime:
    return datetime.now()


def start_of_month(now: Optional[datetime] = None) -> datetime:
    """
    First instant (00:00:00.000) of the month containing ``now``.
    """
    current = _to_local_naive(now) if now is not None else local_now()
    return current.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def _fit_fraction(match: "re.Match[str]") -> str:
    # fromisoformat wants 3 or 6 digits; the backend sends up to 9
    digits = match.group(2)[:6].ljust(6, "0")
    return f"{match.group(1)}.{digits}"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a backend timestamp into local naive time, or None if unparseable.

    Accepts datetimes, ISO-8601 strings and epoch milliseconds.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _to_local_naive(value)
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    if _DATE_ONLY.match(text):
        # bare dates are midnight UTC, not local midnight
        try:
            parsed = datetime.strptime(text, "%Y-%m-%d").replace(tzinfo=timezone.utc)
        except ValueError:
            return None
        return _to_local_naive(parsed)

    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(_fit_fraction, text, count=1)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return _to_local_naive(parsed)


def authoritative_date(record: Any, now: Optional[datetime] = None) -> Optional[datetime]:
    """
    postingdate if set, else updatedat, else ``now`` (the fetch time).

    Returns None when the chosen field is present but unparseable.
    """
    fetched_at = _to_local_naive(now) if now is not None else local_now()
    raw = get_field(record, "postingdate") or get_field(record, "updatedat")
    if not raw:
        return fetched_at
    return parse_timestamp(raw)


def in_current_month(record: Any, now: Optional[datetime] = None) -> bool:
    """
    True when the record's authoritative date is on/after the start of the
    current month. No upper bound is applied: future-dated records count.
    """
    current = _to_local_naive(now) if now is not None else local_now()
    when = authoritative_date(record, current)
    if when is None:
        return False
    return when >= start_of_month(current)
