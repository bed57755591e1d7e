"""
Data Ingestion - Event Normalizer.

============================================================
RESPONSIBILITY
============================================================
Converts a raw submission into a CanonicalEvent.

Never raises. Malformed fields are downgraded to sentinel
values so the raw submission is always kept and auditable.

============================================================
COERCION RULES
============================================================
client_id   source, or "unknown" when absent/empty
metric      payload.metric, or "unknown" when absent/empty
amount      payload.amount as integer (numeric strings
            accepted, fractions truncated toward zero),
            0 when absent, not a finite number, or outside
            the signed 64-bit range
timestamp   payload.timestamp parsed with dateutil; numbers
            are epoch milliseconds; missing month/day default
            to January 1st; None when unparseable or when no
            year is given.
            Rendered as UTC ISO-8601 with milliseconds:
            2024-01-01T00:00:00.000Z

============================================================
"""

import math
from datetime import datetime, timezone
from typing import Any, Optional

from dateutil import parser as dtparser

from core.constants import (
    AMOUNT_MAX,
    AMOUNT_MIN,
    DEFAULT_AMOUNT,
    UNKNOWN_CLIENT_ID,
    UNKNOWN_METRIC,
)
from data_ingestion.types import CanonicalEvent, RawEventInput


def normalize_event(raw: RawEventInput) -> CanonicalEvent:
    """Normalize one raw submission."""
    payload = raw.payload

    return CanonicalEvent(
        client_id=_text_or_unknown(raw.source, UNKNOWN_CLIENT_ID),
        metric=_text_or_unknown(payload.metric if payload else None, UNKNOWN_METRIC),
        amount=coerce_amount(payload.amount if payload else None),
        timestamp=to_canonical_timestamp(payload.timestamp if payload else None),
    )


def _text_or_unknown(value: Any, sentinel: str) -> str:
    if value is None:
        return sentinel
    text = value if isinstance(value, str) else str(value)
    return text if text else sentinel


# =============================================================
# AMOUNT
# =============================================================

def coerce_amount(value: Any) -> int:
    """
    Coerce a declared amount to an integer.

    Examples:
        coerce_amount("1200")  -> 1200
        coerce_amount(" 7.9 ") -> 7
        coerce_amount("abc")   -> 0
        coerce_amount(None)    -> 0
    """
    if value is None:
        return DEFAULT_AMOUNT
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return _in_range(value)
    if isinstance(value, float):
        return _in_range(int(value)) if math.isfinite(value) else DEFAULT_AMOUNT
    if isinstance(value, str):
        return _coerce_amount_text(value)
    return DEFAULT_AMOUNT


def _in_range(amount: int) -> int:
    # Stored as a signed 64-bit INTEGER
    return amount if AMOUNT_MIN <= amount <= AMOUNT_MAX else DEFAULT_AMOUNT


def _coerce_amount_text(value: str) -> int:
    text = value.strip()
    # int() accepts "1_000"; JSON clients never mean that
    if not text or "_" in text:
        return DEFAULT_AMOUNT
    try:
        return _in_range(int(text))
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return DEFAULT_AMOUNT
    return _in_range(int(number)) if math.isfinite(number) else DEFAULT_AMOUNT


# =============================================================
# TIMESTAMP
# =============================================================

# Missing month/day/time come from here, never from the clock
_FILL_DEFAULT = datetime(1970, 1, 1)
_YEAR_PROBE = datetime(1971, 1, 1)


def _parse_text(text: str) -> Optional[datetime]:
    parsed = dtparser.parse(text, default=_FILL_DEFAULT)
    # No year in the text ("12:30", "March 5"): not a date
    if dtparser.parse(text, default=_YEAR_PROBE).year != parsed.year:
        return None
    return parsed


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a declared timestamp into an aware UTC datetime.

    Returns None for anything that is not a valid calendar
    date-time. Naive values are taken as UTC.
    """
    if value is None or isinstance(value, bool):
        return None

    try:
        if isinstance(value, (int, float)):
            if not math.isfinite(value):
                return None
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        elif isinstance(value, str):
            text = value.strip()
            if not text:
                return None
            parsed = _parse_text(text)
            if parsed is None:
                return None
        else:
            return None

        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None


def format_timestamp(value: datetime) -> str:
    """Render an aware datetime as canonical UTC ISO-8601."""
    value = value.astimezone(timezone.utc)
    return (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
        f".{value.microsecond // 1000:03d}Z"
    )


def to_canonical_timestamp(value: Any) -> Optional[str]:
    """parse_timestamp + format_timestamp; None when unparseable."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return None
    return format_timestamp(parsed)
