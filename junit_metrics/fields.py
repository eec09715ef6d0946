"""Defensive parsing of JUnit attribute values.

Every helper here returns a usable value for any input: missing, blank or
garbage attributes resolve to a fallback instead of raising. CI tools emit
all kinds of JUnit dialects, so one bad attribute must never sink a report.
"""

import math
import re
from datetime import datetime, timezone
from typing import Optional

# InfluxDB string field limit (32KB)
MAX_FIELD_SIZE = 32 * 1024
TRUNCATION_MARKER = "\n[...truncated]"

# Leading-prefix grammars: "12abc" -> 12, "0.5s" -> 0.5
_INT_PREFIX = re.compile(r"\s*([+-]?\d+)", re.ASCII)
_FLOAT_PREFIX = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)", re.ASCII)


def parse_integer(raw: Optional[str], fallback: int = 0) -> int:
    """Parse a base-10 integer, returning ``fallback`` when there is none."""
    if not isinstance(raw, str) or not raw:
        return fallback
    match = _INT_PREFIX.match(raw)
    if not match:
        return fallback
    return int(match.group(1))


def parse_float(raw: Optional[str], fallback: float = 0.0) -> float:
    """Parse a decimal number; non-finite values also give ``fallback``."""
    if not isinstance(raw, str) or not raw:
        return fallback
    match = _FLOAT_PREFIX.match(raw)
    if not match:
        return fallback
    value = float(match.group(1))
    if not math.isfinite(value):
        return fallback
    return value


def parse_datetime(raw: Optional[str]) -> Optional[datetime]:
    """Parse ISO 8601 text into a UTC datetime, or None.

    Naive values are read as UTC. Offsets that push the instant outside the
    representable range count as invalid.
    """
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        parsed = datetime.fromisoformat(raw.strip())
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return None


def parse_timestamp(
    raw: Optional[str], fallback: Optional[datetime] = None
) -> datetime:
    """Parse a timestamp, falling back to ``fallback`` or the current instant."""
    parsed = parse_datetime(raw)
    if parsed is not None:
        return parsed
    if fallback is not None:
        return fallback
    return datetime.now(timezone.utc)


def truncate_text(raw, max_size: int = MAX_FIELD_SIZE):
    """Bound a text field to ``max_size`` characters plus a marker.

    Anything that is not a string is handed back untouched.
    """
    if not isinstance(raw, str):
        return raw
    if len(raw) <= max_size:
        return raw
    return raw[:max_size] + TRUNCATION_MARKER
