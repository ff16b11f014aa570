"""
Time parsing and elapsed-time formatting.

SondeHub reports landing times as RFC 3339 strings. Only full timestamps with an explicit
offset are accepted, so "time since landing" is never computed from a guessed timezone or a
date-only value.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta

from sondealert.core.errors import MalformedDataError

_RFC3339_RE = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})[Tt](?P<time>\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d+))?(?P<offset>[Zz]|[+-]\d{2}:\d{2})$"
)


def parse_rfc3339(value: object) -> datetime:
    """Parse an RFC 3339 timestamp into an aware datetime.

    Notes:
    - Requires a `T` separator, seconds, and a `Z` or `±hh:mm` offset.
    - Fractional seconds of any length are truncated/padded to microseconds, since
      `fromisoformat` before Python 3.11 only accepts 3 or 6 digits.

    Raises:
        MalformedDataError: If `value` is missing, not a string or not an RFC 3339 timestamp.
    """
    if not isinstance(value, str) or not value.strip():
        raise MalformedDataError(f"missing or non-string timestamp: {value!r}")
    match = _RFC3339_RE.match(value.strip())
    if match is None:
        raise MalformedDataError(f"not an RFC 3339 timestamp: {value!r}")

    fraction = (match["fraction"] or "")[:6].ljust(6, "0")
    offset = match["offset"]
    if offset in ("Z", "z"):
        offset = "+00:00"
    text = f"{match['date']}T{match['time']}.{fraction}{offset}"
    try:
        return datetime.fromisoformat(text)
    except ValueError as exc:
        raise MalformedDataError(f"unparsable timestamp {value!r}: {exc}") from exc


def format_elapsed(delta: timedelta) -> str:
    """Render `delta` rounded to whole minutes, e.g. `12 min`, `1 h 5 min`, `2 d 3 h 0 min`."""
    total_minutes = int(round(delta.total_seconds() / 60))
    # Landing times slightly in the future (clock skew) read as "just now".
    if total_minutes <= 0:
        return "0 min"

    days, rem = divmod(total_minutes, 60 * 24)
    hours, minutes = divmod(rem, 60)
    if days:
        return f"{days} d {hours} h {minutes} min"
    if hours:
        return f"{hours} h {minutes} min"
    return f"{minutes} min"
