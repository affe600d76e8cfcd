"""
Date and time-of-day parsing for track point fields.

Track points carry their date and time as plain strings coming from several file formats:
- `date` is expected as `YYYY-MM-DD` but may be empty or free text,
- `time` is `HH:MM` or a range such as `"08:00 to 09:30"` (older exports use `" a "`).

Only the start of a time range is used for ordering and windows. Times compare
lexicographically once normalized to zero-padded `HH:MM`.
"""

from __future__ import annotations

import re

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?$")
_RANGE_SEPARATORS = (" to ", " a ", " - ", "-")


def is_iso_date(value: str | None) -> bool:
    """True if `value` looks like a `YYYY-MM-DD` calendar date."""
    return bool(value) and bool(_ISO_DATE_RE.match(value.strip()))


def normalize_hhmm(value: str | None) -> str | None:
    """Normalize `H:MM`, `HH:MM` or `HH:MM:SS` to `HH:MM`; None if unparsable."""
    if not value:
        return None
    m = _HHMM_RE.match(value.strip())
    if not m:
        return None
    hours = int(m.group(1))
    minutes = int(m.group(2))
    if hours > 23 or minutes > 59:
        return None
    return f"{hours:02d}:{minutes:02d}"


def start_time(value: str | None) -> str | None:
    """Return the normalized start time of a time field (single time or range)."""
    if not value:
        return None
    text = value.strip()
    for sep in _RANGE_SEPARATORS:
        if sep in text:
            text = text.split(sep, 1)[0]
            break
    return normalize_hhmm(text)


def is_time_in_window(value: str | None, window_start: str, window_end: str) -> bool:
    """Check whether the start time of `value` lies in the inclusive `HH:MM` window."""
    t = start_time(value)
    lo = normalize_hhmm(window_start)
    hi = normalize_hhmm(window_end)
    if t is None or lo is None or hi is None:
        return False
    return lo <= t <= hi
