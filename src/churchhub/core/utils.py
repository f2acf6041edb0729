"""Shared utility functions for date parsing, deduplication, etc."""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Any, Callable

_MONTHS = {
    "january": "01",
    "february": "02",
    "march": "03",
    "april": "04",
    "may": "05",
    "june": "06",
    "july": "07",
    "august": "08",
    "september": "09",
    "october": "10",
    "november": "11",
    "december": "12",
}


def normalize_date_to_iso(dt_str: str) -> str:
    """Convert a spreadsheet date to ISO 8601 YYYY-MM-DD.

    Supported formats:
    - YYYY-MM-DD (already ISO): "2025-06-30"
    - YYYY-MM-DDTHH:MM:SS+ZZ:ZZ (ISO timestamp): "2025-06-30T13:25:00+00:00"
    - YYYY/MM/DD: "2025/06/30"
    - MM/DD/YYYY (US spreadsheets): "01/15/2026"
    - Month DD, YYYY: "December 25, 1990" or "Dec 25th 1990"

    Returns empty string for empty/unparseable input, including
    well-formed strings naming an impossible day (2025-02-30).
    """
    if not dt_str or not dt_str.strip():
        return ""
    s = dt_str.strip()

    m = re.match(r"(\d{4})[-/](\d{1,2})[-/](\d{1,2})", s)
    if m:
        return _checked(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    m = re.match(r"(\d{1,2})/(\d{1,2})/(\d{4})", s)
    if m:
        return _checked(int(m.group(3)), int(m.group(1)), int(m.group(2)))

    return parse_narrative_date(s)


def _checked(year: int, month: int, day: int) -> str:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return ""


def parse_narrative_date(text: str) -> str:
    """Parse dates like 'December 25th, 1990' -> '1990-12-25'.

    Accepts full month names and their three-letter abbreviations.
    """
    m = re.match(
        r"([a-z]+)\.?\s+(\d{1,2})(?:st|nd|rd|th)?,?\s*(\d{4})",
        text.strip(),
        re.IGNORECASE,
    )
    if not m:
        return ""
    word = m.group(1).lower()
    month = _MONTHS.get(word)
    if month is None and len(word) >= 3:
        month = next((v for k, v in _MONTHS.items() if k.startswith(word)), None)
    if month is None:
        return ""
    return _checked(int(m.group(3)), int(month), int(m.group(2)))


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO date or timestamp into an aware datetime (UTC if naive).

    Bare dates land on midnight. Returns None when unparseable.
    """
    if not value or not str(value).strip():
        return None
    s = str(value).strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        iso = normalize_date_to_iso(s)
        if not iso:
            return None
        dt = datetime.fromisoformat(iso)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def deduplicate_by_key(
    items: list[Any],
    key_func: Callable[[Any], Any],
    sort_key: Callable[[Any], Any] | None = None,
    reverse: bool = False,
) -> list[Any]:
    """Deduplicate a list using a key function, keeping the first occurrence.

    Args:
        items: Items to deduplicate, in priority order.
        key_func: Function that returns a hashable key for each item.
        sort_key: Optional sort key function for the result.
        reverse: Sort in reverse order.
    """
    seen = set()
    result = []
    for item in items:
        k = key_func(item)
        if k in seen:
            continue
        seen.add(k)
        result.append(item)
    if sort_key:
        result.sort(key=sort_key, reverse=reverse)
    return result
