"""Canonicalize free-text spreadsheet values into the closed vocabularies.

Import sources are hand-edited spreadsheets, so none of these functions ever
rejects a value: unrecognized service groups become "adults", unrecognized
follow-up states become "pending", and unparseable birth dates are dropped.
"""

from __future__ import annotations

import re

from churchhub.core.utils import normalize_date_to_iso

_CHILDREN = {"child", "children", "kids", "kid", "victory land", "victoryland", "victory"}
_TEENS = {"teen", "teens"}
_YOUTH = {"youth", "young", "young adults"}

_CONTACTED = {"contact", "contacted"}
_CONVERTED = {"convert", "converted"}
_MEMBER = {"member", "membership"}
# "disicpled" shows up in real rosters
_DISCIPLED = {"disciple", "discipled", "disicpled"}

_SERVICE_LABELS = {
    "children": "Victory Land",
    "teens": "Teens",
    "youth": "Youth",
    "adults": "Adults",
}


def _token(text: str | None) -> str:
    return (text or "").strip().lower()


def canonicalize_service_group(text: str | None) -> str:
    """Map a service group name to children, teens, youth, or adults."""
    v = _token(text)
    if v in _CHILDREN:
        return "children"
    if v in _TEENS:
        return "teens"
    if v in _YOUTH:
        return "youth"
    return "adults"


def canonicalize_follow_up_status(text: str | None, kind: str) -> str:
    """Map a follow-up status for a visitor or a convert.

    Visitors may also be "converted" or "member"; converts may be
    "discipled". Everything else is "pending".
    """
    v = _token(text)
    if v in _CONTACTED:
        return "contacted"
    if kind in ("visitors", "visitor"):
        if v in _CONVERTED:
            return "converted"
        if v in _MEMBER:
            return "member"
        return "pending"
    if v in _DISCIPLED:
        return "discipled"
    return "pending"


def canonicalize_birth_date(text: str | None) -> str | None:
    """Reduce a birth date to the partial form --MM-DD.

    Accepts --MM-DD, MM-DD, or any full date the date normalizer
    understands; the year of a full date is discarded.
    """
    v = (text or "").strip()
    if not v:
        return None
    if re.fullmatch(r"--\d{2}-\d{2}", v):
        return v
    if re.fullmatch(r"\d{2}-\d{2}", v):
        return f"--{v}"
    iso = normalize_date_to_iso(v)
    if not iso:
        return None
    return f"--{iso[5:7]}-{iso[8:10]}"


def birth_date_mmdd(value: str | None) -> str:
    """Render a stored birth date as MM-DD for export."""
    if not value:
        return ""
    if value.startswith("--"):
        return value[2:]
    iso = normalize_date_to_iso(value)
    return f"{iso[5:7]}-{iso[8:10]}" if iso else ""


def service_label(group: str | None) -> str:
    """Display label for a service group ("children" is Victory Land)."""
    if not group:
        return ""
    return _SERVICE_LABELS.get(group, group[:1].upper() + group[1:])
