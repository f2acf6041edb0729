"""Search and filter helpers for the people lists."""

from __future__ import annotations


def _matches(record, q: str) -> bool:
    haystack = [
        record.full_name,
        getattr(record, "phone_number", ""),
        getattr(record, "email", ""),
        getattr(record, "how_heard_about_us", ""),
    ]
    return any(q in (h or "").lower() for h in haystack)


def search_people(records: list, query: str = "") -> list:
    """Case-insensitive substring search on name, phone, email, and how-heard."""
    q = (query or "").strip().lower()
    if not q:
        return list(records)
    return [r for r in records if _matches(r, q)]


def filter_visitors(
    visitors: list,
    query: str = "",
    status: str = "all",
    service: str = "all",
    has_contact: bool = False,
) -> list:
    """Visitors list filters: search, follow-up status, service, reachable only."""
    out = []
    for v in search_people(visitors, query):
        if status != "all" and (v.follow_up_status or "pending") != status:
            continue
        if service != "all" and v.service_attended != service:
            continue
        if has_contact and not (v.phone_number or v.email):
            continue
        out.append(v)
    return out


def filter_converts(
    converts: list,
    query: str = "",
    status: str = "all",
    service: str = "all",
) -> list:
    out = []
    for c in search_people(converts, query):
        if status != "all" and c.follow_up_status != status:
            continue
        if service != "all" and c.service_attended != service:
            continue
        out.append(c)
    return out


def filter_members(members: list, query: str = "", service: str = "all") -> list:
    matched = search_people(members, query)
    if service == "all":
        return matched
    return [m for m in matched if m.service_category == service]
