"""Build validated Member/Visitor/Convert records from mapped CSV rows.

Imported rows are new facts: every row gets a freshly minted id, whatever
identifier column the spreadsheet carries.
"""

from __future__ import annotations

from datetime import datetime, timezone

from churchhub.core.canonical import (
    canonicalize_birth_date,
    canonicalize_follow_up_status,
    canonicalize_service_group,
)
from churchhub.core.utils import normalize_date_to_iso, parse_timestamp
from churchhub.errors import GuardianRequiredError
from churchhub.models import (
    GUARDIAN_REQUIRED_GROUPS,
    Convert,
    Member,
    RawRow,
    Visitor,
    new_id,
)

UNNAMED = "Unnamed"


def _text(raw: RawRow, fld: str) -> str:
    return (raw.get(fld) or "").strip()


def _timestamps(raw: RawRow, now: datetime) -> tuple[str, str]:
    """created_at/updated_at from the row, each defaulting to now."""
    created = _text(raw, "Created At") or now.isoformat()
    updated = _text(raw, "Updated At") or now.isoformat()
    c_dt = parse_timestamp(created)
    u_dt = parse_timestamp(updated)
    if c_dt and u_dt and u_dt < c_dt:
        updated = created
    return created, updated


def _event_date(value: str, now: datetime) -> str:
    """Visit/conversion date: ISO when recognisable, today when empty."""
    if not value:
        return now.date().isoformat()
    return normalize_date_to_iso(value) or value


def interests_from_text(value: str) -> list[str]:
    """Split a ;-separated interest list, dropping empty segments."""
    return [s.strip() for s in (value or "").split(";") if s.strip()]


def materialize_member(raw: RawRow, now: datetime, require_guardian: bool = False) -> Member:
    created, updated = _timestamps(raw, now)
    member = Member(
        id=new_id(),
        full_name=_text(raw, "Full Name") or UNNAMED,
        gender=_text(raw, "Gender"),
        date_of_birth=canonicalize_birth_date(raw.get("Date of Birth")) or "",
        phone_number=_text(raw, "Phone"),
        parent_guardian=_text(raw, "Parent/Guardian"),
        service_category=canonicalize_service_group(raw.get("Service Category")),
        care_group=_text(raw, "Care Group"),
        created_at=created,
        updated_at=updated,
    )
    if (
        require_guardian
        and member.service_category in GUARDIAN_REQUIRED_GROUPS
        and not member.parent_guardian
    ):
        raise GuardianRequiredError(
            f"Parent/Guardian is required for {member.full_name} ({member.service_category})"
        )
    return member


def materialize_visitor(raw: RawRow, now: datetime) -> Visitor:
    created, updated = _timestamps(raw, now)
    return Visitor(
        id=new_id(),
        full_name=_text(raw, "Full Name") or UNNAMED,
        phone_number=_text(raw, "Phone"),
        email=_text(raw, "Email"),
        service_attended=canonicalize_service_group(raw.get("Service Attended")),
        first_visit_date=_event_date(_text(raw, "First Visit Date"), now),
        how_heard_about_us=_text(raw, "How Heard"),
        areas_of_interest=interests_from_text(raw.get("Areas of Interest", "")),
        follow_up_status=canonicalize_follow_up_status(raw.get("Follow-up"), "visitors"),
        created_at=created,
        updated_at=updated,
    )


def materialize_convert(raw: RawRow, now: datetime) -> Convert:
    created, updated = _timestamps(raw, now)
    return Convert(
        id=new_id(),
        full_name=_text(raw, "Full Name") or UNNAMED,
        phone_number=_text(raw, "Phone"),
        email=_text(raw, "Email"),
        service_attended=canonicalize_service_group(raw.get("Service")),
        date_of_conversion=_event_date(_text(raw, "Date of Conversion"), now),
        follow_up_status=canonicalize_follow_up_status(raw.get("Follow-up Status"), "converts"),
        assigned_leader=_text(raw, "Assigned Leader"),
        created_at=created,
        updated_at=updated,
    )


def materialize_row(
    kind: str,
    raw: RawRow,
    now: datetime | None = None,
    require_guardian: bool = False,
):
    """Build one record of the given collection from a mapped row."""
    now = now or datetime.now(timezone.utc)
    if kind == "members":
        return materialize_member(raw, now, require_guardian=require_guardian)
    if kind == "visitors":
        return materialize_visitor(raw, now)
    if kind == "converts":
        return materialize_convert(raw, now)
    raise ValueError(f"Unknown collection: {kind!r}")


def materialize_rows(
    kind: str,
    raws: list[RawRow],
    now: datetime | None = None,
    require_guardian: bool = False,
) -> list:
    """Materialize a batch; "now" is captured once for the whole batch."""
    now = now or datetime.now(timezone.utc)
    records = []
    for i, raw in enumerate(raws, 1):
        try:
            records.append(materialize_row(kind, raw, now, require_guardian=require_guardian))
        except GuardianRequiredError as e:
            raise GuardianRequiredError(f"Row {i}: {e}") from e
    return records
