"""Header contracts and column mapping for roster imports.

Two ways in:

- strict: the CSV headers must contain every required header verbatim
  (case-sensitive, any order);
- mapping: ``auto_map_columns`` proposes a header for each field, the user
  overrides any of them, and ``validate_mapping`` checks that every required
  field ended up mapped.
"""

from __future__ import annotations

from churchhub.errors import HeaderValidationError, MappingValidationError
from churchhub.models import RawRow

REQUIRED_HEADERS: dict[str, list[str]] = {
    "members": [
        "Full Name",
        "Gender",
        "Date of Birth",
        "Phone",
        "Service Category",
        "Care Group",
        "Created At",
        "Updated At",
    ],
    "visitors": [
        "Full Name",
        "Phone",
        "Email",
        "Service Attended",
        "First Visit Date",
        "How Heard",
        "Areas of Interest",
        "Follow-up",
        "Created At",
        "Updated At",
    ],
    "converts": [
        "Full Name",
        "Phone",
        "Email",
        "Service",
        "Date of Conversion",
        "Follow-up Status",
        "Assigned Leader",
        "Created At",
        "Updated At",
    ],
}

# Accepted and mapped when present, never required.
OPTIONAL_HEADERS: dict[str, list[str]] = {
    "members": ["Parent/Guardian"],
    "visitors": [],
    "converts": [],
}


# Header label -> record field, for every header a collection accepts.
HEADER_FIELDS: dict[str, dict[str, str]] = {
    "members": {
        "Full Name": "full_name",
        "Gender": "gender",
        "Date of Birth": "date_of_birth",
        "Phone": "phone_number",
        "Parent/Guardian": "parent_guardian",
        "Service Category": "service_category",
        "Care Group": "care_group",
        "Created At": "created_at",
        "Updated At": "updated_at",
    },
    "visitors": {
        "Full Name": "full_name",
        "Phone": "phone_number",
        "Email": "email",
        "Service Attended": "service_attended",
        "First Visit Date": "first_visit_date",
        "How Heard": "how_heard_about_us",
        "Areas of Interest": "areas_of_interest",
        "Follow-up": "follow_up_status",
        "Created At": "created_at",
        "Updated At": "updated_at",
    },
    "converts": {
        "Full Name": "full_name",
        "Phone": "phone_number",
        "Email": "email",
        "Service": "service_attended",
        "Date of Conversion": "date_of_conversion",
        "Follow-up Status": "follow_up_status",
        "Assigned Leader": "assigned_leader",
        "Created At": "created_at",
        "Updated At": "updated_at",
    },
}


def _check_kind(kind: str) -> None:
    if kind not in REQUIRED_HEADERS:
        raise ValueError(f"Unknown collection: {kind!r} (expected members, visitors, or converts)")


def mapping_fields(kind: str) -> list[str]:
    """Fields offered for mapping, in display order (optional ones included)."""
    _check_kind(kind)
    fields = list(REQUIRED_HEADERS[kind])
    if kind == "members":
        fields.insert(fields.index("Phone") + 1, "Parent/Guardian")
    else:
        fields.extend(OPTIONAL_HEADERS[kind])
    return fields


def validate_strict_headers(kind: str, headers: list[str]) -> dict[str, str]:
    """Check the exact header contract; return the identity mapping.

    Raises HeaderValidationError naming every missing required header.
    """
    _check_kind(kind)
    present = set(headers)
    missing = [h for h in REQUIRED_HEADERS[kind] if h not in present]
    if missing:
        raise HeaderValidationError(missing)
    mapping = {h: h for h in REQUIRED_HEADERS[kind]}
    for h in OPTIONAL_HEADERS[kind]:
        if h in present:
            mapping[h] = h
    return mapping


def auto_map_columns(kind: str, headers: list[str]) -> dict[str, str]:
    """Propose a source header for each mapping field.

    Pass one: the first header equal to the field, case-insensitively.
    Pass two: the first header containing the field's first word
    (lower-cased). Substring matching can pick the wrong column ("Phone"
    matches "Parent Phone"); users are expected to review the proposal.
    """
    mapping: dict[str, str] = {}
    for fld in mapping_fields(kind):
        target = fld.strip().lower()
        found = next((h for h in headers if h.strip().lower() == target), None)
        if found is None:
            first_word = fld.split(" ")[0].lower()
            found = next((h for h in headers if first_word in h.lower()), None)
        if found is not None:
            mapping[fld] = found
    return mapping


def apply_overrides(mapping: dict[str, str], overrides: dict[str, str]) -> dict[str, str]:
    """Apply user choices on top of a proposal; an empty choice unmaps."""
    merged = dict(mapping)
    for fld, header in overrides.items():
        if header:
            merged[fld] = header
        else:
            merged.pop(fld, None)
    return merged


def validate_mapping(kind: str, mapping: dict[str, str]) -> dict[str, str]:
    """Raise MappingValidationError naming every unmapped required field."""
    _check_kind(kind)
    missing = [f for f in REQUIRED_HEADERS[kind] if not mapping.get(f)]
    if missing:
        raise MappingValidationError(missing)
    return mapping


def extract_row(headers: list[str], row: list[str], mapping: dict[str, str]) -> RawRow:
    """Pull the mapped cells out of one CSV row.

    Unmapped fields, headers not in the CSV, and columns past the end of a
    short row all read as "".
    """
    index = {}
    for i, h in enumerate(headers):
        index.setdefault(h, i)
    raw: RawRow = {}
    for fld, header in mapping.items():
        i = index.get(header)
        raw[fld] = row[i] if i is not None and i < len(row) else ""
    return raw
