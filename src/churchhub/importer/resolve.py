"""Combine an imported batch with the current collection.

replace: the batch becomes the whole collection.
merge: existing records first, then the batch, keeping only the first
record seen for each composite key (email | phone | name).
"""

from __future__ import annotations

from churchhub.core.utils import deduplicate_by_key

IMPORT_MODES = ("replace", "merge")


def composite_key(record) -> str:
    """Dedup key: lower-cased email, phone, lower-cased full name.

    Members have no email, so their key starts with an empty segment.
    """
    email = (getattr(record, "email", "") or "").lower()
    phone = getattr(record, "phone_number", "") or ""
    name = (record.full_name or "").lower()
    return f"{email}|{phone}|{name}"


def merge_records(existing: list, batch: list) -> list:
    """Existing records keep their order and win ties; new keys follow."""
    return deduplicate_by_key(list(existing) + list(batch), composite_key)


def resolve(existing: list, batch: list, mode: str) -> list:
    """Return the collection contents after importing ``batch``."""
    if mode == "replace":
        return list(batch)
    if mode == "merge":
        return merge_records(existing, batch)
    raise ValueError(f"Unknown import mode: {mode!r} (expected replace or merge)")
