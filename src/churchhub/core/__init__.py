"""Core utilities for canonicalization and date handling."""

from churchhub.core.canonical import (
    birth_date_mmdd,
    canonicalize_birth_date,
    canonicalize_follow_up_status,
    canonicalize_service_group,
    service_label,
)
from churchhub.core.utils import deduplicate_by_key, normalize_date_to_iso, parse_timestamp
