"""Move a person along the Visitor -> Convert -> Member pipeline.

Promotion currently performs only the exit half of the transition: the
source record is deleted and a success notice is produced, but no record is
created in the target collection. ``PromotionResult.created`` is therefore
always None. Callers that need the person to appear in the target
collection must add the record themselves.
"""

from __future__ import annotations

from dataclasses import dataclass

from churchhub.db import ChurchDB
from churchhub.errors import RecordNotFoundError

# (source collection, target collection) -> notice template
TRANSITIONS: dict[tuple[str, str], str] = {
    ("visitors", "converts"): "{name} has been recorded as a new convert!",
    ("visitors", "members"): "{name} has been promoted to member!",
    ("converts", "members"): "{name} has been promoted to member!",
}


@dataclass
class PromotionResult:
    source_kind: str
    target_kind: str
    record: object  # the deleted source record
    message: str
    created: object | None = None  # never set; see module docstring


def promote(db: ChurchDB, source_kind: str, record_id: str, target_kind: str) -> PromotionResult:
    """Promote one record and return the user-facing notice.

    Raises ValueError for a transition outside TRANSITIONS and
    RecordNotFoundError when the source record does not exist.
    """
    template = TRANSITIONS.get((source_kind, target_kind))
    if template is None:
        raise ValueError(f"Cannot promote {source_kind} to {target_kind}")

    record = db.get_record(source_kind, record_id)
    if record is None:
        raise RecordNotFoundError(f"No {source_kind[:-1]} with id {record_id}")

    db.delete_record(source_kind, record_id)
    return PromotionResult(
        source_kind=source_kind,
        target_kind=target_kind,
        record=record,
        message=template.format(name=record.full_name),
    )
