"""Data model for the three people collections and their side records.

Member, Visitor, and Convert are independent collections with overlapping
fields, not subclasses of one type. Each dataclass maps 1:1 to a SQLite
table; field names match the column names.

Rows read from a CSV never use these types directly: they travel as
``RawRow`` (header -> string) until the materializer builds a validated
record.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from churchhub.errors import GuardianRequiredError

SERVICE_GROUPS = ("children", "teens", "youth", "adults")
VISITOR_FOLLOW_UP = ("pending", "contacted", "converted", "member")
CONVERT_FOLLOW_UP = ("pending", "contacted", "discipled")
GUARDIAN_REQUIRED_GROUPS = ("children", "teens")

ENTITY_KINDS = ("members", "visitors", "converts")

# A CSV row after column mapping, keyed by canonical header name.
RawRow = dict[str, str]


def new_id() -> str:
    return str(uuid.uuid4())


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Member:
    """A church member."""

    full_name: str
    service_category: str = "adults"
    gender: str = ""
    date_of_birth: str = ""  # partial date --MM-DD, never a year
    phone_number: str = ""
    parent_guardian: str = ""  # required for children/teens at entry time
    care_group: str = ""
    notes: str = ""
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=now_iso)
    updated_at: str = ""

    def __post_init__(self):
        if not self.updated_at:
            self.updated_at = self.created_at


@dataclass
class Visitor:
    """A first-time visitor."""

    full_name: str
    service_attended: str = "adults"
    first_visit_date: str = ""  # ISO YYYY-MM-DD
    phone_number: str = ""
    email: str = ""
    how_heard_about_us: str = ""
    areas_of_interest: list[str] = field(default_factory=list)
    follow_up_status: str = "pending"  # pending, contacted, converted, member
    notes: str = ""
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=now_iso)
    updated_at: str = ""

    def __post_init__(self):
        if not self.updated_at:
            self.updated_at = self.created_at


@dataclass
class Convert:
    """A new convert."""

    full_name: str
    service_attended: str = "adults"
    date_of_conversion: str = ""  # ISO YYYY-MM-DD
    follow_up_status: str = "pending"  # pending, contacted, discipled
    phone_number: str = ""
    email: str = ""
    assigned_leader: str = ""
    notes: str = ""
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=now_iso)
    updated_at: str = ""

    def __post_init__(self):
        if not self.updated_at:
            self.updated_at = self.created_at


Record = Member | Visitor | Convert

RECORD_TYPES: dict[str, type] = {
    "members": Member,
    "visitors": Visitor,
    "converts": Convert,
}


def validate_member(member: Member) -> None:
    """Entry-form rules for a member. Raises GuardianRequiredError."""
    if member.service_category in GUARDIAN_REQUIRED_GROUPS and not member.parent_guardian.strip():
        raise GuardianRequiredError("Parent/Guardian is required for Children and Teens")


@dataclass
class NotificationPrefs:
    """Per-user notification switches."""

    visitor_alerts: bool = True
    followup_reminders: bool = True
    monthly_reports: bool = False  # stored as weekly_reports in legacy databases


@dataclass
class Notice:
    """One entry in the notification feed."""

    title: str
    message: str = ""
    ts: str = field(default_factory=now_iso)
    read: bool = False
    id: str = ""


@dataclass
class ImportResult:
    """Outcome of one import into a collection."""

    kind: str
    mode: str  # replace or merge
    imported: int  # rows materialized from the source
    total: int  # collection size after the write
    previous: int = 0  # collection size before the write
    records: list = field(default_factory=list)

    @property
    def skipped(self) -> int:
        """Materialized rows dropped as duplicates by merge."""
        if self.mode != "merge":
            return 0
        return self.imported - (self.total - self.previous)
