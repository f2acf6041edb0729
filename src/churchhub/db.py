"""SQLite database layer for churchhub.

ChurchDB wraps a SQLite database with:
- Schema initialization from schema.sql
- Per-collection CRUD for members, visitors, and converts
- Whole-collection replacement in one transaction (import writes)
- Notification preference and feed storage
- Import logging for audit trail

Rows are stored with snake_case columns. ``record_from_mapping`` is the one
place that turns a stored row (or an exported JSON object using the older
camelCase names) into a model dataclass.
"""

from __future__ import annotations

import json
import re
import sqlite3
import time
from dataclasses import asdict, fields
from datetime import datetime, timezone
from pathlib import Path

from churchhub.core.canonical import (
    canonicalize_birth_date,
    canonicalize_follow_up_status,
    canonicalize_service_group,
)
from churchhub.core.utils import parse_timestamp
from churchhub.errors import RecordNotFoundError, WriteError
from churchhub.importer.columns import HEADER_FIELDS
from churchhub.models import (
    ENTITY_KINDS,
    RECORD_TYPES,
    NotificationPrefs,
    Notice,
    now_iso,
    validate_member,
)

# Columns a patch may never touch.
_IMMUTABLE = {"id", "created_at"}


def _get_schema_sql() -> str:
    """Read the schema.sql file bundled with the package."""
    schema_path = Path(__file__).parent / "schema.sql"
    return schema_path.read_text()


def _check_kind(kind: str) -> None:
    if kind not in ENTITY_KINDS:
        raise ValueError(f"Unknown collection: {kind!r} (expected members, visitors, or converts)")


def _snake(key: str) -> str:
    """fullName -> full_name; snake_case keys pass through."""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()


def _columns_for(dc_type: type) -> list[str]:
    return [f.name for f in fields(dc_type)]


def field_values(kind: str, data: dict) -> dict:
    """Key user-supplied values by record field.

    Keys may be field names (full_name), camelCase (fullName), or CSV header
    labels (Full Name, any case). Unknown keys raise ValueError naming them.
    """
    _check_kind(kind)
    allowed = set(_columns_for(RECORD_TYPES[kind]))
    labels = {h.lower(): f for h, f in HEADER_FIELDS[kind].items()}
    values: dict = {}
    unknown = []
    for key, value in data.items():
        name = key.strip()
        col = labels.get(name.lower()) or _snake(name)
        if col in allowed:
            values[col] = value
        else:
            unknown.append(key)
    if unknown:
        raise ValueError(f"Unknown {kind} field(s): {', '.join(unknown)}")
    return values


def _interest_list(value) -> list[str]:
    """Stored JSON list, or a ;-separated string from a person."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(i) for i in value]
    text = str(value)
    if text.strip().startswith("["):
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            return [str(i) for i in parsed]
    return [s.strip() for s in text.split(";") if s.strip()]


def record_to_row(record) -> dict:
    """Convert a dataclass record to a dict suitable for INSERT."""
    row = asdict(record)
    if "areas_of_interest" in row:
        row["areas_of_interest"] = json.dumps(row["areas_of_interest"] or [])
    return row


def record_from_mapping(kind: str, data: dict):
    """Build a record from a stored row or an exported JSON object.

    Accepts snake_case or camelCase keys, maps NULLs to "", and runs the
    enum fields through the canonicalizers so foreign data can never store a
    value outside the vocabulary.
    """
    _check_kind(kind)
    dc_type = RECORD_TYPES[kind]
    allowed = set(_columns_for(dc_type))
    values: dict = {}
    for key, value in data.items():
        col = _snake(key)
        if col in allowed and col not in values:
            values[col] = value

    for col in allowed:
        if col == "areas_of_interest":
            continue
        if values.get(col) is None:
            values.pop(col, None)
        else:
            values[col] = str(values[col])

    if kind == "members":
        values["service_category"] = canonicalize_service_group(values.get("service_category"))
        values["date_of_birth"] = canonicalize_birth_date(values.get("date_of_birth")) or ""
    else:
        values["service_attended"] = canonicalize_service_group(values.get("service_attended"))
        values["follow_up_status"] = canonicalize_follow_up_status(
            values.get("follow_up_status"), kind
        )

    if kind == "visitors":
        values["areas_of_interest"] = _interest_list(values.get("areas_of_interest"))

    if not values.get("full_name"):
        values["full_name"] = "Unnamed"
    return dc_type(**values)


class ChurchDB:
    """SQLite-backed store for the three people collections."""

    def __init__(self, db_path: str = "churchhub.db"):
        self.db_path = db_path
        self.conn = sqlite3.connect(db_path)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self.conn.execute("PRAGMA foreign_keys=ON")

    def init_schema(self) -> None:
        """Create all tables from schema.sql (IF NOT EXISTS).

        Also migrates databases created before notification_prefs had a
        monthly_reports column.
        """
        self.conn.executescript(_get_schema_sql())
        self._migrate_monthly_reports_column()

    def _migrate_monthly_reports_column(self) -> None:
        cols = {r["name"] for r in self.query("PRAGMA table_info(notification_prefs)")}
        if "monthly_reports" in cols:
            return
        with self.conn:
            self.conn.execute(
                "ALTER TABLE notification_prefs ADD COLUMN monthly_reports INTEGER NOT NULL DEFAULT 0"
            )
            if "weekly_reports" in cols:
                self.conn.execute("UPDATE notification_prefs SET monthly_reports = weekly_reports")

    def query(self, sql: str, params: tuple = ()) -> list[dict]:
        """Execute a read-only SQL query and return results as list of dicts."""
        cursor = self.conn.execute(sql, params)
        columns = [desc[0] for desc in cursor.description] if cursor.description else []
        return [dict(zip(columns, row, strict=False)) for row in cursor.fetchall()]

    def summary(self) -> dict[str, int]:
        """Return row counts for the people collections and side tables."""
        result = {}
        for table in (*ENTITY_KINDS, "notification_feed", "import_log"):
            row = self.conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()
            result[table] = row[0]
        return result

    # --- People collections ---

    def list_records(self, kind: str) -> list:
        """All records of a collection, newest first."""
        _check_kind(kind)
        rows = self.query(f"SELECT * FROM {kind} ORDER BY created_at DESC, rowid")
        return [record_from_mapping(kind, r) for r in rows]

    def get_record(self, kind: str, record_id: str):
        """Return one record by id, or None if not found."""
        _check_kind(kind)
        rows = self.query(f"SELECT * FROM {kind} WHERE id = ?", (record_id,))
        return record_from_mapping(kind, rows[0]) if rows else None

    def count(self, kind: str) -> int:
        _check_kind(kind)
        return self.conn.execute(f"SELECT COUNT(*) FROM {kind}").fetchone()[0]

    def _insert_many(self, kind: str, records: list) -> None:
        if not records:
            return
        cols = _columns_for(RECORD_TYPES[kind])
        sql = (
            f"INSERT INTO {kind} ({', '.join(cols)}) "
            f"VALUES ({', '.join('?' for _ in cols)})"
        )
        self.conn.executemany(sql, [[record_to_row(r)[c] for c in cols] for r in records])

    def add_record(self, kind: str, record):
        """Insert one record. Raises WriteError on constraint failures."""
        _check_kind(kind)
        try:
            with self.conn:
                self._insert_many(kind, [record])
        except sqlite3.Error as e:
            raise WriteError(kind, e) from e
        return record

    def update_record(self, kind: str, record_id: str, patch: dict):
        """Apply a partial update and bump updated_at.

        Unknown keys raise ValueError; id and created_at cannot be patched.
        updated_at never falls behind created_at. Member edits follow the
        entry-form rules (GuardianRequiredError).
        """
        current = self.get_record(kind, record_id)
        if current is None:
            raise RecordNotFoundError(f"No {kind[:-1]} with id {record_id}")

        changes = field_values(kind, patch)
        locked = sorted(set(changes) & (_IMMUTABLE | {"updated_at"}))
        if locked:
            raise ValueError(f"Cannot update {kind} field(s): {', '.join(locked)}")

        merged = record_to_row(current)
        merged.update(changes)
        merged["updated_at"] = now_iso()
        created = parse_timestamp(merged["created_at"])
        updated = parse_timestamp(merged["updated_at"])
        if created and updated and updated < created:
            merged["updated_at"] = merged["created_at"]
        record = record_from_mapping(kind, merged)
        if kind == "members":
            validate_member(record)

        row = record_to_row(record)
        cols = [c for c in row if c != "id"]
        try:
            with self.conn:
                self.conn.execute(
                    f"UPDATE {kind} SET {', '.join(f'{c} = ?' for c in cols)} WHERE id = ?",
                    [row[c] for c in cols] + [record_id],
                )
        except sqlite3.Error as e:
            raise WriteError(kind, e) from e
        return record

    def delete_record(self, kind: str, record_id: str) -> bool:
        """Delete a record by id. Returns True if a row was deleted."""
        _check_kind(kind)
        with self.conn:
            cursor = self.conn.execute(f"DELETE FROM {kind} WHERE id = ?", (record_id,))
        return cursor.rowcount > 0

    def replace_collection(self, kind: str, records: list) -> int:
        """Delete the whole collection and insert ``records``.

        Both halves run in one transaction. On failure the transaction rolls
        back and WriteError is raised; nothing is retried.

        Returns the collection size after the write.
        """
        _check_kind(kind)
        try:
            with self.conn:
                self.conn.execute(f"DELETE FROM {kind}")
                self._insert_many(kind, records)
        except sqlite3.Error as e:
            raise WriteError(kind, e) from e
        return self.count(kind)

    # --- Import log ---

    def log_import(
        self, kind: str, mode: str, imported: int, total: int, started: float | None = None
    ) -> None:
        duration = time.monotonic() - started if started is not None else None
        with self.conn:
            self.conn.execute(
                "INSERT INTO import_log (kind, mode, imported_count, total_count, "
                "imported_at, duration_seconds) VALUES (?, ?, ?, ?, ?, ?)",
                (kind, mode, imported, total, datetime.now(timezone.utc).isoformat(), duration),
            )

    def import_history(self) -> list[dict]:
        """Return import history, newest first."""
        return self.query(
            "SELECT kind, mode, imported_count, total_count, imported_at, duration_seconds "
            "FROM import_log ORDER BY id DESC"
        )

    # --- Notification preferences ---

    def get_notification_prefs(self, user_id: str) -> NotificationPrefs | None:
        """Stored prefs for a user, or None when the user never saved any."""
        rows = self.query("SELECT * FROM notification_prefs WHERE user_id = ?", (user_id,))
        if not rows:
            return None
        row = rows[0]
        monthly = row.get("monthly_reports")
        if monthly is None:
            monthly = row.get("weekly_reports")
        return NotificationPrefs(
            visitor_alerts=bool(row["visitor_alerts"]),
            followup_reminders=bool(row["followup_reminders"]),
            monthly_reports=bool(monthly),
        )

    def save_notification_prefs(self, user_id: str, prefs: NotificationPrefs) -> None:
        """Upsert prefs; monthly_reports is mirrored into the legacy column."""
        with self.conn:
            self.conn.execute(
                "INSERT INTO notification_prefs (user_id, visitor_alerts, followup_reminders, "
                "monthly_reports, weekly_reports, updated_at) VALUES (?, ?, ?, ?, ?, ?) "
                "ON CONFLICT(user_id) DO UPDATE SET visitor_alerts = excluded.visitor_alerts, "
                "followup_reminders = excluded.followup_reminders, "
                "monthly_reports = excluded.monthly_reports, "
                "weekly_reports = excluded.weekly_reports, updated_at = excluded.updated_at",
                (
                    user_id,
                    int(prefs.visitor_alerts),
                    int(prefs.followup_reminders),
                    int(prefs.monthly_reports),
                    int(prefs.monthly_reports),
                    now_iso(),
                ),
            )

    # --- Notification feed ---

    def add_notice(self, notice: Notice) -> Notice:
        with self.conn:
            cursor = self.conn.execute(
                "INSERT INTO notification_feed (title, message, ts, read) VALUES (?, ?, ?, ?)",
                (notice.title, notice.message, notice.ts, int(notice.read)),
            )
        notice.id = str(cursor.lastrowid)
        return notice

    def list_notices(self, limit: int = 50) -> list[Notice]:
        """Most recent notices first."""
        rows = self.query(
            "SELECT id, title, message, ts, read FROM notification_feed "
            "ORDER BY ts DESC, id DESC LIMIT ?",
            (limit,),
        )
        return [
            Notice(
                id=str(r["id"]),
                title=r["title"],
                message=r["message"] or "",
                ts=r["ts"],
                read=bool(r["read"]),
            )
            for r in rows
        ]

    def mark_notices_read(self) -> int:
        with self.conn:
            cursor = self.conn.execute("UPDATE notification_feed SET read = 1 WHERE read = 0")
        return cursor.rowcount

    def close(self) -> None:
        self.conn.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
