"""MCP server for churchhub — Claude reads church data via query tools.

Run with: python -m churchhub.mcp.server
Configure env: CHURCHHUB_DB=/path/to/churchhub.db
"""

from __future__ import annotations

import os
import re
from dataclasses import asdict

from mcp.server.fastmcp import FastMCP

from churchhub.analysis.dashboard import dashboard_stats
from churchhub.analysis.filters import filter_converts, filter_members, filter_visitors
from churchhub.analysis.trends import get_growth_analytics
from churchhub.db import ChurchDB
from churchhub.errors import ChurchHubError
from churchhub.models import ENTITY_KINDS
from churchhub.notifications import DbFeedStore
from churchhub.promotion import promote

DB_PATH = os.environ.get("CHURCHHUB_DB", "churchhub.db")

mcp = FastMCP(
    "churchhub",
    instructions=(
        "Church dashboard data server with a SQLite database of members, visitors, "
        "and converts.\n\n"
        "Key capabilities:\n"
        "- run_sql / get_schema: Direct SQL access (read-only)\n"
        "- get_database_summary: Collection counts and import history\n"
        "- list_people / get_person: Search and filter a collection, or fetch one record\n"
        "- get_dashboard_stats: Members per service group and this month's newcomers\n"
        "- get_growth_analytics_tool: Monthly trend table and growth percentages\n"
        "- get_notification_feed: Recent in-app notifications\n"
        "- update_person: Change fields of one record, e.g. follow-up status\n"
        "- promote_record: Promote a visitor to convert/member or a convert to member\n\n"
        "Start with get_database_summary to see what is loaded. Note that promote_record "
        "removes the source record and does not create the target record."
    ),
)


def _get_db() -> ChurchDB:
    db = ChurchDB(DB_PATH)
    db.init_schema()
    return db


@mcp.tool()
def run_sql(query: str) -> list[dict] | str:
    """Execute a read-only SQL query against the churchhub database.

    Only SELECT statements are allowed. Returns results as a list of dicts.

    Key tables: members, visitors, converts, notification_prefs,
    notification_feed, import_log. Visitors store areas_of_interest as a
    JSON array string.
    """
    cleaned = query.strip().upper()
    if (
        not cleaned.startswith("SELECT")
        and not cleaned.startswith("PRAGMA")
        and not cleaned.startswith("WITH")
    ):
        return "Error: Only SELECT/WITH/PRAGMA statements are allowed."

    dangerous = re.search(
        r"\b(INSERT|UPDATE|DELETE|DROP|ALTER|CREATE|ATTACH|DETACH)\b",
        cleaned,
    )
    if dangerous:
        return f"Error: {dangerous.group()} statements are not allowed."

    db = _get_db()
    try:
        return db.query(query)
    except Exception as e:
        return f"SQL Error: {e}"
    finally:
        db.close()


@mcp.tool()
def get_schema() -> str:
    """Get the database schema (CREATE TABLE statements) for query planning."""
    db = _get_db()
    try:
        rows = db.query(
            "SELECT sql FROM sqlite_master WHERE type='table' AND sql IS NOT NULL ORDER BY name"
        )
        return "\n\n".join(r["sql"] for r in rows)
    finally:
        db.close()


@mcp.tool()
def get_database_summary() -> dict:
    """Get an overview of what data is loaded in the database."""
    db = _get_db()
    try:
        return {"table_counts": db.summary(), "import_history": db.import_history()}
    finally:
        db.close()


@mcp.tool()
def list_people(
    kind: str,
    query: str = "",
    status: str = "all",
    service: str = "all",
    has_contact: bool = False,
    limit: int = 100,
) -> list[dict] | str:
    """List members, visitors, or converts, newest first.

    Args:
        kind: members, visitors, or converts.
        query: Case-insensitive match on name, phone, email, or how heard.
        status: Follow-up status (visitors/converts), or "all".
        service: children, teens, youth, adults, or "all".
        has_contact: Visitors only; keep those with a phone or email.
        limit: Max records returned.
    """
    if kind not in ENTITY_KINDS:
        return f"Error: kind must be one of {', '.join(ENTITY_KINDS)}"
    db = _get_db()
    try:
        records = db.list_records(kind)
    finally:
        db.close()

    if kind == "members":
        rows = filter_members(records, query, service)
    elif kind == "visitors":
        rows = filter_visitors(records, query, status, service, has_contact)
    else:
        rows = filter_converts(records, query, status, service)
    return [asdict(r) for r in rows[:limit]]


@mcp.tool()
def get_person(kind: str, record_id: str) -> dict | str:
    """Fetch one member, visitor, or convert by id."""
    if kind not in ENTITY_KINDS:
        return f"Error: kind must be one of {', '.join(ENTITY_KINDS)}"
    db = _get_db()
    try:
        record = db.get_record(kind, record_id)
    finally:
        db.close()
    if record is None:
        return f"No {kind[:-1]} with id {record_id}"
    return asdict(record)


@mcp.tool()
def get_dashboard_stats() -> dict:
    """Member totals per service group, this month's new visitors and converts,
    and member growth versus the end of last month (None when not computable)."""
    db = _get_db()
    try:
        return dashboard_stats(db).to_dict()
    finally:
        db.close()


@mcp.tool()
def get_growth_analytics_tool(months: int = 6) -> dict:
    """Monthly trend for the trailing months (oldest first).

    Each month has cumulative members, converts and visitors within the month,
    and net member growth (None for the first month). Growth percentages
    compare the last two months and are None when the earlier count is zero.
    """
    db = _get_db()
    try:
        return get_growth_analytics(db, months=months)
    finally:
        db.close()


@mcp.tool()
def get_notification_feed(limit: int = 50) -> list[dict]:
    """Most recent notifications first."""
    db = _get_db()
    try:
        return [asdict(n) for n in DbFeedStore(db, limit=limit).load()]
    finally:
        db.close()


@mcp.tool()
def promote_record(source_kind: str, record_id: str, target_kind: str) -> dict:
    """Promote a visitor to convert or member, or a convert to member.

    The source record is deleted. No record is created in the target
    collection; add it separately if needed.
    """
    db = _get_db()
    try:
        result = promote(db, source_kind, record_id, target_kind)
    except (ChurchHubError, ValueError) as e:
        return {"promoted": False, "error": str(e)}
    finally:
        db.close()
    return {
        "promoted": True,
        "message": result.message,
        "removed": asdict(result.record),
        "created": None,
    }


@mcp.tool()
def update_person(kind: str, record_id: str, changes: dict[str, str]) -> dict | str:
    """Change fields of one member, visitor, or convert.

    Keys may be field names (follow_up_status), camelCase (followUpStatus), or
    CSV headers ("Follow-up Status"). Members in children or teens need a
    parent_guardian.
    """
    if kind not in ENTITY_KINDS:
        return f"Error: kind must be one of {', '.join(ENTITY_KINDS)}"
    db = _get_db()
    try:
        record = db.update_record(kind, record_id, changes)
    except (ChurchHubError, ValueError) as e:
        return f"Error: {e}"
    finally:
        db.close()
    return asdict(record)


def main():
    mcp.run()


if __name__ == "__main__":
    main()
