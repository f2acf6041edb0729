"""Export church data as CSV, JSON, or a markdown analytics report.

CSV exports use the same headers the importer expects, so an exported file
can be edited in a spreadsheet and imported back.
"""

from __future__ import annotations

import json
import re
from datetime import date
from pathlib import Path

from churchhub.analysis.trends import MonthlyPoint, get_growth_analytics, monthly_trend
from churchhub.core.canonical import birth_date_mmdd, service_label
from churchhub.db import ChurchDB
from churchhub.formatters.markdown import format_growth_report
from churchhub.importer.csv_parser import to_csv
from churchhub.models import ENTITY_KINDS, now_iso

EXPORT_HEADERS: dict[str, list[str]] = {
    "members": [
        "Full Name",
        "Gender",
        "Date of Birth",
        "Phone",
        "Parent/Guardian",
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


def _member_row(m) -> list[str]:
    return [
        m.full_name,
        m.gender,
        birth_date_mmdd(m.date_of_birth),
        m.phone_number,
        m.parent_guardian,
        service_label(m.service_category),
        m.care_group,
        m.created_at,
        m.updated_at,
    ]


def _visitor_row(v) -> list[str]:
    return [
        v.full_name,
        v.phone_number,
        v.email,
        service_label(v.service_attended),
        v.first_visit_date,
        v.how_heard_about_us,
        "; ".join(v.areas_of_interest),
        v.follow_up_status,
        v.created_at,
        v.updated_at,
    ]


def _convert_row(c) -> list[str]:
    return [
        c.full_name,
        c.phone_number,
        c.email,
        service_label(c.service_attended),
        c.date_of_conversion,
        c.follow_up_status,
        c.assigned_leader,
        c.created_at,
        c.updated_at,
    ]


_ROW_BUILDERS = {
    "members": _member_row,
    "visitors": _visitor_row,
    "converts": _convert_row,
}


def export_collection_csv(db: ChurchDB, kind: str) -> str:
    """One collection as CSV text, every field quoted."""
    if kind not in _ROW_BUILDERS:
        raise ValueError(f"Unknown collection: {kind!r} (expected members, visitors, or converts)")
    build = _ROW_BUILDERS[kind]
    return to_csv(EXPORT_HEADERS[kind], [build(r) for r in db.list_records(kind)])


def export_all_csv(db: ChurchDB, output_dir: str = ".", today: date | None = None) -> list[str]:
    """Write church-<kind>-YYYY-MM-DD.csv for every collection.

    Returns the written paths.
    """
    stamp = (today or date.today()).isoformat()
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    paths = []
    for kind in ENTITY_KINDS:
        path = out / f"church-{kind}-{stamp}.csv"
        path.write_text(export_collection_csv(db, kind), encoding="utf-8")
        paths.append(str(path))
    return paths


def _camel(key: str) -> str:
    return re.sub(r"_([a-z])", lambda m: m.group(1).upper(), key)


def _record_json(record) -> dict:
    return {_camel(k): v for k, v in vars(record).items()}


def export_json(db: ChurchDB, output_path: str = "church-data-export.json") -> str:
    """Full snapshot of all collections, camelCase keys, pretty printed.

    The file loads back with ``import_json``. Returns the output path.
    """
    payload = {"exportedAt": now_iso()}
    for kind in ENTITY_KINDS:
        payload[kind] = [_record_json(r) for r in db.list_records(kind)]
    Path(output_path).write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return output_path


def export_analytics_csv(trend: list[MonthlyPoint]) -> str:
    """The monthly trend as plain comma-joined CSV (no quoting)."""
    lines = ["Month,Total Members,New Converts,Visitors"]
    lines.extend(f"{p.month},{p.members},{p.converts},{p.visitors}" for p in trend)
    return "\n".join(lines)


def analytics_trend(db: ChurchDB, today: date | None = None, months: int = 6) -> list[MonthlyPoint]:
    return monthly_trend(
        db.list_records("members"),
        db.list_records("visitors"),
        db.list_records("converts"),
        today=today,
        months=months,
    )


def export_analytics_markdown(
    db: ChurchDB,
    output_path: str = "church-analytics.md",
    today: date | None = None,
    months: int = 6,
) -> str:
    """Write the growth analytics report as markdown. Returns the output path."""
    analytics = get_growth_analytics(db, today=today, months=months)
    totals = {kind: db.count(kind) for kind in ENTITY_KINDS}
    generated = (today or date.today()).isoformat()
    Path(output_path).write_text(format_growth_report(analytics, generated, totals), encoding="utf-8")
    return output_path
