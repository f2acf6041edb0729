"""Headline numbers for the dashboard."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime, time, timezone

from churchhub.analysis.trends import growth_pct, service_breakdown
from churchhub.core.utils import parse_timestamp
from churchhub.db import ChurchDB


@dataclass
class DashboardStats:
    total_members: int
    children_count: int
    teens_count: int
    youth_count: int
    adults_count: int
    new_visitors_this_month: int
    new_converts_this_month: int
    member_growth: float | None  # vs. total at the end of last month

    def to_dict(self) -> dict:
        return asdict(self)


def _on_or_after(value: str, start: datetime) -> bool:
    dt = parse_timestamp(value)
    return dt is not None and dt >= start


def dashboard_stats(db: ChurchDB, today: date | None = None) -> DashboardStats:
    """Member totals per service group and this month's newcomers."""
    today = today or date.today()
    month_start = datetime.combine(today.replace(day=1), time.min, tzinfo=timezone.utc)

    members = db.list_records("members")
    visitors = db.list_records("visitors")
    converts = db.list_records("converts")
    groups = service_breakdown(members)

    members_prev = 0
    for m in members:
        created = parse_timestamp(m.created_at)
        if created is None or created < month_start:
            members_prev += 1

    return DashboardStats(
        total_members=len(members),
        children_count=groups["children"],
        teens_count=groups["teens"],
        youth_count=groups["youth"],
        adults_count=groups["adults"],
        new_visitors_this_month=sum(
            1 for v in visitors if _on_or_after(v.first_visit_date, month_start)
        ),
        new_converts_this_month=sum(
            1 for c in converts if _on_or_after(c.date_of_conversion, month_start)
        ),
        member_growth=growth_pct(len(members), members_prev),
    )
