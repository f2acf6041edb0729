"""Monthly growth trends across members, converts, and visitors."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timezone

from churchhub.core.utils import parse_timestamp
from churchhub.db import ChurchDB


@dataclass
class MonthWindow:
    """One calendar month, from its first to its last moment."""

    label: str  # "Jan", "Feb", ...
    start: datetime
    end: datetime


@dataclass
class MonthlyPoint:
    """Counts for one month of the trend table."""

    month: str
    members: int  # cumulative: members created on or before month end
    converts: int  # converted within the month
    visitors: int  # first visit within the month


def month_windows(today: date | None = None, months: int = 6) -> list[MonthWindow]:
    """The last ``months`` calendar months, oldest first, ending with today's.

    Windows are in UTC: start is 00:00 on the 1st, end is the last
    microsecond of the month's last day.
    """
    today = today or date.today()
    windows = []
    for back in range(months - 1, -1, -1):
        idx = today.year * 12 + (today.month - 1) - back
        year, month = divmod(idx, 12)
        month += 1
        last_day = calendar.monthrange(year, month)[1]
        start = datetime.combine(date(year, month, 1), time.min, tzinfo=timezone.utc)
        end = datetime.combine(date(year, month, last_day), time.max, tzinfo=timezone.utc)
        windows.append(MonthWindow(label=calendar.month_abbr[month], start=start, end=end))
    return windows


def _in_window(value: str, window: MonthWindow) -> bool:
    dt = parse_timestamp(value)
    return dt is not None and window.start <= dt <= window.end


def _created_by(value: str, end: datetime) -> bool:
    # A missing created_at counts as the epoch; an unparseable one never matches.
    if not value:
        return True
    dt = parse_timestamp(value)
    return dt is not None and dt <= end


def monthly_trend(
    members: list,
    visitors: list,
    converts: list,
    today: date | None = None,
    months: int = 6,
) -> list[MonthlyPoint]:
    """Build the trailing trend table from the three collections."""
    points = []
    for w in month_windows(today, months):
        points.append(
            MonthlyPoint(
                month=w.label,
                members=sum(1 for m in members if _created_by(m.created_at, w.end)),
                converts=sum(1 for c in converts if _in_window(c.date_of_conversion, w)),
                visitors=sum(1 for v in visitors if _in_window(v.first_visit_date, w)),
            )
        )
    return points


def growth_pct(curr: int, prev: int) -> float | None:
    """Percent change from prev to curr, one decimal.

    None when prev is zero or negative; there is no meaningful percentage
    to report in that case.
    """
    if prev is None or prev <= 0:
        return None
    return round((curr - prev) / prev * 100, 1)


def format_growth(pct: float | None) -> str:
    """Render a growth percentage: +12.5%, -3.0%, or an em dash when unavailable."""
    if pct is None:
        return "—"
    sign = "+" if pct >= 0 else ""
    return f"{sign}{pct:.1f}%"


def net_growth_column(trend: list[MonthlyPoint]) -> list[int | None]:
    """Month-over-month change in total members; None for the first month."""
    return [
        None if i == 0 else trend[i].members - trend[i - 1].members
        for i in range(len(trend))
    ]


def growth_summary(trend: list[MonthlyPoint]) -> dict[str, float | None]:
    """Growth of the last month over the one before, per collection."""
    if not trend:
        return {"members": None, "converts": None, "visitors": None}
    curr = trend[-1]
    prev = trend[-2] if len(trend) > 1 else curr
    return {
        "members": growth_pct(curr.members, prev.members),
        "converts": growth_pct(curr.converts, prev.converts),
        "visitors": growth_pct(curr.visitors, prev.visitors),
    }


def service_breakdown(members: list) -> dict[str, int]:
    """Member count per service group."""
    counts = {"children": 0, "teens": 0, "youth": 0, "adults": 0}
    for m in members:
        key = (m.service_category or "").lower()
        if key in counts:
            counts[key] += 1
    return counts


def get_growth_analytics(db: ChurchDB, today: date | None = None, months: int = 6) -> dict:
    """Trend table, growth percentages, and net growth for the store."""
    members = db.list_records("members")
    visitors = db.list_records("visitors")
    converts = db.list_records("converts")
    trend = monthly_trend(members, visitors, converts, today=today, months=months)
    net = net_growth_column(trend)
    return {
        "months": [
            {
                "month": p.month,
                "members": p.members,
                "converts": p.converts,
                "visitors": p.visitors,
                "net_growth": n,
            }
            for p, n in zip(trend, net, strict=True)
        ],
        "growth": growth_summary(trend),
        "service_breakdown": service_breakdown(members),
    }
