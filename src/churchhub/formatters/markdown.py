"""Markdown output formatter for church reports."""

from churchhub.analysis.trends import format_growth


class MarkdownWriter:
    """Builds markdown output incrementally."""

    def __init__(self):
        self._lines: list[str] = []

    def w(self, line: str = "") -> None:
        self._lines.append(line)

    def heading(self, text: str, level: int = 2) -> None:
        self.w(f"{'#' * level} {text}")
        self.w()

    def table(self, headers: list[str], rows: list[list]) -> None:
        self.w("| " + " | ".join(headers) + " |")
        self.w("|" + "|".join("---" for _ in headers) + "|")
        for row in rows:
            self.w("| " + " | ".join(_cell(c) for c in row) + " |")
        self.w()

    def separator(self) -> None:
        self.w("---")
        self.w()

    def text(self) -> str:
        return "\n".join(self._lines)

    def write_to_file(self, filepath: str) -> int:
        content = self.text()
        with open(filepath, "w") as f:
            f.write(content)
        return len(self._lines)


def _cell(value) -> str:
    if value is None:
        return "—"
    return str(value).replace("|", "\\|")


def format_growth_report(analytics: dict, generated: str, totals: dict[str, int]) -> str:
    """Render get_growth_analytics() output as a markdown report."""
    md = MarkdownWriter()
    md.heading("Church Growth Analytics", level=1)
    md.w(f"*Generated: {generated}*")
    md.w()

    md.heading("Totals", level=2)
    for kind, count in totals.items():
        md.w(f"- **{kind.title()}**: {count}")
    md.w()

    growth = analytics["growth"]
    md.heading("Growth This Month", level=2)
    md.table(
        ["Collection", "Change"],
        [
            ["Members", format_growth(growth["members"])],
            ["Converts", format_growth(growth["converts"])],
            ["Visitors", format_growth(growth["visitors"])],
        ],
    )

    md.separator()
    md.heading("Monthly Trend", level=2)
    md.table(
        ["Month", "Total Members", "New Converts", "Visitors", "Net Growth"],
        [
            [
                m["month"],
                m["members"],
                m["converts"],
                m["visitors"],
                None if m["net_growth"] is None else f"{m['net_growth']:+d}",
            ]
            for m in analytics["months"]
        ],
    )

    md.heading("Members by Service", level=2)
    breakdown = analytics["service_breakdown"]
    md.table(
        ["Service", "Members"],
        [[label, breakdown[key]] for key, label in _SERVICE_ROWS],
    )
    return md.text()


_SERVICE_ROWS = [
    ("children", "Victory Land (Children)"),
    ("teens", "Teens"),
    ("youth", "Youth"),
    ("adults", "Adults"),
]
