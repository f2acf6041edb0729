"""CSV reading and writing for roster spreadsheets.

The reader splits on normalized newlines and walks each line with a
quote-aware state machine. It performs no column-count validation: short
and long rows come through as-is, and later stages tolerate missing cells.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from churchhub.errors import CsvParseError


@dataclass
class ParsedCsv:
    """Header row plus data rows, all cells as strings."""

    headers: list[str] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.headers


def parse_line(line: str) -> list[str]:
    """Split one CSV line into fields.

    A double quote toggles quoted mode, except that "" inside quoted mode
    emits one literal quote. Commas separate fields only outside quotes.
    """
    out: list[str] = []
    cur: list[str] = []
    in_quotes = False
    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        if ch == '"':
            if in_quotes and i + 1 < n and line[i + 1] == '"':
                cur.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            out.append("".join(cur))
            cur = []
        else:
            cur.append(ch)
        i += 1
    out.append("".join(cur))
    return out


def parse_csv(text: str) -> ParsedCsv:
    """Parse CSV text into headers and rows.

    CRLF and CR collapse to LF and blank lines are skipped. The first line is
    the header row (cells trimmed); an input with no lines yields an empty
    ParsedCsv, which callers must treat as fatal.
    """
    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    lines = [ln for ln in normalized.split("\n") if ln]
    if not lines:
        return ParsedCsv()
    headers = [h.strip() for h in parse_line(lines[0])]
    rows = [parse_line(ln) for ln in lines[1:]]
    return ParsedCsv(headers=headers, rows=rows)


def require_rows(parsed: ParsedCsv) -> ParsedCsv:
    """Raise CsvParseError unless the CSV has a header row."""
    if parsed.empty:
        raise CsvParseError("Empty CSV")
    return parsed


def read_csv_file(path: str | Path) -> ParsedCsv:
    """Read a UTF-8 CSV file (BOM tolerated) and parse it."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"CSV file not found: {path}")
    return parse_csv(path.read_text(encoding="utf-8-sig"))


def _quote(value) -> str:
    s = "" if value is None else str(value)
    return '"' + s.replace('"', '""') + '"'


def to_csv(headers: list[str], rows: list[list]) -> str:
    """Write CSV text with every field quoted, lines joined by LF."""
    lines = [",".join(_quote(h) for h in headers)]
    lines.extend(",".join(_quote(v) for v in row) for row in rows)
    return "\n".join(lines)
