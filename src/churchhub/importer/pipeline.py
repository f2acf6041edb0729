"""Run a CSV or JSON import against the store.

parse -> header/mapping validation -> materialize -> merge/replace -> write.

Every validation failure is raised before the write is issued, so a failed
import never alters the collection. The write itself is one
``ChurchDB.replace_collection`` call in both modes (merge computes the full
merged collection first).
"""

from __future__ import annotations

import json
import sys
import time
from datetime import datetime
from pathlib import Path

from churchhub.db import ChurchDB, record_from_mapping
from churchhub.importer.columns import (
    apply_overrides,
    auto_map_columns,
    extract_row,
    validate_mapping,
    validate_strict_headers,
)
from churchhub.importer.csv_parser import ParsedCsv, parse_csv, require_rows
from churchhub.importer.materialize import materialize_rows
from churchhub.importer.resolve import IMPORT_MODES, resolve
from churchhub.models import ENTITY_KINDS, ImportResult, new_id


def _check_args(kind: str, mode: str) -> None:
    if kind not in ENTITY_KINDS:
        raise ValueError(f"Unknown collection: {kind!r} (expected members, visitors, or converts)")
    if mode not in IMPORT_MODES:
        raise ValueError(f"Unknown import mode: {mode!r} (expected replace or merge)")


def propose_mapping(kind: str, text: str) -> tuple[ParsedCsv, dict[str, str]]:
    """Parse the CSV and return it with the auto-mapped columns.

    First step of the interactive flow; the caller shows the proposal,
    collects overrides, and passes the final mapping to import_csv_text.
    """
    parsed = require_rows(parse_csv(text))
    return parsed, auto_map_columns(kind, parsed.headers)


def import_parsed(
    db: ChurchDB,
    kind: str,
    parsed: ParsedCsv,
    mode: str = "replace",
    mapping: dict[str, str] | None = None,
    require_guardian: bool = False,
    now: datetime | None = None,
    verbose: bool = False,
) -> ImportResult:
    """Import an already-parsed CSV.

    Args:
        db: Target store.
        kind: members, visitors, or converts.
        parsed: Output of parse_csv.
        mode: "replace" discards the collection; "merge" dedupes against it.
        mapping: Field -> source header. None means strict header mode.
        require_guardian: Reject children/teens members without a guardian.
        now: Timestamp for rows without Created At / Updated At.
        verbose: Print a stage summary.
    """
    _check_args(kind, mode)
    start = time.monotonic()
    require_rows(parsed)

    if mapping is None:
        mapping = validate_strict_headers(kind, parsed.headers)
    else:
        mapping = validate_mapping(kind, mapping)

    raws = [extract_row(parsed.headers, row, mapping) for row in parsed.rows]
    batch = materialize_rows(kind, raws, now=now, require_guardian=require_guardian)

    existing = db.list_records(kind) if mode == "merge" else []
    previous = len(existing) if mode == "merge" else db.count(kind)
    final = resolve(existing, batch, mode)
    total = db.replace_collection(kind, final)
    db.log_import(kind, mode, len(batch), total, started=start)

    result = ImportResult(
        kind=kind,
        mode=mode,
        imported=len(batch),
        total=total,
        previous=previous,
        records=final,
    )
    if verbose:
        print(f"\n--- Imported {kind} ({mode}) ---")
        print(f"  {'CSV rows':<20} {len(parsed.rows):>6}")
        print(f"  {'Materialized':<20} {len(batch):>6}")
        if mode == "merge":
            print(f"  {'Duplicates skipped':<20} {result.skipped:>6}")
        print(f"  {'Collection size':<20} {total:>6}")
    return result


def import_csv_text(
    db: ChurchDB,
    kind: str,
    text: str,
    mode: str = "replace",
    mapping: dict[str, str] | None = None,
    overrides: dict[str, str] | None = None,
    require_guardian: bool = False,
    now: datetime | None = None,
    verbose: bool = False,
) -> ImportResult:
    """Parse CSV text and import it.

    ``mapping=None`` with no ``overrides`` is strict mode. Passing
    ``overrides`` alone starts from the auto-mapped proposal.
    """
    parsed = require_rows(parse_csv(text))
    if mapping is None and overrides is not None:
        mapping = auto_map_columns(kind, parsed.headers)
    if overrides:
        mapping = apply_overrides(mapping or {}, overrides)
    return import_parsed(
        db,
        kind,
        parsed,
        mode=mode,
        mapping=mapping,
        require_guardian=require_guardian,
        now=now,
        verbose=verbose,
    )


def import_csv_file(db: ChurchDB, kind: str, path: str | Path, **kwargs) -> ImportResult:
    """Read a UTF-8 CSV file and import it (see import_csv_text)."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"CSV file not found: {path}")
    return import_csv_text(db, kind, path.read_text(encoding="utf-8-sig"), **kwargs)


def _unique_ids(records: list) -> list:
    """Re-mint ids that collide with an earlier record in the list."""
    seen: set[str] = set()
    for r in records:
        if r.id in seen:
            r.id = new_id()
        seen.add(r.id)
    return records


def import_json(
    db: ChurchDB, path: str | Path, mode: str = "replace", verbose: bool = False
) -> dict[str, ImportResult]:
    """Load a JSON export ({"exportedAt", "members", "visitors", "converts"}).

    Each collection present in the file is replaced or merged; absent
    collections are left alone. Ids from the file are kept, since the export
    is this system's own snapshot rather than foreign data.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"JSON export not found: {path}")
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError("JSON export must be an object with members/visitors/converts lists")

    for kind in ENTITY_KINDS:
        items = payload.get(kind)
        if items is None:
            continue
        _check_args(kind, mode)
        if not isinstance(items, list):
            raise ValueError(f"JSON export: {kind} must be a list of objects")
        for i, item in enumerate(items):
            if not isinstance(item, dict):
                raise ValueError(f"JSON export: {kind} entry {i + 1} is not an object")

    results: dict[str, ImportResult] = {}
    for kind in ENTITY_KINDS:
        items = payload.get(kind)
        if items is None:
            continue
        start = time.monotonic()
        batch = [record_from_mapping(kind, item) for item in items]
        existing = db.list_records(kind) if mode == "merge" else []
        previous = len(existing) if mode == "merge" else db.count(kind)
        final = _unique_ids(resolve(existing, batch, mode))
        total = db.replace_collection(kind, final)
        db.log_import(kind, mode, len(batch), total, started=start)
        results[kind] = ImportResult(
            kind=kind, mode=mode, imported=len(batch), total=total, previous=previous, records=final
        )
        if verbose:
            print(f"  {kind:<20} {len(batch):>6} imported, {total:>6} total")

    if not results:
        print(f"Warning: {path} holds no members, visitors, or converts", file=sys.stderr)
    return results
