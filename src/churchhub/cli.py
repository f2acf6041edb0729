#!/usr/bin/env python3
"""CLI entry point for churchhub package.

Usage:
    python -m churchhub import <members|visitors|converts> <file.csv> [--mode merge] [--auto] [--map FIELD=HEADER]
    python -m churchhub import json <export.json> [--mode merge]
    python -m churchhub map-columns <kind> <file.csv>
    python -m churchhub add <kind> --set "Full Name=..." [--set ...]
    python -m churchhub update <kind> <id> --set "Follow-up Status=contacted" [--set ...]
    python -m churchhub delete <kind> <id>
    python -m churchhub list <kind> [--search text] [--status s] [--service s]
    python -m churchhub promote <source_kind> <id> <target_kind>
    python -m churchhub export [--format csv|json|analytics-csv|markdown] [--output path]
    python -m churchhub analytics [--months 6] [--csv]
    python -m churchhub dashboard
    python -m churchhub notifications [list|prefs|mark-read]
    python -m churchhub summary
    python -m churchhub init-config [--output churchhub.toml]
    python -m churchhub serve-mcp

Every command also takes --db (overrides [database] path) and --config.
"""

import argparse
import sys

from churchhub.errors import ChurchHubError

KINDS = ("members", "visitors", "converts")
DEFAULT_CONFIG = "churchhub.toml"


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="churchhub",
        description="Import, reconcile, and report on church members, visitors, and converts.",
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--db", default="", help="SQLite database path (default from config)")
    common.add_argument("--config", default="", help=f"Config file (default {DEFAULT_CONFIG})")
    sub = parser.add_subparsers(dest="command")

    # --- import ---
    import_parser = sub.add_parser("import", parents=[common], help="Import a CSV file or a JSON export")
    import_parser.add_argument("kind", choices=[*KINDS, "json"], help="Target collection, or json for a full export")
    import_parser.add_argument("path", help="CSV or JSON file")
    import_parser.add_argument("--mode", choices=["replace", "merge"], default=None,
                               help="replace discards the collection, merge dedupes into it")
    import_parser.add_argument("--auto", action="store_true",
                               help="Auto-map columns instead of requiring the exact headers")
    import_parser.add_argument("--map", action="append", default=[], metavar="FIELD=HEADER",
                               help="Map a field to a CSV column (implies --auto; empty HEADER unmaps)")
    import_parser.add_argument("--require-guardian", action="store_true", default=None,
                               help="Reject children/teens members without a Parent/Guardian")

    # --- map-columns ---
    map_parser = sub.add_parser("map-columns", parents=[common], help="Show the proposed column mapping for a CSV")
    map_parser.add_argument("kind", choices=KINDS)
    map_parser.add_argument("path", help="CSV file")

    # --- add ---
    add_parser = sub.add_parser("add", parents=[common], help="Add one record")
    add_parser.add_argument("kind", choices=KINDS)
    add_parser.add_argument("--set", action="append", default=[], metavar="FIELD=VALUE", dest="values",
                            help="Field value: a field name, camelCase name, or CSV header, e.g. \"Full Name=Jane\"")

    # --- update ---
    update_parser = sub.add_parser("update", parents=[common], help="Change fields of one record")
    update_parser.add_argument("kind", choices=KINDS)
    update_parser.add_argument("id", help="Record id")
    update_parser.add_argument("--set", action="append", default=[], metavar="FIELD=VALUE", dest="values",
                               help="Field value, same keys as add")

    # --- delete ---
    delete_parser = sub.add_parser("delete", parents=[common], help="Delete one record")
    delete_parser.add_argument("kind", choices=KINDS)
    delete_parser.add_argument("id", help="Record id")

    # --- list ---
    list_parser = sub.add_parser("list", parents=[common], help="List records in a collection")
    list_parser.add_argument("kind", choices=KINDS)
    list_parser.add_argument("--search", default="", help="Match name, phone, email, or how heard")
    list_parser.add_argument("--status", default="all", help="Follow-up status filter")
    list_parser.add_argument("--service", default="all", help="Service group filter")
    list_parser.add_argument("--has-contact", action="store_true", help="Visitors with a phone or email only")
    list_parser.add_argument("--limit", type=int, default=50, help="Max rows to show")

    # --- promote ---
    promote_parser = sub.add_parser("promote", parents=[common], help="Promote a visitor or convert (removes the source record only)")
    promote_parser.add_argument("source_kind", choices=["visitors", "converts"])
    promote_parser.add_argument("id", help="Record id")
    promote_parser.add_argument("target_kind", choices=["converts", "members"])

    # --- export ---
    export_parser = sub.add_parser("export", parents=[common], help="Export data as CSV, JSON, or markdown")
    export_parser.add_argument("--format", choices=["csv", "json", "analytics-csv", "markdown"], default="csv",
                               help="Output format")
    export_parser.add_argument("--output", default="", help="Output file (directory for csv)")

    # --- analytics ---
    analytics_parser = sub.add_parser("analytics", parents=[common], help="Show monthly growth analytics")
    analytics_parser.add_argument("--months", type=int, default=None, help="Trailing months to show")
    analytics_parser.add_argument("--csv", action="store_true", help="Print the trend as CSV")

    # --- dashboard ---
    sub.add_parser("dashboard", parents=[common], help="Show dashboard headline numbers")

    # --- notifications ---
    notif_parser = sub.add_parser("notifications", parents=[common], help="Notification feed and preferences")
    notif_parser.add_argument("--file", action="store_true",
                              help="Use the JSON feed file from config instead of the database")
    notif_sub = notif_parser.add_subparsers(dest="notif_action")
    notif_sub.add_parser("list", help="Show the feed (default)")
    prefs_parser = notif_sub.add_parser("prefs", help="Show or change preferences")
    prefs_parser.add_argument("--user", default="", help="User id (default from config)")
    prefs_parser.add_argument("--set", action="append", default=[], metavar="NAME=on|off", dest="changes",
                              help="visitor_alerts, followup_reminders, or monthly_reports")
    notif_sub.add_parser("mark-read", help="Mark every notice as read")

    # --- summary ---
    sub.add_parser("summary", parents=[common], help="Show database summary")

    # --- init-config ---
    config_parser = sub.add_parser("init-config", help="Generate churchhub.toml with defaults")
    config_parser.add_argument("--output", default=DEFAULT_CONFIG, help="Config file output path")

    # --- serve-mcp ---
    sub.add_parser("serve-mcp", parents=[common], help="Start MCP server for Claude integration")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    handlers = {
        "import": _handle_import,
        "map-columns": _handle_map_columns,
        "add": _handle_add,
        "update": _handle_update,
        "delete": _handle_delete,
        "list": _handle_list,
        "promote": _handle_promote,
        "export": _handle_export,
        "analytics": _handle_analytics,
        "dashboard": _handle_dashboard,
        "notifications": _handle_notifications,
        "summary": _handle_summary,
        "init-config": _handle_init_config,
        "serve-mcp": _handle_serve_mcp,
    }
    try:
        handlers[args.command](args)
    except (ChurchHubError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def _settings(args) -> dict:
    from churchhub.config import load_config

    # Only warn about a missing file when one was asked for explicitly.
    config = load_config(args.config or DEFAULT_CONFIG, quiet=not args.config)
    if args.db:
        config["database"]["path"] = args.db
    return config


def _open_db(config):
    from churchhub.db import ChurchDB

    db = ChurchDB(config["database"]["path"])
    db.init_schema()
    return db


def _parse_pairs(pairs: list[str], what: str) -> dict[str, str]:
    out = {}
    for pair in pairs:
        if "=" not in pair:
            raise ValueError(f"Expected {what}, got {pair!r}")
        key, value = pair.split("=", 1)
        out[key.strip()] = value.strip()
    return out


def _handle_import(args):
    from churchhub.importer.pipeline import import_csv_file, import_json

    config = _settings(args)
    mode = args.mode or config["import"]["default_mode"]
    require_guardian = (
        args.require_guardian if args.require_guardian is not None else config["import"]["require_guardian"]
    )

    with _open_db(config) as db:
        if args.kind == "json":
            results = import_json(db, args.path, mode=mode, verbose=True)
            for kind, result in results.items():
                print(f"Imported {result.imported} {kind} ({mode})")
            return

        overrides = _parse_pairs(args.map, "FIELD=HEADER") if args.map else None
        if args.auto and overrides is None:
            overrides = {}
        result = import_csv_file(
            db,
            args.kind,
            args.path,
            mode=mode,
            overrides=overrides,
            require_guardian=require_guardian,
            verbose=True,
        )

    if mode == "merge":
        print(f"Imported {result.imported} {args.kind} ({result.skipped} duplicates skipped)")
    else:
        print(f"Imported {result.imported} {args.kind}")


def _handle_map_columns(args):
    from churchhub.importer.columns import REQUIRED_HEADERS, auto_map_columns, mapping_fields
    from churchhub.importer.csv_parser import read_csv_file, require_rows

    parsed = require_rows(read_csv_file(args.path))
    mapping = auto_map_columns(args.kind, parsed.headers)
    required = set(REQUIRED_HEADERS[args.kind])

    print(f"\n{'Field':<22}  {'CSV Column':<30}")
    print(f"{'─'*22}  {'─'*30}")
    for field in mapping_fields(args.kind):
        column = mapping.get(field, "")
        marker = "*" if field in required else " "
        print(f"{field + marker:<22}  {column or '(unmapped)':<30}")

    missing = [f for f in REQUIRED_HEADERS[args.kind] if not mapping.get(f)]
    print(f"\n({len(parsed.rows)} rows, * = required)")
    if missing:
        print(f"Unmapped required fields: {', '.join(missing)}")
        print('Use: churchhub import ... --map "Field=CSV Column"')


def _handle_add(args):
    from churchhub.db import field_values, record_from_mapping
    from churchhub.models import validate_member
    from churchhub.notifications import DbFeedStore, DbPrefsStore, notify_visitor_added

    config = _settings(args)
    values = _parse_pairs(args.values, "FIELD=VALUE")
    record = record_from_mapping(args.kind, field_values(args.kind, values))
    if args.kind == "members":
        validate_member(record)

    with _open_db(config) as db:
        db.add_record(args.kind, record)
        print(f"Added {record.full_name} ({record.id})")
        if args.kind == "visitors":
            notes = config["notifications"]
            notice = notify_visitor_added(
                DbFeedStore(db, limit=notes["feed_limit"]),
                DbPrefsStore(db, notes["user"]),
                record.full_name,
                record.service_attended,
            )
            if notice:
                print(f"Notification: {notice.title}: {notice.message}")


def _handle_update(args):
    config = _settings(args)
    values = _parse_pairs(args.values, "FIELD=VALUE")
    if not values:
        raise ValueError("Nothing to update: pass at least one --set FIELD=VALUE")
    with _open_db(config) as db:
        record = db.update_record(args.kind, args.id, values)
    print(f"Updated {record.full_name} ({record.id})")


def _handle_delete(args):
    from churchhub.errors import RecordNotFoundError

    config = _settings(args)
    with _open_db(config) as db:
        if not db.delete_record(args.kind, args.id):
            raise RecordNotFoundError(f"No {args.kind[:-1]} with id {args.id}")
    print(f"Deleted {args.kind[:-1]} {args.id}")


def _handle_list(args):
    from churchhub.analysis.filters import filter_converts, filter_members, filter_visitors

    config = _settings(args)
    with _open_db(config) as db:
        records = db.list_records(args.kind)

    if args.kind == "members":
        rows = filter_members(records, args.search, args.service)
        cols = [("full_name", 28), ("service_category", 10), ("phone_number", 16), ("care_group", 16)]
    elif args.kind == "visitors":
        rows = filter_visitors(records, args.search, args.status, args.service, args.has_contact)
        cols = [("full_name", 28), ("first_visit_date", 12), ("follow_up_status", 10), ("phone_number", 16)]
    else:
        rows = filter_converts(records, args.search, args.status, args.service)
        cols = [("full_name", 28), ("date_of_conversion", 12), ("follow_up_status", 10), ("assigned_leader", 16)]

    if not rows:
        print("No records found.")
        return

    print(f"\n{'ID':<36}  " + "  ".join(f"{name:<{w}}" for name, w in cols))
    print(f"{'─'*36}  " + "  ".join("─" * w for _, w in cols))
    for r in rows[: args.limit]:
        print(f"{r.id:<36}  " + "  ".join(f"{str(getattr(r, name))[:w]:<{w}}" for name, w in cols))
    print(f"\n({len(rows)} {args.kind})")


def _handle_promote(args):
    from churchhub.promotion import promote

    config = _settings(args)
    with _open_db(config) as db:
        result = promote(db, args.source_kind, args.id, args.target_kind)
    print(result.message)


def _handle_export(args):
    from churchhub.export import (
        analytics_trend,
        export_all_csv,
        export_analytics_csv,
        export_analytics_markdown,
        export_json,
    )

    config = _settings(args)
    months = config["analytics"]["months"]
    with _open_db(config) as db:
        if args.format == "csv":
            for path in export_all_csv(db, args.output or "."):
                print(f"Exported to {path}")
            return
        if args.format == "json":
            path = export_json(db, args.output or "church-data-export.json")
        elif args.format == "analytics-csv":
            path = args.output or "church-analytics.csv"
            with open(path, "w", encoding="utf-8") as f:
                f.write(export_analytics_csv(analytics_trend(db, months=months)))
        else:
            path = export_analytics_markdown(db, args.output or "church-analytics.md", months=months)
    print(f"Exported to {path}")


def _handle_analytics(args):
    from churchhub.analysis.trends import format_growth, get_growth_analytics
    from churchhub.export import analytics_trend, export_analytics_csv

    config = _settings(args)
    months = args.months or config["analytics"]["months"]
    with _open_db(config) as db:
        if args.csv:
            print(export_analytics_csv(analytics_trend(db, months=months)))
            return
        analytics = get_growth_analytics(db, months=months)

    print(f"\n{'Month':<6} {'Members':>8} {'Converts':>9} {'Visitors':>9} {'Net':>6}")
    print(f"{'-'*6} {'-'*8} {'-'*9} {'-'*9} {'-'*6}")
    for m in analytics["months"]:
        net = "—" if m["net_growth"] is None else f"{m['net_growth']:+d}"
        print(f"{m['month']:<6} {m['members']:>8} {m['converts']:>9} {m['visitors']:>9} {net:>6}")

    growth = analytics["growth"]
    print("\nGrowth vs. last month:")
    for key in ("members", "converts", "visitors"):
        print(f"  {key:<10} {format_growth(growth[key]):>8}")


def _handle_dashboard(args):
    from churchhub.analysis.dashboard import dashboard_stats
    from churchhub.analysis.trends import format_growth

    config = _settings(args)
    with _open_db(config) as db:
        stats = dashboard_stats(db)

    print(f"\n{'='*50}")
    print("Dashboard")
    print(f"{'='*50}")
    print(f"  {'Total members':<28} {stats.total_members:>6}  ({format_growth(stats.member_growth)})")
    print(f"  {'Victory Land (children)':<28} {stats.children_count:>6}")
    print(f"  {'Teens':<28} {stats.teens_count:>6}")
    print(f"  {'Youth':<28} {stats.youth_count:>6}")
    print(f"  {'Adults':<28} {stats.adults_count:>6}")
    print(f"  {'New visitors this month':<28} {stats.new_visitors_this_month:>6}")
    print(f"  {'New converts this month':<28} {stats.new_converts_this_month:>6}")
    print(f"{'='*50}")


def _handle_notifications(args):
    from churchhub.notifications import DbFeedStore, DbPrefsStore, JsonFeedStore

    config = _settings(args)
    notes = config["notifications"]
    with _open_db(config) as db:
        if args.notif_action == "prefs":
            store = DbPrefsStore(db, args.user or notes["user"])
            if args.changes:
                flags = {}
                for key, value in _parse_pairs(args.changes, "NAME=on|off").items():
                    if value.lower() not in ("on", "off", "true", "false", "1", "0"):
                        raise ValueError(f"Expected on or off for {key}, got {value!r}")
                    flags[key] = value.lower() in ("on", "true", "1")
                prefs = store.update(**flags)
            else:
                prefs = store.load()
            for key, value in vars(prefs).items():
                print(f"  {key:<20} {'on' if value else 'off'}")
            return

        if args.notif_action == "mark-read":
            if args.file:
                feed = JsonFeedStore(notes["feed_path"], limit=notes["feed_limit"])
                notices = feed.load()
                for n in notices:
                    n.read = True
                feed.save(notices)
                count = len(notices)
            else:
                count = db.mark_notices_read()
            print(f"Marked {count} notices as read")
            return

        if args.file:
            feed = JsonFeedStore(notes["feed_path"], limit=notes["feed_limit"])
        else:
            feed = DbFeedStore(db, limit=notes["feed_limit"])
        notices = feed.load()

    if not notices:
        print("No notifications.")
        return
    for n in notices:
        flag = " " if n.read else "*"
        print(f"{flag} {n.ts[:19]}  {n.title}: {n.message}")
    unread = sum(1 for n in notices if not n.read)
    print(f"\n({len(notices)} notices, {unread} unread)")


def _handle_summary(args):
    config = _settings(args)
    with _open_db(config) as db:
        _print_db_summary(db)


def _print_db_summary(db):
    counts = db.summary()
    history = db.import_history()

    print(f"\n{'='*50}")
    print("Database Summary")
    print(f"{'='*50}")
    for table, count in counts.items():
        print(f"  {table:<25} {count:>6}")
    print(f"{'='*50}")

    if history:
        print("\nImport History:")
        for h in history[:10]:
            print(
                f"  {h['kind']:<10} {h['mode']:<8} {h['imported_count']:>5} rows "
                f"-> {h['total_count']:>5} total  {h['imported_at'][:19]}"
            )


def _handle_init_config(args):
    from churchhub.config import generate_config

    path = generate_config(config_path=args.output)
    print(f"Config generated at {path}")


def _handle_serve_mcp(args):
    import os

    config = _settings(args)
    os.environ["CHURCHHUB_DB"] = config["database"]["path"]

    from churchhub.mcp.server import mcp

    mcp.run()


if __name__ == "__main__":
    main()
