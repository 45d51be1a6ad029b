"""CLI entry point for the local Statuz store: migrations and chat imports."""

from __future__ import annotations
import argparse
import json
import logging
import os
import sqlite3
import sys
from typing import Any

from config import settings
from db import connect, open_database
from db.errors import StoreError
from db.ingest import import_chat_file
from db.migration_ledger import MigrationLedger
from db.migration_manager import MigrationRunner


def _emit(payload: dict[str, Any], as_json: bool, lines: list[str]) -> None:
    if as_json:
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        for line in lines:
            print(line)


def cmd_migrate(args: argparse.Namespace) -> int:
    conn = connect(args.db)
    try:
        runner = MigrationRunner(conn)
        if args.dry_run:
            units = runner.pending(args.migrations_dir)
            verb = "Pending"
        else:
            units = runner.run(args.migrations_dir)
            verb = "Applied"
    except StoreError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    finally:
        conn.close()
    payload = {
        "dry_run": bool(args.dry_run),
        "migrations": [{"id": u.id, "name": u.name} for u in units],
    }
    lines = [f"{verb} migrations: {len(units)}"]
    lines += [f"  {u.id:>4}  {u.name}" for u in units]
    _emit(payload, args.json, lines)
    return 0


def cmd_ledger(args: argparse.Namespace) -> int:
    conn = connect(args.db)
    try:
        ledger = MigrationLedger(conn)
        ledger.ensure_table()
        entries = ledger.entries()
    finally:
        conn.close()
    payload = {"applied": [{"id": e.id, "name": e.name, "applied_at": e.applied_at} for e in entries]}
    lines = [f"Applied migrations: {len(entries)}"]
    lines += [f"  {e.id:>4}  {e.name}  (applied_at={e.applied_at})" for e in entries]
    _emit(payload, args.json, lines)
    return 0


def cmd_import_chat(args: argparse.Namespace) -> int:
    if not os.path.isfile(args.file):
        print(f"Chat export not found: {args.file}", file=sys.stderr)
        return 2
    try:
        conn = open_database(args.db)
    except StoreError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    try:
        report = import_chat_file(conn, args.group, args.file, group_name=args.group_name)
    except UnicodeDecodeError as exc:
        print(f"Chat export is not UTF-8 text: {args.file} ({exc.reason})", file=sys.stderr)
        return 1
    except sqlite3.Error as exc:
        print(f"Chat import failed: {exc}", file=sys.stderr)
        return 1
    finally:
        conn.close()
    lines = [
        "Chat Import Summary:",
        f"  Group: {report.group_id}",
        f"  Parsed: {report.parsed}",
        f"  Inserted: {report.inserted}",
        f"  Duplicates: {report.duplicates}",
    ]
    if report.timestamp_fallbacks:
        lines.append(f"  Unreadable timestamps: {report.timestamp_fallbacks}")
    _emit(report.to_dict(), args.json, lines)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="statuz")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    def add_common(sp: argparse.ArgumentParser) -> None:
        sp.add_argument(
            "--db",
            default=None,
            help=f"SQLite database path (default: {settings.db_path()})",
        )
        sp.add_argument("--json", action="store_true", help="Emit JSON instead of text")

    migrate = sub.add_parser("migrate", help="Apply pending schema migrations")
    add_common(migrate)
    migrate.add_argument(
        "--migrations-dir", default=None, help="Directory of NNN_name.sql migration files"
    )
    migrate.add_argument("--dry-run", action="store_true", help="List pending migrations only")
    migrate.set_defaults(func=cmd_migrate)

    ledger = sub.add_parser("ledger", help="List applied migrations")
    add_common(ledger)
    ledger.set_defaults(func=cmd_ledger)

    imp = sub.add_parser("import-chat", help="Import an exported WhatsApp chat into a group")
    add_common(imp)
    imp.add_argument("--group", required=True, help="Group ID")
    imp.add_argument("--file", required=True, help="Path to the exported chat .txt")
    imp.add_argument("--group-name", required=False, help="Display name for a new group")
    imp.set_defaults(func=cmd_import_chat)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
