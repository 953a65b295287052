#!/usr/bin/env python3
import argparse
import json
import sqlite3
import sys
from datetime import datetime, timezone
from pathlib import Path

from db.applications_importer import (
    insert_applications,
    load_application_file,
    normalize_application,
)
from db.applications_reader import resolve_db_path
from db.schema import ensure_schema
from models.errors import ToolError


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Import job applications from YAML or JSON into the pipeline SQLite DB."
    )
    parser.add_argument(
        "--input",
        required=True,
        help="Path to a YAML/JSON list of applications.",
    )
    parser.add_argument(
        "--db",
        default=None,
        help="SQLite DB path (default: JOBPIPELINE_DB or data/pipeline/jobs.db).",
    )
    parser.add_argument(
        "--status",
        default="Interested",
        help="Status for entries without one (default: Interested).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only print normalized records; do not write to DB.",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    now = datetime.now(timezone.utc).isoformat()

    try:
        records = load_application_file(Path(args.input))
    except ToolError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return 1

    cleaned = []
    for record in records:
        item = normalize_application(record, now, default_status=args.status)
        if item is None:
            continue
        cleaned.append(item)
    skipped = len(records) - len(cleaned)

    if args.dry_run:
        print(json.dumps(cleaned, ensure_ascii=False, indent=2))
        return 0

    db_path = resolve_db_path(args.db)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    try:
        ensure_schema(conn)
        inserted, duplicates = insert_applications(conn, cleaned)
    except ToolError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return 1
    finally:
        conn.close()

    print(f"cleaned: {len(cleaned)} skipped: {skipped} inserted: {inserted} duplicates: {duplicates}")
    print(f"db: {db_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
