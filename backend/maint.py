"""
Maintenance CLI for log search indexes.

Commands:
    load <type> <file>     Load a full generation and switch the alias to it
    export <type>          Dump every document behind the alias (NDJSON or CSV)
    templates              Install the index templates of every log type
    cleanup                Delete stale generations no alias points at
    expire                 Delete daily indexes past their retention window
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import timedelta
from typing import List, Optional

from dotenv import load_dotenv

from logsearch.core import LogSearchError, config, create_client, setup_logging
from logsearch.data import ingest_documents
from logsearch.index import (
    IndexLoader,
    ScrollConsumer,
    cleanup_unaliased_indexes,
    expire_daily_indexes,
    hits_to_frame,
)
from logsearch.logtypes import LOG_TYPES, get_log_type, put_templates

load_dotenv()

logger = logging.getLogger("backend.maint")


def cmd_load(client, args: argparse.Namespace) -> int:
    log_type = get_log_type(args.type)
    errors: List[BaseException] = []

    def on_done(error: Optional[BaseException]) -> None:
        if error is not None:
            errors.append(error)

    with IndexLoader(client, log_type.alias, log_type.mappings()) as loader:
        for item in ingest_documents(args.file, format=args.format):
            loader.push(item.document, item.doc_id, callback=on_done)

    summary = loader.summary
    for error in errors[:10]:
        logger.warning("Indexing failure: %s", error)
    print(summary.model_dump_json(indent=2))
    return 0 if summary.failed == 0 else 1


def cmd_export(client, args: argparse.Namespace) -> int:
    log_type = get_log_type(args.type)
    out = open(args.output, "w", encoding="utf-8") if args.output else sys.stdout
    try:
        with ScrollConsumer(client, log_type.alias) as consumer:
            if args.csv:
                hits_to_frame(list(consumer)).to_csv(out, index=False)
                count = None
            else:
                count = 0
                for hit in consumer:
                    out.write(json.dumps({"_id": hit["_id"], **hit.get("_source", {})}) + "\n")
                    count += 1
    finally:
        if out is not sys.stdout:
            out.close()
    if count is not None:
        logger.info("Exported %d documents from %s", count, log_type.alias)
    return 0


def cmd_templates(client, args: argparse.Namespace) -> int:
    for name in put_templates(client):
        print(name)
    return 0


def cmd_cleanup(client, args: argparse.Namespace) -> int:
    prefixes = [log_type.alias for log_type in LOG_TYPES.values()]
    deleted = cleanup_unaliased_indexes(
        client, prefixes, min_age=timedelta(minutes=args.min_age_minutes), dry_run=args.dry_run
    )
    for name in deleted:
        print(name)
    return 0


def cmd_expire(client, args: argparse.Namespace) -> int:
    for name in expire_daily_indexes(client, dry_run=args.dry_run):
        print(name)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Log search index maintenance")
    sub = parser.add_subparsers(dest="command", required=True)

    load = sub.add_parser("load", help="Load a new generation from an ETL output file")
    load.add_argument("type", choices=sorted(LOG_TYPES))
    load.add_argument("file")
    load.add_argument("--format", choices=["auto", "ndjson", "json"], default="auto")
    load.set_defaults(func=cmd_load)

    export = sub.add_parser("export", help="Export every document behind a log alias")
    export.add_argument("type", choices=sorted(LOG_TYPES))
    export.add_argument("--output", "-o", help="Output file (stdout when omitted)")
    export.add_argument("--csv", action="store_true", help="Flatten into CSV instead of NDJSON")
    export.set_defaults(func=cmd_export)

    templates = sub.add_parser("templates", help="Install index templates")
    templates.set_defaults(func=cmd_templates)

    cleanup = sub.add_parser("cleanup", help="Delete unaliased generations")
    cleanup.add_argument("--min-age-minutes", type=int, default=60)
    cleanup.add_argument("--dry-run", action="store_true")
    cleanup.set_defaults(func=cmd_cleanup)

    expire = sub.add_parser("expire", help="Delete daily indexes past retention")
    expire.add_argument("--dry-run", action="store_true")
    expire.set_defaults(func=cmd_expire)

    return parser


def main(argv: Optional[List[str]] = None, client=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging("logsearch", config.log_level)
    setup_logging("backend", config.log_level)

    client = client or create_client()
    try:
        return args.func(client, args)
    except LogSearchError as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 2


if __name__ == "__main__":
    sys.exit(main())
