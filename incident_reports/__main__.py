"""Command line entry point: `python -m incident_reports <command>`."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from .logging_config import logging as _  # noqa: F401  # ensure config applied early
from .workflows.incident_pipeline import (
    clear_database,
    import_from_feed,
    list_all_incidents,
    list_sources,
    list_sources_for_incident,
    list_tag_links,
    list_tags,
)

logger = logging.getLogger(__name__)


def _print_json(rows) -> None:
    print(json.dumps(rows, indent=2, default=str))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="incident_reports")
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("list", help="print every incident with its categories and sources")
    commands.add_parser("import", help="import incidents from the third-party feed")
    commands.add_parser("clear", help="delete all database contents")
    sources = commands.add_parser("sources", help="print all sources, or those of one incident")
    sources.add_argument("incident_id", nargs="?", type=int)
    commands.add_parser("tags", help="print every type of force")
    commands.add_parser("tagtypes", help="print every incident/type-of-force link")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    try:
        if args.command == "list":
            _print_json(list_all_incidents())
        elif args.command == "import":
            created = import_from_feed()
            logger.info("Imported %d incidents", created)
        elif args.command == "clear":
            clear_database()
            logger.info("All database contents have been deleted")
        elif args.command == "sources":
            if args.incident_id is None:
                _print_json(list_sources())
            else:
                _print_json(list_sources_for_incident(args.incident_id))
        elif args.command == "tags":
            _print_json(list_tags())
        else:
            _print_json(list_tag_links())
    except Exception as exc:
        logger.error("Error running %s: %s", args.command, exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
