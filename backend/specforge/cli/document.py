"""
Command-line helpers.

    specforge init-db                 create missing tables
    specforge outline spec.md         list the sections of a markdown file
    specforge outline spec.md --json  same, as JSON with section contents
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from specforge.core.sections import parse_sections

logger = logging.getLogger(__name__)


def _init_db() -> int:
    from specforge.db import close_db, init_db

    async def run() -> None:
        try:
            await init_db()
        finally:
            await close_db()

    asyncio.run(run())
    logger.info("Database tables created")
    return 0


def _outline(path: Path, as_json: bool) -> int:
    try:
        document = path.read_text(encoding="utf-8")
    except OSError as e:
        print(f"Cannot read {path}: {e}", file=sys.stderr)
        return 1

    sections = parse_sections(document)
    if as_json:
        print(json.dumps([s.to_dict() for s in sections], indent=2, ensure_ascii=False))
        return 0

    for section in sections:
        lines = section.content.count("\n") + 1
        print(f"{section.id}\t{section.title}\t({lines} lines)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="specforge")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="create database tables")

    outline = commands.add_parser("outline", help="print the sections of a markdown file")
    outline.add_argument("path", type=Path)
    outline.add_argument("--json", action="store_true", dest="as_json")

    return parser


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO)
    args = build_parser().parse_args(argv)

    if args.command == "init-db":
        return _init_db()
    return _outline(args.path, args.as_json)


if __name__ == "__main__":
    sys.exit(main())
