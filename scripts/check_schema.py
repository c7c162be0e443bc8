#!/usr/bin/env python3
"""Check that the Notion database matches what the service writes.

Every mapped property must exist with the expected type, and both status
properties must offer the exact option names the service uses. Option
names that only differ in half-width/full-width characters are a common
cause of rejected writes and are reported separately.

Usage examples:
    uv run scripts/check_schema.py
    uv run scripts/check_schema.py --env-file prod.env
"""

import argparse
import sys

from dotenv import load_dotenv

from fish_order import FieldMap, Settings
from fish_order.errors import StoreError, TransportError
from fish_order.infra.notion import NotionOrderRepository, find_schema_problems


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Check the Notion order database schema",
    )
    parser.add_argument(
        "--env-file", default=None,
        help="Path to a .env file (default: search from the working directory)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    load_dotenv(args.env_file)

    try:
        settings = Settings.from_env()
        field_map = FieldMap(settings.field_map)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    with NotionOrderRepository(
        settings.notion_api_key,
        settings.notion_database_id,
        field_map=field_map,
    ) as repository:
        try:
            schema = repository.fetch_schema()
        except (StoreError, TransportError) as exc:
            print(f"Error: could not read database: {exc}", file=sys.stderr)
            return 1

    problems = find_schema_problems(schema, field_map, settings.logistics_statuses)

    print("=" * 60)
    print("Notion Order Database Schema Check")
    print("=" * 60)
    print(f"  Database:  {settings.notion_database_id}")
    print(f"  Statuses:  {', '.join(settings.logistics_statuses)}")
    print("=" * 60)

    if not problems:
        print("OK: schema matches the field mapping")
        return 0

    print(f"Found {len(problems)} problem(s):")
    for problem in problems:
        print(f"  - {problem}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
