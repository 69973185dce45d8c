#!/usr/bin/env python3
"""CLI script to print the discovered schema of a Twenty deployment.

Usage:
    python scripts/describe_schema.py
    python scripts/describe_schema.py --object company
    python scripts/describe_schema.py --object person --intent write --merged
    python scripts/describe_schema.py --object company --report --samples 2

Uses TWENTY_DOMAIN and TWENTY_API_KEY from the environment or the .env file.
Without --object, lists the available resources.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys

# Ensure project root is on sys.path so we can import src.connector
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from dotenv import load_dotenv  # noqa: E402

# Load .env from project root
load_dotenv(os.path.join(os.path.dirname(__file__), "..", ".env"))


async def describe(args: argparse.Namespace) -> int:
    from src.connector.core.errors import ConnectorError
    from src.connector.core.logging import bind_deployment, configure_structlog
    from src.connector.operations.twenty import TwentyConnector
    from src.connector.schema.models import FieldIntent

    configure_structlog()
    connector = TwentyConnector.from_settings()
    bind_deployment(connector.transport.domain)

    try:
        if args.refresh:
            count = await connector.refresh_schema()
            print(f"Schema refreshed: {count} objects", file=sys.stderr)

        if not args.object:
            resources = await connector.list_resources(include_system=args.include_system)
            output = [resource.model_dump() for resource in resources]
        elif args.report:
            report = await connector.get_database_schema(
                args.object,
                simplify=args.simplify,
                include_system_fields=args.include_system,
                sample_size=args.samples,
            )
            output = report.model_dump(exclude_none=True)
        elif args.merged:
            fields = await connector.get_schema(
                args.object,
                intent=FieldIntent(args.intent),
                include_system=args.include_system,
            )
            output = [field.model_dump(mode="json") for field in fields]
        else:
            schema = await connector.cache.get_object(connector.transport, args.object)
            output = schema.model_dump(mode="json")
    except ConnectorError as exc:
        print(f"Error ({exc.kind.value}): {exc.message}", file=sys.stderr)
        return 1

    print(json.dumps(output, indent=2, default=str))
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Describe the schema of a Twenty deployment")
    parser.add_argument("--object", default=None, help="Object name (e.g., company, person)")
    parser.add_argument("--refresh", action="store_true", help="Refetch the schema first")
    parser.add_argument("--merged", action="store_true", help="Merge with introspected fields")
    parser.add_argument(
        "--intent", choices=["read", "write"], default="read", help="Field intent for --merged"
    )
    parser.add_argument("--report", action="store_true", help="Print the database schema report")
    parser.add_argument("--simplify", action="store_true", help="Simplified report fields")
    parser.add_argument("--samples", type=int, default=0, help="Sample records in the report")
    parser.add_argument("--include-system", action="store_true", help="Include system objects/fields")
    args = parser.parse_args()

    if args.report and args.merged:
        parser.error("--report and --merged are mutually exclusive")
    if (args.report or args.merged) and not args.object:
        parser.error("--report and --merged require --object")

    sys.exit(asyncio.run(describe(args)))


if __name__ == "__main__":
    main()
