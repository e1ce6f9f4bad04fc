#!/usr/bin/env python3
"""
Dev helper: send a query to a running Notion Query Proxy.

Builds a POST /api/notion/query body from command-line flags, sends it with
the X-API-Key header and pretty-prints the JSON response.

Usage
-----
# Basic — first page of NOTION_DATABASE_ID, targeting localhost:8000
python scripts/query_notion.py

# A specific database, all pages
python scripts/query_notion.py --database-id 0123abcd --all

# Native Notion filter, only two properties in the output
python scripts/query_notion.py \\
    --filter-json '{"property": "Status", "status": {"equals": "Done"}}' \\
    --select Name --select Status

# Continue from a cursor returned by a previous call
python scripts/query_notion.py --start-cursor 5f2a...

# Print the request body without sending it
python scripts/query_notion.py --dry-run

Environment / .env
------------------
INTERNAL_API_KEY   Shared key sent as X-API-Key (required unless --api-key).

The script reads .env from the project root and from backend/ if present.
"""

import argparse
import json
import os
import sys
import textwrap
from pathlib import Path
from typing import Optional

import httpx
from dotenv import load_dotenv


# ---------------------------------------------------------------------------
# Payload builder
# ---------------------------------------------------------------------------

def _parse_json_arg(raw: Optional[str], flag: str):
    """Decode a JSON command-line value; exits with a message on bad input."""
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        print(f"ERROR: {flag} is not valid JSON: {exc}", file=sys.stderr)
        sys.exit(1)


def build_payload(args: argparse.Namespace) -> dict:
    """Build the proxy request body, leaving out flags that were not given."""
    payload: dict = {"page_size": args.page_size, "all": args.all}

    if args.database_id:
        payload["database_id"] = args.database_id
    if args.start_cursor:
        payload["start_cursor"] = args.start_cursor

    filter_ = _parse_json_arg(args.filter_json, "--filter-json")
    if filter_ is not None:
        payload["filter"] = filter_
    sorts = _parse_json_arg(args.sorts_json, "--sorts-json")
    if sorts is not None:
        payload["sorts"] = sorts

    if args.select:
        payload["select_properties"] = args.select

    return payload


def _print_response(response: httpx.Response) -> None:
    status = response.status_code
    symbol = "OK" if status == 200 else "FAIL"
    print(f"\n[{symbol}] HTTP {status}")
    try:
        body = response.json()
    except ValueError:
        print(response.text)
        return

    print(json.dumps(body, indent=2))
    if status == 200:
        print(
            f"\n{len(body.get('items', []))} item(s), "
            f"has_more={body.get('has_more')}, next_cursor={body.get('next_cursor')}"
        )


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> int:
    # Locate project root (scripts/ lives one level below the root)
    script_dir = Path(__file__).resolve().parent
    project_root = script_dir.parent
    load_dotenv(project_root / ".env")
    load_dotenv(project_root / "backend" / ".env")

    parser = argparse.ArgumentParser(
        prog="query_notion.py",
        description=textwrap.dedent("""\
            Send a database query to the Notion Query Proxy.

            Reads INTERNAL_API_KEY from the environment or a .env file in the
            project root.
        """),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            Examples:
              python scripts/query_notion.py
              python scripts/query_notion.py --database-id 0123abcd --all
              python scripts/query_notion.py --select Name --select Status
              python scripts/query_notion.py --url http://localhost:8000
        """),
    )
    parser.add_argument(
        "--url",
        default="http://localhost:8000",
        help="Proxy base URL (default: http://localhost:8000)",
    )
    parser.add_argument(
        "--database-id",
        default=None,
        help="Notion database id. Omit to use the server's NOTION_DATABASE_ID.",
    )
    parser.add_argument(
        "--filter-json",
        default=None,
        metavar="JSON",
        help="Notion filter object, as JSON.",
    )
    parser.add_argument(
        "--sorts-json",
        default=None,
        metavar="JSON",
        help="Notion sorts array, as JSON.",
    )
    parser.add_argument(
        "--page-size",
        type=int,
        default=25,
        help="Results per Notion page (default: 25)",
    )
    parser.add_argument(
        "--start-cursor",
        default=None,
        metavar="CURSOR",
        help="Resume from a next_cursor returned by a previous query.",
    )
    parser.add_argument(
        "--all",
        action="store_true",
        help="Fetch every page instead of just the first.",
    )
    parser.add_argument(
        "--select",
        action="append",
        default=None,
        metavar="PROPERTY",
        help="Only flatten this property (repeatable).",
    )
    parser.add_argument(
        "--api-key",
        default=None,
        metavar="KEY",
        help="Override the API key. Defaults to the INTERNAL_API_KEY env var.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=60.0,
        help="Client timeout in seconds (default: 60)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the request body without sending it.",
    )

    args = parser.parse_args()

    api_key = args.api_key or os.getenv("INTERNAL_API_KEY", "")
    if not api_key and not args.dry_run:
        print(
            "ERROR: No API key found.\n"
            "Set INTERNAL_API_KEY in your environment or .env file, "
            "or pass --api-key.",
            file=sys.stderr,
        )
        return 1

    payload = build_payload(args)
    endpoint = f"{args.url.rstrip('/')}/api/notion/query"

    print(f"Endpoint : {endpoint}")
    print(f"Database : {payload.get('database_id', '(server default)')}")
    print(f"All pages: {args.all}")

    if args.dry_run:
        print("\n[DRY RUN] Payload:")
        print(json.dumps(payload, indent=2))
        return 0

    try:
        response = httpx.post(
            endpoint,
            json=payload,
            headers={"X-API-Key": api_key},
            timeout=args.timeout,
        )
    except httpx.ConnectError:
        print(
            f"\nERROR: Could not connect to {endpoint}\n"
            "Is the proxy running? Start it with:\n"
            "  cd backend && uvicorn app.main:app --reload",
            file=sys.stderr,
        )
        return 1
    except httpx.HTTPError as exc:
        print(f"\nERROR: {exc}", file=sys.stderr)
        return 1

    _print_response(response)
    return 0 if response.status_code == 200 else 1


if __name__ == "__main__":
    sys.exit(main())
