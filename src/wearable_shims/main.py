"""Command-line entrypoint: list shims, print consent URLs, or run one fetch."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from datetime import date, datetime

import httpx

from wearable_shims.config import get_settings
from wearable_shims.errors import UnknownProvider
from wearable_shims.logger import setup_logging
from wearable_shims.models import AccessCredential
from wearable_shims.results import Failed, Fetched, RedirectRequired
from wearable_shims.service import ShimService
from wearable_shims.shims.registry import build_registry
from wearable_shims.shims.tokens import InMemoryTokenStore


def _when(value: str) -> datetime | date:
    """``YYYY-MM-DD`` is a day; anything longer must be an ISO datetime."""
    if len(value) == 10:
        return date.fromisoformat(value)
    return datetime.fromisoformat(value)


async def _run(args: argparse.Namespace) -> int:
    settings = get_settings()
    store = InMemoryTokenStore()

    async with httpx.AsyncClient(timeout=settings.request_timeout) as http:
        service = ShimService(build_registry(settings, http, store))

        if args.command == "providers":
            listing = {
                key: sorted(service.registry.resolve(key).data_types())
                for key in service.registry.available()
            }
            print(json.dumps(listing, indent=2))
            return 0

        if args.command == "authorize":
            try:
                print(service.authorization_url(args.provider, args.user))
            except UnknownProvider as exc:
                print(str(exc), file=sys.stderr)
                return 1
            return 0

        # fetch
        await store.save(
            args.provider.strip().lower(),
            args.user,
            AccessCredential(access_token=args.access_token, refresh_token=args.refresh_token),
        )
        result = await service.fetch(
            args.provider,
            args.data_type,
            args.start,
            args.end,
            normalize=not args.raw,
            user_key=args.user,
        )

    match result:
        case Fetched(response):
            print(json.dumps(response.model_dump(mode="json"), indent=2))
            return 0
        case RedirectRequired(url, reason):
            print(f"Authorization required ({reason}): {url}", file=sys.stderr)
            return 2
        case Failed(error):
            print(f"{type(error).__name__}: {error}", file=sys.stderr)
            return 1
    return 1


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="wearable-shims",
        description="Fetch normalised wearable data through provider shims.",
    )
    sub = parser.add_subparsers(dest="command")

    # ── providers ─────────────────────────────────────────────
    sub.add_parser("providers", help="List shims and their data types.")

    # ── authorize ─────────────────────────────────────────────
    auth_parser = sub.add_parser("authorize", help="Print the consent URL for a user.")
    auth_parser.add_argument("provider")
    auth_parser.add_argument("--user", required=True)

    # ── fetch ─────────────────────────────────────────────────
    fetch_parser = sub.add_parser("fetch", help="Fetch one data type with a known access token.")
    fetch_parser.add_argument("provider")
    fetch_parser.add_argument("data_type")
    fetch_parser.add_argument("--user", default="cli")
    fetch_parser.add_argument("--access-token", required=True)
    fetch_parser.add_argument("--refresh-token", default=None)
    fetch_parser.add_argument("--start", type=_when, default=None)
    fetch_parser.add_argument("--end", type=_when, default=None)
    fetch_parser.add_argument("--raw", action="store_true", help="Return the provider payload untouched.")

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        sys.exit(1)

    settings = get_settings()
    setup_logging(settings.log_level)
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
