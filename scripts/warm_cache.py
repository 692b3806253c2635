#!/usr/bin/env python3
"""
Pre-fetch Nutella users and/or domains into the hourly response cache.

Useful before a demo or when the API is flaky: later queries in the same hour are
served from disk, and older files act as fallback if the API goes down.

Run from project root:

    python scripts/warm_cache.py --token <basic-token>
    python scripts/warm_cache.py --kind domains --cache-dir /tmp/nutella-cache
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Project root on path so "nutella_agent" resolves
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from nutella_agent.core.config import NUTELLA_API_HOST, NUTELLA_CACHE_DIR, NUTELLA_HTTP_TIMEOUT
from nutella_agent.core.errors import NetworkError
from nutella_agent.services.nutella_client import RESOURCE_KINDS, NutellaClient
from nutella_agent.services.response_cache import HourlyResponseCache


async def warm(kinds: list[str], api_host: str, cache_dir: Path, token: str | None) -> int:
    client = NutellaClient(
        api_host,
        auth_token=token,
        cache=HourlyResponseCache(cache_dir),
        timeout=NUTELLA_HTTP_TIMEOUT,
    )
    failures = 0
    for kind in kinds:
        try:
            await client.fetch(kind)
        except NetworkError as e:
            print(f"  {kind}: failed ({e.message})")
            failures += 1
            continue
        print(f"  {kind}: cached")
    return failures


def main() -> None:
    parser = argparse.ArgumentParser(description="Warm the Nutella response cache.")
    parser.add_argument(
        "--kind",
        choices=[*RESOURCE_KINDS, "all"],
        default="all",
        help="Resource to fetch (default: all).",
    )
    parser.add_argument("--token", default=None, help="Basic auth token for Nutella.")
    parser.add_argument("--api-host", default=NUTELLA_API_HOST, help="Nutella API host.")
    parser.add_argument("--cache-dir", type=Path, default=NUTELLA_CACHE_DIR, help="Cache root directory.")
    args = parser.parse_args()

    kinds = list(RESOURCE_KINDS) if args.kind == "all" else [args.kind]
    failures = asyncio.run(warm(kinds, args.api_host, args.cache_dir, args.token))
    print(f"Done. {len(kinds) - failures}/{len(kinds)} resources cached in {args.cache_dir}.")
    sys.exit(1 if failures else 0)


if __name__ == "__main__":
    main()
