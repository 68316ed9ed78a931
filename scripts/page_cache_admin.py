#!/usr/bin/env python3
"""
Inspect or purge the page cache from a developer workstation or CI job.

    page_cache_admin.py purge --driver redis --redis-url redis://cache:6379/0
    page_cache_admin.py key /shoes?page=2 --locale en --store 1
"""

import argparse
import asyncio
import json
import sys
import os

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from shared.config import get_config  # noqa: E402
from service_pagecache.app.caching.factory import SUPPORTED_DRIVERS, create_cache_store  # noqa: E402
from service_pagecache.app.domain.context import RequestContext  # noqa: E402
from service_pagecache.app.domain.keys import CacheKeyDeriver  # noqa: E402


async def purge(config) -> dict:
    """Empty the configured store and return a summary."""
    store = create_cache_store(config)
    try:
        await store.clean()
    finally:
        await store.close()
    return {"driver": store.driver_name, "namespace": config.cache_namespace, "purged": True}


def derive(config, url: str, locale: str, store_id: str, device: str) -> dict:
    """Compute the key a request for ``url`` would use."""
    path, _, query = url.partition("?")
    ctx = RequestContext(
        method="GET",
        path=path,
        query_string=query,
        locale_id=locale,
        store_id=store_id,
        device_class=device,
    )
    deriver = CacheKeyDeriver(config)
    return {"canonical": deriver.canonical_string(ctx), "key": deriver.derive_key(ctx)}


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Page cache administration.")
    parser.add_argument("--driver", choices=SUPPORTED_DRIVERS, default=None, help="Cache backend (defaults to PAGECACHE_CACHE_DRIVER)")
    parser.add_argument("--redis-url", default=None, help="Redis connection URL")
    parser.add_argument("--cache-dir", default=None, help="Directory of the files backend")
    parser.add_argument("--namespace", default=None, help="Cache namespace")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("purge", help="Remove every stored page")

    key_parser = subparsers.add_parser("key", help="Print the cache key for a URL")
    key_parser.add_argument("url", help="Path and query, e.g. /shoes?page=2")
    key_parser.add_argument("--locale", default="", help="Locale identifier")
    key_parser.add_argument("--store", default="", help="Store identifier")
    key_parser.add_argument("--device", default="desktop", help="Device class, used when device splitting is on")
    key_parser.add_argument("--split-devices", action="store_true", help="Derive keys with device splitting enabled")
    return parser.parse_args()


def main() -> int:
    args = _parse_args()
    overrides = {
        name: value
        for name, value in (
            ("cache_driver", args.driver),
            ("redis_url", args.redis_url),
            ("cache_dir", args.cache_dir),
            ("cache_namespace", args.namespace),
        )
        if value is not None
    }
    if args.command == "key" and args.split_devices:
        overrides["separate_mobile_and_desktop"] = True
    config = get_config("pagecache", 8000, **overrides)

    try:
        if args.command == "purge":
            summary = asyncio.run(purge(config))
        else:
            summary = derive(config, args.url, args.locale, args.store, args.device)
    except KeyboardInterrupt:
        return 130
    except Exception as exc:  # pragma: no cover - CLI surface
        print(f"[page-cache] failed: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(summary, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
