"""
Hourly on-disk cache for Nutella API responses.

Responsibility: Wrap a remote fetch with one JSON file per host/resource/UTC hour.
Serves a fresh file without touching the network, refreshes it otherwise, and
falls back to the newest stored file (any age) when the live fetch fails.

File operations run in a worker thread so the event loop is not blocked.
Concurrent writers for the same bucket are last-writer-wins; files are never
deleted here.
"""

import asyncio
import json
import logging
import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from nutella_agent.core.errors import CacheIOError, CacheParseError, NetworkError

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600.0


def cache_host(api_host: str) -> str:
    """Hostname of the API host, made safe for use in a file name."""
    try:
        host = urlparse(api_host).hostname or api_host
    except ValueError:
        host = api_host
    return host.replace("/", "_").replace("\\", "_").replace(":", "_")


def hour_bucket(ts: float) -> str:
    """UTC date-hour stamp, e.g. 20261019T14Z. Sorts chronologically as text."""
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y%m%dT%HZ")


def _read_json(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise CacheIOError(f"Failed to read cache file {path}: {e}") from e
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise CacheParseError(str(path), str(e)) from e


def _write_json(path: Path, data: Any) -> None:
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")


class HourlyResponseCache:
    """Time-bucketed JSON cache rooted at an explicit directory."""

    def __init__(
        self,
        cache_dir: str | Path,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.cache_dir = Path(cache_dir)
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def bucket_path(self, host: str, kind: str, ts: float | None = None) -> Path:
        stamp = hour_bucket(self._clock() if ts is None else ts)
        return self.cache_dir / f"{host}_{kind}_{stamp}.json"

    def _ensure_dir(self) -> None:
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheIOError(f"Cannot create cache dir {self.cache_dir}: {e}") from e

    def _fresh_path(self, path: Path) -> Path | None:
        try:
            mtime = path.stat().st_mtime
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CacheIOError(f"Cannot stat cache file {path}: {e}") from e
        age = self._clock() - mtime
        return path if age < self.ttl_seconds else None

    def _latest_path(self, host: str, kind: str) -> Path | None:
        try:
            matches = sorted(p.name for p in self.cache_dir.glob(f"{host}_{kind}_*"))
        except OSError as e:
            raise CacheIOError(f"Cannot scan cache dir {self.cache_dir}: {e}") from e
        return self.cache_dir / matches[-1] if matches else None

    def _store(self, path: Path, data: Any) -> None:
        try:
            _write_json(path, data)
        except (OSError, TypeError, ValueError) as e:
            logger.warning("[cache:store] failed to write %s: %s", path.name, e)

    async def get_or_fetch(
        self,
        host: str,
        kind: str,
        fetch: Callable[[], Awaitable[Any]],
    ) -> Any:
        """
        Return the cached payload for (host, kind, current hour) or fetch it.

        Raises:
            CacheParseError: If a cache file that would be served is not valid JSON.
            NetworkError: The original fetch error, when no cached copy exists at all.
        """
        try:
            await asyncio.to_thread(self._ensure_dir)
        except CacheIOError as e:
            logger.warning("[cache] %s; bypassing cache", e)
            return await fetch()

        path = self.bucket_path(host, kind)
        try:
            fresh = await asyncio.to_thread(self._fresh_path, path)
        except CacheIOError as e:
            logger.warning("[cache] %s; treating as miss", e)
            fresh = None
        if fresh is not None:
            logger.info("[cache] HIT %s", fresh.name)
            try:
                return await asyncio.to_thread(_read_json, fresh)
            except CacheIOError as e:
                logger.warning("[cache] %s; refetching", e)

        logger.info("[cache] MISS %s", path.name)
        try:
            data = await fetch()
        except NetworkError as fetch_error:
            try:
                fallback = await asyncio.to_thread(self._latest_path, host, kind)
            except CacheIOError as e:
                logger.warning("[cache] %s; no fallback", e)
                fallback = None
            if fallback is None:
                logger.warning("[cache] fetch failed and no fallback for %s_%s", host, kind)
                raise
            logger.warning(
                "[cache] fetch failed (%s); serving stale %s", fetch_error, fallback.name
            )
            try:
                return await asyncio.to_thread(_read_json, fallback)
            except CacheIOError as e:
                logger.warning("[cache] %s", e)
                raise fetch_error from e

        await asyncio.to_thread(self._store, path, data)
        return data
