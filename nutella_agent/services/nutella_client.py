"""
Nutella admin API client: authenticated requests for users and domains.

Responsibility: Build auth headers once per client, issue GETs through the hourly
response cache, and wrap transport/HTTP failures in NetworkError. Also exposes the
file download, HEAD metadata and reasoning-log helpers used by agent tooling.
"""

import logging
from pathlib import Path
from typing import Any, Literal
from urllib.parse import quote

import httpx

from nutella_agent.core.errors import NetworkError
from nutella_agent.services.response_cache import HourlyResponseCache, cache_host

logger = logging.getLogger(__name__)

ResourceKind = Literal["users", "domains"]
RESOURCE_KINDS: tuple[str, ...] = ("users", "domains")
HTTP_TIMEOUT = 30.0

# encodeURIComponent leaves these unescaped
_COOKIE_SAFE_CHARS = "-_.!~*'()"


def build_auth_headers(
    auth_token: str | None = None,
    cookies: dict[str, str] | None = None,
    hs_csrf_token: str | None = None,
) -> dict[str, str]:
    """
    Authorization: Basic <token> when a token is given, otherwise a Cookie header
    built from the cookie map (values percent-encoded). Token wins over cookies.
    """
    # header values must be ASCII for httpx to encode them
    if auth_token and not auth_token.isascii():
        raise ValueError("authToken must contain only ASCII characters")
    if hs_csrf_token and not hs_csrf_token.isascii():
        raise ValueError("hs-csrf token must contain only ASCII characters")
    headers: dict[str, str] = {}
    if auth_token:
        headers["Authorization"] = f"Basic {auth_token}"
    elif cookies:
        headers["Cookie"] = "; ".join(
            f"{key}={quote(str(value), safe=_COOKIE_SAFE_CHARS)}" for key, value in cookies.items()
        )
    if hs_csrf_token:
        headers["hs-csrf"] = hs_csrf_token
    return headers


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class NutellaClient:
    """Async client for the Nutella admin API with an optional hourly cache on read paths."""

    def __init__(
        self,
        api_host: str,
        auth_token: str | None = None,
        cookies: dict[str, str] | None = None,
        hs_csrf_token: str | None = None,
        cache: HourlyResponseCache | None = None,
        timeout: float = HTTP_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_host = api_host.rstrip("/")
        self.headers = build_auth_headers(auth_token, cookies, hs_csrf_token)
        self.cache = cache
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers=self.headers,
            timeout=self.timeout,
            transport=self._transport,
            follow_redirects=True,
        )

    async def _get_json(self, url: str) -> Any:
        logger.info("[nutella:get] IN  url=%s", url)
        try:
            async with self._client() as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NetworkError(f"GET {url} returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"GET {url} failed: {e!s}") from e
        body = _response_body(response)
        logger.info("[nutella:get] OUT status=%d", response.status_code)
        return body

    async def fetch(self, kind: ResourceKind) -> Any:
        """GET {api_host}/{kind}, served from the hourly cache when one is configured."""
        if kind not in RESOURCE_KINDS:
            raise ValueError(f"Unknown resource kind: {kind!r}")
        url = f"{self.api_host}/{kind}"
        if self.cache is None:
            return await self._get_json(url)
        return await self.cache.get_or_fetch(
            cache_host(self.api_host), kind, lambda: self._get_json(url)
        )

    async def get_users(self) -> Any:
        return await self.fetch("users")

    async def get_domains(self) -> Any:
        return await self.fetch("domains")

    async def download_file(self, url: str, dest_path: str | Path) -> None:
        """Stream a remote file to dest_path."""
        dest = Path(dest_path)
        try:
            async with self._client() as client:
                async with client.stream("GET", url) as response:
                    response.raise_for_status()
                    with dest.open("wb") as fh:
                        async for chunk in response.aiter_bytes():
                            fh.write(chunk)
        except (httpx.HTTPError, OSError) as e:
            raise NetworkError(f"Failed to download file: {e!s}") from e
        logger.info("[nutella:download_file] saved %s", dest)

    async def fetch_remote_file_metadata(self, url: str) -> dict[str, str]:
        """HEAD the url and return its date/content-length headers; {} on any failure."""
        try:
            async with self._client() as client:
                response = await client.head(url)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.info("[nutella:metadata] HEAD %s failed: %s", url, e)
            return {}
        meta: dict[str, str] = {}
        if "date" in response.headers:
            meta["date"] = response.headers["date"]
        if "content-length" in response.headers:
            meta["content_length"] = response.headers["content-length"]
        return meta

    async def add_reasoning_log(self, reasoning_data: dict[str, Any]) -> None:
        """
        POST to /agent/memory/add. Fire-and-forget: always returns None, failures
        (including unserializable payloads) are only logged.
        """
        url = f"{self.api_host}/agent/memory/add"
        try:
            async with self._client() as client:
                response = await client.post(url, json=reasoning_data)
                response.raise_for_status()
        except Exception as e:
            logger.warning("[nutella:add_reasoning_log] dropped: %s", e)
            return None
        logger.info("[nutella:add_reasoning_log] OUT status=%d", response.status_code)
        return None
