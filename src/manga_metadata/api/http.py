"""HTTP fetch adapter shared by catalog clients and the asset cache.

One httpx.Client per adapter. Every request carries the identifying
User-Agent header; redirects are followed at most once. All failure modes
(transport, timeout, redirect loop, non-2xx status, non-JSON body) surface
as FetchError so callers handle a single exception type.
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from ..errors import FetchError

log = logger.bind(stage="http")

DEFAULT_USER_AGENT = "MangaReader/1.0"
MAX_REDIRECTS = 1


class HttpFetcher:
    """Thin GET-only wrapper around httpx.Client."""

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            headers={"User-Agent": user_agent},
            timeout=timeout,
            follow_redirects=True,
            max_redirects=MAX_REDIRECTS,
            transport=transport,
        )

    def __enter__(self) -> HttpFetcher:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        log.debug(f"GET {url} params={params}")
        try:
            resp = self._client.get(url, params=params, headers=headers)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchError(url, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise FetchError(url, f"{type(e).__name__}: {e}") from e
        return resp

    def get_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """GET url and decode the body as JSON."""
        resp = self._get(url, params=params, headers=headers)
        try:
            return resp.json()
        except ValueError as e:
            raise FetchError(url, f"invalid JSON: {resp.text[:100]!r}") from e

    def get_bytes(self, url: str, headers: dict[str, str] | None = None) -> bytes:
        """GET url and return the raw body."""
        return self._get(url, headers=headers).content
