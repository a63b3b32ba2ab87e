"""HTTP client for the MLS listings feed."""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from types import TracebackType
from typing import Any

import httpx

from mls_sync.config import settings
from mls_sync.utils.exceptions import MLSAPIError

logger = logging.getLogger(__name__)

# Keys under which different feeds return the listing array
LISTING_KEYS = ("listings", "value", "results")


@dataclass
class MLSPage:
    """One page of vendor listings as returned by the feed."""

    listings: list[dict[str, Any]] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 0


def _to_count(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _parse_page(data: Any, page: int, limit: int) -> MLSPage:
    if isinstance(data, list):
        return MLSPage(listings=data, total=len(data), page=page, limit=limit)
    if not isinstance(data, dict):
        raise MLSAPIError(f"Unexpected MLS response type: {type(data).__name__}")

    listings: list[dict[str, Any]] = []
    for key in LISTING_KEYS:
        value = data.get(key)
        if isinstance(value, list):
            listings = value
            break

    total = data.get("total", data.get("@odata.count"))
    return MLSPage(
        listings=listings,
        total=_to_count(total, len(listings)),
        page=_to_count(data.get("page"), page),
        limit=_to_count(data.get("limit"), limit),
    )


class MLSClient:
    """Client for the MLS listings endpoint.

    Can be used as an async context manager to share one
    ``httpx.AsyncClient`` across every page of a sync run::

        async with MLSClient() as client:
            page = await client.fetch_listings(page=1, limit=100)

    Without the context manager a one-off client is created per request.
    When no API key is configured, ``fetch_listings`` returns an empty page.
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = settings.mls_api_key if api_key is None else api_key
        self._api_url = (api_url or settings.mls_api_url).rstrip("/")
        self._timeout = timeout or settings.mls_request_timeout
        self._transport = transport
        self._headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        # Shared HTTP client, set when used as async context manager
        self._shared_http: httpx.AsyncClient | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    @property
    def api_url(self) -> str:
        return self._api_url

    # -- async context manager -------------------------------------------------

    async def __aenter__(self) -> MLSClient:
        if self._shared_http is not None:
            raise RuntimeError("MLSClient context manager is not reentrant")
        self._shared_http = self._new_http_client()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._shared_http is not None:
            await self._shared_http.aclose()
            self._shared_http = None

    # -- public API ------------------------------------------------------------

    async def fetch_listings(
        self,
        *,
        page: int = 1,
        limit: int = 100,
        status: str | None = None,
    ) -> MLSPage:
        """Fetch one page of listings from ``GET {api_url}/listings``."""
        if not self.is_configured:
            logger.warning("MLS_API_KEY is not configured, returning an empty page")
            return MLSPage(page=page, limit=limit)

        params: dict[str, str] = {"page": str(page), "limit": str(limit)}
        if status:
            params["status"] = status

        url = f"{self._api_url}/listings"
        logger.info("Fetching MLS listings: %s (page=%s, limit=%s, status=%s)", url, page, limit, status)

        async with self._http_client() as http:
            try:
                response = await http.get(url, headers=self._headers, params=params)
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as e:
                logger.error(
                    "MLS API HTTP error: %s, body: %s",
                    e,
                    e.response.text[:500],
                )
                raise MLSAPIError(
                    f"MLS API returned {e.response.status_code}"
                ) from e
            except httpx.RequestError as e:
                logger.error("MLS API request error: %s", e)
                raise MLSAPIError(f"MLS API request failed: {e}") from e
            except ValueError as e:
                raise MLSAPIError(f"MLS API returned invalid JSON: {e}") from e

        result = _parse_page(data, page, limit)
        logger.info(
            "MLS API returned %d listings (total=%s, page=%s)",
            len(result.listings),
            result.total,
            result.page,
        )
        return result

    # -- internals -------------------------------------------------------------

    def _new_http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    @contextlib.asynccontextmanager
    async def _http_client(self) -> AsyncIterator[httpx.AsyncClient]:
        """Yield the shared HTTP client, or a temporary one-off client."""
        if self._shared_http is not None:
            yield self._shared_http
        else:
            async with self._new_http_client() as http:
                yield http
