"""Tests for the MLS feed client.

HTTP is served by ``httpx.MockTransport`` so these never hit a real API.
"""

from __future__ import annotations

import os
import sys

import httpx
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from mls_sync.services.mls_client import MLSClient, MLSPage  # noqa: E402
from mls_sync.utils.exceptions import MLSAPIError  # noqa: E402


FAKE_MLS_RESPONSE = {
    "listings": [
        {"MLSNumber": "A1", "ListPrice": 100000},
        {"MLSNumber": "A2", "ListPrice": 200000},
    ],
    "total": 2,
    "page": 1,
    "limit": 50,
}


def _client(handler, **kwargs) -> MLSClient:
    return MLSClient(
        api_key=kwargs.pop("api_key", "test-key"),
        api_url=kwargs.pop("api_url", "https://mls.example.com/v1/"),
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestFetchListings:
    @pytest.mark.asyncio
    async def test_request_shape(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=FAKE_MLS_RESPONSE)

        page = await _client(handler).fetch_listings(page=1, limit=50, status="Active")

        assert len(seen) == 1
        request = seen[0]
        assert request.method == "GET"
        assert request.url.path == "/v1/listings"
        assert request.url.params["page"] == "1"
        assert request.url.params["limit"] == "50"
        assert request.url.params["status"] == "Active"
        assert request.headers["Authorization"] == "Bearer test-key"

        assert isinstance(page, MLSPage)
        assert [l["MLSNumber"] for l in page.listings] == ["A1", "A2"]
        assert page.total == 2
        assert page.page == 1
        assert page.limit == 50

    @pytest.mark.asyncio
    async def test_status_omitted_when_not_given(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert "status" not in request.url.params
            return httpx.Response(200, json={"listings": []})

        page = await _client(handler).fetch_listings(page=2, limit=10)
        assert page.listings == []
        assert page.page == 2
        assert page.limit == 10

    @pytest.mark.asyncio
    async def test_odata_value_payload(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, json={"value": [{"ListingId": "X1"}], "@odata.count": 40}
            )

        page = await _client(handler).fetch_listings(page=1, limit=1)
        assert page.listings == [{"ListingId": "X1"}]
        assert page.total == 40

    @pytest.mark.asyncio
    async def test_bare_list_payload(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[{"MLSNumber": "A1"}])

        page = await _client(handler).fetch_listings(page=1, limit=5)
        assert page.total == 1
        assert page.limit == 5


class TestErrors:
    @pytest.mark.asyncio
    async def test_http_error_raises_mls_api_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="maintenance")

        with pytest.raises(MLSAPIError, match="503"):
            await _client(handler).fetch_listings()

    @pytest.mark.asyncio
    async def test_transport_error_raises_mls_api_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(MLSAPIError, match="request failed"):
            await _client(handler).fetch_listings()

    @pytest.mark.asyncio
    async def test_invalid_json_raises_mls_api_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>oops</html>")

        with pytest.raises(MLSAPIError, match="invalid JSON"):
            await _client(handler).fetch_listings()

    @pytest.mark.asyncio
    async def test_unexpected_payload_type(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json="nope")

        with pytest.raises(MLSAPIError, match="Unexpected"):
            await _client(handler).fetch_listings()


class TestUnconfigured:
    @pytest.mark.asyncio
    async def test_returns_empty_page_without_request(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        client = _client(handler, api_key="")
        assert client.is_configured is False

        page = await client.fetch_listings(page=3, limit=25)
        assert page.listings == []
        assert page.page == 3
        assert page.limit == 25


class TestContextManager:
    @pytest.mark.asyncio
    async def test_shared_client_lifecycle(self):
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(200, json={"listings": []})

        client = _client(handler)
        assert client._shared_http is None

        async with client as ctx:
            assert ctx is client
            assert client._shared_http is not None
            await client.fetch_listings(page=1)
            await client.fetch_listings(page=2)

        assert client._shared_http is None
        assert calls == 2

    @pytest.mark.asyncio
    async def test_not_reentrant(self):
        client = _client(lambda request: httpx.Response(200, json={}))
        async with client:
            with pytest.raises(RuntimeError):
                async with client:
                    pass

    def test_api_url_trailing_slash_trimmed(self):
        client = _client(lambda request: httpx.Response(200, json={}))
        assert client.api_url == "https://mls.example.com/v1"
