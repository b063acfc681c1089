"""Tests for the remote product API client and the page fetcher."""

import json

import httpx
import pytest

from price_collector.adapters.api_client import ProductApiClient, ProductApiError, to_payload
from price_collector.adapters.page_fetcher import PageFetcher, PageUnavailableError
from price_collector.models.product import ProductDraft


ENDPOINT = "https://db.example.com/api"


def _draft(**overrides) -> ProductDraft:
    values = {
        "title": "Acme Widget",
        "price": "19.99",
        "currency": "$",
        "site": "Amazon",
        "asin": "B012345678",
        "url": "https://www.amazon.com/dp/B012345678",
        "image": "https://m.media-amazon.com/images/I/widget.jpg",
        "timestamp": "2024-05-01T12:00:00.000Z",
    }
    values.update(overrides)
    return ProductDraft(**values)


def _client(handler) -> ProductApiClient:
    return ProductApiClient(endpoint=ENDPOINT, api_key="secret-key", transport=httpx.MockTransport(handler))


def test_payload_fields() -> None:
    payload = to_payload(_draft(notes="from draft"), notes="override")

    assert list(payload) == ["title", "price", "currency", "site", "asin", "url", "notes", "timestamp"]
    assert payload["notes"] == "override"
    assert "image" not in payload


@pytest.mark.asyncio
@pytest.mark.parametrize("endpoint", [ENDPOINT, ENDPOINT + "/"])
async def test_health_url_and_result(endpoint: str) -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"success": True, "message": "Server is running"})

    client = ProductApiClient(endpoint=endpoint, api_key="secret-key", transport=httpx.MockTransport(handler))

    assert await client.health() is True
    assert str(seen[0].url) == "https://db.example.com/api/health"
    assert "x-api-key" not in seen[0].headers


@pytest.mark.asyncio
async def test_unhealthy_server_reports_false() -> None:
    client = _client(lambda request: httpx.Response(500, json={"success": False, "error": "Database down"}))

    assert await client.health() is False


@pytest.mark.asyncio
async def test_submit_bulk_sends_key_and_returns_count() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"success": True, "insertedCount": 2})

    inserted = await _client(handler).submit_bulk([_draft(), _draft(title="Other", asin=None)])

    request = seen[0]
    body = json.loads(request.content)
    assert inserted == 2
    assert request.method == "POST"
    assert str(request.url) == "https://db.example.com/api/products/bulk"
    assert request.headers["x-api-key"] == "secret-key"
    assert [p["title"] for p in body["products"]] == ["Acme Widget", "Other"]
    assert body["products"][1]["asin"] is None


@pytest.mark.asyncio
async def test_submit_single_product() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"success": True, "productId": 7})

    data = await _client(handler).submit(_draft(), notes="birthday")

    assert data["productId"] == 7
    assert str(seen[0].url) == "https://db.example.com/api/products"
    assert json.loads(seen[0].content)["notes"] == "birthday"


@pytest.mark.asyncio
async def test_rejected_request_raises() -> None:
    client = _client(lambda request: httpx.Response(400, json={"success": False, "error": "Title and price are required"}))

    with pytest.raises(ProductApiError) as excinfo:
        await client.submit(_draft(title=None))

    assert excinfo.value.status_code == 400
    assert "Title and price are required" in str(excinfo.value)


@pytest.mark.asyncio
async def test_success_false_raises() -> None:
    client = _client(lambda request: httpx.Response(200, json={"success": False, "error": "Invalid products array"}))

    with pytest.raises(ProductApiError):
        await client.submit_bulk([_draft()])


@pytest.mark.asyncio
async def test_unreachable_server_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ProductApiError) as excinfo:
        await _client(handler).submit_bulk([_draft()])

    assert excinfo.value.status_code is None


@pytest.mark.asyncio
async def test_missing_configuration_raises() -> None:
    client = ProductApiClient(endpoint="", api_key="", transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    client.endpoint = ""

    with pytest.raises(ProductApiError):
        await client.submit_bulk([_draft()])


@pytest.mark.asyncio
async def test_page_fetcher_parses_document() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert "Mozilla" in request.headers["User-Agent"]
        return httpx.Response(200, html="<html><head><title>Mug | Shop</title></head><body></body></html>")

    fetcher = PageFetcher(transport=httpx.MockTransport(handler))
    document = await fetcher.fetch_document("https://shop.example.com/mug")

    assert document.url == "https://shop.example.com/mug"
    assert document.title() == "Mug | Shop"


@pytest.mark.asyncio
async def test_page_fetcher_http_error_status() -> None:
    fetcher = PageFetcher(transport=httpx.MockTransport(lambda request: httpx.Response(404)))

    with pytest.raises(PageUnavailableError) as excinfo:
        await fetcher.fetch("https://shop.example.com/missing")

    assert excinfo.value.status_code == 404


@pytest.mark.asyncio
async def test_page_fetcher_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    fetcher = PageFetcher(transport=httpx.MockTransport(handler))

    with pytest.raises(PageUnavailableError) as excinfo:
        await fetcher.fetch("https://shop.example.com/slow")

    assert excinfo.value.status_code is None
    assert excinfo.value.url == "https://shop.example.com/slow"
