"""
Tests for the HubSpot product sink.

The HubSpot API is replaced by an httpx.MockTransport.
"""

import json

import httpx
import pytest

from catalog_sync.integrations.hubspot import HubSpotAPIError, HubSpotClient, HubSpotProductSink


def make_sink(handler) -> HubSpotProductSink:
    client = HubSpotClient(
        access_token="pat-test",
        api_base_url="https://api.hubapi.test",
        retry_attempts=2,
        retry_base_delay=0,
        transport=httpx.MockTransport(handler),
    )
    return HubSpotProductSink(client)


@pytest.mark.asyncio
class TestHubSpotProductSink:
    """Tests for HubSpotProductSink."""

    async def test_find_by_key_searches_sku(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, request.url.path, json.loads(request.content)))
            assert request.headers["Authorization"] == "Bearer pat-test"
            return httpx.Response(200, json={"total": 1, "results": [{"id": "9001", "properties": {}}]})

        sink = make_sink(handler)
        destination_id = await sink.find_by_key("ABC123")
        await sink.close()

        assert destination_id == "9001"
        method, path, body = seen[0]
        assert (method, path) == ("POST", "/crm/v3/objects/products/search")
        assert body["filterGroups"][0]["filters"] == [
            {"propertyName": "hs_sku", "operator": "EQ", "value": "ABC123"}
        ]
        assert body["limit"] == 1

    async def test_find_by_source_id_not_found(self):
        seen = []

        def handler(request):
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"total": 0, "results": []})

        sink = make_sink(handler)

        assert await sink.find_by_source_id("gid://shopify/Product/7") is None
        assert seen[0]["filterGroups"][0]["filters"][0]["propertyName"] == "shopify_id"

    async def test_create(self):
        seen = []

        def handler(request):
            seen.append((request.method, request.url.path, json.loads(request.content)))
            return httpx.Response(201, json={"id": "9002", "properties": {"hs_sku": "ABC123"}})

        sink = make_sink(handler)

        assert await sink.create({"hs_sku": "ABC123", "name": "Ring"}) == "9002"
        assert seen == [("POST", "/crm/v3/objects/products", {"properties": {"hs_sku": "ABC123", "name": "Ring"}})]

    async def test_update_and_archive(self):
        seen = []

        def handler(request):
            seen.append((request.method, request.url.path))
            if request.method == "DELETE":
                return httpx.Response(204)
            return httpx.Response(200, json={"id": "9001"})

        sink = make_sink(handler)
        await sink.update("9001", {"price": "10.00"})
        await sink.archive("9001")

        assert seen == [
            ("PATCH", "/crm/v3/objects/products/9001"),
            ("DELETE", "/crm/v3/objects/products/9001"),
        ]

    async def test_validation_error_carries_body(self):
        calls = []
        error_body = {
            "status": "error",
            "message": "Property values were not valid",
            "errors": [{"code": "PROPERTY_DOESNT_EXIST", "context": {"propertyName": ["custom__metal"]}}],
        }

        def handler(request):
            calls.append(request)
            return httpx.Response(400, json=error_body)

        sink = make_sink(handler)

        with pytest.raises(HubSpotAPIError) as exc_info:
            await sink.create({"hs_sku": "ABC123", "custom__metal": "gold"})

        assert len(calls) == 1
        assert exc_info.value.status_code == 400
        assert exc_info.value.body == error_body
        assert exc_info.value.transient is False

    async def test_rate_limit_is_retried(self):
        responses = [
            httpx.Response(429, json={"message": "You have reached your secondly limit."}),
            httpx.Response(200, json={"results": []}),
        ]
        calls = []

        def handler(request):
            calls.append(request)
            return responses[len(calls) - 1]

        sink = make_sink(handler)

        assert await sink.find_by_key("ABC123") is None
        assert len(calls) == 2

    async def test_network_error_is_transient(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        sink = make_sink(handler)

        with pytest.raises(HubSpotAPIError) as exc_info:
            await sink.find_by_key("ABC123")

        assert exc_info.value.transient is True
