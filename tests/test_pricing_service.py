"""Unit tests for PricingService."""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import json

import httpx
import pytest
from models.slots import SlotSet
from services.errors import UpstreamError, ValidationError
from services.pricing_service import PricingService

API_URL = "https://pricing.test/graphql"

COMPLETE_SLOTS = SlotSet(
    brand="Samsung",
    model="Galaxy 21",
    series="Galaxy 21",
    storage="128GB",
    carrier="At&t"
)


def pricing_service(handler):
    return PricingService(api_url=API_URL, transport=httpx.MockTransport(handler))


class TestPricingService:
    """Test suite for PricingService class."""

    @pytest.mark.asyncio
    async def test_get_estimate(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={
                "data": {"payout": {"offer": 85, "offerId": "o-1", "deviceId": "d-1", "recyclable": False}}
            })

        estimate = await pricing_service(handler).get_estimate(COMPLETE_SLOTS)

        assert estimate.offer == 85
        assert estimate.offer_id == "o-1"
        assert estimate.device_id == "d-1"
        assert estimate.raw["recyclable"] is False

        query = json.loads(requests[0].content)["query"]
        assert 'modelName: "Galaxy 21"' in query
        assert 'brandName: "Samsung"' in query
        assert 'storageOption: "128GB"' in query
        assert 'carrierName: "At&t"' in query
        assert "cracks: false" in query
        assert "channelName: WEB" in query

    def test_query_escapes_strings(self):
        service = PricingService(api_url=API_URL)
        slots = SlotSet(brand="Apple", model='Iphone "12"', storage="64GB", carrier="Verizon")

        query = service.build_query(slots)

        assert 'modelName: "Iphone \\"12\\""' in query
        # A missing series mirrors the model
        assert 'seriesName: "Iphone \\"12\\""' in query

    @pytest.mark.asyncio
    async def test_incomplete_slots(self):
        service = pricing_service(lambda request: httpx.Response(200, json={}))

        with pytest.raises(ValidationError) as exc_info:
            await service.get_estimate(SlotSet(brand="Apple", model="Iphone 12"))

        assert exc_info.value.missing_fields == ["storage", "carrier"]

    @pytest.mark.asyncio
    async def test_graphql_errors(self):
        service = pricing_service(
            lambda request: httpx.Response(200, json={"errors": [{"message": "Unknown device"}]})
        )

        with pytest.raises(UpstreamError) as exc_info:
            await service.get_estimate(COMPLETE_SLOTS)

        assert exc_info.value.code == "API_ERROR"
        assert exc_info.value.message == "Unknown device"

    @pytest.mark.asyncio
    async def test_http_error(self):
        service = pricing_service(lambda request: httpx.Response(500))

        with pytest.raises(UpstreamError) as exc_info:
            await service.get_estimate(COMPLETE_SLOTS)

        assert exc_info.value.code == "HTTP_ERROR"

    @pytest.mark.asyncio
    async def test_missing_payout(self):
        service = pricing_service(lambda request: httpx.Response(200, json={"data": {}}))

        with pytest.raises(UpstreamError) as exc_info:
            await service.get_estimate(COMPLETE_SLOTS)

        assert exc_info.value.code == "MALFORMED_RESPONSE"

    @pytest.mark.asyncio
    async def test_null_payout_has_no_offer(self):
        service = pricing_service(lambda request: httpx.Response(200, json={"data": {"payout": None}}))

        estimate = await service.get_estimate(COMPLETE_SLOTS)

        assert not estimate.has_offer
