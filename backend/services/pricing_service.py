"""Device pricing service backed by the ecoATM payout GraphQL API."""
import json
import logging
from typing import Optional

import httpx

from config import GATEWAY_TIMEOUT_SECONDS, PHONE_CATEGORY_ID, PRICING_API_URL
from models.estimate import Estimate
from models.slots import SlotSet
from services.errors import UpstreamError, ValidationError
from services.gateways import PricingGateway

logger = logging.getLogger(__name__)

PAYOUT_QUERY = """
query Payout {{
  payout(
    modelName: {model}
    seriesName: {series}
    storageOption: {storage}
    carrierName: {carrier}
    categoryId: {category}
    powerUp: true
    lcdOK: true
    cracks: false
    channelName: WEB
    brandName: {brand}
  ) {{
    deviceId
    offerId
    offer
    offerV2
    onlineOffer
    onlineOfferV2
    readyForSale
    moratoriumEndDate
    recyclable
    offerState
  }}
}}
"""


def _literal(value: str) -> str:
    """Quote a value as a GraphQL string literal."""
    return json.dumps(value)


class PricingService(PricingGateway):
    """Quotes a device that powers on, has a working screen and no cracks."""

    def __init__(
        self,
        api_url: str = PRICING_API_URL,
        category_id: str = PHONE_CATEGORY_ID,
        timeout: float = GATEWAY_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_url = api_url
        self.category_id = category_id
        self.timeout = timeout
        self.transport = transport
        logger.info(f"Initialized PricingService with endpoint: {api_url}")

    def build_query(self, slots: SlotSet) -> str:
        return PAYOUT_QUERY.format(
            model=_literal(slots.model),
            series=_literal(slots.series or slots.model),
            storage=_literal(slots.storage),
            carrier=_literal(slots.carrier),
            category=_literal(self.category_id),
            brand=_literal(slots.brand),
        )

    async def get_estimate(self, slots: SlotSet) -> Estimate:
        """
        Get a price estimate for a device.

        Args:
            slots: Complete device identification

        Returns:
            Estimate; its offer is None when the device has no payout

        Raises:
            ValidationError: If required device fields are missing
            UpstreamError: If the request fails or the API reports errors
        """
        if not slots.is_complete:
            missing = slots.missing_fields()
            raise ValidationError(f"Missing required device information: {', '.join(missing)}", missing)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self.api_url,
                    json={"query": self.build_query(slots)},
                    headers={"Content-Type": "application/json"}
                )
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as e:
            raise UpstreamError(
                "HTTP_ERROR",
                f"Pricing request failed with status {e.response.status_code}",
                {"status_code": e.response.status_code}
            ) from e
        except httpx.TimeoutException as e:
            raise UpstreamError("TIMEOUT_ERROR", "Pricing request timed out") from e
        except httpx.HTTPError as e:
            raise UpstreamError("NETWORK_ERROR", f"Pricing request failed: {e}") from e
        except ValueError as e:
            raise UpstreamError("MALFORMED_RESPONSE", "Pricing response is not JSON") from e

        if not isinstance(body, dict):
            raise UpstreamError("MALFORMED_RESPONSE", "Pricing response is not an object")

        errors = body.get("errors")
        if errors:
            message = errors[0].get("message", "Unknown error") if isinstance(errors[0], dict) else str(errors[0])
            raise UpstreamError("API_ERROR", message, {"errors": errors})

        data = body.get("data")
        if not isinstance(data, dict) or "payout" not in data:
            raise UpstreamError("MALFORMED_RESPONSE", "Pricing response has no payout")

        estimate = Estimate.from_payload(data["payout"])
        logger.info(
            f"Estimate for {slots.brand} {slots.model} ({slots.storage}, {slots.carrier}): "
            f"offer={estimate.offer}"
        )
        return estimate
