"""Kiosk location search: zip code geocoding followed by a radius search."""
import logging
from typing import List, Optional, Tuple

import httpx

from config import (
    BULLSEYE_API_KEY,
    BULLSEYE_CLIENT_ID,
    BULLSEYE_INTERFACE_ID,
    GATEWAY_TIMEOUT_SECONDS,
    GEOCODING_API_URL,
    LOCATION_SEARCH_URL,
)
from models.location import KioskLocation
from services.errors import NotFoundError, UpstreamError
from services.gateways import LocationGateway

logger = logging.getLogger(__name__)


class LocationService(LocationGateway):
    """Finds kiosks near a zip code via Zippopotam and the Bullseye locator."""

    SEARCH_RADIUS = 1000
    PAGE_SIZE = 20

    def __init__(
        self,
        client_id: Optional[str] = BULLSEYE_CLIENT_ID,
        api_key: Optional[str] = BULLSEYE_API_KEY,
        interface_id: Optional[str] = BULLSEYE_INTERFACE_ID,
        geocoding_url: str = GEOCODING_API_URL,
        search_url: str = LOCATION_SEARCH_URL,
        timeout: float = GATEWAY_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize the location service.

        Raises:
            ValueError: If the Bullseye credentials are missing
        """
        if not client_id or not api_key or not interface_id:
            raise ValueError(
                "BULLSEYE_CLIENT_ID, BULLSEYE_API_KEY and BULLSEYE_INTERFACE_ID must be set"
            )
        self.client_id = client_id
        self.api_key = api_key
        self.interface_id = interface_id
        self.geocoding_url = geocoding_url.rstrip("/")
        self.search_url = search_url
        self.timeout = timeout
        self.transport = transport
        logger.info("Initialized LocationService")

    async def find_by_zip(self, zip_code: str) -> List[KioskLocation]:
        """
        Find kiosks near a zip code.

        Args:
            zip_code: 5-digit zip code, optionally with a -4 suffix

        Returns:
            Locations ordered as the search service returns them

        Raises:
            NotFoundError: If the zip code cannot be geocoded
            UpstreamError: If either service call fails
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            latitude, longitude = await self._geocode(client, zip_code)
            locations = await self._search(client, latitude, longitude)

        logger.info(f"Found {len(locations)} locations near {zip_code}")
        return locations

    async def _geocode(self, client: httpx.AsyncClient, zip_code: str) -> Tuple[float, float]:
        # The geocoder only knows 5-digit codes
        url = f"{self.geocoding_url}/{zip_code[:5]}"
        response = await self._get(client, url, "geocoding")
        if response.status_code == 404:
            raise NotFoundError(f"Location not found for zip code {zip_code}")
        body = self._json(response, "geocoding")

        places = body.get("places") if isinstance(body, dict) else None
        if not places:
            raise NotFoundError(f"Location not found for zip code {zip_code}")
        try:
            return float(places[0]["latitude"]), float(places[0]["longitude"])
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamError("MALFORMED_RESPONSE", "Geocoding response has no coordinates") from e

    async def _search(self, client: httpx.AsyncClient, latitude: float, longitude: float) -> List[KioskLocation]:
        params = {
            "FillAttr": "true",
            "GetHoursForUpcomingWeek": "true",
            "Radius": self.SEARCH_RADIUS,
            "StartIndex": 0,
            "PageSize": self.PAGE_SIZE,
            "LanguageCode": "en",
            "Latitude": latitude,
            "Longitude": longitude,
            "CountryId": 1,
            "InterfaceID": self.interface_id,
            "ClientId": self.client_id,
            "ApiKey": self.api_key,
        }
        response = await self._get(client, self.search_url, "location search", params=params)
        body = self._json(response, "location search")

        results = body.get("ResultList") if isinstance(body, dict) else None
        if not results:
            return []
        return [KioskLocation.from_payload(item) for item in results if isinstance(item, dict)]

    async def _get(self, client: httpx.AsyncClient, url: str, name: str, params=None) -> httpx.Response:
        try:
            response = await client.get(url, params=params)
        except httpx.TimeoutException as e:
            raise UpstreamError("TIMEOUT_ERROR", f"{name} request timed out") from e
        except httpx.HTTPError as e:
            raise UpstreamError("NETWORK_ERROR", f"{name} request failed: {e}") from e

        if response.status_code >= 400 and response.status_code != 404:
            raise UpstreamError(
                "HTTP_ERROR",
                f"{name} request failed with status {response.status_code}",
                {"status_code": response.status_code}
            )
        return response

    @staticmethod
    def _json(response: httpx.Response, name: str):
        if response.status_code == 404:
            raise UpstreamError("HTTP_ERROR", f"{name} endpoint not found", {"status_code": 404})
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError("MALFORMED_RESPONSE", f"{name} response is not JSON") from e
