"""Rentcast real-estate market adapter. Payloads are passed through unchanged."""

from typing import Any, Optional

from relocation_insights.config import settings
from relocation_insights.exceptions import ProviderError
from relocation_insights.logging_config import get_logger
from relocation_insights.providers.base import BaseProvider, status_of

logger = get_logger(__name__)

RENTCAST_API_URL = "https://api.rentcast.io/v1"


class RentcastProvider(BaseProvider):
    """
    Rentcast client.

    Listings degrade to ``[]``, everything else to None. A 404 from a
    market endpoint usually means Rentcast moved or renamed it.
    """

    NAME = "Rentcast"
    BASE_URL = RENTCAST_API_URL

    def __init__(self, api_key: Optional[str] = None, **kwargs):
        super().__init__(
            api_key=api_key if api_key is not None else settings.providers.rentcast_api_key,
            **kwargs,
        )

    def default_headers(self) -> dict[str, str]:
        headers = super().default_headers()
        headers["Content-Type"] = "application/json"
        return headers

    def _get(self, path: str, params: dict[str, Any]) -> Any:
        return self.request_json(path, params=params, headers={"X-Api-Key": self.require_key()})

    def _log_failure(self, what: str, path: str, error: ProviderError) -> None:
        if status_of(error) == 404:
            logger.warning(
                "Rentcast endpoint not found: %s%s. This may indicate the Rentcast API has changed.",
                RENTCAST_API_URL, path,
            )
        else:
            logger.warning("Error fetching %s: %s", what, error.message)

    def get_property_listings(self, city: str, state: str, limit: int = 10) -> list[dict[str, Any]]:
        try:
            listings = self._get("/properties", {"city": city, "state": state, "status": "active", "limit": limit})
        except ProviderError as e:
            self._log_failure("property listings", "/properties", e)
            return []
        if not isinstance(listings, list):
            logger.warning("Unexpected property listings payload for %s, %s", city, state)
            return []
        logger.info("Fetched %d property listings for %s, %s", len(listings), city, state)
        return listings

    def get_market_trends(self, city: str, state: str) -> Optional[dict[str, Any]]:
        try:
            trends = self._get("/market/stats", {"city": city, "state": state})
        except ProviderError as e:
            self._log_failure("market trends", "/market/stats", e)
            return None
        logger.info("Fetched market trends for %s, %s", city, state)
        return trends

    def get_rental_price_history(self, city: str, state: str, months: int = 12) -> Optional[dict[str, Any]]:
        try:
            history = self._get("/market/rental-trends", {"city": city, "state": state, "months": months})
        except ProviderError as e:
            self._log_failure("rental price history", "/market/rental-trends", e)
            return None
        logger.info("Fetched %d months of rental price history for %s, %s", months, city, state)
        return history

    def get_property_by_address(self, address: str) -> Optional[dict[str, Any]]:
        try:
            details = self._get("/property-details", {"address": address})
        except ProviderError as e:
            self._log_failure("property details", "/property-details", e)
            return None
        logger.info("Fetched property details for %s", address)
        return details
