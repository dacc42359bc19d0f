"""
Place search for location entry.

Thin async clients for OpenStreetMap Nominatim and LocationIQ, which share
a response shape. Only the location-entry surfaces use these; the booking
workflow never does.
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import BaseModel, ConfigDict, field_validator

from shared.config import Settings
from shared.errors import GeocodingError

logger = logging.getLogger("geocoding")


class Place(BaseModel):
    """One search hit."""
    model_config = ConfigDict(extra="ignore")

    display_name: str
    lat: float
    lon: float
    place_id: Optional[str] = None
    address: Optional[dict[str, Any]] = None

    @field_validator("place_id", mode="before")
    @classmethod
    def _stringify_place_id(cls, value: Any) -> Optional[str]:
        return None if value is None else str(value)


class NominatimClient:
    """Forward and reverse search against a Nominatim server."""

    search_path = "/search"
    reverse_path = "/reverse"
    response_format = "jsonv2"

    def __init__(
        self,
        base_url: str = "https://nominatim.openstreetmap.org",
        user_agent: str = "DreamEvents/1.0",
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self._client = client
        self._timeout = timeout

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()

    def _params(self, **params: Any) -> dict[str, str]:
        base = {"format": self.response_format, "addressdetails": "1"}
        base.update({k: str(v) for k, v in params.items()})
        return base

    def _headers(self) -> dict[str, str]:
        # Nominatim's usage policy requires an identifying User-Agent
        return {"Accept": "application/json", "User-Agent": self.user_agent}

    async def search(self, query: str, limit: int = 6) -> list[Place]:
        """
        Free-text forward search, best match first.

        Raises:
            GeocodingError: If the provider answers with an error status
        """
        if not query or not query.strip():
            return []
        response = await self.client.get(
            f"{self.base_url}{self.search_path}",
            params=self._params(q=query, limit=limit),
            headers=self._headers(),
        )
        if response.is_error:
            if response.status_code in (401, 403):
                raise GeocodingError(f"Geocoding authentication error (status {response.status_code})")
            raise GeocodingError(f"Geocoding search failed (status {response.status_code})")
        return [Place.model_validate(item) for item in response.json()]

    async def reverse(self, lat: float, lon: float) -> Optional[Place]:
        """Nearest place to a coordinate, or None if the provider has nothing usable."""
        response = await self.client.get(
            f"{self.base_url}{self.reverse_path}",
            params=self._params(lat=lat, lon=lon),
            headers=self._headers(),
        )
        if response.is_error:
            logger.warning(f"Reverse geocoding failed: {response.status_code} {response.text[:200]}")
            return None
        body = response.json()
        if not isinstance(body, dict) or "error" in body:
            return None
        return Place.model_validate(body)


class LocationIQClient(NominatimClient):
    """LocationIQ speaks the Nominatim dialect behind .php paths and an API key."""

    search_path = "/search.php"
    reverse_path = "/reverse.php"
    response_format = "json"

    def __init__(self, api_key: str, base_url: str = "https://us1.locationiq.com/v1", **kwargs):
        if not api_key:
            raise GeocodingError("LocationIQ API key not set")
        super().__init__(base_url=base_url, **kwargs)
        self.api_key = api_key

    def _params(self, **params: Any) -> dict[str, str]:
        merged = super()._params(**params)
        merged["key"] = self.api_key
        return merged


def build_geocoder(settings: Settings, client: Optional[httpx.AsyncClient] = None) -> NominatimClient:
    """Pick the configured provider."""
    overrides = {"base_url": settings.GEOCODING_BASE_URL} if settings.GEOCODING_BASE_URL else {}
    if settings.GEOCODING_PROVIDER == "locationiq":
        return LocationIQClient(
            api_key=settings.GEOCODING_API_KEY,
            **overrides,
            user_agent=settings.GEOCODING_USER_AGENT,
            client=client,
            timeout=settings.GEOCODING_TIMEOUT_SECONDS,
        )
    return NominatimClient(
        **overrides,
        user_agent=settings.GEOCODING_USER_AGENT,
        client=client,
        timeout=settings.GEOCODING_TIMEOUT_SECONDS,
    )
