"""
Geocoding client for listing locations.

Resolves free-text addresses through a Nominatim-compatible search API
(https://nominatim.org/release-docs/latest/api/Search/).

Outcomes of resolve():
    GeocodeResult  -> first candidate, in provider ranking order
    None           -> provider answered with zero candidates (no match)
    InvalidInput   -> empty address, rejected before any request
    ProviderError  -> timeout, transport error, bad status, malformed body
"""

import logging
import math
from typing import Dict, Optional, Protocol

import httpx

from .errors import InvalidInput, ProviderError
from .models import GeocodeResult
from .utils import clean_text

logger = logging.getLogger(__name__)

NOMINATIM_BASE = "https://nominatim.openstreetmap.org"
NOMINATIM_TIMEOUT = 10  # seconds
DEFAULT_USER_AGENT = "listings-geosearch/1.0"


class Geocoder(Protocol):
    def resolve(self, address: str) -> Optional[GeocodeResult]:
        ...


class GeocodingClient:
    """Blocking geocoding client over httpx."""

    def __init__(
        self,
        base_url: str = NOMINATIM_BASE,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = NOMINATIM_TIMEOUT,
        limit: int = 1,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.limit = limit
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            headers={"User-Agent": user_agent, "Accept": "application/json"},
            transport=transport,
        )

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def resolve(self, address: str) -> Optional[GeocodeResult]:
        query = clean_text(address)
        if not query:
            raise InvalidInput("Address must not be empty")

        params = {"q": query, "format": "jsonv2", "limit": self.limit}
        try:
            response = self._client.get("/search", params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            logger.warning(f"Geocoder timeout for: {query}")
            raise ProviderError(f"Geocoder timed out for {query!r}", cause=e) from e
        except httpx.HTTPStatusError as e:
            logger.warning(f"Geocoder returned {e.response.status_code} for: {query}")
            raise ProviderError(
                f"Geocoder returned HTTP {e.response.status_code}", cause=e
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Geocoder error for '{query}': {e}")
            raise ProviderError(f"Geocoder request failed: {e}", cause=e) from e
        except ValueError as e:
            logger.error(f"Geocoder sent invalid JSON for '{query}': {e}")
            raise ProviderError("Geocoder response is not valid JSON", cause=e) from e

        if not isinstance(data, list):
            raise ProviderError(f"Unexpected geocoder response type: {type(data).__name__}")
        if not data:
            logger.info(f"Geocoder: no matches for '{query}'")
            return None

        return self._parse_candidate(query, data[0], len(data))

    @staticmethod
    def _parse_candidate(query: str, candidate, total: int) -> GeocodeResult:
        try:
            lat = float(candidate["lat"])
            lng = float(candidate["lon"])
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderError("Geocoder candidate has no usable coordinates", cause=e) from e

        if not (math.isfinite(lat) and math.isfinite(lng)) or abs(lat) > 90 or abs(lng) > 180:
            raise ProviderError(f"Geocoder returned out-of-range coordinates ({lat}, {lng})")

        result = GeocodeResult(
            latitude=lat,
            longitude=lng,
            display_address=candidate.get("display_name") or None,
        )
        logger.info(
            f"Geocoder: {total} candidates for '{query}', "
            f"selected '{result.display_address}' at ({lat}, {lng})"
        )
        return result


class MemoizingGeocoder:
    """
    Remembers outcomes (including no-match) for its own lifetime.

    Meant to live for one request; ProviderError is never cached.
    """

    def __init__(self, inner: Geocoder):
        self.inner = inner
        self._memo: Dict[str, Optional[GeocodeResult]] = {}

    def resolve(self, address: str) -> Optional[GeocodeResult]:
        key = clean_text(address).casefold()
        if key in self._memo:
            return self._memo[key]
        result = self.inner.resolve(address)
        self._memo[key] = result
        return result
