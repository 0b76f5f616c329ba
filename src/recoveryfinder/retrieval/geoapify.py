"""Geoapify API client — forward geocoding, reverse geocoding, nearby places.

One instance per process, sharing a pooled httpx.AsyncClient. Every call
takes its own timeout; httpx failures are translated into UpstreamTimeout /
UpstreamFailure so callers never see transport exceptions.
"""

import logging

import httpx

from recoveryfinder.config import Settings
from recoveryfinder.core.errors import (
    ConfigurationError,
    InvalidInput,
    UpstreamFailure,
    UpstreamTimeout,
)
from recoveryfinder.core.types import Coordinate, GeocodeCandidate, PlaceCandidate

logger = logging.getLogger(__name__)

GEOCODE_SEARCH_PATH = "/v1/geocode/search"
GEOCODE_REVERSE_PATH = "/v1/geocode/reverse"
PLACES_PATH = "/v2/places"


class GeoapifyClient:
    """Async client for the Geoapify geocoding and places APIs."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.geoapify.com",
        http: httpx.AsyncClient | None = None,
        default_timeout: float = 10.0,
    ) -> None:
        if not api_key:
            raise ConfigurationError()
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._http = http or httpx.AsyncClient()
        self._default_timeout = default_timeout

    @classmethod
    def from_settings(cls, settings: Settings, http: httpx.AsyncClient | None = None) -> "GeoapifyClient":
        return cls(
            api_key=settings.geoapify_api_key,
            base_url=settings.geoapify_base_url,
            http=http,
            default_timeout=settings.geocode_timeout,
        )

    def __repr__(self) -> str:
        return f"GeoapifyClient(base_url={self._base_url!r})"

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _get(self, path: str, params: dict, timeout: float | None) -> dict:
        """GET a provider endpoint and return the decoded JSON body."""
        url = f"{self._base_url}{path}"
        try:
            resp = await self._http.get(
                url,
                params={**params, "apiKey": self._api_key},
                timeout=timeout or self._default_timeout,
            )
            resp.raise_for_status()
            return resp.json()
        except httpx.TimeoutException as e:
            raise UpstreamTimeout(detail=f"Geoapify {path} timed out: {e!r}") from e
        except httpx.HTTPStatusError as e:
            raise UpstreamFailure(detail=f"Geoapify {path} returned {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise UpstreamFailure(detail=f"Geoapify {path} failed: {e!r}") from e

    async def geocode(self, text: str, limit: int = 1, timeout: float | None = None) -> list[GeocodeCandidate]:
        """Forward-geocode free text into ranked candidates (best first)."""
        data = await self._get(
            GEOCODE_SEARCH_PATH,
            {"text": text, "limit": limit, "format": "json"},
            timeout,
        )

        candidates = []
        for item in data.get("results", []):
            try:
                coordinate = Coordinate(lat=float(item["lat"]), lng=float(item["lon"]))
            except (KeyError, TypeError, ValueError, InvalidInput):
                logger.debug("Skipping geocode result without usable coordinates: %s", item)
                continue
            candidates.append(GeocodeCandidate(
                coordinate=coordinate,
                display_name=item.get("formatted") or text,
                country_code=item.get("country_code"),
            ))
        return candidates

    async def reverse_geocode(self, coordinate: Coordinate, timeout: float | None = None) -> str | None:
        """Formatted address for a coordinate, or None when nothing matches."""
        data = await self._get(
            GEOCODE_REVERSE_PATH,
            {"lat": coordinate.lat, "lon": coordinate.lng, "format": "json"},
            timeout,
        )
        results = data.get("results", [])
        if not results:
            return None
        return results[0].get("formatted") or None

    async def places_nearby(
        self,
        center: Coordinate,
        radius_meters: int,
        filter_tag: str,
        limit: int = 50,
        timeout: float | None = None,
    ) -> list[PlaceCandidate]:
        """Places of one category tag inside a circle around the centre."""
        data = await self._get(
            PLACES_PATH,
            {
                "categories": filter_tag,
                "filter": f"circle:{center.lng},{center.lat},{radius_meters}",
                "limit": limit,
            },
            timeout,
        )
        places = []
        for feature in data.get("features", []):
            place = _parse_place(feature)
            if place is not None:
                places.append(place)
        return places


def _parse_place(feature: dict) -> PlaceCandidate | None:
    """Build a PlaceCandidate from a GeoJSON feature, or None if it lacks an id or point."""
    props = feature.get("properties") or {}
    place_id = props.get("place_id")
    coords = (feature.get("geometry") or {}).get("coordinates") or []
    if not place_id or len(coords) < 2:
        return None

    try:
        coordinate = Coordinate(lat=float(coords[1]), lng=float(coords[0]))
    except (TypeError, ValueError, InvalidInput):
        return None

    raw = (props.get("datasource") or {}).get("raw") or {}
    return PlaceCandidate(
        id=str(place_id),
        name=props.get("name") or props.get("address_line1") or "Unnamed Place",
        address=props.get("formatted") or props.get("address_line2") or "Address not available",
        coordinate=coordinate,
        phone=raw.get("phone") or raw.get("contact:phone"),
        website=raw.get("website") or raw.get("contact:website"),
    )
