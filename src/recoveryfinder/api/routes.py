"""API route handlers for RecoveryFinder.

POST /api/resources  — resolve a location and list nearby resources
POST /api/geocode    — coordinates to a display address
GET  /api/categories — category catalogue for the search form
"""

import logging

from fastapi import APIRouter, Request

from recoveryfinder.api.schemas import (
    CategoriesResponse,
    ErrorResponse,
    ResourceSearchRequest,
    ResourceSearchResponse,
    ReverseGeocodeRequest,
    ReverseGeocodeResponse,
)
from recoveryfinder.config import settings
from recoveryfinder.core.errors import (
    ConfigurationError,
    InternalError,
    RecoveryFinderError,
    UpstreamError,
    UpstreamFailure,
)
from recoveryfinder.core.types import Coordinate
from recoveryfinder.pipeline.categories import list_categories
from recoveryfinder.pipeline.lookup import find_resources
from recoveryfinder.retrieval.geoapify import GeoapifyClient
from recoveryfinder.retrieval.geocode import reverse_geocode

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["resources"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input or location not found"},
    500: {"model": ErrorResponse, "description": "Provider not configured or unexpected failure"},
}


def get_provider(request: Request) -> GeoapifyClient:
    """The process-wide provider client created at startup."""
    provider = getattr(request.app.state, "provider", None)
    if provider is None:
        raise ConfigurationError()
    return provider


@router.post(
    "/resources",
    response_model=ResourceSearchResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
async def search_resources(body: ResourceSearchRequest, request: Request):
    """Find recovery-support resources near a location."""
    provider = get_provider(request)
    try:
        search = await find_resources(
            provider,
            body.location,
            category=body.category,
            radius=body.radius,
            settings=settings,
        )
    except RecoveryFinderError:
        raise
    except Exception as e:
        logger.exception("Resource search failed for location: %s", body.location)
        raise InternalError(detail=f"{type(e).__name__}: {e}") from e

    return ResourceSearchResponse.from_search(search)


@router.post(
    "/geocode",
    response_model=ReverseGeocodeResponse,
    responses=ERROR_RESPONSES,
)
async def geocode(body: ReverseGeocodeRequest, request: Request):
    """Reverse-geocode a coordinate pair, e.g. from the browser's geolocation."""
    coordinate = Coordinate(lat=body.lat, lng=body.lng)
    provider = get_provider(request)
    try:
        address = await reverse_geocode(provider, coordinate, timeout=settings.geocode_timeout)
    except UpstreamError as e:
        raise UpstreamFailure("Geocoding failed", detail=e.detail) from e
    except Exception as e:
        logger.exception("Reverse geocoding failed for %s,%s", body.lat, body.lng)
        raise InternalError("Geocoding failed", detail=f"{type(e).__name__}: {e}") from e

    return ReverseGeocodeResponse(address=address)


@router.get("/categories", response_model=CategoriesResponse)
async def categories():
    """Category keys, their display labels and the provider filters behind them."""
    return {"categories": list_categories()}
