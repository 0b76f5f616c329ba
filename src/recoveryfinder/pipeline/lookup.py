"""Resource lookup pipeline — location text to a sorted list of nearby resources.

    resolve_location  (1 geocode call, failures propagate)
        ↓
    search_nearby     (N concurrent places calls, failures tolerated)

Without a resolved centre no search is possible, so resolver errors end
the request. Fan-out errors only make the result less complete.
"""

import logging
import math
import time

import mlflow
from mlflow.entities import SpanType

from recoveryfinder.config import Settings
from recoveryfinder.core.errors import InvalidInput
from recoveryfinder.core.types import ResourceSearch
from recoveryfinder.pipeline.categories import expand_categories
from recoveryfinder.pipeline.search import search_nearby
from recoveryfinder.retrieval.geoapify import GeoapifyClient
from recoveryfinder.retrieval.geocode import resolve_location

logger = logging.getLogger(__name__)


def validate_radius(radius: float | None, settings: Settings) -> float:
    """Return the search radius in miles, applying the default when omitted."""
    if radius is None:
        return settings.default_radius_miles
    if isinstance(radius, bool) or not isinstance(radius, (int, float)) or not math.isfinite(radius):
        raise InvalidInput("Radius must be a number")
    if radius <= 0:
        raise InvalidInput("Radius must be greater than zero")
    if radius > settings.max_radius_miles:
        raise InvalidInput(f"Radius cannot exceed {settings.max_radius_miles:g} miles")
    return float(radius)


async def find_resources(
    provider: GeoapifyClient,
    location: str,
    category: str | None = None,
    radius: float | None = None,
    *,
    settings: Settings,
) -> ResourceSearch:
    """Resolve a location and search every requested category around it.

    Settings holds the API key and must not become a span input, so only the
    individual search values are passed on to run_lookup.
    """
    if not location or not location.strip():
        raise InvalidInput("Location is required")
    radius_miles = validate_radius(radius, settings)
    categories = expand_categories(category)

    return await run_lookup(
        provider,
        location,
        categories,
        radius_miles,
        category=category,
        bias_country=settings.bias_country,
        geocode_timeout=settings.geocode_timeout,
        places_timeout=settings.places_timeout,
        page_size=settings.places_page_size,
        max_results=settings.max_results,
        deadline=settings.search_deadline,
    )


@mlflow.trace(name="find_resources", span_type=SpanType.CHAIN)
async def run_lookup(
    provider: GeoapifyClient,
    location: str,
    categories: list[str],
    radius_miles: float,
    *,
    category: str | None = None,
    bias_country: str | None = None,
    geocode_timeout: float | None = None,
    places_timeout: float = 5.0,
    page_size: int = 50,
    max_results: int = 50,
    deadline: float | None = None,
) -> ResourceSearch:
    t0 = time.monotonic()
    resolved = await resolve_location(
        provider,
        location,
        bias_country=bias_country,
        timeout=geocode_timeout,
    )

    resources = await search_nearby(
        provider,
        resolved.coordinate,
        radius_miles,
        categories,
        max_results=max_results,
        page_size=page_size,
        per_query_timeout=places_timeout,
        deadline=deadline,
    )

    logger.info(
        "Found %d resources near %s within %g mi",
        len(resources), resolved.display_name, radius_miles,
        extra={
            "location": location,
            "category": category or "all",
            "result_count": len(resources),
            "duration_ms": round((time.monotonic() - t0) * 1000, 1),
        },
    )
    return ResourceSearch(
        location=resolved.display_name,
        center=resolved.coordinate,
        radius_miles=radius_miles,
        categories=categories,
        resources=resources,
    )
