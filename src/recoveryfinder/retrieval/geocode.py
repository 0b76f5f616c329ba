"""Location resolution — free text to a single search centre.

Short numeric postal codes collide across countries ("10001" is New York
and also a postal code in several other nations), so for postal-code-like
input we ask the provider for a few candidates and prefer one in the bias
country. Plain city/address text stays at a single candidate.
"""

import logging
import re

import mlflow
from mlflow.entities import SpanType

from recoveryfinder.core.errors import InvalidInput, LocationNotFound
from recoveryfinder.core.types import Coordinate, GeocodeCandidate, ResolvedLocation
from recoveryfinder.retrieval.geoapify import GeoapifyClient

logger = logging.getLogger(__name__)

POSTAL_CODE_RE = re.compile(r"^\d{4,6}$")
POSTAL_CODE_CANDIDATES = 3


def is_postal_code_like(text: str) -> bool:
    """True for short all-digit input such as '10001' or '2000'."""
    return bool(POSTAL_CODE_RE.match(text.strip()))


def choose_candidate(
    candidates: list[GeocodeCandidate],
    bias_country: str | None,
    postal_code: bool,
) -> GeocodeCandidate:
    """Pick the best candidate: bias country first for postal codes, else top-ranked."""
    if postal_code and bias_country and len(candidates) > 1:
        wanted = bias_country.lower()
        for candidate in candidates:
            if (candidate.country_code or "").lower() == wanted:
                return candidate
    return candidates[0]


@mlflow.trace(name="resolve_location", span_type=SpanType.TOOL)
async def resolve_location(
    provider: GeoapifyClient,
    text: str,
    bias_country: str | None = None,
    timeout: float | None = None,
) -> ResolvedLocation:
    """Geocode location text into a ResolvedLocation.

    Raises:
        InvalidInput: empty text (no provider call is made).
        UpstreamTimeout / UpstreamFailure: the geocode call failed. Not retried.
        LocationNotFound: the provider returned no candidates.
    """
    query = (text or "").strip()
    if not query:
        raise InvalidInput("Location is required")

    postal_code = is_postal_code_like(query)
    limit = POSTAL_CODE_CANDIDATES if postal_code else 1

    candidates = await provider.geocode(query, limit=limit, timeout=timeout)
    if not candidates:
        logger.warning("No geocoding results for: %s", query, extra={"location": query})
        raise LocationNotFound()

    chosen = choose_candidate(candidates, bias_country, postal_code)
    logger.info(
        "Resolved %r to %s (%d candidate(s))",
        query, chosen.display_name, len(candidates),
        extra={"location": query, "step": "geocode"},
    )
    return ResolvedLocation(coordinate=chosen.coordinate, display_name=chosen.display_name)


async def reverse_geocode(
    provider: GeoapifyClient,
    coordinate: Coordinate,
    timeout: float | None = None,
) -> str:
    """Display address for a coordinate, falling back to the literal 'lat,lng'."""
    address = await provider.reverse_geocode(coordinate, timeout=timeout)
    if address:
        return address
    logger.info("No reverse geocode match for %s,%s", coordinate.lat, coordinate.lng)
    return f"{_format_degree(coordinate.lat)},{_format_degree(coordinate.lng)}"


def _format_degree(value: float) -> str:
    # Whole degrees print without ".0" so {"lat": 40} comes back as "40"
    return str(int(value)) if float(value).is_integer() else repr(float(value))
