"""Nearby resource search — concurrent fan-out over category filter tags.

For every (category × filter tag) pair we issue one nearby-places query.
All queries run concurrently, each with its own timeout, and are joined
with a "gather all, tolerate failures" policy: a failed or slow query
contributes nothing and never aborts its siblings. Results are consumed
in completion order, so when a place appears under several tags or
categories the first query to finish decides its label.

After the join the places are re-filtered by true great-circle distance
(the provider's circle filter is loose), deduplicated by place id,
sorted by distance and capped.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field

import mlflow
from mlflow.entities import SpanType

from recoveryfinder.core.errors import UpstreamTimeout
from recoveryfinder.core.types import Coordinate, PlaceCandidate, ResourceResult
from recoveryfinder.pipeline.categories import filters_for, label_for
from recoveryfinder.pipeline.distance import haversine_miles, miles_to_meters
from recoveryfinder.retrieval.geoapify import GeoapifyClient

logger = logging.getLogger(__name__)


@dataclass
class FanOutOutcome:
    """Result-or-error of one nearby-places query."""

    category: str
    filter_tag: str
    places: list[PlaceCandidate] = field(default_factory=list)
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def _query_filter(
    provider: GeoapifyClient,
    center: Coordinate,
    radius_meters: int,
    category: str,
    filter_tag: str,
    page_size: int,
    timeout: float,
) -> FanOutOutcome:
    """Run one places query. Never raises; failures come back as outcome.error."""
    try:
        places = await asyncio.wait_for(
            provider.places_nearby(center, radius_meters, filter_tag, limit=page_size, timeout=timeout),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        return FanOutOutcome(
            category, filter_tag,
            error=UpstreamTimeout(detail=f"places query {filter_tag} exceeded {timeout}s"),
        )
    except Exception as e:
        return FanOutOutcome(category, filter_tag, error=e)
    return FanOutOutcome(category, filter_tag, places=places)


async def gather_outcomes(
    queries: list,
    deadline: float | None = None,
) -> list[FanOutOutcome]:
    """Run query coroutines concurrently and return their outcomes in completion order.

    When the deadline elapses the unfinished queries are cancelled and only
    the outcomes already collected are returned. Queries still running when
    this coroutine exits for any reason are cancelled.
    """
    tasks = [asyncio.ensure_future(q) for q in queries]
    outcomes: list[FanOutOutcome] = []
    try:
        for next_done in asyncio.as_completed(tasks, timeout=deadline):
            outcome = await next_done
            if not outcome.ok:
                logger.warning(
                    "Places search failed for %s (%s): %s",
                    outcome.category, outcome.filter_tag, outcome.error,
                    extra={"category": outcome.category, "filter_tag": outcome.filter_tag},
                )
            outcomes.append(outcome)
    except asyncio.TimeoutError:
        logger.warning(
            "Search deadline of %ss reached, %d of %d queries unfinished",
            deadline, len(tasks) - len(outcomes), len(tasks),
        )
    finally:
        pending = [t for t in tasks if not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
    return outcomes


def merge_outcomes(
    outcomes: list[FanOutOutcome],
    center: Coordinate,
    radius_miles: float,
    max_results: int,
) -> list[ResourceResult]:
    """Distance-filter, dedupe (first seen wins), sort and cap the fan-out results."""
    seen: set[str] = set()
    results: list[ResourceResult] = []

    for outcome in outcomes:
        if not outcome.ok:
            continue
        label = label_for(outcome.category)
        for place in outcome.places:
            distance = haversine_miles(center, place.coordinate)
            if distance > radius_miles:
                continue
            if place.id in seen:
                continue
            seen.add(place.id)
            results.append(ResourceResult(
                id=place.id,
                name=place.name,
                address=place.address,
                type=label,
                lat=place.coordinate.lat,
                lng=place.coordinate.lng,
                distance=distance,
                phone=place.phone,
                website=place.website,
            ))

    results.sort(key=lambda r: r.distance)
    return results[:max_results]


@mlflow.trace(name="search_nearby", span_type=SpanType.RETRIEVER)
async def search_nearby(
    provider: GeoapifyClient,
    center: Coordinate,
    radius_miles: float,
    categories: list[str],
    *,
    max_results: int = 50,
    page_size: int = 50,
    per_query_timeout: float = 5.0,
    deadline: float | None = None,
) -> list[ResourceResult]:
    """Find resources of the given categories within radius_miles of center.

    Returns an empty list (not an error) when every query fails.
    """
    radius_meters = miles_to_meters(radius_miles)
    queries = [
        _query_filter(provider, center, radius_meters, category, tag, page_size, per_query_timeout)
        for category in categories
        for tag in filters_for(category)
    ]

    t0 = time.monotonic()
    outcomes = await gather_outcomes(queries, deadline=deadline)
    results = merge_outcomes(outcomes, center, radius_miles, max_results)

    failed = sum(1 for o in outcomes if not o.ok)
    logger.info(
        "Fan-out finished: %d queries, %d failed, %d results",
        len(queries), failed, len(results),
        extra={
            "step": "search",
            "result_count": len(results),
            "duration_ms": round((time.monotonic() - t0) * 1000, 1),
        },
    )
    return results
