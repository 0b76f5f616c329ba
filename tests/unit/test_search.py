"""Tests for the concurrent nearby-resource fan-out."""

import asyncio
import time

import pytest

from recoveryfinder.core.errors import UpstreamFailure
from recoveryfinder.core.types import Coordinate, PlaceCandidate
from recoveryfinder.pipeline.categories import CATEGORY_FILTERS, filters_for
from recoveryfinder.pipeline.search import FanOutOutcome, merge_outcomes, search_nearby

CENTER = Coordinate(40.0, -75.0)
ALL_TAGS = [tag for tags in CATEGORY_FILTERS.values() for tag in tags]


def _place(place_id: str, dlat: float, dlng: float = 0.0, **kwargs) -> PlaceCandidate:
    """A place offset from CENTER; 0.1 deg of latitude is ~6.9 miles."""
    return PlaceCandidate(
        id=place_id,
        name=f"Place {place_id}",
        address=f"{place_id} Main St",
        coordinate=Coordinate(CENTER.lat + dlat, CENTER.lng + dlng),
        **kwargs,
    )


def _assert_invariants(results, radius, cap):
    ids = [r.id for r in results]
    assert len(ids) == len(set(ids))
    assert all(r.distance <= radius for r in results)
    assert [r.distance for r in results] == sorted(r.distance for r in results)
    assert len(results) <= cap


class TestSearchNearby:
    async def test_single_category_radius_filter_and_dedupe(self, make_provider):
        provider = make_provider(places={
            "sport.fitness": [_place("gym", 0.05), _place("far", 0.2)],
            "sport.sports_centre": [_place("centre", 0.1), _place("gym", 0.05)],
        })
        results = await search_nearby(provider, CENTER, 10, ["fitness"])

        assert [r.id for r in results] == ["gym", "centre"]
        assert all(r.type == "Fitness" for r in results)
        assert sorted(provider.queried_tags) == sorted(filters_for("fitness"))
        assert {c["radius_meters"] for c in provider.places_calls} == {16093}
        _assert_invariants(results, 10, 50)

    async def test_all_categories_place_appears_once(self, make_provider):
        provider = make_provider(places={
            "healthcare.hospital": [_place("shared", 0.02), _place("hospital", 0.03)],
            "sport.fitness": [_place("shared", 0.02)],
            "education.college": [_place("college", 0.04)],
        })
        results = await search_nearby(provider, CENTER, 25, list(CATEGORY_FILTERS))

        assert sorted(provider.queried_tags) == sorted(ALL_TAGS)
        assert [r.id for r in results].count("shared") == 1
        shared = next(r for r in results if r.id == "shared")
        assert shared.type in ("Health & Wellness", "Fitness")
        _assert_invariants(results, 25, 50)

    async def test_failed_queries_are_skipped(self, make_provider):
        provider = make_provider(
            places={"sport.fitness": [_place("gym", 0.01)], "sport.swimming_pool": [_place("pool", 0.02)]},
            fail_tags=("sport.sports_centre", "sport.swimming_pool"),
        )
        results = await search_nearby(provider, CENTER, 10, ["fitness"])
        assert [r.id for r in results] == ["gym"]

    async def test_every_query_failing_returns_empty(self, make_provider):
        provider = make_provider(fail_tags=tuple(ALL_TAGS))
        results = await search_nearby(provider, CENTER, 25, list(CATEGORY_FILTERS))
        assert results == []
        assert len(provider.places_calls) == len(ALL_TAGS)

    async def test_slow_query_times_out_without_stalling_others(self, make_provider):
        provider = make_provider(
            places={"leisure.spa": [_place("spa", 0.01)], "healthcare.pharmacy": [_place("rx", 0.02)]},
            delays={"leisure.spa": 10.0},
        )
        results = await search_nearby(provider, CENTER, 10, ["wellness"], per_query_timeout=0.05)
        assert [r.id for r in results] == ["rx"]

    async def test_deadline_returns_partial_results(self, make_provider):
        provider = make_provider(
            places={"sport.fitness": [_place("gym", 0.01)], "sport.sports_centre": [_place("slow", 0.02)]},
            delays={"sport.sports_centre": 10.0, "sport.swimming_pool": 10.0},
        )
        results = await search_nearby(
            provider, CENTER, 10, ["fitness"], per_query_timeout=30.0, deadline=0.1,
        )
        assert [r.id for r in results] == ["gym"]

    async def test_deadline_cancels_unfinished_queries(self, make_provider):
        provider = make_provider(
            places={"sport.fitness": [_place("gym", 0.01)]},
            delays={"sport.sports_centre": 10.0, "sport.swimming_pool": 10.0},
        )
        t0 = time.monotonic()
        await search_nearby(provider, CENTER, 10, ["fitness"], per_query_timeout=30.0, deadline=0.1)

        assert time.monotonic() - t0 < 5.0
        assert sorted(provider.cancelled_tags) == ["sport.sports_centre", "sport.swimming_pool"]

    async def test_cancelled_search_cancels_its_queries(self, make_provider):
        slow = {tag: 10.0 for tag in filters_for("career")}
        provider = make_provider(delays=slow)
        task = asyncio.ensure_future(
            search_nearby(provider, CENTER, 10, ["career"], per_query_timeout=30.0, deadline=None)
        )
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert sorted(provider.cancelled_tags) == sorted(slow)

    async def test_result_count_capped(self, make_provider):
        many = [_place(f"p{i}", 0.001 * i) for i in range(80)]
        provider = make_provider(places={"sport.fitness": many})
        results = await search_nearby(provider, CENTER, 25, ["fitness"], max_results=50)

        assert len(results) == 50
        _assert_invariants(results, 25, 50)
        assert results[0].id == "p0"

    async def test_page_size_forwarded(self, make_provider):
        provider = make_provider()
        await search_nearby(provider, CENTER, 5, ["career"], page_size=20)
        assert {c["limit"] for c in provider.places_calls} == {20}

    async def test_unknown_category_uses_default_filters(self, make_provider):
        provider = make_provider(places={"leisure.spa": [_place("spa", 0.01)]})
        results = await search_nearby(provider, CENTER, 5, ["astrology"])

        assert sorted(provider.queried_tags) == sorted(filters_for("wellness"))
        assert results[0].type == "Wellness Center"

    async def test_contact_details_carried_through(self, make_provider):
        provider = make_provider(places={
            "education.school": [_place("school", 0.01, phone="555-0100", website="https://school.example")],
        })
        results = await search_nearby(provider, CENTER, 5, ["career"])
        assert results[0].phone == "555-0100"
        assert results[0].website == "https://school.example"
        assert results[0].type == "Career Support"


class TestMergeOutcomes:
    def test_first_outcome_wins_label(self):
        outcomes = [
            FanOutOutcome("detox", "healthcare.hospital", places=[_place("shared", 0.01)]),
            FanOutOutcome("fitness", "sport.fitness", places=[_place("shared", 0.01)]),
        ]
        results = merge_outcomes(outcomes, CENTER, 5, 50)
        assert len(results) == 1
        assert results[0].type == "Health & Wellness"

    def test_failed_outcomes_ignored(self):
        outcomes = [
            FanOutOutcome("detox", "healthcare.hospital", error=UpstreamFailure(detail="boom")),
            FanOutOutcome("career", "education.school", places=[_place("school", 0.01)]),
        ]
        results = merge_outcomes(outcomes, CENTER, 5, 50)
        assert [r.id for r in results] == ["school"]

    def test_boundary_distance_included(self):
        place = _place("edge", 0.1)
        results = merge_outcomes([FanOutOutcome("career", "education.school", places=[place])], CENTER, 6.9, 50)
        assert [r.distance for r in results] == [6.9]

    @pytest.mark.parametrize("cap", [0, 1, 3])
    def test_cap(self, cap):
        places = [_place(f"p{i}", 0.01 * (i + 1)) for i in range(5)]
        results = merge_outcomes([FanOutOutcome("career", "education.school", places=places)], CENTER, 25, cap)
        assert [r.id for r in results] == [f"p{i}" for i in range(cap)]
