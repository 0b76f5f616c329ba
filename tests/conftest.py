"""Shared test fixtures."""

import asyncio
import os

import mlflow
import pytest

from recoveryfinder.core.errors import UpstreamFailure
from recoveryfinder.core.types import GeocodeCandidate, PlaceCandidate

# Newer mlflow rejects file-store tracking URIs unless explicitly allowed.
os.environ.setdefault("MLFLOW_ALLOW_FILE_STORE", "true")


@pytest.fixture(autouse=True)
def _disable_mlflow_tracing():
    """Disable MLflow tracing during tests — no side effects, no mlruns/ writes."""
    mlflow.tracing.disable()
    yield
    mlflow.tracing.enable()


class FakeProvider:
    """In-memory stand-in for GeoapifyClient that records every call.

    places: {filter_tag: [PlaceCandidate, ...]}
    fail_tags: tags whose query raises UpstreamFailure
    delays: {filter_tag: seconds} to sleep before answering; a query cancelled
        while sleeping is recorded in cancelled_tags
    """

    def __init__(
        self,
        candidates: list[GeocodeCandidate] | None = None,
        places: dict[str, list[PlaceCandidate]] | None = None,
        fail_tags: tuple[str, ...] = (),
        delays: dict[str, float] | None = None,
        geocode_error: Exception | None = None,
        address: str | None = None,
        reverse_error: Exception | None = None,
    ) -> None:
        self.candidates = candidates or []
        self.places = places or {}
        self.fail_tags = set(fail_tags)
        self.delays = delays or {}
        self.geocode_error = geocode_error
        self.address = address
        self.reverse_error = reverse_error
        self.geocode_calls: list[dict] = []
        self.places_calls: list[dict] = []
        self.reverse_calls: list = []
        self.cancelled_tags: list[str] = []

    async def geocode(self, text, limit=1, timeout=None):
        self.geocode_calls.append({"text": text, "limit": limit, "timeout": timeout})
        if self.geocode_error is not None:
            raise self.geocode_error
        return self.candidates[:limit]

    async def reverse_geocode(self, coordinate, timeout=None):
        self.reverse_calls.append(coordinate)
        if self.reverse_error is not None:
            raise self.reverse_error
        return self.address

    async def places_nearby(self, center, radius_meters, filter_tag, limit=50, timeout=None):
        self.places_calls.append({
            "center": center,
            "radius_meters": radius_meters,
            "filter_tag": filter_tag,
            "limit": limit,
        })
        delay = self.delays.get(filter_tag)
        if delay:
            try:
                await asyncio.sleep(delay)
            except asyncio.CancelledError:
                self.cancelled_tags.append(filter_tag)
                raise
        if filter_tag in self.fail_tags:
            raise UpstreamFailure(detail=f"{filter_tag} returned 503")
        return list(self.places.get(filter_tag, []))

    async def aclose(self):
        pass

    @property
    def queried_tags(self) -> list[str]:
        return [call["filter_tag"] for call in self.places_calls]


@pytest.fixture
def make_provider():
    """Factory for FakeProvider instances."""
    return FakeProvider
