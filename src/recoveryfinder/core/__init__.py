"""Core domain types shared across all recoveryfinder modules."""

from recoveryfinder.core.errors import (
    ConfigurationError,
    InvalidInput,
    LocationNotFound,
    RecoveryFinderError,
    UpstreamError,
    UpstreamFailure,
    UpstreamTimeout,
)
from recoveryfinder.core.types import (
    Coordinate,
    GeocodeCandidate,
    PlaceCandidate,
    ResolvedLocation,
    ResourceResult,
    ResourceSearch,
)

__all__ = [
    "ConfigurationError",
    "Coordinate",
    "GeocodeCandidate",
    "InvalidInput",
    "LocationNotFound",
    "PlaceCandidate",
    "RecoveryFinderError",
    "ResolvedLocation",
    "ResourceResult",
    "ResourceSearch",
    "UpstreamError",
    "UpstreamFailure",
    "UpstreamTimeout",
]
