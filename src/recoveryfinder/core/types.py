"""Domain types for the recovery resource finder.

All shared dataclasses live here to prevent circular imports and keep a
single source of truth for the domain model. Every entity is request-scoped:
built while serving one search and dropped once the response is serialized.
"""

from dataclasses import dataclass, field

from recoveryfinder.core.errors import InvalidInput


# ---------------------------------------------------------------------------
# Geography
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Coordinate:
    """A WGS84 point in decimal degrees."""

    lat: float
    lng: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.lat <= 90.0:
            raise InvalidInput(f"Latitude out of range: {self.lat}")
        if not -180.0 <= self.lng <= 180.0:
            raise InvalidInput(f"Longitude out of range: {self.lng}")

    def as_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class GeocodeCandidate:
    """One ranked forward-geocoding match from the provider."""

    coordinate: Coordinate
    display_name: str
    country_code: str | None = None


@dataclass(frozen=True)
class ResolvedLocation:
    """The single search centre chosen for a request."""

    coordinate: Coordinate
    display_name: str


# ---------------------------------------------------------------------------
# Places
# ---------------------------------------------------------------------------

@dataclass
class PlaceCandidate:
    """A raw place record from a nearby-places query."""

    id: str
    name: str
    address: str
    coordinate: Coordinate
    phone: str | None = None
    website: str | None = None


@dataclass
class ResourceResult:
    """A place as returned to the caller, tagged with its category label."""

    id: str
    name: str
    address: str
    type: str
    lat: float
    lng: float
    distance: float
    phone: str | None = None
    website: str | None = None

    def as_dict(self) -> dict:
        out = {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "type": self.type,
            "lat": self.lat,
            "lng": self.lng,
            "distance": self.distance,
        }
        if self.phone:
            out["phone"] = self.phone
        if self.website:
            out["website"] = self.website
        return out


@dataclass
class ResourceSearch:
    """Result of one resource search: the centre and the places around it."""

    location: str
    center: Coordinate
    radius_miles: float
    categories: list[str]
    resources: list[ResourceResult] = field(default_factory=list)
