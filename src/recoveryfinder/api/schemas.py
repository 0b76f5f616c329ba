"""Pydantic request/response models for the RecoveryFinder API.

These are the API contract, decoupled from the internal domain dataclasses.
Field aliases keep the camelCase names the front end already consumes.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from recoveryfinder.core.types import ResourceSearch

MAX_LOCATION_LENGTH = 200


class ResourceSearchRequest(BaseModel):
    """Request body for POST /api/resources."""

    location: str | None = Field(
        default=None,
        validate_default=True,
        examples=["10001", "Austin, TX"],
        description="City, address or postal code to search around",
    )
    category: str | None = Field(
        default=None,
        examples=["fitness"],
        description="Category key, or 'all' / omitted for every category",
    )
    radius: float | None = Field(
        default=None,
        examples=[25],
        description="Search radius in miles (default 25)",
    )

    @field_validator("location")
    @classmethod
    def _require_location(cls, value: str | None) -> str:
        if value is None or not value.strip():
            raise ValueError("Location is required")
        if len(value) > MAX_LOCATION_LENGTH:
            raise ValueError(f"Location must be at most {MAX_LOCATION_LENGTH} characters")
        return value.strip()

    @field_validator("radius")
    @classmethod
    def _positive_radius(cls, value: float | None) -> float | None:
        if value is not None and value <= 0:
            raise ValueError("Radius must be greater than zero")
        return value


class ReverseGeocodeRequest(BaseModel):
    """Request body for POST /api/geocode."""

    lat: float | None = None
    lng: float | None = None

    @model_validator(mode="after")
    def _require_coordinates(self) -> "ReverseGeocodeRequest":
        if self.lat is None or self.lng is None:
            raise ValueError("Coordinates required")
        return self


class CoordinateResponse(BaseModel):
    lat: float
    lng: float


class ResourceResponse(BaseModel):
    id: str
    name: str
    address: str
    phone: str | None = None
    website: str | None = None
    type: str
    lat: float
    lng: float
    distance: float


class ResourceSearchResponse(BaseModel):
    """Response body for POST /api/resources."""

    model_config = ConfigDict(populate_by_name=True)

    resources: list[ResourceResponse]
    location: str
    center_coords: CoordinateResponse = Field(alias="centerCoords")

    @classmethod
    def from_search(cls, search: ResourceSearch) -> "ResourceSearchResponse":
        return cls(
            resources=[ResourceResponse(**r.as_dict()) for r in search.resources],
            location=search.location,
            center_coords=CoordinateResponse(**search.center.as_dict()),
        )


class ReverseGeocodeResponse(BaseModel):
    address: str


class CategoryResponse(BaseModel):
    key: str
    label: str
    filters: list[str]


class CategoriesResponse(BaseModel):
    categories: list[CategoryResponse]


class ErrorResponse(BaseModel):
    error: str
