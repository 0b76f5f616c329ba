"""Great-circle distance helpers.

Pure functions, no I/O. Distances are in statute miles, rounded to one
decimal so that the value shown to the user and the value used for the
radius filter are the same number.
"""

import math

from recoveryfinder.core.types import Coordinate

EARTH_RADIUS_MILES = 3959
METERS_PER_MILE = 1609.34


def haversine_miles(a: Coordinate, b: Coordinate) -> float:
    """Haversine distance between two coordinates, rounded to 0.1 mile."""
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)

    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return round(EARTH_RADIUS_MILES * c, 1)


def miles_to_meters(miles: float) -> int:
    """Convert a radius in miles to whole metres for the provider's circle filter."""
    return round(miles * METERS_PER_MILE)
