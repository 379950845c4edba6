"""Great-circle distances between golfers, in statute miles."""

import math
from typing import Protocol

# Mean Earth radius in miles
EARTH_RADIUS_MILES = 3959


class HasCoordinates(Protocol):
    latitude: float
    longitude: float


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Haversine distance between two points given in decimal degrees.

    Inputs are trusted. Profiles bound latitude to ±90 and longitude to ±180
    through their field constraints.

    Args:
        lat1: Latitude of the first point.
        lon1: Longitude of the first point.
        lat2: Latitude of the second point.
        lon2: Longitude of the second point.

    Returns:
        float: Distance in miles, symmetric in its two points and never negative.
    """
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    half_dphi = math.radians(lat2 - lat1) / 2
    half_dlambda = math.radians(lon2 - lon1) / 2

    a = math.sin(half_dphi) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(half_dlambda) ** 2
    # Rounding can push a past 1 for near-antipodal points
    a = min(1.0, a)
    return 2 * EARTH_RADIUS_MILES * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def profile_distance(first: HasCoordinates, second: HasCoordinates) -> float:
    """Distance in miles between two objects exposing latitude/longitude."""
    return haversine_distance(first.latitude, first.longitude, second.latitude, second.longitude)


def within_radius(first: HasCoordinates, second: HasCoordinates, radius: float) -> bool:
    """Whether two points lie no more than `radius` miles apart."""
    return profile_distance(first, second) <= radius
