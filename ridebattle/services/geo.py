"""Great-circle distance between position fixes."""

from __future__ import annotations

import math

from ridebattle.schemas.ride import Fix

EARTH_RADIUS_KM = 6371.0


def haversine_km_coords(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance in kilometers between two lat/lon points in degrees."""

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2.0) ** 2
    # Rounding can push a a hair outside [0, 1] for antipodal points.
    a = min(1.0, max(0.0, a))
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return EARTH_RADIUS_KM * c


def haversine_km(a: Fix, b: Fix) -> float:
    return haversine_km_coords(a.latitude, a.longitude, b.latitude, b.longitude)
