"""Utilità geografiche / Geographic utilities (ricerca locker vicini / nearby locker search)."""

import math

EARTH_RADIUS_KM = 6371.0


def haversine(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distanza Haversine in km / Haversine distance in km."""
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = math.sin(dlat / 2) ** 2 + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(dlon / 2) ** 2
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def bounding_box(lat: float, lon: float, radius_km: float) -> tuple[float, float, float, float]:
    """
    Riquadro attorno a un punto, prefiltro SQL prima della distanza esatta /
    Box around a point, SQL prefilter before the exact distance.
    Ritorna (lat_min, lat_max, lon_min, lon_max).
    """
    delta_lat = radius_km / 111.0
    # Vicino ai poli il coseno tende a zero / Near the poles the cosine goes to zero
    delta_lon = radius_km / (111.0 * max(math.cos(math.radians(lat)), 1e-6))
    return (lat - delta_lat, lat + delta_lat, lon - delta_lon, lon + delta_lon)
