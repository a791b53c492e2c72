from math import asin, cos, radians, sin, sqrt

EARTH_RADIUS_M = 6371000.0


def distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters between two coordinates (Haversine)."""
    phi1 = radians(lat1)
    phi2 = radians(lat2)
    d_phi = radians(lat2 - lat1)
    d_lambda = radians(lon2 - lon1)
    a = sin(d_phi / 2) ** 2 + cos(phi1) * cos(phi2) * sin(d_lambda / 2) ** 2
    # rounding can push a a hair past 1 for antipodal points
    return 2 * EARTH_RADIUS_M * asin(min(1.0, sqrt(a)))


def within_radius(lat, lon, host_lat, host_lon, radius_m) -> tuple[bool, float]:
    meters = distance(float(lat), float(lon), float(host_lat), float(host_lon))
    return meters <= float(radius_m), meters


def accuracy_label(accuracy_m) -> str:
    if accuracy_m is None:
        return "unknown"
    if accuracy_m <= 5:
        return "excellent"
    if accuracy_m <= 15:
        return "good"
    if accuracy_m <= 30:
        return "fair"
    return "poor"
