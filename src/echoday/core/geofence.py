"""Geofence math - pure distance and transition checks."""

import math

from .models import LocationReminder

EARTH_RADIUS_M = 6_371_000
NEAR_FACTOR = 2.0


def haversine_meters(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two coordinates, in metres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lng2 - lng1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(a))


def evaluate_geofence(
    rule: LocationReminder,
    position: tuple[float, float],
    was_inside: bool | None,
) -> tuple[bool, bool]:
    """
    Decide whether a position crossing fires the geofence.

    ``was_inside`` is the previous state (None when unknown, e.g. first poll).
    "enter" fires on outside -> inside, "exit" on inside -> outside, "near"
    when entering twice the radius. Unknown previous state counts as outside.

    Returns: (fired, inside) where ``inside`` is the state to remember.
    """
    distance = haversine_meters(rule.lat, rule.lng, position[0], position[1])
    radius = rule.radius * NEAR_FACTOR if rule.trigger == "near" else rule.radius
    inside = distance <= radius

    if not rule.enabled:
        return False, inside
    if rule.trigger == "exit":
        return bool(was_inside) and not inside, inside
    return inside and not was_inside, inside
