"""
Geographic utility functions.

This is the SINGLE SOURCE OF TRUTH for geographic calculations.
DO NOT duplicate these functions elsewhere.

All distances are in meters, durations in seconds, speeds in m/s.
"""
import math
from typing import Sequence

from .coordinates import Coordinate, parse_timestamp

# Mean Earth radius in meters
EARTH_RADIUS_M = 6_371_000.0

# Default speed cap for outlier smoothing (20 m/s = 72 km/h)
DEFAULT_SMOOTHING_MAX_SPEED = 20.0


def haversine(
    lat1: float, lon1: float,
    lat2: float, lon2: float
) -> float:
    """
    Calculate great-circle distance between two points.

    Args:
        lat1, lon1: First point coordinates (degrees)
        lat2, lon2: Second point coordinates (degrees)

    Returns:
        Distance in meters
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2 +
        math.cos(lat1_rad) * math.cos(lat2_rad) *
        math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_M * c


def calculate_distance(a: Coordinate, b: Coordinate) -> float:
    """Distance between two coordinates in meters."""
    return haversine(a.latitude, a.longitude, b.latitude, b.longitude)


def calculate_total_distance(coordinates: Sequence[Coordinate]) -> float:
    """
    Calculate total path distance.

    Returns:
        Sum of consecutive-pair distances, 0 for fewer than two points
    """
    total = 0.0

    for i in range(1, len(coordinates)):
        total += calculate_distance(coordinates[i - 1], coordinates[i])

    return total


def time_delta(a: Coordinate, b: Coordinate) -> float:
    """Seconds elapsed from a to b (negative if b is earlier)."""
    return (parse_timestamp(b.timestamp) - parse_timestamp(a.timestamp)).total_seconds()


def calculate_elevation_gain(coordinates: Sequence[Coordinate]) -> float:
    """
    Sum of positive altitude deltas.

    Pairs where either point lacks altitude contribute nothing.
    """
    gain = 0.0

    for i in range(1, len(coordinates)):
        prev, curr = coordinates[i - 1], coordinates[i]
        if prev.altitude is None or curr.altitude is None:
            continue
        diff = curr.altitude - prev.altitude
        if diff > 0:
            gain += diff

    return gain


def calculate_elevation_loss(coordinates: Sequence[Coordinate]) -> float:
    """Sum of negative altitude deltas, as a positive number."""
    loss = 0.0

    for i in range(1, len(coordinates)):
        prev, curr = coordinates[i - 1], coordinates[i]
        if prev.altitude is None or curr.altitude is None:
            continue
        diff = prev.altitude - curr.altitude
        if diff > 0:
            loss += diff

    return loss


def calculate_average_speed(distance: float, duration: float) -> float:
    """Average speed in m/s; 0 when duration is 0."""
    if duration == 0:
        return 0.0
    return distance / duration


def calculate_max_speed(coordinates: Sequence[Coordinate]) -> float:
    """
    Maximum consecutive-pair speed in m/s.

    Pairs with a non-positive time delta are skipped.
    """
    max_speed = 0.0

    for i in range(1, len(coordinates)):
        prev, curr = coordinates[i - 1], coordinates[i]
        elapsed = time_delta(prev, curr)
        if elapsed <= 0:
            continue
        max_speed = max(max_speed, calculate_distance(prev, curr) / elapsed)

    return max_speed


def smooth_coordinates(
    coordinates: Sequence[Coordinate],
    max_speed: float = DEFAULT_SMOOTHING_MAX_SPEED
) -> list[Coordinate]:
    """
    Remove GPS outliers in a single pass.

    The first point is always kept. Every later point is compared with the
    last KEPT point: it is kept only if time moved forward and the implied
    speed does not exceed max_speed. A spurious jump is therefore dropped
    without dragging the following real points down with it.

    Args:
        coordinates: Points in chronological order
        max_speed: Speed cap in m/s

    Returns:
        Filtered list of coordinates
    """
    if len(coordinates) < 2:
        return list(coordinates)

    smoothed = [coordinates[0]]

    for curr in coordinates[1:]:
        prev = smoothed[-1]
        elapsed = time_delta(prev, curr)
        if elapsed <= 0:
            continue
        if calculate_distance(prev, curr) / elapsed <= max_speed:
            smoothed.append(curr)

    return smoothed


def is_valid_coordinate(coordinate: Coordinate) -> bool:
    """Check latitude/longitude ranges and timestamp parseability."""
    lat, lon = coordinate.latitude, coordinate.longitude
    if isinstance(lat, bool) or not isinstance(lat, (int, float)):
        return False
    if isinstance(lon, bool) or not isinstance(lon, (int, float)):
        return False
    if math.isnan(lat) or math.isnan(lon):
        return False
    if not (-90 <= lat <= 90 and -180 <= lon <= 180):
        return False
    if coordinate.accuracy is not None and coordinate.accuracy < 0:
        return False
    try:
        parse_timestamp(coordinate.timestamp)
    except ValueError:
        return False
    return True


def is_within_radius(
    coordinate: Coordinate,
    target: Coordinate,
    radius: float
) -> bool:
    """True if coordinate lies within radius meters of target."""
    return calculate_distance(coordinate, target) <= radius
