"""
Formatting utilities for display.

Used for completion reasons, NFT descriptions and UI labels.
"""

METERS_PER_MILE = 1609.34


def format_distance(meters: float, unit: str = "kilometers") -> str:
    """
    Format distance.

    Args:
        meters: Distance in meters
        unit: 'meters', 'kilometers' or 'miles'

    Returns:
        Formatted string (e.g., '420 m', '1.20 km', '0.75 mi')
    """
    if unit == "kilometers":
        return f"{meters / 1000:.2f} km"
    if unit == "miles":
        return f"{meters / METERS_PER_MILE:.2f} mi"
    return f"{round(meters)} m"


def format_duration(seconds: float) -> str:
    """
    Format duration as 'Xh Ym Zs'.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string (e.g., '1h 2m 3s', '5m 0s', '42s')
    """
    total = int(seconds)
    hours = total // 3600
    minutes = (total % 3600) // 60
    secs = total % 60

    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    elif minutes > 0:
        return f"{minutes}m {secs}s"
    else:
        return f"{secs}s"


def format_speed(mps: float, unit: str = "kmh") -> str:
    """Format speed given in m/s as 'mps', 'kmh' or 'mph'."""
    if unit == "kmh":
        return f"{mps * 3.6:.2f} km/h"
    if unit == "mph":
        return f"{mps * 2.237:.2f} mph"
    return f"{mps:.2f} m/s"
