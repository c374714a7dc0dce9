"""
Shared utilities (NOT business logic).

Usage:
    from trailtrek.shared import calculate_total_distance, smooth_coordinates
    from trailtrek.shared.formatters import format_distance
"""
from .coordinates import (
    Coordinate,
    parse_timestamp,
    format_timestamp,
)
from .geo import (
    haversine,
    calculate_distance,
    calculate_total_distance,
    calculate_elevation_gain,
    calculate_elevation_loss,
    calculate_average_speed,
    calculate_max_speed,
    smooth_coordinates,
    is_valid_coordinate,
    is_within_radius,
    time_delta,
    EARTH_RADIUS_M,
    DEFAULT_SMOOTHING_MAX_SPEED,
)
from .formatters import (
    format_distance,
    format_duration,
    format_speed,
)
from .constants import (
    Difficulty,
    LocationErrorCode,
    LOCATION_ERROR_MESSAGES,
    SyncStatus,
    LedgerAction,
    LEDGER_METADATA_VERSION,
)
from .storage import KeyValueStore, InMemoryKeyValueStore
from .repository import BaseRepository

__all__ = [
    # coordinates
    "Coordinate",
    "parse_timestamp",
    "format_timestamp",
    # geo
    "haversine",
    "calculate_distance",
    "calculate_total_distance",
    "calculate_elevation_gain",
    "calculate_elevation_loss",
    "calculate_average_speed",
    "calculate_max_speed",
    "smooth_coordinates",
    "is_valid_coordinate",
    "is_within_radius",
    "time_delta",
    "EARTH_RADIUS_M",
    "DEFAULT_SMOOTHING_MAX_SPEED",
    # formatters
    "format_distance",
    "format_duration",
    "format_speed",
    # constants
    "Difficulty",
    "LocationErrorCode",
    "LOCATION_ERROR_MESSAGES",
    "SyncStatus",
    "LedgerAction",
    "LEDGER_METADATA_VERSION",
    # storage
    "KeyValueStore",
    "InMemoryKeyValueStore",
    # repository
    "BaseRepository",
]
