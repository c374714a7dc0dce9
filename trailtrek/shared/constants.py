"""
Unified constants for trails, GPS and synchronization.

This module provides a single source of truth for enum values
that are persisted or exchanged with the ledger.
"""

from enum import Enum


class Difficulty(str, Enum):
    """Trail difficulty classes, ordered from easiest."""
    EASY = "Easy"
    MODERATE = "Moderate"
    HARD = "Hard"
    EXPERT = "Expert"


class LocationErrorCode(str, Enum):
    """Error taxonomy of platform location services."""
    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


# Human-readable messages surfaced in sampler state
LOCATION_ERROR_MESSAGES: dict[LocationErrorCode, str] = {
    LocationErrorCode.PERMISSION_DENIED: "Location permission denied",
    LocationErrorCode.POSITION_UNAVAILABLE: "Location unavailable",
    LocationErrorCode.TIMEOUT: "Location request timeout",
    LocationErrorCode.UNKNOWN: "Unknown location error",
}


class SyncStatus(str, Enum):
    """Hybrid sync coordinator status."""
    IDLE = "idle"
    SYNCING = "syncing"
    SYNCED = "synced"
    ERROR = "error"


class LedgerAction(str, Enum):
    """Actions written into ledger transaction metadata."""
    STORE_TRAIL_COMPLETION = "store_trail_completion"
    RECORD_TREK_REWARD = "record_trek_reward"
    MINT_TRAIL_NFT = "mint_trail_nft"


LEDGER_METADATA_VERSION = "1.0"
