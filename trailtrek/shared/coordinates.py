"""
GPS coordinate type shared by geodesy, recording and persistence.

Kept in shared/ so that geo functions do not depend on feature modules.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp.

    A trailing 'Z' is accepted; naive values are treated as UTC.

    Raises:
        ValueError: If the value is not a parseable ISO-8601 string
    """
    if not isinstance(value, str):
        raise ValueError(f"Timestamp must be a string, got {type(value).__name__}")
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(moment: datetime) -> str:
    """Format datetime as ISO-8601 in UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat()


@dataclass(frozen=True)
class Coordinate:
    """Single timestamped GPS sample."""

    latitude: float  # -90..90
    longitude: float  # -180..180
    timestamp: str  # ISO-8601
    altitude: Optional[float] = None  # meters
    accuracy: Optional[float] = None  # meters, non-negative

    @property
    def time(self) -> datetime:
        """Parsed timestamp (raises ValueError if unparseable)."""
        return parse_timestamp(self.timestamp)
