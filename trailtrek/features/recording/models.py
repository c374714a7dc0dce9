"""Recording data models (dataclasses, no DB dependency)."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum

from trailtrek.shared.coordinates import Coordinate
from trailtrek.shared.geo import (
    calculate_average_speed,
    calculate_elevation_gain,
    calculate_elevation_loss,
    calculate_max_speed,
    calculate_total_distance,
)


class RecordingError(Exception):
    """Base recording error."""
    pass


class RecorderStateError(RecordingError):
    """Operation not allowed in the recorder's current state."""
    pass


class InvalidCoordinateError(RecordingError, ValueError):
    """Coordinate out of range or with an unparseable timestamp."""
    pass


class RecorderState(str, Enum):
    """Recorder lifecycle: idle -> recording <-> paused -> stopped."""
    IDLE = "idle"
    RECORDING = "recording"
    PAUSED = "paused"
    STOPPED = "stopped"


def generate_trail_id() -> str:
    """Unique id like 'trail_1718000000000_3f9a1c2b7'."""
    return f"trail_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


@dataclass
class Recording:
    """In-progress (or finalized, once is_active is False) trail recording."""

    id: str
    name: str
    start_time: str  # ISO-8601
    description: str | None = None
    end_time: str | None = None
    coordinates: list[Coordinate] = field(default_factory=list)
    is_active: bool = True
    is_paused: bool = False

    # Derived statistics
    total_distance: float = 0.0  # meters
    total_duration: float = 0.0  # seconds, pauses excluded
    average_speed: float = 0.0  # m/s
    max_speed: float = 0.0  # m/s
    elevation_gain: float = 0.0  # meters
    elevation_loss: float = 0.0  # meters

    def update_statistics(self, duration: float) -> None:
        """Recompute all derived statistics over the full coordinate list."""
        self.total_distance = calculate_total_distance(self.coordinates)
        self.total_duration = duration
        self.average_speed = calculate_average_speed(self.total_distance, duration)
        self.max_speed = calculate_max_speed(self.coordinates)
        self.elevation_gain = calculate_elevation_gain(self.coordinates)
        self.elevation_loss = calculate_elevation_loss(self.coordinates)


@dataclass(frozen=True)
class RecordingStats:
    """Read-only live snapshot for UI feedback."""

    distance: float = 0.0
    duration: float = 0.0
    average_speed: float = 0.0
    current_speed: float = 0.0
