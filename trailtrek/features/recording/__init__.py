"""
Trail recording module.

Usage:
    from trailtrek.features.recording import GPSSampler, TrailRecorder

Components:
- GPSSampler: platform location bridge (permission, watch/poll, pause)
- TrailRecorder: recording state machine with live statistics
- recording_to_gpx / parse_gpx_coordinates: GPX export and import
"""
from trailtrek.shared.coordinates import Coordinate
from .models import (
    Recording,
    RecordingStats,
    RecorderState,
    RecordingError,
    RecorderStateError,
    InvalidCoordinateError,
    generate_trail_id,
)
from .sampler import (
    GPSSampler,
    SamplerState,
    LocationProvider,
    LocationError,
    Position,
    PositionOptions,
)
from .recorder import TrailRecorder
from .gpx import recording_to_gpx, parse_gpx_coordinates

__all__ = [
    "Coordinate",
    # Models
    "Recording",
    "RecordingStats",
    "RecorderState",
    "RecordingError",
    "RecorderStateError",
    "InvalidCoordinateError",
    "generate_trail_id",
    # Sampler
    "GPSSampler",
    "SamplerState",
    "LocationProvider",
    "LocationError",
    "Position",
    "PositionOptions",
    # Recorder
    "TrailRecorder",
    # GPX
    "recording_to_gpx",
    "parse_gpx_coordinates",
]
