"""
Trail recorder.

State machine: idle -> recording -> (paused <-> recording) -> stopped.

Consumes coordinates from a GPSSampler, drops samples closer than
min_distance_threshold to the last accepted one, and keeps running
statistics. Paused time is excluded from the duration.
"""

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Optional

from trailtrek.config import Settings, settings as default_settings
from trailtrek.shared.coordinates import Coordinate, format_timestamp
from trailtrek.shared.geo import (
    calculate_distance,
    is_valid_coordinate,
    smooth_coordinates,
    time_delta,
)
from .models import (
    InvalidCoordinateError,
    RecorderState,
    RecorderStateError,
    Recording,
    RecordingStats,
    generate_trail_id,
)
from .sampler import GPSSampler

logger = logging.getLogger(__name__)


class TrailRecorder:
    """
    Records one trail at a time.

    Usage:
        recorder = TrailRecorder(GPSSampler(provider))
        if await recorder.start_recording("Ella Rock"):
            ...
            recording = recorder.stop_recording()
    """

    def __init__(
        self,
        sampler: GPSSampler,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.sampler = sampler
        self.settings = settings or default_settings
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self._state = RecorderState.IDLE
        self._recording: Optional[Recording] = None
        self._started_at: Optional[datetime] = None
        self._paused_at: Optional[datetime] = None
        self._paused_seconds = 0.0
        self._last_coordinate: Optional[Coordinate] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def state(self) -> RecorderState:
        return self._state

    @property
    def recording(self) -> Optional[Recording]:
        return self._recording

    @property
    def is_recording(self) -> bool:
        return self._state in (RecorderState.RECORDING, RecorderState.PAUSED)

    @property
    def is_paused(self) -> bool:
        return self._state == RecorderState.PAUSED

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    async def start_recording(self, name: str, description: str | None = None) -> bool:
        """
        Start a new recording.

        Returns:
            False if the sampler could not start (e.g. permission denied)

        Raises:
            RecorderStateError: If a recording is already in progress
        """
        if self.is_recording:
            raise RecorderStateError("Recording already in progress; stop it first")

        if not await self.sampler.start():
            logger.info(f"Recording '{name}' not started: {self.sampler.state.error}")
            return False

        now = self._clock()
        self._started_at = now
        self._paused_at = None
        self._paused_seconds = 0.0
        self._last_coordinate = None
        self._recording = Recording(
            id=generate_trail_id(),
            name=name,
            description=description,
            start_time=format_timestamp(now),
        )
        self._unsubscribe = self.sampler.subscribe(self._on_position)
        self._state = RecorderState.RECORDING

        logger.info(f"Recording started: {self._recording.id} ({name})")
        return True

    def pause_recording(self) -> None:
        if self._state != RecorderState.RECORDING:
            raise RecorderStateError(f"Cannot pause while {self._state.value}")

        self.sampler.pause()
        self._paused_at = self._clock()
        self._recording.is_paused = True
        self._state = RecorderState.PAUSED

    def resume_recording(self) -> None:
        if self._state != RecorderState.PAUSED:
            raise RecorderStateError(f"Cannot resume while {self._state.value}")

        self._paused_seconds += (self._clock() - self._paused_at).total_seconds()
        self._paused_at = None
        self.sampler.resume()
        self._recording.is_paused = False
        self._state = RecorderState.RECORDING

    def stop_recording(self) -> Recording:
        """
        Finalize the recording and clear live state.

        Duration is recomputed at the stop instant. When smoothing is
        enabled, outliers are removed and the path statistics recomputed
        over the kept points.

        Returns:
            The finalized Recording (is_active=False)
        """
        if not self.is_recording:
            raise RecorderStateError(f"Cannot stop while {self._state.value}")

        self.sampler.stop()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

        now = self._clock()
        duration = self._active_duration(now)
        coordinates = list(self._recording.coordinates)
        if self.settings.smoothing_enabled:
            coordinates = smooth_coordinates(coordinates, self.settings.smoothing_max_speed)

        final = replace(
            self._recording,
            coordinates=coordinates,
            end_time=format_timestamp(now),
            is_active=False,
            is_paused=False,
        )
        final.update_statistics(duration)

        dropped = len(self._recording.coordinates) - len(coordinates)
        logger.info(
            f"Recording stopped: {final.id}, {len(coordinates)} points "
            f"({dropped} outliers dropped), {final.total_distance:.0f} m"
        )

        self._recording = None
        self._started_at = None
        self._paused_at = None
        self._paused_seconds = 0.0
        self._last_coordinate = None
        self._state = RecorderState.STOPPED

        return final

    # -------------------------------------------------------------------------
    # Samples
    # -------------------------------------------------------------------------

    def add_coordinate(self, coordinate: Coordinate) -> bool:
        """
        Offer a sample to the recording.

        Returns:
            True if appended; False if not recording/paused or filtered as noise

        Raises:
            InvalidCoordinateError: If the coordinate is invalid
        """
        if not is_valid_coordinate(coordinate):
            raise InvalidCoordinateError(f"Invalid coordinate: {coordinate}")

        if self._state != RecorderState.RECORDING:
            return False

        threshold = self.settings.min_distance_threshold
        if self._last_coordinate is not None and threshold > 0:
            if calculate_distance(self._last_coordinate, coordinate) < threshold:
                return False

        self._recording.coordinates.append(coordinate)
        self._last_coordinate = coordinate
        self._recording.update_statistics(self._active_duration(self._clock()))
        return True

    def add_manual_point(self, coordinate: Coordinate) -> bool:
        """Add a user-entered point through the same path as GPS samples."""
        return self.add_coordinate(coordinate)

    def get_current_stats(self) -> RecordingStats:
        """Snapshot of distance, duration, average and current speed."""
        if self._recording is None:
            return RecordingStats()

        current_speed = 0.0
        coordinates = self._recording.coordinates
        if len(coordinates) >= 2:
            prev, last = coordinates[-2], coordinates[-1]
            elapsed = time_delta(prev, last)
            if elapsed > 0:
                current_speed = calculate_distance(prev, last) / elapsed

        return RecordingStats(
            distance=self._recording.total_distance,
            duration=self._active_duration(self._clock()),
            average_speed=self._recording.average_speed,
            current_speed=current_speed,
        )

    def _on_position(self, coordinate: Coordinate) -> None:
        # Late callbacks after stop are ignored
        if self._state != RecorderState.RECORDING:
            return
        try:
            self.add_coordinate(coordinate)
        except InvalidCoordinateError as e:
            logger.warning(f"Rejected GPS sample: {e}")

    def _active_duration(self, now: datetime) -> float:
        """Elapsed seconds since start minus paused time (including an open pause)."""
        if self._started_at is None:
            return 0.0
        paused = self._paused_seconds
        if self._paused_at is not None:
            paused += (now - self._paused_at).total_seconds()
        return max(0.0, (now - self._started_at).total_seconds() - paused)
