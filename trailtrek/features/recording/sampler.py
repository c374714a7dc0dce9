"""
GPS sampler.

Bridges a platform location service to the recorder:
- permission check via a single position request
- continuous updates through watch_position, or a timer-driven
  fallback of single-shot requests when watching is unsupported
- normalization of platform positions into Coordinates

New positions are pushed to subscribers; the caller is never blocked.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol

from trailtrek.config import Settings, settings as default_settings
from trailtrek.shared.constants import LocationErrorCode, LOCATION_ERROR_MESSAGES
from trailtrek.shared.coordinates import Coordinate, format_timestamp

logger = logging.getLogger(__name__)


# =============================================================================
# Provider contract
# =============================================================================

class LocationError(Exception):
    """Error reported by a location provider."""

    def __init__(self, code: LocationErrorCode, message: str | None = None):
        self.code = code
        self.message = message or LOCATION_ERROR_MESSAGES[code]
        super().__init__(self.message)


@dataclass(frozen=True)
class Position:
    """Raw position as delivered by the platform."""

    latitude: float
    longitude: float
    accuracy: float
    altitude: Optional[float] = None
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class PositionOptions:
    """Accuracy/staleness profile passed to the provider."""

    enable_high_accuracy: bool = True
    timeout: float = 10.0  # seconds
    maximum_age: float = 1.0  # seconds
    interval: float = 3.0  # requested update interval hint, seconds


PositionCallback = Callable[[Position], None]
ErrorCallback = Callable[[LocationError], None]


class LocationProvider(Protocol):
    """Platform location service (browser geolocation, device GPS, replay...)."""

    supports_watch: bool

    async def get_current_position(self, options: PositionOptions) -> Position:
        """Single position request; raises LocationError."""
        ...

    def watch_position(
        self,
        on_position: PositionCallback,
        on_error: ErrorCallback,
        options: PositionOptions,
    ) -> int:
        """Start continuous updates, return a watch id."""
        ...

    def clear_watch(self, watch_id: int) -> None:
        ...


# =============================================================================
# Sampler
# =============================================================================

@dataclass
class SamplerState:
    """Observable sampler state."""

    is_tracking: bool = False
    is_paused: bool = False
    has_permission: bool = False
    accuracy: float = 0.0
    error: Optional[str] = None
    error_code: Optional[LocationErrorCode] = None
    current_position: Optional[Coordinate] = None


class GPSSampler:
    """
    Normalizes provider output into Coordinates and fans it out to listeners.

    Usage:
        sampler = GPSSampler(provider)
        unsubscribe = sampler.subscribe(recorder_callback)
        if await sampler.start():
            ...
        sampler.stop()
    """

    def __init__(
        self,
        provider: Optional[LocationProvider],
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.provider = provider
        self.settings = settings or default_settings
        self.state = SamplerState()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._listeners: list[Callable[[Coordinate], None]] = []
        self._watch_id: Optional[int] = None
        self._poll_task: Optional[asyncio.Task] = None

    @property
    def is_supported(self) -> bool:
        return self.provider is not None

    @property
    def options(self) -> PositionOptions:
        return PositionOptions(
            enable_high_accuracy=self.settings.enable_high_accuracy,
            timeout=self.settings.gps_timeout,
            maximum_age=self.settings.gps_maximum_age,
            interval=self.settings.tracking_interval,
        )

    def subscribe(self, listener: Callable[[Coordinate], None]) -> Callable[[], None]:
        """Register listener for new coordinates; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def request_permission(self) -> bool:
        """
        Check location access with one position request.

        Returns:
            True if granted. On failure the error is kept in state, not raised.
        """
        if not self.is_supported:
            self.state.error = "Geolocation not supported"
            self.state.error_code = LocationErrorCode.UNKNOWN
            return False

        try:
            position = await self.provider.get_current_position(self.options)
        except LocationError as e:
            self.state.has_permission = False
            self.state.error = e.message
            self.state.error_code = e.code
            logger.warning(f"Location permission check failed: {e.code.value}")
            return False

        self.state.has_permission = True
        self.state.accuracy = position.accuracy
        self.state.error = None
        self.state.error_code = None
        self.state.current_position = self._to_coordinate(position)
        return True

    async def start(self) -> bool:
        """Request permission, then begin continuous updates."""
        if self.state.is_tracking:
            return True
        if not await self.request_permission():
            return False

        self.state.is_tracking = True
        self.state.is_paused = False

        if self.provider.supports_watch:
            self._watch_id = self.provider.watch_position(
                self._handle_position, self._handle_error, self.options
            )
        else:
            logger.info(f"Watch unsupported, polling every {self.options.interval}s")
            self._poll_task = asyncio.create_task(self._poll())

        return True

    def stop(self) -> None:
        """Cancel updates. Safe to call repeatedly."""
        if self._watch_id is not None:
            self.provider.clear_watch(self._watch_id)
            self._watch_id = None

        if self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None

        self.state.is_tracking = False
        self.state.is_paused = False

    def pause(self) -> None:
        self.state.is_paused = True

    def resume(self) -> None:
        self.state.is_paused = False

    async def _poll(self) -> None:
        """Fallback: re-issue single-shot requests on a fixed timer."""
        while True:
            await asyncio.sleep(self.options.interval)
            try:
                position = await self.provider.get_current_position(self.options)
            except LocationError as e:
                self._handle_error(e)
                continue
            self._handle_position(position)

    def _handle_position(self, position: Position) -> None:
        coordinate = self._to_coordinate(position)
        self.state.current_position = coordinate
        self.state.accuracy = position.accuracy
        self.state.error = None
        self.state.error_code = None

        for listener in list(self._listeners):
            listener(coordinate)

    def _handle_error(self, error: LocationError) -> None:
        # Transient: keep tracking, surface the message
        self.state.error = error.message
        self.state.error_code = error.code
        logger.warning(f"GPS tracking error: {error.message}")

    def _to_coordinate(self, position: Position) -> Coordinate:
        return Coordinate(
            latitude=position.latitude,
            longitude=position.longitude,
            altitude=position.altitude,
            accuracy=position.accuracy,
            timestamp=format_timestamp(position.timestamp or self._clock()),
        )
