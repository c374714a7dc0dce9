"""
Local cache service.

Fast, wallet-keyed cache of completed trails, stats and preferences,
plus a store of raw recordings. Each wallet's data is one JSON document,
read and written as a whole (last write wins). Documents older than
cache_ttl read as absent, but writes always start from the stored document.
"""

import json
import logging
import time
from datetime import datetime, timezone
from typing import Callable, Iterable, Literal, Optional

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from trailtrek.config import Settings, settings as default_settings
from trailtrek.features.completion.schemas import CompletedTrail, UserStats
from trailtrek.features.completion.stats import calculate_user_stats
from trailtrek.features.recording.models import Recording
from trailtrek.shared.constants import SyncStatus
from trailtrek.shared.coordinates import format_timestamp
from trailtrek.shared.storage import KeyValueStore

logger = logging.getLogger(__name__)

USER_DATA_KEY_PREFIX = "trailtrek_user_data"
SYNC_STATUS_KEY = "trailtrek_sync_status"
RECORDINGS_KEY = "trailtrek_trail_recordings"

_RECORDINGS = TypeAdapter(list[Recording])


class CacheError(Exception):
    """Underlying key-value store failed."""
    pass


# =============================================================================
# Schemas
# =============================================================================

class NotificationPreferences(BaseModel):
    trail_reminders: bool = True
    achievements: bool = True
    token_rewards: bool = True


class PrivacyPreferences(BaseModel):
    share_stats: bool = True
    show_on_leaderboard: bool = True


class UserPreferences(BaseModel):
    """Per-wallet display and notification preferences."""

    preferred_units: Literal["metric", "imperial"] = "metric"
    map_style: Literal["satellite", "terrain", "street"] = "terrain"
    notifications: NotificationPreferences = Field(default_factory=NotificationPreferences)
    privacy: PrivacyPreferences = Field(default_factory=PrivacyPreferences)


class CachedUserData(BaseModel):
    """Cached document for one wallet."""

    wallet_address: str
    completed_trails: list[CompletedTrail] = Field(default_factory=list)
    stats: UserStats = Field(default_factory=UserStats)
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    last_sync_timestamp: int = 0  # epoch milliseconds


class SyncStatusRecord(BaseModel):
    status: SyncStatus
    last_sync: int  # epoch milliseconds
    timestamp: int


# =============================================================================
# Service
# =============================================================================

class TrailCache:
    """
    Wallet-keyed cache over a KeyValueStore.

    Usage:
        cache = TrailCache(InMemoryKeyValueStore())
        await cache.add_completed_trail(wallet, trail)
        trails = await cache.get_completed_trails(wallet)
    """

    def __init__(
        self,
        store: KeyValueStore,
        settings: Settings | None = None,
        clock: Callable[[], float] | None = None,
    ):
        self.store = store
        self.settings = settings or default_settings
        self._clock = clock or time.time

    # -------------------------------------------------------------------------
    # User data
    # -------------------------------------------------------------------------

    async def get_user_data(self, wallet_address: str) -> Optional[CachedUserData]:
        """Cached document, or None if absent, for another wallet, corrupt or expired."""
        return await self._load(wallet_address)

    async def save_user_data(self, data: CachedUserData) -> None:
        data.last_sync_timestamp = self._now_ms()
        await self._write(self._user_key(data.wallet_address), data.model_dump_json())

    async def add_completed_trail(self, wallet_address: str, trail: CompletedTrail) -> None:
        """Insert or replace (by id) one trail; stats are recomputed."""
        await self.add_completed_trails(wallet_address, [trail])

    async def add_completed_trails(
        self, wallet_address: str, trails: Iterable[CompletedTrail]
    ) -> None:
        data = await self._load_for_update(wallet_address)
        self._upsert_trails(data, trails)
        await self.save_user_data(data)

    async def get_completed_trails(self, wallet_address: str) -> list[CompletedTrail]:
        data = await self.get_user_data(wallet_address)
        return data.completed_trails if data else []

    async def get_user_preferences(self, wallet_address: str) -> UserPreferences:
        data = await self.get_user_data(wallet_address)
        return data.preferences if data else UserPreferences()

    async def update_user_preferences(
        self, wallet_address: str, **changes
    ) -> UserPreferences:
        """Merge top-level preference fields and persist."""
        data = await self._load_for_update(wallet_address)
        merged = {**data.preferences.model_dump(), **changes}
        data.preferences = UserPreferences.model_validate(merged)
        await self.save_user_data(data)
        return data.preferences

    async def clear_user_data(self, wallet_address: str) -> None:
        await self._delete(self._user_key(wallet_address))

    async def export_user_data(self, wallet_address: str) -> str:
        """JSON export of a wallet's trails, stats, preferences and saved recordings."""
        data = await self._load_for_update(wallet_address)
        payload = {
            "wallet_address": wallet_address,
            "completed_trails": [t.model_dump(mode="json") for t in data.completed_trails],
            "stats": data.stats.model_dump(mode="json"),
            "preferences": data.preferences.model_dump(mode="json"),
            "recordings": _RECORDINGS.dump_python(await self.get_recordings(), mode="json"),
            "exported_at": format_timestamp(datetime.now(timezone.utc)),
        }
        return json.dumps(payload, indent=2)

    async def import_user_data(self, wallet_address: str, json_str: str) -> CachedUserData:
        """
        Import a document produced by export_user_data.

        Trails are upserted by id into the stored document, preferences are
        replaced and stats recomputed. Recordings, when present, are saved.

        Raises:
            ValueError: If the JSON is invalid or was exported for another wallet
        """
        try:
            payload = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ValueError(f"Import data is not valid JSON: {e}") from e
        if not isinstance(payload, dict):
            raise ValueError("Import data must be a JSON object")

        payload.setdefault("wallet_address", wallet_address)
        imported = CachedUserData.model_validate(payload)
        recordings = _RECORDINGS.validate_python(payload.get("recordings") or [])
        if imported.wallet_address != wallet_address:
            raise ValueError(
                f"Import data belongs to {imported.wallet_address}, not {wallet_address}"
            )

        data = await self._load_for_update(wallet_address)
        data.preferences = imported.preferences
        self._upsert_trails(data, imported.completed_trails)
        await self.save_user_data(data)

        for recording in recordings:
            await self.save_recording(recording)

        logger.info(
            f"Imported {len(imported.completed_trails)} trails and "
            f"{len(recordings)} recordings for {wallet_address}"
        )
        return data

    # -------------------------------------------------------------------------
    # Recordings
    # -------------------------------------------------------------------------

    async def save_recording(self, recording: Recording) -> None:
        """Insert or replace (by id) a raw recording."""
        recordings = [r for r in await self.get_recordings() if r.id != recording.id]
        recordings.append(recording)
        await self._write(RECORDINGS_KEY, _RECORDINGS.dump_json(recordings).decode())

    async def get_recordings(self) -> list[Recording]:
        raw = await self._read(RECORDINGS_KEY)
        if raw is None:
            return []
        try:
            return _RECORDINGS.validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Discarding corrupt recordings entry: {e}")
            return []

    async def get_recording(self, recording_id: str) -> Optional[Recording]:
        return next((r for r in await self.get_recordings() if r.id == recording_id), None)

    async def delete_recording(self, recording_id: str) -> bool:
        """Remove a recording; False if it was not stored."""
        recordings = await self.get_recordings()
        remaining = [r for r in recordings if r.id != recording_id]
        if len(remaining) == len(recordings):
            return False
        await self._write(RECORDINGS_KEY, _RECORDINGS.dump_json(remaining).decode())
        return True

    # -------------------------------------------------------------------------
    # Sync status
    # -------------------------------------------------------------------------

    async def set_sync_status(
        self, status: SyncStatus, last_sync: int | None = None
    ) -> None:
        now = self._now_ms()
        record = SyncStatusRecord(
            status=status, last_sync=last_sync or now, timestamp=now
        )
        await self._write(SYNC_STATUS_KEY, record.model_dump_json())

    async def get_sync_status(self) -> Optional[SyncStatusRecord]:
        raw = await self._read(SYNC_STATUS_KEY)
        if raw is None:
            return None
        try:
            return SyncStatusRecord.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding corrupt sync status entry")
            return None

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _user_key(self, wallet_address: str) -> str:
        return f"{USER_DATA_KEY_PREFIX}:{wallet_address}"

    async def _load(
        self, wallet_address: str, allow_expired: bool = False
    ) -> Optional[CachedUserData]:
        raw = await self._read(self._user_key(wallet_address))
        if raw is None:
            return None

        try:
            data = CachedUserData.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Discarding corrupt cache entry for {wallet_address}: {e}")
            return None

        if data.wallet_address != wallet_address:
            return None
        if not allow_expired and self._is_expired(data.last_sync_timestamp):
            logger.debug(f"Cache expired for {wallet_address}")
            return None

        return data

    async def _load_for_update(self, wallet_address: str) -> CachedUserData:
        # Writes start from the stored document even when it is stale,
        # so unverified trails are never dropped.
        return await self._load(wallet_address, allow_expired=True) or CachedUserData(
            wallet_address=wallet_address
        )

    @staticmethod
    def _upsert_trails(data: CachedUserData, trails: Iterable[CompletedTrail]) -> None:
        index = {t.id: i for i, t in enumerate(data.completed_trails)}
        for trail in trails:
            if trail.id in index:
                data.completed_trails[index[trail.id]] = trail
            else:
                index[trail.id] = len(data.completed_trails)
                data.completed_trails.append(trail)
        data.stats = calculate_user_stats(data.completed_trails)

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _is_expired(self, timestamp_ms: int) -> bool:
        return self._now_ms() - timestamp_ms > self.settings.cache_ttl * 1000

    async def _read(self, key: str) -> Optional[str]:
        try:
            return await self.store.get(key)
        except Exception as e:
            raise CacheError(f"Cache read failed for {key}: {e}") from e

    async def _write(self, key: str, value: str) -> None:
        try:
            await self.store.set(key, value)
        except Exception as e:
            logger.error(f"Cache write failed for {key}: {e}")
            raise CacheError(f"Cache write failed for {key}: {e}") from e

    async def _delete(self, key: str) -> None:
        try:
            await self.store.delete(key)
        except Exception as e:
            raise CacheError(f"Cache delete failed for {key}: {e}") from e
