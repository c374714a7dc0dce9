"""
Hybrid sync orchestration.

Local cache now, ledger proof later:
1. The CompletedTrail is cached immediately (verified=False), so the
   completion is never lost.
2. A compact proof is written to the ledger.
3. On success the cached record becomes verified with the tx hash.
4. On failure the record stays unverified; the call still succeeds
   and status becomes 'error'. sync_with_blockchain() reconciles later.

Status: idle -> syncing -> {synced, error}
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from pydantic import BaseModel, Field

from trailtrek.config import Settings, settings as default_settings
from trailtrek.features.completion.evaluator import (
    classify_difficulty,
    is_nft_eligible,
    verify_trail_completion,
)
from trailtrek.features.completion.rewards import generate_nft_metadata
from trailtrek.features.completion.schemas import (
    CompletedTrail,
    CompletionResult,
    MissingWalletAddressError,
    UserStats,
)
from trailtrek.features.completion.stats import calculate_user_stats
from trailtrek.features.recording.models import Recording
from trailtrek.shared.constants import Difficulty, SyncStatus
from trailtrek.shared.coordinates import Coordinate, format_timestamp
from .cache import CacheError, SyncStatusRecord, TrailCache
from .ledger import (
    LedgerClient,
    LedgerError,
    LedgerProof,
    TrekRewardRecord,
    build_completion_proof,
)

logger = logging.getLogger(__name__)


class SyncError(Exception):
    """Base sync error."""
    pass


class SyncInProgressError(SyncError):
    """A trail completion is already being synced."""
    pass


@dataclass
class SyncResult:
    """Outcome of a sync operation."""

    success: bool
    local_cache_updated: bool
    blockchain_tx_hash: Optional[str] = None
    error: Optional[str] = None
    record: Optional[CompletedTrail] = None


class TrailCompletionData(BaseModel):
    """Input for HybridSyncService.complete_trail."""

    trail_id: str
    trail_name: str
    description: Optional[str] = None
    location: str = "Unknown Location"
    difficulty: Difficulty = Difficulty.EASY
    distance: float  # meters
    duration: float  # seconds
    elevation_gain: float = 0.0
    coordinates: list[Coordinate] = Field(default_factory=list)
    photos: Optional[list[str]] = None
    notes: Optional[str] = None
    trek_tokens_earned: int = 0
    nft_minted: bool = False
    nft_token_id: Optional[str] = None


class HybridSyncService:
    """
    Coordinates the local cache and the ledger.

    Usage:
        service = HybridSyncService(TrailCache(store), ledger)
        result = await service.complete_trail(wallet, data)
    """

    def __init__(
        self,
        cache: TrailCache,
        ledger: LedgerClient,
        settings: Settings | None = None,
        clock: Callable[[], float] | None = None,
    ):
        self.cache = cache
        self.ledger = ledger
        self.settings = settings or default_settings
        self._clock = clock or time.time
        self._status = SyncStatus.IDLE
        self._sync_in_progress = False

    @property
    def status(self) -> SyncStatus:
        return self._status

    # -------------------------------------------------------------------------
    # Completion
    # -------------------------------------------------------------------------

    async def complete_trail(
        self, wallet_address: str, data: TrailCompletionData
    ) -> SyncResult:
        """
        Cache a completion, then try to prove it on the ledger.

        Raises:
            MissingWalletAddressError: If wallet_address is empty
            SyncInProgressError: If another completion is being synced
        """
        if not wallet_address:
            raise MissingWalletAddressError("Wallet address is required")
        if self._sync_in_progress:
            raise SyncInProgressError("Sync already in progress")

        self._sync_in_progress = True
        await self._set_status(SyncStatus.SYNCING)

        try:
            trail = self._build_trail(wallet_address, data)

            # 1. Local first
            try:
                await self.cache.add_completed_trail(wallet_address, trail)
            except CacheError as e:
                logger.error(f"Trail completion not cached: {e}")
                await self._set_status(SyncStatus.ERROR)
                return SyncResult(success=False, local_cache_updated=False, error=str(e))
            logger.info(f"Trail completion {trail.id} cached locally")

            # 2. Ledger proof
            tx_hash: Optional[str] = None
            ledger_error: Optional[str] = None
            try:
                tx_hash = await self.ledger.submit_proof(
                    build_completion_proof(trail, data.trail_id, self.settings.checkpoint_limit)
                )
            except LedgerError as e:
                ledger_error = str(e)
                logger.warning(f"Ledger storage failed, keeping local copy of {trail.id}: {e}")
            else:
                trail = trail.model_copy(update={"verified": True, "tx_hash": tx_hash})
                try:
                    await self.cache.add_completed_trail(wallet_address, trail)
                except CacheError as e:
                    # Proof exists on the ledger; sync_with_blockchain recovers it
                    logger.error(f"Verified flag for {trail.id} not cached: {e}")

            # 3. Token reward record
            if data.trek_tokens_earned > 0:
                await self._record_reward(wallet_address, data)

            await self._set_status(SyncStatus.SYNCED if ledger_error is None else SyncStatus.ERROR)

            return SyncResult(
                success=True,
                local_cache_updated=True,
                blockchain_tx_hash=tx_hash,
                error=ledger_error,
                record=trail,
            )
        finally:
            self._sync_in_progress = False

    async def finish_recording(
        self,
        wallet_address: str,
        recording: Recording,
        location: str = "Unknown Location",
        notes: Optional[str] = None,
        photos: Optional[list[str]] = None,
    ) -> tuple[CompletionResult, Optional[SyncResult]]:
        """
        Evaluate a finalized recording and, if completed, sync it.

        Returns:
            (CompletionResult, SyncResult or None when not completed)
        """
        if not wallet_address:
            raise MissingWalletAddressError("Wallet address is required")

        result = verify_trail_completion(recording, self.settings.completion_criteria())
        if not result.completed:
            logger.info(f"Recording {recording.id} not completed: {'; '.join(result.reasons)}")
            return result, None

        data = TrailCompletionData(
            trail_id=recording.id,
            trail_name=recording.name,
            description=recording.description,
            location=location,
            difficulty=classify_difficulty(
                recording.total_distance, recording.elevation_gain, recording.total_duration
            ),
            distance=recording.total_distance,
            duration=recording.total_duration,
            elevation_gain=recording.elevation_gain,
            coordinates=list(recording.coordinates),
            photos=photos,
            notes=notes,
            trek_tokens_earned=result.trek_tokens_earned,
        )
        return result, await self.complete_trail(wallet_address, data)

    async def mint_nft(self, wallet_address: str, record_id: str) -> SyncResult:
        """Mint the NFT certificate for a cached, eligible, not yet minted trail."""
        trails = await self.cache.get_completed_trails(wallet_address)
        trail = next((t for t in trails if t.id == record_id), None)

        if trail is None:
            return SyncResult(success=False, local_cache_updated=False, error="Trail not found")
        if trail.nft_minted:
            return SyncResult(
                success=False, local_cache_updated=False,
                error="NFT already minted for this trail", record=trail,
            )
        if not is_nft_eligible(
            True, trail.distance, trail.duration, self.settings.completion_criteria()
        ):
            return SyncResult(
                success=False, local_cache_updated=False,
                error="Trail does not meet NFT minting requirements", record=trail,
            )

        try:
            mint = await self.ledger.mint_certificate(
                generate_nft_metadata(trail, settings=self.settings), wallet_address
            )
        except LedgerError as e:
            logger.warning(f"NFT minting failed for {record_id}: {e}")
            return SyncResult(
                success=False, local_cache_updated=False, error=str(e), record=trail
            )

        trail = trail.model_copy(update={"nft_minted": True, "nft_token_id": mint.token_id})
        logger.info(f"NFT {mint.token_id} minted for {record_id}")

        # The mint is on-chain at this point; a cache failure must not read as a failed mint.
        try:
            await self.cache.add_completed_trail(wallet_address, trail)
        except CacheError as e:
            logger.error(f"Failed to cache minted NFT {mint.token_id} for {record_id}: {e}")
            return SyncResult(
                success=True, local_cache_updated=False,
                blockchain_tx_hash=mint.tx_hash, error=str(e), record=trail,
            )

        return SyncResult(
            success=True, local_cache_updated=True,
            blockchain_tx_hash=mint.tx_hash, record=trail,
        )

    # -------------------------------------------------------------------------
    # Reconciliation
    # -------------------------------------------------------------------------

    async def sync_with_blockchain(self, wallet_address: str) -> SyncResult:
        """
        Pull all proofs for the wallet and merge them into the cache as verified.

        Matching local records keep their local fields; unknown proofs are
        added as new records.
        """
        if not wallet_address:
            raise MissingWalletAddressError("Wallet address is required")

        await self._set_status(SyncStatus.SYNCING)

        try:
            proofs = await self.ledger.query_proofs(wallet_address)
        except LedgerError as e:
            logger.error(f"Blockchain sync failed for {wallet_address}: {e}")
            await self._set_status(SyncStatus.ERROR)
            return SyncResult(success=False, local_cache_updated=False, error=str(e))

        try:
            local = {t.id: t for t in await self.cache.get_completed_trails(wallet_address)}
            merged = [
                self._merge_proof(wallet_address, proof, local.get(proof.proof.record_id))
                for proof in proofs
            ]
            await self.cache.add_completed_trails(wallet_address, merged)
        except CacheError as e:
            await self._set_status(SyncStatus.ERROR)
            return SyncResult(success=False, local_cache_updated=False, error=str(e))

        logger.info(f"Synced {len(merged)} ledger proofs for {wallet_address}")
        await self._set_status(SyncStatus.SYNCED)
        return SyncResult(success=True, local_cache_updated=True)

    async def get_user_trail_history(
        self, wallet_address: str, force_sync: bool = False
    ) -> list[CompletedTrail]:
        """Cached trails; falls back to (or, with force_sync, prefers) the ledger."""
        if not force_sync:
            cached = await self.cache.get_completed_trails(wallet_address)
            if cached:
                return cached

        result = await self.sync_with_blockchain(wallet_address)
        if not result.success:
            logger.warning(f"Trail history from ledger unavailable: {result.error}")
        return await self.cache.get_completed_trails(wallet_address)

    async def get_user_stats(self, wallet_address: str) -> UserStats:
        """Recomputed from the cached trails on every read."""
        return calculate_user_stats(await self.cache.get_completed_trails(wallet_address))

    async def clear_user_data(self, wallet_address: str) -> None:
        await self.cache.clear_user_data(wallet_address)

    async def get_sync_status(self) -> Optional[SyncStatusRecord]:
        return await self.cache.get_sync_status()

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _build_trail(self, wallet_address: str, data: TrailCompletionData) -> CompletedTrail:
        now = self._clock()
        return CompletedTrail(
            id=f"{data.trail_id}_{int(now * 1000)}",
            name=data.trail_name,
            description=data.description or f"Completed {data.trail_name} trail",
            location=data.location,
            difficulty=data.difficulty,
            completed_at=format_timestamp(_utc_from_epoch(now)),
            duration=data.duration,
            distance=data.distance,
            elevation_gain=data.elevation_gain,
            coordinates=list(data.coordinates),
            photos=data.photos,
            notes=data.notes,
            wallet_address=wallet_address,
            nft_minted=data.nft_minted,
            nft_token_id=data.nft_token_id,
            trek_tokens_earned=data.trek_tokens_earned,
            verified=False,
        )

    def _merge_proof(
        self,
        wallet_address: str,
        entry: LedgerProof,
        local: Optional[CompletedTrail],
    ) -> CompletedTrail:
        if local is not None:
            return local.model_copy(update={"verified": True, "tx_hash": entry.tx_hash})

        proof = entry.proof
        return CompletedTrail(
            id=proof.record_id,
            name=proof.trail_name or proof.trail_id,
            description=f"Trail completed on {proof.completion_timestamp}",
            location=proof.location,
            difficulty=proof.difficulty,
            completed_at=proof.completion_timestamp,
            duration=proof.duration_seconds,
            distance=proof.distance_meters,
            elevation_gain=proof.elevation_gain_meters,
            coordinates=[
                Coordinate(latitude=p.lat, longitude=p.lng, timestamp=p.timestamp)
                for p in proof.gps_checkpoints
            ],
            wallet_address=wallet_address,
            nft_minted=proof.nft_minted,
            trek_tokens_earned=proof.trek_tokens_earned,
            verified=True,
            tx_hash=entry.tx_hash,
        )

    async def _record_reward(self, wallet_address: str, data: TrailCompletionData) -> None:
        try:
            await self.ledger.submit_reward(TrekRewardRecord(
                hiker_address=wallet_address,
                trail_id=data.trail_id,
                trek_amount=data.trek_tokens_earned,
            ))
        except LedgerError as e:
            logger.warning(f"TREK reward recording failed for {data.trail_id}: {e}")

    async def _set_status(self, status: SyncStatus) -> None:
        self._status = status
        try:
            await self.cache.set_sync_status(status)
        except CacheError as e:
            logger.warning(f"Sync status not persisted: {e}")


def _utc_from_epoch(seconds: float) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc)
