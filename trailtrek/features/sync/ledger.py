"""
Ledger client.

Writes compact completion proofs, reward records and NFT mints as
transaction metadata through a wallet adapter, and reads them back
through the block explorer API.

Wallet signing/submission is delegated to a WalletAdapter; this module
never builds or signs transactions itself.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence

import httpx
from pydantic import BaseModel, Field, ValidationError

from trailtrek.config import Settings, settings as default_settings
from trailtrek.features.completion.schemas import CompletedTrail, TrailNFTMetadata
from trailtrek.shared.constants import Difficulty, LedgerAction, LEDGER_METADATA_VERSION
from trailtrek.shared.coordinates import Coordinate

logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================

class LedgerError(Exception):
    """Base ledger error. All ledger errors are recoverable."""
    pass


class LedgerNetworkError(LedgerError):
    """Explorer or submission endpoint unreachable / failed."""
    pass


class LedgerSigningError(LedgerError):
    """Wallet refused or failed to sign/submit."""
    pass


class WalletNotConnectedError(LedgerError):
    """No wallet adapter available."""
    pass


# =============================================================================
# Payloads
# =============================================================================

class GPSCheckpoint(BaseModel):
    lat: float
    lng: float
    timestamp: str


class TrailCompletionProof(BaseModel):
    """Compact proof written to the ledger for one completed trail."""

    record_id: str
    trail_id: str
    trail_name: str
    location: str
    hiker_address: str
    difficulty: Difficulty
    distance_meters: float
    duration_seconds: float
    elevation_gain_meters: float = 0.0
    gps_checkpoints: list[GPSCheckpoint] = Field(default_factory=list)
    trek_tokens_earned: int = 0
    nft_minted: bool = False
    completion_timestamp: str


class TrekRewardRecord(BaseModel):
    hiker_address: str
    trail_id: str
    reward_type: str = "completion"
    trek_amount: int


class LedgerProof(BaseModel):
    """Proof read back from the ledger with its transaction reference."""

    tx_hash: str
    proof: TrailCompletionProof


@dataclass(frozen=True)
class MintResult:
    token_id: str
    tx_hash: str


def sample_checkpoints(
    coordinates: Sequence[Coordinate],
    max_count: int,
) -> list[GPSCheckpoint]:
    """
    Evenly sample a path down to at most max_count checkpoints.

    Takes every ceil(n / max_count)-th point starting from the first.
    """
    if not coordinates or max_count <= 0:
        return []

    step = max(1, math.ceil(len(coordinates) / max_count))
    return [
        GPSCheckpoint(lat=c.latitude, lng=c.longitude, timestamp=c.timestamp)
        for c in coordinates[::step]
    ]


def build_completion_proof(
    trail: CompletedTrail,
    trail_id: str,
    max_checkpoints: int,
) -> TrailCompletionProof:
    return TrailCompletionProof(
        record_id=trail.id,
        trail_id=trail_id,
        trail_name=trail.name,
        location=trail.location,
        hiker_address=trail.wallet_address,
        difficulty=trail.difficulty,
        distance_meters=trail.distance,
        duration_seconds=trail.duration,
        elevation_gain_meters=trail.elevation_gain,
        gps_checkpoints=sample_checkpoints(trail.coordinates, max_checkpoints),
        trek_tokens_earned=trail.trek_tokens_earned,
        nft_minted=trail.nft_minted,
        completion_timestamp=trail.completed_at,
    )


# =============================================================================
# Collaborator contracts
# =============================================================================

class WalletAdapter(Protocol):
    """Narrow view of a connected wallet, one adapter per wallet extension."""

    async def get_change_address(self) -> str:
        ...

    async def sign_and_submit(
        self,
        label: int,
        metadata: dict[str, Any],
        recipient: Optional[str] = None,
    ) -> str:
        """Build, sign and submit a metadata transaction; return its hash."""
        ...


class LedgerClient(Protocol):
    """What the sync coordinator needs from the ledger."""

    async def submit_proof(self, proof: TrailCompletionProof) -> str:
        ...

    async def submit_reward(self, reward: TrekRewardRecord) -> str:
        ...

    async def mint_certificate(
        self, metadata: TrailNFTMetadata, wallet_address: str
    ) -> MintResult:
        ...

    async def query_proofs(self, wallet_address: str) -> list[LedgerProof]:
        ...


# =============================================================================
# Explorer API
# =============================================================================

class BlockfrostClient:
    """
    Block explorer API client (Blockfrost-compatible).

    Only metadata-by-label queries are needed.
    """

    PAGE_SIZE = 100

    def __init__(
        self,
        api_url: str,
        project_id: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.project_id = project_id
        self.timeout = timeout
        self.transport = transport

    async def list_label_metadata(self, label: int) -> list[dict]:
        """
        All transactions carrying metadata under label.

        Returns:
            [{"tx_hash": "...", "json_metadata": {...}}, ...]
        """
        entries: list[dict] = []
        page = 1

        async with httpx.AsyncClient(
            base_url=self.api_url,
            headers={"project_id": self.project_id},
            timeout=self.timeout,
            transport=self.transport,
        ) as client:
            while True:
                try:
                    response = await client.get(
                        f"/metadata/txs/labels/{label}",
                        params={"page": page, "count": self.PAGE_SIZE},
                    )
                except httpx.HTTPError as e:
                    raise LedgerNetworkError(f"Explorer request failed: {e}") from e

                if response.status_code == 404:
                    # Label never used
                    break
                if response.status_code != 200:
                    raise LedgerNetworkError(
                        f"Explorer error {response.status_code}: {response.text[:200]}"
                    )

                batch = response.json()
                entries.extend(batch)
                if len(batch) < self.PAGE_SIZE:
                    break
                page += 1

        return entries


# =============================================================================
# Ledger client
# =============================================================================

class CardanoLedgerClient:
    """
    LedgerClient over a wallet adapter (writes) and explorer API (reads).

    Usage:
        ledger = CardanoLedgerClient(wallet, BlockfrostClient(url, project_id))
        tx_hash = await ledger.submit_proof(proof)
    """

    def __init__(
        self,
        wallet: Optional[WalletAdapter],
        explorer: Optional[BlockfrostClient] = None,
        settings: Settings | None = None,
    ):
        self.wallet = wallet
        self.explorer = explorer
        self.settings = settings or default_settings

    @classmethod
    def from_settings(
        cls,
        wallet: Optional[WalletAdapter],
        settings: Settings | None = None,
    ) -> "CardanoLedgerClient":
        """Build with an explorer client if an API key is configured."""
        settings = settings or default_settings
        explorer = None
        if settings.blockfrost_project_id:
            explorer = BlockfrostClient(
                settings.blockfrost_api_url, settings.blockfrost_project_id
            )
        return cls(wallet, explorer, settings)

    async def submit_proof(self, proof: TrailCompletionProof) -> str:
        tx_hash = await self._submit(
            LedgerAction.STORE_TRAIL_COMPLETION,
            {"completion": proof.model_dump(mode="json")},
        )
        logger.info(f"Completion proof {proof.record_id} stored: {tx_hash}")
        return tx_hash

    async def submit_reward(self, reward: TrekRewardRecord) -> str:
        return await self._submit(
            LedgerAction.RECORD_TREK_REWARD,
            {"reward": reward.model_dump(mode="json")},
        )

    async def mint_certificate(
        self, metadata: TrailNFTMetadata, wallet_address: str
    ) -> MintResult:
        token_id = f"vintrek_{metadata.properties.trail_id}"
        tx_hash = await self._submit(
            LedgerAction.MINT_TRAIL_NFT,
            {
                "token_id": token_id,
                "recipient": wallet_address,
                "nft": metadata.model_dump(mode="json"),
            },
        )
        return MintResult(token_id=token_id, tx_hash=tx_hash)

    async def query_proofs(self, wallet_address: str) -> list[LedgerProof]:
        """
        Completion proofs submitted by wallet_address, newest first.

        Returns [] when no explorer is configured. Malformed entries are skipped.

        Raises:
            LedgerNetworkError: If the explorer cannot be queried
        """
        if self.explorer is None:
            logger.warning("Explorer API not configured, returning no proofs")
            return []

        entries = await self.explorer.list_label_metadata(self.settings.metadata_label)

        proofs: list[LedgerProof] = []
        for entry in entries:
            metadata = entry.get("json_metadata") or {}
            if not isinstance(metadata, dict):
                continue
            if metadata.get("action") != LedgerAction.STORE_TRAIL_COMPLETION.value:
                continue
            completion = metadata.get("completion")
            if not isinstance(completion, dict):
                continue
            if completion.get("hiker_address") != wallet_address:
                continue
            try:
                proofs.append(LedgerProof(
                    tx_hash=entry["tx_hash"],
                    proof=TrailCompletionProof.model_validate(completion),
                ))
            except (KeyError, ValidationError) as e:
                logger.warning(f"Skipping malformed proof {entry.get('tx_hash')}: {e}")

        proofs.sort(key=lambda p: p.proof.completion_timestamp, reverse=True)
        return proofs

    async def _submit(self, action: LedgerAction, body: dict[str, Any]) -> str:
        if self.wallet is None:
            raise WalletNotConnectedError("Wallet not connected")

        metadata = {"action": action.value, "version": LEDGER_METADATA_VERSION, **body}
        try:
            return await self.wallet.sign_and_submit(
                self.settings.metadata_label, metadata, self.settings.script_address
            )
        except LedgerError:
            raise
        except Exception as e:
            # Adapters surface extension-specific errors; normalize them
            raise LedgerSigningError(f"{action.value} failed: {e}") from e
