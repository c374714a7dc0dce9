"""
Hybrid local/ledger sync module.

Usage:
    from trailtrek.features.sync import HybridSyncService, TrailCache, CardanoLedgerClient

Components:
- TrailCache: wallet-keyed cache of trails, stats and preferences
- CardanoLedgerClient: proof/reward/mint writes and proof queries
- HybridSyncService: local-first completion with ledger verification
"""
from trailtrek.features.completion.schemas import MissingWalletAddressError
from .cache import (
    TrailCache,
    CacheError,
    CachedUserData,
    UserPreferences,
    NotificationPreferences,
    PrivacyPreferences,
    SyncStatusRecord,
)
from .ledger import (
    LedgerClient,
    WalletAdapter,
    BlockfrostClient,
    CardanoLedgerClient,
    TrailCompletionProof,
    TrekRewardRecord,
    GPSCheckpoint,
    LedgerProof,
    MintResult,
    LedgerError,
    LedgerNetworkError,
    LedgerSigningError,
    WalletNotConnectedError,
    sample_checkpoints,
    build_completion_proof,
)
from .service import (
    HybridSyncService,
    SyncResult,
    TrailCompletionData,
    SyncError,
    SyncInProgressError,
)

__all__ = [
    # Cache
    "TrailCache",
    "CacheError",
    "CachedUserData",
    "UserPreferences",
    "NotificationPreferences",
    "PrivacyPreferences",
    "SyncStatusRecord",
    # Ledger
    "LedgerClient",
    "WalletAdapter",
    "BlockfrostClient",
    "CardanoLedgerClient",
    "TrailCompletionProof",
    "TrekRewardRecord",
    "GPSCheckpoint",
    "LedgerProof",
    "MintResult",
    "LedgerError",
    "LedgerNetworkError",
    "LedgerSigningError",
    "WalletNotConnectedError",
    "sample_checkpoints",
    "build_completion_proof",
    # Service
    "HybridSyncService",
    "SyncResult",
    "TrailCompletionData",
    "SyncError",
    "SyncInProgressError",
    "MissingWalletAddressError",
]
