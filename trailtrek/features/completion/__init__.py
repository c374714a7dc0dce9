"""
Trail completion module.

Usage:
    from trailtrek.features.completion import verify_trail_completion, create_completed_trail

Available components:
- verify_trail_completion, classify_difficulty, calculate_reward: evaluator
- create_completed_trail, generate_nft_metadata: reward/metadata builder
- calculate_user_stats: per-wallet aggregate
"""
from .schemas import (
    CompletionCriteria,
    CompletionResult,
    CompletedTrail,
    UserStats,
    Achievement,
    TrailNFTMetadata,
    NFTAttribute,
    NFTProperties,
    MissingWalletAddressError,
)
from .evaluator import (
    verify_trail_completion,
    calculate_reward,
    calculate_completion_percentage,
    is_nft_eligible,
    classify_difficulty,
)
from .rewards import (
    create_completed_trail,
    generate_nft_metadata,
    generate_trail_image,
    hash_coordinates,
)
from .stats import calculate_user_stats, calculate_achievements

__all__ = [
    # Schemas
    "CompletionCriteria",
    "CompletionResult",
    "CompletedTrail",
    "UserStats",
    "Achievement",
    "TrailNFTMetadata",
    "NFTAttribute",
    "NFTProperties",
    "MissingWalletAddressError",
    # Evaluator
    "verify_trail_completion",
    "calculate_reward",
    "calculate_completion_percentage",
    "is_nft_eligible",
    "classify_difficulty",
    # Builder
    "create_completed_trail",
    "generate_nft_metadata",
    "generate_trail_image",
    "hash_coordinates",
    # Stats
    "calculate_user_stats",
    "calculate_achievements",
]
