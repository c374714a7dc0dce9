"""
Completion-related schemas.

Pydantic models for criteria, persisted completed trails, user stats
and NFT metadata documents. CompletionResult is an ephemeral dataclass.
"""

from dataclasses import dataclass, field
from typing import Optional, Union

from pydantic import BaseModel, Field

from trailtrek.shared.constants import Difficulty
from trailtrek.shared.coordinates import Coordinate


class MissingWalletAddressError(ValueError):
    """A wallet address is required for this operation."""
    pass


class CompletionCriteria(BaseModel):
    """Thresholds a finalized recording must meet."""

    minimum_distance: float = Field(default=500.0, ge=0)  # meters
    minimum_duration: float = Field(default=300.0, ge=0)  # seconds
    minimum_points: int = Field(default=10, ge=0)

    # NFT eligibility (stricter than base completion)
    nft_minimum_distance: float = Field(default=1000.0, ge=0)
    nft_minimum_duration: float = Field(default=600.0, ge=0)


@dataclass
class CompletionResult:
    """Outcome of verifying a recording against CompletionCriteria."""

    completed: bool
    distance: float  # meters
    duration: float  # seconds
    elevation_gain: float  # meters
    trek_tokens_earned: int
    nft_eligible: bool
    completion_percentage: float  # 0-100
    reasons: list[str] = field(default_factory=list)


class CompletedTrail(BaseModel):
    """Persisted record of a successfully completed trail."""

    id: str
    name: str
    description: Optional[str] = None
    location: str = "Unknown Location"
    difficulty: Difficulty = Difficulty.EASY
    completed_at: str  # ISO-8601

    duration: float  # seconds
    distance: float  # meters
    elevation_gain: float = 0.0  # meters
    coordinates: list[Coordinate] = Field(default_factory=list)

    photos: Optional[list[str]] = None
    notes: Optional[str] = None

    wallet_address: str
    nft_minted: bool = False
    nft_token_id: Optional[str] = None
    trek_tokens_earned: int = 0

    # True once the ledger accepted the completion proof
    verified: bool = False
    tx_hash: Optional[str] = None


class Achievement(BaseModel):
    """Unlocked achievement."""

    id: str
    name: str
    category: str  # distance / trails / special
    description: str = ""


class UserStats(BaseModel):
    """Aggregate over all of a wallet's completed trails."""

    total_trails: int = 0
    total_distance: float = 0.0
    total_duration: float = 0.0
    total_elevation_gain: float = 0.0
    trek_tokens_earned: int = 0
    nfts_minted: int = 0
    favorite_trail: Optional[str] = None
    longest_trail: Optional[str] = None
    achievements: list[Achievement] = Field(default_factory=list)


class NFTAttribute(BaseModel):
    """Single trait in NFT metadata."""

    trait_type: str
    value: Union[int, float, str]


class NFTProperties(BaseModel):
    """Machine-readable trail facts embedded in NFT metadata."""

    trail_id: str
    completion_date: str
    distance_km: float
    duration_hours: float
    elevation_gain_m: float
    coordinates_hash: str
    wallet_address: str


class TrailNFTMetadata(BaseModel):
    """NFT metadata document for a completed trail."""

    name: str
    description: str
    image: str
    attributes: list[NFTAttribute]
    properties: NFTProperties
