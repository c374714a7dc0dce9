"""
Reward and NFT metadata builder.

Turns a finalized Recording into a CompletedTrail and builds the
descriptive NFT metadata document for it.
"""

from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlencode

from trailtrek.config import Settings, settings as default_settings
from trailtrek.features.recording.models import Recording, generate_trail_id
from trailtrek.shared.constants import Difficulty
from trailtrek.shared.coordinates import Coordinate, format_timestamp, parse_timestamp
from trailtrek.shared.formatters import format_distance
from .evaluator import verify_trail_completion
from .schemas import (
    CompletedTrail,
    CompletionCriteria,
    MissingWalletAddressError,
    NFTAttribute,
    NFTProperties,
    TrailNFTMetadata,
)


def create_completed_trail(
    recording: Recording,
    wallet_address: str,
    difficulty: Difficulty = Difficulty.EASY,
    location: str = "Unknown Location",
    criteria: Optional[CompletionCriteria] = None,
    notes: Optional[str] = None,
    photos: Optional[list[str]] = None,
) -> CompletedTrail:
    """
    Build the persisted record for a recording.

    verified mirrors the completion verdict; nft_minted is always False
    (minting is a separate ledger step).

    Raises:
        MissingWalletAddressError: If wallet_address is empty
    """
    if not wallet_address:
        raise MissingWalletAddressError("Wallet address is required")

    completion = verify_trail_completion(recording, criteria)

    return CompletedTrail(
        id=generate_trail_id(),
        name=recording.name,
        description=recording.description,
        location=location,
        difficulty=difficulty,
        completed_at=format_timestamp(datetime.now(timezone.utc)),
        duration=recording.total_duration,
        distance=recording.total_distance,
        elevation_gain=recording.elevation_gain,
        coordinates=list(recording.coordinates),
        photos=photos,
        notes=notes,
        wallet_address=wallet_address,
        nft_minted=False,
        trek_tokens_earned=completion.trek_tokens_earned,
        verified=completion.completed,
    )


def hash_coordinates(coordinates: list[Coordinate]) -> str:
    """
    Display fingerprint of a coordinate path.

    32-bit rolling hash (h = h * 31 + char) over 'lat,lon|lat,lon|...'
    with 6 decimals, as hex of the absolute signed value.
    Not a cryptographic digest.
    """
    coord_string = "|".join(
        f"{c.latitude:.6f},{c.longitude:.6f}" for c in coordinates
    )

    h = 0
    for char in coord_string:
        h = (h * 31 + ord(char)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000

    return format(abs(h), "x")


def generate_trail_image(
    trail: CompletedTrail,
    settings: Settings | None = None,
) -> str:
    """Placeholder image URL rendered server-side from trail facts."""
    settings = settings or default_settings
    params = urlencode({
        "name": trail.name,
        "distance": f"{trail.distance / 1000:.1f}",
        "difficulty": trail.difficulty.value,
        "date": _completion_date(trail),
    })
    return f"{settings.nft_image_base_url}?{params}"


def generate_nft_metadata(
    trail: CompletedTrail,
    image_url: Optional[str] = None,
    settings: Settings | None = None,
) -> TrailNFTMetadata:
    """Build the NFT metadata document for a completed trail."""
    minutes = int(trail.duration // 60)

    return TrailNFTMetadata(
        name=f"VinTrek Trail: {trail.name}",
        description=(
            f"A blockchain certificate commemorating the completion of "
            f"{trail.name} trail. Distance: {format_distance(trail.distance)}, "
            f"Duration: {minutes} minutes."
        ),
        image=image_url or generate_trail_image(trail, settings),
        attributes=[
            NFTAttribute(trait_type="Trail Name", value=trail.name),
            NFTAttribute(trait_type="Location", value=trail.location),
            NFTAttribute(trait_type="Difficulty", value=trail.difficulty.value),
            NFTAttribute(trait_type="Distance (km)", value=round(trail.distance / 1000, 2)),
            NFTAttribute(trait_type="Duration (minutes)", value=minutes),
            NFTAttribute(trait_type="Elevation Gain (m)", value=int(trail.elevation_gain)),
            NFTAttribute(trait_type="Completion Date", value=_completion_date(trail)),
            NFTAttribute(trait_type="TREK Tokens Earned", value=trail.trek_tokens_earned),
        ],
        properties=NFTProperties(
            trail_id=trail.id,
            completion_date=trail.completed_at,
            distance_km=trail.distance / 1000,
            duration_hours=trail.duration / 3600,
            elevation_gain_m=trail.elevation_gain,
            coordinates_hash=hash_coordinates(trail.coordinates),
            wallet_address=trail.wallet_address,
        ),
    )


def _completion_date(trail: CompletedTrail) -> str:
    return parse_timestamp(trail.completed_at).date().isoformat()
