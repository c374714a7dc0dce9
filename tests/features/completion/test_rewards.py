"""
Tests for the reward and NFT metadata builder.
"""

import pytest

from trailtrek.features.completion import (
    CompletedTrail,
    MissingWalletAddressError,
    create_completed_trail,
    generate_nft_metadata,
    generate_trail_image,
    hash_coordinates,
)
from trailtrek.features.recording import Recording
from trailtrek.shared.constants import Difficulty
from trailtrek.shared.coordinates import Coordinate


WALLET = "addr_test1qhiker"


@pytest.fixture
def finished_recording(track):
    return Recording(
        id="trail_1",
        name="Ella Rock",
        description="Morning hike",
        start_time="2024-06-01T08:00:00+00:00",
        end_time="2024-06-01T08:11:40+00:00",
        coordinates=track(15),
        is_active=False,
        total_distance=1200.0,
        total_duration=700.0,
        elevation_gain=150.0,
    )


@pytest.fixture
def completed_trail(track):
    return CompletedTrail(
        id="trail_1_1717228800000",
        name="Ella Rock",
        location="Ella, Sri Lanka",
        difficulty=Difficulty.MODERATE,
        completed_at="2024-06-01T08:11:40+00:00",
        duration=700.0,
        distance=1200.0,
        elevation_gain=150.0,
        coordinates=track(5),
        wallet_address=WALLET,
        trek_tokens_earned=17,
    )


# =============================================================================
# Test Completed Trail
# =============================================================================

class TestCreateCompletedTrail:
    """Tests for create_completed_trail."""

    def test_builds_record(self, finished_recording):
        trail = create_completed_trail(
            finished_recording, WALLET, Difficulty.MODERATE, "Ella, Sri Lanka",
            notes="Windy", photos=["summit.jpg"],
        )

        assert trail.id.startswith("trail_")
        assert trail.name == "Ella Rock"
        assert trail.description == "Morning hike"
        assert trail.location == "Ella, Sri Lanka"
        assert trail.difficulty == Difficulty.MODERATE
        assert trail.distance == 1200.0
        assert trail.duration == 700.0
        assert trail.elevation_gain == 150.0
        assert len(trail.coordinates) == 15
        assert trail.wallet_address == WALLET
        assert trail.trek_tokens_earned == 17
        assert trail.verified is True
        assert trail.nft_minted is False
        assert trail.notes == "Windy"
        assert trail.photos == ["summit.jpg"]

    def test_missing_wallet(self, finished_recording):
        with pytest.raises(MissingWalletAddressError):
            create_completed_trail(finished_recording, "")

    def test_missing_wallet_is_value_error(self, finished_recording):
        with pytest.raises(ValueError):
            create_completed_trail(finished_recording, "")

    def test_incomplete_recording(self, finished_recording):
        finished_recording.total_distance = 100.0

        trail = create_completed_trail(finished_recording, WALLET)

        assert trail.verified is False
        assert trail.trek_tokens_earned == 0
        assert trail.location == "Unknown Location"


# =============================================================================
# Test Coordinate Hash
# =============================================================================

class TestHashCoordinates:
    """Tests for hash_coordinates."""

    def test_empty(self):
        assert hash_coordinates([]) == "0"

    def test_deterministic_hex(self, track):
        points = track(5)
        first = hash_coordinates(points)

        assert first == hash_coordinates(list(points))
        int(first, 16)
        assert first == first.lower()

    def test_order_sensitive(self, track):
        points = track(5)
        assert hash_coordinates(points) != hash_coordinates(list(reversed(points)))

    def test_ignores_time_and_altitude(self):
        a = Coordinate(latitude=7.0, longitude=81.0, timestamp="2024-06-01T08:00:00Z")
        b = Coordinate(latitude=7.0, longitude=81.0, timestamp="2025-01-01T00:00:00Z", altitude=900)
        assert hash_coordinates([a]) == hash_coordinates([b])

    def test_fits_32_bits(self, track):
        assert int(hash_coordinates(track(50)), 16) <= 0x80000000


# =============================================================================
# Test NFT Metadata
# =============================================================================

class TestNFTMetadata:
    """Tests for generate_nft_metadata."""

    def test_document(self, completed_trail, test_settings):
        metadata = generate_nft_metadata(completed_trail, settings=test_settings)

        assert metadata.name == "VinTrek Trail: Ella Rock"
        assert "Distance: 1.20 km" in metadata.description
        assert "Duration: 11 minutes" in metadata.description

        attributes = {a.trait_type: a.value for a in metadata.attributes}
        assert len(metadata.attributes) == 8
        assert attributes["Trail Name"] == "Ella Rock"
        assert attributes["Location"] == "Ella, Sri Lanka"
        assert attributes["Difficulty"] == "Moderate"
        assert attributes["Distance (km)"] == 1.2
        assert attributes["Duration (minutes)"] == 11
        assert attributes["Elevation Gain (m)"] == 150
        assert attributes["Completion Date"] == "2024-06-01"
        assert attributes["TREK Tokens Earned"] == 17

    def test_properties(self, completed_trail, test_settings):
        props = generate_nft_metadata(completed_trail, settings=test_settings).properties

        assert props.trail_id == "trail_1_1717228800000"
        assert props.completion_date == "2024-06-01T08:11:40+00:00"
        assert props.distance_km == pytest.approx(1.2)
        assert props.duration_hours == pytest.approx(700 / 3600)
        assert props.elevation_gain_m == 150.0
        assert props.coordinates_hash == hash_coordinates(completed_trail.coordinates)
        assert props.wallet_address == WALLET

    def test_default_image(self, completed_trail, test_settings):
        metadata = generate_nft_metadata(completed_trail, settings=test_settings)

        assert metadata.image == generate_trail_image(completed_trail, test_settings)
        assert metadata.image.startswith(test_settings.nft_image_base_url + "?")
        assert "name=Ella+Rock" in metadata.image
        assert "difficulty=Moderate" in metadata.image
        assert "date=2024-06-01" in metadata.image

    def test_explicit_image(self, completed_trail):
        metadata = generate_nft_metadata(completed_trail, image_url="ipfs://Qm123")
        assert metadata.image == "ipfs://Qm123"
