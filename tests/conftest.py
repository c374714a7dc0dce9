"""
Shared fixtures: test settings, coordinate tracks and fake collaborators.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from trailtrek.config import Settings
from trailtrek.features.recording.sampler import LocationError, Position, PositionOptions
from trailtrek.features.sync.ledger import (
    LedgerNetworkError,
    LedgerProof,
    MintResult,
    TrailCompletionProof,
    TrekRewardRecord,
)
from trailtrek.shared.constants import LocationErrorCode
from trailtrek.shared.coordinates import Coordinate, format_timestamp

START = datetime(2024, 6, 1, 8, 0, 0, tzinfo=timezone.utc)

# 0.0005 degrees of latitude is ~55.6 m
LAT_STEP = 0.0005


# =============================================================================
# Fakes
# =============================================================================

class FakeClock:
    """Manually advanced clock returning aware datetimes."""

    def __init__(self, start: datetime = START):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)

    def epoch(self) -> float:
        return self.now.timestamp()


class FakeLocationProvider:
    """Location provider driven by the test."""

    def __init__(self, supports_watch: bool = True, denied: bool = False):
        self.supports_watch = supports_watch
        self.denied = denied
        self.requests = 0
        self.on_position = None
        self.on_error = None
        self.cleared: list[int] = []
        self.next_position = Position(latitude=7.0, longitude=81.0, accuracy=5.0)

    async def get_current_position(self, options: PositionOptions) -> Position:
        self.requests += 1
        if self.denied:
            raise LocationError(LocationErrorCode.PERMISSION_DENIED)
        return self.next_position

    def watch_position(self, on_position, on_error, options: PositionOptions) -> int:
        self.on_position = on_position
        self.on_error = on_error
        return 42

    def clear_watch(self, watch_id: int) -> None:
        self.cleared.append(watch_id)
        self.on_position = None
        self.on_error = None

    def emit(self, position: Position) -> None:
        if self.on_position is not None:
            self.on_position(position)

    def fail(self, error: LocationError) -> None:
        if self.on_error is not None:
            self.on_error(error)


class FakeWallet:
    """Wallet adapter recording every submitted metadata transaction."""

    def __init__(self, address: str = "addr_test1qhiker", fail: bool = False):
        self.address = address
        self.fail = fail
        self.submitted: list[tuple[int, dict, Optional[str]]] = []

    async def get_change_address(self) -> str:
        return self.address

    async def sign_and_submit(self, label, metadata, recipient=None) -> str:
        if self.fail:
            raise RuntimeError("User declined to sign")
        self.submitted.append((label, metadata, recipient))
        return f"tx{len(self.submitted):04d}"


class FakeLedger:
    """In-memory LedgerClient; proofs submitted are returned by query_proofs."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.fail_rewards = False
        self.proofs: list[LedgerProof] = []
        self.rewards: list[TrekRewardRecord] = []
        self.mints: list[tuple[str, str]] = []

    async def submit_proof(self, proof: TrailCompletionProof) -> str:
        if self.fail:
            raise LedgerNetworkError("Ledger unreachable")
        tx_hash = f"proof_tx_{len(self.proofs) + 1}"
        self.proofs.append(LedgerProof(tx_hash=tx_hash, proof=proof))
        return tx_hash

    async def submit_reward(self, reward: TrekRewardRecord) -> str:
        if self.fail or self.fail_rewards:
            raise LedgerNetworkError("Ledger unreachable")
        self.rewards.append(reward)
        return f"reward_tx_{len(self.rewards)}"

    async def mint_certificate(self, metadata, wallet_address: str) -> MintResult:
        if self.fail:
            raise LedgerNetworkError("Ledger unreachable")
        token_id = f"vintrek_{metadata.properties.trail_id}"
        self.mints.append((token_id, wallet_address))
        return MintResult(token_id=token_id, tx_hash=f"mint_tx_{len(self.mints)}")

    async def query_proofs(self, wallet_address: str) -> list[LedgerProof]:
        if self.fail:
            raise LedgerNetworkError("Ledger unreachable")
        return [p for p in self.proofs if p.proof.hiker_address == wallet_address]


def make_track(
    count: int,
    step_seconds: float = 10.0,
    lat_step: float = LAT_STEP,
    start: datetime = START,
    altitudes: Optional[list[float]] = None,
) -> list[Coordinate]:
    """Straight northbound track starting at (7.0, 81.0)."""
    return [
        Coordinate(
            latitude=7.0 + i * lat_step,
            longitude=81.0,
            timestamp=format_timestamp(start + timedelta(seconds=i * step_seconds)),
            altitude=altitudes[i] if altitudes else None,
            accuracy=5.0,
        )
        for i in range(count)
    ]


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def test_settings():
    """Settings with defaults, isolated from the environment's .env."""
    return Settings(_env_file=None)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def provider():
    return FakeLocationProvider()


@pytest.fixture
def wallet():
    return FakeWallet()


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
def track():
    """Factory fixture for coordinate tracks."""
    return make_track
