"""
Tests for the ledger client.

Wallet writes go through a fake wallet adapter; explorer reads use
httpx.MockTransport.
"""

import asyncio

import httpx
import pytest

from trailtrek.config import Settings
from trailtrek.features.completion import CompletedTrail, generate_nft_metadata
from trailtrek.features.sync import (
    BlockfrostClient,
    CardanoLedgerClient,
    LedgerNetworkError,
    LedgerSigningError,
    TrekRewardRecord,
    WalletNotConnectedError,
    build_completion_proof,
    sample_checkpoints,
)
from trailtrek.shared.constants import Difficulty

WALLET = "addr_test1qhiker"


def run(coro):
    return asyncio.run(coro)


def make_trail(track, record_id="trail_1_1717228800000", points=5):
    return CompletedTrail(
        id=record_id,
        name="Ella Rock",
        location="Ella, Sri Lanka",
        difficulty=Difficulty.MODERATE,
        completed_at="2024-06-01T08:11:40+00:00",
        duration=700.0,
        distance=1200.0,
        elevation_gain=150.0,
        coordinates=track(points),
        wallet_address=WALLET,
        trek_tokens_earned=17,
    )


def proof_entry(tx_hash, record_id, hiker=WALLET, completed_at="2024-06-01T08:11:40+00:00",
                action="store_trail_completion"):
    return {
        "tx_hash": tx_hash,
        "json_metadata": {
            "action": action,
            "version": "1.0",
            "completion": {
                "record_id": record_id,
                "trail_id": "trail_1",
                "trail_name": "Ella Rock",
                "location": "Ella, Sri Lanka",
                "hiker_address": hiker,
                "difficulty": "Moderate",
                "distance_meters": 1200.0,
                "duration_seconds": 700.0,
                "elevation_gain_meters": 150.0,
                "gps_checkpoints": [
                    {"lat": 7.0, "lng": 81.0, "timestamp": "2024-06-01T08:00:00+00:00"},
                ],
                "trek_tokens_earned": 17,
                "nft_minted": False,
                "completion_timestamp": completed_at,
            },
        },
    }


def explorer_with(handler, page_size=None):
    client = BlockfrostClient(
        "https://explorer.test/api/v0", "project_key",
        transport=httpx.MockTransport(handler),
    )
    if page_size is not None:
        client.PAGE_SIZE = page_size
    return client


# =============================================================================
# Test Checkpoints and Proof
# =============================================================================

class TestCheckpoints:
    """Tests for sample_checkpoints."""

    def test_empty(self):
        assert sample_checkpoints([], 20) == []

    def test_short_path_kept_whole(self, track):
        assert len(sample_checkpoints(track(10), 20)) == 10

    def test_downsampled(self, track):
        points = track(50)

        checkpoints = sample_checkpoints(points, 20)

        # every 3rd point: 0, 3, ..., 48
        assert len(checkpoints) == 17
        assert checkpoints[0].lat == points[0].latitude
        assert checkpoints[-1].lat == points[48].latitude
        assert len(checkpoints) <= 20

    def test_never_exceeds_limit(self, track):
        for n in (1, 19, 20, 21, 39, 40, 41, 101):
            assert len(sample_checkpoints(track(n), 20)) <= 20

    def test_non_positive_limit(self, track):
        assert sample_checkpoints(track(5), 0) == []


class TestCompletionProof:
    """Tests for build_completion_proof."""

    def test_fields(self, track):
        trail = make_trail(track, points=30)

        proof = build_completion_proof(trail, "trail_1", 20)

        assert proof.record_id == trail.id
        assert proof.trail_id == "trail_1"
        assert proof.hiker_address == WALLET
        assert proof.difficulty == Difficulty.MODERATE
        assert proof.distance_meters == 1200.0
        assert proof.duration_seconds == 700.0
        assert proof.trek_tokens_earned == 17
        assert proof.completion_timestamp == trail.completed_at
        assert len(proof.gps_checkpoints) == 15


# =============================================================================
# Test Writes
# =============================================================================

class TestWrites:
    """Tests for metadata transactions through the wallet adapter."""

    def test_submit_proof(self, wallet, track, test_settings):
        client = CardanoLedgerClient(wallet, settings=test_settings)
        proof = build_completion_proof(make_trail(track), "trail_1", 20)

        tx_hash = run(client.submit_proof(proof))

        assert tx_hash == "tx0001"
        label, metadata, recipient = wallet.submitted[0]
        assert label == 674
        assert metadata["action"] == "store_trail_completion"
        assert metadata["version"] == "1.0"
        assert metadata["completion"]["record_id"] == "trail_1_1717228800000"
        assert metadata["completion"]["difficulty"] == "Moderate"
        assert recipient is None

    def test_submit_reward(self, wallet, test_settings):
        client = CardanoLedgerClient(wallet, settings=test_settings)

        run(client.submit_reward(TrekRewardRecord(
            hiker_address=WALLET, trail_id="trail_1", trek_amount=17
        )))

        metadata = wallet.submitted[0][1]
        assert metadata["action"] == "record_trek_reward"
        assert metadata["reward"] == {
            "hiker_address": WALLET,
            "trail_id": "trail_1",
            "reward_type": "completion",
            "trek_amount": 17,
        }

    def test_mint_certificate(self, wallet, track, test_settings):
        client = CardanoLedgerClient(wallet, settings=test_settings)
        trail = make_trail(track)

        result = run(client.mint_certificate(
            generate_nft_metadata(trail, settings=test_settings), WALLET
        ))

        assert result.token_id == "vintrek_trail_1_1717228800000"
        assert result.tx_hash == "tx0001"
        metadata = wallet.submitted[0][1]
        assert metadata["action"] == "mint_trail_nft"
        assert metadata["recipient"] == WALLET
        assert metadata["nft"]["name"] == "VinTrek Trail: Ella Rock"

    def test_script_address_as_recipient(self, wallet, track):
        settings = Settings(_env_file=None, script_address="addr_test1script")
        client = CardanoLedgerClient(wallet, settings=settings)

        run(client.submit_proof(build_completion_proof(make_trail(track), "trail_1", 20)))

        assert wallet.submitted[0][2] == "addr_test1script"

    def test_no_wallet(self, track, test_settings):
        client = CardanoLedgerClient(None, settings=test_settings)

        with pytest.raises(WalletNotConnectedError):
            run(client.submit_proof(build_completion_proof(make_trail(track), "trail_1", 20)))

    def test_signing_failure_normalized(self, wallet, track, test_settings):
        wallet.fail = True
        client = CardanoLedgerClient(wallet, settings=test_settings)

        with pytest.raises(LedgerSigningError, match="store_trail_completion failed"):
            run(client.submit_proof(build_completion_proof(make_trail(track), "trail_1", 20)))

    def test_from_settings(self, wallet):
        without_key = CardanoLedgerClient.from_settings(wallet, Settings(_env_file=None))
        with_key = CardanoLedgerClient.from_settings(
            wallet, Settings(_env_file=None, blockfrost_project_id="project_key")
        )

        assert without_key.explorer is None
        assert isinstance(with_key.explorer, BlockfrostClient)
        assert with_key.explorer.project_id == "project_key"


# =============================================================================
# Test Explorer
# =============================================================================

class TestExplorer:
    """Tests for BlockfrostClient.list_label_metadata."""

    def test_request_shape(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=[])

        run(explorer_with(handler).list_label_metadata(674))

        request = seen[0]
        assert request.url.path == "/api/v0/metadata/txs/labels/674"
        assert request.url.params["page"] == "1"
        assert request.url.params["count"] == "100"
        assert request.headers["project_id"] == "project_key"

    def test_pagination(self):
        pages = {
            "1": [{"tx_hash": "a"}, {"tx_hash": "b"}],
            "2": [{"tx_hash": "c"}, {"tx_hash": "d"}],
            "3": [{"tx_hash": "e"}],
        }

        def handler(request):
            return httpx.Response(200, json=pages[request.url.params["page"]])

        entries = run(explorer_with(handler, page_size=2).list_label_metadata(674))

        assert [e["tx_hash"] for e in entries] == ["a", "b", "c", "d", "e"]

    def test_unused_label(self):
        def handler(request):
            return httpx.Response(404, json={"status_code": 404, "error": "Not Found"})

        assert run(explorer_with(handler).list_label_metadata(674)) == []

    def test_server_error(self):
        def handler(request):
            return httpx.Response(500, text="Internal Server Error")

        with pytest.raises(LedgerNetworkError, match="500"):
            run(explorer_with(handler).list_label_metadata(674))

    def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(LedgerNetworkError):
            run(explorer_with(handler).list_label_metadata(674))


# =============================================================================
# Test Proof Queries
# =============================================================================

class TestQueryProofs:
    """Tests for CardanoLedgerClient.query_proofs."""

    def test_no_explorer(self, wallet, test_settings):
        client = CardanoLedgerClient(wallet, settings=test_settings)
        assert run(client.query_proofs(WALLET)) == []

    def test_filters_and_sorts(self, wallet, test_settings):
        entries = [
            proof_entry("tx_old", "trail_1_1", completed_at="2024-05-01T08:00:00+00:00"),
            proof_entry("tx_other_hiker", "trail_1_2", hiker="addr_test1qother"),
            proof_entry("tx_reward", "trail_1_3", action="record_trek_reward"),
            proof_entry("tx_new", "trail_1_4", completed_at="2024-06-02T08:00:00+00:00"),
            {"tx_hash": "tx_plain", "json_metadata": "hello"},
            {"tx_hash": "tx_none", "json_metadata": None},
        ]

        def handler(request):
            return httpx.Response(200, json=entries)

        client = CardanoLedgerClient(wallet, explorer_with(handler), test_settings)

        proofs = run(client.query_proofs(WALLET))

        assert [p.tx_hash for p in proofs] == ["tx_new", "tx_old"]
        assert proofs[0].proof.record_id == "trail_1_4"
        assert proofs[0].proof.gps_checkpoints[0].lng == 81.0

    def test_malformed_proof_skipped(self, wallet, test_settings):
        broken = proof_entry("tx_broken", "trail_1_9")
        del broken["json_metadata"]["completion"]["distance_meters"]

        def handler(request):
            return httpx.Response(200, json=[broken, proof_entry("tx_ok", "trail_1_1")])

        client = CardanoLedgerClient(wallet, explorer_with(handler), test_settings)

        assert [p.tx_hash for p in run(client.query_proofs(WALLET))] == ["tx_ok"]

    def test_non_object_completion_skipped(self, wallet, test_settings):
        """Chunked or scalar completion payloads do not abort the listing."""
        chunked = proof_entry("tx_chunked", "trail_1_8")
        chunked["json_metadata"]["completion"] = "a string chunk of metadata"
        listed = proof_entry("tx_listed", "trail_1_7")
        listed["json_metadata"]["completion"] = ["record_id", "trail_1_7"]

        def handler(request):
            return httpx.Response(200, json=[chunked, listed, proof_entry("tx_ok", "trail_1_1")])

        client = CardanoLedgerClient(wallet, explorer_with(handler), test_settings)

        assert [p.tx_hash for p in run(client.query_proofs(WALLET))] == ["tx_ok"]

    def test_network_failure_raises(self, wallet, test_settings):
        def handler(request):
            return httpx.Response(503, text="Service Unavailable")

        client = CardanoLedgerClient(wallet, explorer_with(handler), test_settings)

        with pytest.raises(LedgerNetworkError):
            run(client.query_proofs(WALLET))
