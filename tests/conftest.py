"""
Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests.
"""

import io
import json
import zipfile
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from channel_toolkit.codec.field import to_128bit_chunks
from channel_toolkit.ledger.models import SnapshotRef, StateSnapshot
from channel_toolkit.proofs.types import RawProof, StorageEntry

SAMPLE_MPT_KEY = "0x" + "ab" * 32
OTHER_MPT_KEY = "0x" + "cd" * 32


def make_zip(files: Dict[str, Any]) -> bytes:
    """Build an in-memory ZIP; dict values are written as JSON."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in files.items():
            if isinstance(content, (dict, list)):
                content = json.dumps(content)
            archive.writestr(name, content)
    return buffer.getvalue()


def make_snapshot(
    sequence_number: int,
    balances: Dict[str, int],
    verified_at: Optional[int] = None,
) -> StateSnapshot:
    return StateSnapshot(
        sequence_number=sequence_number,
        storage_entries=tuple(
            StorageEntry(key=int(k, 16), value=v) for k, v in balances.items()
        ),
        verified_at=verified_at,
    )


def snapshot_payload(balances: Dict[str, int]) -> Dict[str, Any]:
    """state_snapshot.json contents."""
    return {
        "contractAddress": "0x2be5e8c109e2197D077D13A82dAead6a9b3433C5",
        "stateRoot": "0x" + "11" * 32,
        "storageEntries": [
            {"key": k, "value": hex(v) if v else "0x"} for k, v in balances.items()
        ],
    }


class FakeArchive:
    """In-memory SnapshotArchive; keys listed in failing raise on fetch."""

    def __init__(
        self,
        snapshots: List[StateSnapshot],
        failing: Optional[List[int]] = None,
    ):
        self.snapshots = {s.sequence_number: s for s in snapshots}
        self.failing = set(failing or [])
        self.fetch_calls: List[int] = []

    async def list_verified(self, channel_id: str) -> List[SnapshotRef]:
        return [
            SnapshotRef(
                key=f"proof-{seq}",
                sequence_number=seq,
                verified_at=snap.verified_at,
            )
            for seq, snap in self.snapshots.items()
        ]

    async def fetch_snapshot(self, channel_id: str, ref: SnapshotRef) -> StateSnapshot:
        self.fetch_calls.append(ref.sequence_number)
        if ref.sequence_number in self.failing:
            raise ConnectionError(f"archive unreachable for {ref.key}")
        return self.snapshots[ref.sequence_number]


@pytest.fixture
def sample_channel_id() -> str:
    """Sample bytes32 channel id."""
    return "0x" + "0" * 62 + "2a"


@pytest.fixture
def sample_leader_address() -> str:
    return "0x52f541764E6e90eeBc5c21Ff570De0e2D63766B6"


@pytest.fixture
def sample_raw_proof() -> RawProof:
    """snarkjs-shaped proof with a projective third row/coordinate."""
    return RawProof.from_snarkjs(
        {
            "pi_a": ["1", "2", "1"],
            "pi_b": [["3", "4"], ["5", "6"], ["1", "0"]],
            "pi_c": ["7", "8", "1"],
            "protocol": "groth16",
            "curve": "bn128",
        },
        ["12345", "1", "2"],
    )


@pytest.fixture
def sample_instance() -> Dict[str, List[str]]:
    """instance.json with known roots, signature, target and selector."""
    values = {
        (0, 1): 0x1111111111111111111111111111111122222222222222222222222222222222,
        (8, 9): 0x3333333333333333333333333333333344444444444444444444444444444444,
        (10, 11): 0xDEADBEEF,
        (12, 13): 0x2BE5E8C109E2197D077D13A82DAEAD6A9B3433C5,
        (14, 15): 0xA9059CBB,
    }
    a_pub_user = ["0x0"] * 16
    for (low_slot, high_slot), value in values.items():
        low, high = to_128bit_chunks(value)
        a_pub_user[low_slot] = hex(low)
        a_pub_user[high_slot] = hex(high)
    return {
        "a_pub_user": a_pub_user,
        "a_pub_block": ["0x1", "0x2"],
        "a_pub_function": ["0x3"],
    }


@pytest.fixture
def sample_proof_json() -> Dict[str, List[str]]:
    return {
        "proof_entries_part1": ["0x10", "0x20"],
        "proof_entries_part2": ["0x30", "0x40", "0x50"],
    }


@pytest.fixture
def mock_web3_service():
    """Mock Web3Service for unit tests."""
    service = MagicMock()
    service.w3 = MagicMock()
    return service


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )
    config.addinivalue_line("markers", "slow: mark test as slow-running")
