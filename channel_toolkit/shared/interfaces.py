"""
Capability interfaces for the external boundaries.

The proving pipeline and the ledger reconciler only talk to the outside
world through these protocols, so tests can inject fakes returning canned
proofs and snapshots.
"""

from typing import TYPE_CHECKING, List, Protocol, runtime_checkable

if TYPE_CHECKING:
    from channel_toolkit.ledger.models import SnapshotRef, StateSnapshot
    from channel_toolkit.proofs.types import CircuitInput, RawProof


@runtime_checkable
class Prover(Protocol):
    """Turns a circuit input into a raw Groth16 proof (may take minutes)."""

    def prove(self, circuit_input: "CircuitInput") -> "RawProof": ...


@runtime_checkable
class SnapshotArchive(Protocol):
    """Read-only access to a channel's verified state snapshots."""

    async def list_verified(self, channel_id: str) -> List["SnapshotRef"]: ...

    async def fetch_snapshot(
        self, channel_id: str, ref: "SnapshotRef"
    ) -> "StateSnapshot": ...


@runtime_checkable
class DepositRecord(Protocol):
    """On-chain record of a participant's initial deposit."""

    def get_participant_deposit(self, channel_id: str, participant: str) -> int: ...
