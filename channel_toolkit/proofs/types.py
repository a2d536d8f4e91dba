"""
Type definitions for channel proofs.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, TypedDict

from channel_toolkit.codec.field import (
    parse_field_value,
    parse_hex_quantity,
    to_bytes32_hex,
)
from channel_toolkit.shared.exceptions import MalformedProofError

# =============================================================================
# JSON SHAPES (as written by the prover and stored in proof ZIPs)
# =============================================================================


class SnarkjsProofJson(TypedDict, total=False):
    """Groth16 proof object as emitted by snarkjs."""

    pi_a: List[str]
    pi_b: List[List[str]]
    pi_c: List[str]
    protocol: str
    curve: str


class ProofEntriesJson(TypedDict):
    """proof.json inside a proof ZIP."""

    proof_entries_part1: List[str]
    proof_entries_part2: List[str]


class InstanceJson(TypedDict):
    """instance.json inside a proof ZIP."""

    a_pub_user: List[str]
    a_pub_block: List[str]
    a_pub_function: List[str]


class StorageEntryJson(TypedDict):
    key: str  # 0x-prefixed 32-byte hex
    value: str  # 0x-prefixed hex, "0x" for zero


# =============================================================================
# STORAGE / CIRCUIT INPUT
# =============================================================================


@dataclass(frozen=True)
class StorageEntry:
    """One merkle leaf: a participant's MPT key and its slot value in wei."""

    key: int
    value: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StorageEntry":
        return cls(
            key=parse_hex_quantity(data.get("key")),
            value=parse_hex_quantity(data.get("value")),
        )

    @property
    def key_hex(self) -> str:
        return to_bytes32_hex(self.key)

    @property
    def value_hex(self) -> str:
        return to_bytes32_hex(self.value)

    def to_dict(self) -> StorageEntryJson:
        return {"key": self.key_hex, "value": self.value_hex}


class AdvisoryKind(Enum):
    """Non-fatal diagnostics surfaced while building a circuit input."""

    TREE_SIZE_TRUNCATED = "tree_size_truncated"
    LARGE_CIRCUIT = "large_circuit"


@dataclass(frozen=True)
class Advisory:
    kind: AdvisoryKind
    message: str
    context: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CircuitInput:
    """
    Fixed-size circuit input.

    keys and values always hold exactly tree_size elements, in leaf order.
    """

    keys: Tuple[int, ...]
    values: Tuple[int, ...]
    tree_size: int
    real_entries: int
    padded_entries: int = 0
    truncated_entries: int = 0
    advisories: Tuple[Advisory, ...] = ()

    @property
    def is_perfect_match(self) -> bool:
        return self.padded_entries == 0 and self.truncated_entries == 0

    @property
    def is_large_circuit(self) -> bool:
        return any(a.kind == AdvisoryKind.LARGE_CIRCUIT for a in self.advisories)

    def to_prover_input(self) -> Dict[str, List[str]]:
        """Witness-generator JSON: decimal strings, in leaf order."""
        return {
            "storage_keys_L2MPT": [str(k) for k in self.keys],
            "storage_values": [str(v) for v in self.values],
        }


# =============================================================================
# PROVER OUTPUT / VERIFIER INPUT
# =============================================================================


def _coordinates(name: str, value: Any) -> Tuple[Any, ...]:
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)):
        raise MalformedProofError(f"{name} must be a list of coordinates")
    return tuple(value)


@dataclass(frozen=True)
class RawProof:
    """
    Opaque prover output.

    pi_a and pi_c are G1 points [x, y] (a trailing projective z is allowed),
    pi_b is a G2 point [[x0, x1], [y0, y1]]. public_signals[0] is the
    resulting merkle root.
    """

    pi_a: Sequence[Any]
    pi_b: Sequence[Sequence[Any]]
    pi_c: Sequence[Any]
    public_signals: Sequence[Any]

    @classmethod
    def from_snarkjs(
        cls, proof: Dict[str, Any], public_signals: Sequence[Any]
    ) -> "RawProof":
        if isinstance(public_signals, (str, bytes)):
            raise MalformedProofError("publicSignals must be a list")
        return cls(
            pi_a=_coordinates("pi_a", proof.get("pi_a")),
            pi_b=tuple(
                _coordinates(f"pi_b[{i}]", row)
                for i, row in enumerate(_coordinates("pi_b", proof.get("pi_b")))
            ),
            pi_c=_coordinates("pi_c", proof.get("pi_c")),
            public_signals=tuple(public_signals),
        )


@dataclass(frozen=True)
class EncodedProof:
    """Verifier call arguments, in the exact order the contract reads them."""

    pA: Tuple[int, int, int, int]
    pB: Tuple[int, int, int, int, int, int, int, int]
    pC: Tuple[int, int, int, int]
    merkle_root: str  # 0x-prefixed 32-byte hex

    def to_contract_args(self) -> Tuple[List[int], List[int], List[int], bytes]:
        return (
            list(self.pA),
            list(self.pB),
            list(self.pC),
            bytes.fromhex(self.merkle_root[2:]),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Decimal strings for uint256 words (JSON-safe)."""
        return {
            "pA": [str(v) for v in self.pA],
            "pB": [str(v) for v in self.pB],
            "pC": [str(v) for v in self.pC],
            "merkleRoot": self.merkle_root,
        }


@dataclass(frozen=True)
class ProofBundle:
    """Everything produced by one proof-generation request."""

    circuit_input: CircuitInput
    raw_proof: RawProof
    encoded: EncodedProof
    public_signals: Tuple[str, ...]


# =============================================================================
# PUBLIC INPUTS
# =============================================================================


@dataclass(frozen=True)
class DecodedInstance:
    """Semantic values recovered from a_pub_user."""

    resulting_root: int
    initial_root: int
    signature: int
    target_contract: int
    selector: int

    def to_dict(self) -> Dict[str, str]:
        return {
            "resulting_root": to_bytes32_hex(self.resulting_root),
            "initial_root": to_bytes32_hex(self.initial_root),
            "signature": to_bytes32_hex(self.signature),
            "target_contract": to_bytes32_hex(self.target_contract),
            "selector": to_bytes32_hex(self.selector),
        }


@dataclass(frozen=True)
class ProofData:
    """One entry of submitProofAndSignature's proof array."""

    proof_part1: Tuple[int, ...]
    proof_part2: Tuple[int, ...]
    public_inputs: Tuple[int, ...]
    smax: int

    @classmethod
    def from_values(
        cls,
        proof_part1: Sequence[Any],
        proof_part2: Sequence[Any],
        public_inputs: Sequence[Any],
        smax: int,
    ) -> "ProofData":
        return cls(
            proof_part1=tuple(parse_field_value(v) for v in proof_part1),
            proof_part2=tuple(parse_field_value(v) for v in proof_part2),
            public_inputs=tuple(parse_field_value(v) for v in public_inputs),
            smax=smax,
        )

    def to_contract_tuple(self) -> Tuple[List[int], List[int], List[int], int]:
        return (
            list(self.proof_part1),
            list(self.proof_part2),
            list(self.public_inputs),
            self.smax,
        )


@dataclass(frozen=True)
class FormattedSubmission:
    proof_data: Tuple[ProofData, ...]
    final_state_root: str
    message_hash: str


@dataclass
class ProofArtifact:
    """Parsed contents of a proof ZIP."""

    proof: ProofEntriesJson
    instance: InstanceJson
    snapshot: Optional[Dict[str, Any]] = None
