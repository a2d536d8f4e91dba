from channel_toolkit.proofs.circuit_input import build_circuit_input
from channel_toolkit.proofs.decoder import decode_instance, extract_merkle_roots
from channel_toolkit.proofs.encoder import encode_proof
from channel_toolkit.proofs.manager import ChannelProofs
from channel_toolkit.proofs.types import (
    CircuitInput,
    DecodedInstance,
    EncodedProof,
    ProofBundle,
    RawProof,
    StorageEntry,
)

__all__ = [
    "ChannelProofs",
    "build_circuit_input",
    "encode_proof",
    "decode_instance",
    "extract_merkle_roots",
    "StorageEntry",
    "CircuitInput",
    "RawProof",
    "EncodedProof",
    "DecodedInstance",
    "ProofBundle",
]
