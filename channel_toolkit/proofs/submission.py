"""
Batch submission formatting for submitProofAndSignature.

Each verified proof becomes a ProofData tuple, the final state root comes
from the last proof's public inputs, and the leader signs
keccak256(abi.encodePacked(uint256 channelId, bytes32 finalStateRoot)).
"""

from typing import Any, Iterable, List, Mapping, Sequence

from eth_abi.packed import encode_packed
from eth_utils import keccak

from channel_toolkit.codec.field import (
    combine_hex,
    parse_field_value,
    to_bytes32_hex,
)
from channel_toolkit.proofs.artifacts import ArchiveSource, parse_proof_archive
from channel_toolkit.proofs.types import (
    FormattedSubmission,
    ProofArtifact,
    ProofData,
)
from channel_toolkit.shared.constants import InstanceLayout, SubmissionConstants
from channel_toolkit.shared.exceptions import (
    MalformedProofError,
    TruncatedInstanceError,
)
from channel_toolkit.shared.logging import get_logger

_logger = get_logger(__name__)


def format_proof_for_contract(
    proof: Mapping[str, Sequence[Any]], instance: Mapping[str, Sequence[Any]]
) -> ProofData:
    """
    Convert proof.json / instance.json contents to a ProofData tuple.

    Public inputs are a_pub_user, a_pub_block and a_pub_function in that
    order; smax is fixed at 256.
    """
    public_inputs: List[Any] = [
        *instance.get("a_pub_user", []),
        *instance.get("a_pub_block", []),
        *instance.get("a_pub_function", []),
    ]
    try:
        return ProofData.from_values(
            proof.get("proof_entries_part1", []),
            proof.get("proof_entries_part2", []),
            public_inputs,
            SubmissionConstants.SMAX,
        )
    except ValueError as e:
        raise MalformedProofError(f"Invalid proof entry: {e}") from e


def extract_final_state_root(proof_data: ProofData) -> str:
    """Resulting merkle root (public inputs 0 and 1) as bytes32 hex."""
    low_slot, high_slot = InstanceLayout.RESULTING_ROOT
    if len(proof_data.public_inputs) <= high_slot:
        raise TruncatedInstanceError(
            len(proof_data.public_inputs), high_slot + 1
        )
    return combine_hex(
        proof_data.public_inputs[low_slot], proof_data.public_inputs[high_slot]
    )


def compute_message_hash(channel_id: Any, final_state_root: str) -> str:
    """keccak256(abi.encodePacked(uint256 channelId, bytes32 root))."""
    channel_int = parse_field_value(channel_id)
    root_bytes = bytes.fromhex(to_bytes32_hex(final_state_root)[2:])
    packed = encode_packed(["uint256", "bytes32"], [channel_int, root_bytes])
    return "0x" + keccak(packed).hex()


def format_artifacts_for_submission(
    artifacts: Sequence[ProofArtifact], channel_id: Any
) -> FormattedSubmission:
    """
    Build the submission payload from already parsed proof artifacts.

    Raises:
        ValueError: If no proofs, or more than 5 proofs, are given
    """
    if not artifacts:
        raise ValueError("No proof files provided")
    if len(artifacts) > SubmissionConstants.MAX_PROOFS:
        raise ValueError(
            f"Maximum of {SubmissionConstants.MAX_PROOFS} proofs allowed"
        )

    proof_data = tuple(
        format_proof_for_contract(a.proof, a.instance) for a in artifacts
    )
    final_state_root = extract_final_state_root(proof_data[-1])
    message_hash = compute_message_hash(channel_id, final_state_root)

    _logger.info(
        f"Formatted {len(proof_data)} proofs for channel {channel_id}, "
        f"final root {final_state_root}"
    )
    return FormattedSubmission(
        proof_data=proof_data,
        final_state_root=final_state_root,
        message_hash=message_hash,
    )


def format_verified_proofs_for_submission(
    archives: Iterable[ArchiveSource], channel_id: Any
) -> FormattedSubmission:
    """Parse proof ZIPs (oldest first) and format them for submission."""
    sources = list(archives)
    if not sources:
        raise ValueError("No proof files provided")
    if len(sources) > SubmissionConstants.MAX_PROOFS:
        raise ValueError(
            f"Maximum of {SubmissionConstants.MAX_PROOFS} proofs allowed"
        )
    return format_artifacts_for_submission(
        [parse_proof_archive(s) for s in sources], channel_id
    )
