"""Proof artifact analysis: merkle roots plus participant balances."""

from typing import Any, Mapping, Sequence, Union

from channel_toolkit.ledger.balances import extract_participant_balances
from channel_toolkit.ledger.models import ProofAnalysis, StateSnapshot
from channel_toolkit.proofs.decoder import extract_merkle_roots
from channel_toolkit.proofs.types import ProofArtifact
from channel_toolkit.shared.exceptions import ProofArtifactError


def analyze_proof(
    instance: Mapping[str, Any],
    snapshot: Union[StateSnapshot, Mapping[str, Any]],
    participants: Sequence[str],
    decimals: int = 18,
) -> ProofAnalysis:
    """
    Recover the roots a proof commits to and who holds what after it.

    Raises:
        TruncatedInstanceError: If the instance lacks the root slots
    """
    roots = extract_merkle_roots(instance)
    if isinstance(snapshot, StateSnapshot):
        contract_address = snapshot.contract_address
    else:
        contract_address = snapshot.get("contractAddress", "") or ""

    return ProofAnalysis(
        initial_root=roots["initial"],
        resulting_root=roots["resulting"],
        contract_address=contract_address,
        balances=extract_participant_balances(snapshot, participants, decimals),
    )


def analyze_artifact(
    artifact: ProofArtifact, participants: Sequence[str], decimals: int = 18
) -> ProofAnalysis:
    if artifact.snapshot is None:
        raise ProofArtifactError("Required files not found in ZIP")
    return analyze_proof(artifact.instance, artifact.snapshot, participants, decimals)
