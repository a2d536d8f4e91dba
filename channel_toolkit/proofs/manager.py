from typing import Any, Callable, Iterable, Optional

from channel_toolkit.proofs.circuit_input import (
    EntryLike,
    build_circuit_input,
    get_memory_requirement,
)
from channel_toolkit.proofs.decoder import decode_instance
from channel_toolkit.proofs.encoder import encode_merkle_root, encode_proof
from channel_toolkit.proofs.types import (
    AdvisoryKind,
    DecodedInstance,
    ProofBundle,
)
from channel_toolkit.shared.constants import CircuitConstants
from channel_toolkit.shared.exceptions import (
    MalformedProofError,
    NonRetryableException,
    UnsupportedTreeSizeError,
)
from channel_toolkit.shared.interfaces import Prover
from channel_toolkit.shared.logging import get_logger
from channel_toolkit.shared.results import (
    ErrorSeverity,
    ProcessingError,
    Result,
)

_logger = get_logger(__name__)

ProgressCallback = Callable[[str], None]


class ChannelProofs:
    """Proof generation pipeline: circuit input -> prover -> verifier args"""

    def __init__(self, prover: Optional[Prover] = None):
        if prover is None:
            from channel_toolkit.proofs.prover import SnarkjsProver

            prover = SnarkjsProver()
        self.prover = prover

    @staticmethod
    def _report(on_progress: Optional[ProgressCallback], message: str) -> None:
        _logger.info(message)
        if on_progress:
            on_progress(message)

    def generate_proof(
        self,
        entries: Iterable[EntryLike],
        tree_size: Optional[int] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Result[ProofBundle]:
        """
        Build the circuit input, prove it and encode the proof.

        The prover is called exactly once. A proving failure is returned to
        the caller, who re-runs the whole pipeline; a successful bundle can
        be re-submitted any number of times without proving again.

        Args:
            entries: Storage entries in participant order
            tree_size: Circuit size; derived from the entry count if omitted
            on_progress: Optional callback receiving status messages

        Returns:
            Result[ProofBundle]: Success with the bundle (advisories become
            warnings), or failure with the error
        """
        context = {"tree_size": tree_size}

        try:
            circuit_input = build_circuit_input(entries, tree_size)
        except (UnsupportedTreeSizeError, ValueError) as e:
            return Result.fail(
                ProcessingError(
                    source="circuit_input",
                    message=f"Invalid circuit input: {e}",
                    severity=ErrorSeverity.CRITICAL,
                    context=context,
                    exception=e,
                )
            )

        context = {
            "tree_size": circuit_input.tree_size,
            "entries": circuit_input.real_entries,
        }

        if circuit_input.is_perfect_match:
            self._report(
                on_progress,
                f"Using {circuit_input.tree_size}-leaf circuit (perfect match)",
            )
        for advisory in circuit_input.advisories:
            if advisory.kind == AdvisoryKind.LARGE_CIRCUIT:
                self._report(
                    on_progress,
                    f"Large circuit: {get_memory_requirement(circuit_input.tree_size)} "
                    f"required, this will take "
                    f"{CircuitConstants.LARGE_CIRCUIT_DURATION}...",
                )
            else:
                self._report(on_progress, advisory.message)

        self._report(on_progress, "Generating proof...")
        try:
            raw_proof = self.prover.prove(circuit_input)
        except Exception as e:
            return Result.fail(
                ProcessingError(
                    source="prover",
                    message=f"Error generating proof: {str(e)}",
                    severity=ErrorSeverity.ERROR,
                    context=context,
                    exception=e,
                )
            )

        self._report(on_progress, "Formatting proof for Solidity...")
        try:
            encoded = encode_proof(raw_proof)
        except MalformedProofError as e:
            return Result.fail(
                ProcessingError(
                    source="encoder",
                    message=f"Malformed proof from prover: {e}",
                    severity=ErrorSeverity.CRITICAL,
                    context=context,
                    exception=e,
                )
            )

        bundle = ProofBundle(
            circuit_input=circuit_input,
            raw_proof=raw_proof,
            encoded=encoded,
            public_signals=tuple(str(s) for s in raw_proof.public_signals),
        )
        result = Result.ok(bundle)
        for advisory in circuit_input.advisories:
            result.add_warning(
                source="circuit_input",
                message=advisory.message,
                context={"kind": advisory.kind.value, **advisory.context},
            )

        self._report(on_progress, "Proof generated successfully!")
        return result

    def decode_instance(self, instance: Any) -> Result[DecodedInstance]:
        """
        Decode an instance's a_pub_user vector.

        Returns:
            Result[DecodedInstance]: Success with decoded values, or failure
            for truncated or unreadable instances
        """
        try:
            return Result.ok(decode_instance(instance))
        except (NonRetryableException, ValueError) as e:
            return Result.fail(
                ProcessingError(
                    source="decoder",
                    message=f"Error decoding instance: {str(e)}",
                    severity=ErrorSeverity.ERROR,
                    exception=e,
                )
            )

    @staticmethod
    def verify_bundle_root(bundle: ProofBundle) -> bool:
        """True when the encoded merkle root matches publicSignals[0]."""
        try:
            return encode_merkle_root(bundle.public_signals) == bundle.encoded.merkle_root
        except MalformedProofError:
            return False
