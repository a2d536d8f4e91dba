"""
Groth16 proof encoder.

Turns the prover's native output into the verifier's call arguments:

    pA = [ax_hi, ax_lo, ay_hi, ay_lo]
    pB = [x1_hi, x1_lo, x0_hi, x0_lo, y1_hi, y1_lo, y0_hi, y0_lo]
    pC = [cx_hi, cx_lo, cy_hi, cy_lo]
    merkleRoot = publicSignals[0] as bytes32

The function is pure: the same RawProof always yields the same
EncodedProof, so a failed submission can be retried without re-proving.
"""

from typing import Any, List, Sequence, Tuple

from channel_toolkit.codec.field import (
    is_in_field,
    parse_field_value,
    split,
    swap_g2,
    to_bytes32_hex,
)
from channel_toolkit.proofs.types import EncodedProof, RawProof
from channel_toolkit.shared.constants import FieldConstants
from channel_toolkit.shared.exceptions import MalformedProofError


def _coordinate(value: Any, name: str) -> int:
    try:
        number = parse_field_value(value)
    except (TypeError, ValueError) as e:
        raise MalformedProofError(f"{name} is not a field element: {e}") from e
    if not is_in_field(number, FieldConstants.BN254_BASE_MODULUS):
        raise MalformedProofError(
            f"{name} is outside the BN254 base field: {number}"
        )
    return number


def _g1(point: Sequence[Any], name: str) -> Tuple[int, int]:
    if point is None or len(point) < 2:
        raise MalformedProofError(f"{name} must have x and y coordinates")
    return _coordinate(point[0], f"{name}.x"), _coordinate(point[1], f"{name}.y")


def _flatten(coordinates: Sequence[int]) -> List[int]:
    words: List[int] = []
    for coordinate in coordinates:
        high, low = split(coordinate)
        words.extend((high, low))
    return words


def encode_merkle_root(public_signals: Sequence[Any]) -> str:
    """publicSignals[0] as a left-padded bytes32 hex string."""
    if not public_signals:
        raise MalformedProofError("publicSignals is empty")
    try:
        root = parse_field_value(public_signals[0])
    except (TypeError, ValueError) as e:
        raise MalformedProofError(f"publicSignals[0] is not a field element: {e}") from e
    if not is_in_field(root, FieldConstants.BN254_SCALAR_MODULUS):
        raise MalformedProofError(
            f"publicSignals[0] is outside the BN254 scalar field: {root}"
        )
    return to_bytes32_hex(root)


def encode_proof(raw: RawProof) -> EncodedProof:
    """
    Encode a raw Groth16 proof for the on-chain verifier.

    Raises:
        MalformedProofError: If a coordinate is not a valid field element,
            a point is incomplete, or publicSignals is empty
    """
    merkle_root = encode_merkle_root(raw.public_signals)

    a_x, a_y = _g1(raw.pi_a, "pi_a")
    c_x, c_y = _g1(raw.pi_c, "pi_c")

    try:
        (x1, x0), (y1, y0) = swap_g2(raw.pi_b)
    except (TypeError, ValueError) as e:
        raise MalformedProofError(f"pi_b is not a G2 point: {e}") from e

    b_words = (
        _coordinate(x1, "pi_b.x1"),
        _coordinate(x0, "pi_b.x0"),
        _coordinate(y1, "pi_b.y1"),
        _coordinate(y0, "pi_b.y0"),
    )

    return EncodedProof(
        pA=tuple(_flatten((a_x, a_y))),
        pB=tuple(_flatten(b_words)),
        pC=tuple(_flatten((c_x, c_y))),
        merkle_root=merkle_root,
    )
