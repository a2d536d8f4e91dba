"""
Field codec between prover output and verifier call arguments.

The Groth16 verifier takes every field element as a (high, low) pair of
uint256 words, and the circuit exposes every 256-bit semantic value in its
public inputs as two 16-byte chunks. This module converts between the two
representations and also applies the G2 coordinate swap the verifier's
pairing precompile input needs.

All values are Python ints; hex text is accepted on the way in and
produced on the way out, never floats.
"""

from typing import Sequence, Tuple, Union

from eth_utils import remove_0x_prefix

from channel_toolkit.shared.constants import FieldConstants

FieldValue = Union[int, str]


def parse_field_value(value: FieldValue) -> int:
    """
    Parse a field element as produced by snarkjs or stored in JSON artifacts.

    Accepts ints, decimal strings ("123") and 0x-prefixed hex strings.
    Booleans and negative numbers are rejected.

    Raises:
        ValueError: If the value is not a non-negative integer representation
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid field element: {value!r}")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("Invalid field element: empty string")
        if text.lower().startswith("0x"):
            parsed = int(text, 16)
        else:
            parsed = int(text, 10)
    else:
        raise ValueError(f"Invalid field element type: {type(value).__name__}")

    if parsed < 0:
        raise ValueError(f"Invalid field element: {value!r} is negative")
    return parsed


def parse_hex_quantity(value: Union[int, str, None]) -> int:
    """
    Parse a storage value that may be an empty hex quantity.

    Snapshot archives store zero balances as "0x" or "", both read as 0.
    """
    if value is None:
        return 0
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    text = str(value).strip()
    if text in ("", "0x", "0X"):
        return 0
    return parse_field_value(text)


def split(value: FieldValue) -> Tuple[int, int]:
    """
    Split a field element into the (high, low) pair the verifier expects.

    The value is rendered as 96 hex characters; the last 64 form `low` and
    the first 32 (zero padded to 64) form `high`. Any value below 2^256,
    which includes every BN254 element, yields high == 0.

    Returns:
        Tuple[int, int]: (high, low)

    Raises:
        ValueError: If the value is negative or needs more than 96 hex chars
    """
    number = parse_field_value(value)
    hex_value = format(number, "x").zfill(FieldConstants.SPLIT_HEX_WIDTH)
    if len(hex_value) > FieldConstants.SPLIT_HEX_WIDTH:
        raise ValueError(f"Value does not fit in 384 bits: {number}")

    low_hex = hex_value[-FieldConstants.SPLIT_LOW_WIDTH :]
    high_hex = hex_value[: FieldConstants.SPLIT_HIGH_WIDTH]
    return int(high_hex, 16), int(low_hex, 16)


def _chunk_to_hex(chunk: FieldValue) -> str:
    # Instance chunks are hex text, with or without the 0x prefix
    if isinstance(chunk, bool):
        raise ValueError(f"Invalid chunk: {chunk!r}")
    if isinstance(chunk, int):
        if chunk < 0:
            raise ValueError(f"Invalid chunk: {chunk} is negative")
        hex_value = format(chunk, "x")
    elif isinstance(chunk, str):
        hex_value = remove_0x_prefix(chunk.strip()) or "0"
        try:
            int(hex_value, 16)
        except ValueError:
            raise ValueError(f"Invalid hex chunk: {chunk!r}") from None
    else:
        raise ValueError(f"Invalid chunk type: {type(chunk).__name__}")
    return hex_value.lstrip("0") or "0"


def combine(low: FieldValue, high: FieldValue) -> int:
    """
    Combine two 16-byte chunks into one 256-bit value (upper ‖ lower).

    Each chunk is zero padded to 32 hex characters independently, then the
    concatenation is parsed as a single big-endian integer. The low word of
    split() may span 256 bits when its high word is empty, so
    combine(*reversed(split(v))) == v for every v < 2^256.

    Raises:
        ValueError: If a chunk is wider than this layout allows
    """
    width = FieldConstants.CHUNK_HEX_WIDTH
    low_hex = _chunk_to_hex(low)
    high_hex = _chunk_to_hex(high)
    if len(high_hex) > width:
        raise ValueError(f"High chunk wider than 128 bits: {high!r}")
    low_limit = width if high_hex != "0" else FieldConstants.SPLIT_LOW_WIDTH
    if len(low_hex) > low_limit:
        raise ValueError(f"Low chunk too wide for its high chunk: {low!r}")
    return int(high_hex.zfill(width) + low_hex.zfill(width), 16)


def combine_hex(low: FieldValue, high: FieldValue) -> str:
    """combine() rendered as 0x-prefixed 32-byte hex."""
    return "0x" + format(combine(low, high), "064x")


def to_128bit_chunks(value: FieldValue) -> Tuple[int, int]:
    """
    Pack a 256-bit value into the (low, high) 16-byte chunks of a_pub_user.

    Raises:
        ValueError: If the value does not fit in 256 bits
    """
    number = parse_field_value(value)
    if number > FieldConstants.MAX_UINT256:
        raise ValueError(f"Value does not fit in 256 bits: {number}")
    return number & FieldConstants.MASK_128, number >> 128


def to_bytes32_hex(value: FieldValue) -> str:
    """Render a value as a left-padded 0x-prefixed 32-byte hex string."""
    number = parse_field_value(value)
    if number > FieldConstants.MAX_UINT256:
        raise ValueError(f"Value does not fit in 32 bytes: {number}")
    return "0x" + format(number, "064x")


def swap_g2(
    pi_b: Sequence[Sequence[FieldValue]],
) -> Tuple[Tuple[FieldValue, FieldValue], Tuple[FieldValue, FieldValue]]:
    """
    Reorder a G2 point's Fp2 components for the verifier.

    The prover emits [[x0, x1], [y0, y1]]; the verifier reads
    [[x1, x0], [y1, y0]]. Applying the swap twice restores the input.
    Extra rows (snarkjs' projective ["1", "0"]) are dropped.
    """
    if len(pi_b) < 2 or len(pi_b[0]) < 2 or len(pi_b[1]) < 2:
        raise ValueError("G2 point must have two 2-element coordinates")
    x, y = pi_b[0], pi_b[1]
    return (x[1], x[0]), (y[1], y[0])


def is_in_field(value: int, modulus: int) -> bool:
    return 0 <= value < modulus
