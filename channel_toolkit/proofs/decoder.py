"""
Public-input decoder.

a_pub_user layout (low chunk first, each chunk 16 bytes):

    0, 1    resulting merkle root
    2 - 7   reserved
    8, 9    initial merkle root
    10, 11  EdDSA signature of the settling transaction
    12, 13  target contract address
    14, 15  function selector
"""

from typing import Any, Dict, Mapping, Sequence, Tuple, Union

from channel_toolkit.codec.field import combine, combine_hex, to_128bit_chunks
from channel_toolkit.proofs.types import DecodedInstance
from channel_toolkit.shared.constants import InstanceLayout
from channel_toolkit.shared.exceptions import TruncatedInstanceError

InstanceLike = Union[Sequence[Any], Mapping[str, Any]]


def _a_pub_user(instance: InstanceLike) -> Sequence[Any]:
    if isinstance(instance, Mapping):
        values = instance.get("a_pub_user")
        if values is None:
            raise TruncatedInstanceError(0, InstanceLayout.LENGTH)
        return values
    return instance


def _require_length(values: Sequence[Any], expected: int) -> None:
    if len(values) < expected:
        raise TruncatedInstanceError(len(values), expected)


def _pair(values: Sequence[Any], slots: Tuple[int, int]) -> int:
    low, high = slots
    return combine(values[low], values[high])


def decode_instance(instance: InstanceLike) -> DecodedInstance:
    """
    Recover the semantic values packed into a_pub_user.

    Args:
        instance: The a_pub_user sequence, or an instance.json mapping

    Raises:
        TruncatedInstanceError: If fewer than 16 public inputs are present
    """
    values = _a_pub_user(instance)
    _require_length(values, InstanceLayout.LENGTH)

    return DecodedInstance(
        resulting_root=_pair(values, InstanceLayout.RESULTING_ROOT),
        initial_root=_pair(values, InstanceLayout.INITIAL_ROOT),
        signature=_pair(values, InstanceLayout.SIGNATURE),
        target_contract=_pair(values, InstanceLayout.TARGET_CONTRACT),
        selector=_pair(values, InstanceLayout.SELECTOR),
    )


def extract_merkle_roots(instance: InstanceLike) -> Dict[str, str]:
    """
    Initial and resulting roots as 0x-prefixed hex.

    Only the root slots are read, so instances from circuits that expose
    the roots but not the full 16-slot layout still decode.
    """
    values = _a_pub_user(instance)
    _require_length(values, InstanceLayout.INITIAL_ROOT[1] + 1)

    resulting_low, resulting_high = InstanceLayout.RESULTING_ROOT
    initial_low, initial_high = InstanceLayout.INITIAL_ROOT
    return {
        "initial": combine_hex(values[initial_low], values[initial_high]),
        "resulting": combine_hex(values[resulting_low], values[resulting_high]),
    }


def encode_instance(
    resulting_root: int,
    initial_root: int = 0,
    signature: int = 0,
    target_contract: int = 0,
    selector: int = 0,
) -> list:
    """
    Pack semantic values into a 16-slot a_pub_user vector (hex chunks).

    Inverse of decode_instance; reserved slots are zero.
    """
    slots = ["0x0"] * InstanceLayout.LENGTH
    for value, (low_slot, high_slot) in (
        (resulting_root, InstanceLayout.RESULTING_ROOT),
        (initial_root, InstanceLayout.INITIAL_ROOT),
        (signature, InstanceLayout.SIGNATURE),
        (target_contract, InstanceLayout.TARGET_CONTRACT),
        (selector, InstanceLayout.SELECTOR),
    ):
        low, high = to_128bit_chunks(value)
        slots[low_slot] = hex(low)
        slots[high_slot] = hex(high)
    return slots
