"""
Channel identifiers and sizing.

A channel id is keccak256(abi.encodePacked(address leader, string salt)),
so anyone holding the leader address and the salt can recover it.
"""

import re

from eth_abi.packed import encode_packed
from eth_utils import keccak, to_checksum_address

from channel_toolkit.shared.constants import CircuitConstants

_BYTES32_RE = re.compile(r"^0[xX][0-9a-fA-F]{64}$")


def is_valid_bytes32(value: str) -> bool:
    """True for 0x followed by exactly 64 hex characters."""
    if not value or not isinstance(value, str):
        return False
    return bool(_BYTES32_RE.match(value.strip()))


def compute_channel_id(leader_address: str, salt: str) -> str:
    """
    Compute a channel id from the leader's address and a salt.

    Raises:
        ValueError: If leader_address is not a valid address
    """
    leader = to_checksum_address(leader_address)
    packed = encode_packed(["address", "string"], [leader, salt])
    return "0x" + keccak(packed).hex()


def recover_channel_id(leader_address: str, salt: str) -> str:
    """Recompute the id of an existing channel from its creation inputs."""
    return compute_channel_id(leader_address, salt)


def calculate_max_participants(
    total_pre_allocated: int,
    selected_token_count: int,
    leaves: int = CircuitConstants.DEFAULT_LEAVES,
) -> int:
    """
    Maximum participants for a channel: (L - P) // S.

    Args:
        total_pre_allocated: Pre-allocated leaves summed over selected tokens (P)
        selected_token_count: Storage slots per participant (S), at least 1
        leaves: Merkle tree leaves (L)
    """
    token_count = max(1, selected_token_count)
    return (leaves - total_pre_allocated) // token_count
