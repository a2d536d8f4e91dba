from eth_utils import is_address, to_checksum_address

from channel_toolkit.channels.channel_id import is_valid_bytes32
from channel_toolkit.shared.constants import CircuitConstants


def validate_eth_address(address: str, param_name: str = "address") -> str:
    """Validate and return checksum ethereum address"""
    if not address or not isinstance(address, str):
        raise ValueError(
            f"Invalid {param_name}: address must be a non-empty string"
        )
    if not is_address(address):
        raise ValueError(
            f"Invalid {param_name}: {address} is not a valid Ethereum address"
        )
    return to_checksum_address(address)


def validate_channel_id(channel_id: str) -> str:
    """Validate a bytes32 channel id and return it lower-cased"""
    if not is_valid_bytes32(channel_id):
        raise ValueError(
            f"Invalid channel id: {channel_id}. Expected 0x followed by 64 hex characters"
        )
    return channel_id.strip().lower()


def validate_tree_size(tree_size: int) -> int:
    """Validate an explicit circuit tree size"""
    if tree_size not in CircuitConstants.SUPPORTED_TREE_SIZES:
        raise ValueError(
            f"Invalid tree size: {tree_size}. "
            f"Must be one of {list(CircuitConstants.SUPPORTED_TREE_SIZES)}"
        )
    return tree_size
