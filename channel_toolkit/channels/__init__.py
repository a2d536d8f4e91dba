from channel_toolkit.channels.channel_id import (
    calculate_max_participants,
    compute_channel_id,
    is_valid_bytes32,
    recover_channel_id,
)

__all__ = [
    "compute_channel_id",
    "recover_channel_id",
    "is_valid_bytes32",
    "calculate_max_participants",
]
