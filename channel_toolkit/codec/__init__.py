from channel_toolkit.codec.field import (
    combine,
    combine_hex,
    parse_field_value,
    parse_hex_quantity,
    split,
    swap_g2,
    to_128bit_chunks,
    to_bytes32_hex,
)

__all__ = [
    "split",
    "combine",
    "combine_hex",
    "swap_g2",
    "to_128bit_chunks",
    "to_bytes32_hex",
    "parse_field_value",
    "parse_hex_quantity",
]
