from channel_toolkit.utils.formatters import (
    console,
    format_address,
    format_timestamp,
    format_wei,
    generate_timestamped_filename,
    load_json,
    save_json_output,
)

__all__ = [
    "console",
    "format_address",
    "format_timestamp",
    "format_wei",
    "generate_timestamped_filename",
    "load_json",
    "save_json_output",
]
