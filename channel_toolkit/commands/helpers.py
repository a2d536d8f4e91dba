"""Shared command helpers and utilities."""

import json
import sys
from typing import Any, Callable, List, Optional

from rich import print as rprint

from channel_toolkit.shared.exceptions import NonRetryableException
from channel_toolkit.shared.results import Result


def handle_command_error(
    error: Exception, show_usage_fn: Optional[Callable[[], None]] = None
) -> None:
    """
    Standard error handling for commands.

    Args:
        error: The exception that occurred
        show_usage_fn: Optional function to display usage instructions
    """
    if isinstance(error, (ValueError, NonRetryableException)):
        rprint(f"[red]Error:[/red] {str(error)}")
    else:
        rprint(f"[red]Unexpected error:[/red] {str(error)}")

    if show_usage_fn:
        show_usage_fn()

    sys.exit(1)


def print_result_messages(result: Result) -> None:
    """Print a Result's warnings and errors, one line each."""
    for error in result.errors:
        color = "yellow" if error.severity.value == "warning" else "red"
        rprint(f"[{color}]{error.severity.value}:[/{color}] {error.message}")


def load_entries_file(path: str) -> List[Any]:
    """
    Storage entries from a JSON file.

    Accepts a list of {"key", "value"} objects or a state_snapshot.json
    payload with a storageEntries list.
    """
    with open(path, "r") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("storageEntries", [])
    if not isinstance(data, list):
        raise ValueError(f"{path} does not contain a list of storage entries")
    return data
