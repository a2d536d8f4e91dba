"""Shared formatting and file utilities for commands."""

import json
from datetime import datetime, timezone
from decimal import ROUND_DOWN, Decimal
from pathlib import Path
from typing import Any, Dict, Iterable

from rich.console import Console
from rich.table import Table

# Shared console instance
console = Console()


def load_json(file_path: str) -> Any:
    """Load and parse a JSON file"""
    with open(file_path, "r") as file:
        return json.load(file)


def format_address(address: str, length: int = 10) -> str:
    """
    Format an Ethereum address (or bytes32) to show first and last characters.

    Args:
        address: Ethereum address
        length: Total visible characters (default: 10)

    Returns:
        Formatted address like "0x1234...5678"
    """
    if not address:
        return "N/A"
    if len(address) <= length:
        return address
    return f"{address[:6]}...{address[-4:]}"


def wei_to_decimal(amount_wei: int, decimals: int = 18) -> Decimal:
    """Exact token amount; never goes through float."""
    return Decimal(amount_wei).scaleb(-decimals)


def format_wei(amount_wei: int, decimals: int = 18, places: int = 2) -> str:
    """
    Format a wei amount with thousands separators, e.g. "3,200.00".

    The sign is kept; callers wanting a magnitude pass abs(amount_wei).
    Extra precision is truncated, not rounded up.
    """
    quantum = Decimal(1).scaleb(-places)
    amount = wei_to_decimal(amount_wei, decimals).quantize(
        quantum, rounding=ROUND_DOWN
    )
    return f"{amount:,.{places}f}"


def format_signed_wei(amount_wei: int, decimals: int = 18, places: int = 2) -> str:
    """Like format_wei, with an explicit "+" for non-negative amounts."""
    formatted = format_wei(amount_wei, decimals, places)
    return formatted if amount_wei < 0 else f"+{formatted}"


def format_timestamp(timestamp_ms: int, format_str: str = "%d/%m/%Y %H:%M") -> str:
    """
    Format a Unix millisecond timestamp (UTC) as a readable date string.

    Args:
        timestamp_ms: Unix timestamp in milliseconds
        format_str: strftime format string

    Returns:
        Formatted date string
    """
    dt = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    return dt.strftime(format_str)


def save_json_output(
    data: Any,
    filename: str,
    output_dir: str = "output",
    print_path: bool = True,
) -> str:
    """
    Save data to a JSON file with automatic directory creation.

    Args:
        data: Data to save
        filename: Output filename (can include subdirectories)
        output_dir: Base output directory (default: 'output')
        print_path: Whether to print the saved file path

    Returns:
        Full path to saved file
    """
    filepath = Path(output_dir) / filename
    filepath.parent.mkdir(parents=True, exist_ok=True)

    with open(filepath, "w") as f:
        json.dump(data, f, indent=2)

    if print_path:
        console.print(f"[cyan]Data saved to:[/cyan] {filepath}")

    return str(filepath)


def generate_timestamped_filename(prefix: str, extension: str = "json") -> str:
    """
    Generate a filename with timestamp.

    Returns:
        Filename like "prefix_20240315_123456.json"
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"{prefix}_{timestamp}.{extension}"


def create_history_table(
    items: Iterable[Any], decimals: int = 18, token_symbol: str = "TON"
) -> Table:
    """
    Rich table for a transaction history (TransactionHistoryItem objects).
    """
    table = Table(
        show_header=True,
        header_style="bold cyan",
        show_lines=False,
        pad_edge=False,
        box=None,
    )
    table.add_column("Seq", width=5, justify="right")
    table.add_column("Type", width=9)
    table.add_column("Amount", justify="right")
    table.add_column("Date", width=17)

    for item in items:
        received = item.type.value == "received"
        sign = "+" if received else "-"
        color = "green" if received else "red"
        table.add_row(
            str(item.sequence_number),
            f"[{color}]{item.type.value}[/{color}]",
            f"[{color}]{sign}{format_wei(item.amount_wei, decimals)} {token_symbol}[/{color}]",
            format_timestamp(item.timestamp),
        )
    return table


def create_balances_table(balances: Iterable[Any], token_symbol: str = "TON") -> Table:
    """Rich table for ParticipantBalance rows."""
    table = Table(
        show_header=True,
        header_style="bold cyan",
        show_lines=False,
        pad_edge=False,
        box=None,
    )
    table.add_column("#", width=4, justify="right")
    table.add_column("Participant", width=14)
    table.add_column("MPT Key", width=14)
    table.add_column("Balance", justify="right")

    for balance in balances:
        table.add_row(
            str(balance.index),
            format_address(balance.l1_address),
            format_address(balance.mpt_key),
            f"{balance.balance_formatted} {token_symbol}",
        )
    return table


def summary_rows(data: Dict[str, Any]) -> Table:
    """Two-column key/value table."""
    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for key, value in data.items():
        table.add_row(str(key), str(value))
    return table
