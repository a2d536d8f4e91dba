"""Circuit input builder"""

from typing import Any, Iterable, List, Optional, Sequence, Union

from channel_toolkit.proofs.types import (
    Advisory,
    AdvisoryKind,
    CircuitInput,
    StorageEntry,
)
from channel_toolkit.shared.constants import CircuitConstants, FieldConstants
from channel_toolkit.shared.exceptions import UnsupportedTreeSizeError
from channel_toolkit.shared.logging import get_logger

_logger = get_logger(__name__)

EntryLike = Union[StorageEntry, dict, Sequence[Any]]


def get_memory_requirement(tree_size: int) -> str:
    """Estimated prover memory for a tree size."""
    return CircuitConstants.MEMORY_REQUIREMENTS.get(
        tree_size, CircuitConstants.MEMORY_REQUIREMENTS[16]
    )


def get_download_size(tree_size: int) -> str:
    """Size of the proving key that has to be fetched for a tree size."""
    return CircuitConstants.DOWNLOAD_SIZES.get(
        tree_size, CircuitConstants.DOWNLOAD_SIZES[16]
    )


def get_circuit_name(tree_size: int) -> str:
    if tree_size not in CircuitConstants.CIRCUIT_NAMES:
        raise UnsupportedTreeSizeError(
            tree_size, CircuitConstants.SUPPORTED_TREE_SIZES
        )
    return CircuitConstants.CIRCUIT_NAMES[tree_size]


def is_large_circuit(tree_size: int) -> bool:
    return tree_size >= CircuitConstants.LARGE_CIRCUIT_THRESHOLD


def resolve_tree_size(
    entry_count: int, requested_size: Optional[int] = None
) -> int:
    """
    Pick the circuit size for a number of entries.

    An explicit size must be supported. Otherwise the smallest supported
    size that holds every entry wins, capped at the largest circuit.

    Raises:
        UnsupportedTreeSizeError: If requested_size is not supported
    """
    supported = CircuitConstants.SUPPORTED_TREE_SIZES
    if requested_size is not None:
        if requested_size not in supported:
            raise UnsupportedTreeSizeError(requested_size, supported)
        return requested_size

    for size in supported:
        if size >= entry_count:
            return size
    return CircuitConstants.MAX_TREE_SIZE


def _to_entry(entry: EntryLike) -> StorageEntry:
    if isinstance(entry, StorageEntry):
        return entry
    if isinstance(entry, dict):
        return StorageEntry.from_dict(entry)
    key, value = entry
    return StorageEntry.from_dict({"key": key, "value": value})


def _reduce(value: int, reduce_modulo: bool) -> int:
    # The bridge contract stores leaves modulo R_MOD
    return value % FieldConstants.R_MOD if reduce_modulo else value


def build_circuit_input(
    entries: Iterable[EntryLike],
    requested_size: Optional[int] = None,
    reduce_modulo: bool = True,
) -> CircuitInput:
    """
    Package storage entries into a fixed-size circuit input.

    Leaf order follows the input order; it is the participant index used to
    map entries back to addresses. Surplus entries are truncated, missing
    ones are filled with zero leaves, so keys and values always hold exactly
    tree_size elements.

    Args:
        entries: StorageEntry objects, {"key", "value"} dicts or (key, value) pairs
        requested_size: Circuit size to use; derived from the entries if omitted
        reduce_modulo: Reduce keys and values modulo R_MOD like the contract

    Returns:
        CircuitInput: Fixed-size input with advisories attached

    Raises:
        UnsupportedTreeSizeError: If requested_size is not 16, 32, 64 or 128
    """
    storage_entries: List[StorageEntry] = [_to_entry(e) for e in entries]
    entry_count = len(storage_entries)
    tree_size = resolve_tree_size(entry_count, requested_size)
    advisories: List[Advisory] = []

    truncated = max(0, entry_count - tree_size)
    padded = max(0, tree_size - entry_count)

    if entry_count == tree_size:
        _logger.info(
            f"Perfect match: using {tree_size}-leaf circuit for {entry_count} entries"
        )
    elif truncated:
        message = (
            f"Tree size mismatch: using {tree_size}-leaf circuit, "
            f"input truncated ({truncated} entries dropped)"
        )
        _logger.warning(message)
        advisories.append(
            Advisory(
                kind=AdvisoryKind.TREE_SIZE_TRUNCATED,
                message=message,
                context={
                    "tree_size": tree_size,
                    "entries": entry_count,
                    "dropped": truncated,
                },
            )
        )
    else:
        _logger.info(
            f"Using {tree_size}-leaf circuit for {entry_count} entries "
            f"({padded} zero leaves appended)"
        )

    if is_large_circuit(tree_size):
        memory = get_memory_requirement(tree_size)
        message = (
            f"Large circuit: {tree_size}-leaf proof generation requires "
            f"{memory} and may take {CircuitConstants.LARGE_CIRCUIT_DURATION}"
        )
        _logger.warning(message)
        advisories.append(
            Advisory(
                kind=AdvisoryKind.LARGE_CIRCUIT,
                message=message,
                context={
                    "tree_size": tree_size,
                    "memory": memory,
                    "estimated_duration": CircuitConstants.LARGE_CIRCUIT_DURATION,
                    "download": get_download_size(tree_size),
                },
            )
        )

    used = storage_entries[:tree_size]
    keys = [_reduce(e.key, reduce_modulo) for e in used] + [0] * padded
    values = [_reduce(e.value, reduce_modulo) for e in used] + [0] * padded

    return CircuitInput(
        keys=tuple(keys),
        values=tuple(values),
        tree_size=tree_size,
        real_entries=len(used),
        padded_entries=padded,
        truncated_entries=truncated,
        advisories=tuple(advisories),
    )
