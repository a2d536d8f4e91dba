"""
Participant balances recovered from a state snapshot.

storageEntries are in participant order: entry i belongs to participant i
of the channel.
"""

from typing import Any, Dict, List, Mapping, Sequence, Union

from channel_toolkit.codec.field import parse_hex_quantity
from channel_toolkit.ledger.models import (
    BalanceChange,
    ParticipantBalance,
    StateSnapshot,
    format_mpt_key,
)
from channel_toolkit.utils.formatters import format_signed_wei, format_wei

SnapshotLike = Union[StateSnapshot, Mapping[str, Any]]


def _as_snapshot(snapshot: SnapshotLike) -> StateSnapshot:
    if isinstance(snapshot, StateSnapshot):
        return snapshot
    return StateSnapshot.from_payload(dict(snapshot))


def extract_participant_balances(
    snapshot: SnapshotLike, participants: Sequence[str], decimals: int = 18
) -> List[ParticipantBalance]:
    """
    Map every storage entry to a participant address by index.

    Entries beyond the participant list (padding leaves) get an empty
    address.
    """
    state = _as_snapshot(snapshot)
    balances = []
    for index, entry in enumerate(state.storage_entries):
        balances.append(
            ParticipantBalance(
                index=index,
                l1_address=participants[index] if index < len(participants) else "",
                mpt_key=format_mpt_key(entry.key),
                balance_wei=entry.value,
                balance_formatted=format_wei(entry.value, decimals, places=decimals),
            )
        )
    return balances


def _balance_by_index(
    rows: Sequence[Union[ParticipantBalance, Mapping[str, Any]]],
) -> Dict[int, int]:
    result: Dict[int, int] = {}
    for row in rows:
        if isinstance(row, ParticipantBalance):
            result[row.index] = row.balance_wei
        else:
            index = row.get("participant_index", row.get("index"))
            result[int(index)] = parse_hex_quantity(
                row.get("balance", row.get("balance_wei"))
            )
    return result


def compare_balances(
    before: Sequence[Union[ParticipantBalance, Mapping[str, Any]]],
    after: Sequence[Union[ParticipantBalance, Mapping[str, Any]]],
    decimals: int = 18,
) -> List[BalanceChange]:
    """
    Per-participant change between two balance sets, in "after" order.

    A participant missing from "before" starts from zero.
    """
    before_map = _balance_by_index(before)
    changes = []
    for index, after_wei in _balance_by_index(after).items():
        before_wei = before_map.get(index, 0)
        changes.append(
            BalanceChange(
                participant_index=index,
                before_wei=before_wei,
                after_wei=after_wei,
                change_formatted=format_signed_wei(after_wei - before_wei, decimals),
            )
        )
    return changes
