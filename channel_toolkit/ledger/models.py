"""
Data models for the channel ledger.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from channel_toolkit.codec.field import parse_hex_quantity, to_bytes32_hex
from channel_toolkit.proofs.types import StorageEntry

TimestampLike = Union[int, float, str, None]


def now_ms() -> int:
    return int(time.time() * 1000)


def parse_timestamp_ms(value: TimestampLike) -> Optional[int]:
    """
    Normalize a verification time to Unix milliseconds.

    Numbers are taken as milliseconds already; strings are parsed as
    ISO-8601 (a trailing "Z" is accepted, naive times are UTC). Returns
    None for anything unusable.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return int(parsed.timestamp() * 1000)
    return None


class TransactionType(Enum):
    RECEIVED = "received"
    SENT = "sent"


@dataclass(frozen=True)
class SnapshotRef:
    """
    Archive listing entry for one verified proof.

    key is the archive's proof id; verified_at is Unix ms (None when the
    archive recorded no usable time).
    """

    key: str
    sequence_number: int
    verified_at: Optional[int] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any], key: Optional[str] = None) -> "SnapshotRef":
        verified_at = parse_timestamp_ms(record.get("verifiedAt"))
        if verified_at is None:
            verified_at = parse_timestamp_ms(record.get("timestamp"))
        return cls(
            key=str(key if key is not None else record.get("key", "")),
            sequence_number=int(record.get("sequenceNumber") or 0),
            verified_at=verified_at,
        )


@dataclass(frozen=True)
class StateSnapshot:
    """Immutable committed channel state at one verified proof."""

    sequence_number: int
    storage_entries: Tuple[StorageEntry, ...]
    contract_address: str = ""
    verified_at: Optional[int] = None
    state_root: Optional[str] = None

    @classmethod
    def from_payload(
        cls,
        payload: Dict[str, Any],
        sequence_number: int = 0,
        verified_at: TimestampLike = None,
    ) -> "StateSnapshot":
        """Build from state_snapshot.json contents."""
        entries = tuple(
            StorageEntry.from_dict(e) for e in payload.get("storageEntries") or []
        )
        return cls(
            sequence_number=sequence_number,
            storage_entries=entries,
            contract_address=payload.get("contractAddress", "") or "",
            verified_at=parse_timestamp_ms(verified_at),
            state_root=payload.get("stateRoot"),
        )

    def balance_of(self, mpt_key: Union[int, str]) -> Optional[int]:
        """
        Value of the entry whose key equals mpt_key, or None if absent.

        Keys compare numerically, which makes hex matching case-insensitive.
        """
        key = parse_hex_quantity(mpt_key)
        for entry in self.storage_entries:
            if entry.key == key:
                return entry.value
        return None


@dataclass(frozen=True)
class TransactionHistoryItem:
    """One signed balance change; amount_wei is always positive."""

    type: TransactionType
    amount_wei: int
    sequence_number: int
    timestamp: int  # Unix ms

    @property
    def signed_amount(self) -> int:
        return self.amount_wei if self.type == TransactionType.RECEIVED else -self.amount_wei

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "amount_wei": str(self.amount_wei),
            "sequence_number": self.sequence_number,
            "timestamp": self.timestamp,
        }


@dataclass
class ParticipantBalance:
    """A storage entry mapped to its participant by leaf index."""

    index: int
    l1_address: str
    mpt_key: str
    balance_wei: int
    balance_formatted: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "l1_address": self.l1_address,
            "mpt_key": self.mpt_key,
            "balance": hex(self.balance_wei),
            "balance_formatted": self.balance_formatted,
        }


@dataclass
class BalanceChange:
    participant_index: int
    before_wei: int
    after_wei: int
    change_formatted: str

    @property
    def change_wei(self) -> int:
        return self.after_wei - self.before_wei

    def to_dict(self) -> Dict[str, Any]:
        change = self.change_wei
        return {
            "participant_index": self.participant_index,
            "before": hex(self.before_wei),
            "after": hex(self.after_wei),
            "change": ("-0x" + format(-change, "x")) if change < 0 else hex(change),
            "change_formatted": self.change_formatted,
        }


@dataclass
class ProofAnalysis:
    """Merkle roots and participant balances recovered from one proof."""

    initial_root: str
    resulting_root: str
    contract_address: str
    balances: list = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "merkle_roots": {
                "initial": self.initial_root,
                "resulting": self.resulting_root,
            },
            "contract_address": self.contract_address,
            "balances": [b.to_dict() for b in self.balances],
        }


def format_mpt_key(value: Union[int, str]) -> str:
    """MPT key as 0x + 64 lowercase hex characters."""
    return to_bytes32_hex(parse_hex_quantity(value))
