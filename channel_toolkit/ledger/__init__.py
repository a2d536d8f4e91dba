from channel_toolkit.ledger.balances import (
    compare_balances,
    extract_participant_balances,
)
from channel_toolkit.ledger.models import (
    SnapshotRef,
    StateSnapshot,
    TransactionHistoryItem,
    TransactionType,
)
from channel_toolkit.ledger.reconciler import LedgerReconciler, derive_history

__all__ = [
    "LedgerReconciler",
    "derive_history",
    "extract_participant_balances",
    "compare_balances",
    "SnapshotRef",
    "StateSnapshot",
    "TransactionHistoryItem",
    "TransactionType",
]
