"""
Ledger reconciler.

Derives one participant's signed transaction history from the sequence of
verified state snapshots of a channel:

1. Start from the participant's on-chain initial deposit.
2. Walk snapshots in ascending sequence order.
3. Find the participant's entry by MPT key. If it is absent, skip the
   snapshot without advancing the running balance.
4. Emit received/sent for every non-zero difference.
5. Return the items most recent first.

Reading is best effort: a snapshot that cannot be fetched or parsed is
logged and skipped, and the run reports a partial result. Nothing is
written anywhere, so overlapping runs are safe.
"""

import asyncio
from typing import (
    AsyncIterator,
    Iterable,
    List,
    Optional,
    Tuple,
    Union,
)

from channel_toolkit.ledger.models import (
    SnapshotRef,
    StateSnapshot,
    TransactionHistoryItem,
    TransactionType,
    format_mpt_key,
    now_ms,
)
from channel_toolkit.shared.constants import GlobalConstants
from channel_toolkit.shared.interfaces import SnapshotArchive
from channel_toolkit.shared.logging import get_logger, quiet
from channel_toolkit.shared.results import (
    ErrorSeverity,
    ProcessingError,
    ReconciliationSummary,
    Result,
)

_logger = get_logger(__name__)

History = List[TransactionHistoryItem]


def _sort_for_display(items: History) -> History:
    # Most recent first; ties keep the later sequence on top
    return sorted(
        items, key=lambda i: (i.timestamp, i.sequence_number), reverse=True
    )


def _fold(
    snapshots: Iterable[StateSnapshot],
    mpt_key: Union[int, str],
    initial_deposit: int,
    summary: Optional[ReconciliationSummary] = None,
    fallback_timestamp: Optional[int] = None,
) -> History:
    items: History = []
    previous_balance = initial_deposit

    for snapshot in sorted(snapshots, key=lambda s: s.sequence_number):
        current_balance = snapshot.balance_of(mpt_key)
        if current_balance is None:
            if summary is not None:
                summary.record_missing_entry(snapshot.sequence_number)
            _logger.debug(
                f"MPT key not found in snapshot {snapshot.sequence_number}"
            )
            continue

        if summary is not None:
            summary.snapshots_processed += 1

        diff = current_balance - previous_balance
        if diff != 0:
            timestamp = snapshot.verified_at
            if timestamp is None:
                timestamp = (
                    fallback_timestamp if fallback_timestamp is not None else now_ms()
                )
            items.append(
                TransactionHistoryItem(
                    type=TransactionType.RECEIVED if diff > 0 else TransactionType.SENT,
                    amount_wei=abs(diff),
                    sequence_number=snapshot.sequence_number,
                    timestamp=timestamp,
                )
            )

        previous_balance = current_balance

    if summary is not None:
        summary.items_emitted = len(items)
    return _sort_for_display(items)


def derive_history(
    snapshots: Iterable[StateSnapshot],
    mpt_key: Union[int, str],
    initial_deposit: int,
) -> History:
    """
    Pure history derivation over snapshots already in memory.

    Args:
        snapshots: Verified snapshots in any order
        mpt_key: The participant's storage key (int or hex, any case)
        initial_deposit: On-chain initial deposit in wei

    Returns:
        History items sorted by timestamp, most recent first
    """
    return _fold(snapshots, mpt_key, initial_deposit)


class LedgerReconciler:
    """Reads snapshots from an archive and derives participant histories."""

    def __init__(self, archive: SnapshotArchive):
        self.archive = archive

    async def _fetch(
        self,
        channel_id: str,
        ref: SnapshotRef,
        summary: ReconciliationSummary,
    ) -> Optional[StateSnapshot]:
        try:
            snapshot = await self.archive.fetch_snapshot(channel_id, ref)
        except Exception as e:
            _logger.warning(
                f"Failed to load snapshot {ref.sequence_number} ({ref.key}): {e}"
            )
            summary.record_failure(
                ref.sequence_number,
                ProcessingError(
                    source="ledger",
                    message=f"Failed to load snapshot {ref.sequence_number}: {e}",
                    severity=ErrorSeverity.ERROR,
                    context={
                        "channel_id": channel_id,
                        "proof_key": ref.key,
                        "sequence_number": ref.sequence_number,
                    },
                    exception=e,
                ),
            )
            return None

        # The listing is authoritative for ordering and verification time
        verified_at = snapshot.verified_at
        if verified_at is None:
            verified_at = ref.verified_at
        return StateSnapshot(
            sequence_number=ref.sequence_number,
            storage_entries=snapshot.storage_entries,
            contract_address=snapshot.contract_address,
            verified_at=verified_at,
            state_root=snapshot.state_root,
        )

    async def reconcile_with_summary(
        self,
        channel_id: str,
        mpt_key: Union[int, str],
        initial_deposit: int,
    ) -> Tuple[Result[History], ReconciliationSummary]:
        """
        Derive the history and report what was read, skipped and failed.

        Returns:
            Tuple of the Result (partial when any snapshot failed to load)
            and the run's ReconciliationSummary
        """
        key_hex = format_mpt_key(mpt_key)
        summary = ReconciliationSummary(channel_id=channel_id, mpt_key=key_hex)

        try:
            refs = await self.archive.list_verified(channel_id)
        except Exception as e:
            _logger.error(f"Failed to list verified proofs for {channel_id}: {e}")
            return (
                Result.fail_with_message(
                    source="ledger",
                    message=f"Failed to list verified proofs: {e}",
                    severity=ErrorSeverity.ERROR,
                    context={"channel_id": channel_id},
                    exception=e,
                ),
                summary,
            )

        refs = sorted(refs, key=lambda r: r.sequence_number)
        summary.snapshots_total = len(refs)

        snapshots: List[StateSnapshot] = []
        for ref in refs:
            snapshot = await self._fetch(channel_id, ref, summary)
            if snapshot is not None:
                snapshots.append(snapshot)

        items = _fold(snapshots, key_hex, initial_deposit, summary, now_ms())

        if summary.is_complete():
            result: Result[History] = Result.ok(items)
        else:
            result = Result.partial_success(items, summary.errors)

        if summary.snapshots_missing_entry:
            result.add_warning(
                source="ledger",
                message=(
                    f"Participant entry absent from {summary.snapshots_missing_entry} "
                    f"snapshot(s); running balance not advanced for them"
                ),
                context={"sequences": list(summary.missing_entry_sequences)},
            )

        _logger.info(
            f"Reconciled {channel_id}: {summary.snapshots_processed}/"
            f"{summary.snapshots_total} snapshots, {summary.items_emitted} items, "
            f"{summary.snapshots_missing_entry} without entry, "
            f"{summary.snapshots_failed} failed"
        )
        return result, summary

    async def reconcile(
        self,
        channel_id: str,
        mpt_key: Union[int, str],
        initial_deposit: int,
    ) -> Result[History]:
        result, _ = await self.reconcile_with_summary(
            channel_id, mpt_key, initial_deposit
        )
        return result

    async def poll(
        self,
        channel_id: str,
        mpt_key: Union[int, str],
        initial_deposit: int,
        interval: Optional[float] = None,
        iterations: Optional[int] = None,
    ) -> AsyncIterator[Result[History]]:
        """
        Re-run reconciliation on a fixed interval and yield each result.

        Runs after the first one are silent (warnings and errors only).
        iterations=None polls until the consumer stops iterating.
        """
        delay = GlobalConstants.DEFAULT_POLL_INTERVAL if interval is None else interval
        run = 0
        while iterations is None or run < iterations:
            with quiet(_logger, enabled=run > 0):
                result = await self.reconcile(channel_id, mpt_key, initial_deposit)
            yield result
            run += 1
            if iterations is None or run < iterations:
                await asyncio.sleep(delay)
