"""
Unit tests for the ledger reconciler.
"""

from unittest.mock import AsyncMock, patch

import pytest

from conftest import OTHER_MPT_KEY, SAMPLE_MPT_KEY, FakeArchive, make_snapshot

from channel_toolkit.ledger.models import SnapshotRef, TransactionType
from channel_toolkit.ledger.reconciler import LedgerReconciler, derive_history
from channel_toolkit.shared.results import ErrorSeverity
from channel_toolkit.shared.services.archive_service import parse_proof_listing

CHANNEL = "0x" + "0" * 62 + "2a"


def _example_snapshots():
    """Deposit 1000 -> 1200 -> 1200 -> 900, verified one second apart."""
    return [
        make_snapshot(1, {SAMPLE_MPT_KEY: 1200}, verified_at=1_000),
        make_snapshot(2, {SAMPLE_MPT_KEY: 1200}, verified_at=2_000),
        make_snapshot(3, {SAMPLE_MPT_KEY: 900}, verified_at=3_000),
    ]


class TestDeriveHistory:
    """Tests for the pure derive_history()."""

    def test_end_to_end_example(self):
        """Emits received 200 at seq 1 and sent 300 at seq 3, newest first."""
        items = derive_history(_example_snapshots(), SAMPLE_MPT_KEY, 1000)
        assert [(i.type, i.amount_wei, i.sequence_number) for i in items] == [
            (TransactionType.SENT, 300, 3),
            (TransactionType.RECEIVED, 200, 1),
        ]

    def test_zero_diff_suppressed(self):
        """A snapshot matching the previous balance emits nothing."""
        items = derive_history(
            [make_snapshot(1, {SAMPLE_MPT_KEY: 1000}, verified_at=1)],
            SAMPLE_MPT_KEY,
            1000,
        )
        assert items == []

    def test_idempotent(self):
        """Two runs over the same snapshots give identical output."""
        snapshots = _example_snapshots()
        assert derive_history(snapshots, SAMPLE_MPT_KEY, 1000) == derive_history(
            snapshots, SAMPLE_MPT_KEY, 1000
        )

    def test_sorts_by_sequence_before_diffing(self):
        """Out-of-order snapshots are walked in sequence order."""
        shuffled = list(reversed(_example_snapshots()))
        items = derive_history(shuffled, SAMPLE_MPT_KEY, 1000)
        assert [i.sequence_number for i in items] == [3, 1]
        assert items[1].amount_wei == 200

    def test_key_match_is_case_insensitive(self):
        """Upper-case hex keys match the stored entry."""
        upper_key = "0x" + SAMPLE_MPT_KEY[2:].upper()
        items = derive_history(_example_snapshots(), upper_key, 1000)
        assert len(items) == 2

    def test_missing_entry_does_not_advance_balance(self):
        """A snapshot without the key is skipped; the diff spans the gap."""
        snapshots = [
            make_snapshot(1, {SAMPLE_MPT_KEY: 1200}, verified_at=1),
            make_snapshot(2, {OTHER_MPT_KEY: 5}, verified_at=2),
            make_snapshot(3, {SAMPLE_MPT_KEY: 1500}, verified_at=3),
        ]
        items = derive_history(snapshots, SAMPLE_MPT_KEY, 1000)
        assert [(i.sequence_number, i.amount_wei) for i in items] == [(3, 300), (1, 200)]

    def test_zero_value_entry(self):
        """An emptied balance ("0x") is a sent item for the whole amount."""
        items = derive_history(
            [make_snapshot(1, {SAMPLE_MPT_KEY: 0}, verified_at=1)], SAMPLE_MPT_KEY, 1000
        )
        assert items[0].type == TransactionType.SENT
        assert items[0].amount_wei == 1000

    def test_display_order_by_timestamp(self):
        """Output is ordered by timestamp, not by sequence."""
        snapshots = [
            make_snapshot(1, {SAMPLE_MPT_KEY: 1100}, verified_at=5_000),
            make_snapshot(2, {SAMPLE_MPT_KEY: 1300}, verified_at=4_000),
        ]
        items = derive_history(snapshots, SAMPLE_MPT_KEY, 1000)
        assert [i.sequence_number for i in items] == [1, 2]

    def test_signed_amount(self):
        """signed_amount is negative for sent items."""
        items = derive_history(_example_snapshots(), SAMPLE_MPT_KEY, 1000)
        assert [i.signed_amount for i in items] == [-300, 200]


class TestLedgerReconciler:
    """Tests for LedgerReconciler against an archive."""

    @pytest.mark.asyncio
    async def test_reconcile_example(self):
        """The archive path yields the same history as the pure function."""
        reconciler = LedgerReconciler(FakeArchive(_example_snapshots()))
        result = await reconciler.reconcile(CHANNEL, SAMPLE_MPT_KEY, 1000)
        assert result.success
        assert not result.is_partial
        assert [i.sequence_number for i in result.data] == [3, 1]

    @pytest.mark.asyncio
    async def test_reconcile_is_idempotent(self):
        """Re-running against the same archive gives identical data."""
        reconciler = LedgerReconciler(FakeArchive(_example_snapshots()))
        first = await reconciler.reconcile(CHANNEL, SAMPLE_MPT_KEY, 1000)
        second = await reconciler.reconcile(CHANNEL, SAMPLE_MPT_KEY, 1000)
        assert first.data == second.data

    @pytest.mark.asyncio
    async def test_failed_fetch_is_partial(self):
        """An unreadable snapshot is skipped and reported as an error."""
        archive = FakeArchive(_example_snapshots(), failing=[3])
        result, summary = await LedgerReconciler(archive).reconcile_with_summary(
            CHANNEL, SAMPLE_MPT_KEY, 1000
        )
        assert result.success
        assert result.is_partial
        assert result.has_errors()
        assert [i.sequence_number for i in result.data] == [1]
        assert summary.failed_sequences == [3]
        assert summary.snapshots_failed == 1
        assert not summary.is_complete()

    @pytest.mark.asyncio
    async def test_missing_entry_is_warning_not_failure(self):
        """An absent entry is a warning; the run stays complete."""
        snapshots = [
            make_snapshot(1, {SAMPLE_MPT_KEY: 1200}, verified_at=1),
            make_snapshot(2, {OTHER_MPT_KEY: 1}, verified_at=2),
        ]
        result, summary = await LedgerReconciler(
            FakeArchive(snapshots)
        ).reconcile_with_summary(CHANNEL, SAMPLE_MPT_KEY, 1000)
        assert result.success
        assert not result.is_partial
        assert result.has_warnings()
        assert not result.has_errors()
        assert summary.missing_entry_sequences == [2]
        assert summary.snapshots_processed == 1
        assert summary.is_complete()

    @pytest.mark.asyncio
    async def test_listing_failure(self):
        """A failed listing fails the whole run."""
        archive = FakeArchive([])
        archive.list_verified = AsyncMock(side_effect=ConnectionError("down"))
        result = await LedgerReconciler(archive).reconcile(CHANNEL, SAMPLE_MPT_KEY, 1000)
        assert not result.success
        assert result.errors[0].severity == ErrorSeverity.ERROR

    @pytest.mark.asyncio
    async def test_empty_archive(self):
        """No verified proofs means an empty history."""
        result = await LedgerReconciler(FakeArchive([])).reconcile(
            CHANNEL, SAMPLE_MPT_KEY, 1000
        )
        assert result.success
        assert result.data == []

    @pytest.mark.asyncio
    async def test_listing_timestamp_used_when_snapshot_has_none(self):
        """verified_at from the listing fills in missing snapshot times."""
        archive = FakeArchive([make_snapshot(1, {SAMPLE_MPT_KEY: 1500})])

        async def list_verified(channel_id):
            return [SnapshotRef(key="proof-1", sequence_number=1, verified_at=42)]

        archive.list_verified = list_verified
        result = await LedgerReconciler(archive).reconcile(CHANNEL, SAMPLE_MPT_KEY, 1000)
        assert result.data[0].timestamp == 42

    @pytest.mark.asyncio
    async def test_malformed_listing_record_is_skipped(self):
        """A listing record with a non-numeric sequence does not sink the run."""
        archive = FakeArchive([make_snapshot(1, {SAMPLE_MPT_KEY: 1200}, verified_at=1)])

        async def list_verified(channel_id):
            return parse_proof_listing(
                {
                    "proof-1": {"sequenceNumber": 1},
                    "proof-x": {"sequenceNumber": "pending"},
                }
            )

        archive.list_verified = list_verified
        result = await LedgerReconciler(archive).reconcile(CHANNEL, SAMPLE_MPT_KEY, 1000)
        assert result.success
        assert [(i.type, i.amount_wei, i.sequence_number) for i in result.data] == [
            (TransactionType.RECEIVED, 200, 1)
        ]
        assert archive.fetch_calls == [1]

    @pytest.mark.asyncio
    async def test_poll_yields_each_run(self):
        """poll() yields one result per iteration and sleeps between runs."""
        reconciler = LedgerReconciler(FakeArchive(_example_snapshots()))
        sleep = AsyncMock()
        with patch("channel_toolkit.ledger.reconciler.asyncio.sleep", sleep):
            results = [
                r
                async for r in reconciler.poll(
                    CHANNEL, SAMPLE_MPT_KEY, 1000, interval=5.0, iterations=3
                )
            ]
        assert len(results) == 3
        assert all(r.data == results[0].data for r in results)
        assert sleep.await_count == 2
        sleep.assert_awaited_with(5.0)
