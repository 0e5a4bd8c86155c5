"""Tests for outbox tracker and outbox entry model."""

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest

from blog_indexer.config import OutboxSettings
from blog_indexer.errors import StorageError
from blog_indexer.models import IndexingOutboxEntry, IndexingStatus
from blog_indexer.services.outbox import OutboxTracker

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


class TestOutboxEntry:
    """Tests for IndexingOutboxEntry state transitions."""

    def test_defaults(self):
        """Test a new entry is pending with one attempt."""
        entry = IndexingOutboxEntry(post_id=1)
        assert entry.status == IndexingStatus.PENDING
        assert entry.attempts == 1
        assert entry.next_retry_at is None
        assert entry.last_error is None

    def test_mark_failed_sets_backoff(self):
        """Test failure records message and retry time."""
        entry = IndexingOutboxEntry(post_id=1)
        entry.mark_failed("boom", timedelta(minutes=10), attempts=2, now=NOW)

        assert entry.status == IndexingStatus.FAILED
        assert entry.attempts == 2
        assert entry.next_retry_at == NOW + timedelta(minutes=10)
        assert entry.last_error == "boom"

    def test_mark_success_clears_failure(self):
        """Test success clears retry time and error."""
        entry = IndexingOutboxEntry(post_id=1)
        entry.mark_failed("boom", timedelta(minutes=10), now=NOW)
        entry.mark_success(attempts=2)

        assert entry.status == IndexingStatus.SUCCESS
        assert entry.attempts == 2
        assert entry.next_retry_at is None
        assert entry.last_error is None

    def test_chunk_count_set_on_success(self):
        """Test success records the new chunk count, even when smaller."""
        entry = IndexingOutboxEntry(post_id=1)
        entry.mark_success(chunk_count=3)
        entry.mark_success(attempts=1, chunk_count=1)

        assert entry.chunk_count == 1

    def test_chunk_count_kept_at_max_on_failure(self):
        """Test failure never lowers the recorded chunk count."""
        entry = IndexingOutboxEntry(post_id=1)
        entry.mark_success(chunk_count=3)

        entry.mark_failed("boom", timedelta(minutes=10), now=NOW, chunk_count=1)
        assert entry.chunk_count == 3

        entry.mark_failed("boom", timedelta(minutes=10), now=NOW, chunk_count=5)
        assert entry.chunk_count == 5

        entry.mark_failed("boom", timedelta(minutes=10), now=NOW)
        assert entry.chunk_count == 5

    def test_is_due(self):
        """Test due only when failed and retry time has passed."""
        entry = IndexingOutboxEntry(post_id=1)
        assert not entry.is_due(NOW)

        entry.mark_failed("boom", timedelta(minutes=10), now=NOW)
        assert not entry.is_due(NOW + timedelta(minutes=9))
        assert entry.is_due(NOW + timedelta(minutes=10))

    def test_attempts_must_be_positive(self):
        """Test attempts below one are rejected."""
        with pytest.raises(ValueError):
            IndexingOutboxEntry(post_id=1, attempts=0)

    def test_json_roundtrip(self):
        """Test json-safe dump restores datetimes and status."""
        entry = IndexingOutboxEntry(post_id=1)
        entry.mark_failed("boom", timedelta(minutes=10), now=NOW)

        data = entry.model_dump_json_safe()
        assert data["status"] == "failed"
        assert isinstance(data["next_retry_at"], str)

        restored = IndexingOutboxEntry.from_json_safe(data)
        assert restored == entry


class TestOutboxTracker:
    """Tests for OutboxTracker."""

    def test_mark_pending_creates_entry(self, outbox, storage):
        """Test pending is recorded before an attempt."""
        outbox.mark_pending(42)

        entry = storage.get_queue_entry(42)
        assert entry.status == IndexingStatus.PENDING
        assert entry.attempts == 1

    def test_mark_success(self, outbox, storage):
        """Test success after pending clears retry fields."""
        outbox.mark_pending(42)
        outbox.mark_success(42)

        entry = storage.get_queue_entry(42)
        assert entry.status == IndexingStatus.SUCCESS
        assert entry.next_retry_at is None
        assert entry.last_error is None

    def test_mark_failed_ten_minute_backoff(self, outbox, storage):
        """Test failure schedules retry ten minutes later."""
        outbox.mark_pending(42)
        outbox.mark_failed(42, "quota exceeded", now=NOW)

        entry = storage.get_queue_entry(42)
        assert entry.status == IndexingStatus.FAILED
        assert entry.last_error == "quota exceeded"
        assert entry.next_retry_at == NOW + timedelta(seconds=600)

    def test_mark_pending_overwrites_failed(self, outbox, storage):
        """Test a new attempt resets the row to pending, keeping one row per post."""
        outbox.mark_failed(42, "boom", now=NOW)
        outbox.mark_pending(42, attempts=2)

        entries = storage.list_queue_entries()
        assert len(entries) == 1
        assert entries[0].status == IndexingStatus.PENDING
        assert entries[0].attempts == 2

    def test_indexed_chunk_count(self, outbox):
        """Test the recorded chunk count survives a new pending attempt."""
        assert outbox.indexed_chunk_count(42) == 0

        outbox.mark_success(42, chunk_count=4)
        outbox.mark_pending(42, attempts=1)

        assert outbox.indexed_chunk_count(42) == 4

    def test_indexed_chunk_count_read_failure(self):
        """Test an unreadable row reports no indexed chunks."""
        storage = MagicMock()
        storage.get_queue_entry.side_effect = StorageError("corrupt")

        assert OutboxTracker(storage).indexed_chunk_count(1) == 0

    def test_due_entries(self, outbox):
        """Test only failed entries past their retry time are due, oldest first."""
        outbox.mark_failed(1, "a", now=NOW)
        outbox.mark_failed(2, "b", now=NOW - timedelta(minutes=5))
        outbox.mark_failed(3, "c", now=NOW + timedelta(hours=1))
        outbox.mark_success(4)

        due = outbox.due_entries(NOW + timedelta(minutes=10))

        assert [e.post_id for e in due] == [2, 1]

    def test_due_entries_excludes_exhausted(self, storage):
        """Test entries at max attempts are not retried."""
        tracker = OutboxTracker(storage, max_attempts=3)
        tracker.mark_failed(1, "a", attempts=3, now=NOW)
        tracker.mark_failed(2, "b", attempts=2, now=NOW)

        due = tracker.due_entries(NOW + timedelta(hours=1))

        assert [e.post_id for e in due] == [2]

    def test_due_entries_batch_size(self, storage):
        """Test due entries are limited by batch size."""
        tracker = OutboxTracker(storage, batch_size=2)
        for post_id in range(5):
            tracker.mark_failed(post_id, "x", now=NOW + timedelta(seconds=post_id))

        due = tracker.due_entries(NOW + timedelta(hours=1))

        assert [e.post_id for e in due] == [0, 1]

    def test_writes_are_best_effort(self):
        """Test storage failures are swallowed and return None."""
        storage = MagicMock()
        storage.get_queue_entry.return_value = None
        storage.upsert_queue_entry.side_effect = StorageError("disk full")
        tracker = OutboxTracker(storage)

        assert tracker.mark_pending(1) is None
        assert tracker.mark_success(1) is None
        assert tracker.mark_failed(1, "boom") is None

    def test_read_failure_starts_fresh_entry(self):
        """Test an unreadable current row does not block the write."""
        storage = MagicMock()
        storage.get_queue_entry.side_effect = StorageError("corrupt")
        tracker = OutboxTracker(storage)

        entry = tracker.mark_failed(1, "boom", now=NOW)

        assert entry.status == IndexingStatus.FAILED
        storage.upsert_queue_entry.assert_called_once_with(entry)

    def test_due_entries_storage_failure(self):
        """Test polling failures yield no entries."""
        storage = MagicMock()
        storage.list_queue_entries.side_effect = StorageError("corrupt")

        assert OutboxTracker(storage).due_entries(NOW) == []

    def test_from_settings(self, storage):
        """Test tracker takes backoff and limits from settings."""
        settings = OutboxSettings(
            OUTBOX_BACKOFF_SECONDS=30,
            OUTBOX_MAX_ATTEMPTS=2,
            OUTBOX_BATCH_SIZE=7,
        )

        tracker = OutboxTracker.from_settings(storage, settings)

        assert tracker.backoff == timedelta(seconds=30)
        assert tracker.max_attempts == 2
        assert tracker.batch_size == 7
