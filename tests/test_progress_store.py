"""
Tests for the progress store.
"""

import pytest

from chatsync.db.connection import create_db_engine
from chatsync.db.progress import ProgressStore
from chatsync.exceptions import (
    CursorRegressionError,
    DuplicateKeyError,
    RecordNotFoundError,
    StoreError,
)


class TestSyncRecords:
    """Tests for sync record operations."""

    def test_get_unknown_returns_none(self, store):
        """Test that an unknown conversation has no record."""
        assert store.get("missing") is None

    def test_create_and_get(self, store):
        """Test creating a record and reading it back."""
        store.create("c1", 42)

        record = store.get("c1")
        assert record.conversation_id == "c1"
        assert record.remote_ticket_id == 42
        assert record.last_synced_message_id == ""
        assert record.created_at is not None

    def test_create_with_initial_cursor(self, store):
        """Test creating a record with a cursor already set."""
        store.create("c1", 42, "00000003")

        assert store.get("c1").last_synced_message_id == "00000003"

    def test_create_duplicate_raises(self, store):
        """Test that a second record for the same conversation is refused."""
        store.create("c1", 42)

        with pytest.raises(DuplicateKeyError) as exc_info:
            store.create("c1", 43)

        assert exc_info.value.conversation_id == "c1"
        assert store.get("c1").remote_ticket_id == 42

    def test_advance_moves_cursor_forward(self, store):
        """Test that advancing stores the new cursor."""
        store.create("c1", 42)

        store.advance("c1", "00000001")
        store.advance("c1", "00000002")

        assert store.get("c1").last_synced_message_id == "00000002"

    def test_advance_to_same_value_is_noop(self, store):
        """Test that re-writing the current cursor succeeds."""
        store.create("c1", 42, "00000002")

        record = store.advance("c1", "00000002")

        assert record.last_synced_message_id == "00000002"

    def test_advance_backward_is_refused(self, store):
        """Test that the cursor never moves backward."""
        store.create("c1", 42, "00000005")

        with pytest.raises(CursorRegressionError) as exc_info:
            store.advance("c1", "00000004")

        assert exc_info.value.current == "00000005"
        assert exc_info.value.requested == "00000004"
        assert store.get("c1").last_synced_message_id == "00000005"

    def test_advance_unknown_raises(self, store):
        """Test that advancing a missing record fails."""
        with pytest.raises(RecordNotFoundError):
            store.advance("missing", "00000001")

    def test_progress_survives_reopening(self, tmp_path):
        """Test that committed progress is visible to a new store instance."""
        url = f"sqlite:///{tmp_path / 'state' / 'progress.db'}"
        first = ProgressStore(create_db_engine(url))
        first.initialize()
        first.create("c1", 7)
        first.advance("c1", "00000004")
        first.engine.dispose()

        second = ProgressStore(create_db_engine(url))
        second.initialize()

        record = second.get("c1")
        assert record.remote_ticket_id == 7
        assert record.last_synced_message_id == "00000004"

    def test_list_records(self, store):
        """Test listing records with a limit."""
        for i in range(3):
            store.create(f"c{i}", 100 + i)

        assert len(store.list_records()) == 3
        assert len(store.list_records(limit=2)) == 2

    def test_uninitialized_store_raises_store_error(self, db_engine):
        """Test that driver failures surface as StoreError."""
        uninitialized = ProgressStore(db_engine)

        with pytest.raises(StoreError):
            uninitialized.get("c1")


class TestAttachmentLedger:
    """Tests for the uploaded artifact ledger."""

    def test_record_and_lookup(self, store):
        """Test recording an attachment and finding it again."""
        assert not store.has_attachment("c1", "art-1")

        store.record_attachment("c1", "art-1", "python", "/tmp/a.py", 11)

        assert store.has_attachment("c1", "art-1")
        assert not store.has_attachment("c2", "art-1")
        attachments = store.attachments_for("c1")
        assert [a.remote_attachment_id for a in attachments] == [11]

    def test_duplicate_attachment_raises(self, store):
        """Test that the same artifact cannot be recorded twice."""
        store.record_attachment("c1", "art-1", "python", "/tmp/a.py", 11)

        with pytest.raises(DuplicateKeyError):
            store.record_attachment("c1", "art-1", "python", "/tmp/a.py", 12)
