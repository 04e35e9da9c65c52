"""
SyncRecord repository.
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from chatsync.db.repositories.base import BaseRepository
from chatsync.models.db import SyncRecord


class SyncRecordRepository(BaseRepository[SyncRecord]):
    """Repository for SyncRecord model."""

    def __init__(self, session: Session):
        super().__init__(SyncRecord, session)

    def get_by_conversation_id(self, conversation_id: str) -> Optional[SyncRecord]:
        """
        Get the sync record for a conversation.

        Args:
            conversation_id: Source-assigned conversation id

        Returns:
            SyncRecord instance if found, None otherwise
        """
        return (
            self.session.query(SyncRecord)
            .filter(SyncRecord.conversation_id == conversation_id)
            .first()
        )

    def list_recent(self, limit: Optional[int] = None) -> List[SyncRecord]:
        """
        List sync records, most recently updated first.

        Args:
            limit: Maximum number of records to return

        Returns:
            List of sync records
        """
        query = self.session.query(SyncRecord).order_by(
            SyncRecord.updated_at.desc(), SyncRecord.conversation_id
        )
        if limit:
            query = query.limit(limit)
        return query.all()

    def set_cursor(self, record: SyncRecord, last_synced_message_id: str) -> SyncRecord:
        """Overwrite the cursor column of ``record`` and flush."""
        record.last_synced_message_id = last_synced_message_id
        self.session.flush()
        self.session.refresh(record)
        return record
