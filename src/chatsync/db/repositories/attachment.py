"""
AttachmentRecord repository.
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from chatsync.db.repositories.base import BaseRepository
from chatsync.models.db import AttachmentRecord


class AttachmentRecordRepository(BaseRepository[AttachmentRecord]):
    """Repository for AttachmentRecord model."""

    def __init__(self, session: Session):
        super().__init__(AttachmentRecord, session)

    def get_by_identity(
        self, conversation_id: str, artifact_identity: str
    ) -> Optional[AttachmentRecord]:
        """
        Get the ledger entry for an artifact.

        Args:
            conversation_id: Conversation the artifact belongs to
            artifact_identity: Stable identity of the artifact content

        Returns:
            AttachmentRecord if the artifact was uploaded, None otherwise
        """
        return (
            self.session.query(AttachmentRecord)
            .filter(
                AttachmentRecord.conversation_id == conversation_id,
                AttachmentRecord.artifact_identity == artifact_identity,
            )
            .first()
        )

    def get_by_conversation(self, conversation_id: str) -> List[AttachmentRecord]:
        """Get all uploaded artifacts of a conversation, oldest first."""
        return (
            self.session.query(AttachmentRecord)
            .filter(AttachmentRecord.conversation_id == conversation_id)
            .order_by(AttachmentRecord.id)
            .all()
        )
