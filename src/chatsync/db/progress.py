"""
Progress store for conversation synchronization.

Maps each conversation id to the ticket it was synchronized into and the
last message id known to be written there (the cursor). Every operation
runs in its own transaction and is committed before returning, so progress
survives process restarts between scheduled runs.
"""

import logging
from contextlib import contextmanager
from typing import Generator, List, Optional

from sqlalchemy import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from chatsync.db.connection import create_session_factory, init_db, transaction
from chatsync.db.repositories import AttachmentRecordRepository, SyncRecordRepository
from chatsync.exceptions import (
    CursorRegressionError,
    DuplicateKeyError,
    RecordNotFoundError,
    StoreError,
)
from chatsync.models.db import AttachmentRecord, SyncRecord


class ProgressStore:
    """Durable cursor storage backed by SQLAlchemy."""

    def __init__(self, engine: Engine, logger: Optional[logging.Logger] = None):
        self.engine = engine
        self.logger = logger or logging.getLogger(__name__)
        self._session_factory = create_session_factory(engine)

    @contextmanager
    def _transaction(self, operation: str) -> Generator[Session, None, None]:
        """Run one store operation, translating driver errors into StoreError."""
        try:
            with transaction(self._session_factory) as session:
                yield session
        except (StoreError, IntegrityError):
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Progress store {operation} failed: {e}")
            raise StoreError(f"Progress store {operation} failed: {e}") from e

    def initialize(self) -> None:
        """Create the schema if needed. Safe to call on every run."""
        try:
            init_db(self.engine)
        except SQLAlchemyError as e:
            raise StoreError(f"Could not initialize progress store: {e}") from e
        self.logger.debug(f"Progress store initialized at {self.engine.url}")

    # -------------------------------------------------------------------------
    # Sync records
    # -------------------------------------------------------------------------

    def get(self, conversation_id: str) -> Optional[SyncRecord]:
        """
        Look up the sync record of a conversation.

        Args:
            conversation_id: Source-assigned conversation id

        Returns:
            SyncRecord if the conversation was synchronized before, else None
        """
        with self._transaction("get") as session:
            return SyncRecordRepository(session).get_by_conversation_id(
                conversation_id
            )

    def create(
        self,
        conversation_id: str,
        remote_ticket_id: int,
        last_synced_message_id: str = "",
    ) -> SyncRecord:
        """
        Create the sync record of a newly synchronized conversation.

        Args:
            conversation_id: Source-assigned conversation id
            remote_ticket_id: Ticket the conversation is written to
            last_synced_message_id: Initial cursor (empty when nothing is written yet)

        Returns:
            Created SyncRecord

        Raises:
            DuplicateKeyError: If a record for the conversation already exists
            StoreError: On any other storage failure
        """
        try:
            with self._transaction("create") as session:
                repo = SyncRecordRepository(session)
                if repo.get_by_conversation_id(conversation_id) is not None:
                    raise DuplicateKeyError(conversation_id)
                record = repo.create(
                    conversation_id=conversation_id,
                    remote_ticket_id=remote_ticket_id,
                    last_synced_message_id=last_synced_message_id,
                )
        except IntegrityError as e:
            raise DuplicateKeyError(conversation_id) from e

        self.logger.info(
            f"Created sync record for {conversation_id} (ticket #{remote_ticket_id})"
        )
        return record

    def advance(self, conversation_id: str, last_synced_message_id: str) -> SyncRecord:
        """
        Move the cursor of a conversation forward.

        Writing the current value again is a no-op.

        Raises:
            RecordNotFoundError: If the conversation has no sync record
            CursorRegressionError: If the new cursor sorts before the current one
        """
        with self._transaction("advance") as session:
            repo = SyncRecordRepository(session)
            record = repo.get_by_conversation_id(conversation_id)
            if record is None:
                raise RecordNotFoundError(conversation_id)

            current = record.last_synced_message_id or ""
            if last_synced_message_id < current:
                raise CursorRegressionError(
                    conversation_id, current, last_synced_message_id
                )
            if last_synced_message_id == current:
                return record

            repo.set_cursor(record, last_synced_message_id)

        self.logger.debug(
            f"Advanced cursor for {conversation_id} to {last_synced_message_id}"
        )
        return record

    def list_records(self, limit: Optional[int] = None) -> List[SyncRecord]:
        """List sync records, most recently updated first."""
        with self._transaction("list") as session:
            return SyncRecordRepository(session).list_recent(limit=limit)

    # -------------------------------------------------------------------------
    # Attachment ledger
    # -------------------------------------------------------------------------

    def has_attachment(self, conversation_id: str, artifact_identity: str) -> bool:
        """Check whether an artifact was already uploaded for a conversation."""
        with self._transaction("attachment lookup") as session:
            return (
                AttachmentRecordRepository(session).get_by_identity(
                    conversation_id, artifact_identity
                )
                is not None
            )

    def record_attachment(
        self,
        conversation_id: str,
        artifact_identity: str,
        artifact_type: str,
        local_path: str,
        remote_attachment_id: Optional[int],
    ) -> AttachmentRecord:
        """
        Record an uploaded artifact in the ledger.

        Raises:
            DuplicateKeyError: If the artifact is already recorded
        """
        try:
            with self._transaction("record attachment") as session:
                return AttachmentRecordRepository(session).create(
                    conversation_id=conversation_id,
                    artifact_identity=artifact_identity,
                    artifact_type=artifact_type,
                    local_path=local_path,
                    remote_attachment_id=remote_attachment_id,
                )
        except IntegrityError as e:
            raise DuplicateKeyError(conversation_id) from e

    def attachments_for(self, conversation_id: str) -> List[AttachmentRecord]:
        """List the uploaded artifacts of a conversation."""
        with self._transaction("attachment list") as session:
            return AttachmentRecordRepository(session).get_by_conversation(
                conversation_id
            )
