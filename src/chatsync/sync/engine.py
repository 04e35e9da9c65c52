"""
Synchronization engine.

Reconciles exported conversations with the issue tracker: conversations
seen for the first time become new tickets, known conversations get only
their unseen messages appended as notes. The progress store's cursor is
advanced after every acknowledged note, so an interrupted or failed run
resumes where the last one stopped.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from chatsync.db.progress import ProgressStore
from chatsync.exceptions import ArtifactError, RemoteError
from chatsync.models.db import SyncRecord
from chatsync.models.export import Conversation, Message
from chatsync.remote.base import TicketClient
from chatsync.sync.artifacts import ArtifactPublisher
from chatsync.sync.formatting import format_note, ticket_description, ticket_title

# Cursor of a record whose ticket exists but holds no notes yet
EMPTY_CURSOR = ""


class SyncStatus(str, enum.Enum):
    """Outcome of synchronizing one conversation."""

    CREATED = "created"  # New ticket created
    UPDATED = "updated"  # Notes appended to an existing ticket
    SKIPPED = "skipped"  # Empty conversation or nothing new
    FAILED = "failed"  # Remote error; cursor reflects acknowledged notes


@dataclass
class ConversationResult:
    """What happened to one conversation during a run."""

    conversation_id: str
    status: SyncStatus = SyncStatus.SKIPPED
    ticket_id: Optional[int] = None
    cursor: str = EMPTY_CURSOR
    notes_sent: int = 0
    attachments_uploaded: int = 0
    error: Optional[str] = None


@dataclass
class SyncReport:
    """Per-run counts, sufficient to log a summary or pick an exit status."""

    created: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    notes_sent: int = 0
    attachments_uploaded: int = 0
    results: list[ConversationResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failed == 0

    @property
    def failures(self) -> list[ConversationResult]:
        return [r for r in self.results if r.status is SyncStatus.FAILED]

    def add(self, result: ConversationResult) -> None:
        self.results.append(result)
        self.notes_sent += result.notes_sent
        self.attachments_uploaded += result.attachments_uploaded
        if result.status is SyncStatus.CREATED:
            self.created += 1
        elif result.status is SyncStatus.UPDATED:
            self.updated += 1
        elif result.status is SyncStatus.FAILED:
            self.failed += 1
        else:
            self.skipped += 1


@dataclass(frozen=True)
class PlannedAction:
    """Dry-run prediction for one conversation."""

    conversation_id: str
    title: str
    action: str  # 'create', 'update' or 'skip'
    pending_messages: int
    ticket_id: Optional[int] = None


def pending_messages(messages: Iterable[Message], cursor: str) -> list[Message]:
    """
    Messages not yet written past ``cursor``, in ascending id order.

    Only ids strictly greater than the cursor qualify. When several messages
    share an id only the first is kept: a missed message is preferable to a
    duplicated note.
    """
    seen: set[str] = set()
    delta = []
    for message in sorted(messages, key=lambda m: m.id):
        if message.id <= cursor or message.id in seen:
            continue
        seen.add(message.id)
        delta.append(message)
    return delta


def plan_sync(
    store: ProgressStore, conversations: Sequence[Conversation]
) -> list[PlannedAction]:
    """
    Predict what a synchronization would do, without remote calls or writes.
    """
    actions = []
    for conversation in conversations:
        record = store.get(conversation.id)
        title = ticket_title(conversation)

        if record is None:
            pending = len(pending_messages(conversation.messages, EMPTY_CURSOR))
            action = "create" if conversation.messages else "skip"
            actions.append(PlannedAction(conversation.id, title, action, pending))
            continue

        pending = len(
            pending_messages(conversation.messages, record.last_synced_message_id)
        )
        actions.append(
            PlannedAction(
                conversation.id,
                title,
                "update" if pending else "skip",
                pending,
                ticket_id=record.remote_ticket_id,
            )
        )
    return actions


class SyncEngine:
    """Drives progress store and ticket client for a batch of conversations."""

    def __init__(
        self,
        store: ProgressStore,
        client: TicketClient,
        artifact_publisher: Optional[ArtifactPublisher] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.store = store
        self.client = client
        self.artifact_publisher = artifact_publisher
        self.logger = logger or logging.getLogger(__name__)

    def synchronize(self, conversations: Sequence[Conversation]) -> SyncReport:
        """
        Synchronize a batch of conversations, one at a time.

        Remote and artifact file failures are recorded per conversation and
        do not stop the batch.

        Raises:
            StoreError: If the progress store fails; aborts the run
        """
        self.logger.info(
            f"Starting synchronization of {len(conversations)} conversations"
        )
        report = SyncReport()

        for conversation in conversations:
            report.add(self.sync_conversation(conversation))

        self.logger.info(
            f"Synchronization finished: {report.created} created, "
            f"{report.updated} updated, {report.skipped} skipped, "
            f"{report.failed} failed ({report.notes_sent} notes sent)"
        )
        return report

    def sync_conversation(self, conversation: Conversation) -> ConversationResult:
        """Synchronize a single conversation."""
        self.logger.debug(f"Processing conversation {conversation.id}")
        result = ConversationResult(conversation_id=conversation.id)

        record = self.store.get(conversation.id)
        try:
            if record is None:
                self._create(conversation, result)
            else:
                self._update(conversation, record, result)
        except (RemoteError, ArtifactError) as e:
            result.status = SyncStatus.FAILED
            result.error = f"{type(e).__name__}: {e}"
            self.logger.error(
                f"Failed to sync conversation {conversation.id} "
                f"(ticket #{result.ticket_id}, cursor {result.cursor!r}, "
                f"{result.notes_sent} notes sent this run): {result.error}"
            )
        return result

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _create(self, conversation: Conversation, result: ConversationResult) -> None:
        if not conversation.messages:
            self.logger.warning(f"Skipping empty conversation {conversation.id}")
            return

        title = ticket_title(conversation)
        ticket_id = self.client.create_ticket(title, ticket_description(title))
        result.ticket_id = ticket_id

        # Recorded before any note so a failed run never creates a second ticket
        self.store.create(conversation.id, ticket_id, EMPTY_CURSOR)
        result.status = SyncStatus.CREATED

        self._write_messages(
            conversation.id,
            ticket_id,
            pending_messages(conversation.messages, EMPTY_CURSOR),
            result,
        )

    def _update(
        self,
        conversation: Conversation,
        record: SyncRecord,
        result: ConversationResult,
    ) -> None:
        result.ticket_id = record.remote_ticket_id
        result.cursor = record.last_synced_message_id

        delta = pending_messages(conversation.messages, record.last_synced_message_id)
        if not delta:
            self.logger.debug(f"No new messages in conversation {conversation.id}")
            return

        result.status = SyncStatus.UPDATED
        self._write_messages(conversation.id, record.remote_ticket_id, delta, result)

    def _write_messages(
        self,
        conversation_id: str,
        ticket_id: int,
        messages: Sequence[Message],
        result: ConversationResult,
    ) -> None:
        for message in messages:
            if self.artifact_publisher is not None:
                result.attachments_uploaded += self.artifact_publisher.publish(
                    conversation_id, ticket_id, message
                )

            self.client.add_note(ticket_id, format_note(message), message.role)
            result.notes_sent += 1

            self.store.advance(conversation_id, message.id)
            result.cursor = message.id

        self.logger.info(
            f"Wrote {len(messages)} notes to ticket #{ticket_id} "
            f"for conversation {conversation_id}"
        )
