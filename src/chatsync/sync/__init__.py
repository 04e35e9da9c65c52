"""
Conversation synchronization.

The engine decides per conversation whether to create a ticket or append
unseen messages; formatting renders messages as notes; the artifact
publisher attaches extracted artifacts.
"""

from chatsync.sync.artifacts import ArtifactPublisher
from chatsync.sync.engine import (
    ConversationResult,
    PlannedAction,
    SyncEngine,
    SyncReport,
    SyncStatus,
    pending_messages,
    plan_sync,
)
from chatsync.sync.formatting import format_note, ticket_description, ticket_title

__all__ = [
    "ArtifactPublisher",
    "ConversationResult",
    "PlannedAction",
    "SyncEngine",
    "SyncReport",
    "SyncStatus",
    "format_note",
    "pending_messages",
    "plan_sync",
    "ticket_description",
    "ticket_title",
]
