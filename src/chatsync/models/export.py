"""
Exported conversation data models.

These are immutable Python dataclasses representing conversations read
from a chat export, before they are synchronized to the issue tracker.
Produced fresh on every run by the export reader.
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


class Role(str, enum.Enum):
    """Author of a message."""

    HUMAN = "human"
    ASSISTANT = "assistant"


class CodeItemKind(str, enum.Enum):
    """Origin of an extracted code item."""

    MARKDOWN_BLOCK = "markdown_block"  # Fenced ``` block in message text
    ARTIFACT = "artifact"  # Claude artifact (tag or tool call)


@dataclass(frozen=True)
class CodeItem:
    """Code or document fragment extracted from a message."""

    kind: CodeItemKind
    language: str
    content: str
    title: str
    identity: str


@dataclass(frozen=True)
class Message:
    """Single message in a conversation.

    ``id`` is the ordering key: within one conversation every later message
    has an id that compares greater than all earlier ones.
    """

    id: str
    role: Role
    content: str
    created_at: datetime
    code_items: tuple[CodeItem, ...] = ()
    source_id: Optional[str] = None  # Raw message uuid from the export
    files: tuple[str, ...] = ()


@dataclass(frozen=True)
class Conversation:
    """One exported chat session."""

    id: str
    title: str
    messages: tuple[Message, ...] = field(default_factory=tuple)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
