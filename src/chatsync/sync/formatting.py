"""
Note and ticket text formatting.

Renders messages into Redmine note bodies: the message text, any extracted
code items as labeled fenced blocks, then the original timestamp.
"""

from typing import Sequence

from chatsync.models.export import CodeItem, CodeItemKind, Conversation, Message

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

ARTIFACT_MARKER = "🔧"
BLOCK_MARKER = "🔹"


def ticket_title(conversation: Conversation) -> str:
    """Trimmed conversation title, or a synthesized one when blank."""
    title = (conversation.title or "").strip()
    return title or f"Conversation {conversation.id}"


def ticket_description(title: str) -> str:
    """Fixed boilerplate description for a new ticket."""
    return (
        f"{title}\n\n"
        "This issue tracks a conversation between a human user and an AI assistant.\n"
        "Each message will be added as a note from the respective user."
    )


def format_code_items(code_items: Sequence[CodeItem]) -> str:
    """
    Render code items as markdown, in the given order.

    Each item gets a header line with its title, language and kind, a size
    line, and a fenced block; items are separated by horizontal rules.
    """
    sections = []
    for item in code_items:
        marker = ARTIFACT_MARKER if item.kind is CodeItemKind.ARTIFACT else BLOCK_MARKER
        line_count = len(item.content.splitlines())
        sections.append(
            f"{marker} **{item.title}** ({item.language} - {item.kind.value})\n"
            f"Lines: {line_count} | Characters: {len(item.content)}\n\n"
            f"```{item.language}\n{item.content}\n```\n"
        )
    return "**📄 Code Snippets Found:**\n\n" + "\n---\n\n".join(sections)


def format_note(message: Message) -> str:
    """
    Render one message as a note body.

    Deterministic: the same message always produces the same text.
    """
    content = message.content or ""
    if message.code_items:
        content += "\n\n" + format_code_items(message.code_items)
    content += f"\n\n*Posted at: {message.created_at.strftime(TIMESTAMP_FORMAT)}*"
    return content
