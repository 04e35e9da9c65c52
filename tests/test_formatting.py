"""
Tests for note and ticket formatting.
"""

from chatsync.models.export import CodeItem, CodeItemKind
from chatsync.sync.formatting import (
    format_code_items,
    format_note,
    ticket_description,
    ticket_title,
)
from conftest import make_conversation, make_message

ARTIFACT = CodeItem(
    kind=CodeItemKind.ARTIFACT,
    language="python",
    content="a = 1\nb = 2",
    title="Setup",
    identity="setup-1",
)
BLOCK = CodeItem(
    kind=CodeItemKind.MARKDOWN_BLOCK,
    language="bash",
    content="make test",
    title="Code block 1",
    identity="00000001-block-1",
)


class TestTicketText:
    """Tests for ticket title and description."""

    def test_title_is_trimmed(self):
        conversation = make_conversation("c1", 0, title="  Release prep \n")

        assert ticket_title(conversation) == "Release prep"

    def test_blank_title_is_synthesized(self):
        conversation = make_conversation("c1", 0, title="")

        assert ticket_title(conversation) == "Conversation c1"

    def test_description_starts_with_title(self):
        description = ticket_description("Release prep")

        assert description.startswith("Release prep\n\n")
        assert "AI assistant" in description


class TestFormatNote:
    """Tests for note bodies."""

    def test_plain_message(self):
        """Test a message without code."""
        note = format_note(make_message(1, content="Hello there"))

        assert note == "Hello there\n\n*Posted at: 2025-01-01 12:01:00*"

    def test_code_items_follow_content(self):
        """Test that code items are rendered after the message text."""
        message = make_message(1, content="See:", code_items=(ARTIFACT, BLOCK))

        note = format_note(message)

        assert note.startswith("See:\n\n**📄 Code Snippets Found:**")
        assert note.index("Setup") < note.index("Code block 1")
        assert "🔧 **Setup** (python - artifact)" in note
        assert "🔹 **Code block 1** (bash - markdown_block)" in note
        assert "```python\na = 1\nb = 2\n```" in note
        assert note.endswith("*Posted at: 2025-01-01 12:01:00*")

    def test_formatting_is_deterministic(self):
        """Test that the same message renders identically."""
        message = make_message(3, code_items=(BLOCK,))

        assert format_note(message) == format_note(message)


class TestFormatCodeItems:
    """Tests for code item rendering."""

    def test_size_line(self):
        """Test line and character counts."""
        rendered = format_code_items([ARTIFACT])

        assert "Lines: 2 | Characters: 11" in rendered

    def test_items_separated_by_rules(self):
        """Test that items are separated by horizontal rules."""
        rendered = format_code_items([ARTIFACT, BLOCK])

        assert rendered.count("\n---\n") == 1
