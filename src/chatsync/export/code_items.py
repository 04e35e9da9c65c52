"""
Code item extraction.

Pulls fenced markdown code blocks and Claude artifacts out of message
content so they can be rendered inline in notes (and optionally uploaded
as attachments). Items are returned in the order they appear.
"""

import re
from typing import Any, Iterable, Optional

from chatsync.models.export import CodeItem, CodeItemKind
from chatsync.utils.hashing import short_hash

FENCED_BLOCK_RE = re.compile(r"```([\w+#.-]*)[ \t]*\n(.*?)```", re.DOTALL)
ARTIFACT_TAG_RE = re.compile(r"<antArtifact\b([^>]*)>(.*?)</antArtifact>", re.DOTALL)
ATTRIBUTE_RE = re.compile(r'([\w-]+)="([^"]*)"')

# Artifact MIME types mapped to the fence language used when rendering
ARTIFACT_TYPE_LANGUAGES = {
    "application/vnd.ant.mermaid": "mermaid",
    "application/vnd.ant.react": "jsx",
    "text/html": "html",
    "text/markdown": "markdown",
    "image/svg+xml": "svg",
}

DEFAULT_LANGUAGE = "text"


def artifact_language(artifact_type: Optional[str], language: Optional[str]) -> str:
    """Pick the rendering language of an artifact."""
    if language:
        return language
    if artifact_type:
        return ARTIFACT_TYPE_LANGUAGES.get(artifact_type, DEFAULT_LANGUAGE)
    return DEFAULT_LANGUAGE


def _artifact_item(attrs: dict[str, Any], content: str) -> CodeItem:
    identifier = attrs.get("identifier") or attrs.get("id") or "artifact"
    return CodeItem(
        kind=CodeItemKind.ARTIFACT,
        language=artifact_language(attrs.get("type"), attrs.get("language")),
        content=content,
        title=attrs.get("title") or identifier,
        identity=f"{identifier}-{short_hash(content)}",
    )


class _Extractor:
    """Accumulates code items for one message, numbering markdown blocks."""

    def __init__(self, message_id: str):
        self.message_id = message_id
        self.items: list[CodeItem] = []
        self._block_count = 0

    def add_text(self, text: str) -> None:
        matches: list[tuple[int, CodeItem]] = []
        artifact_spans: list[tuple[int, int]] = []

        for match in ARTIFACT_TAG_RE.finditer(text):
            attrs = dict(ATTRIBUTE_RE.findall(match.group(1)))
            content = match.group(2).strip("\n")
            artifact_spans.append(match.span())
            matches.append((match.start(), _artifact_item(attrs, content)))

        for match in FENCED_BLOCK_RE.finditer(text):
            if any(start <= match.start() < end for start, end in artifact_spans):
                continue
            matches.append((match.start(), self._markdown_item(match)))

        matches.sort(key=lambda pair: pair[0])
        self.items.extend(item for _, item in matches)

    def add_tool_use(self, part: dict[str, Any]) -> None:
        if part.get("name") != "artifacts":
            return
        tool_input = part.get("input")
        if not isinstance(tool_input, dict):
            return
        content = tool_input.get("content")
        # "update" commands carry a diff (old_str/new_str), not the artifact
        if not isinstance(content, str) or not content:
            return
        self.items.append(_artifact_item(tool_input, content))

    def _markdown_item(self, match: re.Match) -> CodeItem:
        self._block_count += 1
        return CodeItem(
            kind=CodeItemKind.MARKDOWN_BLOCK,
            language=match.group(1) or DEFAULT_LANGUAGE,
            content=match.group(2).strip(),
            title=f"Code block {self._block_count}",
            identity=f"{self.message_id}-block-{self._block_count}",
        )


def extract_code_items(
    message_id: str, parts: Iterable[dict[str, Any] | str]
) -> tuple[CodeItem, ...]:
    """
    Extract code items from message content.

    Args:
        message_id: Id of the message (used in markdown block identities)
        parts: Message content, either plain strings or Claude export content
            items (``{"type": "text", "text": ...}`` and
            ``{"type": "tool_use", "name": "artifacts", "input": {...}}``)

    Returns:
        Code items in order of appearance
    """
    extractor = _Extractor(message_id)
    for part in parts:
        if isinstance(part, str):
            extractor.add_text(part)
        elif part.get("type", "text") == "text" and isinstance(part.get("text"), str):
            extractor.add_text(part["text"])
        elif part.get("type") == "tool_use":
            extractor.add_tool_use(part)
    return tuple(extractor.items)
