"""
Claude export reader.

Decodes a Claude.ai data export (a ZIP archive containing
``conversations.json``, or that JSON file on its own) into
:class:`~chatsync.models.export.Conversation` records.

Message ids in the export are random UUIDs and do not sort in creation
order, so each message is given a zero-padded sequence id (its ``index``
field when the export provides one, otherwise its position after a stable
sort by creation time, or its position in the export when any message
lacks a usable timestamp). The raw UUID is kept as ``source_id``.
"""

import json
import logging
import zipfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from dateutil import parser as date_parser

from chatsync.exceptions import ExportFormatError
from chatsync.export.code_items import extract_code_items
from chatsync.models.export import Conversation, Message, Role

CONVERSATIONS_FILE = "conversations.json"
MESSAGE_ID_WIDTH = 8

SENDER_ROLES = {
    "human": Role.HUMAN,
    "user": Role.HUMAN,
    "assistant": Role.ASSISTANT,
}


def parse_iso_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO 8601 timestamp.

    Args:
        value: Timestamp string (e.g., "2025-10-16T19:12:28.024Z")

    Returns:
        Timezone-aware datetime (naive input is taken as UTC), or None when
        the value is missing or unparsable
    """
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = date_parser.isoparse(value)
    except (ValueError, TypeError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_timestamp(value: Optional[str]) -> datetime:
    """Parse an ISO 8601 timestamp, falling back to the current UTC time."""
    return parse_iso_timestamp(value) or datetime.now(timezone.utc)


def format_message_id(sequence: int) -> str:
    """Render a sequence number as a lexicographically sortable message id."""
    return f"{sequence:0{MESSAGE_ID_WIDTH}d}"


class ExportReader:
    """Reads conversations from a Claude export archive."""

    def __init__(self, path: Path | str, logger: Optional[logging.Logger] = None):
        self.path = Path(path)
        self.logger = logger or logging.getLogger(__name__)

    def read(self) -> list[Conversation]:
        """
        Read all conversations from the export.

        Returns:
            Conversations in export order

        Raises:
            ExportFormatError: If the export is missing, unreadable, or not a
                list of conversations
        """
        self.logger.info(f"Processing Claude export from {self.path}")
        data = self._load_json()

        if not isinstance(data, list):
            raise ExportFormatError(
                f"Expected an array of conversations in {CONVERSATIONS_FILE}"
            )

        conversations = []
        for entry in data:
            conversation = self._parse_conversation(entry)
            if conversation is not None:
                conversations.append(conversation)

        self.logger.info(f"Successfully processed {len(conversations)} conversations")
        return conversations

    def _load_json(self) -> Any:
        if not self.path.is_file():
            raise ExportFormatError(f"Export file not found: {self.path}")

        try:
            if zipfile.is_zipfile(self.path):
                raw = self._read_from_zip()
            else:
                raw = self.path.read_bytes()
            return json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ExportFormatError(f"Failed to parse {CONVERSATIONS_FILE}: {e}") from e
        except (OSError, zipfile.BadZipFile) as e:
            raise ExportFormatError(f"Failed to read export {self.path}: {e}") from e

    def _read_from_zip(self) -> bytes:
        with zipfile.ZipFile(self.path) as archive:
            for name in archive.namelist():
                if Path(name).name == CONVERSATIONS_FILE:
                    return archive.read(name)
        raise ExportFormatError(f"No {CONVERSATIONS_FILE} file found in {self.path}")

    def _parse_conversation(self, data: Any) -> Optional[Conversation]:
        if not isinstance(data, dict) or not isinstance(
            data.get("chat_messages"), list
        ):
            self.logger.warning("Skipping malformed conversation entry")
            return None

        conversation_id = data.get("uuid")
        if not conversation_id:
            self.logger.warning("Skipping conversation without uuid")
            return None

        raw_messages = [m for m in data["chat_messages"] if isinstance(m, dict)]
        messages = []
        for sequence, raw in self._ordered(raw_messages):
            message = self._parse_message(raw, format_message_id(sequence))
            if message is not None:
                messages.append(message)

        return Conversation(
            id=str(conversation_id),
            title=data.get("name") or "",
            messages=tuple(messages),
            created_at=parse_timestamp(data.get("created_at")),
            updated_at=parse_timestamp(data.get("updated_at")),
        )

    def _ordered(self, raw_messages: list[dict]) -> list[tuple[int, dict]]:
        """Pair messages with sequence numbers in creation order."""
        if raw_messages and all(
            isinstance(m.get("index"), int) and not isinstance(m.get("index"), bool)
            for m in raw_messages
        ):
            return sorted(
                ((m["index"], m) for m in raw_messages), key=lambda pair: pair[0]
            )

        timestamps = [parse_iso_timestamp(m.get("created_at")) for m in raw_messages]
        if any(timestamp is None for timestamp in timestamps):
            # Any missing timestamp: number messages in export order
            return list(enumerate(raw_messages))

        by_time = sorted(range(len(raw_messages)), key=lambda i: (timestamps[i], i))
        return [(position, raw_messages[i]) for position, i in enumerate(by_time)]

    def _parse_message(self, data: dict, message_id: str) -> Optional[Message]:
        sender = str(data.get("sender", "")).lower()
        role = SENDER_ROLES.get(sender)
        if role is None:
            self.logger.warning(
                f"Dropping message {data.get('uuid')} with unknown sender {sender!r}"
            )
            return None

        parts = data.get("content")
        if isinstance(parts, list) and parts:
            parts = [p for p in parts if isinstance(p, dict)]
            text = "\n".join(
                p["text"]
                for p in parts
                if p.get("type", "text") == "text" and isinstance(p.get("text"), str)
            )
            if not text and data.get("text"):
                text = data["text"]
                parts = [*parts, text]
        else:
            text = data.get("text") or ""
            parts = [text]

        files = tuple(
            f["file_name"]
            for f in (data.get("files") or []) + (data.get("attachments") or [])
            if isinstance(f, dict) and f.get("file_name")
        )

        return Message(
            id=message_id,
            role=role,
            content=text,
            created_at=parse_timestamp(data.get("created_at")),
            code_items=extract_code_items(message_id, parts),
            source_id=data.get("uuid"),
            files=files,
        )
