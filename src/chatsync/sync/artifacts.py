"""
Artifact publishing.

Writes artifact code items to disk and attaches them to the conversation's
ticket, recording each upload in the attachment ledger so that re-runs never
upload the same artifact twice.
"""

import logging
import re
from pathlib import Path
from typing import Optional

from chatsync.db.progress import ProgressStore
from chatsync.exceptions import ArtifactError
from chatsync.models.export import CodeItemKind, Message
from chatsync.remote.base import TicketClient

SAFE_NAME_RE = re.compile(r"[^A-Za-z0-9._-]+")

LANGUAGE_EXTENSIONS = {
    "python": "py",
    "javascript": "js",
    "typescript": "ts",
    "jsx": "jsx",
    "tsx": "tsx",
    "markdown": "md",
    "mermaid": "mmd",
    "html": "html",
    "svg": "svg",
    "bash": "sh",
    "shell": "sh",
    "ruby": "rb",
    "yaml": "yml",
    "json": "json",
    "sql": "sql",
    "text": "txt",
}


def artifact_filename(identity: str, language: str) -> str:
    """File name for an artifact, safe on every platform."""
    stem = SAFE_NAME_RE.sub("_", identity).strip("._") or "artifact"
    extension = LANGUAGE_EXTENSIONS.get(language.lower())
    if extension is None:
        extension = SAFE_NAME_RE.sub("", language).strip(".") or "txt"
    return f"{stem}.{extension}"


class ArtifactPublisher:
    """Uploads a message's artifacts to a ticket exactly once each."""

    def __init__(
        self,
        client: TicketClient,
        store: ProgressStore,
        artifacts_dir: Path | str,
        logger: Optional[logging.Logger] = None,
    ):
        self.client = client
        self.store = store
        self.artifacts_dir = Path(artifacts_dir)
        self.logger = logger or logging.getLogger(__name__)

    def publish(self, conversation_id: str, ticket_id: int, message: Message) -> int:
        """
        Upload the artifacts of ``message`` that are not in the ledger yet.

        Args:
            conversation_id: Conversation the message belongs to
            ticket_id: Ticket to attach to
            message: Message whose artifacts are published

        Returns:
            Number of artifacts uploaded

        Raises:
            ArtifactError: If the artifact file cannot be written
            RemoteError: If an upload fails (earlier uploads stay recorded)
        """
        uploaded = 0
        for item in message.code_items:
            if item.kind is not CodeItemKind.ARTIFACT:
                continue
            if self.store.has_attachment(conversation_id, item.identity):
                self.logger.debug(f"Artifact {item.identity} already uploaded")
                continue

            path = self._save(
                conversation_id, item.identity, item.language, item.content
            )
            attachment_id = self.client.upload_attachment(
                ticket_id, path, f"Artifact: {item.title}"
            )
            self.store.record_attachment(
                conversation_id=conversation_id,
                artifact_identity=item.identity,
                artifact_type=item.language,
                local_path=str(path),
                remote_attachment_id=attachment_id,
            )
            uploaded += 1

        return uploaded

    def _save(
        self, conversation_id: str, identity: str, language: str, content: str
    ) -> Path:
        directory = self.artifacts_dir / SAFE_NAME_RE.sub("_", conversation_id)
        path = directory / artifact_filename(identity, language)
        try:
            directory.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8", errors="replace")
        except OSError as e:
            raise ArtifactError(str(path), cause=e) from e
        return path
