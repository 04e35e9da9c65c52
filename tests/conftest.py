"""
Pytest configuration and fixtures for chatsync tests.

Provides a file-backed progress store per test, an in-memory ticket client,
and factories for exported conversations.
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import pytest

from chatsync.db.connection import create_db_engine
from chatsync.db.progress import ProgressStore
from chatsync.exceptions import RemoteError, RemoteUnavailableError
from chatsync.export.reader import format_message_id
from chatsync.models.export import CodeItem, Conversation, Message, Role

BASE_TIME = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

CHATSYNC_ENV_VARS = (
    "REDMINE_URL",
    "REDMINE_HUMAN_API_KEY",
    "REDMINE_ASSISTANT_API_KEY",
    "REDMINE_PROJECT_ID",
    "REDMINE_HUMAN_USER_ID",
    "REDMINE_ASSISTANT_USER_ID",
    "DATABASE_PATH",
    "ARTIFACTS_DIR",
    "UPLOAD_ARTIFACTS",
    "LOG_LEVEL",
    "LOG_DIR",
    "LOG_FORMAT",
    "LOG_FILE_ENABLED",
    "LOG_CONSOLE_ENABLED",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep the developer's environment and .env file out of every test."""
    for name in CHATSYNC_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    yield


@pytest.fixture
def db_engine(tmp_path):
    """Create a SQLite file database for one test."""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'progress.db'}")
    yield engine
    engine.dispose()


@pytest.fixture
def store(db_engine) -> ProgressStore:
    """Create an initialized progress store."""
    progress_store = ProgressStore(db_engine)
    progress_store.initialize()
    return progress_store


class FakeTicketClient:
    """
    In-memory ticket client.

    Records every call. Failures are injected by listing the 1-based number
    of the ``add_note`` call (across the whole run) that should fail, or by
    setting ``fail_create``.
    """

    def __init__(
        self,
        fail_notes_at: Optional[set[int]] = None,
        fail_create: bool = False,
        error: Optional[RemoteError] = None,
    ):
        self.tickets: dict[int, dict] = {}
        self.notes: list[tuple[int, str, Role]] = []
        self.uploads: list[tuple[int, Path, Optional[str]]] = []
        self.fail_notes_at = fail_notes_at or set()
        self.fail_create = fail_create
        self.error = error or RemoteUnavailableError("network down", attempts=6)
        self._next_ticket_id = 100
        self._note_calls = 0

    def create_ticket(
        self, title: str, description: str, assignee: Optional[int] = None
    ) -> int:
        if self.fail_create:
            raise self.error
        self._next_ticket_id += 1
        self.tickets[self._next_ticket_id] = {
            "title": title,
            "description": description,
            "assignee": assignee,
        }
        return self._next_ticket_id

    def add_note(self, ticket_id: int, content: str, author: Role) -> bool:
        self._note_calls += 1
        if self._note_calls in self.fail_notes_at:
            raise self.error
        self.notes.append((ticket_id, content, author))
        return True

    def upload_attachment(
        self, ticket_id: int, local_path, description: Optional[str] = None
    ) -> int:
        self.uploads.append((ticket_id, Path(local_path), description))
        return len(self.uploads)

    def notes_for(self, ticket_id: int) -> list[str]:
        return [content for tid, content, _ in self.notes if tid == ticket_id]


@pytest.fixture
def ticket_client() -> FakeTicketClient:
    """Create an in-memory ticket client."""
    return FakeTicketClient()


def make_message(
    sequence: int,
    content: Optional[str] = None,
    role: Optional[Role] = None,
    code_items: tuple[CodeItem, ...] = (),
) -> Message:
    """Build a message whose id and timestamp follow its sequence number."""
    if role is None:
        role = Role.HUMAN if sequence % 2 == 0 else Role.ASSISTANT
    return Message(
        id=format_message_id(sequence),
        role=role,
        content=content if content is not None else f"message {sequence}",
        created_at=BASE_TIME + timedelta(minutes=sequence),
        code_items=code_items,
    )


def make_conversation(
    conversation_id: str, message_count: int, title: str = "Test conversation"
) -> Conversation:
    """Build a conversation with ``message_count`` alternating messages."""
    return Conversation(
        id=conversation_id,
        title=title,
        messages=tuple(make_message(i) for i in range(message_count)),
        created_at=BASE_TIME,
        updated_at=BASE_TIME,
    )
