"""
Ticket client protocol.

Defines the interface the synchronization engine needs from a remote
issue tracker. :class:`chatsync.remote.client.RedmineClient` implements it;
tests substitute in-memory fakes.
"""

from pathlib import Path
from typing import Optional, Protocol

from chatsync.models.export import Role


class TicketClient(Protocol):
    """Protocol for remote ticket writers."""

    def create_ticket(
        self, title: str, description: str, assignee: Optional[int] = None
    ) -> int:
        """
        Create a ticket and return its id.

        Raises:
            RemoteError: If the ticket could not be created
        """
        ...

    def add_note(self, ticket_id: int, content: str, author: Role) -> bool:
        """
        Append a note attributed to ``author``.

        Raises:
            RemoteError: If the note could not be written
        """
        ...

    def upload_attachment(
        self, ticket_id: int, local_path: Path | str, description: Optional[str] = None
    ) -> int:
        """
        Attach a local file to a ticket and return the attachment id.

        Raises:
            RemoteError: If the upload or the binding call failed
        """
        ...
