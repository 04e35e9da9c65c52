"""Custom exceptions for chatsync."""

from typing import Optional


class ChatSyncError(Exception):
    """Base exception for all chatsync errors."""

    pass


class ConfigurationError(ChatSyncError):
    """Raised when required settings are missing or invalid."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(
            "Missing required configuration: " + ", ".join(sorted(missing))
        )


class ExportFormatError(ChatSyncError):
    """Raised when an export archive cannot be read."""

    pass


class ArtifactError(ChatSyncError):
    """Raised when an artifact file cannot be written or read locally."""

    def __init__(self, path: str, cause: Optional[BaseException] = None):
        self.path = path
        self.cause = cause
        super().__init__(f"Artifact file {path} is not accessible: {cause}")


# ---------------------------------------------------------------------------
# Progress store errors (fatal to the whole run)
# ---------------------------------------------------------------------------


class StoreError(ChatSyncError):
    """Raised when the progress store is unavailable or corrupt."""

    pass


class DuplicateKeyError(StoreError):
    """Raised when creating a sync record that already exists."""

    def __init__(self, conversation_id: str):
        self.conversation_id = conversation_id
        super().__init__(
            f"Sync record for conversation {conversation_id} already exists"
        )


class RecordNotFoundError(StoreError):
    """Raised when advancing the cursor of an unknown conversation."""

    def __init__(self, conversation_id: str):
        self.conversation_id = conversation_id
        super().__init__(f"No sync record for conversation {conversation_id}")


class CursorRegressionError(StoreError):
    """Raised when a cursor update would move backward."""

    def __init__(self, conversation_id: str, current: str, requested: str):
        self.conversation_id = conversation_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Refusing to move cursor for {conversation_id} "
            f"backward from {current!r} to {requested!r}"
        )


# ---------------------------------------------------------------------------
# Remote errors (fatal to one conversation, not to the run)
# ---------------------------------------------------------------------------


class RemoteError(ChatSyncError):
    """Base exception for failed remote ticket operations."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class RemoteUnavailableError(RemoteError):
    """Raised when transient network errors outlast the retry budget."""

    def __init__(
        self, message: str, attempts: int, cause: Optional[BaseException] = None
    ):
        super().__init__(message, cause=cause)
        self.attempts = attempts


class RemoteRejectedError(RemoteError):
    """Raised when the remote system answers with a non-2xx status."""

    def __init__(self, status_code: int, body: str = "", endpoint: str = ""):
        self.status_code = status_code
        self.body = body
        self.endpoint = endpoint
        message = f"Remote API error {status_code}"
        if endpoint:
            message += f" on {endpoint}"
        if body:
            message += f": {body[:500]}"
        super().__init__(message)


class MalformedResponseError(RemoteError):
    """Raised when a 2xx response lacks the data the caller needs."""

    pass


class RemoteFatalError(RemoteError):
    """Raised for transport failures that retrying cannot fix."""

    pass
