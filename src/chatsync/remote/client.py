"""
Redmine API Client - HTTP client for the Redmine REST API.

Creates issues, appends notes and uploads attachments on behalf of two
identities: the human who took part in the conversation and the assistant
account that owns the synchronization. Redmine attributes every write to
whichever API key authenticated it, so credentials are chosen per author.
"""

import logging
import time
from pathlib import Path
from typing import Any, Callable, Optional

import httpx

from chatsync.config import Settings
from chatsync.exceptions import ArtifactError, MalformedResponseError
from chatsync.models.export import Role
from chatsync.remote.retry import RequestOutcome, RetryConfig, execute_with_retry

API_KEY_HEADER = "X-Redmine-API-Key"


def sanitize_text(text: str) -> str:
    """
    Make text safe to send as UTF-8.

    Characters that cannot be encoded (lone surrogates from broken JSON
    escapes) are replaced instead of failing the request.
    """
    return text.encode("utf-8", errors="replace").decode("utf-8")


class RedmineClient:
    """
    Resilient Redmine REST API client.

    Features:
    - Automatic retry with capped exponential backoff for network failures
    - Received error responses are surfaced immediately, never retried
    - Per-author credential selection for notes
    """

    DEFAULT_TIMEOUT = 30.0  # seconds, for both connect and read

    def __init__(
        self,
        base_url: str,
        human_api_key: str,
        assistant_api_key: str,
        project_id: str,
        human_user_id: int = 0,
        assistant_user_id: int = 0,
        tracker_id: int = 1,
        status_id: int = 1,
        priority_id: int = 2,
        timeout: float = DEFAULT_TIMEOUT,
        retry_config: Optional[RetryConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the Redmine client.

        Args:
            base_url: Redmine instance URL (e.g., https://redmine.example.com)
            human_api_key: API key of the human user
            assistant_api_key: API key of the assistant user
            project_id: Target project identifier
            human_user_id: Redmine user id of the human (default assignee)
            assistant_user_id: Redmine user id of the assistant
            tracker_id: Tracker for new issues
            status_id: Status for new issues
            priority_id: Priority for new issues
            timeout: Connect and read timeout in seconds
            retry_config: Retry configuration
            transport: Optional httpx transport (used by tests)
            sleep: Function used to wait between retries
            logger: Logger to report to
        """
        self.base_url = base_url.rstrip("/")
        self.project_id = project_id
        self.human_user_id = human_user_id
        self.assistant_user_id = assistant_user_id
        self.tracker_id = tracker_id
        self.status_id = status_id
        self.priority_id = priority_id
        self.retry_config = retry_config or RetryConfig()
        self.logger = logger or logging.getLogger(__name__)
        self._sleep = sleep

        self._api_keys = {
            Role.HUMAN: human_api_key,
            Role.ASSISTANT: assistant_api_key,
        }
        self._user_ids = {
            Role.HUMAN: human_user_id,
            Role.ASSISTANT: assistant_user_id,
        }

        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            headers={"Accept": "application/json"},
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        logger: Optional[logging.Logger] = None,
        **kwargs: Any,
    ) -> "RedmineClient":
        """Build a client from validated settings."""
        return cls(
            base_url=settings.redmine_url,
            human_api_key=settings.redmine_human_api_key,
            assistant_api_key=settings.redmine_assistant_api_key,
            project_id=settings.redmine_project_id,
            human_user_id=settings.redmine_human_user_id,
            assistant_user_id=settings.redmine_assistant_user_id,
            tracker_id=settings.redmine_tracker_id,
            status_id=settings.redmine_status_id,
            priority_id=settings.redmine_priority_id,
            timeout=settings.request_timeout,
            retry_config=RetryConfig(
                max_retries=settings.retry_max_retries,
                base_delay=settings.retry_base_delay,
                max_delay=settings.retry_max_delay,
            ),
            logger=logger,
            **kwargs,
        )

    # -------------------------------------------------------------------------
    # Core Request Methods
    # -------------------------------------------------------------------------

    def request(
        self,
        method: str,
        path: str,
        author: Role = Role.ASSISTANT,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Make an authenticated request with retry logic.

        Args:
            method: HTTP method (GET, POST, PUT)
            path: API path (e.g., '/issues.json')
            author: Identity whose API key authenticates the request
            **kwargs: Additional arguments for httpx

        Returns:
            Successful (2xx) response

        Raises:
            RemoteRejectedError: On non-2xx responses (not retried)
            RemoteUnavailableError: When network failures exhaust the retries
            RemoteFatalError: On non-retryable transport failures
        """
        headers = dict(kwargs.pop("headers", None) or {})
        headers[API_KEY_HEADER] = self._api_keys[author]
        description = f"{method} {path}"

        def send() -> RequestOutcome:
            self.logger.debug(f"Making {description} request as {author.value}")
            try:
                response = self._client.request(
                    method, path, headers=headers, **kwargs
                )
            except httpx.HTTPError as e:
                return RequestOutcome.from_exception(e)
            self.logger.debug(
                f"Response code for {description}: {response.status_code}"
            )
            return RequestOutcome.from_response(response)

        return execute_with_retry(
            send,
            description,
            config=self.retry_config,
            sleep=self._sleep,
            log=self.logger,
        )

    def _json_body(self, response: httpx.Response, description: str) -> dict[str, Any]:
        """Parse a JSON object body, raising MalformedResponseError otherwise."""
        if not response.content:
            raise MalformedResponseError(f"Empty response body for {description}")
        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"Unparsable response body for {description}: {response.text[:200]}",
                cause=e,
            ) from e
        if not isinstance(data, dict):
            raise MalformedResponseError(f"Unexpected response shape for {description}")
        return data

    # -------------------------------------------------------------------------
    # Ticket Operations
    # -------------------------------------------------------------------------

    def create_ticket(
        self,
        title: str,
        description: str,
        assignee: Optional[int] = None,
    ) -> int:
        """
        Create a new issue as the assistant identity.

        Args:
            title: Issue subject
            description: Issue description
            assignee: User id to assign; defaults to the human user when set

        Returns:
            Id of the created issue

        Raises:
            MalformedResponseError: If the response lacks the new issue id
        """
        issue: dict[str, Any] = {
            "project_id": self.project_id,
            "subject": sanitize_text(title),
            "description": sanitize_text(description),
            "tracker_id": self.tracker_id,
            "status_id": self.status_id,
            "priority_id": self.priority_id,
        }

        assigned_to = assignee if assignee is not None else self.human_user_id
        if assigned_to and assigned_to > 0:
            issue["assigned_to_id"] = assigned_to

        response = self.request(
            "POST", "/issues.json", author=Role.ASSISTANT, json={"issue": issue}
        )
        data = self._json_body(response, "POST /issues.json")

        try:
            ticket_id = int(data["issue"]["id"])
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedResponseError(
                "No issue id in response when creating issue", cause=e
            ) from e

        self.logger.info(f"Successfully created issue #{ticket_id}")
        return ticket_id

    def add_note(self, ticket_id: int, content: str, author: Role) -> bool:
        """
        Append a note to an issue, attributed to ``author``.

        Any 2xx response counts as success, including an empty or unparsable
        body; Redmine answers this call with 204 No Content.

        Returns:
            True once the note was accepted
        """
        self.request(
            "PUT",
            f"/issues/{ticket_id}.json",
            author=author,
            json={"issue": {"notes": sanitize_text(content)}},
        )
        self.logger.info(
            f"Successfully added note to issue #{ticket_id} as {author.value} "
            f"(user #{self._user_ids[author]})"
        )
        return True

    def upload_attachment(
        self,
        ticket_id: int,
        local_path: Path | str,
        description: Optional[str] = None,
    ) -> int:
        """
        Attach a file to an issue.

        Uploads the raw bytes to obtain a token, then binds the token to the
        issue with a second call.

        Args:
            ticket_id: Issue to attach to
            local_path: File to upload
            description: Optional attachment description

        Returns:
            Id of the created attachment

        Raises:
            ArtifactError: If the local file cannot be read
            MalformedResponseError: If the upload response lacks a token
        """
        path = Path(local_path)
        try:
            content = path.read_bytes()
        except OSError as e:
            raise ArtifactError(str(path), cause=e) from e

        upload_response = self.request(
            "POST",
            "/uploads.json",
            author=Role.ASSISTANT,
            params={"filename": path.name},
            headers={"Content-Type": "application/octet-stream"},
            content=content,
        )
        data = self._json_body(upload_response, "POST /uploads.json")

        upload = data.get("upload") or {}
        token = upload.get("token") if isinstance(upload, dict) else None
        if not token:
            raise MalformedResponseError("No upload token in response")

        attachment_id = _attachment_id_from_upload(upload)

        upload_entry: dict[str, Any] = {"token": token, "filename": path.name}
        if description:
            upload_entry["description"] = sanitize_text(description)

        self.request(
            "PUT",
            f"/issues/{ticket_id}.json",
            author=Role.ASSISTANT,
            json={"issue": {"uploads": [upload_entry]}},
        )
        self.logger.info(
            f"Successfully attached {path.name} to issue #{ticket_id} "
            f"(attachment #{attachment_id})"
        )
        return attachment_id

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._client.close()

    def __enter__(self) -> "RedmineClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def _attachment_id_from_upload(upload: dict[str, Any]) -> int:
    """
    Extract the attachment id from an upload response.

    Redmine 3.4+ returns ``id``; older versions only return a token of the
    form ``"<id>.<digest>"``.
    """
    if upload.get("id") is not None:
        try:
            return int(upload["id"])
        except (TypeError, ValueError):
            pass
    prefix = str(upload.get("token", "")).split(".", 1)[0]
    try:
        return int(prefix)
    except ValueError as e:
        raise MalformedResponseError(
            f"Cannot determine attachment id from upload token {upload.get('token')!r}",
            cause=e,
        ) from e
