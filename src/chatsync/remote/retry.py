"""
Retry logic with exponential backoff.

Every remote call is reduced to a tagged :class:`RequestOutcome` per
attempt. The retry loop dispatches on the outcome kind: transient network
failures are retried with capped exponential backoff, received error
responses and other failures are surfaced immediately.
"""

import enum
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from chatsync.exceptions import (
    RemoteFatalError,
    RemoteRejectedError,
    RemoteUnavailableError,
)

logger = logging.getLogger(__name__)


class OutcomeKind(str, enum.Enum):
    """Classification of a single request attempt."""

    SUCCESS = "success"  # 2xx response received
    TRANSIENT = "transient"  # Network-level failure, worth retrying
    REJECTED = "rejected"  # Non-2xx response received, never retried
    FATAL = "fatal"  # Failure retrying cannot fix


@dataclass(frozen=True)
class RequestOutcome:
    """Result of one request attempt."""

    kind: OutcomeKind
    response: Optional[httpx.Response] = None
    error: Optional[BaseException] = None

    @classmethod
    def from_response(cls, response: httpx.Response) -> "RequestOutcome":
        if response.is_success:
            return cls(OutcomeKind.SUCCESS, response=response)
        return cls(OutcomeKind.REJECTED, response=response)

    @classmethod
    def from_exception(cls, error: BaseException) -> "RequestOutcome":
        return cls(classify_exception(error), error=error)


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior."""

    max_retries: int = 5
    base_delay: float = 2.0
    max_delay: float = 30.0


# Connection refused, host unreachable, DNS and socket failures surface as
# ConnectError/NetworkError; connect and read timeouts as TimeoutException.
TRANSIENT_EXCEPTIONS: tuple[type[BaseException], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
)


def classify_exception(error: BaseException) -> OutcomeKind:
    """Map a transport exception to an outcome kind."""
    if isinstance(error, TRANSIENT_EXCEPTIONS):
        return OutcomeKind.TRANSIENT
    return OutcomeKind.FATAL


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """
    Calculate delay before the next attempt.

    Args:
        attempt: Number of the retry about to happen (1-indexed)
        config: Retry configuration

    Returns:
        ``min(base_delay * 2 ** (attempt - 1), max_delay)`` in seconds
    """
    return min(config.base_delay * (2 ** (attempt - 1)), config.max_delay)


def execute_with_retry(
    send: Callable[[], RequestOutcome],
    description: str,
    config: Optional[RetryConfig] = None,
    sleep: Callable[[float], None] = time.sleep,
    log: Optional[logging.Logger] = None,
) -> httpx.Response:
    """
    Run ``send`` until it succeeds, is rejected, or the retry budget is spent.

    Args:
        send: Performs one attempt and reports its outcome
        description: Human-readable request description for logs and errors
        config: Retry configuration (uses defaults if not provided)
        sleep: Function used to wait between attempts
        log: Logger to report retries to

    Returns:
        The successful response

    Raises:
        RemoteRejectedError: A non-2xx response was received
        RemoteUnavailableError: Transient failures outlasted ``max_retries``
        RemoteFatalError: A non-retryable transport failure occurred
    """
    config = config or RetryConfig()
    log = log or logger
    retries = 0

    while True:
        outcome = send()

        if outcome.kind is OutcomeKind.SUCCESS:
            assert outcome.response is not None
            return outcome.response

        if outcome.kind is OutcomeKind.REJECTED:
            assert outcome.response is not None
            response = outcome.response
            log.error(
                f"Remote API error {response.status_code} on {description}: "
                f"{response.text[:500]}"
            )
            raise RemoteRejectedError(
                response.status_code, response.text, endpoint=description
            )

        if outcome.kind is OutcomeKind.FATAL:
            log.error(f"Request {description} failed: {outcome.error}")
            raise RemoteFatalError(
                f"Request {description} failed: {outcome.error}",
                cause=outcome.error,
            )

        retries += 1
        if retries > config.max_retries:
            log.error(
                f"Failed after {config.max_retries} retries on {description}: "
                f"{outcome.error}"
            )
            raise RemoteUnavailableError(
                f"{description} failed after {config.max_retries} retries: "
                f"{outcome.error}",
                attempts=retries,
                cause=outcome.error,
            )

        delay = calculate_delay(retries, config)
        log.warning(
            f"Connection error on {description}: {outcome.error}. "
            f"Retrying in {delay:.0f} seconds... "
            f"(Attempt {retries}/{config.max_retries})"
        )
        sleep(delay)
