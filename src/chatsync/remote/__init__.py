"""
Remote issue tracker access.

Provides the Redmine client, the ticket client protocol the engine depends
on, and the retry primitive shared by every remote call.
"""

from chatsync.remote.base import TicketClient
from chatsync.remote.client import RedmineClient, sanitize_text
from chatsync.remote.retry import (
    OutcomeKind,
    RequestOutcome,
    RetryConfig,
    calculate_delay,
    execute_with_retry,
)

__all__ = [
    "OutcomeKind",
    "RedmineClient",
    "RequestOutcome",
    "RetryConfig",
    "TicketClient",
    "calculate_delay",
    "execute_with_retry",
    "sanitize_text",
]
