"""
chatsync - Synchronize exported Claude conversations into Redmine issues.

Each conversation becomes one issue; each message becomes a note written
with the API key of its author. Re-running against a newer export only
appends the messages that were not synchronized before.
"""

__version__ = "0.1.0"
