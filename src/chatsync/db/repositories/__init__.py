"""
Repository layer for database operations.

Provides a clean API for CRUD operations on database models.
"""

from chatsync.db.repositories.attachment import AttachmentRecordRepository
from chatsync.db.repositories.base import BaseRepository
from chatsync.db.repositories.sync_record import SyncRecordRepository

__all__ = [
    "AttachmentRecordRepository",
    "BaseRepository",
    "SyncRecordRepository",
]
