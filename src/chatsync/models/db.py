"""
SQLAlchemy database models for chatsync.

These models represent the progress store: one sync record per
conversation and a ledger of uploaded artifacts.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class SyncRecord(Base):
    """Progress cursor for one synchronized conversation."""

    __tablename__ = "sync_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    conversation_id: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True, index=True
    )
    remote_ticket_id: Mapped[int] = mapped_column(Integer, nullable=False)
    # Empty string sorts before every message id: nothing synced yet
    last_synced_message_id: Mapped[str] = mapped_column(
        String(255), nullable=False, default=""
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<SyncRecord(conversation_id={self.conversation_id!r}, "
            f"remote_ticket_id={self.remote_ticket_id}, "
            f"last_synced_message_id={self.last_synced_message_id!r})>"
        )


class AttachmentRecord(Base):
    """An artifact that has been uploaded to a ticket."""

    __tablename__ = "attachment_records"
    __table_args__ = (
        UniqueConstraint(
            "conversation_id", "artifact_identity", name="uq_attachment_identity"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    conversation_id: Mapped[str] = mapped_column(
        String(255), nullable=False, index=True
    )
    artifact_identity: Mapped[str] = mapped_column(String(255), nullable=False)
    artifact_type: Mapped[str] = mapped_column(String(100), nullable=False)
    local_path: Mapped[str] = mapped_column(String(1024), nullable=False)
    remote_attachment_id: Mapped[Optional[int]] = mapped_column(
        Integer, nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<AttachmentRecord(conversation_id={self.conversation_id!r}, "
            f"artifact_identity={self.artifact_identity!r})>"
        )
