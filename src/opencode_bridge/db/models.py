"""SQLAlchemy 2.0 mapped classes for the conversation store.

Tables:
- conversation_messages: user and assistant messages per channel.
- compaction_summaries: summaries that replace older turns in a channel's context.
- conversation_archives: raw transcripts saved before compaction (audit trail).

Primary keys are UUID strings generated client-side. created_at is also set
client-side when a write is accepted, so ordering follows call order even when
writes land out of order.
"""

import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, Index, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    pass


class ConversationMessage(Base):
    __tablename__ = "conversation_messages"
    __table_args__ = (
        Index("ix_conversation_messages_channel_id_created_at", "channel_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    channel_id: Mapped[str] = mapped_column(Text, nullable=False)
    # "user" or "assistant".
    role: Mapped[str] = mapped_column(String(16), nullable=False)
    sender_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    sender_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    # `metadata` is reserved on declarative classes, hence the trailing underscore.
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class CompactionSummary(Base):
    __tablename__ = "compaction_summaries"
    __table_args__ = (
        Index("ix_compaction_summaries_channel_id", "channel_id"),
        Index("ix_compaction_summaries_channel_id_created_at", "channel_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    channel_id: Mapped[str] = mapped_column(Text, nullable=False)
    summary: Mapped[str] = mapped_column(Text, nullable=False)
    turns_covered: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class ConversationArchive(Base):
    __tablename__ = "conversation_archives"
    __table_args__ = (Index("ix_conversation_archives_channel_id", "channel_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    channel_id: Mapped[str] = mapped_column(Text, nullable=False)
    transcript: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
