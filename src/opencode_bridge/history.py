"""Conversation persistence for chat channels.

All write methods are fire-and-forget: they schedule an asyncio task and
return immediately so the caller never blocks on a database write. Failures
are logged and swallowed; the conversation goes on without the record.
Writes must be scheduled from inside a running event loop.
"""

import asyncio
import json
import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from opencode_bridge.config import settings
from opencode_bridge.db.models import (
    Base,
    CompactionSummary,
    ConversationArchive,
    ConversationMessage,
)
from opencode_bridge.schemas.conversation import (
    CompactionSummaryDTO,
    ConversationMessageDTO,
    MessageRole,
)

logger = logging.getLogger(__name__)


class ConversationStoreError(Exception):
    """Reading conversation history from the database failed."""


class ConversationLogger:
    """Persists user and assistant messages, compaction summaries and archives."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        # Strong references so in-flight writes are not garbage collected.
        self._tasks: set[asyncio.Task] = set()
        self._last_timestamp: datetime | None = None

    def _next_timestamp(self) -> datetime:
        """Acceptance time for a write, strictly increasing per logger."""
        now = datetime.now(UTC)
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now

    def _spawn(self, record: Base, channel_id: str, description: str) -> None:
        task = asyncio.create_task(self._persist(record, channel_id, description))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _persist(self, record: Base, channel_id: str, description: str) -> None:
        try:
            async with self._session_factory() as db:
                db.add(record)
                await db.commit()
        except Exception:
            logger.exception("Failed to persist %s for channel %s", description, channel_id)

    async def drain(self) -> None:
        """Wait until every write scheduled so far has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    # -----------------------------------------------------------------------
    # Writes (fire-and-forget)
    # -----------------------------------------------------------------------

    def log_user_message(
        self,
        channel_id: str,
        sender_name: str,
        sender_id: str,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        if metadata is not None:
            try:
                json.dumps(metadata)
            except (TypeError, ValueError):
                logger.warning("Dropping non-JSON metadata for channel %s", channel_id)
                metadata = None

        record = ConversationMessage(
            channel_id=channel_id,
            role=MessageRole.user.value,
            sender_name=sender_name,
            sender_id=sender_id,
            content=content,
            metadata_=metadata,
            created_at=self._next_timestamp(),
        )
        self._spawn(record, channel_id, "user message")

    def log_bot_message(self, channel_id: str, content: str) -> None:
        record = ConversationMessage(
            channel_id=channel_id,
            role=MessageRole.assistant.value,
            content=content,
            created_at=self._next_timestamp(),
        )
        self._spawn(record, channel_id, "bot message")

    def save_compaction_summary(self, channel_id: str, summary: str, turns_covered: int) -> None:
        record = CompactionSummary(
            channel_id=channel_id,
            summary=summary,
            turns_covered=turns_covered,
            created_at=self._next_timestamp(),
        )
        self._spawn(record, channel_id, "compaction summary")

    def archive_transcript(self, channel_id: str, transcript_json: str) -> None:
        """Archive a raw transcript before it is compacted away."""
        record = ConversationArchive(
            channel_id=channel_id,
            transcript=transcript_json,
            created_at=self._next_timestamp(),
        )
        self._spawn(record, channel_id, "transcript archive")

    # -----------------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------------

    async def load_recent(
        self, channel_id: str, limit: int | None = None
    ) -> list[ConversationMessageDTO]:
        """Return the most recent N messages for a channel, ordered oldest first."""
        if limit is None:
            limit = settings.history_limit
        try:
            async with self._session_factory() as db:
                result = await db.execute(
                    select(ConversationMessage)
                    .where(ConversationMessage.channel_id == channel_id)
                    .order_by(ConversationMessage.created_at.desc())
                    .limit(limit)
                )
                messages = result.scalars().all()
        except SQLAlchemyError as exc:
            raise ConversationStoreError(
                f"Failed to load messages for channel {channel_id}"
            ) from exc
        # Reverse so oldest is first in the returned list.
        return [ConversationMessageDTO.model_validate(m) for m in reversed(messages)]

    async def load_compaction_summaries(self, channel_id: str) -> list[CompactionSummaryDTO]:
        """Return all compaction summaries for a channel, oldest first."""
        try:
            async with self._session_factory() as db:
                result = await db.execute(
                    select(CompactionSummary)
                    .where(CompactionSummary.channel_id == channel_id)
                    .order_by(CompactionSummary.created_at.asc())
                )
                summaries = result.scalars().all()
        except SQLAlchemyError as exc:
            raise ConversationStoreError(
                f"Failed to load compaction summaries for channel {channel_id}"
            ) from exc
        return [CompactionSummaryDTO.model_validate(s) for s in summaries]
