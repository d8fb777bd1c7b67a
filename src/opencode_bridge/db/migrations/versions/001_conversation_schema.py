"""001_conversation_schema

Create the conversation_messages, compaction_summaries and
conversation_archives tables with their indexes.

Revision ID: 001
Revises:
Create Date: 2026-02-11

"""

from alembic import op
import sqlalchemy as sa

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "conversation_messages",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("channel_id", sa.Text, nullable=False),
        sa.Column("role", sa.String(16), nullable=False),
        sa.Column("sender_name", sa.Text, nullable=True),
        sa.Column("sender_id", sa.Text, nullable=True),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("metadata", sa.JSON, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "ix_conversation_messages_channel_id_created_at",
        "conversation_messages",
        ["channel_id", "created_at"],
    )

    # Summaries stack at the top of a channel's context, oldest first.
    op.create_table(
        "compaction_summaries",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("channel_id", sa.Text, nullable=False),
        sa.Column("summary", sa.Text, nullable=False),
        sa.Column("turns_covered", sa.Integer, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "ix_compaction_summaries_channel_id", "compaction_summaries", ["channel_id"]
    )
    op.create_index(
        "ix_compaction_summaries_channel_id_created_at",
        "compaction_summaries",
        ["channel_id", "created_at"],
    )

    op.create_table(
        "conversation_archives",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("channel_id", sa.Text, nullable=False),
        sa.Column("transcript", sa.Text, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "ix_conversation_archives_channel_id", "conversation_archives", ["channel_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_conversation_archives_channel_id", table_name="conversation_archives")
    op.drop_table("conversation_archives")
    op.drop_index(
        "ix_compaction_summaries_channel_id_created_at", table_name="compaction_summaries"
    )
    op.drop_index("ix_compaction_summaries_channel_id", table_name="compaction_summaries")
    op.drop_table("compaction_summaries")
    op.drop_index(
        "ix_conversation_messages_channel_id_created_at", table_name="conversation_messages"
    )
    op.drop_table("conversation_messages")
