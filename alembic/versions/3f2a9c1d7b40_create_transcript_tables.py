"""create transcript tables

Revision ID: 3f2a9c1d7b40
Revises:
Create Date: 2026-09-28 09:12:31.402117

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "3f2a9c1d7b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


TRANSCRIPT_STATUSES = ("processing", "full", "partial", "not_found", "no_match", "error")


def upgrade() -> None:
    """
    Create the show/episode tables read by the transcript worker and the
    ``transcripts`` table it owns.

    ``podcast_shows`` and ``podcast_episodes`` are filled by the feed sync;
    they are created here only if missing so local databases work.
    """
    bind = op.get_bind()
    existing = sa.inspect(bind).get_table_names()

    if "podcast_shows" not in existing:
        op.create_table(
            "podcast_shows",
            sa.Column("id", sa.String(), nullable=False),
            sa.Column("title", sa.String(), nullable=True),
            sa.Column("rss_url", sa.String(), nullable=True),
            sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )

    if "podcast_episodes" not in existing:
        op.create_table(
            "podcast_episodes",
            sa.Column("id", sa.String(), nullable=False),
            sa.Column("show_id", sa.String(), nullable=False),
            sa.Column("guid", sa.String(), nullable=True),
            sa.Column("title", sa.String(), nullable=True),
            sa.Column("episode_url", sa.String(), nullable=True),
            sa.Column("pub_date", sa.DateTime(), nullable=True),
            sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
            sa.ForeignKeyConstraint(["show_id"], ["podcast_shows.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(
            "ix_podcast_episodes_pub_date", "podcast_episodes", ["pub_date"], unique=False
        )

    op.create_table(
        "transcripts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("episode_id", sa.String(), nullable=False),
        sa.Column(
            "status",
            sa.Enum(*TRANSCRIPT_STATUSES, name="transcript_status"),
            nullable=False,
        ),
        sa.Column("storage_path", sa.String(), nullable=True),
        sa.Column("word_count", sa.Integer(), nullable=True),
        sa.Column("source", sa.String(), nullable=True),
        sa.Column("error_details", sa.Text(), nullable=True),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["episode_id"], ["podcast_episodes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("episode_id"),
    )
    op.create_index("ix_transcripts_status", "transcripts", ["status"], unique=False)


def downgrade() -> None:
    """Drop the ``transcripts`` table. Show and episode tables belong to the feed sync."""
    op.drop_index("ix_transcripts_status", table_name="transcripts")
    op.drop_table("transcripts")
    sa.Enum(name="transcript_status").drop(op.get_bind(), checkfirst=True)
