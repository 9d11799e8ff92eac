"""Create episodes table.

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op  # type: ignore[attr-defined]
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261019_000001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "episodes",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("podcast_name", sa.String(), nullable=False),
        sa.Column("podcast_host", sa.String(), nullable=True),
        sa.Column("podcast_category", postgresql.ARRAY(sa.String()), nullable=True),
        sa.Column("podcast_artwork_url", sa.String(), nullable=True),
        sa.Column("episode_title", sa.String(), nullable=False),
        sa.Column("episode_number", sa.Integer(), nullable=True),
        sa.Column("episode_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("episode_duration_minutes", sa.Integer(), nullable=True),
        sa.Column("guest_name", sa.String(), nullable=True),
        sa.Column("guest_title", sa.String(), nullable=True),
        sa.Column("guest_bio", sa.Text(), nullable=True),
        sa.Column("guest_avatar_url", sa.String(), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("key_takeaways", postgresql.ARRAY(sa.Text()), nullable=True),
        sa.Column("full_notes", sa.Text(), nullable=True),
        sa.Column("resources_mentioned", postgresql.JSONB(), nullable=True),
        sa.Column("tags", postgresql.ARRAY(sa.String()), nullable=True),
        sa.Column("read_time_minutes", sa.Integer(), nullable=True),
        sa.Column("view_count", sa.Integer(), nullable=True, server_default=sa.text("0")),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_episodes_published_at", "episodes", ["published_at"])
    # Category filter uses array containment (@>)
    op.create_index(
        "ix_episodes_podcast_category",
        "episodes",
        ["podcast_category"],
        postgresql_using="gin",
    )


def downgrade() -> None:
    op.drop_index("ix_episodes_podcast_category", table_name="episodes")
    op.drop_index("ix_episodes_published_at", table_name="episodes")
    op.drop_table("episodes")
