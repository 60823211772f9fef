"""Create tags and links tables.

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "a1b2c3d4e5f6"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    """Create tags and links."""
    op.create_table(
        "tags",
        sa.Column("id", sa.String(9), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("meta", sa.Text(), nullable=True),
        sa.Column("created_at", sa.BigInteger(), nullable=False),
        sa.Column("updated_at", sa.BigInteger(), nullable=False),
    )
    op.create_index("idx_tags_name", "tags", ["name"])
    op.create_index("idx_tags_updated_at", "tags", ["updated_at"])

    op.create_table(
        "links",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "tag_id",
            sa.String(9),
            sa.ForeignKey("tags.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("type", sa.String(64), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("created_at", sa.BigInteger(), nullable=False),
    )
    op.create_index("idx_links_tag_id", "links", ["tag_id"])


def downgrade() -> None:
    """Drop links and tags."""
    op.drop_index("idx_links_tag_id", table_name="links")
    op.drop_table("links")
    op.drop_index("idx_tags_updated_at", table_name="tags")
    op.drop_index("idx_tags_name", table_name="tags")
    op.drop_table("tags")
