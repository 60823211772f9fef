"""Link model for typed pointers from a tag to external resources."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pxd.db.base import Base

if TYPE_CHECKING:
    from pxd.db.models.tag import Tag


class Link(Base):
    """Associates a Tag with an external URL (github, obsidian, ...)."""

    __tablename__ = "links"

    # Primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Owning tag
    tag_id: Mapped[str] = mapped_column(
        String(9), ForeignKey("tags.id", ondelete="CASCADE"), nullable=False
    )

    # Link data (type is not unique per tag)
    type: Mapped[str] = mapped_column(String(64), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)

    # Timestamps (ms since epoch)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    # Relationships
    tag: Mapped[Tag] = relationship("Tag", back_populates="links")

    __table_args__ = (
        Index("idx_links_tag_id", "tag_id"),
    )
