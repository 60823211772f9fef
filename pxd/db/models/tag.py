"""Tag model: the record a generated id identifies."""

from __future__ import annotations

import json
import time
from typing import TYPE_CHECKING, Any

from sqlalchemy import BigInteger, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pxd.db.base import Base

if TYPE_CHECKING:
    from pxd.db.models.link import Link


def now_ms() -> int:
    """Current time in milliseconds since the epoch."""
    return int(time.time() * 1000)


class Tag(Base):
    """A named record with freeform metadata and typed links."""

    __tablename__ = "tags"

    # Primary key (px + 7 symbols), assigned by the allocator
    id: Mapped[str] = mapped_column(String(9), primary_key=True)

    # Tag data
    name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    meta_json: Mapped[str | None] = mapped_column(
        "meta", Text, nullable=True
    )  # JSON object stored as text

    # Timestamps (ms since epoch)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    # Relationships
    links: Mapped[list[Link]] = relationship(
        "Link",
        back_populates="tag",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Link.id",
    )

    __table_args__ = (
        Index("idx_tags_name", "name"),
        Index("idx_tags_updated_at", "updated_at"),
    )

    @property
    def meta(self) -> dict[str, Any]:
        """Decoded metadata mapping (empty when unset)."""
        if not self.meta_json:
            return {}
        decoded = json.loads(self.meta_json)
        return decoded if isinstance(decoded, dict) else {}

    @meta.setter
    def meta(self, value: dict[str, Any] | None) -> None:
        self.meta_json = json.dumps(value or {})

    def __repr__(self) -> str:
        return f"<Tag {self.id} {self.name!r}>"
