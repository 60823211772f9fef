"""Tag service: id allocation and the tag/link record store."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from sqlalchemy import delete, func, literal, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pxd.core.logging import get_logger
from pxd.db.models import Link, Tag, now_ms
from pxd.services.ids import generate_id

logger = get_logger(__name__)

# Candidate draws per allocation before giving up
MAX_ALLOCATION_ATTEMPTS = 10

# LIKE escape character for literal % and _ in queries
LIKE_ESCAPE = "/"

# Result caps
SEARCH_LIMIT = 50
LIST_LIMIT = 100


class TagError(Exception):
    """Base exception for tag store errors."""

    pass


class TagNotFoundError(TagError):
    """Raised when a tag id does not exist."""

    def __init__(self, tag_id: str):
        super().__init__(f"Tag {tag_id} not found")
        self.tag_id = tag_id


class IdSpaceExhaustedError(TagError):
    """Raised when no free id was found within the attempt budget."""

    def __init__(self, attempts: int):
        super().__init__(f"Failed to generate unique ID after {attempts} attempts")
        self.attempts = attempts


@dataclass
class Allocation:
    """A freshly allocated tag and the number of draws it took."""

    tag: Tag
    attempts: int


class TagService:
    """Service for allocating tags and managing their links.

    Every method works inside the caller's session; committing is left to
    the caller (the request dependency commits on success).
    """

    def __init__(
        self,
        db: AsyncSession,
        id_factory: Callable[[], str] | None = None,
    ):
        """Initialize the tag service.

        Args:
            db: The database session.
            id_factory: Source of candidate ids (defaults to generate_id).
        """
        self.db = db
        self._id_factory = id_factory

    def _draw(self) -> str:
        return self._id_factory() if self._id_factory else generate_id()

    # =========================================================================
    # Tags
    # =========================================================================

    async def allocate(
        self,
        name: str,
        meta: dict[str, Any] | None = None,
    ) -> Allocation:
        """Create a tag under a newly generated id.

        Draws candidates until one is free, at most MAX_ALLOCATION_ATTEMPTS
        times. A primary key violation on insert (another writer took the
        same id first) counts as a failed draw.

        Args:
            name: Human label.
            meta: Optional metadata mapping.

        Returns:
            The allocation with the new tag and the draw count.

        Raises:
            IdSpaceExhaustedError: If every draw collided.
        """
        attempts = 0
        while attempts < MAX_ALLOCATION_ATTEMPTS:
            attempts += 1
            candidate = self._draw()

            if await self.exists(candidate):
                logger.warning(
                    "allocation_collision",
                    candidate=candidate,
                    attempt=attempts,
                )
                continue

            now = now_ms()
            tag = Tag(
                id=candidate,
                name=name,
                created_at=now,
                updated_at=now,
                links=[],
            )
            tag.meta = meta
            self.db.add(tag)

            try:
                await self.db.flush()
            except IntegrityError:
                await self.db.rollback()
                logger.warning(
                    "allocation_insert_conflict",
                    candidate=candidate,
                    attempt=attempts,
                )
                continue

            logger.info("tag_allocated", tag_id=candidate, attempts=attempts)
            return Allocation(tag=tag, attempts=attempts)

        logger.error("id_space_exhausted", attempts=attempts)
        raise IdSpaceExhaustedError(attempts)

    async def exists(self, tag_id: str) -> bool:
        """Check whether a tag id is taken."""
        result = await self.db.execute(select(Tag.id).where(Tag.id == tag_id))
        return result.scalar_one_or_none() is not None

    async def get(self, tag_id: str) -> Tag:
        """Get a tag with its links.

        Raises:
            TagNotFoundError: If the tag does not exist.
        """
        result = await self.db.execute(
            select(Tag)
            .options(selectinload(Tag.links))
            .where(Tag.id == tag_id)
            .execution_options(populate_existing=True)
        )
        tag = result.scalar_one_or_none()
        if tag is None:
            raise TagNotFoundError(tag_id)
        return tag

    async def update(
        self,
        tag_id: str,
        name: str | None = None,
        meta: dict[str, Any] | None = None,
    ) -> Tag:
        """Apply a partial update; updated_at always advances.

        Args:
            tag_id: The tag to update.
            name: New name, or None to keep the current one.
            meta: Replacement metadata, or None to keep the current one.

        Raises:
            TagNotFoundError: If the tag does not exist.
        """
        tag = await self.db.get(Tag, tag_id)
        if tag is None:
            raise TagNotFoundError(tag_id)

        if name is not None:
            tag.name = name
        if meta is not None:
            tag.meta = meta
        tag.updated_at = max(now_ms(), tag.updated_at)

        await self.db.flush()

        logger.info(
            "tag_updated",
            tag_id=tag_id,
            name_changed=name is not None,
            meta_changed=meta is not None,
        )
        return tag

    async def delete(self, tag_id: str) -> bool:
        """Delete a tag and its links.

        Both statements run in the session's transaction, so a failure
        leaves neither applied. Deleting an absent id is not an error.

        Returns:
            True if a tag was removed.
        """
        link_result = await self.db.execute(delete(Link).where(Link.tag_id == tag_id))
        tag_result = await self.db.execute(delete(Tag).where(Tag.id == tag_id))
        await self.db.flush()

        removed = (tag_result.rowcount or 0) > 0
        if removed:
            logger.info(
                "tag_deleted",
                tag_id=tag_id,
                links_removed=link_result.rowcount or 0,
            )
        return removed

    # =========================================================================
    # Links
    # =========================================================================

    async def add_link(self, tag_id: str, link_type: str, url: str) -> Link:
        """Attach a link to a tag.

        Does not touch the tag's updated_at.

        Raises:
            TagNotFoundError: If the tag does not exist.
        """
        if not await self.exists(tag_id):
            raise TagNotFoundError(tag_id)

        link = Link(tag_id=tag_id, type=link_type, url=url, created_at=now_ms())
        self.db.add(link)
        await self.db.flush()

        logger.debug("link_added", tag_id=tag_id, link_type=link_type)
        return link

    async def remove_link(self, tag_id: str, link_type: str) -> int:
        """Remove every link of a type from a tag.

        Returns:
            Number of links removed (0 is not an error).
        """
        result = await self.db.execute(
            delete(Link).where(Link.tag_id == tag_id, Link.type == link_type)
        )
        await self.db.flush()

        removed = result.rowcount or 0
        logger.debug("links_removed", tag_id=tag_id, link_type=link_type, count=removed)
        return removed

    # =========================================================================
    # Queries
    # =========================================================================

    async def search(self, query: str) -> list[Tag]:
        """Case-insensitive substring search on tag names.

        Most recently updated first, capped at SEARCH_LIMIT. Links are not
        loaded.
        """
        escaped = (
            query.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
            .replace("%", f"{LIKE_ESCAPE}%")
            .replace("_", f"{LIKE_ESCAPE}_")
        )
        # Both sides go through the database's lower() so they fold alike
        pattern = func.lower(literal(f"%{escaped}%"))
        result = await self.db.execute(
            select(Tag)
            .where(func.lower(Tag.name).like(pattern, escape=LIKE_ESCAPE))
            .order_by(Tag.updated_at.desc(), Tag.id.asc())
            .limit(SEARCH_LIMIT)
        )
        return list(result.scalars().all())

    async def list_tags(self) -> list[dict[str, Any]]:
        """Lightweight listing without meta or links.

        Returns:
            Up to LIST_LIMIT tag dictionaries, most recently updated first.
        """
        result = await self.db.execute(
            select(Tag.id, Tag.name, Tag.created_at, Tag.updated_at)
            .order_by(Tag.updated_at.desc(), Tag.id.asc())
            .limit(LIST_LIMIT)
        )
        return [
            {
                "id": row.id,
                "name": row.name,
                "created_at": row.created_at,
                "updated_at": row.updated_at,
            }
            for row in result.all()
        ]
