"""Tag API endpoints: allocate, fetch, update, delete, and links."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from pxd.api.auth import require_admin, require_agent
from pxd.core.logging import get_logger
from pxd.db import get_db
from pxd.schemas.tag import (
    LinkCreate,
    OkResponse,
    TagCreate,
    TagCreated,
    TagDetail,
    TagUpdate,
)
from pxd.services.tag import IdSpaceExhaustedError, TagNotFoundError, TagService

logger = get_logger(__name__)

router = APIRouter(prefix="/id", tags=["tags"])


# =============================================================================
# Tag Endpoints
# =============================================================================


@router.post(
    "",
    response_model=TagCreated,
    status_code=201,
    dependencies=[Depends(require_agent)],
)
async def create_tag(
    request: TagCreate,
    db: AsyncSession = Depends(get_db),
) -> TagCreated:
    """Allocate a new id and store a tag under it."""
    service = TagService(db)

    try:
        allocation = await service.allocate(request.name, request.meta)
    except IdSpaceExhaustedError:
        raise HTTPException(status_code=500, detail="Failed to generate unique ID")

    await db.commit()

    tag = allocation.tag
    return TagCreated(
        id=tag.id,
        name=tag.name,
        meta=tag.meta,
        created_at=tag.created_at,
    )


@router.get(
    "/{tag_id}",
    response_model=TagDetail,
    dependencies=[Depends(require_agent)],
)
async def get_tag(
    tag_id: str,
    db: AsyncSession = Depends(get_db),
) -> TagDetail:
    """Get a tag with its links."""
    service = TagService(db)

    try:
        tag = await service.get(tag_id)
    except TagNotFoundError:
        raise HTTPException(status_code=404, detail="Not found")

    return TagDetail.model_validate(tag)


@router.put(
    "/{tag_id}",
    response_model=OkResponse,
    dependencies=[Depends(require_admin)],
)
async def update_tag(
    tag_id: str,
    request: TagUpdate,
    db: AsyncSession = Depends(get_db),
) -> OkResponse:
    """Update a tag's name and/or metadata (admin only)."""
    service = TagService(db)

    try:
        await service.update(tag_id, name=request.name, meta=request.meta)
    except TagNotFoundError:
        raise HTTPException(status_code=404, detail="Not found")

    await db.commit()
    return OkResponse()


@router.delete(
    "/{tag_id}",
    response_model=OkResponse,
    dependencies=[Depends(require_admin)],
)
async def delete_tag(
    tag_id: str,
    db: AsyncSession = Depends(get_db),
) -> OkResponse:
    """Delete a tag and its links (admin only).

    Succeeds whether or not the tag existed.
    """
    service = TagService(db)
    removed = await service.delete(tag_id)
    await db.commit()

    if not removed:
        logger.debug("delete_missing_tag", tag_id=tag_id)

    return OkResponse()


# =============================================================================
# Link Endpoints
# =============================================================================


@router.post(
    "/{tag_id}/link",
    response_model=OkResponse,
    status_code=201,
    dependencies=[Depends(require_agent)],
)
async def add_link(
    tag_id: str,
    request: LinkCreate,
    db: AsyncSession = Depends(get_db),
) -> OkResponse:
    """Attach a typed link to a tag."""
    service = TagService(db)

    try:
        await service.add_link(tag_id, request.type, request.url)
    except TagNotFoundError:
        raise HTTPException(status_code=404, detail="Tag not found")

    await db.commit()
    return OkResponse()


@router.delete(
    "/{tag_id}/link/{link_type}",
    response_model=OkResponse,
    dependencies=[Depends(require_admin)],
)
async def remove_link(
    tag_id: str,
    link_type: str,
    db: AsyncSession = Depends(get_db),
) -> OkResponse:
    """Remove all links of a type from a tag (admin only)."""
    service = TagService(db)
    removed = await service.remove_link(tag_id, link_type)
    await db.commit()

    logger.info("links_removed_from_tag", tag_id=tag_id, link_type=link_type, count=removed)

    return OkResponse()
