"""Search and listing endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pxd.api.auth import require_agent
from pxd.db import get_db
from pxd.schemas.tag import TagSearchResult, TagSummary
from pxd.services.tag import TagService

router = APIRouter(tags=["search"], dependencies=[Depends(require_agent)])


@router.get("/search", response_model=list[TagSearchResult])
async def search_tags(
    q: str = Query("", description="Case-insensitive substring of the name"),
    db: AsyncSession = Depends(get_db),
) -> list[TagSearchResult]:
    """Search tags by name, most recently updated first (max 50)."""
    service = TagService(db)
    tags = await service.search(q)
    return [TagSearchResult.model_validate(tag) for tag in tags]


@router.get("/list", response_model=list[TagSummary])
async def list_tags(
    db: AsyncSession = Depends(get_db),
) -> list[TagSummary]:
    """List tags without meta or links, most recently updated first (max 100)."""
    service = TagService(db)
    tags = await service.list_tags()
    return [TagSummary(**t) for t in tags]
