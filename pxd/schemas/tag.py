"""Pydantic schemas for the tag API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


# =============================================================================
# Requests
# =============================================================================


class TagCreate(BaseModel):
    """Request to allocate a new tag."""

    name: str = Field(..., min_length=1, description="Human label")
    meta: dict[str, Any] | None = Field(
        default=None,
        description="Freeform metadata (defaults to an empty object)",
    )


class TagUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    name: str | None = None
    meta: dict[str, Any] | None = Field(
        default=None,
        description="Replacement metadata (replaces, never merges)",
    )


class LinkCreate(BaseModel):
    """Request to attach a link to a tag."""

    type: str = Field(..., min_length=1, max_length=64)
    url: str = Field(..., min_length=1)


# =============================================================================
# Responses
# =============================================================================


class OkResponse(BaseModel):
    """Minimal acknowledgment."""

    ok: bool = True


class LinkResponse(BaseModel):
    """A link as exposed on single-tag fetch."""

    model_config = {"from_attributes": True}

    type: str
    url: str


class TagCreated(BaseModel):
    """Response after allocating a tag."""

    model_config = {"from_attributes": True}

    id: str
    name: str
    meta: dict[str, Any]
    created_at: int


class TagSearchResult(BaseModel):
    """A tag in search results (no links)."""

    model_config = {"from_attributes": True}

    id: str
    name: str
    meta: dict[str, Any]
    created_at: int
    updated_at: int


class TagDetail(TagSearchResult):
    """A tag with its links."""

    links: list[LinkResponse]


class TagSummary(BaseModel):
    """A tag in the lightweight listing (no meta, no links)."""

    id: str
    name: str
    created_at: int
    updated_at: int
