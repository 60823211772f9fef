"""Client-side cache mirror and the cache-aware service facade.

Policy summary:
- create/get/link success writes the tag into the mirror
- list and sync replace the whole mirror (the only eviction path for
  tags deleted elsewhere)
- search returns the server's answer when reachable, else the local scan
- update/delete/unlink run remotely first; the mirror changes only after
  the server accepted them
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pxd.client.api import NotFoundError, PxdClient, PxdNetworkError
from pxd.client.state import LocalState
from pxd.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# Mirrors the server's caps so offline answers have the same shape
LOCAL_SEARCH_LIMIT = 50
LOCAL_LIST_LIMIT = 100


def _recency_key(record: dict[str, Any]) -> tuple[int, str]:
    return (-int(record.get("updated_at") or 0), record.get("id", ""))


class TagCache:
    """Mapping of tag id to last-known tag record, persisted via LocalState.

    No TTL and no size bound.
    """

    def __init__(self, state: LocalState):
        self._state = state

    def _load(self) -> dict[str, dict[str, Any]]:
        return self._state.load_cache()

    def get(self, tag_id: str) -> dict[str, Any] | None:
        return self._load().get(tag_id)

    def all(self) -> list[dict[str, Any]]:
        """All cached records, most recently updated first."""
        return sorted(self._load().values(), key=_recency_key)

    def put(self, record: dict[str, Any]) -> None:
        """Overwrite the entry for record["id"]."""
        cache = self._load()
        cache[record["id"]] = dict(record)
        self._state.save_cache(cache)

    def merge(self, record: dict[str, Any]) -> dict[str, Any]:
        """Overlay record's fields on the cached entry.

        Fields the record lacks (links, on search results) are kept.
        """
        cache = self._load()
        merged = {**cache.get(record["id"], {}), **record}
        cache[record["id"]] = merged
        self._state.save_cache(cache)
        return merged

    def remove(self, tag_id: str) -> None:
        cache = self._load()
        if cache.pop(tag_id, None) is not None:
            self._state.save_cache(cache)

    def replace_all(self, records: list[dict[str, Any]]) -> None:
        """Discard the mirror and rebuild it from records."""
        self._state.save_cache({record["id"]: dict(record) for record in records})

    def search_local(self, query: str) -> list[dict[str, Any]]:
        """Case-insensitive substring scan of cached names."""
        needle = query.lower()
        hits = [
            record
            for record in self._load().values()
            if needle in (record.get("name") or "").lower()
        ]
        return sorted(hits, key=_recency_key)[:LOCAL_SEARCH_LIMIT]


@dataclass
class ReadResult(Generic[T]):
    """A read answer and whether it came from the mirror after a network failure."""

    value: T
    stale: bool = False


class PxdService:
    """Record operations with the local mirror in front of the remote API."""

    def __init__(self, client: PxdClient, state: LocalState):
        self.client = client
        self.state = state
        self.cache = TagCache(state)

    # =========================================================================
    # Writes (always remote first; failures propagate)
    # =========================================================================

    def create(self, name: str, meta: dict[str, Any] | None = None) -> dict[str, Any]:
        """Allocate a tag and mirror it."""
        created = self.client.create(name, meta)
        record = {
            **created,
            "updated_at": created["created_at"],
            "links": [],
        }
        self.cache.put(record)
        logger.debug("cache_put", tag_id=record["id"], reason="create")
        return record

    def add_link(self, tag_id: str, link_type: str, url: str) -> None:
        """Attach a link and reflect it in the mirror."""
        self.client.add_link(tag_id, link_type, url)

        cached = self.cache.get(tag_id)
        if cached is not None and "links" in cached:
            cached["links"] = [*cached["links"], {"type": link_type, "url": url}]
            self.cache.put(cached)
        else:
            self._refresh(tag_id)

    def remove_link(self, tag_id: str, link_type: str) -> None:
        """Remove all links of a type (admin)."""
        self.client.remove_link(tag_id, link_type)

        cached = self.cache.get(tag_id)
        if cached is not None and "links" in cached:
            cached["links"] = [link for link in cached["links"] if link.get("type") != link_type]
            self.cache.put(cached)

    def update(
        self,
        tag_id: str,
        name: str | None = None,
        meta: dict[str, Any] | None = None,
    ) -> None:
        """Update name/meta (admin), then refresh the mirrored copy."""
        self.client.update(tag_id, name=name, meta=meta)

        if not self._refresh(tag_id) and self.cache.get(tag_id) is not None:
            changes: dict[str, Any] = {"id": tag_id}
            if name is not None:
                changes["name"] = name
            if meta is not None:
                changes["meta"] = meta
            self.cache.merge(changes)

    def delete(self, tag_id: str) -> None:
        """Delete remotely (admin); evict locally only after success."""
        self.client.delete(tag_id)
        self.cache.remove(tag_id)
        logger.debug("cache_evict", tag_id=tag_id, reason="delete")

    # =========================================================================
    # Reads (network failures degrade to the mirror)
    # =========================================================================

    def get(self, tag_id: str, offline: bool = False) -> ReadResult[dict[str, Any]]:
        """Fetch a tag with links.

        Args:
            tag_id: The tag to fetch.
            offline: Answer from the mirror without contacting the service.

        Raises:
            NotFoundError: If the service (or, offline, the mirror) has no such tag.
            PxdNetworkError: If the service is unreachable and nothing is cached.
        """
        if offline:
            cached = self.cache.get(tag_id)
            if cached is None:
                raise NotFoundError(f"{tag_id} is not in the local cache")
            return ReadResult(cached, stale=True)

        try:
            tag = self.client.get(tag_id)
        except PxdNetworkError:
            cached = self.cache.get(tag_id)
            if cached is None:
                raise
            logger.info("serving_from_cache", tag_id=tag_id, operation="get")
            return ReadResult(cached, stale=True)

        self.cache.put(tag)
        return ReadResult(tag)

    def search(self, query: str) -> ReadResult[list[dict[str, Any]]]:
        """Search names; the server's result wins whenever it answers."""
        local = self.cache.search_local(query)

        try:
            remote = self.client.search(query)
        except PxdNetworkError:
            logger.info("serving_from_cache", operation="search", hits=len(local))
            return ReadResult(local, stale=True)

        for record in remote:
            self.cache.merge(record)
        return ReadResult(remote)

    def list_tags(self) -> ReadResult[list[dict[str, Any]]]:
        """List tags and rebuild the mirror from the listing."""
        try:
            listing = self.client.list_tags()
        except PxdNetworkError:
            logger.info("serving_from_cache", operation="list")
            return ReadResult(self.cache.all()[:LOCAL_LIST_LIMIT], stale=True)

        self.cache.replace_all(listing)
        return ReadResult(listing)

    def sync(self) -> int:
        """Rebuild the mirror from the listing, hydrating each tag in full.

        Network failures propagate: a sync is an explicit request for fresh data.

        Returns:
            Number of tags mirrored.
        """
        records = []
        for summary in self.client.list_tags():
            try:
                records.append(self.client.get(summary["id"]))
            except NotFoundError:
                # Deleted between the listing and the fetch
                continue

        self.cache.replace_all(records)
        logger.info("cache_synced", count=len(records))
        return len(records)

    def _refresh(self, tag_id: str) -> bool:
        """Best-effort re-fetch into the mirror; False if the service is unreachable.

        A tag deleted since the write is evicted rather than reported as a
        failure of the write itself.
        """
        try:
            self.cache.put(self.client.get(tag_id))
        except NotFoundError:
            self.cache.remove(tag_id)
            logger.debug("cache_evict", tag_id=tag_id, reason="gone_on_refresh")
        except PxdNetworkError:
            logger.debug("cache_refresh_skipped", tag_id=tag_id)
            return False
        return True

    # =========================================================================
    # Active project pointer
    # =========================================================================

    @property
    def active(self) -> str | None:
        return self.state.load_active()

    def set_active(self, tag_id: str | None) -> None:
        self.state.save_active(tag_id)

    def health(self) -> dict[str, Any]:
        return self.client.health()
