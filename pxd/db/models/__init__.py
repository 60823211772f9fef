"""Database models for pxd."""

from pxd.db.models.link import Link
from pxd.db.models.tag import Tag, now_ms

__all__ = [
    "Link",
    "Tag",
    "now_ms",
]
