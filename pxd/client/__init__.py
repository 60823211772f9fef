"""Client side of pxd: HTTP client, local cache mirror, and CLI."""

from pxd.client.api import (
    BadRequestError,
    ForbiddenError,
    NotFoundError,
    PxdClient,
    PxdClientError,
    PxdNetworkError,
    PxdTimeoutError,
    ServerError,
    UnauthorizedError,
)
from pxd.client.cache import PxdService, ReadResult, TagCache
from pxd.client.state import FileState, LocalState, MemoryState

__all__ = [
    "BadRequestError",
    "FileState",
    "ForbiddenError",
    "LocalState",
    "MemoryState",
    "NotFoundError",
    "PxdClient",
    "PxdClientError",
    "PxdNetworkError",
    "PxdService",
    "PxdTimeoutError",
    "ReadResult",
    "ServerError",
    "TagCache",
    "UnauthorizedError",
]
