"""Business logic services for pxd."""

from pxd.services.ids import generate_id, is_valid_id
from pxd.services.tag import (
    Allocation,
    IdSpaceExhaustedError,
    TagError,
    TagNotFoundError,
    TagService,
)

__all__ = [
    "Allocation",
    "IdSpaceExhaustedError",
    "TagError",
    "TagNotFoundError",
    "TagService",
    "generate_id",
    "is_valid_id",
]
