"""Identifier generation: px + 7 symbols from an unambiguous alphabet."""

from __future__ import annotations

import re
import secrets

# Excludes 0, 1, l and o
ALPHABET = "abcdefghijkmnpqrstuvwxyz23456789"
PREFIX = "px"
BODY_LENGTH = 7
ID_LENGTH = len(PREFIX) + BODY_LENGTH

ID_PATTERN = re.compile(rf"{PREFIX}[{ALPHABET}]{{{BODY_LENGTH}}}")


def generate_id() -> str:
    """Draw a candidate identifier.

    Characters are sampled independently and uniformly with replacement.
    Uniqueness is the store's job, not the generator's.
    """
    return PREFIX + "".join(secrets.choice(ALPHABET) for _ in range(BODY_LENGTH))


def is_valid_id(value: str) -> bool:
    """Check that a string has the exact identifier format."""
    return bool(ID_PATTERN.fullmatch(value))
