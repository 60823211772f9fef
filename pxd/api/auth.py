"""Shared-secret role check for the record service."""

from __future__ import annotations

import enum
import secrets
from collections.abc import Callable

from fastapi import Header, HTTPException

from pxd.core.config import settings

AUTH_HEADER = "X-PXD-Key"


class Role(str, enum.Enum):
    """Authorization level derived from a presented credential."""

    NONE = "none"
    AGENT = "agent"
    ADMIN = "admin"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    def allows(self, minimum: Role) -> bool:
        """Check whether this role meets a minimum role."""
        return self.rank >= minimum.rank


_RANKS = {Role.NONE: 0, Role.AGENT: 1, Role.ADMIN: 2}


def _matches(credential: str, secret: str | None) -> bool:
    if not secret:
        return False
    return secrets.compare_digest(credential.encode(), secret.encode())


def resolve_role(
    credential: str | None,
    admin_key: str | None,
    agent_key: str | None,
) -> Role:
    """Map a credential to a role.

    The admin secret is checked first, so identical secrets resolve to
    admin. Unconfigured secrets never match.
    """
    if not credential:
        return Role.NONE
    if _matches(credential, admin_key):
        return Role.ADMIN
    if _matches(credential, agent_key):
        return Role.AGENT
    return Role.NONE


def require_role(minimum: Role) -> Callable:
    """Build a dependency that rejects requests below a minimum role.

    A request whose credential resolves to no role gets 401; a valid
    credential with too little privilege gets 403.
    """

    async def dependency(
        x_pxd_key: str | None = Header(None, alias=AUTH_HEADER),
    ) -> Role:
        role = resolve_role(x_pxd_key, settings.admin_key, settings.agent_key)
        if role.allows(minimum):
            return role
        if role is Role.NONE:
            raise HTTPException(status_code=401, detail="Unauthorized")
        raise HTTPException(status_code=403, detail=f"{minimum.value.capitalize()} required")

    return dependency


require_agent = require_role(Role.AGENT)
require_admin = require_role(Role.ADMIN)
