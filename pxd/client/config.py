"""Client configuration record.

Stored as config.json in the state directory; written with defaults on
first load. Environment variables take precedence over the file:
- PXD_KEY: credential (beats admin_key and agent_key)
- PXD_API_URL: service base URL
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field

from pxd.client.state import LocalState

DEFAULT_API_URL = "http://127.0.0.1:8787"


class ClientConfig(BaseModel):
    """Persisted client settings."""

    api_url: str = Field(default=DEFAULT_API_URL, description="Base URL of the pxd service")
    admin_key: str | None = None
    agent_key: str | None = None


def load_client_config(
    state: LocalState,
    environ: Mapping[str, str] | None = None,
) -> ClientConfig:
    """Load the client config, creating the default file when missing."""
    environ = os.environ if environ is None else environ

    raw = state.load_config()
    if raw is None:
        config = ClientConfig()
        state.save_config(config.model_dump(exclude_none=True))
    else:
        config = ClientConfig.model_validate(raw)

    if api_url := environ.get("PXD_API_URL"):
        config = config.model_copy(update={"api_url": api_url})
    return config


def resolve_key(config: ClientConfig, environ: Mapping[str, str] | None = None) -> str | None:
    """Pick the credential to send: PXD_KEY, then admin_key, then agent_key."""
    environ = os.environ if environ is None else environ
    return environ.get("PXD_KEY") or config.admin_key or config.agent_key or None
