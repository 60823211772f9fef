"""Local client state: configuration, active-project pointer, cache mirror.

The CLI never touches these files directly; it goes through a LocalState,
so tests and embedders can swap in MemoryState.
"""

from __future__ import annotations

import copy
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

CONFIG_FILE = "config.json"
ACTIVE_FILE = "active"
CACHE_FILE = "cache.json"


@runtime_checkable
class LocalState(Protocol):
    """Load/save interface for everything the client persists."""

    def load_config(self) -> dict[str, Any] | None: ...

    def save_config(self, config: dict[str, Any]) -> None: ...

    def load_active(self) -> str | None: ...

    def save_active(self, tag_id: str | None) -> None: ...

    def load_cache(self) -> dict[str, dict[str, Any]]: ...

    def save_cache(self, cache: dict[str, dict[str, Any]]) -> None: ...


def get_pxd_home() -> Path:
    """Get the client state directory (~/.pxd or PXD_HOME)."""
    if env_home := os.environ.get("PXD_HOME"):
        return Path(env_home)
    return Path.home() / ".pxd"


def _atomic_write(path: Path, text: str) -> None:
    """Write via a temp file in the same directory, then rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class FileState:
    """LocalState backed by a directory of small files."""

    def __init__(self, home: Path | None = None):
        self.home = home or get_pxd_home()

    @property
    def config_path(self) -> Path:
        return self.home / CONFIG_FILE

    @property
    def active_path(self) -> Path:
        return self.home / ACTIVE_FILE

    @property
    def cache_path(self) -> Path:
        return self.home / CACHE_FILE

    def load_config(self) -> dict[str, Any] | None:
        if not self.config_path.exists():
            return None
        return json.loads(self.config_path.read_text(encoding="utf-8"))

    def save_config(self, config: dict[str, Any]) -> None:
        _atomic_write(self.config_path, json.dumps(config, indent=2) + "\n")

    def load_active(self) -> str | None:
        if not self.active_path.exists():
            return None
        return self.active_path.read_text(encoding="utf-8").strip() or None

    def save_active(self, tag_id: str | None) -> None:
        if tag_id is None:
            self.active_path.unlink(missing_ok=True)
            return
        _atomic_write(self.active_path, tag_id)

    def load_cache(self) -> dict[str, dict[str, Any]]:
        if not self.cache_path.exists():
            return {}
        try:
            data = json.loads(self.cache_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            # A torn or hand-edited mirror is rebuilt by the next list/sync
            return {}
        return data if isinstance(data, dict) else {}

    def save_cache(self, cache: dict[str, dict[str, Any]]) -> None:
        _atomic_write(self.cache_path, json.dumps(cache, indent=2))


class MemoryState:
    """In-memory LocalState for tests and embedding."""

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        active: str | None = None,
        cache: dict[str, dict[str, Any]] | None = None,
    ):
        self._config = copy.deepcopy(config)
        self._active = active
        self._cache = copy.deepcopy(cache or {})

    def load_config(self) -> dict[str, Any] | None:
        return copy.deepcopy(self._config)

    def save_config(self, config: dict[str, Any]) -> None:
        self._config = copy.deepcopy(config)

    def load_active(self) -> str | None:
        return self._active

    def save_active(self, tag_id: str | None) -> None:
        self._active = tag_id

    def load_cache(self) -> dict[str, dict[str, Any]]:
        return copy.deepcopy(self._cache)

    def save_cache(self, cache: dict[str, dict[str, Any]]) -> None:
        self._cache = copy.deepcopy(cache)
