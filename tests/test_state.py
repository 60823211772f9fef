"""Tests for local client state and configuration."""

import json

from pxd.client.config import (
    DEFAULT_API_URL,
    ClientConfig,
    load_client_config,
    resolve_key,
)
from pxd.client.state import FileState, LocalState, MemoryState, get_pxd_home


# =============================================================================
# FileState
# =============================================================================


class TestFileState:
    """Tests for the file-backed state directory."""

    def test_satisfies_protocol(self, tmp_path):
        assert isinstance(FileState(tmp_path), LocalState)
        assert isinstance(MemoryState(), LocalState)

    def test_empty_home(self, tmp_path):
        state = FileState(tmp_path / "missing")

        assert state.load_config() is None
        assert state.load_active() is None
        assert state.load_cache() == {}

    def test_config_round_trip(self, tmp_path):
        state = FileState(tmp_path)
        state.save_config({"api_url": "http://x"})

        assert state.load_config() == {"api_url": "http://x"}
        assert json.loads((tmp_path / "config.json").read_text()) == {"api_url": "http://x"}

    def test_active_pointer(self, tmp_path):
        state = FileState(tmp_path)
        state.save_active("pxabc2345")
        assert state.load_active() == "pxabc2345"
        assert (tmp_path / "active").read_text() == "pxabc2345"

        state.save_active(None)
        assert state.load_active() is None
        assert not (tmp_path / "active").exists()

    def test_cache_round_trip(self, tmp_path):
        state = FileState(tmp_path)
        cache = {"pxabc2345": {"id": "pxabc2345", "name": "n", "links": []}}
        state.save_cache(cache)

        assert state.load_cache() == cache

    def test_corrupt_cache_reads_empty(self, tmp_path):
        (tmp_path / "cache.json").write_text("{not json")

        assert FileState(tmp_path).load_cache() == {}

    def test_writes_leave_no_temp_files(self, tmp_path):
        state = FileState(tmp_path)
        state.save_cache({})
        state.save_config({})

        assert sorted(p.name for p in tmp_path.iterdir()) == ["cache.json", "config.json"]

    def test_home_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PXD_HOME", str(tmp_path))
        assert get_pxd_home() == tmp_path
        assert FileState().home == tmp_path

    def test_default_home(self, monkeypatch, tmp_path):
        monkeypatch.delenv("PXD_HOME", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))
        assert get_pxd_home() == tmp_path / ".pxd"


class TestMemoryState:
    """MemoryState hands out copies."""

    def test_cache_is_copied(self):
        state = MemoryState(cache={"a": {"id": "a"}})
        loaded = state.load_cache()
        loaded["a"]["name"] = "mutated"

        assert state.load_cache() == {"a": {"id": "a"}}


# =============================================================================
# Client Config
# =============================================================================


class TestClientConfig:
    """Tests for loading the client config."""

    def test_writes_defaults_on_first_load(self):
        state = MemoryState()

        config = load_client_config(state, environ={})

        assert config.api_url == DEFAULT_API_URL
        assert config.admin_key is None
        assert state.load_config() == {"api_url": DEFAULT_API_URL}

    def test_reads_existing_file(self):
        state = MemoryState(config={"api_url": "http://remote:8787", "agent_key": "agt"})

        config = load_client_config(state, environ={})

        assert config.api_url == "http://remote:8787"
        assert config.agent_key == "agt"

    def test_api_url_from_environment(self):
        state = MemoryState(config={"api_url": "http://file"})

        config = load_client_config(state, environ={"PXD_API_URL": "http://env"})

        assert config.api_url == "http://env"
        assert state.load_config() == {"api_url": "http://file"}


class TestResolveKey:
    """Credential precedence: PXD_KEY, admin_key, agent_key."""

    def test_environment_wins(self):
        config = ClientConfig(admin_key="adm", agent_key="agt")
        assert resolve_key(config, {"PXD_KEY": "env"}) == "env"

    def test_admin_before_agent(self):
        config = ClientConfig(admin_key="adm", agent_key="agt")
        assert resolve_key(config, {}) == "adm"

    def test_agent_alone(self):
        assert resolve_key(ClientConfig(agent_key="agt"), {}) == "agt"

    def test_no_key(self):
        assert resolve_key(ClientConfig(), {}) is None

    def test_empty_environment_value_is_ignored(self):
        config = ClientConfig(agent_key="agt")
        assert resolve_key(config, {"PXD_KEY": ""}) == "agt"
