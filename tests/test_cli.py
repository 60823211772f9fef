"""Tests for the pxd command line client."""

import json

import pytest
from typer.testing import CliRunner

from pxd.client.api import PxdClient
from pxd.client.cache import PxdService
from pxd.client.cli import app, format_date, format_row, format_tag
from pxd.client.state import MemoryState

runner = CliRunner()


@pytest.fixture(autouse=True)
def no_clipboard(monkeypatch):
    """Keep tests off the real clipboard."""
    copied = []

    def fake_copy(text: str) -> bool:
        copied.append(text)
        return True

    monkeypatch.setattr("pxd.client.cli.copy_to_clipboard", fake_copy)
    return copied


def invoke(service: PxdService, *args: str):
    return runner.invoke(app, list(args), obj=service)


# =============================================================================
# Formatting
# =============================================================================


class TestFormatting:
    """Tests for output helpers."""

    def test_format_date(self):
        assert format_date(0) == "-"
        assert format_date(None) == "-"
        assert format_date(1_700_000_000_000) == "2023-11-14"

    def test_format_row(self):
        row = {"id": "pxabc2345", "name": "Echo", "updated_at": 1_700_000_000_000}
        assert format_row(row) == "pxabc2345  Echo  (2023-11-14)"

    def test_format_tag(self):
        tag = {
            "id": "pxabc2345",
            "name": "Echo",
            "meta": {"k": 1},
            "created_at": 1_700_000_000_000,
            "updated_at": 1_700_000_000_000,
            "links": [{"type": "github", "url": "https://github.com/x/echo"}],
        }

        assert format_tag(tag).splitlines() == [
            "ID:      pxabc2345",
            "Name:    Echo",
            "Created: 2023-11-14",
            "Updated: 2023-11-14",
            'Meta:    {"k": 1}',
            "Links:",
            "  github: https://github.com/x/echo",
        ]


# =============================================================================
# Commands
# =============================================================================


class TestCommands:
    """End-to-end command tests against the in-process server."""

    def test_new_link_show(self, service: PxdService, monkeypatch, no_clipboard):
        monkeypatch.setattr("pxd.services.tag.generate_id", lambda: "pxabc2345")

        result = invoke(service, "new", "Echo", "project")
        assert result.exit_code == 0, result.output
        assert "Created: pxabc2345" in result.output
        assert "Name:    Echo project" in result.output
        assert "(copied to clipboard)" in result.output
        assert no_clipboard == ["pxabc2345"]

        result = invoke(service, "link", "pxabc2345", "github", "https://github.com/x/echo")
        assert result.exit_code == 0, result.output
        assert "Added github link to pxabc2345" in result.output

        result = invoke(service, "show", "pxabc2345")
        assert result.exit_code == 0, result.output
        assert "Name:    Echo project" in result.output
        assert "  github: https://github.com/x/echo" in result.output

    def test_new_without_copy(self, service: PxdService, no_clipboard):
        result = invoke(service, "new", "quiet", "--no-copy")

        assert result.exit_code == 0, result.output
        assert "(copied to clipboard)" not in result.output
        assert no_clipboard == []

    def test_new_with_meta(self, service: PxdService):
        result = invoke(service, "new", "meta", "--meta", '{"kind": "note"}', "--no-copy")
        assert result.exit_code == 0, result.output

        tag_id = result.output.split("Created: ")[1].split()[0]
        assert service.cache.get(tag_id)["meta"] == {"kind": "note"}

    def test_new_rejects_non_object_meta(self, service: PxdService):
        result = invoke(service, "new", "bad", "--meta", "[1]")

        assert result.exit_code != 0

    def test_show_missing_tag_fails(self, service: PxdService):
        result = invoke(service, "show", "pxmissing")

        assert result.exit_code == 1
        assert "Error: Not found" in result.output

    def test_show_offline_from_cache(self, offline_client):
        state = MemoryState(
            cache={"pxabc2345": {"id": "pxabc2345", "name": "Cached", "created_at": 1, "updated_at": 1}}
        )
        service = PxdService(offline_client, state)

        result = invoke(service, "show", "pxabc2345", "--fresh")

        assert result.exit_code == 0, result.output
        assert "Name:    Cached" in result.output
        assert "(served from local cache; may be stale)" in result.output

    def test_update_and_delete(self, service: PxdService):
        tag = service.create("before")

        result = invoke(service, "update", tag["id"], "--name", "after")
        assert result.exit_code == 0, result.output
        assert service.get(tag["id"]).value["name"] == "after"

        result = invoke(service, "delete", tag["id"])
        assert result.exit_code == 0, result.output
        assert f"Deleted: {tag['id']}" in result.output

    def test_update_needs_a_field(self, service: PxdService):
        result = invoke(service, "update", "pxabc2345")

        assert result.exit_code == 1
        assert "Specify --name and/or --meta" in result.output

    def test_unlink(self, service: PxdService):
        tag = service.create("links")
        service.add_link(tag["id"], "github", "https://a")

        result = invoke(service, "unlink", tag["id"], "github")

        assert result.exit_code == 0, result.output
        assert service.get(tag["id"]).value["links"] == []

    def test_agent_cannot_delete(self, agent_client, state: MemoryState):
        service = PxdService(agent_client, state)
        tag = service.create("protected")

        result = invoke(service, "delete", tag["id"])

        assert result.exit_code == 1
        assert "Error: Admin required" in result.output

    def test_search_and_list(self, service: PxdService):
        service.create("Echo project")

        result = invoke(service, "search", "echo")
        assert result.exit_code == 0, result.output
        assert "Echo project" in result.output

        result = invoke(service, "search", "nothing-matches")
        assert "No results" in result.output

        result = invoke(service, "list")
        assert result.exit_code == 0, result.output
        assert "Echo project" in result.output

    def test_search_rejected_key_fails_cleanly(self, server, state: MemoryState):
        service = PxdService(PxdClient("http://testserver", "wrong-key", http=server), state)

        result = invoke(service, "search", "x")

        assert result.exit_code == 1
        assert "Error: Unauthorized" in result.output

    def test_list_empty(self, service: PxdService):
        result = invoke(service, "list")

        assert result.exit_code == 0
        assert "No tags" in result.output

    def test_sync(self, service: PxdService, admin_client):
        admin_client.create("one")
        admin_client.create("two")

        result = invoke(service, "sync")

        assert result.exit_code == 0, result.output
        assert "Synced 2 tags" in result.output

    def test_work(self, service: PxdService):
        result = invoke(service, "work")
        assert "No active project" in result.output

        result = invoke(service, "work", "pxabc2345")
        assert "Active project: pxabc2345" in result.output

        result = invoke(service, "work")
        assert result.output.strip() == "pxabc2345"

    def test_health(self, service: PxdService):
        result = invoke(service, "health")

        assert result.exit_code == 0, result.output
        assert result.output.startswith("ok (http://testserver")

    def test_unreachable_server_fails_cleanly(self, offline_client):
        result = invoke(PxdService(offline_client, MemoryState()), "health")

        assert result.exit_code == 1
        assert "Error: Could not reach" in result.output

    def test_stamp_dry_run(self, service: PxdService, tmp_path):
        (tmp_path / "note.md").write_text("# Note\n")

        result = invoke(service, "stamp", str(tmp_path))

        assert result.exit_code == 0, result.output
        assert "Mode: DRY RUN (no changes)" in result.output
        assert "Would add frontmatter:" in result.output
        assert "Run with --apply to make changes." in result.output
        assert (tmp_path / "note.md").read_text() == "# Note\n"

    def test_stamp_apply(self, service: PxdService, tmp_path):
        (tmp_path / "note.md").write_text("# Note\n")

        result = invoke(service, "stamp", str(tmp_path), "--apply")

        assert result.exit_code == 0, result.output
        assert "Added new frontmatter: 1" in result.output
        assert (tmp_path / "note.md").read_text().startswith("---\npid: px")


class TestBuildService:
    """The CLI wires file state and config together."""

    def test_build_service_uses_home(self, tmp_path, monkeypatch):
        from pxd.client.cli import build_service

        monkeypatch.delenv("PXD_KEY", raising=False)
        monkeypatch.delenv("PXD_API_URL", raising=False)
        (tmp_path / "config.json").write_text(
            json.dumps({"api_url": "http://remote:9000", "agent_key": "agt"})
        )

        service = build_service(tmp_path)
        try:
            assert isinstance(service.client, PxdClient)
            assert service.client.api_url == "http://remote:9000"
            assert service.state.home == tmp_path
        finally:
            service.client.close()
