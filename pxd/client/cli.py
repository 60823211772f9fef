"""
pxd command line client.

Usage:
    pxd new "Project name"           Create a tag (id copied to clipboard)
    pxd show <id>                    Show tag details
    pxd link <id> <type> <url>       Add a link
    pxd search <query>               Search tags by name
    pxd list                         List recent tags
    pxd work [<id>]                  Set/show the active project

Config and cache live in ~/.pxd (or $PXD_HOME).
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import typer
from typing_extensions import Annotated

from pxd.client.api import PxdClient, PxdClientError
from pxd.client.cache import PxdService
from pxd.client.clipboard import copy_to_clipboard
from pxd.client.config import load_client_config, resolve_key
from pxd.client.frontmatter import StampAction, stamp_vault
from pxd.client.state import FileState
from pxd.core.logging import setup_logging

app = typer.Typer(
    name="pxd",
    help="Short, grep-able ids for notes, tokens, and projects.",
    no_args_is_help=True,
    add_completion=False,
)


def build_service(home: Optional[Path] = None) -> PxdService:
    """Wire the file-backed state, config, and HTTP client together."""
    state = FileState(home)
    config = load_client_config(state)
    client = PxdClient(config.api_url, resolve_key(config))
    return PxdService(client, state)


def _service(ctx: typer.Context) -> PxdService:
    if ctx.obj is None:
        ctx.obj = build_service()
    return ctx.obj


def _fail(error: Exception) -> None:
    typer.echo(f"Error: {error}", err=True)
    raise typer.Exit(1)


def _parse_meta(raw: Optional[str]) -> Optional[dict[str, Any]]:
    if raw is None:
        return None
    try:
        meta = json.loads(raw)
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"not valid JSON: {e}", param_hint="--meta")
    if not isinstance(meta, dict):
        raise typer.BadParameter("must be a JSON object", param_hint="--meta")
    return meta


def format_date(ts: Optional[int]) -> str:
    """Render a ms timestamp as an ISO date."""
    if not ts:
        return "-"
    return datetime.fromtimestamp(ts / 1000, tz=timezone.utc).date().isoformat()


def format_row(tag: dict[str, Any]) -> str:
    return f"{tag['id']}  {tag.get('name', '')}  ({format_date(tag.get('updated_at'))})"


def format_tag(tag: dict[str, Any]) -> str:
    """Render a tag the way `show` prints it."""
    lines = [
        f"ID:      {tag['id']}",
        f"Name:    {tag.get('name', '')}",
        f"Created: {format_date(tag.get('created_at'))}",
        f"Updated: {format_date(tag.get('updated_at'))}",
    ]
    if tag.get("meta"):
        lines.append(f"Meta:    {json.dumps(tag['meta'])}")
    if tag.get("links"):
        lines.append("Links:")
        for link in tag["links"]:
            lines.append(f"  {link['type']}: {link['url']}")
    return "\n".join(lines)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option(
        "--verbose", "-v",
        help="Log debug output to stderr",
    )] = False,
):
    """pxd - Universal Tag System."""
    setup_logging(level="DEBUG" if verbose else "WARNING", debug=True)


@app.command()
def new(
    ctx: typer.Context,
    name: Annotated[list[str], typer.Argument(help="Tag name (words are joined)")],
    meta: Annotated[Optional[str], typer.Option(
        "--meta", "-m",
        help="Metadata as a JSON object",
    )] = None,
    no_copy: Annotated[bool, typer.Option(
        "--no-copy",
        help="Don't copy the new id to the clipboard",
    )] = False,
):
    """Create a new tag."""
    service = _service(ctx)
    try:
        tag = service.create(" ".join(name), _parse_meta(meta))
    except PxdClientError as e:
        _fail(e)

    typer.echo(f"Created: {tag['id']}")
    typer.echo(f"Name:    {tag['name']}")
    if not no_copy and copy_to_clipboard(tag["id"]):
        typer.echo("(copied to clipboard)")


@app.command()
def show(
    ctx: typer.Context,
    tag_id: Annotated[str, typer.Argument(metavar="ID", help="Tag id")],
    offline: Annotated[bool, typer.Option(
        "--offline",
        help="Answer from the local cache only",
    )] = False,
    fresh: Annotated[bool, typer.Option(
        "--fresh",
        help="Warn when the answer could not be confirmed with the server",
    )] = False,
):
    """Show tag details."""
    service = _service(ctx)
    try:
        result = service.get(tag_id, offline=offline)
    except PxdClientError as e:
        _fail(e)

    typer.echo(format_tag(result.value))
    if fresh and result.stale:
        typer.echo("(served from local cache; may be stale)", err=True)


@app.command()
def link(
    ctx: typer.Context,
    tag_id: Annotated[str, typer.Argument(metavar="ID", help="Tag id")],
    link_type: Annotated[str, typer.Argument(metavar="TYPE", help="Link type, e.g. github")],
    url: Annotated[str, typer.Argument(help="Link target")],
):
    """Add a link to a tag."""
    service = _service(ctx)
    try:
        service.add_link(tag_id, link_type, url)
    except PxdClientError as e:
        _fail(e)
    typer.echo(f"Added {link_type} link to {tag_id}")


@app.command()
def unlink(
    ctx: typer.Context,
    tag_id: Annotated[str, typer.Argument(metavar="ID", help="Tag id")],
    link_type: Annotated[str, typer.Argument(metavar="TYPE", help="Link type to remove")],
):
    """Remove all links of a type (admin only)."""
    service = _service(ctx)
    try:
        service.remove_link(tag_id, link_type)
    except PxdClientError as e:
        _fail(e)
    typer.echo(f"Removed {link_type} links from {tag_id}")


@app.command()
def update(
    ctx: typer.Context,
    tag_id: Annotated[str, typer.Argument(metavar="ID", help="Tag id")],
    name: Annotated[Optional[str], typer.Option(
        "--name", "-n",
        help="New name",
    )] = None,
    meta: Annotated[Optional[str], typer.Option(
        "--meta", "-m",
        help="Replacement metadata as a JSON object",
    )] = None,
):
    """Update a tag's name or metadata (admin only)."""
    parsed_meta = _parse_meta(meta)
    if name is None and parsed_meta is None:
        typer.echo("Error: Specify --name and/or --meta", err=True)
        raise typer.Exit(1)

    service = _service(ctx)
    try:
        service.update(tag_id, name=name, meta=parsed_meta)
    except PxdClientError as e:
        _fail(e)
    typer.echo(f"Updated: {tag_id}")


@app.command()
def delete(
    ctx: typer.Context,
    tag_id: Annotated[str, typer.Argument(metavar="ID", help="Tag id")],
):
    """Delete a tag and its links (admin only)."""
    service = _service(ctx)
    try:
        service.delete(tag_id)
    except PxdClientError as e:
        _fail(e)
    typer.echo(f"Deleted: {tag_id}")


@app.command()
def search(
    ctx: typer.Context,
    query: Annotated[Optional[list[str]], typer.Argument(help="Text to look for in names")] = None,
):
    """Search tags by name."""
    service = _service(ctx)
    try:
        result = service.search(" ".join(query or []))
    except PxdClientError as e:
        _fail(e)

    if not result.value:
        typer.echo("No results")
        return
    for tag in result.value:
        typer.echo(format_row(tag))


@app.command("list")
def list_cmd(ctx: typer.Context):
    """List recently updated tags (rebuilds the local cache)."""
    service = _service(ctx)
    try:
        result = service.list_tags()
    except PxdClientError as e:
        _fail(e)

    if not result.value:
        typer.echo("No tags")
        return
    for tag in result.value:
        typer.echo(format_row(tag))


@app.command()
def sync(ctx: typer.Context):
    """Rebuild the local cache from the server."""
    service = _service(ctx)
    try:
        count = service.sync()
    except PxdClientError as e:
        _fail(e)
    typer.echo(f"Synced {count} tags")


@app.command()
def work(
    ctx: typer.Context,
    tag_id: Annotated[Optional[str], typer.Argument(metavar="ID", help="Tag id to make active")] = None,
):
    """Set or show the active project."""
    service = _service(ctx)
    if tag_id:
        service.set_active(tag_id)
        typer.echo(f"Active project: {tag_id}")
        return

    active = service.active
    typer.echo(active if active else "No active project")


@app.command()
def stamp(
    ctx: typer.Context,
    vault: Annotated[Path, typer.Argument(
        exists=True, file_okay=False, dir_okay=True,
        help="Vault directory to scan",
    )],
    apply: Annotated[bool, typer.Option(
        "--apply",
        help="Actually modify files (default is a dry run)",
    )] = False,
):
    """Add pxd ids to markdown frontmatter."""
    typer.echo(f"Scanning {vault}...")
    typer.echo("Mode: APPLY (will modify files)" if apply else "Mode: DRY RUN (no changes)")

    service = _service(ctx) if apply else None
    try:
        report = stamp_vault(vault, service, apply=apply)
    except PxdClientError as e:
        _fail(e)

    if not apply:
        for result in report.results:
            if result.action is StampAction.ADD_PID:
                typer.echo(f"Would add pid to frontmatter: {result.path}")
            elif result.action is StampAction.ADD_FRONTMATTER:
                typer.echo(f"Would add frontmatter: {result.path}")

    verb = "Added" if apply else "Would add"
    added_pid = report.count(StampAction.ADD_PID)
    added_frontmatter = report.count(StampAction.ADD_FRONTMATTER)
    typer.echo("")
    typer.echo("Summary:")
    typer.echo(f"  Skipped (already has pid): {report.count(StampAction.SKIP)}")
    typer.echo(f"  {verb} pid to existing frontmatter: {added_pid}")
    typer.echo(f"  {verb} new frontmatter: {added_frontmatter}")

    if not apply and (added_pid or added_frontmatter):
        typer.echo("")
        typer.echo("Run with --apply to make changes.")


@app.command()
def health(ctx: typer.Context):
    """Check that the service is reachable."""
    service = _service(ctx)
    try:
        status = service.health()
    except PxdClientError as e:
        _fail(e)
    typer.echo(f"ok ({service.client.api_url}, version {status.get('version', '?')})")


if __name__ == "__main__":
    app()
