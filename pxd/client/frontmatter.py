"""Stamp markdown notes with a `pid:` frontmatter field.

Each unstamped note gets a tag allocated through the service (named
after the file, with an `obsidian` link to it) and its id written into
the note's frontmatter.
"""

from __future__ import annotations

import enum
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

from pxd.client.api import PxdClientError
from pxd.client.cache import PxdService
from pxd.core.logging import get_logger

logger = get_logger(__name__)

FRONTMATTER_DELIMITER = "---"
PID_KEY = "pid"
SKIP_DIRS = {"node_modules"}


class StampAction(str, enum.Enum):
    """What stamping does to a note."""

    SKIP = "skip"
    ADD_PID = "add-pid"
    ADD_FRONTMATTER = "add-frontmatter"


@dataclass
class StampResult:
    """Outcome for one note."""

    path: Path
    action: StampAction
    pid: str | None = None


@dataclass
class StampReport:
    """Outcome for a vault."""

    applied: bool
    results: list[StampResult] = field(default_factory=list)

    def count(self, action: StampAction) -> int:
        return sum(1 for r in self.results if r.action is action)


def find_markdown_files(root: Path) -> list[Path]:
    """Find .md files, skipping hidden entries, node_modules, and symlinks."""

    def walk(directory: Path) -> Iterator[Path]:
        for entry in sorted(directory.iterdir()):
            if entry.name.startswith(".") or entry.name in SKIP_DIRS:
                continue
            if entry.is_symlink():
                continue
            if entry.is_dir():
                yield from walk(entry)
            elif entry.suffix == ".md":
                yield entry

    return list(walk(root))


def _frontmatter_end(lines: list[str]) -> int | None:
    """Index of the closing delimiter, or None if there is no frontmatter block."""
    if not lines or lines[0] != FRONTMATTER_DELIMITER:
        return None
    for i in range(1, len(lines)):
        if lines[i] == FRONTMATTER_DELIMITER:
            return i
    return None


def plan_stamp(content: str) -> StampAction:
    """Decide what stamping would do to a note's content."""
    lines = content.split("\n")
    end = _frontmatter_end(lines)
    if end is None:
        return StampAction.ADD_FRONTMATTER
    if any(line.startswith(f"{PID_KEY}:") for line in lines[1:end]):
        return StampAction.SKIP
    return StampAction.ADD_PID


def apply_stamp(content: str, pid: str) -> str:
    """Return content with `pid: <id>` added to (or as) its frontmatter."""
    action = plan_stamp(content)
    if action is StampAction.SKIP:
        return content
    if action is StampAction.ADD_PID:
        lines = content.split("\n")
        lines.insert(1, f"{PID_KEY}: {pid}")
        return "\n".join(lines)
    return f"{FRONTMATTER_DELIMITER}\n{PID_KEY}: {pid}\n{FRONTMATTER_DELIMITER}\n\n{content}"


def stamp_vault(root: Path, service: PxdService | None = None, apply: bool = False) -> StampReport:
    """Stamp every unstamped note under root.

    A dry run (apply=False) allocates nothing and writes nothing.

    Args:
        root: Vault directory.
        service: Used to allocate ids; required when applying.
        apply: Write changes.
    """
    if apply and service is None:
        raise ValueError("A service is required to allocate ids")

    report = StampReport(applied=apply)
    for path in find_markdown_files(root):
        content = path.read_text(encoding="utf-8")
        action = plan_stamp(content)

        if action is StampAction.SKIP or not apply:
            report.results.append(StampResult(path=path, action=action))
            continue

        tag = service.create(path.stem)
        # The note keeps its id even if linking fails below
        path.write_text(apply_stamp(content, tag["id"]), encoding="utf-8")
        try:
            service.add_link(tag["id"], "obsidian", path.resolve().as_uri())
        except PxdClientError:
            logger.warning("note_link_failed", path=str(path), pid=tag["id"])
            raise

        logger.info("note_stamped", path=str(path), pid=tag["id"], action=action.value)
        report.results.append(StampResult(path=path, action=action, pid=tag["id"]))

    return report
