"""Clipboard integration (Wayland first, then X11)."""

from __future__ import annotations

import subprocess

from pxd.core.logging import get_logger

logger = get_logger(__name__)

CLIPBOARD_COMMANDS = [
    ["wl-copy"],
    ["xclip", "-selection", "clipboard"],
]


def copy_to_clipboard(text: str) -> bool:
    """Copy text to the system clipboard. Returns False if no tool worked."""
    for cmd in CLIPBOARD_COMMANDS:
        try:
            subprocess.run(
                cmd,
                input=text,
                text=True,
                check=True,
                capture_output=True,
                timeout=2,
            )
            return True
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug("clipboard_command_failed", command=cmd[0], error=str(e))
    return False
