"""
Integration with OS utilities: file manager, clipboard and editor.
"""
from __future__ import annotations

import os
import shlex
import subprocess
import sys
from pathlib import Path

__all__ = [
    "DEFAULT_EDITOR",
    "open_folder",
    "copy_to_clipboard",
    "open_editor",
]

DEFAULT_EDITOR = "code"


def open_folder(path: Path):
    """
    Open folder in the platform's file manager.
    """
    if sys.platform == "darwin":
        args = ["open", str(path)]
    elif sys.platform == "win32":
        args = ["explorer", str(path)]
    else:
        args = ["xdg-open", str(path)]

    subprocess.run(args, check=True)


def copy_to_clipboard(text: str) -> bool:
    """
    Copy text to clipboard, returning whether it succeeded.
    """
    if sys.platform == "darwin":
        args = ["pbcopy"]
    elif sys.platform == "win32":
        args = ["clip"]
    else:
        args = ["xclip", "-selection", "clipboard"]

    try:
        subprocess.run(args, input=text.encode("utf-8"), check=True)
    except (OSError, subprocess.CalledProcessError):
        return False

    return True


def open_editor(path: Path, *, editor: str | None = None) -> int:
    """
    Run editor on file and wait for it to exit, defaulting to `$EDITOR`.
    """
    editor = editor or os.environ.get("EDITOR") or DEFAULT_EDITOR
    return subprocess.run([*shlex.split(editor), str(path)]).returncode
