"""Gitignore and tool-specific ignore file handling using pathspec."""

from __future__ import annotations

from pathlib import Path

import pathspec


def _read_ignore_file(path: Path) -> pathspec.PathSpec | None:
    """
    Compile an ignore file into a `PathSpec`. Returns `None` if the file is missing,
    unreadable, not UTF-8, or has no patterns.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None
    lines = [line for line in text.splitlines() if line.strip() and not line.strip().startswith("#")]
    if not lines:
        return None
    return pathspec.GitIgnoreSpec.from_lines(lines)


def load_gitignore(directory: Path) -> pathspec.PathSpec | None:
    """
    Read `.gitignore` in the given directory and return a compiled `PathSpec`,
    or `None` if the file doesn't exist or is empty.
    """
    gitignore = directory / ".gitignore"
    if not gitignore.is_file():
        return None
    return _read_ignore_file(gitignore)


def find_tool_ignore(tool_name: str, start_dir: Path) -> Path | None:
    """
    Walk up from `start_dir` looking for `.{tool_name}ignore` (e.g., `.ai-contextignore`).
    Returns the path of the first one found, or `None`.
    """
    ignore_name = f".{tool_name}ignore"
    current = start_dir.resolve()
    while True:
        candidate = current / ignore_name
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_tool_ignore(tool_name: str, start_dir: Path) -> tuple[Path, pathspec.PathSpec] | None:
    """
    Load the nearest tool ignore file at or above `start_dir`. Returns the directory
    holding it (patterns are relative to that directory) and its compiled spec.
    """
    ignore_file = find_tool_ignore(tool_name, start_dir)
    if ignore_file is None:
        return None
    spec = _read_ignore_file(ignore_file)
    if spec is None:
        return None
    return ignore_file.parent, spec
