"""Configuration types for pattern resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

EXCLUDE_PREFIX = "!"


@dataclass
class PatternResolverConfig:
    """
    Configuration for resolving an ordered pattern list into files.

    `patterns` are glob patterns evaluated in order; a leading `!` marks an
    exclusion. `root` is the scan root (the working directory when `None`).
    `exclude_paths` are concrete files never included, such as the output file.
    `files_max_size=0` disables the size limit.
    """

    patterns: list[str] = field(default_factory=list)
    root: Path | None = None
    tool_name: str = "ai-context"
    respect_gitignore: bool = False
    files_max_size: int = 0
    exclude_paths: list[Path] = field(default_factory=list)

    @property
    def scan_root(self) -> Path:
        return (self.root if self.root is not None else Path.cwd()).resolve()


def is_exclusion(pattern: str) -> bool:
    """True if the pattern removes matches rather than adding them."""
    return pattern.startswith(EXCLUDE_PREFIX)


def strip_exclusion(pattern: str) -> str:
    """The glob part of a pattern, without any leading `!`."""
    return pattern[len(EXCLUDE_PREFIX) :] if is_exclusion(pattern) else pattern
