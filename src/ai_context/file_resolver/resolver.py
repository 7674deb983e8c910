"""
PatternResolver — main entry point for file discovery.

Resolves an ordered list of include/exclude glob patterns into a deduplicated,
sorted list of file paths relative to the scan root, applying all configured filters.
"""

from __future__ import annotations

import fnmatch
import os
from collections.abc import Callable, Iterable
from pathlib import Path

import pathspec

from ai_context.file_resolver.gitignore import load_gitignore, load_tool_ignore
from ai_context.file_resolver.types import PatternResolverConfig, is_exclusion, strip_exclusion

# Characters that indicate a path is a glob pattern rather than a literal path.
_GLOB_CHARS = frozenset("*?[")


def to_posix(path: str) -> str:
    """Normalize path separators to forward slashes regardless of host platform."""
    return path.replace(os.sep, "/") if os.sep != "/" else path


def _is_hidden_match(components: tuple[str, ...], segments: tuple[str, ...]) -> bool:
    """
    True if a matched path has a dot-named component that no dot-prefixed pattern
    segment accounts for.
    """
    for component in components:
        if component.startswith(".") and not any(
            seg.startswith(".") and fnmatch.fnmatchcase(component, seg) for seg in segments
        ):
            return True
    return False


class PatternResolver:
    """
    Expands patterns in order against the scan root. Inclusion patterns add their
    matches to the accumulated set; an exclusion pattern (`!pattern`) removes its
    matches from everything accumulated so far, and later inclusions may add them back.

    Paths are keyed by their root-relative POSIX form, so a file matched by several
    patterns appears once.
    """

    def __init__(self, config: PatternResolverConfig) -> None:
        self._config: PatternResolverConfig = config
        self._root: Path = config.scan_root
        self._excluded_paths: set[Path] = {p.resolve() for p in config.exclude_paths}
        # Cache gitignore specs per directory to avoid re-reading from disk.
        self._gitignore_cache: dict[Path, pathspec.PathSpec | None] = {}
        self._tool_ignore = load_tool_ignore(config.tool_name, self._root)
        self.oversized: list[str] = []

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, on_pattern: Callable[[str], None] | None = None) -> list[str]:
        """
        Resolve the configured patterns into a sorted list of root-relative paths.

        `on_pattern`, if given, is called with each pattern just before it is scanned.
        Raises `ValueError` for a pattern that is not valid glob syntax.
        """
        matched: dict[str, Path] = {}
        self.oversized = []

        for pattern in self._config.patterns:
            if on_pattern is not None:
                on_pattern(pattern)
            if is_exclusion(pattern):
                for path in self._expand(strip_exclusion(pattern)):
                    matched.pop(self._relative(path), None)
            else:
                for path in self._expand(pattern):
                    matched.setdefault(self._relative(path), path)

        result: list[str] = []
        for rel, path in matched.items():
            if self._is_filtered(rel, path):
                continue
            if self._exceeds_max_size(path):
                self.oversized.append(rel)
                continue
            result.append(rel)

        # Codepoint order, for reproducible output across runs.
        result.sort()
        self.oversized.sort()
        return result

    def _expand(self, pattern: str) -> Iterable[Path]:
        """
        Expand one glob pattern relative to the scan root, yielding regular files.

        Wildcards do not match names starting with `.`; a pattern segment that itself
        starts with `.` (`.github/*.yml`, `**/.*rc`) can match them.
        """
        parts = Path(pattern).parts
        base = self._root
        glob_part = ""
        for i, part in enumerate(parts):
            if any(c in part for c in _GLOB_CHARS):
                base = self._root.joinpath(*parts[:i]) if i > 0 else self._root
                glob_part = str(Path(*parts[i:]))
                break

        if not glob_part:
            # No glob characters: a literal path.
            literal = self._root / pattern
            if literal.is_file():
                yield literal
            return

        segments = Path(glob_part).parts
        if segments[-1] == "**":
            # A trailing `**` yields only directories; match the files beneath them.
            glob_part = str(Path(glob_part, "*"))

        try:
            candidates = list(base.glob(glob_part))
        except (ValueError, NotImplementedError) as e:
            raise ValueError(f"Invalid pattern {pattern!r}: {e}") from e

        for path in candidates:
            if path.is_file() and not _is_hidden_match(path.relative_to(base).parts, segments):
                yield path

    def _relative(self, path: Path) -> str:
        return to_posix(os.path.relpath(path, self._root))

    def _is_filtered(self, rel: str, path: Path) -> bool:
        """Check the output file, ignore files and gitignore rules."""
        if self._excluded_paths and path.resolve() in self._excluded_paths:
            return True

        if self._tool_ignore is not None:
            ignore_dir, spec = self._tool_ignore
            if spec.match_file(to_posix(os.path.relpath(path, ignore_dir))):
                return True

        if self._config.respect_gitignore and not rel.startswith("../"):
            if self._is_gitignored(rel):
                return True

        return False

    def _is_gitignored(self, rel: str) -> bool:
        """
        Apply every `.gitignore` from the scan root down to the file's directory,
        each against the path relative to its own directory.
        """
        parts = rel.split("/")
        directory = self._root
        for i in range(len(parts)):
            spec = self._get_gitignore(directory)
            if spec is not None and spec.match_file("/".join(parts[i:])):
                return True
            if i < len(parts) - 1:
                directory = directory / parts[i]
        return False

    def _exceeds_max_size(self, path: Path) -> bool:
        """Check if a file exceeds the configured max size. 0 = no limit."""
        if self._config.files_max_size == 0:
            return False
        try:
            return path.stat().st_size > self._config.files_max_size
        except OSError:
            return False

    def _get_gitignore(self, directory: Path) -> pathspec.PathSpec | None:
        """Load and cache gitignore for a directory."""
        if directory not in self._gitignore_cache:
            self._gitignore_cache[directory] = load_gitignore(directory)
        return self._gitignore_cache[directory]
