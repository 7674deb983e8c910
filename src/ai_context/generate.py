"""
The aggregation engine: resolves the configured patterns to files, reads them, and
writes the rendered context document.

Per-file read failures are recovered (the file is skipped and a warning reported);
only a failure to write the output is fatal.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from ai_context.config import ResolvedConfig
from ai_context.file_resolver import PatternResolver, PatternResolverConfig, to_posix
from ai_context.render import (
    NO_MATCHES_DOCUMENT,
    NO_PATTERNS_DOCUMENT,
    FileSection,
    make_section,
    render_document,
)
from ai_context.reporting import NullReporter, Reporter


class OutputWriteError(Exception):
    """Raised when the output document cannot be written."""


@dataclass(frozen=True)
class SkippedFile:
    path: str
    reason: str


@dataclass
class GenerateResult:
    """Outcome of one `generate_context` call."""

    output_file_path: Path
    included: list[str] = field(default_factory=list)
    skipped: list[SkippedFile] = field(default_factory=list)
    sentinel: bool = False


def resolve_files(config: ResolvedConfig, root: Path | None = None) -> PatternResolver:
    """Build the pattern resolver for a run. The output file is never a match."""
    return PatternResolver(
        PatternResolverConfig(
            patterns=list(config.patterns),
            root=root,
            respect_gitignore=config.respect_gitignore,
            files_max_size=config.files_max_size,
            exclude_paths=[config.output_file_path],
        )
    )


def read_file_text(path: Path) -> str:
    """Read a file as UTF-8 text. A leading byte order mark is dropped."""
    return path.read_text(encoding="utf-8-sig")


def write_output(path: Path, content: str) -> None:
    """Write the document, replacing any existing file. Raises `OutputWriteError`."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise OutputWriteError(f"Error writing output file '{path}': {e}") from e


def generate_context(
    config: ResolvedConfig,
    reporter: Reporter | None = None,
    root: Path | None = None,
    now: datetime | None = None,
) -> GenerateResult:
    """
    Aggregate the files matched by `config.patterns` into `config.output_file_path`.

    Patterns are resolved against `root` (the working directory by default), never
    against the config file's directory. Files appear in codepoint order of their
    relative path. A sentinel document is written when there are no patterns or no
    matches.

    Raises `ValueError` for an invalid glob pattern and `OutputWriteError` if the
    output cannot be written.
    """
    reporter = reporter or NullReporter()
    output_path = config.output_file_path
    result = GenerateResult(output_file_path=output_path)

    if not config.patterns:
        reporter.warning(f"No patterns to process. Writing an empty context to '{output_path}'.")
        write_output(output_path, NO_PATTERNS_DOCUMENT)
        result.sentinel = True
        return result

    resolver = resolve_files(config, root)
    scan_root = resolver.root
    relative_paths = resolver.resolve(
        on_pattern=lambda pattern: reporter.info(f'  Scanning for pattern: "{pattern}"')
    )

    for rel in resolver.oversized:
        reporter.warning(f"Skipping '{rel}': larger than {config.files_max_size} bytes.")
        result.skipped.append(SkippedFile(rel, "exceeds files-max-size"))

    if not relative_paths:
        reporter.warning("No files found matching any of the patterns.")
        write_output(output_path, NO_MATCHES_DOCUMENT)
        result.sentinel = True
        return result

    reporter.info(f"Found {len(relative_paths)} unique file(s) to include:")
    sections: list[FileSection] = []
    for rel in relative_paths:
        reporter.info(f"  - {rel}")
        absolute = scan_root / rel
        try:
            text = read_file_text(absolute)
        except (OSError, UnicodeDecodeError) as e:
            reporter.warning(f"Could not read file '{absolute}'. Skipping. Error: {e}")
            result.skipped.append(SkippedFile(rel, str(e)))
            continue
        sections.append(make_section(rel, text))
        result.included.append(rel)

    config_rel = to_posix(os.path.relpath(config.config_file_path.resolve(), scan_root))
    document = render_document(
        sections,
        generated_at=now or datetime.now(timezone.utc),
        config_path=config_rel,
    )
    write_output(output_path, document)
    reporter.info(f"Wrote context to '{output_path}'")
    return result
