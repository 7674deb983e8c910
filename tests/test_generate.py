"""Tests for the aggregation engine."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

import pytest

from ai_context.config import ResolvedConfig
from ai_context.file_resolver import PatternResolver
from ai_context.generate import OutputWriteError, SkippedFile, generate_context
from ai_context.render import NO_MATCHES_DOCUMENT, NO_PATTERNS_DOCUMENT

_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class RecordingReporter:
    def __init__(self) -> None:
        self.infos: list[str] = []
        self.warnings: list[str] = []

    def info(self, message: str) -> None:
        self.infos.append(message)

    def warning(self, message: str) -> None:
        self.warnings.append(message)


def _config(root: Path, patterns: list[str], **kwargs: object) -> ResolvedConfig:
    return ResolvedConfig(
        patterns=tuple(patterns),
        output_file_path=root / "prompt.md",
        config_file_path=root / "ai-context.toml",
        **kwargs,  # type: ignore[arg-type]
    )


def _sections(document: str) -> list[str]:
    return [line[len("path: ") :] for line in document.splitlines() if line.startswith("path: ")]


def test_end_to_end_two_files(tmp_path: Path) -> None:
    """Matched files are written in sorted order in the exact document format."""
    a = tmp_path / "a"
    a.mkdir()
    (a / "two.txt").write_text("world\n")
    (a / "one.txt").write_text("  hello  \n")

    result = generate_context(_config(tmp_path, ["a/*.txt"]), root=tmp_path, now=_NOW)

    assert result.included == ["a/one.txt", "a/two.txt"]
    assert result.skipped == []
    assert not result.sentinel
    document = (tmp_path / "prompt.md").read_text()
    assert document == (
        "<!-- Context generated by ai-context on 2024-05-01T12:00:00.000Z -->\n"
        "<!-- Config file: ai-context.toml -->\n"
        "\n"
        "path: a/one.txt\n"
        "```txt\n"
        "hello\n"
        "```\n"
        "\n"
        "path: a/two.txt\n"
        "```txt\n"
        "world\n"
        "```\n"
        "\n"
    )


def test_empty_patterns_writes_sentinel(tmp_path: Path) -> None:
    """An empty pattern list writes the no-patterns document and warns."""
    reporter = RecordingReporter()
    result = generate_context(_config(tmp_path, []), reporter=reporter, root=tmp_path)
    assert result.sentinel
    assert (tmp_path / "prompt.md").read_text() == NO_PATTERNS_DOCUMENT
    assert len(reporter.warnings) == 1


def test_no_matches_writes_sentinel(tmp_path: Path) -> None:
    """Patterns that match nothing write the no-matches document and warn."""
    reporter = RecordingReporter()
    result = generate_context(_config(tmp_path, ["**/*.rs"]), reporter=reporter, root=tmp_path)
    assert result.sentinel
    assert result.included == []
    assert (tmp_path / "prompt.md").read_text() == NO_MATCHES_DOCUMENT
    assert "No files matched" in (tmp_path / "prompt.md").read_text()
    assert reporter.warnings


def test_file_matched_by_two_patterns_appears_once(tmp_path: Path) -> None:
    """A file matched by several patterns gets a single section."""
    (tmp_path / "app.py").write_text("print(1)")
    (tmp_path / "util.py").write_text("print(2)")
    generate_context(_config(tmp_path, ["*.py", "app.py", "**/*.py"]), root=tmp_path, now=_NOW)
    document = (tmp_path / "prompt.md").read_text()
    assert _sections(document) == ["app.py", "util.py"]


def test_exclusion_pattern_removes_files(tmp_path: Path) -> None:
    """An exclusion pattern drops files from the document."""
    src = tmp_path / "src"
    src.mkdir()
    (src / "main.ts").write_text("export {}")
    (src / "main.spec.ts").write_text("test()")
    result = generate_context(
        _config(tmp_path, ["src/**/*.ts", "!src/**/*.spec.ts"]), root=tmp_path, now=_NOW
    )
    assert result.included == ["src/main.ts"]


def test_output_is_reproducible(tmp_path: Path) -> None:
    """Two runs over the same tree produce identical documents."""
    for name in ["c.md", "a.md", "b.md"]:
        (tmp_path / name).write_text(f"# {name}")
    config = _config(tmp_path, ["*.md"])

    generate_context(config, root=tmp_path, now=_NOW)
    first = (tmp_path / "prompt.md").read_text()
    generate_context(config, root=tmp_path, now=_NOW)
    second = (tmp_path / "prompt.md").read_text()

    assert first == second
    # The previous output (prompt.md) is never aggregated into the next one.
    assert _sections(second) == ["a.md", "b.md", "c.md"]


def test_overwrites_existing_output(tmp_path: Path) -> None:
    """An existing output file is replaced, not appended to."""
    (tmp_path / "prompt.md").write_text("stale content " * 100)
    (tmp_path / "x.txt").write_text("fresh")
    generate_context(_config(tmp_path, ["*.txt"]), root=tmp_path, now=_NOW)
    document = (tmp_path / "prompt.md").read_text()
    assert "stale content" not in document
    assert "fresh" in document


def test_output_in_new_directory(tmp_path: Path) -> None:
    """Missing parent directories of the output path are created."""
    (tmp_path / "x.txt").write_text("x")
    config = ResolvedConfig(
        patterns=("*.txt",),
        output_file_path=tmp_path / "out" / "deep" / "context.md",
        config_file_path=tmp_path / "ai-context.toml",
    )
    generate_context(config, root=tmp_path, now=_NOW)
    assert (tmp_path / "out" / "deep" / "context.md").is_file()


def test_undecodable_file_is_skipped(tmp_path: Path) -> None:
    """A file that is not valid UTF-8 is skipped with a warning."""
    (tmp_path / "good.txt").write_text("good")
    (tmp_path / "blob.bin").write_bytes(b"\xff\xfe\x00\x80binary")
    reporter = RecordingReporter()

    result = generate_context(
        _config(tmp_path, ["*.txt", "*.bin"]), reporter=reporter, root=tmp_path, now=_NOW
    )

    assert result.included == ["good.txt"]
    assert [s.path for s in result.skipped] == ["blob.bin"]
    assert any("blob.bin" in w for w in reporter.warnings)
    document = (tmp_path / "prompt.md").read_text()
    assert _sections(document) == ["good.txt"]


def test_file_removed_after_scan_is_skipped(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """A file deleted between scanning and reading is skipped; the rest are kept."""
    (tmp_path / "a.txt").write_text("alpha")
    (tmp_path / "c.txt").write_text("gamma")
    original_resolve = PatternResolver.resolve

    def resolve_then_delete(
        self: PatternResolver, on_pattern: Callable[[str], None] | None = None
    ) -> list[str]:
        files = original_resolve(self, on_pattern)
        (tmp_path / "a.txt").unlink()
        return files

    monkeypatch.setattr(PatternResolver, "resolve", resolve_then_delete)
    reporter = RecordingReporter()

    result = generate_context(_config(tmp_path, ["*.txt"]), reporter=reporter, root=tmp_path, now=_NOW)

    assert result.included == ["c.txt"]
    assert result.skipped[0].path == "a.txt"
    assert len(reporter.warnings) == 1
    document = (tmp_path / "prompt.md").read_text()
    assert _sections(document) == ["c.txt"]
    assert "```txt\ngamma\n```" in document


def test_oversized_file_is_reported(tmp_path: Path) -> None:
    """Files over the size limit are left out and listed as skipped."""
    (tmp_path / "small.txt").write_text("small")
    (tmp_path / "large.txt").write_text("x" * 500)
    reporter = RecordingReporter()
    result = generate_context(
        _config(tmp_path, ["*.txt"], files_max_size=100), reporter=reporter, root=tmp_path, now=_NOW
    )
    assert result.included == ["small.txt"]
    assert result.skipped == [SkippedFile("large.txt", "exceeds files-max-size")]
    assert any("large.txt" in w for w in reporter.warnings)


def test_scan_root_is_not_config_directory(tmp_path: Path) -> None:
    """Patterns resolve against the scan root, not the config file's directory."""
    project = tmp_path / "project"
    (project / "src").mkdir(parents=True)
    (project / "src" / "main.py").write_text("main")
    conf_dir = tmp_path / "conf"
    (conf_dir / "src").mkdir(parents=True)
    (conf_dir / "src" / "other.py").write_text("other")
    config = ResolvedConfig(
        patterns=("src/*.py",),
        output_file_path=project / "prompt.md",
        config_file_path=conf_dir / "ai-context.toml",
    )

    result = generate_context(config, root=project, now=_NOW)

    assert result.included == ["src/main.py"]
    document = (project / "prompt.md").read_text()
    assert "<!-- Config file: ../conf/ai-context.toml -->" in document


def test_write_failure_raises(tmp_path: Path) -> None:
    """Failing to write the output raises OutputWriteError."""
    (tmp_path / "x.txt").write_text("x")
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory")
    config = ResolvedConfig(
        patterns=("*.txt",),
        output_file_path=blocker / "prompt.md",
        config_file_path=tmp_path / "ai-context.toml",
    )
    with pytest.raises(OutputWriteError):
        generate_context(config, root=tmp_path, now=_NOW)


def test_scanning_progress_follows_pattern_order(tmp_path: Path) -> None:
    """Each pattern is reported as it is scanned, before the files found are listed."""
    (tmp_path / "a.py").write_text("a")
    (tmp_path / "b.md").write_text("b")
    reporter = RecordingReporter()

    generate_context(_config(tmp_path, ["*.py", "*.md"]), reporter=reporter, root=tmp_path, now=_NOW)

    scanning = [i for i, m in enumerate(reporter.infos) if m.startswith("  Scanning for pattern")]
    assert [reporter.infos[i] for i in scanning] == [
        '  Scanning for pattern: "*.py"',
        '  Scanning for pattern: "*.md"',
    ]
    found = reporter.infos.index("Found 2 unique file(s) to include:")
    assert max(scanning) < found
