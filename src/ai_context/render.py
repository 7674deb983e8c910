"""
Rendering of the aggregated context document.

The document is a header comment block followed by one section per file: a
`path:` annotation line and a fenced code block tagged with the file's extension.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import cache

from jinja2 import Environment, StrictUndefined, Template

NO_PATTERNS_DOCUMENT = "# No files matched: no patterns were provided.\n"
NO_MATCHES_DOCUMENT = "# No files matched any of the provided patterns.\n"

_DOCUMENT_TEMPLATE = (
    "<!-- Context generated by ai-context on {{ generated_at }} -->\n"
    "<!-- Config file: {{ config_path }} -->\n"
    "\n"
    "{% for section in sections %}"
    "path: {{ section.path }}\n"
    "```{{ section.language }}\n"
    "{{ section.content }}\n"
    "```\n"
    "\n"
    "{% endfor %}"
)


@dataclass(frozen=True)
class FileSection:
    """One file in the document. `path` uses forward slashes; `content` is trimmed."""

    path: str
    language: str
    content: str


def language_tag(path: str) -> str:
    """
    The code fence language for a file: the text after the last `.` in the file
    name, case preserved. Empty for names without an extension (including dotfiles
    like `.gitignore`).
    """
    _, ext = posixpath.splitext(posixpath.basename(path.replace("\\", "/")))
    return ext[1:]


def make_section(path: str, text: str) -> FileSection:
    """Build a section from a relative path and raw file text."""
    normalized = path.replace("\\", "/")
    return FileSection(path=normalized, language=language_tag(normalized), content=text.strip())


def format_timestamp(when: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision, e.g. `2024-05-01T12:00:00.000Z`."""
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    utc = when.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@cache
def _template() -> Template:
    environment = Environment(
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )
    return environment.from_string(_DOCUMENT_TEMPLATE)


def render_document(sections: list[FileSection], generated_at: datetime, config_path: str) -> str:
    """Render the full document for the given sections, in the order given."""
    return _template().render(
        generated_at=format_timestamp(generated_at),
        config_path=config_path.replace("\\", "/"),
        sections=sections,
    )
