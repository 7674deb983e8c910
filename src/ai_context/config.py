"""
TOML-based config file loading for ai-context.

The config file (`ai-context.toml` by default, or `[tool.ai-context]` in a
`pyproject.toml`) lists the glob patterns to aggregate and optionally an output
path. The output path is merged with the CLI using three-way precedence:
explicit CLI flag > config file > built-in default.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any, cast

if sys.version_info >= (3, 11):
    import tomllib  # pyright: ignore[reportUnreachable]
else:
    import tomli as tomllib  # type: ignore[no-redef]  # pyright: ignore[reportUnreachable]

DEFAULT_CONFIG_FILENAME = "ai-context.toml"
DEFAULT_OUTPUT_FILENAME = "prompt.md"

_PYPROJECT_SECTION = "ai-context"


class ConfigError(Exception):
    """Raised when the config file is missing, malformed, or has the wrong shape."""


class OutputSource(str, Enum):
    """Where the active output path came from."""

    cli = "cli"
    config = "config"
    default = "default"


@dataclass
class AiContextConfig:
    """
    Parsed config from a TOML file. Fields are `None` when not set in the config,
    so the merge logic can distinguish "not configured" from "explicitly set to the
    default value".
    """

    patterns: list[str] | None = None
    output: str | None = None
    respect_gitignore: bool | None = None
    files_max_size: int | None = None


@dataclass(frozen=True)
class ResolvedConfig:
    """Fully merged inputs for one run. Paths are absolute."""

    patterns: tuple[str, ...]
    output_file_path: Path
    config_file_path: Path
    output_source: OutputSource = OutputSource.default
    respect_gitignore: bool = False
    files_max_size: int = 0


# Mapping from TOML kebab-case keys to Python snake_case field names
_KEBAB_TO_SNAKE: dict[str, str] = {
    "respect-gitignore": "respect_gitignore",
    "files-max-size": "files_max_size",
}

_VALID_FIELDS = {f.name for f in fields(AiContextConfig)}


def load_config(config_path: Path) -> AiContextConfig:
    """
    Load and validate an `AiContextConfig` from a TOML file. A `pyproject.toml` is
    read from its `[tool.ai-context]` table. Raises `ConfigError` on any problem.
    """
    try:
        text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: '{config_path}'") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Could not read config file '{config_path}': {e}") from e

    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in config file '{config_path}': {e}") from e

    if config_path.name == "pyproject.toml":
        section = data.get("tool", {}).get(_PYPROJECT_SECTION)
        if not isinstance(section, dict):
            raise ConfigError(
                f"Config file '{config_path}' has no [tool.{_PYPROJECT_SECTION}] section."
            )
        data = cast(dict[str, Any], section)

    config = _parse_config_data(data)
    _validate(config, config_path)
    return config


def _parse_config_data(data: dict[str, Any]) -> AiContextConfig:
    """Map kebab-case keys to fields. Unknown keys are ignored."""
    mapped: dict[str, Any] = {}
    for key, value in data.items():
        snake_key = _KEBAB_TO_SNAKE.get(key, key.replace("-", "_"))
        if snake_key in _VALID_FIELDS:
            mapped[snake_key] = value
    return AiContextConfig(**mapped)


def _validate(config: AiContextConfig, config_path: Path) -> None:
    patterns: Any = config.patterns
    if patterns is None or not isinstance(patterns, list):
        raise ConfigError(f"Config file '{config_path}' must define a 'patterns' array.")
    for pattern in cast(list[Any], patterns):
        if not isinstance(pattern, str):
            raise ConfigError(f"All 'patterns' in '{config_path}' must be strings.")
        if not pattern.strip():
            raise ConfigError(f"Empty pattern in '{config_path}'.")

    output: Any = config.output
    if output is not None and (not isinstance(output, str) or not output.strip()):
        raise ConfigError(
            f"'output' in '{config_path}', if present, must be a non-empty string."
        )

    respect: Any = config.respect_gitignore
    if respect is not None and not isinstance(respect, bool):
        raise ConfigError(f"'respect-gitignore' in '{config_path}' must be true or false.")

    max_size: Any = config.files_max_size
    if max_size is not None and (
        isinstance(max_size, bool) or not isinstance(max_size, int) or max_size < 0
    ):
        raise ConfigError(
            f"'files-max-size' in '{config_path}' must be a non-negative integer (bytes)."
        )


def resolve_output_path(
    cli_output: str | None,
    cli_output_explicit: bool,
    config_output: str | None,
    default_output: str = DEFAULT_OUTPUT_FILENAME,
) -> tuple[str, OutputSource]:
    """
    Pick the active output path: explicit CLI flag > config file > default.

    Precedence is by provenance: a CLI value counts only if the user actually
    supplied the flag, even when it happens to equal the default.
    """
    if cli_output_explicit and cli_output:
        return cli_output, OutputSource.cli
    if config_output:
        return config_output, OutputSource.config
    return default_output, OutputSource.default


def resolve_config(
    config: AiContextConfig,
    config_path: Path,
    cli_output: str | None = None,
    cli_output_explicit: bool = False,
    cwd: Path | None = None,
) -> ResolvedConfig:
    """Merge the loaded config with CLI values. Relative paths resolve against `cwd`."""
    base = cwd if cwd is not None else Path.cwd()
    output, source = resolve_output_path(cli_output, cli_output_explicit, config.output)
    return ResolvedConfig(
        patterns=tuple(config.patterns or ()),
        output_file_path=(base / output).resolve(),
        config_file_path=(base / config_path).resolve(),
        output_source=source,
        respect_gitignore=bool(config.respect_gitignore),
        files_max_size=config.files_max_size or 0,
    )
