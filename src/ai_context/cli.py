#!/usr/bin/env python3
"""
ai-context: Aggregate source files into a single Markdown document for AI assistants

Common usage:
  ai-context
  ai-context --config path/to/ai-context.toml
  ai-context --output context.md
  ai-context --list-files

Config file (ai-context.toml, or [tool.ai-context] in pyproject.toml):
  patterns = ["src/**/*.py", "!src/**/test_*.py", "pyproject.toml"]
  output = "project-context.md"

Patterns are resolved against the current directory, in order. A leading `!`
removes files matched so far. Output path precedence: --output > config > prompt.md.
"""

from __future__ import annotations

import argparse
import importlib.metadata
import sys
from dataclasses import dataclass
from pathlib import Path

from ai_context.config import (
    DEFAULT_CONFIG_FILENAME,
    ConfigError,
    OutputSource,
    load_config,
    resolve_config,
)
from ai_context.generate import OutputWriteError, generate_context, resolve_files
from ai_context.reporting import ConsoleReporter


@dataclass
class Options:
    """Command-line options for the ai-context tool."""

    config: str
    output: str | None
    list_files: bool
    quiet: bool
    version: bool


def _parse_args(args: list[str] | None = None) -> tuple[Options, set[str]]:
    """
    Parse command-line arguments.

    Returns a tuple of (options, explicit_flags) where `explicit_flags` tracks
    which flags the user explicitly passed (for config merge precedence).
    """
    # Use the module's docstring as the description
    module_doc = __doc__ or ""
    doc_parts = module_doc.split("\n\n")
    description = doc_parts[0]
    epilog = "\n\n".join(doc_parts[1:])

    parser = argparse.ArgumentParser(
        prog="ai-context",
        description=description,
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-c",
        "--config",
        type=str,
        default=DEFAULT_CONFIG_FILENAME,
        metavar="PATH",
        help="Config file to read (default: %(default)s)",
    )
    # No default here: a value of None means the flag was not supplied, so the
    # config file's output can take precedence.
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        metavar="PATH",
        help="Output Markdown file (overrides the config file)",
    )
    parser.add_argument(
        "--list-files",
        action="store_true",
        dest="list_files",
        help="Print the resolved file paths without writing any output",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only print warnings and errors",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version information and exit",
    )
    opts = parser.parse_args(args)

    explicit_flags: set[str] = set()
    if opts.output is not None:
        explicit_flags.add("output")

    return (
        Options(
            config=opts.config,
            output=opts.output,
            list_files=opts.list_files,
            quiet=opts.quiet,
            version=opts.version,
        ),
        explicit_flags,
    )


def main(args: list[str] | None = None) -> int:
    """
    Main entry point for the ai-context CLI.

    Args:
        args: Command-line arguments (uses sys.argv if None)

    Returns:
        Exit code (0 for success, 1 for config or usage errors, 2 for output errors)
    """
    options, explicit_flags = _parse_args(args)

    if options.version:
        try:
            version = importlib.metadata.version("ai-context")
            print(f"v{version}")
        except importlib.metadata.PackageNotFoundError:
            print("unknown (package not installed)")
        return 0

    if options.output is not None and not options.output.strip():
        print("Error: --output must not be empty", file=sys.stderr)
        return 1

    reporter = ConsoleReporter(quiet=options.quiet or options.list_files)
    reporter.info(f"Loading config from '{options.config}'")

    try:
        user_config = load_config(Path(options.config))
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    resolved = resolve_config(
        user_config,
        Path(options.config),
        cli_output=options.output,
        cli_output_explicit="output" in explicit_flags,
    )

    if resolved.output_source is OutputSource.cli:
        reporter.info(f"Output path set from CLI: '{options.output}'")
    elif resolved.output_source is OutputSource.config:
        reporter.info(f"Output path set from config file: '{user_config.output}'")
    else:
        reporter.info(f"Output path set to default: '{resolved.output_file_path.name}'")

    if not resolved.patterns:
        reporter.warning(f"No glob patterns found in config file '{resolved.config_file_path}'.")
    else:
        reporter.info("Glob patterns from config:")
        for pattern in resolved.patterns:
            reporter.info(f'  - "{pattern}"')

    try:
        if options.list_files:
            for rel in resolve_files(resolved).resolve():
                print(rel)
            return 0

        reporter.info(f"Output will be written to: '{resolved.output_file_path}'")
        result = generate_context(resolved, reporter=reporter)
    except ValueError as e:
        # Invalid glob syntax in a pattern.
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OutputWriteError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except Exception as e:
        # Catch other unexpected file or processing errors.
        print(f"Error: {type(e).__name__}: {e}", file=sys.stderr)
        return 2

    if result.skipped:
        reporter.warning(f"{len(result.skipped)} file(s) skipped.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
