"""
Self-contained file discovery module: ordered include/exclude glob patterns,
gitignore-aware filtering and tool-specific ignore files.

No imports from `ai_context` outside this package.

Usage::

    from ai_context.file_resolver import PatternResolver, PatternResolverConfig

    config = PatternResolverConfig(
        patterns=["src/**/*.py", "!src/**/test_*.py", "pyproject.toml"],
    )
    files = PatternResolver(config).resolve()
"""

from ai_context.file_resolver.resolver import PatternResolver, to_posix
from ai_context.file_resolver.types import PatternResolverConfig, is_exclusion, strip_exclusion

__all__ = [
    "PatternResolver",
    "PatternResolverConfig",
    "is_exclusion",
    "strip_exclusion",
    "to_posix",
]
