from ai_context.config import (
    AiContextConfig,
    ConfigError,
    OutputSource,
    ResolvedConfig,
    load_config,
    resolve_config,
    resolve_output_path,
)
from ai_context.generate import GenerateResult, OutputWriteError, SkippedFile, generate_context
from ai_context.reporting import ConsoleReporter, NullReporter, Reporter

__all__ = [
    "AiContextConfig",
    "ConfigError",
    "ConsoleReporter",
    "GenerateResult",
    "NullReporter",
    "OutputSource",
    "OutputWriteError",
    "Reporter",
    "ResolvedConfig",
    "SkippedFile",
    "generate_context",
    "load_config",
    "resolve_config",
    "resolve_output_path",
]
