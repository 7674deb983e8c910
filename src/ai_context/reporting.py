"""Progress and warning reporting, kept separate from the aggregation logic."""

from __future__ import annotations

import sys
from typing import Protocol, TextIO


class Reporter(Protocol):
    """Receives progress and warning messages from the aggregation engine."""

    def info(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...


class NullReporter:
    """Discards all messages. The default when the engine is used as a library."""

    def info(self, message: str) -> None:
        pass

    def warning(self, message: str) -> None:
        pass


class ConsoleReporter:
    """Prints messages to stderr so stdout stays clean (e.g. for `--list-files`)."""

    def __init__(self, quiet: bool = False, stream: TextIO | None = None) -> None:
        self.quiet = quiet
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stderr

    def info(self, message: str) -> None:
        if not self.quiet:
            print(message, file=self.stream)

    def warning(self, message: str) -> None:
        print(f"Warning: {message}", file=self.stream)
