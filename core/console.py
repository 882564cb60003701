"""Leveled console output that keeps stdout free for build directives."""
from __future__ import annotations

from typing import TextIO
import sys


class Console:
    """Simple console output handler with configurable log level.

    Levels: none < error < info < debug
    Default: 'error'
    """

    LEVELS = {
        "none": 0,
        "error": 1,
        "info": 2,
        "debug": 3,
    }

    def __init__(self, level: str = "error", stream: TextIO | None = None):
        if level not in self.LEVELS:
            raise ValueError(f"Unknown console level '{level}'. Expected one of: {', '.join(self.LEVELS)}")
        self.level_name = level
        self.level = self.LEVELS[level]
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stderr

    def _emit(self, tag: str, message: str) -> None:
        print(f"[{tag}] {message}", file=self.stream)

    def info(self, message: str) -> None:
        if self.level >= self.LEVELS["info"]:
            self._emit("INFO", message)

    def error(self, message: str) -> None:
        if self.level >= self.LEVELS["error"]:
            self._emit("ERROR", message)

    def debug(self, message: str) -> None:
        if self.level >= self.LEVELS["debug"]:
            self._emit("DEBUG", message)
