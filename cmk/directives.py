"""Writers for ``cargo:`` build-script directives."""
from __future__ import annotations

from os import PathLike, fspath
from typing import TextIO
import sys


class DirectiveWriter:
    """Emit ``cargo:<key>=<value>`` lines to the calling build process."""

    def __init__(self, stream: TextIO | None = None, *, prefix: str = "cargo:") -> None:
        self._stream = stream
        self._prefix = prefix

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def emit(self, key: str, value: str) -> None:
        # Directives are line based; a newline would start a new directive.
        flattened = " ".join(str(value).splitlines())
        print(f"{self._prefix}{key}={flattened}", file=self.stream, flush=True)

    def link_search(self, path: str | PathLike[str]) -> None:
        self.emit("rustc-link-search", fspath(path))

    def link_lib(self, name: str) -> None:
        self.emit("rustc-link-lib", name)

    def warning(self, message: str) -> None:
        self.emit("warning", message)


__all__ = ["DirectiveWriter"]
