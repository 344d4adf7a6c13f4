from __future__ import annotations

import sys
from contextlib import contextmanager
from typing import Iterator, TextIO


class IndentingWriter:
    def __init__(
        self,
        indent_size: int = 3,
        debug: bool = False,
        stream: TextIO | None = None,
    ) -> None:
        self._indent_size = indent_size
        self._indents = 0
        self.debug_enabled = debug
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        # resolved lazily so that pytest's capsys sees the output
        return self._stream if self._stream is not None else sys.stdout

    def debug(self, message: str) -> None:
        if self.debug_enabled:
            self._print_indentation()
            print(message, end="", file=self.stream)

    def debugln(self, message: str) -> None:
        if self.debug_enabled:
            self.debug(message)
            print(file=self.stream)

    def print(self, message: str) -> None:
        self._print_indentation()
        print(message, end="", file=self.stream)

    def println(self, message: str) -> None:
        self.print(message + "\n")

    def indent(self) -> None:
        if self.debug_enabled:
            self._indents += 1

    def dedent(self) -> None:
        if self.debug_enabled and self._indents > 0:
            self._indents -= 1

    def _print_indentation(self) -> None:
        if self.debug_enabled:
            print(" " * self._indent_size * self._indents, end="", file=self.stream)


@contextmanager
def indented_output(output_writer: IndentingWriter) -> Iterator[None]:
    output_writer.indent()
    try:
        yield
    finally:
        output_writer.dedent()
