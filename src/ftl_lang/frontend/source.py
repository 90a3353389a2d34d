"""
Source Positions and Line Reader
================================

Positioned values and the character reader that feeds the tokenizer.

The reader pulls raw lines from any iterable (an open file, a list of
strings, an interactive prompt generator) only when the tokenizer asks for
the next character, so an interactive session never blocks on a line that
is not needed yet.

Example Usage
-------------
>>> from ftl_lang.frontend.source import SourceReader
>>> reader = SourceReader.from_string("var x\\n")
>>> [(c.value, c.line, c.column) for c in reader][:3]
[('v', 1, 1), ('a', 1, 2), ('r', 1, 3)]
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Generic, Iterable, Iterator, Optional, TypeVar

from ftl_lang.errors import SourceLocation, UNKNOWN_LOCATION


T = TypeVar("T")
U = TypeVar("U")


# =============================================================================
# Positioned Value
# =============================================================================

@dataclass(frozen=True)
class Positioned(Generic[T]):
    """
    Any value paired with the (line, column) at which it began.

    Equality compares the wrapped value only, so trees built by hand in
    tests compare equal to parsed ones.

    Attributes:
        value: The wrapped value
        line: Line number (1-indexed, 0 when unknown)
        column: Column number (1-indexed, 0 when unknown)
        filename: Name of the source the value came from
    """
    value: T
    line: int = field(default=0, compare=False)
    column: int = field(default=0, compare=False)
    filename: str = field(default="<unknown>", compare=False)

    @classmethod
    def at(cls, value: T, location: SourceLocation) -> "Positioned[T]":
        """Wrap a value at an existing location."""
        return cls(value, location.line, location.column, location.filename)

    @property
    def location(self) -> SourceLocation:
        if self.line == 0:
            return UNKNOWN_LOCATION
        return SourceLocation(self.filename, self.line, self.column)

    def map(self, fn: Callable[[T], U]) -> "Positioned[U]":
        """Transform the value, keeping the position."""
        return Positioned(fn(self.value), self.line, self.column, self.filename)

    def __repr__(self) -> str:
        return f"{self.value!r}@{self.line}:{self.column}"


# =============================================================================
# Character Reader
# =============================================================================

class SourceReader:
    """
    Lazily turns a sequence of text lines into positioned characters.

    Each supplied line starts a new line number with the column reset to 1.
    A chunk containing embedded newlines is split into lines. No newline is
    synthesized for lines that lack one.

    The most recent lines are kept for error context (see line_text).

    Attributes:
        filename: Name used in positions and error messages
    """

    # Number of recent lines kept for error messages
    LINE_CACHE_SIZE = 64

    def __init__(
        self,
        lines: Iterable[str],
        filename: str = "<input>",
        first_line: int = 1,
    ):
        self.filename = filename
        self._lines = iter(lines)
        self._line_number = first_line - 1
        self._recent: "OrderedDict[int, str]" = OrderedDict()

    @classmethod
    def from_string(cls, text: str, filename: str = "<input>") -> "SourceReader":
        return cls(text.splitlines(keepends=True), filename)

    @classmethod
    def from_file(cls, path: Path, encoding: str = "utf-8") -> "SourceReader":
        """Read a file line by line; the file is closed once exhausted."""
        return cls(_read_lines(Path(path), encoding), str(path))

    @property
    def line_number(self) -> int:
        """Number of the line currently being read (0 before the first)."""
        return self._line_number

    def line_text(self, line: int) -> Optional[str]:
        """Return the text of a recently read line, without its terminator."""
        text = self._recent.get(line)
        if text is None:
            return None
        return text.rstrip("\r\n")

    def __iter__(self) -> Iterator[Positioned[str]]:
        for chunk in self._lines:
            for text in chunk.splitlines(keepends=True) or [chunk]:
                self._line_number += 1
                self._remember(self._line_number, text)
                for column, char in enumerate(text, start=1):
                    yield Positioned(char, self._line_number, column, self.filename)

    def _remember(self, line: int, text: str) -> None:
        self._recent[line] = text
        while len(self._recent) > self.LINE_CACHE_SIZE:
            self._recent.popitem(last=False)


def _read_lines(path: Path, encoding: str) -> Iterator[str]:
    with path.open("r", encoding=encoding) as f:
        yield from f
