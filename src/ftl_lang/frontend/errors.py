"""
FTL Front End Error Hierarchy
=============================

This module defines the exceptions raised by the FTL tokenizer and parser.
All exceptions inherit from FrontendError, which itself inherits from the
base FtlError for consistent error handling across the package.

Exception Hierarchy
-------------------
FrontendError (base for all front end errors)
├── LexError - tokenizer errors
│   ├── InvalidCharacterError - character that starts no token
│   └── MalformedNumberError - e.g. two decimal points
├── ParseError - parser errors
│   ├── UnexpectedTokenError - wrong token where a specific kind was required
│   ├── ExpectedExpressionError - no primary expression where one was needed
│   └── UnexpectedEndOfInputError - input ended inside a construct
└── FtlCompilationError - aggregate report of several errors

Error Message Format
--------------------
    add.ftl:1:10: error: unexpected token '('
        function (
                 ^
    hint: expected function name
"""

from typing import Optional, List

from ftl_lang.errors import FtlError, SourceLocation


# =============================================================================
# Base Front End Exception
# =============================================================================

class FrontendError(FtlError):
    """
    Base exception for all tokenizer and parser errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred
        hint: A suggestion for fixing the error
        source_line: The actual source text at the error location
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

            add.ftl:2:12: error: invalid character '$' (0x24)
                var x = $5
                        ^
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line.rstrip()}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class FtlCompilationError(FrontendError):
    """
    Aggregate error containing multiple errors.

    The message is already a formatted report from ErrorCollector and is
    passed through as-is.
    """

    def _format_message(self) -> str:
        return self.message


# =============================================================================
# Lexical Errors
# =============================================================================

class LexError(FrontendError):
    """
    Error raised while tokenizing.

    Examples:
        - A character that starts no token ('$', '#', '"')
        - A numeric literal with two decimal points
    """
    pass


class InvalidCharacterError(LexError):
    """A character that matches no token rule."""

    def __init__(
        self,
        char: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.char = char
        super().__init__(
            f"invalid character {char!r} (0x{ord(char):02X})",
            location=location,
            source_line=source_line,
        )


class MalformedNumberError(LexError):
    """
    Numeric literal that cannot be converted.

    Raised for a second decimal point (1.2.3) and for integers outside the
    signed 64-bit range.
    """

    def __init__(
        self,
        text: str,
        reason: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.text = text
        self.reason = reason
        super().__init__(
            f"malformed number '{text}': {reason}",
            location=location,
            source_line=source_line,
        )


# =============================================================================
# Parse Errors
# =============================================================================

class ParseError(FrontendError):
    """
    Error raised while building the syntax tree.

    A ParseError aborts the top-level declaration being parsed; the parser
    can still be asked for the next declaration.
    """
    pass


class UnexpectedTokenError(ParseError):
    """Token of the wrong kind where a specific kind was required."""

    def __init__(
        self,
        found: str,
        expected: Optional[str] = None,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.found = found
        self.expected = expected

        hint = None
        if expected:
            hint = f"expected {expected}"

        super().__init__(
            f"unexpected token '{found}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class ExpectedExpressionError(ParseError):
    """Token in primary position that starts no expression."""

    def __init__(
        self,
        found: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.found = found
        super().__init__(
            f"expected expression, found '{found}'",
            location=location,
            hint="an expression is a number, a variable, a call or '(' expression ')'",
            source_line=source_line,
        )


class UnexpectedEndOfInputError(ParseError):
    """Input ended before the current construct was complete."""

    def __init__(
        self,
        expected: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.expected = expected
        super().__init__(
            f"unexpected end of input, expected {expected}",
            location=location,
            source_line=source_line,
        )


# =============================================================================
# Error Collection (for multi-error reporting)
# =============================================================================

class ErrorCollector:
    """
    Collects multiple errors for batch reporting.

    Example:
        collector = ErrorCollector(max_errors=100)

        for result in parser.results():
            if result.error:
                collector.add(result.error)
                if collector.should_stop():
                    break

        collector.raise_if_errors()
    """

    def __init__(self, max_errors: int = 100):
        self.errors: List[FrontendError] = []
        self.max_errors = max_errors

    def add(self, error: FrontendError) -> None:
        """Add an error to the collection."""
        self.errors.append(error)

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def should_stop(self) -> bool:
        """Return True if max_errors has been reached."""
        return self.error_count() >= self.max_errors

    def error_count(self) -> int:
        return len(self.errors)

    def report(self) -> str:
        """Format all errors for display."""
        lines = []
        for error in self.errors:
            lines.append(str(error))
            lines.append("")

        count = self.error_count()
        error_word = "error" if count == 1 else "errors"
        lines.append(f"{count} {error_word}")
        return "\n".join(lines)

    def raise_if_errors(self) -> None:
        """Raise an FtlCompilationError if any errors were collected."""
        if self.has_errors():
            raise FtlCompilationError(self.report())
