"""
FTL Error Hierarchy
===================

This module defines the root of the exception hierarchy for the FTL
toolchain. All exceptions inherit from FtlError, allowing callers to catch
every toolchain error with a single except clause if desired.

Exception Hierarchy
-------------------
FtlError (base)
└── FrontendError (tokenizer and parser, see ftl_lang.frontend.errors)
    ├── LexError
    ├── ParseError
    └── FtlCompilationError

Design Philosophy
-----------------
Each exception captures source location information (filename, line, column)
when applicable. This allows for detailed error messages that help users
quickly locate and fix issues in their source code.

Error messages follow this format:
    filename:line:column: error: description
        source_line_text
        ^ (pointer to error location)
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass


# =============================================================================
# Base Exception Class
# =============================================================================

class FtlError(Exception):
    """
    Base exception for all FTL toolchain errors.

    All exceptions in the package inherit from this class, allowing callers
    to catch all FTL-related errors with a single except clause:

        try:
            nodes = parse_source(text)
        except FtlError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source code for error reporting.

    Used throughout the front end to track where tokens, AST nodes and
    errors occur. The immutable (frozen) design ensures locations cannot be
    accidentally modified.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# Placeholder for nodes built by hand (tests, formatter round-trips)
UNKNOWN_LOCATION = SourceLocation("<unknown>", 0, 0)
