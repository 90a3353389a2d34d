"""
FTL - Front End Toolchain
=========================

This package provides the front end of the FTL language: a tokenizer and
a recursive descent parser that turn source text into an abstract syntax
tree, plus a source formatter and the 'ftlc' command-line tool.

Main Components
---------------
- **frontend**: reader, lexer, parser, AST and formatter
- **cli**: the ftlc command (tokens, parse, fmt, repl)

Quick Start
-----------
Parse a program:
    >>> from ftl_lang import parse_source
    >>> nodes = parse_source("function add(a: int, b: int) { return a + b }")
    >>> nodes[0].name.value
    'add'

Parse declaration by declaration, continuing past errors:
    >>> from ftl_lang import Parser
    >>> for result in Parser.from_string(text).results():
    ...     print(result.node or result.error)

Or use the command-line tool:
    $ ftlc parse program.ftl
    $ ftlc fmt program.ftl -o program.ftl
    $ ftlc repl
"""

__version__ = "0.1.0"
__author__ = "FTL Contributors"

# =============================================================================
# Public API Exports
# =============================================================================

from ftl_lang.errors import FtlError, SourceLocation
from ftl_lang.frontend import (
    FrontendError,
    FtlCompilationError,
    LexError,
    ParseError,
    Lexer,
    Parser,
    ParserOptions,
    ParseResult,
    SourceReader,
    Formatter,
    format_nodes,
    parse_source,
    tokenize,
)

__all__ = [
    # Version info
    "__version__",
    "__author__",
    # Exception hierarchy
    "FtlError",
    "FrontendError",
    "FtlCompilationError",
    "LexError",
    "ParseError",
    "SourceLocation",
    # Front end
    "SourceReader",
    "Lexer",
    "Parser",
    "ParserOptions",
    "ParseResult",
    "Formatter",
    "format_nodes",
    "parse_source",
    "tokenize",
]
