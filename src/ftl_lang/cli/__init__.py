"""
FTL Command-Line Interface
==========================

This package provides the ftlc command-line tool:

- **ftlc tokens**: print the token stream of a file
- **ftlc parse**: print the syntax tree of every declaration
- **ftlc fmt**: reformat a file
- **ftlc repl**: parse declarations interactively

The tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.
"""

__all__ = ["ftlc"]
