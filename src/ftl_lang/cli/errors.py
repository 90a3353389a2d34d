"""
CLI Error Handling
==================

Maps exceptions raised while running an ftlc command to a message on
standard error and a process exit code.

Front end errors are printed exactly as they format themselves (location,
source line, caret and hint). Bad arguments and unreadable files exit with
INVALID_ARGS. Anything else is an internal error; --verbose adds the
traceback.
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click

from ftl_lang.errors import FtlError


class ExitCode(IntEnum):
    """Process exit codes shared by all ftlc commands."""
    SUCCESS = 0
    BUILD_ERROR = 1      # Tokenizer or parser error in the input
    INVALID_ARGS = 2     # Invalid arguments or unreadable files
    INTERNAL_ERROR = 3   # Unexpected internal error


# Checked in order; the first matching entry wins
ERROR_TABLE: tuple[tuple[tuple[type, ...], ExitCode, str], ...] = (
    ((FtlError,), ExitCode.BUILD_ERROR, ""),
    ((click.BadParameter, OSError), ExitCode.INVALID_ARGS, "Error: "),
)


def handle_cli_exception(error: Exception, verbose: bool = False) -> NoReturn:
    """
    Report error and exit with the matching ExitCode.

    Raises:
        SystemExit: Always
    """
    for error_types, code, prefix in ERROR_TABLE:
        if isinstance(error, error_types):
            click.echo(f"{prefix}{error}", err=True)
            sys.exit(code)

    click.echo(f"Internal error: {error}", err=True)
    if verbose:
        traceback.print_exc()
    sys.exit(ExitCode.INTERNAL_ERROR)
