"""
ftlc - FTL Front End Command-Line Interface
===========================================

This module implements the command-line interface for the FTL front end.
It exposes each stage of the pipeline so source files can be inspected
and reformatted without writing any Python.

Usage Examples
--------------
Show the token stream of a file:
    $ ftlc tokens program.ftl

Show the syntax tree of every declaration:
    $ ftlc parse program.ftl

Reformat a file in place:
    $ ftlc fmt program.ftl -o program.ftl

Type declarations interactively:
    $ ftlc repl
    ftl [1]: function one() { return 1 }
    Function: one() @1:1
      Return 1

Strict Mode
-----------
With --strict, a comma directly before the closing ')' or '}' of a list
is reported as an error instead of being accepted.

Exit Codes
----------
0 - Success
1 - The input contains lexical or syntax errors
2 - Invalid arguments
3 - Internal error
"""

import logging
import sys
from pathlib import Path
from typing import Iterator, Optional, TextIO

import click

from ftl_lang import __version__
from ftl_lang.cli.errors import ExitCode, handle_cli_exception
from ftl_lang.frontend import (
    ASTPrinter,
    Formatter,
    FrontendError,
    Lexer,
    LexError,
    Parser,
    ParserOptions,
    SourceReader,
    TokenType,
    format_nodes,
)

logger = logging.getLogger(__name__)

# Shown before each line read by the REPL; {} is the line number
REPL_PROMPT = "ftl [{}]: "


# =============================================================================
# CLI Context and Utilities
# =============================================================================

class Context:
    """
    Shared context for CLI commands.

    Stores the options given to the ftlc group.
    """

    def __init__(self) -> None:
        self.verbose: bool = False
        self.strict: bool = False

    def setup_logging(self) -> None:
        """Configure logging based on verbosity."""
        level = logging.DEBUG if self.verbose else logging.WARNING
        logging.basicConfig(
            level=level,
            format="%(levelname)s: %(message)s" if self.verbose else "%(message)s",
        )

    def parser_options(self) -> ParserOptions:
        return ParserOptions(allow_trailing_comma=not self.strict)

    def open_parser(self, source: Path) -> Parser:
        reader = SourceReader.from_file(source)
        return Parser(Lexer(reader), reader.filename, self.parser_options())


pass_context = click.make_pass_decorator(Context, ensure=True)


def prompt_lines(stream: TextIO) -> Iterator[str]:
    """
    Yield input lines, printing a numbered prompt before each read.

    Nothing is read until the consumer asks for the next line, so the
    prompt appears only when the parser needs more input.
    """
    number = 1
    while True:
        click.echo(REPL_PROMPT.format(number), nl=False)
        line = stream.readline()
        if not line:
            click.echo()
            return
        number += 1
        yield line


def report_error(error: FrontendError) -> None:
    click.echo(str(error), err=True)


def report_summary(error_count: int) -> None:
    error_word = "error" if error_count == 1 else "errors"
    click.echo(f"{error_count} {error_word}", err=True)


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Enable verbose output",
)
@click.option(
    "--strict",
    is_flag=True,
    help="Reject trailing commas in argument, field and call lists",
)
@click.version_option(version=__version__, prog_name="ftlc")
@pass_context
def main(ctx: Context, verbose: bool, strict: bool) -> None:
    """
    Tokenize, parse and format FTL source code.

    FTL programs are made of functions and structs:

    \b
        struct Point { x: int, y: int }
        function add(a: int, b: int) {
            return a + b
        }

    Use 'ftlc COMMAND --help' for the options of each command.
    """
    ctx.verbose = verbose
    ctx.strict = strict
    ctx.setup_logging()


# =============================================================================
# Tokens Command
# =============================================================================

@main.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--skip-trivia",
    is_flag=True,
    help="Hide comments and line ends",
)
@pass_context
def tokens(ctx: Context, source: Path, skip_trivia: bool) -> None:
    """
    Print the tokens of SOURCE, one per line.

    Invalid characters and malformed numbers are reported and scanning
    continues after them.

    Example:
        ftlc tokens program.ftl
    """
    lexer = Lexer(SourceReader.from_file(source))
    error_count = 0

    try:
        while True:
            try:
                token = next(lexer)
            except StopIteration:
                break
            except LexError as e:
                report_error(e)
                error_count += 1
                continue

            if skip_trivia and token.type in (TokenType.COMMENT, TokenType.END_OF_LINE):
                continue
            click.echo(repr(token))
    except Exception as e:
        handle_cli_exception(e, ctx.verbose)

    if error_count:
        report_summary(error_count)
        sys.exit(ExitCode.BUILD_ERROR)


# =============================================================================
# Parse Command
# =============================================================================

@main.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@pass_context
def parse(ctx: Context, source: Path) -> None:
    """
    Print the syntax tree of every declaration in SOURCE.

    A declaration with errors is reported and parsing continues at the
    next 'function' or 'struct'.

    Example:
        ftlc parse program.ftl
    """
    printer = ASTPrinter()
    error_count = 0

    try:
        for result in ctx.open_parser(source).results():
            if result.ok:
                click.echo(printer.print(result.node))
            else:
                report_error(result.error)
                error_count += 1
    except Exception as e:
        handle_cli_exception(e, ctx.verbose)

    if error_count:
        report_summary(error_count)
        sys.exit(ExitCode.BUILD_ERROR)


# =============================================================================
# Format Command
# =============================================================================

@main.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Output file (default: standard output)",
)
@click.option(
    "--indent",
    type=click.IntRange(min=1),
    default=4,
    help="Spaces per indentation level (default: 4)",
)
@pass_context
def fmt(ctx: Context, source: Path, output: Optional[Path], indent: int) -> None:
    """
    Reformat SOURCE.

    Nothing is written unless the whole file parses. Comments are not
    part of the syntax tree and are dropped.

    \b
    Examples:
        ftlc fmt program.ftl                 # Print to standard output
        ftlc fmt program.ftl -o program.ftl  # Rewrite the file
    """
    try:
        nodes = ctx.open_parser(source).parse_program()
    except Exception as e:
        handle_cli_exception(e, ctx.verbose)

    logger.debug(f"Formatting {len(nodes)} declarations from {source}")

    if output is None:
        click.echo(format_nodes(nodes, " " * indent), nl=False)
        return

    try:
        with open(output, "w", encoding="utf-8") as f:
            Formatter(f, " " * indent).write_nodes(nodes)
    except OSError as e:
        handle_cli_exception(e, ctx.verbose)

    logger.info(f"Wrote {output}")


# =============================================================================
# REPL Command
# =============================================================================

@main.command()
@pass_context
def repl(ctx: Context) -> None:
    """
    Parse declarations typed at an interactive prompt.

    Each complete function or struct is printed as soon as its closing
    brace is read. Errors are reported and the session continues at the
    next 'function' or 'struct'. End the session with Ctrl-D.
    """
    lines = prompt_lines(click.get_text_stream("stdin"))
    parser = Parser(Lexer.from_lines(lines, "<stdin>"), "<stdin>", ctx.parser_options())
    printer = ASTPrinter()

    try:
        for result in parser.results():
            if result.ok:
                click.echo(printer.print(result.node))
            else:
                report_error(result.error)
    except KeyboardInterrupt:
        click.echo()


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
