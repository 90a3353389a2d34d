"""
FTL Lexer (Tokenizer)
=====================

This module implements the tokenizer for FTL. It converts the positioned
character stream of a SourceReader into a lazy stream of tokens for the
parser.

Token Categories
----------------
- Keywords: function, if, else, while, var, struct, ptr
- Identifiers: names of functions, variables, structs and data types
  (int, float and return are identifiers at this level)
- Numbers: integers (42) and floats (3.14)
- Comments: // to the end of the line, kept as tokens
- Operators: + - * / < > = == =/= | & %
- Delimiters: ( ) { } [ ] , ; : .
- End of line: every '\\n' is a token

Example Usage
-------------
>>> from ftl_lang.frontend.lexer import tokenize
>>> for token in tokenize("var x = 1.5"):
...     print(token)
Token(VAR, 'var', 1:1)
Token(IDENTIFIER, 'x', 1:5)
Token(EQUAL, '=', 1:7)
Token(FLOAT, 1.5, 1:9)
"""

from collections import deque
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterable, Iterator, Optional
import math
import string

from ftl_lang.errors import SourceLocation
from ftl_lang.frontend.source import Positioned, SourceReader
from ftl_lang.frontend.errors import (
    InvalidCharacterError,
    MalformedNumberError,
)


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """Token types for the FTL language."""

    # === Structural Tokens ===
    END_OF_LINE = auto()    # \n
    COMMENT = auto()        # // ...

    # === Identifiers and Literals ===
    IDENTIFIER = auto()
    INT = auto()
    FLOAT = auto()

    # === Keywords ===
    DEF = auto()            # function
    IF = auto()             # if
    ELSE = auto()           # else
    WHILE = auto()          # while
    VAR = auto()            # var
    STRUCT = auto()         # struct
    POINTER = auto()        # ptr

    # === Operators ===
    PLUS = auto()           # +
    MINUS = auto()          # -
    STAR = auto()           # *
    SLASH = auto()          # /
    LESS = auto()           # <
    GREATER = auto()        # >
    EQUAL = auto()          # =
    DOUBLE_EQUAL = auto()   # ==
    NOT_EQUAL = auto()      # =/=
    BIT_OR = auto()         # |
    BIT_AND = auto()        # &
    MODULUS = auto()        # %

    # === Delimiters ===
    LPAREN = auto()         # (
    RPAREN = auto()         # )
    LBRACE = auto()         # {
    RBRACE = auto()         # }
    LBRACKET = auto()       # [
    RBRACKET = auto()       # ]
    COMMA = auto()          # ,
    SEMICOLON = auto()      # ;
    COLON = auto()          # :
    DOT = auto()            # .


# =============================================================================
# Keyword and Symbol Tables
# =============================================================================

KEYWORDS: dict[str, TokenType] = {
    "function": TokenType.DEF,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "while": TokenType.WHILE,
    "var": TokenType.VAR,
    "struct": TokenType.STRUCT,
    "ptr": TokenType.POINTER,
}

# Multi-character operators are scanned separately in _scan_equals
SINGLE_CHAR_TOKENS: dict[str, TokenType] = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "<": TokenType.LESS,
    ">": TokenType.GREATER,
    "|": TokenType.BIT_OR,
    "&": TokenType.BIT_AND,
    "%": TokenType.MODULUS,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    ",": TokenType.COMMA,
    ";": TokenType.SEMICOLON,
    ":": TokenType.COLON,
    ".": TokenType.DOT,
}

# Source form of every token type with a fixed spelling
TOKEN_TEXT: dict[TokenType, str] = {
    **{token_type: text for text, token_type in KEYWORDS.items()},
    **{token_type: text for text, token_type in SINGLE_CHAR_TOKENS.items()},
    TokenType.EQUAL: "=",
    TokenType.DOUBLE_EQUAL: "==",
    TokenType.NOT_EQUAL: "=/=",
    TokenType.END_OF_LINE: "\n",
}

# Largest value of a 64-bit signed integer literal
MAX_INT = 2**63 - 1


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single positioned token.

    Attributes:
        type: The TokenType classification
        value: Name for identifiers, number for literals, text for comments,
            the lexeme for keywords and symbols
        line: Line of the first character (1-indexed)
        column: Column of the first character (1-indexed)
        filename: Name of the source
    """
    type: TokenType
    value: str | int | float | None
    line: int
    column: int
    filename: str = "<input>"

    def __repr__(self) -> str:
        if isinstance(self.value, (int, float)):
            return f"Token({self.type.name}, {self.value}, {self.line}:{self.column})"
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        return SourceLocation(self.filename, self.line, self.column)

    def positioned(self) -> Positioned:
        """Return the token value wrapped with the token position."""
        return Positioned(self.value, self.line, self.column, self.filename)

    def source_text(self) -> str:
        """
        Render the token as it would appear in source.

        Keywords and symbols render to their exact lexeme.
        """
        if self.type in TOKEN_TEXT:
            return TOKEN_TEXT[self.type]
        if self.type == TokenType.COMMENT:
            return f"//{self.value}"
        return str(self.value)

    def describe(self) -> str:
        """Short text for error messages."""
        if self.type == TokenType.END_OF_LINE:
            return "end of line"
        if self.type == TokenType.COMMENT:
            return "comment"
        return self.source_text()


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes FTL source.

    The lexer is an iterator: each next() call scans exactly one token,
    pulling characters from the reader only as far as that token needs
    (at most two characters of lookahead). It never looks past a line
    terminator before the next token is requested, which keeps interactive
    input responsive.

    A LexError leaves the lexer usable: the offending characters have been
    consumed and the next call continues after them.

    Usage:
        lexer = Lexer(SourceReader.from_string(text, "main.ftl"))
        tokens = list(lexer)

    Attributes:
        reader: The SourceReader supplying characters
    """

    # Characters that can start an identifier
    IDENT_START = string.ascii_letters + "_"

    # Characters that can continue an identifier
    IDENT_CHARS = string.ascii_letters + string.digits + "_"

    DIGITS = string.digits

    # Whitespace that carries no meaning (\n is a token)
    BLANKS = " \t\r\f\v"

    def __init__(self, reader: SourceReader):
        self.reader = reader
        self.filename = reader.filename
        self._chars = iter(reader)
        self._buffer: deque[Positioned[str]] = deque()

    @classmethod
    def from_string(cls, source: str, filename: str = "<input>") -> "Lexer":
        return cls(SourceReader.from_string(source, filename))

    @classmethod
    def from_lines(cls, lines: Iterable[str], filename: str = "<input>") -> "Lexer":
        return cls(SourceReader(lines, filename))

    def line_text(self, line: int) -> Optional[str]:
        """Source text of a recent line, for error context."""
        return self.reader.line_text(line)

    def __iter__(self) -> Iterator[Token]:
        return self

    def __next__(self) -> Token:
        self._skip_blanks()

        start = self._peek_char()
        if start is None:
            raise StopIteration

        char = start.value

        if char == "\n":
            self._advance()
            return self._make_token(TokenType.END_OF_LINE, "\n", start)

        if char in self.IDENT_START:
            return self._scan_identifier(start)

        if char in self.DIGITS:
            return self._scan_number(start)

        if char == "/" and self._peek(1) == "/":
            return self._scan_comment(start)

        if char == "=":
            return self._scan_equals(start)

        if char in SINGLE_CHAR_TOKENS:
            self._advance()
            return self._make_token(SINGLE_CHAR_TOKENS[char], char, start)

        self._advance()
        raise InvalidCharacterError(
            char,
            self._location(start),
            self.line_text(start.line),
        )

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _fill(self, count: int) -> bool:
        """Buffer at least count characters; False if input runs out."""
        while len(self._buffer) < count:
            try:
                self._buffer.append(next(self._chars))
            except StopIteration:
                return False
        return True

    def _peek_char(self, offset: int = 0) -> Optional[Positioned[str]]:
        if not self._fill(offset + 1):
            return None
        return self._buffer[offset]

    def _peek(self, offset: int = 0) -> str:
        """
        Look at the character at current position + offset.

        Returns empty string past the end of input.
        """
        char = self._peek_char(offset)
        return char.value if char is not None else ""

    def _advance(self) -> str:
        """Consume and return the current character."""
        if not self._fill(1):
            return ""
        return self._buffer.popleft().value

    def _skip_blanks(self) -> None:
        while self._peek() and self._peek() in self.BLANKS:
            self._advance()

    # =========================================================================
    # Token Creation
    # =========================================================================

    def _location(self, start: Positioned[str]) -> SourceLocation:
        return SourceLocation(self.filename, start.line, start.column)

    def _make_token(
        self,
        token_type: TokenType,
        value: str | int | float | None,
        start: Positioned[str],
    ) -> Token:
        return Token(
            type=token_type,
            value=value,
            line=start.line,
            column=start.column,
            filename=self.filename,
        )

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_identifier(self, start: Positioned[str]) -> Token:
        """Scan an identifier or keyword."""
        chars = []
        while self._peek() and self._peek() in self.IDENT_CHARS:
            chars.append(self._advance())

        name = "".join(chars)
        if name in KEYWORDS:
            return self._make_token(KEYWORDS[name], name, start)
        return self._make_token(TokenType.IDENTIFIER, name, start)

    def _scan_number(self, start: Positioned[str]) -> Token:
        """
        Scan an integer or float literal.

        A decimal point belongs to the number only when a digit follows it,
        so "1." scans as INT 1 followed by DOT. A second decimal point
        ("1.2.3", "1..2") is an error, as is a float too large for a double.
        """
        chars = self._scan_digits()
        is_float = False

        if self._peek() == "." and self._peek(1) == ".":
            self._raise_extra_points(chars, start)

        if self._peek() == "." and self._is_digit(self._peek(1)):
            is_float = True
            chars.append(self._advance())
            chars.extend(self._scan_digits())

            if self._peek() == ".":
                self._raise_extra_points(chars, start)

        text = "".join(chars)
        if is_float:
            value = float(text)
            if math.isinf(value):
                raise MalformedNumberError(
                    text,
                    "float literal out of range",
                    self._location(start),
                    self.line_text(start.line),
                )
            return self._make_token(TokenType.FLOAT, value, start)

        value = int(text)
        if value > MAX_INT:
            raise MalformedNumberError(
                text,
                "integer literal out of range",
                self._location(start),
                self.line_text(start.line),
            )
        return self._make_token(TokenType.INT, value, start)

    def _raise_extra_points(self, chars: list[str], start: Positioned[str]) -> None:
        """Consume the rest of a literal with a second decimal point and raise."""
        while self._peek() == "." or self._is_digit(self._peek()):
            chars.append(self._advance())
        raise MalformedNumberError(
            "".join(chars),
            "more than one decimal point",
            self._location(start),
            self.line_text(start.line),
        )

    def _scan_digits(self) -> list[str]:
        chars = []
        while self._is_digit(self._peek()):
            chars.append(self._advance())
        return chars

    def _is_digit(self, char: str) -> bool:
        return char != "" and char in self.DIGITS

    def _scan_comment(self, start: Positioned[str]) -> Token:
        """Scan a // comment up to, not including, the line terminator."""
        self._advance()
        self._advance()

        chars = []
        while self._peek() and self._peek() != "\n":
            chars.append(self._advance())

        return self._make_token(TokenType.COMMENT, "".join(chars).rstrip("\r"), start)

    def _scan_equals(self, start: Positioned[str]) -> Token:
        """Scan '=', '==' or '=/='."""
        self._advance()

        if self._peek() == "=":
            self._advance()
            return self._make_token(TokenType.DOUBLE_EQUAL, "==", start)

        if self._peek() == "/" and self._peek(1) == "=":
            self._advance()
            self._advance()
            return self._make_token(TokenType.NOT_EQUAL, "=/=", start)

        return self._make_token(TokenType.EQUAL, "=", start)


# =============================================================================
# Convenience Functions
# =============================================================================

def tokenize(source: str, filename: str = "<input>") -> Iterator[Token]:
    """Tokenize a source string lazily."""
    return Lexer.from_string(source, filename)
