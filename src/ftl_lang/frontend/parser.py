"""
FTL Recursive Descent Parser
============================

This module implements a recursive descent parser for FTL. It pulls tokens
from the lexer one at a time and produces top-level AST nodes (functions
and structs) one at a time.

Grammar (Simplified EBNF)
-------------------------
program      ::= (function | struct)*
function     ::= 'function' IDENTIFIER '(' (argument (',' argument)* ','?)? ')' block
argument     ::= IDENTIFIER ':' data_type
struct       ::= 'struct' IDENTIFIER '{' (field (',' field)* ','?)? '}'
field        ::= IDENTIFIER ':' data_type
data_type    ::= 'int' | 'float' | 'ptr' data_type | IDENTIFIER

block        ::= '{' instruction* '}'
instruction  ::= 'var' IDENTIFIER '=' expr
               | 'if' '(' expr ')' block ('else' block)?
               | 'while' '(' expr ')' block
               | 'return' expr
               | IDENTIFIER '=' expr
               | expr

expr         ::= primary (binary_op primary)*
primary      ::= INT | FLOAT | IDENTIFIER | call | '(' expr ')'
call         ::= IDENTIFIER '(' (expr (',' expr)* ','?)? ')'

Comments and line ends are skipped between tokens. 'int', 'float' and
'return' are ordinary identifiers to the lexer; the parser treats them as
reserved words where the grammar places them.

Expression Precedence (lowest to highest)
-----------------------------------------
1. comparison      < > == =/=
2. additive        + -
3. multiplicative  * /

All binary operators are left-associative.

Example Usage
-------------
>>> from ftl_lang.frontend.parser import parse_source
>>> [function] = parse_source("function one() { return 1 }")
>>> function.name.value
'one'
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from ftl_lang.errors import SourceLocation
from ftl_lang.frontend.lexer import Lexer, Token, TokenType
from ftl_lang.frontend.source import Positioned
from ftl_lang.frontend.ast import (
    BASIC_TYPE_NAMES,
    PRECEDENCE,
    BasicDataType,
    BinaryExpression,
    BinaryOperator,
    DataType,
    Expression,
    Function,
    FunctionArgument,
    FunctionCall,
    IfElse,
    Instruction,
    Node,
    Number,
    PointerDataType,
    Return,
    Struct,
    StructDataType,
    StructField,
    Variable,
    VariableAssignment,
    VariableDeclaration,
    WhileLoop,
)
from ftl_lang.frontend.errors import (
    ErrorCollector,
    ExpectedExpressionError,
    FrontendError,
    UnexpectedEndOfInputError,
    UnexpectedTokenError,
)

logger = logging.getLogger(__name__)


# Identifier spelled 'return' starts a return statement
RETURN_WORD = "return"

# Tokens that carry no meaning for the parser
TRIVIA = (TokenType.COMMENT, TokenType.END_OF_LINE)

# Tokens where a new top-level declaration can start
DECLARATION_STARTS = (TokenType.DEF, TokenType.STRUCT)

BINARY_OPERATORS: dict[TokenType, BinaryOperator] = {
    TokenType.PLUS: BinaryOperator.ADD,
    TokenType.MINUS: BinaryOperator.SUBTRACT,
    TokenType.STAR: BinaryOperator.MULTIPLY,
    TokenType.SLASH: BinaryOperator.DIVIDE,
    TokenType.LESS: BinaryOperator.LESS,
    TokenType.GREATER: BinaryOperator.GREATER,
    TokenType.DOUBLE_EQUAL: BinaryOperator.EQUAL,
    TokenType.NOT_EQUAL: BinaryOperator.NOT_EQUAL,
}


# =============================================================================
# Parser Configuration
# =============================================================================

@dataclass
class ParserOptions:
    """
    Parser configuration options.

    Attributes:
        allow_trailing_comma: Accept a comma before the closing ')' or '}'
            of argument, field and call lists. The formatter never emits one;
            older sources written by the previous emitter always do.
        resynchronize: After a failed declaration, skip ahead to the next
            'function' or 'struct' keyword and keep parsing. When False,
            iteration stops after the first error.
        max_errors: Errors collected by parse_program before it gives up.
    """
    allow_trailing_comma: bool = True
    resynchronize: bool = True
    max_errors: int = 100


@dataclass(frozen=True)
class ParseResult:
    """One item of Parser.results(): a node, or the error that replaced it."""
    node: Optional[Node] = None
    error: Optional[FrontendError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# =============================================================================
# Token Stream Buffer
# =============================================================================

class TokenStream:
    """
    One-token lookahead over a token iterator.

    Comments and line ends are skipped. At most one significant token is
    buffered, so nothing is read from the lexer before the parser needs it.
    """

    def __init__(self, tokens: Iterable[Token]):
        self._tokens = iter(tokens)
        self._lookahead: Optional[Token] = None
        self._exhausted = False
        self.last_location: Optional[SourceLocation] = None

    def peek(self) -> Optional[Token]:
        """Next significant token, or None at end of input."""
        while self._lookahead is None and not self._exhausted:
            try:
                token = next(self._tokens)
            except StopIteration:
                self._exhausted = True
                break
            self.last_location = token.location
            if token.type not in TRIVIA:
                self._lookahead = token
        return self._lookahead

    def advance(self) -> Optional[Token]:
        """Consume and return the next significant token."""
        token = self.peek()
        self._lookahead = None
        return token

    def check(self, *types: TokenType) -> bool:
        token = self.peek()
        return token is not None and token.type in types

    def match(self, *types: TokenType) -> Optional[Token]:
        """Consume the next token if it is one of types."""
        if self.check(*types):
            return self.advance()
        return None

    def at_end(self) -> bool:
        return self.peek() is None


# =============================================================================
# Parser Implementation
# =============================================================================

class Parser:
    """
    Recursive descent parser for FTL.

    The parser is an iterator of top-level nodes. Each next() call parses
    one declaration from a clean slate; the only state kept between calls
    is the token lookahead.

    A failed declaration raises its error from next(). If resynchronize is
    enabled, the following next() call skips to the next declaration start
    and continues; Parser.results() wraps this into a stream of ParseResult
    items for consumers that want to keep going.

    Attributes:
        filename: Source filename for error reporting
        options: Parser configuration
    """

    def __init__(
        self,
        tokens: Iterable[Token],
        filename: str = "<input>",
        options: Optional[ParserOptions] = None,
    ):
        self.filename = filename
        self.options = options or ParserOptions()
        self._lexer = tokens if isinstance(tokens, Lexer) else None
        self._tokens = TokenStream(tokens)

        # Set after an error; cleared once the stream is back at a declaration
        self._needs_sync = False
        self._stopped = False

    @classmethod
    def from_string(
        cls,
        source: str,
        filename: str = "<input>",
        options: Optional[ParserOptions] = None,
    ) -> "Parser":
        return cls(Lexer.from_string(source, filename), filename, options)

    # =========================================================================
    # Iteration
    # =========================================================================

    def __iter__(self) -> Iterator[Node]:
        return self

    def __next__(self) -> Node:
        if self._stopped:
            raise StopIteration

        try:
            if self._needs_sync:
                self._synchronize()
            node = self._parse_top_level()
        except FrontendError:
            self._needs_sync = True
            if not self.options.resynchronize:
                self._stopped = True
            raise

        if node is None:
            self._stopped = True
            raise StopIteration
        return node

    def results(self) -> Iterator[ParseResult]:
        """
        Yield a ParseResult per declaration, errors included.

        Stops at end of input, or after the first error when
        resynchronization is disabled.
        """
        while True:
            try:
                node = next(self)
            except StopIteration:
                return
            except FrontendError as e:
                yield ParseResult(error=e)
                continue
            yield ParseResult(node=node)

    def parse_program(self) -> list[Node]:
        """
        Parse every declaration, collecting errors.

        Returns:
            All top-level nodes in source order

        Raises:
            FtlCompilationError: If any declaration failed
        """
        errors = ErrorCollector(self.options.max_errors)
        nodes = []

        for result in self.results():
            if result.ok:
                nodes.append(result.node)
                continue
            errors.add(result.error)
            if errors.should_stop():
                break

        errors.raise_if_errors()
        return nodes

    # =========================================================================
    # Token Access Methods
    # =========================================================================

    def _peek(self) -> Optional[Token]:
        return self._tokens.peek()

    def _check(self, *types: TokenType) -> bool:
        return self._tokens.check(*types)

    def _match(self, *types: TokenType) -> Optional[Token]:
        return self._tokens.match(*types)

    def _expect(self, token_type: TokenType, expected: str) -> Token:
        """
        Expect and consume a specific token type.

        Raises:
            UnexpectedTokenError: If another token is found
            UnexpectedEndOfInputError: If the input ends
        """
        if self._check(token_type):
            return self._tokens.advance()
        raise self._error(expected)

    def _expect_identifier(self, expected: str) -> Positioned[str]:
        return self._expect(TokenType.IDENTIFIER, expected).positioned()

    def _error(self, expected: str) -> FrontendError:
        """Build the error for a missing token at the current position."""
        token = self._peek()
        if token is None:
            location = self._tokens.last_location or SourceLocation(self.filename, 1, 1)
            return UnexpectedEndOfInputError(
                expected,
                location=location,
                source_line=self._source_line(location.line),
            )
        return UnexpectedTokenError(
            token.describe(),
            expected=expected,
            location=token.location,
            source_line=self._source_line(token.line),
        )

    def _source_line(self, line: int) -> Optional[str]:
        if self._lexer is None:
            return None
        return self._lexer.line_text(line)

    def _synchronize(self) -> None:
        """Skip tokens until the next 'function' or 'struct' keyword."""
        skipped = 0
        while not self._tokens.at_end() and not self._check(*DECLARATION_STARTS):
            self._tokens.advance()
            skipped += 1
        self._needs_sync = False
        if skipped:
            logger.debug(f"Skipped {skipped} tokens to resynchronize")

    # =========================================================================
    # Top-Level Declaration Parsing
    # =========================================================================

    def _parse_top_level(self) -> Optional[Node]:
        token = self._peek()
        if token is None:
            return None

        if token.type == TokenType.DEF:
            return self._parse_function()
        if token.type == TokenType.STRUCT:
            return self._parse_struct()

        raise UnexpectedTokenError(
            token.describe(),
            expected="'function' or 'struct'",
            location=token.location,
            source_line=self._source_line(token.line),
        )

    def _parse_function(self) -> Function:
        """Parse a function definition."""
        location = self._expect(TokenType.DEF, "'function'").location
        name = self._expect_identifier("function name")

        self._expect(TokenType.LPAREN, "'('")
        arguments = self._parse_list(
            TokenType.RPAREN, "')'", self._parse_function_argument
        )

        body = self._parse_block()

        logger.debug(
            f"Parsed function '{name.value}' "
            f"({len(arguments)} arguments, {len(body)} instructions)"
        )
        return Function(location=location, name=name, arguments=arguments, body=body)

    def _parse_function_argument(self) -> FunctionArgument:
        name = self._expect_identifier("argument name")
        self._expect(TokenType.COLON, "':'")
        data_type = self._parse_data_type()
        return FunctionArgument(location=name.location, name=name, data_type=data_type)

    def _parse_struct(self) -> Struct:
        """Parse a struct definition."""
        location = self._expect(TokenType.STRUCT, "'struct'").location
        name = self._expect_identifier("struct name")

        self._expect(TokenType.LBRACE, "'{'")
        fields = self._parse_list(TokenType.RBRACE, "'}'", self._parse_struct_field)

        logger.debug(f"Parsed struct '{name.value}' ({len(fields)} fields)")
        return Struct(location=location, name=name, fields=fields)

    def _parse_struct_field(self) -> StructField:
        name = self._expect_identifier("field name")
        self._expect(TokenType.COLON, "':'")
        data_type = self._parse_data_type()
        return StructField(location=name.location, name=name, data_type=data_type)

    def _parse_list(self, closing: TokenType, closing_text: str, parse_item) -> tuple:
        """
        Parse a comma-separated list up to and including the closing token.

        The opening token has already been consumed. Whether a comma may
        directly precede the closing token depends on allow_trailing_comma.
        """
        items = []
        if self._match(closing):
            return tuple(items)

        while True:
            items.append(parse_item())

            if self._match(closing):
                return tuple(items)

            comma = self._match(TokenType.COMMA)
            if comma is None:
                raise self._error(f"',' or {closing_text}")

            if self._check(closing):
                if not self.options.allow_trailing_comma:
                    raise UnexpectedTokenError(
                        ",",
                        expected=f"item before {closing_text}",
                        location=comma.location,
                        source_line=self._source_line(comma.line),
                    )
                self._tokens.advance()
                return tuple(items)

    # =========================================================================
    # Data Types
    # =========================================================================

    def _parse_data_type(self) -> Positioned[DataType]:
        """
        Parse int, float, ptr <data_type> or a struct name.

        Leading 'ptr' keywords are collected first and wrapped around the
        base type from the inside out, so pointer depth is not limited by
        the interpreter stack.
        """
        pointers = []
        while True:
            token = self._match(TokenType.POINTER)
            if token is None:
                break
            pointers.append(token)

        token = self._peek()
        if token is None or token.type != TokenType.IDENTIFIER:
            raise self._error("data type")

        self._tokens.advance()
        if token.value in BASIC_TYPE_NAMES:
            data_type = BasicDataType(location=token.location, kind=BASIC_TYPE_NAMES[token.value])
        else:
            data_type = StructDataType(location=token.location, name=token.value)
        result: Positioned[DataType] = Positioned.at(data_type, token.location)

        for pointer in reversed(pointers):
            result = Positioned.at(
                PointerDataType(location=pointer.location, target=result),
                pointer.location,
            )
        return result

    # =========================================================================
    # Instructions
    # =========================================================================

    def _parse_block(self) -> tuple[Instruction, ...]:
        """Parse '{' instruction* '}'."""
        self._expect(TokenType.LBRACE, "'{'")

        instructions = []
        while not self._check(TokenType.RBRACE):
            if self._tokens.at_end():
                raise self._error("'}'")
            instructions.append(self._parse_instruction())

        self._tokens.advance()
        return tuple(instructions)

    def _parse_instruction(self) -> Instruction:
        """Parse any instruction, dispatching on the leading token."""
        token = self._peek()

        if token.type == TokenType.VAR:
            return self._parse_variable_declaration()
        if token.type == TokenType.IF:
            return self._parse_if_else()
        if token.type == TokenType.WHILE:
            return self._parse_while_loop()

        if token.type == TokenType.IDENTIFIER:
            self._tokens.advance()
            if token.value == RETURN_WORD:
                return Return(location=token.location, value=self._parse_expression())

            # name = value, otherwise the identifier starts an expression
            if self._match(TokenType.EQUAL):
                return VariableAssignment(
                    location=token.location,
                    name=token.positioned(),
                    value=self._parse_expression(),
                )
            lhs = self._parse_identifier_expression(token)
            return self._parse_binary_rhs(lhs, 0)

        return self._parse_expression()

    def _parse_variable_declaration(self) -> VariableDeclaration:
        location = self._expect(TokenType.VAR, "'var'").location
        name = self._expect_identifier("variable name")
        self._expect(TokenType.EQUAL, "'='")
        value = self._parse_expression()
        return VariableDeclaration(location=location, name=name, value=value)

    def _parse_if_else(self) -> IfElse:
        location = self._expect(TokenType.IF, "'if'").location
        condition = self._parse_condition()
        if_true = self._parse_block()

        if_false = ()
        if self._match(TokenType.ELSE):
            if_false = self._parse_block()

        return IfElse(
            location=location,
            condition=condition,
            if_true=if_true,
            if_false=if_false,
        )

    def _parse_while_loop(self) -> WhileLoop:
        location = self._expect(TokenType.WHILE, "'while'").location
        condition = self._parse_condition()
        body = self._parse_block()
        return WhileLoop(location=location, condition=condition, body=body)

    def _parse_condition(self) -> Expression:
        """Parse '(' expr ')'."""
        self._expect(TokenType.LPAREN, "'('")
        condition = self._parse_expression()
        self._expect(TokenType.RPAREN, "')'")
        return condition

    # =========================================================================
    # Expression Parsing (Precedence Climbing)
    # =========================================================================

    def _parse_expression(self) -> Expression:
        lhs = self._parse_primary()
        return self._parse_binary_rhs(lhs, 0)

    def _peek_operator(self) -> Optional[BinaryOperator]:
        token = self._peek()
        if token is None:
            return None
        return BINARY_OPERATORS.get(token.type)

    def _parse_binary_rhs(self, lhs: Expression, min_precedence: int) -> Expression:
        """
        Fold binary operators into lhs while they bind at least as tightly
        as min_precedence.
        """
        while True:
            operator = self._peek_operator()
            if operator is None or PRECEDENCE[operator] < min_precedence:
                return lhs

            self._tokens.advance()
            rhs = self._parse_primary()

            # A tighter operator on the right takes rhs as its left operand
            while True:
                next_operator = self._peek_operator()
                if next_operator is None or PRECEDENCE[next_operator] <= PRECEDENCE[operator]:
                    break
                rhs = self._parse_binary_rhs(rhs, PRECEDENCE[operator] + 1)

            lhs = BinaryExpression(
                location=lhs.location,
                operator=operator,
                left=lhs,
                right=rhs,
            )

    def _parse_primary(self) -> Expression:
        """Parse a literal, variable, call or parenthesized expression."""
        token = self._peek()

        if token is None:
            raise self._error("expression")

        if token.type in (TokenType.INT, TokenType.FLOAT):
            self._tokens.advance()
            return Number(location=token.location, value=token.value)

        if token.type == TokenType.IDENTIFIER:
            self._tokens.advance()
            return self._parse_identifier_expression(token)

        if token.type == TokenType.LPAREN:
            self._tokens.advance()
            expr = self._parse_expression()
            self._expect(TokenType.RPAREN, "')'")
            return expr

        raise ExpectedExpressionError(
            token.describe(),
            location=token.location,
            source_line=self._source_line(token.line),
        )

    def _parse_identifier_expression(self, token: Token) -> Expression:
        """Variable reference or, when '(' follows, a function call."""
        if not self._match(TokenType.LPAREN):
            return Variable(location=token.location, name=token.value)

        arguments = self._parse_list(TokenType.RPAREN, "')'", self._parse_expression)
        return FunctionCall(location=token.location, name=token.value, arguments=arguments)


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_source(
    source: str,
    filename: str = "<input>",
    options: Optional[ParserOptions] = None,
) -> list[Node]:
    """
    Parse FTL source code into its top-level nodes.

    Raises:
        FtlCompilationError: If any declaration failed to parse
    """
    return Parser.from_string(source, filename, options).parse_program()
