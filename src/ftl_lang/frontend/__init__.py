"""
FTL Front End
=============

This package turns FTL source text into an abstract syntax tree.

Pipeline
--------
Every stage pulls from the previous one lazily, one item at a time:

    lines → SourceReader → Lexer → TokenStream → Parser → AST nodes

so an interactive session can be parsed declaration by declaration as the
user types, and large files are never held in memory as token lists.

Usage
-----
>>> from ftl_lang.frontend import parse_source
>>> [point] = parse_source("struct Point { x: int, y: int }")
>>> [f.name.value for f in point.fields]
['x', 'y']

Language Summary
----------------
- Top level: functions and structs
- Data types: int, float, struct names, ptr <type> to any depth
- Instructions: var declarations, assignments, return, if/else, while,
  bare expressions (calls)
- Expressions: + - * / < > == =/=, calls, parentheses, int and float
  literals
"""

from ftl_lang.frontend.errors import (
    FrontendError,
    FtlCompilationError,
    LexError,
    InvalidCharacterError,
    MalformedNumberError,
    ParseError,
    UnexpectedTokenError,
    ExpectedExpressionError,
    UnexpectedEndOfInputError,
    ErrorCollector,
)
from ftl_lang.frontend.source import Positioned, SourceReader
from ftl_lang.frontend.lexer import Lexer, Token, TokenType, tokenize
from ftl_lang.frontend.parser import (
    Parser,
    ParserOptions,
    ParseResult,
    TokenStream,
    parse_source,
)
from ftl_lang.frontend.formatter import Formatter, format_nodes
from ftl_lang.frontend.ast import (
    ASTNode,
    ASTPrinter,
    ASTVisitor,
    BasicDataType,
    BasicType,
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
    Statement,
    Struct,
    StructDataType,
    StructField,
    Variable,
    VariableAssignment,
    VariableDeclaration,
    WhileLoop,
)

__all__ = [
    # Errors
    "FrontendError",
    "FtlCompilationError",
    "LexError",
    "InvalidCharacterError",
    "MalformedNumberError",
    "ParseError",
    "UnexpectedTokenError",
    "ExpectedExpressionError",
    "UnexpectedEndOfInputError",
    "ErrorCollector",
    # Source
    "Positioned",
    "SourceReader",
    # Lexer
    "Lexer",
    "Token",
    "TokenType",
    "tokenize",
    # Parser
    "Parser",
    "ParserOptions",
    "ParseResult",
    "TokenStream",
    "parse_source",
    # Formatter
    "Formatter",
    "format_nodes",
    # AST Nodes
    "ASTNode",
    "ASTPrinter",
    "ASTVisitor",
    "BasicDataType",
    "BasicType",
    "BinaryExpression",
    "BinaryOperator",
    "DataType",
    "Expression",
    "Function",
    "FunctionArgument",
    "FunctionCall",
    "IfElse",
    "Instruction",
    "Node",
    "Number",
    "PointerDataType",
    "Return",
    "Statement",
    "Struct",
    "StructDataType",
    "StructField",
    "Variable",
    "VariableAssignment",
    "VariableDeclaration",
    "WhileLoop",
]
