"""
FTL Source Formatter
====================

Writes an AST back out as FTL source text. Used by 'ftlc fmt' to reformat
existing code.

Output Layout
-------------
    function add(a: int, b: int) {
        return a + b
    }

    struct Point {
        x: int,
        y: int
    }

- One instruction per line, indented by four spaces per block level
- The else block is written only when it has instructions
- Parentheses are added only where the tree needs them, so formatting and
  parsing again gives an equal tree
"""

import io
from decimal import Decimal
from typing import Iterable, TextIO

from ftl_lang.frontend.ast import (
    ASTVisitor,
    OPERATOR_SYMBOLS,
    PRECEDENCE,
    BinaryExpression,
    Expression,
    Function,
    FunctionCall,
    IfElse,
    Node,
    Number,
    Return,
    Struct,
    Variable,
    VariableAssignment,
    VariableDeclaration,
    WhileLoop,
    format_data_type,
)


class Formatter(ASTVisitor):
    """
    Emits FTL source for AST nodes.

    Usage:
        formatter = Formatter(sys.stdout)
        formatter.write_nodes(parser)

    Attributes:
        writer: Text stream receiving the output
        indent: Text used for one level of indentation
    """

    def __init__(self, writer: TextIO, indent: str = "    "):
        self.writer = writer
        self.indent = indent
        self._level = 0
        self._nodes_written = 0

        # Set while writing an instruction followed by one starting with '('
        self._guard_trailing = False

    def write_nodes(self, nodes: Iterable[Node]) -> None:
        """Write top-level nodes separated by blank lines."""
        for node in nodes:
            self.write_node(node)

    def write_node(self, node: Node) -> None:
        if self._nodes_written:
            self.writer.write("\n")
        self.visit(node)
        self._nodes_written += 1

    def _line(self, text: str) -> None:
        self.writer.write(f"{self.indent * self._level}{text}\n")

    def _block(self, header: str, instructions: tuple) -> None:
        self._line(f"{header} {{")
        self._level += 1
        for instruction, guard in zip(instructions, self._trailing_guards(instructions)):
            self._guard_trailing = guard
            self.visit(instruction)
        self._guard_trailing = False
        self._level -= 1
        self._line("}")

    def _trailing_guards(self, instructions: tuple) -> list[bool]:
        """
        For each instruction, whether the next one is written starting
        with '('. 'a' followed by '(b)' on the next line reads back as a call.
        """
        guards = [False] * len(instructions)
        for index in range(len(instructions) - 2, -1, -1):
            following = instructions[index + 1]
            guards[index] = isinstance(following, Expression) and self.expression(
                following, guard_trailing=guards[index + 1]
            ).startswith("(")
        return guards

    def _value(self, expr: Expression) -> str:
        """Render the expression that ends the current instruction."""
        return self.expression(expr, guard_trailing=self._guard_trailing)

    # =========================================================================
    # Top-Level Nodes
    # =========================================================================

    def visit_Function(self, node: Function):
        arguments = ", ".join(
            f"{arg.name.value}: {format_data_type(arg.data_type.value)}"
            for arg in node.arguments
        )
        self._block(f"function {node.name.value}({arguments})", node.body)

    def visit_Struct(self, node: Struct):
        self._line(f"struct {node.name.value} {{")
        self._level += 1
        for index, struct_field in enumerate(node.fields):
            separator = "," if index < len(node.fields) - 1 else ""
            self._line(
                f"{struct_field.name.value}: "
                f"{format_data_type(struct_field.data_type.value)}{separator}"
            )
        self._level -= 1
        self._line("}")

    # =========================================================================
    # Instructions
    # =========================================================================

    def visit_VariableDeclaration(self, node: VariableDeclaration):
        self._line(f"var {node.name.value} = {self._value(node.value)}")

    def visit_VariableAssignment(self, node: VariableAssignment):
        self._line(f"{node.name.value} = {self._value(node.value)}")

    def visit_Return(self, node: Return):
        self._line(f"return {self._value(node.value)}")

    def visit_IfElse(self, node: IfElse):
        self._block(f"if ({self.expression(node.condition)})", node.if_true)
        if node.if_false:
            self._block("else", node.if_false)

    def visit_WhileLoop(self, node: WhileLoop):
        self._block(f"while ({self.expression(node.condition)})", node.body)

    def generic_visit(self, node) -> None:
        if not isinstance(node, Expression):
            raise TypeError(f"cannot format {type(node).__name__}")
        self._line(self._value(node))

    # =========================================================================
    # Expressions
    # =========================================================================

    def expression(self, expr: Expression, guard_trailing: bool = False) -> str:
        """
        Render an expression with the minimum parentheses.

        With guard_trailing, a variable that would end the text is written
        as '(name)' so a following '(' cannot turn it into a call.
        """
        if isinstance(expr, Number):
            return format_number(expr.value)
        if isinstance(expr, Variable):
            return f"({expr.name})" if guard_trailing else expr.name
        if isinstance(expr, FunctionCall):
            arguments = ", ".join(self.expression(arg) for arg in expr.arguments)
            return f"{expr.name}({arguments})"
        if isinstance(expr, BinaryExpression):
            precedence = PRECEDENCE[expr.operator]
            left = self.expression(expr.left)
            # Left-associative: the right operand needs parentheses on a tie
            if _binds_looser(expr.left, precedence, tie=False):
                left = f"({left})"
            if _binds_looser(expr.right, precedence, tie=True):
                right = f"({self.expression(expr.right)})"
            else:
                right = self.expression(expr.right, guard_trailing)
            return f"{left} {OPERATOR_SYMBOLS[expr.operator]} {right}"
        raise TypeError(f"cannot format expression {type(expr).__name__}")


def _binds_looser(expr: Expression, precedence: int, tie: bool) -> bool:
    if not isinstance(expr, BinaryExpression):
        return False
    child = PRECEDENCE[expr.operator]
    return child < precedence or (tie and child == precedence)


def format_number(value: int | float) -> str:
    """
    Render a number literal the lexer reads back to the same value.

    Floats always carry a decimal point and never an exponent.
    """
    if isinstance(value, int):
        return str(value)

    text = format(Decimal(repr(value)), "f")
    if "." not in text:
        text += ".0"
    return text


def format_nodes(nodes: Iterable[Node], indent: str = "    ") -> str:
    """Format nodes and return the source text."""
    buffer = io.StringIO()
    Formatter(buffer, indent).write_nodes(nodes)
    return buffer.getvalue()
