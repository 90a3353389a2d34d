"""
FTL Abstract Syntax Tree (AST) Definitions
==========================================

This module defines the AST node types produced by the FTL parser. The AST
is the contract between the parser and every downstream consumer (the
formatter, the tree printer, a future analysis stage).

Node Hierarchy
--------------
ASTNode (base)
├── Top-level nodes
│   ├── Function - name, arguments (prototype) and body
│   └── Struct - name and fields
├── Declarations
│   ├── FunctionArgument - name: data type
│   └── StructField - name: data type
├── Data types
│   ├── BasicDataType - int or float
│   ├── StructDataType - reference to a struct by name
│   └── PointerDataType - pointer to a nested data type
├── Statements
│   ├── VariableDeclaration - var name = value
│   ├── VariableAssignment - name = value
│   └── Return - return value
├── Control flow
│   ├── IfElse - condition, true branch, false branch (may be empty)
│   └── WhileLoop - condition and body
└── Expressions
    ├── BinaryExpression - left operator right
    ├── FunctionCall - name(arguments)
    ├── Number - integer or float literal
    └── Variable - variable reference

Design Notes
------------
- All nodes are frozen dataclasses; child sequences are tuples
- Each node stores its source location; locations do not take part in
  equality, so hand-built trees compare equal to parsed ones
- Names and data types are Positioned values so each keeps its own position
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Union

from ftl_lang.errors import SourceLocation, UNKNOWN_LOCATION
from ftl_lang.frontend.source import Positioned


# =============================================================================
# AST Node Base Classes
# =============================================================================

@dataclass(frozen=True)
class ASTNode:
    """
    Base class for all AST nodes.

    Attributes:
        location: Source location where this node begins
    """
    location: SourceLocation = field(default=UNKNOWN_LOCATION, compare=False)


@dataclass(frozen=True)
class Expression(ASTNode):
    """Base class for nodes that evaluate to a value."""
    pass


@dataclass(frozen=True)
class Statement(ASTNode):
    """Base class for variable declaration, assignment and return."""
    pass


@dataclass(frozen=True)
class DataType(ASTNode):
    """Base class for data types."""
    pass


# =============================================================================
# Data Types
# =============================================================================

class BasicType(Enum):
    """Built-in scalar types."""
    INT = auto()
    FLOAT = auto()


# Spelling of each basic type in source
BASIC_TYPE_NAMES: dict[str, BasicType] = {
    "int": BasicType.INT,
    "float": BasicType.FLOAT,
}


@dataclass(frozen=True)
class BasicDataType(DataType):
    kind: BasicType = BasicType.INT


@dataclass(frozen=True)
class StructDataType(DataType):
    """Reference to a struct type by name (not resolved by the parser)."""
    name: str = ""


@dataclass(frozen=True)
class PointerDataType(DataType):
    """
    Pointer to another data type.

    Pointers nest to any depth: 'ptr ptr int' is a pointer whose target
    is a pointer to int.
    """
    target: Positioned[DataType] = None

    @property
    def depth(self) -> int:
        """Number of pointer levels, counting this one."""
        depth = 1
        inner = self.target.value
        while isinstance(inner, PointerDataType):
            depth += 1
            inner = inner.target.value
        return depth

    @property
    def base(self) -> DataType:
        """The innermost data type that is not a pointer."""
        inner = self.target.value
        while isinstance(inner, PointerDataType):
            inner = inner.target.value
        return inner


# =============================================================================
# Expressions
# =============================================================================

class BinaryOperator(Enum):
    """Binary operators, in no particular order."""
    ADD = auto()
    SUBTRACT = auto()
    MULTIPLY = auto()
    DIVIDE = auto()
    LESS = auto()
    GREATER = auto()
    EQUAL = auto()
    NOT_EQUAL = auto()


# Operator precedence, higher binds tighter; all operators are left-associative
PRECEDENCE: dict[BinaryOperator, int] = {
    BinaryOperator.MULTIPLY: 3,
    BinaryOperator.DIVIDE: 3,
    BinaryOperator.ADD: 2,
    BinaryOperator.SUBTRACT: 2,
    BinaryOperator.LESS: 1,
    BinaryOperator.GREATER: 1,
    BinaryOperator.EQUAL: 1,
    BinaryOperator.NOT_EQUAL: 1,
}

OPERATOR_SYMBOLS: dict[BinaryOperator, str] = {
    BinaryOperator.ADD: "+",
    BinaryOperator.SUBTRACT: "-",
    BinaryOperator.MULTIPLY: "*",
    BinaryOperator.DIVIDE: "/",
    BinaryOperator.LESS: "<",
    BinaryOperator.GREATER: ">",
    BinaryOperator.EQUAL: "==",
    BinaryOperator.NOT_EQUAL: "=/=",
}


@dataclass(frozen=True)
class BinaryExpression(Expression):
    """
    Binary operation (left operator right).

    Attributes:
        operator: The binary operator
        left: Left operand expression
        right: Right operand expression
    """
    operator: BinaryOperator = None
    left: Expression = None
    right: Expression = None


@dataclass(frozen=True)
class FunctionCall(Expression):
    """
    Function call expression.

    Attributes:
        name: Name of the called function
        arguments: Argument expressions in call order
    """
    name: str = ""
    arguments: tuple[Expression, ...] = ()


@dataclass(frozen=True)
class Number(Expression):
    """
    Numeric literal.

    The Python type of value tells the literal kind: int for integer
    literals, float for literals with a decimal point.
    """
    value: Union[int, float] = 0

    @property
    def is_float(self) -> bool:
        return isinstance(self.value, float)


@dataclass(frozen=True)
class Variable(Expression):
    """Variable reference."""
    name: str = ""


# =============================================================================
# Statements
# =============================================================================

@dataclass(frozen=True)
class VariableDeclaration(Statement):
    """
    Variable declaration with initializer: var name = value

    Attributes:
        name: Variable name
        value: Initializer expression
    """
    name: Positioned[str] = None
    value: Expression = None


@dataclass(frozen=True)
class VariableAssignment(Statement):
    """Assignment to an existing variable: name = value"""
    name: Positioned[str] = None
    value: Expression = None


@dataclass(frozen=True)
class Return(Statement):
    """Return from the enclosing function: return value"""
    value: Expression = None


# =============================================================================
# Control Flow
# =============================================================================

@dataclass(frozen=True)
class IfElse(ASTNode):
    """
    If statement with optional else block.

    A missing else block is an empty if_false tuple.

    Attributes:
        condition: The condition expression
        if_true: Instructions run when the condition holds
        if_false: Instructions run otherwise
    """
    condition: Expression = None
    if_true: tuple["Instruction", ...] = ()
    if_false: tuple["Instruction", ...] = ()


@dataclass(frozen=True)
class WhileLoop(ASTNode):
    """
    While loop.

    Attributes:
        condition: Loop condition, checked before each iteration
        body: Loop body instructions
    """
    condition: Expression = None
    body: tuple["Instruction", ...] = ()


Instruction = Union[Expression, Statement, IfElse, WhileLoop]


# =============================================================================
# Top-Level Nodes
# =============================================================================

@dataclass(frozen=True)
class FunctionArgument(ASTNode):
    """One entry of a function prototype: name: data_type"""
    name: Positioned[str] = None
    data_type: Positioned[DataType] = None


@dataclass(frozen=True)
class StructField(ASTNode):
    """One struct field: name: data_type"""
    name: Positioned[str] = None
    data_type: Positioned[DataType] = None


@dataclass(frozen=True)
class Function(ASTNode):
    """
    Function definition.

    Attributes:
        name: Function name
        arguments: The prototype, in declaration order
        body: Instructions of the function body
    """
    name: Positioned[str] = None
    arguments: tuple[FunctionArgument, ...] = ()
    body: tuple[Instruction, ...] = ()


@dataclass(frozen=True)
class Struct(ASTNode):
    """
    Struct definition.

    Attributes:
        name: Struct name
        fields: Fields in declaration order
    """
    name: Positioned[str] = None
    fields: tuple[StructField, ...] = ()


Node = Union[Function, Struct]


# =============================================================================
# AST Visitor
# =============================================================================

class ASTVisitor:
    """
    Base class for AST visitors.

    Dispatches on the node class name:

        class CallCounter(ASTVisitor):
            def __init__(self):
                self.calls = 0

            def visit_FunctionCall(self, node):
                self.calls += 1
                self.generic_visit(node)
    """

    def visit(self, node: ASTNode) -> Any:
        method = getattr(self, f"visit_{type(node).__name__}", self.generic_visit)
        return method(node)

    def generic_visit(self, node: ASTNode) -> None:
        """Visit every child node of node."""
        for child in _children(node):
            self.visit(child)


def _children(node: ASTNode):
    for name in node.__dataclass_fields__:
        if name == "location":
            continue
        value = getattr(node, name)
        items = value if isinstance(value, tuple) else (value,)
        for item in items:
            if isinstance(item, Positioned):
                item = item.value
            if isinstance(item, ASTNode):
                yield item


# =============================================================================
# AST Printer (for debugging)
# =============================================================================

def format_data_type(data_type: DataType) -> str:
    """Render a data type in source form."""
    if isinstance(data_type, BasicDataType):
        return data_type.kind.name.lower()
    if isinstance(data_type, StructDataType):
        return data_type.name
    if isinstance(data_type, PointerDataType):
        return "ptr " * data_type.depth + format_data_type(data_type.base)
    raise TypeError(f"not a data type: {data_type!r}")


class ASTPrinter(ASTVisitor):
    """
    Pretty-prints an AST as an indented tree for debugging.

    Example:
        printer = ASTPrinter()
        print(printer.print(function))
    """

    def __init__(self):
        self.output: list[str] = []
        self.indent_level = 0

    def print(self, node: ASTNode) -> str:
        """Return the tree rendering of node."""
        self.output = []
        self.indent_level = 0
        self.visit(node)
        return "\n".join(self.output)

    def _emit(self, text: str) -> None:
        self.output.append("  " * self.indent_level + text)

    def _block(self, title: str, instructions: tuple) -> None:
        self._emit(title)
        self.indent_level += 1
        for instruction in instructions:
            self.visit(instruction)
        self.indent_level -= 1

    def visit_Function(self, node: Function):
        args = ", ".join(
            f"{arg.name.value}: {format_data_type(arg.data_type.value)}"
            for arg in node.arguments
        )
        self._emit(f"Function: {node.name.value}({args}) @{node.location.line}:{node.location.column}")
        self.indent_level += 1
        for instruction in node.body:
            self.visit(instruction)
        self.indent_level -= 1

    def visit_Struct(self, node: Struct):
        self._emit(f"Struct: {node.name.value} @{node.location.line}:{node.location.column}")
        self.indent_level += 1
        for struct_field in node.fields:
            self._emit(f"Field: {struct_field.name.value}: {format_data_type(struct_field.data_type.value)}")
        self.indent_level -= 1

    def visit_VariableDeclaration(self, node: VariableDeclaration):
        self._emit(f"Var: {node.name.value} = {self._expr_str(node.value)}")

    def visit_VariableAssignment(self, node: VariableAssignment):
        self._emit(f"Assign: {node.name.value} = {self._expr_str(node.value)}")

    def visit_Return(self, node: Return):
        self._emit(f"Return {self._expr_str(node.value)}")

    def visit_IfElse(self, node: IfElse):
        self._emit(f"If ({self._expr_str(node.condition)})")
        self.indent_level += 1
        self._block("Then:", node.if_true)
        if node.if_false:
            self._block("Else:", node.if_false)
        self.indent_level -= 1

    def visit_WhileLoop(self, node: WhileLoop):
        self._block(f"While ({self._expr_str(node.condition)})", node.body)

    def generic_visit(self, node: ASTNode) -> None:
        if isinstance(node, Expression):
            self._emit(f"Expr: {self._expr_str(node)}")
        else:
            super().generic_visit(node)

    def _expr_str(self, expr: Expression) -> str:
        """Convert expression to a fully parenthesized string."""
        if isinstance(expr, Number):
            return repr(expr.value)
        if isinstance(expr, Variable):
            return expr.name
        if isinstance(expr, BinaryExpression):
            op_str = OPERATOR_SYMBOLS[expr.operator]
            return f"({self._expr_str(expr.left)} {op_str} {self._expr_str(expr.right)})"
        if isinstance(expr, FunctionCall):
            args = ", ".join(self._expr_str(a) for a in expr.arguments)
            return f"{expr.name}({args})"
        return f"<{type(expr).__name__}>"
