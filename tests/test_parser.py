# =============================================================================
# test_parser.py - Parser Unit Tests
# =============================================================================
# Tests for the FTL recursive descent parser.
#
# Test coverage includes:
#   - Functions, structs and data types
#   - Instructions: var, assignment, return, if/else, while, calls
#   - Expression precedence and associativity
#   - Trailing comma handling
#   - Error reporting, resynchronization and error collection
#   - Lazy consumption of input
# =============================================================================

import pytest

from ftl_lang.frontend.ast import (
    ASTPrinter,
    ASTVisitor,
    BasicDataType,
    BasicType,
    BinaryExpression,
    BinaryOperator,
    Function,
    FunctionArgument,
    FunctionCall,
    IfElse,
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
    ExpectedExpressionError,
    FtlCompilationError,
    InvalidCharacterError,
    UnexpectedEndOfInputError,
    UnexpectedTokenError,
)
from ftl_lang.frontend.lexer import Lexer
from ftl_lang.frontend.parser import (
    Parser,
    ParserOptions,
    TokenStream,
    parse_source,
)
from ftl_lang.frontend.source import Positioned


# =============================================================================
# Helper Functions
# =============================================================================

def parse_one(source: str, **options):
    """Parse source holding exactly one declaration."""
    [node] = parse_source(source, options=ParserOptions(**options))
    return node


def parse_body(body: str) -> tuple:
    """Parse instructions wrapped in a function and return the body."""
    return parse_one(f"function f() {{\n{body}\n}}").body


def parse_expr(expr: str):
    [instruction] = parse_body(f"return {expr}")
    return instruction.value


def binary(operator, left, right) -> BinaryExpression:
    return BinaryExpression(operator=operator, left=left, right=right)


def var(name: str) -> Variable:
    return Variable(name=name)


def num(value) -> Number:
    return Number(value=value)


INT = Positioned(BasicDataType(kind=BasicType.INT))
FLOAT = Positioned(BasicDataType(kind=BasicType.FLOAT))


# =============================================================================
# Top-Level Declarations
# =============================================================================

class TestDeclarations:
    """Test function and struct definitions."""

    def test_empty_input(self):
        assert parse_source("") == []

    def test_only_comments_and_blank_lines(self):
        assert parse_source("// nothing here\n\n// at all\n") == []

    def test_function(self):
        node = parse_one("function add(a: int, b: int) { return a + b }")

        assert node == Function(
            name=Positioned("add"),
            arguments=(
                FunctionArgument(name=Positioned("a"), data_type=INT),
                FunctionArgument(name=Positioned("b"), data_type=INT),
            ),
            body=(Return(value=binary(BinaryOperator.ADD, var("a"), var("b"))),),
        )

    def test_function_positions(self):
        node = parse_one("function add(a: int) {\n  return a\n}")

        assert str(node.location) == "<input>:1:1"
        assert (node.name.line, node.name.column) == (1, 10)
        assert (node.arguments[0].name.line, node.arguments[0].name.column) == (1, 14)
        assert (node.body[0].location.line, node.body[0].location.column) == (2, 3)

    def test_function_without_arguments(self):
        node = parse_one("function main() {}")
        assert node.arguments == ()
        assert node.body == ()

    def test_struct(self):
        node = parse_one("struct Point { x: int, y: float }")

        assert node == Struct(
            name=Positioned("Point"),
            fields=(
                StructField(name=Positioned("x"), data_type=INT),
                StructField(name=Positioned("y"), data_type=FLOAT),
            ),
        )

    def test_empty_struct(self):
        assert parse_one("struct Empty {}").fields == ()

    def test_declarations_in_order(self):
        nodes = parse_source(
            "struct A { x: int }\n"
            "function f() { return 1 }\n"
            "struct B { y: int }\n"
        )
        assert [type(n) for n in nodes] == [Struct, Function, Struct]
        assert [n.name.value for n in nodes] == ["A", "f", "B"]

    def test_multiline_declaration(self):
        node = parse_one("function\nadd\n(\na\n:\nint\n)\n{\nreturn\na\n}")
        assert node.name.value == "add"
        assert node.body == (Return(value=var("a")),)


# =============================================================================
# Data Types
# =============================================================================

class TestDataTypes:
    """Test basic, struct and pointer data types."""

    def field_type(self, text: str):
        node = parse_one(f"struct S {{ f: {text} }}")
        return node.fields[0].data_type.value

    def test_int(self):
        assert self.field_type("int") == BasicDataType(kind=BasicType.INT)

    def test_float(self):
        assert self.field_type("float") == BasicDataType(kind=BasicType.FLOAT)

    def test_struct_reference(self):
        assert self.field_type("Point") == StructDataType(name="Point")

    def test_pointer(self):
        data_type = self.field_type("ptr int")
        assert data_type == PointerDataType(target=INT)
        assert data_type.depth == 1

    def test_pointer_chain(self):
        data_type = self.field_type("ptr ptr ptr int")
        assert data_type.depth == 3
        assert data_type.target.value.target.value.target.value == BasicDataType(kind=BasicType.INT)

    def test_pointer_chain_deeper_than_recursion_limit(self):
        data_type = self.field_type("ptr " * 2000 + "int")

        assert data_type.depth == 2000
        assert data_type.base == BasicDataType(kind=BasicType.INT)

        levels = 0
        inner = data_type
        while isinstance(inner, PointerDataType):
            levels += 1
            inner = inner.target.value
        assert levels == 2000

    def test_deep_pointer_chain_in_result_stream(self):
        source = "struct S { f: " + "ptr " * 2000 + "int }\nstruct T { x: int }"
        results = list(Parser.from_string(source).results())

        assert [r.ok for r in results] == [True, True]
        assert results[1].node.name.value == "T"

    def test_deep_pointer_chain_printed(self):
        node = parse_one("struct S { f: " + "ptr " * 2000 + "Point }")
        printed = ASTPrinter().print(node)
        assert printed.splitlines()[1] == "  Field: f: " + "ptr " * 2000 + "Point"

    def test_pointer_positions(self):
        data_type = parse_one("struct S { f: ptr ptr int }").fields[0].data_type
        assert data_type.column == 15
        assert data_type.value.target.column == 19
        assert data_type.value.base.location.column == 23

    def test_pointer_to_struct(self):
        data_type = self.field_type("ptr Point")
        assert data_type.target.value == StructDataType(name="Point")

    def test_missing_data_type(self):
        with pytest.raises(FtlCompilationError) as exc_info:
            parse_source("struct S { f: 1 }")
        assert "expected data type" in str(exc_info.value)


# =============================================================================
# Instructions
# =============================================================================

class TestInstructions:
    """Test instructions inside function bodies."""

    def test_variable_declaration(self):
        [instruction] = parse_body("var x = 1")
        assert instruction == VariableDeclaration(name=Positioned("x"), value=num(1))

    def test_assignment(self):
        [instruction] = parse_body("x = x + 1")
        assert instruction == VariableAssignment(
            name=Positioned("x"),
            value=binary(BinaryOperator.ADD, var("x"), num(1)),
        )

    def test_return(self):
        [instruction] = parse_body("return 0")
        assert instruction == Return(value=num(0))

    def test_call_statement(self):
        [instruction] = parse_body("print(x, 1)")
        assert instruction == FunctionCall(name="print", arguments=(var("x"), num(1)))

    def test_expression_statement(self):
        [instruction] = parse_body("x + 1")
        assert instruction == binary(BinaryOperator.ADD, var("x"), num(1))

    def test_call_then_operator(self):
        [instruction] = parse_body("f() * 2")
        assert instruction == binary(BinaryOperator.MULTIPLY, FunctionCall(name="f"), num(2))

    def test_if_without_else(self):
        [instruction] = parse_body("if (x < 1) { return 1 }")
        assert instruction == IfElse(
            condition=binary(BinaryOperator.LESS, var("x"), num(1)),
            if_true=(Return(value=num(1)),),
            if_false=(),
        )

    def test_if_with_else(self):
        [instruction] = parse_body("if (x) { return 1 } else { return 2 }")
        assert instruction.if_true == (Return(value=num(1)),)
        assert instruction.if_false == (Return(value=num(2)),)

    def test_else_on_next_line(self):
        [instruction] = parse_body("if (x) {\n  return 1\n}\nelse {\n  return 2\n}")
        assert instruction.if_false == (Return(value=num(2)),)

    def test_while(self):
        [instruction] = parse_body("while (i < 10) { i = i + 1 }")
        assert instruction == WhileLoop(
            condition=binary(BinaryOperator.LESS, var("i"), num(10)),
            body=(
                VariableAssignment(
                    name=Positioned("i"),
                    value=binary(BinaryOperator.ADD, var("i"), num(1)),
                ),
            ),
        )

    def test_nested_blocks(self):
        [loop] = parse_body("while (a) { if (b) { c() } }")
        [branch] = loop.body
        assert branch.if_true == (FunctionCall(name="c"),)

    def test_instructions_on_separate_lines(self):
        body = parse_body("var x = 1\nvar y = 2\nreturn x + y")
        assert [type(i) for i in body] == [VariableDeclaration, VariableDeclaration, Return]

    def test_int_and_float_as_variable_names(self):
        # 'int' and 'float' are only reserved where a data type is expected
        [instruction] = parse_body("return int")
        assert instruction.value == var("int")


# =============================================================================
# Expressions
# =============================================================================

class TestExpressions:
    """Test precedence, associativity and primary expressions."""

    def test_number_literals(self):
        assert parse_expr("42") == num(42)
        value = parse_expr("2.5")
        assert value.is_float
        assert value.value == 2.5

    def test_multiplication_binds_tighter(self):
        assert parse_expr("1 + 2 * 3") == binary(
            BinaryOperator.ADD,
            num(1),
            binary(BinaryOperator.MULTIPLY, num(2), num(3)),
        )

    def test_multiplication_first(self):
        assert parse_expr("1 * 2 + 3") == binary(
            BinaryOperator.ADD,
            binary(BinaryOperator.MULTIPLY, num(1), num(2)),
            num(3),
        )

    def test_left_associative(self):
        assert parse_expr("1 - 2 - 3") == binary(
            BinaryOperator.SUBTRACT,
            binary(BinaryOperator.SUBTRACT, num(1), num(2)),
            num(3),
        )

    def test_division_left_associative(self):
        assert parse_expr("a / b * c") == binary(
            BinaryOperator.MULTIPLY,
            binary(BinaryOperator.DIVIDE, var("a"), var("b")),
            var("c"),
        )

    def test_comparison_lowest(self):
        assert parse_expr("a < b + c * d == e") == binary(
            BinaryOperator.EQUAL,
            binary(
                BinaryOperator.LESS,
                var("a"),
                binary(
                    BinaryOperator.ADD,
                    var("b"),
                    binary(BinaryOperator.MULTIPLY, var("c"), var("d")),
                ),
            ),
            var("e"),
        )

    @pytest.mark.parametrize("symbol,operator", [
        ("<", BinaryOperator.LESS),
        (">", BinaryOperator.GREATER),
        ("==", BinaryOperator.EQUAL),
        ("=/=", BinaryOperator.NOT_EQUAL),
    ])
    def test_comparisons(self, symbol, operator):
        assert parse_expr(f"a {symbol} b") == binary(operator, var("a"), var("b"))

    def test_parentheses(self):
        assert parse_expr("(1 + 2) * 3") == binary(
            BinaryOperator.MULTIPLY,
            binary(BinaryOperator.ADD, num(1), num(2)),
            num(3),
        )

    def test_nested_calls(self):
        assert parse_expr("f(g(1), 2)") == FunctionCall(
            name="f",
            arguments=(FunctionCall(name="g", arguments=(num(1),)), num(2)),
        )

    def test_call_with_expression_arguments(self):
        call = parse_expr("max(a + 1, b * 2)")
        assert len(call.arguments) == 2
        assert call.arguments[0] == binary(BinaryOperator.ADD, var("a"), num(1))

    def test_operand_positions(self):
        expr = parse_expr("a + b")
        assert expr.location.column == 8
        assert expr.right.location.column == 12


# =============================================================================
# Trailing Commas
# =============================================================================

class TestTrailingComma:
    """Test the allow_trailing_comma option."""

    def test_accepted_by_default(self):
        node = parse_one("function f(a: int,) { return g(a,) }")
        assert len(node.arguments) == 1
        assert node.body[0].value == FunctionCall(name="g", arguments=(var("a"),))

    def test_struct_field_accepted_by_default(self):
        node = parse_one("struct P { x: int, y: int, }")
        assert len(node.fields) == 2

    def test_rejected_when_strict(self):
        parser = Parser.from_string(
            "struct P { x: int, }",
            options=ParserOptions(allow_trailing_comma=False),
        )
        with pytest.raises(UnexpectedTokenError) as exc_info:
            next(parser)
        assert exc_info.value.found == ","
        assert exc_info.value.location.column == 18

    def test_lone_comma_rejected(self):
        with pytest.raises(FtlCompilationError):
            parse_source("struct P { , }")

    def test_double_comma_rejected(self):
        with pytest.raises(FtlCompilationError):
            parse_source("function f() { return g(1,,) }")


# =============================================================================
# Error Reporting
# =============================================================================

class TestErrors:
    """Test parse errors raised from the iterator."""

    def test_missing_function_name(self):
        parser = Parser.from_string("function (")
        with pytest.raises(UnexpectedTokenError) as exc_info:
            next(parser)

        error = exc_info.value
        assert error.found == "("
        assert error.expected == "function name"
        assert str(error).splitlines() == [
            "<input>:1:10: error: unexpected token '('",
            "    function (",
            "             ^",
            "hint: expected function name",
        ]

    def test_unexpected_top_level_token(self):
        parser = Parser.from_string("var x = 1")
        with pytest.raises(UnexpectedTokenError) as exc_info:
            next(parser)
        assert exc_info.value.expected == "'function' or 'struct'"

    def test_unexpected_end_of_input(self):
        parser = Parser.from_string("function f(")
        with pytest.raises(UnexpectedEndOfInputError) as exc_info:
            next(parser)
        assert "unexpected end of input, expected argument name" in str(exc_info.value)

    def test_unclosed_block(self):
        parser = Parser.from_string("function f() {\n  return 1\n")
        with pytest.raises(UnexpectedEndOfInputError) as exc_info:
            next(parser)
        assert exc_info.value.expected == "'}'"

    def test_expected_expression(self):
        parser = Parser.from_string("function f() { return }")
        with pytest.raises(ExpectedExpressionError) as exc_info:
            next(parser)
        assert exc_info.value.found == "}"

    def test_missing_operand(self):
        parser = Parser.from_string("function f() { var x = 1 + }")
        with pytest.raises(ExpectedExpressionError):
            next(parser)

    def test_missing_condition_parenthesis(self):
        parser = Parser.from_string("function f() { if x { } }")
        with pytest.raises(UnexpectedTokenError) as exc_info:
            next(parser)
        assert exc_info.value.expected == "'('"

    def test_lex_error_surfaces_from_parser(self):
        parser = Parser.from_string("function f() { var x = $ }")
        with pytest.raises(InvalidCharacterError):
            next(parser)


# =============================================================================
# Resynchronization and Error Collection
# =============================================================================

class TestRecovery:
    """Test continuing after errors."""

    def test_resynchronize_at_next_declaration(self):
        parser = Parser.from_string("function (\nstruct P { x: int }")

        with pytest.raises(UnexpectedTokenError):
            next(parser)
        node = next(parser)
        assert node.name.value == "P"
        with pytest.raises(StopIteration):
            next(parser)

    def test_results(self):
        source = (
            "function broken( { }\n"
            "function ok() { return 1 }\n"
            "function also_broken() { return }\n"
            "struct S { x: int }\n"
        )
        results = list(Parser.from_string(source).results())

        assert [r.ok for r in results] == [False, True, False, True]
        assert results[1].node.name.value == "ok"
        assert results[3].node.name.value == "S"
        assert isinstance(results[2].error, ExpectedExpressionError)

    def test_lex_error_then_recovery(self):
        source = "function f() { var x = $ }\nfunction g() { return 2 }"
        results = list(Parser.from_string(source).results())
        assert isinstance(results[0].error, InvalidCharacterError)
        assert results[1].node.name.value == "g"

    def test_no_resynchronize_stops_after_first_error(self):
        parser = Parser.from_string(
            "function (\nstruct P { x: int }",
            options=ParserOptions(resynchronize=False),
        )
        results = list(parser.results())
        assert len(results) == 1
        assert not results[0].ok

    def test_parse_program_collects_errors(self):
        with pytest.raises(FtlCompilationError) as exc_info:
            parse_source("function (\nstruct {\nfunction ok() {}")

        report = str(exc_info.value)
        assert report.endswith("2 errors")
        assert "<input>:1:10" in report
        assert "<input>:2:8" in report

    def test_max_errors(self):
        source = "function (\n" * 5
        with pytest.raises(FtlCompilationError) as exc_info:
            Parser.from_string(source, options=ParserOptions(max_errors=2)).parse_program()
        assert str(exc_info.value).endswith("2 errors")

    def test_filename_in_errors(self):
        with pytest.raises(FtlCompilationError) as exc_info:
            parse_source("struct {", filename="shapes.ftl")
        assert "shapes.ftl:1:8" in str(exc_info.value)


# =============================================================================
# Token Stream and Laziness
# =============================================================================

class TestTokenStream:
    """Test the one-token lookahead buffer."""

    def test_skips_comments_and_line_ends(self):
        stream = TokenStream(Lexer.from_string("// c\n\nx // d\ny"))
        assert stream.advance().value == "x"
        assert stream.advance().value == "y"
        assert stream.at_end()

    def test_peek_does_not_consume(self):
        stream = TokenStream(Lexer.from_string("x"))
        assert stream.peek() is stream.peek()
        assert stream.advance().value == "x"
        assert stream.peek() is None

    def test_parser_reads_no_further_than_needed(self):
        pulled = []

        def lines():
            for text in ("struct P { x: int }\n", "struct Q { y: int }\n"):
                pulled.append(text)
                yield text

        parser = Parser(Lexer.from_lines(lines()))
        assert next(parser).name.value == "P"
        assert len(pulled) == 1

        assert next(parser).name.value == "Q"
        assert len(pulled) == 2


# =============================================================================
# Tree Printer and Visitor
# =============================================================================

class TestASTPrinter:
    """Test the debugging tree printer."""

    def test_function(self):
        node = parse_one("function add(a: int, b: ptr int) {\n  return a + b * 2\n}")
        assert ASTPrinter().print(node) == (
            "Function: add(a: int, b: ptr int) @1:1\n"
            "  Return (a + (b * 2))"
        )

    def test_struct(self):
        node = parse_one("struct Point { x: int, y: float }")
        assert ASTPrinter().print(node) == (
            "Struct: Point @1:1\n"
            "  Field: x: int\n"
            "  Field: y: float"
        )

    def test_control_flow(self):
        node = parse_one(
            "function f() { if (a) { x = 1 } else { var y = 2 } while (b) { g() } }"
        )
        assert ASTPrinter().print(node).splitlines()[1:] == [
            "  If (a)",
            "    Then:",
            "      Assign: x = 1",
            "    Else:",
            "      Var: y = 2",
            "  While (b)",
            "    Expr: g()",
        ]

    def test_visitor_walks_nested_calls(self):
        class CallCounter(ASTVisitor):
            def __init__(self):
                self.calls = []

            def visit_FunctionCall(self, node):
                self.calls.append(node.name)
                self.generic_visit(node)

        node = parse_one("function f() { while (a(1)) { var x = b(c()) } }")
        counter = CallCounter()
        counter.visit(node)
        assert counter.calls == ["a", "b", "c"]
