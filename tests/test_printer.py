"""
AST Printer Test Suite
======================

Tests for ASTPrinter: the rendering of each node kind, and that printed
programs parse back to the same tree.
"""

import pytest
from stackc.minic.lexer import lex
from stackc.minic.parser import parse_source, parse_expression
from stackc.minic.ast import (
    ASTPrinter,
    Program,
    Func,
    Return,
    ExprStmt,
    Declare,
    Literal,
    Unary,
    Binary,
    Assign,
    Var,
    UnaryOperator,
    BinaryOperator,
)


@pytest.fixture
def printer():
    return ASTPrinter()


# =============================================================================
# Node Rendering
# =============================================================================

class TestExpressionRendering:

    def test_literal(self, printer):
        assert printer.print_expression(Literal(42)) == "42"

    def test_variable(self, printer):
        assert printer.print_expression(Var("x")) == "x"

    def test_binary_is_parenthesised(self, printer):
        node = Binary(BinaryOperator.ADD, Literal(1), Literal(2))
        assert printer.print_expression(node) == "(1 + 2)"

    def test_nested_binary(self, printer):
        node = Binary(
            BinaryOperator.SUB,
            Binary(BinaryOperator.SUB, Literal(1), Literal(2)),
            Literal(3),
        )
        assert printer.print_expression(node) == "((1 - 2) - 3)"

    def test_unary(self, printer):
        node = Unary(UnaryOperator.LOGICAL_NEGATE, Unary(UnaryOperator.NEGATE, Var("a")))
        assert printer.print_expression(node) == "!-a"

    def test_assignment(self, printer):
        assert printer.print_expression(Assign("a", Literal(1))) == "(a = 1)"

    @pytest.mark.parametrize("op,symbol", [
        (BinaryOperator.LOGICAL_AND, "&&"),
        (BinaryOperator.LOGICAL_OR, "||"),
        (BinaryOperator.SHIFT_LEFT, "<<"),
        (BinaryOperator.SHIFT_RIGHT, ">>"),
        (BinaryOperator.BITWISE_XOR, "^"),
        (BinaryOperator.GREATER_EQ, ">="),
    ])
    def test_operator_symbols(self, printer, op, symbol):
        assert printer.print_expression(Binary(op, Var("a"), Var("b"))) == f"(a {symbol} b)"

    def test_unknown_node_rejected(self, printer):
        with pytest.raises(TypeError):
            printer.print_expression("x")


class TestStatementRendering:

    def test_return(self, printer):
        assert printer.print_statement(Return(Literal(0))) == "return 0;"

    def test_expression_statement(self, printer):
        assert printer.print_statement(ExprStmt(Assign("x", Literal(1)))) == "(x = 1);"

    def test_declaration(self, printer):
        assert printer.print_statement(Declare("x")) == "int x;"
        assert printer.print_statement(Declare("x", Literal(5))) == "int x = 5;"

    def test_program(self, printer):
        program = Program(Func("main", (Declare("a", Literal(1)), Return(Var("a")))))
        assert printer.print_program(program) == (
            "int main () {\n"
            "    int a = 1;\n"
            "    return a;\n"
            "}"
        )

    def test_empty_function(self, printer):
        assert printer.print_program(Program(Func("f"))) == "int f () {\n}"


# =============================================================================
# Round Trip
# =============================================================================

class TestRoundTrip:
    """print then parse gives back the original tree."""

    @pytest.mark.parametrize("source", [
        "int main() { return 2; }",
        "int main() { int a = 4; int b = 2; return a / b + a % b; }",
        "int main() { int a; int b; a = b = 3; return !a || ~b && -a; }",
        "int main() { return 1 << 2 >> 1 != 3 == 0 <= 7; }",
        "int main() { int x = 5; x = x ^ 3 | 8 & x; return x - -x; }",
        "int main() { }",
    ])
    def test_program_round_trip(self, printer, source):
        program = parse_source(source)
        assert parse_source(printer.print_program(program)) == program

    def test_expression_round_trip(self, printer):
        tree = parse_expression(lex("a = 1 - (2 - 3) * -b"))
        assert parse_expression(lex(printer.print_expression(tree))) == tree
