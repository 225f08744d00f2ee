"""
Mini-C Abstract Syntax Tree (AST) Definitions
=============================================

This module defines the AST node types built by the parser and consumed
by the code generator and the printer.

Node Vocabulary
---------------
The vocabulary is closed. Each category is a union of frozen
dataclasses, with no shared base class:

    Expr = Literal | Unary | Binary | Assign | Var
    Stmt = Return | ExprStmt | Declare
    Decl = Func
    Program (exactly one Decl)

Consumers dispatch on the concrete class and treat anything else as an
internal error.

Design Notes
------------
- Nodes are frozen; the tree is built bottom-up by the parser and is
  read-only afterwards.
- Each node owns its children. No node is shared between two parents.
- Function bodies are tuples so the whole tree is hashable and immutable.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Union


# =============================================================================
# Operators
# =============================================================================

class UnaryOperator(Enum):
    """Unary operator types."""
    NEGATE = auto()              # -x
    BITWISE_COMPLEMENT = auto()  # ~x
    LOGICAL_NEGATE = auto()      # !x


class BinaryOperator(Enum):
    """Binary operator types."""
    # Arithmetic
    ADD = auto()         # +
    SUB = auto()         # -
    MUL = auto()         # *
    DIV = auto()         # /
    MODULO = auto()      # %

    # Comparison
    LESS = auto()        # <
    LESS_EQ = auto()     # <=
    GREATER = auto()     # >
    GREATER_EQ = auto()  # >=
    EQUALS = auto()      # ==
    NOT_EQUALS = auto()  # !=

    # Logical
    LOGICAL_AND = auto()  # &&
    LOGICAL_OR = auto()   # ||

    # Bitwise
    BITWISE_AND = auto()  # &
    BITWISE_OR = auto()   # |
    BITWISE_XOR = auto()  # ^
    SHIFT_LEFT = auto()   # <<
    SHIFT_RIGHT = auto()  # >>


UNARY_SYMBOLS: dict[UnaryOperator, str] = {
    UnaryOperator.NEGATE: "-",
    UnaryOperator.BITWISE_COMPLEMENT: "~",
    UnaryOperator.LOGICAL_NEGATE: "!",
}

BINARY_SYMBOLS: dict[BinaryOperator, str] = {
    BinaryOperator.ADD: "+",
    BinaryOperator.SUB: "-",
    BinaryOperator.MUL: "*",
    BinaryOperator.DIV: "/",
    BinaryOperator.MODULO: "%",
    BinaryOperator.LESS: "<",
    BinaryOperator.LESS_EQ: "<=",
    BinaryOperator.GREATER: ">",
    BinaryOperator.GREATER_EQ: ">=",
    BinaryOperator.EQUALS: "==",
    BinaryOperator.NOT_EQUALS: "!=",
    BinaryOperator.LOGICAL_AND: "&&",
    BinaryOperator.LOGICAL_OR: "||",
    BinaryOperator.BITWISE_AND: "&",
    BinaryOperator.BITWISE_OR: "|",
    BinaryOperator.BITWISE_XOR: "^",
    BinaryOperator.SHIFT_LEFT: "<<",
    BinaryOperator.SHIFT_RIGHT: ">>",
}


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass(frozen=True)
class Literal:
    """
    Integer literal.

    Attributes:
        value: Unsigned value, 0 <= value < 2**64
    """
    value: int


@dataclass(frozen=True)
class Unary:
    """
    Unary operation (op operand).

    Attributes:
        op: The unary operator
        operand: The operand expression
    """
    op: UnaryOperator
    operand: "Expr"


@dataclass(frozen=True)
class Binary:
    """
    Binary operation (lhs op rhs).

    Attributes:
        op: The binary operator
        lhs: Left operand expression
        rhs: Right operand expression
    """
    op: BinaryOperator
    lhs: "Expr"
    rhs: "Expr"


@dataclass(frozen=True)
class Assign:
    """
    Assignment to a named variable (name = rhs).

    The value of the expression is the value stored.
    """
    name: str
    rhs: "Expr"


@dataclass(frozen=True)
class Var:
    """Variable reference."""
    name: str


Expr = Union[Literal, Unary, Binary, Assign, Var]


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass(frozen=True)
class Return:
    """return <expr>;"""
    expr: Expr


@dataclass(frozen=True)
class ExprStmt:
    """<expr>; evaluated for its side effects."""
    expr: Expr


@dataclass(frozen=True)
class Declare:
    """
    Local variable declaration: int name [= initializer];

    Attributes:
        name: Variable name
        initializer: Optional initialization expression
    """
    name: str
    initializer: Optional[Expr] = None


Stmt = Union[Return, ExprStmt, Declare]


# =============================================================================
# Declarations and Program
# =============================================================================

@dataclass(frozen=True)
class Func:
    """
    Function definition: int name() { body }

    Attributes:
        name: Function name
        body: Statements in source order
    """
    name: str
    body: tuple[Stmt, ...] = ()


Decl = Union[Func]


@dataclass(frozen=True)
class Program:
    """Root of the AST. Holds exactly one top-level declaration."""
    decl: Decl


# =============================================================================
# AST Printer
# =============================================================================

class ASTPrinter:
    """
    Renders an AST back into mini-C source text.

    Binary expressions are always parenthesised and unary operators are
    written directly in front of their operand, so the output never
    depends on precedence and parses back to the same tree.

    Usage:
        printer = ASTPrinter()
        print(printer.print_program(program))
        print(printer.print_expression(expr))   # "(1 + (2 * 3))"
    """

    def print_program(self, program: Program) -> str:
        return self.print_declaration(program.decl)

    def print_declaration(self, decl: Decl) -> str:
        if isinstance(decl, Func):
            lines = [f"int {decl.name} () {{"]
            for stmt in decl.body:
                lines.append(f"    {self.print_statement(stmt)}")
            lines.append("}")
            return "\n".join(lines)
        raise TypeError(f"not a declaration: {decl!r}")

    def print_statement(self, stmt: Stmt) -> str:
        if isinstance(stmt, Return):
            return f"return {self.print_expression(stmt.expr)};"
        if isinstance(stmt, ExprStmt):
            return f"{self.print_expression(stmt.expr)};"
        if isinstance(stmt, Declare):
            if stmt.initializer is not None:
                return f"int {stmt.name} = {self.print_expression(stmt.initializer)};"
            return f"int {stmt.name};"
        raise TypeError(f"not a statement: {stmt!r}")

    def print_expression(self, expr: Expr) -> str:
        if isinstance(expr, Literal):
            return str(expr.value)
        if isinstance(expr, Var):
            return expr.name
        if isinstance(expr, Unary):
            return f"{UNARY_SYMBOLS[expr.op]}{self.print_expression(expr.operand)}"
        if isinstance(expr, Binary):
            lhs = self.print_expression(expr.lhs)
            rhs = self.print_expression(expr.rhs)
            return f"({lhs} {BINARY_SYMBOLS[expr.op]} {rhs})"
        if isinstance(expr, Assign):
            return f"({expr.name} = {self.print_expression(expr.rhs)})"
        raise TypeError(f"not an expression: {expr!r}")
