"""
x86-64 Code Generator for Mini-C
================================

This module lowers the mini-C AST to x86-64 assembly in AT&T syntax,
suitable for the GNU assembler (``cc -c file.s``).

Code Generation Strategy
------------------------
The generator uses a simple stack-machine evaluation model:

1. Every expression leaves its result in %eax
2. A binary operator computes one operand, pushes %rax to free the
   register, computes the other operand, pops the saved value into a
   second register, then combines the two
3. Local variables live in 8-byte slots below the frame pointer %rbp
4. && and || branch around their right operand (short-circuit)

Register Usage
--------------
| Register    | Usage                                      |
|-------------|--------------------------------------------|
| %eax / %rax | Expression result, function return value   |
| %ecx / %rcx | Saved operand for binary operators         |
| %cl         | Shift count                                |
| %r10d       | Divisor for / and %                        |
| %edx        | High half of the dividend, remainder       |
| %rbp        | Frame pointer                              |

Operand Order
-------------
| Operators                   | Evaluated first | Saved in |
|-----------------------------|-----------------|----------|
| + * & | ^ < <= > >= == !=   | left            | %ecx     |
| -                           | right           | %ecx     |
| / %                         | right           | %r10d    |
| << >>                       | right (count)   | %cl      |

For -, / and % the right operand is saved first so the left operand ends
up in %eax, where subl and idivl need it.

Stack Frame Layout
------------------
    +----------------+
    | Return address |
    +----------------+
    | Saved %rbp     |
    +----------------+ <- %rbp
    | local 1        |  -8(%rbp)
    | local 2        |  -16(%rbp)
    | ...            |
    +----------------+ <- %rsp
    | Temp values    |  (pushed operands)

A declaration pushes its initial value, which both stores the value and
reserves the slot. Pushed operands are always popped again before the
statement ends, so declarations always land in consecutive slots.

Example output
--------------
    int main() { return 2; }

            .globl  main
    main:
            push    %rbp
            movq    %rsp, %rbp
            movl    $2, %eax
            movq    %rbp, %rsp
            pop     %rbp
            ret
            movq    %rbp, %rsp
            pop     %rbp
            ret
            .section .note.GNU-stack,"",@progbits
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from stackc.minic.ast import (
    ASTPrinter,
    Program,
    Func,
    Stmt,
    Return,
    ExprStmt,
    Declare,
    Expr,
    Literal,
    Unary,
    Binary,
    Assign,
    Var,
    UnaryOperator,
    BinaryOperator,
)
from stackc.minic.errors import UndeclaredVariableError, InternalConsistencyError

logger = logging.getLogger(__name__)


# =============================================================================
# Registers and Instruction Tables
# =============================================================================

PRIMARY = "%eax"
PRIMARY_64 = "%rax"
PRIMARY_LOW = "%al"
SECONDARY = "%ecx"
SECONDARY_64 = "%rcx"
SHIFT_COUNT = "%cl"
DIVISOR = "%r10d"
DIVISOR_64 = "%r10"
REMAINDER = "%edx"
FRAME_POINTER = "%rbp"
STACK_POINTER = "%rsp"

# Size of one local variable slot (one push of a 64-bit register)
SLOT_SIZE = 8

# Largest literal a movl immediate holds
MAX_IMMEDIATE_32 = 2**32 - 1

# Section directive that marks the stack non-executable on ELF targets
GNU_STACK_NOTE = '.note.GNU-stack,"",@progbits'

# Operators whose operands may be evaluated left to right
COMMUTATIVE_INSTRUCTIONS: dict[BinaryOperator, str] = {
    BinaryOperator.ADD: "addl",
    BinaryOperator.MUL: "imull",
    BinaryOperator.BITWISE_AND: "andl",
    BinaryOperator.BITWISE_OR: "orl",
    BinaryOperator.BITWISE_XOR: "xorl",
}

# Comparison -> setCC instruction (flags from cmpl rhs, lhs)
COMPARISON_INSTRUCTIONS: dict[BinaryOperator, str] = {
    BinaryOperator.LESS: "setl",
    BinaryOperator.LESS_EQ: "setle",
    BinaryOperator.GREATER: "setg",
    BinaryOperator.GREATER_EQ: "setge",
    BinaryOperator.EQUALS: "sete",
    BinaryOperator.NOT_EQUALS: "setne",
}

SHIFT_INSTRUCTIONS: dict[BinaryOperator, str] = {
    BinaryOperator.SHIFT_LEFT: "sall",
    BinaryOperator.SHIFT_RIGHT: "sarl",
}


# =============================================================================
# Symbol Table for Code Generation
# =============================================================================

class SymbolTable:
    """
    Maps local variable names to frame-pointer offsets for one function.

    Entries are kept in declaration order and lookup scans from the
    front, so when a name is declared twice the first slot is the one
    found.
    """

    def __init__(self) -> None:
        self._entries: list[tuple[str, int]] = []
        self._stack_index = 0

    def declare(self, name: str) -> int:
        """Reserve the next slot below the frame pointer and return its offset."""
        self._stack_index -= SLOT_SIZE
        self._entries.append((name, self._stack_index))
        return self._stack_index

    def lookup(self, name: str) -> Optional[int]:
        for entry_name, offset in self._entries:
            if entry_name == name:
                return offset
        return None

    @property
    def stack_index(self) -> int:
        """Offset of the most recently reserved slot (0 when empty)."""
        return self._stack_index

    def __len__(self) -> int:
        return len(self._entries)


# =============================================================================
# Label Allocation
# =============================================================================

class LabelAllocator:
    """
    Hands out unique assembly labels from a monotonic counter.

    Labels are acquired for the emission of one AST node and released
    when that node is done. A released label is never handed out again.
    The ".L" prefix makes them assembler-local, so they cannot collide
    with a C identifier and stay out of the object's symbol table.
    """

    def __init__(self, prefix: str = ".L_label"):
        self.prefix = prefix
        self._counter = 0
        self._live: set[str] = set()

    @contextmanager
    def acquire(self, count: int) -> Iterator[tuple[str, ...]]:
        labels = tuple(self._next() for _ in range(count))
        self._live.update(labels)
        try:
            yield labels
        finally:
            self._live.difference_update(labels)

    def _next(self) -> str:
        label = f"{self.prefix}{self._counter}"
        self._counter += 1
        return label

    @property
    def issued(self) -> int:
        """Number of labels handed out so far."""
        return self._counter

    @property
    def live(self) -> frozenset[str]:
        """Labels currently acquired and not yet released."""
        return frozenset(self._live)


# =============================================================================
# Code Generator Class
# =============================================================================

class CodeGenerator:
    """
    Generates x86-64 assembly from a mini-C AST.

    All state (output lines, labels, symbol table) is created fresh by
    each call to generate(), so one instance can be reused.

    Attributes:
        symbol_prefix: Prepended to function symbols ("_" for Mach-O)
        emit_comments: Annotate the output with the source of each statement
    """

    def __init__(self, symbol_prefix: str = "", emit_comments: bool = False):
        self.symbol_prefix = symbol_prefix
        self.emit_comments = emit_comments

        self._output: list[str] = []
        self._labels = LabelAllocator()
        self._symbols = SymbolTable()
        self._current_function: Optional[str] = None
        self._printer = ASTPrinter()

    def generate(self, program: Program) -> str:
        """
        Generate assembly code from an AST.

        Args:
            program: The root AST node

        Returns:
            Complete assembly source, newline terminated

        Raises:
            UndeclaredVariableError: A variable is used before it is declared
            InternalConsistencyError: The tree holds a value outside the AST vocabulary
        """
        self._output = []
        self._labels = LabelAllocator()
        self._symbols = SymbolTable()
        self._current_function = None

        if not isinstance(program, Program):
            raise InternalConsistencyError(program)

        self._generate_declaration(program.decl)

        if not self.symbol_prefix:
            # ELF: mark the stack non-executable
            self._emit(f"        .section {GNU_STACK_NOTE}")

        logger.debug(f"generated {len(self._output)} lines, {self._labels.issued} labels")
        return "\n".join(self._output) + "\n"

    # =========================================================================
    # Assembly Output Methods
    # =========================================================================

    def _emit(self, line: str = "") -> None:
        self._output.append(line)

    def _emit_comment(self, comment: str) -> None:
        self._emit(f"        # {comment}")

    def _emit_label(self, label: str) -> None:
        self._emit(f"{label}:")

    def _emit_instruction(self, mnemonic: str, operand: str = "") -> None:
        if operand:
            self._emit(f"        {mnemonic:<8}{operand}")
        else:
            self._emit(f"        {mnemonic}")

    def _emit_prologue(self) -> None:
        self._emit_instruction("push", FRAME_POINTER)
        self._emit_instruction("movq", f"{STACK_POINTER}, {FRAME_POINTER}")

    def _emit_epilogue(self) -> None:
        self._emit_instruction("movq", f"{FRAME_POINTER}, {STACK_POINTER}")
        self._emit_instruction("pop", FRAME_POINTER)
        self._emit_instruction("ret")

    def _emit_normalize_boolean(self, setcc: str = "setne") -> None:
        """Turn the flags from the last cmpl into 0 or 1 in %eax."""
        self._emit_instruction("movl", f"$0, {PRIMARY}")
        self._emit_instruction(setcc, PRIMARY_LOW)

    # =========================================================================
    # Declarations and Statements
    # =========================================================================

    def _generate_declaration(self, decl) -> None:
        if isinstance(decl, Func):
            self._generate_function(decl)
        else:
            raise InternalConsistencyError(decl)

    def _generate_function(self, func: Func) -> None:
        """
        Emit one function.

        The epilogue is emitted inline for each return and once more at
        the end, for bodies whose last statement is not a return.
        """
        self._current_function = func.name
        self._symbols = SymbolTable()

        symbol = f"{self.symbol_prefix}{func.name}"
        self._emit_instruction(".globl", symbol)
        self._emit_label(symbol)
        self._emit_prologue()

        for stmt in func.body:
            if self.emit_comments:
                self._emit_comment(self._printer.print_statement(stmt))
            self._generate_statement(stmt)

        self._emit_epilogue()

        logger.debug(
            f"function {func.name}: {len(func.body)} statements, {len(self._symbols)} locals"
        )

    def _generate_statement(self, stmt: Stmt) -> None:
        if isinstance(stmt, Return):
            self._generate_expression(stmt.expr)
            self._emit_epilogue()
        elif isinstance(stmt, ExprStmt):
            self._generate_expression(stmt.expr)
        elif isinstance(stmt, Declare):
            self._generate_local_declaration(stmt)
        else:
            raise InternalConsistencyError(stmt)

    def _generate_local_declaration(self, stmt: Declare) -> None:
        """
        Push the initial value and bind the name to the pushed slot.

        Without an initializer whatever is in %rax is pushed, so the
        variable starts with an unspecified value.
        """
        if stmt.initializer is not None:
            self._generate_expression(stmt.initializer)
        self._emit_instruction("push", PRIMARY_64)
        self._symbols.declare(stmt.name)

    # =========================================================================
    # Expression Generation
    # =========================================================================

    def _generate_expression(self, expr: Expr) -> None:
        """Emit code that leaves the value of expr in %eax."""
        if isinstance(expr, Literal):
            self._generate_literal(expr)
        elif isinstance(expr, Unary):
            self._generate_unary(expr)
        elif isinstance(expr, Binary):
            self._generate_binary(expr)
        elif isinstance(expr, Assign):
            self._generate_assignment(expr)
        elif isinstance(expr, Var):
            offset = self._lookup(expr.name)
            self._emit_instruction("movl", f"{offset}({FRAME_POINTER}), {PRIMARY}")
        else:
            raise InternalConsistencyError(expr)

    def _generate_literal(self, expr: Literal) -> None:
        """
        Load a literal into %eax.

        Values that do not fit in 32 bits are loaded whole with movabsq,
        so the instruction encodes the literal exactly. Arithmetic is
        32-bit, so only the low 32 bits take part in the result.
        """
        if expr.value > MAX_IMMEDIATE_32:
            logger.warning(
                f"literal {expr.value} does not fit in 32 bits; "
                f"only its low 32 bits are used"
            )
            self._emit_instruction("movabsq", f"${expr.value}, {PRIMARY_64}")
        else:
            self._emit_instruction("movl", f"${expr.value}, {PRIMARY}")

    def _lookup(self, name: str) -> int:
        offset = self._symbols.lookup(name)
        if offset is None:
            raise UndeclaredVariableError(name, self._current_function)
        return offset

    def _generate_unary(self, expr: Unary) -> None:
        self._generate_expression(expr.operand)

        if expr.op == UnaryOperator.NEGATE:
            self._emit_instruction("negl", PRIMARY)
        elif expr.op == UnaryOperator.BITWISE_COMPLEMENT:
            self._emit_instruction("notl", PRIMARY)
        elif expr.op == UnaryOperator.LOGICAL_NEGATE:
            self._emit_instruction("cmpl", f"$0, {PRIMARY}")
            self._emit_normalize_boolean("sete")
        else:
            raise InternalConsistencyError(expr.op)

    def _generate_assignment(self, expr: Assign) -> None:
        """Store the right-hand side; the stored value stays in %eax."""
        offset = self._lookup(expr.name)
        self._generate_expression(expr.rhs)
        self._emit_instruction("movl", f"{PRIMARY}, {offset}({FRAME_POINTER})")

    def _generate_binary(self, expr: Binary) -> None:
        op = expr.op

        if op == BinaryOperator.LOGICAL_AND:
            self._generate_logical_and(expr)
        elif op == BinaryOperator.LOGICAL_OR:
            self._generate_logical_or(expr)
        elif op in COMMUTATIVE_INSTRUCTIONS:
            self._generate_operands(expr.lhs, expr.rhs, SECONDARY_64)
            self._emit_instruction(COMMUTATIVE_INSTRUCTIONS[op], f"{SECONDARY}, {PRIMARY}")
        elif op in COMPARISON_INSTRUCTIONS:
            self._generate_operands(expr.lhs, expr.rhs, SECONDARY_64)
            # %ecx holds lhs, %eax holds rhs: flags reflect lhs - rhs
            self._emit_instruction("cmpl", f"{PRIMARY}, {SECONDARY}")
            self._emit_normalize_boolean(COMPARISON_INSTRUCTIONS[op])
        elif op == BinaryOperator.SUB:
            self._generate_operands(expr.rhs, expr.lhs, SECONDARY_64)
            self._emit_instruction("subl", f"{SECONDARY}, {PRIMARY}")
        elif op in (BinaryOperator.DIV, BinaryOperator.MODULO):
            self._generate_operands(expr.rhs, expr.lhs, DIVISOR_64)
            self._emit_instruction("cltd")
            self._emit_instruction("idivl", DIVISOR)
            if op == BinaryOperator.MODULO:
                self._emit_instruction("movl", f"{REMAINDER}, {PRIMARY}")
        elif op in SHIFT_INSTRUCTIONS:
            self._generate_operands(expr.rhs, expr.lhs, SECONDARY_64)
            self._emit_instruction(SHIFT_INSTRUCTIONS[op], f"{SHIFT_COUNT}, {PRIMARY}")
        else:
            raise InternalConsistencyError(op)

    def _generate_operands(self, first: Expr, second: Expr, saved_register: str) -> None:
        """
        Evaluate first, save it on the stack, evaluate second, then pop
        the saved value into saved_register. Leaves second in %eax.
        """
        self._generate_expression(first)
        self._emit_instruction("push", PRIMARY_64)
        self._generate_expression(second)
        self._emit_instruction("pop", saved_register)

    def _generate_logical_and(self, expr: Binary) -> None:
        """
        lhs && rhs: if lhs is zero the result is that zero and rhs is
        skipped, otherwise the result is rhs normalised to 0 or 1.
        """
        with self._labels.acquire(2) as (rhs_label, end_label):
            self._generate_expression(expr.lhs)
            self._emit_instruction("cmpl", f"$0, {PRIMARY}")
            self._emit_instruction("jne", rhs_label)
            self._emit_instruction("jmp", end_label)
            self._emit_label(rhs_label)
            self._generate_expression(expr.rhs)
            self._emit_instruction("cmpl", f"$0, {PRIMARY}")
            self._emit_normalize_boolean("setne")
            self._emit_label(end_label)

    def _generate_logical_or(self, expr: Binary) -> None:
        """
        lhs || rhs: if lhs is nonzero the result is 1 and rhs is skipped,
        otherwise the result is rhs normalised to 0 or 1.
        """
        with self._labels.acquire(2) as (rhs_label, end_label):
            self._generate_expression(expr.lhs)
            self._emit_instruction("cmpl", f"$0, {PRIMARY}")
            self._emit_instruction("je", rhs_label)
            self._emit_instruction("movl", f"$1, {PRIMARY}")
            self._emit_instruction("jmp", end_label)
            self._emit_label(rhs_label)
            self._generate_expression(expr.rhs)
            self._emit_instruction("cmpl", f"$0, {PRIMARY}")
            self._emit_normalize_boolean("setne")
            self._emit_label(end_label)
