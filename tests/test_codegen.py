"""
x86-64 Code Generator Test Suite
================================

Tests for the assembly emitted by CodeGenerator.

Assembly is compared after collapsing whitespace, so the assertions
read like the instructions themselves ("movl $2, %eax").

Test Organization
-----------------
- TestFunctionFrame: prologue, epilogue and symbols
- TestExpressions: operand order and instruction selection
- TestShortCircuit: && and || skip their right operand
- TestLocals: stack slots, shadowing, assignment
- TestLabels: uniqueness and per-run reset
- TestErrors: undeclared variables and foreign AST values
- TestSymbolTable / TestLabelAllocator: helper classes
"""

import logging

import pytest
from stackc.minic.parser import parse_source
from stackc.minic.codegen import CodeGenerator, SymbolTable, LabelAllocator
from stackc.minic.ast import (
    Program,
    Func,
    Return,
    Literal,
    Binary,
    Unary,
)
from stackc.minic.errors import UndeclaredVariableError, InternalConsistencyError, CodeGenError


PROLOGUE = ["push %rbp", "movq %rsp, %rbp"]
EPILOGUE = ["movq %rbp, %rsp", "pop %rbp", "ret"]
STACK_NOTE = '.section .note.GNU-stack,"",@progbits'


def generate(source: str, **kwargs) -> list[str]:
    """Compile source and return its normalised assembly lines."""
    asm = CodeGenerator(**kwargs).generate(parse_source(source))
    return [" ".join(line.split()) for line in asm.splitlines()]


def body(source: str) -> list[str]:
    """Instructions between the prologue and the first epilogue."""
    lines = generate(source)
    start = lines.index(PROLOGUE[1]) + 1
    end = lines.index(EPILOGUE[0], start)
    return lines[start:end]


def returned(expression: str) -> list[str]:
    return body(f"int main() {{ return {expression}; }}")


# =============================================================================
# Function Frame
# =============================================================================

class TestFunctionFrame:

    def test_return_2(self):
        assert generate("int main() { return 2; }") == [
            ".globl main",
            "main:",
            *PROLOGUE,
            "movl $2, %eax",
            *EPILOGUE,
            *EPILOGUE,
            STACK_NOTE,
        ]

    def test_empty_body_has_fallback_epilogue(self):
        assert generate("int main() { }") == [
            ".globl main", "main:", *PROLOGUE, *EPILOGUE, STACK_NOTE,
        ]

    def test_every_return_has_epilogue(self):
        lines = generate("int main() { return 1; return 2; }")
        assert lines.count("ret") == 3

    def test_output_ends_with_newline(self):
        asm = CodeGenerator().generate(parse_source("int main() { return 0; }"))
        assert asm.endswith("@progbits\n")

    def test_stack_note_only_for_elf(self):
        lines = generate("int main() { return 0; }", symbol_prefix="_")
        assert STACK_NOTE not in lines
        assert lines[-1] == "ret"

    def test_instruction_format(self):
        asm = CodeGenerator().generate(parse_source("int main() { return 0; }"))
        assert "        movl    $0, %eax" in asm.splitlines()

    def test_symbol_prefix(self):
        lines = generate("int main() { return 0; }", symbol_prefix="_")
        assert lines[:2] == [".globl _main", "_main:"]

    def test_function_name_used_as_symbol(self):
        lines = generate("int answer() { return 42; }")
        assert "answer:" in lines

    def test_comments(self):
        lines = generate("int main() { int a = 1; return a + 2; }", emit_comments=True)
        assert "# int a = 1;" in lines
        assert "# return (a + 2);" in lines
        assert lines.index("# return (a + 2);") > lines.index("# int a = 1;")

    def test_no_comments_by_default(self):
        lines = generate("int main() { return 1; }")
        assert not any(line.startswith("#") for line in lines)


# =============================================================================
# Expressions
# =============================================================================

class TestExpressions:

    def test_largest_32_bit_literal(self):
        assert returned(str(2**32 - 1)) == ["movl $4294967295, %eax"]

    def test_wide_literal_loaded_whole(self):
        assert returned(str(2**32 + 2)) == ["movabsq $4294967298, %rax"]

    def test_max_literal(self):
        assert returned(str(2**64 - 1)) == ["movabsq $18446744073709551615, %rax"]

    def test_wide_literal_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="stackc.minic.codegen"):
            returned(str(2**40))
        assert "does not fit in 32 bits" in caplog.text

    def test_negate(self):
        assert returned("-5") == ["movl $5, %eax", "negl %eax"]

    def test_complement(self):
        assert returned("~5") == ["movl $5, %eax", "notl %eax"]

    def test_logical_not(self):
        assert returned("!5") == [
            "movl $5, %eax",
            "cmpl $0, %eax",
            "movl $0, %eax",
            "sete %al",
        ]

    @pytest.mark.parametrize("symbol,mnemonic", [
        ("+", "addl"),
        ("*", "imull"),
        ("&", "andl"),
        ("|", "orl"),
        ("^", "xorl"),
    ])
    def test_left_operand_first(self, symbol, mnemonic):
        assert returned(f"1 {symbol} 2") == [
            "movl $1, %eax",
            "push %rax",
            "movl $2, %eax",
            "pop %rcx",
            f"{mnemonic} %ecx, %eax",
        ]

    def test_subtraction_evaluates_right_first(self):
        assert returned("5 - 3") == [
            "movl $3, %eax",
            "push %rax",
            "movl $5, %eax",
            "pop %rcx",
            "subl %ecx, %eax",
        ]

    def test_division(self):
        assert returned("7 / 2") == [
            "movl $2, %eax",
            "push %rax",
            "movl $7, %eax",
            "pop %r10",
            "cltd",
            "idivl %r10d",
        ]

    def test_modulo_takes_remainder(self):
        assert returned("7 % 2") == [
            "movl $2, %eax",
            "push %rax",
            "movl $7, %eax",
            "pop %r10",
            "cltd",
            "idivl %r10d",
            "movl %edx, %eax",
        ]

    @pytest.mark.parametrize("symbol,mnemonic", [("<<", "sall"), (">>", "sarl")])
    def test_shift_count_in_cl(self, symbol, mnemonic):
        assert returned(f"1 {symbol} 3") == [
            "movl $3, %eax",
            "push %rax",
            "movl $1, %eax",
            "pop %rcx",
            f"{mnemonic} %cl, %eax",
        ]

    @pytest.mark.parametrize("symbol,setcc", [
        ("<", "setl"),
        ("<=", "setle"),
        (">", "setg"),
        (">=", "setge"),
        ("==", "sete"),
        ("!=", "setne"),
    ])
    def test_comparison(self, symbol, setcc):
        assert returned(f"1 {symbol} 2") == [
            "movl $1, %eax",
            "push %rax",
            "movl $2, %eax",
            "pop %rcx",
            "cmpl %eax, %ecx",
            "movl $0, %eax",
            f"{setcc} %al",
        ]

    def test_pushes_and_pops_balance(self):
        lines = returned("(1 + 2) * (3 - 4) / (5 % 6) << (7 < 8)")
        pushes = sum(1 for line in lines if line.startswith("push"))
        pops = sum(1 for line in lines if line.startswith("pop"))
        assert pushes == pops == 7


# =============================================================================
# Short Circuit
# =============================================================================

class TestShortCircuit:

    def test_and(self):
        assert returned("1 && 2") == [
            "movl $1, %eax",
            "cmpl $0, %eax",
            "jne .L_label0",
            "jmp .L_label1",
            ".L_label0:",
            "movl $2, %eax",
            "cmpl $0, %eax",
            "movl $0, %eax",
            "setne %al",
            ".L_label1:",
        ]

    def test_or(self):
        assert returned("0 || 2") == [
            "movl $0, %eax",
            "cmpl $0, %eax",
            "je .L_label0",
            "movl $1, %eax",
            "jmp .L_label1",
            ".L_label0:",
            "movl $2, %eax",
            "cmpl $0, %eax",
            "movl $0, %eax",
            "setne %al",
            ".L_label1:",
        ]

    def test_and_skips_right_operand(self):
        """The jump to the end comes before any code for the right operand."""
        lines = body("int main() { int x = 1; return 0 && x; }")
        skip = lines.index("jmp .L_label1")
        load_x = lines.index("movl -8(%rbp), %eax")
        end = lines.index(".L_label1:")
        assert skip < load_x < end

    def test_or_skips_right_operand(self):
        lines = body("int main() { int x = 1; return 1 || (x = 0); }")
        skip = lines.index("jmp .L_label1")
        store_x = lines.index("movl %eax, -8(%rbp)")
        end = lines.index(".L_label1:")
        assert skip < store_x < end


# =============================================================================
# Locals
# =============================================================================

class TestLocals:

    def test_declaration_pushes_initializer(self):
        assert body("int main() { int a = 3; return a; }") == [
            "movl $3, %eax",
            "push %rax",
            "movl -8(%rbp), %eax",
        ]

    def test_declaration_without_initializer_still_reserves_slot(self):
        assert body("int main() { int a; a = 4; return a; }") == [
            "push %rax",
            "movl $4, %eax",
            "movl %eax, -8(%rbp)",
            "movl -8(%rbp), %eax",
        ]

    def test_consecutive_slots(self):
        lines = body("int main() { int a = 1; int b = 2; int c = 3; return c; }")
        assert lines[-1] == "movl -24(%rbp), %eax"

    def test_slots_stay_consecutive_after_expressions(self):
        lines = body("int main() { int a = 1 + 2 * 3; int b = a; return b; }")
        assert lines[-1] == "movl -16(%rbp), %eax"

    def test_redeclaration_finds_first_slot(self):
        lines = body("int main() { int x = 1; int x = 2; return x; }")
        assert lines[-1] == "movl -8(%rbp), %eax"

    def test_assignment_is_an_expression(self):
        lines = body("int main() { int a; int b; return a = b = 7; }")
        assert lines[-3:] == [
            "movl $7, %eax",
            "movl %eax, -16(%rbp)",
            "movl %eax, -8(%rbp)",
        ]


# =============================================================================
# Labels
# =============================================================================

class TestLabels:

    def test_labels_are_unique(self):
        lines = returned("(1 && 2) || (3 && (4 || 5))")
        labels = [line for line in lines if line.endswith(":")]
        assert len(labels) == 8
        assert len(set(labels)) == 8

    def test_state_reset_between_runs(self):
        generator = CodeGenerator()
        program = parse_source("int main() { return 1 && 2; }")
        first = generator.generate(program)
        second = generator.generate(program)
        assert first == second
        assert ".L_label0:" in second

    def test_labels_do_not_collide_with_function_names(self):
        lines = generate("int _label0() { return 1 && 2; }")
        defined = [line for line in lines if line.endswith(":")]
        assert defined == ["_label0:", ".L_label0:", ".L_label1:"]
        assert len(set(defined)) == len(defined)

    def test_labels_are_assembler_local(self):
        lines = returned("1 || 2")
        labels = [line for line in lines if line.endswith(":")]
        assert all(label.startswith(".L") for label in labels)


# =============================================================================
# Errors
# =============================================================================

class TestErrors:

    def test_undeclared_variable(self):
        with pytest.raises(UndeclaredVariableError) as exc_info:
            generate("int main() { return y; }")
        assert exc_info.value.name == "y"
        assert exc_info.value.function == "main"
        assert "'y'" in str(exc_info.value)

    def test_assignment_to_undeclared_variable(self):
        with pytest.raises(UndeclaredVariableError):
            generate("int main() { z = 1; }")

    def test_initializer_cannot_use_own_name(self):
        with pytest.raises(UndeclaredVariableError):
            generate("int main() { int x = x; }")

    def test_foreign_expression(self):
        program = Program(Func("main", (Return("oops"),)))
        with pytest.raises(InternalConsistencyError) as exc_info:
            CodeGenerator().generate(program)
        assert exc_info.value.node == "oops"

    def test_foreign_operator(self):
        program = Program(Func("main", (Return(Binary("**", Literal(1), Literal(2))),)))
        with pytest.raises(InternalConsistencyError):
            CodeGenerator().generate(program)

    def test_foreign_unary_operator(self):
        program = Program(Func("main", (Return(Unary("+", Literal(1))),)))
        with pytest.raises(InternalConsistencyError):
            CodeGenerator().generate(program)

    def test_foreign_statement(self):
        program = Program(Func("main", (Literal(1),)))
        with pytest.raises(InternalConsistencyError):
            CodeGenerator().generate(program)

    def test_not_a_program(self):
        with pytest.raises(CodeGenError):
            CodeGenerator().generate(Func("main"))


# =============================================================================
# Helper Classes
# =============================================================================

class TestSymbolTable:

    def test_offsets_grow_downward(self):
        table = SymbolTable()
        assert table.declare("a") == -8
        assert table.declare("b") == -16
        assert table.stack_index == -16
        assert len(table) == 2

    def test_lookup_missing(self):
        assert SymbolTable().lookup("a") is None

    def test_lookup_first_match(self):
        table = SymbolTable()
        table.declare("x")
        table.declare("x")
        assert table.lookup("x") == -8


class TestLabelAllocator:

    def test_sequential_names(self):
        labels = LabelAllocator()
        with labels.acquire(2) as pair:
            assert pair == (".L_label0", ".L_label1")
        with labels.acquire(1) as (single,):
            assert single == ".L_label2"
        assert labels.issued == 3

    def test_release_after_use(self):
        labels = LabelAllocator()
        with labels.acquire(2) as pair:
            assert labels.live == frozenset(pair)
            with labels.acquire(2) as inner:
                assert labels.live == frozenset(pair + inner)
            assert labels.live == frozenset(pair)
        assert labels.live == frozenset()

    def test_released_on_error(self):
        labels = LabelAllocator()
        with pytest.raises(RuntimeError):
            with labels.acquire(2):
                raise RuntimeError("boom")
        assert labels.live == frozenset()
