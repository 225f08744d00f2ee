"""
Mini-C Compiler
===============

This module implements a compiler for a tiny subset of C, targeting
x86-64 in AT&T syntax.

Pipeline
--------
    Source → Lexer → Parser → AST → Code Generator → Assembly

Language Subset
---------------
A program is exactly one function ``int name() { ... }`` whose body is a
sequence of:

- ``return <expr>;``
- ``<expr>;``
- ``int <name>;`` and ``int <name> = <expr>;``

Expressions cover integer literals, variables, assignment, unary
``- ~ !`` and the binary operators ``|| && | ^ & == != < <= > >= << >>
+ - * / %`` with C precedence and associativity.

Not supported: control flow, function calls, parameters, pointers, any
type other than ``int``.

Usage
-----
>>> from stackc.minic import compile_source
>>> print(compile_source("int main() { return 2; }"))  # x86-64 assembly
"""

from stackc.minic.compiler import (
    Compiler,
    CompilerOptions,
    CompilerResult,
    compile_source,
    compile_file,
)
from stackc.minic.errors import (
    CompilerError,
    LexError,
    InvalidCharacterError,
    IntegerOverflowError,
    ParseError,
    UnexpectedTokenError,
    UnknownTypeError,
    CodeGenError,
    UndeclaredVariableError,
    InternalConsistencyError,
)
from stackc.minic.lexer import Lexer, Token, TokenType, lex
from stackc.minic.parser import Parser, parse
from stackc.minic.codegen import CodeGenerator
from stackc.minic.ast import (
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
    ASTPrinter,
)

__all__ = [
    # Main API
    "Compiler",
    "CompilerOptions",
    "CompilerResult",
    "compile_source",
    "compile_file",
    # Errors
    "CompilerError",
    "LexError",
    "InvalidCharacterError",
    "IntegerOverflowError",
    "ParseError",
    "UnexpectedTokenError",
    "UnknownTypeError",
    "CodeGenError",
    "UndeclaredVariableError",
    "InternalConsistencyError",
    # Lexer
    "Lexer",
    "Token",
    "TokenType",
    "lex",
    # Parser
    "Parser",
    "parse",
    # Code Generator
    "CodeGenerator",
    # AST
    "Program",
    "Func",
    "Return",
    "ExprStmt",
    "Declare",
    "Literal",
    "Unary",
    "Binary",
    "Assign",
    "Var",
    "UnaryOperator",
    "BinaryOperator",
    "ASTPrinter",
]
