"""
stackc - A Tiny C Subset Compiler for x86-64
============================================

This package compiles a very small subset of C (a single ``int``
function with integer locals and expressions) to x86-64 assembly in
AT&T syntax, ready for the GNU assembler.

Main Components
---------------
- **minic**: The compiler itself
    Lexer, parser, AST, AST printer and code generator

- **cli**: Command-line tools (smcc)
    Compiles files, dumps tokens and runs a parse-and-print REPL

Quick Start
-----------
Compile a program:
    >>> from stackc import compile_source
    >>> asm = compile_source("int main() { return 2; }")

Or use the command-line tool:
    $ smcc compile return_2.c
    $ cc return_2.s -o return_2
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from stackc.errors import StackcError, SourceLocation
from stackc.minic import (
    Compiler,
    CompilerOptions,
    CompilerResult,
    compile_source,
    compile_file,
)

__all__ = [
    "__version__",
    "StackcError",
    "SourceLocation",
    "Compiler",
    "CompilerOptions",
    "CompilerResult",
    "compile_source",
    "compile_file",
]
