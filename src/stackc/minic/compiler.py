"""
Mini-C Compiler Main Module
===========================

This module provides the main compiler interface for mini-C.
It orchestrates the complete compilation process:

    Source → Lex → Parse → Generate → Assembly

Usage
-----
Command line:
    $ smcc compile return_2.c -o return_2.s

Programmatic:
    >>> from stackc.minic import compile_source
    >>> asm = compile_source('int main() { return 2; }')

The output is x86-64 assembly in AT&T syntax. Assemble and link it with
the system C compiler:

    $ cc return_2.s -o return_2 && ./return_2; echo $?
    2

Error Handling
--------------
Each stage stops at its first error and raises a CompilerError subclass.
Nothing is partially emitted: either the whole program compiles or an
exception propagates to the caller.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from stackc.minic.lexer import Lexer, Token
from stackc.minic.parser import Parser
from stackc.minic.codegen import CodeGenerator
from stackc.minic.ast import Program

logger = logging.getLogger(__name__)


@dataclass
class CompilerOptions:
    """
    Compiler configuration options.

    Attributes:
        emit_comments: Include each statement's source as a comment in the assembly
        symbol_prefix: Prefix for function symbols. Use "_" for Mach-O
                       targets, which expect C symbols to start with an
                       underscore.
    """
    emit_comments: bool = False
    symbol_prefix: str = ""


@dataclass
class CompilerResult:
    """
    Result of a compilation.

    Attributes:
        filename: Source filename
        success: True if compilation succeeded
        assembly: Generated assembly code
        ast: Abstract syntax tree
        token_count: Number of tokens lexed, including EOF
    """
    filename: str = ""
    success: bool = False
    assembly: str = ""
    ast: Optional[Program] = None
    token_count: int = 0


class Compiler:
    """
    Mini-C compiler for x86-64.

    Example:
        compiler = Compiler()
        result = compiler.compile_file("return_2.c")
        print(result.assembly)

    Attributes:
        options: Compiler configuration options
    """

    def __init__(self, options: Optional[CompilerOptions] = None):
        self.options = options or CompilerOptions()

    def compile_source(self, source: str, filename: str = "<input>") -> CompilerResult:
        """
        Compile mini-C source code to assembly.

        Args:
            source: Source code string
            filename: Source filename for error messages

        Returns:
            CompilerResult containing the assembly and the AST

        Raises:
            CompilerError: If any stage fails
        """
        result = CompilerResult(filename=filename)

        tokens = self._lex(source, filename)
        result.token_count = len(tokens)
        logger.debug(f"{filename}: {len(tokens)} tokens")

        result.ast = self._parse(tokens, filename, source.splitlines())
        logger.debug(f"{filename}: parsed function '{result.ast.decl.name}'")

        result.assembly = self._generate(result.ast)
        result.success = True
        logger.info(f"Compiled {filename}")

        return result

    def compile_file(self, filepath: str | Path) -> CompilerResult:
        """
        Compile a mini-C source file to assembly.

        Raises:
            CompilerError: If compilation fails
            FileNotFoundError: If source file not found
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Source file not found: {filepath}")

        source = path.read_text(encoding="utf-8")
        return self.compile_source(source, str(path))

    def _lex(self, source: str, filename: str) -> list[Token]:
        return list(Lexer(source, filename).tokenize())

    def _parse(self, tokens: list[Token], filename: str, source_lines: list[str]) -> Program:
        return Parser(tokens, filename, source_lines).parse()

    def _generate(self, ast: Program) -> str:
        generator = CodeGenerator(
            symbol_prefix=self.options.symbol_prefix,
            emit_comments=self.options.emit_comments,
        )
        return generator.generate(ast)


# =============================================================================
# Convenience Functions
# =============================================================================

def compile_source(
    source: str,
    filename: str = "<input>",
    options: Optional[CompilerOptions] = None,
) -> str:
    """
    Compile mini-C source code to assembly.

    Args:
        source: Source code
        filename: Source filename for error messages
        options: Compiler configuration (uses defaults if None)

    Returns:
        x86-64 assembly as a string

    Example:
        >>> asm = compile_source('int main() { return 6 * 7; }')
        >>> "imull" in asm
        True
    """
    return Compiler(options).compile_source(source, filename).assembly


def compile_file(
    input_path: str | Path,
    output_path: Optional[str | Path] = None,
    options: Optional[CompilerOptions] = None,
) -> Path:
    """
    Compile a source file and write the assembly next to it.

    Args:
        input_path: Path to the source file
        output_path: Where to write the assembly (default: input with a .s suffix)
        options: Compiler configuration (uses defaults if None)

    Returns:
        Path of the written assembly file
    """
    input_path = Path(input_path)
    output = Path(output_path) if output_path is not None else input_path.with_suffix(".s")

    result = Compiler(options).compile_file(input_path)
    output.write_text(result.assembly, encoding="utf-8")
    logger.debug(f"Wrote {len(result.assembly)} bytes to {output}")

    return output
