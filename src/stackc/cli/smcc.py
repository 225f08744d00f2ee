"""
smcc - Mini-C Compiler Command-Line Interface
=============================================

This module implements the command-line interface for the mini-C
compiler. It compiles source files to x86-64 assembly, dumps the token
stream of a file, and runs an interactive parse-and-print loop.

Usage Examples
--------------
Basic compilation:
    $ smcc compile return_2.c

With output file:
    $ smcc compile return_2.c -o out.s

Full pipeline to an executable:
    $ smcc compile return_2.c && cc return_2.s -o return_2 && ./return_2

Show how a line parses:
    $ smcc repl
    > 1 + 2 * 3
    (1 + (2 * 3))
"""

import logging
from pathlib import Path
from typing import Optional

import click

from stackc import __version__
from stackc.errors import StackcError
from stackc.cli.errors import handle_cli_exception
from stackc.minic import Compiler, CompilerOptions
from stackc.minic.ast import ASTPrinter
from stackc.minic.lexer import lex, describe_tokens
from stackc.minic.parser import Parser, parse_source

REPL_FILENAME = "<repl>"


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.version_option(__version__, "--version", "-V", prog_name="smcc")
def main() -> None:
    """
    Mini-C compiler for x86-64.

    Compiles a single 'int' function with integer locals and expressions
    to AT&T-syntax assembly for the GNU assembler.

    \b
    Commands:
      compile   Compile a source file to assembly
      tokens    Print the token stream of a source file
      repl      Parse lines interactively and print them back

    \b
    Examples:
      smcc compile return_2.c
      smcc compile -o out.s --comments return_2.c
      smcc tokens return_2.c
    """
    pass


# =============================================================================
# Compile Command
# =============================================================================

@main.command("compile")
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output assembly file (default: input.s)",
)
@click.option(
    "--ast",
    is_flag=True,
    help="Print the AST as source and exit",
)
@click.option(
    "--prefix",
    default="",
    help="Prefix for function symbols, e.g. '_' for macOS",
)
@click.option(
    "--comments",
    is_flag=True,
    help="Annotate the assembly with each source statement",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
def cmd_compile(
    input_file: Path,
    output: Optional[Path],
    ast: bool,
    prefix: str,
    comments: bool,
    verbose: bool,
) -> None:
    """
    Compile a mini-C source file to x86-64 assembly.

    INPUT_FILE is the source file (.c) to compile.

    \b
    Examples:
        smcc compile return_2.c              # Outputs return_2.s
        smcc compile return_2.c -o out.s     # Specify output file
        smcc compile --ast return_2.c        # Show the parsed program
    """
    setup_logging(verbose)

    if output is None:
        output = input_file.with_suffix(".s")

    options = CompilerOptions(emit_comments=comments, symbol_prefix=prefix)

    try:
        if ast:
            source = input_file.read_text(encoding="utf-8")
            program = parse_source(source, str(input_file))
            click.echo(ASTPrinter().print_program(program))
            return

        result = Compiler(options).compile_file(input_file)
        output.write_text(result.assembly, encoding="utf-8")

        if verbose:
            click.echo(f"Tokenized: {result.token_count} tokens")
            click.echo(f"Wrote {len(result.assembly)} bytes to {output}")

        click.echo(f"Compiled {input_file} -> {output}")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose)


# =============================================================================
# Tokens Command
# =============================================================================

@main.command("tokens")
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
def cmd_tokens(input_file: Path) -> None:
    """
    Print the token stream of a source file, one token per line.

    \b
    Example:
        smcc tokens return_2.c
    """
    try:
        source = input_file.read_text(encoding="utf-8")
        for line in describe_tokens(lex(source, str(input_file))):
            click.echo(line)
    except Exception as e:
        handle_cli_exception(e)


# =============================================================================
# REPL Command
# =============================================================================

def parse_and_print(line: str) -> str:
    """
    Parse one REPL line and render it back as source.

    A line ending in ';' is parsed as a statement, anything else as an
    expression.
    """
    tokens = lex(line, REPL_FILENAME)
    parser = Parser(tokens, REPL_FILENAME, [line])
    printer = ASTPrinter()

    if line.endswith(";"):
        return printer.print_statement(parser.parse_statement())
    return printer.print_expression(parser.parse_expression())


@main.command("repl")
def cmd_repl() -> None:
    """
    Read lines from standard input, parse each one and print it back.

    Binary expressions are printed fully parenthesised, which shows how
    precedence and associativity were resolved. Errors are reported and
    the loop continues. End input with Ctrl-D.

    \b
    Example:
        $ smcc repl
        > a = b = 1 + 2 * 3
        (a = (b = (1 + (2 * 3))))
    """
    stdin = click.get_text_stream("stdin")
    interactive = stdin.isatty()

    while True:
        if interactive:
            click.echo("> ", nl=False)

        line = stdin.readline()
        if not line:
            break

        line = line.strip()
        if not line:
            continue

        try:
            click.echo(parse_and_print(line))
        except StackcError as e:
            click.echo(str(e), err=True)

    if interactive:
        click.echo()


if __name__ == "__main__":
    main()
