"""
smcc Command-Line Test Suite
============================

Tests for the smcc click group: compile, tokens and repl, including
exit codes for each class of failure.
"""

from pathlib import Path

import pytest
from click.testing import CliRunner

from stackc import __version__
from stackc.cli.smcc import main, parse_and_print
from stackc.cli.errors import ExitCode


@pytest.fixture
def runner():
    return CliRunner()


# =============================================================================
# Group
# =============================================================================

class TestGroup:

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ("compile", "tokens", "repl"):
            assert command in result.output


# =============================================================================
# Compile Command
# =============================================================================

class TestCompileCommand:

    def test_default_output(self, runner):
        with runner.isolated_filesystem():
            Path("return_2.c").write_text("int main() { return 2; }")
            result = runner.invoke(main, ["compile", "return_2.c"])
            assert result.exit_code == ExitCode.SUCCESS
            assert "return_2.s" in result.output
            assert "movl    $2, %eax" in Path("return_2.s").read_text()

    def test_explicit_output(self, runner):
        with runner.isolated_filesystem():
            Path("prog.c").write_text("int main() { return 2; }")
            result = runner.invoke(main, ["compile", "prog.c", "-o", "out.s"])
            assert result.exit_code == 0
            assert Path("out.s").exists()
            assert not Path("prog.s").exists()

    def test_prefix_and_comments(self, runner):
        with runner.isolated_filesystem():
            Path("prog.c").write_text("int main() { return 2; }")
            result = runner.invoke(main, ["compile", "prog.c", "--prefix", "_", "--comments"])
            assert result.exit_code == 0
            asm = Path("prog.s").read_text()
            assert "_main:" in asm
            assert "# return 2;" in asm

    def test_ast_dump(self, runner):
        with runner.isolated_filesystem():
            Path("prog.c").write_text("int main() { return 1 + 2 * 3; }")
            result = runner.invoke(main, ["compile", "prog.c", "--ast"])
            assert result.exit_code == 0
            assert "return (1 + (2 * 3));" in result.output
            assert not Path("prog.s").exists()

    def test_verbose(self, runner):
        with runner.isolated_filesystem():
            Path("prog.c").write_text("int main() { return 2; }")
            result = runner.invoke(main, ["compile", "-v", "prog.c"])
            assert result.exit_code == 0
            assert "Tokenized: 10 tokens" in result.output

    def test_parse_error_exit_code(self, runner):
        with runner.isolated_filesystem():
            Path("bad.c").write_text("int main ( ) { return")
            result = runner.invoke(main, ["compile", "bad.c"])
            assert result.exit_code == ExitCode.BUILD_ERROR
            assert "bad.c:1:22: error: unexpected token 'eof'" in result.output
            assert not Path("bad.s").exists()

    def test_lex_error_exit_code(self, runner):
        with runner.isolated_filesystem():
            Path("bad.c").write_text("int main() { return $; }")
            result = runner.invoke(main, ["compile", "bad.c"])
            assert result.exit_code == ExitCode.BUILD_ERROR
            assert "unexpected character '$'" in result.output

    def test_undeclared_variable_exit_code(self, runner):
        with runner.isolated_filesystem():
            Path("bad.c").write_text("int main() { return x; }")
            result = runner.invoke(main, ["compile", "bad.c"])
            assert result.exit_code == ExitCode.BUILD_ERROR
            assert "undeclared variable 'x'" in result.output

    def test_missing_input(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["compile", "nope.c"])
            assert result.exit_code == ExitCode.INVALID_ARGS


# =============================================================================
# Tokens Command
# =============================================================================

class TestTokensCommand:

    def test_token_dump(self, runner):
        with runner.isolated_filesystem():
            Path("prog.c").write_text("return 42;")
            result = runner.invoke(main, ["tokens", "prog.c"])
            assert result.exit_code == 0
            assert result.output.splitlines() == [
                "return",
                "integer 42",
                "semicolon",
                "eof",
            ]

    def test_token_dump_does_not_parse(self, runner):
        with runner.isolated_filesystem():
            Path("prog.c").write_text(") (")
            result = runner.invoke(main, ["tokens", "prog.c"])
            assert result.exit_code == 0
            assert result.output.splitlines() == ["rparen", "lparen", "eof"]

    def test_token_dump_lex_error(self, runner):
        with runner.isolated_filesystem():
            Path("prog.c").write_text("a @ b")
            result = runner.invoke(main, ["tokens", "prog.c"])
            assert result.exit_code == ExitCode.BUILD_ERROR


# =============================================================================
# REPL Command
# =============================================================================

class TestRepl:

    def test_expression_line(self):
        assert parse_and_print("1 + 2 * 3") == "(1 + (2 * 3))"

    def test_statement_line(self):
        assert parse_and_print("int x = 1 - 2 - 3;") == "int x = ((1 - 2) - 3);"

    def test_repl_session(self, runner):
        result = runner.invoke(main, ["repl"], input="a = b = 1\n\nreturn !x;\n")
        assert result.exit_code == 0
        assert result.output.splitlines() == [
            "(a = (b = 1))",
            "return !x;",
        ]

    def test_repl_continues_after_error(self, runner):
        result = runner.invoke(main, ["repl"], input="1 +\n2 * 3\n")
        assert result.exit_code == 0
        assert "(2 * 3)" in result.output
        assert "expected an expression" in result.output
