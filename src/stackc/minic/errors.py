"""
Mini-C Compiler Error Hierarchy
===============================

This module defines the exception hierarchy for the mini-C compiler.
All exceptions inherit from CompilerError, which itself inherits from
the base StackcError.

Exception Hierarchy
-------------------
CompilerError (base for all compiler errors)
├── LexError - lexer errors
│   ├── InvalidCharacterError - unrecognised character
│   └── IntegerOverflowError - literal does not fit in 64 bits
├── ParseError - parser errors
│   ├── UnexpectedTokenError - wrong token for the current production
│   └── UnknownTypeError - return type other than 'int'
└── CodeGenError - code generation errors
    ├── UndeclaredVariableError - variable used before its declaration
    └── InternalConsistencyError - AST value outside the closed vocabulary

None of these are recovered from: the first error aborts the pass that
raised it.

Error Message Format
--------------------
    main.c:1:22: error: unexpected token 'eof', expected an expression
        int main ( ) { return
                             ^

Errors that carry a hint add one more line:

    main.c:1:1: error: 'void' does not name a type
        void main() { }
        ^
    hint: the only supported type is 'int'
"""

from typing import Optional

from stackc.errors import StackcError, SourceLocation


# =============================================================================
# Base Compiler Exception
# =============================================================================

class CompilerError(StackcError):
    """
    Base exception for all compiler errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred
        hint: A suggestion for fixing the error
        source_line: The actual source text at the error location
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with location, source context, and hint."""
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


# =============================================================================
# Lexer Errors
# =============================================================================

class LexError(CompilerError):
    """
    Error raised while converting source text to tokens.

    The lexer stops at the first bad character; there is no
    resynchronisation.
    """
    pass


class InvalidCharacterError(LexError):
    """Character that does not start any token."""

    def __init__(
        self,
        char: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.char = char
        line = location.line if location else "?"
        super().__init__(
            f"unexpected character '{char}' at line {line}",
            location=location,
            source_line=source_line,
        )


class IntegerOverflowError(LexError):
    """Integer literal larger than an unsigned 64-bit value."""

    def __init__(
        self,
        text: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.text = text
        super().__init__(
            f"integer literal '{text}' is too large",
            location=location,
            hint="literals must fit in an unsigned 64-bit integer",
            source_line=source_line,
        )


# =============================================================================
# Parser Errors
# =============================================================================

class ParseError(CompilerError):
    """
    Error raised when the token stream does not match the grammar.

    Attributes:
        found: Description of the token that was found
        expected: Description of what the grammar required
    """

    def __init__(
        self,
        message: str,
        found: Optional[str] = None,
        expected: Optional[str] = None,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.found = found
        self.expected = expected
        super().__init__(message, location=location, hint=hint, source_line=source_line)


class UnexpectedTokenError(ParseError):
    """
    Unexpected token during parsing.

    Raised by the parser's expect() and by the primary-expression rule.
    """

    def __init__(
        self,
        found: str,
        expected: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        super().__init__(
            f"unexpected token '{found}', expected {expected}",
            found=found,
            expected=expected,
            location=location,
            source_line=source_line,
        )


class UnknownTypeError(ParseError):
    """Return type of a function declaration is not 'int'."""

    def __init__(
        self,
        name: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.name = name
        super().__init__(
            f"'{name}' does not name a type",
            found=name,
            expected="'int'",
            location=location,
            hint="the only supported type is 'int'",
            source_line=source_line,
        )


# =============================================================================
# Code Generation Errors
# =============================================================================

class CodeGenError(CompilerError):
    """Error during code generation."""
    pass


class UndeclaredVariableError(CodeGenError):
    """Reference to a variable that has no stack slot."""

    def __init__(self, name: str, function: Optional[str] = None):
        self.name = name
        self.function = function
        where = f" in function '{function}'" if function else ""
        super().__init__(
            f"undeclared variable '{name}'{where}",
            hint=f"declare it first with 'int {name};'",
        )


class InternalConsistencyError(CodeGenError):
    """
    AST value the generator does not know how to lower.

    The parser only builds nodes from the closed vocabulary in
    stackc.minic.ast, so this means the parser and the generator
    disagree about that vocabulary.
    """

    def __init__(self, node: object):
        self.node = node
        super().__init__(
            f"internal error: unhandled AST value {type(node).__name__}: {node!r}",
        )
