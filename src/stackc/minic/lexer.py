"""
Mini-C Lexer (Tokenizer)
========================

This module converts mini-C source text into a flat list of tokens for
the parser.

Token Categories
----------------
- Keywords: return (``int`` is lexed as a plain identifier)
- Identifiers: variable, function and type names
- Integers: unsigned decimal literals
- Operators: + - * / % ~ ! < <= << > >= >> = == != & && | || ^
- Delimiters: ( ) { } ;

There are no comments, strings, or preprocessor directives in this
subset. Any other character is a fatal error.

Example Usage
-------------
>>> from stackc.minic.lexer import Lexer
>>> for token in Lexer("int main() { return 42; }", "test.c").tokenize():
...     print(token)
Token(IDENTIFIER, 'int', 1:1)
Token(IDENTIFIER, 'main', 1:5)
Token(LPAREN, 1:9)
Token(RPAREN, 1:10)
Token(LBRACE, 1:12)
Token(RETURN, 1:14)
Token(INTEGER, 42, 1:21)
Token(SEMICOLON, 1:23)
Token(RBRACE, 1:25)
Token(EOF, 1:26)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterator
import string

from stackc.errors import SourceLocation
from stackc.minic.errors import InvalidCharacterError, IntegerOverflowError


# Largest value an integer literal may hold (unsigned 64-bit).
MAX_INTEGER = 2**64 - 1


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """
    Token types for mini-C.

    Each member's value is the description used in diagnostics.
    """

    # === Structural ===
    EOF = "eof"

    # === Literals and names ===
    INTEGER = "integer"
    IDENTIFIER = "identifier"

    # === Keywords ===
    RETURN = "'return'"

    # === Delimiters ===
    LBRACE = "'{'"
    RBRACE = "'}'"
    LPAREN = "'('"
    RPAREN = "')'"
    SEMICOLON = "';'"

    # === Unary / arithmetic ===
    MINUS = "'-'"
    TILDE = "'~'"
    BANG = "'!'"
    PLUS = "'+'"
    STAR = "'*'"
    SLASH = "'/'"
    PERCENT = "'%'"

    # === Relational / shift ===
    LT = "'<'"
    LE = "'<='"
    LSHIFT = "'<<'"
    GT = "'>'"
    GE = "'>='"
    RSHIFT = "'>>'"

    # === Equality / assignment ===
    ASSIGN = "'='"
    EQ = "'=='"
    NE = "'!='"

    # === Logical / bitwise ===
    AND = "'&&'"
    OR = "'||'"
    AMPERSAND = "'&'"
    PIPE = "'|'"
    CARET = "'^'"

    @property
    def description(self) -> str:
        """Human-readable name for error messages."""
        return self.value


KEYWORDS: dict[str, TokenType] = {
    "return": TokenType.RETURN,
}

# Characters that are complete tokens on their own
SINGLE_TOKENS: dict[str, TokenType] = {
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ";": TokenType.SEMICOLON,
    "-": TokenType.MINUS,
    "~": TokenType.TILDE,
    "+": TokenType.PLUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "%": TokenType.PERCENT,
    "^": TokenType.CARET,
}

# first char -> (single-char type, {second char: two-char type})
PAIRED_TOKENS: dict[str, tuple[TokenType, dict[str, TokenType]]] = {
    "<": (TokenType.LT, {"=": TokenType.LE, "<": TokenType.LSHIFT}),
    ">": (TokenType.GT, {"=": TokenType.GE, ">": TokenType.RSHIFT}),
    "=": (TokenType.ASSIGN, {"=": TokenType.EQ}),
    "!": (TokenType.BANG, {"=": TokenType.NE}),
    "&": (TokenType.AMPERSAND, {"&": TokenType.AND}),
    "|": (TokenType.PIPE, {"|": TokenType.OR}),
}


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single token from mini-C source.

    Attributes:
        type: The TokenType classification
        value: int for INTEGER, the name for IDENTIFIER, None otherwise
        line: Line number in source (1-indexed)
        column: Column number in source (1-indexed)
        filename: Name of the source file
    """
    type: TokenType
    value: str | int | None
    line: int
    column: int
    filename: str = "<input>"

    def __repr__(self) -> str:
        if self.value is not None:
            if isinstance(self.value, int):
                return f"Token({self.type.name}, {self.value}, {self.line}:{self.column})"
            return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"
        return f"Token({self.type.name}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)

    def describe(self) -> str:
        """Short text naming this token in a diagnostic."""
        if self.type in (TokenType.INTEGER, TokenType.IDENTIFIER):
            return str(self.value)
        return self.type.description.strip("'")


# =============================================================================
# Identifier Interning
# =============================================================================

class InternTable:
    """
    Maps identifier text to one shared string object.

    Owned by a single lexer run. Two identifiers with the same spelling
    come back as the same object, so ``is`` and ``==`` agree on them.
    """

    def __init__(self) -> None:
        self._strings: dict[str, str] = {}

    def intern(self, text: str) -> str:
        return self._strings.setdefault(text, text)

    def __len__(self) -> int:
        return len(self._strings)

    def __contains__(self, text: str) -> bool:
        return text in self._strings


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes mini-C source code.

    A single left-to-right pass with a cursor, a line counter and a column
    counter. Stops with an error at the first character that does not
    start a token.

    Usage:
        lexer = Lexer(source_text, filename)
        tokens = list(lexer.tokenize())
    """

    DIGITS = string.digits
    IDENT_START = string.ascii_letters + "_"
    IDENT_CHARS = string.ascii_letters + string.digits + "_"
    WHITESPACE = " \t\r\n"

    def __init__(self, source: str, filename: str = "<input>"):
        self.source = source
        self.filename = filename
        self.interned = InternTable()

        self._pos = 0
        self._line = 1
        self._column = 1
        self._line_start_pos = 0

    def tokenize(self) -> Iterator[Token]:
        """
        Generate tokens from the source code.

        Yields:
            Token objects, always ending with an EOF token

        Raises:
            InvalidCharacterError: On a character outside the token set
            IntegerOverflowError: On a literal above 2**64 - 1
        """
        while not self._at_end():
            char = self._peek()

            if char in self.WHITESPACE:
                self._advance()
                continue

            if char in self.DIGITS:
                yield self._scan_integer()
                continue

            if char in self.IDENT_START:
                yield self._scan_identifier()
                continue

            yield self._scan_operator()

        yield Token(TokenType.EOF, None, self._line, self._column, self.filename)

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        """Character at current position + offset, or '' past the end."""
        pos = self._pos + offset
        if pos >= len(self.source):
            return ""
        return self.source[pos]

    def _advance(self) -> str:
        """Consume the current character, updating line and column."""
        if self._at_end():
            return ""

        char = self.source[self._pos]
        self._pos += 1

        if char == "\n":
            self._line += 1
            self._column = 1
            self._line_start_pos = self._pos
        else:
            self._column += 1

        return char

    def _get_current_line(self) -> str:
        """Current line of source text for error reporting."""
        line_end = self.source.find("\n", self._line_start_pos)
        if line_end == -1:
            line_end = len(self.source)
        return self.source[self._line_start_pos:line_end]

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _make_token(
        self,
        token_type: TokenType,
        value: str | int | None,
        start_line: int,
        start_column: int,
    ) -> Token:
        return Token(token_type, value, start_line, start_column, self.filename)

    def _scan_integer(self) -> Token:
        """Scan a base-10 unsigned integer literal."""
        start_line, start_column = self._line, self._column

        chars = []
        while self._peek() and self._peek() in self.DIGITS:
            chars.append(self._advance())

        text = "".join(chars)
        value = int(text)
        if value > MAX_INTEGER:
            raise IntegerOverflowError(
                text,
                SourceLocation(self.filename, start_line, start_column),
                self._get_current_line(),
            )

        return self._make_token(TokenType.INTEGER, value, start_line, start_column)

    def _scan_identifier(self) -> Token:
        """Scan an identifier or the 'return' keyword."""
        start_line, start_column = self._line, self._column

        chars = []
        while self._peek() and self._peek() in self.IDENT_CHARS:
            chars.append(self._advance())

        name = "".join(chars)
        if name in KEYWORDS:
            return self._make_token(KEYWORDS[name], None, start_line, start_column)

        return self._make_token(
            TokenType.IDENTIFIER,
            self.interned.intern(name),
            start_line,
            start_column,
        )

    def _scan_operator(self) -> Token:
        """Scan a one- or two-character operator or delimiter."""
        start_line, start_column = self._line, self._column
        char = self._peek()

        if char in SINGLE_TOKENS:
            self._advance()
            return self._make_token(SINGLE_TOKENS[char], None, start_line, start_column)

        if char in PAIRED_TOKENS:
            self._advance()
            single, pairs = PAIRED_TOKENS[char]
            second = self._peek()
            if second and second in pairs:
                self._advance()
                return self._make_token(pairs[second], None, start_line, start_column)
            return self._make_token(single, None, start_line, start_column)

        raise InvalidCharacterError(
            char,
            SourceLocation(self.filename, start_line, start_column),
            self._get_current_line(),
        )


# =============================================================================
# Convenience Functions
# =============================================================================

def lex(source: str, filename: str = "<input>") -> list[Token]:
    """
    Tokenize a complete source string.

    Returns:
        List of tokens terminated by an EOF token
    """
    return list(Lexer(source, filename).tokenize())


def describe_tokens(tokens: list[Token]) -> list[str]:
    """One diagnostic-style description per token, e.g. for a token dump."""
    lines = []
    for token in tokens:
        if token.value is not None:
            lines.append(f"{token.type.name.lower()} {token.value}")
        else:
            lines.append(token.type.name.lower())
    return lines
