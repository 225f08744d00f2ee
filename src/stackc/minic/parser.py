"""
Mini-C Recursive Descent Parser
===============================

This module implements a recursive descent parser for mini-C. It takes
the token list from the lexer and builds the AST defined in
stackc.minic.ast.

Grammar (EBNF)
--------------
program      ::= declaration EOF
declaration  ::= 'int' IDENTIFIER '(' ')' '{' statement* '}'
statement    ::= 'return' expr ';'
               | 'int' IDENTIFIER ('=' expr)? ';'
               | expr ';'

Expression Precedence (lowest to highest)
-----------------------------------------
1.  assignment     IDENTIFIER '=' assignment   (right-associative)
2.  logical_or     ||
3.  logical_and    &&
4.  bitwise_or     |
5.  bitwise_xor    ^
6.  bitwise_and    &
7.  equality       == !=
8.  relational     < <= > >=
9.  shift          << >>
10. additive       + -
11. multiplicative * / %
12. unary          - ~ !  (right-associative), '(' expr ')', INTEGER, IDENTIFIER

Levels 2 to 11 are left-associative. The assignment rule is the only
place the parser backtracks: it saves the cursor, takes an identifier,
and restores the cursor if no '=' follows.

'int' is not a keyword. A statement is a declaration when the identifier
'int' is followed by another identifier.

Errors
------
The first token that does not fit the grammar raises a ParseError. There
is no recovery.

Example Usage
-------------
>>> from stackc.minic.lexer import lex
>>> from stackc.minic.parser import Parser
>>> from stackc.minic.ast import ASTPrinter
>>> program = Parser(lex('int main() { return 1 + 2 * 3; }')).parse()
>>> ASTPrinter().print_statement(program.decl.body[0])
'return (1 + (2 * 3));'
"""

from typing import Callable, Optional

from stackc.minic.lexer import Lexer, Token, TokenType
from stackc.minic.ast import (
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
from stackc.minic.errors import UnexpectedTokenError, UnknownTypeError


# The one type name the language knows about
INT_TYPE_NAME = "int"


# =============================================================================
# Operator Tables
# =============================================================================

UNARY_OPERATORS: dict[TokenType, UnaryOperator] = {
    TokenType.MINUS: UnaryOperator.NEGATE,
    TokenType.TILDE: UnaryOperator.BITWISE_COMPLEMENT,
    TokenType.BANG: UnaryOperator.LOGICAL_NEGATE,
}


class Parser:
    """
    Recursive descent parser for mini-C.

    One Parser instance owns one token list and one cursor. Create a new
    instance for each parse; entry points do not reset the cursor.

    Attributes:
        tokens: List of tokens to parse (must end with EOF)
        filename: Source filename for error reporting
    """

    def __init__(
        self,
        tokens: list[Token],
        filename: str = "<input>",
        source_lines: Optional[list[str]] = None,
    ):
        if not tokens or tokens[-1].type != TokenType.EOF:
            raise ValueError("token list must end with an EOF token")

        self.tokens = tokens
        self.filename = filename
        self.source_lines = source_lines or []

        self._pos = 0

    # =========================================================================
    # Entry Points
    # =========================================================================

    def parse(self) -> Program:
        """
        Parse a complete program: exactly one function declaration.

        Raises:
            ParseError: On the first token that does not fit the grammar
        """
        decl = self._parse_declaration()
        self._expect(TokenType.EOF)
        return Program(decl=decl)

    def parse_expression(self) -> Expr:
        """Parse a standalone expression that spans the whole token list."""
        expr = self._parse_expression()
        self._expect(TokenType.EOF)
        return expr

    def parse_statement(self) -> Stmt:
        """Parse a standalone statement that spans the whole token list."""
        stmt = self._parse_statement()
        self._expect(TokenType.EOF)
        return stmt

    # =========================================================================
    # Token Access Methods
    # =========================================================================

    def _peek(self, offset: int = 0) -> Token:
        """Token at current position + offset (EOF past the end)."""
        pos = self._pos + offset
        if pos >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[pos]

    def _advance(self) -> Token:
        """Consume and return the current token. EOF is never consumed."""
        token = self._peek()
        if token.type != TokenType.EOF:
            self._pos += 1
        return token

    def _check(self, *types: TokenType) -> bool:
        return self._peek().type in types

    def _match(self, *types: TokenType) -> Optional[Token]:
        """Consume the current token if it is one of the given types."""
        if self._check(*types):
            return self._advance()
        return None

    def _expect(self, token_type: TokenType) -> Token:
        """
        Consume a token of the given type.

        Raises:
            UnexpectedTokenError: naming the found and the expected kinds
        """
        if self._check(token_type):
            return self._advance()
        raise self._unexpected(self._peek(), token_type.description)

    def _unexpected(self, token: Token, expected: str) -> UnexpectedTokenError:
        return UnexpectedTokenError(
            token.describe(),
            expected,
            location=token.location,
            source_line=self._get_source_line(token.line),
        )

    def _get_source_line(self, line: int) -> Optional[str]:
        if 0 < line <= len(self.source_lines):
            return self.source_lines[line - 1]
        return None

    def _is_type_name(self, token: Token) -> bool:
        return token.type == TokenType.IDENTIFIER and token.value == INT_TYPE_NAME

    # =========================================================================
    # Declarations and Statements
    # =========================================================================

    def _parse_declaration(self) -> Func:
        """declaration ::= 'int' IDENTIFIER '(' ')' '{' statement* '}'"""
        type_token = self._expect(TokenType.IDENTIFIER)
        if not self._is_type_name(type_token):
            raise UnknownTypeError(
                type_token.value,
                location=type_token.location,
                source_line=self._get_source_line(type_token.line),
            )

        name_token = self._expect(TokenType.IDENTIFIER)
        self._expect(TokenType.LPAREN)
        self._expect(TokenType.RPAREN)
        self._expect(TokenType.LBRACE)

        body = []
        while not self._check(TokenType.RBRACE, TokenType.EOF):
            body.append(self._parse_statement())

        self._expect(TokenType.RBRACE)

        return Func(name=name_token.value, body=tuple(body))

    def _parse_statement(self) -> Stmt:
        """Parse a return, declaration, or expression statement."""
        if self._match(TokenType.RETURN):
            expr = self._parse_expression()
            self._expect(TokenType.SEMICOLON)
            return Return(expr=expr)

        if self._is_type_name(self._peek()) and self._peek(1).type == TokenType.IDENTIFIER:
            return self._parse_local_declaration()

        expr = self._parse_expression()
        self._expect(TokenType.SEMICOLON)
        return ExprStmt(expr=expr)

    def _parse_local_declaration(self) -> Declare:
        """'int' IDENTIFIER ('=' expr)? ';'"""
        self._advance()  # 'int'
        name_token = self._expect(TokenType.IDENTIFIER)

        initializer = None
        if self._match(TokenType.ASSIGN):
            initializer = self._parse_expression()

        self._expect(TokenType.SEMICOLON)
        return Declare(name=name_token.value, initializer=initializer)

    # =========================================================================
    # Expression Parsing (Operator Precedence)
    # =========================================================================

    def _parse_expression(self) -> Expr:
        return self._parse_assignment()

    def _parse_assignment(self) -> Expr:
        """Parse IDENTIFIER '=' assignment, or fall through to logical OR."""
        saved = self._pos

        name_token = self._match(TokenType.IDENTIFIER)
        if name_token is not None and self._match(TokenType.ASSIGN):
            rhs = self._parse_assignment()
            return Assign(name=name_token.value, rhs=rhs)

        self._pos = saved
        return self._parse_logical_or()

    def _parse_logical_or(self) -> Expr:
        """Parse logical OR expression (||)."""
        return self._parse_binary(
            self._parse_logical_and,
            {TokenType.OR: BinaryOperator.LOGICAL_OR},
        )

    def _parse_logical_and(self) -> Expr:
        """Parse logical AND expression (&&)."""
        return self._parse_binary(
            self._parse_bitwise_or,
            {TokenType.AND: BinaryOperator.LOGICAL_AND},
        )

    def _parse_bitwise_or(self) -> Expr:
        """Parse bitwise OR expression (|)."""
        return self._parse_binary(
            self._parse_bitwise_xor,
            {TokenType.PIPE: BinaryOperator.BITWISE_OR},
        )

    def _parse_bitwise_xor(self) -> Expr:
        """Parse bitwise XOR expression (^)."""
        return self._parse_binary(
            self._parse_bitwise_and,
            {TokenType.CARET: BinaryOperator.BITWISE_XOR},
        )

    def _parse_bitwise_and(self) -> Expr:
        """Parse bitwise AND expression (&)."""
        return self._parse_binary(
            self._parse_equality,
            {TokenType.AMPERSAND: BinaryOperator.BITWISE_AND},
        )

    def _parse_equality(self) -> Expr:
        """Parse equality expression (== !=)."""
        return self._parse_binary(
            self._parse_relational,
            {
                TokenType.EQ: BinaryOperator.EQUALS,
                TokenType.NE: BinaryOperator.NOT_EQUALS,
            },
        )

    def _parse_relational(self) -> Expr:
        """Parse relational expression (< <= > >=)."""
        return self._parse_binary(
            self._parse_shift,
            {
                TokenType.LT: BinaryOperator.LESS,
                TokenType.LE: BinaryOperator.LESS_EQ,
                TokenType.GT: BinaryOperator.GREATER,
                TokenType.GE: BinaryOperator.GREATER_EQ,
            },
        )

    def _parse_shift(self) -> Expr:
        """Parse shift expression (<< >>)."""
        return self._parse_binary(
            self._parse_additive,
            {
                TokenType.LSHIFT: BinaryOperator.SHIFT_LEFT,
                TokenType.RSHIFT: BinaryOperator.SHIFT_RIGHT,
            },
        )

    def _parse_additive(self) -> Expr:
        """Parse additive expression (+ -)."""
        return self._parse_binary(
            self._parse_multiplicative,
            {
                TokenType.PLUS: BinaryOperator.ADD,
                TokenType.MINUS: BinaryOperator.SUB,
            },
        )

    def _parse_multiplicative(self) -> Expr:
        """Parse multiplicative expression (* / %)."""
        return self._parse_binary(
            self._parse_unary,
            {
                TokenType.STAR: BinaryOperator.MUL,
                TokenType.SLASH: BinaryOperator.DIV,
                TokenType.PERCENT: BinaryOperator.MODULO,
            },
        )

    def _parse_binary(
        self,
        operand_parser: Callable[[], Expr],
        operators: dict[TokenType, BinaryOperator],
    ) -> Expr:
        """
        Generic left-associative binary expression parser.

        Args:
            operand_parser: Parser for the next higher precedence level
            operators: Map of token types to this level's operators
        """
        expr = operand_parser()

        while self._peek().type in operators:
            op_token = self._advance()
            rhs = operand_parser()
            expr = Binary(op=operators[op_token.type], lhs=expr, rhs=rhs)

        return expr

    def _parse_unary(self) -> Expr:
        """Parse a unary operator application or a primary expression."""
        token = self._peek()

        if token.type in UNARY_OPERATORS:
            self._advance()
            operand = self._parse_unary()
            return Unary(op=UNARY_OPERATORS[token.type], operand=operand)

        return self._parse_primary()

    def _parse_primary(self) -> Expr:
        """Parse a literal, a variable, or a parenthesised expression."""
        token = self._peek()

        if token.type == TokenType.LPAREN:
            self._advance()
            expr = self._parse_expression()
            self._expect(TokenType.RPAREN)
            return expr

        if token.type == TokenType.INTEGER:
            self._advance()
            return Literal(value=token.value)

        if token.type == TokenType.IDENTIFIER:
            self._advance()
            return Var(name=token.value)

        raise self._unexpected(token, "an expression")


# =============================================================================
# Convenience Functions
# =============================================================================

def parse(tokens: list[Token], filename: str = "<input>") -> Program:
    """Parse a token list into a Program."""
    return Parser(tokens, filename).parse()


def parse_expression(tokens: list[Token], filename: str = "<input>") -> Expr:
    """Parse a token list holding exactly one expression."""
    return Parser(tokens, filename).parse_expression()


def parse_statement(tokens: list[Token], filename: str = "<input>") -> Stmt:
    """Parse a token list holding exactly one statement."""
    return Parser(tokens, filename).parse_statement()


def parse_source(source: str, filename: str = "<input>") -> Program:
    """
    Lex and parse mini-C source into an AST.

    Raises:
        LexError: If the source contains an invalid character
        ParseError: If the tokens do not form a program
    """
    tokens = list(Lexer(source, filename).tokenize())
    return Parser(tokens, filename, source.splitlines()).parse()
