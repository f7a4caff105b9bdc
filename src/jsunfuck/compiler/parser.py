"""
jsunfuck Parser.

A recursive descent parser that transforms a token stream into an Abstract
Syntax Tree (AST). Implements operator precedence parsing for the
JavaScript expression grammar: literals, arrays, calls, member and index
access, unary and binary operators, the conditional operator and comma
sequences.
"""

from typing import Optional

from jsunfuck.compiler.ast_nodes import (
    ArrayLiteral,
    BinaryExpression,
    BinaryOperator,
    BooleanLiteral,
    CallExpression,
    ConditionalExpression,
    Expression,
    ExpressionStatement,
    Identifier,
    IndexExpression,
    MemberAccess,
    NullLiteral,
    NumberLiteral,
    Program,
    RegexLiteral,
    SequenceExpression,
    Statement,
    StringLiteral,
    UnaryExpression,
    UnaryOperator,
)
from jsunfuck.compiler.lexer import Lexer
from jsunfuck.compiler.tokens import KEYWORDS, Token, TokenType
from jsunfuck.utils.errors import ParserError, SourceLocation


# Operator precedence levels (higher = tighter binding)
class Precedence:
    """Operator precedence levels."""

    NONE = 0
    SEQUENCE = 1        # ,
    CONDITIONAL = 2     # ? :
    OR = 3              # ||
    AND = 4             # &&
    EQUALITY = 5        # == != === !==
    COMPARISON = 6      # < > <= >=
    ADDITIVE = 7        # + -
    MULTIPLICATIVE = 8  # * / %
    UNARY = 9           # ! + - ~ typeof void
    POSTFIX = 10        # () [] .


# Map token types to binary operators
BINARY_OP_MAP: dict[TokenType, BinaryOperator] = {
    TokenType.PLUS: BinaryOperator.ADD,
    TokenType.MINUS: BinaryOperator.SUB,
    TokenType.STAR: BinaryOperator.MUL,
    TokenType.SLASH: BinaryOperator.DIV,
    TokenType.PERCENT: BinaryOperator.MOD,
    TokenType.EQ: BinaryOperator.EQ,
    TokenType.NE: BinaryOperator.NE,
    TokenType.STRICT_EQ: BinaryOperator.STRICT_EQ,
    TokenType.STRICT_NE: BinaryOperator.STRICT_NE,
    TokenType.LT: BinaryOperator.LT,
    TokenType.GT: BinaryOperator.GT,
    TokenType.LE: BinaryOperator.LE,
    TokenType.GE: BinaryOperator.GE,
    TokenType.AND: BinaryOperator.AND,
    TokenType.OR: BinaryOperator.OR,
}

# Map token types to their precedence
PRECEDENCE_MAP: dict[TokenType, int] = {
    TokenType.QUESTION: Precedence.CONDITIONAL,
    TokenType.OR: Precedence.OR,
    TokenType.AND: Precedence.AND,
    TokenType.EQ: Precedence.EQUALITY,
    TokenType.NE: Precedence.EQUALITY,
    TokenType.STRICT_EQ: Precedence.EQUALITY,
    TokenType.STRICT_NE: Precedence.EQUALITY,
    TokenType.LT: Precedence.COMPARISON,
    TokenType.GT: Precedence.COMPARISON,
    TokenType.LE: Precedence.COMPARISON,
    TokenType.GE: Precedence.COMPARISON,
    TokenType.PLUS: Precedence.ADDITIVE,
    TokenType.MINUS: Precedence.ADDITIVE,
    TokenType.STAR: Precedence.MULTIPLICATIVE,
    TokenType.SLASH: Precedence.MULTIPLICATIVE,
    TokenType.PERCENT: Precedence.MULTIPLICATIVE,
}

UNARY_OP_MAP: dict[TokenType, UnaryOperator] = {
    TokenType.BANG: UnaryOperator.NOT,
    TokenType.PLUS: UnaryOperator.POS,
    TokenType.MINUS: UnaryOperator.NEG,
    TokenType.TILDE: UnaryOperator.BIT_NOT,
    TokenType.TYPEOF: UnaryOperator.TYPEOF,
    TokenType.VOID: UnaryOperator.VOID,
}

# Keywords that are allowed as member names (after a DOT): `x.true`
MEMBER_NAME_KEYWORDS: set[TokenType] = set(KEYWORDS.values())


class Parser:
    """
    Recursive descent parser for JavaScript expressions.

    Parses a list of tokens into an Abstract Syntax Tree.

    Usage:
        parser = Parser(tokens)
        ast = parser.parse()
    """

    def __init__(self, tokens: list[Token], source: str = "",
                 filename: str = "<input>") -> None:
        """
        Initialize the parser.

        Args:
            tokens: List of tokens from the lexer
            source: Optional source code for error context
            filename: Optional filename for error reporting
        """
        self.tokens = tokens
        self.pos = 0
        self._source_lines: list[str] = source.splitlines() if source else []
        self._filename = filename

    @property
    def _current(self) -> Token:
        """Get the current token."""
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # Return EOF
        return self.tokens[self.pos]

    @property
    def _previous(self) -> Token:
        """Get the previous token."""
        return self.tokens[self.pos - 1] if self.pos > 0 else self.tokens[0]

    def _is_at_end(self) -> bool:
        """Check if we've reached the end of tokens."""
        return self._current.type == TokenType.EOF

    def _check(self, *types: TokenType) -> bool:
        """Check if the current token is one of the given types."""
        return self._current.type in types

    def _advance(self) -> Token:
        """Consume and return the current token."""
        token = self._current
        if not self._is_at_end():
            self.pos += 1
        return token

    def _match(self, *types: TokenType) -> bool:
        """Consume current token if it matches one of the given types."""
        if self._check(*types):
            self._advance()
            return True
        return False

    def _expect(self, token_type: TokenType, message: str) -> Token:
        """Consume current token if it matches, else raise error."""
        if self._check(token_type):
            return self._advance()
        raise self._error(message)

    def _error(self, message: str) -> ParserError:
        """Create a parser error with location info."""
        token = self._current
        source_line = None
        line = token.location.line
        if 0 < line <= len(self._source_lines):
            source_line = self._source_lines[line - 1]
        found = "end of input" if token.type == TokenType.EOF else token.type.name
        return ParserError(f"{message} (found {found})", token.location, source_line)

    def _parse_member_name(self) -> str:
        """Parse a member name after a dot (identifier or keyword)."""
        if self._check(TokenType.IDENTIFIER) or self._current.type in MEMBER_NAME_KEYWORDS:
            token = self._advance()
            if token.type in (TokenType.TRUE, TokenType.FALSE, TokenType.NULL):
                return token.type.name.lower()
            return token.value
        raise self._error("Expected property name after '.'")

    # -------------------------------------------------------------------------
    # Program Parsing
    # -------------------------------------------------------------------------

    def parse(self) -> Program:
        """
        Parse the entire program.

        Returns:
            The root Program AST node.
        """
        statements: list[Statement] = []

        while not self._is_at_end():
            if self._match(TokenType.SEMICOLON):
                continue
            statements.append(self._parse_statement())

        return Program(tuple(statements))

    def _parse_statement(self) -> Statement:
        """Parse an expression statement and its terminator."""
        expr = self._parse_sequence()

        if not self._match(TokenType.SEMICOLON) and not self._is_at_end():
            # Automatic semicolon insertion at a line break
            if self._current.location.line <= self._previous.location.line:
                raise self._error("Expected ';' or line break after expression")

        return ExpressionStatement(expression=expr, location=expr.location)

    # -------------------------------------------------------------------------
    # Expression Parsing (Pratt Parser / Precedence Climbing)
    # -------------------------------------------------------------------------

    def parse_expression(self) -> Expression:
        """Parse a single complete expression (used by tools and tests)."""
        expr = self._parse_sequence()
        self._match(TokenType.SEMICOLON)
        if not self._is_at_end():
            raise self._error("Unexpected token after expression")
        return expr

    def _parse_sequence(self) -> Expression:
        """Parse a comma-separated expression sequence."""
        first = self._parse_expression()
        if not self._check(TokenType.COMMA):
            return first

        expressions = [first]
        while self._match(TokenType.COMMA):
            expressions.append(self._parse_expression())
        return SequenceExpression(expressions=tuple(expressions), location=first.location)

    def _parse_expression(self, min_precedence: int = Precedence.NONE) -> Expression:
        """
        Parse an expression using precedence climbing.

        All binary operators are left associative; the conditional operator
        is right associative.
        """
        left = self._parse_prefix()

        while True:
            precedence = PRECEDENCE_MAP.get(self._current.type, Precedence.NONE)
            if precedence <= min_precedence:
                break

            if self._match(TokenType.QUESTION):
                then_expr = self._parse_expression()
                self._expect(TokenType.COLON, "Expected ':' in conditional expression")
                else_expr = self._parse_expression(Precedence.CONDITIONAL - 1)
                left = ConditionalExpression(
                    condition=left,
                    then_expr=then_expr,
                    else_expr=else_expr,
                    location=left.location,
                )
                continue

            operator = self._advance()
            right = self._parse_expression(precedence)
            left = BinaryExpression(
                left=left,
                operator=BINARY_OP_MAP[operator.type],
                right=right,
                location=left.location,
            )

        return left

    def _parse_prefix(self) -> Expression:
        """Parse a prefix expression (unary operators, then postfix chains)."""
        loc = self._current.location

        if self._current.type in UNARY_OP_MAP:
            operator = UNARY_OP_MAP[self._advance().type]
            operand = self._parse_prefix()
            return UnaryExpression(operator=operator, operand=operand, location=loc)

        return self._continue_postfix(self._parse_primary())

    def _continue_postfix(self, expr: Expression) -> Expression:
        """Continue parsing postfix operations (calls, indexing, member access)."""
        while True:
            if self._match(TokenType.LPAREN):
                arguments = self._parse_expression_list(TokenType.RPAREN)
                self._expect(TokenType.RPAREN, "Expected ')' after arguments")
                expr = CallExpression(
                    callee=expr,
                    arguments=tuple(arguments),
                    free_call=isinstance(expr, Identifier),
                    location=expr.location,
                )
            elif self._match(TokenType.LBRACKET):
                index = self._parse_sequence()
                self._expect(TokenType.RBRACKET, "Expected ']' after index")
                expr = IndexExpression(object=expr, index=index, location=expr.location)
            elif self._match(TokenType.DOT):
                member = self._parse_member_name()
                expr = MemberAccess(object=expr, member=member, location=expr.location)
            else:
                break
        return expr

    def _parse_primary(self) -> Expression:
        """Parse a primary expression (literals, identifiers, etc.)."""
        loc = self._current.location

        if self._match(TokenType.NUMBER):
            return NumberLiteral(value=self._previous.value, location=loc)

        if self._match(TokenType.STRING):
            return StringLiteral(value=self._previous.value, location=loc)

        if self._match(TokenType.TRUE, TokenType.FALSE):
            return BooleanLiteral(value=self._previous.value, location=loc)

        if self._match(TokenType.NULL):
            return NullLiteral(location=loc)

        if self._match(TokenType.REGEX):
            pattern, flags = self._previous.value
            return RegexLiteral(pattern=pattern, flags=flags, location=loc)

        if self._match(TokenType.IDENTIFIER):
            return Identifier(name=self._previous.value, location=loc)

        if self._match(TokenType.LBRACKET):
            return self._parse_array_literal(loc)

        if self._match(TokenType.LPAREN):
            expr = self._parse_sequence()
            self._expect(TokenType.RPAREN, "Expected ')' after expression")
            return expr

        raise self._error("Unexpected token")

    def _parse_array_literal(self, loc: SourceLocation) -> ArrayLiteral:
        """Parse the elements of an array literal after '['."""
        elements = self._parse_expression_list(TokenType.RBRACKET)
        self._expect(TokenType.RBRACKET, "Expected ']' after array elements")
        return ArrayLiteral(elements=tuple(elements), location=loc)

    def _parse_expression_list(self, end_token: TokenType) -> list[Expression]:
        """Parse comma-separated expressions up to (not including) end_token."""
        items: list[Expression] = []
        if self._check(end_token):
            return items
        while True:
            items.append(self._parse_expression())
            if not self._match(TokenType.COMMA):
                break
            # Trailing comma
            if self._check(end_token):
                break
        return items


def parse(source: str, filename: Optional[str] = None) -> Program:
    """
    Convenience function to parse JavaScript source into a Program.

    Raises:
        LexerError: On invalid tokens
        ParserError: On syntax errors
    """
    tokens = Lexer(source, filename).tokenize()
    return Parser(tokens, source=source, filename=filename or "<input>").parse()


def parse_expression(source: str, filename: Optional[str] = None) -> Expression:
    """Convenience function to parse a single JavaScript expression."""
    tokens = Lexer(source, filename).tokenize()
    return Parser(tokens, source=source, filename=filename or "<input>").parse_expression()
