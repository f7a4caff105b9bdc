"""
Token definitions for the jsunfuck lexer.

This module defines the token types of the JavaScript expression subset the
deobfuscator reads: literals, identifiers, the handful of keywords that act
as operators or literals, and punctuation.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

from jsunfuck.utils.errors import SourceLocation


class TokenType(Enum):
    """Enumeration of all token types."""

    # End of file
    EOF = auto()

    # Literals
    NUMBER = auto()
    STRING = auto()
    REGEX = auto()

    # Identifiers
    IDENTIFIER = auto()

    # Keywords
    TRUE = auto()
    FALSE = auto()
    NULL = auto()
    TYPEOF = auto()
    VOID = auto()

    # Operators
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    PERCENT = auto()
    BANG = auto()
    TILDE = auto()
    LT = auto()
    GT = auto()
    LE = auto()
    GE = auto()
    EQ = auto()
    NE = auto()
    STRICT_EQ = auto()
    STRICT_NE = auto()
    AND = auto()
    OR = auto()

    # Delimiters
    LPAREN = auto()
    RPAREN = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    COMMA = auto()
    DOT = auto()
    SEMICOLON = auto()
    QUESTION = auto()
    COLON = auto()


KEYWORDS: dict[str, TokenType] = {
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
    "null": TokenType.NULL,
    "typeof": TokenType.TYPEOF,
    "void": TokenType.VOID,
}

# Single character operators
SINGLE_CHAR_TOKENS: dict[str, TokenType] = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "%": TokenType.PERCENT,
    "!": TokenType.BANG,
    "~": TokenType.TILDE,
    "<": TokenType.LT,
    ">": TokenType.GT,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    ",": TokenType.COMMA,
    ".": TokenType.DOT,
    ";": TokenType.SEMICOLON,
    "?": TokenType.QUESTION,
    ":": TokenType.COLON,
}

# Two character operators (check these before single char)
DOUBLE_CHAR_TOKENS: dict[str, TokenType] = {
    "==": TokenType.EQ,
    "!=": TokenType.NE,
    "<=": TokenType.LE,
    ">=": TokenType.GE,
    "&&": TokenType.AND,
    "||": TokenType.OR,
}

# Three character operators (check these first)
TRIPLE_CHAR_TOKENS: dict[str, TokenType] = {
    "===": TokenType.STRICT_EQ,
    "!==": TokenType.STRICT_NE,
}

# After one of these a "/" starts a regular expression, not a division.
REGEX_PRECEDING_TOKENS: frozenset[TokenType] = frozenset({
    TokenType.LPAREN,
    TokenType.LBRACKET,
    TokenType.COMMA,
    TokenType.SEMICOLON,
    TokenType.QUESTION,
    TokenType.COLON,
    TokenType.PLUS,
    TokenType.MINUS,
    TokenType.STAR,
    TokenType.SLASH,
    TokenType.PERCENT,
    TokenType.BANG,
    TokenType.TILDE,
    TokenType.LT,
    TokenType.GT,
    TokenType.LE,
    TokenType.GE,
    TokenType.EQ,
    TokenType.NE,
    TokenType.STRICT_EQ,
    TokenType.STRICT_NE,
    TokenType.AND,
    TokenType.OR,
    TokenType.TYPEOF,
    TokenType.VOID,
})


@dataclass(slots=True)
class Token:
    """
    Represents a single token from the source code.

    Attributes:
        type: The type of this token
        value: The literal value (for literals) or lexeme text
        location: Source location of this token
    """

    type: TokenType
    value: Any
    location: SourceLocation

    def __repr__(self) -> str:
        if self.value is not None:
            return f"Token({self.type.name}, {self.value!r}, {self.location})"
        return f"Token({self.type.name}, {self.location})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Token):
            return self.type == other.type and self.value == other.value
        if isinstance(other, TokenType):
            return self.type == other
        return NotImplemented
