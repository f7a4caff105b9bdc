"""
Pytest configuration and shared fixtures for jsunfuck tests.
"""

import pytest

from jsunfuck.compiler.ast_nodes import Expression, Program
from jsunfuck.compiler.codegen import CodeGenerator
from jsunfuck.compiler.driver import deobfuscate_source
from jsunfuck.compiler.lexer import Lexer
from jsunfuck.compiler.parser import Parser
from jsunfuck.compiler.tokens import Token
from jsunfuck.compiler.unfuck import PeepholeUnfuck


@pytest.fixture
def lexer_factory():
    """Factory fixture for creating lexers."""

    def _create_lexer(source: str, filename: str = "test.js") -> Lexer:
        return Lexer(source, filename)

    return _create_lexer


@pytest.fixture
def tokenize(lexer_factory):
    """Fixture to tokenize source code."""

    def _tokenize(source: str) -> list[Token]:
        return lexer_factory(source).tokenize()

    return _tokenize


@pytest.fixture
def parser_factory(lexer_factory):
    """Factory fixture for creating parsers from source."""

    def _create_parser(source: str) -> Parser:
        tokens = lexer_factory(source).tokenize()
        return Parser(tokens, source=source, filename="test.js")

    return _create_parser


@pytest.fixture
def parse(parser_factory):
    """Fixture to parse a whole program."""

    def _parse(source: str) -> Program:
        return parser_factory(source).parse()

    return _parse


@pytest.fixture
def parse_expression(parser_factory):
    """Fixture to parse a single expression."""

    def _parse_expression(source: str) -> Expression:
        return parser_factory(source).parse_expression()

    return _parse_expression


@pytest.fixture
def engine():
    """A rule dispatcher without a change callback."""
    return PeepholeUnfuck()


@pytest.fixture
def rewrite(engine, parse_expression):
    """Fixture applying at most one peephole rewrite to parsed source."""

    def _rewrite(source: str) -> Expression:
        return engine.optimize(parse_expression(source))

    return _rewrite


@pytest.fixture
def generate():
    """Fixture printing an AST back to JavaScript."""

    def _generate(node) -> str:
        return CodeGenerator().generate(node)

    return _generate


@pytest.fixture
def deobfuscate():
    """Fixture running the full pipeline: parse, rewrite to fixpoint, print."""

    def _deobfuscate(source: str, **options) -> str:
        return deobfuscate_source(source, **options)

    return _deobfuscate


# -----------------------------------------------------------------------------
# Six-character encoder for building test inputs
# -----------------------------------------------------------------------------


def jsfuck_number(n: int) -> str:
    """Encode a small non-negative integer as a number expression."""
    if n == 0:
        return "+[]"
    if n == 1:
        return "+!+[]"
    return "+".join(["!+[]"] * n)


def jsfuck_char_at(base: str, index: int) -> str:
    """Encode ``(base)[index]``; indexes from 10 up use a numeral string."""
    if index >= 10:
        # 1 + [n] is the string "1n"
        return f"({base})[+!+[]+[{jsfuck_number(index - 10)}]]"
    return f"({base})[{jsfuck_number(index)}]"


_FALSE = "![]+[]"
_TRUE = "!![]+[]"
_UNDEFINED = "[][[]]+[]"
_FALSE_UNDEFINED = "[![]]+[][[]]"

JSFUCK_CHARS: dict[str, str] = {
    "f": jsfuck_char_at(_FALSE, 0),
    "a": jsfuck_char_at(_FALSE, 1),
    "l": jsfuck_char_at(_FALSE, 2),
    "s": jsfuck_char_at(_FALSE, 3),
    "e": jsfuck_char_at(_FALSE, 4),
    "t": jsfuck_char_at(_TRUE, 0),
    "r": jsfuck_char_at(_TRUE, 1),
    "u": jsfuck_char_at(_TRUE, 2),
    "n": jsfuck_char_at(_UNDEFINED, 1),
    "d": jsfuck_char_at(_UNDEFINED, 2),
    "i": jsfuck_char_at(_FALSE_UNDEFINED, 10),
    "1": "(+!+[]+[])",
}


def jsfuck_encode(text: str) -> str:
    """Encode a string as a concatenation of encoded characters."""
    return "+".join(JSFUCK_CHARS[c] for c in text)


# "function fill() {\n    [native code]\n}" supplies the rest
_FILL = f"[][{jsfuck_encode('fill')}]"
JSFUCK_CHARS["c"] = jsfuck_char_at(f"{_FILL}+[]", 3)
JSFUCK_CHARS[" "] = jsfuck_char_at(f"{_FILL}+[]", 8)
JSFUCK_CHARS["("] = jsfuck_char_at(f"{_FILL}+[]", 13)
JSFUCK_CHARS[")"] = jsfuck_char_at(f"{_FILL}+[]", 14)
JSFUCK_CHARS["o"] = jsfuck_char_at(f"!![]+{_FILL}", 10)
# String is the global constructor: "function String() {...}"
JSFUCK_CHARS["S"] = jsfuck_char_at("[]+String", 9)
JSFUCK_CHARS["g"] = jsfuck_char_at("[]+String", 14)


@pytest.fixture
def encode():
    """Fixture encoding text with the six-character alphabet."""
    return jsfuck_encode
