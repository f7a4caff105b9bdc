"""
jsunfuck Lexer (Tokenizer).

Transforms JavaScript source code into a stream of tokens. Only the
expression-level grammar is covered: the six-character encoding never
needs more, and plain statements are separated by ``;`` or line breaks.
"""

import math
from typing import Iterator, Optional

from jsunfuck.compiler.js_runtime import normalize_utf16
from jsunfuck.compiler.tokens import (
    DOUBLE_CHAR_TOKENS,
    KEYWORDS,
    REGEX_PRECEDING_TOKENS,
    SINGLE_CHAR_TOKENS,
    TRIPLE_CHAR_TOKENS,
    Token,
    TokenType,
)
from jsunfuck.utils.errors import LexerError, SourceLocation


_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}

_LINE_TERMINATORS = "\n\r\u2028\u2029"
_HEX_DIGITS = "0123456789abcdefABCDEF"
_DECIMAL_DIGITS = "0123456789"


def _is_identifier_start(char: str) -> bool:
    return char.isalpha() or char in "_$"


def _is_identifier_part(char: str) -> bool:
    return char.isalnum() or char in "_$"


class Lexer:
    """
    Tokenizer for JavaScript expression source.

    The lexer supports:
    - Identifiers and the keywords true, false, null, typeof, void
    - Decimal, hexadecimal, octal and binary number literals
    - Single and double quoted strings with the full escape syntax
    - Regular expression literals (where an operand is expected)
    - Comments (// single line, /* multi-line */)

    Usage:
        lexer = Lexer(source_code)
        tokens = lexer.tokenize()
        # or iterate: for token in lexer: ...
    """

    def __init__(self, source: str, filename: Optional[str] = None) -> None:
        """
        Initialize the lexer with source code.

        Args:
            source: The JavaScript source code to tokenize
            filename: Optional filename for error reporting
        """
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: list[Token] = []

        # Track the start of the current line for error reporting
        self._line_start = 0

    @property
    def _current_char(self) -> Optional[str]:
        """Return the current character or None if at end."""
        if self.pos >= len(self.source):
            return None
        return self.source[self.pos]

    @property
    def _peek_char(self) -> Optional[str]:
        """Return the next character without consuming it."""
        return self._peek_ahead(1)

    def _peek_ahead(self, n: int) -> Optional[str]:
        """Return the character n positions ahead."""
        peek_pos = self.pos + n
        if peek_pos >= len(self.source):
            return None
        return self.source[peek_pos]

    def _location(self) -> SourceLocation:
        """Create a SourceLocation for the current position."""
        return SourceLocation(
            line=self.line,
            column=self.column,
            offset=self.pos,
            filename=self.filename,
        )

    def _current_line_text(self) -> str:
        """Extract the current line of source for error messages."""
        end = self.source.find("\n", self._line_start)
        if end == -1:
            end = len(self.source)
        return self.source[self._line_start:end]

    def _error(self, message: str, location: Optional[SourceLocation] = None) -> LexerError:
        return LexerError(message, location or self._location(), self._current_line_text())

    def _advance(self) -> str:
        """Consume and return the current character."""
        char = self.source[self.pos]
        self.pos += 1

        if char == "\n":
            self.line += 1
            self.column = 1
            self._line_start = self.pos
        else:
            self.column += 1

        return char

    def _skip_whitespace_and_comments(self) -> None:
        """Skip whitespace, line breaks and both comment forms."""
        while self._current_char is not None:
            char = self._current_char
            if char.isspace() or char == "\ufeff":
                self._advance()
            elif char == "/" and self._peek_char == "/":
                while self._current_char is not None and self._current_char not in _LINE_TERMINATORS:
                    self._advance()
            elif char == "/" and self._peek_char == "*":
                start_loc = self._location()
                self._advance()  # /
                self._advance()  # *
                while True:
                    if self._current_char is None:
                        raise self._error("Unterminated multi-line comment", start_loc)
                    if self._current_char == "*" and self._peek_char == "/":
                        self._advance()  # *
                        self._advance()  # /
                        break
                    self._advance()
            else:
                break

    def _regex_allowed(self) -> bool:
        """A "/" starts a regex at the start of input or after an operator."""
        if not self.tokens:
            return True
        return self.tokens[-1].type in REGEX_PRECEDING_TOKENS

    def _read_hex(self, count: int) -> int:
        chars: list[str] = []
        for _ in range(count):
            char = self._current_char
            if char is None or char not in _HEX_DIGITS:
                raise self._error("Invalid hexadecimal escape sequence")
            chars.append(self._advance())
        return int("".join(chars), 16)

    def _read_escape(self) -> str:
        """Read the escape sequence after a backslash inside a string."""
        char = self._current_char
        if char is None:
            raise self._error("Unterminated escape sequence")

        if char in _LINE_TERMINATORS:
            # Line continuation
            self._advance()
            if char == "\r" and self._current_char == "\n":
                self._advance()
            return ""

        if char == "0" and self._peek_char is not None and self._peek_char in _DECIMAL_DIGITS:
            raise self._error("Octal escape sequences are not supported")

        if char in _SIMPLE_ESCAPES:
            self._advance()
            return _SIMPLE_ESCAPES[char]

        if char == "x":
            self._advance()
            return chr(self._read_hex(2))

        if char == "u":
            self._advance()
            if self._current_char == "{":
                self._advance()
                chars: list[str] = []
                while self._current_char is not None and self._current_char != "}":
                    if self._current_char not in _HEX_DIGITS:
                        raise self._error("Invalid unicode escape sequence")
                    chars.append(self._advance())
                if self._current_char != "}" or not chars:
                    raise self._error("Unterminated unicode escape sequence")
                self._advance()
                code_point = int("".join(chars), 16)
                if code_point > 0x10FFFF:
                    raise self._error("Unicode escape out of range")
                return chr(code_point)
            return chr(self._read_hex(4))

        if char in _DECIMAL_DIGITS:
            raise self._error("Octal escape sequences are not supported")

        # Any other escaped character stands for itself
        return self._advance()

    def _read_string(self, quote_char: str) -> Token:
        """
        Read a string literal.

        Args:
            quote_char: The opening quote character (' or ")

        Returns:
            A STRING token with the string value.
        """
        start_loc = self._location()
        self._advance()  # consume opening quote

        value_chars: list[str] = []

        while True:
            if self._current_char is None:
                raise self._error("Unterminated string literal", start_loc)

            if self._current_char in "\n\r":
                raise self._error("Newline in string literal (use \\n for newlines)")

            if self._current_char == quote_char:
                self._advance()  # consume closing quote
                break

            if self._current_char == "\\":
                self._advance()
                value_chars.append(self._read_escape())
            else:
                value_chars.append(self._advance())

        # A surrogate pair spelled as two \u escapes is one character
        return Token(TokenType.STRING, normalize_utf16("".join(value_chars)), start_loc)

    def _read_digits(self, allowed: str) -> str:
        chars: list[str] = []
        while self._current_char is not None and (
            self._current_char in allowed or self._current_char == "_"
        ):
            char = self._advance()
            if char != "_":
                chars.append(char)
        return "".join(chars)

    def _read_number(self) -> Token:
        """
        Read a numeric literal.

        Supports:
        - Decimal integers and fractions: 123, 1.5, .5, 1.
        - Exponents: 1e21, 1.5E-7
        - Prefixed integers: 0xff, 0o17, 0b101
        - Numeric separators: 1_000_000

        Returns:
            A NUMBER token whose value is a float.
        """
        start_loc = self._location()

        if self._current_char == "0" and self._peek_char is not None and self._peek_char in "xXoObB":
            self._advance()  # 0
            prefix = self._advance().lower()
            base, allowed = {
                "x": (16, _HEX_DIGITS),
                "o": (8, "01234567"),
                "b": (2, "01"),
            }[prefix]
            digits = self._read_digits(allowed)
            if not digits:
                raise self._error(f"Invalid number: expected digits after 0{prefix}")
            try:
                value = float(int(digits, base))
            except OverflowError:
                value = math.inf
        else:
            num_chars = [self._read_digits(_DECIMAL_DIGITS)]

            if self._current_char == ".":
                num_chars.append(self._advance())
                num_chars.append(self._read_digits(_DECIMAL_DIGITS))

            if self._current_char is not None and self._current_char in "eE":
                num_chars.append(self._advance())
                if self._current_char is not None and self._current_char in "+-":
                    num_chars.append(self._advance())
                exponent = self._read_digits(_DECIMAL_DIGITS)
                if not exponent:
                    raise self._error("Invalid number: expected exponent digits")
                num_chars.append(exponent)

            value = float("".join(num_chars))

        if self._current_char is not None and _is_identifier_start(self._current_char):
            raise self._error("Identifier starts immediately after numeric literal")

        return Token(TokenType.NUMBER, value, start_loc)

    def _read_regex(self) -> Token:
        """
        Read a regular expression literal.

        Returns:
            A REGEX token whose value is a (pattern, flags) tuple.
        """
        start_loc = self._location()
        self._advance()  # opening /

        pattern_chars: list[str] = []
        in_class = False
        while True:
            char = self._current_char
            if char is None or char in _LINE_TERMINATORS:
                raise self._error("Unterminated regular expression literal", start_loc)
            if char == "\\":
                pattern_chars.append(self._advance())
                if self._current_char is None or self._current_char in _LINE_TERMINATORS:
                    raise self._error("Unterminated regular expression literal", start_loc)
                pattern_chars.append(self._advance())
                continue
            if char == "[":
                in_class = True
            elif char == "]":
                in_class = False
            elif char == "/" and not in_class:
                self._advance()  # closing /
                break
            pattern_chars.append(self._advance())

        flag_chars: list[str] = []
        while self._current_char is not None and _is_identifier_part(self._current_char):
            flag_chars.append(self._advance())

        return Token(TokenType.REGEX, ("".join(pattern_chars), "".join(flag_chars)), start_loc)

    def _read_identifier_or_keyword(self) -> Token:
        """
        Read an identifier or keyword.

        Returns:
            An IDENTIFIER token or the appropriate keyword token.
        """
        start_loc = self._location()
        id_chars: list[str] = []

        while self._current_char is not None and _is_identifier_part(self._current_char):
            id_chars.append(self._advance())

        identifier = "".join(id_chars)

        if identifier in KEYWORDS:
            token_type = KEYWORDS[identifier]
            if token_type == TokenType.TRUE:
                return Token(token_type, True, start_loc)
            if token_type == TokenType.FALSE:
                return Token(token_type, False, start_loc)
            if token_type == TokenType.NULL:
                return Token(token_type, None, start_loc)
            return Token(token_type, identifier, start_loc)

        return Token(TokenType.IDENTIFIER, identifier, start_loc)

    def _read_operator(self) -> Token:
        """Read a one to three character operator or delimiter."""
        start_loc = self._location()
        for length, table in ((3, TRIPLE_CHAR_TOKENS), (2, DOUBLE_CHAR_TOKENS), (1, SINGLE_CHAR_TOKENS)):
            lexeme = self.source[self.pos:self.pos + length]
            if lexeme in table:
                for _ in range(length):
                    self._advance()
                return Token(table[lexeme], lexeme, start_loc)
        raise self._error(f"Unexpected character: {self._current_char!r}")

    def _next_token(self) -> Token:
        """Scan the next token."""
        self._skip_whitespace_and_comments()

        char = self._current_char
        if char is None:
            return Token(TokenType.EOF, None, self._location())

        if char in "\"'":
            return self._read_string(char)

        if char in _DECIMAL_DIGITS or (
            char == "." and self._peek_char is not None and self._peek_char in _DECIMAL_DIGITS
        ):
            return self._read_number()

        if _is_identifier_start(char):
            return self._read_identifier_or_keyword()

        if char == "/" and self._regex_allowed():
            return self._read_regex()

        return self._read_operator()

    def tokenize(self) -> list[Token]:
        """
        Tokenize the entire source code.

        Returns:
            A list of all tokens including the final EOF token.
        """
        self.tokens = []
        self.pos = 0
        self.line = 1
        self.column = 1
        self._line_start = 0

        while True:
            token = self._next_token()
            self.tokens.append(token)
            if token.type == TokenType.EOF:
                break

        return self.tokens

    def __iter__(self) -> Iterator[Token]:
        """Iterate over tokens (re-tokenizes if necessary)."""
        if not self.tokens:
            self.tokenize()
        return iter(self.tokens)


def tokenize(source: str, filename: Optional[str] = None) -> list[Token]:
    """
    Convenience function to tokenize source code.

    Args:
        source: JavaScript source code
        filename: Optional filename for error reporting

    Returns:
        List of tokens
    """
    return Lexer(source, filename).tokenize()
