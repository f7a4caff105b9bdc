"""
Error types and source location tracking for the jsunfuck deobfuscator.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """
    Represents a location in the source code.

    Attributes:
        line: 1-indexed line number
        column: 1-indexed column number
        offset: 0-indexed character offset from start of source
        filename: Optional filename for error reporting
    """

    line: int
    column: int
    offset: int = 0
    filename: Optional[str] = None

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


class JSUnfuckError(Exception):
    """Base exception for all jsunfuck errors."""

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ) -> None:
        self.message = message
        self.location = location
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = []

        if self.location:
            parts.append(f"[{self.location}]")

        parts.append(self.message)

        if self.source_line and self.location:
            parts.append(f"\n    {self.source_line}")
            # Caret under the offending column
            padding = " " * (4 + self.location.column - 1)
            parts.append(f"\n{padding}^")

        return " ".join(parts) if not self.source_line else parts[0] + " " + "".join(parts[1:])


class LexerError(JSUnfuckError):
    """Raised when the lexer encounters an invalid token or character."""

    pass


class ParserError(JSUnfuckError):
    """Raised when the parser encounters a syntax error."""

    pass


class JSRuntimeError(JSUnfuckError):
    """
    Raised by the JavaScript runtime helpers when a value cannot be
    reproduced exactly (unparsable number, radix out of range, ...).

    The rewrite rules catch this and treat it as a non-match; it never
    reaches callers of the rule engine.
    """

    pass
