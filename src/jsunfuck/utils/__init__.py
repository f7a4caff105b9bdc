"""
jsunfuck Utilities Package.

Common utilities for error handling and source locations.
"""

from jsunfuck.utils.errors import (
    JSRuntimeError,
    JSUnfuckError,
    LexerError,
    ParserError,
    SourceLocation,
)

__all__ = [
    "JSUnfuckError",
    "LexerError",
    "ParserError",
    "JSRuntimeError",
    "SourceLocation",
]
