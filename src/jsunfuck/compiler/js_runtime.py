"""
JavaScript runtime semantics needed by the rewrite rules.

Folding an obfuscated expression into a literal is only sound if the
literal is exactly what a JavaScript engine would compute. This module
reproduces the relevant built-in algorithms:

- Number::toString (shortest round-trip digits, exponent thresholds)
- Number.prototype.toString(radix) for non-negative integers
- the legacy global ``escape``
- String.prototype.slice over UTF-16 code units
- StringToNumber
- the deprecated HTML wrapper methods of String.prototype

Strings are Python ``str`` values; UTF-16 code unit indexing is done by
round-tripping through ``utf-16-le`` with ``surrogatepass`` so that lone
surrogates survive.
"""

from __future__ import annotations

import math
import re
from decimal import Decimal
from typing import Optional

from jsunfuck.utils.errors import JSRuntimeError


# =============================================================================
# Static Tables
# =============================================================================


# Array.prototype members whose native source text the encoding relies on.
ARRAY_METHOD_NAMES: frozenset[str] = frozenset({
    "concat", "copyWithin", "entries", "every", "fill", "filter", "find",
    "findIndex", "flat", "flatMap", "forEach", "includes", "indexOf", "join",
    "keys", "lastIndexOf", "map", "pop", "push", "reduce", "reduceRight",
    "reverse", "shift", "slice", "some", "sort", "splice", "toLocaleString",
    "toSource", "toString", "unshift", "values",
})

# Array methods used to reach the Function constructor via ``.constructor``.
EVAL_ARRAY_METHOD_NAMES: frozenset[str] = frozenset({"fill", "filter", "sort"})

# Global constructors whose name and source text are folded.
CONSTRUCTOR_NAMES: frozenset[str] = frozenset({
    "Array", "Number", "String", "Boolean", "Function", "RegExp",
})

# String.prototype HTML wrapper methods: name -> (prefix, suffix).
# For the attribute-taking methods the prefix ends inside the attribute
# value, so the (quote-escaped) argument goes between prefix and suffix.
HTML_WRAPPER_METHODS: dict[str, tuple[str, str]] = {
    "anchor": ('<a name="', '"></a>'),
    "big": ("<big>", "</big>"),
    "blink": ("<blink>", "</blink>"),
    "bold": ("<b>", "</b>"),
    "fixed": ("<tt>", "</tt>"),
    "fontcolor": ('<font color="', '"></font>'),
    "fontsize": ('<font size="', '"></font>'),
    "italics": ("<i>", "</i>"),
    "link": ('<a href="', '"></a>'),
    "small": ("<small>", "</small>"),
    "strike": ("<strike>", "</strike>"),
    "sub": ("<sub>", "</sub>"),
    "sup": ("<sup>", "</sup>"),
}

HTML_ATTRIBUTE_METHODS: frozenset[str] = frozenset({
    "anchor", "fontcolor", "fontsize", "link",
})

ARRAY_ITERATOR_STRING = "[object Array Iterator]"

RESERVED_WORDS: frozenset[str] = frozenset({
    "await", "break", "case", "catch", "class", "const", "continue",
    "debugger", "default", "delete", "do", "else", "enum", "export",
    "extends", "false", "finally", "for", "function", "if", "implements",
    "import", "in", "instanceof", "interface", "let", "new", "null",
    "package", "private", "protected", "public", "return", "static",
    "super", "switch", "this", "throw", "true", "try", "typeof", "var",
    "void", "while", "with", "yield",
})

_RADIX_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
_TWO_POW_53 = float(2 ** 53)
_MAX_AFFIX_FRACTION_DIGITS = 14

# Characters the legacy escape() leaves untouched.
_ESCAPE_UNRESERVED = frozenset(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    "abcdefghijklmnopqrstuvwxyz"
    "0123456789"
    "@*_+-./"
)

# StrWhiteSpaceChar: WhiteSpace and LineTerminator.
JS_WHITESPACE = (
    "\t\n\v\f\r \u00a0\u1680\u2000\u2001\u2002\u2003\u2004\u2005\u2006"
    "\u2007\u2008\u2009\u200a\u2028\u2029\u202f\u205f\u3000\ufeff"
)

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_DECIMAL_LITERAL_RE = re.compile(
    r"^[+-]?(?:\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?)$",
    re.ASCII,
)
_NON_DECIMAL_PREFIXES = {"0x": 16, "0o": 8, "0b": 2}


def native_function_source(name: str) -> str:
    """Return the source text a native function stringifies to."""
    return "function " + name + "() {\n    [native code]\n}"


# =============================================================================
# UTF-16 Helpers
# =============================================================================


def _code_units(text: str) -> bytes:
    return text.encode("utf-16-le", "surrogatepass")


def normalize_utf16(text: str) -> str:
    """Merge adjacent surrogate pairs into single code points."""
    return _code_units(text).decode("utf-16-le", "surrogatepass")


def utf16_length(text: str) -> int:
    """Length of a string in UTF-16 code units (JavaScript ``length``)."""
    return len(_code_units(text)) // 2


def utf16_slice(text: str, start: int, end: int) -> str:
    """Slice a string by UTF-16 code unit offsets."""
    units = _code_units(text)
    return units[2 * start:2 * end].decode("utf-16-le", "surrogatepass")


def utf16_char_at(text: str, index: int) -> str:
    """Return the single code unit at ``index`` (may be a lone surrogate)."""
    if index < 0 or index >= utf16_length(text):
        raise JSRuntimeError(f"Index {index} out of range")
    return utf16_slice(text, index, index + 1)


def utf16_code_units(text: str) -> list[int]:
    """Return the UTF-16 code units of a string."""
    units = _code_units(text)
    return [units[i] | (units[i + 1] << 8) for i in range(0, len(units), 2)]


# =============================================================================
# Numbers
# =============================================================================


def is_integral(value: float) -> bool:
    """True for finite numbers without a fractional part."""
    return math.isfinite(value) and float(value).is_integer()


def number_to_string(value: float) -> str:
    """
    Convert a number to a string exactly like Number::toString(10).

    Python's ``repr`` already yields the shortest digit string that
    round-trips, which is the digit selection JavaScript mandates; only
    the placement of the decimal point and exponent differs.
    """
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if value == 0:
        return "0"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value < 0:
        return "-" + number_to_string(-value)

    _, digit_tuple, exponent = Decimal(repr(value)).as_tuple()
    digits = "".join(str(d) for d in digit_tuple).rstrip("0")
    exponent += len(digit_tuple) - len(digits)
    k = len(digits)
    n = exponent + k

    if k <= n <= 21:
        return digits + "0" * (n - k)
    if 0 < n <= 21:
        return digits[:n] + "." + digits[n:]
    if -6 < n <= 0:
        return "0." + "0" * (-n) + digits

    e = n - 1
    exp_sign = "+" if e >= 0 else "-"
    if k == 1:
        return f"{digits}e{exp_sign}{abs(e)}"
    return f"{digits[0]}.{digits[1:]}e{exp_sign}{abs(e)}"


def format_number_affix(value: float) -> Optional[str]:
    """
    Stringify a number operand of a string concatenation.

    Only plain renderings are accepted: an integer or a decimal with at
    most 14 fractional digits, no exponent. Anything else returns None so
    the caller leaves the expression alone.
    """
    if not math.isfinite(value):
        return None
    text = number_to_string(value)
    if "e" in text:
        return None
    if "." in text and len(text.split(".", 1)[1]) > _MAX_AFFIX_FRACTION_DIGITS:
        return None
    return text


def number_to_radix_string(value: float, radix: int) -> str:
    """
    Number.prototype.toString(radix) for non-negative integral values.

    Follows the engine algorithm digit for digit, including the zero
    filling of digits below the precision of values of 2**53 and above.

    Raises:
        JSRuntimeError: For a negative or non-integral value or a radix
            outside [2, 36].
    """
    if not 2 <= radix <= 36:
        raise JSRuntimeError(f"toString() radix must be between 2 and 36, got {radix}")
    value = float(value)
    if not is_integral(value) or value < 0:
        raise JSRuntimeError(f"Cannot convert {value!r} to radix {radix}")
    if radix == 10:
        return number_to_string(value)

    integer = value
    buffer: list[str] = []
    while integer / radix >= _TWO_POW_53:
        integer /= radix
        buffer.append("0")
    while True:
        remainder = math.fmod(integer, radix)
        buffer.append(_RADIX_DIGITS[int(remainder)])
        integer = (integer - remainder) / radix
        if integer <= 0:
            break
    return "".join(reversed(buffer))


def string_to_number(text: str) -> float:
    """StringToNumber: the numeric value of a string, NaN if unparsable."""
    stripped = text.strip(JS_WHITESPACE)
    if not stripped:
        return 0.0
    if stripped in ("Infinity", "+Infinity"):
        return math.inf
    if stripped == "-Infinity":
        return -math.inf

    prefix = stripped[:2].lower()
    if prefix in _NON_DECIMAL_PREFIXES:
        body = stripped[2:]
        if not body.isascii() or not body.isalnum():
            return math.nan
        try:
            return float(int(body, _NON_DECIMAL_PREFIXES[prefix]))
        except ValueError:
            return math.nan
        except OverflowError:
            return math.inf

    # Python's float() also accepts "inf", "nan" and underscores
    if not _DECIMAL_LITERAL_RE.match(stripped):
        return math.nan
    return float(stripped)


def parse_array_index(text: str) -> Optional[int]:
    """
    Parse a canonical non-negative integer property key ("0", "17").

    Keys such as "01", "+1" or " 1" name ordinary properties rather than
    indices, so they are rejected.
    """
    if not text.isascii() or not text.isdigit():
        return None
    if len(text) > 1 and text[0] == "0":
        return None
    # Array indexes stop at 2**32 - 2, ten digits
    if len(text) > 10:
        return None
    return int(text)


# =============================================================================
# Strings
# =============================================================================


def js_escape(text: str) -> str:
    """
    The legacy global ``escape`` function.

    Code units in the unreserved set are kept, other code units below 256
    become ``%XX`` and the rest ``%uXXXX`` (upper-case hex).
    """
    parts: list[str] = []
    for unit in utf16_code_units(text):
        if unit < 256:
            char = chr(unit)
            if char in _ESCAPE_UNRESERVED:
                parts.append(char)
            else:
                parts.append(f"%{unit:02X}")
        else:
            parts.append(f"%u{unit:04X}")
    return "".join(parts)


def slice_string(text: str, begin: float, end: Optional[float] = None) -> str:
    """
    String.prototype.slice with integral arguments.

    Negative positions count from the end and are clamped to zero, positive
    positions are clamped to the length, and an omitted end means the
    length.
    """
    length = utf16_length(text)

    def _relative(position: float) -> int:
        if position < 0:
            return int(max(length + position, 0))
        return int(min(position, length))

    start = _relative(begin)
    stop = length if end is None else _relative(end)
    span = max(stop - start, 0)
    return utf16_slice(text, start, start + span)


def html_wrap(method: str, argument: Optional[str] = None) -> Optional[str]:
    """
    Evaluate ``""[method](argument)`` for a String.prototype HTML wrapper.

    The tag-only wrappers ignore their arguments. The attribute wrappers
    need the attribute value; without one the result would embed
    "undefined", which is left to the engine (None is returned).
    """
    affixes = HTML_WRAPPER_METHODS.get(method)
    if affixes is None:
        return None
    prefix, suffix = affixes
    if method in HTML_ATTRIBUTE_METHODS:
        if argument is None:
            return None
        return prefix + argument.replace('"', "&quot;") + suffix
    return prefix + suffix


def is_identifier_name(text: str) -> bool:
    """True if ``text`` is a plain (ASCII) identifier that is not reserved."""
    return bool(_IDENTIFIER_RE.match(text)) and text not in RESERVED_WORDS


__all__ = [
    "ARRAY_METHOD_NAMES",
    "EVAL_ARRAY_METHOD_NAMES",
    "CONSTRUCTOR_NAMES",
    "HTML_WRAPPER_METHODS",
    "HTML_ATTRIBUTE_METHODS",
    "ARRAY_ITERATOR_STRING",
    "RESERVED_WORDS",
    "JS_WHITESPACE",
    "native_function_source",
    "normalize_utf16",
    "utf16_length",
    "utf16_slice",
    "utf16_char_at",
    "utf16_code_units",
    "is_integral",
    "number_to_string",
    "format_number_affix",
    "number_to_radix_string",
    "string_to_number",
    "parse_array_index",
    "js_escape",
    "slice_string",
    "html_wrap",
    "is_identifier_name",
]
