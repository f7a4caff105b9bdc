"""
Tests for the JavaScript runtime semantics used by the rewrite rules.
"""

import math

import pytest

from jsunfuck.compiler.js_runtime import (
    format_number_affix,
    html_wrap,
    is_identifier_name,
    js_escape,
    native_function_source,
    number_to_radix_string,
    number_to_string,
    parse_array_index,
    slice_string,
    string_to_number,
    utf16_char_at,
    utf16_length,
)
from jsunfuck.utils.errors import JSRuntimeError


class TestNumberToString:
    """Number::toString(10)."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (0.0, "0"),
            (-0.0, "0"),
            (1.0, "1"),
            (-7.0, "-7"),
            (1.5, "1.5"),
            (100.0, "100"),
            (0.1 + 0.2, "0.30000000000000004"),
            (1e20, "100000000000000000000"),
            (1e21, "1e+21"),
            (1.5e300, "1.5e+300"),
            (0.000001, "0.000001"),
            (1e-7, "1e-7"),
            (1.23e-18, "1.23e-18"),
            (float(2 ** 53), "9007199254740992"),
            (math.nan, "NaN"),
            (math.inf, "Infinity"),
            (-math.inf, "-Infinity"),
        ],
    )
    def test_conversion(self, value, expected):
        assert number_to_string(value) == expected


class TestFormatNumberAffix:
    """Numbers that may be folded into a concatenation."""

    def test_plain_numbers(self):
        assert format_number_affix(5.0) == "5"
        assert format_number_affix(0.1) == "0.1"
        assert format_number_affix(-2.5) == "-2.5"

    def test_exponent_form_rejected(self):
        assert format_number_affix(1e21) is None
        assert format_number_affix(1e-7) is None

    def test_long_fraction_rejected(self):
        """More than 14 fractional digits is left alone."""
        assert format_number_affix(1 / 3) is None

    def test_non_finite_rejected(self):
        assert format_number_affix(math.nan) is None
        assert format_number_affix(math.inf) is None


class TestRadixToString:
    """Number.prototype.toString(radix)."""

    @pytest.mark.parametrize(
        "value, radix, expected",
        [
            (255.0, 16, "ff"),
            (35.0, 36, "z"),
            (10.0, 2, "1010"),
            (0.0, 2, "0"),
            (8.0, 8, "10"),
            (123.0, 10, "123"),
        ],
    )
    def test_conversion(self, value, radix, expected):
        assert number_to_radix_string(value, radix) == expected

    def test_beyond_double_precision(self):
        """Digits below the precision of the value are written as zeros."""
        assert number_to_radix_string(float(2 ** 60), 2) == "1" + "0" * 60

    @pytest.mark.parametrize("radix", [0, 1, 37])
    def test_invalid_radix(self, radix):
        with pytest.raises(JSRuntimeError, match="radix"):
            number_to_radix_string(10.0, radix)

    @pytest.mark.parametrize("value", [-1.0, 1.5, math.nan, math.inf])
    def test_unsupported_values(self, value):
        with pytest.raises(JSRuntimeError):
            number_to_radix_string(value, 16)


class TestStringToNumber:
    """StringToNumber."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("", 0.0),
            ("   ", 0.0),
            ("12", 12.0),
            ("  12\n", 12.0),
            ("1.5", 1.5),
            (".5", 0.5),
            ("1e3", 1000.0),
            ("-3", -3.0),
            ("0x1f", 31.0),
            ("0X1F", 31.0),
            ("0o17", 15.0),
            ("0b11", 3.0),
            ("Infinity", math.inf),
            ("-Infinity", -math.inf),
        ],
    )
    def test_numeric_strings(self, text, expected):
        assert string_to_number(text) == expected

    @pytest.mark.parametrize(
        "text",
        ["abc", "1_000", "inf", "nan", "0x", "-0x10", "1 2", "\u0661"],
    )
    def test_non_numeric_strings(self, text):
        assert math.isnan(string_to_number(text))

    def test_negative_zero(self):
        assert math.copysign(1.0, string_to_number("-0")) == -1.0


class TestArrayIndex:
    """Canonical numeral strings."""

    @pytest.mark.parametrize("text, expected", [("0", 0), ("7", 7), ("10", 10)])
    def test_canonical(self, text, expected):
        assert parse_array_index(text) == expected

    @pytest.mark.parametrize("text", ["", "01", "+1", "-1", "1.0", " 1", "1e1", "\u0661"])
    def test_non_canonical(self, text):
        assert parse_array_index(text) is None

    def test_longer_than_any_index(self):
        """Digit strings past the array index range are not converted."""
        assert parse_array_index("4294967294") == 4294967294
        assert parse_array_index("12345678901") is None
        assert parse_array_index("1" * 5000) is None


class TestUtf16:
    """UTF-16 code unit view of strings."""

    def test_length_counts_code_units(self):
        assert utf16_length("abc") == 3
        assert utf16_length("\U0001F600") == 2

    def test_char_at_splits_pairs(self):
        assert utf16_char_at("\U0001F600", 0) == "\ud83d"
        assert utf16_char_at("\U0001F600", 1) == "\ude00"

    def test_char_at_out_of_range(self):
        with pytest.raises(JSRuntimeError):
            utf16_char_at("abc", 3)


class TestEscape:
    """The legacy escape() function."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("<", "%3C"),
            ("a b", "a%20b"),
            ("@*_+-./", "@*_+-./"),
            ("AZaz09", "AZaz09"),
            ("\u00e9", "%E9"),
            ("\u20ac", "%u20AC"),
            ("\U0001F600", "%uD83D%uDE00"),
        ],
    )
    def test_escape(self, text, expected):
        assert js_escape(text) == expected

    def test_native_function_source(self):
        assert js_escape(native_function_source("map")) == (
            "function%20map%28%29%20%7B%0A%20%20%20%20%5Bnative%20code%5D%0A%7D"
        )


class TestSlice:
    """String.prototype.slice."""

    @pytest.mark.parametrize(
        "begin, end, expected",
        [
            (1, 3, "el"),
            (-3, None, "llo"),
            (0, None, "hello"),
            (3, 1, ""),
            (-10, None, "hello"),
            (2, 100, "llo"),
            (1, -1, "ell"),
        ],
    )
    def test_slice(self, begin, end, expected):
        assert slice_string("hello", begin, end) == expected

    def test_slice_by_code_units(self):
        assert slice_string("a\U0001F600b", 1, 2) == "\ud83d"


class TestHtmlWrap:
    """String.prototype HTML wrapper methods."""

    def test_tag_wrappers(self):
        assert html_wrap("bold") == "<b></b>"
        assert html_wrap("fixed") == "<tt></tt>"
        assert html_wrap("blink") == "<blink></blink>"

    def test_tag_wrapper_ignores_argument(self):
        assert html_wrap("italics", "x") == "<i></i>"

    def test_attribute_wrappers(self):
        assert html_wrap("link", "http://x") == '<a href="http://x"></a>'
        assert html_wrap("fontsize", "7") == '<font size="7"></font>'

    def test_attribute_quotes_escaped(self):
        assert html_wrap("anchor", 'a"b') == '<a name="a&quot;b"></a>'

    def test_attribute_without_argument(self):
        assert html_wrap("fontcolor") is None

    def test_unknown_method(self):
        assert html_wrap("toUpperCase") is None


class TestIdentifierName:
    """Plain identifier check used when materializing code."""

    @pytest.mark.parametrize("text", ["x", "escape", "$_", "_a1", "undefined"])
    def test_identifiers(self, text):
        assert is_identifier_name(text)

    @pytest.mark.parametrize("text", ["", "1x", "a b", "a.b", "this", "return", "true"])
    def test_non_identifiers(self, text):
        assert not is_identifier_name(text)
