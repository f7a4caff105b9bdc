"""
Tests for literal folding.

Tests that the folder evaluates JavaScript's implicit coercions between
literals exactly, and leaves everything else alone.
"""

import math

import pytest

from jsunfuck.compiler.ast_nodes import (
    ArrayLiteral,
    BooleanLiteral,
    NumberLiteral,
    StringLiteral,
    UnaryExpression,
    UnaryOperator,
)
from jsunfuck.compiler.const_fold import (
    UNDEFINED,
    ArrayValue,
    ConstantFolder,
    OptimizerPass,
    add_values,
    fold_literals,
    to_boolean,
    to_number,
    to_string,
)
from jsunfuck.compiler.parser import parse


def folded_value(source: str):
    """Fold a single expression statement and return its expression."""
    program = ConstantFolder().fold(parse(source))
    return program.statements[0].expression


class TestCoercions:
    """The abstract operations behind the folder."""

    def test_to_boolean(self):
        assert to_boolean(ArrayValue("")) is True
        assert to_boolean("") is False
        assert to_boolean("0") is True
        assert to_boolean(0.0) is False
        assert to_boolean(math.nan) is False
        assert to_boolean(None) is False
        assert to_boolean(UNDEFINED) is False

    def test_to_number(self):
        assert to_number(ArrayValue("")) == 0.0
        assert to_number(ArrayValue("7")) == 7.0
        assert math.isnan(to_number(ArrayValue("1,2")))
        assert to_number(True) == 1.0
        assert to_number(None) == 0.0
        assert math.isnan(to_number(UNDEFINED))

    def test_to_string(self):
        assert to_string(ArrayValue("1,2")) == "1,2"
        assert to_string(False) == "false"
        assert to_string(None) == "null"
        assert to_string(UNDEFINED) == "undefined"
        assert to_string(1.0) == "1"

    def test_add_values(self):
        assert add_values(True, True) == 2.0
        assert add_values(True, ArrayValue("")) == "true"
        assert add_values(1.0, "1") == "11"
        assert add_values(None, 1.0) == 1.0


class TestConstantFolder:
    """Tests for the ConstantFolder pass."""

    def test_is_optimizer_pass(self):
        folder = ConstantFolder()
        assert isinstance(folder, OptimizerPass)
        assert folder.name == "Literal Folding"

    def test_not_empty_array(self):
        result = folded_value("![]")
        assert isinstance(result, BooleanLiteral)
        assert result.value is False

    def test_double_not(self):
        assert folded_value("!![]").value is True

    @pytest.mark.parametrize(
        "source, expected",
        [
            ("+[]", 0.0),
            ("+!+[]", 1.0),
            ("!+[]+!+[]", 2.0),
            ("!+[]+!+[]+!+[]", 3.0),
            ('+"12"', 12.0),
            ('-"3"', -3.0),
            ('+"0x1A"', 26.0),
            ("+true", 1.0),
            ("+null", 0.0),
            ("1 + 2", 3.0),
            ("null + 1", 1.0),
            ("+[5]", 5.0),
        ],
    )
    def test_numbers(self, source, expected):
        result = folded_value(source)
        assert isinstance(result, NumberLiteral)
        assert result.value == expected

    def test_negative_zero(self):
        result = folded_value("-[]")
        assert result.value == 0.0
        assert math.copysign(1.0, result.value) == -1.0

    @pytest.mark.parametrize(
        "source, expected",
        [
            ("[]+[]", ""),
            ("![]+[]", "false"),
            ("!![]+[]", "true"),
            ("undefined+[]", "undefined"),
            ("null+[]", "null"),
            ("[+!+[]]+[+[]]", "10"),
            ("[1, 2] + []", "1,2"),
            ("[null] + []", ""),
            ("[[1, 2], 3] + []", "1,2,3"),
            ('"a" + 1', "a1"),
            ("+[![]]+[]", "NaN"),
            ('"false"[0]', "f"),
            ('"false"[+!+[]]', "a"),
        ],
    )
    def test_strings(self, source, expected):
        result = folded_value(source)
        assert isinstance(result, StringLiteral)
        assert result.value == expected

    def test_nan_is_not_emitted(self):
        """+[![]] is NaN, which has no literal; the expression stays."""
        result = folded_value("+[![]]")
        assert isinstance(result, UnaryExpression)
        assert result.operator == UnaryOperator.POS
        assert isinstance(result.operand, ArrayLiteral)
        assert isinstance(result.operand.elements[0], BooleanLiteral)

    @pytest.mark.parametrize(
        "source",
        ['"false"[5]', '"false"[1.5]', '"false"[-1]', '"false"[true]', "x[0]"],
    )
    def test_out_of_range_index(self, source):
        assert not isinstance(folded_value(source), StringLiteral)

    @pytest.mark.parametrize("source", ["x + 1", "+x", "![x]", "[] + [x]", "~[]", "[] - []"])
    def test_non_constant_expressions(self, source):
        """Expressions over non-literals or other operators are untouched."""
        program = parse(source)
        assert ConstantFolder().fold(program) is program

    def test_unchanged_program_is_same_object(self):
        program = parse("a; b(c)")
        assert fold_literals(program) is program

    def test_fold_node_single_level(self, parse_expression):
        """fold_node only looks at the node it is given."""
        node = parse_expression("!+[]")
        assert ConstantFolder().fold_node(node).value is True
        chain = parse_expression("(![]+[])[+[]]")
        assert ConstantFolder().fold_node(chain) is chain

    def test_folds_inside_other_expressions(self):
        program = fold_literals(parse("f(![]+[], +[])"))
        call = program.statements[0].expression
        assert call.arguments[0].value == "false"
        assert call.arguments[1].value == 0.0
