"""
Literal folding for jsunfuck.

The peephole rules turn encoded idioms into literals; the encoding then
glues those literals together with JavaScript's implicit coercions. This
module folds exactly those coercions:

- ``![]`` -> false, ``!0`` -> true
- ``+[]`` -> 0, ``+true`` -> 1, ``+"12"`` -> 12, ``-"3"`` -> -3
- ``[] + []`` -> "", ``true + []`` -> "true", ``true + true`` -> 2,
  ``[1] + [0]`` -> "10"
- ``"false"[0]`` -> "f"

Operands are literals, ``undefined``, arrays whose elements are all such
constants, or unary expressions over them. Results that are not finite
numbers stay unfolded; the enclosing expression may still fold them
(``+[![]] + []`` -> "NaN").

All folding maintains AST immutability by creating new nodes.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Optional, Union

from jsunfuck.compiler.ast_nodes import (
    ArrayLiteral,
    BinaryExpression,
    BooleanLiteral,
    Expression,
    Identifier,
    IndexExpression,
    NullLiteral,
    NumberLiteral,
    Program,
    StringLiteral,
    UnaryExpression,
    UnaryOperator,
    transform,
)
from jsunfuck.compiler.js_runtime import (
    is_integral,
    number_to_string,
    string_to_number,
    utf16_char_at,
    utf16_length,
)


# =============================================================================
# Optimizer Pass Interface
# =============================================================================


class OptimizerPass(ABC):
    """
    Abstract base class for optimization passes.

    Each optimizer pass implements a specific rewriting strategy and returns
    a new (potentially modified) AST.
    """

    @abstractmethod
    def optimize(self, program: Program) -> Program:
        """
        Apply the optimization pass to a program.

        Args:
            program: The input program AST

        Returns:
            A new program AST with optimizations applied
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name of the optimization pass."""
        pass


# =============================================================================
# JavaScript Values
# =============================================================================


class _Undefined:
    def __repr__(self) -> str:
        return "undefined"


UNDEFINED = _Undefined()


class ArrayValue:
    """An array of constants, kept as the string it converts to."""

    __slots__ = ("text",)

    def __init__(self, text: str) -> None:
        self.text = text

    def __repr__(self) -> str:
        return f"ArrayValue({self.text!r})"


# float for numbers, None for null
JSValue = Union[float, str, bool, None, _Undefined, ArrayValue]


def to_primitive(value: JSValue) -> JSValue:
    """ToPrimitive: arrays convert to their joined string."""
    if isinstance(value, ArrayValue):
        return value.text
    return value


def to_boolean(value: JSValue) -> bool:
    if isinstance(value, ArrayValue):
        return True
    if value is None or value is UNDEFINED:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value != ""
    return not (value == 0 or math.isnan(value))


def to_number(value: JSValue) -> float:
    value = to_primitive(value)
    if value is None:
        return 0.0
    if value is UNDEFINED:
        return math.nan
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, str):
        return string_to_number(value)
    return float(value)


def to_string(value: JSValue) -> str:
    value = to_primitive(value)
    if value is None:
        return "null"
    if value is UNDEFINED:
        return "undefined"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    return number_to_string(value)


def add_values(left: JSValue, right: JSValue) -> JSValue:
    """The ``+`` operator: concatenation if either side is a string."""
    left = to_primitive(left)
    right = to_primitive(right)
    if isinstance(left, str) or isinstance(right, str):
        return to_string(left) + to_string(right)
    return to_number(left) + to_number(right)


# =============================================================================
# Constant Folder
# =============================================================================


class ConstantFolder(OptimizerPass):
    """
    Fold literal coercions at compile time.

    ``fold_node`` looks at a single node whose children have already been
    folded and returns either a new literal or the node itself.

    Examples:
        ![] -> false
        +!+[] -> 1
        ![] + [] -> "false"
        "false"[0] -> "f"
    """

    @property
    def name(self) -> str:
        return "Literal Folding"

    def optimize(self, program: Program) -> Program:
        """Apply literal folding to the entire program."""
        return self.fold(program)

    def fold(self, program: Program) -> Program:
        """
        Return a new program with literal coercions folded.

        Args:
            program: The input program AST

        Returns:
            A new program with every foldable expression replaced
        """
        return transform(program, self.fold_node)

    def fold_node(self, expr: Expression) -> Expression:
        """Fold one expression, returning ``expr`` itself if nothing applies."""
        if isinstance(expr, UnaryExpression):
            return self._fold_unary(expr)
        if isinstance(expr, BinaryExpression) and expr.is_add:
            return self._fold_add(expr)
        if isinstance(expr, IndexExpression):
            return self._fold_string_index(expr)
        return expr

    def _fold_unary(self, expr: UnaryExpression) -> Expression:
        if not self.is_constant(expr.operand):
            return expr
        operand = self.constant_value(expr.operand)

        if expr.operator is UnaryOperator.NOT:
            return BooleanLiteral(value=not to_boolean(operand), location=expr.location)
        if expr.operator is UnaryOperator.POS:
            return self._number_literal(to_number(operand), expr) or expr
        if expr.operator is UnaryOperator.NEG:
            return self._number_literal(-to_number(operand), expr) or expr
        return expr

    def _fold_add(self, expr: BinaryExpression) -> Expression:
        if not self.is_constant(expr.left) or not self.is_constant(expr.right):
            return expr
        result = add_values(self.constant_value(expr.left), self.constant_value(expr.right))
        if isinstance(result, str):
            return StringLiteral(value=result, location=expr.location)
        return self._number_literal(result, expr) or expr

    def _fold_string_index(self, expr: IndexExpression) -> Expression:
        if not isinstance(expr.object, StringLiteral) or not self.is_constant(expr.index):
            return expr
        index = self.constant_value(expr.index)
        if not isinstance(index, float):
            return expr
        text = expr.object.value
        if not is_integral(index) or not 0 <= index < utf16_length(text):
            return expr
        return StringLiteral(value=utf16_char_at(text, int(index)), location=expr.location)

    def _number_literal(self, value: float, expr: Expression) -> Optional[NumberLiteral]:
        if not math.isfinite(value):
            return None
        return NumberLiteral(value=value, location=expr.location)

    # -------------------------------------------------------------------------
    # Constant evaluation
    # -------------------------------------------------------------------------

    def is_constant(self, expr: Expression) -> bool:
        """Check if an expression has a value known at compile time."""
        if isinstance(expr, NullLiteral):
            return True
        return self.constant_value(expr) is not None

    def constant_value(self, expr: Expression) -> JSValue:
        """
        Evaluate a constant expression.

        Returns None both for ``null`` and for non-constant expressions; use
        ``is_constant`` to tell them apart.
        """
        if isinstance(expr, NumberLiteral):
            return float(expr.value)
        if isinstance(expr, (StringLiteral, BooleanLiteral)):
            return expr.value
        if isinstance(expr, Identifier) and expr.name == "undefined":
            return UNDEFINED
        if isinstance(expr, ArrayLiteral):
            return self._array_value(expr)
        if isinstance(expr, UnaryExpression) and self.is_constant(expr.operand):
            operand = self.constant_value(expr.operand)
            if expr.operator is UnaryOperator.NOT:
                return not to_boolean(operand)
            if expr.operator is UnaryOperator.POS:
                return to_number(operand)
            if expr.operator is UnaryOperator.NEG:
                return -to_number(operand)
        return None

    def _array_value(self, expr: ArrayLiteral) -> Optional[ArrayValue]:
        parts: list[str] = []
        for element in expr.elements:
            if not self.is_constant(element):
                return None
            value = self.constant_value(element)
            # Array.prototype.join writes null and undefined as ""
            parts.append("" if value is None or value is UNDEFINED else to_string(value))
        return ArrayValue(",".join(parts))


def fold_literals(program: Program) -> Program:
    """
    Convenience function to fold literal coercions in a program.

    Args:
        program: The input program AST

    Returns:
        A new program with literal coercions folded
    """
    return ConstantFolder().fold(program)
