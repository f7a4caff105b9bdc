"""
JavaScript code generation for jsunfuck.

Prints an AST back to JavaScript source. Parentheses are emitted only where
operator precedence requires them, strings are always double quoted, and
numbers use the engine's own number-to-string conversion so a printed
literal reads back as the same value.
"""

import math

from jsunfuck.compiler.ast_nodes import (
    ArrayLiteral,
    ASTNode,
    ASTVisitor,
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
    StringLiteral,
    UnaryExpression,
    UnaryOperator,
)
from jsunfuck.compiler.js_runtime import number_to_string
from jsunfuck.compiler.parser import Precedence


BINARY_PRECEDENCE: dict[BinaryOperator, int] = {
    BinaryOperator.OR: Precedence.OR,
    BinaryOperator.AND: Precedence.AND,
    BinaryOperator.EQ: Precedence.EQUALITY,
    BinaryOperator.NE: Precedence.EQUALITY,
    BinaryOperator.STRICT_EQ: Precedence.EQUALITY,
    BinaryOperator.STRICT_NE: Precedence.EQUALITY,
    BinaryOperator.LT: Precedence.COMPARISON,
    BinaryOperator.GT: Precedence.COMPARISON,
    BinaryOperator.LE: Precedence.COMPARISON,
    BinaryOperator.GE: Precedence.COMPARISON,
    BinaryOperator.ADD: Precedence.ADDITIVE,
    BinaryOperator.SUB: Precedence.ADDITIVE,
    BinaryOperator.MUL: Precedence.MULTIPLICATIVE,
    BinaryOperator.DIV: Precedence.MULTIPLICATIVE,
    BinaryOperator.MOD: Precedence.MULTIPLICATIVE,
}

PRIMARY = Precedence.POSTFIX + 1

_STRING_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\b": "\\b",
    "\f": "\\f",
    "\v": "\\v",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def quote_string(value: str) -> str:
    """Render a string value as a double quoted JavaScript literal."""
    parts: list[str] = ['"']
    for char in value:
        code = ord(char)
        if char in _STRING_ESCAPES:
            parts.append(_STRING_ESCAPES[char])
        elif code < 0x20 or code == 0x7F:
            parts.append(f"\\x{code:02x}")
        elif 0xD800 <= code <= 0xDFFF:
            # Lone surrogates cannot be written to a UTF-8 file
            parts.append(f"\\u{code:04x}")
        else:
            parts.append(char)
    parts.append('"')
    return "".join(parts)


def format_number(value: float) -> str:
    """Render a number literal; -0 keeps its sign."""
    if value == 0 and math.copysign(1.0, value) < 0:
        return "-0"
    return number_to_string(value)


def expression_precedence(node: Expression) -> int:
    """Return the binding strength of the printed form of ``node``."""
    if isinstance(node, SequenceExpression):
        return Precedence.SEQUENCE
    if isinstance(node, ConditionalExpression):
        return Precedence.CONDITIONAL
    if isinstance(node, BinaryExpression):
        return BINARY_PRECEDENCE[node.operator]
    if isinstance(node, UnaryExpression):
        return Precedence.UNARY
    if isinstance(node, NumberLiteral) and format_number(node.value).startswith("-"):
        return Precedence.UNARY
    if isinstance(node, (CallExpression, MemberAccess, IndexExpression)):
        return Precedence.POSTFIX
    return PRIMARY


class CodeGenerator(ASTVisitor):
    """
    Generates JavaScript source from a jsunfuck AST.

    Usage:
        source = CodeGenerator().generate(program)
    """

    def __init__(self, indent: str = "") -> None:
        self.indent = indent

    def generate(self, node: ASTNode) -> str:
        """Generate source for a program, statement or expression."""
        return self.visit(node)

    def _wrap(self, node: Expression, min_precedence: int) -> str:
        text = self.visit(node)
        if expression_precedence(node) < min_precedence:
            return f"({text})"
        return text

    # Program structure
    def visit_program(self, node: Program) -> str:
        lines = [self.visit(stmt) for stmt in node.statements]
        return "\n".join(lines) + ("\n" if lines else "")

    def visit_expression_statement(self, node: ExpressionStatement) -> str:
        return f"{self.indent}{self.visit(node.expression)};"

    # Literals
    def visit_identifier(self, node: Identifier) -> str:
        return node.name

    def visit_number_literal(self, node: NumberLiteral) -> str:
        return format_number(node.value)

    def visit_string_literal(self, node: StringLiteral) -> str:
        return quote_string(node.value)

    def visit_boolean_literal(self, node: BooleanLiteral) -> str:
        return "true" if node.value else "false"

    def visit_null_literal(self, node: NullLiteral) -> str:
        return "null"

    def visit_regex_literal(self, node: RegexLiteral) -> str:
        pattern = node.pattern or "(?:)"
        return f"/{pattern}/{node.flags}"

    def visit_array_literal(self, node: ArrayLiteral) -> str:
        elements = ", ".join(self._wrap(e, Precedence.CONDITIONAL) for e in node.elements)
        return f"[{elements}]"

    # Expressions
    def visit_binary_expression(self, node: BinaryExpression) -> str:
        precedence = BINARY_PRECEDENCE[node.operator]
        # Walk the left spine iteratively; "+" chains can be thousands deep
        spine: list[BinaryExpression] = []
        current: Expression = node
        while isinstance(current, BinaryExpression) and BINARY_PRECEDENCE[current.operator] == precedence:
            spine.append(current)
            current = current.left

        parts = [self._wrap(current, precedence)]
        for expr in reversed(spine):
            parts.append(f" {expr.operator.value} {self._wrap(expr.right, precedence + 1)}")
        return "".join(parts)

    def visit_unary_expression(self, node: UnaryExpression) -> str:
        operand = self._wrap(node.operand, Precedence.UNARY)
        operator = node.operator.value
        if node.operator in (UnaryOperator.TYPEOF, UnaryOperator.VOID):
            return f"{operator} {operand}"
        # Keep "+ +x" and "- -x" from turning into increments
        if operator in ("+", "-") and operand.startswith(operator):
            return f"{operator} {operand}"
        return f"{operator}{operand}"

    def visit_call_expression(self, node: CallExpression) -> str:
        callee = self._wrap(node.callee, Precedence.POSTFIX)
        arguments = ", ".join(self._wrap(a, Precedence.CONDITIONAL) for a in node.arguments)
        return f"{callee}({arguments})"

    def visit_member_access(self, node: MemberAccess) -> str:
        obj = self._wrap(node.object, Precedence.POSTFIX)
        if isinstance(node.object, NumberLiteral) and not obj.startswith("("):
            # "1.toString" would lex as a malformed number
            obj = f"({obj})"
        return f"{obj}.{node.member}"

    def visit_index_expression(self, node: IndexExpression) -> str:
        obj = self._wrap(node.object, Precedence.POSTFIX)
        return f"{obj}[{self.visit(node.index)}]"

    def visit_conditional_expression(self, node: ConditionalExpression) -> str:
        condition = self._wrap(node.condition, Precedence.OR)
        then_expr = self._wrap(node.then_expr, Precedence.CONDITIONAL)
        else_expr = self._wrap(node.else_expr, Precedence.CONDITIONAL)
        return f"{condition} ? {then_expr} : {else_expr}"

    def visit_sequence_expression(self, node: SequenceExpression) -> str:
        return ", ".join(self._wrap(e, Precedence.CONDITIONAL) for e in node.expressions)


def generate(node: ASTNode) -> str:
    """Convenience function to print an AST node as JavaScript."""
    return CodeGenerator().generate(node)
