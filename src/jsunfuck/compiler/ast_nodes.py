"""
Abstract Syntax Tree (AST) node definitions for jsunfuck.

This module defines the expression tree the deobfuscator works on: the
subset of JavaScript expressions produced by the six-character encoding,
plus plain expression statements. Each node is immutable and carries
source location information for error reporting. Rewrites never mutate a
node; they build a fresh one and the driver rebuilds the ancestors.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Optional

from jsunfuck.utils.errors import SourceLocation


class ASTNode(ABC):
    """Base class for all AST nodes."""

    location: Optional[SourceLocation]

    @abstractmethod
    def accept(self, visitor: "ASTVisitor") -> Any:
        """Accept a visitor for tree traversal."""
        pass


class ASTVisitor(ABC):
    """
    Visitor pattern base class for AST traversal.

    Implement this to create custom AST processors (printers, rewriters,
    analyzers, etc.).
    """

    def visit(self, node: ASTNode) -> Any:
        """Dispatch to the appropriate visit method."""
        return node.accept(self)


# -----------------------------------------------------------------------------
# Expressions
# -----------------------------------------------------------------------------


class Expression(ASTNode):
    """Base class for all expressions."""

    pass


@dataclass(frozen=True, slots=True)
class Identifier(Expression):
    """
    An identifier reference.

    Example:
        x, undefined, Function, eval

    Attributes:
        name: The referenced name
        direct_eval: Set on an ``eval`` reference that must stay a direct
            (non-aliased) eval, so the evaluated code sees the caller's scope
        location: Source location for error reporting
    """

    name: str
    direct_eval: bool = False
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_identifier(self)


@dataclass(frozen=True, slots=True)
class NumberLiteral(Expression):
    """A numeric literal. JavaScript numbers are IEEE-754 doubles."""

    value: float
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_number_literal(self)


@dataclass(frozen=True, slots=True)
class StringLiteral(Expression):
    """
    A string literal.

    The value holds code points; lone surrogates are kept as-is so that
    UTF-16 code unit arithmetic stays exact (see ``js_runtime``).
    """

    value: str
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_string_literal(self)


@dataclass(frozen=True, slots=True)
class BooleanLiteral(Expression):
    """A boolean literal (true or false)."""

    value: bool
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_boolean_literal(self)


@dataclass(frozen=True, slots=True)
class NullLiteral(Expression):
    """The null literal."""

    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_null_literal(self)


@dataclass(frozen=True, slots=True)
class ArrayLiteral(Expression):
    """
    An array literal.

    Example:
        [], [1, 2, 3], [[]]
    """

    elements: tuple[Expression, ...] = ()
    location: Optional[SourceLocation] = None

    @property
    def is_empty(self) -> bool:
        return not self.elements

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_array_literal(self)


@dataclass(frozen=True, slots=True)
class RegexLiteral(Expression):
    """
    A regular expression literal.

    Example:
        /ab+c/g  ->  RegexLiteral(pattern="ab+c", flags="g")
    """

    pattern: str
    flags: str = ""
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_regex_literal(self)


class BinaryOperator(Enum):
    """Binary operators."""

    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    MOD = "%"
    EQ = "=="
    NE = "!="
    STRICT_EQ = "==="
    STRICT_NE = "!=="
    LT = "<"
    GT = ">"
    LE = "<="
    GE = ">="
    AND = "&&"
    OR = "||"


class UnaryOperator(Enum):
    """Unary prefix operators."""

    NOT = "!"
    POS = "+"
    NEG = "-"
    BIT_NOT = "~"
    TYPEOF = "typeof"
    VOID = "void"


@dataclass(frozen=True, slots=True)
class BinaryExpression(Expression):
    """
    A binary operation.

    Example:
        a + b, x === y, p && q
    """

    left: Expression
    operator: BinaryOperator
    right: Expression
    location: Optional[SourceLocation] = None

    @property
    def is_add(self) -> bool:
        return self.operator is BinaryOperator.ADD

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_binary_expression(self)


@dataclass(frozen=True, slots=True)
class UnaryExpression(Expression):
    """
    A unary prefix operation.

    Example:
        ![], +[], -x, typeof y
    """

    operator: UnaryOperator
    operand: Expression
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_unary_expression(self)


@dataclass(frozen=True, slots=True)
class CallExpression(Expression):
    """
    A function call.

    Example:
        f(x), obj.method(a, b), Function("return 1")()

    Attributes:
        callee: The called expression
        arguments: Positional arguments
        free_call: The call is made through a bare name rather than a
            property, so ``this`` is not bound to a receiver
        location: Source location for error reporting
    """

    callee: Expression
    arguments: tuple[Expression, ...] = ()
    free_call: bool = False
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_call_expression(self)


@dataclass(frozen=True, slots=True)
class MemberAccess(Expression):
    """
    A dotted property access.

    Example:
        [].filter, Array.name
    """

    object: Expression
    member: str
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_member_access(self)


@dataclass(frozen=True, slots=True)
class IndexExpression(Expression):
    """
    A computed (bracketed) property access.

    Example:
        []["filter"], "false"[0], [][[]]
    """

    object: Expression
    index: Expression
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_index_expression(self)


@dataclass(frozen=True, slots=True)
class ConditionalExpression(Expression):
    """
    A ternary conditional.

    Example:
        a ? b : c
    """

    condition: Expression
    then_expr: Expression
    else_expr: Expression
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_conditional_expression(self)


@dataclass(frozen=True, slots=True)
class SequenceExpression(Expression):
    """
    A comma-separated expression sequence.

    Example:
        (a, b, c)
    """

    expressions: tuple[Expression, ...]
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_sequence_expression(self)


# -----------------------------------------------------------------------------
# Statements
# -----------------------------------------------------------------------------


class Statement(ASTNode):
    """Base class for all statements."""

    pass


@dataclass(frozen=True, slots=True)
class ExpressionStatement(Statement):
    """An expression evaluated for its side effects."""

    expression: Expression
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_expression_statement(self)


@dataclass(frozen=True, slots=True)
class Program(ASTNode):
    """The root node: a sequence of statements."""

    statements: tuple[Statement, ...] = ()
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_program(self)


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def is_empty_array(node: ASTNode) -> bool:
    """Check for the ``[]`` literal."""
    return isinstance(node, ArrayLiteral) and not node.elements


def static_property_name(node: ASTNode) -> Optional[str]:
    """
    Return the property name of a statically named property access.

    ``a.name`` and ``a["name"]`` are the same access in JavaScript, so both
    forms yield ``"name"``. Returns None for any other node.
    """
    if isinstance(node, MemberAccess):
        return node.member
    if isinstance(node, IndexExpression) and isinstance(node.index, StringLiteral):
        return node.index.value
    return None


def property_object(node: ASTNode) -> Optional[Expression]:
    """Return the receiver of a property access, or None."""
    if isinstance(node, (MemberAccess, IndexExpression)):
        return node.object
    return None


def children(node: ASTNode) -> tuple[ASTNode, ...]:
    """Return the direct children of a node in source order."""
    if isinstance(node, ArrayLiteral):
        return node.elements
    if isinstance(node, BinaryExpression):
        return (node.left, node.right)
    if isinstance(node, UnaryExpression):
        return (node.operand,)
    if isinstance(node, CallExpression):
        return (node.callee, *node.arguments)
    if isinstance(node, MemberAccess):
        return (node.object,)
    if isinstance(node, IndexExpression):
        return (node.object, node.index)
    if isinstance(node, ConditionalExpression):
        return (node.condition, node.then_expr, node.else_expr)
    if isinstance(node, SequenceExpression):
        return node.expressions
    if isinstance(node, ExpressionStatement):
        return (node.expression,)
    if isinstance(node, Program):
        return node.statements
    return ()


def replace_children(node: ASTNode, new_children: tuple[ASTNode, ...]) -> ASTNode:
    """Build a copy of ``node`` with its children (as from ``children``) swapped."""
    if isinstance(node, ArrayLiteral):
        return replace(node, elements=new_children)
    if isinstance(node, BinaryExpression):
        return replace(node, left=new_children[0], right=new_children[1])
    if isinstance(node, UnaryExpression):
        return replace(node, operand=new_children[0])
    if isinstance(node, CallExpression):
        return replace(node, callee=new_children[0], arguments=new_children[1:])
    if isinstance(node, MemberAccess):
        return replace(node, object=new_children[0])
    if isinstance(node, IndexExpression):
        return replace(node, object=new_children[0], index=new_children[1])
    if isinstance(node, ConditionalExpression):
        return replace(
            node,
            condition=new_children[0],
            then_expr=new_children[1],
            else_expr=new_children[2],
        )
    if isinstance(node, SequenceExpression):
        return replace(node, expressions=new_children)
    if isinstance(node, ExpressionStatement):
        return replace(node, expression=new_children[0])
    if isinstance(node, Program):
        return replace(node, statements=new_children)
    return node


def transform(root: ASTNode, rewrite: Callable[[Expression], Expression]) -> ASTNode:
    """
    Rebuild a tree bottom-up, passing every expression through ``rewrite``.

    Children are rewritten before their parent, so a parent sees the
    already rewritten children. Unchanged subtrees are returned as the same
    objects. The walk uses an explicit stack: encoded programs produce
    ``+`` chains far deeper than the interpreter's recursion limit.
    """
    stack: list[tuple[ASTNode, bool]] = [(root, False)]
    results: list[ASTNode] = []
    while stack:
        node, expanded = stack.pop()
        kids = children(node)
        if not expanded:
            stack.append((node, True))
            stack.extend((child, False) for child in reversed(kids))
            continue

        if kids:
            new_kids = tuple(results[-len(kids):])
            del results[-len(kids):]
            if any(new is not old for new, old in zip(new_kids, kids)):
                node = replace_children(node, new_kids)
        if isinstance(node, Expression):
            node = rewrite(node)
        results.append(node)
    return results[0]


def walk(root: ASTNode):
    """Yield every node of a tree in pre-order without recursing."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(children(node)))
