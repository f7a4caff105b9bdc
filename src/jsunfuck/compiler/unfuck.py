"""
Peephole rules that undo the six-character ("JSFuck") encoding.

Each rule looks at one node and a bounded neighbourhood of its children and
grandchildren. A rule either returns a freshly built replacement node or
None; it never mutates the tree. ``PeepholeUnfuck.optimize`` tries the rules
in a fixed priority order:

1. Literal and index folding
   [][[]]                              -> undefined
   "false"["1"]                        -> "a"
2. Constructor and function stringification
   [] + [].flat                        -> "function flat() {\\n    [native code]\\n}"
   Array.name                          -> "Array"
   String + []                         -> "function String() {...}" + []
   [].entries() + ""                   -> "[object Array Iterator]"
3. Dynamic code materialization
   Function("return escape")()         -> escape
   Function("return /x/")()            -> /x/
   [].flat["constructor"]("a()")()     -> eval("a()")   (fill/filter/sort)
4. Literal evaluation
   (255)["toString"](16)               -> "ff"
   escape("<")                         -> "%3C"
   "".link("x")                        -> "<a href=\\"x\\"></a>"
   "hello".slice(1, 3)                 -> "el"

Rules written against a two-call idiom such as ``Function("...")()`` match
the outer call, so the whole idiom is replaced at once.

Any failure while evaluating a matched shape means the rule does not match.
A missed simplification leaves code obfuscated; a wrong one changes what
the program does.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from jsunfuck.compiler.ast_nodes import (
    ArrayLiteral,
    BinaryExpression,
    BinaryOperator,
    BooleanLiteral,
    CallExpression,
    Expression,
    Identifier,
    IndexExpression,
    NumberLiteral,
    RegexLiteral,
    StringLiteral,
    is_empty_array,
    property_object,
    static_property_name,
)
from jsunfuck.compiler.js_runtime import (
    ARRAY_ITERATOR_STRING,
    ARRAY_METHOD_NAMES,
    CONSTRUCTOR_NAMES,
    EVAL_ARRAY_METHOD_NAMES,
    HTML_WRAPPER_METHODS,
    JS_WHITESPACE,
    format_number_affix,
    html_wrap,
    is_identifier_name,
    is_integral,
    js_escape,
    native_function_source,
    number_to_radix_string,
    parse_array_index,
    slice_string,
    string_to_number,
    utf16_char_at,
    utf16_length,
)
from jsunfuck.compiler.lexer import Lexer
from jsunfuck.compiler.tokens import TokenType
from jsunfuck.utils.errors import JSRuntimeError, LexerError, SourceLocation


logger = logging.getLogger(__name__)

Rule = Callable[[Expression], Optional[Expression]]
ChangeCallback = Callable[[str, Expression, Expression], None]


# Rule name -> one line description, in priority order.
RULE_DESCRIPTIONS: dict[str, str] = {
    "undefined": "[][[]] becomes undefined",
    "string-indexed-string": 'a string literal indexed by a numeral string, "abc"["1"]',
    "array-method-coercion": "a literal concatenated with an empty array's method, [] + [].flat",
    "constructor-name": "the name of a global constructor, Array.name",
    "constructor-coercion": "a global constructor concatenated with a value, String + []",
    "array-entries": 'an array iterator concatenated with a string, [].entries() + ""',
    "function-constructor": 'Function("return ...")() becomes the returned expression',
    "array-function-constructor": '[].filter["constructor"]("code")() becomes eval("code")',
    "radix-to-string": "(n)[\"toString\"](radix) on integer literals",
    "escape": "escape() of a literal string",
    "html-wrapper": 'an HTML wrapper method on the empty string, "".bold()',
    "slice": '"s".slice(begin, end) with integer arguments',
}

_RETURN_KEYWORD = "return"


def _empty_array_method(node: Expression) -> Optional[str]:
    """Return ``m`` for a ``[].m`` access to a known array method, else None."""
    name = static_property_name(node)
    if name is None or name not in ARRAY_METHOD_NAMES:
        return None
    if not is_empty_array(property_object(node)):
        return None
    return name


def _literal_affix(node: Expression) -> Optional[str]:
    """Stringify the literal operand of a concatenation, or None."""
    if isinstance(node, BooleanLiteral):
        return "true" if node.value else "false"
    if isinstance(node, StringLiteral):
        return node.value
    if isinstance(node, NumberLiteral):
        return format_number_affix(node.value)
    if is_empty_array(node):
        return ""
    return None


def _constructor_name(node: Expression) -> Optional[str]:
    if isinstance(node, Identifier) and node.name in CONSTRUCTOR_NAMES:
        return node.name
    return None


def _integral_argument(node: Expression) -> Optional[float]:
    """Return the integral value of a number or numeric string literal."""
    if isinstance(node, NumberLiteral):
        value = node.value
    elif isinstance(node, StringLiteral):
        value = string_to_number(node.value)
    else:
        return None
    return value if is_integral(value) else None


def _is_regex_source(code: str) -> bool:
    """Check that ``code`` lexes as exactly one flagless regex literal."""
    if len(code) < 2 or not code.startswith("/") or not code.endswith("/"):
        return False
    try:
        tokens = Lexer(code).tokenize()
    except LexerError:
        return False
    if len(tokens) != 2 or tokens[0].type is not TokenType.REGEX:
        return False
    pattern, flags = tokens[0].value
    return not flags and pattern == code[1:-1]


def _direct_eval(
    code: str,
    location: Optional[SourceLocation],
    code_location: Optional[SourceLocation],
) -> CallExpression:
    """Build the flagged ``eval(code)`` call that keeps the caller's scope."""
    return CallExpression(
        callee=Identifier(name="eval", direct_eval=True, location=location),
        arguments=(StringLiteral(value=code, location=code_location),),
        free_call=True,
        location=location,
    )


class PeepholeUnfuck:
    """
    Rule dispatcher for the de-obfuscation peephole rules.

    The engine holds no per-node state. ``report_change`` is called with
    the rule name, the matched node and its replacement after every
    successful rewrite so the driver can track its fixpoint.

    Example:
        engine = PeepholeUnfuck()
        engine.optimize(parse_expression("[][[]]"))  # Identifier("undefined")
    """

    def __init__(self, report_change: Optional[ChangeCallback] = None) -> None:
        self.report_change = report_change
        self.rules: tuple[tuple[str, Rule], ...] = (
            # Literal and index folding
            ("undefined", self._try_undefined),
            ("string-indexed-string", self._try_string_indexed_string),
            # Constructor and function stringification
            ("array-method-coercion", self._try_array_literal_function_coercion),
            ("constructor-name", self._try_constructor_name),
            ("constructor-coercion", self._try_constructor_coercion),
            ("array-entries", self._try_array_entries),
            # Dynamic code materialization
            ("function-constructor", self._try_function_constructor_invocation),
            ("array-function-constructor", self._try_array_function_constructor_invocation),
            # Literal evaluation
            ("radix-to-string", self._try_radix_to_string),
            ("escape", self._try_escape),
            ("html-wrapper", self._try_html_wrapper),
            ("slice", self._try_slice),
        )

    @property
    def name(self) -> str:
        return "Peephole Unfuck"

    def match(self, node: Expression) -> Optional[tuple[str, Expression]]:
        """
        Find the first rule that rewrites ``node``.

        Returns:
            ``(rule_name, replacement)`` or None when no rule matches
        """
        for rule_name, rule in self.rules:
            try:
                replacement = rule(node)
            except JSRuntimeError as exc:
                logger.debug("%s: no match at %s (%s)", rule_name, node.location, exc)
                continue
            if replacement is not None:
                return rule_name, replacement
        return None

    def optimize(self, node: Expression) -> Expression:
        """
        Apply at most one rewrite to ``node``.

        Returns:
            The replacement node, or ``node`` itself when no rule matches
        """
        found = self.match(node)
        if found is None:
            return node
        rule_name, replacement = found
        logger.debug("%s: rewrote node at %s", rule_name, node.location)
        if self.report_change is not None:
            self.report_change(rule_name, node, replacement)
        return replacement

    # -------------------------------------------------------------------------
    # Literal and index folding
    # -------------------------------------------------------------------------

    def _try_undefined(self, node: Expression) -> Optional[Expression]:
        if not isinstance(node, IndexExpression):
            return None
        if not is_empty_array(node.object) or not is_empty_array(node.index):
            return None
        return Identifier(name="undefined", location=node.location)

    def _try_string_indexed_string(self, node: Expression) -> Optional[Expression]:
        if not isinstance(node, IndexExpression):
            return None
        if not isinstance(node.object, StringLiteral) or not isinstance(node.index, StringLiteral):
            return None
        index = parse_array_index(node.index.value)
        text = node.object.value
        if index is None or index >= utf16_length(text):
            return None
        return StringLiteral(value=utf16_char_at(text, index), location=node.location)

    # -------------------------------------------------------------------------
    # Constructor and function stringification
    # -------------------------------------------------------------------------

    def _try_array_literal_function_coercion(self, node: Expression) -> Optional[Expression]:
        if not isinstance(node, BinaryExpression) or not node.is_add:
            return None

        method = _empty_array_method(node.right)
        if method is not None:
            affix = _literal_affix(node.left)
            if affix is None:
                return None
            result = affix + native_function_source(method)
        else:
            method = _empty_array_method(node.left)
            if method is None:
                return None
            affix = _literal_affix(node.right)
            if affix is None:
                return None
            result = native_function_source(method) + affix

        return StringLiteral(value=result, location=node.location)

    def _try_constructor_name(self, node: Expression) -> Optional[Expression]:
        if static_property_name(node) != "name":
            return None
        name = _constructor_name(property_object(node))
        if name is None:
            return None
        return StringLiteral(value=name, location=node.location)

    def _try_constructor_coercion(self, node: Expression) -> Optional[Expression]:
        if not isinstance(node, BinaryExpression) or not node.is_add:
            return None

        left_name = _constructor_name(node.left)
        right_name = _constructor_name(node.right)
        if left_name is None and right_name is None:
            return None

        if left_name is not None and right_name is not None:
            return StringLiteral(
                value=native_function_source(left_name) + native_function_source(right_name),
                location=node.location,
            )

        # One constructor: the other operand keeps its own subtree
        left = node.left
        right = node.right
        if left_name is not None:
            left = StringLiteral(value=native_function_source(left_name), location=node.left.location)
        else:
            right = StringLiteral(value=native_function_source(right_name), location=node.right.location)
        return BinaryExpression(
            left=left,
            operator=BinaryOperator.ADD,
            right=right,
            location=node.location,
        )

    def _try_array_entries(self, node: Expression) -> Optional[Expression]:
        if not isinstance(node, BinaryExpression) or not node.is_add:
            return None
        call = node.left
        if not isinstance(call, CallExpression) or call.arguments:
            return None
        # [] converts to the empty string, so it is an empty suffix
        if isinstance(node.right, StringLiteral):
            suffix = node.right.value
        elif is_empty_array(node.right):
            suffix = ""
        else:
            return None
        if static_property_name(call.callee) != "entries":
            return None
        if not is_empty_array(property_object(call.callee)):
            return None
        return StringLiteral(value=ARRAY_ITERATOR_STRING + suffix, location=node.location)

    # -------------------------------------------------------------------------
    # Dynamic code materialization
    # -------------------------------------------------------------------------

    def _try_function_constructor_invocation(self, node: Expression) -> Optional[Expression]:
        # Outer call: Function("return ...")()
        if not isinstance(node, CallExpression) or node.arguments:
            return None
        inner = node.callee
        if not isinstance(inner, CallExpression) or len(inner.arguments) != 1:
            return None
        if not isinstance(inner.callee, Identifier) or inner.callee.name != "Function":
            return None
        argument = inner.arguments[0]
        if not isinstance(argument, StringLiteral):
            return None

        source = argument.value
        if not source.startswith(_RETURN_KEYWORD):
            return None
        rest = source[len(_RETURN_KEYWORD):]
        # "returnValue" is an identifier, not a return statement
        if rest and (rest[0].isalnum() or rest[0] in "_$"):
            return None
        code = rest.strip(JS_WHITESPACE)

        if _is_regex_source(code):
            return RegexLiteral(pattern=code[1:-1], location=node.location)
        if is_identifier_name(code):
            return Identifier(name=code, location=node.location)
        return _direct_eval(code, node.location, argument.location)

    def _try_array_function_constructor_invocation(self, node: Expression) -> Optional[Expression]:
        # Outer call: [].filter["constructor"]("code")()
        if not isinstance(node, CallExpression) or node.arguments:
            return None
        inner = node.callee
        if not isinstance(inner, CallExpression) or len(inner.arguments) != 1:
            return None
        subject = inner.arguments[0]
        if not isinstance(subject, StringLiteral):
            return None

        constructor = inner.callee
        if static_property_name(constructor) != "constructor":
            return None
        method = _empty_array_method(property_object(constructor))
        if method not in EVAL_ARRAY_METHOD_NAMES:
            return None
        return _direct_eval(subject.value, node.location, subject.location)

    # -------------------------------------------------------------------------
    # Literal evaluation
    # -------------------------------------------------------------------------

    def _try_radix_to_string(self, node: Expression) -> Optional[Expression]:
        if not isinstance(node, CallExpression) or len(node.arguments) != 1:
            return None
        if static_property_name(node.callee) != "toString":
            return None
        receiver = property_object(node.callee)
        radix = node.arguments[0]
        if not isinstance(receiver, NumberLiteral) or not isinstance(radix, NumberLiteral):
            return None
        if not is_integral(receiver.value) or not is_integral(radix.value):
            return None
        value = number_to_radix_string(receiver.value, int(radix.value))
        return StringLiteral(value=value, location=node.location)

    def _try_escape(self, node: Expression) -> Optional[Expression]:
        if not isinstance(node, CallExpression) or len(node.arguments) != 1:
            return None
        if not isinstance(node.callee, Identifier) or node.callee.name != "escape":
            return None

        argument = node.arguments[0]
        if isinstance(argument, StringLiteral):
            text = argument.value
        else:
            method = _empty_array_method(argument)
            if method is None:
                return None
            text = native_function_source(method)
        return StringLiteral(value=js_escape(text), location=node.location)

    def _try_html_wrapper(self, node: Expression) -> Optional[Expression]:
        if not isinstance(node, CallExpression) or len(node.arguments) > 1:
            return None
        method = static_property_name(node.callee)
        if method not in HTML_WRAPPER_METHODS:
            return None
        receiver = property_object(node.callee)
        if not isinstance(receiver, StringLiteral) or receiver.value != "":
            return None

        argument: Optional[str] = None
        if node.arguments:
            if not isinstance(node.arguments[0], StringLiteral):
                return None
            argument = node.arguments[0].value

        result = html_wrap(method, argument)
        if result is None:
            return None
        return StringLiteral(value=result, location=node.location)

    def _try_slice(self, node: Expression) -> Optional[Expression]:
        if not isinstance(node, CallExpression) or not 1 <= len(node.arguments) <= 2:
            return None
        if static_property_name(node.callee) != "slice":
            return None
        receiver = property_object(node.callee)
        if not isinstance(receiver, StringLiteral):
            return None

        begin = _integral_argument(node.arguments[0])
        if begin is None:
            return None
        end: Optional[float] = None
        if len(node.arguments) == 2:
            end = _integral_argument(node.arguments[1])
            if end is None:
                return None
        return StringLiteral(value=slice_string(receiver.value, begin, end), location=node.location)


def unfuck_expression(node: Expression) -> Expression:
    """Convenience function to apply at most one rewrite to a node."""
    return PeepholeUnfuck().optimize(node)
