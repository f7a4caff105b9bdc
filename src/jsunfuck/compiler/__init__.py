"""
jsunfuck Compiler Package.

This package contains the de-obfuscation pipeline:
- Lexer: Tokenizes JavaScript source code
- Parser: Produces an expression tree from tokens
- AST: Node definitions for the expression tree
- PeepholeUnfuck: Rewrite rules for the six-character encoding idioms
- ConstantFolder: Folds the literal coercions the encoding relies on
- Deobfuscator: Runs rules and folding to a fixpoint
- CodeGen: Prints the tree back to JavaScript
"""

from jsunfuck.compiler.ast_nodes import Expression, Program
from jsunfuck.compiler.codegen import CodeGenerator, generate
from jsunfuck.compiler.const_fold import ConstantFolder, OptimizerPass, fold_literals
from jsunfuck.compiler.driver import (
    DeobfuscationResult,
    Deobfuscator,
    DeobfuscatorOptions,
    Rewrite,
    deobfuscate_file,
    deobfuscate_source,
    find_obfuscations,
)
from jsunfuck.compiler.lexer import Lexer, tokenize
from jsunfuck.compiler.parser import Parser, parse, parse_expression
from jsunfuck.compiler.unfuck import RULE_DESCRIPTIONS, PeepholeUnfuck, unfuck_expression

__all__ = [
    "Expression",
    "Program",
    "Lexer",
    "tokenize",
    "Parser",
    "parse",
    "parse_expression",
    "PeepholeUnfuck",
    "RULE_DESCRIPTIONS",
    "unfuck_expression",
    "OptimizerPass",
    "ConstantFolder",
    "fold_literals",
    "Deobfuscator",
    "DeobfuscatorOptions",
    "DeobfuscationResult",
    "Rewrite",
    "find_obfuscations",
    "deobfuscate_source",
    "deobfuscate_file",
    "CodeGenerator",
    "generate",
]
