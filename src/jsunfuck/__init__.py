"""
jsunfuck - A de-obfuscator for JavaScript written in the six-character encoding.

jsunfuck parses JavaScript, rewrites the indirect constructions of the
"[]()!+" encoding (array method stringification, Function constructor
invocation, radix conversions, HTML wrapper calls and the like) into
literals, and prints readable JavaScript back.
"""

from jsunfuck.compiler import deobfuscate_file, deobfuscate_source
from jsunfuck.compiler.codegen import CodeGenerator
from jsunfuck.compiler.driver import Deobfuscator
from jsunfuck.compiler.lexer import Lexer
from jsunfuck.compiler.parser import Parser

__version__ = "0.1.0"
__all__ = [
    "deobfuscate_source",
    "deobfuscate_file",
    "Deobfuscator",
    "Lexer",
    "Parser",
    "CodeGenerator",
]
