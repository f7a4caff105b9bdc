"""
Diagnostic generation for the jsunfuck LSP.

This module turns lexer and parser errors, and every obfuscated expression
the rewrite rules would simplify, into LSP diagnostics for display in
editors.
"""

from typing import Optional

from lsprotocol import types

from jsunfuck.compiler.ast_nodes import walk
from jsunfuck.compiler.driver import DeobfuscatorOptions, Rewrite, find_obfuscations
from jsunfuck.compiler.lexer import Lexer
from jsunfuck.compiler.parser import Parser
from jsunfuck.compiler.unfuck import RULE_DESCRIPTIONS
from jsunfuck.utils.errors import JSUnfuckError, SourceLocation


SOURCE = "jsunfuck"


def _position(location: SourceLocation) -> types.Position:
    # SourceLocation is 1-indexed, LSP positions are 0-indexed
    return types.Position(line=max(0, location.line - 1), character=max(0, location.column - 1))


class DiagnosticProvider:
    """
    Generates LSP diagnostics from JavaScript source code.

    Syntax errors stop the analysis; otherwise the document is run through
    the deobfuscator and each rule rewrite becomes an Information
    diagnostic spanning the rewritten expression.
    """

    def __init__(
        self,
        source: str,
        uri: str,
        options: Optional[DeobfuscatorOptions] = None,
    ) -> None:
        """
        Initialize the diagnostic provider.

        Args:
            source: The JavaScript source code to analyze
            uri: The document URI for location information
            options: Deobfuscator settings (defaults if omitted)
        """
        self.source = source
        self.uri = uri
        self.options = options or DeobfuscatorOptions()
        self._diagnostics: list[types.Diagnostic] = []

    def get_diagnostics(self) -> list[types.Diagnostic]:
        """
        Get all diagnostics for the document.

        Returns:
            List of LSP diagnostic objects
        """
        self._diagnostics = []

        try:
            tokens = Lexer(self.source, filename=self.uri).tokenize()
            program = Parser(tokens, source=self.source, filename=self.uri).parse()
        except JSUnfuckError as e:
            self._add_syntax_error(e)
            return self._diagnostics

        seen: set[tuple[str, int, int]] = set()
        rewrites = find_obfuscations(
            program,
            max_passes=self.options.max_passes,
            fold_literals=self.options.fold_literals,
        )
        for rewrite in rewrites:
            if rewrite.location is None:
                continue
            key = (rewrite.rule, rewrite.location.line, rewrite.location.column)
            if key in seen:
                continue
            seen.add(key)
            self._add_rewrite(rewrite)

        return self._diagnostics

    def _add_syntax_error(self, error: JSUnfuckError) -> None:
        """
        Add a lexer or parser error as an LSP diagnostic.

        Args:
            error: The jsunfuck error
        """
        line = 0
        character = 0

        if error.location:
            start = _position(error.location)
            line = start.line
            character = start.character

        # Underline up to the end of the offending token
        end_character = character + 1
        if error.source_line:
            rest_of_line = error.source_line[character:]
            for i, c in enumerate(rest_of_line):
                if c.isspace() or c in "()[],;":
                    end_character = character + max(1, i)
                    break
            else:
                end_character = character + max(1, len(rest_of_line))

        self._diagnostics.append(
            types.Diagnostic(
                range=types.Range(
                    start=types.Position(line=line, character=character),
                    end=types.Position(line=line, character=end_character),
                ),
                message=error.message,
                severity=types.DiagnosticSeverity.Error,
                source=SOURCE,
            )
        )

    def _add_rewrite(self, rewrite: Rewrite) -> None:
        """
        Add a rewrite site as an Information diagnostic.

        Args:
            rewrite: The rewrite reported by the deobfuscator
        """
        start = _position(rewrite.location)

        # The last located node of the rewritten expression ends the range
        last = rewrite.location
        for node in walk(rewrite.before):
            location = getattr(node, "location", None)
            if location is not None and location.offset > last.offset:
                last = location
        end = _position(last)

        self._diagnostics.append(
            types.Diagnostic(
                range=types.Range(
                    start=start,
                    end=types.Position(line=end.line, character=end.character + 1),
                ),
                message=f"Obfuscated expression: {RULE_DESCRIPTIONS[rewrite.rule]}",
                severity=types.DiagnosticSeverity.Information,
                source=SOURCE,
                code=rewrite.rule,
            )
        )


def get_diagnostics_for_document(source: str, uri: str) -> list[types.Diagnostic]:
    """
    Convenience function to get diagnostics for a document.

    Args:
        source: The JavaScript source code
        uri: The document URI

    Returns:
        List of LSP diagnostics
    """
    provider = DiagnosticProvider(source, uri)
    return provider.get_diagnostics()
