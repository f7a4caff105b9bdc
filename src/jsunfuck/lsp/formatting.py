"""
Document formatting for the jsunfuck LSP.

"Formatting" a document replaces it with its deobfuscated form, so an
editor's format command decodes the file in place.
"""

import logging
from typing import Optional

from lsprotocol import types

from jsunfuck.compiler.driver import DeobfuscatorOptions, deobfuscate_source
from jsunfuck.compiler.js_runtime import utf16_length
from jsunfuck.utils.errors import JSUnfuckError


logger = logging.getLogger("jsunfuck-lsp")


def full_document_range(source: str) -> types.Range:
    """Return the range covering all of ``source``."""
    lines = source.split("\n")
    return types.Range(
        start=types.Position(line=0, character=0),
        end=types.Position(line=len(lines) - 1, character=utf16_length(lines[-1])),
    )


class LSPFormatter:
    """
    Provides deobfuscation as document formatting for the LSP server.

    Produces a single text edit replacing the whole document.
    """

    def __init__(self, options: Optional[DeobfuscatorOptions] = None) -> None:
        """
        Initialize the formatter.

        Args:
            options: Deobfuscator settings (defaults if omitted)
        """
        self.options = options or DeobfuscatorOptions()

    def format_document(self, source: str, uri: Optional[str] = None) -> list[types.TextEdit]:
        """
        Deobfuscate an entire document.

        Args:
            source: The JavaScript source code
            uri: The document URI, used in log messages

        Returns:
            One edit replacing the document, or no edits if the source is
            unchanged or does not parse
        """
        try:
            rewritten = deobfuscate_source(
                source,
                filename=uri,
                max_passes=self.options.max_passes,
                fold_literals=self.options.fold_literals,
            )
        except JSUnfuckError as e:
            # Reported separately as a diagnostic
            logger.debug("Not formatting %s: %s", uri, e)
            return []

        if rewritten == source:
            return []

        return [
            types.TextEdit(
                range=full_document_range(source),
                new_text=rewritten,
            )
        ]
