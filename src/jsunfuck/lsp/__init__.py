"""
jsunfuck Language Server Protocol (LSP) implementation.

This package provides an LSP server that brings the deobfuscator into
editors:
- Diagnostics for syntax errors
- Information diagnostics on every obfuscated expression jsunfuck can simplify
- Document formatting that rewrites the file to its deobfuscated form

Usage:
    # Start the LSP server (stdio mode)
    jsunfuck-lsp

    # Or run as a module
    python -m jsunfuck.lsp
"""

from jsunfuck.lsp.server import JSUnfuckLanguageServer, create_server, main

__all__ = [
    "JSUnfuckLanguageServer",
    "create_server",
    "main",
]
