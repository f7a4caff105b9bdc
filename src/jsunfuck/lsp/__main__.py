"""
Entry point for running the jsunfuck LSP server as a module.

Usage:
    python -m jsunfuck.lsp
    python -m jsunfuck.lsp --tcp --port 2087
"""

from jsunfuck.lsp.server import main

if __name__ == "__main__":
    main()
