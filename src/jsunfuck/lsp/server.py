"""
jsunfuck Language Server Protocol (LSP) Server.

This module implements a small LSP server using pygls (Python Language
Server). It provides:

- Document synchronization (open, change, save, close)
- Diagnostics (syntax errors, simplifiable obfuscated expressions)
- Document formatting (replace the document with its deobfuscated form)

Usage:
    # Start the server in stdio mode (for IDE integration)
    jsunfuck-lsp

    # Start in TCP mode (for debugging)
    jsunfuck-lsp --tcp --port 2087
"""

import argparse
import logging
from typing import Optional

from lsprotocol import types
from pygls.lsp.server import LanguageServer

from jsunfuck import __version__
from jsunfuck.compiler.driver import DeobfuscatorOptions
from jsunfuck.lsp.diagnostics import DiagnosticProvider
from jsunfuck.lsp.formatting import LSPFormatter

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("jsunfuck-lsp")


class JSUnfuckLanguageServer(LanguageServer):
    """
    Language Server Protocol implementation for jsunfuck.

    Every open, change and save re-runs the deobfuscator over the document
    and republishes its diagnostics.
    """

    def __init__(self, options: Optional[DeobfuscatorOptions] = None) -> None:
        """Initialize the jsunfuck language server."""
        super().__init__(
            name="jsunfuck-lsp",
            version=f"v{__version__}",
        )

        self.options = options or DeobfuscatorOptions()
        self._formatter = LSPFormatter(self.options)

        # Register all handlers
        self._register_handlers()

    def _register_handlers(self) -> None:
        """Register all LSP request and notification handlers."""
        # Document synchronization
        self.feature(types.TEXT_DOCUMENT_DID_OPEN)(self._on_did_open)
        self.feature(types.TEXT_DOCUMENT_DID_CHANGE)(self._on_did_change)
        self.feature(types.TEXT_DOCUMENT_DID_SAVE)(self._on_did_save)
        self.feature(types.TEXT_DOCUMENT_DID_CLOSE)(self._on_did_close)

        # Formatting
        self.feature(types.TEXT_DOCUMENT_FORMATTING)(self._on_formatting)

    def compute_diagnostics(self, uri: str, source: str) -> list[types.Diagnostic]:
        """Analyze a document and return its diagnostics."""
        return DiagnosticProvider(source, uri, self.options).get_diagnostics()

    def _publish_diagnostics(self, uri: str, diagnostics: list[types.Diagnostic]) -> None:
        """Publish diagnostics to the client."""
        self.text_document_publish_diagnostics(
            types.PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
        )

    def _refresh(self, uri: str) -> None:
        doc = self.workspace.get_text_document(uri)
        if doc is None:
            return
        self._publish_diagnostics(uri, self.compute_diagnostics(uri, doc.source))

    # =========================================================================
    # Document Synchronization
    # =========================================================================

    def _on_did_open(self, params: types.DidOpenTextDocumentParams) -> None:
        """Handle document open notification."""
        document = params.text_document
        logger.info(f"Document opened: {document.uri}")
        self._publish_diagnostics(
            document.uri, self.compute_diagnostics(document.uri, document.text)
        )

    def _on_did_change(self, params: types.DidChangeTextDocumentParams) -> None:
        """Handle document change notification."""
        uri = params.text_document.uri
        logger.debug(f"Document changed: {uri}")
        self._refresh(uri)

    def _on_did_save(self, params: types.DidSaveTextDocumentParams) -> None:
        """Handle document save notification."""
        uri = params.text_document.uri
        logger.info(f"Document saved: {uri}")
        self._refresh(uri)

    def _on_did_close(self, params: types.DidCloseTextDocumentParams) -> None:
        """Handle document close notification."""
        uri = params.text_document.uri
        logger.info(f"Document closed: {uri}")

        # Clear diagnostics
        self._publish_diagnostics(uri, [])

    # =========================================================================
    # Formatting
    # =========================================================================

    def _on_formatting(
        self, params: types.DocumentFormattingParams
    ) -> list[types.TextEdit] | None:
        """Handle document formatting request."""
        uri = params.text_document.uri

        doc = self.workspace.get_text_document(uri)
        if doc is None:
            return None

        return self._formatter.format_document(doc.source, uri)


# =============================================================================
# Server Creation and Main Entry Point
# =============================================================================


def create_server(options: Optional[DeobfuscatorOptions] = None) -> JSUnfuckLanguageServer:
    """Create and configure a jsunfuck language server instance."""
    server = JSUnfuckLanguageServer(options)

    @server.feature(types.INITIALIZED)
    def on_initialized(
        params: types.InitializedParams,  # noqa: ARG001
    ) -> None:
        """Handle initialized notification."""
        logger.info("jsunfuck Language Server initialized successfully")

    @server.feature(types.SHUTDOWN)
    def on_shutdown(
        params: None,  # noqa: ARG001
    ) -> None:
        """Handle shutdown request."""
        logger.info("Shutting down jsunfuck Language Server")

    return server


def main(argv: Optional[list[str]] = None) -> None:
    """
    Main entry point for the jsunfuck language server.

    Starts the server in stdio mode for IDE integration.
    """
    parser = argparse.ArgumentParser(
        description="jsunfuck Language Server",
        prog="jsunfuck-lsp",
    )
    parser.add_argument(
        "--tcp",
        action="store_true",
        help="Start server in TCP mode instead of stdio",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to in TCP mode (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=2087,
        help="Port to listen on in TCP mode (default: 2087)",
    )
    parser.add_argument(
        "--max-passes",
        type=int,
        default=DeobfuscatorOptions.max_passes,
        help=f"Maximum number of rewrite passes (default: {DeobfuscatorOptions.max_passes})",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default="info",
        help="Logging level (default: info)",
    )

    args = parser.parse_args(argv)

    # Configure logging level
    log_level = getattr(logging, args.log_level.upper())
    logging.getLogger("jsunfuck-lsp").setLevel(log_level)

    server = create_server(DeobfuscatorOptions(max_passes=args.max_passes))

    if args.tcp:
        logger.info(f"Starting jsunfuck LSP in TCP mode on {args.host}:{args.port}")
        server.start_tcp(args.host, args.port)
    else:
        logger.info("Starting jsunfuck LSP in stdio mode")
        server.start_io()


if __name__ == "__main__":
    main()
