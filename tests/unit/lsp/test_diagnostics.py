"""Tests for the jsunfuck LSP diagnostics provider."""

from lsprotocol.types import DiagnosticSeverity

from jsunfuck.compiler.driver import DeobfuscatorOptions
from jsunfuck.lsp.diagnostics import SOURCE, DiagnosticProvider, get_diagnostics_for_document


URI = "file:///test.js"


class TestDiagnosticProvider:
    """Test suite for DiagnosticProvider."""

    def test_clean_code_no_diagnostics(self) -> None:
        """Test that ordinary code produces no diagnostics."""
        source = "console.log(x + 1)\nalert(y)\n"
        diagnostics = get_diagnostics_for_document(source, URI)

        assert diagnostics == []

    def test_folds_alone_are_not_reported(self) -> None:
        """Test that plain literal arithmetic is not flagged."""
        diagnostics = get_diagnostics_for_document("1 + 2", URI)

        assert diagnostics == []

    def test_obfuscated_expression_reported(self) -> None:
        """Test that a rewrite site becomes an Information diagnostic."""
        diagnostics = get_diagnostics_for_document("[][[]]", URI)

        assert len(diagnostics) == 1
        diag = diagnostics[0]
        assert diag.severity == DiagnosticSeverity.Information
        assert diag.code == "undefined"
        assert diag.source == SOURCE
        assert diag.message.startswith("Obfuscated expression:")

    def test_diagnostic_range(self) -> None:
        """Test that the range spans the rewritten expression (0-indexed)."""
        diagnostics = get_diagnostics_for_document('x;\n  [][[]]', URI)

        assert len(diagnostics) == 1
        diag = diagnostics[0]
        assert (diag.range.start.line, diag.range.start.character) == (1, 2)
        # The last located node is the inner [] at character 4
        assert (diag.range.end.line, diag.range.end.character) == (1, 5)

    def test_multiple_sites(self) -> None:
        """Test that every rule site is reported once."""
        source = '[][[]]\n"abc"["1"]\n"hello".slice(1, 3)'
        diagnostics = get_diagnostics_for_document(source, URI)

        codes = [d.code for d in diagnostics]
        assert codes == ["undefined", "string-indexed-string", "slice"]
        assert [d.range.start.line for d in diagnostics] == [0, 1, 2]

    def test_encoded_character(self) -> None:
        """Test that nested idioms are reported at their own positions."""
        source = "([![]]+[][[]])[+!+[]+[+[]]]"
        diagnostics = get_diagnostics_for_document(source, URI)

        codes = sorted(d.code for d in diagnostics)
        assert codes == ["string-indexed-string", "undefined"]

    def test_syntax_error_produces_diagnostic(self) -> None:
        """Test that syntax errors produce a single Error diagnostic."""
        diagnostics = get_diagnostics_for_document("(a", URI)

        assert len(diagnostics) == 1
        diag = diagnostics[0]
        assert diag.severity == DiagnosticSeverity.Error
        assert "Expected ')'" in diag.message
        assert diag.source == SOURCE

    def test_unterminated_string_error(self) -> None:
        """Test diagnostic for unterminated string."""
        diagnostics = get_diagnostics_for_document('x + "hello', URI)

        assert len(diagnostics) == 1
        assert "Unterminated string literal" in diagnostics[0].message

    def test_huge_hex_literal(self) -> None:
        """Test that an out-of-range prefixed literal is not an error."""
        assert get_diagnostics_for_document("0x" + "f" * 300, URI) == []

    def test_lexer_error_position(self) -> None:
        """Test that the error range points at the offending character."""
        diagnostics = get_diagnostics_for_document("a\nb # c", URI)

        diag = diagnostics[0]
        assert diag.range.start.line == 1
        assert diag.range.start.character == 2
        assert diag.range.end.character == 3

    def test_options_are_used(self) -> None:
        """Test that disabling folding keeps rule-only rewrites."""
        provider = DiagnosticProvider("[][[]]", URI, DeobfuscatorOptions(fold_literals=False))
        diagnostics = provider.get_diagnostics()

        assert [d.code for d in diagnostics] == ["undefined"]

    def test_repeated_calls_are_independent(self) -> None:
        """Test that calling get_diagnostics twice does not accumulate."""
        provider = DiagnosticProvider("[][[]]", URI)

        assert len(provider.get_diagnostics()) == 1
        assert len(provider.get_diagnostics()) == 1
