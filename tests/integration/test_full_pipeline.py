"""
Integration tests for the complete jsunfuck pipeline.

These tests run encoded programs through lexing, parsing, the fixpoint
rewrite loop and printing, and check the decoded source that comes out.
"""

from jsunfuck.compiler.codegen import generate
from jsunfuck.compiler.driver import Deobfuscator, deobfuscate_file, find_obfuscations


# 20 and 21 built as +("2" + [0]) and +("2" + [1])
_TWENTY = "+(!+[]+!+[]+[+[]])"
_TWENTY_ONE = "+(!+[]+!+[]+[+!+[]])"


class TestDecodingPipeline:
    """Decode programs built from the six-character alphabet."""

    def test_eval_payload_with_call(self, deobfuscate, encode):
        """The classic wrapper around an encoded payload becomes eval."""
        source = (
            f"[][{encode('filter')}][{encode('constructor')}]"
            f"({encode('alert(1)')})()"
        )
        assert deobfuscate(source) == 'eval("alert(1)");\n'

    def test_multiple_statements(self, deobfuscate, encode):
        """Each statement is decoded on its own line."""
        source = ";\n".join(
            [
                encode("true"),
                f"[][{encode('filter')}]",
                "[][[]]",
            ]
        )
        assert deobfuscate(source) == '"true";\n[]["filter"];\nundefined;\n'

    def test_radix_character(self, deobfuscate, encode):
        """(20)["toString"](21) reaches letters no literal word contains."""
        source = f"({_TWENTY})[{encode('toString')}]({_TWENTY_ONE})"
        assert deobfuscate(source) == '"k";\n'

    def test_escaped_space(self, deobfuscate, encode):
        """escape is materialized from a Function body, then applied."""
        # "function fill() {...}"[8] is a space
        eight = "+".join(["!+[]"] * 8)
        space = f"([][{encode('fill')}]+[])[{eight}]"
        source = f'Function("return escape")()({space})'
        assert deobfuscate(source) == '"%20";\n'

    def test_escaped_native_function(self, deobfuscate, encode):
        source = f"Function(\"return escape\")()([][{encode('fill')}])"
        assert deobfuscate(source) == (
            '"function%20fill%28%29%20%7B%0A%20%20%20%20%5Bnative%20code%5D%0A%7D";\n'
        )

    def test_function_constructor_regex(self, deobfuscate):
        assert deobfuscate('Function("return /a+b/")()') == "/a+b/;\n"

    def test_clean_code_passes_through(self, deobfuscate):
        source = "console.log(document.title)\nwindow.x(1, 2)\n"
        assert deobfuscate(source) == "console.log(document.title);\nwindow.x(1, 2);\n"


class TestPipelineReporting:
    """The rewrite log tracks what the pipeline did."""

    def test_rule_counts(self, parse, encode):
        source = f"[][{encode('filter')}][{encode('constructor')}]({encode('alert')})()"
        result = Deobfuscator().run(parse(source))

        assert result.converged is True
        assert result.rule_counts["array-function-constructor"] == 1
        assert result.rule_counts["undefined"] >= 1
        assert result.rule_counts["string-indexed-string"] >= 1
        assert generate(result.program) == 'eval("alert");\n'

    def test_find_obfuscations_lists_sites_in_order(self, parse):
        program = parse('x;\n[][[]];\n"abc"["1"];\n(255)["toString"](16)')
        rules = [r.rule for r in find_obfuscations(program)]
        assert rules == ["undefined", "string-indexed-string", "radix-to-string"]

    def test_pass_limit(self, parse, encode):
        result = Deobfuscator(max_passes=1).run(parse(encode("constructor")))
        assert result.passes == 1
        assert result.converged is False


class TestFiles:
    """Reading encoded sources from disk."""

    def test_deobfuscate_file(self, tmp_path, encode):
        path = tmp_path / "payload.js"
        path.write_text(f"{encode('false')};\n{encode('1')}\n", encoding="utf-8")
        assert deobfuscate_file(path) == '"false";\n"1";\n'

    def test_deobfuscate_file_options(self, tmp_path):
        path = tmp_path / "payload.js"
        path.write_text("[][[]] + ![]", encoding="utf-8")
        assert deobfuscate_file(path, fold_literals=False) == "undefined + ![];\n"

    def test_non_ascii_source(self, tmp_path):
        path = tmp_path / "unicode.js"
        path.write_text('"\u00e9t\u00e9".slice(1)', encoding="utf-8")
        assert deobfuscate_file(path) == '"t\u00e9";\n'
