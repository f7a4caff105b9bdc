"""
Fixpoint driver for jsunfuck.

The driver owns traversal: every pass rebuilds the tree bottom-up, offering
each expression first to the peephole rules and then, if no rule matched,
to the literal folder. Passes repeat until one makes no rewrite, because a
rewrite usually exposes a new match at its parent (a folded string makes
the enclosing concatenation foldable).
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from jsunfuck.compiler.ast_nodes import Expression, Program, transform
from jsunfuck.compiler.codegen import CodeGenerator
from jsunfuck.compiler.const_fold import ConstantFolder
from jsunfuck.compiler.parser import parse
from jsunfuck.compiler.unfuck import PeepholeUnfuck
from jsunfuck.utils.errors import SourceLocation


logger = logging.getLogger(__name__)

LITERAL_FOLD = "literal-fold"


@dataclass
class DeobfuscatorOptions:
    """
    Settings shared by the CLI, the language server and the library API.

    Attributes:
        max_passes: Upper bound on full-tree passes
        fold_literals: Fold literal coercions (``![] + []``) between rule
            applications; without it only the peephole rules run
    """

    max_passes: int = 100
    fold_literals: bool = True

    def __post_init__(self) -> None:
        if self.max_passes < 1:
            raise ValueError(f"max_passes must be at least 1, got {self.max_passes}")


@dataclass(frozen=True, slots=True)
class Rewrite:
    """One applied rewrite: which rule fired where, and what it produced."""

    rule: str
    location: Optional[SourceLocation]
    before: Expression
    after: Expression

    @property
    def is_fold(self) -> bool:
        return self.rule == LITERAL_FOLD


@dataclass
class DeobfuscationResult:
    """
    Result of running the driver to its fixpoint.

    Attributes:
        program: The rewritten program
        passes: Number of passes made, including the final quiet pass
        rewrites: Every rewrite in the order it was applied
        converged: False if ``max_passes`` ran out before a quiet pass
    """

    program: Program
    passes: int = 0
    rewrites: list[Rewrite] = field(default_factory=list)
    converged: bool = False

    @property
    def rule_counts(self) -> Counter[str]:
        """Number of rewrites per rule name."""
        return Counter(rewrite.rule for rewrite in self.rewrites)

    def __str__(self) -> str:
        lines = ["Deobfuscation Result:"]
        lines.append(f"  Passes: {self.passes}")
        lines.append(f"  Converged: {self.converged}")
        lines.append(f"  Rewrites: {len(self.rewrites)}")
        for rule, count in sorted(self.rule_counts.items()):
            lines.append(f"    {rule}: {count}")
        return "\n".join(lines)


class Deobfuscator:
    """
    Runs the peephole rules and literal folding to a fixpoint.

    Example:
        result = Deobfuscator(max_passes=20).run(parse(source))
        print(CodeGenerator().generate(result.program))
    """

    def __init__(self, max_passes: int = 100, fold_literals: bool = True) -> None:
        self.options = DeobfuscatorOptions(max_passes=max_passes, fold_literals=fold_literals)
        self._pending: list[Rewrite] = []
        self.engine = PeepholeUnfuck(report_change=self._record)
        self.folder = ConstantFolder()

    @classmethod
    def from_options(cls, options: DeobfuscatorOptions) -> Deobfuscator:
        return cls(max_passes=options.max_passes, fold_literals=options.fold_literals)

    def _record(self, rule: str, before: Expression, after: Expression) -> None:
        self._pending.append(Rewrite(rule=rule, location=before.location, before=before, after=after))

    def _rewrite_node(self, node: Expression) -> Expression:
        replacement = self.engine.optimize(node)
        if replacement is not node or not self.options.fold_literals:
            return replacement
        folded = self.folder.fold_node(node)
        if folded is not node:
            self._record(LITERAL_FOLD, node, folded)
        return folded

    def run_pass(self, program: Program) -> tuple[Program, list[Rewrite]]:
        """Make one bottom-up pass; return the new program and its rewrites."""
        self._pending = []
        try:
            result = transform(program, self._rewrite_node)
            return result, self._pending
        finally:
            self._pending = []

    def run(self, program: Program) -> DeobfuscationResult:
        """
        Rewrite a program until a pass makes no change.

        Args:
            program: The parsed program

        Returns:
            DeobfuscationResult with the final program and all rewrites
        """
        result = DeobfuscationResult(program=program)

        while result.passes < self.options.max_passes:
            result.passes += 1
            result.program, rewrites = self.run_pass(result.program)
            logger.debug("Pass %d: %d rewrites", result.passes, len(rewrites))
            if not rewrites:
                result.converged = True
                break
            result.rewrites.extend(rewrites)

        if not result.converged:
            logger.warning(
                "Stopped after %d passes without reaching a fixpoint", result.passes
            )
        logger.info(
            "Deobfuscation finished: %d rewrites in %d passes",
            len(result.rewrites),
            result.passes,
        )
        return result


# =============================================================================
# Convenience Functions
# =============================================================================


def find_obfuscations(program: Program, **options) -> list[Rewrite]:
    """
    List the peephole rule rewrites a full run applies.

    Literal folds are left out: they simplify ordinary code too and mark no
    encoded idiom on their own.

    Args:
        program: The parsed program
        **options: ``DeobfuscatorOptions`` fields

    Returns:
        The rule rewrites in application order
    """
    result = Deobfuscator(**options).run(program)
    return [rewrite for rewrite in result.rewrites if not rewrite.is_fold]


def deobfuscate_source(source: str, filename: Optional[str] = None, **options) -> str:
    """
    Deobfuscate JavaScript source code.

    Args:
        source: JavaScript source code string
        filename: Optional filename for error reporting
        **options: ``DeobfuscatorOptions`` fields

    Returns:
        The rewritten JavaScript source

    Raises:
        LexerError: If the source cannot be tokenized
        ParserError: If the source cannot be parsed
    """
    program = parse(source, filename)
    result = Deobfuscator(**options).run(program)
    return CodeGenerator().generate(result.program)


def deobfuscate_file(path: Path | str, **options) -> str:
    """
    Deobfuscate a JavaScript file.

    Args:
        path: Path to the .js file
        **options: ``DeobfuscatorOptions`` fields

    Returns:
        The rewritten JavaScript source
    """
    path = Path(path)
    source = path.read_text(encoding="utf-8")
    return deobfuscate_source(source, filename=str(path), **options)
