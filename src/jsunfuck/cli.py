"""
jsunfuck Command-Line Interface.

Provides commands to deobfuscate JavaScript written in the six-character
encoding.

Usage:
    jsunfuck deobfuscate input.js -o output.js
    jsunfuck deobfuscate input.js --stats
    jsunfuck check input.js         # List recognized obfuscation sites
    jsunfuck tokens input.js        # Show tokens (debug)
    jsunfuck info                   # Show the rewrite rules
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from jsunfuck import __version__
from jsunfuck.compiler.codegen import CodeGenerator
from jsunfuck.compiler.driver import Deobfuscator, DeobfuscatorOptions, find_obfuscations
from jsunfuck.compiler.lexer import Lexer
from jsunfuck.compiler.parser import Parser
from jsunfuck.compiler.unfuck import RULE_DESCRIPTIONS
from jsunfuck.utils.errors import JSUnfuckError


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


# =============================================================================
# ANSI Color Codes for Terminal Output
# =============================================================================


class Colors:
    """ANSI escape codes for colored terminal output."""

    # Text colors
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"

    # Styles
    BOLD = "\033[1m"

    # Reset
    RESET = "\033[0m"

    @classmethod
    def disable(cls) -> None:
        """Disable all colors (for non-TTY output)."""
        cls.RED = ""
        cls.GREEN = ""
        cls.YELLOW = ""
        cls.CYAN = ""
        cls.GRAY = ""
        cls.BOLD = ""
        cls.RESET = ""


def _init_colors() -> None:
    """Initialize colors based on terminal capabilities."""
    # Disable colors if not a TTY or if NO_COLOR is set
    if not sys.stdout.isatty() or os.environ.get("NO_COLOR"):
        Colors.disable()


# Initialize on module load
_init_colors()


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="jsunfuck",
        description="jsunfuck - Deobfuscate JavaScript written with only []()!+",
    )

    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log every rewrite",
    )
    verbosity.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only log errors",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Deobfuscate command
    deobfuscate_parser = subparsers.add_parser(
        "deobfuscate",
        aliases=["d"],
        help="Rewrite an obfuscated JavaScript file",
    )
    deobfuscate_parser.add_argument(
        "input",
        type=Path,
        help="Input JavaScript file (.js), or - for stdin",
    )
    deobfuscate_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output file (default: print to stdout)",
    )
    deobfuscate_parser.add_argument(
        "--max-passes",
        type=int,
        default=DeobfuscatorOptions.max_passes,
        help=f"Maximum number of rewrite passes (default: {DeobfuscatorOptions.max_passes})",
    )
    deobfuscate_parser.add_argument(
        "--no-fold",
        action="store_true",
        help="Only apply the rewrite rules, do not fold literal coercions",
    )
    deobfuscate_parser.add_argument(
        "--stats",
        action="store_true",
        help="Print rewrite statistics to stderr",
    )

    # Check command
    check_parser = subparsers.add_parser(
        "check",
        help="List the obfuscated expressions jsunfuck can simplify",
    )
    check_parser.add_argument(
        "input",
        type=Path,
        help="Input JavaScript file (.js), or - for stdin",
    )

    # Tokens command (debug)
    tokens_parser = subparsers.add_parser(
        "tokens",
        help="Show tokens for a JavaScript file (debug)",
    )
    tokens_parser.add_argument(
        "input",
        type=Path,
        help="Input JavaScript file (.js), or - for stdin",
    )

    # Info command
    subparsers.add_parser(
        "info",
        help="Show version and rewrite rule information",
    )

    return parser


def _configure_logging(args: argparse.Namespace) -> None:
    level = logging.WARNING
    if getattr(args, "verbose", False):
        level = logging.DEBUG
    elif getattr(args, "quiet", False):
        level = logging.ERROR
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def _read_input(input_path: Path) -> tuple[str, str]:
    """Return (source, filename) for a path or "-"."""
    if str(input_path) == "-":
        return sys.stdin.read(), "<stdin>"
    return input_path.read_text(encoding="utf-8"), str(input_path)


def _missing(input_path: Path) -> bool:
    if str(input_path) != "-" and not input_path.exists():
        print(f"Error: File not found: {input_path}", file=sys.stderr)
        return True
    return False


def _parse_source(source: str, filename: str):
    lexer = Lexer(source, filename)
    tokens = lexer.tokenize()
    parser = Parser(tokens, source, filename)
    return parser.parse()


def cmd_deobfuscate(args: argparse.Namespace) -> int:
    """Handle the deobfuscate command."""
    input_path: Path = args.input
    if _missing(input_path):
        return 1

    try:
        options = DeobfuscatorOptions(
            max_passes=args.max_passes,
            fold_literals=not args.no_fold,
        )
    except ValueError as e:
        print(f"{Colors.RED}Error:{Colors.RESET} {e}", file=sys.stderr)
        return 2

    try:
        source, filename = _read_input(input_path)
        program = _parse_source(source, filename)
        result = Deobfuscator.from_options(options).run(program)
        output = CodeGenerator().generate(result.program)

        if args.output is None:
            sys.stdout.write(output)
        else:
            args.output.write_text(output, encoding="utf-8")
            print(
                f"{Colors.GREEN}Deobfuscated:{Colors.RESET} {filename} -> {args.output}",
                file=sys.stderr,
            )

        if args.stats:
            _print_stats(result)
        if not result.converged:
            print(
                f"{Colors.YELLOW}Warning:{Colors.RESET} no fixpoint after "
                f"{result.passes} passes; output may still be obfuscated",
                file=sys.stderr,
            )
        return 0

    except JSUnfuckError as e:
        print(f"{Colors.RED}Error:{Colors.RESET} {e}", file=sys.stderr)
        return 1
    except (OSError, UnicodeDecodeError) as e:
        print(f"{Colors.RED}Error:{Colors.RESET} {e}", file=sys.stderr)
        return 1


def _print_stats(result) -> None:
    """Print per-rule rewrite counts."""
    print(f"\n{Colors.BOLD}Rewrite Statistics:{Colors.RESET}", file=sys.stderr)
    print(f"  Passes:   {result.passes}", file=sys.stderr)
    print(f"  Rewrites: {len(result.rewrites)}", file=sys.stderr)
    for rule, count in sorted(result.rule_counts.items()):
        print(f"    {Colors.CYAN}{rule:<28}{Colors.RESET} {count}", file=sys.stderr)


def cmd_check(args: argparse.Namespace) -> int:
    """Handle the check command."""
    input_path: Path = args.input
    if _missing(input_path):
        return 1

    try:
        source, filename = _read_input(input_path)
        program = _parse_source(source, filename)
        rewrites = find_obfuscations(program)
    except JSUnfuckError as e:
        print(f"{Colors.RED}Error:{Colors.RESET} {e}", file=sys.stderr)
        return 1
    except (OSError, UnicodeDecodeError) as e:
        print(f"{Colors.RED}Error:{Colors.RESET} {e}", file=sys.stderr)
        return 1

    if not rewrites:
        print(f"{Colors.GREEN}OK:{Colors.RESET} {filename} (no obfuscated expressions)")
        return 0

    for rewrite in rewrites:
        loc = rewrite.location
        where = f"{filename}:{loc.line}:{loc.column}" if loc else filename
        print(
            f"  {Colors.GRAY}{where}:{Colors.RESET} "
            f"{Colors.YELLOW}{rewrite.rule}{Colors.RESET} {RULE_DESCRIPTIONS[rewrite.rule]}"
        )
    print(f"\n{len(rewrites)} obfuscated expression(s) found in {filename}")
    return 1


def cmd_tokens(args: argparse.Namespace) -> int:
    """Handle the tokens command (debug)."""
    input_path: Path = args.input
    if _missing(input_path):
        return 1

    try:
        source, filename = _read_input(input_path)
        lexer = Lexer(source, filename)
        for token in lexer.tokenize():
            print(token)
        return 0

    except JSUnfuckError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_info(args: argparse.Namespace) -> int:
    """Handle the info command - show rule information."""
    rules = "\n".join(
        f"  {Colors.CYAN}{name:<28}{Colors.RESET}{description}"
        for name, description in RULE_DESCRIPTIONS.items()
    )
    print(f"""
{Colors.BOLD}jsunfuck{Colors.RESET}
========

{Colors.CYAN}Version:{Colors.RESET} {__version__}

{Colors.BOLD}Rewrite rules (in priority order):{Colors.RESET}
{rules}

{Colors.BOLD}Commands:{Colors.RESET}
  jsunfuck deobfuscate <file>   Rewrite to readable JavaScript
  jsunfuck check <file>         List obfuscated expressions
  jsunfuck tokens <file>        Show tokens (debug)
  jsunfuck-lsp                  Start the language server
""")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    _configure_logging(args)

    command_handlers = {
        "deobfuscate": cmd_deobfuscate,
        "d": cmd_deobfuscate,
        "check": cmd_check,
        "tokens": cmd_tokens,
        "info": cmd_info,
    }

    handler = command_handlers.get(args.command)
    if handler:
        return handler(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
