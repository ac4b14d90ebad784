"""
Toy CLI Entrypoint.

This module provides the command-line interface for running Toy programs.

Features:
    - Run a `.toy` script file or an inline source string.
    - Report all parser diagnostics at once; nothing runs when there are any.
    - Print the final value of the program.
    - Launch the interactive REPL in token, parse or eval mode.
    - Load keyword aliases from a JSON file (`--aliases` or `$TOY_ALIASES`).

Example usage:
    toy fib.toy
    toy -s "let x = 2; x * 21"
    toy --repl --mode parse
    toy --aliases aliases.json script.toy

Functions:
    run_toy(source, is_string=False, aliases=None) -> int:
        Lex, parse and evaluate once; returns the process exit status.

    main(argv=None) -> None:
        Parses CLI arguments and dispatches to the runner or the REPL.
"""

import argparse
import logging
import sys

from toy.toy_environment import new_environment
from toy.toy_evaluator import evaluate
from toy.toy_lexer import CharacterStream, Lexer
from toy.toy_object import Error
from toy.toy_parser import Parser
from toy.toy_uimap import MappingError, UserInterfaceMapper

logger = logging.getLogger(__name__)


def print_parser_errors(errors: list[str]) -> None:
    print("parser errors:")
    for msg in errors:
        print(f"\t{msg}")


def run_toy(
    source: str,
    is_string: bool = False,
    aliases: UserInterfaceMapper | None = None,
) -> int:
    """
    Run the Toy pipeline once: lex, parse, evaluate, print.

    Args:
        source (str): The Toy source code or path to a `.toy` file.
        is_string (bool): If True, treats `source` as raw code instead of a file path.
        aliases (UserInterfaceMapper | None): Keyword aliases applied while lexing.

    Returns:
        int: 0 on success, 1 when parsing failed or the program ended in an Error.

    Raises:
        ValueError: If `is_string` is False and the source does not end with '.toy'.
    """
    if not is_string and not source.endswith(".toy"):
        raise ValueError("Only .toy files are supported.")
    if not is_string:
        logger.debug("reading %s", source)
        with open(source, encoding="utf-8") as f:
            source = f.read()

    parser = Parser(Lexer(CharacterStream(source), aliases))
    program = parser.parse_program()
    if parser.errors:
        print_parser_errors(parser.errors)
        return 1

    try:
        result = evaluate(program, new_environment())
    except RecursionError:
        print("[error] >>> maximum recursion depth exceeded", file=sys.stderr)
        return 1

    if result is not None:
        print(result.inspect())
    return 1 if isinstance(result, Error) else 0


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="toy")
    parser.add_argument("source", nargs="?", help="Filename or raw source (with -s)")
    parser.add_argument(
        "-s", "--string", action="store_true", help="Interpret source as literal string"
    )
    parser.add_argument(
        "--repl", action="store_true", help="Launch the interactive REPL"
    )
    parser.add_argument(
        "--mode",
        choices=("token", "parse", "eval"),
        default="eval",
        help="REPL mode (default: eval)",
    )
    parser.add_argument(
        "--aliases",
        metavar="JSON_FILE",
        help="Keyword alias file (default: $TOY_ALIASES)",
    )
    parser.add_argument(
        "--recursion-limit",
        type=int,
        metavar="N",
        help="Host recursion limit for deeply recursive programs",
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: list[str] | None = None) -> None:
    """
    Entry point for the Toy CLI.

    Launches the REPL if no source is given or `--repl` is specified, otherwise runs
    the program and exits with the status returned by `run_toy`.
    """
    args = build_arg_parser().parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
    if args.recursion_limit:
        sys.setrecursionlimit(args.recursion_limit)

    try:
        aliases = UserInterfaceMapper.from_sources(args.aliases)
    except MappingError as e:
        print(f"[error] >>> {e}", file=sys.stderr)
        for conflict in e.conflicts:
            print(f" - {conflict}", file=sys.stderr)
        sys.exit(2)

    if args.repl or args.source is None:
        from toy.toy_repl import start_repl

        start_repl(mode=args.mode, aliases=aliases)
        return

    status = run_toy(source=args.source, is_string=args.string, aliases=aliases)
    if status:
        sys.exit(status)


if __name__ == "__main__" and not any("pytest" in arg for arg in sys.argv):
    main()
