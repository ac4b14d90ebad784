"""
Interactive shell for the Toy language.

Reads one input at a time (continuing with `.. ` while braces are unbalanced) and
handles it according to the current mode:

    token   echo every token the lexer produces
    parse   echo the canonical text of the parsed program
    eval    evaluate against one persistent environment and echo the result

Shell commands:
    exit, quit      leave the shell
    :mode <mode>    switch between token / parse / eval
    :env            list the names bound in the session environment
    :aliases        show the configured keyword aliases
"""

import io
import logging
import traceback

from toy.toy_environment import Environment, new_environment
from toy.toy_evaluator import evaluate
from toy.toy_lexer import CharacterStream, Lexer
from toy.toy_parser import Parser
from toy.toy_uimap import UserInterfaceMapper

logger = logging.getLogger(__name__)

PROMPT = ">> "
CONTINUATION_PROMPT = ".. "
MODES = ("token", "parse", "eval")


def print_traceback() -> None:
    buf = io.StringIO()
    traceback.print_exc(file=buf)
    print("[error] >>>")
    print(buf.getvalue())


def print_parser_errors(errors: list[str]) -> None:
    print("[error] >>> parser errors:")
    for msg in errors:
        print(f"\t{msg}")


def read_source() -> str:
    """Reads lines until braces balance; returns the joined, stripped source."""
    src_lines: list[str] = []
    brace_count = 0
    while True:
        prompt = PROMPT if not src_lines else CONTINUATION_PROMPT
        line = input(prompt)
        src_lines.append(line)
        brace_count += line.count("{") - line.count("}")
        if brace_count <= 0:
            break
    return "\n".join(src_lines).strip()


def handle_command(
    src: str, state: dict[str, str], env: Environment, aliases: UserInterfaceMapper
) -> bool:
    """Runs a `:command`; returns False when `src` is not a command."""
    if not src.startswith(":"):
        return False
    name, _, arg = src[1:].partition(" ")
    arg = arg.strip()
    if name == "mode":
        if arg not in MODES:
            print(f"[error] >>> Unknown mode {arg!r}; choose one of {', '.join(MODES)}")
        else:
            state["mode"] = arg
            logger.debug("repl mode switched to %s", arg)
            print(f"[mode] >>> {arg}")
    elif name == "env":
        for binding in env.names():
            value = env.get(binding)
            print(f"{binding} = {value.inspect() if value is not None else ''}")
    elif name == "aliases":
        print(aliases.report() or "[aliases] >>> none configured")
    else:
        print(f"[error] >>> Unknown command :{name}")
    return True


def run_line(
    src: str, mode: str, env: Environment, aliases: UserInterfaceMapper
) -> None:
    lexer = Lexer(CharacterStream(src), aliases)
    if mode == "token":
        for tok in lexer:
            if tok.type == "EOF":
                break
            print(tok)
        return

    parser = Parser(lexer)
    program = parser.parse_program()
    if parser.errors:
        print_parser_errors(parser.errors)
        return
    if mode == "parse":
        print(program)
        return

    try:
        result = evaluate(program, env)
    except RecursionError:
        print("[error] >>> maximum recursion depth exceeded")
        return
    if result is not None:
        print(result.inspect())


def start_repl(
    mode: str = "eval", aliases: UserInterfaceMapper | None = None
) -> None:
    if mode not in MODES:
        raise ValueError(f"Unknown REPL mode: {mode!r}")
    print(f"Toy REPL [mode={mode}]. Type 'exit' or 'quit' to leave.")
    state = {"mode": mode}
    env = new_environment()
    alias_map = aliases if aliases is not None else UserInterfaceMapper()

    while True:
        try:
            src = read_source()
            if not src or src.startswith("#"):
                continue
            if src in ("exit", "quit"):
                print("Exiting Toy REPL.")
                return
            if handle_command(src, state, env, alias_map):
                continue
            run_line(src, state["mode"], env, alias_map)
        except (KeyboardInterrupt, EOFError):
            print("\nExiting Toy REPL.")
            break
        except Exception:
            print_traceback()


def main() -> None:
    start_repl()


if __name__ == "__main__":
    main()
