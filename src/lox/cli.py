"""Lox CLI — run .lox files or an interactive prompt."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

from . import config, parse as parse_source
from .emit import to_source
from .runtime import Interpreter, execute

logger = logging.getLogger(__name__)

USAGE: str = """\
lox [OPTIONS] [FILE]

Run a Lox program, or start an interactive prompt when FILE is omitted.

Options:
  --print-ast   Print the parsed program instead of running it
  --debug       Log pipeline phases to stderr
  --help        Show this help message
"""


def _configure_logging(debug: bool) -> None:
    level = logging.DEBUG if debug else getattr(logging, config.LOG_LEVEL, logging.WARNING)
    logging.basicConfig(level=level, format=config.LOG_FORMAT, stream=sys.stderr)


def _report(errors: list[Exception], stream: TextIO) -> None:
    for e in errors:
        print(str(e), file=stream)


def run_file(path: str, *, print_ast: bool = False) -> int:
    try:
        with open(path, "rb") as f:
            raw = f.read()
    except FileNotFoundError:
        print("lox: " + path + ": No such file or directory", file=sys.stderr)
        return config.EXIT_NOINPUT
    except OSError as e:
        print("lox: " + path + ": " + str(e), file=sys.stderr)
        return config.EXIT_NOINPUT
    try:
        source = raw.decode("utf-8")
    except ValueError:
        print("lox: " + path + ": invalid utf-8", file=sys.stderr)
        return config.EXIT_DATAERR

    logger.debug("running %s (%d bytes)", path, len(raw))
    if print_ast:
        statements, errors = parse_source(source)
        if errors:
            _report(errors, sys.stderr)
            return config.EXIT_DATAERR
        try:
            text = to_source(statements)
        except RecursionError:
            print("lox: " + path + ": too much nesting to print", file=sys.stderr)
            return config.EXIT_DATAERR
        sys.stdout.write(text)
        return config.EXIT_OK

    code, errors = execute(source, Interpreter())
    _report(errors, sys.stderr)
    return code


def run_prompt(stdin: TextIO, stdout: TextIO) -> int:
    """Read-eval-print loop. Globals persist across lines; errors do not end it."""
    interpreter = Interpreter(output=lambda line: print(line, file=stdout))
    while True:
        stdout.write(config.PROMPT)
        stdout.flush()
        line = stdin.readline()
        if line == "":
            stdout.write("\n")
            return config.EXIT_OK
        _, errors = execute(line, interpreter)
        _report(errors, sys.stderr)


def main(argv: list[str] | None = None) -> int:
    args = argv if argv is not None else sys.argv[1:]
    filepath: str = ""
    debug = False
    print_ast = False
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            return config.EXIT_OK
        elif arg == "--debug":
            debug = True
            i += 1
        elif arg == "--print-ast":
            print_ast = True
            i += 1
        elif arg.startswith("-"):
            print("lox: unknown flag '" + arg + "'", file=sys.stderr)
            return config.EXIT_USAGE
        elif filepath == "":
            filepath = arg
            i += 1
        else:
            print(USAGE, end="", file=sys.stderr)
            return config.EXIT_USAGE

    _configure_logging(debug)
    if filepath == "":
        return run_prompt(sys.stdin, sys.stdout)
    return run_file(filepath, print_ast=print_ast)


if __name__ == "__main__":
    sys.exit(main())
