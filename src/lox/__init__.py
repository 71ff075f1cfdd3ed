"""Lox scanner, parser, resolver and tree-walking interpreter — public API."""

from __future__ import annotations

from .ast import Stmt
from .emit import to_source
from .parse import ParseError as ParseError, Parser
from .resolve import ResolveError as ResolveError, resolve
from .runtime import (
    Interpreter as Interpreter,
    LoxRuntimeError as LoxRuntimeError,
    RunResult as RunResult,
    StackOverflowError as StackOverflowError,
    run as run,
)
from .tokens import ScanError as ScanError, tokenize

__version__ = "1.0.0"


def parse(source: str) -> tuple[list[Stmt], list[Exception]]:
    """Parse Lox source. Returns (statements, syntax errors); errors empty = ok."""
    tokens, scan_errors = tokenize(source)
    parser = Parser(tokens)
    statements = parser.parse()
    return statements, [*scan_errors, *parser.errors]


def check(source: str) -> list[Exception]:
    """Parse and resolve Lox source. Returns all static errors (empty = ok)."""
    statements, errors = parse(source)
    if errors:
        return errors
    _, resolve_errors = resolve(statements)
    return list(resolve_errors)


def emit(statements: list[Stmt]) -> str:
    """Render parsed statements with the debug AST printer."""
    return to_source(statements)
