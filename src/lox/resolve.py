"""Lox resolver — static scope analysis over a parsed program.

Computes, for every local variable reference, how many scopes separate it
from its declaration, and reports the static rules the parser cannot see.
"""

from __future__ import annotations

import logging

from .ast import (
    Assign,
    Binary,
    Block,
    Call,
    Class,
    Expr,
    Expression,
    Function,
    Get,
    Grouping,
    If,
    Literal,
    Logical,
    Print,
    Return,
    Set,
    Stmt,
    Super,
    This,
    Unary,
    Var,
    Variable,
    While,
)
from .tokens import TK_EOF, Token

logger = logging.getLogger(__name__)

# Function kinds
FN_NONE = "none"
FN_FUNCTION = "function"
FN_INITIALIZER = "initializer"
FN_METHOD = "method"

# Class kinds
CLASS_NONE = "none"
CLASS_CLASS = "class"
CLASS_SUBCLASS = "subclass"


class ResolveError(Exception):
    def __init__(self, msg: str, token: Token):
        self.msg: str = msg
        self.token: Token = token
        self.line: int = token.line
        if token.type == TK_EOF:
            where = " at end"
        else:
            where = " at '" + token.lexeme + "'"
        super().__init__("[line " + str(token.line) + "] Error" + where + ": " + msg)


class Resolver:
    def __init__(self) -> None:
        self.scopes: list[dict[str, bool]] = []
        self.locals: dict[Expr, int] = {}
        self.errors: list[ResolveError] = []
        self.current_function: str = FN_NONE
        self.current_class: str = CLASS_NONE
        # Most recent token seen, for errors raised away from any node
        self.last_token: Token | None = None

    def error(self, msg: str, token: Token) -> None:
        err = ResolveError(msg, token)
        self.errors.append(err)
        logger.debug("resolve error: %s", err)

    def recover_from_nesting(self) -> None:
        """Report a statement too deeply nested to walk and reset scope state."""
        token = self.last_token
        if token is None:
            token = Token(TK_EOF, "", None, 1)
        self.scopes = []
        self.current_function = FN_NONE
        self.current_class = CLASS_NONE
        self.error("Too much nesting.", token)

    # ── Scopes ───────────────────────────────────────────────

    def enter_scope(self) -> None:
        self.scopes.append({})

    def exit_scope(self) -> None:
        self.scopes.pop()

    def declare(self, name: Token) -> None:
        if not self.scopes:
            return
        scope = self.scopes[-1]
        if name.lexeme in scope:
            self.error("Variable with this name already declared in this scope.", name)
        scope[name.lexeme] = False

    def define(self, name: Token) -> None:
        if not self.scopes:
            return
        self.scopes[-1][name.lexeme] = True

    def resolve_local(self, expr: Expr, name: Token) -> None:
        self.last_token = name
        depth = 0
        for scope in reversed(self.scopes):
            if name.lexeme in scope:
                self.locals[expr] = depth
                return
            depth += 1
        # Not found: left for global lookup at run time

    # ── Entry ────────────────────────────────────────────────

    def resolve(self, statements: list[Stmt]) -> dict[Expr, int]:
        for stmt in statements:
            try:
                self.resolve_stmt(stmt)
            except RecursionError:
                self.recover_from_nesting()
        logger.debug(
            "resolved %d local references, %d errors", len(self.locals), len(self.errors)
        )
        return self.locals

    def resolve_stmts(self, statements: list[Stmt]) -> None:
        for stmt in statements:
            self.resolve_stmt(stmt)

    # ── Statements ───────────────────────────────────────────

    def resolve_stmt(self, stmt: Stmt) -> None:
        if isinstance(stmt, Block):
            self.enter_scope()
            self.resolve_stmts(stmt.statements)
            self.exit_scope()
        elif isinstance(stmt, Var):
            self.declare(stmt.name)
            if stmt.initializer is not None:
                self.resolve_expr(stmt.initializer)
            self.define(stmt.name)
        elif isinstance(stmt, Function):
            self.declare(stmt.name)
            self.define(stmt.name)
            self.resolve_function(stmt, FN_FUNCTION)
        elif isinstance(stmt, Class):
            self.resolve_class(stmt)
        elif isinstance(stmt, Expression):
            self.resolve_expr(stmt.expression)
        elif isinstance(stmt, Print):
            self.resolve_expr(stmt.expression)
        elif isinstance(stmt, If):
            self.resolve_expr(stmt.condition)
            self.resolve_stmt(stmt.then_branch)
            if stmt.else_branch is not None:
                self.resolve_stmt(stmt.else_branch)
        elif isinstance(stmt, While):
            self.resolve_expr(stmt.condition)
            self.resolve_stmt(stmt.body)
        elif isinstance(stmt, Return):
            self.resolve_return(stmt)
        else:
            raise TypeError("unknown statement: " + type(stmt).__name__)

    def resolve_return(self, stmt: Return) -> None:
        if self.current_function == FN_NONE:
            self.error("Cannot return from top-level code.", stmt.keyword)
        if stmt.value is not None:
            if self.current_function == FN_INITIALIZER:
                self.error("Cannot return a value from an initializer.", stmt.keyword)
            self.resolve_expr(stmt.value)

    def resolve_function(self, fn: Function, kind: str) -> None:
        enclosing = self.current_function
        self.current_function = kind
        self.enter_scope()
        for param in fn.params:
            self.declare(param)
            self.define(param)
        self.resolve_stmts(fn.body)
        self.exit_scope()
        self.current_function = enclosing

    def resolve_class(self, stmt: Class) -> None:
        enclosing = self.current_class
        self.current_class = CLASS_CLASS
        self.declare(stmt.name)
        self.define(stmt.name)

        if stmt.superclass is not None:
            if stmt.superclass.name.lexeme == stmt.name.lexeme:
                self.error("A class cannot inherit from itself.", stmt.superclass.name)
            self.current_class = CLASS_SUBCLASS
            self.resolve_expr(stmt.superclass)
            self.enter_scope()
            self.scopes[-1]["super"] = True

        self.enter_scope()
        self.scopes[-1]["this"] = True
        for method in stmt.methods:
            kind = FN_METHOD
            if method.name.lexeme == "init":
                kind = FN_INITIALIZER
            self.resolve_function(method, kind)
        self.exit_scope()

        if stmt.superclass is not None:
            self.exit_scope()
        self.current_class = enclosing

    # ── Expressions ──────────────────────────────────────────

    def resolve_expr(self, expr: Expr) -> None:
        if isinstance(expr, Variable):
            if self.scopes and self.scopes[-1].get(expr.name.lexeme) is False:
                self.error(
                    "Cannot read local variable in its own initializer.", expr.name
                )
            self.resolve_local(expr, expr.name)
        elif isinstance(expr, Assign):
            self.resolve_expr(expr.value)
            self.resolve_local(expr, expr.name)
        elif isinstance(expr, (Binary, Logical)):
            self.last_token = expr.operator
            self.resolve_expr(expr.left)
            self.resolve_expr(expr.right)
        elif isinstance(expr, Unary):
            self.last_token = expr.operator
            self.resolve_expr(expr.right)
        elif isinstance(expr, Grouping):
            self.resolve_expr(expr.expression)
        elif isinstance(expr, Literal):
            pass
        elif isinstance(expr, Call):
            self.last_token = expr.paren
            self.resolve_expr(expr.callee)
            for arg in expr.arguments:
                self.resolve_expr(arg)
        elif isinstance(expr, Get):
            self.last_token = expr.name
            self.resolve_expr(expr.object)
        elif isinstance(expr, Set):
            self.last_token = expr.name
            self.resolve_expr(expr.value)
            self.resolve_expr(expr.object)
        elif isinstance(expr, This):
            if self.current_class == CLASS_NONE:
                self.error("Cannot use 'this' outside of a class.", expr.keyword)
                return
            self.resolve_local(expr, expr.keyword)
        elif isinstance(expr, Super):
            if self.current_class == CLASS_NONE:
                self.error("Cannot use 'super' outside of a class.", expr.keyword)
            elif self.current_class != CLASS_SUBCLASS:
                self.error(
                    "Cannot use 'super' in a class with no superclass.", expr.keyword
                )
            self.resolve_local(expr, expr.keyword)
        else:
            raise TypeError("unknown expression: " + type(expr).__name__)


def resolve(statements: list[Stmt]) -> tuple[dict[Expr, int], list[ResolveError]]:
    """Resolve a program. Returns (scope distances, errors); errors empty = ok."""
    resolver = Resolver()
    locals_ = resolver.resolve(statements)
    return locals_, resolver.errors
