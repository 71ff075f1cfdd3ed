"""Lox AST printer — an unambiguous, if ugly, parenthesized rendering.

Debug-only. Total over the node types in `lox/ast.py`: if a node type is added
there, this printer should be updated alongside it.
"""

from __future__ import annotations

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
from .runtime import format_number


def to_source(statements: list[Stmt]) -> str:
    """Render statements one per line."""
    return "".join(print_stmt(st) + "\n" for st in statements)


def _parenthesize(name: str, *parts: str) -> str:
    if not parts:
        return "(" + name + ")"
    return "(" + name + " " + " ".join(parts) + ")"


def print_expr(expr: Expr) -> str:
    if isinstance(expr, Literal):
        if expr.value is None:
            return "nil"
        if isinstance(expr.value, bool):
            return "true" if expr.value else "false"
        if isinstance(expr.value, float):
            return format_number(expr.value)
        return '"' + expr.value + '"'
    if isinstance(expr, Grouping):
        return _parenthesize("group", print_expr(expr.expression))
    if isinstance(expr, Unary):
        return _parenthesize(expr.operator.lexeme, print_expr(expr.right))
    if isinstance(expr, (Binary, Logical)):
        return _parenthesize(
            expr.operator.lexeme, print_expr(expr.left), print_expr(expr.right)
        )
    if isinstance(expr, Variable):
        return expr.name.lexeme
    if isinstance(expr, Assign):
        return _parenthesize("=", expr.name.lexeme, print_expr(expr.value))
    if isinstance(expr, Call):
        return _parenthesize(
            "call", print_expr(expr.callee), *[print_expr(a) for a in expr.arguments]
        )
    if isinstance(expr, Get):
        return _parenthesize(".", print_expr(expr.object), expr.name.lexeme)
    if isinstance(expr, Set):
        return _parenthesize(
            "=", print_expr(expr.object), expr.name.lexeme, print_expr(expr.value)
        )
    if isinstance(expr, This):
        return "this"
    if isinstance(expr, Super):
        return _parenthesize("super", expr.method.lexeme)
    raise TypeError("unhandled expr type")


def print_stmt(stmt: Stmt) -> str:
    if isinstance(stmt, Expression):
        return _parenthesize(";", print_expr(stmt.expression))
    if isinstance(stmt, Print):
        return _parenthesize("print", print_expr(stmt.expression))
    if isinstance(stmt, Var):
        if stmt.initializer is None:
            return _parenthesize("var", stmt.name.lexeme)
        return _parenthesize("var", stmt.name.lexeme, "=", print_expr(stmt.initializer))
    if isinstance(stmt, Block):
        return _parenthesize("block", *[print_stmt(s) for s in stmt.statements])
    if isinstance(stmt, If):
        parts = [print_expr(stmt.condition), print_stmt(stmt.then_branch)]
        if stmt.else_branch is None:
            return _parenthesize("if", *parts)
        return _parenthesize("if-else", *parts, print_stmt(stmt.else_branch))
    if isinstance(stmt, While):
        return _parenthesize("while", print_expr(stmt.condition), print_stmt(stmt.body))
    if isinstance(stmt, Function):
        return _print_function("fun", stmt)
    if isinstance(stmt, Return):
        if stmt.value is None:
            return "(return)"
        return _parenthesize("return", print_expr(stmt.value))
    if isinstance(stmt, Class):
        head = "class " + stmt.name.lexeme
        if stmt.superclass is not None:
            head += " < " + stmt.superclass.name.lexeme
        return _parenthesize(head, *[_print_function("method", m) for m in stmt.methods])
    raise TypeError("unhandled stmt type")


def _print_function(kind: str, fn: Function) -> str:
    params = "(" + " ".join(p.lexeme for p in fn.params) + ")"
    return _parenthesize(
        kind + " " + fn.name.lexeme + params, *[print_stmt(s) for s in fn.body]
    )
