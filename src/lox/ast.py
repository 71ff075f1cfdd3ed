"""Lox AST — parse-time node definitions.

Nodes compare and hash by identity so the resolver can key its side table on
the exact node instance. Nothing mutates a node after parsing.
"""

from __future__ import annotations

from dataclasses import dataclass

from .tokens import Token


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass(eq=False)
class Expr:
    """Base for all expressions."""


@dataclass(eq=False)
class Literal(Expr):
    """nil, true, false, number or string. value is None, bool, float or str."""

    value: bool | float | str | None


@dataclass(eq=False)
class Grouping(Expr):
    """( expression )."""

    expression: Expr


@dataclass(eq=False)
class Unary(Expr):
    """! right, - right."""

    operator: Token
    right: Expr


@dataclass(eq=False)
class Binary(Expr):
    """left op right for arithmetic, comparison and equality."""

    left: Expr
    operator: Token
    right: Expr


@dataclass(eq=False)
class Logical(Expr):
    """left and right, left or right."""

    left: Expr
    operator: Token
    right: Expr


@dataclass(eq=False)
class Variable(Expr):
    name: Token


@dataclass(eq=False)
class Assign(Expr):
    name: Token
    value: Expr


@dataclass(eq=False)
class Call(Expr):
    """callee(arguments). paren is the closing ')' for error lines."""

    callee: Expr
    paren: Token
    arguments: list[Expr]


@dataclass(eq=False)
class Get(Expr):
    """object.name."""

    object: Expr
    name: Token


@dataclass(eq=False)
class Set(Expr):
    """object.name = value."""

    object: Expr
    name: Token
    value: Expr


@dataclass(eq=False)
class This(Expr):
    keyword: Token


@dataclass(eq=False)
class Super(Expr):
    """super.method."""

    keyword: Token
    method: Token


# ============================================================
# STATEMENTS
# ============================================================


@dataclass(eq=False)
class Stmt:
    """Base for all statements."""


@dataclass(eq=False)
class Expression(Stmt):
    expression: Expr


@dataclass(eq=False)
class Print(Stmt):
    expression: Expr


@dataclass(eq=False)
class Var(Stmt):
    """var name (= initializer)?;"""

    name: Token
    initializer: Expr | None


@dataclass(eq=False)
class Block(Stmt):
    statements: list[Stmt]


@dataclass(eq=False)
class If(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Stmt | None


@dataclass(eq=False)
class While(Stmt):
    condition: Expr
    body: Stmt


@dataclass(eq=False)
class Function(Stmt):
    """fun name(params) { body }. Also used for class methods."""

    name: Token
    params: list[Token]
    body: list[Stmt]


@dataclass(eq=False)
class Return(Stmt):
    keyword: Token
    value: Expr | None


@dataclass(eq=False)
class Class(Stmt):
    """class Name < Superclass { methods }."""

    name: Token
    superclass: Variable | None
    methods: list[Function]
