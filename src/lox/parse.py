"""Lox parser — recursive descent, one method per grammar production."""

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
from .config import MAX_ARITY
from .tokens import TK_EOF, TK_IDENT, TK_NUMBER, TK_OP, TK_STRING, Token

logger = logging.getLogger(__name__)

EQUALITY_OPS: tuple[str, ...] = ("!=", "==")
COMPARISON_OPS: tuple[str, ...] = (">", ">=", "<", "<=")

# Tokens that plausibly begin a new statement, for resynchronization
STATEMENT_STARTS: set[str] = {
    "class",
    "fun",
    "var",
    "for",
    "if",
    "while",
    "print",
    "return",
}


class ParseError(Exception):
    """Parse error with the offending token."""

    def __init__(self, msg: str, token: Token):
        self.msg: str = msg
        self.token: Token = token
        self.line: int = token.line
        if token.type == TK_EOF:
            where = " at end"
        else:
            where = " at '" + token.lexeme + "'"
        super().__init__("[line " + str(token.line) + "] Error" + where + ": " + msg)


class Parser:
    """Recursive descent parser for Lox.

    Errors never escape parse(): each one is recorded in self.errors and the
    parser resynchronizes at the next statement boundary.
    """

    def __init__(self, tokens: list[Token]):
        self.tokens: list[Token] = tokens
        self.pos: int = 0
        self.errors: list[ParseError] = []

    # ── Helpers ──────────────────────────────────────────────

    def current(self) -> Token:
        return self.tokens[self.pos]

    def previous(self) -> Token:
        return self.tokens[self.pos - 1]

    def at_end(self) -> bool:
        return self.current().type == TK_EOF

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if tok.type != TK_EOF:
            self.pos += 1
        return tok

    def at(self, value: str) -> bool:
        """True if the current token is the operator or keyword `value`."""
        tok = self.current()
        if tok.type == TK_OP:
            return tok.lexeme == value
        return tok.type == value

    def at_type(self, type_: str) -> bool:
        return self.current().type == type_

    def match(self, *values: str) -> bool:
        for value in values:
            if self.at(value):
                self.advance()
                return True
        return False

    def expect(self, value: str, msg: str) -> Token:
        if self.at(value):
            return self.advance()
        raise self.error(self.current(), msg)

    def expect_ident(self, msg: str) -> Token:
        if self.at_type(TK_IDENT):
            return self.advance()
        raise self.error(self.current(), msg)

    def error(self, token: Token, msg: str) -> ParseError:
        """Record an error. Callers raise the result only to unwind."""
        err = ParseError(msg, token)
        self.errors.append(err)
        logger.debug("parse error: %s", err)
        return err

    def synchronize(self) -> None:
        self.advance()
        while not self.at_end():
            if self.previous().type == TK_OP and self.previous().lexeme == ";":
                return
            if self.current().type in STATEMENT_STARTS:
                return
            self.advance()

    # ── Top Level ────────────────────────────────────────────

    def parse(self) -> list[Stmt]:
        """Program = Declaration* EOF

        Nesting deeper than the host stack allows is reported as an error at
        the token where parsing stopped; the rest of the input is dropped.
        """
        statements: list[Stmt] = []
        try:
            while not self.at_end():
                decl = self.parse_declaration()
                if decl is not None:
                    statements.append(decl)
        except RecursionError:
            self.error(self.current(), "Too much nesting.")
        return statements

    def parse_declaration(self) -> Stmt | None:
        """Declaration = ClassDecl | FunDecl | VarDecl | Statement"""
        try:
            if self.match("class"):
                return self.parse_class_decl()
            if self.match("fun"):
                return self.parse_function("function")
            if self.match("var"):
                return self.parse_var_decl()
            return self.parse_statement()
        except ParseError:
            self.synchronize()
            return None

    def parse_class_decl(self) -> Class:
        """ClassDecl = 'class' IDENT ( '<' IDENT )? '{' Function* '}'"""
        name = self.expect_ident("Expect class name.")
        superclass: Variable | None = None
        if self.match("<"):
            superclass = Variable(self.expect_ident("Expect superclass name."))
        self.expect("{", "Expect '{' before class body.")
        methods: list[Function] = []
        while not self.at("}") and not self.at_end():
            methods.append(self.parse_function("method"))
        self.expect("}", "Expect '}' after class body.")
        return Class(name, superclass, methods)

    def parse_function(self, kind: str) -> Function:
        """Function = IDENT '(' Params? ')' Block"""
        name = self.expect_ident("Expect " + kind + " name.")
        self.expect("(", "Expect '(' after " + kind + " name.")
        params: list[Token] = []
        if not self.at(")"):
            while True:
                if len(params) >= MAX_ARITY:
                    self.error(
                        self.current(),
                        "Cannot have more than " + str(MAX_ARITY) + " parameters.",
                    )
                params.append(self.expect_ident("Expect parameter name."))
                if not self.match(","):
                    break
        self.expect(")", "Expect ')' after parameters.")
        self.expect("{", "Expect '{' before " + kind + " body.")
        body = self.parse_block()
        return Function(name, params, body)

    def parse_var_decl(self) -> Var:
        """VarDecl = 'var' IDENT ( '=' Expr )? ';'"""
        name = self.expect_ident("Expect variable name.")
        initializer: Expr | None = None
        if self.match("="):
            initializer = self.parse_expr()
        self.expect(";", "Expect ';' after variable declaration.")
        return Var(name, initializer)

    # ── Statements ───────────────────────────────────────────

    def parse_statement(self) -> Stmt:
        if self.match("for"):
            return self.parse_for()
        if self.match("if"):
            return self.parse_if()
        if self.match("print"):
            return self.parse_print()
        if self.match("return"):
            return self.parse_return()
        if self.match("while"):
            return self.parse_while()
        if self.match("{"):
            return Block(self.parse_block())
        return self.parse_expr_stmt()

    def parse_for(self) -> Stmt:
        """For = 'for' '(' ( VarDecl | ExprStmt | ';' ) Expr? ';' Expr? ')' Statement

        Desugared into a while loop: the initializer gets one enclosing block
        for the whole loop, not one per iteration.
        """
        self.expect("(", "Expect '(' after 'for'.")
        initializer: Stmt | None
        if self.match(";"):
            initializer = None
        elif self.match("var"):
            initializer = self.parse_var_decl()
        else:
            initializer = self.parse_expr_stmt()

        condition: Expr | None = None
        if not self.at(";"):
            condition = self.parse_expr()
        self.expect(";", "Expect ';' after loop condition.")

        increment: Expr | None = None
        if not self.at(")"):
            increment = self.parse_expr()
        self.expect(")", "Expect ')' after for clauses.")

        body = self.parse_statement()
        if increment is not None:
            body = Block([body, Expression(increment)])
        if condition is None:
            condition = Literal(True)
        body = While(condition, body)
        if initializer is not None:
            body = Block([initializer, body])
        return body

    def parse_if(self) -> If:
        """If = 'if' '(' Expr ')' Statement ( 'else' Statement )?"""
        self.expect("(", "Expect '(' after 'if'.")
        condition = self.parse_expr()
        self.expect(")", "Expect ')' after if condition.")
        then_branch = self.parse_statement()
        else_branch: Stmt | None = None
        if self.match("else"):
            else_branch = self.parse_statement()
        return If(condition, then_branch, else_branch)

    def parse_print(self) -> Print:
        value = self.parse_expr()
        self.expect(";", "Expect ';' after value.")
        return Print(value)

    def parse_return(self) -> Return:
        keyword = self.previous()
        value: Expr | None = None
        if not self.at(";"):
            value = self.parse_expr()
        self.expect(";", "Expect ';' after return value.")
        return Return(keyword, value)

    def parse_while(self) -> While:
        self.expect("(", "Expect '(' after 'while'.")
        condition = self.parse_expr()
        self.expect(")", "Expect ')' after condition.")
        body = self.parse_statement()
        return While(condition, body)

    def parse_block(self) -> list[Stmt]:
        """Block = '{' Declaration* '}' (opening brace already consumed)"""
        statements: list[Stmt] = []
        while not self.at("}") and not self.at_end():
            decl = self.parse_declaration()
            if decl is not None:
                statements.append(decl)
        self.expect("}", "Expect '}' after block.")
        return statements

    def parse_expr_stmt(self) -> Expression:
        expr = self.parse_expr()
        self.expect(";", "Expect ';' after expression.")
        return Expression(expr)

    # ── Expressions ──────────────────────────────────────────

    def parse_expr(self) -> Expr:
        return self.parse_assignment()

    def parse_assignment(self) -> Expr:
        """Assignment = ( Call '.' )? IDENT '=' Assignment | Or

        The target is parsed as an ordinary expression first, then checked:
        every valid target is also a valid read expression.
        """
        expr = self.parse_or()
        if self.match("="):
            equals = self.previous()
            value = self.parse_assignment()
            if isinstance(expr, Variable):
                return Assign(expr.name, value)
            if isinstance(expr, Get):
                return Set(expr.object, expr.name, value)
            self.error(equals, "Invalid assignment target.")
        return expr

    def parse_or(self) -> Expr:
        """Or = And ( 'or' And )*"""
        expr = self.parse_and()
        while self.match("or"):
            operator = self.previous()
            right = self.parse_and()
            expr = Logical(expr, operator, right)
        return expr

    def parse_and(self) -> Expr:
        """And = Equality ( 'and' Equality )*"""
        expr = self.parse_equality()
        while self.match("and"):
            operator = self.previous()
            right = self.parse_equality()
            expr = Logical(expr, operator, right)
        return expr

    def parse_equality(self) -> Expr:
        """Equality = Comparison ( ( '!=' | '==' ) Comparison )*"""
        expr = self.parse_comparison()
        while self.match(*EQUALITY_OPS):
            operator = self.previous()
            right = self.parse_comparison()
            expr = Binary(expr, operator, right)
        return expr

    def parse_comparison(self) -> Expr:
        """Comparison = Term ( ( '>' | '>=' | '<' | '<=' ) Term )*"""
        expr = self.parse_term()
        while self.match(*COMPARISON_OPS):
            operator = self.previous()
            right = self.parse_term()
            expr = Binary(expr, operator, right)
        return expr

    def parse_term(self) -> Expr:
        """Term = Factor ( ( '-' | '+' ) Factor )*"""
        expr = self.parse_factor()
        while self.match("-", "+"):
            operator = self.previous()
            right = self.parse_factor()
            expr = Binary(expr, operator, right)
        return expr

    def parse_factor(self) -> Expr:
        """Factor = Unary ( ( '/' | '*' ) Unary )*"""
        expr = self.parse_unary()
        while self.match("/", "*"):
            operator = self.previous()
            right = self.parse_unary()
            expr = Binary(expr, operator, right)
        return expr

    def parse_unary(self) -> Expr:
        """Unary = ( '!' | '-' ) Unary | Call"""
        if self.match("!", "-"):
            operator = self.previous()
            right = self.parse_unary()
            return Unary(operator, right)
        return self.parse_call()

    def parse_call(self) -> Expr:
        """Call = Primary ( '(' Args? ')' | '.' IDENT )*"""
        expr = self.parse_primary()
        while True:
            if self.match("("):
                expr = self.finish_call(expr)
            elif self.match("."):
                name = self.expect_ident("Expect property name after '.'.")
                expr = Get(expr, name)
            else:
                break
        return expr

    def finish_call(self, callee: Expr) -> Call:
        arguments: list[Expr] = []
        if not self.at(")"):
            while True:
                if len(arguments) >= MAX_ARITY:
                    self.error(
                        self.current(),
                        "Cannot have more than " + str(MAX_ARITY) + " arguments.",
                    )
                arguments.append(self.parse_expr())
                if not self.match(","):
                    break
        paren = self.expect(")", "Expect ')' after arguments.")
        return Call(callee, paren, arguments)

    def parse_primary(self) -> Expr:
        """Parse a primary expression."""
        if self.match("false"):
            return Literal(False)
        if self.match("true"):
            return Literal(True)
        if self.match("nil"):
            return Literal(None)
        if self.at_type(TK_NUMBER) or self.at_type(TK_STRING):
            return Literal(self.advance().literal)
        if self.match("super"):
            keyword = self.previous()
            self.expect(".", "Expect '.' after 'super'.")
            method = self.expect_ident("Expect superclass method name.")
            return Super(keyword, method)
        if self.match("this"):
            return This(self.previous())
        if self.at_type(TK_IDENT):
            return Variable(self.advance())
        if self.match("("):
            expr = self.parse_expr()
            self.expect(")", "Expect ')' after expression.")
            return Grouping(expr)
        raise self.error(self.current(), "Expect expression.")
