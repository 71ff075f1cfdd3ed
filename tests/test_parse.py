"""Tests for the Lox parser."""

from lox.ast import (
    Assign,
    Block,
    Call,
    Class,
    Expression,
    Function,
    Get,
    Literal,
    Print,
    Set,
    Super,
    Var,
    Variable,
    While,
)
from lox.emit import print_expr
from lox.parse import Parser
from lox.tokens import tokenize


def _parser(source: str) -> Parser:
    tokens, errors = tokenize(source)
    assert errors == [], [str(e) for e in errors]
    return Parser(tokens)


def _parse(source: str):
    parser = _parser(source)
    statements = parser.parse()
    assert parser.errors == [], [str(e) for e in parser.errors]
    return statements


def _expr(source: str) -> str:
    (stmt,) = _parse(source + ";")
    assert isinstance(stmt, Expression)
    return print_expr(stmt.expression)


def _errors(source: str) -> list[str]:
    parser = _parser(source)
    parser.parse()
    return [str(e) for e in parser.errors]


def test_precedence_factor_over_term():
    assert _expr("2 + 3 * 4") == "(+ 2 (* 3 4))"


def test_left_associative_term():
    assert _expr("1 - 2 - 3") == "(- (- 1 2) 3)"


def test_comparison_over_equality():
    assert _expr("1 < 2 == true") == "(== (< 1 2) true)"


def test_and_binds_tighter_than_or():
    assert _expr("a or b and c") == "(or a (and b c))"


def test_unary_nests():
    assert _expr("!-x") == "(! (- x))"


def test_assignment_is_right_associative():
    assert _expr("a = b = 1") == "(= a (= b 1))"


def test_call_and_property_chain():
    assert _expr("a.b(1)(2).c") == "(. (call (call (. a b) 1) 2) c)"


def test_property_assignment_becomes_set():
    (stmt,) = _parse("a.b.c = 1;")
    assert isinstance(stmt, Expression)
    assert isinstance(stmt.expression, Set)
    assert stmt.expression.name.lexeme == "c"
    assert isinstance(stmt.expression.object, Get)


def test_variable_assignment_becomes_assign():
    (stmt,) = _parse("a = 1;")
    assert isinstance(stmt, Expression)
    assert isinstance(stmt.expression, Assign)
    assert stmt.expression.name.lexeme == "a"


def test_call_records_closing_paren():
    (stmt,) = _parse("f(1,\n 2\n);")
    assert isinstance(stmt, Expression)
    call = stmt.expression
    assert isinstance(call, Call)
    assert len(call.arguments) == 2
    assert call.paren.line == 3


def test_super_expression():
    (cls,) = _parse("class B < A { m() { return super.m; } }")
    assert isinstance(cls, Class)
    ret = cls.methods[0].body[0]
    assert isinstance(ret.value, Super)
    assert ret.value.method.lexeme == "m"


def test_for_desugars_to_while_in_block():
    (stmt,) = _parse("for (var i = 0; i < 3; i = i + 1) print i;")
    assert isinstance(stmt, Block)
    init, loop = stmt.statements
    assert isinstance(init, Var)
    assert isinstance(loop, While)
    assert isinstance(loop.body, Block)
    body, increment = loop.body.statements
    assert isinstance(body, Print)
    assert isinstance(increment, Expression)
    assert isinstance(increment.expression, Assign)


def test_for_without_clauses():
    (stmt,) = _parse("for (;;) print 1;")
    assert isinstance(stmt, While)
    assert isinstance(stmt.condition, Literal)
    assert stmt.condition.value is True
    assert isinstance(stmt.body, Print)


def test_function_declaration():
    (fn,) = _parse("fun add(a, b) { return a + b; }")
    assert isinstance(fn, Function)
    assert fn.name.lexeme == "add"
    assert [p.lexeme for p in fn.params] == ["a", "b"]
    assert len(fn.body) == 1


def test_class_declaration():
    (cls,) = _parse("class B < A { init(x) {} m() {} }")
    assert isinstance(cls, Class)
    assert isinstance(cls.superclass, Variable)
    assert cls.superclass.name.lexeme == "A"
    assert [m.name.lexeme for m in cls.methods] == ["init", "m"]


def test_literals():
    (a, b, c, d) = _parse("nil; true; 1.5; \"s\";")
    assert [s.expression.value for s in (a, b, c, d)] == [None, True, 1.5, "s"]


def test_invalid_assignment_target_does_not_unwind():
    parser = _parser("1 = 2; print 3;")
    statements = parser.parse()
    assert [str(e) for e in parser.errors] == [
        "[line 1] Error at '=': Invalid assignment target."
    ]
    assert len(statements) == 2


def test_error_at_end():
    assert _errors("print 1") == ["[line 1] Error at end: Expect ';' after value."]


def test_synchronize_reports_each_error():
    parser = _parser("var = 1;\nprint 2 +;\nprint 3;")
    statements = parser.parse()
    assert [e.msg for e in parser.errors] == [
        "Expect variable name.",
        "Expect expression.",
    ]
    assert [e.line for e in parser.errors] == [1, 2]
    (stmt,) = statements
    assert isinstance(stmt, Print)


def test_synchronize_stops_at_statement_keyword():
    parser = _parser("print ) fun f() {}")
    statements = parser.parse()
    assert len(parser.errors) == 1
    assert isinstance(statements[0], Function)


def test_argument_limit():
    args = ", ".join(str(i) for i in range(9))
    assert _errors("f(" + args + ");") == [
        "[line 1] Error at '8': Cannot have more than 8 arguments."
    ]


def test_parameter_limit():
    params = ", ".join("p" + str(i) for i in range(9))
    assert _errors("fun f(" + params + ") {}") == [
        "[line 1] Error at 'p8': Cannot have more than 8 parameters."
    ]


def test_missing_property_name():
    assert _errors("a.1;") == [
        "[line 1] Error at '1': Expect property name after '.'."
    ]


def test_unclosed_block():
    assert _errors("{ print 1;") == ["[line 1] Error at end: Expect '}' after block."]


def test_deep_nesting_is_reported():
    parser = _parser("print " + "(" * 3000 + "1" + ")" * 3000 + ";")
    statements = parser.parse()
    assert statements == []
    assert [e.msg for e in parser.errors] == ["Too much nesting."]


def test_statements_before_deep_nesting_are_kept():
    parser = _parser("print 1;\n" + "{" * 5000 + "}" * 5000)
    statements = parser.parse()
    assert len(statements) == 1
    assert isinstance(statements[0], Print)
    assert [e.msg for e in parser.errors] == ["Too much nesting."]
