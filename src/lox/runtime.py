"""Lox runtime — values, environments, and the tree-walking evaluator."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math
import sys
import time
from typing import Callable

from . import config
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
from .parse import Parser
from .resolve import Resolver
from .tokens import Token, tokenize

logger = logging.getLogger(__name__)


# ============================================================
# Diagnostics
# ============================================================


class LoxRuntimeError(Exception):
    """Runtime error; aborts the rest of the program."""

    def __init__(self, msg: str, token: Token | None = None):
        if token is None:
            super().__init__(msg)
        else:
            super().__init__(msg + "\n[line " + str(token.line) + "]")
        self.msg = msg
        self.token = token

    @property
    def line(self) -> int | None:
        return self.token.line if self.token is not None else None


class StackOverflowError(LoxRuntimeError):
    """Call depth exhausted. Distinct from ordinary runtime errors."""

    def __init__(self, token: Token | None = None):
        super().__init__("Stack overflow.", token)


# ============================================================
# Values
# ============================================================


class Value:
    """A runtime value."""

    def to_string(self) -> str:
        raise NotImplementedError


@dataclass
class VNil(Value):
    def to_string(self) -> str:
        return "nil"


@dataclass
class VBool(Value):
    value: bool

    def to_string(self) -> str:
        return "true" if self.value else "false"


@dataclass
class VNumber(Value):
    value: float

    def to_string(self) -> str:
        return format_number(self.value)


@dataclass
class VString(Value):
    value: str

    def to_string(self) -> str:
        return self.value


NIL = VNil()
TRUE = VBool(True)
FALSE = VBool(False)


def format_number(x: float) -> str:
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "Infinity" if x > 0 else "-Infinity"
    # Integral values print in full below 1e21, exponent form above.
    if x != 0 and x.is_integer() and abs(x) < 1e21:
        return str(int(x))
    text = repr(x)
    if text.endswith(".0"):
        text = text[:-2]
    return text


def _literal_value(value: bool | float | str | None) -> Value:
    if value is None:
        return NIL
    if isinstance(value, bool):
        return TRUE if value else FALSE
    if isinstance(value, float):
        return VNumber(value)
    return VString(value)


def is_truthy(v: Value) -> bool:
    if isinstance(v, VNil):
        return False
    if isinstance(v, VBool):
        return v.value
    return True


def values_equal(a: Value, b: Value) -> bool:
    # No cross-kind coercion: 1 == "1" and nil == false are both false.
    if type(a) is not type(b):
        return False
    if isinstance(a, VNil):
        return True
    if isinstance(a, (VBool, VNumber, VString)):
        return a.value == b.value  # type: ignore[attr-defined]
    return a is b


# ============================================================
# Environments
# ============================================================


class Environment:
    """One scope of name bindings, linked to its enclosing scope.

    Closures hold a reference to the environment they were defined in, so
    every closure sharing an ancestor sees the same mutable bindings.
    """

    def __init__(self, enclosing: Environment | None = None):
        self.values: dict[str, Value] = {}
        self.enclosing: Environment | None = enclosing

    def define(self, name: str, value: Value) -> None:
        self.values[name] = value

    def get(self, name: Token) -> Value:
        env: Environment | None = self
        while env is not None:
            if name.lexeme in env.values:
                return env.values[name.lexeme]
            env = env.enclosing
        raise LoxRuntimeError("Undefined variable '" + name.lexeme + "'.", name)

    def assign(self, name: Token, value: Value) -> None:
        env: Environment | None = self
        while env is not None:
            if name.lexeme in env.values:
                env.values[name.lexeme] = value
                return
            env = env.enclosing
        raise LoxRuntimeError("Undefined variable '" + name.lexeme + "'.", name)

    def ancestor(self, distance: int) -> Environment:
        env = self
        for _ in range(distance):
            if env.enclosing is None:
                raise LoxRuntimeError("Resolved distance past global scope.")
            env = env.enclosing
        return env

    def get_at(self, distance: int, name: str) -> Value:
        return self.ancestor(distance).values[name]

    def assign_at(self, distance: int, name: Token, value: Value) -> None:
        self.ancestor(distance).values[name.lexeme] = value


# ============================================================
# Callables, classes and instances
# ============================================================


class LoxCallable(Value):
    def arity(self) -> int:
        raise NotImplementedError

    def call(self, interpreter: Interpreter, arguments: list[Value]) -> Value:
        raise NotImplementedError


class NativeFunction(LoxCallable):
    def __init__(self, name: str, arity: int, fn: Callable[[list[Value]], Value]):
        self.name = name
        self._arity = arity
        self._fn = fn

    def arity(self) -> int:
        return self._arity

    def call(self, interpreter: Interpreter, arguments: list[Value]) -> Value:
        return self._fn(arguments)

    def to_string(self) -> str:
        return "<native fn>"


class LoxFunction(LoxCallable):
    """A user function or method bundled with its defining environment."""

    def __init__(
        self, declaration: Function, closure: Environment, is_initializer: bool
    ):
        self.declaration = declaration
        self.closure = closure
        self.is_initializer = is_initializer

    def bind(self, instance: LoxInstance) -> LoxFunction:
        env = Environment(self.closure)
        env.define("this", instance)
        return LoxFunction(self.declaration, env, self.is_initializer)

    def arity(self) -> int:
        return len(self.declaration.params)

    def call(self, interpreter: Interpreter, arguments: list[Value]) -> Value:
        # New scope per call, parented on the closure, never on the caller.
        env = Environment(self.closure)
        for param, arg in zip(self.declaration.params, arguments):
            env.define(param.lexeme, arg)
        completion = interpreter.execute_block(self.declaration.body, env)
        if self.is_initializer:
            return self.closure.get_at(0, "this")
        if completion is not None:
            return completion.value
        return NIL

    def to_string(self) -> str:
        return "<fn " + self.declaration.name.lexeme + ">"


class LoxClass(LoxCallable):
    def __init__(
        self,
        name: str,
        superclass: LoxClass | None,
        methods: dict[str, LoxFunction],
    ):
        self.name = name
        self.superclass = superclass
        self.methods = methods

    def find_method(self, name: str) -> LoxFunction | None:
        klass: LoxClass | None = self
        while klass is not None:
            if name in klass.methods:
                return klass.methods[name]
            klass = klass.superclass
        return None

    def arity(self) -> int:
        initializer = self.find_method("init")
        if initializer is None:
            return 0
        return initializer.arity()

    def call(self, interpreter: Interpreter, arguments: list[Value]) -> Value:
        instance = LoxInstance(self)
        initializer = self.find_method("init")
        if initializer is not None:
            initializer.bind(instance).call(interpreter, arguments)
        return instance

    def to_string(self) -> str:
        return self.name


class LoxInstance(Value):
    def __init__(self, klass: LoxClass):
        self.klass = klass
        self.fields: dict[str, Value] = {}

    def get(self, name: Token) -> Value:
        # Fields shadow methods.
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]
        method = self.klass.find_method(name.lexeme)
        if method is not None:
            return method.bind(self)
        raise LoxRuntimeError("Undefined property '" + name.lexeme + "'.", name)

    def set(self, name: Token, value: Value) -> None:
        self.fields[name.lexeme] = value

    def to_string(self) -> str:
        return self.klass.name + " instance"


def _native_clock(arguments: list[Value]) -> Value:
    return VNumber(time.time())


# ============================================================
# Control flow
# ============================================================


@dataclass
class _Return:
    """Completion of a return statement, handed up to the call boundary."""

    value: Value


# ============================================================
# Evaluation
# ============================================================


def _check_number_operand(operator: Token, operand: Value) -> float:
    if isinstance(operand, VNumber):
        return operand.value
    raise LoxRuntimeError("Operand must be a number.", operator)


def _check_number_operands(
    operator: Token, left: Value, right: Value
) -> tuple[float, float]:
    if isinstance(left, VNumber) and isinstance(right, VNumber):
        return left.value, right.value
    raise LoxRuntimeError("Operands must be numbers.", operator)


def _divide(a: float, b: float) -> float:
    if b == 0.0:
        if a == 0.0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


class Interpreter:
    """Evaluates resolved statements against a persistent global scope.

    `output` receives one line per print statement.
    """

    def __init__(self, output: Callable[[str], None] | None = None):
        self.globals = Environment()
        self.locals: dict[Expr, int] = {}
        self.output: Callable[[str], None] = output if output is not None else _stdout
        self._depth = 0
        self._last_call: Token | None = None
        self.globals.define("clock", NativeFunction("clock", 0, _native_clock))
        _ensure_recursion_headroom()

    def interpret(
        self, statements: list[Stmt], locals_: dict[Expr, int] | None = None
    ) -> None:
        """Run top-level statements. Raises LoxRuntimeError on the first fault."""
        if locals_ is not None:
            self.locals.update(locals_)
        self._depth = 0
        try:
            for st in statements:
                self._exec_stmt(st, self.globals)
        except RecursionError:
            raise StackOverflowError(self._last_call) from None

    # ---- Statements --------------------------------------------------------

    def execute_block(self, statements: list[Stmt], env: Environment) -> _Return | None:
        for st in statements:
            completion = self._exec_stmt(st, env)
            if completion is not None:
                return completion
        return None

    def _exec_stmt(self, st: Stmt, env: Environment) -> _Return | None:
        if isinstance(st, Expression):
            self._eval_expr(st.expression, env)
            return None

        if isinstance(st, Print):
            value = self._eval_expr(st.expression, env)
            self.output(value.to_string())
            return None

        if isinstance(st, Var):
            value: Value = NIL
            if st.initializer is not None:
                value = self._eval_expr(st.initializer, env)
            env.define(st.name.lexeme, value)
            return None

        if isinstance(st, Block):
            return self.execute_block(st.statements, Environment(env))

        if isinstance(st, If):
            if is_truthy(self._eval_expr(st.condition, env)):
                return self._exec_stmt(st.then_branch, env)
            if st.else_branch is not None:
                return self._exec_stmt(st.else_branch, env)
            return None

        if isinstance(st, While):
            while is_truthy(self._eval_expr(st.condition, env)):
                completion = self._exec_stmt(st.body, env)
                if completion is not None:
                    return completion
            return None

        if isinstance(st, Function):
            env.define(st.name.lexeme, LoxFunction(st, env, False))
            return None

        if isinstance(st, Return):
            value = NIL
            if st.value is not None:
                value = self._eval_expr(st.value, env)
            return _Return(value)

        if isinstance(st, Class):
            self._exec_class(st, env)
            return None

        raise TypeError("unknown statement: " + type(st).__name__)

    def _exec_class(self, st: Class, env: Environment) -> None:
        superclass: LoxClass | None = None
        if st.superclass is not None:
            value = self._eval_expr(st.superclass, env)
            if not isinstance(value, LoxClass):
                raise LoxRuntimeError("Superclass must be a class.", st.superclass.name)
            superclass = value

        env.define(st.name.lexeme, NIL)

        method_env = env
        if superclass is not None:
            method_env = Environment(env)
            method_env.define("super", superclass)

        methods: dict[str, LoxFunction] = {}
        for method in st.methods:
            is_init = method.name.lexeme == "init"
            methods[method.name.lexeme] = LoxFunction(method, method_env, is_init)

        env.assign(st.name, LoxClass(st.name.lexeme, superclass, methods))

    # ---- Expressions -------------------------------------------------------

    def _eval_expr(self, expr: Expr, env: Environment) -> Value:
        if isinstance(expr, Literal):
            return _literal_value(expr.value)

        if isinstance(expr, Grouping):
            return self._eval_expr(expr.expression, env)

        if isinstance(expr, Variable):
            return self._lookup_variable(expr.name, expr, env)

        if isinstance(expr, Assign):
            value = self._eval_expr(expr.value, env)
            distance = self.locals.get(expr)
            if distance is None:
                self.globals.assign(expr.name, value)
            else:
                env.assign_at(distance, expr.name, value)
            return value

        if isinstance(expr, Unary):
            right = self._eval_expr(expr.right, env)
            if expr.operator.lexeme == "-":
                return VNumber(-_check_number_operand(expr.operator, right))
            if expr.operator.lexeme == "!":
                return VBool(not is_truthy(right))
            raise LoxRuntimeError("Unknown unary operator.", expr.operator)

        if isinstance(expr, Binary):
            left = self._eval_expr(expr.left, env)
            right = self._eval_expr(expr.right, env)
            return self._eval_binary(expr.operator, left, right)

        if isinstance(expr, Logical):
            left = self._eval_expr(expr.left, env)
            if expr.operator.type == "or":
                if is_truthy(left):
                    return left
            elif not is_truthy(left):
                return left
            return self._eval_expr(expr.right, env)

        if isinstance(expr, Call):
            return self._eval_call(expr, env)

        if isinstance(expr, Get):
            obj = self._eval_expr(expr.object, env)
            if isinstance(obj, LoxInstance):
                return obj.get(expr.name)
            raise LoxRuntimeError("Only instances have properties.", expr.name)

        if isinstance(expr, Set):
            obj = self._eval_expr(expr.object, env)
            if not isinstance(obj, LoxInstance):
                raise LoxRuntimeError("Only instances have fields.", expr.name)
            value = self._eval_expr(expr.value, env)
            obj.set(expr.name, value)
            return value

        if isinstance(expr, This):
            return self._lookup_variable(expr.keyword, expr, env)

        if isinstance(expr, Super):
            return self._eval_super(expr, env)

        raise TypeError("unknown expression: " + type(expr).__name__)

    def _lookup_variable(self, name: Token, expr: Expr, env: Environment) -> Value:
        distance = self.locals.get(expr)
        if distance is None:
            return self.globals.get(name)
        return env.get_at(distance, name.lexeme)

    def _eval_super(self, expr: Super, env: Environment) -> Value:
        distance = self.locals[expr]
        superclass = env.get_at(distance, "super")
        # "this" is always bound one scope inside "super".
        instance = env.get_at(distance - 1, "this")
        if not isinstance(superclass, LoxClass) or not isinstance(instance, LoxInstance):
            raise TypeError("super resolved outside a bound method")
        method = superclass.find_method(expr.method.lexeme)
        if method is None:
            raise LoxRuntimeError(
                "Undefined property '" + expr.method.lexeme + "'.", expr.method
            )
        return method.bind(instance)

    def _eval_call(self, expr: Call, env: Environment) -> Value:
        callee = self._eval_expr(expr.callee, env)
        arguments = [self._eval_expr(arg, env) for arg in expr.arguments]
        if not isinstance(callee, LoxCallable):
            raise LoxRuntimeError("Can only call functions and classes.", expr.paren)
        if len(arguments) != callee.arity():
            raise LoxRuntimeError(
                "Expected "
                + str(callee.arity())
                + " arguments but got "
                + str(len(arguments))
                + ".",
                expr.paren,
            )
        if self._depth >= config.MAX_CALL_DEPTH:
            raise StackOverflowError(expr.paren)
        self._depth += 1
        self._last_call = expr.paren
        try:
            return callee.call(self, arguments)
        finally:
            self._depth -= 1

    def _eval_binary(self, operator: Token, left: Value, right: Value) -> Value:
        op = operator.lexeme
        if op == "==":
            return VBool(values_equal(left, right))
        if op == "!=":
            return VBool(not values_equal(left, right))
        if op == "+":
            if isinstance(left, VNumber) and isinstance(right, VNumber):
                return VNumber(left.value + right.value)
            if isinstance(left, VString) and isinstance(right, VString):
                return VString(left.value + right.value)
            raise LoxRuntimeError(
                "Operands must be two numbers or two strings.", operator
            )
        a, b = _check_number_operands(operator, left, right)
        if op == "-":
            return VNumber(a - b)
        if op == "*":
            return VNumber(a * b)
        if op == "/":
            return VNumber(_divide(a, b))
        if op == ">":
            return VBool(a > b)
        if op == ">=":
            return VBool(a >= b)
        if op == "<":
            return VBool(a < b)
        if op == "<=":
            return VBool(a <= b)
        raise LoxRuntimeError("Unknown binary operator.", operator)


def _stdout(line: str) -> None:
    sys.stdout.write(line + "\n")


def _ensure_recursion_headroom() -> None:
    needed = config.MAX_CALL_DEPTH * config.PY_FRAMES_PER_CALL + 1000
    if sys.getrecursionlimit() < needed:
        sys.setrecursionlimit(needed)


# ============================================================
# Pipeline
# ============================================================


@dataclass
class RunResult:
    exit_code: int
    stdout: str
    stderr: str
    errors: list[Exception] = field(default_factory=list)


def execute(source: str, interpreter: Interpreter) -> tuple[int, list[Exception]]:
    """Scan, parse, resolve and run `source` on `interpreter`.

    Returns (exit code, reported errors). Static errors stop the pipeline
    before anything executes.
    """
    tokens, scan_errors = tokenize(source)
    parser = Parser(tokens)
    statements = parser.parse()
    static_errors: list[Exception] = [*scan_errors, *parser.errors]
    if static_errors:
        logger.debug("skipping execution: %d syntax errors", len(static_errors))
        return config.EXIT_DATAERR, static_errors

    resolver = Resolver()
    locals_ = resolver.resolve(statements)
    if resolver.errors:
        logger.debug("skipping execution: %d resolve errors", len(resolver.errors))
        return config.EXIT_DATAERR, list(resolver.errors)

    logger.debug("executing %d top-level statements", len(statements))
    try:
        interpreter.interpret(statements, locals_)
    except LoxRuntimeError as e:
        logger.debug("runtime error: %s", e.msg)
        return config.EXIT_SOFTWARE, [e]
    return config.EXIT_OK, []


def run(source: str) -> RunResult:
    """Run a complete Lox program on a fresh interpreter, capturing output."""
    lines: list[str] = []
    interpreter = Interpreter(output=lines.append)
    code, errors = execute(source, interpreter)
    stdout = "".join(line + "\n" for line in lines)
    stderr = "".join(str(e) + "\n" for e in errors)
    return RunResult(code, stdout, stderr, errors)
