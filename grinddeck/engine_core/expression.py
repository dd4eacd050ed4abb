"""
Algebra Expressions - Expression trees over the free variable x.

The Algebra Deck holds one of these trees. Cards played on the Algebra Deck
wrap the current tree in a new node; applying the deck evaluates the tree
with x bound to the Grind Deck value.

Node types:
- Variable: the free variable x
- Constant: a literal number
- UnaryOp: sqrt, cbrt, sin, cos, tan, abs, fact, square, cube, percent,
  ln, exp, neg
- BinaryOp: +, -, *, /, pow, pyth, mod

Evaluation follows floating point rules rather than card rules: trig works
in radians, nothing is rounded per node, and domain errors produce NaN or
infinity instead of exceptions.

Trees can be rendered to text and parsed back:
    (sqrt((x + 3)) * 2)
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Union
import logging
import math
import re

from .cards import ArithmeticOperator, FunctionOperator, VARIABLE_SYMBOL
from .errors import ExpressionEvaluationFault
from .numeric import cube_root, factorial, format_value, round3, safe_exp, safe_pow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Variable:
    name: str = VARIABLE_SYMBOL


@dataclass(frozen=True)
class Constant:
    value: float


@dataclass(frozen=True)
class UnaryOp:
    op: str
    child: Expression


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: Expression
    right: Expression


Expression = Union[Variable, Constant, UnaryOp, BinaryOp]


# =============================================================================
# Node operations
# =============================================================================

def _divide(a: float, b: float) -> float:
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _modulo(a: float, b: float) -> float:
    if b == 0 or not math.isfinite(a):
        return math.nan
    return math.fmod(a, b)


def _sqrt(a: float) -> float:
    return math.sqrt(a) if a >= 0 else math.nan


def _ln(a: float) -> float:
    if a == 0:
        return -math.inf
    return math.log(a) if a > 0 else math.nan


def _guarded(fn: Callable[..., float]) -> Callable[..., float]:
    def call(*args: float) -> float:
        try:
            return fn(*args)
        except OverflowError:
            return math.inf
        except ValueError:
            return math.nan
    return call


UNARY_OPERATIONS: dict[str, Callable[[float], float]] = {
    "neg": lambda a: -a,
    "sqrt": _sqrt,
    "cbrt": cube_root,
    "sin": _guarded(math.sin),
    "cos": _guarded(math.cos),
    "tan": _guarded(math.tan),
    "abs": abs,
    "fact": factorial,
    "square": lambda a: a * a,
    "cube": lambda a: a * a * a,
    "percent": lambda a: a * 100,
    "ln": _ln,
    "exp": safe_exp,
}

BINARY_OPERATIONS: dict[str, Callable[[float, float], float]] = {
    "+": lambda a, b: a + b,
    "-": lambda a, b: a - b,
    "*": lambda a, b: a * b,
    "/": _divide,
    "pow": safe_pow,
    "pyth": _guarded(math.hypot),
    "mod": _modulo,
}

# Binary operators written infix when rendered
INFIX_OPERATORS = ("+", "-", "*", "/")

_ARITHMETIC_TO_NODE = {
    ArithmeticOperator.ADD: "+",
    ArithmeticOperator.SUBTRACT: "-",
    ArithmeticOperator.MULTIPLY: "*",
    ArithmeticOperator.DIVIDE: "/",
}

_UNARY_FUNCTION_TO_NODE = {
    FunctionOperator.SQRT: "sqrt",
    FunctionOperator.CBRT: "cbrt",
    FunctionOperator.SIN: "sin",
    FunctionOperator.COS: "cos",
    FunctionOperator.TAN: "tan",
    FunctionOperator.MOD: "abs",
    FunctionOperator.FACTORIAL: "fact",
    FunctionOperator.SQUARE: "square",
    FunctionOperator.CUBE: "cube",
    FunctionOperator.PERCENT: "percent",
    FunctionOperator.LN: "ln",
    FunctionOperator.EXP: "exp",
}

_BINARY_FUNCTION_TO_NODE = {
    FunctionOperator.POWER: "pow",
    FunctionOperator.PYTH: "pyth",
    FunctionOperator.MODULUS: "mod",
}


# =============================================================================
# Building
# =============================================================================

def wrap_arithmetic(expr: Expression, operator: ArithmeticOperator, value: float) -> Expression:
    """Wrap expr as (expr <op> value)."""
    return BinaryOp(_ARITHMETIC_TO_NODE[ArithmeticOperator(operator)], expr, Constant(value))


def wrap_function(
    expr: Expression,
    operator: FunctionOperator,
    second_value: float | None = None,
) -> Expression:
    """
    Wrap expr in a function node.

    1/x becomes (1 / expr). A binary function without its second value
    leaves the expression unchanged.
    """
    operator = FunctionOperator(operator)
    if operator == FunctionOperator.RECIPROCAL:
        return BinaryOp("/", Constant(1), expr)
    if operator in _BINARY_FUNCTION_TO_NODE:
        if second_value is None:
            return expr
        return BinaryOp(_BINARY_FUNCTION_TO_NODE[operator], expr, Constant(second_value))
    return UnaryOp(_UNARY_FUNCTION_TO_NODE[operator], expr)


# =============================================================================
# Evaluation
# =============================================================================

class ExpressionEvaluator:
    """
    Recursive evaluator for expression trees.

    Raises ExpressionEvaluationFault for malformed trees (unknown node
    types or operators). Numeric trouble never raises.
    """

    def evaluate(self, expr: Expression, x_value: float) -> float:
        if isinstance(expr, Variable):
            return float(x_value)

        if isinstance(expr, Constant):
            return float(expr.value)

        if isinstance(expr, UnaryOp):
            operation = UNARY_OPERATIONS.get(expr.op)
            if operation is None:
                raise ExpressionEvaluationFault(f"Unknown unary operator: {expr.op}")
            return operation(self.evaluate(expr.child, x_value))

        if isinstance(expr, BinaryOp):
            operation = BINARY_OPERATIONS.get(expr.op)
            if operation is None:
                raise ExpressionEvaluationFault(f"Unknown binary operator: {expr.op}")
            left = self.evaluate(expr.left, x_value)
            right = self.evaluate(expr.right, x_value)
            return operation(left, right)

        raise ExpressionEvaluationFault(f"Not an expression node: {expr!r}")


def evaluate_algebraic_expression(expression: Expression | str, x_value: float) -> float:
    """
    Evaluate an algebra function at x.

    Args:
        expression: Expression tree, or its rendered text
        x_value: Value bound to x

    Returns:
        Result rounded to 3 decimals; x_value itself when the result is not
        finite; 0 when the expression cannot be parsed or evaluated.
    """
    try:
        tree = parse_expression(expression) if isinstance(expression, str) else expression
        result = ExpressionEvaluator().evaluate(tree, x_value)
    except (ExpressionEvaluationFault, RecursionError) as e:
        logger.warning("Algebra function could not be evaluated: %s", e)
        return 0

    if not math.isfinite(result):
        return x_value
    return round3(result)


# =============================================================================
# Rendering and parsing
# =============================================================================

def render(expr: Expression) -> str:
    """Render a tree as text that parse_expression accepts."""
    if isinstance(expr, Variable):
        return expr.name
    if isinstance(expr, Constant):
        return format_value(expr.value)
    if isinstance(expr, UnaryOp):
        if expr.op == "neg":
            return f"-{render(expr.child)}"
        return f"{expr.op}({render(expr.child)})"
    if isinstance(expr, BinaryOp):
        if expr.op in INFIX_OPERATORS:
            return f"({render(expr.left)} {expr.op} {render(expr.right)})"
        return f"{expr.op}({render(expr.left)}, {render(expr.right)})"
    raise ExpressionEvaluationFault(f"Not an expression node: {expr!r}")


_TOKEN_RE = re.compile(
    r"\s*(?:(?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
    r"|(?P<name>[A-Za-z_]\w*)"
    r"|(?P<symbol>[-+*/^(),]))"
)

_NAMED_CONSTANTS = {"pi": math.pi, "e": math.e}


class ExpressionSyntaxError(ExpressionEvaluationFault):
    """Text is not a valid algebra function."""


class _Parser:
    """
    Recursive descent parser.

    expr  := term (('+' | '-') term)*
    term  := unary (('*' | '/') unary)*
    unary := ('-' | '+') unary | power
    power := atom ('^' unary)?
    atom  := number | name | name '(' expr (',' expr)* ')' | '(' expr ')'
    """

    def __init__(self, text: str):
        self.tokens = self._tokenize(text)
        self.pos = 0

    @staticmethod
    def _tokenize(text: str) -> list[tuple[str, str]]:
        tokens = []
        pos = 0
        text = text.rstrip()
        while pos < len(text):
            match = _TOKEN_RE.match(text, pos)
            if not match or match.end() == pos:
                raise ExpressionSyntaxError(f"Unexpected character at {pos}: {text[pos:]!r}")
            kind = match.lastgroup
            tokens.append((kind, match.group(kind)))
            pos = match.end()
        return tokens

    def _peek(self) -> tuple[str, str] | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _accept(self, symbol: str) -> bool:
        token = self._peek()
        if token == ("symbol", symbol):
            self.pos += 1
            return True
        return False

    def _expect(self, symbol: str):
        if not self._accept(symbol):
            raise ExpressionSyntaxError(f"Expected {symbol!r} at token {self.pos}")

    def parse(self) -> Expression:
        if not self.tokens:
            raise ExpressionSyntaxError("Empty expression")
        expr = self._expr()
        if self._peek() is not None:
            raise ExpressionSyntaxError(f"Unexpected token {self._peek()[1]!r}")
        return expr

    def _expr(self) -> Expression:
        expr = self._term()
        while True:
            if self._accept("+"):
                expr = BinaryOp("+", expr, self._term())
            elif self._accept("-"):
                expr = BinaryOp("-", expr, self._term())
            else:
                return expr

    def _term(self) -> Expression:
        expr = self._unary()
        while True:
            if self._accept("*"):
                expr = BinaryOp("*", expr, self._unary())
            elif self._accept("/"):
                expr = BinaryOp("/", expr, self._unary())
            else:
                return expr

    def _unary(self) -> Expression:
        if self._accept("-"):
            operand = self._unary()
            if isinstance(operand, Constant):
                return Constant(-operand.value)
            return UnaryOp("neg", operand)
        if self._accept("+"):
            return self._unary()
        return self._power()

    def _power(self) -> Expression:
        base = self._atom()
        if self._accept("^"):
            return BinaryOp("pow", base, self._unary())
        return base

    def _atom(self) -> Expression:
        token = self._peek()
        if token is None:
            raise ExpressionSyntaxError("Unexpected end of expression")
        kind, text = token
        self.pos += 1

        if kind == "number":
            return Constant(float(text))

        if kind == "name":
            if self._accept("("):
                args = [self._expr()]
                while self._accept(","):
                    args.append(self._expr())
                self._expect(")")
                return self._call(text, args)
            if text == VARIABLE_SYMBOL:
                return Variable()
            if text in _NAMED_CONSTANTS:
                return Constant(_NAMED_CONSTANTS[text])
            raise ExpressionSyntaxError(f"Unknown name: {text}")

        if text == "(":
            expr = self._expr()
            self._expect(")")
            return expr

        raise ExpressionSyntaxError(f"Unexpected token {text!r}")

    @staticmethod
    def _call(name: str, args: list[Expression]) -> Expression:
        if name in UNARY_OPERATIONS and len(args) == 1:
            return UnaryOp(name, args[0])
        if name in BINARY_OPERATIONS and len(args) == 2:
            return BinaryOp(name, args[0], args[1])
        raise ExpressionSyntaxError(f"Unknown function {name} with {len(args)} argument(s)")


def parse_expression(text: str) -> Expression:
    """Parse rendered algebra function text back into a tree."""
    return _Parser(text).parse()
