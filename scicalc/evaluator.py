# AST evaluator with angle-aware trigonometry and IEEE-754 number semantics.
#
# Arithmetic never raises for numeric reasons: division by zero, overflow and
# domain errors produce inf or nan exactly as a double-precision calculator
# would, and scicalc.outcome.classify turns those into user-facing errors.

from __future__ import annotations

import logging
import math
import re
from enum import Enum
from typing import Callable, Dict, Optional, Union

from .errors import CalculatorError, ErrorKind, EvalError, LexerError, ParseError
from .normalizer import CanonicalForm, normalize
from .outcome import EvaluationOutcome, Failure, classify
from .parser import ASTNode, BinaryOp, Call, Name, Number, UnaryOp, parse

logger = logging.getLogger(__name__)

# --------------------------
# Angle units
# --------------------------


class AngleUnit(Enum):
    DEGREES = 'deg'
    RADIANS = 'rad'

    @property
    def factor(self) -> float:
        """Multiplier that converts an argument in this unit to radians."""
        return math.pi / 180 if self is AngleUnit.DEGREES else 1.0

    def toggled(self) -> "AngleUnit":
        return AngleUnit.RADIANS if self is AngleUnit.DEGREES else AngleUnit.DEGREES

# --------------------------
# IEEE-754 helpers
# --------------------------


def _divide(left: float, right: float) -> float:
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


def _power(base: float, exponent: float) -> float:
    try:
        return math.pow(base, exponent)
    except OverflowError:
        if base < 0 and float(exponent).is_integer() and exponent % 2 == 1:
            return -math.inf
        return math.inf
    except ValueError:
        # 0 to a negative power, or a negative base with a fractional exponent
        if base == 0:
            return math.inf
        return math.nan


def _sqrt(x: float) -> float:
    if x < 0:
        return math.nan
    return math.sqrt(x)


def _logarithm(func: Callable[[float], float]) -> Callable[[float], float]:
    def wrapped(x: float) -> float:
        if x == 0:
            return -math.inf
        if x < 0:
            return math.nan
        return func(x)
    return wrapped


def _angle_aware(func: Callable[[float], float], factor: float) -> Callable[[float], float]:
    def wrapped(x: float) -> float:
        scaled = x * factor
        if math.isinf(scaled):
            return math.nan
        return func(scaled)
    return wrapped

# --------------------------
# Builtins
# --------------------------

_BUILTINS: Dict[str, Callable[[float], float]] = {}


def _register(name: str, func: Callable[[float], float]) -> None:
    _BUILTINS[name] = func


_register('log10', _logarithm(math.log10))
_register('ln', _logarithm(math.log))
_register('sqrt', _sqrt)

_TRIG: Dict[str, Callable[[float], float]] = {
    'sin_angle': math.sin,
    'cos_angle': math.cos,
    'tan_angle': math.tan,
}

CONSTANTS: Dict[str, float] = {
    'pi': math.pi,
    'e': math.e,
}

# A constant glued to digits (π2 -> pi2, e5) names nothing but is not an
# error by itself: it evaluates to an undefined value (None), which is NaN
# inside arithmetic and "Invalid format" as a final result.
_CONSTANT_WITH_DIGITS = re.compile(r'(?:pi|e)\d+')

Value = Union[float, None]


def _number(value: Value) -> float:
    return math.nan if value is None else value

# --------------------------
# Evaluator
# --------------------------


class Evaluator:
    """Evaluates AST nodes under a fixed angle unit."""

    def __init__(self, angle_unit: AngleUnit = AngleUnit.DEGREES):
        self.angle_unit = angle_unit
        self.functions: Dict[str, Callable[[float], float]] = dict(_BUILTINS)
        for name, func in _TRIG.items():
            self.functions[name] = _angle_aware(func, angle_unit.factor)

    def eval(self, node: ASTNode) -> Value:
        """Evaluate given AST node and return the result or raise EvalError.

        Returns None for an undefined value such as ``pi2``.
        """
        if isinstance(node, Number):
            return node.value
        if isinstance(node, Name):
            if node.name in CONSTANTS:
                return CONSTANTS[node.name]
            if _CONSTANT_WITH_DIGITS.fullmatch(node.name):
                return None
            raise EvalError(f"Undefined name: {node.name}")
        if isinstance(node, UnaryOp):
            val = _number(self.eval(node.operand))
            if node.op == '+':
                return val
            if node.op == '-':
                return -val
            raise EvalError(f"Unknown unary operator: {node.op}")
        if isinstance(node, BinaryOp):
            left = _number(self.eval(node.left))
            right = _number(self.eval(node.right))
            op = node.op
            if op == '+':
                return left + right
            if op == '-':
                return left - right
            if op == '*':
                return left * right
            if op == '/':
                return _divide(left, right)
            if op == '**':
                return _power(left, right)
            raise EvalError(f"Unknown binary operator: {op}")
        if isinstance(node, Call):
            func = None
            if isinstance(node.callee, Name):
                func = self.functions.get(node.callee.name)
            if func is None:
                raise EvalError(f"Not a function: {node.callee}")
            # An empty call such as sqrt() receives NaN.
            if node.arg is None:
                return func(math.nan)
            return func(_number(self.eval(node.arg)))
        raise EvalError(f"Unsupported AST node: {type(node).__name__}")


def evaluate(canonical: CanonicalForm, angle_unit: AngleUnit = AngleUnit.DEGREES) -> EvaluationOutcome:
    """Evaluate a canonical form. Every fault is returned as a ``Failure``."""
    if canonical.divides_by_zero:
        logger.debug("Literal zero denominator in %r", canonical.text)
        return Failure(ErrorKind.DIVIDE_BY_ZERO)
    try:
        ast = parse(canonical.text)
        raw = Evaluator(angle_unit).eval(ast)
    except (LexerError, ParseError) as e:
        logger.debug("Invalid format %r: %s", canonical.text, e)
        return Failure(ErrorKind.INVALID_FORMAT)
    except CalculatorError as e:
        logger.debug("Evaluation error %r: %s", canonical.text, e)
        return Failure(ErrorKind.GENERIC)
    except Exception as e:
        logger.warning("Unexpected error evaluating %r: %s", canonical.text, e)
        return Failure(ErrorKind.GENERIC)
    return classify(raw)


def calculate(expression: str, angle_unit: AngleUnit = AngleUnit.DEGREES) -> Optional[EvaluationOutcome]:
    """Normalize and evaluate calculator notation. Empty input has no outcome."""
    if not expression:
        return None
    return evaluate(normalize(expression), angle_unit)
