"""
Evaluation outcomes, classification of raw results and result formatting.

An evaluation ends in exactly one of ``Success`` (a finite float) or ``Failure``
(one of the ``ErrorKind`` categories). Numbers are rendered the way a JavaScript
``Number`` prints itself, so results look the same as on the keypad display.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Tuple, Union

from .errors import ErrorKind

logger = logging.getLogger(__name__)

SIGNIFICANT_DIGITS = 12
ZERO_THRESHOLD = 1e-12

# --------------------------
# Outcomes
# --------------------------


@dataclass(frozen=True)
class Success:
    """A finite numeric result."""
    value: float

    is_success = True

    @property
    def text(self) -> str:
        return format_result(self.value)


@dataclass(frozen=True)
class Failure:
    """A classified evaluation error."""
    kind: ErrorKind

    is_success = False

    @property
    def label(self) -> str:
        return self.kind.label


EvaluationOutcome = Union[Success, Failure]

# --------------------------
# Classification
# --------------------------


def classify(raw: Any) -> EvaluationOutcome:
    """Map a raw evaluation result to an outcome."""
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        logger.debug("Non-numeric result %r", raw)
        return Failure(ErrorKind.INVALID_FORMAT)
    value = float(raw)
    if math.isnan(value):
        return Failure(ErrorKind.INVALID_INPUT)
    if math.isinf(value):
        return Failure(ErrorKind.OVERFLOW)
    if not math.isfinite(value):
        return Failure(ErrorKind.GENERIC)
    return Success(value)

# --------------------------
# Formatting
# --------------------------


def _shortest_digits(value: float) -> Tuple[str, int]:
    """Return the shortest round-trip digit string of ``abs(value)`` and the
    position of the decimal point relative to its first digit."""
    _, digits, exponent = Decimal(repr(abs(value))).normalize().as_tuple()
    text = ''.join(str(d) for d in digits)
    return text, exponent + len(text)


def number_to_text(value: float) -> str:
    """Render a finite float without rounding, e.g. ``0.1``, ``42``, ``1e+21``."""
    if value == 0:
        return "0"
    sign = '-' if value < 0 else ''
    digits, point = _shortest_digits(value)
    count = len(digits)
    if count <= point <= 21:
        body = digits + '0' * (point - count)
    elif 0 < point <= 21:
        body = digits[:point] + '.' + digits[point:]
    elif -6 < point <= 0:
        body = '0.' + '0' * -point + digits
    else:
        exp = point - 1
        exp_text = f"e+{exp}" if exp >= 0 else f"e-{-exp}"
        mantissa = digits if count == 1 else digits[0] + '.' + digits[1:]
        body = mantissa + exp_text
    return sign + body


def _round_significant(value: float) -> float:
    # Exact binary value, ties away from zero: 100000000002.5 -> 100000000003.
    exact = Decimal(value)
    exponent = exact.adjusted() - (SIGNIFICANT_DIGITS - 1)
    return float(exact.quantize(Decimal(1).scaleb(exponent), rounding=ROUND_HALF_UP))


def format_result(value: float) -> str:
    """Format a finite result with at most 12 significant digits.

    Magnitudes below 1e-12 collapse to ``"0"``; trailing zeros are dropped.
    """
    if abs(value) < ZERO_THRESHOLD:
        return "0"
    return number_to_text(_round_significant(value))
