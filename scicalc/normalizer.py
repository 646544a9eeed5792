"""
Normalization of calculator notation into the canonical form understood by the parser.

Keypad input uses display glyphs (×, ÷, π, √ ...) and function prefixes that open a
parenthesis (``sin(``). The normalizer rewrites them in a single left-to-right pass over
recognized lexemes, closes any parentheses left open, and flags denominators that are
literally zero so they can be reported before evaluation.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Tuple

logger = logging.getLogger(__name__)

# --------------------------
# Lexeme table
# --------------------------

# Display lexeme -> canonical spelling. Multi-character lexemes must come first.
_LEXEMES: Tuple[Tuple[str, str], ...] = (
    ('sin(', 'sin_angle('),
    ('cos(', 'cos_angle('),
    ('tan(', 'tan_angle('),
    ('log(', 'log10('),
    ('ln(', 'ln('),
    ('√(', 'sqrt('),
    ('×', '*'),
    ('÷', '/'),
    ('%', '/100'),
    ('π', 'pi'),
    ('e', 'e'),
    ('^', '**'),
)

# '/0' not followed by another digit or a decimal point.
_ZERO_DENOMINATOR = re.compile(r'/0(?![\d.])')
# '/0.' or '/0.000' closed by end of text or an arithmetic operator.
_ZERO_DECIMAL_DENOMINATOR = re.compile(r'/0\.0*($|[+\-*/])')


@dataclass(frozen=True)
class CanonicalForm:
    """Expression text ready for parsing plus the structural zero-division flag."""
    text: str
    divides_by_zero: bool = False


def rewrite_lexemes(expression: str) -> str:
    """Replace every recognized display lexeme with its canonical spelling.

    Characters that are not part of a lexeme are copied unchanged; the parser
    decides whether they are valid.
    """
    out: List[str] = []
    pos = 0
    length = len(expression)
    while pos < length:
        for lexeme, canonical in _LEXEMES:
            if expression.startswith(lexeme, pos):
                out.append(canonical)
                pos += len(lexeme)
                break
        else:
            out.append(expression[pos])
            pos += 1
    return ''.join(out)


def balance_parentheses(text: str) -> str:
    """Append a ')' for every '(' without a partner. Excess ')' are left alone."""
    missing = text.count('(') - text.count(')')
    if missing > 0:
        return text + ')' * missing
    return text


def has_zero_denominator(text: str) -> bool:
    return bool(_ZERO_DENOMINATOR.search(text) or _ZERO_DECIMAL_DENOMINATOR.search(text))


def normalize(expression: str) -> CanonicalForm:
    """Turn calculator notation into a ``CanonicalForm``."""
    text = balance_parentheses(rewrite_lexemes(expression))
    divides_by_zero = has_zero_denominator(text)
    logger.debug("Normalized %r -> %r (zero denominator: %s)", expression, text, divides_by_zero)
    return CanonicalForm(text=text, divides_by_zero=divides_by_zero)
