"""Expression engine for a keypad scientific calculator."""

from .errors import CalculatorError, ErrorKind, EvalError, LexerError, ParseError
from .evaluator import AngleUnit, Evaluator, calculate, evaluate
from .normalizer import CanonicalForm, normalize
from .outcome import EvaluationOutcome, Failure, Success, classify, format_result, number_to_text
from .session import (
    ActionKind,
    CalculatorSession,
    Empty,
    Error,
    HistoryEntry,
    KeypadAction,
    Live,
)

__version__ = "1.0.0"
