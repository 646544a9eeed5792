"""
Keypad-driven calculator session.

``CalculatorSession`` owns the pending expression, the live preview, the angle unit,
the memory register and the history of committed calculations. A presentation layer
feeds it ``KeypadAction`` objects (or keypad labels through ``press``) and renders
``get_display_text()`` / ``get_preview_text()`` afterwards.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import ErrorKind
from .evaluator import AngleUnit, calculate
from .outcome import number_to_text

logger = logging.getLogger(__name__)

DIGITS = '0123456789.'
CONSTANTS = ('π', 'e')
PARENS = ('(', ')')
BINARY_OPERATORS = ('+', '-', '×', '÷')
OPERATORS = BINARY_OPERATORS + ('%', '^')
FUNCTIONS = ('sin(', 'cos(', 'tan(', 'log(', 'ln(', '√(')

# Inputs accepted on an empty expression.
STARTERS = frozenset(('-',) + FUNCTIONS + CONSTANTS)

_PREVIEW_TRIGGER = re.compile(r'[+\-×÷%^]|sin|cos|tan|log|ln|√')

# ----- Keypad actions -----


class ActionKind(Enum):
    INPUT = 'input'
    OPERATOR = 'operator'
    SMART_PAREN = 'smart_paren'
    CLEAR = 'clear'
    BACKSPACE = 'backspace'
    EQUALS = 'equals'
    TOGGLE_SIGN = 'toggle_sign'
    TOGGLE_ANGLE = 'toggle_angle'
    MEMORY_CLEAR = 'memory_clear'
    MEMORY_RECALL = 'memory_recall'
    MEMORY_ADD = 'memory_add'
    MEMORY_SUBTRACT = 'memory_subtract'


@dataclass(frozen=True)
class KeypadAction:
    """A single key press. ``value`` carries the text to insert, if any."""
    kind: ActionKind
    value: str = ''

    @classmethod
    def digit(cls, value: str) -> "KeypadAction":
        if len(value) != 1 or value not in DIGITS:
            raise ValueError(f"Not a digit key: {value!r}")
        return cls(ActionKind.INPUT, value)

    @classmethod
    def constant(cls, value: str) -> "KeypadAction":
        if value not in CONSTANTS:
            raise ValueError(f"Not a constant key: {value!r}")
        return cls(ActionKind.INPUT, value)

    @classmethod
    def paren(cls, value: str) -> "KeypadAction":
        if value not in PARENS:
            raise ValueError(f"Not a parenthesis key: {value!r}")
        return cls(ActionKind.INPUT, value)

    @classmethod
    def operator(cls, value: str) -> "KeypadAction":
        if value not in OPERATORS:
            raise ValueError(f"Not an operator key: {value!r}")
        return cls(ActionKind.OPERATOR, value)

    @classmethod
    def function(cls, name: str) -> "KeypadAction":
        prefix = name if name.endswith('(') else name + '('
        if prefix not in FUNCTIONS:
            raise ValueError(f"Not a function key: {name!r}")
        return cls(ActionKind.OPERATOR, prefix)

    @classmethod
    def smart_paren(cls) -> "KeypadAction":
        return cls(ActionKind.SMART_PAREN)

    @classmethod
    def clear(cls) -> "KeypadAction":
        return cls(ActionKind.CLEAR)

    @classmethod
    def backspace(cls) -> "KeypadAction":
        return cls(ActionKind.BACKSPACE)

    @classmethod
    def equals(cls) -> "KeypadAction":
        return cls(ActionKind.EQUALS)

    @classmethod
    def toggle_sign(cls) -> "KeypadAction":
        return cls(ActionKind.TOGGLE_SIGN)

    @classmethod
    def toggle_angle(cls) -> "KeypadAction":
        return cls(ActionKind.TOGGLE_ANGLE)

    @classmethod
    def memory_clear(cls) -> "KeypadAction":
        return cls(ActionKind.MEMORY_CLEAR)

    @classmethod
    def memory_recall(cls) -> "KeypadAction":
        return cls(ActionKind.MEMORY_RECALL)

    @classmethod
    def memory_add(cls) -> "KeypadAction":
        return cls(ActionKind.MEMORY_ADD)

    @classmethod
    def memory_subtract(cls) -> "KeypadAction":
        return cls(ActionKind.MEMORY_SUBTRACT)

    @classmethod
    def from_key(cls, label: str) -> "KeypadAction":
        """Map a keypad label (or a typed alias such as ``*`` or ``sqrt``) to an action."""
        key = label.strip()
        if len(key) == 1 and key in DIGITS:
            return cls.digit(key)
        if key in ('pi', 'π'):
            return cls.constant('π')
        if key in CONSTANTS:
            return cls.constant(key)
        if key in PARENS:
            return cls.paren(key)
        if key in _OPERATOR_ALIASES:
            return cls.operator(_OPERATOR_ALIASES[key])
        if key in FUNCTION_ALIASES:
            return cls.function(FUNCTION_ALIASES[key])
        command = key.upper()
        if command in _COMMAND_KEYS:
            return _COMMAND_KEYS[command]()
        raise ValueError(f"Unknown key: {label!r}")


_OPERATOR_ALIASES: Dict[str, str] = {
    '+': '+', '-': '-', '×': '×', '*': '×', '÷': '÷', '/': '÷', '%': '%', '^': '^',
}

FUNCTION_ALIASES: Dict[str, str] = {
    'sin': 'sin(', 'sin(': 'sin(',
    'cos': 'cos(', 'cos(': 'cos(',
    'tan': 'tan(', 'tan(': 'tan(',
    'log': 'log(', 'log(': 'log(',
    'ln': 'ln(', 'ln(': 'ln(',
    '√': '√(', '√(': '√(', 'sqrt': '√(', 'sqrt(': '√(',
}

_COMMAND_KEYS: Dict[str, Callable[[], KeypadAction]] = {
    'C': KeypadAction.clear,
    'AC': KeypadAction.clear,
    '⌫': KeypadAction.backspace,
    'DEL': KeypadAction.backspace,
    'BS': KeypadAction.backspace,
    '=': KeypadAction.equals,
    '+/-': KeypadAction.toggle_sign,
    '±': KeypadAction.toggle_sign,
    'DEG': KeypadAction.toggle_angle,
    'RAD': KeypadAction.toggle_angle,
    'ANGLE': KeypadAction.toggle_angle,
    '( )': KeypadAction.smart_paren,
    '()': KeypadAction.smart_paren,
    'MC': KeypadAction.memory_clear,
    'MR': KeypadAction.memory_recall,
    'M+': KeypadAction.memory_add,
    'M-': KeypadAction.memory_subtract,
}

KEY_LABELS = sorted(
    set(DIGITS) | {'π', 'pi', 'e', '(', ')'} | set(_OPERATOR_ALIASES) | set(FUNCTION_ALIASES) | set(_COMMAND_KEYS)
)

# ----- Expression states -----


@dataclass(frozen=True)
class Empty:
    pass


@dataclass(frozen=True)
class Live:
    text: str


@dataclass(frozen=True)
class Error:
    kind: ErrorKind


ExpressionState = Union[Empty, Live, Error]

EMPTY = Empty()

# ----- History -----


class HistoryEntry(BaseModel):
    """A committed calculation."""
    model_config = ConfigDict(frozen=True)

    expression: str
    result: str
    timestamp: int = Field(..., ge=0, description="Milliseconds since the epoch")

    @field_validator('expression', 'result')
    @classmethod
    def must_not_be_empty(cls, v: str) -> str:
        if not v:
            raise ValueError('History entries need an expression and a result')
        return v


def _now_ms() -> int:
    return int(time.time() * 1000)

# ----- Session -----


class CalculatorSession:
    """State machine behind the keypad."""

    def __init__(self, angle_unit: AngleUnit = AngleUnit.DEGREES,
                 clock: Optional[Callable[[], int]] = None):
        self._state: ExpressionState = EMPTY
        self._preview: Optional[str] = None
        self._angle_unit = angle_unit
        self._memory = 0.0
        self._history: List[HistoryEntry] = []
        self._clock = clock or _now_ms
        self._handlers: Dict[ActionKind, Callable[[KeypadAction], None]] = {
            ActionKind.INPUT: self._on_input,
            ActionKind.OPERATOR: self._on_operator,
            ActionKind.SMART_PAREN: self._on_smart_paren,
            ActionKind.CLEAR: self._on_clear,
            ActionKind.BACKSPACE: self._on_backspace,
            ActionKind.EQUALS: self._on_equals,
            ActionKind.TOGGLE_SIGN: self._on_toggle_sign,
            ActionKind.TOGGLE_ANGLE: self._on_toggle_angle,
            ActionKind.MEMORY_CLEAR: self._on_memory_clear,
            ActionKind.MEMORY_RECALL: self._on_memory_recall,
            ActionKind.MEMORY_ADD: self._on_memory_add,
            ActionKind.MEMORY_SUBTRACT: self._on_memory_subtract,
        }

    # --- public interface ---

    @property
    def state(self) -> ExpressionState:
        return self._state

    @property
    def angle_unit(self) -> AngleUnit:
        return self._angle_unit

    def on_keypad_action(self, action: KeypadAction) -> None:
        handler = self._handlers.get(action.kind)
        if handler is None:
            raise ValueError(f"Unsupported action: {action.kind}")
        handler(action)
        self._refresh_preview()

    def press(self, label: str) -> None:
        """Apply the action bound to a keypad label."""
        self.on_keypad_action(KeypadAction.from_key(label))

    def get_display_text(self) -> str:
        if isinstance(self._state, Live):
            return self._state.text
        if isinstance(self._state, Error):
            return self._state.kind.label
        return "0"

    def get_preview_text(self) -> Optional[str]:
        return self._preview

    def get_history(self) -> List[HistoryEntry]:
        return list(self._history)

    def clear_history(self) -> None:
        logger.info("Clearing %d history entries", len(self._history))
        self._history.clear()

    def get_memory(self) -> float:
        return self._memory

    # --- helpers ---

    def _text(self) -> str:
        """Live text, with an error or empty state read as ''."""
        if isinstance(self._state, Live):
            return self._state.text
        return ''

    def _set_text(self, text: str) -> None:
        self._state = Live(text) if text else EMPTY

    def _refresh_preview(self) -> None:
        text = self._text()
        if not text or not _PREVIEW_TRIGGER.search(text):
            self._preview = None
            return
        outcome = calculate(text, self._angle_unit)
        self._preview = outcome.text if outcome is not None and outcome.is_success else None

    def _current_value(self) -> Optional[float]:
        """Value of the pending expression (0 when empty), or None if it does not evaluate."""
        if isinstance(self._state, Error):
            return None
        outcome = calculate(self._text() or '0', self._angle_unit)
        if outcome is None or not outcome.is_success:
            return None
        return float(outcome.text)

    # --- handlers ---

    def _on_input(self, action: KeypadAction) -> None:
        self._set_text(self._text() + action.value)

    def _on_operator(self, action: KeypadAction) -> None:
        op = action.value
        base = self._text()
        if not base and op not in STARTERS:
            logger.debug("Rejected leading operator %r", op)
            self._set_text(base)
            return
        if base and base[-1] in BINARY_OPERATORS and op in BINARY_OPERATORS:
            self._set_text(base[:-1] + op)
        else:
            self._set_text(base + op)

    def _on_smart_paren(self, action: KeypadAction) -> None:
        text = self._text()
        unclosed = text.count('(') > text.count(')')
        if unclosed and not (text and text[-1] in BINARY_OPERATORS + ('(',)):
            self._set_text(text + ')')
        else:
            self._set_text(text + '(')

    def _on_clear(self, action: KeypadAction) -> None:
        self._state = EMPTY

    def _on_backspace(self, action: KeypadAction) -> None:
        text = self._text()
        for prefix in FUNCTIONS:
            if text.endswith(prefix):
                self._set_text(text[:-len(prefix)])
                return
        self._set_text(text[:-1])

    def _on_equals(self, action: KeypadAction) -> None:
        if not isinstance(self._state, Live):
            return
        expression = self._state.text
        outcome = calculate(expression, self._angle_unit)
        if outcome.is_success:
            entry = HistoryEntry(expression=expression, result=outcome.text, timestamp=self._clock())
            self._history.append(entry)
            logger.info("Committed %s = %s", expression, entry.result)
            self._state = Live(entry.result)
        else:
            logger.info("Commit of %r failed: %s", expression, outcome.label)
            self._state = Error(outcome.kind)

    def _on_toggle_sign(self, action: KeypadAction) -> None:
        text = self._text()
        if text.startswith('-'):
            self._set_text(text[1:])
        elif not text:
            self._set_text('-')
        else:
            self._set_text('-' + text)

    def _on_toggle_angle(self, action: KeypadAction) -> None:
        self._angle_unit = self._angle_unit.toggled()
        logger.info("Angle unit is now %s", self._angle_unit.value)

    def _on_memory_clear(self, action: KeypadAction) -> None:
        self._memory = 0.0
        logger.info("Memory cleared")

    def _on_memory_recall(self, action: KeypadAction) -> None:
        self._set_text(self._text() + number_to_text(self._memory))

    def _on_memory_add(self, action: KeypadAction) -> None:
        value = self._current_value()
        if value is not None:
            self._memory += value
            logger.info("M+ %s -> %s", value, self._memory)

    def _on_memory_subtract(self, action: KeypadAction) -> None:
        value = self._current_value()
        if value is not None:
            self._memory -= value
            logger.info("M- %s -> %s", value, self._memory)
