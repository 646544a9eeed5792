# Terminal front-end for the keypad calculator.
#
# Each input line is a sequence of keypad presses ("12 + sin 30 =" or "12+sin(30)=")
# fed to a CalculatorSession; after every line the display, the live preview and the
# memory indicator are printed. Lines starting with ':' are REPL commands.

from __future__ import annotations

import argparse
import logging
from typing import Dict, List, Optional, Tuple

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import InMemoryHistory

from .config import Settings, load_settings
from .evaluator import AngleUnit
from .outcome import number_to_text
from .session import KEY_LABELS, CalculatorSession, KeypadAction, FUNCTION_ALIASES

logger = logging.getLogger(__name__)

# Labels recognized inside a run of characters such as "2*sin(30)".
_INLINE_KEYS = sorted(
    [k for k in FUNCTION_ALIASES if len(k) > 1] + ['pi'],
    key=len,
    reverse=True,
)

_SMART_PAREN = '( )'

_HELP_TOPICS: Dict[str, str] = {
    'general': (
        "Keypad calculator help:\n"
        "Type key presses separated by spaces, or run them together.\n"
        "Examples:\n"
        "  12+7=            -> 19\n"
        "  sin(90) =        -> 1 (degrees)\n"
        "  2 ^ 10 =         -> 1024\n"
        "  50%              -> preview 0.5\n"
        "Commands:\n"
        "  :help [keys]           show help\n"
        "  :history               show committed calculations\n"
        "  :clear-history         forget committed calculations\n"
        "  :memory                show the memory register\n"
        "  :angle                 show the angle unit\n"
        "  :exit                  exit\n"
    ),
    'keys': (
        "Keys:\n"
        "  0-9 .  π (pi) e  ( and )      input\n"
        "  + - × (*) ÷ (/) % ^           operators\n"
        "  sin cos tan log ln √ (sqrt)   functions, open a parenthesis\n"
        "  C  DEL  =  +/-  ( )           clear, backspace, equals, sign, smart parenthesis\n"
        "  DEG (RAD)                     toggle degrees/radians\n"
        "  MC MR M+ M-                   memory\n"
    ),
}


def show_help(topic: Optional[str] = None) -> str:
    """Return help text for topic or general if None."""
    if not topic:
        return _HELP_TOPICS['general']
    return _HELP_TOPICS.get(topic.lower(), f"No help available for topic '{topic}'")


def split_keys(line: str) -> List[str]:
    """Split an input line into keypad labels.

    Whitespace-separated words that are labels on their own are kept whole
    ("DEL", "M+", "sqrt"); other words are broken into single characters, with
    function names and "pi" kept together. The smart parenthesis label "( )"
    is recognized as written, spaces included.
    """
    keys: List[str] = []
    segments = line.split(_SMART_PAREN)
    for index, segment in enumerate(segments):
        if index:
            keys.append(_SMART_PAREN)
        keys.extend(_split_segment(segment))
    return keys


def _split_segment(segment: str) -> List[str]:
    keys: List[str] = []
    for word in segment.split():
        try:
            KeypadAction.from_key(word)
        except ValueError:
            pass
        else:
            keys.append(word)
            continue
        pos = 0
        while pos < len(word):
            for key in _INLINE_KEYS:
                if word.startswith(key, pos):
                    keys.append(key)
                    pos += len(key)
                    break
            else:
                keys.append(word[pos])
                pos += 1
    return keys


class KeypadREPL:
    """Read-Eval-Print Loop driving a CalculatorSession."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self.calculator = CalculatorSession(angle_unit=self.settings.angle_unit)
        self._prompt_session: Optional[PromptSession] = None

    def render(self) -> str:
        """Current display, preview and memory indicator."""
        lines = []
        memory = self.calculator.get_memory()
        if memory != 0:
            lines.append(f"M: {number_to_text(memory)}")
        lines.append(f"[{self.calculator.angle_unit.value}] {self.calculator.get_display_text()}")
        preview = self.calculator.get_preview_text()
        if preview is not None:
            lines.append(f"= {preview}")
        return "\n".join(lines)

    def _run_command(self, cmd: str, args: List[str]) -> str:
        """Execute a REPL colon command. Raises EOFError for exit/quit."""
        cmd_lower = cmd.lower()
        if cmd_lower in {'exit', 'quit'}:
            raise EOFError()
        if cmd_lower == 'help':
            return show_help(args[0] if args else None)
        if cmd_lower == 'history':
            history = self.calculator.get_history()
            if not history:
                return "(no history)"
            return "\n".join(f"{entry.expression} = {entry.result}" for entry in history)
        if cmd_lower == 'clear-history':
            self.calculator.clear_history()
            return "History cleared"
        if cmd_lower == 'memory':
            return f"M: {number_to_text(self.calculator.get_memory())}"
        if cmd_lower == 'angle':
            return f"Angle unit: {self.calculator.angle_unit.value}"
        return f"Unknown command: {cmd}"

    def evaluate_line(self, line: str) -> Tuple[bool, str]:
        """Process a single line (command or key presses). Returns (ok, output)."""
        s = line.strip()
        if s.startswith(':'):
            parts = s[1:].split()
            if not parts:
                return False, "No command specified. Use :help for available commands."
            return True, self._run_command(parts[0], parts[1:])

        try:
            actions = [KeypadAction.from_key(key) for key in split_keys(s)]
        except ValueError as e:
            return False, f"Error: {e}"
        for action in actions:
            self.calculator.on_keypad_action(action)
        return True, self.render()

    def repl_loop(self) -> None:
        """Interactive loop with in-memory history and key completion."""
        print("Keypad calculator. Type :help for help. Ctrl-D or :exit to quit.")
        self._prompt_session = PromptSession(history=InMemoryHistory())
        completer = WordCompleter(KEY_LABELS + [':help', ':history', ':clear-history',
                                                ':memory', ':angle', ':exit'])
        while True:
            try:
                line = self._prompt_session.prompt(self.settings.prompt, completer=completer)
            except KeyboardInterrupt:
                print("^C")
                continue
            except EOFError:
                print("Exiting.")
                break
            if not line.strip():
                continue
            try:
                ok, out = self.evaluate_line(line)
            except EOFError:
                print("Exiting.")
                break
            if not ok:
                logger.info(out)
            print(out)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="scicalc", description="Keypad scientific calculator.")
    parser.add_argument("--angle", choices=[unit.value for unit in AngleUnit],
                        help="Initial angle unit (default from SCICALC_ANGLE_UNIT or deg)")
    parser.add_argument("--log-level", help="Logging level (default from SCICALC_LOG_LEVEL or WARNING)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    settings = load_settings()
    overrides = {}
    if args.angle:
        overrides["angle_unit"] = AngleUnit(args.angle)
    if args.log_level:
        overrides["log_level"] = args.log_level
    if overrides:
        settings = Settings(**{**settings.model_dump(), **overrides})

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    KeypadREPL(settings).repl_loop()
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
