import pytest

from scicalc import repl as repl_module
from scicalc.config import Settings
from scicalc.evaluator import AngleUnit
from scicalc.repl import KeypadREPL, main, show_help, split_keys


@pytest.fixture
def repl():
    return KeypadREPL(Settings())


def test_split_keys_runs_and_words():
    assert split_keys("12+sin(30)=") == ['1', '2', '+', 'sin(', '3', '0', ')', '=']
    assert split_keys("2 M+ DEL") == ['2', 'M+', 'DEL']
    assert split_keys("sqrt(9)") == ['sqrt(', '9', ')']
    assert split_keys("2*pi") == ['2', '*', 'pi']
    assert split_keys("( )") == ['( )']
    assert split_keys("5 ( ) 2 ( )") == ['5', '( )', '2', '( )']
    assert split_keys("(1+2)") == ['(', '1', '+', '2', ')']
    assert split_keys("   ") == []


def test_evaluate_line_commits(repl):
    ok, out = repl.evaluate_line("12+7=")
    assert ok
    assert out == "[deg] 19"


def test_evaluate_line_smart_parenthesis_label(repl):
    ok, out = repl.evaluate_line("( ) 2 + 3 ( )")
    assert ok
    assert out == "[deg] (2+3)\n= 5"
    repl.evaluate_line("( )")
    assert repl.calculator.get_display_text() == "(2+3)("


def test_evaluate_line_shows_preview(repl):
    ok, out = repl.evaluate_line("1+2")
    assert ok
    assert out == "[deg] 1+2\n= 3"


def test_evaluate_line_shows_memory(repl):
    ok, out = repl.evaluate_line("5 M+")
    assert ok
    assert out == "M: 5\n[deg] 5"


def test_evaluate_line_shows_error_label(repl):
    ok, out = repl.evaluate_line("1/0=")
    assert ok
    assert out == "[deg] Can't divide by zero"


def test_unknown_key_leaves_state_untouched(repl):
    repl.evaluate_line("4")
    ok, out = repl.evaluate_line("5+foo")
    assert not ok
    assert "Unknown key" in out
    assert repl.calculator.get_display_text() == "4"


def test_history_commands(repl):
    ok, out = repl.evaluate_line(":history")
    assert ok and out == "(no history)"
    repl.evaluate_line("12+7=")
    ok, out = repl.evaluate_line(":history")
    assert out == "12+7 = 19"
    ok, out = repl.evaluate_line(":clear-history")
    assert out == "History cleared"
    assert repl.calculator.get_history() == []


def test_memory_and_angle_commands(repl):
    repl.evaluate_line("3 M+")
    assert repl.evaluate_line(":memory") == (True, "M: 3")
    repl.evaluate_line("DEG")
    assert repl.evaluate_line(":angle") == (True, "Angle unit: rad")


def test_help_and_unknown_commands(repl):
    ok, out = repl.evaluate_line(":help")
    assert ok and "Commands:" in out
    assert "MC MR M+ M-" in show_help("keys")
    assert "No help available" in show_help("nope")
    assert repl.evaluate_line(":bogus") == (True, "Unknown command: bogus")
    ok, _ = repl.evaluate_line(":")
    assert not ok


def test_exit_command_raises_eof(repl):
    with pytest.raises(EOFError):
        repl.evaluate_line(":exit")


def test_settings_angle_unit_is_used():
    repl = KeypadREPL(Settings(angle_unit=AngleUnit.RADIANS))
    assert repl.evaluate_line("DEG")[1] == "[deg] 0"


def test_main_applies_cli_overrides(monkeypatch):
    monkeypatch.delenv("SCICALC_ANGLE_UNIT", raising=False)
    captured = {}

    def fake_loop(self):
        captured["unit"] = self.calculator.angle_unit

    monkeypatch.setattr(repl_module.KeypadREPL, "repl_loop", fake_loop)
    assert main(["--angle", "rad", "--log-level", "debug"]) == 0
    assert captured["unit"] is AngleUnit.RADIANS
