import math

import pytest

from scicalc.errors import ErrorKind
from scicalc.evaluator import AngleUnit, Evaluator, calculate, evaluate
from scicalc.normalizer import CanonicalForm
from scicalc.outcome import Failure, Success
from scicalc.parser import parse


def value_of(expression, unit=AngleUnit.DEGREES):
    outcome = calculate(expression, unit)
    assert outcome.is_success, outcome
    return outcome.value


def kind_of(expression, unit=AngleUnit.DEGREES):
    outcome = calculate(expression, unit)
    assert not outcome.is_success, outcome
    return outcome.kind


def test_angle_unit_factor_and_toggle():
    assert AngleUnit.DEGREES.factor == pytest.approx(math.pi / 180)
    assert AngleUnit.RADIANS.factor == 1.0
    assert AngleUnit.DEGREES.toggled() is AngleUnit.RADIANS
    assert AngleUnit.RADIANS.toggled() is AngleUnit.DEGREES


def test_sin_depends_on_angle_unit():
    assert value_of("sin(90)", AngleUnit.DEGREES) == pytest.approx(1.0)
    assert value_of("sin(90)", AngleUnit.RADIANS) == pytest.approx(0.8939966636, abs=1e-10)


def test_cos_and_tan_in_degrees():
    assert value_of("cos(60)") == pytest.approx(0.5)
    assert value_of("tan(45)") == pytest.approx(1.0)


def test_arithmetic_precedence():
    assert value_of("2+3×4") == 14
    assert value_of("2^3^2") == 512
    assert value_of("(-2)^2") == 4
    assert value_of("2^-1") == 0.5
    assert kind_of("-2^2") is ErrorKind.INVALID_FORMAT
    assert value_of("10-4-3") == 3
    assert value_of("(2+3)×4") == 20


def test_percent_and_constants():
    assert value_of("50%") == 0.5
    assert value_of("π") == pytest.approx(math.pi)
    assert value_of("e") == pytest.approx(math.e)


def test_logarithms_and_square_root():
    assert value_of("log(1000)") == pytest.approx(3.0)
    assert value_of("ln(e)") == pytest.approx(1.0)
    assert value_of("√(16)") == 4
    assert value_of("√(9+7") == 4


def test_structural_zero_denominator():
    assert kind_of("1÷0") is ErrorKind.DIVIDE_BY_ZERO
    assert kind_of("5÷0.0") is ErrorKind.DIVIDE_BY_ZERO


def test_computed_zero_denominator_is_overflow_not_divide_by_zero():
    assert kind_of("1÷(1-1)") is ErrorKind.OVERFLOW
    assert kind_of("0÷(1-1)") is ErrorKind.INVALID_INPUT


def test_domain_errors_become_nan_or_infinity():
    assert kind_of("√(-1)") is ErrorKind.INVALID_INPUT
    assert kind_of("ln(-1)") is ErrorKind.INVALID_INPUT
    assert kind_of("log(0)") is ErrorKind.OVERFLOW
    assert kind_of("10^400") is ErrorKind.OVERFLOW
    assert kind_of("(-8)^(1÷3)") is ErrorKind.INVALID_INPUT


def test_grammar_errors_are_invalid_format():
    assert kind_of("5+") is ErrorKind.INVALID_FORMAT
    assert kind_of("2π") is ErrorKind.INVALID_FORMAT
    assert kind_of("2@3") is ErrorKind.INVALID_FORMAT
    assert kind_of("1.2.3") is ErrorKind.INVALID_FORMAT
    assert kind_of("(1+2))") is ErrorKind.INVALID_FORMAT


def test_unknown_names_are_generic_errors():
    assert kind_of("x+1") is ErrorKind.GENERIC
    assert kind_of("ee") is ErrorKind.GENERIC
    assert kind_of("πe") is ErrorKind.GENERIC


def test_constant_followed_by_digits_is_undefined():
    assert kind_of("π2") is ErrorKind.INVALID_FORMAT
    assert kind_of("e5") is ErrorKind.INVALID_FORMAT
    assert kind_of("(π2)") is ErrorKind.INVALID_FORMAT
    # Undefined is NaN once it takes part in arithmetic.
    assert kind_of("π2+1") is ErrorKind.INVALID_INPUT
    assert kind_of("√(e5)") is ErrorKind.INVALID_INPUT


@pytest.mark.parametrize("expression", ["5(3", "(2)(3)", "sin(30)(2)", "π(2)", "2^3(4)"])
def test_calling_a_non_function_is_a_generic_error(expression):
    assert kind_of(expression) is ErrorKind.GENERIC


def test_empty_function_call_is_invalid_input():
    assert kind_of("√(") is ErrorKind.INVALID_INPUT
    assert kind_of("sin(") is ErrorKind.INVALID_INPUT
    assert kind_of("ln()") is ErrorKind.INVALID_INPUT
    assert kind_of("()") is ErrorKind.INVALID_FORMAT


def test_results_round_half_up_to_twelve_digits():
    assert calculate("1000000000025÷10").text == "100000000003"


def test_deep_nesting_is_contained():
    assert kind_of("(" * 5000 + "1") is ErrorKind.GENERIC


def test_evaluate_respects_zero_flag():
    outcome = evaluate(CanonicalForm(text="1/0", divides_by_zero=True))
    assert outcome == Failure(ErrorKind.DIVIDE_BY_ZERO)


def test_evaluate_returns_success():
    assert evaluate(CanonicalForm(text="1+1")) == Success(2.0)


def test_calculate_empty_has_no_outcome():
    assert calculate("") is None


def test_evaluator_walks_ast_directly():
    ev = Evaluator(AngleUnit.RADIANS)
    assert ev.eval(parse("cos_angle(0)")) == 1.0
    assert ev.eval(parse("1/0")) == math.inf
    assert ev.eval(parse("-1/0")) == -math.inf
    assert math.isnan(ev.eval(parse("0/0")))
