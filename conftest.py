import itertools

import pytest

from scicalc.evaluator import AngleUnit
from scicalc.session import CalculatorSession


@pytest.fixture
def clock():
    """Deterministic millisecond clock: 1000, 1001, 1002, ..."""
    ticks = itertools.count(1000)
    return lambda: next(ticks)


@pytest.fixture
def session(clock):
    return CalculatorSession(angle_unit=AngleUnit.DEGREES, clock=clock)


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    outcome = yield
    report = outcome.get_result()
    if report.when == "call":
        print(f"TEST: {item.name} - {'PASSED' if report.passed else 'FAILED'}")
