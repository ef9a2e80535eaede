from __future__ import annotations

import pytest

from arbitrary_precision_engine import ArbitraryPrecisionCalculatorEngine
from calculation_errors import DivisionByZeroError, InvalidExpressionError
from formula_evaluator import AngleMode


def _engine(**kwargs) -> ArbitraryPrecisionCalculatorEngine:
    kwargs.setdefault("initial_digits", 20)
    kwargs.setdefault("precision_step", 20)
    return ArbitraryPrecisionCalculatorEngine(**kwargs)


def test_integers_are_exact() -> None:
    engine = _engine()
    assert engine.evaluate("2^10") == "1024"
    assert engine.evaluate("nCr(10,3)") == "120"
    assert engine.evaluate("(2)(3)+1") == "7"


def test_fraction_uses_working_digits() -> None:
    engine = _engine()
    assert engine.evaluate("1/3") == "0." + "3" * 20


def test_request_more_precision_extends_last_result() -> None:
    engine = _engine()
    first = engine.evaluate("1/7")
    assert engine.can_expand_precision()

    second = engine.request_more_precision()
    assert engine.working_digits == 40
    assert len(second) > len(first)
    assert second.startswith(first[:-1])


def test_request_more_precision_without_previous_calculation() -> None:
    engine = _engine()
    assert not engine.can_expand_precision()
    with pytest.raises(ValueError):
        engine.request_more_precision()


def test_evaluate_resets_working_digits() -> None:
    engine = _engine()
    engine.evaluate("1/7")
    engine.request_more_precision()
    engine.evaluate("1/3")
    assert engine.working_digits == 20


def test_same_grammar_and_errors_as_float_engine() -> None:
    engine = _engine()
    assert engine.evaluate("10-3-2") == "5"
    assert engine.evaluate("sin(30)") == "0.5"
    with pytest.raises(DivisionByZeroError):
        engine.evaluate("(1/0)")
    with pytest.raises(InvalidExpressionError):
        engine.evaluate("2pi")


def test_radians_mode() -> None:
    engine = _engine(angle_mode="rad")
    assert engine.angle_mode is AngleMode.RADIANS
    assert engine.evaluate("cos(pi)") == "-1"


def test_domain_errors_render_as_invalid() -> None:
    engine = _engine()
    assert engine.evaluate("sqrt(-1)") == "Error: Invalid"
    assert engine.evaluate("(-8)^(1/3)") == "Error: Invalid"
    assert engine.evaluate("ln(0)") == "Error: Overflow"


def test_large_values_switch_to_scientific() -> None:
    engine = _engine()
    result = engine.evaluate("fact(25)")
    assert result.startswith("1.55112100433309")
    assert result.endswith("e+25")
