from __future__ import annotations

import math

import pytest
from mpmath import mp

from calculation_errors import InvalidArgumentsError, NTooLargeError
from combinatorics import (
    BIG_FACTORIAL_LIMIT,
    big_factorial,
    combinations,
    factorial,
    permutations,
)


def test_factorial_small_values() -> None:
    assert factorial(0) == 1.0
    assert factorial(1) == 1.0
    assert factorial(5) == 120.0
    assert factorial(20.0) == float(math.factorial(20))


def test_factorial_limits() -> None:
    assert math.isfinite(factorial(170))
    assert factorial(170) == pytest.approx(float(math.factorial(170)), rel=1e-12)
    assert factorial(171) == math.inf
    assert math.isnan(factorial(-1))
    assert math.isnan(factorial(2.5))
    assert math.isnan(factorial(math.nan))
    assert math.isnan(factorial(math.inf))


def test_big_factorial_matches_reference_computation() -> None:
    text = big_factorial(171)
    with mp.workdps(400):
        reference = int(mp.factorial(171))
    assert int(text.replace(",", "")) == reference
    assert text.count(",") == (len(str(reference)) - 1) // 3


def test_big_factorial_small_values_are_grouped() -> None:
    assert big_factorial(0) == "1"
    assert big_factorial(5) == "120"
    assert big_factorial(10) == "3,628,800"


def test_big_factorial_rejections() -> None:
    with pytest.raises(InvalidArgumentsError, match="not a non-negative integer"):
        big_factorial(-1)
    with pytest.raises(InvalidArgumentsError):
        big_factorial(1.5)
    with pytest.raises(NTooLargeError, match="max 100000"):
        big_factorial(BIG_FACTORIAL_LIMIT + 1)


def test_permutations() -> None:
    assert permutations(5, 2) == 20.0
    assert permutations(5, 0) == 1.0
    assert permutations(10, 10) == float(math.factorial(10))
    assert math.isfinite(permutations(170, 170))


def test_combinations() -> None:
    assert combinations(5, 2) == 10.0
    assert combinations(10, 3) == combinations(10, 7) == 120.0
    assert combinations(7, 0) == 1.0
    assert combinations(7, 7) == 1.0
    assert combinations(170, 85) == pytest.approx(float(math.comb(170, 85)), rel=1e-12)


@pytest.mark.parametrize(
    "n, r",
    [(-1, 0), (3, 5), (5.5, 2), (5, 1.5), (5, -1), (math.nan, 1), (math.inf, 1)],
)
def test_invalid_selection_arguments(n: float, r: float) -> None:
    with pytest.raises(InvalidArgumentsError, match="Invalid nPr arguments"):
        permutations(n, r)
    with pytest.raises(InvalidArgumentsError, match="Invalid nCr arguments"):
        combinations(n, r)


def test_selection_rejects_large_n() -> None:
    with pytest.raises(NTooLargeError, match="n too large"):
        permutations(171, 1)
    with pytest.raises(NTooLargeError):
        combinations(171, 1)
