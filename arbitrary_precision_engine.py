"""Motor de cálculo con precisión arbitraria y expansión progresiva."""

from __future__ import annotations

import logging

from combinatorics import combinations, permutations
from formula_evaluator import AngleMode, FormulaEvaluator, FunctionName

try:
    from mpmath import mp
except ImportError as exc:  # pragma: no cover
    raise ImportError(
        "mpmath no está instalado. Instala con: pip install mpmath"
    ) from exc

logger = logging.getLogger(__name__)


def _real_or_nan(value):
    """mpmath devuelve mpc fuera del dominio real; aquí eso es NaN."""
    if isinstance(value, mp.mpc):
        return mp.nan
    return value


class MPMathProvider:
    """Proveedor matemático basado en mpmath."""

    _TRIG = {
        FunctionName.SIN: mp.sin,
        FunctionName.COS: mp.cos,
        FunctionName.TAN: mp.tan,
    }
    _INVERSE_TRIG = {
        FunctionName.ASIN: mp.asin,
        FunctionName.ACOS: mp.acos,
        FunctionName.ATAN: mp.atan,
    }
    _PLAIN = {
        FunctionName.SQRT: mp.sqrt,
        FunctionName.SINH: mp.sinh,
        FunctionName.COSH: mp.cosh,
        FunctionName.TANH: mp.tanh,
        FunctionName.LOG: mp.log10,
        FunctionName.LN: mp.log,
        FunctionName.EXP: mp.exp,
        FunctionName.ABS: abs,
    }

    def parse_number(self, text: str):
        return mp.mpf(text)

    def constant(self, name: str):
        return +mp.pi if name == "pi" else +mp.e

    def binary(self, op: str, left, right):
        if op == "+":
            return left + right
        if op == "-":
            return left - right
        if op == "*":
            return left * right
        if op == "/":
            return left / right
        if op == "%":
            if right == 0:
                return mp.nan
            return mp.fmod(left, right)
        return _real_or_nan(mp.power(left, right))

    def call(self, function: FunctionName, args: list, angle_mode: AngleMode):
        if function is FunctionName.NPR:
            return mp.mpf(permutations(*args))
        if function is FunctionName.NCR:
            return mp.mpf(combinations(*args))
        return self.apply(function, args[0], angle_mode)

    def apply(self, function: FunctionName, x, angle_mode: AngleMode):
        degrees = angle_mode is AngleMode.DEGREES

        if function in self._TRIG:
            return self._TRIG[function](mp.radians(x) if degrees else x)

        if function in self._INVERSE_TRIG:
            result = _real_or_nan(self._INVERSE_TRIG[function](x))
            return mp.degrees(result) if degrees else result

        if function is FunctionName.FACTORIAL:
            return self._factorial(x)

        if function in (FunctionName.LOG, FunctionName.LN) and x == 0:
            return mp.ninf

        return _real_or_nan(self._PLAIN[function](x))

    @staticmethod
    def _factorial(x):
        if not mp.isfinite(x) or x < 0 or mp.floor(x) != x:
            return mp.nan

        n = int(x)
        if n <= 5000:
            return mp.factorial(n)

        return mp.exp(mp.loggamma(n + 1))


class ArbitraryPrecisionCalculatorEngine:
    """Evalúa expresiones con precisión arbitraria y dígitos progresivos."""

    SCI_NOTATION_EXP_LIMIT = 12

    def __init__(
        self,
        initial_digits: int = 18,
        precision_step: int = 24,
        angle_mode=AngleMode.DEGREES,
    ):
        self._provider = MPMathProvider()
        self._evaluator = FormulaEvaluator(self._provider)
        self._angle_mode = AngleMode.parse(angle_mode)

        self._initial_digits = max(8, initial_digits)
        self._precision_step = max(8, precision_step)

        self._working_digits = self._initial_digits
        self._last_expression: str | None = None
        self._last_value = None

    @property
    def angle_mode(self) -> AngleMode:
        return self._angle_mode

    @angle_mode.setter
    def angle_mode(self, mode):
        self._angle_mode = AngleMode.parse(mode)

    @property
    def working_digits(self) -> int:
        return self._working_digits

    def evaluate(self, expression: str) -> str:
        self._last_expression = expression
        self._working_digits = self._initial_digits
        self._last_value = self._evaluate_with_digits(expression, self._working_digits)
        return self._format_result(self._last_value, self._working_digits)

    def can_expand_precision(self) -> bool:
        return self._last_expression is not None

    def request_more_precision(self) -> str:
        if not self._last_expression:
            raise ValueError("No hay cálculo previo")

        self._working_digits += self._precision_step
        logger.debug(
            "Ampliando %r a %d dígitos", self._last_expression, self._working_digits
        )
        self._last_value = self._evaluate_with_digits(
            self._last_expression,
            self._working_digits,
        )
        return self._format_result(self._last_value, self._working_digits)

    def _evaluate_with_digits(self, expression: str, digits: int):
        internal_dps = max(40, digits * 2 + 10)
        with mp.workdps(internal_dps):
            return self._evaluator.evaluate(expression, self._angle_mode)

    @staticmethod
    def _format_result(value, digits: int) -> str:
        if isinstance(value, (int, float)):
            value = mp.mpf(value)

        if mp.isnan(value):
            return "Error: Invalid"
        if mp.isinf(value):
            return "Error: Overflow"

        if value == 0:
            return "0"

        if mp.floor(value) == value and abs(value) < mp.mpf("1e18"):
            return str(int(value))

        exponent = int(mp.floor(mp.log10(abs(value))))
        if abs(exponent) >= ArbitraryPrecisionCalculatorEngine.SCI_NOTATION_EXP_LIMIT:
            return mp.nstr(value, n=digits, min_fixed=0, max_fixed=0)

        return mp.nstr(value, n=digits)
