"""Factorial, permutaciones y combinaciones.

Las versiones en float saturan o devuelven NaN (el formateador muestra
esos valores como error). big_factorial calcula el valor exacto con
enteros de precisión arbitraria y lo devuelve ya agrupado en triadas.
"""

import logging
import math

from calculation_errors import InvalidArgumentsError, NTooLargeError
from number_formatter import add_thousands_separators

logger = logging.getLogger(__name__)

# 170! es el mayor factorial representable en float (171! desborda).
FACTORIAL_FLOAT_LIMIT = 170
BIG_FACTORIAL_LIMIT = 100000


def _is_non_negative_integer(x: float) -> bool:
    return float(x).is_integer() and x >= 0


def factorial(n: float) -> float:
    if not _is_non_negative_integer(n):
        return math.nan
    if n > FACTORIAL_FLOAT_LIMIT:
        return math.inf

    result = 1.0
    for i in range(2, int(n) + 1):
        result *= i
    return result


def big_factorial(n: float) -> str:
    """n! exacto como cadena con separadores de miles.

    Raises:
        InvalidArgumentsError: n negativo o no entero.
        NTooLargeError: n mayor que BIG_FACTORIAL_LIMIT.
    """
    if not _is_non_negative_integer(n):
        raise InvalidArgumentsError("Invalid (not a non-negative integer)")
    if n > BIG_FACTORIAL_LIMIT:
        raise NTooLargeError(f"Too large (max {BIG_FACTORIAL_LIMIT})")

    result = 1
    for i in range(2, int(n) + 1):
        result *= i

    digits = str(result)
    logger.debug("%d! exacto tiene %d dígitos", int(n), len(digits))
    return add_thousands_separators(digits)


def validate_selection(n: float, r: float, label: str):
    """Comprueba (n, r) para nPr/nCr; label aparece en el mensaje."""
    if (
        n < 0
        or r < 0
        or r > n
        or not float(n).is_integer()
        or not float(r).is_integer()
    ):
        raise InvalidArgumentsError(f"Invalid {label} arguments")
    if n > FACTORIAL_FLOAT_LIMIT:
        raise NTooLargeError(f"n too large (max {FACTORIAL_FLOAT_LIMIT})")


def permutations(n: float, r: float) -> float:
    """nPr = n · (n-1) · … · (n-r+1)."""
    validate_selection(n, r, "nPr")

    result = 1.0
    for i in range(int(r)):
        result *= n - i
    return result


def combinations(n: float, r: float) -> float:
    """nCr con el menor de {r, n-r} y división en cada paso.

    Multiplicar todo el numerador antes de dividir desborda para muchos
    valores válidos cercanos a n = 170.
    """
    validate_selection(n, r, "nCr")

    steps = int(min(r, n - r))
    result = 1.0
    for i in range(steps):
        result = result * (n - i) / (i + 1)
    return result
