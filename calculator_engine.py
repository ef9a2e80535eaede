"""
Motor de cálculo para la calculadora científica.

Este módulo provee la clase CalculatorEngine, la fachada que usa la capa
de presentación. Guarda las dos preferencias del usuario (modo angular y
formato de pantalla) y las pasa explícitamente en cada llamada al
evaluador y al formateador, que no conservan estado entre llamadas.

Contrato de interfaz:
    - evaluate(expression: str) -> str
    - display(expression: str) -> str
    - angle_mode: propiedad AngleMode (acepta 'rad' | 'deg')
    - display_format: propiedad DisplayFormat
"""

import logging
import math
from enum import Enum

from calculation_errors import CalculationError, DivisionByZeroError
from combinatorics import big_factorial, combinations, permutations
from formula_evaluator import (
    AngleMode,
    FormulaEvaluator,
    FunctionName,
    PythonMathProvider,
)
from number_formatter import DisplayFormat, format_number, parse_display

logger = logging.getLogger(__name__)

ERROR_PREFIX = "Error: "


class Operation(Enum):
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    POWER = "^"
    ROOT = "root"
    MODULO = "%"
    PERMUTATION = "nPr"
    COMBINATION = "nCr"


class CalculatorEngine:
    """Evalúa expresiones matemáticas con funciones científicas."""

    def __init__(self, angle_mode=AngleMode.DEGREES, display_format=DisplayFormat.REGULAR):
        self._provider = PythonMathProvider()
        self._evaluator = FormulaEvaluator(self._provider)
        self._angle_mode = AngleMode.parse(angle_mode)
        self._display_format = DisplayFormat.parse(display_format)

    # ── Propiedades: preferencias del usuario ────────────────────

    @property
    def angle_mode(self) -> AngleMode:
        return self._angle_mode

    @angle_mode.setter
    def angle_mode(self, mode):
        self._angle_mode = AngleMode.parse(mode)

    @property
    def display_format(self) -> DisplayFormat:
        return self._display_format

    @display_format.setter
    def display_format(self, style):
        self._display_format = DisplayFormat.parse(style)

    # ── Evaluación principal ─────────────────────────────────────

    def evaluate_value(self, expression: str) -> float:
        return self._evaluator.evaluate(expression, self._angle_mode)

    def evaluate(self, expression: str) -> str:
        """Evalúa la expresión y devuelve el resultado como cadena.

        Raises:
            CalculationError: expresión inválida, división por cero o
                argumentos fuera de rango.
        """
        return self.format(self.evaluate_value(expression))

    def display(self, expression: str) -> str:
        """Como evaluate, pero los errores se devuelven como texto."""
        try:
            return self.evaluate(expression)
        except CalculationError as exc:
            return ERROR_PREFIX + str(exc)

    def format(self, value: float, style=None) -> str:
        return format_number(value, self._display_format if style is None else style)

    def reformat(self, display_text: str, style) -> str:
        """Vuelve a mostrar una pantalla previa con otro formato."""
        self.display_format = style
        return self.format(parse_display(display_text))

    # ── Operaciones directas (teclas de operador) ────────────────

    def apply_operation(self, left: float, operation: Operation, right: float) -> float:
        """Aplica un operador binario de teclado a dos valores ya leídos.

        Raises:
            DivisionByZeroError: divisor o índice de raíz cero.
            InvalidArgumentsError / NTooLargeError: nPr y nCr.
        """
        operation = Operation(operation)

        if operation is Operation.DIVIDE:
            if right == 0:
                raise DivisionByZeroError("Div by 0")
            return left / right
        if operation is Operation.ROOT:
            if right == 0:
                raise DivisionByZeroError("Root 0")
            return self._provider.binary("^", left, 1.0 / right)
        if operation is Operation.PERMUTATION:
            return permutations(left, right)
        if operation is Operation.COMBINATION:
            return combinations(left, right)
        return self._provider.binary(operation.value, left, right)

    def apply_function(self, name: str, value: float) -> float:
        """Aplica una función de una tecla (sin, √, x², 1/x, ...)."""
        if name == "square":
            return value * value
        if name == "reciprocal":
            return 1.0 / value if value != 0 else math.inf

        function = FunctionName.lookup(name)
        if function is None or function.arity != 1:
            raise ValueError(f"Función desconocida: {name}")
        return self._provider.apply(function, value, self._angle_mode)

    def factorial_display(self, value: float) -> str:
        return self.format(self._provider.apply(FunctionName.FACTORIAL, value, self._angle_mode))

    def big_factorial_display(self, value: float) -> str:
        try:
            return big_factorial(value)
        except CalculationError as exc:
            logger.debug("Factorial exacto rechazado para %r: %s", value, exc)
            return ERROR_PREFIX + str(exc)
