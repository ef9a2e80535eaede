"""Errores recuperables del motor de cálculo.

Todas las clases heredan de ValueError para que el código que ya
capturaba ValueError (la interfaz, la línea de comandos) siga
funcionando. El mensaje (str(exc)) se muestra tal cual al usuario.
"""


class CalculationError(ValueError):
    """Raíz de los errores de evaluación."""


class InvalidExpressionError(CalculationError):
    def __init__(self, fragment: str):
        self.fragment = fragment
        super().__init__(f"Invalid expression: {fragment}")


class DivisionByZeroError(CalculationError, ZeroDivisionError):
    def __init__(self, message: str = "Division by zero"):
        super().__init__(message)


class InvalidArgumentsError(CalculationError):
    """Argumentos fuera de dominio para nPr, nCr o factorial exacto."""


class NTooLargeError(CalculationError):
    """n supera el límite de cálculo permitido."""
